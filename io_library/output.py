# io_library/output.py
from typing import Any, Dict, List

from core.models import GenerationResult, GenerationSummary, TestCase, TestIntent, WebsiteAnalysis


def _compute_summary(
    test_cases: List[TestCase],
    intent: TestIntent,
    generators_used: Dict[str, int],
    errors: List[Dict[str, str]],
) -> GenerationSummary:
    by_type: Dict[str, int] = {}
    coverage: List[str] = []
    for tc in test_cases:
        by_type[tc.test_type] = by_type.get(tc.test_type, 0) + 1
        if tc.category not in coverage:
            coverage.append(tc.category)
    return GenerationSummary(
        total_tests=len(test_cases),
        by_type=by_type,
        intent={
            "primary_type": intent.primary_type,
            "secondary_types": list(intent.secondary_types),
            "confidence": intent.confidence,
            "use_enhanced_accessibility_parser": intent.use_enhanced_accessibility_parser,
        },
        generators_used=dict(generators_used),
        coverage_areas=coverage,
        errors=list(errors),
    )


def _generate_result(
    test_cases: List[TestCase],
    intent: TestIntent,
    analysis: WebsiteAnalysis,
    generators_used: Dict[str, int],
    errors: List[Dict[str, str]],
) -> GenerationResult:
    return GenerationResult(
        test_cases=test_cases,
        summary=_compute_summary(test_cases, intent, generators_used, errors),
        intent=intent,
        analysis=analysis,
    )


def to_response(result: GenerationResult) -> Dict[str, Any]:
    """JSON-ready payload for the HTTP layer (camelCase top-level keys)."""
    summary = result.summary
    return {
        "testCases": [tc.model_dump() for tc in result.test_cases],
        "summary": {
            "totalTests": summary.total_tests,
            "byType": summary.by_type,
            "intent": summary.intent,
            "generatorsUsed": summary.generators_used,
            "coverageAreas": summary.coverage_areas,
            "errors": summary.errors,
        },
        "intent": result.intent.model_dump(),
        "analysis": result.analysis.model_dump(),
    }
