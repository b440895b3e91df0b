# utility/test_case_formatter.py
from typing import Any, Dict, List, Optional, Type

from core.models import QualityMetrics, TestCase, TestStep, ValidationCriteria

ID_PREFIXES: Dict[str, str] = {
    "Functional": "FT",
    "Accessibility": "A11Y",
    "API": "API",
    "Security": "SEC",
    "Input Validation": "IV",
}


def generate_test_id(test_type: str, sequence: int) -> str:
    return f"{ID_PREFIXES.get(test_type, 'TC')}-{sequence:03d}"


class TestIdSequence:
    """Request-scoped id counters, one per test type."""

    __test__ = False

    def __init__(self):
        self._next: Dict[str, int] = {}

    def next_id(self, test_type: str) -> str:
        n = self._next.get(test_type, 0) + 1
        self._next[test_type] = n
        return generate_test_id(test_type, n)


def _as_step(step: Any) -> TestStep:
    if isinstance(step, TestStep):
        return step
    return TestStep(**step)


def calculate_quality_metrics(
    title: str = "",
    description: str = "",
    preconditions: Optional[List[str]] = None,
    steps: Optional[List[TestStep]] = None,
    expected_result: str = "",
    compliance: Optional[List[str]] = None,
    automation_mapping: str = "",
) -> QualityMetrics:
    preconditions = preconditions or []
    steps = steps or []
    compliance = compliance or []

    confidence = 50
    if len(title) > 10:
        confidence += 10
    if len(description) > 20:
        confidence += 10
    if preconditions:
        confidence += 10
    if steps:
        confidence += 15
    if len(expected_result) > 10:
        confidence += 10
    confidence += min(len(compliance) * 5, 15)

    stability = 50.0
    if steps:
        count = len(steps)
        if count <= 5:
            stability += 20
        elif count <= 10:
            stability += 10
        else:
            stability += 5
        with_expectations = sum(1 for s in steps if s.expected_result)
        stability += min(with_expectations / count * 20, 20)
    if len(automation_mapping) > 50:
        stability += 10

    maintainability = 50
    if 10 <= len(title) <= 100:
        maintainability += 15
    if 20 <= len(description) <= 200:
        maintainability += 15
    if 1 <= len(steps) <= 10:
        maintainability += 20
    maintainability += min(len(compliance) * 5, 20)

    return QualityMetrics(
        confidence=min(confidence, 100),
        stability=min(int(round(stability)), 100),
        maintainability=min(maintainability, 100),
    )


def format_test_case(partial: Dict[str, Any], test_type: str, model: Type[TestCase] = TestCase) -> TestCase:
    """
    Build a frozen test case from partial data.

    Missing fields get defaults, steps are renumbered from 1 and quality
    metrics are derived from the content unless the caller supplied them.
    """
    data = dict(partial)
    steps = [_as_step(s) for s in data.get("steps") or []]
    data["steps"] = [s.model_copy(update={"step_number": i}) for i, s in enumerate(steps, 1)]
    data["test_type"] = test_type
    data.setdefault("title", "Untitled Test Case")
    data.setdefault("category", "Regression")
    data.setdefault("priority", "Medium")
    data.setdefault("severity", "Medium")
    data.setdefault("stability", "Stable")
    data.setdefault("preconditions", [])
    criteria = data.get("validation_criteria") or ValidationCriteria()
    if isinstance(criteria, dict):
        criteria = ValidationCriteria(**criteria)
    data["validation_criteria"] = criteria
    if not data.get("quality_metrics"):
        data["quality_metrics"] = calculate_quality_metrics(
            title=data["title"],
            description=data.get("description", ""),
            preconditions=data["preconditions"],
            steps=data["steps"],
            expected_result=data.get("expected_result", ""),
            compliance=criteria.compliance,
            automation_mapping=data.get("automation_mapping", ""),
        )
    return model(**data)


def validate_test_case_structure(test_case: Any) -> List[str]:
    """Human-readable structural problems; an empty list means the case is well formed."""
    tc = test_case.model_dump() if isinstance(test_case, TestCase) else dict(test_case or {})
    errors: List[str] = []
    for field in ("id", "title", "test_type", "priority", "severity", "stability"):
        if not tc.get(field):
            errors.append(f"Missing required field: {field}")
    if not isinstance(tc.get("preconditions"), list):
        errors.append("Missing or invalid field: preconditions (must be list)")
    steps = tc.get("steps")
    if not isinstance(steps, list):
        errors.append("Missing or invalid field: steps (must be list)")
    else:
        for index, step in enumerate(steps, 1):
            if not (step or {}).get("action"):
                errors.append(f"Step {index}: Missing action")
            if not (step or {}).get("expected_result"):
                errors.append(f"Step {index}: Missing expected_result")
    if not tc.get("validation_criteria"):
        errors.append("Missing required field: validation_criteria")
    metrics = tc.get("quality_metrics")
    if not metrics:
        errors.append("Missing required field: quality_metrics")
    else:
        for name in ("confidence", "stability", "maintainability"):
            value = metrics.get(name)
            if value is None or value < 0 or value > 100:
                errors.append(f"Quality metric {name} must be 0-100")
    return errors
