"""
Tests for test case formatting, id sequencing, output shaping and the in-memory store
"""
import pytest
from pydantic import ValidationError

from core.models import QualityMetrics, TestIntent, TestStep, WebsiteAnalysis
from io_library.output import _generate_result, to_response
from io_library.test_case_store import InMemoryTestCaseStore
from utility.test_case_formatter import (
    ID_PREFIXES, TestIdSequence, calculate_quality_metrics, format_test_case, generate_test_id,
    validate_test_case_structure,
)


def _case(case_id="FT-001", test_type="Functional", category="Smoke"):
    return format_test_case({
        "id": case_id,
        "title": "Homepage smoke check",
        "category": category,
        "steps": [{"step_number": 1, "action": "Navigate", "expected_result": "Page loads"}],
    }, test_type)


class TestIds:
    """Prefixes and request-scoped counters"""

    def test_prefixes(self):
        assert generate_test_id("Functional", 1) == "FT-001"
        assert generate_test_id("Accessibility", 12) == "A11Y-012"
        assert generate_test_id("Input Validation", 3) == "IV-003"
        assert generate_test_id("Something Else", 1) == "TC-001"

    def test_prefixes_cover_generated_types(self):
        assert set(ID_PREFIXES) == {"Functional", "Accessibility", "API", "Security", "Input Validation"}
        assert generate_test_id("Database", 1) == "TC-001"

    def test_counters_are_per_type(self):
        ids = TestIdSequence()
        assert ids.next_id("API") == "API-001"
        assert ids.next_id("Functional") == "FT-001"
        assert ids.next_id("API") == "API-002"

    def test_sequences_are_independent(self):
        TestIdSequence().next_id("API")
        assert TestIdSequence().next_id("API") == "API-001"


class TestFormatter:
    """Defaults, renumbering and derived metrics"""

    def test_defaults_and_renumbering(self):
        case = format_test_case({
            "id": "FT-001",
            "steps": [
                {"step_number": 5, "action": "a", "expected_result": "b"},
                TestStep(step_number=9, action="c", expected_result="d"),
            ],
        }, "Functional")
        assert case.title == "Untitled Test Case"
        assert case.category == "Regression"
        assert case.priority == "Medium" and case.severity == "Medium"
        assert case.stability == "Stable"
        assert [s.step_number for s in case.steps] == [1, 2]
        assert case.test_type == "Functional"

    def test_derived_metrics(self):
        case = format_test_case({
            "id": "FT-001",
            "steps": [
                {"step_number": 1, "action": "a", "expected_result": "b"},
                {"step_number": 2, "action": "c", "expected_result": "d"},
            ],
        }, "Functional")
        assert case.quality_metrics == QualityMetrics(confidence=75, stability=90, maintainability=85)

    def test_supplied_metrics_win(self):
        metrics = QualityMetrics(confidence=95, stability=95, maintainability=90)
        case = format_test_case({"id": "SEC-001", "quality_metrics": metrics}, "Security")
        assert case.quality_metrics == metrics

    def test_metrics_are_bounded(self):
        steps = [TestStep(step_number=i, action="x", expected_result="y") for i in range(1, 4)]
        metrics = calculate_quality_metrics(
            title="A reasonably long title", description="A description that is long enough",
            preconditions=["p"], steps=steps, expected_result="Everything works",
            compliance=["WCAG 1.4.3"] * 10, automation_mapping="x" * 100,
        )
        for value in (metrics.confidence, metrics.stability, metrics.maintainability):
            assert 0 <= value <= 100
        assert metrics.confidence == 100

    def test_dict_criteria_are_converted(self):
        case = format_test_case({"id": "FT-001", "validation_criteria": {"behavior": ["ok"]}}, "Functional")
        assert case.validation_criteria.behavior == ["ok"]
        assert case.validation_criteria.compliance == []


class TestStructureValidation:
    """validate_test_case_structure reports readable problems"""

    def test_well_formed_case(self):
        assert validate_test_case_structure(_case()) == []

    def test_missing_fields(self):
        errors = validate_test_case_structure({})
        assert "Missing required field: id" in errors
        assert "Missing or invalid field: steps (must be list)" in errors
        assert "Missing required field: quality_metrics" in errors

    def test_bad_steps_and_metrics(self):
        raw = _case().model_dump()
        raw["steps"] = [{"step_number": 1, "action": "", "expected_result": ""}]
        raw["quality_metrics"] = {"confidence": 150, "stability": 50, "maintainability": -1}
        errors = validate_test_case_structure(raw)
        assert "Step 1: Missing action" in errors
        assert "Step 1: Missing expected_result" in errors
        assert "Quality metric confidence must be 0-100" in errors
        assert "Quality metric maintainability must be 0-100" in errors


class TestOutput:
    """Summary aggregation and the camelCase response"""

    def test_summary(self):
        cases = [_case("FT-001"), _case("FT-002", category="Regression"), _case("API-001", "API")]
        intent = TestIntent(primary_type="functional", secondary_types=["api"], confidence=0.8)
        result = _generate_result(cases, intent, WebsiteAnalysis(url="https://example.com"),
                                  {"api": 1, "functional": 2}, [])
        assert result.summary.total_tests == 3
        assert result.summary.by_type == {"Functional": 2, "API": 1}
        assert result.summary.coverage_areas == ["Smoke", "Regression"]
        assert result.summary.intent["secondary_types"] == ["api"]

    def test_response_keys(self):
        intent = TestIntent(primary_type="functional", confidence=0.0)
        result = _generate_result([_case()], intent, WebsiteAnalysis(url="https://example.com"),
                                  {"functional": 1}, [{"domain": "api", "error": "boom"}])
        response = to_response(result)
        assert set(response) == {"testCases", "summary", "intent", "analysis"}
        assert response["summary"]["totalTests"] == 1
        assert response["summary"]["generatorsUsed"] == {"functional": 1}
        assert response["summary"]["errors"] == [{"domain": "api", "error": "boom"}]
        assert response["testCases"][0]["id"] == "FT-001"


class TestStore:
    """Keyed by id, later saves replace earlier ones"""

    def test_save_and_get(self, store):
        case = _case()
        store.save(case)
        assert store.get("FT-001") is case
        assert "FT-001" in store
        assert store.get("FT-999") is None

    def test_replace_on_duplicate_id(self, store):
        store.save(_case())
        replacement = _case(category="Regression")
        store.save(replacement)
        assert len(store) == 1
        assert store.get("FT-001").category == "Regression"

    def test_list_and_clear(self):
        store = InMemoryTestCaseStore()
        assert store.save_all([_case("FT-001"), _case("API-001", "API")]) == 2
        assert [c.id for c in store.list("API")] == ["API-001"]
        assert len(store.list()) == 2
        store.clear()
        assert len(store) == 0

    def test_cases_are_frozen(self):
        case = _case()
        with pytest.raises(ValidationError):
            case.title = "changed"
