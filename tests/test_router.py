"""
Tests for the generator dispatch router
"""
import pytest

from core.errors import InvalidRequestError
from core.models import GenerationRequest
from core.test_router import TestRouter


def _boom(request, analysis, ids, settings):
    raise RuntimeError("generator exploded")


class TestRouting:
    """Classification drives dispatch"""

    def test_specific_api_prompt(self, router):
        result = router.generate_tests(GenerationRequest(
            url="https://api.example.com/users", prompt="Send a GET request to https://api.example.com/users",
        ))
        assert result.intent.primary_type == "api"
        assert result.summary.total_tests == 1
        assert result.summary.generators_used == {"api": 1}
        assert result.test_cases[0].test_type == "API"

    def test_low_confidence_adds_functional(self, router):
        result = router.generate_tests(GenerationRequest(url="https://example.com", prompt="hello there"))
        assert result.intent.confidence < 0.5
        assert "functional" in result.summary.generators_used
        assert result.summary.total_tests == 3

    def test_security_enabled_flag(self, router):
        result = router.generate_tests(GenerationRequest(
            url="https://example.com", prompt="Click the login button", security_enabled=True,
        ))
        assert "security" in result.summary.generators_used
        types = [tc.test_type for tc in result.test_cases]
        assert types.index("Security") < types.index("Functional")

    def test_stable_domain_order(self, router):
        result = router.generate_tests(GenerationRequest(
            url="https://api.example.com/users",
            prompt="Check color contrast and aria labels, then send a GET request to the api endpoint",
        ))
        types = [tc.test_type for tc in result.test_cases]
        assert types == sorted(types, key=["Accessibility", "Security", "API", "Functional"].index)
        assert list(result.summary.generators_used) == [d for d in ("accessibility", "security", "api", "functional")
                                                      if d in result.summary.generators_used]

    def test_summary_counts(self, router):
        result = router.generate_tests(GenerationRequest(url="https://example.com", prompt="Test the homepage"))
        summary = result.summary
        assert summary.total_tests == len(result.test_cases)
        assert sum(summary.by_type.values()) == summary.total_tests
        assert summary.intent["primary_type"] == result.intent.primary_type
        assert "Smoke" in summary.coverage_areas

    def test_ids_unique_within_request(self, router):
        result = router.generate_tests(GenerationRequest(
            url="https://api.example.com/users",
            prompt="Check color contrast and aria labels, then send a GET request to the api endpoint",
        ))
        ids = [tc.id for tc in result.test_cases]
        assert len(ids) == len(set(ids))

    def test_analysis_is_never_null(self, router):
        result = router.generate_tests(GenerationRequest(url="https://example.com", prompt="Click Login"))
        assert result.analysis.url == "https://example.com"
        assert result.analysis.interactive_elements == []


class TestFailureIsolation:
    """One failing generator never aborts the request"""

    def test_accessibility_failure_keeps_other_results(self, settings):
        router = TestRouter(generators={"accessibility": _boom}, settings=settings)
        result = router.generate_tests(GenerationRequest(
            url="https://api.example.com/users",
            prompt="Check color contrast and aria labels, then send a GET request to the api endpoint",
        ))
        assert "accessibility" not in result.summary.generators_used
        assert "api" in result.summary.generators_used
        assert result.test_cases
        assert result.summary.errors == [{"domain": "accessibility", "error": "generator exploded"}]

    def test_functional_fallback_when_nothing_produced(self, settings):
        router = TestRouter(generators={"api": _boom}, settings=settings)
        result = router.generate_tests(GenerationRequest(
            url="https://api.example.com/users", prompt="Send a GET request to https://api.example.com/users",
        ))
        assert list(result.summary.generators_used) == ["functional"]
        assert result.summary.total_tests >= 1

    def test_functional_not_retried_after_failure(self, settings):
        calls = []

        def failing_functional(request, analysis, ids, settings):
            calls.append(request.prompt)
            raise RuntimeError("no")

        router = TestRouter(generators={"functional": failing_functional}, settings=settings)
        result = router.generate_tests(GenerationRequest(url="https://example.com", prompt="Click Login"))
        assert len(calls) == 1
        assert result.test_cases == []
        assert result.summary.errors[0]["domain"] == "functional"


class TestValidation:
    """Malformed requests fail before dispatch"""

    @pytest.mark.parametrize("url", [None, "", "   "])
    def test_missing_url(self, router, url):
        with pytest.raises(InvalidRequestError) as exc:
            router.generate_tests(GenerationRequest(url=url, prompt="Click Login"))
        assert exc.value.field == "url"

    def test_generator_not_called_for_invalid_request(self, settings):
        calls = []
        router = TestRouter(generators={"functional": lambda *a: calls.append(a) or []}, settings=settings)
        with pytest.raises(InvalidRequestError):
            router.generate_tests(GenerationRequest(url=None, prompt="Click Login"))
        assert calls == []


class TestExplicitTypes:
    """Explicit types fully override classification"""

    def test_override_ignores_classifier(self, router):
        result = router.generate_tests_with_types(
            GenerationRequest(url="https://example.com", prompt="Check color contrast"), ["security"],
        )
        assert result.intent.primary_type == "security"
        assert result.intent.confidence == 1.0
        assert result.intent.detected_keywords == {"explicit": ["security"]}
        assert list(result.summary.generators_used) == ["security"]

    def test_no_functional_fallback(self, settings):
        router = TestRouter(generators={"api": _boom}, settings=settings)
        result = router.generate_tests_with_types(
            GenerationRequest(url="https://example.com", prompt="Test the API"), ["api"],
        )
        assert result.test_cases == []
        assert result.summary.generators_used == {}

    def test_multiple_types(self, router):
        result = router.generate_tests_with_types(
            GenerationRequest(url="https://example.com", prompt="Click Login"), ["Functional", "accessibility"],
        )
        assert result.intent.secondary_types == ["accessibility"]
        assert set(result.summary.generators_used) == {"functional", "accessibility"}

    def test_unknown_type(self, router):
        with pytest.raises(InvalidRequestError):
            router.generate_tests_with_types(GenerationRequest(url="https://example.com", prompt="x"), ["visual"])

    def test_empty_types(self, router):
        with pytest.raises(InvalidRequestError):
            router.generate_tests_with_types(GenerationRequest(url="https://example.com", prompt="x"), [])


class TestPersistence:
    """Write-through store does not change output"""

    def test_store_receives_cases(self, router, store):
        result = router.generate_tests(GenerationRequest(url="https://example.com", prompt="Click Login"))
        assert len(store) == len(result.test_cases)
        assert store.get(result.test_cases[0].id) == result.test_cases[0]

    def test_output_identical_without_store(self, settings, store):
        request = GenerationRequest(url="https://example.com", prompt="Click Login")
        with_store = TestRouter(settings=settings, store=store).generate_tests(request)
        without_store = TestRouter(settings=settings).generate_tests(request)
        assert with_store.model_dump() == without_store.model_dump()
