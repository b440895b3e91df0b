# core/test_router.py
"""
Generator dispatch: classify the request, run every routed domain generator,
isolate per-domain failures and aggregate the results.
"""
from typing import Callable, Dict, List, Optional, Sequence

from core.errors import InvalidRequestError
from core.intent_classifier import classify
from core.keyword_tables import DEFAULT_TABLES, KeywordTables
from core.models import GenerationRequest, GenerationResult, TestCase, TestDomain, TestIntent, WebsiteAnalysis
from core.settings import Settings, get_settings
from generators.accessibility_generator import generate_accessibility_tests
from generators.api_generator import generate_api_tests
from generators.functional_generator import generate_functional_tests
from generators.security_generator import generate_security_tests
from io_library.output import _generate_result
from io_library.test_case_store import InMemoryTestCaseStore
from logging_config import get_agent_logger
from utility.test_case_formatter import TestIdSequence

logger = get_agent_logger("ROUTER")

# request, shared id sequence, settings -> cases
DomainGenerator = Callable[[GenerationRequest, WebsiteAnalysis, TestIdSequence, Settings], List[TestCase]]

# Output order of test cases, independent of which domain was primary
DOMAIN_ORDER = (
    TestDomain.ACCESSIBILITY.value,
    TestDomain.SECURITY.value,
    TestDomain.API.value,
    TestDomain.FUNCTIONAL.value,
)


def _functional(request, analysis, ids, settings):
    return generate_functional_tests(request.url, request.prompt, analysis,
                                     include_input_validation=request.include_input_validation, ids=ids)


def _accessibility(request, analysis, ids, settings):
    return generate_accessibility_tests(request.url, request.prompt, analysis, ids=ids)


def _api(request, analysis, ids, settings):
    return generate_api_tests(request.url, request.prompt, ids=ids, settings=settings)


def _security(request, analysis, ids, settings):
    return generate_security_tests(request.url, request.prompt, ids=ids)


DEFAULT_GENERATORS: Dict[str, DomainGenerator] = {
    TestDomain.FUNCTIONAL.value: _functional,
    TestDomain.ACCESSIBILITY.value: _accessibility,
    TestDomain.API.value: _api,
    TestDomain.SECURITY.value: _security,
}


class TestRouter:
    """Routes one GenerationRequest to the domain generators. Holds no per-request state."""

    __test__ = False

    def __init__(
        self,
        generators: Optional[Dict[str, DomainGenerator]] = None,
        tables: KeywordTables = DEFAULT_TABLES,
        settings: Optional[Settings] = None,
        store: Optional[InMemoryTestCaseStore] = None,
    ):
        self.generators = dict(DEFAULT_GENERATORS)
        if generators:
            self.generators.update(generators)
        self.tables = tables
        self.settings = settings or get_settings()
        self.store = store

    # ---------------- public API ----------------
    def generate_tests(self, request: GenerationRequest) -> GenerationResult:
        self._validate(request)
        analysis = self._analysis(request)
        intent = classify(request.prompt, request.website_analysis, self.tables,
                          mixed_threshold=self.settings.mixed_threshold)
        logger.info(f"🧭 Intent → {intent.primary_type} ({intent.confidence}) secondary={intent.secondary_types}")

        domains = intent.routed_domains()
        if request.security_enabled and TestDomain.SECURITY.value not in domains:
            domains.append(TestDomain.SECURITY.value)
        return self._dispatch(request, analysis, intent, domains, allow_fallback=True)

    def generate_tests_with_types(self, request: GenerationRequest, types: Sequence[str]) -> GenerationResult:
        """Explicit types fully replace classification; nothing inferred is blended in."""
        self._validate(request)
        requested = [str(t).strip().lower() for t in types or [] if str(t).strip()]
        if not requested:
            raise InvalidRequestError("At least one test type is required", field="types")
        unknown = [t for t in requested if t not in self.generators]
        if unknown:
            raise InvalidRequestError(f"Unknown test type(s): {', '.join(unknown)}", field="types")
        requested = list(dict.fromkeys(requested))

        intent = TestIntent(
            primary_type=requested[0],
            secondary_types=requested[1:],
            confidence=1.0,
            detected_keywords={"explicit": requested},
            use_enhanced_accessibility_parser=TestDomain.ACCESSIBILITY.value in requested,
        )
        logger.info(f"🧭 Explicit types → {requested}")
        return self._dispatch(request, self._analysis(request), intent, requested, allow_fallback=False)

    # ---------------- internals ----------------
    def _validate(self, request: GenerationRequest) -> None:
        if request is None:
            raise InvalidRequestError("Request is required")
        if not (request.url or "").strip():
            raise InvalidRequestError("A target URL is required", field="url")

    def _analysis(self, request: GenerationRequest) -> WebsiteAnalysis:
        return request.website_analysis or WebsiteAnalysis(url=request.url)

    def _run_domain(self, domain, request, analysis, ids, results, used, errors) -> None:
        try:
            cases = list(self.generators[domain](request, analysis, ids, self.settings))
        except Exception as e:
            logger.error(f"❌ {domain} generator failed: {e}")
            errors.append({"domain": domain, "error": str(e)})
            return
        results[domain] = cases
        used[domain] = len(cases)
        logger.info(f"✅ {domain}: {len(cases)} test case(s)")

    def _dispatch(
        self,
        request: GenerationRequest,
        analysis: WebsiteAnalysis,
        intent: TestIntent,
        domains: List[str],
        allow_fallback: bool,
    ) -> GenerationResult:
        ids = TestIdSequence()
        results: Dict[str, List[TestCase]] = {}
        used: Dict[str, int] = {}
        errors: List[Dict[str, str]] = []
        attempted: List[str] = []

        for domain in domains:
            if domain in attempted or domain not in self.generators:
                continue
            attempted.append(domain)
            self._run_domain(domain, request, analysis, ids, results, used, errors)

        functional = TestDomain.FUNCTIONAL.value
        produced = sum(len(c) for c in results.values())
        low_confidence = intent.confidence < self.settings.low_confidence_threshold
        if allow_fallback and functional not in attempted and (low_confidence or produced == 0):
            logger.info(f"🧭 Functional fallback (confidence={intent.confidence}, produced={produced})")
            attempted.append(functional)
            self._run_domain(functional, request, analysis, ids, results, used, errors)

        ordered = [d for d in DOMAIN_ORDER if d in results] + [d for d in results if d not in DOMAIN_ORDER]
        test_cases: List[TestCase] = [tc for d in ordered for tc in results[d]]
        generators_used = {d: used[d] for d in ordered}

        if self.store is not None and self.settings.persist_test_cases:
            try:
                self.store.save_all(test_cases)
            except Exception as e:
                logger.error(f"💾 persistence failed: {e}")

        logger.info(f"📊 {len(test_cases)} test case(s) from {list(generators_used)}")
        return _generate_result(test_cases, intent, analysis, generators_used, errors)
