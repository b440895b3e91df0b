# main.py
from typing import TypedDict, List, Dict, Any, Optional
import asyncio

from logging_config import setup_logging, get_agent_logger
from analysis.website_analyzer import analyze_website
from core.errors import AnalysisError
from core.models import GenerationRequest, GenerationResult, TestCase, WebsiteAnalysis
from core.settings import get_settings
from core.test_router import TestRouter
from io_library.output import to_response
from io_library.test_case_store import InMemoryTestCaseStore

# ----- logging -----
settings = get_settings()
setup_logging(log_level=settings.logging_level, log_to_file=settings.log_to_file)
logger = get_agent_logger("MAIN")


# ----- request state shape expected by api.py -----
class GenerationState(TypedDict, total=False):
    url: str
    prompt: str
    website_analysis: Dict[str, Any]
    security_enabled: bool
    include_input_validation: bool
    types: List[str]          # explicit override; bypasses classification
    analyze_website: bool     # snapshot the page with Playwright first


def _to_request(state: GenerationState, analysis: Optional[WebsiteAnalysis]) -> GenerationRequest:
    return GenerationRequest(
        url=state.get("url"),
        prompt=state.get("prompt") or "",
        website_analysis=analysis,
        security_enabled=bool(state.get("security_enabled")),
        include_input_validation=bool(state.get("include_input_validation")),
    )


# ----- simple app wrapper providing .ainvoke(...) -----
class _SimpleApp:
    def __init__(self, router: Optional[TestRouter] = None, store: Optional[InMemoryTestCaseStore] = None):
        self.store = store if store is not None else InMemoryTestCaseStore()
        self.router = router or TestRouter(settings=settings, store=self.store)

    async def _resolve_analysis(self, state: GenerationState) -> Optional[WebsiteAnalysis]:
        raw = state.get("website_analysis")
        if raw:
            return raw if isinstance(raw, WebsiteAnalysis) else WebsiteAnalysis(**raw)
        if state.get("analyze_website") and state.get("url"):
            try:
                return await analyze_website(state["url"], settings)
            except AnalysisError as e:
                # generation degrades to an empty snapshot
                logger.error(f"🎭 MAIN: website analysis skipped: {e}")
        return None

    async def agenerate(self, state: GenerationState) -> GenerationResult:
        analysis = await self._resolve_analysis(state)
        request = _to_request(state, analysis)
        types = state.get("types")
        if types:
            return self.router.generate_tests_with_types(request, types)
        return self.router.generate_tests(request)

    async def ainvoke(self, state: GenerationState) -> Dict[str, Any]:
        logger.info("🧩 MAIN: invoking router")
        result = await self.agenerate(state)
        logger.info(f"✅ MAIN: router completed with {result.summary.total_tests} test case(s)")
        return to_response(result)

    # sync helper for scripts and tests
    def invoke(self, state: GenerationState) -> Dict[str, Any]:
        return asyncio.run(self.ainvoke(state))

    def get_test_case(self, test_case_id: str) -> Optional[TestCase]:
        return self.store.get(test_case_id)


# Exported symbols used by api.py
app = _SimpleApp()
