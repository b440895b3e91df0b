from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from main import app as generation_app, GenerationState
from typing import Optional, Dict, Any, List
from logging_config import get_agent_logger
from core.errors import InvalidRequestError

# Logging is configured when main is imported
logger = get_agent_logger("WEB")

api = FastAPI()


class GenerateInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    prompt: str = ""
    website_analysis: Optional[Dict[str, Any]] = Field(default=None, alias="websiteAnalysis")
    security_enabled: bool = Field(default=False, alias="securityEnabled")
    include_input_validation: bool = Field(default=False, alias="includeInputValidation")
    analyze_website: bool = Field(default=False, alias="analyzeWebsite")


class GenerateTypesInput(GenerateInput):
    types: List[str] = Field(default_factory=list)


def _state(payload: GenerateInput) -> GenerationState:
    state: GenerationState = {
        "url": payload.url,
        "prompt": payload.prompt,
        "security_enabled": payload.security_enabled,
        "include_input_validation": payload.include_input_validation,
        "analyze_website": payload.analyze_website,
    }
    if payload.website_analysis:
        state["website_analysis"] = _snake_analysis(payload.website_analysis)
    return state


def _snake_analysis(raw: Dict[str, Any]) -> Dict[str, Any]:
    # the dashboard sends camelCase keys
    elements = raw.get("interactive_elements", raw.get("interactiveElements")) or []
    return {
        "url": raw.get("url", ""),
        "interactive_elements": [
            {**{k: v for k, v in el.items() if k != "ariaLabel"}, "aria_label": el.get("aria_label", el.get("ariaLabel"))}
            for el in elements if isinstance(el, dict)
        ],
        "forms": [f for f in raw.get("forms") or [] if isinstance(f, dict)],
    }


async def _run(state: GenerationState) -> Dict[str, Any]:
    logger.info(f"🚀 API REQUEST RECEIVED")
    logger.info(f"📍 URL: {state.get('url')}")
    logger.info(f"📝 Prompt: {(state.get('prompt') or '')[:200]}")
    try:
        result = await generation_app.ainvoke(state)
        summary = result.get("summary", {})
        logger.info(f"📈 Summary: {summary.get('totalTests', 0)} test case(s) by {summary.get('generatorsUsed', {})}")
        if summary.get("errors"):
            logger.info(f"⚠️ Isolated generator errors: {summary['errors']}")
        logger.info(f"🎯 API RESPONSE READY")
        return result
    except InvalidRequestError as e:
        logger.error(f"❌ INVALID REQUEST: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"❌ API ERROR: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@api.post("/generate")
async def generate(payload: GenerateInput):
    return await _run(_state(payload))


@api.post("/generate/types")
async def generate_with_types(payload: GenerateTypesInput):
    state = _state(payload)
    # an empty list still goes through the explicit path so the router rejects it
    state["types"] = payload.types or [""]
    return await _run(state)


@api.get("/test-cases/{test_case_id}")
async def get_test_case(test_case_id: str):
    test_case = generation_app.get_test_case(test_case_id)
    if test_case is None:
        raise HTTPException(status_code=404, detail=f"Test case {test_case_id} not found")
    return test_case.model_dump()


@api.on_event("startup")
async def startup_event():
    logger.info("🌟 Test generation API starting up...")
    logger.info("📋 Available endpoints:")
    logger.info("  POST /generate - Classify a prompt and generate test cases")
    logger.info("  POST /generate/types - Generate test cases for explicit test types")
    logger.info("  GET /test-cases/{id} - Fetch a stored test case")
    logger.info("🎯 API ready to accept requests")


@api.on_event("shutdown")
async def shutdown_event():
    logger.info("🔄 Test generation API shutting down...")
    logger.info("👋 Goodbye!")
