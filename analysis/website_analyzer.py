# analysis/website_analyzer.py
"""
Optional WebsiteAnalysis provider. Opens the page with Playwright, collects
interactive elements and forms, and converts the raw DOM records into the
WebsiteAnalysis model. The conversion step is pure and usable without a browser.
"""
from typing import Any, Dict, List, Optional

from playwright.async_api import async_playwright

from core.errors import AnalysisError
from core.models import FormInfo, InteractiveElement, WebsiteAnalysis
from core.settings import Settings, get_settings
from logging_config import get_agent_logger, log_agent_complete, log_agent_error, log_playwright_action

logger = get_agent_logger("ANALYZER")

MAX_ELEMENTS = 200

_COLLECT_ELEMENTS_JS = """
() => {
    const selector = 'a[href], button, input, select, textarea, [role], [tabindex], [aria-label]';
    return Array.from(document.querySelectorAll(selector)).map(el => ({
        tag: el.tagName.toLowerCase(),
        type: el.getAttribute('type'),
        text: (el.innerText || el.value || '').trim().substring(0, 100),
        ariaLabel: el.getAttribute('aria-label'),
        role: el.getAttribute('role'),
        id: el.id || null,
        name: el.getAttribute('name'),
    }));
}
"""

_COLLECT_FORMS_JS = """
() => Array.from(document.forms).map(form => ({
    action: form.getAttribute('action'),
    method: (form.getAttribute('method') || 'get').toLowerCase(),
    fields: Array.from(form.elements)
        .map(el => el.getAttribute('name') || el.id || el.getAttribute('type'))
        .filter(Boolean),
}))
"""


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_website_analysis(
    url: str,
    raw_elements: Optional[List[Dict[str, Any]]] = None,
    raw_forms: Optional[List[Dict[str, Any]]] = None,
) -> WebsiteAnalysis:
    """Convert raw DOM records into a WebsiteAnalysis. Malformed records are skipped."""
    elements: List[InteractiveElement] = []
    for raw in raw_elements or []:
        if not isinstance(raw, dict) or not raw.get("tag"):
            continue
        elements.append(InteractiveElement(
            tag=str(raw["tag"]).lower(),
            type=_clean(raw.get("type")),
            text=_clean(raw.get("text")),
            aria_label=_clean(raw.get("ariaLabel", raw.get("aria_label"))),
            role=_clean(raw.get("role")),
            id=_clean(raw.get("id")),
            name=_clean(raw.get("name")),
        ))
        if len(elements) >= MAX_ELEMENTS:
            break

    forms: List[FormInfo] = []
    for raw in raw_forms or []:
        if not isinstance(raw, dict):
            continue
        forms.append(FormInfo(
            action=_clean(raw.get("action")),
            method=_clean(raw.get("method")),
            fields=[str(f) for f in raw.get("fields") or [] if f],
        ))
    return WebsiteAnalysis(url=url, interactive_elements=elements, forms=forms)


async def analyze_website(url: str, settings: Optional[Settings] = None) -> WebsiteAnalysis:
    """Load url in Chromium and snapshot its interactive structure. Raises AnalysisError."""
    settings = settings or get_settings()
    pw = None
    browser = None
    try:
        log_playwright_action(f"Launching Chromium with headless={settings.analyzer_headless}")
        pw = await async_playwright().start()
        browser = await pw.chromium.launch(headless=settings.analyzer_headless)
        context = await browser.new_context()
        page = await context.new_page()

        log_playwright_action(f"Navigating to {url}")
        await page.goto(url, timeout=settings.analyzer_timeout_ms)
        await page.wait_for_load_state("domcontentloaded")

        raw_elements = await page.evaluate(_COLLECT_ELEMENTS_JS)
        raw_forms = await page.evaluate(_COLLECT_FORMS_JS)
        analysis = build_website_analysis(url, raw_elements, raw_forms)
        log_agent_complete("ANALYZER", {
            "url": url,
            "interactive_elements": len(analysis.interactive_elements),
            "forms": len(analysis.forms),
        })
        return analysis
    except Exception as e:
        log_agent_error("ANALYZER", f"analysis of {url} failed: {e}")
        raise AnalysisError(f"Could not analyze {url}: {e}") from e
    finally:
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.debug(f"browser close failed: {e}")
        if pw is not None:
            try:
                await pw.stop()
            except Exception as e:
                logger.debug(f"playwright stop failed: {e}")
