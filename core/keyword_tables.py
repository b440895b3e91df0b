# core/keyword_tables.py
"""
Keyword dictionaries shared by the classifier and the specificity detector.

Tables are frozen pydantic models built once at import. Callers that need
different vocabularies build their own KeywordTables and inject it.
"""
import re
from functools import lru_cache
from typing import Dict, Iterable, List, Pattern, Tuple

from pydantic import BaseModel, ConfigDict


def _dedupe(*groups: Iterable[str]) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for group in groups:
        for kw in group:
            seen.setdefault(kw.lower(), None)
    return tuple(seen)


@lru_cache(maxsize=4096)
def keyword_pattern(keyword: str) -> Pattern[str]:
    """Case-insensitive match that refuses to start or end inside a word."""
    kw = keyword.lower()
    head = r"(?<![a-z0-9])" if kw[:1].isalnum() else ""
    tail = r"(?![a-z0-9])" if kw[-1:].isalnum() else ""
    return re.compile(head + re.escape(kw) + tail, re.IGNORECASE)


def find_keywords(text: str, keywords: Iterable[str]) -> List[str]:
    return [kw for kw in keywords if keyword_pattern(kw).search(text)]


def count_occurrences(text: str, keyword: str) -> int:
    return len(keyword_pattern(keyword).findall(text))


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword_pattern(kw).search(text) for kw in keywords)


SECURITY_KEYWORDS = (
    "security", "auth", "authorization", "authentication", "token", "bearer",
    "invalid", "unauthorized", "forbidden", "inject", "injection", "sql", "xss",
    "script", "malicious", "payload", "exploit", "vulnerability", "header",
    "x-admin", "admin", "privilege", "escalation", "bypass",
)

ENHANCED_DOM = (
    "alt text", "alt attribute", "image alt", "form labels", "label association",
    "heading hierarchy", "semantic html", "landmarks", "main content", "navigation",
    "banner", "contentinfo", "article", "section", "aside", "figure", "figcaption",
)

ENHANCED_KEYBOARD = (
    "keyboard navigation", "tab sequence", "focus order", "keyboard activation",
    "focus management", "keyboard trap", "tab key", "enter key", "space key",
    "shift tab", "focus indicator", "focus visible", "press tab", "tab twice",
    "tab three times", "tab once", "keyboard input", "keyboard access",
    "keyboard only", "tab order", "keyboard shortcut", "arrow keys",
    "keyboard interaction", "keyboard controls", "tab navigation", "keyboard focus",
    "focus ring", "keyboard user", "keyboard support", "tab stop",
    "focusable element", "keyboard accessible", "keyboard functionality",
    "keyboard operation",
)

ENHANCED_ARIA = (
    "aria label", "aria labelledby", "aria describedby", "aria live", "aria expanded",
    "aria selected", "aria checked", "aria pressed", "aria current", "aria disabled",
    "aria hidden", "aria invalid", "aria required", "aria readonly", "aria role",
    "aria states", "aria properties", "live regions", "screen reader announcements",
    "role attribute", "role value", "role compatibility", "element role", "aria roles",
    "role validation", "role checking", "role verification", "semantic role",
    "element type", "role mapping", "role semantics", "locate elements", "read role",
    "check role", "role testing", "aria compliance", "role attributes",
)

ENHANCED_VISUAL = (
    "color contrast", "contrast ratio", "focus indicators", "visual accessibility",
    "wcag aa", "wcag aaa", "contrast compliance", "text contrast", "background contrast",
)

ENHANCED_WCAG = (
    "wcag 1.1.1", "wcag 1.3.1", "wcag 2.1.1", "wcag 2.4.1", "wcag 2.4.3", "wcag 2.4.6",
    "wcag 2.4.7", "wcag 3.3.2", "wcag 4.1.2", "wcag 4.1.3", "wcag guidelines",
    "success criteria", "bypass blocks", "skip links", "info and relationships",
    "headings and labels", "labels or instructions", "name role value",
)

ENHANCED_AXE = (
    "axe core", "axe-core", "accessibility scan", "accessibility audit",
    "accessibility violations", "accessibility compliance",
)

BASIC_ACCESSIBILITY = (
    "screen reader", "keyboard", "aria", "wcag", "a11y", "accessible", "focus",
    "tab navigation", "contrast", "semantic", "assistive", "voiceover", "nvda",
    "jaws", "talkback", "accessibility", "keyboard navigation", "color contrast",
    "focus indicator", "aria label", "aria role", "press tab", "tab key",
    "role attribute", "role compatibility", "element role",
)

API_KEYWORDS = (
    "api", "endpoint", "rest", "graphql", "status code", "json", "schema", "request",
    "response", "http", "authentication", "token", "bearer", "authorization",
    "header", "body", "query parameter", "post", "get", "put", "patch", "delete",
    "rest api", "api endpoint", "json schema", "response code",
)

FUNCTIONAL_KEYWORDS = (
    "click", "fill", "navigate", "submit", "login", "search", "form", "button", "link",
    "input", "select", "checkbox", "radio", "dropdown", "menu", "modal", "dialog",
    "page", "user flow", "interaction",
)

# Patterns that mark an accessibility request as precise enough for the enhanced parser
ENHANCED_PARSER_PATTERNS = (
    "wcag", "aria", "screen reader", "keyboard navigation", "accessibility", "a11y",
    "contrast", "focus", "semantic", "alt text", "label", "press tab", "tab key",
    "tab twice", "keyboard",
)

# Imperative verbs that turn a request into a concrete ordered step list
SPECIFIC_ACTION_VERBS = (
    "send", "store", "read", "verify", "count", "expect", "measure", "click", "clcik",
    "enter", "fill", "type", "select", "check", "tick", "press", "tap", "hover",
    "scroll", "navigate", "submit", "assert", "ensure", "compare",
)

API_SPECIFIC_PHRASES = (
    "send a", "send an", "send get", "send post", "send put", "send patch", "send delete",
    "store response", "store the response", "read field", "read the", "verify", "count",
    "expect", "measure", "compare",
)

ACCESSIBILITY_INSTRUCTION_CUES = (
    "load the webpage", "press tab", "press enter", "press space", "click on",
    "navigate to", "store", "verify", "check that", "ensure that", "validate that",
    "confirm that", "measure", "count", "find", "locate", "inspect", "examine",
    "step 1", "step 2", "first", "then", "next", "after that", "finally", "load",
    "press", "check", "first focused element", "next focusable element",
    "previous element", "current focus", "focused element", "active element",
    "at page start", "from the beginning", "in order", "sequentially", "one by one",
    "step by step",
)


class KeywordTables(BaseModel):
    """Immutable vocabulary consumed by classify() and the specificity detector."""

    model_config = ConfigDict(frozen=True)

    functional: Tuple[str, ...] = FUNCTIONAL_KEYWORDS
    accessibility: Tuple[str, ...] = _dedupe(
        BASIC_ACCESSIBILITY, ENHANCED_DOM, ENHANCED_KEYBOARD, ENHANCED_ARIA,
        ENHANCED_VISUAL, ENHANCED_WCAG, ENHANCED_AXE,
    )
    accessibility_enhanced: Tuple[str, ...] = _dedupe(
        ENHANCED_DOM, ENHANCED_KEYBOARD, ENHANCED_ARIA, ENHANCED_VISUAL, ENHANCED_WCAG, ENHANCED_AXE,
    )
    api: Tuple[str, ...] = API_KEYWORDS
    security: Tuple[str, ...] = SECURITY_KEYWORDS
    enhanced_parser_patterns: Tuple[str, ...] = ENHANCED_PARSER_PATTERNS
    specific_verbs: Tuple[str, ...] = SPECIFIC_ACTION_VERBS
    api_specific_phrases: Tuple[str, ...] = API_SPECIFIC_PHRASES
    accessibility_instruction_cues: Tuple[str, ...] = ACCESSIBILITY_INSTRUCTION_CUES

    def domain_keywords(self) -> Dict[str, Tuple[str, ...]]:
        # insertion order doubles as the tie-break order for equal scores
        return {
            "accessibility": self.accessibility,
            "api": self.api,
            "functional": self.functional,
            "security": self.security,
        }


DEFAULT_TABLES = KeywordTables()
