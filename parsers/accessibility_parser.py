# parsers/accessibility_parser.py
"""
Accessibility requirement parser.

Free text is mapped onto five requirement categories (DOM inspection,
keyboard navigation, ARIA compliance, visual accessibility, WCAG guidelines)
through keyword families. Step-by-step instructions additionally run a
per-step cascade so every step contributes its own requirements. Every
requirement carries at least one WCAG criterion.
"""
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

from core.keyword_tables import contains_any, find_keywords
from core.models import (
    AccessibilityRequirement, AccessibilityRequirements, AxeCoreIntegration, WebsiteAnalysis,
)
from core.specificity import is_accessibility_instruction
from logging_config import get_agent_logger
from parsers.action_extractor import split_instruction_lines

logger = get_agent_logger("A11Y")

WCAG_CRITERIA_INFO: Dict[str, Tuple[str, str]] = {
    "1.1.1": ("Non-text Content", "A"),
    "1.3.1": ("Info and Relationships", "A"),
    "1.3.2": ("Meaningful Sequence", "A"),
    "1.3.6": ("Identify Purpose", "AAA"),
    "1.4.3": ("Contrast (Minimum)", "AA"),
    "1.4.6": ("Contrast (Enhanced)", "AAA"),
    "1.4.11": ("Non-text Contrast", "AA"),
    "2.1.1": ("Keyboard", "A"),
    "2.1.2": ("No Keyboard Trap", "A"),
    "2.1.3": ("Keyboard (No Exception)", "AAA"),
    "2.4.1": ("Bypass Blocks", "A"),
    "2.4.3": ("Focus Order", "A"),
    "2.4.6": ("Headings and Labels", "AA"),
    "2.4.7": ("Focus Visible", "AA"),
    "2.4.10": ("Section Headings", "AAA"),
    "3.2.1": ("On Focus", "A"),
    "3.3.1": ("Error Identification", "A"),
    "3.3.2": ("Labels or Instructions", "A"),
    "4.1.2": ("Name, Role, Value", "A"),
    "4.1.3": ("Status Messages", "AA"),
}

TESTING_APPROACHES: Dict[str, str] = {
    "1.1.1": "Inspect every image for alt text or a decorative role",
    "1.3.1": "Verify semantic structure, landmarks and label relationships in the DOM",
    "1.4.3": "Measure text contrast against a 4.5:1 minimum",
    "1.4.11": "Measure UI component contrast against a 3:1 minimum",
    "2.1.1": "Operate every control with the keyboard alone",
    "2.4.1": "Confirm a skip link or landmark lets users bypass repeated blocks",
    "2.4.3": "Tab through the page and compare focus order with visual order",
    "2.4.7": "Focus each control and confirm a visible indicator",
    "3.3.1": "Submit invalid input and confirm errors are identified in text",
    "3.3.2": "Confirm every input has a label or instructions",
    "4.1.2": "Check name, role and value of every interactive element",
}


def wcag_criterion_info(criterion: str) -> Dict[str, str]:
    title, level = WCAG_CRITERIA_INFO.get(criterion, ("Unknown Criteria", "A"))
    return {"criterion": criterion, "title": title, "level": level}


class PatternFamily(NamedTuple):
    category: str
    type: str
    keywords: Tuple[str, ...]
    elements: Tuple[str, ...]
    wcag: Tuple[str, ...]


PATTERN_FAMILIES: Tuple[PatternFamily, ...] = (
    PatternFamily("dom_inspection", "image-alt",
                  ("alt text", "alt attribute", "image alt", "alt attributes", "images", "image"),
                  ("img", 'svg[role="img"]', '[role="img"]'), ("1.1.1",)),
    PatternFamily("dom_inspection", "form-labels",
                  ("form labels", "form label", "label association", "input labels", "labels", "label"),
                  ("input", "select", "textarea", "label"), ("1.3.1", "3.3.2", "4.1.2")),
    PatternFamily("dom_inspection", "heading-hierarchy",
                  ("heading hierarchy", "headings", "heading structure", "heading levels", "heading"),
                  ("h1", "h2", "h3", "h4", "h5", "h6", '[role="heading"]'), ("1.3.1", "2.4.6", "2.4.10")),
    PatternFamily("dom_inspection", "landmarks",
                  ("landmarks", "landmark", "main content", "banner", "contentinfo", "aside"),
                  ("main", "nav", "header", "footer", "aside"), ("1.3.1", "2.4.1", "1.3.6")),
    PatternFamily("dom_inspection", "semantic-html",
                  ("semantic html", "semantic markup", "semantic structure", "article", "section", "figure", "figcaption"),
                  ("main", "nav", "article", "section", "figure"), ("1.3.1",)),
    PatternFamily("keyboard_navigation", "tab-sequence",
                  ("tab sequence", "tab order", "press tab", "tab key", "tab navigation", "tab twice", "tab once",
                   "tab three times", "tab stop", "keyboard navigation", "keyboard access", "keyboard only"),
                  ("a", "button", "input", "select", "textarea", "[tabindex]"), ("2.1.1", "2.4.3")),
    PatternFamily("keyboard_navigation", "focus-order",
                  ("focus order", "focus sequence", "logical order"),
                  ("a", "button", "input", "[tabindex]"), ("2.4.3", "1.3.2")),
    PatternFamily("keyboard_navigation", "keyboard-activation",
                  ("keyboard activation", "enter key", "space key", "press enter", "press space", "keyboard shortcut"),
                  ("button", "a", '[role="button"]'), ("2.1.1", "2.1.3")),
    PatternFamily("keyboard_navigation", "focus-management",
                  ("focus management", "keyboard trap", "focus trap", "modal focus"),
                  ('[role="dialog"]', "dialog", "[tabindex]"), ("2.1.2", "2.4.3", "3.2.1")),
    PatternFamily("aria_compliance", "aria-labels",
                  ("aria label", "aria-label", "aria labelledby", "aria-labelledby", "accessible name"),
                  ("button", "a", "input", '[role="button"]'), ("4.1.2", "1.3.1")),
    PatternFamily("aria_compliance", "aria-descriptions",
                  ("aria describedby", "aria-describedby", "aria description"),
                  ("input", "[aria-describedby]"), ("1.3.1", "3.3.2", "4.1.2")),
    PatternFamily("aria_compliance", "aria-live-regions",
                  ("aria live", "aria-live", "live region", "live regions", "screen reader announcements"),
                  ("[aria-live]", '[role="alert"]', '[role="status"]'), ("4.1.3", "1.3.1")),
    PatternFamily("aria_compliance", "aria-states",
                  ("aria expanded", "aria-expanded", "aria selected", "aria-selected", "aria checked", "aria-checked",
                   "aria pressed", "aria-pressed", "aria states", "aria hidden", "aria-hidden", "aria current",
                   "aria disabled", "aria invalid", "aria required"),
                  ("[aria-expanded]", "[aria-selected]", "[aria-checked]", "[aria-pressed]"), ("4.1.2", "1.3.1")),
    PatternFamily("aria_compliance", "aria-roles",
                  ("aria role", "aria roles", "role attribute", "role attributes", "role value", "role validation",
                   "element role", "role compatibility", "semantic role"),
                  ("[role]",), ("4.1.2", "1.3.1")),
    PatternFamily("visual_accessibility", "focus-indicators",
                  ("focus indicator", "focus indicators", "focus visible", "focus ring", "focus outline"),
                  ("a", "button", "input", "select", "textarea"), ("2.4.7", "1.4.11")),
    PatternFamily("visual_accessibility", "color-contrast",
                  ("color contrast", "colour contrast", "contrast ratio", "text contrast", "background contrast",
                   "contrast compliance", "contrast"),
                  ("body", "p", "a", "button", "span"), ("1.4.3",)),
)

WCAG_PHRASES: Dict[str, str] = {
    "heading hierarchy": "1.3.1",
    "page structure": "1.3.1",
    "info and relationships": "1.3.1",
    "skip links": "2.4.1",
    "skip link": "2.4.1",
    "bypass blocks": "2.4.1",
    "form error": "3.3.1",
    "error identification": "3.3.1",
    "headings and labels": "2.4.6",
    "labels or instructions": "3.3.2",
    "name role value": "4.1.2",
    "non-text contrast": "1.4.11",
    "focus visible": "2.4.7",
}

_CRITERION = re.compile(r"(?<![\d.])([1-4]\.\d{1,2}\.\d{1,2})(?![\d.])")
_ARIA_ATTRIBUTE = re.compile(
    r"aria-(?:describedby|live|label|labelledby|expanded|selected|checked|hidden|pressed|current)|role\s*=",
    re.IGNORECASE,
)


# ---------------- helpers ----------------
def contrast_profile(text: str) -> Tuple[str, float, List[str]]:
    t = text.lower()
    if "7:1" in t or re.search(r"\baaa\b", t):
        return "color-contrast", 7.0, ["1.4.6"]
    if re.search(r"\b(?:interactive|control|controls|ui|component|components)\b", t):
        return "interactive-element-contrast", 3.0, ["1.4.3", "1.4.11"]
    return "color-contrast", 4.5, ["1.4.3"]


def determine_level(text: str, criterion: Optional[str] = None) -> str:
    t = text.lower()
    if re.search(r"\baaa\b", t) or "7:1" in t:
        return "AAA"
    if re.search(r"\baa\b", t):
        return "AA"
    if criterion in ("1.4.3", "1.4.11", "2.4.7"):
        return "AA"
    if criterion in WCAG_CRITERIA_INFO:
        return WCAG_CRITERIA_INFO[criterion][1]
    return "A"


def determine_validation_type(text: str) -> str:
    t = text.lower()
    if "manual" in t:
        return "manual"
    if "automated" in t or "axe" in t or "scan" in t:
        return "automated"
    return "hybrid"


def determine_aria_type(text: str) -> str:
    t = text.lower()
    if "describedby" in t or "description" in t:
        return "aria-descriptions"
    if "live" in t or "announce" in t:
        return "aria-live-regions"
    if any(s in t for s in ("expanded", "selected", "checked", "pressed", "hidden", "state")):
        return "aria-states"
    if "role" in t:
        return "aria-roles"
    return "aria-labels"


def determine_dom_type(text: str) -> Tuple[str, List[str]]:
    t = text.lower()
    if re.search(r"\b(?:alt|image|images|img)\b", t):
        return "image-alt", ["1.1.1"]
    if re.search(r"\b(?:label|labels|form|input)\b", t):
        return "form-labels", ["1.3.1", "3.3.2", "4.1.2"]
    if re.search(r"\b(?:heading|headings|h1|h2|h3)\b", t):
        return "heading-hierarchy", ["1.3.1", "2.4.6"]
    if re.search(r"\b(?:landmark|landmarks|main|nav|navigation)\b", t):
        return "landmarks", ["1.3.1", "2.4.1"]
    return "semantic-html", ["1.3.1", "4.1.2"]


def wcag_for_step(step: str) -> str:
    t = step.lower()
    explicit = _CRITERION.search(t)
    if explicit:
        return explicit.group(1)
    if "focus" in t and "order" in t:
        return "2.4.3"
    if "focus" in t and ("visible" in t or "indicator" in t):
        return "2.4.7"
    if re.search(r"\b(?:keyboard|tab|press)\b", t):
        return "2.1.1"
    if "contrast" in t or "color" in t:
        return "1.4.3"
    if re.search(r"\b(?:aria|name|role)\b", t):
        return "4.1.2"
    if re.search(r"\b(?:structure|heading|landmark)\b", t):
        return "1.3.1"
    if re.search(r"\b(?:alt|image)\b", t):
        return "1.1.1"
    return "2.1.1"


def _extract_elements(step: str) -> List[str]:
    found = re.findall(r"\b(button|link|input|image|img|heading|form|select|textarea|nav|main|dialog|modal)s?\b", step.lower())
    return list(dict.fromkeys(found))


def _guideline(criterion: str, text: str, approach: Optional[str] = None) -> AccessibilityRequirement:
    info = wcag_criterion_info(criterion)
    return AccessibilityRequirement(
        category="wcag_guidelines",
        type="success-criterion",
        description=f"WCAG {criterion} {info['title']}",
        wcag_criteria=[criterion],
        success_criteria=criterion,
        level=determine_level(text, criterion),
        validation_type=determine_validation_type(text),
        testing_approach=approach or TESTING_APPROACHES.get(criterion, "Validate with automated scan and manual review"),
    )


# ---------------- recognizers ----------------
def _recognize_families(text: str, analysis: Optional[WebsiteAnalysis]) -> List[AccessibilityRequirement]:
    t = text.lower()
    found: List[AccessibilityRequirement] = []
    for family in PATTERN_FAMILIES:
        hits = find_keywords(t, family.keywords)
        if not hits:
            continue
        req_type, wcag, ratio = family.type, list(family.wcag), None
        if family.type == "color-contrast":
            req_type, ratio, wcag = contrast_profile(t)
        elif family.type == "focus-indicators":
            ratio = 3.0
        elements = list(family.elements)
        if analysis is not None and family.category == "aria_compliance":
            labelled = [e.tag for e in analysis.interactive_elements if e.aria_label or e.role]
            elements = list(dict.fromkeys(elements + labelled))
        found.append(AccessibilityRequirement(
            category=family.category,
            type=req_type,
            description=f"{req_type.replace('-', ' ').capitalize()} check ({', '.join(hits)})",
            wcag_criteria=wcag,
            elements=elements,
            validation_rules=[f"Matched: {kw}" for kw in hits],
            contrast_ratio=ratio,
            level=determine_level(t, wcag[0]),
            testing_approach=TESTING_APPROACHES.get(wcag[0]),
        ))
    return found


def _recognize_wcag(text: str) -> List[AccessibilityRequirement]:
    t = text.lower()
    criteria: List[str] = [m.group(1) for m in _CRITERION.finditer(t)]
    for phrase, criterion in WCAG_PHRASES.items():
        if contains_any(t, (phrase,)):
            criteria.append(criterion)
    return [_guideline(c, t) for c in dict.fromkeys(criteria)]


def _recognize_steps(steps: List[str]) -> List[AccessibilityRequirement]:
    found: List[AccessibilityRequirement] = []
    for index, step in enumerate(steps, 1):
        s = step.lower()
        if _ARIA_ATTRIBUTE.search(step):
            found.append(AccessibilityRequirement(
                category="aria_compliance",
                type=determine_aria_type(s),
                description=step,
                wcag_criteria=["4.1.2", "1.3.1"],
                attributes=[m.group(0).rstrip("= ").lower() for m in _ARIA_ATTRIBUTE.finditer(step)],
                elements=_extract_elements(step),
            ))
        if re.search(r"press tab|tab key|keyboard navigation|\bfocus\b|tabindex|tab order", s):
            found.append(AccessibilityRequirement(
                category="keyboard_navigation",
                type="focus-order" if "focus" in s else "tab-sequence",
                description=step,
                wcag_criteria=["2.1.1", "2.4.3", "2.4.7"],
                scope="page",
                elements=_extract_elements(step),
            ))
        if re.search(r"press enter|press space|keyboard activation|\bactivate|\btrigger", s):
            found.append(AccessibilityRequirement(
                category="keyboard_navigation",
                type="keyboard-activation",
                description=step,
                wcag_criteria=["2.1.1"],
                scope="component",
                elements=_extract_elements(step),
            ))
        if re.search(r"\b(?:check|verify|validate|inspect|examine|ensure|alt|heading|label|landmark|semantic)\b", s):
            dom_type, wcag = determine_dom_type(s)
            found.append(AccessibilityRequirement(
                category="dom_inspection",
                type=dom_type,
                description=step,
                wcag_criteria=wcag,
                elements=_extract_elements(step),
                validation_rules=[step],
            ))
        if re.search(r"contrast|\bcolou?r\b|\bvisible\b|focus indicator|highlight|outline", s):
            if "focus" in s:
                req_type, ratio, wcag = "focus-indicators", 3.0, ["2.4.7", "1.4.11"]
            else:
                req_type, ratio, wcag = contrast_profile(s)
            found.append(AccessibilityRequirement(
                category="visual_accessibility",
                type=req_type,
                description=step,
                wcag_criteria=wcag,
                contrast_ratio=ratio,
            ))
        found.append(_guideline(wcag_for_step(s), s, approach=f"Execute step {index}: {step}"))
    return found


def _default_requirements() -> List[AccessibilityRequirement]:
    return [
        AccessibilityRequirement(
            category="aria_compliance",
            type="aria-labels",
            description="Interactive elements expose accessible names",
            wcag_criteria=["4.1.2", "1.3.1"],
            attributes=["aria-describedby", "aria-live", "aria-label", "aria-labelledby", "role"],
        ),
        AccessibilityRequirement(
            category="keyboard_navigation",
            type="tab-sequence",
            description="All interactive elements are reachable with Tab",
            wcag_criteria=["2.1.1", "2.4.3"],
            scope="page",
        ),
    ]


def build_axe_integration(text: str, requirements: AccessibilityRequirements) -> AxeCoreIntegration:
    t = (text or "").lower()
    if "wcag 2.2" in t or "wcag22" in t:
        rulesets = ["wcag22aa"]
    elif "wcag 2.1" in t or "wcag21" in t:
        rulesets = ["wcag21aa", "wcag21a"]
    else:
        rulesets = ["wcag21aa"]
    if "section 508" in t:
        rulesets.append("section508")

    tags: List[str] = []
    if requirements.keyboard_navigation or requirements.aria_compliance:
        tags += ["wcag2a", "wcag21a"]
    if requirements.visual_accessibility:
        tags += ["wcag2aa", "wcag21aa"]

    if "log only" in t or "report only" in t:
        handling = "log-only"
    elif re.search(r"\bwarn(?:ing)?\b", t):
        handling = "warn"
    else:
        handling = "fail-on-violations"
    return AxeCoreIntegration(
        rulesets=rulesets,
        tags=list(dict.fromkeys(tags)),
        violation_handling=handling,
        reporting_level="violations",
    )


def parse_instructions(text: str, website_analysis: Optional[WebsiteAnalysis] = None) -> AccessibilityRequirements:
    """Categorized requirements for the text; falls back to ARIA label and tab sequence checks."""
    text = text or ""
    items = _recognize_families(text, website_analysis) + _recognize_wcag(text)
    if is_accessibility_instruction(text):
        items += _recognize_steps(split_instruction_lines(text))
    if not items:
        logger.info("♿ No explicit accessibility requirements found, using defaults")
        items = _default_requirements()

    buckets: Dict[str, List[AccessibilityRequirement]] = {
        "dom_inspection": [], "keyboard_navigation": [], "aria_compliance": [],
        "visual_accessibility": [], "wcag_guidelines": [],
    }
    for item in items:
        buckets[item.category].append(item)

    requirements = AccessibilityRequirements(**buckets)
    requirements = requirements.model_copy(update={"axe_core_integration": build_axe_integration(text, requirements)})
    logger.debug(f"♿ requirements: { {k: len(v) for k, v in requirements.categories().items()} }")
    return requirements
