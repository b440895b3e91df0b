# generators/accessibility_generator.py
import re
from typing import Dict, List, Optional

from core.models import AccessibilityRequirements, AccessibilityTestCase, QualityMetrics, TestStep, WebsiteAnalysis
from core.specificity import is_accessibility_instruction
from emitters.accessibility_emitter import (
    emit_instruction_script, emit_template_script, expected_result_for_step,
)
from emitters.script_utils import comment_text, script_title
from logging_config import get_agent_logger, log_agent_complete, log_agent_start, log_agent_thinking
from parsers.accessibility_parser import parse_instructions
from parsers.action_extractor import split_instruction_lines
from templates.accessibility_templates import (
    ACCESSIBILITY_TEMPLATES, CATEGORY_FEATURES, generate_feedback, required_features, select_template,
)
from utility.test_case_formatter import TestIdSequence, format_test_case

logger = get_agent_logger("A11Y")

_CATEGORY_TEMPLATE = {
    "dom_inspection": "domInspection",
    "keyboard_navigation": "keyboardNavigation",
    "aria_compliance": "ariaCompliance",
    "visual_accessibility": "visualAccessibility",
}

_CATEGORY_STEP = {
    "dom_inspection": ("Inspect DOM structure and semantic HTML", "Images, labels, headings and landmarks are present and valid"),
    "keyboard_navigation": ("Navigate the page with the keyboard", "Every interactive element is reachable in logical order"),
    "aria_compliance": ("Validate ARIA attributes", "ARIA names, states, roles and live regions are valid"),
    "visual_accessibility": ("Check visual accessibility", "Contrast and focus indicators meet WCAG thresholds"),
    "wcag_guidelines": ("Validate WCAG success criteria", "Listed success criteria are satisfied"),
}

_PRECONDITIONS: Dict[str, List[str]] = {
    "keyboard-navigation": ["Page is accessible and loaded", "Browser supports keyboard navigation",
                            "Focusable elements are present"],
    "aria-role": ["Page is accessible and loaded", "Elements with ARIA roles are rendered"],
    "aria-compliance": ["Page is accessible and loaded", "ARIA attributes are rendered",
                        "Screen reader is available for testing"],
    "visual-accessibility": ["Page is accessible and loaded", "Page styles are fully applied"],
    "general-accessibility": ["Page is accessible and loaded", "Axe-Core is integrated for automated scanning"],
}

_PRINCIPLES: Dict[str, List[str]] = {
    "keyboard-navigation": ["Operable"],
    "aria-role": ["Robust"],
    "aria-compliance": ["Perceivable", "Understandable", "Robust"],
    "visual-accessibility": ["Perceivable"],
    "general-accessibility": ["Perceivable", "Operable", "Understandable", "Robust"],
}

_ASSISTIVE: Dict[str, List[str]] = {
    "keyboard-navigation": ["Keyboard"],
    "aria-role": ["NVDA", "JAWS", "VoiceOver"],
    "aria-compliance": ["NVDA", "JAWS", "VoiceOver"],
    "visual-accessibility": ["Keyboard"],
    "general-accessibility": ["Keyboard", "NVDA", "JAWS"],
}


def detect_instruction_type(text: str) -> str:
    t = (text or "").lower()
    if re.search(r"\brole\b", t):
        return "aria-role"
    if "aria-describedby" in t or "aria-live" in t or ("form" in t and "error" in t):
        return "aria-compliance"
    if re.search(r"\b(?:tab|keyboard)\b", t):
        return "keyboard-navigation"
    if "contrast" in t or re.search(r"\bcolou?r\b", t):
        return "visual-accessibility"
    if re.search(r"\b(?:aria|label|labels)\b", t) or "aria-" in t:
        return "aria-compliance"
    return "general-accessibility"


def accessibility_tags(requirements: AccessibilityRequirements) -> List[str]:
    return [CATEGORY_FEATURES[name] for name, reqs in requirements.categories().items() if reqs]


def _criteria(requirements: AccessibilityRequirements) -> List[str]:
    found: List[str] = []
    for req in requirements.all_requirements():
        found.extend(req.wcag_criteria)
    return list(dict.fromkeys(found))


def generate_instruction_case(
    prompt: str, url: str, requirements: AccessibilityRequirements, ids: TestIdSequence
) -> AccessibilityTestCase:
    steps = split_instruction_lines(prompt) or [prompt.strip()]
    kind = detect_instruction_type(prompt)
    criteria = _criteria(requirements)
    selection = select_template(requirements, prompt)
    title = f"Accessibility Test: {script_title(prompt, 60)}"
    log_agent_thinking("A11Y", f"instruction-based: {len(steps)} step(s), type={kind}")

    test_steps = [TestStep(step_number=1, action=f"Navigate to {url}", expected_result="Page loads successfully", data=url)]
    for step in steps:
        test_steps.append(TestStep(step_number=len(test_steps) + 1, action=comment_text(step),
                                   expected_result=expected_result_for_step(step)))
    test_steps.append(TestStep(step_number=len(test_steps) + 1, action="Run axe-core accessibility scan",
                               expected_result="No accessibility violations are reported"))

    return format_test_case({
        "id": ids.next_id("Accessibility"),
        "title": title,
        "description": f'Instruction-based accessibility test of {url}: "{prompt.strip()}"',
        "category": "Regression",
        "priority": "High",
        "severity": "High",
        "preconditions": _PRECONDITIONS[kind],
        "steps": test_steps,
        "expected_result": "Every instructed step meets its accessibility expectation and the axe-core scan reports no violations",
        "validation_criteria": {
            "compliance": [f"WCAG {c}" for c in criteria],
            "behavior": [s.expected_result for s in test_steps[1:]],
        },
        "quality_metrics": QualityMetrics(confidence=95, stability=90, maintainability=95),
        "automation_mapping": emit_instruction_script(title, url, steps, selection.axe_core_config),
        "tags": ["accessibility", "instruction-based", kind],
        "wcag_principle": _PRINCIPLES[kind],
        "wcag_success_criteria": criteria,
        "assistive_technology": _ASSISTIVE[kind],
        "accessibility_tags": accessibility_tags(requirements),
        "keyboard_access": kind == "keyboard-navigation" or bool(requirements.keyboard_navigation),
    }, "Accessibility", model=AccessibilityTestCase)


def _template_case(
    title: str, url: str, template_key: str, requirements: AccessibilityRequirements, axe_config, ids: TestIdSequence
) -> AccessibilityTestCase:
    template = ACCESSIBILITY_TEMPLATES[template_key]
    steps = [TestStep(step_number=1, action=f"Navigate to {url}", expected_result="Page loads successfully", data=url)]
    for name, reqs in requirements.categories().items():
        if reqs:
            action, expected = _CATEGORY_STEP[name]
            steps.append(TestStep(step_number=len(steps) + 1, action=action, expected_result=expected))
    steps.append(TestStep(step_number=len(steps) + 1, action="Run axe-core accessibility scan",
                          expected_result="No accessibility violations are reported"))
    criteria = list(dict.fromkeys(template.wcag_criteria + _criteria(requirements)))
    return format_test_case({
        "id": ids.next_id("Accessibility"),
        "title": title,
        "description": f"{template.description} for {url}",
        "category": "Regression",
        "priority": "High",
        "severity": "High",
        "preconditions": ["Page is accessible and loaded", "Axe-Core is integrated for automated scanning"],
        "steps": steps,
        "expected_result": "Page meets WCAG 2.1 AA requirements with no axe-core violations",
        "validation_criteria": {
            "compliance": [f"WCAG {c}" for c in criteria],
            "behavior": [s.expected_result for s in steps[1:]],
        },
        "automation_mapping": emit_template_script(title, url, template, requirements, axe_config),
        "tags": ["accessibility", "template-based", template_key],
        "wcag_principle": ["Perceivable", "Operable", "Understandable", "Robust"],
        "wcag_success_criteria": criteria,
        "assistive_technology": ["Keyboard", "NVDA", "JAWS"],
        "accessibility_tags": accessibility_tags(requirements),
        "keyboard_access": bool(requirements.keyboard_navigation),
    }, "Accessibility", model=AccessibilityTestCase)


def _only(requirements: AccessibilityRequirements, category: str) -> AccessibilityRequirements:
    empty = {name: [] for name in requirements.categories() if name != category}
    return requirements.model_copy(update=empty)


def generate_template_cases(
    prompt: str, url: str, requirements: AccessibilityRequirements, ids: TestIdSequence
) -> List[AccessibilityTestCase]:
    selection = select_template(requirements, prompt)
    template = selection.selected_template
    logger.info(generate_feedback(template, required_features(requirements)))

    cases = [_template_case(template.name, url, template.key, requirements, selection.axe_core_config, ids)]
    if template.key == "comprehensive":
        for category, key in _CATEGORY_TEMPLATE.items():
            if getattr(requirements, category):
                title = ACCESSIBILITY_TEMPLATES[key].name
                cases.append(_template_case(title, url, key, _only(requirements, category), selection.axe_core_config, ids))
    return cases


def generate_accessibility_tests(
    url: str,
    prompt: str,
    analysis: Optional[WebsiteAnalysis] = None,
    ids: Optional[TestIdSequence] = None,
) -> List[AccessibilityTestCase]:
    ids = ids or TestIdSequence()
    log_agent_start("A11Y", {"url": url, "prompt": prompt[:100]})
    requirements = parse_instructions(prompt, analysis)
    if is_accessibility_instruction(prompt):
        cases = [generate_instruction_case(prompt, url, requirements, ids)]
    else:
        cases = generate_template_cases(prompt, url, requirements, ids)
    log_agent_complete("A11Y", {"count": len(cases), "ids": [c.id for c in cases]})
    return cases
