# emitters/accessibility_emitter.py
import re
from typing import Callable, Dict, List, Sequence

from core.models import AccessibilityRequirement, AccessibilityRequirements, AccessibilityTemplate, AxeCoreConfig
from emitters.script_utils import (
    AXE_IMPORT, PLAYWRIGHT_IMPORT, VariableNamer, comment_text, escape_js, js_string, wrap_test,
)
from logging_config import get_agent_logger
from parsers.accessibility_parser import WCAG_CRITERIA_INFO
from templates.accessibility_templates import generate_axe_core_code

logger = get_agent_logger("EMITTER")

_SLOT = re.compile(r"\{\{([A-Z_]+)\}\}")

# ---------------- category blocks (template scripts) ----------------
_DOM_BLOCKS: Dict[str, List[str]] = {
    "image-alt": [
        "const imageReport = await DOMInspectionUtils.imageAltReport(page);",
        "expect(imageReport.filter((image) => !image.hasAlt && !image.decorative)).toHaveLength(0);",
    ],
    "form-labels": [
        "expect(await DOMInspectionUtils.unlabeledInputs(page)).toBe(0);",
    ],
    "heading-hierarchy": [
        "const domHeadingLevels = await page.locator('h1, h2, h3, h4, h5, h6').evaluateAll((els) => els.map((el) => parseInt(el.tagName.substring(1))));",
        "expect(domHeadingLevels.filter((level) => level === 1).length).toBeGreaterThanOrEqual(1);",
        "for (let i = 1; i < domHeadingLevels.length; i++) {",
        "  expect(domHeadingLevels[i] - domHeadingLevels[i - 1]).toBeLessThanOrEqual(1);",
        "}",
    ],
    "landmarks": [
        "expect(await page.locator('main, [role=\"main\"]').count()).toBeGreaterThan(0);",
        "expect(await page.locator('nav, [role=\"navigation\"]').count()).toBeGreaterThanOrEqual(0);",
    ],
    "semantic-html": [
        "const semanticCount = await page.locator('main, nav, header, footer, article, section, aside').count();",
        "expect(semanticCount).toBeGreaterThan(0);",
    ],
}

_KEYBOARD_BLOCKS: Dict[str, List[str]] = {
    "tab-sequence": [
        "const tabStops = await KeyboardUtils.tabSequence(page, 10);",
        "expect(tabStops.filter((stop) => stop.tag && stop.tag !== 'body').length).toBeGreaterThan(0);",
    ],
    "focus-order": [
        "const orderStops = await KeyboardUtils.tabSequence(page, 5);",
        "console.log('Focus order:', orderStops.map((stop) => stop.tag + (stop.id ? '#' + stop.id : '')).join(' -> '));",
        "expect(orderStops).toHaveLength(5);",
    ],
    "keyboard-activation": [
        "const activationTarget = page.locator('button:visible, [role=\"button\"]:visible').first();",
        "if (await activationTarget.count()) {",
        "  await activationTarget.focus();",
        "  await expect(activationTarget).toBeFocused();",
        "}",
    ],
    "focus-management": [
        "await page.keyboard.press('Tab');",
        "await page.keyboard.press('Escape');",
        "const afterEscape = await KeyboardUtils.focusedElement(page);",
        "expect(afterEscape.tag).toBeTruthy();",
    ],
}

_ARIA_BLOCKS: Dict[str, List[str]] = {
    "aria-labels": [
        "expect(await ARIAUtils.elementsWithoutName(page)).toBe(0);",
    ],
    "aria-descriptions": [
        "const describedBy = await page.locator('[aria-describedby]').evaluateAll((els) => els.map((el) => el.getAttribute('aria-describedby')));",
        "for (const ids of describedBy) {",
        "  for (const id of ids.trim().split(/\\s+/)) {",
        "    expect(await page.locator(`[id=\"${id}\"]`).count()).toBeGreaterThan(0);",
        "  }",
        "}",
    ],
    "aria-live-regions": [
        "const liveValues = await page.locator('[aria-live]').evaluateAll((els) => els.map((el) => el.getAttribute('aria-live')));",
        "for (const value of liveValues) {",
        "  expect(['off', 'polite', 'assertive']).toContain(value);",
        "}",
    ],
    "aria-states": [
        "expect(await ARIAUtils.invalidStates(page)).toBe(0);",
    ],
    "aria-roles": [
        "const roleValues = await page.locator('[role]').evaluateAll((els) => els.map((el) => el.getAttribute('role')));",
        "for (const role of roleValues) {",
        "  expect(role.trim().length).toBeGreaterThan(0);",
        "}",
    ],
}


def _contrast_block(req: AccessibilityRequirement) -> List[str]:
    ratio = req.contrast_ratio or 4.5
    return [
        f"// Contrast target {ratio:g}:1; ratios are enforced by the axe color-contrast rule",
        "const bodyColors = await VisualUtils.colorInfo(page, 'body');",
        "expect(bodyColors).not.toBeNull();",
        "console.log('Body colors:', bodyColors);",
    ]


_VISUAL_BLOCKS: Dict[str, Callable[[AccessibilityRequirement], List[str]]] = {
    "color-contrast": _contrast_block,
    "interactive-element-contrast": _contrast_block,
    "focus-indicators": lambda req: [
        "const focusTargets = await page.locator('a[href]:visible, button:visible, input:visible').all();",
        "for (const target of focusTargets.slice(0, 5)) {",
        "  expect(await VisualUtils.focusIndicator(target)).toBe(true);",
        "}",
    ],
}

_WCAG_BLOCKS: Dict[str, List[str]] = {
    "1.3.1": [
        "const landmarkCounts = await WCAGUtils.landmarkCounts(page);",
        "expect(landmarkCounts.main).toBeGreaterThan(0);",
    ],
    "2.4.1": [
        "const skipLinks = await page.locator('a[href^=\"#\"]').filter({ hasText: /skip|jump/i }).count();",
        "expect(skipLinks + (await page.locator('main, [role=\"main\"]').count())).toBeGreaterThan(0);",
    ],
    "2.4.6": [
        "const wcagHeadingLevels = await WCAGUtils.headingLevels(page);",
        "expect(wcagHeadingLevels.length).toBeGreaterThan(0);",
    ],
    "3.3.2": [
        "const unlabeled = await page.locator('input:not([type=\"hidden\"]):not([aria-label]):not([aria-labelledby]):not([id])').count();",
        "expect(unlabeled).toBe(0);",
    ],
}


def _unique_by_type(reqs: Sequence[AccessibilityRequirement]) -> List[AccessibilityRequirement]:
    seen: Dict[str, AccessibilityRequirement] = {}
    for req in reqs:
        seen.setdefault(req.type, req)
    return list(seen.values())


def _lookup_blocks(title: str, reqs: Sequence[AccessibilityRequirement], table: Dict[str, List[str]]) -> str:
    lines = [f"// {title}"]
    for req in _unique_by_type(reqs):
        if req.type in table:
            lines += [f"// {req.type} (WCAG {', '.join(req.wcag_criteria)})"] + table[req.type]
    return "\n".join(lines) if len(lines) > 1 else ""


def dom_inspection_code(reqs: Sequence[AccessibilityRequirement]) -> str:
    return _lookup_blocks("DOM inspection", reqs, _DOM_BLOCKS)


def keyboard_navigation_code(reqs: Sequence[AccessibilityRequirement]) -> str:
    return _lookup_blocks("Keyboard navigation", reqs, _KEYBOARD_BLOCKS)


def aria_compliance_code(reqs: Sequence[AccessibilityRequirement]) -> str:
    return _lookup_blocks("ARIA compliance", reqs, _ARIA_BLOCKS)


def visual_accessibility_code(reqs: Sequence[AccessibilityRequirement]) -> str:
    lines = ["// Visual accessibility"]
    for req in _unique_by_type(reqs):
        handler = _VISUAL_BLOCKS.get(req.type)
        if handler:
            lines += handler(req)
    return "\n".join(lines) if len(lines) > 1 else ""


def wcag_guidelines_code(reqs: Sequence[AccessibilityRequirement]) -> str:
    lines = ["// WCAG success criteria"]
    criteria: List[str] = []
    for req in reqs:
        criteria.extend(req.wcag_criteria)
    for criterion in dict.fromkeys(criteria):
        title = WCAG_CRITERIA_INFO.get(criterion, ("Unknown Criteria", "A"))[0]
        lines.append(f"// WCAG {criterion} {title}")
        lines += _WCAG_BLOCKS.get(criterion, ["// covered by the axe-core scan below"])
    return "\n".join(lines) if len(lines) > 1 else ""


def render_template(template: AccessibilityTemplate, values: Dict[str, str]) -> str:
    """Fill slots. A slot alone on its line takes a code block indented to the slot; inline slots take JS-escaped text."""
    out: List[str] = []
    for line in template.code_template.split("\n"):
        slot = _SLOT.fullmatch(line.strip())
        if slot:
            indent = line[: len(line) - len(line.lstrip())]
            block = values.get(slot.group(1), "")
            out.extend(f"{indent}{b}" if b.strip() else "" for b in block.split("\n") if block)
            continue
        out.append(_SLOT.sub(lambda m: escape_js(values.get(m.group(1), "")), line))
    return re.sub(r"\n{3,}", "\n\n", "\n".join(out))


def emit_template_script(
    name: str,
    url: str,
    template: AccessibilityTemplate,
    requirements: AccessibilityRequirements,
    axe_config: AxeCoreConfig,
) -> str:
    rendered = render_template(template, {
        "TEST_NAME": name,
        "URL": url,
        "SETUP_CODE": template.setup_code,
        "DOM_INSPECTION_CODE": dom_inspection_code(requirements.dom_inspection),
        "KEYBOARD_NAVIGATION_CODE": keyboard_navigation_code(requirements.keyboard_navigation),
        "ARIA_COMPLIANCE_CODE": aria_compliance_code(requirements.aria_compliance),
        "VISUAL_ACCESSIBILITY_CODE": visual_accessibility_code(requirements.visual_accessibility),
        "WCAG_GUIDELINES_CODE": wcag_guidelines_code(requirements.wcag_guidelines),
        "AXE_CORE_INTEGRATION_CODE": generate_axe_core_code(axe_config),
    })
    logger.debug(f"📝 rendered accessibility template {template.key}")
    return f"{PLAYWRIGHT_IMPORT}\n{AXE_IMPORT}\n\n{rendered.strip()}\n"


# ---------------- instruction steps ----------------
_TIMES = {"once": 1, "twice": 2, "three times": 3, "four times": 4, "five times": 5}


def classify_step(step: str) -> str:
    s = step.lower()
    if re.search(r"shift\s*\+?\s*tab", s):
        return "shift-tab"
    if re.search(r"\bpress(?:es|ing)?\s+(?:the\s+)?tab\b|\btab\s+(?:key|once|twice|\d+\s+times)", s):
        return "tab"
    if re.search(r"\bpress(?:es|ing)?\s+(?:the\s+)?(?:enter|space|escape|esc)\b", s):
        return "key"
    if "aria-describedby" in s or "aria describedby" in s:
        return "aria-describedby"
    if "aria-live" in s or "aria live" in s or "live region" in s:
        return "aria-live"
    if re.search(r"\brole\b", s):
        return "aria-role"
    if "aria-label" in s or "aria label" in s or "accessible name" in s:
        return "aria-label"
    if "focus" in s and re.search(r"\b(?:visible|indicator|outline|ring|highlight)", s):
        return "focus-indicator"
    if "focus" in s:
        return "focus"
    if "contrast" in s or re.search(r"\bcolou?r\b", s):
        return "contrast"
    if re.search(r"\b(?:alt|image|images)\b", s):
        return "image-alt"
    if re.search(r"\bheadings?\b", s):
        return "heading"
    if re.search(r"\b(?:label|labels)\b", s):
        return "form-label"
    if re.search(r"\b(?:navigate|go to|open|visit)\b", s):
        return "navigate"
    return "generic"


def expected_result_for_step(step: str) -> str:
    kind = classify_step(step)
    return {
        "tab": "Focus moves to the next interactive element in logical order",
        "shift-tab": "Focus moves to the previous interactive element",
        "key": "Focused element responds to the keyboard activation",
        "aria-describedby": "Described-by references resolve to existing elements",
        "aria-live": "Live region has a valid politeness setting",
        "aria-role": "Elements expose valid ARIA roles",
        "aria-label": "Interactive elements have accessible names",
        "focus-indicator": "Focused element shows a visible focus indicator",
        "focus": "Focus lands on the expected element",
        "contrast": "Text meets the minimum contrast ratio",
        "image-alt": "Images have alternative text",
        "heading": "Headings follow a logical hierarchy",
        "form-label": "Form inputs have associated labels",
        "navigate": "Page loads successfully",
    }.get(kind, "Step completes without accessibility issues")


def _press_count(step: str) -> int:
    s = step.lower()
    for phrase, n in _TIMES.items():
        if phrase in s:
            return n
    m = re.search(r"(\d+)\s+times", s)
    return max(1, min(int(m.group(1)), 50)) if m else 1


def _step_code(step: str, names: VariableNamer) -> List[str]:
    kind = classify_step(step)
    if kind == "tab":
        count = _press_count(step)
        var = names.next("focused")
        press = ["await page.keyboard.press('Tab');"] if count == 1 else [
            f"for (let i = 0; i < {count}; i++) {{",
            "  await page.keyboard.press('Tab');",
            "}",
        ]
        return press + [
            f"const {var} = await page.evaluate(() => document.activeElement?.tagName.toLowerCase());",
            f"console.log('Focused element:', {var});",
            f"expect({var}).not.toBe('body');",
        ]
    if kind == "shift-tab":
        var = names.next("focused")
        return [
            "await page.keyboard.press('Shift+Tab');",
            f"const {var} = await page.evaluate(() => document.activeElement?.tagName.toLowerCase());",
            f"expect({var}).toBeTruthy();",
        ]
    if kind == "key":
        key = re.search(r"\b(enter|space|escape|esc)\b", step.lower()).group(1)
        return [f"await page.keyboard.press({js_string({'esc': 'Escape', 'escape': 'Escape', 'space': 'Space'}.get(key, 'Enter'))});"]
    if kind == "aria-describedby":
        var = names.next("describedBy")
        return [
            f"const {var} = await page.locator('[aria-describedby]').evaluateAll((els) => els.map((el) => el.getAttribute('aria-describedby')));",
            f"for (const ids of {var}) {{",
            "  for (const id of ids.trim().split(/\\s+/)) {",
            "    expect(await page.locator(`[id=\"${id}\"]`).count()).toBeGreaterThan(0);",
            "  }",
            "}",
        ]
    if kind == "aria-live":
        var = names.next("liveValues")
        return [
            f"const {var} = await page.locator('[aria-live]').evaluateAll((els) => els.map((el) => el.getAttribute('aria-live')));",
            f"for (const value of {var}) {{",
            "  expect(['off', 'polite', 'assertive']).toContain(value);",
            "}",
        ]
    if kind == "aria-role":
        var = names.next("roles")
        return [
            f"const {var} = await page.locator('[role]').evaluateAll((els) => els.map((el) => el.getAttribute('role')));",
            f"for (const role of {var}) {{",
            "  expect(role.trim().length).toBeGreaterThan(0);",
            "}",
        ]
    if kind == "aria-label":
        var = names.next("unnamed")
        return [
            f"const {var} = await page.locator('button, a[href], [role=\"button\"]').evaluateAll((els) =>",
            "  els.filter((el) => !el.getAttribute('aria-label') && !el.getAttribute('aria-labelledby') && !el.textContent.trim()).length);",
            f"expect({var}).toBe(0);",
        ]
    if kind == "focus-indicator":
        var = names.next("focusStyle")
        return [
            f"const {var} = await page.evaluate(() => {{",
            "  const el = document.activeElement;",
            "  const styles = el ? window.getComputedStyle(el) : null;",
            "  return styles ? { outline: styles.outlineStyle, shadow: styles.boxShadow } : null;",
            "});",
            f"expect({var} && ({var}.outline !== 'none' || {var}.shadow !== 'none')).toBeTruthy();",
        ]
    if kind == "focus":
        var = names.next("focused")
        return [
            f"const {var} = await page.evaluate(() => document.activeElement?.tagName.toLowerCase());",
            f"expect({var}).toBeTruthy();",
        ]
    if kind == "contrast":
        var = names.next("colors")
        return [
            f"const {var} = await page.evaluate(() => {{",
            "  const styles = window.getComputedStyle(document.body);",
            "  return { color: styles.color, background: styles.backgroundColor };",
            "});",
            f"console.log('Body colors:', {var});",
            "// Contrast ratios are enforced by the axe color-contrast rule",
        ]
    if kind == "image-alt":
        var = names.next("imagesWithoutAlt")
        return [
            f"const {var} = await page.locator('img:not([alt])').count();",
            f"expect({var}).toBe(0);",
        ]
    if kind == "heading":
        var = names.next("h1Count")
        return [
            f"const {var} = await page.locator('h1').count();",
            f"expect({var}).toBeGreaterThanOrEqual(1);",
        ]
    if kind == "form-label":
        var = names.next("unlabeled")
        return [
            f"const {var} = await page.locator('input:not([type=\"hidden\"]):not([aria-label]):not([aria-labelledby]):not([id])').count();",
            f"expect({var}).toBe(0);",
        ]
    if kind == "navigate":
        return ["await expect(page.locator('body')).toBeVisible();"]
    return [f"console.log({js_string('Manual check: ' + comment_text(step))});"]


def emit_instruction_script(name: str, url: str, steps: Sequence[str], axe_config: AxeCoreConfig) -> str:
    """One test mirroring the instruction steps in order, always ending with an axe scan."""
    names = VariableNamer()
    body = [
        f"await page.goto({js_string(url)});",
        "await page.waitForLoadState('networkidle');",
        "",
    ]
    for index, step in enumerate(steps, 1):
        body.append(f"// Step {index}: {comment_text(step)}")
        body.extend(_step_code(step, names))
        body.append("")
    body.append(generate_axe_core_code(axe_config))
    return wrap_test(name, body, imports=(PLAYWRIGHT_IMPORT, AXE_IMPORT))
