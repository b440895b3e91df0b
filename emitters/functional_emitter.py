# emitters/functional_emitter.py
import re
from typing import Callable, Dict, List, Sequence

from core.models import ActionType, ParsedAction
from emitters.script_utils import (
    VariableNamer, build_element_target, comment_text, escape_regex, js_string,
    locator_expression, wrap_test,
)
from logging_config import get_agent_logger

logger = get_agent_logger("EMITTER")

_OUTCOME_TAIL = re.compile(
    r"\s+(?:is|are)\s+(?:displayed|visible|shown|present|loaded|correct)\s*$|\s+(?:appears?|loads?)\s*$",
    re.IGNORECASE,
)
_TRAILING_TERM = re.compile(r"(?:contains?|includes?|has|is|equals?|matches)\s+(?P<term>\S+)\s*$", re.IGNORECASE)


class _EmitContext:
    def __init__(self):
        self.names = VariableNamer()


def _navigate(action: ParsedAction, ctx: _EmitContext) -> List[str]:
    if not action.target:
        return ["// No target URL supplied; relying on the configured baseURL", "await page.goto('/');"]
    lines = [f"await page.goto({js_string(action.target)}, {{ waitUntil: 'domcontentloaded' }});"]
    if action.step_number == 1:
        lines.append("await expect(page.locator('body')).toBeVisible();")
    return lines


def _type(action: ParsedAction, ctx: _EmitContext) -> List[str]:
    var = ctx.names.next("typeTarget")
    return [
        f"const {var} = {locator_expression(build_element_target(action))};",
        f"await {var}.fill({js_string(action.value or '')});",
    ]


def _select(action: ParsedAction, ctx: _EmitContext) -> List[str]:
    var = ctx.names.next("selectTarget")
    return [
        f"const {var} = {locator_expression(build_element_target(action))};",
        f"await {var}.selectOption({js_string(action.value or '')});",
    ]


def _check(action: ParsedAction, ctx: _EmitContext) -> List[str]:
    var = ctx.names.next("checkTarget")
    return [
        f"const {var} = {locator_expression(build_element_target(action))};",
        f"await {var}.check();",
        f"await expect({var}).toBeChecked();",
    ]


def _click(action: ParsedAction, ctx: _EmitContext) -> List[str]:
    var = ctx.names.next("clickTarget")
    return [
        f"const {var} = {locator_expression(build_element_target(action))};",
        f"await {var}.click();",
    ]


def _verify(action: ParsedAction, ctx: _EmitContext) -> List[str]:
    target = action.target or ""
    lowered = target.lower()
    expected = action.value
    if not expected:
        term = _TRAILING_TERM.search(target)
        expected = term.group("term") if term else None

    if re.search(r"\burl\b", lowered) and expected:
        return [f"await expect(page).toHaveURL(new RegExp({js_string(escape_regex(expected))}));"]
    if re.search(r"\btitle\b", lowered) and expected:
        return [f"await expect(page).toHaveTitle(new RegExp({js_string(escape_regex(expected))}, 'i'));"]

    var = ctx.names.next("verifyTarget")
    text = action.value or _OUTCOME_TAIL.sub("", target).strip() or target
    return [
        f"const {var} = page.getByText({js_string(text)}, {{ exact: false }}).first();",
        f"await expect({var}).toBeVisible();",
    ]


def _hover(action: ParsedAction, ctx: _EmitContext) -> List[str]:
    var = ctx.names.next("hoverTarget")
    return [
        f"const {var} = {locator_expression(build_element_target(action))};",
        f"await {var}.hover();",
    ]


def _scroll(action: ParsedAction, ctx: _EmitContext) -> List[str]:
    where = (action.target or "").lower()
    if where in ("bottom", "end", "bottom of the page", "bottom of page", "page bottom"):
        return ["await page.evaluate(() => window.scrollTo(0, document.body.scrollHeight));"]
    if where in ("top", "top of the page", "top of page", "page top"):
        return ["await page.evaluate(() => window.scrollTo(0, 0));"]
    var = ctx.names.next("scrollTarget")
    return [
        f"const {var} = {locator_expression(build_element_target(action))};",
        f"await {var}.scrollIntoViewIfNeeded();",
    ]


ACTION_HANDLERS: Dict[ActionType, Callable[[ParsedAction, _EmitContext], List[str]]] = {
    ActionType.NAVIGATE: _navigate,
    ActionType.TYPE: _type,
    ActionType.SELECT: _select,
    ActionType.CHECK: _check,
    ActionType.CLICK: _click,
    ActionType.VERIFY: _verify,
    ActionType.HOVER: _hover,
    ActionType.SCROLL: _scroll,
}

_unhandled = set(ActionType) - set(ACTION_HANDLERS)
if _unhandled:
    raise RuntimeError(f"No emitter for action types: {sorted(a.value for a in _unhandled)}")


def describe_action(action: ParsedAction) -> str:
    t = action.type
    if t == ActionType.NAVIGATE:
        return f"Navigate to {action.target}"
    if t == ActionType.TYPE:
        return f'Enter {action.target} "{action.value or ""}"'
    if t == ActionType.SELECT:
        return f'Select "{action.value or ""}" from {action.target}'
    if t == ActionType.CHECK:
        return f"Check {action.target}"
    if t == ActionType.CLICK:
        return f"Click {action.target}"
    if t == ActionType.VERIFY:
        return f"Verify {action.target}"
    if t == ActionType.HOVER:
        return f"Hover over {action.target}"
    return f"Scroll to {action.target}"


def expected_behavior(action: ParsedAction) -> str:
    t = action.type
    if t == ActionType.NAVIGATE:
        return "Page loads successfully"
    if t == ActionType.TYPE:
        return f"{action.target} field accepts the value"
    if t == ActionType.SELECT:
        return f"{action.target} dropdown accepts the selection"
    if t == ActionType.CHECK:
        return f"{action.target} checkbox is checked"
    if t == ActionType.CLICK:
        return f"{action.target} responds to click action"
    if t == ActionType.VERIFY:
        return f"{action.target} is as expected"
    return "Action completes successfully"


def emit_action_script(name: str, actions: Sequence[ParsedAction]) -> str:
    """One self-contained Playwright test mirroring the actions in order."""
    ctx = _EmitContext()
    body: List[str] = []
    for action in actions:
        description = comment_text(describe_action(action))
        body.append(f"// Step {action.step_number}: {description}")
        body.append(f"console.log({js_string(f'Step {action.step_number}: {description}')});")
        body.extend(ACTION_HANDLERS[action.type](action, ctx))
        body.append("")
    body.append("console.log('Test completed successfully');")
    logger.debug(f"📝 emitted functional script with {len(actions)} step(s)")
    return wrap_test(name, body)


# ---------------- canned functional scripts ----------------
def emit_page_load_script(name: str, url: str) -> str:
    return wrap_test(name, [
        f"await page.goto({js_string(url)}, {{ waitUntil: 'domcontentloaded' }});",
        "await expect(page.locator('body')).toBeVisible();",
        "await expect(page).toHaveTitle(/.+/);",
        "",
        "const interactiveCount = await page.locator('a, button, input, select, textarea').count();",
        "console.log(`Interactive elements found: ${interactiveCount}`);",
        "expect(interactiveCount).toBeGreaterThan(0);",
    ])


def emit_user_flow_script(name: str, url: str, flow: str) -> str:
    body = [f"await page.goto({js_string(url)}, {{ waitUntil: 'domcontentloaded' }});", ""]
    if flow == "Authentication":
        body += [
            "const usernameField = page.locator('#username, [name=\"username\"], [data-test=\"username\"], input[type=\"email\"]').first();",
            "const passwordField = page.locator('#password, [name=\"password\"], [data-test=\"password\"], input[type=\"password\"]').first();",
            "await usernameField.fill('testuser');",
            "await passwordField.fill('password123');",
            "await page.locator('button[type=\"submit\"], input[type=\"submit\"], button:has-text(\"Login\"), button:has-text(\"Sign in\")').first().click();",
            "await page.waitForLoadState('domcontentloaded');",
            "await expect(page.locator('body')).toBeVisible();",
        ]
    elif flow == "Form Submission":
        body += [
            "const textInputs = page.locator('form input[type=\"text\"], form input:not([type]), form textarea');",
            "const inputCount = await textInputs.count();",
            "for (let i = 0; i < inputCount; i++) {",
            "  await textInputs.nth(i).fill(`Sample value ${i + 1}`);",
            "}",
            "await page.locator('form button[type=\"submit\"], form input[type=\"submit\"]').first().click();",
            "await page.waitForLoadState('domcontentloaded');",
            "await expect(page.locator('body')).toBeVisible();",
        ]
    elif flow == "Navigation":
        body += [
            "const startUrl = page.url();",
            "const firstLink = page.locator('nav a[href], header a[href]').first();",
            "await firstLink.click();",
            "await page.waitForLoadState('domcontentloaded');",
            "console.log(`Navigated from ${startUrl} to ${page.url()}`);",
            "await expect(page.locator('body')).toBeVisible();",
        ]
    else:
        body += [
            "const firstButton = page.locator('button:visible, [role=\"button\"]:visible').first();",
            "await expect(firstButton).toBeVisible();",
            "await firstButton.click();",
            "await expect(page.locator('body')).toBeVisible();",
        ]
    return wrap_test(name, body)


def emit_links_script(name: str, url: str) -> str:
    return wrap_test(name, [
        f"await page.goto({js_string(url)}, {{ waitUntil: 'domcontentloaded' }});",
        "const links = page.locator('a[href]');",
        "const linkCount = await links.count();",
        "expect(linkCount).toBeGreaterThan(0);",
        "",
        "for (let i = 0; i < Math.min(linkCount, 5); i++) {",
        "  const href = await links.nth(i).getAttribute('href');",
        "  expect(href).toBeTruthy();",
        "}",
    ])


def emit_validation_script(name: str, url: str, field: str, scenarios: Sequence[Dict]) -> str:
    """Input validation walk-through for one field."""
    action = ParsedAction(step_number=1, type=ActionType.TYPE, target=field, original_line=f"enter {field}")
    body = [
        f"await page.goto({js_string(url)}, {{ waitUntil: 'domcontentloaded' }});",
        f"const fieldUnderTest = {locator_expression(build_element_target(action))};",
        "await expect(fieldUnderTest).toBeVisible();",
        "",
    ]
    for index, scenario in enumerate(scenarios, 1):
        label = comment_text(scenario["scenario"])
        body += [
            f"// Scenario {index}: {label}",
            f"await fieldUnderTest.fill({js_string(scenario['value'])});",
            "await fieldUnderTest.blur();",
            f"const valid{index} = await fieldUnderTest.evaluate((el) => (el.checkValidity ? el.checkValidity() : true));",
            f"console.log({js_string(label + ': ')} + valid{index});",
        ]
        if not scenario["should_fail"]:
            body.append(f"expect(valid{index}).toBe(true);")
        body.append("")
    return wrap_test(name, body)
