# generators/functional_generator.py
import re
from typing import List, Optional

from core.models import ActionType, ParsedAction, TestCase, TestStep, WebsiteAnalysis
from core.specificity import is_specific
from emitters.functional_emitter import (
    describe_action, emit_action_script, emit_links_script, emit_page_load_script,
    emit_user_flow_script, emit_validation_script, expected_behavior,
)
from emitters.script_utils import script_title
from logging_config import get_agent_logger, log_agent_complete, log_agent_start, log_agent_thinking
from parsers.action_extractor import extract_actions
from utility.test_case_formatter import TestIdSequence, format_test_case
from utility.validation_scenarios import get_validation_scenarios, validation_preconditions

logger = get_agent_logger("FUNCTIONAL")

_LOGIN = re.compile(r"\b(?:login|log in|sign in|signin|credentials|username|password)\b", re.IGNORECASE)
_FORM = re.compile(r"\b(?:form|submit|register|sign up|signup|checkout|contact|fill)\b", re.IGNORECASE)
_NAVIGATION = re.compile(r"\b(?:navigate|navigation|menu|link|links|nav|go to)\b", re.IGNORECASE)
_INTERACTION = re.compile(r"\b(?:click|button|hover|select|dropdown|modal|dialog|toggle)\b", re.IGNORECASE)


def detect_flow(prompt: str, analysis: Optional[WebsiteAnalysis] = None) -> str:
    text = prompt or ""
    if _LOGIN.search(text):
        return "Authentication"
    if _FORM.search(text) or (analysis is not None and analysis.forms and not text.strip()):
        return "Form Submission"
    if _NAVIGATION.search(text):
        return "Navigation"
    if _INTERACTION.search(text):
        return "Interaction"
    return "General"


def functional_preconditions(flow: str) -> List[str]:
    preconditions = ["Page is accessible", "Browser supports JavaScript"]
    if flow == "Authentication":
        preconditions.append("User has valid credentials")
    if flow in ("Authentication", "Form Submission"):
        preconditions.append("All required form fields are visible")
    return preconditions


def _priority(flow: str, action_count: int) -> str:
    if flow == "Authentication":
        return "Critical"
    if action_count > 5:
        return "High"
    if action_count > 2:
        return "Medium"
    return "Low"


def _expected_result(flow: str, actions: List[ParsedAction]) -> str:
    if flow == "Authentication":
        username = next((a.value for a in actions if a.type == ActionType.TYPE and a.target in ("username", "email")), None)
        if username:
            return f'User successfully logs in with "{username}" and reaches the authenticated area'
        return "User successfully logs in and reaches the authenticated area"
    if flow == "Form Submission":
        return "Form is submitted successfully with provided data"
    return "All specified actions are completed successfully"


def _behavior_rules(flow: str, actions: List[ParsedAction]) -> List[str]:
    rules: List[str] = []
    if flow == "Authentication":
        rules.append("User is redirected after successful login")
        rules.append("User-specific elements or logout options are present")
    if flow == "Form Submission":
        rules.append("Success message or confirmation is visible")
    for action in actions:
        if action.type == ActionType.VERIFY:
            rules.append(f"{action.target} is visible and correct")
    return rules


def generate_instruction_case(prompt: str, url: str, ids: TestIdSequence) -> TestCase:
    actions = extract_actions(prompt, url)
    flow = detect_flow(prompt)
    title = f"{flow} Test: {script_title(prompt, 60)}"
    log_agent_thinking("FUNCTIONAL", f"instruction-based: {len(actions)} action(s), flow={flow}")
    return format_test_case({
        "id": ids.next_id("Functional"),
        "title": title,
        "description": f"Instruction-based functional test for {url}: {prompt.strip()}",
        "category": flow,
        "priority": _priority(flow, len(actions) - 1),
        "severity": "High" if flow == "Authentication" else "Medium",
        "preconditions": functional_preconditions(flow),
        "steps": [
            TestStep(step_number=a.step_number, action=describe_action(a), expected_result=expected_behavior(a), data=a.value)
            for a in actions
        ],
        "expected_result": _expected_result(flow, actions),
        "validation_criteria": {"compliance": [], "behavior": _behavior_rules(flow, actions)},
        "automation_mapping": emit_action_script(title, actions),
        "tags": ["functional", "instruction-based"],
    }, "Functional")


def generate_input_validation_cases(prompt: str, url: str, ids: TestIdSequence) -> List[TestCase]:
    fields: List[str] = []
    for action in extract_actions(prompt, url):
        if action.type == ActionType.TYPE and action.target not in fields:
            fields.append(action.target)

    cases: List[TestCase] = []
    for field in fields:
        scenarios = get_validation_scenarios(field)
        title = f"Input Validation: {field}"
        steps = [TestStep(step_number=1, action=f"Navigate to {url}", expected_result="Page loads successfully", data=url)]
        for s in scenarios:
            steps.append(TestStep(
                step_number=len(steps) + 1,
                action=f"Test {s['scenario']}",
                expected_result=(f"Error message is displayed for invalid {field}" if s["should_fail"]
                                 else f"{field} accepts valid input"),
                data=s["value"],
            ))
        cases.append(format_test_case({
            "id": ids.next_id("Input Validation"),
            "title": title,
            "description": f"Validation probes for the {field} field on {url}",
            "category": "Validation",
            "priority": "High",
            "preconditions": validation_preconditions(field),
            "steps": steps,
            "expected_result": f"{field} field validates input correctly and displays appropriate error messages",
            "validation_criteria": {
                "compliance": [],
                "behavior": ["Appropriate error messages are shown for invalid inputs",
                             "Error messages appear near the field or in an alert"],
            },
            "automation_mapping": emit_validation_script(title, url, field, scenarios),
            "tags": ["functional", "input-validation"],
        }, "Input Validation"))
    return cases


def generate_template_cases(prompt: str, url: str, analysis: Optional[WebsiteAnalysis], ids: TestIdSequence) -> List[TestCase]:
    flow = detect_flow(prompt, analysis)
    log_agent_thinking("FUNCTIONAL", f"template-based suite, flow={flow}")
    cases: List[TestCase] = []

    title = "Page Load and Core Elements"
    cases.append(format_test_case({
        "id": ids.next_id("Functional"),
        "title": title,
        "description": f"Verify {url} loads and exposes interactive elements",
        "category": "Smoke",
        "priority": "High",
        "severity": "High",
        "preconditions": functional_preconditions("General"),
        "steps": [
            TestStep(step_number=1, action=f"Navigate to {url}", expected_result="Page loads successfully", data=url),
            TestStep(step_number=2, action="Check the page title", expected_result="Page has a non-empty title"),
            TestStep(step_number=3, action="Count interactive elements", expected_result="At least one interactive element is present"),
        ],
        "expected_result": "Page loads with a title and interactive content",
        "validation_criteria": {"behavior": ["Body is visible", "Title is not empty"]},
        "automation_mapping": emit_page_load_script(title, url),
        "tags": ["functional", "template-based"],
    }, "Functional"))

    title = f"Primary User Flow: {flow}"
    flow_steps = {
        "Authentication": ["Enter username", "Enter password", "Submit the login form", "Verify the authenticated page"],
        "Form Submission": ["Fill every text input", "Submit the form", "Verify the confirmation"],
        "Navigation": ["Click the first navigation link", "Verify the destination page loads"],
    }.get(flow, ["Click the first visible button", "Verify the page responds"])
    steps = [TestStep(step_number=1, action=f"Navigate to {url}", expected_result="Page loads successfully", data=url)]
    steps += [TestStep(step_number=i, action=a, expected_result="Action completes successfully") for i, a in enumerate(flow_steps, 2)]
    cases.append(format_test_case({
        "id": ids.next_id("Functional"),
        "title": title,
        "description": f"Exercise the main {flow.lower()} flow on {url}",
        "category": flow,
        "priority": _priority(flow, len(flow_steps)),
        "preconditions": functional_preconditions(flow),
        "steps": steps,
        "expected_result": _expected_result(flow, []),
        "validation_criteria": {"behavior": _behavior_rules(flow, [])},
        "automation_mapping": emit_user_flow_script(title, url, flow),
        "tags": ["functional", "template-based"],
    }, "Functional"))

    title = "Navigation and Links"
    cases.append(format_test_case({
        "id": ids.next_id("Functional"),
        "title": title,
        "description": f"Verify links on {url} carry destinations",
        "category": "Regression",
        "priority": "Medium",
        "preconditions": functional_preconditions("General"),
        "steps": [
            TestStep(step_number=1, action=f"Navigate to {url}", expected_result="Page loads successfully", data=url),
            TestStep(step_number=2, action="Collect anchor elements", expected_result="At least one link is present"),
            TestStep(step_number=3, action="Inspect the first five links", expected_result="Every inspected link has an href"),
        ],
        "expected_result": "Page links are present and navigable",
        "validation_criteria": {"behavior": ["Links expose href attributes"]},
        "automation_mapping": emit_links_script(title, url),
        "tags": ["functional", "template-based"],
    }, "Functional"))
    return cases


def generate_functional_tests(
    url: str,
    prompt: str,
    analysis: Optional[WebsiteAnalysis] = None,
    include_input_validation: bool = False,
    ids: Optional[TestIdSequence] = None,
) -> List[TestCase]:
    ids = ids or TestIdSequence()
    log_agent_start("FUNCTIONAL", {"url": url, "prompt": prompt[:100]})
    if is_specific(prompt, "functional"):
        cases = [generate_instruction_case(prompt, url, ids)]
        if include_input_validation:
            cases.extend(generate_input_validation_cases(prompt, url, ids))
    else:
        cases = generate_template_cases(prompt, url, analysis, ids)
    log_agent_complete("FUNCTIONAL", {"count": len(cases), "ids": [c.id for c in cases]})
    return cases
