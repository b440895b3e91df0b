# generators/api_generator.py
from typing import Any, Dict, List, Optional

from core.models import ApiDetails, APITestCase, AuthenticationInfo, ExpectedResults, ParsedAPIInstruction, TestStep
from core.settings import Settings, get_settings
from core.specificity import is_specific
from emitters.api_emitter import (
    emit_auth_failure_script, emit_instruction_script, emit_performance_script, emit_schema_script,
    emit_success_script, emit_validation_error_script,
)
from logging_config import get_agent_logger, log_agent_complete, log_agent_start, log_agent_thinking
from parsers.api_instruction_parser import BODY_METHODS, parse_api_instruction
from utility.test_case_formatter import TestIdSequence, format_test_case

logger = get_agent_logger("API")

_EXPECTED_FOR_KIND = {
    "send": "Request is sent successfully",
    "compare": "Compared values match",
    "measure": "Response time is measured",
}


def expected_result_for_action(kind: str, target: str, detail: Dict[str, Any]) -> str:
    if kind == "store":
        return {"statusCode": "Status code is stored", "body": "Response body is stored"}.get(target, "Response data is stored")
    if kind == "read":
        return f"Header '{target}' is read from response" if detail.get("source") == "header" else f"Field '{target}' is read from response"
    if kind == "count":
        return "Object count is calculated"
    if kind == "verify":
        if "status" in detail:
            return f"Status code equals {detail['status']}"
        if "type" in detail:
            return f"Field '{target}' type is {detail['type']}"
        if "equals" in detail:
            return f"Verification passes: {target} = {detail['equals']}"
        if detail.get("exists"):
            return f"Field '{target}' exists"
        return "Verification passes"
    return _EXPECTED_FOR_KIND.get(kind, "Action completes successfully")


def _authentication(requires_auth: bool) -> AuthenticationInfo:
    if not requires_auth:
        return AuthenticationInfo()
    return AuthenticationInfo(type="Bearer", required=True, header_name="Authorization", token_format="Bearer <token>")


def _api_details(parsed: ParsedAPIInstruction, body: Optional[Dict] = None) -> ApiDetails:
    return ApiDetails(
        http_method=parsed.method,
        endpoint=parsed.endpoint,
        base_url=parsed.base_url,
        request_headers=dict(parsed.headers),
        request_body=body if body is not None else parsed.body,
    )


def _api_validation(parsed: ParsedAPIInstruction) -> List[str]:
    rules = [f"Status code is {parsed.expected_status}", "Response body is valid"]
    for assertion in parsed.field_assertions:
        if assertion.kind == "type":
            rules.append(f"Field '{assertion.field}' type is {assertion.expected}")
        elif assertion.kind == "equals":
            rules.append(f"Field '{assertion.field}' equals {assertion.expected}")
        else:
            rules.append(f"Field '{assertion.field}' exists")
    if parsed.count_expectation is not None:
        rules.append(f"Object count is greater than {parsed.count_expectation}")
    if parsed.response_time_limit is not None:
        rules.append(f"Response time < {parsed.response_time_limit}ms")
    return rules


def generate_instruction_case(parsed: ParsedAPIInstruction, ids: TestIdSequence) -> APITestCase:
    category = parsed.metadata.category
    log_agent_thinking("API", f"instruction-based: {[a.kind for a in parsed.actions]}")
    return format_test_case({
        "id": ids.next_id("API"),
        "title": parsed.metadata.title,
        "description": parsed.metadata.description,
        "category": category,
        "priority": "Critical" if category == "Smoke" else "High",
        "severity": "Medium" if category == "Performance" else "High",
        "preconditions": list(parsed.preconditions),
        "steps": [
            TestStep(step_number=a.step_number, action=a.detail.get("description") or a.original_text,
                     expected_result=expected_result_for_action(a.kind, a.target, a.detail))
            for a in parsed.actions
        ],
        "expected_result": f"API returns {parsed.expected_status} with valid response matching instruction",
        "validation_criteria": {"compliance": [], "behavior": _api_validation(parsed)},
        "automation_mapping": emit_instruction_script(parsed.metadata.title, parsed),
        "tags": ["api", "instruction-based", parsed.method.lower()],
        "api_details": _api_details(parsed),
        "authentication": _authentication(parsed.requires_auth),
        "expected_results": ExpectedResults(
            response_code=parsed.expected_status,
            response_schema={"type": "object", "properties": {}},
            response_time=parsed.response_time_limit or 1000,
        ),
    }, "API", model=APITestCase)


def generate_template_cases(parsed: ParsedAPIInstruction, settings: Settings, ids: TestIdSequence) -> List[APITestCase]:
    """Fixed suite per endpoint: success, validation error, auth failure (auth only), schema, performance."""
    method, url, endpoint = parsed.method, parsed.url, parsed.endpoint
    body = {"data": "example", "value": "test"} if method in BODY_METHODS else None
    headers = {"Content-Type": "application/json", "Authorization": f"Bearer {settings.default_api_token}"}
    success_status = 201 if method == "POST" else 200
    auth = _authentication(parsed.requires_auth)
    details = ApiDetails(http_method=method, endpoint=endpoint, base_url=parsed.base_url,
                         request_headers=headers, request_body=body)
    log_agent_thinking("API", f"template suite for {method} {endpoint} (auth={parsed.requires_auth})")

    def _case(title, category, priority, steps, expected_result, script, expected: ExpectedResults, behavior):
        return format_test_case({
            "id": ids.next_id("API"),
            "title": title,
            "description": f"{title} for {method} {endpoint}",
            "category": category,
            "priority": priority,
            "severity": "High" if priority in ("Critical", "High") else "Medium",
            "preconditions": list(parsed.preconditions),
            "steps": steps,
            "expected_result": expected_result,
            "validation_criteria": {"compliance": [], "behavior": behavior},
            "automation_mapping": script,
            "tags": ["api", "template-based", category.lower()],
            "api_details": details,
            "authentication": auth,
            "expected_results": expected,
        }, "API", model=APITestCase)

    send = TestStep(step_number=1, action=f"Send {method} request to {endpoint}", expected_result="Request is sent successfully")
    cases = [
        _case(
            f"{method} {endpoint} - Success Path", "Smoke", "Critical",
            [send, TestStep(step_number=2, action="Check response status",
                            expected_result=f"Status code is {success_status}")],
            f"API returns {success_status} with a valid body",
            emit_success_script(f"{method} {endpoint} - Success Path", url, method, headers, body, success_status),
            ExpectedResults(response_code=success_status, response_schema={"type": "object"}),
            [f"Status code is {success_status}", "Response body is valid JSON"],
        ),
        _case(
            f"{method} {endpoint} - Validation Error (400)", "Regression", "High",
            [TestStep(step_number=1, action=f"Send {method} request with invalid input",
                      expected_result="Request is rejected"),
             TestStep(step_number=2, action="Check response status", expected_result="Status code is 400")],
            "API rejects invalid input with 400",
            emit_validation_error_script(f"{method} {endpoint} - Validation Error (400)", url, method, headers),
            ExpectedResults(response_code=400),
            ["Status code is 400", "Error details are returned"],
        ),
    ]
    if parsed.requires_auth:
        cases.append(_case(
            f"{method} {endpoint} - Authentication Failure (401)", "Security", "Critical",
            [TestStep(step_number=1, action=f"Send {method} request without Authorization header",
                      expected_result="Request is rejected"),
             TestStep(step_number=2, action="Check response status", expected_result="Status code is 401")],
            "API rejects unauthenticated requests with 401",
            emit_auth_failure_script(f"{method} {endpoint} - Authentication Failure (401)", url, method, headers),
            ExpectedResults(response_code=401),
            ["Status code is 401", "No protected data is returned"],
        ))
    cases.append(_case(
        f"{method} {endpoint} - Schema Validation", "Regression", "High",
        [send, TestStep(step_number=2, action="Validate response content type and structure",
                        expected_result="Response matches the expected JSON schema")],
        "Response body matches the expected schema",
        emit_schema_script(f"{method} {endpoint} - Schema Validation", url, method, headers, body),
        ExpectedResults(response_code=success_status, response_schema={"type": "object", "properties": {}}),
        ["Content-Type is application/json", "Response body is an object"],
    ))
    cases.append(_case(
        f"{method} {endpoint} - Performance Test", "Performance", "Medium",
        [send, TestStep(step_number=2, action="Measure response time",
                        expected_result=f"Response time < {settings.api_response_time_ms}ms"),
         TestStep(step_number=3, action=f"Send {settings.api_concurrent_requests} concurrent requests",
                  expected_result="All concurrent requests succeed")],
        f"API responds within {settings.api_response_time_ms}ms under {settings.api_concurrent_requests} concurrent requests",
        emit_performance_script(f"{method} {endpoint} - Performance Test", url, method, headers, body,
                                settings.api_response_time_ms, settings.api_concurrent_requests),
        ExpectedResults(response_code=success_status, response_time=settings.api_response_time_ms),
        [f"Response time < {settings.api_response_time_ms}ms",
         f"{settings.api_concurrent_requests} concurrent requests succeed"],
    ))
    return cases


def generate_api_tests(
    url: str,
    prompt: str,
    ids: Optional[TestIdSequence] = None,
    settings: Optional[Settings] = None,
) -> List[APITestCase]:
    ids = ids or TestIdSequence()
    settings = settings or get_settings()
    log_agent_start("API", {"url": url, "prompt": prompt[:100]})
    parsed = parse_api_instruction(prompt, url, token=settings.default_api_token)
    if is_specific(prompt, "api"):
        cases = [generate_instruction_case(parsed, ids)]
    else:
        cases = generate_template_cases(parsed, settings, ids)
    log_agent_complete("API", {"count": len(cases), "ids": [c.id for c in cases]})
    return cases
