"""
Tests for security instruction parsing and security test generation
"""
import json

from emitters.script_utils import count_import_blocks
from generators.security_generator import generate_security_tests
from parsers.security_instruction_parser import (
    PAYLOADS, detect_method, expected_statuses, parse_security_instruction, primary_intent, select_payload,
)

URL = "https://example.com/api/login"


class TestSecurityParser:
    """Intent, method, payload and status expectations"""

    def test_injection_intent(self):
        intent, confidence = primary_intent("Try SQL injection on the search box")
        assert intent == "SEC_INJ"
        assert 0.6 < confidence <= 0.95

    def test_generic_intent(self):
        assert primary_intent("look around") == ("SEC_GENERIC", 0.5)

    def test_method_detection(self):
        assert detect_method("send a PUT request") == "PUT"
        assert detect_method("try the DELETE method") == "DELETE"
        assert detect_method("login with a bad password") == "POST"
        assert detect_method("open the profile page") == "GET"

    def test_payload_selection(self):
        assert select_payload("sql injection", ["SEC_INJ"]) == PAYLOADS["SQL"]
        assert select_payload("xss in comments", ["SEC_INJ"]) == PAYLOADS["XSS"]
        assert select_payload("nosql injection", ["SEC_INJ"]) == PAYLOADS["NOSQL"]
        assert select_payload("weak password", ["SEC_AUTH"]) is None

    def test_expected_statuses(self):
        assert expected_statuses("the login should fail") == [400, 401, 403, 422]
        assert expected_statuses("expect unauthorized") == [401, 403]
        assert expected_statuses("request should succeed") == [200, 201]
        assert expected_statuses("probe it") == [400, 401, 403]
        assert expected_statuses("probe it", "SEC_RATE") == [429]

    def test_steps(self):
        parsed = parse_security_instruction(
            "Login with SQL injection using an invalid token, store the response, it should be rejected", URL,
        )
        actions = [s.action for s in parsed.steps]
        assert actions == ["SET_HEADER", "SET_BODY", "SEND_REQUEST", "STORE_RESPONSE", "VERIFY_STATUS"]
        assert parsed.method == "POST"
        assert parsed.headers["Authorization"] == "Bearer invalid_token"
        assert json.loads(parsed.body)["username"] == PAYLOADS["SQL"]
        assert parsed.expected_statuses == [400, 401, 403, 422]

    def test_get_without_payload_has_no_body(self):
        parsed = parse_security_instruction("Check security headers on the home page", URL)
        assert parsed.body is None
        assert parsed.primary_intent == "SEC_HEADER"
        assert parsed.expected_statuses == [200]


class TestSecurityGenerator:
    """Exactly one security case"""

    def test_single_case(self):
        cases = generate_security_tests(URL, "Try XSS injection in the comment field, it should be rejected")
        assert len(cases) == 1
        case = cases[0]
        assert case.id == "SEC-001"
        assert case.test_type == "Security"
        assert case.category == "Security"
        assert case.priority == "High" and case.severity == "High"
        assert case.preconditions == [f"URL {URL} is accessible", "Security testing environment is configured"]
        assert case.validation_criteria.compliance == ["Security Intent: SEC_INJ"]
        assert case.quality_metrics.stability == 95
        assert case.quality_metrics.maintainability == 90

    def test_script_mirrors_steps(self):
        script = generate_security_tests(URL, "Try XSS injection in the comment field, it should be rejected")[0].automation_mapping
        assert count_import_blocks(script) == 1
        assert "async ({ request }) =>" in script
        assert script.index("(SET_BODY)") < script.index("(SEND_REQUEST)") < script.index("(VERIFY_STATUS)")
        assert "expect([400, 401, 403, 422]).toContain(response.status());" in script
        assert "not.toContain('<script>alert(1)</script>')" in script

    def test_rate_limit_script_repeats_requests(self):
        script = generate_security_tests(URL, "Check rate limit with multiple requests")[0].automation_mapping
        assert "for (let i = 0; i < 20; i++)" in script
        assert "expect([429]).toContain(response.status());" in script

    def test_header_checks(self):
        script = generate_security_tests(URL, "Check security headers on the home page")[0].automation_mapping
        assert "securityHeaders['content-security-policy']" in script
