# emitters/security_emitter.py
import json
from typing import List

from core.models import SecurityInstruction
from emitters.script_utils import comment_text, js_string, wrap_test
from parsers.security_instruction_parser import SECURITY_HEADERS


def _intent_checks(parsed: SecurityInstruction) -> List[str]:
    intent = parsed.primary_intent
    if intent == "SEC_INJ":
        lines = [
            "// Injection payload must not leak database errors or be reflected unescaped",
            "expect(responseText.toLowerCase()).not.toMatch(/sql syntax|sqlstate|odbc|mysql_|ora-\\d{5}/);",
        ]
        if parsed.payload:
            lines.append(f"expect(responseText).not.toContain({js_string(parsed.payload)});")
        return lines
    if intent == "SEC_DATA":
        return [
            "// Sensitive values must not appear in the response",
            "expect(responseText).not.toMatch(/\"(?:password|ssn|creditCard|secret)\"\\s*:/i);",
        ]
    if intent == "SEC_HEADER":
        lines = ["const securityHeaders = response.headers();"]
        lines += [f"expect(securityHeaders[{js_string(h)}]).toBeDefined();" for h in SECURITY_HEADERS]
        return lines
    if intent == "SEC_AUTHZ":
        return ["expect(responseText).not.toMatch(/\"role\"\\s*:\\s*\"admin\"/i);"]
    return []


def emit_security_script(name: str, parsed: SecurityInstruction) -> str:
    """Mirror the security steps in order; the request is repeated for rate-limit checks."""
    body: List[str] = [
        f"const url = {js_string(parsed.url)};",
        "const headers = {};",
        "let payload;",
        "",
    ]
    for step in parsed.steps:
        body.append(f"// Step {step.step_number} ({step.action}): {comment_text(step.expected_result)}")
        if step.action == "SET_HEADER":
            body.append(f"headers[{js_string(step.target)}] = {js_string(step.value)};")
        elif step.action == "SET_BODY":
            body.append(f"payload = {json.dumps(json.loads(step.value), ensure_ascii=False)};")
        elif step.action == "SEND_REQUEST":
            call = f"request.fetch(url, {{ method: {js_string(parsed.method)}, headers, data: payload }})"
            if parsed.primary_intent == "SEC_RATE":
                body += [
                    "const burst = [];",
                    "for (let i = 0; i < 20; i++) {",
                    f"  burst.push(await {call});",
                    "}",
                    "const response = burst.find((r) => r.status() === 429) || burst[burst.length - 1];",
                ]
            else:
                body.append(f"const response = await {call};")
            body.append("const responseText = await response.text();")
        elif step.action == "STORE_RESPONSE":
            body += ["const statusCode = response.status();", "console.log(`Stored status ${statusCode}`);"]
        elif step.action == "VERIFY_STATUS":
            body.append(f"expect({json.dumps(parsed.expected_statuses)}).toContain(response.status());")
        body.append("")
    body += _intent_checks(parsed)
    return wrap_test(name, body, fixture="request")
