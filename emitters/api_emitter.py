# emitters/api_emitter.py
import json
import re
from typing import Callable, Dict, List, Optional, Set

from core.models import APIAction, ParsedAPIInstruction
from emitters.script_utils import VariableNamer, comment_text, js_string, wrap_test
from logging_config import get_agent_logger

logger = get_agent_logger("EMITTER")


def _identifier(name: str, suffix: str = "") -> str:
    parts = [p for p in re.split(r"[^A-Za-z0-9]+", name or "") if p]
    if not parts:
        return "value" + suffix
    ident = parts[0][0].lower() + parts[0][1:] + "".join(p[:1].upper() + p[1:] for p in parts[1:])
    if ident[0].isdigit():
        ident = "f" + ident
    return ident + suffix


def _js_object(data: Optional[Dict]) -> str:
    return json.dumps(data or {}, ensure_ascii=False).replace("</", "<\\/")


def request_call(method: str, url_expr: str, headers: Dict[str, str], body: Optional[Dict]) -> str:
    options = [f"headers: {_js_object(headers)}"]
    if body is not None:
        options.append(f"data: {_js_object(body)}")
    return f"await request.{method.lower()}({url_expr}, {{ {', '.join(options)} }})"


class _ApiEmitContext:
    def __init__(self, parsed: ParsedAPIInstruction):
        self.parsed = parsed
        self.names = VariableNamer()
        self.defined: Set[str] = set()
        self.timed = any(a.kind == "measure" for a in parsed.actions)

    def ensure_body(self) -> List[str]:
        if "responseBody" in self.defined:
            return []
        self.defined.add("responseBody")
        return [
            "const responseBody = await response.json();",
            "const responseItem = Array.isArray(responseBody) ? responseBody[0] : responseBody;",
        ]

    def status_expr(self) -> str:
        return "statusCode" if "statusCode" in self.defined else "response.status()"


def _send(action: APIAction, ctx: _ApiEmitContext) -> List[str]:
    parsed = ctx.parsed
    lines = ["const startTime = Date.now();"] if ctx.timed else []
    lines.append(f"const response = {request_call(parsed.method, js_string(parsed.url), parsed.headers, parsed.body)};")
    if ctx.timed:
        lines.append("const responseTime = Date.now() - startTime;")
    ctx.defined.add("response")
    return lines


def _store(action: APIAction, ctx: _ApiEmitContext) -> List[str]:
    if action.target == "statusCode":
        if "statusCode" in ctx.defined:
            return []
        ctx.defined.add("statusCode")
        return ["const statusCode = response.status();", "console.log(`Status code: ${statusCode}`);"]
    if action.target == "headers":
        if "responseHeaders" in ctx.defined:
            return []
        ctx.defined.add("responseHeaders")
        return ["const responseHeaders = response.headers();"]
    lines = ctx.ensure_body()
    if action.detail.get("as_list"):
        lines.append("expect(Array.isArray(responseBody)).toBe(true);")
    return lines


def _read(action: APIAction, ctx: _ApiEmitContext) -> List[str]:
    if action.detail.get("source") == "header":
        var = ctx.names.next(_identifier(action.target, "Header"))
        return [
            f"const {var} = response.headers()[{js_string(action.target.lower())}];",
            f"console.log({js_string(action.target + ': ')} + {var});",
            f"expect({var}).toBeDefined();",
        ]
    lines = ctx.ensure_body()
    if action.detail.get("each"):
        var = ctx.names.next(_identifier(action.target, "Values"))
        return lines + [
            f"const {var} = (Array.isArray(responseBody) ? responseBody : [responseBody]).map((item) => item[{js_string(action.target)}]);",
            f"expect({var}.every((value) => value !== undefined)).toBe(true);",
        ]
    var = ctx.names.next(_identifier(action.target, "Value"))
    return lines + [
        f"const {var} = responseItem[{js_string(action.target)}];",
        f"expect({var}).toBeDefined();",
    ]


def _compare(action: APIAction, ctx: _ApiEmitContext) -> List[str]:
    right = action.detail.get("right", "")
    if not action.target:
        return [f"// {comment_text(action.original_text)}"]
    return ctx.ensure_body() + [
        f"expect(String(responseItem[{js_string(action.target)}])).toBe("
        f"String(responseItem[{js_string(right)}] ?? {js_string(right)}));",
    ]


def _count(action: APIAction, ctx: _ApiEmitContext) -> List[str]:
    var = ctx.names.next("itemCount")
    lines = ctx.ensure_body() + [
        f"const {var} = Array.isArray(responseBody) ? responseBody.length : Object.keys(responseBody).length;",
        f"console.log(`Counted ${{{var}}} {comment_text(action.target)}`);",
    ]
    if action.detail.get("more_than") is not None:
        lines.append(f"expect({var}).toBeGreaterThan({int(action.detail['more_than'])});")
    return lines


def _verify(action: APIAction, ctx: _ApiEmitContext) -> List[str]:
    detail = action.detail
    if "status" in detail:
        return [f"expect({ctx.status_expr()}).toBe({int(detail['status'])});"]
    if "more_than" in detail:
        var = ctx.names.next("itemCount")
        return ctx.ensure_body() + [
            f"const {var} = Array.isArray(responseBody) ? responseBody.length : Object.keys(responseBody).length;",
            f"expect({var}).toBeGreaterThan({int(detail['more_than'])});",
        ]
    field = js_string(action.target)
    if "type" in detail:
        if detail["type"] == "array":
            return ctx.ensure_body() + [f"expect(Array.isArray(responseItem[{field}])).toBe(true);"]
        return ctx.ensure_body() + [f"expect(typeof responseItem[{field}]).toBe({js_string(detail['type'])});"]
    if "equals" in detail:
        return ctx.ensure_body() + [f"expect(String(responseItem[{field}])).toBe({js_string(detail['equals'])});"]
    if detail.get("exists"):
        return ctx.ensure_body() + [f"expect(responseItem).toHaveProperty({field});"]
    return ["expect(response.ok()).toBeTruthy();"]


def _measure(action: APIAction, ctx: _ApiEmitContext) -> List[str]:
    limit = int(action.detail.get("limit") or ctx.parsed.response_time_limit or 1000)
    return [
        "console.log(`Response time: ${responseTime}ms`);",
        f"expect(responseTime).toBeLessThan({limit});",
    ]


API_ACTION_HANDLERS: Dict[str, Callable[[APIAction, _ApiEmitContext], List[str]]] = {
    "send": _send,
    "store": _store,
    "read": _read,
    "compare": _compare,
    "count": _count,
    "verify": _verify,
    "measure": _measure,
}


def emit_instruction_script(name: str, parsed: ParsedAPIInstruction) -> str:
    """One API test whose steps appear in the same order as the instruction's verbs."""
    ctx = _ApiEmitContext(parsed)
    body: List[str] = []
    for action in parsed.actions:
        description = comment_text(action.detail.get("description") or action.original_text)
        body.append(f"// Step {action.step_number} ({action.kind.upper()}): {description}")
        body.extend(API_ACTION_HANDLERS[action.kind](action, ctx))
        body.append("")
    logger.debug(f"📝 emitted API script with {len(parsed.actions)} step(s)")
    return wrap_test(name, body, fixture="request")


# ---------------- template suite scripts ----------------
def emit_success_script(name: str, url: str, method: str, headers: Dict[str, str], body: Optional[Dict],
                        expected_status: int) -> str:
    return wrap_test(name, [
        f"const response = {request_call(method, js_string(url), headers, body)};",
        f"expect(response.status()).toBe({expected_status});",
        "const responseBody = await response.json();",
        "expect(responseBody).toBeTruthy();",
    ], fixture="request")


def emit_validation_error_script(name: str, url: str, method: str, headers: Dict[str, str]) -> str:
    invalid = {"invalid": True} if method.upper() in ("POST", "PUT", "PATCH") else None
    target = url if invalid is not None else url + ("&" if "?" in url else "?") + "invalid=%%%"
    return wrap_test(name, [
        f"const response = {request_call(method, js_string(target), headers, invalid)};",
        "expect(response.status()).toBe(400);",
        "const errorBody = await response.json().catch(() => ({}));",
        "console.log('Validation error response:', errorBody);",
    ], fixture="request")


def emit_auth_failure_script(name: str, url: str, method: str, headers: Dict[str, str]) -> str:
    anonymous = {k: v for k, v in headers.items() if k.lower() != "authorization"}
    return wrap_test(name, [
        "// Request deliberately omits the Authorization header",
        f"const response = {request_call(method, js_string(url), anonymous, None)};",
        "expect(response.status()).toBe(401);",
    ], fixture="request")


def emit_schema_script(name: str, url: str, method: str, headers: Dict[str, str], body: Optional[Dict]) -> str:
    return wrap_test(name, [
        f"const response = {request_call(method, js_string(url), headers, body)};",
        "expect(response.ok()).toBeTruthy();",
        "expect(response.headers()['content-type']).toContain('application/json');",
        "const responseBody = await response.json();",
        "const responseItem = Array.isArray(responseBody) ? responseBody[0] : responseBody;",
        "expect(typeof responseItem).toBe('object');",
        "expect(responseItem).not.toBeNull();",
    ], fixture="request")


def emit_performance_script(name: str, url: str, method: str, headers: Dict[str, str], body: Optional[Dict],
                            response_time_ms: int, concurrent_requests: int) -> str:
    return wrap_test(name, [
        "const startTime = Date.now();",
        f"const response = {request_call(method, js_string(url), headers, body)};",
        "const responseTime = Date.now() - startTime;",
        "expect(response.ok()).toBeTruthy();",
        f"expect(responseTime).toBeLessThan({response_time_ms});",
        "",
        f"// {concurrent_requests} concurrent requests",
        f"const responses = await Promise.all(Array.from({{ length: {concurrent_requests} }}, () =>",
        f"  request.{method.lower()}({js_string(url)}, {{ headers: {_js_object(headers)} }})));",
        "for (const concurrentResponse of responses) {",
        "  expect(concurrentResponse.ok()).toBeTruthy();",
        "}",
        f"expect(Date.now() - startTime).toBeLessThan({response_time_ms * concurrent_requests});",
    ], fixture="request")
