# parsers/api_instruction_parser.py
"""
API instruction parser.

Reads one free-text API instruction ("Send a GET request to ..., store the
status code, verify it equals 200") into a ParsedAPIInstruction: method,
URL split into base and endpoint, auth requirement, assertions and the
ordered list of verbs the emitted test has to mirror.
"""
import json
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

from core.keyword_tables import contains_any
from core.models import APIAction, APITestMetadata, FieldAssertion, ParsedAPIInstruction
from logging_config import get_agent_logger

logger = get_agent_logger("API")

AUTH_KEYWORDS = (
    "with authentication", "with token", "bearer token", "authenticated",
    "auth token", "authorization", "with auth",
)

BODY_METHODS = ("POST", "PUT", "PATCH")

# checked in this order, first hit wins
VERB_METHODS: Tuple[Tuple[str, str], ...] = (
    (r"\b(?:create|add)\b", "POST"),
    (r"\b(?:update|replace)\b", "PUT"),
    (r"\b(?:modify|change)\b", "PATCH"),
    (r"\b(?:delete|remove)\b", "DELETE"),
)

_EXPLICIT_METHOD = re.compile(r"\bsend(?:s|ing)?\s+(?:a\s+|an\s+|the\s+)?(get|post|put|patch|delete)\b", re.IGNORECASE)
_HTTP_URL = re.compile(r"https?://[^\s\"'<>]+", re.IGNORECASE)
_QUOTED_DOMAIN = re.compile(r"[\"']([a-z0-9.-]+\.[a-z]{2,}/[^\"']*)[\"']", re.IGNORECASE)
_JSON_BODY = re.compile(r"\{.*\}", re.DOTALL)

_STATUS_EXPECTATIONS = (
    re.compile(r"status(?:\s+code)?\s+(?:equals|is|should\s+be|must\s+be|of|=|==)\s*(\d{3})\b", re.IGNORECASE),
    re.compile(r"expected\s+output.*?status\s+code.*?(\d{3})\b", re.IGNORECASE | re.DOTALL),
    re.compile(r"\breturns?\s+(?:a\s+)?(\d{3})\b", re.IGNORECASE),
)
_TYPE_ASSERTION = re.compile(r"[\"']?(\w+)[\"']?\s+(?:value\s+|field\s+)?type\s+is\s+(?:an?\s+)?(\w+)", re.IGNORECASE)
_VALUE_ASSERTION = re.compile(r"[\"']?(\w+)[\"']?\s+(?:value|field)\s+(?:equals|is)\s+[\"']?([^\"'\n,;]+?)[\"']?\s*(?=$|[\n,;]|\.\s)", re.IGNORECASE)
_EXISTS_ASSERTION = re.compile(r"[\"']?(\w+)[\"']?\s+(?:value\s+|field\s+)?exists\b", re.IGNORECASE)
_TYPE_WORD = re.compile(r"^an?\s+(number|string|boolean|object|array)$", re.IGNORECASE)
_MORE_THAN = re.compile(r"more\s+than\s+(\d+)", re.IGNORECASE)
_RESPONSE_TIME = (
    re.compile(r"response\s+time.*?(\d+)\s*(?:ms|milliseconds)\b", re.IGNORECASE),
    re.compile(r"less\s+than\s+(\d+)\s*(?:ms|milliseconds)\b", re.IGNORECASE),
    re.compile(r"within\s+(\d+)\s*(?:ms|milliseconds)\b", re.IGNORECASE),
)
_HEADER_SET = re.compile(r"\bwith\s+header\s+[\"']?([\w-]+)[\"']?\s*(?::|=|as|set\s+to)\s*[\"']?([^\"',;\n]+?)[\"']?\s*(?=$|[,;\n])", re.IGNORECASE)

_ACTION_VERBS = r"(?:store|save|read|extract|compare|count|verify|check|expect|assert|ensure|validate|measure)"
_LINE_SPLIT = re.compile(
    rf"\n|;|(?<=[a-z0-9\"')])\.\s+(?=[A-Z])|,\s*(?:and\s+)?(?:then\s+)?(?={_ACTION_VERBS}\b)"
    rf"|\s+(?:and\s+)?then\s+(?={_ACTION_VERBS}\b)|\s+and\s+(?={_ACTION_VERBS}\b)|(?:^|(?<=\s))\d{{1,2}}[.)]\s+(?=[a-z])",
    re.IGNORECASE,
)


# ---------------- request shape ----------------
def detect_method(text: str) -> str:
    """Explicit "send a X" phrase, then verb mapping, then GET."""
    t = text or ""
    explicit = _EXPLICIT_METHOD.search(t)
    if explicit:
        return explicit.group(1).upper()
    for pattern, method in VERB_METHODS:
        if re.search(pattern, t, re.IGNORECASE):
            return method
    return "GET"


def extract_url(text: str, fallback_url: str = "") -> str:
    match = _HTTP_URL.search(text or "")
    url = match.group(0).rstrip(".,;:)]}") if match else ""
    if not url:
        quoted = _QUOTED_DOMAIN.search(text or "")
        url = quoted.group(1) if quoted else (fallback_url or "")
    if url and not re.match(r"https?://", url, re.IGNORECASE):
        url = "https://" + url.lstrip("/")
    return url


def split_url(url: str) -> Tuple[str, str]:
    """(base_url, endpoint). Unparseable input keeps the raw text as base and "/" as endpoint."""
    parsed = urlparse(url or "")
    if not parsed.scheme or not parsed.netloc:
        return url or "", "/"
    endpoint = parsed.path or "/"
    if parsed.query:
        endpoint += "?" + parsed.query
    return f"{parsed.scheme}://{parsed.netloc}", endpoint


def requires_authentication(text: str) -> bool:
    return contains_any((text or "").lower(), AUTH_KEYWORDS)


def build_preconditions(method: str, endpoint: str, requires_auth: bool) -> List[str]:
    preconditions = ["API server is running and accessible", f"Endpoint {endpoint} is accessible"]
    if requires_auth:
        preconditions.append("Valid authentication token is available")
    if method.upper() in BODY_METHODS:
        preconditions.append("Test data is prepared")
    return preconditions


def build_headers(text: str, requires_auth: bool, token: str = "<token>") -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if requires_auth:
        headers["Authorization"] = f"Bearer {token}"
    for name, value in _HEADER_SET.findall(text or ""):
        headers[name] = value.strip()
    return headers


def build_body(text: str, method: str) -> Optional[Dict]:
    if method not in BODY_METHODS:
        return None
    match = _JSON_BODY.search(text or "")
    if match:
        try:
            body = json.loads(match.group(0))
            if isinstance(body, dict):
                return body
        except json.JSONDecodeError:
            logger.debug("🌐 inline body is not valid JSON, using example payload")
    return {"data": "example"}


# ---------------- assertions ----------------
def extract_expected_status(text: str, method: str) -> Tuple[int, bool]:
    """(status, explicit). Without an explicit code POST expects 201, everything else 200."""
    for pattern in _STATUS_EXPECTATIONS:
        match = pattern.search(text or "")
        if match:
            return int(match.group(1)), True
    return (201 if method == "POST" else 200), False


def extract_field_assertions(text: str) -> List[FieldAssertion]:
    assertions: List[FieldAssertion] = []
    seen = set()

    def _add(field: str, kind: str, expected: Optional[str]):
        key = (field.lower(), kind)
        if key not in seen and field.lower() not in ("status", "code", "response", "the"):
            seen.add(key)
            assertions.append(FieldAssertion(field=field, kind=kind, expected=expected))

    for field, type_name in _TYPE_ASSERTION.findall(text or ""):
        _add(field, "type", type_name.lower())
    for field, value in _VALUE_ASSERTION.findall(text or ""):
        value = value.strip()
        type_word = _TYPE_WORD.match(value)
        if type_word:
            _add(field, "type", type_word.group(1).lower())
        elif not re.match(r"^(?:a|an)\s+\w+$", value) and not value.lower().startswith("type "):
            _add(field, "equals", value)
    for field in _EXISTS_ASSERTION.findall(text or ""):
        _add(field, "exists", None)
    return assertions


def extract_count_expectation(text: str) -> Optional[int]:
    match = _MORE_THAN.search(text or "")
    return int(match.group(1)) if match else None


def extract_response_time_limit(text: str) -> Optional[int]:
    for pattern in _RESPONSE_TIME:
        match = pattern.search(text or "")
        if match:
            return int(match.group(1))
    if re.search(r"response\s+time|\bmeasure\b", text or "", re.IGNORECASE):
        return 1000
    return None


# ---------------- ordered actions ----------------
def split_api_lines(text: str) -> List[str]:
    lines = []
    for chunk in _LINE_SPLIT.split(text or ""):
        chunk = re.sub(r"^(?:[-*•]\s*|(?:and\s+)?then\s+|and\s+)", "", (chunk or "").strip(), flags=re.IGNORECASE)
        chunk = chunk.strip().rstrip(".")
        if chunk:
            lines.append(chunk)
    return lines


def _store_action(line: str) -> Tuple[str, Dict]:
    t = line.lower()
    if "status" in t:
        return "statusCode", {}
    if "header" in t:
        return "headers", {}
    return "body", {"as_list": bool(re.search(r"as\s+(?:a\s+)?list", t))}


def _read_action(line: str) -> Optional[Tuple[str, Dict, str]]:
    header = re.search(r"\b(?:read|extract)\s+(?:the\s+)?(?:value\s+of\s+(?:the\s+)?)?[\"']?([a-z][\w-]*)[\"']?\s+header", line, re.IGNORECASE)
    if header:
        return header.group(1), {"source": "header"}, f"Read value of {header.group(1)} header"
    field = re.search(r"\b(?:read|extract)\s+(?:the\s+)?[\"']?(\w+)[\"']?(?:\s+(?:value|field|property))?", line, re.IGNORECASE)
    if not field:
        return None
    name = field.group(1)
    each = re.search(r"from\s+(?:each|every)\s+(\w+)", line, re.IGNORECASE)
    if each:
        return name, {"source": "body", "each": each.group(1)}, f'Read "{name}" value from each {each.group(1)}'
    return name, {"source": "body"}, f'Read "{name}" value from response body'


def _verify_action(line: str, method: str) -> Tuple[str, Dict, str]:
    t = line.lower()
    if "status" in t:
        code = re.search(r"\b(\d{3})\b", line)
        status = int(code.group(1)) if code else (201 if method == "POST" else 200)
        return "statusCode", {"status": status}, f"Verify status code equals {status}"
    type_match = _TYPE_ASSERTION.search(line)
    if type_match:
        return type_match.group(1), {"type": type_match.group(2).lower()}, \
            f"Verify {type_match.group(1)} type is {type_match.group(2).lower()}"
    value_match = _VALUE_ASSERTION.search(line)
    if value_match:
        value = value_match.group(2).strip()
        type_word = _TYPE_WORD.match(value)
        if type_word:
            return value_match.group(1), {"type": type_word.group(1).lower()}, \
                f"Verify {value_match.group(1)} type is {type_word.group(1).lower()}"
        return value_match.group(1), {"equals": value}, f"Verify {value_match.group(1)} equals {value}"
    exists_match = _EXISTS_ASSERTION.search(line)
    if exists_match:
        return exists_match.group(1), {"exists": True}, f"Verify {exists_match.group(1)} exists"
    more = _MORE_THAN.search(line)
    if more:
        return "count", {"more_than": int(more.group(1))}, f"Verify count is more than {more.group(1)}"
    return "", {}, line


def _line_action(line: str, method: str, url: str) -> Optional[Tuple[str, str, Dict, str]]:
    t = line.lower()
    if re.search(r"\bsend(?:s|ing)?\b|\bmake\s+(?:a\s+)?(?:get|post|put|patch|delete)?\s*request\b|\bcall\b", t):
        return "send", url, {"method": method}, f"Send {method} request to {url}"
    if re.search(r"\b(?:store|save)\b", t):
        target, detail = _store_action(line)
        label = {"statusCode": "Store response status code", "headers": "Store response headers"}.get(
            target, "Store response body as a list" if detail.get("as_list") else "Store response body")
        return "store", target, detail, label
    if re.search(r"\b(?:read|extract)\b", t):
        read = _read_action(line)
        if read:
            return "read", read[0], read[1], read[2]
    if re.search(r"\bcompare\b", t):
        sides = re.search(r"compare\s+(?:the\s+)?[\"']?(\w+)[\"']?\s+(?:value\s+)?(?:with|to|against)\s+(?:the\s+)?[\"']?([\w.-]+)[\"']?", line, re.IGNORECASE)
        left, right = (sides.group(1), sides.group(2)) if sides else ("", "")
        return "compare", left, {"right": right}, f"Compare {left} with {right}" if sides else line
    if re.search(r"\bcount\b|\bnumber\s+of\b", t) and not re.search(r"\b(?:verify|check|expect|assert|ensure)\b", t):
        what = re.search(r"(?:count|number\s+of)\s+(?:the\s+)?(?:number\s+of\s+)?(\w+)", line, re.IGNORECASE)
        noun = what.group(1) if what else "objects"
        detail = {}
        more = _MORE_THAN.search(line)
        if more:
            detail["more_than"] = int(more.group(1))
        return "count", noun, detail, f"Count the number of {noun} in the list"
    if re.search(r"\b(?:verify|check|expect|assert|ensure|validate)\b", t) or re.search(
            r"status\s+code\s+(?:equals|is|should|must)|\btype\s+is\b|\bexists\b", t):
        target, detail, label = _verify_action(line, method)
        return "verify", target, detail, label
    if re.search(r"\bmeasure\b|response\s+time", t):
        return "measure", "responseTime", {"limit": extract_response_time_limit(line) or 1000}, "Measure response time"
    return None


def extract_api_actions(text: str, method: str, url: str) -> List[APIAction]:
    """Ordered API verbs. A send action is synthesized first when the text has none."""
    found: List[APIAction] = []
    for line in split_api_lines(text):
        parsed = _line_action(line, method, url)
        if parsed is None:
            continue
        kind, target, detail, label = parsed
        if kind == "send" and any(a.kind == "send" for a in found):
            continue
        found.append(APIAction(step_number=len(found) + 1, kind=kind, target=target,
                               detail=dict(detail, description=label), original_text=line))
    if not any(a.kind == "send" for a in found):
        send = APIAction(step_number=1, kind="send", target=url,
                         detail={"method": method, "description": f"Send {method} request to {url}"})
        found = [send] + [a.model_copy(update={"step_number": i}) for i, a in enumerate(found, 2)]
    return found


# ---------------- metadata ----------------
def extract_metadata(text: str, method: str, endpoint: str) -> APITestMetadata:
    t = (text or "").lower()
    first_line = (text or "").strip().split("\n")[0].strip()
    if any(k in t for k in ("performance", "response time", "measure time")):
        category = "Performance"
    elif any(k in t for k in ("error", "validation", "invalid", "fail")):
        category = "Regression"
    elif any(k in t for k in ("security", "authentication", "authorization", "token")):
        category = "Security"
    else:
        category = "Smoke"
    return APITestMetadata(
        title=f"{method} {endpoint}",
        description=first_line or f"Test {method} request to {endpoint}",
        category=category,
    )


def parse_api_instruction(text: str, url: str = "", token: str = "<token>") -> ParsedAPIInstruction:
    text = text or ""
    method = detect_method(text)
    full_url = extract_url(text, url)
    base_url, endpoint = split_url(full_url)
    auth = requires_authentication(text)
    status, _explicit = extract_expected_status(text, method)
    parsed = ParsedAPIInstruction(
        method=method,
        url=full_url,
        base_url=base_url,
        endpoint=endpoint,
        requires_auth=auth,
        headers=build_headers(text, auth, token),
        body=build_body(text, method),
        expected_status=status,
        field_assertions=extract_field_assertions(text),
        count_expectation=extract_count_expectation(text),
        response_time_limit=extract_response_time_limit(text),
        actions=extract_api_actions(text, method, full_url),
        preconditions=build_preconditions(method, endpoint, auth),
        metadata=extract_metadata(text, method, endpoint),
        original_text=text,
    )
    logger.debug(f"🌐 parsed {method} {endpoint}: {[a.kind for a in parsed.actions]}")
    return parsed
