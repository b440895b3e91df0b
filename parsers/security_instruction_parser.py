# parsers/security_instruction_parser.py
"""
Security instruction parser: intent families, HTTP method, payload and the
expected status set for a single instruction-specific security test.
"""
import json
import re
from typing import Dict, List, Optional, Tuple

from core.keyword_tables import count_occurrences, find_keywords
from core.models import SecurityInstruction, SecurityStep
from logging_config import get_agent_logger

logger = get_agent_logger("SECURITY")

# insertion order is the tie-break order when two intents score the same
SECURITY_INTENTS: Dict[str, Tuple[str, ...]] = {
    "SEC_INJ": ("inject", "injection", "sql", "script", "<script>", "xss", "nosql", "or 1=1",
                "union select", "drop table", "alert(", "javascript:", "onload="),
    "SEC_AUTH": ("login", "password", "token", "authenticate", "signin", "credentials", "auth",
                 "session", "logout"),
    "SEC_AUTHZ": ("access", "permission", "unauthorized", "forbidden", "role", "admin", "privilege",
                  "without token", "no auth"),
    "SEC_DATA": ("password", "credit card", "ssn", "sensitive", "personal", "private", "confidential",
                 "secret", "key"),
    "SEC_HEADER": ("header", "headers", "csp", "hsts", "x-frame-options", "content-security-policy",
                   "strict-transport-security", "x-xss-protection"),
    "SEC_METHOD": ("method", "put", "delete", "patch", "options", "head"),
    "SEC_RATE": ("rate", "limit", "throttle", "abuse", "flood", "spam", "brute force", "dos",
                 "multiple requests"),
}

PAYLOADS: Dict[str, str] = {
    "SQL": "' OR 1=1 --",
    "XSS": "<script>alert(1)</script>",
    "NOSQL": '{"$ne": null}',
}

SECURITY_HEADERS = ("content-security-policy", "strict-transport-security", "x-frame-options",
                    "x-content-type-options")

_EXPLICIT_METHOD = re.compile(r"\bsend(?:s|ing)?\s+(?:a\s+|an\s+)?(get|post|put|patch|delete|options|head)\b", re.IGNORECASE)
_METHOD_WORD = re.compile(r"\b(put|delete|patch|options|head)\s+(?:method|request|verb)\b|\busing\s+(put|delete|patch|options|head)\b", re.IGNORECASE)
_HEADER_SET = re.compile(r"\bheader\s+[\"']?([\w-]+)[\"']?\s*(?::|=)\s*[\"']?([^\"',;\n]+?)[\"']?\s*(?=$|[,;\n])", re.IGNORECASE)


def detect_intents(text: str) -> List[str]:
    t = (text or "").lower()
    return [name for name, keywords in SECURITY_INTENTS.items() if find_keywords(t, keywords)]


def primary_intent(text: str) -> Tuple[str, float]:
    """(intent, confidence). Highest hit count wins; no hits → SEC_GENERIC at 0.5."""
    t = (text or "").lower()
    best, best_hits = "SEC_GENERIC", 0
    for name, keywords in SECURITY_INTENTS.items():
        hits = sum(count_occurrences(t, kw) for kw in find_keywords(t, keywords))
        if hits > best_hits:
            best, best_hits = name, hits
    if best_hits == 0:
        return best, 0.5
    return best, min(0.6 + 0.1 * best_hits, 0.95)


def detect_method(text: str) -> str:
    t = text or ""
    explicit = _EXPLICIT_METHOD.search(t)
    if explicit:
        return explicit.group(1).upper()
    word = _METHOD_WORD.search(t)
    if word:
        return (word.group(1) or word.group(2)).upper()
    if re.search(r"\b(?:login|log in|sign in|signin|create|submit|register)\b", t, re.IGNORECASE):
        return "POST"
    return "GET"


def select_payload(text: str, intents: List[str]) -> Optional[str]:
    if "SEC_INJ" not in intents:
        return None
    t = (text or "").lower()
    if "nosql" in t or "$ne" in t:
        return PAYLOADS["NOSQL"]
    if re.search(r"\bxss\b|<script>|\bscript\b|alert\(|javascript:|onload=", t):
        return PAYLOADS["XSS"]
    return PAYLOADS["SQL"]


def expected_statuses(text: str, primary: str = "SEC_GENERIC") -> List[int]:
    t = (text or "").lower()
    if re.search(r"\b(?:fail|fails|reject|rejected|block|blocked|deny|denied)\b", t):
        return [400, 401, 403, 422]
    if re.search(r"\b(?:unauthori[sz]ed|forbidden)\b", t):
        return [401, 403]
    if re.search(r"\b(?:success|succeed|succeeds|allow|allowed|accept|accepted)\b", t):
        return [200, 201]
    if primary == "SEC_HEADER":
        return [200]
    if primary == "SEC_RATE":
        return [429]
    return [400, 401, 403]


def build_headers(text: str) -> Dict[str, str]:
    t = (text or "").lower()
    headers: Dict[str, str] = {}
    for name, value in _HEADER_SET.findall(text or ""):
        headers[name] = value.strip()
    if re.search(r"\b(?:invalid|malformed)\s+token\b", t):
        headers["Authorization"] = "Bearer invalid_token"
    elif re.search(r"\bexpired\s+token\b", t):
        headers["Authorization"] = "Bearer expired_token"
    return headers


def build_body(text: str, method: str, payload: Optional[str]) -> Optional[str]:
    if payload is None and method not in ("POST", "PUT", "PATCH"):
        return None
    t = (text or "").lower()
    value = payload if payload is not None else "test"
    if re.search(r"\b(?:login|log in|sign in|signin|password|credentials)\b", t):
        data = {"username": value, "password": "password123"}
    else:
        data = {"input": value}
    return json.dumps(data)


def extract_steps(url: str, method: str, headers: Dict[str, str], body: Optional[str],
                  statuses: List[int], text: str) -> List[SecurityStep]:
    steps: List[SecurityStep] = []

    def _add(action, target="", value=None, expected=""):
        steps.append(SecurityStep(step_number=len(steps) + 1, action=action, target=target,
                                  value=value, expected_result=expected))

    for name, value in headers.items():
        _add("SET_HEADER", name, value, f"{name} header is set")
    if body is not None:
        _add("SET_BODY", "body", body, "Request body is prepared")
    _add("SEND_REQUEST", url, method, "Request is sent")
    if re.search(r"\b(?:store|save|capture|record)\b", text or "", re.IGNORECASE):
        _add("STORE_RESPONSE", "response", None, "Response is stored")
    _add("VERIFY_STATUS", "status", ", ".join(str(s) for s in statuses),
         f"Status code is one of {statuses}")
    return steps


def parse_security_instruction(text: str, url: str) -> SecurityInstruction:
    text = text or ""
    intents = detect_intents(text)
    primary, confidence = primary_intent(text)
    method = detect_method(text)
    payload = select_payload(text, intents)
    headers = build_headers(text)
    body = build_body(text, method, payload)
    statuses = expected_statuses(text, primary)
    parsed = SecurityInstruction(
        url=url,
        method=method,
        intents=intents,
        primary_intent=primary,
        payload=payload,
        headers=headers,
        body=body,
        expected_statuses=statuses,
        steps=extract_steps(url, method, headers, body, statuses, text),
        confidence=confidence,
        original_text=text,
    )
    logger.debug(f"🛡️ {primary} via {method}, expecting {statuses}")
    return parsed
