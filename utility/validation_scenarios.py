# utility/validation_scenarios.py
from typing import Any, Dict, List

# Field-family catalog of input validation probes, looked up by substring of the field name
_CATALOG: Dict[str, List[Dict[str, Any]]] = {
    "username": [
        {"scenario": "Empty username", "value": "", "should_fail": True},
        {"scenario": "Too short", "value": "ab", "should_fail": True},
        {"scenario": "Valid username", "value": "validuser123", "should_fail": False},
    ],
    "password": [
        {"scenario": "Empty password", "value": "", "should_fail": True},
        {"scenario": "Too short", "value": "123", "should_fail": True},
        {"scenario": "Valid password", "value": "SecurePass123!", "should_fail": False},
    ],
    "email": [
        {"scenario": "Empty email", "value": "", "should_fail": True},
        {"scenario": "Invalid format", "value": "invalidemail", "should_fail": True},
        {"scenario": "Valid email", "value": "test@example.com", "should_fail": False},
    ],
}

_DEFAULT = [
    {"scenario": "Empty field", "value": "", "should_fail": True},
    {"scenario": "Valid input", "value": "test value", "should_fail": False},
]


def get_validation_scenarios(field: str) -> List[Dict[str, Any]]:
    f = (field or "").lower()
    if "email" in f:
        key = "email"
    elif "user" in f:
        key = "username"
    elif "pass" in f:
        key = "password"
    else:
        return [dict(s) for s in _DEFAULT]
    return [dict(s) for s in _CATALOG[key]]


def validation_preconditions(field: str) -> List[str]:
    return [
        "Page is accessible",
        f"{field} field is visible and enabled",
        "Validation rules are active",
    ]
