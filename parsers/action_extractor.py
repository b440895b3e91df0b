# parsers/action_extractor.py
"""
Turns functional instruction text into an ordered list of ParsedAction.

Each line goes through ACTION_RULES top to bottom and the first rule that
returns a match wins. Lines that no rule accepts are dropped; that is a
precision trade-off, not an error. Step 1 is always a synthesized navigation
to the base URL.
"""
import re
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Union

from core.models import ActionType, ParsedAction
from logging_config import get_agent_logger

logger = get_agent_logger("FUNCTIONAL")

# ---------------- line splitting ----------------
_DOUBLE_QUOTED = re.compile(r'"[^"]*"')
_SINGLE_QUOTED = re.compile(r"(?<!\w)'[^'\n]*'(?!\w)")
_NUMBERED_MARKER = re.compile(r"(?:^|(?<=\s))\d+[.)]\s+")
_DELIMITERS = re.compile(r"[\n,;]")


def split_instruction_lines(text: str) -> List[str]:
    """Split on newline, comma, semicolon and "1." style markers, never inside quotes."""
    if not text or not text.strip():
        return []
    saved: List[str] = []

    def _mask(m):
        saved.append(m.group(0))
        return f"\x00{len(saved) - 1}\x00"

    masked = _SINGLE_QUOTED.sub(_mask, _DOUBLE_QUOTED.sub(_mask, text))
    masked = _NUMBERED_MARKER.sub("\n", masked)

    lines: List[str] = []
    for chunk in _DELIMITERS.split(masked):
        chunk = re.sub(r"\x00(\d+)\x00", lambda m: saved[int(m.group(1))], chunk).strip()
        chunk = re.sub(r"^(?:[-*•]\s*|(?:and\s+)?then\s+|and\s+)", "", chunk, flags=re.IGNORECASE).strip()
        if chunk:
            lines.append(chunk)
    return lines


# ---------------- field names ----------------
FIELD_SYNONYMS: Dict[str, str] = {
    "user": "username",
    "user name": "username",
    "username": "username",
    "user id": "username",
    "userid": "username",
    "login": "username",
    "phone": "phone",
    "phone number": "phone",
    "telephone": "phone",
    "mobile": "phone",
    "mobile number": "phone",
    "email": "email",
    "e-mail": "email",
    "email address": "email",
    "mail": "email",
    "pass": "password",
    "passwd": "password",
    "password": "password",
}

_FIELD_NOISE = re.compile(r"\b(?:field|textbox|text box|input|box)\b", re.IGNORECASE)
_EMAIL_MENTION = re.compile(r"\be-?mail\b", re.IGNORECASE)


def canonical_field(raw_field: str, line: str = "") -> str:
    field = _FIELD_NOISE.sub("", raw_field or "").strip().lower()
    field = re.sub(r"\s+", " ", field)
    if _EMAIL_MENTION.search(field):
        return "email"
    canonical = FIELD_SYNONYMS.get(field, field)
    # an explicit email mention beats a looser username reading
    if canonical == "username" and _EMAIL_MENTION.search(line):
        return "email"
    return canonical


# ---------------- rules ----------------
class _Match(NamedTuple):
    type: ActionType
    target: str
    value: Optional[str] = None
    position: Optional[Union[int, str]] = None


class ActionRule(NamedTuple):
    name: str
    apply: Callable[[str], Optional[_Match]]


_ENTRY_VERB = r"\b(?:enter|type|fill(?:\s+in)?|input|set|put)"
_ENTRY_FIELD_FIRST = re.compile(
    _ENTRY_VERB
    + r"\s+(?:the\s+|a\s+|an\s+)?(?:value\s+)?(?:of\s+)?(?:in\s+)?"
    + r"(?P<field>[a-z][\w-]*(?:\s+[a-z][\w-]*){0,2}?)\s*(?:\s(?:as|to|with|=)\s*|:\s*|\s+)"
    + r"[\"'](?P<value>[^\"']*)[\"']",
    re.IGNORECASE,
)
_ENTRY_VALUE_FIRST = re.compile(
    _ENTRY_VERB
    + r"\s+[\"'](?P<value>[^\"']*)[\"']\s+(?:in|into|for|on|as)\s+(?:the\s+)?"
    + r"(?P<field>[a-z][\w-]*(?:\s+[a-z][\w-]*){0,2})",
    re.IGNORECASE,
)
_ENTRY_UNQUOTED = re.compile(
    _ENTRY_VERB
    + r"\s+(?:the\s+)?(?P<field>[a-z][\w-]*(?:\s+[a-z][\w-]*)?)\s+(?:as|to|with)\s+(?P<value>[^\s\"']+)\s*$",
    re.IGNORECASE,
)


def _match_field_entry(line: str) -> Optional[_Match]:
    for pattern in (_ENTRY_VALUE_FIRST, _ENTRY_FIELD_FIRST, _ENTRY_UNQUOTED):
        m = pattern.search(line)
        if m:
            field = canonical_field(m.group("field"), line)
            if not field:
                return None
            return _Match(ActionType.TYPE, field, m.group("value"))
    return None


_SELECT_QUOTED = re.compile(
    r"(?:select|choose|pick)\s+[\"'](?P<value>[^\"']+)[\"']\s+(?:from|in|on)\s+(?:the\s+)?(?P<field>.+?)"
    r"(?:\s+(?:dropdown|drop-down|list|menu|select))?\s*$",
    re.IGNORECASE,
)
_SELECT_PLAIN = re.compile(
    r"(?:select|choose|pick)\s+(?P<value>[\w-]+(?:\s+[\w-]+)?)\s+(?:from|in)\s+(?:the\s+)?(?P<field>.+?)"
    r"(?:\s+(?:dropdown|drop-down|list|menu|select))?\s*$",
    re.IGNORECASE,
)


def _match_select(line: str) -> Optional[_Match]:
    for pattern in (_SELECT_QUOTED, _SELECT_PLAIN):
        m = pattern.search(line)
        if m:
            return _Match(ActionType.SELECT, canonical_field(m.group("field")), m.group("value").strip())
    return None


_CHECK = re.compile(
    r"\b(?:tick|check)\s+(?!that\b|if\b|whether\b)(?:the\s+)?[\"']?(?P<target>.+?)[\"']?(?:\s+(?:checkbox|check box|box|option))?\s*$",
    re.IGNORECASE,
)
_CHECK_CUES = re.compile(r"\b(?:tick|checkbox|check box|box|terms|remember me|agree)\b", re.IGNORECASE)


def _match_check(line: str) -> Optional[_Match]:
    if not _CHECK_CUES.search(line):
        return None
    m = _CHECK.search(line)
    if not m:
        return None
    return _Match(ActionType.CHECK, m.group("target").strip())


# click plus the common misspellings seen in hand-typed instructions
_CLICK_VERB = r"(?:click|clcik|clik|clikc|cilck|clck|clic|press|tap|hit)"
_KEY_NAMES = r"(?:enter|tab|escape|esc|space|spacebar|shift\s+tab|arrow\s+\w+)"
_ORDINALS = {"first": "first", "last": "last", "second": 2, "third": 3, "fourth": 4, "fifth": 5}
_CLICK = re.compile(
    r"\b" + _CLICK_VERB + r"\s+(?!" + _KEY_NAMES + r"\b)(?:on\s+)?(?:the\s+)?"
    r"(?:(?P<ordinal>first|last|second|third|fourth|fifth|\d+(?:st|nd|rd|th))\s+)?"
    r"[\"']?(?P<target>[^\"']+?)[\"']?\s*(?:button|link|icon|tab|menu item)?\s*$",
    re.IGNORECASE,
)


def _position_from(ordinal: Optional[str]) -> Optional[Union[int, str]]:
    if not ordinal:
        return None
    ordinal = ordinal.lower()
    if ordinal in _ORDINALS:
        return _ORDINALS[ordinal]
    digits = re.match(r"\d+", ordinal)
    return int(digits.group(0)) if digits else None


def _match_click(line: str) -> Optional[_Match]:
    m = _CLICK.search(line)
    if not m:
        return None
    target = m.group("target").strip()
    if not target:
        return None
    return _Match(ActionType.CLICK, target, position=_position_from(m.group("ordinal")))


_VERIFY = re.compile(
    r"\b(?:verify|assert|ensure|confirm|check|validate|expect|make\s+sure)\s+(?:that\s+|if\s+|whether\s+)?(?:the\s+)?(?P<target>.+?)\s*$",
    re.IGNORECASE,
)
_VERIFY_VALUE = re.compile(
    r"(?:contains?|shows?|displays?|has\s+text|equals?|is|reads)\s+[\"'](?P<value>[^\"']+)[\"']",
    re.IGNORECASE,
)


def _match_verify(line: str) -> Optional[_Match]:
    m = _VERIFY.search(line)
    if not m:
        return None
    value = _VERIFY_VALUE.search(line)
    return _Match(ActionType.VERIFY, m.group("target").strip(), value.group("value") if value else None)


_HOVER = re.compile(r"\b(?:hover|mouse\s*over)\s+(?:over\s+|on\s+)?(?:the\s+)?[\"']?(?P<target>[^\"']+?)[\"']?\s*$", re.IGNORECASE)


def _match_hover(line: str) -> Optional[_Match]:
    m = _HOVER.search(line)
    return _Match(ActionType.HOVER, m.group("target").strip()) if m else None


_SCROLL = re.compile(r"\bscroll\s*(?P<direction>down|up)?\s*(?:to\s+)?(?:the\s+)?(?P<target>.*?)\s*$", re.IGNORECASE)


def _match_scroll(line: str) -> Optional[_Match]:
    m = _SCROLL.search(line)
    if not m:
        return None
    target = m.group("target").strip() or ("top" if (m.group("direction") or "").lower() == "up" else "bottom")
    return _Match(ActionType.SCROLL, target)


_NAVIGATE = re.compile(
    r"\b(?:navigate|go|open|visit|load)\s+(?:to\s+)?(?:the\s+)?(?:page\s+)?(?P<target>https?://\S+|/[\w./-]*)",
    re.IGNORECASE,
)


def _match_navigate(line: str) -> Optional[_Match]:
    m = _NAVIGATE.search(line)
    return _Match(ActionType.NAVIGATE, m.group("target").rstrip(".")) if m else None


ACTION_RULES: Sequence[ActionRule] = (
    ActionRule("field-entry", _match_field_entry),
    ActionRule("select", _match_select),
    ActionRule("check", _match_check),
    ActionRule("click", _match_click),
    ActionRule("verify", _match_verify),
    ActionRule("hover", _match_hover),
    ActionRule("scroll", _match_scroll),
    ActionRule("navigate", _match_navigate),
)


def match_line(line: str, rules: Sequence[ActionRule] = ACTION_RULES) -> Optional[_Match]:
    for rule in rules:
        found = rule.apply(line)
        if found is not None:
            logger.debug(f"🖱️ '{line}' → {rule.name}")
            return found
    return None


def extract_actions(
    lines: Union[str, Sequence[str]],
    base_url: str = "",
    rules: Sequence[ActionRule] = ACTION_RULES,
) -> List[ParsedAction]:
    """Ordered actions for the given lines; step 1 navigates to base_url."""
    if isinstance(lines, str):
        lines = split_instruction_lines(lines)

    actions: List[ParsedAction] = [
        ParsedAction(step_number=1, type=ActionType.NAVIGATE, target=base_url, original_line=f"Navigate to {base_url}")
    ]
    dropped = 0
    for line in lines:
        found = match_line(line, rules)
        if found is None:
            dropped += 1
            continue
        if found.type == ActionType.NAVIGATE and found.target == base_url:
            continue
        actions.append(ParsedAction(
            step_number=len(actions) + 1,
            type=found.type,
            target=found.target,
            value=found.value,
            original_line=line,
            position=found.position,
        ))
    if dropped:
        logger.info(f"🖱️ {dropped} instruction line(s) matched no action pattern and were skipped")
    return actions
