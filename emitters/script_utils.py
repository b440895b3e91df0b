# emitters/script_utils.py
import re
from typing import Dict, List, Sequence, Tuple, Union

from core.models import ActionType, ElementTarget, ParsedAction

PLAYWRIGHT_IMPORT = "import { test, expect } from '@playwright/test';"
AXE_IMPORT = "import AxeBuilder from '@axe-core/playwright';"


# ---------------- escaping ----------------
def escape_js(value) -> str:
    """Escape text for a single-quoted JavaScript string literal."""
    text = "" if value is None else str(value)
    return (
        text.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def escape_css(value) -> str:
    """Escape text for a double-quoted CSS attribute or :has-text() argument."""
    text = "" if value is None else str(value)
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", " ")


def escape_regex(value) -> str:
    """Escape text for a JavaScript regex literal /.../."""
    return re.sub(r"([.*+?^${}()|\[\]\\/])", r"\\\1", "" if value is None else str(value))


def comment_text(value) -> str:
    """Single-line comment content; newlines would end the comment early."""
    return re.sub(r"\s+", " ", "" if value is None else str(value)).strip()


def js_string(value) -> str:
    return f"'{escape_js(value)}'"


def script_title(text: str, limit: int = 80) -> str:
    title = comment_text(text)
    return title[:limit].rstrip() or "Generated test"


# ---------------- selector fallback lists ----------------
_TYPE_MATCH = {
    "email": 'input[type="email"]',
    "password": 'input[type="password"]',
    "phone": 'input[type="tel"]',
    "search": 'input[type="search"]',
}


def normalize_field_name(field: str) -> str:
    return re.sub(r"[^a-z0-9]", "", (field or "").lower())


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")


def id_selector(ident: str) -> str:
    # CSS ids may not start with a digit; fall back to an attribute match
    if re.match(r"[a-z_][\w-]*$", ident, re.IGNORECASE):
        return f"#{ident}"
    return f'[id="{ident}"]'


def field_selectors(field: str, action_type: ActionType = ActionType.TYPE) -> List[str]:
    """id → name → data-test → generic type match, in that order."""
    key = normalize_field_name(field) or "field"
    candidates = [id_selector(key), f'[name="{key}"]', f'[data-test="{key}"]', f'[data-testid="{key}"]']
    if action_type == ActionType.SELECT:
        candidates.append(f'select[aria-label*="{escape_css(field)}" i]')
        candidates.append("select")
    elif action_type == ActionType.CHECK:
        candidates.append(f'input[type="checkbox"][aria-label*="{escape_css(field)}" i]')
        candidates.append('input[type="checkbox"]')
    elif key in _TYPE_MATCH:
        candidates.append(_TYPE_MATCH[key])
    else:
        candidates.append(f'input[placeholder*="{escape_css(field)}" i]')
        candidates.append(f'[aria-label*="{escape_css(field)}" i]')
    return candidates


def clickable_selectors(target: str) -> List[str]:
    slug = _slug(target) or "target"
    text = escape_css(target)
    return [
        id_selector(slug),
        f'[name="{slug}"]',
        f'[data-test="{slug}"]',
        f'[data-testid="{slug}"]',
        f'button:has-text("{text}")',
        f'a:has-text("{text}")',
        f'[role="button"]:has-text("{text}")',
        f'input[type="submit"][value="{text}"]',
        f'[aria-label*="{text}" i]',
    ]


def generic_selectors(target: str) -> List[str]:
    slug = _slug(target) or "target"
    text = escape_css(target)
    return [id_selector(slug), f'[name="{slug}"]', f'[data-test="{slug}"]', f':has-text("{text}")']


def build_element_target(action: ParsedAction) -> ElementTarget:
    line = (action.original_line or "").lower()
    if action.type in (ActionType.TYPE, ActionType.SELECT, ActionType.CHECK):
        element_type = {ActionType.TYPE: "input", ActionType.SELECT: "select", ActionType.CHECK: "checkbox"}[action.type]
        candidates = field_selectors(action.target, action.type)
        confidence = 0.9 if normalize_field_name(action.target) in _TYPE_MATCH else 0.75
    elif action.type == ActionType.CLICK:
        element_type = "link" if re.search(r"\blink\b", line) else "button"
        candidates = clickable_selectors(action.target)
        confidence = 0.8
    else:
        element_type = "element"
        candidates = generic_selectors(action.target)
        confidence = 0.6
    return ElementTarget(
        element_type=element_type,
        selector_candidates=candidates,
        search_text=action.target,
        position=action.position if action.position is not None else "first",
        confidence=confidence,
    )


def position_suffix(position: Union[int, str, None]) -> str:
    if position is None or position == "first":
        return ".first()"
    if position == "last":
        return ".last()"
    try:
        index = int(position)
    except (TypeError, ValueError):
        return ".first()"
    return f".nth({max(index - 1, 0)})"


def locator_expression(target: ElementTarget, page_var: str = "page") -> str:
    union = ", ".join(target.selector_candidates)
    return f"{page_var}.locator({js_string(union)}){position_suffix(target.position)}"


# ---------------- variable naming ----------------
class VariableNamer:
    """Per-action-type counters so repeated actions never reuse a name."""

    def __init__(self):
        self._counters: Dict[str, int] = {}

    def next(self, prefix: str) -> str:
        self._counters[prefix] = self._counters.get(prefix, 0) + 1
        return f"{prefix}{self._counters[prefix]}"


# ---------------- script assembly ----------------
def wrap_test(name: str, body_lines: Sequence[str], imports: Sequence[str] = (PLAYWRIGHT_IMPORT,),
              fixture: str = "page") -> str:
    body = "\n".join(
        f"  {sub}" if sub.strip() else ""
        for line in body_lines
        for sub in line.split("\n")
    )
    header = "\n".join(imports)
    return f"{header}\n\ntest({js_string(name)}, async ({{ {fixture} }}) => {{\n{body}\n}});\n"


def _is_import(line: str) -> bool:
    return line.startswith("import ")


def split_script(script: str) -> Tuple[List[str], List[str]]:
    """Imports and test bodies of a script. A body runs from its first top-level line to its closing '});'."""
    imports: List[str] = []
    bodies: List[str] = []
    current: List[str] = []
    closed = False
    for line in (script or "").splitlines():
        if _is_import(line):
            if line not in imports:
                imports.append(line)
            continue
        if closed and line.strip() and not line[0].isspace():
            bodies.append("\n".join(current).strip())
            current = []
            closed = False
        current.append(line)
        if line.rstrip() == "});":
            closed = True
    if "\n".join(current).strip():
        bodies.append("\n".join(current).strip())
    return imports, bodies


def merge_scripts(scripts: Sequence[str]) -> str:
    """One hoisted import block followed by every fragment's executable body."""
    imports: List[str] = []
    bodies: List[str] = []
    for script in scripts:
        fragment_imports, fragment_bodies = split_script(script)
        for imp in fragment_imports:
            if imp not in imports:
                imports.append(imp)
        bodies.extend(fragment_bodies)
    return "\n".join(imports) + "\n\n" + "\n\n".join(bodies) + "\n"


def count_import_blocks(script: str) -> int:
    """Contiguous runs of import lines; a well-formed script has exactly one."""
    blocks = 0
    in_block = False
    for line in (script or "").splitlines():
        if _is_import(line):
            if not in_block:
                blocks += 1
            in_block = True
        elif line.strip():
            in_block = False
    return blocks


def unique(items: Sequence[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for item in items:
        seen.setdefault(item, None)
    return list(seen)
