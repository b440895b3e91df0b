# core/specificity.py
import re
from typing import Optional

from core.keyword_tables import DEFAULT_TABLES, KeywordTables, contains_any

# numbered steps ("1.") or comma/semicolon separated clauses
_STEP_STRUCTURE = re.compile(r"\d+\.|,\s*[a-z]|;\s*[a-z]", re.IGNORECASE)


def is_specific(text: str, domain: Optional[str] = None, tables: KeywordTables = DEFAULT_TABLES) -> bool:
    """
    True when the text reads as a concrete ordered step list rather than a goal.

    Specific text goes down the instruction-based path (exactly one test case);
    everything else falls back to the domain's template suite.
    """
    if domain == "accessibility":
        return is_accessibility_instruction(text, tables)
    t = (text or "").lower()
    if not t.strip():
        return False
    if domain == "api" and contains_any(t, tables.api_specific_phrases):
        return True
    return contains_any(t, tables.specific_verbs)


def is_accessibility_instruction(text: str, tables: KeywordTables = DEFAULT_TABLES) -> bool:
    """Sequencing cues ("press tab", "step 1", numbered or comma separated steps)."""
    t = (text or "").strip()
    if not t:
        return False
    if contains_any(t.lower(), tables.accessibility_instruction_cues):
        return True
    return bool(_STEP_STRUCTURE.search(t))
