# core/intent_classifier.py
from typing import Dict, List, Optional, Tuple

from core.keyword_tables import DEFAULT_TABLES, KeywordTables, count_occurrences, find_keywords
from core.models import MIXED, TestDomain, TestIntent, WebsiteAnalysis
from logging_config import get_agent_logger

logger = get_agent_logger("CLASSIFIER")

DEFAULT_MIXED_THRESHOLD = 0.6


def _score_domain(text: str, keywords) -> Tuple[float, List[str]]:
    matches = find_keywords(text, keywords)
    n = len(matches)
    if n == 0:
        return 0.0, []
    score = min(0.7 + (n - 1) * 0.1, 0.95)
    repeats = sum(max(count_occurrences(text, kw) - 1, 0) for kw in matches)
    score += 0.05 * repeats
    score += 0.05 * min(n - 1, 2)
    return min(score, 1.0), matches


def _apply_page_context(scores: Dict[str, float], analysis: Optional[WebsiteAnalysis]) -> None:
    if analysis is None:
        return
    elements = analysis.interactive_elements or []
    if elements:
        scores["functional"] = min(scores["functional"] + 0.1, 1.0)
    if scores["accessibility"] > 0 and any(e.aria_label or e.role for e in elements):
        scores["accessibility"] = min(scores["accessibility"] + 0.15, 1.0)
    if analysis.forms and scores["functional"] > 0:
        scores["functional"] = min(scores["functional"] + 0.1, 1.0)


def classify(
    text: str,
    website_analysis: Optional[WebsiteAnalysis] = None,
    tables: KeywordTables = DEFAULT_TABLES,
    mixed_threshold: float = DEFAULT_MIXED_THRESHOLD,
) -> TestIntent:
    """
    Classify free text into a test domain.

    Pure: the result depends only on the arguments. Never raises; text that
    matches nothing comes back as functional with confidence 0.
    """
    normalized = (text or "").strip().lower()
    if not normalized:
        return TestIntent(
            primary_type=TestDomain.FUNCTIONAL.value,
            confidence=0.0,
            detected_keywords={d: [] for d in tables.domain_keywords()},
        )

    scores: Dict[str, float] = {}
    detected: Dict[str, List[str]] = {}
    for domain, keywords in tables.domain_keywords().items():
        scores[domain], detected[domain] = _score_domain(normalized, keywords)

    _apply_page_context(scores, website_analysis)

    # sorted() is stable, so equal scores keep the table order
    ranked = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
    top_domain, top_score = ranked[0]
    scored = [d for d, s in ranked if s > 0]

    strong = [d for d, s in ranked if s > mixed_threshold]
    if len(strong) >= 2:
        primary = MIXED
        secondary = scored
    else:
        primary = top_domain if top_score > 0 else TestDomain.FUNCTIONAL.value
        secondary = [d for d in scored if d != primary]

    confidence = max(0.0, min(top_score, 1.0))

    enhanced_hits = find_keywords(normalized, tables.accessibility_enhanced)
    a11y_involved = (
        primary == TestDomain.ACCESSIBILITY.value
        or TestDomain.ACCESSIBILITY.value in secondary
    )
    use_enhanced = (
        primary == TestDomain.ACCESSIBILITY.value
        or (a11y_involved and bool(enhanced_hits))
        or bool(find_keywords(normalized, tables.enhanced_parser_patterns))
        or len(enhanced_hits) >= 2
    )

    intent = TestIntent(
        primary_type=primary,
        secondary_types=secondary,
        confidence=round(confidence, 4),
        detected_keywords=detected,
        use_enhanced_accessibility_parser=use_enhanced,
    )
    logger.debug(f"🔎 scores={scores} → {intent.primary_type} ({intent.confidence})")
    return intent
