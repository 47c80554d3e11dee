"""Keyword predicates that gate optional recall calls.

Plain case-insensitive substring matches, kept as named functions so each
rule can be tested on its own.
"""

from __future__ import annotations

from collections.abc import Iterable

from app.services.ai.interpretation.contracts import InterpretationInsight

TEXTURE_KEYWORDS = ("brush", "texture", "impasto")

HISTORY_KEYWORDS = ("century", "period", "era", "movement", "renaissance", "baroque", "historical", "ancient")

# Placeholder strings that only produce noisy encyclopedia lookups.
GENERIC_TERM_BLOCKLIST = frozenset(
    {
        "art",
        "artwork",
        "image",
        "picture",
        "photo",
        "object",
        "thing",
        "none",
        "none detected",
        "unknown",
        "untitled",
        "n/a",
    }
)


def mentions_any(texts: Iterable[str], keywords: Iterable[str]) -> bool:
    lowered = [t.lower() for t in texts if t]
    keys = [k.lower() for k in keywords]
    return any(k in t for t in lowered for k in keys)


def should_recall_texture(insight: InterpretationInsight | None) -> bool:
    """True when any technique insight mentions brush, texture or impasto."""
    if insight is None:
        return False
    return mentions_any(insight.technique_insights, TEXTURE_KEYWORDS)


def history_mentions(insight: InterpretationInsight | None) -> list[str]:
    """Style and theme insights that mention a period, era or movement."""
    if insight is None:
        return []
    return [t for t in insight.style_insights + insight.theme_insights if mentions_any([t], HISTORY_KEYWORDS)]


def is_generic_term(term: str | None) -> bool:
    return not term or not term.strip() or term.strip().lower() in GENERIC_TERM_BLOCKLIST


def should_query_reference(term: str | None) -> bool:
    """Encyclopedia lookups need a specific, non-placeholder term."""
    return not is_generic_term(term)
