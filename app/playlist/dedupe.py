"""Collapse quality and language variants of the same content."""

from __future__ import annotations

import re
from typing import Hashable, Iterable

from ..filters import DEFAULT_FILTER_RULES, FilterRules
from ..models import ContentItem

BRACKETED_RE = re.compile(r"\[[^\]]*\]")
NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def _quality_token_re(rules: FilterRules) -> re.Pattern[str]:
    # quality tokens are regex fragments so "dual  audio" matches too
    return re.compile(rf"\b(?:{'|'.join(rules.quality_tokens)})\b", re.IGNORECASE)


def normalize_title(title: str, rules: FilterRules = DEFAULT_FILTER_RULES) -> str:
    """Reduce a title to the words that identify the content."""

    normalized = title.lower()
    normalized = BRACKETED_RE.sub(" ", normalized)
    normalized = _quality_token_re(rules).sub(" ", normalized)
    normalized = NON_ALNUM_RE.sub(" ", normalized)
    return normalized.strip()


def quality_score(title: str, rules: FilterRules = DEFAULT_FILTER_RULES) -> int:
    """Rank variants: subtitled 3, 4K/UHD 2, anything else 1."""

    lowered = title.lower()
    if any(marker in lowered for marker in rules.subtitled_markers):
        return 3
    if any(marker in lowered for marker in rules.uhd_markers):
        return 2
    return 1


def identity_key(item: ContentItem, rules: FilterRules = DEFAULT_FILTER_RULES) -> Hashable:
    if item.type == "series":
        return (
            "series",
            item.series_id or normalize_title(item.title, rules),
            item.season_number or 1,
            item.episode_number or 0,
        )
    return ("movie", normalize_title(item.title, rules), item.group.lower())


def dedupe_items(
    items: Iterable[ContentItem], rules: FilterRules = DEFAULT_FILTER_RULES
) -> list[ContentItem]:
    """Keep the best variant per identity, in first-seen order.

    A later duplicate replaces the kept one only when its quality score is
    strictly higher.
    """

    kept: dict[Hashable, ContentItem] = {}
    for item in items:
        key = identity_key(item, rules)
        existing = kept.get(key)
        if existing is None or quality_score(item.title, rules) > quality_score(
            existing.title, rules
        ):
            kept[key] = item
    return list(kept.values())
