"""Decide whether a playlist entry is a movie, an episode or noise."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from ..filters import DEFAULT_FILTER_RULES, FilterRules
from ..utils import generate_id

Outcome = Literal["movie", "series", "excluded"]

# Order matters: the first pattern that matches wins.
EPISODE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"S(\d{1,2})\s*E(\d{1,3})", re.IGNORECASE),
    re.compile(r"T(\d{1,2})\s*E(\d{1,3})", re.IGNORECASE),
    re.compile(r"(\d{1,2})x(\d{1,3})", re.IGNORECASE),
    re.compile(r"temporada\s*(\d{1,2}).*epis[oó]dio\s*(\d{1,3})", re.IGNORECASE),
)

SERIES_TITLE_TAIL_RE = re.compile(r"[\s\-–—:|]+$")
EPISODE_TITLE_HEAD_RE = re.compile(r"^[\s\-–—:|]+")


@dataclass(frozen=True, slots=True)
class Classification:
    """Result of classifying one resolved title."""

    outcome: Outcome
    season_number: int | None = None
    episode_number: int | None = None
    episode_title: str | None = None
    series_title: str | None = None

    @property
    def series_id(self) -> str | None:
        if self.series_title is None:
            return None
        return generate_id(self.series_title)


EXCLUDED = Classification("excluded")
MOVIE = Classification("movie")


def is_excluded(title: str, group: str, rules: FilterRules = DEFAULT_FILTER_RULES) -> bool:
    """Whether the entry is a live channel or adult content."""

    combined = f"{group} {title}".lower()
    return any(keyword in combined for keyword in rules.excluded_keywords)


def match_episode(title: str) -> Classification | None:
    """Parse a season/episode marker out of ``title``."""

    for pattern in EPISODE_PATTERNS:
        match = pattern.search(title)
        if not match:
            continue
        series_title = SERIES_TITLE_TAIL_RE.sub("", title[: match.start()]).strip()
        episode_title = EPISODE_TITLE_HEAD_RE.sub("", title[match.end() :]).strip()
        return Classification(
            "series",
            season_number=int(match.group(1)),
            episode_number=int(match.group(2)),
            episode_title=episode_title or None,
            series_title=series_title or title,
        )
    return None


def classify(
    title: str, group: str, rules: FilterRules = DEFAULT_FILTER_RULES
) -> Classification:
    """Classify a resolved title within its group."""

    if is_excluded(title, group, rules):
        return EXCLUDED

    episode = match_episode(title)
    if episode is not None:
        return episode

    combined = f"{group} {title}".lower()
    if any(keyword in combined for keyword in rules.series_keywords):
        return Classification(
            "series", season_number=1, episode_number=1, series_title=title
        )

    return MOVIE
