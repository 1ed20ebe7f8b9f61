"""Keyword rules used to filter and rank playlist entries."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable


@dataclass(frozen=True)
class FilterRules:
    """Versioned keyword lists consumed by the classifier and deduplicator."""

    version: int
    live_keywords: tuple[str, ...]
    adult_keywords: tuple[str, ...]
    series_keywords: tuple[str, ...]
    subtitled_markers: tuple[str, ...]
    uhd_markers: tuple[str, ...]
    quality_tokens: tuple[str, ...]

    @property
    def excluded_keywords(self) -> tuple[str, ...]:
        """Every keyword that drops an entry from the catalog."""

        return self.live_keywords + self.adult_keywords

    def extend(
        self,
        *,
        live: Iterable[str] = (),
        adult: Iterable[str] = (),
        series: Iterable[str] = (),
    ) -> "FilterRules":
        """Return a copy with extra keywords appended to each list."""

        return replace(
            self,
            live_keywords=_merge(self.live_keywords, live),
            adult_keywords=_merge(self.adult_keywords, adult),
            series_keywords=_merge(self.series_keywords, series),
        )


def _merge(base: tuple[str, ...], extra: Iterable[str]) -> tuple[str, ...]:
    merged = list(base)
    for keyword in extra:
        if keyword and keyword not in merged:
            merged.append(keyword)
    return tuple(merged)


DEFAULT_FILTER_RULES = FilterRules(
    version=2,
    live_keywords=(
        "ao vivo",
        "24h",
        "canais",
        "tv ao vivo",
        "tv ",
        "aberto",
        "aberta",
        "live",
        "canal",
        "open tv",
        "ppv",
        "pay per view",
        "24 horas",
        "linear",
    ),
    adult_keywords=(
        "adult",
        "adulto",
        "xxx",
        "porn",
        "erotic",
        "erotico",
        "erótico",
        "sexy",
        "sex ",
        "+18",
        "18+",
        "hentai",
        "playboy",
        "hustler",
        "brazzers",
        "bangbros",
        "naughty",
        "milf",
        "lesbian",
        "gay ",
        "strip",
        "onlyfans",
        "cam girl",
        "nude",
        "naked",
        "fetish",
        "bdsm",
        "hardcore",
        "softcore",
        "xvideos",
        "xhamster",
        "redtube",
        "youporn",
        "penthouse",
        "vivid",
        "hot girls",
        "after dark",
        "midnight",
        "meia-noite",
        "proibido",
    ),
    series_keywords=("séri", "serie", "series"),
    subtitled_markers=("[l]",),
    uhd_markers=("4k", "uhd"),
    quality_tokens=("4k", "uhd", "fhd", "hd", "dublado", r"dual\s*audio", "legendado"),
)
