"""Group deduplicated items into the final catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from ..models import Catalog, ContentItem, Series


@dataclass
class _SeriesBuilder:
    id: str
    title: str
    group: str
    logo: str | None = None
    seasons: dict[int, list[ContentItem]] = field(default_factory=dict)

    def add(self, episode: ContentItem) -> None:
        if not self.logo and episode.logo:
            self.logo = episode.logo
        self.seasons.setdefault(episode.season_number or 1, []).append(episode)

    def build(self) -> Series:
        seasons = {
            number: sorted(self.seasons[number], key=lambda item: item.episode_number or 0)
            for number in sorted(self.seasons)
        }
        return Series(
            id=self.id,
            title=self.title,
            logo=self.logo,
            group=self.group,
            seasons=seasons,
        )


def assemble_catalog(items: Sequence[ContentItem]) -> Catalog:
    """Build a catalog snapshot from deduplicated items.

    The first episode seen for a show fixes its position, title and group.
    """

    movies: list[ContentItem] = []
    builders: dict[str, _SeriesBuilder] = {}

    for item in items:
        if item.type == "movie":
            movies.append(item)
            continue

        series_id = item.series_id or item.id
        builder = builders.get(series_id)
        if builder is None:
            builder = _SeriesBuilder(
                id=series_id,
                title=item.series_title or item.title,
                group=item.group,
            )
            builders[series_id] = builder
        builder.add(item)

    return Catalog(
        movies=movies,
        series=[builder.build() for builder in builders.values()],
        all_items=list(items),
        groups=sorted({item.group for item in items}),
        is_loaded=bool(items),
    )
