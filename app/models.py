"""Pydantic models describing the playlist catalog."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

ContentType = Literal["movie", "series"]

UNCATEGORIZED_GROUP = "Uncategorized"


class CatalogModel(BaseModel):
    """Immutable base serialised with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)


class ContentItem(CatalogModel):
    """A single playable movie or episode."""

    id: str
    title: str
    url: str
    logo: str | None = None
    group: str = UNCATEGORIZED_GROUP
    type: ContentType
    season_number: int | None = None
    episode_number: int | None = None
    episode_title: str | None = None
    series_id: str | None = None
    series_title: str | None = None

    @model_validator(mode="after")
    def _check_type_fields(self) -> "ContentItem":
        if self.type == "series":
            if not self.series_id:
                raise ValueError("series items require a series id")
            return self
        if any(
            value is not None
            for value in (
                self.season_number,
                self.episode_number,
                self.episode_title,
                self.series_id,
                self.series_title,
            )
        ):
            raise ValueError("movie items cannot carry episode fields")
        return self


class Series(CatalogModel):
    """A show grouping its episodes by season."""

    id: str
    title: str
    logo: str | None = None
    group: str = UNCATEGORIZED_GROUP
    type: Literal["series"] = "series"
    seasons: dict[int, list[ContentItem]] = Field(default_factory=dict)

    def episode_count(self) -> int:
        return sum(len(episodes) for episodes in self.seasons.values())

    def first_episode(self) -> ContentItem | None:
        """Return the first episode of the lowest season, if any."""

        for season in sorted(self.seasons):
            episodes = self.seasons[season]
            if episodes:
                return episodes[0]
        return None


class SearchResults(CatalogModel):
    """Movies and series matching a free-text query."""

    movies: list[ContentItem] = Field(default_factory=list)
    series: list[Series] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.movies or self.series)


class Catalog(CatalogModel):
    """Snapshot produced by a single playlist parse."""

    movies: list[ContentItem] = Field(default_factory=list)
    series: list[Series] = Field(default_factory=list)
    all_items: list[ContentItem] = Field(default_factory=list)
    groups: list[str] = Field(default_factory=list)
    is_loaded: bool = False

    @classmethod
    def empty(cls) -> "Catalog":
        return cls()

    def get_movie(self, movie_id: str) -> ContentItem | None:
        return next((movie for movie in self.movies if movie.id == movie_id), None)

    def get_series(self, series_id: str) -> Series | None:
        return next((series for series in self.series if series.id == series_id), None)

    def get_item(self, item_id: str) -> ContentItem | None:
        """Look up any movie or episode by id."""

        return next((item for item in self.all_items if item.id == item_id), None)

    def search(self, query: str) -> SearchResults:
        """Case-insensitive substring search over titles and group names."""

        needle = query.lower()
        return SearchResults(
            movies=[
                movie
                for movie in self.movies
                if needle in movie.title.lower() or needle in movie.group.lower()
            ],
            series=[
                series
                for series in self.series
                if needle in series.title.lower() or needle in series.group.lower()
            ],
        )

    def summary(self) -> dict[str, object]:
        """Return counts used by dashboards and health checks."""

        return {
            "isLoaded": self.is_loaded,
            "movieCount": len(self.movies),
            "seriesCount": len(self.series),
            "episodeCount": sum(series.episode_count() for series in self.series),
            "itemCount": len(self.all_items),
            "groups": list(self.groups),
        }
