"""Best-effort poster artwork from The Movie Database (TMDB)."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Sequence, TypeVar

import httpx

from ..config import Settings
from ..models import Catalog, ContentItem, Series
from ..playlist.titles import is_polluted
from ..utils import strip_accents

logger = logging.getLogger(__name__)

MediaType = Literal["movie", "tv"]
T = TypeVar("T")

TMDB_IMAGE_RE = re.compile(r"^https?://image\.tmdb\.org/", re.IGNORECASE)
HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
PARENTHESIZED_RE = re.compile(r"\([^)]*\)")
SEASON_WORD_RE = re.compile(r"\b(?:temporada|season)\s*\d+\b", re.IGNORECASE)
NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

VOTE_SCORE_CAP = 300
EXACT_TITLE_BONUS = 1_000
PARTIAL_TITLE_BONUS = 250


def normalize_lookup_title(title: str) -> str:
    """Reduce a catalog title to a TMDB search query."""

    normalized = strip_accents(title).lower()
    normalized = PARENTHESIZED_RE.sub(" ", normalized)
    normalized = SEASON_WORD_RE.sub(" ", normalized)
    normalized = NON_ALNUM_RE.sub(" ", normalized)
    return normalized.strip()


def is_tmdb_logo(logo: str | None) -> bool:
    """Whether ``logo`` is already a clean TMDB image URL."""

    if not logo:
        return False
    value = logo.strip()
    if not HTTP_URL_RE.match(value) or is_polluted(value):
        return False
    return bool(TMDB_IMAGE_RE.match(value))


@dataclass
class PosterCache:
    """Process-lifetime memo of poster lookups, including misses."""

    entries: dict[str, str | None] = field(default_factory=dict)

    @staticmethod
    def key(media_type: MediaType, query: str) -> str:
        return f"{media_type}:{query}"

    def __contains__(self, key: str) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str) -> str | None:
        return self.entries.get(key)

    def set(self, key: str, poster: str | None) -> None:
        self.entries[key] = poster


class TMDBPosterClient:
    """Fill in catalog logos from TMDB search results."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        cache: PosterCache | None = None,
    ) -> None:
        self._settings = settings
        self._client = http_client
        self.cache = cache if cache is not None else PosterCache()
        self._auth_verified: bool | None = None
        self._auth_lock = asyncio.Lock()

    @property
    def has_credentials(self) -> bool:
        return self._settings.has_tmdb_credentials

    def _headers(self) -> dict[str, str]:
        token = self._settings.tmdb_read_access_token
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def _params(self, **params: Any) -> dict[str, Any]:
        if not self._settings.tmdb_read_access_token and self._settings.tmdb_api_key:
            params["api_key"] = self._settings.tmdb_api_key
        return params

    async def verify_authentication(self) -> bool:
        """Check the configured credentials once and remember the answer."""

        if self._auth_verified is not None:
            return self._auth_verified
        async with self._auth_lock:
            if self._auth_verified is not None:
                return self._auth_verified
            self._auth_verified = await self._check_credentials()
            if not self._auth_verified:
                logger.warning("TMDB credentials rejected; poster lookups disabled")
            return self._auth_verified

    async def _check_credentials(self) -> bool:
        if not self.has_credentials:
            return False
        if self._settings.tmdb_read_access_token:
            endpoint, expected_key = "/authentication", "success"
        else:
            endpoint, expected_key = "/configuration", "images"
        try:
            response = await self._client.get(
                endpoint, headers=self._headers(), params=self._params()
            )
        except httpx.HTTPError as exc:
            logger.warning("TMDB authentication check failed: %s", exc)
            return False
        if response.status_code >= 400:
            return False
        try:
            payload = response.json()
        except ValueError:
            return False
        return isinstance(payload, dict) and bool(payload.get(expected_key))

    async def search_poster(self, title: str, media_type: MediaType) -> str | None:
        """Return the best poster URL for ``title`` or ``None``."""

        query = normalize_lookup_title(title)
        if not query:
            return None

        cache_key = PosterCache.key(media_type, query)
        if cache_key in self.cache:
            return self.cache.get(cache_key)

        if not await self.verify_authentication():
            self.cache.set(cache_key, None)
            return None

        try:
            poster = await self._search(query, media_type)
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug("TMDB search failed for %s (%s): %s", title, media_type, exc)
            poster = None
        self.cache.set(cache_key, poster)
        return poster

    async def _search(self, query: str, media_type: MediaType) -> str | None:
        params = self._params(
            query=query,
            include_adult="false",
            language=self._settings.tmdb_language,
            page=1,
        )
        response = await self._client.get(
            f"/search/{media_type}", headers=self._headers(), params=params
        )
        if response.status_code >= 400:
            logger.debug(
                "TMDB search for %s (%s) failed: HTTP %s",
                query,
                media_type,
                response.status_code,
            )
            return None

        payload = response.json()
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            return None

        candidates = [
            result
            for result in results
            if isinstance(result, dict)
            and isinstance(result.get("poster_path"), str)
            and result["poster_path"]
        ]
        if not candidates:
            return None

        best = max(candidates, key=lambda result: self._score(result, query, media_type))
        return f"{self._settings.tmdb_image_base}{best['poster_path']}"

    @staticmethod
    def _candidate_title(result: dict[str, Any], media_type: MediaType) -> str:
        if media_type == "tv":
            return str(result.get("name") or result.get("original_name") or "")
        return str(result.get("title") or result.get("original_title") or "")

    @classmethod
    def _score(cls, result: dict[str, Any], query: str, media_type: MediaType) -> float:
        candidate = normalize_lookup_title(cls._candidate_title(result, media_type))
        same_title = candidate == query
        close_title = not same_title and bool(candidate) and (
            query in candidate or candidate in query
        )
        popularity = float(result.get("popularity") or 0)
        votes = min(VOTE_SCORE_CAP, int(result.get("vote_count") or 0))
        score = popularity + votes
        if same_title:
            score += EXACT_TITLE_BONUS
        if close_title:
            score += PARTIAL_TITLE_BONUS
        return score

    async def _enrich_movie(self, movie: ContentItem) -> ContentItem:
        if is_tmdb_logo(movie.logo):
            return movie
        poster = await self.search_poster(movie.title, "movie")
        if not poster:
            return movie
        return movie.model_copy(update={"logo": poster})

    async def _enrich_series(self, series: Series) -> Series:
        if is_tmdb_logo(series.logo):
            return series
        poster = await self.search_poster(series.title, "tv")
        if not poster:
            return series
        seasons = {
            number: [
                episode
                if is_tmdb_logo(episode.logo)
                else episode.model_copy(update={"logo": poster})
                for episode in episodes
            ]
            for number, episodes in series.seasons.items()
        }
        return series.model_copy(update={"logo": poster, "seasons": seasons})

    @staticmethod
    async def _bounded(
        items: Sequence[T],
        enrich: Callable[[T], Awaitable[T]],
        semaphore: asyncio.Semaphore,
    ) -> list[T]:

        async def _run(item: T) -> T:
            async with semaphore:
                try:
                    return await enrich(item)
                except Exception:  # pragma: no cover - defensive logging branch
                    logger.exception("Poster enrichment failed")
                    return item

        return list(await asyncio.gather(*(_run(item) for item in items)))

    async def enrich_catalog(self, catalog: Catalog) -> Catalog:
        """Return ``catalog`` with logos filled in where TMDB has a poster.

        Only ``logo`` fields change. Missing credentials, rejected
        credentials and lookup failures leave the catalog untouched.
        """

        if not self.has_credentials or not (catalog.movies or catalog.series):
            return catalog
        needs_movies = any(not is_tmdb_logo(movie.logo) for movie in catalog.movies)
        needs_series = any(not is_tmdb_logo(series.logo) for series in catalog.series)
        if not (needs_movies or needs_series):
            return catalog
        if not await self.verify_authentication():
            return catalog

        semaphore = asyncio.Semaphore(self._settings.tmdb_max_concurrency)
        movies, series = await asyncio.gather(
            self._bounded(catalog.movies, self._enrich_movie, semaphore),
            self._bounded(catalog.series, self._enrich_series, semaphore),
        )

        updated = {movie.id: movie for movie in movies}
        for show in series:
            for episodes in show.seasons.values():
                updated.update((episode.id, episode) for episode in episodes)
        all_items = [updated.get(item.id, item) for item in catalog.all_items]

        enriched = sum(
            1 for before, after in zip(catalog.movies, movies) if before.logo != after.logo
        ) + sum(
            1 for before, after in zip(catalog.series, series) if before.logo != after.logo
        )
        logger.info(
            "Poster enrichment updated %s of %s titles",
            enriched,
            len(movies) + len(series),
        )
        return catalog.model_copy(
            update={"movies": movies, "series": series, "all_items": all_items}
        )
