"""High level orchestration for playlist loading and the published catalog."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings
from ..db_models import (
    SHARED_SOURCE_ID,
    CatalogSnapshotRecord,
    FavoriteRecord,
    PlaylistSourceRecord,
)
from ..errors import PlaylistError
from ..models import Catalog, ContentItem, SearchResults, Series
from ..playlist import parse_m3u
from .playlist_source import PlaylistFetcher, extract_playlist_from_zip
from .tmdb import TMDBPosterClient

logger = logging.getLogger(__name__)


class PlaylistLoadRequest(BaseModel):
    """Body of a playlist import: a URL or inline M3U text."""

    url: str | None = None
    content: str | None = None
    persist: bool = Field(default=False)

    @field_validator("url", "content", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    @model_validator(mode="after")
    def _require_single_source(self) -> "PlaylistLoadRequest":
        if (self.url is None) == (self.content is None):
            raise ValueError("Provide exactly one of 'url' or 'content'")
        return self


@dataclass(frozen=True)
class PlaylistSource:
    """Where the current catalog came from."""

    url: str | None = None
    content: str | None = None

    @property
    def key(self) -> str:
        if self.url:
            return f"url:{self.url}"
        return "content"


class CatalogService:
    """Own the published catalog snapshot and the shared playlist source."""

    def __init__(
        self,
        settings: Settings,
        fetcher: PlaylistFetcher,
        poster_client: TMDBPosterClient | None,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._settings = settings
        self._rules = settings.filter_rules
        self._fetcher = fetcher
        self._poster_client = poster_client
        self._session_factory = session_factory
        self._catalog = Catalog.empty()
        self._source_key: str | None = None
        self._load_lock = asyncio.Lock()
        self._bootstrap_task: asyncio.Task[None] | None = None
        self._refresh_task: asyncio.Task[None] | None = None
        self._enrichment_task: asyncio.Task[None] | None = None

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def source_key(self) -> str | None:
        return self._source_key

    @property
    def is_loading(self) -> bool:
        return self._load_lock.locked()

    async def start(self) -> None:
        """Restore the cached snapshot and reload the shared source."""

        source = await self.get_shared_source()
        if source is not None:
            await self._hydrate(source.key)
            self._bootstrap_task = asyncio.create_task(self._bootstrap(source))
        if self._settings.playlist_refresh_seconds > 0:
            self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        for task in (self._bootstrap_task, self._refresh_task, self._enrichment_task):
            if task is None or task.done():
                continue
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self._bootstrap_task = None
        self._refresh_task = None
        self._enrichment_task = None

    async def load_from_url(self, url: str, *, persist: bool = False) -> Catalog:
        """Download, parse and publish the playlist at ``url``."""

        async with self._load_lock:
            text = await self._fetcher.fetch(url)
            catalog = parse_m3u(text, self._rules)
            return await self._publish(catalog, PlaylistSource(url=url), persist=persist)

    async def load_from_text(self, text: str, *, persist: bool = False) -> Catalog:
        async with self._load_lock:
            catalog = parse_m3u(text, self._rules)
            return await self._publish(
                catalog, PlaylistSource(content=text), persist=persist
            )

    async def load_from_zip(self, data: bytes, *, persist: bool = False) -> Catalog:
        """Unpack a zipped playlist upload and publish it."""

        async with self._load_lock:
            text = await asyncio.to_thread(extract_playlist_from_zip, data)
            catalog = parse_m3u(text, self._rules)
            return await self._publish(
                catalog, PlaylistSource(content=text), persist=persist
            )

    async def load(self, request: PlaylistLoadRequest) -> Catalog:
        if request.url is not None:
            return await self.load_from_url(request.url, persist=request.persist)
        return await self.load_from_text(request.content or "", persist=request.persist)

    async def reload(self) -> Catalog | None:
        """Reload the shared source unless a load is already running."""

        if self.is_loading:
            logger.debug("Playlist load already in progress, skipping reload")
            return None
        source = await self.get_shared_source()
        if source is None:
            return None
        return await self._load_source(source)

    async def _load_source(self, source: PlaylistSource) -> Catalog:
        if source.url:
            return await self.load_from_url(source.url)
        return await self.load_from_text(source.content or "")

    async def _bootstrap(self, source: PlaylistSource) -> None:
        try:
            await self._load_source(source)
        except PlaylistError as exc:
            logger.warning("Initial playlist load failed: %s", exc)

    async def _refresh_loop(self) -> None:
        interval = self._settings.playlist_refresh_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                await self.reload()
            except PlaylistError as exc:
                logger.warning("Scheduled playlist reload failed: %s", exc)
            except Exception:  # pragma: no cover - background safety net
                logger.exception("Unexpected error while reloading the playlist")

    async def _publish(
        self, catalog: Catalog, source: PlaylistSource, *, persist: bool
    ) -> Catalog:
        if not catalog.is_loaded:
            logger.info(
                "Playlist from %s has no catalog content; keeping the current snapshot",
                source.key,
            )
            return catalog

        self._catalog = catalog
        self._source_key = source.key
        logger.info(
            "Published catalog from %s: %s movies, %s series, %s items",
            source.key,
            len(catalog.movies),
            len(catalog.series),
            len(catalog.all_items),
        )
        await self._store_snapshot(source.key, catalog)
        if persist:
            await self._store_shared_source(source)
        self._schedule_enrichment(catalog, source.key)
        return catalog

    def _schedule_enrichment(self, catalog: Catalog, source_key: str) -> None:
        client = self._poster_client
        if client is None or not client.has_credentials:
            return
        if self._enrichment_task is not None and not self._enrichment_task.done():
            self._enrichment_task.cancel()

        async def _runner() -> None:
            try:
                enriched = await client.enrich_catalog(catalog)
            except Exception:  # pragma: no cover - background safety net
                logger.exception("Poster enrichment failed")
                return
            if enriched is catalog:
                return
            # Loads publish under the same lock, so the swap and the write
            # cannot interleave with a newer snapshot.
            async with self._load_lock:
                if self._catalog is not catalog:
                    return
                self._catalog = enriched
                await self._store_snapshot(source_key, enriched)

        self._enrichment_task = asyncio.create_task(_runner())

    async def wait_for_enrichment(self) -> None:
        """Block until the current enrichment pass, if any, has finished."""

        task = self._enrichment_task
        if task is not None:
            with suppress(asyncio.CancelledError):
                await task

    async def _hydrate(self, source_key: str) -> bool:
        async with self._session_factory() as session:
            record = await session.scalar(
                select(CatalogSnapshotRecord).where(
                    CatalogSnapshotRecord.source_key == source_key
                )
            )
        if record is None:
            return False
        try:
            catalog = Catalog.model_validate(record.payload)
        except ValidationError as exc:
            logger.warning("Discarding unreadable catalog snapshot: %s", exc)
            return False
        if not catalog.is_loaded:
            return False
        self._catalog = catalog
        self._source_key = source_key
        logger.info("Restored cached catalog for %s", source_key)
        return True

    async def _store_snapshot(self, source_key: str, catalog: Catalog) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(CatalogSnapshotRecord))
            session.add(
                CatalogSnapshotRecord(
                    source_key=source_key,
                    payload=catalog.to_payload(),
                    item_count=len(catalog.all_items),
                    generated_at=datetime.utcnow(),
                )
            )
            await session.commit()

    async def get_shared_source(self) -> PlaylistSource | None:
        """Return the stored shared source, else the configured default URL."""

        async with self._session_factory() as session:
            record = await session.get(PlaylistSourceRecord, SHARED_SOURCE_ID)
        if record is not None and (record.url or record.content):
            return PlaylistSource(url=record.url, content=record.content)
        if self._settings.playlist_url:
            return PlaylistSource(url=self._settings.playlist_url)
        return None

    async def _store_shared_source(self, source: PlaylistSource) -> None:
        async with self._session_factory() as session:
            record = await session.get(PlaylistSourceRecord, SHARED_SOURCE_ID)
            if record is None:
                record = PlaylistSourceRecord(id=SHARED_SOURCE_ID)
                session.add(record)
            record.url = source.url
            record.content = None if source.url else source.content
            record.updated_at = datetime.utcnow()
            await session.commit()

    async def list_favorites(self) -> list[str]:
        async with self._session_factory() as session:
            result = await session.scalars(
                select(FavoriteRecord.content_id).order_by(
                    FavoriteRecord.created_at, FavoriteRecord.id
                )
            )
            return list(result)

    async def is_favorite(self, content_id: str) -> bool:
        async with self._session_factory() as session:
            record = await session.scalar(
                select(FavoriteRecord).where(FavoriteRecord.content_id == content_id)
            )
        return record is not None

    async def add_favorite(self, content_id: str) -> None:
        async with self._session_factory() as session:
            existing = await session.scalar(
                select(FavoriteRecord).where(FavoriteRecord.content_id == content_id)
            )
            if existing is None:
                session.add(FavoriteRecord(content_id=content_id))
                await session.commit()

    async def remove_favorite(self, content_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(FavoriteRecord).where(FavoriteRecord.content_id == content_id)
            )
            await session.commit()
        return bool(result.rowcount)

    async def toggle_favorite(self, content_id: str) -> bool:
        """Flip the favorite flag and return the new state."""

        if await self.remove_favorite(content_id):
            return False
        await self.add_favorite(content_id)
        return True

    def get_movie(self, movie_id: str) -> ContentItem | None:
        return self._catalog.get_movie(movie_id)

    def get_series(self, series_id: str) -> Series | None:
        return self._catalog.get_series(series_id)

    def get_item(self, item_id: str) -> ContentItem | None:
        return self._catalog.get_item(item_id)

    def search(self, query: str) -> SearchResults:
        return self._catalog.search(query)
