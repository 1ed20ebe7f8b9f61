"""Entry point for the FastAPI-powered playlist catalog."""

from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import settings
from .database import Database
from .errors import (
    PlaylistArchiveError,
    PlaylistError,
    PlaylistTransportError,
    PlaylistValidationError,
)
from .models import Catalog
from .services.catalog_service import CatalogService, PlaylistLoadRequest
from .services.playlist_source import PlaylistFetcher
from .services.tmdb import TMDBPosterClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

EMPTY_CATALOG_DETAIL = "The playlist has no content compatible with the catalog."

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    playlist_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            timeout=httpx.Timeout(settings.fetch_timeout_seconds, connect=10.0),
        )
    )
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(15.0, connect=5.0),
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    fetcher = PlaylistFetcher(playlist_http_client, settings.filter_rules)
    poster_client = TMDBPosterClient(settings, tmdb_http_client)
    catalog_service = CatalogService(
        settings, fetcher, poster_client, database.session_factory
    )

    fastapi_app.state.catalog_service = catalog_service
    fastapi_app.state.database = database
    await catalog_service.start()

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await catalog_service.stop()
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Movie and series catalog built from M3U playlists",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_catalog_service(app: FastAPI) -> CatalogService:
    service = getattr(app.state, "catalog_service", None)
    if not isinstance(service, CatalogService):
        raise RuntimeError("Catalog service not initialised")
    return service


def _coerce_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in {"1", "true", "yes", "on"}
    return False


def _loaded_response(catalog: Catalog) -> JSONResponse:
    if not catalog.is_loaded:
        raise HTTPException(status_code=422, detail=EMPTY_CATALOG_DETAIL)
    return JSONResponse(catalog.summary())


def _playlist_error_to_http(exc: PlaylistError) -> HTTPException:
    if isinstance(exc, (PlaylistValidationError, PlaylistArchiveError)):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, PlaylistTransportError):
        detail: dict[str, Any] = {"message": str(exc)}
        if exc.status_code is not None:
            detail["upstreamStatus"] = exc.status_code
        return HTTPException(status_code=502, detail=detail)
    return HTTPException(status_code=400, detail=str(exc))


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/catalog")
    async def catalog_endpoint() -> JSONResponse:
        service = get_catalog_service(fastapi_app)
        return JSONResponse(service.catalog.to_payload())

    @fastapi_app.get("/api/catalog/summary")
    async def catalog_summary() -> JSONResponse:
        service = get_catalog_service(fastapi_app)
        payload = service.catalog.summary()
        payload["isLoading"] = service.is_loading
        payload["source"] = service.source_key
        return JSONResponse(payload)

    @fastapi_app.get("/api/movies")
    async def list_movies(group: str | None = None) -> JSONResponse:
        service = get_catalog_service(fastapi_app)
        movies = service.catalog.movies
        if group:
            movies = [movie for movie in movies if movie.group == group]
        return JSONResponse([movie.to_payload() for movie in movies])

    @fastapi_app.get("/api/movies/{movie_id}")
    async def get_movie(movie_id: str) -> JSONResponse:
        movie = get_catalog_service(fastapi_app).get_movie(movie_id)
        if movie is None:
            raise HTTPException(status_code=404, detail="Movie not found")
        return JSONResponse(movie.to_payload())

    @fastapi_app.get("/api/series")
    async def list_series(group: str | None = None) -> JSONResponse:
        service = get_catalog_service(fastapi_app)
        shows = service.catalog.series
        if group:
            shows = [show for show in shows if show.group == group]
        return JSONResponse([show.to_payload() for show in shows])

    @fastapi_app.get("/api/series/{series_id}")
    async def get_series(series_id: str) -> JSONResponse:
        series = get_catalog_service(fastapi_app).get_series(series_id)
        if series is None:
            raise HTTPException(status_code=404, detail="Series not found")
        return JSONResponse(series.to_payload())

    @fastapi_app.get("/api/items/{item_id}")
    async def get_item(item_id: str) -> JSONResponse:
        item = get_catalog_service(fastapi_app).get_item(item_id)
        if item is None:
            raise HTTPException(status_code=404, detail="Item not found")
        return JSONResponse(item.to_payload())

    @fastapi_app.get("/api/search")
    async def search(q: str = "") -> JSONResponse:
        query = q.strip()
        if not query:
            raise HTTPException(status_code=400, detail="Query parameter 'q' is required")
        results = get_catalog_service(fastapi_app).search(query)
        return JSONResponse(results.to_payload())

    @fastapi_app.post("/api/playlist")
    async def load_playlist(request: Request) -> JSONResponse:
        service = get_catalog_service(fastapi_app)
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            payload = {}
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid payload")

        try:
            load_request = PlaylistLoadRequest.model_validate(payload)
        except ValidationError as exc:
            raise HTTPException(
                status_code=400, detail=exc.errors(include_context=False)
            ) from exc

        try:
            catalog = await service.load(load_request)
        except PlaylistError as exc:
            raise _playlist_error_to_http(exc) from exc
        return _loaded_response(catalog)

    @fastapi_app.post("/api/playlist/zip")
    async def load_playlist_zip(request: Request, persist: str = "false") -> JSONResponse:
        service = get_catalog_service(fastapi_app)
        data = await request.body()
        if not data:
            raise HTTPException(status_code=400, detail="Request body must be a ZIP archive")
        try:
            catalog = await service.load_from_zip(data, persist=_coerce_bool(persist))
        except PlaylistError as exc:
            raise _playlist_error_to_http(exc) from exc
        return _loaded_response(catalog)

    @fastapi_app.get("/api/favorites")
    async def list_favorites() -> dict[str, list[str]]:
        service = get_catalog_service(fastapi_app)
        return {"favorites": await service.list_favorites()}

    @fastapi_app.post("/api/favorites/{content_id}")
    async def toggle_favorite(content_id: str) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        favorite = await service.toggle_favorite(content_id)
        return {"id": content_id, "favorite": favorite}

    @fastapi_app.delete("/api/favorites/{content_id}")
    async def remove_favorite(content_id: str) -> dict[str, Any]:
        service = get_catalog_service(fastapi_app)
        await service.remove_favorite(content_id)
        return {"id": content_id, "favorite": False}


app = create_app()
