"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Iterable, Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .filters import DEFAULT_FILTER_RULES, FilterRules


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="CineCatalog", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    playlist_url: str | None = Field(default=None, alias="PLAYLIST_URL")
    playlist_refresh_seconds: int = Field(
        default=0, alias="PLAYLIST_REFRESH_INTERVAL", ge=0
    )
    fetch_timeout_seconds: float = Field(
        default=60.0, alias="FETCH_TIMEOUT", gt=0, le=600
    )

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_read_access_token: str | None = Field(
        default=None, alias="TMDB_READ_ACCESS_TOKEN"
    )
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_image_base: str = Field(
        default="https://image.tmdb.org/t/p/w500", alias="TMDB_IMAGE_BASE"
    )
    tmdb_language: str = Field(default="pt-BR", alias="TMDB_LANGUAGE")
    tmdb_max_concurrency: int = Field(
        default=5, alias="TMDB_MAX_CONCURRENCY", ge=1, le=20
    )

    live_keywords: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(), alias="LIVE_KEYWORDS"
    )
    adult_keywords: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(), alias="ADULT_KEYWORDS"
    )
    series_keywords: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(), alias="SERIES_KEYWORDS"
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./cinecatalog.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("live_keywords", "adult_keywords", "series_keywords", mode="before")
    @classmethod
    def _parse_keywords(cls, value: object) -> tuple[str, ...]:
        """Normalise keyword additions from environment values."""

        if value is None:
            return ()
        if isinstance(value, str):
            raw_values = value.split(",")
        elif isinstance(value, Iterable):
            raw_values = [str(part) for part in value]
        else:
            raise TypeError("Keyword lists must be a string or iterable of strings")

        cleaned: list[str] = []
        for entry in raw_values:
            keyword = entry.strip().lower()
            if keyword and keyword not in cleaned:
                cleaned.append(keyword)
        return tuple(cleaned)

    @field_validator("playlist_refresh_seconds")
    @classmethod
    def _check_refresh_interval(cls, value: int) -> int:
        if 0 < value < 300:
            raise ValueError("PLAYLIST_REFRESH_INTERVAL must be 0 or at least 300 seconds")
        return value

    @field_validator("playlist_url", "tmdb_api_key", "tmdb_read_access_token", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("tmdb_image_base")
    @classmethod
    def _trim_image_base(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def filter_rules(self) -> FilterRules:
        """Built-in keyword rules extended with configured additions."""

        return DEFAULT_FILTER_RULES.extend(
            live=self.live_keywords,
            adult=self.adult_keywords,
            series=self.series_keywords,
        )

    @property
    def has_tmdb_credentials(self) -> bool:
        return bool(self.tmdb_read_access_token or self.tmdb_api_key)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
