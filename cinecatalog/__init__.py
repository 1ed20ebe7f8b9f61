"""CineCatalog: M3U playlists served as a movie and series catalog."""

from __future__ import annotations

from app.main import app, create_app
from app.playlist import parse_m3u

__version__ = "1.0.0"

__all__ = ["__version__", "app", "create_app", "parse_m3u"]
