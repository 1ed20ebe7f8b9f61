"""CineCatalog: M3U playlists parsed into a movie and series catalog.

The FastAPI objects are resolved lazily so the parser can be imported without
loading settings or the web stack.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

_LAZY_EXPORTS = {
    "app": "app.main",
    "create_app": "app.main",
    "parse_m3u": "app.playlist",
    "Catalog": "app.models",
}

__all__ = sorted(_LAZY_EXPORTS)


def __getattr__(name: str) -> Any:
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module 'app' has no attribute {name}")
    return getattr(import_module(module_name), name)
