"""Pytest configuration and shared playlist fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure the application package is importable when running tests without an
# editable install. ``app`` sits at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


MIXED_PLAYLIST = """#EXTM3U
#EXTINF:-1 tvg-logo="movie-logo.jpg" group-title="Filmes",Filme A
http://example.com/movie-a.m3u8
#EXTINF:-1 tvg-logo="series-logo.jpg" group-title="Séries",Minha Série S01E02 - Episódio 2
http://example.com/show-s01e02.m3u8
"""

POLLUTED_PLAYLIST = """#EXTM3U
#EXTINF:-1 tvg-name="Peaky Blinders: Sangue, Apostas e Navalhas S01E01" tvg-logo="https://image.tmdb.org/t/p/w1280/ra2.jpg" group-title="Netflix",Peaky Blinders: Sangue, Apostas e Navalhas S01E01
http://244a.cc:80/series/KfTTMQ/UBNX3V/187421.mp4
#EXTINF:-1 tvg-name="Big Pai Big Filho 2 (2020)" tvg-logo="https://image.tmdb.org/t/p/w600/poster.jpg" group-title="Amazon Prime Video",Big Pai Big Filho 2 (2020)"tvg-logo="https://image.tmdb.org/t/p/w600/poster.jpg" group-title="Amazon Prime Video"
http://244a.cc:80/movie/KfTTMQ/UBNX3V/324.mp4
"""


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
def mixed_playlist() -> str:
    return MIXED_PLAYLIST


@pytest.fixture
def polluted_playlist() -> str:
    return POLLUTED_PLAYLIST
