"""Tests for downloading and unpacking playlists."""

from __future__ import annotations

import codecs
import io
import zipfile

import httpx
import pytest

from app.errors import (
    PlaylistArchiveError,
    PlaylistTransportError,
    PlaylistValidationError,
)
from app.playlist import parse_m3u
from app.services.playlist_source import (
    PlaylistFetcher,
    ensure_playlist_text,
    extract_playlist_from_zip,
    is_zip_url,
    parse_zip_archive,
)

ZIP_PLAYLIST = '#EXTM3U\n#EXTINF:-1 group-title="Filmes",Filme Zip\nhttp://example.com/zip.m3u8'


def build_zip(files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def build_fetcher(handler) -> PlaylistFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PlaylistFetcher(client)


def test_zip_urls_are_detected_by_suffix() -> None:
    assert is_zip_url("http://example.com/lista.zip")
    assert is_zip_url("http://example.com/LISTA.ZIP?token=1")
    assert not is_zip_url("http://example.com/lista.m3u")
    assert not is_zip_url("http://example.com/zip/lista.m3u8")


def test_ensure_playlist_text_rejects_html() -> None:
    with pytest.raises(PlaylistValidationError):
        ensure_playlist_text("<html>not found</html>")


def test_extract_playlist_from_zip_uses_first_playlist_member() -> None:
    data = build_zip(
        {
            "readme.txt": "ignore me",
            "lista/playlist.m3u": ZIP_PLAYLIST,
            "lista/other.M3U8": "#EXTM3U\n",
        }
    )

    assert extract_playlist_from_zip(data) == ZIP_PLAYLIST


def test_extract_playlist_from_zip_without_playlist_fails() -> None:
    data = build_zip({"readme.txt": "nothing to see"})

    with pytest.raises(PlaylistArchiveError, match="no .m3u/.m3u8"):
        extract_playlist_from_zip(data)


def test_extract_playlist_from_corrupt_archive_fails() -> None:
    with pytest.raises(PlaylistArchiveError, match="could not be read"):
        extract_playlist_from_zip(b"definitely not a zip")


def test_extract_playlist_from_damaged_member_fails() -> None:
    data = bytearray(build_zip({"playlist.m3u": ZIP_PLAYLIST}))
    # Flip one byte of the stored member so its CRC no longer matches.
    offset = data.index(b"Filme Zip")
    data[offset] ^= 0x01

    with pytest.raises(PlaylistArchiveError, match="playlist member could not be read"):
        extract_playlist_from_zip(bytes(data))


def test_extract_playlist_from_zip_validates_member_content() -> None:
    data = build_zip({"playlist.m3u": "<html></html>"})

    with pytest.raises(PlaylistValidationError):
        extract_playlist_from_zip(data)


@pytest.mark.anyio("asyncio")
async def test_zip_archive_parses_like_plain_text() -> None:
    catalog = await parse_zip_archive(build_zip({"lista/playlist.m3u": ZIP_PLAYLIST}))

    assert catalog == parse_m3u(ZIP_PLAYLIST)
    assert len(catalog.movies) == 1
    assert "Filme Zip" in catalog.movies[0].title


@pytest.mark.anyio("asyncio")
async def test_http_errors_carry_the_status_code() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="")

    fetcher = build_fetcher(handler)

    with pytest.raises(PlaylistTransportError, match="404") as excinfo:
        await fetcher.fetch("https://example.com/lista.m3u")
    assert excinfo.value.status_code == 404


@pytest.mark.anyio("asyncio")
async def test_non_playlist_body_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>not found</html>")

    fetcher = build_fetcher(handler)

    with pytest.raises(PlaylistValidationError, match="Invalid content"):
        await fetcher.fetch("https://example.com/lista.m3u_plus")


@pytest.mark.anyio("asyncio")
async def test_network_failures_become_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = build_fetcher(handler)

    with pytest.raises(PlaylistTransportError) as excinfo:
        await fetcher.fetch("https://example.com/lista.m3u")
    assert excinfo.value.status_code is None


@pytest.mark.anyio("asyncio")
async def test_fetch_follows_redirects_and_strips_bom() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old.m3u":
            return httpx.Response(302, headers={"location": "https://example.com/new.m3u"})
        return httpx.Response(200, content=codecs.BOM_UTF8 + ZIP_PLAYLIST.encode())

    fetcher = build_fetcher(handler)

    text = await fetcher.fetch("https://example.com/old.m3u")

    assert text == ZIP_PLAYLIST


@pytest.mark.anyio("asyncio")
async def test_zip_urls_are_downloaded_and_unpacked() -> None:
    archive = build_zip({"lista/playlist.m3u": ZIP_PLAYLIST})
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=archive)

    fetcher = build_fetcher(handler)

    catalog = await fetcher.load_catalog("https://example.com/lista.zip?token=abc")

    assert requested == ["https://example.com/lista.zip?token=abc"]
    assert catalog == parse_m3u(ZIP_PLAYLIST)
