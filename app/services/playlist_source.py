"""Retrieve playlist text from URLs and ZIP archives."""

from __future__ import annotations

import asyncio
import io
import logging
import re
import zipfile
import zlib

import httpx

from ..errors import PlaylistArchiveError, PlaylistTransportError, PlaylistValidationError
from ..filters import DEFAULT_FILTER_RULES, FilterRules
from ..models import Catalog
from ..playlist import parse_m3u

logger = logging.getLogger(__name__)

PLAYLIST_MARKERS = ("#EXTM3U", "#EXTINF")
PLAYLIST_FILE_RE = re.compile(r"\.m3u8?$", re.IGNORECASE)
ZIP_URL_RE = re.compile(r"\.zip(\?.*)?$", re.IGNORECASE)


def is_zip_url(url: str) -> bool:
    return bool(ZIP_URL_RE.search(url))


def looks_like_playlist(text: str) -> bool:
    return any(marker in text for marker in PLAYLIST_MARKERS)


def ensure_playlist_text(text: str, *, origin: str = "download") -> str:
    """Return ``text`` if it carries an M3U marker, else raise."""

    if not looks_like_playlist(text):
        raise PlaylistValidationError(
            f"Invalid content in {origin}: not an M3U playlist"
        )
    return text


def decode_playlist(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="replace")


def extract_playlist_from_zip(data: bytes) -> str:
    """Return the text of the first ``.m3u``/``.m3u8`` member of an archive."""

    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise PlaylistArchiveError("Invalid ZIP: archive could not be read") from exc

    with archive:
        member = next(
            (
                info
                for info in archive.infolist()
                if not info.is_dir() and PLAYLIST_FILE_RE.search(info.filename)
            ),
            None,
        )
        if member is None:
            raise PlaylistArchiveError("Invalid ZIP: no .m3u/.m3u8 file found")
        try:
            payload = archive.read(member)
        except (zipfile.BadZipFile, RuntimeError, NotImplementedError, zlib.error) as exc:
            raise PlaylistArchiveError(
                "Invalid ZIP: playlist member could not be read"
            ) from exc
        text = decode_playlist(payload)

    return ensure_playlist_text(text, origin=f"ZIP member {member.filename}")


async def parse_zip_archive(
    data: bytes, rules: FilterRules = DEFAULT_FILTER_RULES
) -> Catalog:
    """Extract and parse a zipped playlist without blocking the event loop."""

    text = await asyncio.to_thread(extract_playlist_from_zip, data)
    return parse_m3u(text, rules)


class PlaylistFetcher:
    """Download playlists over HTTP(S)."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        rules: FilterRules = DEFAULT_FILTER_RULES,
    ) -> None:
        self._client = http_client
        self._rules = rules

    async def _download(self, url: str, *, label: str) -> bytes:
        try:
            response = await self._client.get(url, follow_redirects=True)
        except httpx.HTTPError as exc:
            logger.warning("Failed to download %s from %s: %s", label, url, exc)
            raise PlaylistTransportError(
                f"Failed to download {label}: {exc.__class__.__name__}"
            ) from exc

        if not response.is_success:
            logger.warning(
                "Failed to download %s from %s: HTTP %s",
                label,
                url,
                response.status_code,
            )
            raise PlaylistTransportError(
                f"Failed to download {label}: {response.status_code}",
                status_code=response.status_code,
            )
        return response.content

    async def fetch_text(self, url: str) -> str:
        """Download a plain M3U playlist."""

        data = await self._download(url, label="M3U playlist")
        return ensure_playlist_text(decode_playlist(data))

    async def fetch_archive_text(self, url: str) -> str:
        """Download a ZIP archive and return the playlist inside it."""

        data = await self._download(url, label="M3U ZIP")
        return await asyncio.to_thread(extract_playlist_from_zip, data)

    async def fetch(self, url: str) -> str:
        """Download playlist text, unpacking ZIP archives by URL suffix."""

        if is_zip_url(url):
            return await self.fetch_archive_text(url)
        return await self.fetch_text(url)

    async def load_catalog(self, url: str) -> Catalog:
        text = await self.fetch(url)
        return parse_m3u(text, self._rules)
