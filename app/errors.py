"""Exceptions raised while loading playlists."""

from __future__ import annotations


class PlaylistError(Exception):
    """Base exception for playlist loading failures."""

    pass


class PlaylistTransportError(PlaylistError):
    """The playlist could not be retrieved.

    Attributes:
        status_code: Upstream HTTP status, when the server answered at all.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class PlaylistArchiveError(PlaylistTransportError):
    """A ZIP archive was unreadable or held no playlist file."""

    pass


class PlaylistValidationError(PlaylistError):
    """Retrieved content does not look like an M3U playlist."""

    pass
