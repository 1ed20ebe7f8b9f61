"""Utility helpers for the CineCatalog service."""

from __future__ import annotations

import re
import unicodedata


WHITESPACE_RUN_RE = re.compile(r"\s{2,}")
BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    """Render a non-negative integer in lowercase base 36."""

    if value < 0:
        raise ValueError("base36 encoding expects a non-negative integer")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_id(value: str) -> str:
    """Return a short deterministic identifier for ``value``.

    The hash is the classic ``h * 31 + c`` rolling hash over UTF-16 code
    units wrapped to a signed 32-bit integer, so identifiers stay stable
    across processes. Distinct inputs can collide; identifiers are only used
    for equality inside a catalog.
    """

    encoded = value.encode("utf-16-le")
    hashed = 0
    for index in range(0, len(encoded), 2):
        code_unit = encoded[index] | (encoded[index + 1] << 8)
        hashed = ((hashed << 5) - hashed + code_unit) & 0xFFFFFFFF
    if hashed >= 0x80000000:
        hashed -= 0x100000000
    return to_base36(abs(hashed))


def collapse_whitespace(value: str) -> str:
    """Collapse runs of whitespace to a single space."""

    return WHITESPACE_RUN_RE.sub(" ", value)


def strip_accents(value: str) -> str:
    """Drop combining marks, e.g. ``"Episódio"`` becomes ``"Episodio"``."""

    decomposed = unicodedata.normalize("NFD", value)
    return "".join(char for char in decomposed if not unicodedata.combining(char))
