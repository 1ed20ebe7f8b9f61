"""Title selection and cleanup for directive text."""

from __future__ import annotations

import re

from ..utils import collapse_whitespace

UNTITLED = "Untitled"

ATTRIBUTE_TAIL_RE = re.compile(
    r'(?:\s|")*(?:tvg-[\w-]+|group-title)\s*=\s*"[^"]*"?.*$',
    re.IGNORECASE,
)
POLLUTION_RE = re.compile(r"\b(?:tvg-name|tvg-logo|group-title)\s*=", re.IGNORECASE)
EDGE_QUOTES_RE = re.compile(r"^[\s\"']+|[\s\"']+$")


def sanitize_text(value: str) -> str:
    """Strip leaked attribute fragments, extra whitespace and edge quotes."""

    cleaned = ATTRIBUTE_TAIL_RE.sub("", value)
    cleaned = collapse_whitespace(cleaned)
    cleaned = EDGE_QUOTES_RE.sub("", cleaned)
    return cleaned.strip()


def is_polluted(value: str) -> bool:
    """Whether free text carries ``tvg-*=`` or ``group-title=`` fragments."""

    return bool(POLLUTION_RE.search(value))


def resolve_title(display_title: str, alternate_name: str) -> str:
    """Pick the display title for an entry.

    ``alternate_name`` is the ``tvg-name`` attribute. Polluted display text
    defers to it; otherwise the cleaned display text wins.
    """

    cleaned_display = sanitize_text(display_title)
    cleaned_alternate = sanitize_text(alternate_name)

    if is_polluted(display_title) and cleaned_alternate:
        chosen = cleaned_alternate
    else:
        chosen = cleaned_display
    return chosen or cleaned_alternate or UNTITLED
