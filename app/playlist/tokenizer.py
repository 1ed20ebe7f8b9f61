"""Split raw M3U text into directive/payload pairs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Literal

DIRECTIVE_PREFIX = "#EXTINF:"
PAYLOAD_PREFIXES = ("http", "rtmp")

ATTRIBUTE_RE = re.compile(r'([\w-]+)="([^"]*)"')

AttributeSource = Literal["strict", "fallback", "absent"]


@dataclass(frozen=True, slots=True)
class PlaylistEntry:
    """One ``#EXTINF`` directive paired with the payload URL that follows it."""

    metadata: str
    display_title: str
    url: str


@dataclass(frozen=True, slots=True)
class AttributeValue:
    """An attribute value tagged with the strategy that recovered it."""

    value: str
    source: AttributeSource

    def __bool__(self) -> bool:
        return bool(self.value)


ABSENT = AttributeValue("", "absent")


def split_directive(line: str) -> tuple[str, str]:
    """Split a directive line into its attributes and display title.

    The split happens at the first comma outside double quotes, so
    ``tvg-name="Blood, Bets"`` stays intact. Without such a comma the last
    comma is used; without any comma the whole line is attributes.
    """

    in_quotes = False
    for index, char in enumerate(line):
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            return line[:index], line[index + 1 :]

    fallback = line.rfind(",")
    if fallback != -1:
        return line[:fallback], line[fallback + 1 :]
    return line, ""


def parse_attributes(metadata: str) -> dict[str, str]:
    """Return ``key="value"`` pairs with lowercase keys."""

    return {
        match.group(1).lower(): match.group(2).strip()
        for match in ATTRIBUTE_RE.finditer(metadata)
    }


def extract_attribute(
    metadata: str, attributes: dict[str, str], key: str
) -> AttributeValue:
    """Recover ``key`` from strictly parsed attributes, then loosely.

    The loose pass tolerates a missing closing quote by reading up to the
    next comma.
    """

    strict = attributes.get(key.lower(), "")
    if strict:
        return AttributeValue(strict, "strict")

    loose = re.search(rf'{re.escape(key)}="([^,]*)', metadata, flags=re.IGNORECASE)
    if loose:
        value = loose.group(1).strip()
        if value:
            return AttributeValue(value, "fallback")
    return ABSENT


def is_payload_line(line: str) -> bool:
    return line.lower().startswith(PAYLOAD_PREFIXES)


def iter_entries(text: str) -> Iterator[PlaylistEntry]:
    """Yield an entry for every payload line in ``text``.

    A payload without a preceding directive still yields an entry with empty
    metadata and title.
    """

    metadata = ""
    display_title = ""
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith(DIRECTIVE_PREFIX):
            metadata, display_title = split_directive(line)
            display_title = display_title.strip()
            continue
        if line.startswith("#") or not is_payload_line(line):
            continue

        yield PlaylistEntry(metadata=metadata, display_title=display_title, url=line)
        metadata = ""
        display_title = ""
