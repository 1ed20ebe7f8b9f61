"""M3U playlist parsing: tokenize, resolve titles, classify, dedupe, assemble."""

from __future__ import annotations

import logging

from ..filters import DEFAULT_FILTER_RULES, FilterRules
from ..models import UNCATEGORIZED_GROUP, Catalog, ContentItem
from ..utils import generate_id
from .assembler import assemble_catalog
from .classifier import Classification, classify
from .dedupe import dedupe_items
from .titles import resolve_title, sanitize_text
from .tokenizer import PlaylistEntry, extract_attribute, iter_entries, parse_attributes

__all__ = [
    "Classification",
    "PlaylistEntry",
    "assemble_catalog",
    "build_item",
    "classify",
    "dedupe_items",
    "iter_entries",
    "parse_m3u",
]

logger = logging.getLogger(__name__)


def build_item(
    entry: PlaylistEntry, rules: FilterRules = DEFAULT_FILTER_RULES
) -> ContentItem | None:
    """Turn one playlist entry into a catalog item, or ``None`` if excluded."""

    attributes = parse_attributes(entry.metadata)
    alternate_name = extract_attribute(entry.metadata, attributes, "tvg-name")
    logo = extract_attribute(entry.metadata, attributes, "tvg-logo")
    group = extract_attribute(entry.metadata, attributes, "group-title")

    title = resolve_title(entry.display_title, alternate_name.value)
    group_name = sanitize_text(group.value) or UNCATEGORIZED_GROUP
    logo_url = sanitize_text(logo.value) or None

    classification = classify(title, group_name, rules)
    if classification.outcome == "excluded":
        return None

    return ContentItem(
        id=generate_id(title + entry.url),
        title=title,
        url=entry.url,
        logo=logo_url,
        group=group_name,
        type=classification.outcome,
        season_number=classification.season_number,
        episode_number=classification.episode_number,
        episode_title=classification.episode_title,
        series_id=classification.series_id,
        series_title=classification.series_title,
    )


def parse_m3u(text: str, rules: FilterRules = DEFAULT_FILTER_RULES) -> Catalog:
    """Parse playlist text into a catalog snapshot."""

    items: list[ContentItem] = []
    excluded = 0
    for entry in iter_entries(text):
        item = build_item(entry, rules)
        if item is None:
            excluded += 1
            continue
        items.append(item)

    unique = dedupe_items(items, rules)
    catalog = assemble_catalog(unique)
    logger.debug(
        "Parsed playlist: %s entries, %s excluded, %s duplicates dropped",
        len(items) + excluded,
        excluded,
        len(items) - len(unique),
    )
    return catalog
