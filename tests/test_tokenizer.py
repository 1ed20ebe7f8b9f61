"""Tests for splitting playlist text into entries."""

from __future__ import annotations

from app.playlist.tokenizer import (
    extract_attribute,
    is_payload_line,
    iter_entries,
    parse_attributes,
    split_directive,
)


def test_split_directive_ignores_commas_inside_quotes() -> None:
    line = (
        '#EXTINF:-1 tvg-name="Show: Blood, Bets" group-title="Netflix",'
        "Show: Blood, Bets S01E01"
    )

    metadata, title = split_directive(line)

    assert metadata == '#EXTINF:-1 tvg-name="Show: Blood, Bets" group-title="Netflix"'
    assert title == "Show: Blood, Bets S01E01"


def test_split_directive_falls_back_to_last_comma_with_unbalanced_quotes() -> None:
    metadata, title = split_directive('#EXTINF:-1 tvg-name="Broken,Title')

    assert metadata == '#EXTINF:-1 tvg-name="Broken'
    assert title == "Title"


def test_split_directive_without_comma_has_empty_title() -> None:
    assert split_directive("#EXTINF:-1") == ("#EXTINF:-1", "")


def test_parse_attributes_lowercases_keys_and_strips_values() -> None:
    attributes = parse_attributes('#EXTINF:-1 TVG-LOGO=" http://x/logo.png " group-title="Filmes"')

    assert attributes == {"tvg-logo": "http://x/logo.png", "group-title": "Filmes"}


def test_extract_attribute_prefers_strict_match() -> None:
    metadata = '#EXTINF:-1 group-title="Filmes"'

    value = extract_attribute(metadata, parse_attributes(metadata), "group-title")

    assert value.value == "Filmes"
    assert value.source == "strict"


def test_extract_attribute_recovers_unterminated_value() -> None:
    metadata = '#EXTINF:-1 tvg-name="Broken Name'

    value = extract_attribute(metadata, parse_attributes(metadata), "tvg-name")

    assert value.value == "Broken Name"
    assert value.source == "fallback"


def test_extract_attribute_reports_absent_values() -> None:
    value = extract_attribute("#EXTINF:-1", {}, "tvg-logo")

    assert not value
    assert value.source == "absent"


def test_payload_lines_are_matched_case_insensitively() -> None:
    assert is_payload_line("HTTP://example.com/a.mp4")
    assert is_payload_line("rtmp://example.com/live")
    assert not is_payload_line("udp://example.com/stream")


def test_iter_entries_pairs_directives_with_payloads() -> None:
    text = "\n".join(
        [
            "#EXTM3U",
            '#EXTINF:-1 group-title="Filmes",First',
            "#EXTVLCOPT:http-user-agent=test",
            "http://example.com/first.mp4",
            "",
            '#EXTINF:-1 group-title="Filmes",Overridden',
            '#EXTINF:-1 group-title="Filmes",Second',
            "https://example.com/second.mp4",
            "not a url",
        ]
    )

    entries = list(iter_entries(text))

    assert [entry.display_title for entry in entries] == ["First", "Second"]
    assert [entry.url for entry in entries] == [
        "http://example.com/first.mp4",
        "https://example.com/second.mp4",
    ]


def test_iter_entries_yields_orphan_payloads_with_empty_metadata() -> None:
    text = '#EXTINF:-1,Paired\nhttp://example.com/a.mp4\nhttp://example.com/b.mp4\n'

    entries = list(iter_entries(text))

    assert len(entries) == 2
    assert entries[1].metadata == ""
    assert entries[1].display_title == ""
    assert entries[1].url == "http://example.com/b.mp4"
