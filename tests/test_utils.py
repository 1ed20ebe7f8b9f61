"""Tests for utility helpers."""

from __future__ import annotations

import pytest

from app.utils import collapse_whitespace, generate_id, strip_accents, to_base36


def test_to_base36_renders_lowercase_digits() -> None:
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"


def test_to_base36_rejects_negative_values() -> None:
    with pytest.raises(ValueError):
        to_base36(-1)


def test_generate_id_matches_rolling_hash() -> None:
    # "a" hashes to 97 and "ab" to 97 * 31 + 98.
    assert generate_id("a") == "2p"
    assert generate_id("ab") == "2e9"
    assert generate_id("") == "0"


def test_generate_id_is_deterministic_and_wraps() -> None:
    long_value = "Peaky Blinders: Sangue, Apostas e Navalhas" * 10

    first = generate_id(long_value)

    assert first == generate_id(long_value)
    assert first.isalnum()
    assert int(first, 36) <= 2**31


def test_generate_id_counts_utf16_code_units() -> None:
    # Characters outside the BMP contribute two code units.
    assert generate_id("\U0001F600") == to_base36(0xD83D * 31 + 0xDE00)
    assert generate_id("é") == to_base36(ord("é"))


def test_collapse_whitespace() -> None:
    assert collapse_whitespace("a   b\t\tc d") == "a b c d"


def test_strip_accents() -> None:
    assert strip_accents("Episódio Séries") == "Episodio Series"
