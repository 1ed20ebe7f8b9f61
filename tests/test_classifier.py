"""Tests for movie/series/excluded classification."""

from __future__ import annotations

import pytest

from app.filters import DEFAULT_FILTER_RULES
from app.playlist.classifier import classify, is_excluded, match_episode
from app.utils import generate_id


@pytest.mark.parametrize(
    ("title", "season", "episode", "series_title", "episode_title"),
    [
        ("Minha Série S01E02 - Episódio 2", 1, 2, "Minha Série", "Episódio 2"),
        ("La Casa de Papel T02E05", 2, 5, "La Casa de Papel", None),
        ("Friends 3x07 The One", 3, 7, "Friends", "The One"),
        ("Dark Temporada 2 Episódio 4", 2, 4, "Dark", None),
        ("Dark temporada 1 episodio 3", 1, 3, "Dark", None),
    ],
)
def test_episode_markers_are_parsed(
    title: str,
    season: int,
    episode: int,
    series_title: str,
    episode_title: str | None,
) -> None:
    result = classify(title, "Netflix")

    assert result.outcome == "series"
    assert result.season_number == season
    assert result.episode_number == episode
    assert result.series_title == series_title
    assert result.episode_title == episode_title


def test_first_matching_pattern_wins() -> None:
    result = match_episode("Show S02E03 1x09")

    assert result is not None
    assert (result.season_number, result.episode_number) == (2, 3)


def test_marker_at_start_keeps_full_title_as_series_title() -> None:
    result = classify("S01E01 Pilot", "Netflix")

    assert result.series_title == "S01E01 Pilot"
    assert result.episode_title == "Pilot"


def test_series_keyword_without_marker_defaults_to_first_episode() -> None:
    result = classify("Chaves", "Séries Clássicas")

    assert result.outcome == "series"
    assert (result.season_number, result.episode_number) == (1, 1)
    assert result.series_title == "Chaves"


def test_plain_titles_are_movies() -> None:
    result = classify("Filme A", "Filmes")

    assert result.outcome == "movie"
    assert result.series_id is None


def test_series_id_is_derived_from_series_title() -> None:
    first = classify("Dark S01E01", "Netflix")
    second = classify("Dark S02E04", "Netflix")

    assert first.series_id == second.series_id == generate_id("Dark")


@pytest.mark.parametrize(
    ("title", "group"),
    [
        ("Globo SP", "Canais Abertos"),
        ("Jogo do dia", "Futebol Ao Vivo"),
        ("Late Show", "XXX Adultos"),
        ("Noite Quente +18", "Filmes"),
    ],
)
def test_live_and_adult_entries_are_excluded(title: str, group: str) -> None:
    assert is_excluded(title, group)
    assert classify(title, group).outcome == "excluded"


def test_exclusion_runs_before_episode_matching() -> None:
    assert classify("Reality S01E01", "Adulto").outcome == "excluded"


def test_extended_rules_exclude_configured_keywords() -> None:
    rules = DEFAULT_FILTER_RULES.extend(adult=("forbidden",))

    assert classify("Forbidden Tales", "Filmes", rules).outcome == "excluded"
    assert classify("Forbidden Tales", "Filmes").outcome == "movie"
