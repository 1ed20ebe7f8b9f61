"""Tests for the package-level exports."""

from __future__ import annotations

import pytest

import app
import cinecatalog
from app.models import Catalog
from app.playlist import parse_m3u


def test_parser_exports_resolve_lazily() -> None:
    assert app.parse_m3u is parse_m3u
    assert app.Catalog is Catalog


def test_unknown_attribute_raises() -> None:
    with pytest.raises(AttributeError):
        app.does_not_exist  # noqa: B018


def test_distribution_shim_reexports_application() -> None:
    assert cinecatalog.parse_m3u is parse_m3u
    assert cinecatalog.app is app.app
    assert cinecatalog.__version__ == "1.0.0"
