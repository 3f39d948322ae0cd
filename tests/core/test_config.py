"""Tests for license_kg.config."""

from __future__ import annotations

import pytest

from license_kg.config import (
    DEFAULT_MAX_PATH_DEPTH,
    UNKNOWN_CATEGORY,
    is_unresolved_marker,
)


class TestDefaults:
    def test_path_depth(self) -> None:
        assert DEFAULT_MAX_PATH_DEPTH == 3

    def test_unknown_category_name(self) -> None:
        assert UNKNOWN_CATEGORY == "unknown"


class TestUnresolvedMarker:
    @pytest.mark.parametrize("value", [None, "", "  ", "NOASSERTION", "noassertion", "NONE"])
    def test_markers(self, value: str | None) -> None:
        assert is_unresolved_marker(value) is True

    @pytest.mark.parametrize("value", ["MIT", "Apache-2.0", "GPL-3.0-only"])
    def test_real_licenses(self, value: str) -> None:
        assert is_unresolved_marker(value) is False
