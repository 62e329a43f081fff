"""Tests for npm range handling."""

import pytest
from packaging.version import Version

from core.semver import (
    bump_range,
    is_newer,
    min_version,
    parse_range,
    parse_version,
    range_prefix,
    satisfies,
)


class TestSatisfies:
    """Test range matching."""

    @pytest.mark.parametrize(
        "version,range_text,expected",
        [
            ("1.0.6", "^1.0.5", True),
            ("1.0.6", "^1.0.3", True),
            ("2.0.0", "^1.0.0", False),
            ("0.2.5", "^0.2.3", True),
            ("0.3.0", "^0.2.3", False),
            ("0.0.4", "^0.0.3", False),
            ("1.2.9", "~1.2.3", True),
            ("1.3.0", "~1.2.3", False),
            ("1.9.0", "1.x", True),
            ("1.2.3", "1.2.3", True),
            ("1.2.4", "1.2.3", False),
            ("3.1.0", ">=2.0.0", True),
            ("1.5.0", ">=1.0.0 <2.0.0", True),
            ("1.5.0", ">= 1.0.0 < 1.5.0", False),
            ("2.5.0", "1.x || ^2.1.0", True),
            ("1.4.9", "1.0.0 - 1.4", True),
            ("1.5.0", "1.0.0 - 1.4", False),
            ("5.0.0", "*", True),
            ("5.0.0", "", True),
        ],
    )
    def test_npm_ranges(self, version, range_text, expected):
        """Should follow npm semantics for common range forms."""
        assert satisfies(version, range_text) is expected

    def test_prerelease_excluded_from_plain_range(self):
        """A prerelease doesn't satisfy a range without prereleases."""
        assert not satisfies("2.0.0-rc.1", "^1.0.0")

    def test_prerelease_range(self):
        """A prerelease satisfies a range that opts into prereleases."""
        assert satisfies("1.0.0-rc.2", "^1.0.0-rc.1")

    def test_non_semver_ranges(self):
        """Protocols, paths and tags never satisfy a version."""
        for range_text in ["npm:string-width@^4.2.0", "file:../core", "workspace:*", "latest"]:
            assert parse_range(range_text) is None
            assert not satisfies("1.0.0", range_text)

    def test_invalid_version(self):
        """Unorderable versions never satisfy a range."""
        assert parse_version("1.0.0-next.3") is None
        assert not satisfies("1.0.0-next.3", "*")

    @pytest.mark.parametrize("text", ["1.0.0-1", "1.0.0-post.1", "1.0.0-r2"])
    def test_numeric_prerelease_is_unorderable(self, text):
        """Prereleases that PEP 440 would read as post releases are unorderable."""
        assert parse_version(text) is None
        assert not satisfies(text, "^1.0.0")
        assert not is_newer(text, "1.0.0")
        assert not is_newer("1.0.0", text)

    def test_numeric_prerelease_range(self):
        """A range built on a numeric prerelease is not a semver range."""
        assert parse_range(">=1.0.0-1") is None
        assert min_version("^1.0.0-1") is None


class TestRangeHelpers:
    """Test helpers used to rewrite ranges."""

    def test_min_version(self):
        """Should return the lowest admitted version."""
        assert min_version("^1.0.5") == Version("1.0.5")
        assert min_version("1.x || >=0.5.0") == Version("0.5.0")
        assert min_version("*") == Version("0.0.0")
        assert min_version("file:../core") is None

    @pytest.mark.parametrize(
        "range_text,prefix",
        [
            ("^1.0.0", "^"),
            ("~1.2.3", "~"),
            (">=1.0.0", ">="),
            ("1.2.3", ""),
            ("1.x", "^"),
            (">=1.0.0 <2.0.0", "^"),
        ],
    )
    def test_range_prefix(self, range_text, prefix):
        """Should keep simple operators and fall back to a caret."""
        assert range_prefix(range_text) == prefix

    def test_bump_range(self):
        """Should swap the version and keep the operator."""
        assert bump_range("^1.0.0", "2.0.0") == "^2.0.0"
        assert bump_range("~0.3.1", "0.4.0") == "~0.4.0"
        assert bump_range("1.0.0", "2.0.0") == "2.0.0"

    def test_is_newer(self):
        """Should compare versions numerically."""
        assert is_newer("1.0.10", "1.0.9")
        assert not is_newer("1.0.6", "1.0.6")
        assert not is_newer("1.0.5", "1.0.6")
        assert is_newer("1.0.0", "1.0.0-rc.1")
