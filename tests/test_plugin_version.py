"""Tests for version constraint matching."""

import pytest

from devserver.plugins.version import max_satisfying, satisfies


class TestSatisfies:
    """Tests for satisfies."""

    @pytest.mark.parametrize(
        "version, constraint, expected",
        [
            ("1.2.0", "^1.0.0", True),
            ("2.0.0", "^1.0.0", False),
            ("0.2.5", "^0.2.3", True),
            ("0.3.0", "^0.2.3", False),
            ("1.2.9", "~1.2.3", True),
            ("1.3.0", "~1.2.3", False),
            ("1.9.0", "1.x", True),
            ("0.4.0", "*", True),
            ("0.4.0", None, True),
            ("1.5.0", ">=1.0.0 <2.0.0", True),
            ("2.0.0", "1.0.0 - 2.0.0", True),
            ("3.1.0", "^1.0.0 || ^3.0.0", True),
            ("1.4.0", ">=1.0,<2", True),
            ("1.4.0", "~=1.5", False),
            ("1.0.0", "1.0.0", True),
        ],
    )
    def test_constraints(self, version, constraint, expected):
        assert satisfies(version, constraint) is expected

    def test_invalid_version_never_satisfies(self):
        assert satisfies("not-a-version", "*") is False

    def test_invalid_constraint_raises(self):
        with pytest.raises(ValueError):
            satisfies("1.0.0", "banana")


class TestMaxSatisfying:
    """Tests for max_satisfying."""

    def test_picks_highest_match(self):
        assert max_satisfying(["0.9.0", "1.0.0", "1.2.0"], "^1.0.0") == "1.2.0"

    def test_no_match(self):
        assert max_satisfying(["1.0.0"], "^9.9.9") is None

    def test_skips_prereleases_and_garbage(self):
        assert max_satisfying(["1.0.0", "1.1.0b1", "nightly"], "*") == "1.0.0"
