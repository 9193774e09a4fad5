"""Tests for baseline/override selection and minimum checks."""

import pytest

from common.errors import UnsatisfiableVersion
from versioning.models import Version, VersionScheme
from versioning.selection import check_minimum, lowest_satisfying, select_baseline


def rel(text, rev=0):
    return Version(text, VersionScheme.RELAXED, rev)


class TestSelectBaseline:
    """Precedence: override, then baseline, then root constraint, then fallback."""

    def test_override_beats_baseline(self):
        picked = select_baseline("zlib", {"zlib": rel("1.2")}, {"zlib": rel("1.3")})
        assert picked == rel("1.3")

    def test_baseline_used_without_override(self):
        assert select_baseline("zlib", {"zlib": rel("1.2")}, {}) == rel("1.2")

    def test_root_constraint_satisfied_by_baseline(self):
        picked = select_baseline("zlib", {"zlib": rel("1.2")}, {}, root_constraint=rel("1.1"))
        assert picked == rel("1.2")

    def test_root_constraint_greater_than_baseline_fails(self):
        with pytest.raises(UnsatisfiableVersion) as excinfo:
            select_baseline("zlib", {"zlib": rel("1.2")}, {}, root_constraint=rel("1.3"))
        err = excinfo.value
        assert err.package == "zlib"
        assert err.required == "1.3"
        assert err.selected == "1.2"
        assert err.required_scheme == err.selected_scheme == "relaxed"

    def test_incomparable_constraint_fails(self):
        baseline = {"icu": Version("74-1", VersionScheme.STRING)}
        with pytest.raises(UnsatisfiableVersion) as excinfo:
            select_baseline("icu", baseline, {}, root_constraint=rel("74"))
        assert "incomparable" in excinfo.value.reason
        assert excinfo.value.selected_scheme == "string"

    def test_constraint_without_scheme_adopts_pick_scheme(self):
        baseline = {"fmt": Version("10.1.0", VersionScheme.SEMVER)}
        picked = select_baseline("fmt", baseline, {}, root_constraint=Version("10.0.0", None))
        assert picked.text == "10.1.0"

    def test_port_revision_counts_against_constraint(self):
        with pytest.raises(UnsatisfiableVersion):
            select_baseline("zlib", {"zlib": rel("1.2", 1)}, {}, root_constraint=rel("1.2", 2))

    def test_constraint_used_when_nothing_pins(self):
        picked = select_baseline("fmt", {}, {}, root_constraint=Version("9.0", None), fallback=rel("10.0"))
        assert picked == rel("9.0")

    def test_fallback_used_last(self):
        assert select_baseline("fmt", {}, {}, fallback=rel("10.0")) == rel("10.0")

    def test_nothing_to_pick_fails(self):
        with pytest.raises(UnsatisfiableVersion) as excinfo:
            select_baseline("ghost", {}, {})
        assert excinfo.value.selected is None


class TestOverridePrecedence:
    """Both orderings of override versus explicit root constraint."""

    def test_override_wins_over_root_constraint(self):
        picked = select_baseline("zlib", {}, {"zlib": rel("1.0")}, root_constraint=rel("2.0"),
                                 override_precedence=True)
        assert picked == rel("1.0")

    def test_constraint_checked_against_override(self):
        with pytest.raises(UnsatisfiableVersion) as excinfo:
            select_baseline("zlib", {}, {"zlib": rel("1.0")}, root_constraint=rel("2.0"),
                            override_precedence=False)
        assert excinfo.value.selected == "1.0"
        assert "override" in excinfo.value.reason

    def test_satisfied_override_passes_either_way(self):
        for precedence in (True, False):
            picked = select_baseline("zlib", {"zlib": rel("1.0")}, {"zlib": rel("3.0")},
                                     root_constraint=rel("2.0"), override_precedence=precedence)
            assert picked == rel("3.0")


class TestHelpers:
    """check_minimum and lowest_satisfying."""

    def test_check_minimum_accepts_none(self):
        check_minimum("a", rel("1.0"), None)

    def test_check_minimum_rejects_greater(self):
        with pytest.raises(UnsatisfiableVersion):
            check_minimum("a", rel("1.0"), rel("1.0.1"))

    def test_lowest_satisfying_picks_lowest_match(self):
        available = [rel("2.0"), rel("1.0"), rel("1.5")]
        assert lowest_satisfying("a", available, rel("1.2")) == rel("1.5")

    def test_lowest_satisfying_adopts_scheme(self):
        available = [Version("1.0.0", VersionScheme.SEMVER), Version("2.0.0", VersionScheme.SEMVER)]
        picked = lowest_satisfying("a", available, Version("1.5.0", None))
        assert picked.text == "2.0.0"

    def test_lowest_satisfying_none_available(self):
        with pytest.raises(UnsatisfiableVersion) as excinfo:
            lowest_satisfying("a", [rel("1.0")], rel("2.0"))
        assert excinfo.value.selected is None
