"""Tests for per-scheme version parsing and comparison."""

import pytest

from common.errors import InvalidVersion
from versioning.models import Version, VerComp, VersionScheme
from versioning.schemes import compare, parse_date, parse_relaxed, satisfies, validate


def rel(text, rev=0):
    return Version(text, VersionScheme.RELAXED, rev)


def semver(text, rev=0):
    return Version(text, VersionScheme.SEMVER, rev)


def date(text, rev=0):
    return Version(text, VersionScheme.DATE, rev)


def string(text, rev=0):
    return Version(text, VersionScheme.STRING, rev)


class TestRelaxedScheme:
    """Dot-separated segments with zero-filled tails."""

    def test_missing_trailing_segments_are_zero(self):
        assert compare(rel("1.2"), rel("1.2.0")) is VerComp.EQUAL
        assert compare(rel("1"), rel("1.0.0.0")) is VerComp.EQUAL

    def test_numeric_segments_compare_as_numbers(self):
        assert compare(rel("1.10"), rel("1.9")) is VerComp.GREATER
        assert compare(rel("0.9"), rel("1.2.0")) is VerComp.LESS

    def test_numeric_sorts_below_alphanumeric(self):
        assert compare(rel("1.0.1"), rel("1.0.a")) is VerComp.LESS
        assert compare(rel("1.b"), rel("1.a")) is VerComp.GREATER

    def test_prerelease_below_release(self):
        assert compare(rel("1.0-beta"), rel("1.0")) is VerComp.LESS
        assert compare(rel("1.0-alpha"), rel("1.0-beta")) is VerComp.LESS

    def test_build_metadata_ignored(self):
        assert compare(rel("1.0+build1"), rel("1.0+build2")) is VerComp.EQUAL

    def test_port_revision_breaks_ties(self):
        assert compare(rel("1.0", 2), rel("1.0", 1)) is VerComp.GREATER
        assert compare(rel("1.0.0", 1), rel("1.0", 1)) is VerComp.EQUAL

    def test_text_wins_over_port_revision(self):
        assert compare(rel("1.1", 0), rel("1.0", 9)) is VerComp.GREATER

    def test_parse_relaxed_splits_prerelease(self):
        main, pre = parse_relaxed("2.4.1-rc.2")
        assert main == [2, 4, 1]
        assert pre == ["rc", 2]

    @pytest.mark.parametrize("text", ["", "1..2", ".1", "1.2-", "1.2 3"])
    def test_invalid_relaxed_text(self, text):
        with pytest.raises(InvalidVersion):
            parse_relaxed(text)


class TestSemverScheme:
    """Strict semantic versions."""

    def test_ordering(self):
        assert compare(semver("2.0.0"), semver("1.10.0")) is VerComp.GREATER
        assert compare(semver("1.0.0-alpha"), semver("1.0.0")) is VerComp.LESS
        assert compare(semver("1.0.0-alpha"), semver("1.0.0-alpha.1")) is VerComp.LESS

    def test_build_metadata_does_not_order(self):
        assert compare(semver("1.0.0+a"), semver("1.0.0+b")) is VerComp.EQUAL

    def test_requires_three_components(self):
        with pytest.raises(InvalidVersion) as excinfo:
            validate(semver("1.0"))
        assert excinfo.value.scheme == "semver"


class TestDateScheme:
    """Calendar dates with optional disambiguators."""

    def test_dates_compare_as_calendar_dates(self):
        assert compare(date("2021-01-02"), date("2021-01-01.5")) is VerComp.GREATER
        assert compare(date("2020-12-31"), date("2021-01-01")) is VerComp.LESS

    def test_disambiguators(self):
        assert compare(date("2021-01-01"), date("2021-01-01.1")) is VerComp.LESS
        assert parse_date("2021-01-01.2.3")[1] == (2, 3)

    def test_port_revision_tie_break(self):
        assert compare(date("2021-01-01", 3), date("2021-01-01", 1)) is VerComp.GREATER

    @pytest.mark.parametrize("text", ["2021-13-01", "2021-1-1", "20210101", "2021-01-01.01"])
    def test_invalid_dates(self, text):
        with pytest.raises(InvalidVersion):
            parse_date(text)


class TestStringScheme:
    """Opaque strings support equality only."""

    def test_equal_text_falls_through_to_revision(self):
        assert compare(string("vista"), string("vista")) is VerComp.EQUAL
        assert compare(string("vista", 1), string("vista")) is VerComp.GREATER

    def test_different_text_is_incomparable(self):
        assert compare(string("b"), string("a")) is VerComp.INCOMPARABLE
        assert not satisfies(string("b"), string("a"))


class TestCrossScheme:
    """Scheme mixing and unspecified schemes."""

    def test_different_schemes_are_incomparable(self):
        assert compare(rel("1.0.0"), semver("1.0.0")) is VerComp.INCOMPARABLE
        assert compare(date("2021-01-01"), string("2021-01-01")) is VerComp.INCOMPARABLE

    def test_unspecified_scheme_adopts_the_other_side(self):
        assert compare(Version("1.2", None), rel("1.2.0")) is VerComp.EQUAL
        assert compare(semver("1.2.0"), Version("1.2.0", None)) is VerComp.EQUAL

    def test_satisfies(self):
        assert satisfies(rel("1.2.0"), rel("0.9"))
        assert satisfies(rel("1.2.0"), rel("1.2"))
        assert not satisfies(rel("1.2.0"), rel("1.3"))


class TestVersionModel:
    """Version dataclass helpers."""

    def test_str_includes_nonzero_revision(self):
        assert str(rel("1.0")) == "1.0"
        assert str(rel("1.0", 2)) == "1.0#2"

    def test_negative_revision_rejected(self):
        with pytest.raises(ValueError):
            Version("1.0", VersionScheme.RELAXED, -1)

    def test_scheme_name(self):
        assert Version("1.0", None).scheme_name == "unspecified"
        assert Version("1.0", None).with_scheme(VersionScheme.DATE).scheme is VersionScheme.DATE
