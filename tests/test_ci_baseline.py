"""Tests for CI baseline parsing and plan exclusions."""

import pytest

from ci.baseline import (
    CiBaselineLine,
    CiBaselineParseError,
    CiState,
    ExclusionsMap,
    apply_baseline,
    exclusions_from_text,
    parse_and_apply_ci_baseline,
    parse_ci_baseline,
)
from ports.models import DictPackageLookup, Dependency, SourceControlFile
from resolver import resolve
from resolver.models import Classification
from versioning.models import PackageRequest, Version

TARGET = "x64-linux"

BASELINE_TEXT = """\
# Known state of the world
zlib:x64-linux = pass
qt5:x64-linux  = skip
libfoo:x64-linux = fail   # broken upstream
libfoo:arm64-osx = fail
"""


class TestParseCiBaseline:

    def test_parses_lines_and_comments(self):
        lines = parse_ci_baseline(BASELINE_TEXT)
        assert lines == [
            CiBaselineLine("zlib", "x64-linux", CiState.PASS),
            CiBaselineLine("qt5", "x64-linux", CiState.SKIP),
            CiBaselineLine("libfoo", "x64-linux", CiState.FAIL),
            CiBaselineLine("libfoo", "arm64-osx", CiState.FAIL),
        ]

    def test_state_is_case_insensitive(self):
        assert parse_ci_baseline("zlib:x64-linux=FAIL")[0].state is CiState.FAIL

    @pytest.mark.parametrize("text,column,fragment", [
        ("zlib x64-linux = fail", 5, "expected ':'"),
        ("zlib: = fail", 6, "expected a triplet name"),
        ("zlib:x64-linux fail", 15, "expected '='"),
        ("zlib:x64-linux = maybe", 18, "expected 'fail', 'skip' or 'pass'"),
        ("zlib:x64-linux = fail extra", 23, "unrecognized content"),
        ("= fail", 1, "expected a port name"),
    ])
    def test_errors_carry_location(self, text, column, fragment):
        with pytest.raises(CiBaselineParseError) as excinfo:
            parse_ci_baseline("# header\n" + text, origin="ci.baseline.txt")
        err = excinfo.value
        assert err.line == 2
        assert err.column == column
        assert fragment in str(err)
        assert str(err).startswith("ci.baseline.txt:2:")

    def test_indented_line_column(self):
        with pytest.raises(CiBaselineParseError) as excinfo:
            parse_ci_baseline("   zlib x64-linux = fail")
        assert excinfo.value.column == 8


class TestExclusions:

    def test_only_registered_triplets(self):
        exclusions, data = exclusions_from_text(BASELINE_TEXT, (TARGET,))
        assert exclusions.for_triplet(TARGET) == {
            "qt5": Classification.SKIP,
            "libfoo": Classification.EXPECT_FAIL,
        }
        assert exclusions.for_triplet("arm64-osx") == {}
        assert data.expected_failures == {("libfoo", TARGET)}
        assert data.required_success == {("zlib", TARGET)}

    def test_skip_failures(self):
        exclusions, data = exclusions_from_text(BASELINE_TEXT, (TARGET,), skip_failures=True)
        assert exclusions.for_triplet(TARGET)["libfoo"] is Classification.SKIP
        assert ("libfoo", TARGET) in data.expected_failures

    def test_skip_beats_expected_failure(self):
        exclusions = ExclusionsMap()
        exclusions.insert(TARGET)
        lines = [
            CiBaselineLine("a", TARGET, CiState.SKIP),
            CiBaselineLine("a", TARGET, CiState.FAIL),
        ]
        parse_and_apply_ci_baseline(lines, exclusions)
        assert exclusions.for_triplet(TARGET)["a"] is Classification.SKIP
        assert exclusions.is_excluded("a", TARGET)

    def test_insert_rejects_other_classifications(self):
        with pytest.raises(ValueError):
            ExclusionsMap().insert(TARGET, {"a": Classification.NEEDS_BUILD})


class TestApplyBaseline:

    @pytest.fixture
    def plan(self):
        lookup = DictPackageLookup([
            SourceControlFile("app", Version("1.0"), (Dependency("libfoo"), Dependency("qt5"))),
            SourceControlFile("libfoo", Version("2.0")),
            SourceControlFile("qt5", Version("5.15")),
        ])
        return resolve([PackageRequest("app")], {}, {}, TARGET, TARGET, lookup=lookup)

    def test_marks_excluded_actions(self, plan):
        exclusions, _ = exclusions_from_text(BASELINE_TEXT, (TARGET,))
        annotated = apply_baseline(plan, exclusions.for_triplet(TARGET))
        assert annotated.find("qt5").classification is Classification.SKIP
        assert annotated.find("libfoo").classification is Classification.EXPECT_FAIL
        assert annotated.find("app").classification is Classification.NEEDS_BUILD
        assert annotated.excluded == ("libfoo:x64-linux", "qt5:x64-linux")

    def test_graph_and_identities_untouched(self, plan):
        annotated = apply_baseline(plan, {"qt5": Classification.SKIP})
        assert [a.key for a in annotated] == [a.key for a in plan]
        assert [a.abi for a in annotated] == [a.abi for a in plan]
        assert annotated.find("app").dependency_abis == plan.find("app").dependency_abis

    def test_other_triplet_is_untouched(self, plan):
        annotated = apply_baseline(plan, {"qt5": Classification.SKIP}, triplet="arm64-osx")
        assert annotated.excluded == ()
        assert annotated.find("qt5").classification is Classification.NEEDS_BUILD

    def test_excluded_listed_in_output(self, plan):
        annotated = apply_baseline(plan, {"qt5": Classification.SKIP})
        assert annotated.to_dict()["excluded"] == ["qt5:x64-linux"]
