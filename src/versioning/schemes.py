"""Per-scheme parsing and comparison of version text."""

import datetime
import re
from typing import List, Tuple, Union

import semantic_version

from common.errors import InvalidVersion
from .models import Version, VerComp, VersionScheme

_RELAXED_RE = re.compile(
    r"^(?P<main>[0-9A-Za-z]+(?:\.[0-9A-Za-z]+)*)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)
_DATE_RE = re.compile(r"^(?P<date>\d{4}-\d{2}-\d{2})(?P<rest>(?:\.(?:0|[1-9][0-9]*))*)$")

Segment = Union[int, str]


def _segment(token: str) -> Segment:
    return int(token) if token.isdigit() else token


def _cmp(a, b) -> VerComp:
    if a < b:
        return VerComp.LESS
    if a > b:
        return VerComp.GREATER
    return VerComp.EQUAL


def _compare_identifiers(a: List[Segment], b: List[Segment]) -> VerComp:
    """Compare identifier lists; numeric identifiers sort below alphanumeric ones."""
    for left, right in zip(a, b):
        if isinstance(left, int) and isinstance(right, str):
            return VerComp.LESS
        if isinstance(left, str) and isinstance(right, int):
            return VerComp.GREATER
        result = _cmp(left, right)
        if result is not VerComp.EQUAL:
            return result
    return _cmp(len(a), len(b))


def parse_relaxed(text: str) -> Tuple[List[Segment], List[Segment]]:
    """Split relaxed version text into (release segments, prerelease identifiers)."""
    match = _RELAXED_RE.match(text or "")
    if not match:
        raise InvalidVersion(text, VersionScheme.RELAXED.value)
    main = [_segment(part) for part in match.group("main").split(".")]
    pre = [_segment(part) for part in match.group("pre").split(".")] if match.group("pre") else []
    return main, pre


def parse_semver(text: str) -> semantic_version.Version:
    """Parse strict semantic version text."""
    try:
        return semantic_version.Version(text)
    except ValueError as e:
        raise InvalidVersion(text, VersionScheme.SEMVER.value, str(e)) from e


def parse_date(text: str) -> Tuple[datetime.date, Tuple[int, ...]]:
    """Parse ``YYYY-MM-DD`` with optional ``.N`` disambiguators."""
    match = _DATE_RE.match(text or "")
    if not match:
        raise InvalidVersion(text, VersionScheme.DATE.value,
                             "expected YYYY-MM-DD followed by optional .N disambiguators")
    try:
        date = datetime.date.fromisoformat(match.group("date"))
    except ValueError as e:
        raise InvalidVersion(text, VersionScheme.DATE.value, str(e)) from e
    rest = match.group("rest")
    extra = tuple(int(part) for part in rest.split(".")[1:]) if rest else ()
    return date, extra


def validate(version: Version) -> None:
    """Raise InvalidVersion if the text does not parse under its scheme."""
    if version.scheme is VersionScheme.RELAXED:
        parse_relaxed(version.text)
    elif version.scheme is VersionScheme.SEMVER:
        parse_semver(version.text)
    elif version.scheme is VersionScheme.DATE:
        parse_date(version.text)


def compare_text(a: str, b: str, scheme: VersionScheme) -> VerComp:
    """Compare version text under one scheme, ignoring port revisions."""
    if scheme is VersionScheme.STRING:
        return VerComp.EQUAL if a == b else VerComp.INCOMPARABLE

    if scheme is VersionScheme.SEMVER:
        left, right = parse_semver(a), parse_semver(b)
        if left < right:
            return VerComp.LESS
        if left > right:
            return VerComp.GREATER
        return VerComp.EQUAL

    if scheme is VersionScheme.DATE:
        return _cmp(parse_date(a), parse_date(b))

    a_main, a_pre = parse_relaxed(a)
    b_main, b_pre = parse_relaxed(b)
    width = max(len(a_main), len(b_main))
    a_main = a_main + [0] * (width - len(a_main))
    b_main = b_main + [0] * (width - len(b_main))
    result = _compare_identifiers(a_main, b_main)
    if result is not VerComp.EQUAL:
        return result
    # A release sorts above any of its prereleases.
    if not a_pre or not b_pre:
        return _cmp(not a_pre, not b_pre)
    return _compare_identifiers(a_pre, b_pre)


def compare(a: Version, b: Version) -> VerComp:
    """Compare two versions; equal text falls through to the port revision.

    Versions declared under different schemes are incomparable. A version
    without a scheme adopts the other side's scheme.
    """
    scheme_a = a.scheme or b.scheme or VersionScheme.RELAXED
    scheme_b = b.scheme or scheme_a
    if scheme_a is not scheme_b:
        return VerComp.INCOMPARABLE

    result = compare_text(a.text, b.text, scheme_a)
    if result is VerComp.EQUAL:
        return _cmp(a.port_revision, b.port_revision)
    return result


def satisfies(candidate: Version, minimum: Version) -> bool:
    """True when ``candidate`` is at least ``minimum`` under its scheme."""
    return compare(candidate, minimum) in (VerComp.GREATER, VerComp.EQUAL)
