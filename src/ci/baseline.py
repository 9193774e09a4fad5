"""CI baseline parsing and the exclusion filter applied to computed plans.

A CI baseline file lists expectations per port and triplet::

    # comment
    zlib:x64-linux = pass
    qt5:arm64-uwp  = skip
    libfoo:x86-windows = fail   # known broken

``fail`` entries become expected failures (or skips with ``skip_failures``),
``skip`` entries are never built, ``pass`` entries must succeed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from resolver.models import AnnotatedPlan, Classification, NodeKey, OrderedPlan

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(
    r"^(?P<port>[a-z0-9-]+)?(?P<colon>:)?(?P<triplet>[a-z0-9-]+)?[ \t]*(?P<eq>=)?[ \t]*"
    r"(?P<state>[A-Za-z]+)?[ \t]*(?P<trailing>.*)$"
)


class CiState(Enum):
    """Expectation declared for a port on a triplet."""
    FAIL = "fail"
    SKIP = "skip"
    PASS = "pass"


@dataclass(frozen=True)
class CiBaselineLine:
    """One parsed ``port:triplet = state`` line."""
    port_name: str
    triplet: str
    state: CiState


class CiBaselineParseError(ValueError):
    """A CI baseline line is malformed."""

    def __init__(self, origin: str, line: int, column: int, message: str):
        self.origin = origin
        self.line = line
        self.column = column
        super().__init__(f"{origin}:{line}:{column}: {message}")


def parse_ci_baseline(text: str, origin: str = "<ci-baseline>") -> List[CiBaselineLine]:
    """Parse CI baseline text.

    Raises:
        CiBaselineParseError: on the first malformed line; nothing is returned.
    """
    result: List[CiBaselineLine] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        column = len(raw) - len(raw.lstrip()) + 1
        match = _LINE_RE.match(line)
        if not match.group("port"):
            raise CiBaselineParseError(origin, lineno, column, "expected a port name")
        if not match.group("colon"):
            raise CiBaselineParseError(origin, lineno, column + match.end("port"), "expected ':'")
        if not match.group("triplet"):
            raise CiBaselineParseError(origin, lineno, column + match.end("colon"), "expected a triplet name")
        if not match.group("eq"):
            raise CiBaselineParseError(origin, lineno, column + match.end("triplet"), "expected '='")
        state_text = (match.group("state") or "").lower()
        try:
            state = CiState(state_text)
        except ValueError:
            at = match.start("state") if match.group("state") else match.start("trailing")
            raise CiBaselineParseError(
                origin, lineno, column + at, "expected 'fail', 'skip' or 'pass'"
            ) from None
        trailing = match.group("trailing")
        if trailing and not trailing.startswith("#"):
            raise CiBaselineParseError(
                origin, lineno, column + match.start("trailing"), "unrecognized content after the state"
            )
        result.append(CiBaselineLine(match.group("port"), match.group("triplet"), state))
    return result


@dataclass
class ExclusionsMap:
    """Per-triplet ``port -> Classification`` exclusions (SKIP or EXPECT_FAIL)."""
    triplets: Dict[str, Dict[str, Classification]] = field(default_factory=dict)

    def insert(self, triplet: str, exclusions: Optional[Mapping[str, Classification]] = None) -> None:
        """Register ``triplet`` and merge ``exclusions`` into it."""
        entry = self.triplets.setdefault(triplet, {})
        for name, kind in (exclusions or {}).items():
            if kind not in (Classification.SKIP, Classification.EXPECT_FAIL):
                raise ValueError(f"{name}: exclusions must be SKIP or EXPECT_FAIL, not {kind.value}")
            # A skip is stronger than an expected failure.
            if entry.get(name) is not Classification.SKIP:
                entry[name] = kind

    def for_triplet(self, triplet: str) -> Mapping[str, Classification]:
        return self.triplets.get(triplet, {})

    def is_excluded(self, name: str, triplet: str) -> bool:
        return name in self.for_triplet(triplet)


@dataclass(frozen=True)
class CiBaselineData:
    """Expectations that do not change plan classification."""
    expected_failures: FrozenSet[NodeKey] = frozenset()
    required_success: FrozenSet[NodeKey] = frozenset()


def parse_and_apply_ci_baseline(lines: List[CiBaselineLine], exclusions_map: ExclusionsMap,
                                skip_failures: bool = False) -> CiBaselineData:
    """Fold baseline lines into ``exclusions_map`` for the triplets it already holds.

    Lines for triplets not registered in the map are ignored.
    """
    expected_failures = set()
    required_success = set()
    for line in lines:
        if line.triplet not in exclusions_map.triplets:
            continue
        key = (line.port_name, line.triplet)
        if line.state is CiState.PASS:
            required_success.add(key)
        elif line.state is CiState.FAIL:
            expected_failures.add(key)
            kind = Classification.SKIP if skip_failures else Classification.EXPECT_FAIL
            exclusions_map.insert(line.triplet, {line.port_name: kind})
        else:
            exclusions_map.insert(line.triplet, {line.port_name: Classification.SKIP})
    return CiBaselineData(frozenset(expected_failures), frozenset(required_success))


def apply_baseline(plan: OrderedPlan, exclusions_for_triplet: Mapping[str, Classification],
                   triplet: Optional[str] = None) -> AnnotatedPlan:
    """Mark excluded actions SKIP or EXPECT_FAIL.

    Only classifications change: order, identities and dependency lists are
    copied as they are, so dependents of a skipped action keep the identity
    they would have if it were built.

    Args:
        plan: The computed plan.
        exclusions_for_triplet: ``package -> SKIP | EXPECT_FAIL`` for the active triplet.
        triplet: Active triplet; defaults to the plan's target triplet.
    """
    active = triplet or plan.target_triplet
    actions = []
    excluded: List[str] = []
    for action in plan:
        kind = exclusions_for_triplet.get(action.name) if action.triplet == active else None
        if kind is None:
            actions.append(action)
            continue
        if kind not in (Classification.SKIP, Classification.EXPECT_FAIL):
            raise ValueError(f"{action.name}: exclusions must be SKIP or EXPECT_FAIL, not {kind.value}")
        logger.debug("%s marked %s by CI baseline", action.spec, kind.value)
        actions.append(action.with_classification(kind))
        excluded.append(action.spec)
    return AnnotatedPlan(
        actions=tuple(actions),
        target_triplet=plan.target_triplet,
        host_triplet=plan.host_triplet,
        unsupported=plan.unsupported,
        excluded=tuple(excluded),
    )


def exclusions_from_text(text: str, triplets: Tuple[str, ...], origin: str = "<ci-baseline>",
                         skip_failures: bool = False) -> Tuple[ExclusionsMap, CiBaselineData]:
    """Parse baseline text and build the exclusions for ``triplets``."""
    exclusions = ExclusionsMap()
    for triplet in triplets:
        exclusions.insert(triplet)
    data = parse_and_apply_ci_baseline(parse_ci_baseline(text, origin), exclusions, skip_failures)
    return exclusions, data
