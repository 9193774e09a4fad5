"""Baseline/override version selection.

Precedence is fixed: an override beats the baseline, and the baseline beats
whatever a requester asks for. A requester's minimum is then validated
against the pick rather than used to move it.
"""

import logging
from typing import Mapping, Optional, Sequence

from common.errors import UnsatisfiableVersion
from common.logging_utils import extra_context, is_debug_enabled
from .models import Version, VerComp, VersionScheme
from .schemes import compare, satisfies

logger = logging.getLogger(__name__)


def _adopt_scheme(constraint: Version, scheme: Optional[VersionScheme]) -> Version:
    if constraint.scheme is None and scheme is not None:
        return constraint.with_scheme(scheme)
    return constraint


def check_minimum(name: str, selected: Version, minimum: Optional[Version], reason: str = "") -> None:
    """Raise UnsatisfiableVersion unless ``selected`` is at least ``minimum``."""
    if minimum is None:
        return
    minimum = _adopt_scheme(minimum, selected.scheme)
    result = compare(minimum, selected)
    if result in (VerComp.GREATER, VerComp.INCOMPARABLE):
        raise UnsatisfiableVersion(
            name,
            str(minimum),
            minimum.scheme_name,
            str(selected),
            selected.scheme_name,
            reason or ("schemes are incomparable" if result is VerComp.INCOMPARABLE else ""),
        )


def select_baseline(
    name: str,
    baseline: Mapping[str, Version],
    overrides: Mapping[str, Version],
    root_constraint: Optional[Version] = None,
    fallback: Optional[Version] = None,
    override_precedence: bool = True,
) -> Version:
    """Select the version of ``name`` for this resolution pass.

    Args:
        name: Package name.
        baseline: Baseline pins.
        overrides: User overrides; these win over the baseline.
        root_constraint: Explicit minimum stated by a root request, if any.
        fallback: Version used when nothing pins or constrains the package.
        override_precedence: When True an override is taken even if the root
            constraint asks for more; when False the constraint is also
            checked against overrides.

    Returns:
        The selected version.

    Raises:
        UnsatisfiableVersion: the constraint is greater than, or incomparable
            with, the pick; or there is nothing to pick from.
    """
    if name in overrides:
        selected = overrides[name]
        source = "override"
        if not override_precedence:
            check_minimum(name, selected, root_constraint, "override does not satisfy the root constraint")
    elif name in baseline:
        selected = baseline[name]
        source = "baseline"
        check_minimum(name, selected, root_constraint)
    elif root_constraint is not None:
        selected = _adopt_scheme(root_constraint, fallback.scheme if fallback else None)
        source = "constraint"
    elif fallback is not None:
        selected = fallback
        source = "manifest"
    else:
        raise UnsatisfiableVersion(name, "any", "unspecified", None, None,
                                   "package has no baseline entry and no declared version")

    if is_debug_enabled(logger):
        logger.debug(
            "Selected version",
            extra=extra_context(
                event="version_selected",
                component="selection",
                package=name,
                version=str(selected),
                scheme=selected.scheme_name,
                source=source,
            ),
        )
    return selected


def lowest_satisfying(name: str, available: Sequence[Version], minimum: Version) -> Version:
    """Return the lowest available version that satisfies ``minimum``.

    Available versions are scanned in declaration order and compared pairwise,
    so string-scheme packages only match an identical text.
    """
    best: Optional[Version] = None
    for candidate in available:
        constraint = _adopt_scheme(minimum, candidate.scheme)
        if not satisfies(candidate, constraint):
            continue
        if best is None or compare(candidate, best) is VerComp.LESS:
            best = candidate
    if best is None:
        raise UnsatisfiableVersion(name, str(minimum), minimum.scheme_name, None, None)
    return best
