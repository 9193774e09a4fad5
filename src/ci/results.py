"""Comparison of build results against CI baseline expectations."""

from __future__ import annotations

from enum import Enum
from typing import List, Mapping, Optional

from resolver.models import NodeKey, format_key
from .baseline import CiBaselineData


class BuildResult(Enum):
    """Outcome the orchestrator reports for one action."""
    SUCCEEDED = "succeeded"
    BUILD_FAILED = "build-failed"
    POST_BUILD_CHECKS_FAILED = "post-build-checks-failed"
    FILE_CONFLICTS = "file-conflicts"
    CASCADED_DUE_TO_MISSING_DEPENDENCIES = "cascaded-due-to-missing-dependencies"
    EXCLUDED = "excluded"
    CACHE_MISSING = "cache-missing"


_FAILURES = {
    BuildResult.BUILD_FAILED,
    BuildResult.POST_BUILD_CHECKS_FAILED,
    BuildResult.FILE_CONFLICTS,
}


def format_ci_result(
    key: NodeKey,
    result: BuildResult,
    cidata: CiBaselineData,
    cifile: Optional[str] = None,
    allow_unexpected_passing: bool = False,
    is_independent: bool = False,
) -> Optional[str]:
    """Return a diagnostic when ``result`` contradicts the baseline, else None.

    Args:
        key: ``(package, triplet)`` of the action.
        result: Reported build result.
        cidata: Expected failures and required successes.
        cifile: Baseline file path, for the message.
        allow_unexpected_passing: Do not report a pass of an expected failure.
        is_independent: The action was built in isolation (feature testing).
    """
    spec = format_key(key)
    where = f" in {cifile}" if cifile else ""
    if result in _FAILURES:
        if key in cidata.expected_failures:
            return None
        if is_independent:
            return f"REGRESSION: {spec} failed with {result.value}. Please fix it."
        if cifile:
            return (f"REGRESSION: {spec} failed with {result.value}. If expected, "
                    f"add {spec}=fail to {cifile}.")
        return f"REGRESSION: {spec} failed with {result.value}."
    if result is BuildResult.SUCCEEDED:
        if not allow_unexpected_passing and key in cidata.expected_failures:
            return f"PASSING, REMOVE FROM FAIL LIST: {spec}{where}"
        return None
    if result is BuildResult.CASCADED_DUE_TO_MISSING_DEPENDENCIES:
        if key in cidata.required_success:
            return f"REGRESSION: {spec} cascaded, but it is required to pass{where}"
    return None


def collect_regressions(
    results: Mapping[NodeKey, BuildResult],
    cidata: CiBaselineData,
    cifile: Optional[str] = None,
    allow_unexpected_passing: bool = False,
) -> List[str]:
    """Diagnostics for every result that contradicts the baseline, sorted by spec."""
    messages = []
    for key in sorted(results):
        message = format_ci_result(key, results[key], cidata, cifile, allow_unexpected_passing)
        if message:
            messages.append(message)
    return messages
