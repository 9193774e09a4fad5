"""CI baseline expectations and the plan exclusion filter."""

from .baseline import (
    CiBaselineData,
    CiBaselineLine,
    CiBaselineParseError,
    CiState,
    ExclusionsMap,
    apply_baseline,
    exclusions_from_text,
    parse_and_apply_ci_baseline,
    parse_ci_baseline,
)
from .results import BuildResult, collect_regressions, format_ci_result

__all__ = [
    "BuildResult",
    "CiBaselineData",
    "CiBaselineLine",
    "CiBaselineParseError",
    "CiState",
    "ExclusionsMap",
    "apply_baseline",
    "collect_regressions",
    "exclusions_from_text",
    "format_ci_result",
    "parse_and_apply_ci_baseline",
    "parse_ci_baseline",
]
