"""Version model: schemes, comparison and baseline/override selection."""

from .models import PackageRequest, Version, VerComp, VersionPins, VersionScheme
from .schemes import compare, satisfies
from .selection import select_baseline

__all__ = [
    "PackageRequest",
    "Version",
    "VerComp",
    "VersionPins",
    "VersionScheme",
    "compare",
    "satisfies",
    "select_baseline",
]
