"""Data models for versions, schemes and version pins."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, Optional


class VersionScheme(Enum):
    """Enum for supported version schemes."""
    RELAXED = "relaxed"
    SEMVER = "semver"
    DATE = "date"
    STRING = "string"


class VerComp(Enum):
    """Outcome of comparing two versions."""
    LESS = "less"
    EQUAL = "equal"
    GREATER = "greater"
    INCOMPARABLE = "incomparable"


# Manifest keys that declare the version text and imply its scheme.
SCHEME_KEYS = {
    "version": VersionScheme.RELAXED,
    "version-semver": VersionScheme.SEMVER,
    "version-date": VersionScheme.DATE,
    "version-string": VersionScheme.STRING,
}


@dataclass(frozen=True)
class Version:
    """A version text under a scheme plus the port revision.

    ``scheme`` may be None for constraints written without a scheme; such a
    constraint adopts the scheme of the package it is checked against.
    """
    text: str
    scheme: Optional[VersionScheme] = VersionScheme.RELAXED
    port_revision: int = 0

    def __post_init__(self):
        if self.port_revision < 0:
            raise ValueError(f"port revision must be non-negative: {self.port_revision}")

    def with_scheme(self, scheme: VersionScheme) -> "Version":
        """Return a copy interpreted under ``scheme``."""
        return replace(self, scheme=scheme)

    @property
    def scheme_name(self) -> str:
        """Scheme name for diagnostics."""
        return self.scheme.value if self.scheme else "unspecified"

    def __str__(self) -> str:
        if self.port_revision:
            return f"{self.text}#{self.port_revision}"
        return self.text


# A version pin per package name (baseline entry or override).
VersionPins = Dict[str, Version]


@dataclass(frozen=True)
class PackageRequest:
    """A root request: package name, features and an optional explicit minimum.

    Requests target the target triplet unless ``host`` is set.
    """
    name: str
    features: FrozenSet[str] = frozenset()
    default_features: bool = True
    version: Optional[Version] = None
    host: bool = False
    raw_token: Optional[str] = None
