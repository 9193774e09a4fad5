"""Error types raised by version selection, feature expansion and planning.

Every resolution failure derives from ``ResolutionError`` and aborts the
whole pass. The structured attributes on each subclass are what the CLI and
callers use to render a diagnostic; ``str()`` gives a one-line summary.
"""
from __future__ import annotations

from typing import Optional, Sequence, Tuple


class InvalidVersion(ValueError):
    """Version text does not parse under its declared scheme."""

    def __init__(self, text: str, scheme: str, reason: str = ""):
        self.text = text
        self.scheme = scheme
        detail = f": {reason}" if reason else ""
        super().__init__(f"'{text}' is not a valid {scheme} version{detail}")


class QualifierSyntaxError(ValueError):
    """A platform qualifier expression is malformed."""

    def __init__(self, expression: str, position: int, message: str):
        self.expression = expression
        self.position = position
        super().__init__(f"{message} at column {position + 1} in '{expression}'")


class ResolutionError(Exception):
    """Base class for errors that abort a resolution pass."""

    kind = "ResolutionError"


class UnsatisfiableVersion(ResolutionError):
    """A constraint cannot be met by the version picked for a package."""

    kind = "UnsatisfiableVersion"

    def __init__(self, package: str, required: str, required_scheme: str,
                 selected: Optional[str], selected_scheme: Optional[str], reason: str = ""):
        self.package = package
        self.required = required
        self.required_scheme = required_scheme
        self.selected = selected
        self.selected_scheme = selected_scheme
        self.reason = reason
        if selected is None:
            msg = f"{package}: no available version satisfies >= {required} ({required_scheme})"
        else:
            msg = (f"{package}: requires >= {required} ({required_scheme}) "
                   f"but {selected} ({selected_scheme}) was selected")
        if reason:
            msg = f"{msg}; {reason}"
        super().__init__(msg)


class VersionConflict(ResolutionError):
    """Two requesters computed different versions for one package and triplet."""

    kind = "VersionConflict"

    def __init__(self, package: str, triplet: str, first: str, second: str,
                 requesters: Sequence[str] = ()):
        self.package = package
        self.triplet = triplet
        self.versions = (first, second)
        self.requesters = tuple(requesters)
        via = f" (requested by {', '.join(self.requesters)})" if self.requesters else ""
        super().__init__(f"{package}:{triplet}: conflicting versions {first} and {second}{via}")


class FeatureNotFound(ResolutionError):
    """A requested feature does not exist on the manifest."""

    kind = "FeatureNotFound"

    def __init__(self, package: str, feature: str):
        self.package = package
        self.feature = feature
        super().__init__(f"{package} has no feature named '{feature}'")


class CircularFeatureRequirement(ResolutionError):
    """Features of one package require each other in a cycle."""

    kind = "CircularFeatureRequirement"

    def __init__(self, package: str, chain: Sequence[str]):
        self.package = package
        self.chain: Tuple[str, ...] = tuple(chain)
        super().__init__(f"{package}: circular feature requirement {' -> '.join(self.chain)}")


class DependencyCycle(ResolutionError):
    """Packages depend on each other in a cycle that cannot be ordered."""

    kind = "DependencyCycle"

    def __init__(self, chain: Sequence[str]):
        self.chain: Tuple[str, ...] = tuple(chain)
        super().__init__(f"dependency cycle: {' -> '.join(self.chain)}")


class ManifestNotFound(ResolutionError):
    """A dependency names a package the lookup does not know."""

    kind = "ManifestNotFound"

    def __init__(self, package: str, requested_by: Optional[str] = None):
        self.package = package
        self.requested_by = requested_by
        via = f" (required by {requested_by})" if requested_by else ""
        super().__init__(f"no manifest found for {package}{via}")


class UnsupportedPlatform(ResolutionError):
    """A package or feature declares it does not support the triplet."""

    kind = "UnsupportedPlatform"

    def __init__(self, package: str, feature: str, triplet: str, expression: str):
        self.package = package
        self.feature = feature
        self.triplet = triplet
        self.expression = expression
        super().__init__(
            f"{package}[{feature}] is only supported on '{expression}', "
            f"which does not match {triplet}"
        )
