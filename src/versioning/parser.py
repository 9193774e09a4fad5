"""Token parsing utilities for version text and package requests."""

import re
from typing import Optional, Tuple

from common.errors import InvalidVersion
from constants import Constants
from .models import PackageRequest, Version, VersionScheme
from .schemes import validate

_NAME_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_FEATURES_RE = re.compile(r"^(?P<name>[^\[\]]+)(?:\[(?P<features>[^\[\]]*)\])?$")


def tokenize_rightmost(s: str, sep: str) -> Tuple[str, Optional[str]]:
    """Return (head, tail or None) split on the rightmost ``sep``."""
    s = s.strip()
    if sep not in s:
        return s, None
    head, tail = s.rsplit(sep, 1)
    tail = tail.strip()
    return head.strip(), tail if tail else None


def parse_version_text(text: str, scheme: Optional[VersionScheme] = VersionScheme.RELAXED,
                       port_revision: Optional[int] = None) -> Version:
    """Parse ``1.2.0`` or ``1.2.0#3`` into a Version.

    An explicit ``port_revision`` argument wins over a ``#N`` suffix.
    """
    body, revision = tokenize_rightmost(str(text), "#")
    rev = 0
    if revision is not None:
        if not revision.isdigit():
            raise InvalidVersion(text, scheme.value if scheme else "unspecified",
                                 "port revision must be a non-negative integer")
        rev = int(revision)
    if port_revision is not None:
        if isinstance(port_revision, bool) or not str(port_revision).isdigit():
            raise InvalidVersion(text, scheme.value if scheme else "unspecified",
                                 f"port-version must be a non-negative integer, got {port_revision!r}")
        rev = int(port_revision)
    version = Version(body, scheme, rev)
    if scheme is not None:
        validate(version)
    return version


def is_valid_package_name(name: str) -> bool:
    """Lowercase alphanumerics separated by single dashes."""
    return bool(_NAME_RE.match(name))


def parse_package_token(token: str) -> PackageRequest:
    """Parse a CLI/list token into a PackageRequest.

    Accepted shape: ``name[feat1,feat2][:host][@version]``. ``core`` in the
    feature list suppresses default features. The version, when present, is
    an explicit root minimum and adopts the package's scheme.
    """
    body, version_text = tokenize_rightmost(token, "@")
    body, qualifier = tokenize_rightmost(body, ":")
    host = False
    if qualifier is not None:
        if qualifier != "host":
            raise ValueError(f"unknown request qualifier '{qualifier}' in '{token}'")
        host = True

    match = _FEATURES_RE.match(body)
    if not match or not is_valid_package_name(match.group("name").strip()):
        raise ValueError(f"invalid package request '{token}'")
    name = match.group("name").strip()

    features = set()
    if match.group("features"):
        features = {f.strip() for f in match.group("features").split(",") if f.strip()}
    default_features = Constants.CORE_FEATURE not in features

    version = parse_version_text(version_text, scheme=None) if version_text else None

    return PackageRequest(
        name=name,
        features=frozenset(features),
        default_features=default_features,
        version=version,
        host=host,
        raw_token=token,
    )
