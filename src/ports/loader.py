"""Manifest, baseline and override parsing from JSON documents.

These helpers turn already-read documents (or files on disk, for the CLI)
into the in-memory model. The resolver never calls them itself.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Iterable, List, Optional, Tuple

from common.errors import InvalidVersion, QualifierSyntaxError
from constants import Constants
from qualifiers.expression import parse_expression
from versioning.models import SCHEME_KEYS, Version, VersionScheme
from versioning.parser import is_valid_package_name, parse_version_text
from .models import DictPackageLookup, Dependency, FeatureDescriptor, SourceControlFile

logger = logging.getLogger(__name__)


class ManifestError(ValueError):
    """A manifest or baseline document is structurally invalid."""

    def __init__(self, origin: str, message: str):
        self.origin = origin
        super().__init__(f"{origin}: {message}")


def _version_from_fields(doc: Dict[str, Any], origin: str,
                         default_scheme: Optional[VersionScheme] = None,
                         plain_scheme: Optional[VersionScheme] = VersionScheme.RELAXED) -> Optional[Version]:
    """Read ``version*`` and ``port-version`` fields from one object.

    ``plain_scheme`` is the scheme given to a bare ``version`` key.
    """
    found = [(key, scheme) for key, scheme in SCHEME_KEYS.items() if key in doc]
    if len(found) > 1:
        raise ManifestError(origin, f"multiple version fields: {', '.join(k for k, _ in found)}")
    if found:
        key, scheme = found[0]
        if key == "version":
            scheme = plain_scheme
    elif "baseline" in doc:
        key, scheme = "baseline", default_scheme
    else:
        return None
    try:
        return parse_version_text(str(doc[key]), scheme, doc.get("port-version"))
    except InvalidVersion as e:
        raise ManifestError(origin, str(e)) from e


def _qualifier(text: Any, origin: str) -> str:
    """Return ``text`` after checking that it parses as a platform expression."""
    if not isinstance(text, str):
        raise ManifestError(origin, f"platform expression must be a string, got {text!r}")
    try:
        parse_expression(text)
    except QualifierSyntaxError as e:
        raise ManifestError(origin, str(e)) from e
    return text


def _parse_dependency(entry: Any, origin: str) -> Dependency:
    if isinstance(entry, str):
        return Dependency(name=entry)
    if not isinstance(entry, dict) or "name" not in entry:
        raise ManifestError(origin, f"invalid dependency entry: {entry!r}")

    minimum = None
    if "version>=" in entry:
        scheme = None
        if "version-scheme" in entry:
            try:
                scheme = VersionScheme(entry["version-scheme"])
            except ValueError as e:
                raise ManifestError(origin, f"unknown version-scheme {entry['version-scheme']!r}") from e
        try:
            minimum = parse_version_text(str(entry["version>="]), scheme)
        except InvalidVersion as e:
            raise ManifestError(origin, str(e)) from e

    features, feature_platforms = _feature_names(entry.get("features", []), origin)
    return Dependency(
        name=entry["name"],
        minimum=minimum,
        platform=_qualifier(entry.get("platform", ""), origin),
        features=frozenset(features),
        default_features=bool(entry.get("default-features", True)),
        host=bool(entry.get("host", False)),
        feature_platforms=tuple(sorted(feature_platforms.items())),
    )


def _feature_names(entries: Iterable[Any], origin: str) -> Tuple[List[str], Dict[str, str]]:
    """Split dependency features into names and per-feature qualifiers."""
    names: List[str] = []
    platforms: Dict[str, str] = {}
    for entry in entries:
        if isinstance(entry, dict):
            if "name" not in entry:
                raise ManifestError(origin, f"invalid dependency feature: {entry!r}")
            names.append(entry["name"])
            if entry.get("platform"):
                platforms[entry["name"]] = _qualifier(entry["platform"], origin)
        else:
            names.append(str(entry))
    return names, platforms


def _parse_dependencies(entries: Any, origin: str) -> Tuple[Dependency, ...]:
    if not isinstance(entries, list):
        raise ManifestError(origin, "'dependencies' must be a list")
    return tuple(_parse_dependency(entry, origin) for entry in entries)


def parse_manifest(doc: Dict[str, Any], origin: str = "<manifest>") -> SourceControlFile:
    """Build a SourceControlFile from a vcpkg-style manifest document.

    Args:
        doc: Parsed JSON object.
        origin: Name used in error messages (usually the file path).

    Returns:
        The manifest.

    Raises:
        ManifestError: required fields are missing or malformed.
    """
    if not isinstance(doc, dict):
        raise ManifestError(origin, "manifest must be a JSON object")
    name = doc.get("name")
    if not isinstance(name, str) or not is_valid_package_name(name):
        raise ManifestError(origin, f"invalid or missing package name: {name!r}")

    version = _version_from_fields(doc, origin)
    if version is None:
        raise ManifestError(origin, f"{name} declares no version")

    available = [version]
    for entry in doc.get("versions", []):
        other = _version_from_fields(entry, origin, version.scheme, plain_scheme=version.scheme)
        if other is None:
            raise ManifestError(origin, f"version entry without a version: {entry!r}")
        if other.scheme is not version.scheme:
            raise ManifestError(origin, f"{name}: version {other} uses scheme {other.scheme_name}, "
                                        f"expected {version.scheme_name}")
        if other not in available:
            available.append(other)

    features: Dict[str, FeatureDescriptor] = {}
    raw_features = doc.get("features", {})
    if isinstance(raw_features, list):
        raw_features = {f["name"]: f for f in raw_features}
    for feature_name, body in raw_features.items():
        if feature_name in features:
            raise ManifestError(origin, f"duplicate feature '{feature_name}'")
        features[feature_name] = FeatureDescriptor(
            name=feature_name,
            dependencies=_parse_dependencies(body.get("dependencies", []), origin),
            supports=_qualifier(body.get("supports", ""), origin),
            description=body.get("description", ""),
        )

    default_features = set()
    default_platforms: Dict[str, str] = {}
    for entry in doc.get("default-features", []):
        if isinstance(entry, dict):
            default_features.add(entry["name"])
            if entry.get("platform"):
                default_platforms[entry["name"]] = _qualifier(entry["platform"], origin)
        else:
            default_features.add(str(entry))

    return SourceControlFile(
        name=name,
        version=version,
        dependencies=_parse_dependencies(doc.get("dependencies", []), origin),
        features=features,
        default_features=frozenset(default_features),
        default_feature_platforms=default_platforms,
        supports=_qualifier(doc.get("supports", ""), origin),
        available_versions=tuple(available),
    )


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as fh:
        try:
            return json.load(fh)
        except json.JSONDecodeError as e:
            raise ManifestError(path, f"invalid JSON: {e}") from e


def load_ports_dir(ports_dir: str) -> DictPackageLookup:
    """Load every ``<ports_dir>/<name>/vcpkg.json`` (or ``port.json``)."""
    lookup = DictPackageLookup()
    for entry in sorted(os.listdir(ports_dir)):
        port_dir = os.path.join(ports_dir, entry)
        if not os.path.isdir(port_dir):
            continue
        for file_name in Constants.MANIFEST_FILES:
            path = os.path.join(port_dir, file_name)
            if os.path.isfile(path):
                lookup.add(parse_manifest(_read_json(path), path))
                break
        else:
            logger.debug("Skipping %s: no manifest file", port_dir)
    logger.info("Loaded %d port manifests from %s", len(lookup), ports_dir)
    return lookup


def parse_baseline(doc: Dict[str, Any], origin: str = "<baseline>",
                   key: str = Constants.BASELINE_DEFAULT_KEY) -> Dict[str, Version]:
    """Parse ``{"default": {"zlib": {"baseline": "1.3", "port-version": 1}}}``.

    Baseline entries carry no scheme; the resolver adopts the port's scheme.
    """
    section = doc.get(key)
    if not isinstance(section, dict):
        raise ManifestError(origin, f"baseline has no '{key}' object")
    pins: Dict[str, Version] = {}
    for name, entry in section.items():
        if not isinstance(entry, dict):
            raise ManifestError(origin, f"baseline entry for {name} must be an object")
        version = _version_from_fields(entry, origin)
        if version is None:
            raise ManifestError(origin, f"baseline entry for {name} has no version")
        pins[name] = version
    return pins


def parse_overrides(entries: Any, origin: str = "<overrides>") -> Dict[str, Version]:
    """Parse a manifest ``overrides`` list into name -> version pins."""
    if not isinstance(entries, list):
        raise ManifestError(origin, "'overrides' must be a list")
    pins: Dict[str, Version] = {}
    for entry in entries:
        if not isinstance(entry, dict) or "name" not in entry:
            raise ManifestError(origin, f"invalid override: {entry!r}")
        version = _version_from_fields(entry, origin, plain_scheme=None)
        if version is None:
            raise ManifestError(origin, f"override for {entry['name']} has no version")
        if entry["name"] in pins:
            raise ManifestError(origin, f"duplicate override for {entry['name']}")
        pins[entry["name"]] = version
    return pins


def load_baseline_file(path: str) -> Dict[str, Version]:
    """Read and parse a baseline JSON file."""
    return parse_baseline(_read_json(path), path)


def load_overrides_file(path: str) -> Dict[str, Version]:
    """Read overrides from a JSON file holding a list or an object with ``overrides``."""
    doc = _read_json(path)
    if isinstance(doc, dict):
        doc = doc.get("overrides", [])
    return parse_overrides(doc, path)
