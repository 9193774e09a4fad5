"""In-memory port manifests and the lookup interface that serves them."""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Protocol, Tuple

from versioning.models import Version


@dataclass(frozen=True)
class Dependency:
    """Reference from a manifest (or feature) to another package.

    ``feature_platforms`` holds ``(feature, qualifier)`` pairs for requested
    features that only apply on some platforms.
    """
    name: str
    minimum: Optional[Version] = None
    platform: str = ""
    features: FrozenSet[str] = frozenset()
    default_features: bool = True
    host: bool = False
    feature_platforms: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class FeatureDescriptor:
    """An optional named feature with its own dependencies."""
    name: str
    dependencies: Tuple[Dependency, ...] = ()
    supports: str = ""
    description: str = ""


@dataclass(frozen=True)
class SourceControlFile:
    """Declared metadata of one port.

    ``available_versions`` lists every version the port can be built at;
    ``version`` is the one used when nothing pins or constrains the port.
    ``default_feature_platforms`` optionally qualifies individual defaults.
    """
    name: str
    version: Version
    dependencies: Tuple[Dependency, ...] = ()
    features: Mapping[str, FeatureDescriptor] = field(default_factory=dict)
    default_features: FrozenSet[str] = frozenset()
    default_feature_platforms: Mapping[str, str] = field(default_factory=dict)
    supports: str = ""
    available_versions: Tuple[Version, ...] = ()

    def __post_init__(self):
        if not self.available_versions:
            object.__setattr__(self, "available_versions", (self.version,))
        for key, feature in self.features.items():
            if key != feature.name:
                raise ValueError(f"{self.name}: feature key '{key}' does not match '{feature.name}'")

    def feature(self, name: str) -> Optional[FeatureDescriptor]:
        """Return the named feature, or None."""
        return self.features.get(name)


class PackageLookup(Protocol):
    """Serves port manifests by package name."""

    def get_manifest(self, name: str) -> Optional[SourceControlFile]:
        """Return the manifest for ``name`` or None when unknown."""
        ...


class DictPackageLookup:
    """PackageLookup backed by an already-loaded mapping."""

    def __init__(self, manifests=()):
        self._manifests: Dict[str, SourceControlFile] = {}
        for manifest in manifests:
            self.add(manifest)

    def add(self, manifest: SourceControlFile) -> None:
        if manifest.name in self._manifests:
            raise ValueError(f"duplicate manifest for {manifest.name}")
        self._manifests[manifest.name] = manifest

    def get_manifest(self, name: str) -> Optional[SourceControlFile]:
        return self._manifests.get(name)

    def names(self):
        return sorted(self._manifests)

    def __len__(self) -> int:
        return len(self._manifests)
