"""Breadth-first expansion of root requests into a closure.

Nodes live in an arena (a list) and are addressed by index; a dict maps
``(package, triplet)`` to that index. Requested feature sets only grow:
whenever a new requester adds features (or asks for defaults) to a node that
was already expanded, the node goes back on the queue and is expanded again
with the larger set.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from common.errors import ManifestNotFound, UnsatisfiableVersion, UnsupportedPlatform, VersionConflict
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants
from ports.features import resolve_feature_set, unsupported_features
from ports.models import Dependency, PackageLookup, SourceControlFile
from qualifiers.facts import FactsProvider, StaticFactsProvider
from versioning.models import PackageRequest, Version, VerComp
from versioning.schemes import compare
from versioning.selection import lowest_satisfying, select_baseline
from .models import (
    Closure,
    NodeKey,
    RequestType,
    ResolutionNode,
    ResolveOptions,
    UnsupportedAction,
    format_key,
)

logger = logging.getLogger(__name__)

ROOT_REQUESTER = "<root>"

# How a node's version was chosen; a constraint-derived pick replaces a
# manifest default, pins never move.
_PIN = "pin"
_CONSTRAINT = "constraint"
_DEFAULT = "default"


@dataclass
class _Node:
    name: str
    triplet: str
    manifest: SourceControlFile
    version: Version
    version_origin: str
    version_requester: str
    requested: Set[str] = field(default_factory=set)
    want_defaults: bool = False
    requested_by: Set[str] = field(default_factory=set)
    request_type: RequestType = RequestType.AUTO_SELECTED
    features: FrozenSet[str] = frozenset()
    children: List[int] = field(default_factory=list)
    expanded_with: Optional[Tuple[FrozenSet[str], bool]] = None
    queued: bool = False

    @property
    def key(self) -> NodeKey:
        return (self.name, self.triplet)

    def signature(self) -> Tuple[FrozenSet[str], bool]:
        return frozenset(self.requested), self.want_defaults


def _adopt(pin: Optional[Version], manifest: SourceControlFile) -> Optional[Version]:
    if pin is not None and pin.scheme is None:
        return pin.with_scheme(manifest.version.scheme)
    return pin


class ClosureBuilder:
    """Stateful helper for one ``build_closure`` call."""

    def __init__(self, lookup: PackageLookup, baseline: Mapping[str, Version],
                 overrides: Mapping[str, Version], target_triplet: str, host_triplet: str,
                 facts_provider: FactsProvider, options: ResolveOptions):
        self.lookup = lookup
        self.baseline = baseline
        self.overrides = overrides
        self.target_triplet = target_triplet
        self.host_triplet = host_triplet
        self.facts_provider = facts_provider
        self.options = options
        self.arena: List[_Node] = []
        self.index: Dict[NodeKey, int] = {}
        self.queue: Deque[int] = deque()
        self.facts_cache: Dict[str, Mapping[str, str]] = {}
        self.unsupported: Dict[NodeKey, Dict[str, str]] = {}

    def facts(self, triplet: str) -> Mapping[str, str]:
        if triplet not in self.facts_cache:
            self.facts_cache[triplet] = self.facts_provider.facts_for(triplet, self.host_triplet)
        return self.facts_cache[triplet]

    def _pick(self, manifest: SourceControlFile, minimum: Optional[Version]) -> Tuple[Version, str]:
        name = manifest.name
        override = _adopt(self.overrides.get(name), manifest)
        pinned = _adopt(self.baseline.get(name), manifest)
        if override is not None or pinned is not None:
            version = select_baseline(
                name,
                {name: pinned} if pinned is not None else {},
                {name: override} if override is not None else {},
                root_constraint=minimum,
                fallback=manifest.version,
                override_precedence=self.options.override_precedence,
            )
            if not any(compare(version, v) is VerComp.EQUAL for v in manifest.available_versions):
                raise UnsatisfiableVersion(
                    name, str(version), version.scheme_name, str(version), version.scheme_name,
                    "the pinned version is not available for this port",
                )
            return version, _PIN
        if minimum is not None:
            return lowest_satisfying(name, manifest.available_versions, minimum), _CONSTRAINT
        return manifest.version, _DEFAULT

    def _merge_version(self, node: _Node, version: Version, origin: str, requester: str) -> None:
        if origin == _PIN or node.version_origin == _PIN:
            return
        if origin == _DEFAULT:
            return
        if node.version_origin == _DEFAULT:
            node.version, node.version_origin, node.version_requester = version, origin, requester
            return
        if compare(node.version, version) is not VerComp.EQUAL:
            raise VersionConflict(
                node.name, node.triplet, str(node.version), str(version),
                sorted({node.version_requester, requester}),
            )

    def request(self, name: str, triplet: str, features: Iterable[str], default_features: bool,
                minimum: Optional[Version], requester: str, is_root: bool = False) -> int:
        key = (name, triplet)
        idx = self.index.get(key)
        if idx is None:
            manifest = self.lookup.get_manifest(name)
            if manifest is None:
                raise ManifestNotFound(name, None if requester == ROOT_REQUESTER else requester)
            version, origin = self._pick(manifest, minimum)
            idx = len(self.arena)
            self.arena.append(_Node(name, triplet, manifest, version, origin, requester))
            self.index[key] = idx
        else:
            node = self.arena[idx]
            version, origin = self._pick(node.manifest, minimum)
            self._merge_version(node, version, origin, requester)

        node = self.arena[idx]
        node.requested_by.add(requester)
        if is_root:
            node.request_type = RequestType.USER_REQUESTED
        self._add_features(idx, features, default_features)
        return idx

    def _add_features(self, idx: int, features: Iterable[str], default_features: bool) -> None:
        features = set(features)
        if Constants.CORE_FEATURE in features:
            features.discard(Constants.CORE_FEATURE)
            default_features = False

        node = self.arena[idx]
        node.requested.update(features)
        node.want_defaults = node.want_defaults or default_features
        if node.expanded_with != node.signature() and not node.queued:
            node.queued = True
            self.queue.append(idx)

    def _check_supports(self, node: _Node, facts: Mapping[str, str]) -> None:
        failing = unsupported_features(node.manifest, node.features, facts)
        if not failing:
            return
        if self.options.unsupported is UnsupportedAction.ERROR:
            feature = sorted(failing)[0]
            raise UnsupportedPlatform(node.name, feature, node.triplet, failing[feature])
        self.unsupported[node.key] = failing
        for feature, expression in sorted(failing.items()):
            logger.warning(
                "%s[%s] is only supported on '%s', which does not match %s",
                node.name, feature, expression, node.triplet,
            )

    def expand(self, idx: int) -> None:
        node = self.arena[idx]
        node.queued = False
        signature = node.signature()
        if node.expanded_with == signature:
            return
        node.expanded_with = signature

        facts = self.facts(node.triplet)
        features, deps = resolve_feature_set(node.manifest, node.requested, node.want_defaults, facts)
        node.features = features
        self._check_supports(node, facts)

        if is_debug_enabled(logger):
            logger.debug(
                "Expanded node",
                extra=extra_context(
                    event="node_expanded",
                    component="graph",
                    spec=format_key(node.key),
                    version=str(node.version),
                    features=",".join(sorted(features)),
                    dependency_count=len(deps),
                ),
            )

        children = set(node.children)
        for dep in deps:
            child = self._request_dependency(idx, dep)
            if child is not None:
                children.add(child)
        node.children = sorted(children, key=lambda i: self.arena[i].key)

    def _request_dependency(self, parent_idx: int, dep: Dependency) -> Optional[int]:
        parent = self.arena[parent_idx]
        triplet = self.host_triplet if dep.host else parent.triplet
        if (dep.name, triplet) == parent.key:
            # Self-dependency (a tool port built for the host it runs on):
            # its features fold into the node itself, no edge is added.
            self._add_features(parent_idx, dep.features, dep.default_features)
            return None
        return self.request(dep.name, triplet, dep.features, dep.default_features,
                            dep.minimum, format_key(parent.key))

    def run(self, roots: Iterable[PackageRequest]) -> Closure:
        root_keys = []
        for root in sorted(roots, key=lambda r: (r.name, r.host)):
            triplet = self.host_triplet if root.host else self.target_triplet
            idx = self.request(root.name, triplet, root.features, root.default_features,
                               root.version, ROOT_REQUESTER, is_root=True)
            if self.arena[idx].key not in root_keys:
                root_keys.append(self.arena[idx].key)

        while self.queue:
            self.expand(self.queue.popleft())

        nodes = {}
        for node in self.arena:
            nodes[node.key] = ResolutionNode(
                name=node.name,
                triplet=node.triplet,
                version=node.version,
                features=node.features,
                dependencies=tuple(self.arena[i].key for i in node.children),
                requested_by=tuple(sorted(node.requested_by)),
                request_type=node.request_type,
            )
        return Closure(
            nodes=nodes,
            roots=tuple(sorted(root_keys)),
            target_triplet=self.target_triplet,
            host_triplet=self.host_triplet,
            unsupported=self.unsupported,
        )


def build_closure(
    roots: Iterable[PackageRequest],
    manifests: PackageLookup,
    baseline: Mapping[str, Version],
    overrides: Mapping[str, Version],
    target_triplet: str,
    host_triplet: str,
    facts_provider: Optional[FactsProvider] = None,
    options: Optional[ResolveOptions] = None,
) -> Closure:
    """Expand ``roots`` into the full transitive closure.

    Args:
        roots: Root requests.
        manifests: Port lookup.
        baseline: Baseline pins.
        overrides: User overrides.
        target_triplet: Triplet packages are built for.
        host_triplet: Triplet build-time tools are built for.
        facts_provider: Fact sets per triplet; derived from triplet names when omitted.
        options: Resolution policy.

    Returns:
        The closure.

    Raises:
        ResolutionError: any resolution failure; no partial closure is returned.
    """
    builder = ClosureBuilder(
        manifests,
        baseline,
        overrides,
        target_triplet,
        host_triplet,
        facts_provider or StaticFactsProvider(),
        options or ResolveOptions(),
    )
    return builder.run(roots)
