"""Feature-set resolution for a single manifest."""

import logging
from dataclasses import replace
from typing import Dict, FrozenSet, Iterable, List, Mapping, Set, Tuple

from common.errors import CircularFeatureRequirement, FeatureNotFound
from constants import Constants
from qualifiers.expression import evaluate
from .models import Dependency, SourceControlFile

logger = logging.getLogger(__name__)

_VISITING = 1
_DONE = 2


def _is_self_requirement(manifest: SourceControlFile, dep: Dependency) -> bool:
    return dep.name == manifest.name and not dep.host


def default_feature_names(manifest: SourceControlFile, facts: Mapping[str, str]) -> Set[str]:
    """Default features applicable under ``facts``."""
    names = set()
    for name in manifest.default_features:
        if evaluate(manifest.default_feature_platforms.get(name, ""), facts):
            names.add(name)
    return names


def expand_pseudo_features(manifest: SourceControlFile, names: Iterable[str],
                           want_default_features: bool, facts: Mapping[str, str]) -> Set[str]:
    """Replace ``core``, ``default`` and ``*`` with concrete feature names.

    ``core`` suppresses the defaults unless ``default`` is also named.
    """
    names = set(names)
    if Constants.CORE_FEATURE in names:
        want_default_features = False
        names.discard(Constants.CORE_FEATURE)
    if Constants.DEFAULT_FEATURE in names:
        want_default_features = True
        names.discard(Constants.DEFAULT_FEATURE)
    if Constants.ALL_FEATURES in names:
        names.discard(Constants.ALL_FEATURES)
        names.update(manifest.features)
    if want_default_features:
        names.update(default_feature_names(manifest, facts))
    for name in sorted(names):
        if manifest.feature(name) is None:
            raise FeatureNotFound(manifest.name, name)
    return names


def applicable_features(dep: Dependency, facts: Mapping[str, str]) -> FrozenSet[str]:
    """Features of ``dep`` whose own qualifier holds under ``facts``."""
    excluded = {name for name, platform in dep.feature_platforms if not evaluate(platform, facts)}
    return dep.features - excluded


def _feature_dependencies(manifest: SourceControlFile, feature: str) -> Tuple[Dependency, ...]:
    if feature == Constants.CORE_FEATURE:
        return manifest.dependencies
    return manifest.features[feature].dependencies


def _required_features(manifest: SourceControlFile, feature: str,
                       facts: Mapping[str, str]) -> List[str]:
    required: Set[str] = set()
    for dep in _feature_dependencies(manifest, feature):
        if _is_self_requirement(manifest, dep) and evaluate(dep.platform, facts):
            required.update(expand_pseudo_features(manifest, applicable_features(dep, facts), False, facts))
    return sorted(required)


def _close_features(manifest: SourceControlFile, seeds: Iterable[str],
                    facts: Mapping[str, str]) -> Set[str]:
    """Least fixed point of same-package feature requirements.

    Walks requirements depth-first with visiting/done marks; reaching a
    feature that is still being visited is a cycle.
    """
    state: Dict[str, int] = {}
    for seed in sorted(seeds):
        if state.get(seed) == _DONE:
            continue
        path = [seed]
        stack = [(seed, iter(_required_features(manifest, seed, facts)))]
        state[seed] = _VISITING
        while stack:
            feature, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                state[feature] = _DONE
                stack.pop()
                path.pop()
                continue
            if state.get(child) == _VISITING:
                start = path.index(child)
                raise CircularFeatureRequirement(manifest.name, path[start:] + [child])
            if state.get(child) == _DONE:
                continue
            state[child] = _VISITING
            path.append(child)
            stack.append((child, iter(_required_features(manifest, child, facts))))
    return {name for name in state if name != Constants.CORE_FEATURE}


def _merge_dependencies(deps: Iterable[Dependency]) -> List[Dependency]:
    merged: Dict[Tuple[str, bool, str], Dependency] = {}
    for dep in deps:
        key = (dep.name, dep.host, str(dep.minimum) if dep.minimum else "")
        existing = merged.get(key)
        if existing is None:
            merged[key] = dep
            continue
        merged[key] = replace(
            existing,
            features=existing.features | dep.features,
            default_features=existing.default_features or dep.default_features,
            platform="",
        )
    return [merged[key] for key in sorted(merged)]


def resolve_feature_set(
    manifest: SourceControlFile,
    requested_features: Iterable[str],
    want_default_features: bool,
    facts: Mapping[str, str],
) -> Tuple[FrozenSet[str], List[Dependency]]:
    """Resolve the selected features of ``manifest`` and the dependencies they need.

    Args:
        manifest: The port manifest.
        requested_features: Feature names asked for; may include ``core``,
            ``default`` and ``*``.
        want_default_features: Whether the manifest's defaults are included.
        facts: Facts of the triplet the port is being resolved for.

    Returns:
        Tuple of (selected feature names, applicable dependencies). Dependencies
        are filtered by their qualifiers, exclude the port's own feature
        requirements, are de-duplicated and sorted by package name.

    Raises:
        FeatureNotFound: a requested or default feature is not declared.
        CircularFeatureRequirement: features require each other in a cycle.
    """
    seeds = expand_pseudo_features(manifest, requested_features, want_default_features, facts)
    features = _close_features(manifest, seeds | {Constants.CORE_FEATURE}, facts)

    collected: List[Dependency] = []
    for feature in [Constants.CORE_FEATURE] + sorted(features):
        for dep in _feature_dependencies(manifest, feature):
            if _is_self_requirement(manifest, dep):
                continue
            if not evaluate(dep.platform, facts):
                logger.debug("%s: skipping dependency %s (platform '%s' not met)",
                             manifest.name, dep.name, dep.platform)
                continue
            if dep.feature_platforms:
                dep = replace(dep, features=applicable_features(dep, facts), feature_platforms=())
            collected.append(dep)

    return frozenset(features), _merge_dependencies(collected)


def unsupported_features(manifest: SourceControlFile, features: Iterable[str],
                         facts: Mapping[str, str]) -> Dict[str, str]:
    """Map each feature (``core`` for the port itself) whose supports expression fails to that expression."""
    result: Dict[str, str] = {}
    if not evaluate(manifest.supports, facts):
        result[Constants.CORE_FEATURE] = manifest.supports
    for name in sorted(features):
        feature = manifest.feature(name)
        if feature is not None and not evaluate(feature.supports, facts):
            result[name] = feature.supports
    return result
