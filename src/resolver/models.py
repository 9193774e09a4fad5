"""Data models for the closure, actions and ordered plans."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, Mapping, Optional, Tuple

from versioning.models import Version

# Arena key of a resolution node: (package name, triplet).
NodeKey = Tuple[str, str]


def format_key(key: NodeKey) -> str:
    """Render a node key as ``name:triplet``."""
    return f"{key[0]}:{key[1]}"


class Classification(Enum):
    """What the orchestrator has to do for an action."""
    ALREADY_SATISFIED = "already-satisfied"
    NEEDS_BUILD = "needs-build"
    SKIP = "skip"
    EXPECT_FAIL = "expect-fail"


class RequestType(Enum):
    """Whether a package was asked for directly or pulled in by another."""
    USER_REQUESTED = "user-requested"
    AUTO_SELECTED = "auto-selected"


class UnsupportedAction(Enum):
    """How to treat packages whose supports expression excludes the triplet."""
    ERROR = "error"
    WARN = "warn"


@dataclass(frozen=True)
class ResolveOptions:
    """Policy switches for one resolution pass."""
    override_precedence: bool = True
    unsupported: UnsupportedAction = UnsupportedAction.ERROR


@dataclass(frozen=True)
class ResolutionNode:
    """One (package, triplet) entry of the closure."""
    name: str
    triplet: str
    version: Version
    features: FrozenSet[str]
    dependencies: Tuple[NodeKey, ...]
    requested_by: Tuple[str, ...] = ()
    request_type: RequestType = RequestType.AUTO_SELECTED

    @property
    def key(self) -> NodeKey:
        return (self.name, self.triplet)


@dataclass(frozen=True)
class Closure:
    """Transitive expansion of the root requests."""
    nodes: Mapping[NodeKey, ResolutionNode]
    roots: Tuple[NodeKey, ...]
    target_triplet: str
    host_triplet: str
    unsupported: Mapping[NodeKey, Mapping[str, str]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, key) -> bool:
        return key in self.nodes

    def get(self, name: str, triplet: Optional[str] = None) -> Optional[ResolutionNode]:
        """Return the node for ``name`` on ``triplet`` (the target triplet by default)."""
        return self.nodes.get((name, triplet or self.target_triplet))


@dataclass(frozen=True)
class Action:
    """A resolution node with its classification and content identity."""
    name: str
    version: Version
    triplet: str
    features: Tuple[str, ...]
    classification: Classification
    abi: str
    dependencies: Tuple[NodeKey, ...] = ()
    dependency_abis: Tuple[str, ...] = ()
    request_type: RequestType = RequestType.AUTO_SELECTED
    installed_abi: Optional[str] = None

    @property
    def key(self) -> NodeKey:
        return (self.name, self.triplet)

    @property
    def spec(self) -> str:
        return format_key(self.key)

    def with_classification(self, classification: Classification) -> "Action":
        return replace(self, classification=classification)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version.text,
            "port_revision": self.version.port_revision,
            "scheme": self.version.scheme_name,
            "triplet": self.triplet,
            "features": list(self.features),
            "classification": self.classification.value,
            "abi": self.abi,
            "dependencies": [format_key(key) for key in self.dependencies],
            "dependency_abis": list(self.dependency_abis),
            "request_type": self.request_type.value,
            "installed_abi": self.installed_abi,
        }


@dataclass(frozen=True)
class OrderedPlan:
    """Actions in build order: dependencies always precede dependents."""
    actions: Tuple[Action, ...]
    target_triplet: str
    host_triplet: str
    unsupported: Mapping[NodeKey, Mapping[str, str]] = field(default_factory=dict)

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    def find(self, name: str, triplet: Optional[str] = None) -> Optional[Action]:
        """Return the action for ``name`` on ``triplet`` (the target triplet by default)."""
        wanted = triplet or self.target_triplet
        for action in self.actions:
            if action.name == name and action.triplet == wanted:
                return action
        return None

    def to_build(self) -> Tuple[Action, ...]:
        """Actions the orchestrator must build."""
        return tuple(a for a in self.actions if a.classification is Classification.NEEDS_BUILD)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_triplet": self.target_triplet,
            "host_triplet": self.host_triplet,
            "actions": [action.to_dict() for action in self.actions],
            "unsupported": {
                format_key(key): dict(sorted(features.items()))
                for key, features in sorted(self.unsupported.items())
            },
        }

    def to_json(self) -> str:
        """Canonical serialization; identical plans give identical bytes."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True)
class AnnotatedPlan(OrderedPlan):
    """A plan after CI exclusions were applied.

    ``excluded`` lists the specs whose classification was changed.
    """
    excluded: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["excluded"] = list(self.excluded)
        return data
