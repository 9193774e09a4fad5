"""Topological ordering, content identity and classification of a closure."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from common.errors import DependencyCycle
from common.logging_utils import extra_context, is_debug_enabled
from .abi import compute_abi
from .installed import InstalledStateOracle, NothingInstalled
from .models import Action, Classification, Closure, NodeKey, OrderedPlan, format_key

logger = logging.getLogger(__name__)

_VISITING = 1
_DONE = 2


def _classify(oracle: InstalledStateOracle, name: str, triplet: str,
              abi: str) -> Tuple[Classification, Optional[str]]:
    installed = oracle.get_installed_identity(name, triplet)
    if installed == abi:
        return Classification.ALREADY_SATISFIED, None
    return Classification.NEEDS_BUILD, installed


def compute_plan(closure: Closure, oracle: Optional[InstalledStateOracle] = None) -> OrderedPlan:
    """Order ``closure`` so every dependency precedes its dependents.

    Depth-first postorder from the roots; roots and each node's dependencies
    are visited in ascending ``(name, triplet)`` order so the result does not
    depend on how the closure was built. Identities are computed as nodes
    finish, when all of their dependencies already have one.

    Raises:
        DependencyCycle: a node reaches itself; the chain names every hop.
    """
    oracle = oracle or NothingInstalled()
    state: Dict[NodeKey, int] = {}
    abis: Dict[NodeKey, str] = {}
    actions: List[Action] = []

    def finish(key: NodeKey) -> None:
        node = closure.nodes[key]
        deps = tuple(sorted(node.dependencies))
        abi = compute_abi(node, {dep: abis[dep] for dep in deps})
        abis[key] = abi
        classification, installed = _classify(oracle, node.name, node.triplet, abi)
        actions.append(Action(
            name=node.name,
            version=node.version,
            triplet=node.triplet,
            features=tuple(sorted(node.features)),
            classification=classification,
            abi=abi,
            dependencies=deps,
            dependency_abis=tuple(abis[dep] for dep in deps),
            request_type=node.request_type,
            installed_abi=installed,
        ))
        if is_debug_enabled(logger):
            logger.debug(
                "Planned action",
                extra=extra_context(
                    event="action_planned",
                    component="plan",
                    spec=format_key(key),
                    abi=abi,
                    outcome=classification.value,
                ),
            )

    def children(key: NodeKey) -> Iterator[NodeKey]:
        return iter(sorted(closure.nodes[key].dependencies))

    for start in list(sorted(closure.roots)) + sorted(closure.nodes):
        if start in state:
            continue
        state[start] = _VISITING
        path = [start]
        stack = [(start, children(start))]
        while stack:
            key, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                finish(key)
                state[key] = _DONE
                stack.pop()
                path.pop()
                continue
            child_state = state.get(child)
            if child_state == _VISITING:
                chain = path[path.index(child):] + [child]
                raise DependencyCycle([format_key(k) for k in chain])
            if child_state == _DONE:
                continue
            state[child] = _VISITING
            path.append(child)
            stack.append((child, children(child)))

    return OrderedPlan(
        actions=tuple(actions),
        target_triplet=closure.target_triplet,
        host_triplet=closure.host_triplet,
        unsupported=closure.unsupported,
    )
