"""Content identity (ABI hash) of a resolved action.

The identity is a digest over sorted ``key value`` lines, one per input, so
it does not depend on the order the inputs were gathered in.
"""

import hashlib
from typing import Iterable, List, Mapping, Tuple

from constants import Constants
from .models import NodeKey, ResolutionNode, format_key

AbiEntry = Tuple[str, str]


def abi_entries(node: ResolutionNode, dependency_abis: Mapping[NodeKey, str]) -> List[AbiEntry]:
    """Collect the sorted identity inputs of ``node``."""
    entries: List[AbiEntry] = [
        ("package", node.name),
        ("version", node.version.text),
        ("scheme", node.version.scheme_name),
        ("port_revision", str(node.version.port_revision)),
        ("triplet", node.triplet),
        ("features", ";".join(sorted(node.features | {Constants.CORE_FEATURE}))),
    ]
    for key, abi in dependency_abis.items():
        entries.append((f"dependency:{format_key(key)}", abi))
    entries.sort()
    return entries


def digest(entries: Iterable[AbiEntry]) -> str:
    """Hash ``key value`` lines with the configured algorithm."""
    text = "".join(f"{key} {value}\n" for key, value in entries)
    return hashlib.new(Constants.ABI_HASH_ALGORITHM, text.encode("utf-8")).hexdigest()


def compute_abi(node: ResolutionNode, dependency_abis: Mapping[NodeKey, str]) -> str:
    """Content identity of ``node`` given its direct dependencies' identities."""
    return digest(abi_entries(node, dependency_abis))
