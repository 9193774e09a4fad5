"""Per-triplet fact sets used to evaluate qualifier expressions.

Facts are plain ``str -> str`` mappings. The well-known keys are ``os``,
``arch``, ``linkage``, ``crt`` and ``native``; anything else is a custom
flag defined by the triplet.
"""

import logging
from typing import Dict, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)

OS = "os"
ARCH = "arch"
LINKAGE = "linkage"
CRT = "crt"
NATIVE = "native"
TRUTHY = {"1", "true", "on", "yes"}

_KNOWN_ARCHS = {"x86", "x64", "arm", "arm64", "wasm32", "ppc64le", "s390x", "riscv64"}
_DYNAMIC_BY_DEFAULT = {"windows", "uwp"}


def facts_for_triplet(name: str) -> Dict[str, str]:
    """Derive facts from a canonical triplet name such as ``x64-windows-static``.

    Unknown trailing parts are kept as custom flags set to ``"1"``.
    """
    parts = name.lower().split("-")
    facts: Dict[str, str] = {}
    if parts and parts[0] in _KNOWN_ARCHS:
        facts[ARCH] = parts.pop(0)
    if parts:
        facts[OS] = parts.pop(0)

    dynamic_default = facts.get(OS) in _DYNAMIC_BY_DEFAULT
    facts[LINKAGE] = "dynamic" if dynamic_default else "static"
    facts[CRT] = "dynamic"

    rest = "-".join(parts)
    if rest.startswith("static-md"):
        facts[LINKAGE] = "static"
        rest = rest[len("static-md"):].lstrip("-")
    elif rest.startswith("static"):
        facts[LINKAGE] = "static"
        if dynamic_default:
            facts[CRT] = "static"
        rest = rest[len("static"):].lstrip("-")
    elif rest.startswith("dynamic"):
        facts[LINKAGE] = "dynamic"
        rest = rest[len("dynamic"):].lstrip("-")

    for flag in filter(None, rest.split("-")):
        facts[flag] = "1"
    return facts


class FactsProvider(Protocol):
    """Supplies the fact set for a triplet."""

    def facts_for(self, triplet: str, host_triplet: str) -> Mapping[str, str]:
        """Return facts for ``triplet`` in a pass whose host is ``host_triplet``."""
        ...


class StaticFactsProvider:
    """Facts from precomputed per-triplet mappings.

    Triplets without an entry fall back to ``facts_for_triplet``. The
    ``native`` fact is set when the triplet is the host triplet.
    """

    def __init__(self, facts: Optional[Mapping[str, Mapping[str, str]]] = None):
        self._facts = {name: dict(values) for name, values in (facts or {}).items()}

    def facts_for(self, triplet: str, host_triplet: str) -> Mapping[str, str]:
        if triplet in self._facts:
            result = dict(self._facts[triplet])
        else:
            logger.debug("No facts configured for %s; deriving from its name", triplet)
            result = facts_for_triplet(triplet)
        result.setdefault(NATIVE, "1" if triplet == host_triplet else "0")
        return result
