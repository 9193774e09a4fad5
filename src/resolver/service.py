"""Resolution entry point: closure and ordered plan in one call."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from common.logging_utils import Timer, extra_context, is_debug_enabled
from ports.models import PackageLookup
from qualifiers.facts import FactsProvider, StaticFactsProvider
from versioning.models import PackageRequest, Version
from .graph import build_closure
from .installed import InstalledStateOracle, NothingInstalled
from .models import OrderedPlan, ResolveOptions
from .plan import compute_plan

logger = logging.getLogger(__name__)


class Resolver:
    """Holds the injected collaborators for repeated resolution passes.

    A Resolver keeps no state between calls; every ``resolve`` builds its own
    closure and plan from the inputs it is given.
    """

    def __init__(
        self,
        lookup: PackageLookup,
        facts: Optional[FactsProvider] = None,
        oracle: Optional[InstalledStateOracle] = None,
        options: Optional[ResolveOptions] = None,
    ):
        self.lookup = lookup
        self.facts = facts or StaticFactsProvider()
        self.oracle = oracle or NothingInstalled()
        self.options = options or ResolveOptions()

    def resolve(
        self,
        roots: Iterable[PackageRequest],
        baseline: Mapping[str, Version],
        overrides: Mapping[str, Version],
        target_triplet: str,
        host_triplet: str,
    ) -> OrderedPlan:
        """Compute the ordered, classified plan for ``roots``.

        Raises:
            ResolutionError: resolution failed; nothing partial is returned.
        """
        roots = list(roots)
        with Timer() as timer:
            closure = build_closure(
                roots,
                self.lookup,
                baseline,
                overrides,
                target_triplet,
                host_triplet,
                self.facts,
                self.options,
            )
            plan = compute_plan(closure, self.oracle)

        if is_debug_enabled(logger):
            logger.debug(
                "Resolution finished",
                extra=extra_context(
                    event="resolve",
                    component="service",
                    outcome="success",
                    roots=",".join(sorted(r.name for r in roots)),
                    count=len(plan),
                    duration_ms=timer.duration_ms(),
                ),
            )
        logger.info(
            "Resolved %d root(s) into %d action(s), %d to build",
            len(roots), len(plan), len(plan.to_build()),
        )
        return plan


def resolve(
    roots: Iterable[PackageRequest],
    baseline: Mapping[str, Version],
    overrides: Mapping[str, Version],
    target_triplet: str,
    host_triplet: str,
    *,
    lookup: PackageLookup,
    facts: Optional[FactsProvider] = None,
    oracle: Optional[InstalledStateOracle] = None,
    options: Optional[ResolveOptions] = None,
) -> OrderedPlan:
    """Resolve ``roots`` with the given collaborators; see ``Resolver.resolve``."""
    return Resolver(lookup, facts, oracle, options).resolve(
        roots, baseline, overrides, target_triplet, host_triplet
    )
