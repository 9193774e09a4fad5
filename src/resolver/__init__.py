"""Dependency graph building, plan computation and the resolve entry point."""

from .graph import build_closure
from .installed import DictInstalledState, InstalledStateOracle, NothingInstalled
from .models import (
    Action,
    AnnotatedPlan,
    Classification,
    Closure,
    OrderedPlan,
    RequestType,
    ResolutionNode,
    ResolveOptions,
    UnsupportedAction,
)
from .plan import compute_plan
from .service import Resolver, resolve

__all__ = [
    "Action",
    "AnnotatedPlan",
    "Classification",
    "Closure",
    "DictInstalledState",
    "InstalledStateOracle",
    "NothingInstalled",
    "OrderedPlan",
    "RequestType",
    "ResolutionNode",
    "ResolveOptions",
    "Resolver",
    "UnsupportedAction",
    "build_closure",
    "compute_plan",
    "resolve",
]
