"""Platform qualifier evaluation over triplet fact sets."""

from .expression import Expr, evaluate, parse_expression
from .facts import FactsProvider, StaticFactsProvider, facts_for_triplet

__all__ = [
    "Expr",
    "FactsProvider",
    "StaticFactsProvider",
    "evaluate",
    "facts_for_triplet",
    "parse_expression",
]
