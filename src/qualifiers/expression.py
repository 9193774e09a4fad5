"""Platform qualifier expressions.

Grammar, lowest precedence first::

    or   := and { ("|" | "," | "or") and }
    and  := not { ("&" | "and") not }
    not  := ("!" | "not") not | primary
    primary := "(" or ")" | atom
    atom := identifier [ "=" value ]

Identifiers name either a well-known platform property (``windows``,
``x64``, ``static``...) or an arbitrary triplet flag. Facts the triplet does
not define evaluate to false, so manifests can mention flags that older
triplets have never heard of.
"""

import re
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from common.errors import QualifierSyntaxError
from .facts import ARCH, CRT, LINKAGE, NATIVE, OS, TRUTHY

_TOKEN_RE = re.compile(r"\s*(?:(?P<op>[()!&|,=])|(?P<word>[A-Za-z0-9_.+-]+))")
_KEYWORDS = {"and", "or", "not"}

_OS_ALIASES = {
    "windows": ("windows", "uwp", "mingw"),
    "mingw": ("mingw",),
    "uwp": ("uwp",),
    "linux": ("linux",),
    "osx": ("osx",),
    "android": ("android",),
    "freebsd": ("freebsd",),
    "openbsd": ("openbsd",),
    "ios": ("ios",),
    "emscripten": ("emscripten",),
}
_ARCH_ALIASES = {
    "x86": ("x86",),
    "x64": ("x64",),
    "arm": ("arm", "arm64"),
    "arm32": ("arm",),
    "arm64": ("arm64",),
    "wasm32": ("wasm32",),
}


@dataclass(frozen=True)
class Expr:
    """Node of a parsed qualifier expression.

    ``op`` is one of ``atom``, ``not``, ``and``, ``or``, ``empty``.
    """
    op: str
    name: str = ""
    value: Optional[str] = None
    args: Tuple["Expr", ...] = ()

    def __str__(self) -> str:
        if self.op == "empty":
            return ""
        if self.op == "atom":
            return self.name if self.value is None else f"{self.name}={self.value}"
        if self.op == "not":
            return f"!{_wrap(self.args[0])}"
        joiner = " & " if self.op == "and" else " | "
        return joiner.join(_wrap(arg) for arg in self.args)


def _wrap(expr: Expr) -> str:
    return f"({expr})" if expr.op in ("and", "or") else str(expr)


EMPTY = Expr("empty")


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.tokens: List[Tuple[str, str, int]] = []
        pos = 0
        stripped_len = len(text.rstrip())
        while pos < stripped_len:
            match = _TOKEN_RE.match(text, pos)
            if not match:
                raise QualifierSyntaxError(text, pos, "unexpected character")
            kind = "op" if match.group("op") else "word"
            start = match.start(kind)
            self.tokens.append((kind, match.group(kind), start))
            pos = match.end()
        self.index = 0

    def peek(self) -> Optional[Tuple[str, str, int]]:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def take(self) -> Tuple[str, str, int]:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def at(self, *values: str) -> bool:
        token = self.peek()
        return token is not None and token[1] in values

    def error(self, message: str) -> QualifierSyntaxError:
        token = self.peek()
        pos = token[2] if token else len(self.text)
        return QualifierSyntaxError(self.text, pos, message)

    def parse(self) -> Expr:
        if not self.tokens:
            return EMPTY
        expr = self.parse_or()
        if self.peek() is not None:
            raise self.error("unexpected token")
        return expr

    def parse_or(self) -> Expr:
        args = [self.parse_and()]
        while self.at("|", ",", "or"):
            self.take()
            args.append(self.parse_and())
        return args[0] if len(args) == 1 else Expr("or", args=tuple(args))

    def parse_and(self) -> Expr:
        args = [self.parse_not()]
        while self.at("&", "and"):
            self.take()
            args.append(self.parse_not())
        return args[0] if len(args) == 1 else Expr("and", args=tuple(args))

    def parse_not(self) -> Expr:
        if self.at("!", "not"):
            self.take()
            return Expr("not", args=(self.parse_not(),))
        return self.parse_primary()

    def parse_primary(self) -> Expr:
        token = self.peek()
        if token is None:
            raise self.error("missing or invalid identifier")
        if token[1] == "(":
            self.take()
            expr = self.parse_or()
            if not self.at(")"):
                raise self.error("missing closing )")
            self.take()
            return expr
        if token[0] != "word" or token[1] in _KEYWORDS:
            raise self.error("missing or invalid identifier")
        self.take()
        name = token[1]
        if self.at("="):
            self.take()
            value = self.peek()
            if value is None or value[0] != "word":
                raise self.error("missing value after '='")
            self.take()
            return Expr("atom", name=name, value=value[1])
        return Expr("atom", name=name)


def parse_expression(text: Optional[str]) -> Expr:
    """Parse qualifier text; empty or None yields the always-true expression."""
    return _Parser(text or "").parse()


def _eval_atom(expr: Expr, facts: Mapping[str, str]) -> bool:
    if expr.value is not None:
        return expr.name in facts and facts[expr.name] == expr.value
    name = expr.name
    if name in _OS_ALIASES:
        return facts.get(OS) in _OS_ALIASES[name]
    if name in _ARCH_ALIASES:
        return facts.get(ARCH) in _ARCH_ALIASES[name]
    if name == "static":
        return facts.get(LINKAGE) == "static"
    if name == "staticcrt":
        return facts.get(CRT) == "static"
    if name == NATIVE:
        return str(facts.get(NATIVE, "")).lower() in TRUTHY
    return str(facts.get(name, "")).lower() in TRUTHY


def evaluate_expr(expr: Expr, facts: Mapping[str, str]) -> bool:
    """Evaluate a parsed expression against a fact set."""
    if expr.op == "empty":
        return True
    if expr.op == "atom":
        return _eval_atom(expr, facts)
    if expr.op == "not":
        return not evaluate_expr(expr.args[0], facts)
    if expr.op == "and":
        return all(evaluate_expr(arg, facts) for arg in expr.args)
    return any(evaluate_expr(arg, facts) for arg in expr.args)


def evaluate(expression, facts: Mapping[str, str]) -> bool:
    """Evaluate ``expression`` (text or parsed Expr) against ``facts``."""
    if not isinstance(expression, Expr):
        expression = parse_expression(expression)
    return evaluate_expr(expression, facts)
