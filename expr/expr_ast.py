"""
Defines the AST node set produced by the parser.

Nodes are immutable once built; the printer and the interpreter walk them
with plain type dispatch rather than visitor callbacks.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple

from expr.expr_token import Token


class LiteralKind(Enum):
    """The value kind a literal was declared with at parse time."""
    BOOLEAN = "boolean"
    STRING = "string"
    NUMBER = "number"


# =================================================================
# Abstract Base Class
# =================================================================

class Expr(ABC):
    """Abstract base class for every expression node."""
    pass


# =================================================================
# Node Variants
# =================================================================

@dataclass(frozen=True)
class Literal(Expr):
    value: Any
    kind: LiteralKind


@dataclass(frozen=True)
class Grouping(Expr):
    expression: Expr


@dataclass(frozen=True)
class Unary(Expr):
    """`!` or `-` applied to an operand."""
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Binary(Expr):
    """A comparison or equality operator."""
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Logical(Expr):
    """`and` / `or`; kept apart from Binary because it short-circuits."""
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Variable(Expr):
    name: Token


@dataclass(frozen=True)
class Call(Expr):
    """A call; `paren` is the closing ')' used to locate runtime errors."""
    callee: Expr
    paren: Token
    arguments: Tuple[Expr, ...]


@dataclass(frozen=True)
class Array(Expr):
    """
    An array literal. `bracket` is the closing ']' token. The elements stay
    unevaluated until something needs their values.
    """
    bracket: Token
    elements: Tuple[Expr, ...]
