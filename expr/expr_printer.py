"""
A printer for expression ASTs and runtime values.

`pformat` renders an AST as a fully parenthesized prefix expression, a
debugging aid with no evaluation side effects. `format_value` renders
evaluation results for display.
"""
import math

from expr.expr_ast import (
    Array, Binary, Call, Expr, Grouping, Literal, Logical, Unary, Variable
)
from expr.expr_callable import ExprCallable


class Printer:
    """Formats expression nodes and values into readable strings."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, expr: Expr) -> str:
        """Public entry point to render an AST node."""
        handler = self._handlers.get(type(expr))
        if handler is None:
            raise TypeError(f"cannot render {type(expr).__name__}")
        return handler(expr)

    def _create_handlers(self):
        return {
            Binary: self._pformat_binary,
            Grouping: self._pformat_grouping,
            Literal: self._pformat_literal,
            Unary: self._pformat_unary,
            Call: self._pformat_call,
            Logical: self._pformat_logical,
            Variable: self._pformat_variable,
            Array: self._pformat_array,
        }

    def _pformat_binary(self, expr: Binary) -> str:
        return self._block(expr.operator.lexeme, "(", ")", expr.left, expr.right)

    def _pformat_grouping(self, expr: Grouping) -> str:
        return self._block("group", "(", ")", expr.expression)

    def _pformat_literal(self, expr: Literal) -> str:
        return _plain(expr.value)

    def _pformat_unary(self, expr: Unary) -> str:
        return self._block(expr.operator.lexeme, "(", ")", expr.right)

    def _pformat_call(self, expr: Call) -> str:
        return self._block(self.pformat(expr.callee), "(", ")", *expr.arguments)

    def _pformat_logical(self, expr: Logical) -> str:
        return self._block(expr.operator.lexeme, "(", ")", expr.left, expr.right)

    def _pformat_variable(self, expr: Variable) -> str:
        return expr.name.lexeme

    def _pformat_array(self, expr: Array) -> str:
        # Named after the closing bracket token the node keeps.
        return self._block(expr.bracket.lexeme, "[", "]", *expr.elements)

    def _block(self, name: str, start: str, end: str, *exprs: Expr) -> str:
        parts = [name] + [self.pformat(e) for e in exprs]
        return start + " ".join(parts) + end

    # --- Values ---

    def format_value(self, value) -> str:
        """Renders an evaluation result the way the language spells it."""
        if isinstance(value, str):
            return f"'{value}'"
        if isinstance(value, (list, tuple)):
            return "[" + ", ".join(self.format_value(v) for v in value) + "]"
        if isinstance(value, Expr):
            return self.pformat(value)
        if isinstance(value, ExprCallable):
            return repr(value)
        return _plain(value)


def _plain(value) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_number(value)
    return str(value)


def _format_number(n: float) -> str:
    # Integral floats print without a fractional part: 18.0 -> 18.
    if math.isfinite(n) and n.is_integer() and abs(n) < 1e21:
        return str(int(n))
    return repr(n)


def render(expr: Expr) -> str:
    """Renders `expr` as a parenthesized prefix string, e.g. `(== a b)`."""
    return Printer().pformat(expr)
