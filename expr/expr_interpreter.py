"""
The tree-walking evaluator.

Values are plain Python objects: bool, float, str, list/tuple, ExprCallable
or None. Numbers coming from the host are compared as floats; nothing else is
coerced implicitly, so `and`, `or` and `!` insist on real booleans.
"""
import operator
import traceback
from typing import Any, List, Optional, Tuple

from expr.expr_ast import (
    Array, Binary, Call, Expr, Grouping, Literal, LiteralKind, Logical, Unary, Variable
)
from expr.expr_callable import ExprCallable, coerce, is_sequence, to_number
from expr.expr_debug import dbg
from expr.expr_environment import Environment
from expr.expr_errors import ExprError, ExprRuntimeError
from expr.expr_token import TokenType

_ORDERING = {
    TokenType.GREATER: operator.gt,
    TokenType.GREATER_EQUAL: operator.ge,
    TokenType.LESS: operator.lt,
    TokenType.LESS_EQUAL: operator.le,
}


class LazyArray(list):
    """The value of an array literal: its element nodes, not yet evaluated.

    Equality walks the elements lazily and stops at the first mismatch.
    Anywhere a concrete value is required the array is materialized first.
    """
    pass


class Interpreter:
    """Evaluates ASTs against one Environment."""

    def __init__(self, environment: Optional[Environment] = None):
        self.environment = environment if environment is not None else Environment()

    def interpret(self, expr: Expr) -> Tuple[Any, Optional[ExprError]]:
        """Evaluates `expr`, returning (value, None) or (None, error).

        Nothing raised during the walk escapes: unexpected exceptions become
        runtime errors that carry the formatted traceback.
        """
        try:
            value = self._materialize(self.evaluate(expr))
        except ExprError as e:
            dbg("interpret error", repr(e))
            return None, e
        except Exception as e:
            dbg("interpret fault", type(e).__name__, e)
            return None, ExprRuntimeError(f"runtime err: {e}", stack=traceback.format_exc())
        return value, None

    def evaluate(self, expr: Expr) -> Any:
        match expr:
            case Literal():
                return self._literal(expr)
            case Grouping():
                return self.evaluate(expr.expression)
            case Unary():
                return self._unary(expr)
            case Binary():
                return self._binary(expr)
            case Logical():
                return self._logical(expr)
            case Variable():
                return self.environment.get(expr.name)
            case Call():
                return self._call(expr)
            case Array():
                return LazyArray(expr.elements)
            case _:
                raise ExprRuntimeError(f"unknown expression {type(expr).__name__}")

    def _literal(self, expr: Literal) -> Any:
        if expr.kind == LiteralKind.BOOLEAN:
            return bool(expr.value)
        if expr.kind == LiteralKind.STRING:
            return str(expr.value)
        if expr.kind == LiteralKind.NUMBER:
            return float(expr.value)
        return expr.value

    def _logical(self, expr: Logical) -> bool:
        left = _truthy(self.evaluate(expr.left))
        if expr.operator.type == TokenType.OR:
            if left:
                return True
        elif not left:
            return False
        return _truthy(self.evaluate(expr.right))

    def _unary(self, expr: Unary) -> Any:
        right = self.evaluate(expr.right)
        match expr.operator.type:
            case TokenType.MINUS:
                n = to_number(right)
                if n is None:
                    raise ExprRuntimeError(f"{right!r} ({type(right).__name__}) is not number")
                return -n
            case TokenType.BANG:
                return not _truthy(right)
        raise ExprRuntimeError(f"unknown operator {expr.operator.lexeme}")

    def _binary(self, expr: Binary) -> bool:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        op = expr.operator

        ln = to_number(left)
        rn = to_number(right)
        if (ln is None) != (rn is None):
            raise ExprRuntimeError(f"{left!r} {op.lexeme} {right!r} is not number")

        if op.type in _ORDERING:
            if ln is None:
                raise ExprRuntimeError(f"{left!r} {op.lexeme} {right!r} is not number")
            return _ORDERING[op.type](ln, rn)
        if op.type == TokenType.EQUAL_EQUAL:
            return self._is_equal(left, right)
        if op.type == TokenType.BANG_EQUAL:
            return not self._is_equal(left, right)
        raise ExprRuntimeError(f"unknown operator {op.lexeme}")

    def _call(self, expr: Call) -> Any:
        callee = self.evaluate(expr.callee)
        if not isinstance(callee, ExprCallable):
            raise ExprRuntimeError("not callable", expr.paren)

        if len(expr.arguments) != callee.arity():
            raise ExprRuntimeError(
                f"want {callee.arity()} but got {len(expr.arguments)} arguments", expr.paren
            )

        arguments: List[Any] = []
        for arg in expr.arguments:
            arguments.append(self._materialize(self.evaluate(arg)))

        dbg("Interpreter.call", repr(callee), "argc", len(arguments))
        return callee.call(arguments)

    # --- Equality ---

    def _is_equal(self, a: Any, b: Any) -> bool:
        an = to_number(a)
        bn = to_number(b)
        if an is not None and bn is not None:
            return an == bn
        if is_sequence(a):
            return self._is_sequence_equal(a, b)
        try:
            return bool(a == b)
        except (TypeError, ValueError):
            # Values whose types cannot be compared are simply unequal.
            return False

    def _is_sequence_equal(self, a, b) -> bool:
        """Positional equality; lazy elements are evaluated only when reached."""
        if not is_sequence(b) or len(a) != len(b):
            return False

        for left, right in zip(a, b):
            if isinstance(left, Expr):
                left = self.evaluate(left)
            if isinstance(right, Expr):
                right = self.evaluate(right)
            # Nested sequences are compared by shape, whatever their container type.
            target = list if is_sequence(right) else type(right)
            try:
                left = coerce(left, target)
            except TypeError:
                return False
            if not self._is_equal(left, right):
                return False
        return True

    def _materialize(self, value: Any) -> Any:
        if isinstance(value, LazyArray):
            return [self._materialize(self.evaluate(node)) for node in value]
        return value


def _truthy(value: Any) -> bool:
    if value is None:
        raise ExprRuntimeError("nil value")
    if not isinstance(value, bool):
        raise ExprRuntimeError(f"not bool value: {value!r}")
    return value
