"""
Callables reachable from expressions, and the value coercions they rely on.

A host registers plain Python functions; `HostFunction` captures the
function's arity and parameter annotations once, at registration time, and
converts every incoming argument toward the annotated type before the call.
"""
import collections.abc
import inspect
import numbers
import sys
import types
import typing
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Union

from expr.expr_debug import dbg
from expr.expr_errors import ExprRuntimeError, RegistrationError

_ANY_TYPES = (Any, object, inspect.Parameter.empty)
_SEQUENCE_ORIGINS = (list, tuple, collections.abc.Sequence)

# =================================================================
# Value Coercion
# =================================================================

def to_number(value: Any) -> Optional[float]:
    """Returns `value` as a float, or None when it is not numeric.

    Booleans are not numbers here even though Python treats them as ints.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        return float(value)
    return None


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def type_name(target: Any) -> str:
    if target in _ANY_TYPES:
        return "any"
    if isinstance(target, type) and typing.get_origin(target) is None:
        return target.__name__
    return str(target).replace("typing.", "")


def _is_union(origin) -> bool:
    if origin is Union:
        return True
    return origin is types.UnionType


def coerce(value: Any, target: Any) -> Any:
    """Converts `value` toward `target`, raising TypeError when it cannot.

    Numbers widen to float and narrow to int only when no precision is lost;
    sequences are rebuilt element by element. Unknown typing constructs accept
    the value unchanged.
    """
    if target in _ANY_TYPES:
        return value

    origin = typing.get_origin(target)
    if _is_union(origin):
        for option in typing.get_args(target):
            try:
                return coerce(value, option)
            except TypeError:
                continue
        raise TypeError(f"{value!r} matches no member of {type_name(target)}")

    if target is None or target is type(None):
        if value is None:
            return None
        raise TypeError(f"{value!r} is not nil")

    if origin in _SEQUENCE_ORIGINS or target in (list, tuple):
        return _coerce_sequence(value, target, origin)

    if target is bool:
        if isinstance(value, bool):
            return value
        raise TypeError(f"{value!r} is not bool")

    if target is float or target is int:
        n = to_number(value)
        if n is None:
            raise TypeError(f"{value!r} is not number")
        if target is float:
            return n
        if isinstance(value, int):
            return value
        if not n.is_integer():
            raise TypeError(f"{value!r} would lose precision as int")
        return int(n)

    if target is str:
        if isinstance(value, str):
            return value
        raise TypeError(f"{value!r} is not str")

    check = origin if origin is not None else target
    if isinstance(check, type):
        if isinstance(value, check):
            return value
        raise TypeError(f"{value!r} is not {type_name(target)}")

    return value


def _coerce_sequence(value: Any, target: Any, origin: Any) -> Any:
    if not is_sequence(value):
        raise TypeError(f"{value!r} is not a sequence")

    container = origin or target
    args = typing.get_args(target)
    if container is tuple and args and not (len(args) == 2 and args[1] is Ellipsis):
        # Fixed-shape tuple, e.g. tuple[str, int].
        if len(args) != len(value):
            raise TypeError(f"{value!r} does not have {len(args)} items")
        return tuple(coerce(v, t) for v, t in zip(value, args))

    element = args[0] if args else Any
    items = [coerce(v, element) for v in value]
    if container is tuple:
        return tuple(items)
    return items


# =================================================================
# Callables
# =================================================================

class ExprCallable(ABC):
    """Anything invocable from an expression."""

    @abstractmethod
    def call(self, arguments: List[Any]) -> Any:
        raise NotImplementedError

    @abstractmethod
    def arity(self) -> int:
        raise NotImplementedError


class PrintFunc(ExprCallable):
    """The built-in `print`: writes its single argument and returns nil."""

    def __init__(self, out=None):
        self.out = out

    def call(self, arguments: List[Any]) -> Any:
        from expr.expr_printer import Printer
        out = self.out or sys.stdout
        out.write(Printer().format_value(arguments[0]) + "\n")
        return None

    def arity(self) -> int:
        return 1

    def __repr__(self) -> str:
        return "<native fn print>"


class HostFunction(ExprCallable):
    """Adapter exposing a Python callable with a fixed number of parameters."""

    def __init__(self, name: str, func: typing.Callable, param_types: Sequence[Any]):
        self.name = name
        self.func = func
        self.param_types = list(param_types)

    @classmethod
    def from_callable(cls, name: str, func: Any) -> 'HostFunction':
        """Inspects `func` once and builds the adapter, or raises RegistrationError."""
        if not callable(func):
            raise RegistrationError(f"{name}: not a function")
        try:
            sig = inspect.signature(func)
        except (TypeError, ValueError) as e:
            raise RegistrationError(f"{name}: cannot inspect signature: {e}") from e

        hints = _type_hints(func)
        param_types = []
        for param in sig.parameters.values():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                raise RegistrationError(f"{name}: variadic parameter '{param.name}' has no fixed arity")
            if param.kind == param.KEYWORD_ONLY:
                if param.default is param.empty:
                    raise RegistrationError(f"{name}: keyword-only parameter '{param.name}' cannot be passed")
                continue
            expected = hints.get(param.name, param.annotation)
            if isinstance(expected, str):
                # Unresolvable string annotation.
                expected = Any
            param_types.append(expected)

        returns = hints.get("return", sig.return_annotation)
        if _return_count(returns) > 1:
            raise RegistrationError(f"{name}: too many return values")

        return cls(name, func, param_types)

    def arity(self) -> int:
        return len(self.param_types)

    def call(self, arguments: List[Any]) -> Any:
        converted = []
        for i, (arg, expected) in enumerate(zip(arguments, self.param_types)):
            try:
                converted.append(coerce(arg, expected))
            except TypeError:
                raise ExprRuntimeError(
                    f"{self.name} argument[{i}] {arg!r} ({type(arg).__name__}) "
                    f"is not compatible for {type_name(expected)}"
                ) from None

        dbg("HostFunction.call", self.name, "args", converted)
        try:
            return self.func(*converted)
        except Exception as e:
            raise ExprRuntimeError(f"{self.name} failed: {type(e).__name__}: {e}") from e

    def __repr__(self) -> str:
        return f"<fn {self.name}/{self.arity()}>"


def _type_hints(func: Any) -> dict:
    target = func
    if inspect.isclass(func):
        target = func.__init__
    elif not inspect.isroutine(func):
        target = type(func).__call__
    try:
        return typing.get_type_hints(target)
    except (NameError, TypeError):
        pass

    # One unresolvable forward reference fails get_type_hints as a whole;
    # resolve name by name and leave only the broken ones out.
    try:
        raw = inspect.get_annotations(target)
    except (TypeError, ValueError):
        return {}
    namespace = getattr(inspect.unwrap(getattr(target, "__func__", target)), "__globals__", {})
    hints = {}
    for name, annotation in raw.items():
        if isinstance(annotation, str):
            try:
                annotation = eval(annotation, namespace)
            except (NameError, AttributeError, SyntaxError, TypeError):
                dbg("unresolved annotation", name, repr(annotation))
                continue
        hints[name] = annotation
    return hints


def _return_count(annotation: Any) -> int:
    if typing.get_origin(annotation) is not tuple:
        return 1
    args = typing.get_args(annotation)
    if not args or (len(args) == 2 and args[1] is Ellipsis):
        return 1
    return len(args)


def host_function(func):
    """Marks a host method for `Environment.bind_host`."""
    func._is_expr_function = True
    return func
