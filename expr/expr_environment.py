"""
The flat global symbol table an expression is evaluated against.

One Environment serves one logical session. It is not synchronized: a host
sharing it across threads must serialize `define` and lookups itself.
"""
import inspect
from collections.abc import Mapping
from typing import Any, Dict

from expr.expr_callable import ExprCallable, HostFunction
from expr.expr_errors import ExprRuntimeError
from expr.expr_token import Token


class Environment:
    """Maps names to dynamic values: bools, numbers, strings, sequences, callables."""

    def __init__(self):
        self.values: Dict[str, Any] = {}

    def define(self, name: str, value: Any):
        """Binds `name`, replacing any previous value."""
        self.values[name] = value

    def get(self, name: Token) -> Any:
        try:
            return self.values[name.lexeme]
        except KeyError:
            raise ExprRuntimeError(f"undefined symbol {name.lexeme}", name) from None

    def define_function(self, name: str, func: Any) -> HostFunction:
        """Registers a Python callable under `name` with its parameter count as arity.

        Raises RegistrationError when `func` cannot be adapted.
        """
        adapted = HostFunction.from_callable(name, func)
        self.define(name, adapted)
        return adapted

    def update(self, bindings: Mapping):
        """Defines every entry of `bindings`; plain Python callables become host functions."""
        for name, value in bindings.items():
            if callable(value) and not isinstance(value, ExprCallable):
                self.define_function(name, value)
            else:
                self.define(name, value)

    def bind_host(self, host: Any):
        """Registers the methods of `host` decorated with `@host_function`."""
        for name, member in inspect.getmembers(host):
            if not callable(member):
                continue
            # The decorator marks the plain function; bound methods expose it via __func__.
            marked = getattr(member, "_is_expr_function", False)
            if not marked:
                func = getattr(member, "__func__", None)
                marked = func is not None and getattr(func, "_is_expr_function", False)
            if marked:
                self.define_function(name, member)

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __repr__(self) -> str:
        return f"<Environment {sorted(self.values)}>"
