# expr_runtime.py

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Literal, Mapping, Optional, Tuple

from expr.expr_ast import Expr
from expr.expr_callable import HostFunction, PrintFunc
from expr.expr_debug import dbg
from expr.expr_environment import Environment
from expr.expr_errors import ExprError
from expr.expr_interpreter import Interpreter
from expr.expr_parser import Parser
from expr.expr_scanner import Scanner


def compile_expression(source: str) -> Expr:
    """Scans and parses `source`, raising ScanError or ParseError on failure.

    The returned AST is immutable and can be evaluated any number of times.
    """
    tokens = Scanner(source).scan_tokens()
    return Parser(tokens).parse()


# ===================================================================
# Execution
# ===================================================================

@dataclass
class ExecutionResult:
    """The structured result of evaluating one expression."""
    status: Literal['success', 'error']
    value: Any = None
    error: Optional[ExprError] = None
    error_message: Optional[str] = None

    def format_error(self) -> str:
        """Formats the error message with its line when one is known."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        line = getattr(self.error, 'line', None)
        if line is not None and not msg.startswith("[line "):
            return f"Error on line {line}: {msg}"
        return msg

    def __iter__(self) -> Iterator[Any]:
        # Allows `value, error = runner.handle_script(...)`.
        yield self.value
        yield self.error


class ExprRunner:
    """Compiles and evaluates expressions for one session.

    The runner owns its Environment. Instances are not thread-safe; use one
    runner per caller or guard it with a lock.
    """

    def __init__(self,
                 bindings: Optional[Mapping[str, Any]] = None,
                 host_object: Any = None,
                 builtins: bool = False):
        self.environment = Environment()
        self.interpreter = Interpreter(self.environment)
        self.host_object = host_object
        # Compiled ASTs keyed by source text.
        self._compiled: Dict[str, Expr] = {}
        if builtins:
            self.environment.define("print", PrintFunc())
        if host_object is not None:
            self.environment.bind_host(host_object)
        if bindings:
            self.environment.update(bindings)

    def define(self, name: str, value: Any):
        self.environment.define(name, value)

    def define_function(self, name: str, func: Any) -> HostFunction:
        return self.environment.define_function(name, func)

    def compile(self, source: str) -> Expr:
        expr = self._compiled.get(source)
        if expr is None:
            expr = compile_expression(source)
            self._compiled[source] = expr
        return expr

    def evaluate(self, expr: Expr) -> ExecutionResult:
        value, error = self.interpreter.interpret(expr)
        if error is not None:
            return self._error(error)
        return ExecutionResult(status='success', value=value)

    def handle_script(self, source: str) -> ExecutionResult:
        """The main entry point: compile (or reuse) and evaluate `source`."""
        dbg("handle_script", repr(source))
        try:
            expr = self.compile(source)
        except ExprError as e:
            return self._error(e)
        return self.evaluate(expr)

    def _error(self, error: ExprError) -> ExecutionResult:
        dbg("error", type(error).__name__, str(error))
        return ExecutionResult(status='error', error=error, error_message=str(error))


def run(source: str, bindings: Optional[Mapping[str, Any]] = None) -> Tuple[Any, Optional[ExprError]]:
    """Evaluates `source` against a fresh session holding only `bindings`.

    Returns (value, None) on success and (None, error) on the first scan,
    parse or runtime error.
    """
    result = ExprRunner(bindings=bindings).handle_script(source)
    return result.value, result.error
