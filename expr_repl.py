import argparse
import sys
import time

import yaml

from expr.expr_errors import ExprError
from expr.expr_printer import Printer
from expr.expr_runtime import ExecutionResult, ExprRunner
from expr.expr_serialize import load_bindings


def read_line(prompt: str) -> str:
    return input(prompt)


def now() -> float:
    """Current Unix time in seconds."""
    return time.time()


def build_runner(data_path=None) -> ExprRunner:
    """A session with the `print` and `now` builtins plus any values from `data_path`."""
    runner = ExprRunner(builtins=True)
    runner.define_function("now", now)
    if data_path:
        runner.environment.update(load_bindings(data_path))
    return runner


def run_expression(runner: ExprRunner, source: str, show_ast: bool = False) -> int:
    """Evaluate one expression, print its value, and return an exit status."""
    printer = Printer()
    if show_ast:
        try:
            expr = runner.compile(source)
        except ExprError as e:
            failed = ExecutionResult(status='error', error=e, error_message=str(e))
            print(failed.format_error(), file=sys.stderr)
            return 1
        print(printer.pformat(expr))

    result = runner.handle_script(source)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        return 1
    if result.value is not None:
        print(printer.format_value(result.value))
    return 0


def main(argv=None) -> int:
    """Evaluate an expression when one is given, otherwise start the interactive REPL."""
    parser = argparse.ArgumentParser(description="Evaluate boolean predicate expressions.")
    parser.add_argument("expression", nargs="?", help="expression to evaluate once")
    parser.add_argument("--data", help="JSON or YAML file of values to bind")
    parser.add_argument("--ast", action="store_true", help="print the parsed AST before evaluating")
    args = parser.parse_args(argv)

    try:
        runner = build_runner(args.data)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.expression is not None:
        return run_expression(runner, args.expression, args.ast)

    print("expr REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    while True:
        try:
            raw = read_line(">> ")
        except EOFError:
            print("\nExiting.")
            break

        line = raw.strip()
        if not line:
            continue
        if line == "exit":
            break
        run_expression(runner, line, args.ast)

    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nExiting.")
