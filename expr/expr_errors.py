"""
Error types raised by the scanner, the parser and the interpreter.

Every stage stops at its first problem; the runtime converts these into a
single error value for the caller.
"""
from typing import Optional

from expr.expr_token import Token, TokenType


def report(line: int, where: str, message: str) -> str:
    return f"[line {line}] Error{where}: {message}"


class ExprError(Exception):
    """Base class for every error surfaced by the expression pipeline."""
    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line


class ScanError(ExprError):
    """Malformed lexical input: unexpected character or unterminated string."""
    def __init__(self, line: int, message: str):
        super().__init__(message, line)

    def __str__(self) -> str:
        return report(self.line, "", self.message)


class ParseError(ExprError):
    """Malformed syntax, reported against the offending token."""
    def __init__(self, token: Token, message: str):
        super().__init__(message, token.line)
        self.token = token
        if token.type == TokenType.EOF:
            self.where = " at end"
        else:
            self.where = f" at '{token.lexeme}'"

    def __str__(self) -> str:
        return report(self.line, self.where, self.message)


class ExprRuntimeError(ExprError):
    """A failure while evaluating an expression.

    When a token is attached the message is prefixed with its lexeme, so a
    failing call reads like ``): want 0 but got 1 arguments``.
    """
    def __init__(self, message: str, token: Optional[Token] = None, stack: Optional[str] = None):
        super().__init__(message, token.line if token is not None else None)
        self.token = token
        self.stack = stack

    def __str__(self) -> str:
        if self.token is not None:
            return f"{self.token.lexeme}: {self.message}"
        return self.message


class RegistrationError(ExprError):
    """A host value could not be registered as a callable."""
    pass
