"""
Recursive-descent parser building an AST from scanner tokens.

    expression → or
    or         → and ( "or" and )*
    and        → equality ( "and" equality )*
    equality   → comparison ( ( "!=" | "==" ) comparison )*
    comparison → unary ( ( ">" | ">=" | "<" | "<=" ) unary )*
    unary      → ( "!" | "-" ) unary | call
    call       → primary ( "(" arguments? ")" )*
    primary    → NUMBER | STRING | "true" | "false" | IDENTIFIER
               | "(" expression ")" | "[" elements? "]"

There are no additive or multiplicative levels: `comparison` descends
straight into `unary`, so arithmetic is not part of the language.
"""
from typing import Callable, List

from expr.expr_ast import (
    Array, Binary, Call, Expr, Grouping, Literal, LiteralKind, Logical, Unary, Variable
)
from expr.expr_errors import ParseError
from expr.expr_token import Token, TokenType


class Parser:
    """Parses one token list; stops at the first error without recovery."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.current = 0

    def parse(self) -> Expr:
        try:
            expr = self._expression()
        except RecursionError:
            raise self._error(self._peek(), "Expression nests too deeply.") from None
        if not self._is_at_end():
            raise self._error(self._peek(), "Expect end of expression.")
        return expr

    # --- Grammar rules, lowest precedence first ---

    def _expression(self) -> Expr:
        return self._or()

    def _or(self) -> Expr:
        expr = self._and()
        while self._match(TokenType.OR):
            operator = self._previous()
            right = self._and()
            expr = Logical(expr, operator, right)
        return expr

    def _and(self) -> Expr:
        expr = self._equality()
        while self._match(TokenType.AND):
            operator = self._previous()
            right = self._equality()
            expr = Logical(expr, operator, right)
        return expr

    def _equality(self) -> Expr:
        return self._binary_chain(self._comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def _comparison(self) -> Expr:
        return self._binary_chain(
            self._unary,
            TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL,
        )

    def _binary_chain(self, operand: Callable[[], Expr], *operators: TokenType) -> Expr:
        """Folds `operand (op operand)*` into left-associative Binary nodes."""
        expr = operand()
        while self._match(*operators):
            operator = self._previous()
            right = operand()
            expr = Binary(expr, operator, right)
        return expr

    def _unary(self) -> Expr:
        if self._match(TokenType.BANG, TokenType.MINUS):
            operator = self._previous()
            right = self._unary()
            return Unary(operator, right)
        return self._call()

    def _call(self) -> Expr:
        expr = self._primary()
        while self._match(TokenType.LEFT_PAREN):
            expr = self._finish_call(expr)
        return expr

    def _finish_call(self, callee: Expr) -> Expr:
        arguments = self._expression_list(TokenType.RIGHT_PAREN)
        paren = self._consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, tuple(arguments))

    def _finish_array(self) -> Expr:
        elements = self._expression_list(TokenType.RIGHT_BRACKET)
        bracket = self._consume(TokenType.RIGHT_BRACKET, "Expect ']' after elements.")
        return Array(bracket, tuple(elements))

    def _expression_list(self, closing: TokenType) -> List[Expr]:
        """Comma-separated expressions up to (not including) `closing`."""
        items: List[Expr] = []
        if self._check(closing):
            return items
        items.append(self._expression())
        while self._match(TokenType.COMMA):
            items.append(self._expression())
        return items

    def _primary(self) -> Expr:
        if self._match(TokenType.FALSE):
            return Literal(False, LiteralKind.BOOLEAN)
        if self._match(TokenType.TRUE):
            return Literal(True, LiteralKind.BOOLEAN)
        if self._match(TokenType.NUMBER):
            return Literal(self._previous().literal, LiteralKind.NUMBER)
        if self._match(TokenType.STRING):
            return Literal(self._previous().literal, LiteralKind.STRING)
        if self._match(TokenType.IDENTIFIER):
            return Variable(self._previous())
        if self._match(TokenType.LEFT_PAREN):
            expr = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)
        if self._match(TokenType.LEFT_BRACKET):
            return self._finish_array()

        raise self._error(self._peek(), "Expect expression.")

    # --- Token cursor helpers ---

    def _match(self, *types: TokenType) -> bool:
        for t in types:
            if self._check(t):
                self._advance()
                return True
        return False

    def _check(self, type_: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._peek().type == type_

    def _is_at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _consume(self, type_: TokenType, message: str) -> Token:
        if self._check(type_):
            return self._advance()
        raise self._error(self._peek(), message)

    def _error(self, token: Token, message: str) -> ParseError:
        return ParseError(token, message)


def parse(tokens: List[Token]) -> Expr:
    """Parses a token list (as returned by the scanner) into an AST root."""
    return Parser(tokens).parse()
