"""
Turns expression source text into a flat list of tokens.
"""
from typing import Any, List

from expr.expr_errors import ScanError
from expr.expr_token import KEYWORDS, Token, TokenType

# Characters that always form a complete token on their own.
_SINGLE = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '[': TokenType.LEFT_BRACKET,
    ']': TokenType.RIGHT_BRACKET,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
}

# Characters that may be followed by '=' to form a two-character operator.
# The first entry is the single form, the second the '=' form.
_PAIRED = {
    '!': (TokenType.BANG, TokenType.BANG_EQUAL),
    '<': (TokenType.LESS, TokenType.LESS_EQUAL),
    '>': (TokenType.GREATER, TokenType.GREATER_EQUAL),
}


class Scanner:
    """Single left-to-right pass over the code points of one source text."""

    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = []
        self.start = 0
        self.current = 0
        self.line = 1

    def scan_tokens(self) -> List[Token]:
        while not self._is_at_end():
            # We are at the beginning of the next lexeme.
            self.start = self.current
            self._scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line))
        return self.tokens

    def _scan_token(self):
        c = self._advance()
        if c in _SINGLE:
            self._add_token(_SINGLE[c])
        elif c in _PAIRED:
            single, with_equal = _PAIRED[c]
            self._add_token(with_equal if self._match('=') else single)
        elif c == '=':
            if not self._match('='):
                raise ScanError(self.line, f"unexpected character {c}")
            self._add_token(TokenType.EQUAL_EQUAL)
        elif c in (' ', '\r', '\t'):
            pass
        elif c == '\n':
            self.line += 1
        elif c == '"':
            self._string()
        elif c.isdecimal():
            self._number()
        elif c.isalpha():
            self._identifier()
        else:
            raise ScanError(self.line, f"unexpected character {c}")

    def _add_token(self, type_: TokenType, literal: Any = None):
        text = self.source[self.start:self.current]
        self.tokens.append(Token(type_, text, literal, self.line))

    def _advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        return c

    def _match(self, expected: str) -> bool:
        if self._is_at_end():
            return False
        if self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def _peek(self) -> str:
        if self._is_at_end():
            return '\0'
        return self.source[self.current]

    def _peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return '\0'
        return self.source[self.current + 1]

    def _is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def _string(self):
        while self._peek() != '"' and not self._is_at_end():
            if self._peek() == '\n':
                self.line += 1
            self._advance()

        if self._is_at_end():
            raise ScanError(self.line, "Unterminated string.")

        # The closing quote.
        self._advance()

        # Trim the surrounding quotes; no escape processing.
        value = self.source[self.start + 1:self.current - 1]
        self._add_token(TokenType.STRING, value)

    def _number(self):
        while self._peek().isdecimal():
            self._advance()

        # A fractional part needs at least one digit after the '.'.
        if self._peek() == '.' and self._peek_next().isdecimal():
            self._advance()
            while self._peek().isdecimal():
                self._advance()

        self._add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def _identifier(self):
        while _is_identifier_char(self._peek()):
            self._advance()

        text = self.source[self.start:self.current]
        self._add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))


def _is_identifier_char(c: str) -> bool:
    return c.isalpha() or c.isdecimal() or c == '_'


def scan(source: str) -> List[Token]:
    """Scans `source` and returns its tokens, ending with an EOF token."""
    return Scanner(source).scan_tokens()
