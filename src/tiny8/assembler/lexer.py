"""
tiny8 Assembly Language Lexer
=============================

This module implements the lexer (tokenizer) for tiny8 assembly language.
Source is tokenized one line at a time; every token carries a byte-exact,
half-open span into that line so diagnostics can underline it precisely.

Token Types
-----------
- DOT: ``.`` (starts a label definition or a directive)
- COLON: ``:`` (ends a label definition)
- BRACKET_OPEN / BRACKET_CLOSE: ``[`` and ``]`` around address operands
- IDENTIFIER: mnemonics, label names and directive names
- LITERAL: ``$`` followed by hexadecimal digits, value 0..255

Identifiers start with ``_`` or a letter and continue with letters and
digits only. A ``;`` starts a comment that runs to the end of the line.

Example
-------
>>> from tiny8.assembler.lexer import tokenize
>>> for token in tokenize("ld [$10] ; load"):
...     print(token)
ld @ 0..2
[ @ 3..4
$10 @ 4..7
] @ 7..8
"""

from dataclasses import dataclass
from enum import Enum, auto
import string

from tiny8.errors import AssemblySyntaxError, Diag, Span, Spanned


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for tiny8 assembly language."""

    # Delimiters
    DOT = auto()            # .
    COLON = auto()          # :
    BRACKET_OPEN = auto()   # [
    BRACKET_CLOSE = auto()  # ]

    # Values
    IDENTIFIER = auto()     # Mnemonics, labels, directive names
    LITERAL = auto()        # $XX hexadecimal byte


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single lexical element.

    Position information lives in the ``Spanned`` wrapper produced by the
    lexer, so tokens compare equal by type and value alone.

    Attributes:
        type: The TokenType classification
        value: Name for identifiers, byte value for literals, None otherwise
    """
    type: TokenType
    value: str | int | None = None

    @classmethod
    def ident(cls, name: str) -> "Token":
        return cls(TokenType.IDENTIFIER, name)

    @classmethod
    def literal(cls, value: int) -> "Token":
        return cls(TokenType.LITERAL, value)

    def __str__(self) -> str:
        if self.type == TokenType.LITERAL:
            return f"${self.value:02X}"
        if self.type == TokenType.IDENTIFIER:
            return str(self.value)
        return _DELIMITER_TEXT[self.type]

    def __repr__(self) -> str:
        if self.type == TokenType.LITERAL:
            return f"Token({self.type.name}, ${self.value:02X})"
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r})"
        return f"Token({self.type.name})"


_DELIMITER_TEXT = {
    TokenType.DOT: ".",
    TokenType.COLON: ":",
    TokenType.BRACKET_OPEN: "[",
    TokenType.BRACKET_CLOSE: "]",
}


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes a single line of tiny8 assembly.

    Positions are tracked in bytes of the line's UTF-8 encoding, so spans
    stay exact when the line contains multi-byte characters (for example in
    a comment).

    Usage:
        tokens = Lexer("ldi $05").tokenize()

    Attributes:
        line: The source line being tokenized (without line terminator)
    """

    SINGLE_CHAR_TOKENS = {
        ".": TokenType.DOT,
        ":": TokenType.COLON,
        "[": TokenType.BRACKET_OPEN,
        "]": TokenType.BRACKET_CLOSE,
    }

    HEX_DIGITS = string.hexdigits

    def __init__(self, line: str):
        self.line = line
        self._pos = 0      # index into the str
        self._offset = 0   # byte offset of self._pos

    def tokenize(self) -> list[Spanned[Token]]:
        """
        Tokenize the whole line.

        Returns:
            Tokens in source order, each with its byte span

        Raises:
            AssemblySyntaxError: On the first invalid character or literal
        """
        tokens: list[Spanned[Token]] = []

        while not self._at_end():
            char = self._peek()

            if char.isspace():
                self._advance()
                continue

            if char == ";":
                break

            tokens.append(self._scan_token())

        return tokens

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.line)

    def _peek(self) -> str:
        """Current character, or empty string at end of line."""
        if self._at_end():
            return ""
        return self.line[self._pos]

    def _advance(self) -> str:
        """Consume the current character, keeping the byte offset in step."""
        char = self.line[self._pos]
        self._pos += 1
        self._offset += len(char.encode("utf-8"))
        return char

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Spanned[Token]:
        start = self._offset
        char = self._peek()

        if char in self.SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(Token(self.SINGLE_CHAR_TOKENS[char]), start)

        if char == "$":
            return self._scan_literal(start)

        if char == "_" or char.isalpha():
            return self._scan_identifier(start)

        self._advance()
        raise self._error(
            Diag.span_error(Span(start, self._offset), "invalid token start character")
        )

    def _scan_identifier(self, start: int) -> Spanned[Token]:
        chars = [self._advance()]
        # Note: '' is not alphanumeric, so the loop stops at end of line
        while self._peek().isalnum():
            chars.append(self._advance())
        return self._make_token(Token.ident("".join(chars)), start)

    def _scan_literal(self, start: int) -> Spanned[Token]:
        self._advance()  # consume $

        digits = []
        # Note: Must check for non-empty string first because '' in string.hexdigits is True
        while self._peek() and self._peek() in self.HEX_DIGITS:
            digits.append(self._advance())

        span = Span(start, self._offset)

        if not digits:
            raise self._error(
                Diag.span_error(span, "empty literal")
                .add_note("expected hexadecimal digits after '$'")
            )

        value = int("".join(digits), 16)
        if value > 0xFF:
            raise self._error(
                Diag.span_error(span, "this literal's value overflows a byte")
                .add_note("only values between 0 and 255 (`$FF`) are allowed")
                .add_note("numbers are specified in hexadecimal")
            )

        return Spanned(Token.literal(value), span)

    def _make_token(self, token: Token, start: int) -> Spanned[Token]:
        return Spanned(token, Span(start, self._offset))

    def _error(self, diag: Diag) -> AssemblySyntaxError:
        return AssemblySyntaxError(diag, self.line)


def tokenize(line: str) -> list[Spanned[Token]]:
    """
    Convenience function to tokenize one line of assembly.

    Args:
        line: Source line without its line terminator

    Returns:
        List of span-tagged tokens
    """
    return Lexer(line).tokenize()
