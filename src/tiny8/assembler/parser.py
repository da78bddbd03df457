"""
tiny8 Assembly Language Parser
==============================

This module turns the tokens of one line into a structured statement, and a
whole source text into a :class:`Program`.

Statement Types
---------------
Every non-blank line is exactly one of:

1. **LabelDef**: a label definition, bound to the current address
   ```asm
   .loop:
   ```

2. **Directive**: an assembler directive (only ``.byte`` exists)
   ```asm
   .byte $2A
   ```

3. **Instruction**: a mnemonic followed by exactly as many operands as the
   opcode table says, separated by whitespace
   ```asm
   ldi $05
   sti $48 msg
   ld [counter]
   jz done
   ```

Operands are a hex literal or a label name. Operands that name a memory
cell (``ld``, ``st``, ``sti`` destination, ``mov``, ``add``, ``sub``,
``and``, ``print``) may be written in brackets; the brackets document the
memory access and do not change the encoding.

Error Reporting
---------------
``parse_line`` raises :class:`AssemblySyntaxError` for the first problem on
a line. ``parse`` keeps going after a bad line, collects every error and
raises one :class:`AssemblyError` at the end, so all problems in a source
are reported in a single run.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union
import logging

from tiny8.assembler.lexer import Token, TokenType, tokenize
from tiny8.cpu import DIRECTIVES, MNEMONICS, Opcode, Operand, OperandKind, lookup_mnemonic
from tiny8.errors import (
    AssemblySyntaxError,
    Diag,
    DiagnosticCollector,
    Span,
    Spanned,
    find_similar_names,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Operand Types
# =============================================================================

@dataclass
class ValueArg:
    """
    A literal operand.

    Attributes:
        value: Byte value 0..255
        span: Where the literal appears in its line
        bracketed: True if written as ``[$XX]``
    """
    value: int
    span: Optional[Span] = field(default=None, compare=False)
    bracketed: bool = field(default=False, compare=False)

    def __str__(self) -> str:
        text = f"${self.value:02X}"
        return f"[{text}]" if self.bracketed else text


@dataclass
class LabelArg:
    """
    A label reference, resolved to an address by the code generator.

    Attributes:
        name: The referenced label
        span: Where the name appears in its line
        bracketed: True if written as ``[name]``
    """
    name: str
    span: Optional[Span] = field(default=None, compare=False)
    bracketed: bool = field(default=False, compare=False)

    def __str__(self) -> str:
        return f"[{self.name}]" if self.bracketed else self.name


Arg = Union[ValueArg, LabelArg]


# =============================================================================
# Statement Types
# =============================================================================

@dataclass
class Statement:
    """Base class for all parsed lines."""

    @property
    def size(self) -> int:
        """Number of bytes this statement emits."""
        return 0


@dataclass
class LabelDef(Statement):
    """
    Label definition statement.

    Attributes:
        name: Label name (without the leading dot or trailing colon)
        span: Where the name appears in its line
    """
    name: str
    span: Optional[Span] = field(default=None, compare=False)

    def __str__(self) -> str:
        return f".{self.name}:"


@dataclass
class Directive(Statement):
    """Base class for assembler directives."""


@dataclass
class ByteDirective(Directive):
    """
    ``.byte`` directive: emits one literal byte.

    Attributes:
        value: Byte value 0..255
    """
    value: int

    @property
    def size(self) -> int:
        return 1

    def __str__(self) -> str:
        return f".byte ${self.value:02X}"


@dataclass
class Instruction(Statement):
    """
    Machine instruction statement.

    Attributes:
        opcode: The instruction's opcode
        args: One argument per operand slot, in encoding order
    """
    opcode: Opcode
    args: tuple[Arg, ...] = ()

    def __post_init__(self) -> None:
        self.args = tuple(self.args)
        expected = self.opcode.info.operand_count
        if len(self.args) != expected:
            raise ValueError(
                f"'{self.opcode.mnemonic}' takes {expected} operand(s), got {len(self.args)}"
            )

    @property
    def mnemonic(self) -> str:
        return self.opcode.mnemonic

    @property
    def size(self) -> int:
        return self.opcode.size

    def operand(self, name: str) -> Arg:
        """
        Get an argument by its operand name (``src``, ``dst``, ``value``, ``target``).

        Raises:
            KeyError: If this instruction has no operand with that name
        """
        for slot, arg in zip(self.opcode.info.operands, self.args):
            if slot.name == name:
                return arg
        raise KeyError(f"'{self.mnemonic}' has no operand named '{name}'")

    def __str__(self) -> str:
        return " ".join([self.mnemonic, *(str(arg) for arg in self.args)])


Line = Union[LabelDef, Directive, Instruction]


# =============================================================================
# Program
# =============================================================================

@dataclass(frozen=True)
class SourceLine:
    """
    One physical line of the source text.

    Attributes:
        number: 0-based line number
        offset: Byte offset of the line's first character in the source
        text: Line content without its terminator
    """
    number: int
    offset: int
    text: str

    @property
    def span(self) -> Span:
        """Byte range of the line within the whole source."""
        return Span(self.offset, self.offset + len(self.text.encode("utf-8")))


def split_lines(source: str) -> Iterator[SourceLine]:
    """
    Split source text into lines, recording each line's starting byte offset.

    Lines end at ``\\n``; a trailing ``\\r`` is stripped from the line text.
    """
    offset = 0
    for number, raw in enumerate(source.split("\n")):
        text = raw[:-1] if raw.endswith("\r") else raw
        yield SourceLine(number, offset, text)
        offset += len(raw.encode("utf-8")) + 1


@dataclass
class Program:
    """
    A parsed source: one entry per non-blank, non-comment line, in order.

    Attributes:
        lines: Parsed lines, each spanning its byte range in the source
        sources: The physical line each entry came from (same order)
    """
    lines: list[Spanned[Line]] = field(default_factory=list)
    sources: list[SourceLine] = field(default_factory=list)

    def append(self, line: Line, source: SourceLine) -> None:
        self.lines.append(Spanned(line, source.span))
        self.sources.append(source)

    def entries(self) -> Iterator[tuple[Line, SourceLine]]:
        """Iterate over (statement, source line) pairs."""
        for spanned, source in zip(self.lines, self.sources):
            yield spanned.value, source

    @property
    def size(self) -> int:
        """Total encoded size in bytes."""
        return sum(spanned.value.size for spanned in self.lines)

    def __iter__(self) -> Iterator[Spanned[Line]]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, index: int) -> Spanned[Line]:
        return self.lines[index]


# =============================================================================
# Line Parser
# =============================================================================

class LineParser:
    """
    Parses the tokens of a single line into a statement.

    Usage:
        parser = LineParser(tokenize("ldi $05"))
        statement = parser.parse()
    """

    def __init__(self, tokens: list[Spanned[Token]]):
        self.tokens = tokens
        self._pos = 0

    def parse(self) -> Optional[Line]:
        """
        Parse the line.

        Returns:
            The statement, or None if the line holds no tokens

        Raises:
            AssemblySyntaxError: If the tokens do not form a valid line
        """
        if not self.tokens:
            return None

        first = self._advance()

        match first.value.type:
            case TokenType.DOT:
                return self._parse_dot_line()
            case TokenType.IDENTIFIER:
                return self._parse_instruction(first)
            case _:
                raise self._error(
                    Diag.span_error(first.span, f"unexpected '{first.value}' token at start of line")
                    .add_note("expected ident or '.'")
                )

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.tokens)

    def _advance(self) -> Spanned[Token]:
        token = self.tokens[self._pos]
        self._pos += 1
        return token

    def _match(self, token_type: TokenType) -> Optional[Spanned[Token]]:
        """Consume the next token if it has the given type."""
        if not self._at_end() and self.tokens[self._pos].value.type == token_type:
            return self._advance()
        return None

    def _expect(self, types: tuple[TokenType, ...], expected: str) -> Spanned[Token]:
        """
        Consume the next token, which must have one of ``types``.

        Args:
            types: Acceptable token types
            expected: Description used in the error message
        """
        if self._at_end():
            # Point just past the previous token
            end = self.tokens[self._pos - 1].span.hi
            raise self._error(
                Diag.span_error(Span(end, end + 1), f"unexpected end of line, expected {expected}")
            )

        token = self._advance()
        if token.value.type not in types:
            raise self._error(
                Diag.span_error(token.span, f"unexpected '{token.value}' token, expected {expected}")
            )
        return token

    def _expect_eol(self, context: str = "") -> None:
        """Fail if any token is left on the line."""
        if not self._at_end():
            token = self.tokens[self._pos]
            raise self._error(
                Diag.span_error(
                    token.span,
                    f"unexpected token '{token.value}', expected end of line{context}",
                )
            )

    def _error(self, diag: Diag) -> AssemblySyntaxError:
        return AssemblySyntaxError(diag)

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_dot_line(self) -> Line:
        name = self._expect((TokenType.IDENTIFIER,), "ident")

        if self._match(TokenType.COLON) is not None:
            self._expect_eol(" after label")
            return LabelDef(name.value.value, name.span)

        return self._parse_directive(name)

    def _parse_directive(self, name: Spanned[Token]) -> Directive:
        match name.value.value:
            case "byte":
                literal = self._expect((TokenType.LITERAL,), "literal")
                self._expect_eol()
                return ByteDirective(literal.value.value)
            case _:
                known = ", ".join(f".{d}" for d in sorted(DIRECTIVES))
                raise self._error(
                    Diag.span_error(name.span, f"invalid directive name '{name.value}'")
                    .add_note(f"known directives: {known}")
                )

    def _parse_instruction(self, mnemonic: Spanned[Token]) -> Instruction:
        name = mnemonic.value.value
        opcode = lookup_mnemonic(name)

        if opcode is None:
            diag = Diag.span_error(mnemonic.span, f"unknown instruction '{name}'")
            similar = find_similar_names(name, MNEMONICS)
            if similar:
                suggestions = ", ".join(f"'{s}'" for s in similar)
                diag = diag.add_note(f"did you mean {suggestions}?")
            raise self._error(diag)

        args = tuple(self._parse_operand(opcode, slot) for slot in opcode.info.operands)
        self._expect_eol()
        return Instruction(opcode, args)

    def _parse_operand(self, opcode: Opcode, slot: Operand) -> Arg:
        bracket = self._match(TokenType.BRACKET_OPEN)

        if bracket is not None and slot.kind != OperandKind.ADDRESS:
            raise self._error(
                Diag.span_error(bracket.span, "brackets are not allowed on this operand")
                .add_note(
                    f"the {slot.name} operand of '{opcode.mnemonic}' is not a memory "
                    f"address ({slot.kind})"
                )
            )

        token = self._expect((TokenType.LITERAL, TokenType.IDENTIFIER), "literal or ident")
        bracketed = bracket is not None
        if bracketed:
            self._expect((TokenType.BRACKET_CLOSE,), "']'")

        if token.value.type == TokenType.LITERAL:
            return ValueArg(token.value.value, token.span, bracketed)
        return LabelArg(token.value.value, token.span, bracketed)


def parse_line(tokens: list[Spanned[Token]]) -> Optional[Line]:
    """
    Parse the tokens of one line.

    Returns:
        The statement, or None for an empty token list

    Raises:
        AssemblySyntaxError: If the tokens do not form a valid line
    """
    return LineParser(tokens).parse()


def parse(source: str) -> Program:
    """
    Parse a whole source text.

    Every line is tokenized and parsed; errors are collected so that all of
    them are reported, not just the first.

    Raises:
        AssemblyError: If any line failed to parse
    """
    collector = DiagnosticCollector()
    program = Program()

    for source_line in split_lines(source):
        try:
            line = parse_line(tokenize(source_line.text))
        except AssemblySyntaxError as e:
            collector.add(e.with_line(source_line.text, source_line.number))
            continue

        if line is not None:
            program.append(line, source_line)

    logger.debug(f"Parsed {len(program)} lines, {collector.error_count()} errors")
    collector.raise_if_errors()
    return program
