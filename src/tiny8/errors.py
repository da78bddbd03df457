"""
tiny8 Error Hierarchy and Diagnostics
=====================================

This module defines the exception hierarchy for the whole toolchain together
with the source-location types (``Span``, ``Spanned``) and the ``Diag``
diagnostic report used by the assembler.

Exception Hierarchy
-------------------
Tiny8Error (base)
├── AssemblerError (one diagnostic at a known source line)
│   ├── AssemblySyntaxError - lexical or syntax error on a line
│   ├── UndefinedLabelError - operand names a label that is never defined
│   └── DuplicateLabelError - label defined more than once
├── AssemblyError - aggregate of every AssemblerError found in a source
├── ProgramSizeError - program does not fit in the 256-byte memory
└── MachineError (virtual machine)
    └── MachineFault - unknown opcode fetched during execution

Diagnostic Format
-----------------
A diagnostic renders as:

    error: unexpected end of line, expected literal
    3 | .byte
      |      ^
      = note: only values between 0 and 255 ($FF) are allowed

Spans are byte offsets into a single line. The renderer converts them to
display columns so that lines containing multi-byte UTF-8 characters are
still underlined correctly.
"""

from dataclasses import dataclass
from typing import Generic, Iterable, Optional, TextIO, TypeVar

import click


T = TypeVar("T")


# =============================================================================
# Base Exception Class
# =============================================================================

class Tiny8Error(Exception):
    """
    Base exception for all tiny8 errors.

    Callers can catch every toolchain error with a single except clause:

        try:
            code = assemble(source)
        except Tiny8Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class Span:
    """
    Half-open byte range ``[lo, hi)`` within one line of source text.

    Attributes:
        lo: First byte covered by the span (inclusive)
        hi: End of the span (exclusive)
    """
    lo: int
    hi: int

    def __post_init__(self) -> None:
        if self.lo < 0 or self.hi < self.lo:
            raise ValueError(f"invalid span {self.lo}..{self.hi}")

    def __len__(self) -> int:
        return self.hi - self.lo

    @property
    def length(self) -> int:
        """Number of bytes covered by the span."""
        return self.hi - self.lo

    def __str__(self) -> str:
        return f"{self.lo}..{self.hi}"


@dataclass(frozen=True)
class Spanned(Generic[T]):
    """
    Pairs a value with the span it was read from.

    Attributes:
        value: The wrapped value (token, line, ...)
        span: Where the value came from
    """
    value: T
    span: Span

    def __str__(self) -> str:
        return f"{self.value} @ {self.span}"


# =============================================================================
# Diagnostics
# =============================================================================

class Diag:
    """
    An error message paired with an optional span and any number of notes.

    Diagnostics are built fluently and emitted exactly once:

        Diag.span_error(span, "invalid token start character") \\
            .add_note("tokens start with '.', ':', '[', ']', '$' or a letter") \\
            .emit(line, line_number)

    Attributes:
        message: The error description
        span: Byte range in the offending line (optional)
        notes: Additional free-form notes, rendered after the excerpt
    """

    def __init__(
        self,
        message: str,
        span: Optional[Span] = None,
        notes: Iterable[str] = (),
    ):
        self.message = message
        self.span = span
        self.notes: tuple[str, ...] = tuple(notes)
        self._emitted = False

    @classmethod
    def error(cls, message: str) -> "Diag":
        """Create an error diagnostic that is not tied to a location."""
        return cls(message)

    @classmethod
    def span_error(cls, span: Span, message: str) -> "Diag":
        """Create an error diagnostic pointing at ``span``."""
        return cls(message, span)

    def add_note(self, note: str) -> "Diag":
        """Return a copy of this diagnostic with ``note`` appended."""
        return Diag(self.message, self.span, self.notes + (note,))

    @property
    def emitted(self) -> bool:
        """True once :meth:`emit` has been called."""
        return self._emitted

    def render(
        self,
        line_text: Optional[str] = None,
        line_number: Optional[int] = None,
        color: bool = False,
    ) -> str:
        """
        Format the diagnostic as a multi-line report.

        Args:
            line_text: The line the span points into
            line_number: 0-based number of that line (rendered 1-based)
            color: Wrap parts of the report in ANSI styles

        Returns:
            The report, ending with a blank line
        """
        def style(text: str, **styles) -> str:
            return click.style(text, **styles) if color else text

        parts = [
            f"{style('error', fg='red', bold=True)}: {style(self.message, bold=True)}"
        ]

        num = str(line_number + 1) if line_number is not None else ""
        placeholder = " " * len(num)
        bar = style("|", fg="blue", bold=True)

        if self.span is not None and line_text is not None:
            column, width = _display_range(line_text, self.span)
            parts.append(f"{style(num, fg='blue', bold=True)} {bar} {line_text}")
            parts.append(
                f"{placeholder} {bar} {' ' * column}{style('^' * width, fg='red', bold=True)}"
            )

        for note in self.notes:
            parts.append(f"{placeholder} {style('= note:', bold=True)} {note}")

        parts.append("")
        return "\n".join(parts)

    def emit(
        self,
        line_text: Optional[str] = None,
        line_number: Optional[int] = None,
        file: Optional[TextIO] = None,
        err: bool = False,
        color: Optional[bool] = None,
    ) -> None:
        """
        Print the diagnostic and consume it.

        Styles are stripped automatically by click when the target stream
        is not a terminal, unless ``color`` forces them on or off.

        Raises:
            RuntimeError: If the diagnostic was already emitted
        """
        if self._emitted:
            raise RuntimeError("diagnostic has already been emitted")
        self._emitted = True
        click.echo(
            self.render(line_text, line_number, color=color is not False),
            file=file,
            err=err,
            color=color,
        )

    def __repr__(self) -> str:
        return f"Diag({self.message!r}, span={self.span}, notes={list(self.notes)!r})"


def _display_range(line_text: str, span: Span) -> tuple[int, int]:
    """
    Convert a byte span into a (column, width) pair in code points.

    Spans may extend past the end of the line (e.g. "expected literal"
    errors point one byte after the last token); the excess is counted as
    plain columns. The width is never less than one caret.
    """
    encoded = line_text.encode("utf-8")

    def columns(byte_offset: int) -> int:
        if byte_offset <= len(encoded):
            return len(encoded[:byte_offset].decode("utf-8", errors="replace"))
        return len(line_text) + (byte_offset - len(encoded))

    column = columns(span.lo)
    width = columns(span.hi) - column
    return column, max(width, 1)


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(Tiny8Error):
    """
    Base exception for errors found while assembling a single line.

    Wraps a :class:`Diag` and, once known, the line it refers to. The lexer
    and parser raise these without line context; the line loop in
    ``parse()`` attaches it before collecting.

    Attributes:
        diag: The diagnostic describing the problem
        line_text: Source text of the offending line (optional)
        line_number: 0-based line number (optional)
    """

    def __init__(
        self,
        diag: Diag,
        line_text: Optional[str] = None,
        line_number: Optional[int] = None,
    ):
        self.diag = diag
        self.line_text = line_text
        self.line_number = line_number
        super().__init__(diag.message)

    @property
    def message(self) -> str:
        return self.diag.message

    def with_line(self, line_text: str, line_number: int) -> "AssemblerError":
        """Attach the source line this error refers to and return self."""
        self.line_text = line_text
        self.line_number = line_number
        return self

    def render(self, color: bool = False) -> str:
        """Render the wrapped diagnostic against the attached line."""
        return self.diag.render(self.line_text, self.line_number, color=color)

    def emit(self, file: Optional[TextIO] = None, err: bool = False,
             color: Optional[bool] = None) -> None:
        """Emit the wrapped diagnostic against the attached line."""
        self.diag.emit(self.line_text, self.line_number, file=file, err=err, color=color)

    def __str__(self) -> str:
        if self.line_number is not None:
            return f"line {self.line_number + 1}: {self.diag.message}"
        return self.diag.message


class AssemblySyntaxError(AssemblerError):
    """
    Lexical or syntax error in a line of assembly source.

    Examples:
        - Invalid character at the start of a token
        - Literal larger than one byte
        - Missing or extra operand
        - Unknown mnemonic or directive
    """
    pass


class UndefinedLabelError(AssemblerError):
    """
    An operand refers to a label that is never defined.

    Raised by the code generator while resolving operands. Labels with a
    similar spelling are offered as a note to help catch typos.
    """

    def __init__(
        self,
        label: str,
        span: Optional[Span] = None,
        similar_labels: Optional[list[str]] = None,
    ):
        self.label = label
        self.similar_labels = similar_labels or []

        diag = Diag(f"undefined label '{label}'", span)
        if self.similar_labels:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_labels[:3])
            diag = diag.add_note(f"did you mean {suggestions}?")

        super().__init__(diag)


class DuplicateLabelError(AssemblerError):
    """
    A label is defined more than once.

    The note names the line of the first definition.
    """

    def __init__(
        self,
        label: str,
        span: Optional[Span] = None,
        original_line: Optional[int] = None,
    ):
        self.label = label
        self.original_line = original_line

        diag = Diag(f"label '{label}' is defined multiple times", span)
        if original_line is not None:
            diag = diag.add_note(f"first defined on line {original_line + 1}")

        super().__init__(diag)


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class DiagnosticCollector:
    """
    Collects assembler errors for batch reporting.

    The parser and code generator keep going after a bad line and add each
    error here, so one run reports every problem in the source:

        collector = DiagnosticCollector()
        for line in lines:
            try:
                ...
            except AssemblerError as e:
                collector.add(e.with_line(text, number))
        collector.raise_if_errors()
    """

    def __init__(self):
        self.errors: list[AssemblerError] = []

    def add(self, error: AssemblerError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def add_diag(
        self,
        diag: Diag,
        line_text: Optional[str] = None,
        line_number: Optional[int] = None,
    ) -> None:
        """Wrap a bare diagnostic and add it to the collection."""
        self.errors.append(AssemblerError(diag, line_text, line_number))

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def report(self, color: bool = False) -> str:
        """Render all errors followed by a summary line."""
        lines = [error.render(color=color) for error in self.errors]
        lines.append(_summary(len(self.errors)))
        return "\n".join(lines)

    def emit_all(self, file: Optional[TextIO] = None, err: bool = False,
                 color: Optional[bool] = None) -> None:
        """Emit every collected diagnostic."""
        for error in self.errors:
            error.emit(file=file, err=err, color=color)

    def raise_if_errors(self) -> None:
        """Raise :class:`AssemblyError` if anything was collected."""
        if self.errors:
            raise AssemblyError(list(self.errors))

    def clear(self) -> None:
        """Forget all collected errors."""
        self.errors.clear()


def _summary(count: int) -> str:
    error_word = "error" if count == 1 else "errors"
    return f"{count} {error_word}"


class AssemblyError(Tiny8Error):
    """
    Assembly failed; carries every error found in the source.

    Attributes:
        errors: The individual errors, in source order per pass
    """

    def __init__(self, errors: list[AssemblerError]):
        self.errors = errors
        error_word = "error" if len(errors) == 1 else "errors"
        super().__init__(f"assembly failed with {len(errors)} {error_word}")

    def emit_all(self, file: Optional[TextIO] = None, err: bool = False,
                 color: Optional[bool] = None) -> None:
        """Emit every collected diagnostic."""
        for error in self.errors:
            error.emit(file=file, err=err, color=color)

    def report(self, color: bool = False) -> str:
        """Render all errors followed by a summary line."""
        lines = [error.render(color=color) for error in self.errors]
        lines.append(_summary(len(self.errors)))
        return "\n".join(lines)


# =============================================================================
# Program and Machine Exceptions
# =============================================================================

class ProgramSizeError(Tiny8Error):
    """
    A program does not fit in the machine's 256-byte memory.

    Attributes:
        size: Size of the rejected program in bytes
        limit: Available memory in bytes
    """

    def __init__(self, size: int, limit: int = 256):
        self.size = size
        self.limit = limit
        super().__init__(f"program is {size} bytes, but memory holds only {limit}")


class MachineError(Tiny8Error):
    """Base exception for virtual machine errors."""
    pass


class MachineFault(MachineError):
    """
    The machine fetched a byte that is not a known opcode.

    This is the only fault the machine can raise; everything else wraps.
    Execution cannot continue past it.

    Attributes:
        opcode: The offending byte
        pc: Address it was fetched from
    """

    def __init__(self, opcode: int, pc: int):
        self.opcode = opcode
        self.pc = pc
        super().__init__(f"unknown instruction ${opcode:02X} at position ${pc:02X}")


# =============================================================================
# Hint Helpers
# =============================================================================

def find_similar_names(name: str, candidates: Iterable[str], limit: int = 3) -> list[str]:
    """
    Find names with a similar spelling, for "did you mean" notes.

    Uses a simple edit distance heuristic: case-insensitive equality, or
    length within one and a few edits. The edit allowance shrinks with the
    name, so a one-character name only matches itself.
    """
    name_lower = name.lower()
    max_edits = min(2, len(name) - 1)
    similar = []

    for candidate in candidates:
        candidate_lower = candidate.lower()
        if candidate_lower == name_lower:
            similar.append(candidate)
        elif (
            abs(len(candidate) - len(name)) <= 1 and
            _edit_distance(name_lower, candidate_lower) <= max_edits
        ):
            similar.append(candidate)

    return similar[:limit]


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = range(len(s2) + 1)
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min((
                    distances[j], distances[j + 1], new_distances[-1]
                )))
        distances = new_distances

    return distances[-1]
