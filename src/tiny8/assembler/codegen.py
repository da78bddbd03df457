"""
tiny8 Code Generator
====================

This module generates tiny8 machine code from a parsed :class:`Program`.
It implements a two-pass assembly process:

Pass 1 (Symbol Collection)
--------------------------
- Walk every statement, tracking the current address
- Bind each label to the address of the next emitted byte
- Detect duplicate labels and programs larger than memory

Pass 2 (Code Generation)
------------------------
- Emit the opcode byte and one byte per operand for each instruction
- Emit the literal byte for each ``.byte`` directive
- Resolve label operands (forward and backward) through the symbol table

Errors in either pass are collected with their source line and raised
together as one :class:`AssemblyError` once both passes have run.

Output Formats
--------------
- Raw binary (loaded at address $00 by the virtual machine)
- Listing with addresses, bytes and source lines
- Symbol table (``name $XX`` per line)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging

from tiny8.assembler.parser import (
    ByteDirective,
    Instruction,
    LabelArg,
    LabelDef,
    Program,
    SourceLine,
    ValueArg,
)
from tiny8.errors import (
    AssemblerError,
    Diag,
    DiagnosticCollector,
    DuplicateLabelError,
    Span,
    UndefinedLabelError,
    find_similar_names,
)

logger = logging.getLogger(__name__)

# Size of the machine's address space
MEMORY_SIZE = 256


# =============================================================================
# Symbol Table
# =============================================================================

@dataclass
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Label name
        value: Address the label is bound to
        line_number: 0-based line of the definition
        span: Where the name appears on that line
    """
    name: str
    value: int
    line_number: int
    span: Optional[Span] = None


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Two-pass code generator for tiny8 programs.

    Usage:
        codegen = CodeGenerator()
        code = codegen.generate(parse(source))
        symbols = codegen.get_symbols()
    """

    def __init__(self):
        self._symbols: dict[str, Symbol] = {}
        self._code = bytearray()
        self._pc = 0
        self._errors = DiagnosticCollector()
        self._listing_lines: list[str] = []

    def generate(self, program: Program) -> bytes:
        """
        Generate machine code for a program.

        Args:
            program: Parsed program

        Returns:
            The encoded bytes

        Raises:
            AssemblyError: If any label or size error was found
        """
        self._symbols.clear()
        self._code = bytearray()
        self._errors.clear()
        self._listing_lines.clear()

        self._pass1(program)
        self._pass2(program)

        logger.debug(
            f"Generated {len(self._code)} bytes, {len(self._symbols)} symbols, "
            f"{self._errors.error_count()} errors"
        )
        self._errors.raise_if_errors()
        return bytes(self._code)

    def get_code(self) -> bytes:
        """Get the bytes produced by the last ``generate`` call."""
        return bytes(self._code)

    def get_symbols(self) -> dict[str, int]:
        """Get the symbol table as a name -> address mapping."""
        return {name: sym.value for name, sym in self._symbols.items()}

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            The listing showing addresses, generated bytes and source lines,
            followed by the symbol table.
        """
        lines = []
        lines.append("tiny8 Assembler Listing")
        lines.append("=" * 60)
        lines.append("")
        lines.append("Addr  Code       Line  Source")
        lines.append("-" * 60)
        lines.extend(self._listing_lines)
        lines.append("")
        lines.append("Symbol Table")
        lines.append("-" * 30)
        for name, sym in sorted(self._symbols.items()):
            lines.append(f"{name:20s} = ${sym.value:02X}")
        return "\n".join(lines)

    def write_listing(self, filepath: str | Path) -> None:
        """Write the assembly listing to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.get_listing())

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write symbol table file.

        Format: name address (one per line)
        """
        with open(filepath, "w", encoding="utf-8") as f:
            f.write("# Symbol table\n")
            f.write("# Generated by t8asm\n")
            for name, sym in sorted(self._symbols.items()):
                f.write(f"{name} ${sym.value:02X}\n")

    # =========================================================================
    # Pass 1: Symbol Collection
    # =========================================================================

    def _pass1(self, program: Program) -> None:
        """
        First pass: bind labels to addresses and measure the program.
        """
        self._pc = 0

        for stmt, source in program.entries():
            if isinstance(stmt, LabelDef):
                try:
                    self._define_label(stmt, source)
                except AssemblerError as e:
                    self._errors.add(e.with_line(source.text, source.number))
            else:
                self._pc += stmt.size

        if self._pc > MEMORY_SIZE:
            self._errors.add_diag(
                Diag.error(f"program is {self._pc} bytes, but memory holds only {MEMORY_SIZE}")
            )

    def _define_label(self, label: LabelDef, source: SourceLine) -> None:
        """Define a label in the symbol table."""
        if label.name in self._symbols:
            existing = self._symbols[label.name]
            raise DuplicateLabelError(
                label.name,
                span=label.span,
                original_line=existing.line_number,
            )

        self._symbols[label.name] = Symbol(
            name=label.name,
            value=self._pc,
            line_number=source.number,
            span=label.span,
        )

    # =========================================================================
    # Pass 2: Code Generation
    # =========================================================================

    def _pass2(self, program: Program) -> None:
        """
        Second pass: emit bytes and resolve label references.
        """
        self._pc = 0

        for stmt, source in program.entries():
            start_pc = self._pc
            try:
                if isinstance(stmt, Instruction):
                    self._generate_instruction(stmt)
                elif isinstance(stmt, ByteDirective):
                    self._emit_byte(stmt.value)
            except AssemblerError as e:
                self._errors.add(e.with_line(source.text, source.number))
                # Keep addresses in step with pass 1
                self._pc = start_pc + stmt.size
                self._code.extend(bytes(self._pc - len(self._code)))

            self._add_listing_line(start_pc, source)

    def _generate_instruction(self, inst: Instruction) -> None:
        # Resolve every operand before emitting so a failed line emits nothing
        operands = [self._resolve_arg(arg) for arg in inst.args]
        self._emit_byte(inst.opcode)
        for value in operands:
            self._emit_byte(value)

    def _resolve_arg(self, arg: ValueArg | LabelArg) -> int:
        if isinstance(arg, ValueArg):
            return arg.value

        symbol = self._symbols.get(arg.name)
        if symbol is None:
            raise UndefinedLabelError(
                arg.name,
                span=arg.span,
                similar_labels=find_similar_names(arg.name, self._symbols),
            )

        if symbol.value >= MEMORY_SIZE:
            raise AssemblerError(
                Diag(f"label '{arg.name}' is outside memory", arg.span)
                .add_note(f"it is bound to ${symbol.value:02X}, past the last address $FF")
            )

        return symbol.value

    def _emit_byte(self, value: int) -> None:
        self._code.append(value & 0xFF)
        self._pc += 1

    def _add_listing_line(self, start_pc: int, source: SourceLine) -> None:
        data = self._code[start_pc:self._pc]
        hex_str = " ".join(f"{b:02X}" for b in data)
        self._listing_lines.append(
            f"${start_pc:02X}   {hex_str:9s}  {source.number + 1:4d}  {source.text}"
        )
