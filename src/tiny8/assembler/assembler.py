"""
tiny8 Assembler - Main Interface
================================

This module provides the main Assembler class, the primary interface for
assembling tiny8 source code. It coordinates the lexer, the line parser and
the code generator.

Example Usage
-------------
>>> from tiny8.assembler import Assembler
>>>
>>> asm = Assembler()
>>> code = asm.assemble_string('''
... .start:
...     ldi $03
...     subi $01
...     jz done
...     jmp start
... .done:
...     stop
... ''')
>>> code.hex(" ")
'11 03 33 01 21 08 20 00 50'

Command-Line Usage
------------------
The assembler can also be invoked from the command line:

    $ t8asm hello.t8 -o hello.bin -l hello.lst -s hello.sym
"""

from pathlib import Path
from typing import Optional
import logging

from tiny8.assembler.codegen import CodeGenerator
from tiny8.assembler.parser import Program, parse

logger = logging.getLogger(__name__)


class Assembler:
    """
    Main tiny8 assembler class.

    Keeps the parsed program and generated code of the last assembly so that
    listings, symbol tables and binaries can be written afterwards.

    Attributes:
        source_file: Path of the last assembled file (None for strings)
    """

    def __init__(self):
        self._codegen = CodeGenerator()
        self._program: Optional[Program] = None
        self.source_file: Optional[Path] = None

    def parse_string(self, source: str) -> Program:
        """
        Parse source code without generating code.

        Raises:
            AssemblyError: If any line has a syntax error
        """
        self._program = parse(source)
        return self._program

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Name used in log messages

        Returns:
            Generated machine code

        Raises:
            AssemblyError: If parsing or code generation fails
        """
        logger.debug(f"Assembling {filename}")

        program = self.parse_string(source)
        code = self._codegen.generate(program)

        logger.debug(f"Generated {len(code)} bytes of code from {filename}")
        return code

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        Args:
            filepath: Path to assembly source file

        Returns:
            Generated machine code

        Raises:
            AssemblyError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        self.source_file = filepath

        source = filepath.read_text(encoding="utf-8")
        return self.assemble_string(source, str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_program(self) -> Optional[Program]:
        """Get the parsed program of the last assembly."""
        return self._program

    def get_code(self) -> bytes:
        """Get the generated machine code."""
        return self._codegen.get_code()

    def get_symbols(self) -> dict[str, int]:
        """Get the symbol table (label name -> address)."""
        return self._codegen.get_symbols()

    def get_listing(self) -> str:
        """Get the assembly listing."""
        return self._codegen.get_listing()

    def write_binary(self, filepath: str | Path) -> None:
        """
        Write raw binary output, loadable by the virtual machine.

        Args:
            filepath: Output file path
        """
        code = self.get_code()
        Path(filepath).write_bytes(code)
        logger.debug(f"Wrote {len(code)} bytes to {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        """Write the assembly listing file."""
        self._codegen.write_listing(filepath)

    def write_symbols(self, filepath: str | Path) -> None:
        """Write the symbol table file."""
        self._codegen.write_symbols(filepath)


def assemble(source: str, filename: str = "<input>") -> bytes:
    """
    Convenience function to assemble source code.

    Args:
        source: Assembly source code
        filename: Name used in log messages

    Returns:
        Generated machine code

    Raises:
        AssemblyError: If assembly fails
    """
    return Assembler().assemble_string(source, filename)


def assemble_file(filepath: str | Path) -> bytes:
    """
    Convenience function to assemble a file.

    Raises:
        AssemblyError: If assembly fails
    """
    return Assembler().assemble_file(filepath)
