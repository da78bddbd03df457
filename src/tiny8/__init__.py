"""
tiny8 - Assembler and Virtual Machine for a Minimal 8-bit Machine
=================================================================

This package provides a small toolchain for the tiny8 machine: a single
accumulator, an 8-bit program counter and 256 bytes of memory.

Main Components
---------------
- **cpu**: Instruction set definition (opcodes, operand kinds, sizes)
    Shared by every other component so encoding, decoding and execution agree

- **assembler**: tiny8 assembler (t8asm)
    Converts assembly source into a raw program image, reporting every error
    with an underlined source excerpt

- **disassembler**: tiny8 disassembler (t8disasm)
    Converts program images back into re-assemblable source

- **emulator**: tiny8 virtual machine (t8vm)
    Runs program images

Quick Start
-----------
Assemble and run a program:
    >>> from tiny8.assembler import assemble
    >>> from tiny8.emulator import Machine
    >>> code = assemble("ldi $05\\naddi $03\\nstop\\n")
    >>> machine = Machine.from_program(code)
    >>> machine.run().steps
    3
    >>> machine.acc
    8

Or use the command-line tools:
    $ t8asm hello.t8 -o hello.bin
    $ t8vm hello.bin
    $ t8disasm hello.bin

Version History
---------------
1.0.0 - Initial release with assembler, disassembler and virtual machine
"""

__version__ = "1.0.0"
__author__ = "tiny8 contributors"

from tiny8.errors import (
    Tiny8Error,
    AssemblerError,
    AssemblyError,
    MachineError,
    MachineFault,
)

__all__ = [
    "__version__",
    "Tiny8Error",
    "AssemblerError",
    "AssemblyError",
    "MachineError",
    "MachineFault",
]
