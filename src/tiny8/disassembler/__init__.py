"""
tiny8 Disassembler Module
=========================

Decodes tiny8 machine code back into assembly language, using the same
opcode table as the assembler and the virtual machine.

Usage:
    from tiny8.disassembler import Disassembler

    disasm = Disassembler()
    instructions = disasm.disassemble(program_bytes)
    print(disasm.to_source(program_bytes, labels=True))
"""

from .decoder import Disassembler, DisassembledInstruction

__all__ = [
    "Disassembler",
    "DisassembledInstruction",
]
