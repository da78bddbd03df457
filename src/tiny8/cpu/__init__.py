"""
tiny8 CPU Package
=================

Instruction set definitions shared by the assembler, the disassembler and
the virtual machine. Keeping one table here guarantees that encoding,
decoding and execution agree on every opcode byte and operand count.

Modules:
    isa: Opcodes, operand kinds, instruction sizes and lookup helpers.

Usage:
    from tiny8.cpu import Opcode, OPCODE_TABLE, get_instruction_info
"""

# =============================================================================
# Public API Exports
# =============================================================================

from tiny8.cpu.isa import (
    # Core types
    Opcode,
    OperandKind,
    Operand,
    InstructionInfo,
    # Master instruction database
    OPCODE_TABLE,
    MNEMONICS,
    DIRECTIVES,
    JUMP_INSTRUCTIONS,
    # Lookup functions
    get_instruction_info,
    lookup_mnemonic,
    is_valid_opcode,
    is_valid_instruction,
)

__all__ = [
    "Opcode",
    "OperandKind",
    "Operand",
    "InstructionInfo",
    "OPCODE_TABLE",
    "MNEMONICS",
    "DIRECTIVES",
    "JUMP_INSTRUCTIONS",
    "get_instruction_info",
    "lookup_mnemonic",
    "is_valid_opcode",
    "is_valid_instruction",
]
