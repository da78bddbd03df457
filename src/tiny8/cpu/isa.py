"""
tiny8 Instruction Set Definition
================================

This module defines the complete tiny8 instruction set: opcode bytes,
mnemonics, operand kinds and instruction sizes. It is the single source of
truth shared by the assembler (encoding), the disassembler (decoding) and
the virtual machine (execution).

Machine Model
-------------
- One 8-bit accumulator (``acc``)
- One 8-bit program counter (``pc``)
- 256 bytes of flat memory; every address computation wraps modulo 256
- No flags, no stack, no interrupts

Encoding
--------
Every instruction is one opcode byte followed by one byte per operand, so
the size of an instruction is always ``1 + operand count``:

    ldi $05        -> $11 $05
    sti $2A $80    -> $13 $2A $80
    stop           -> $50

Operand Kinds
-------------
1. **VALUE**: an immediate byte used as-is (``ldi``, ``addi``, ...)
2. **ADDRESS**: a memory cell that is read or written (``ld``, ``st``, ...)
3. **TARGET**: a jump destination (``jmp``, ``jz``)

Only ADDRESS operands may be written in brackets (``ld [counter]``).
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Optional


# =============================================================================
# Operand Kinds
# =============================================================================

class OperandKind(Enum):
    """What an operand byte means to the instruction that carries it."""
    VALUE = auto()    # Immediate byte
    ADDRESS = auto()  # Memory cell read or written
    TARGET = auto()   # Jump destination

    def __str__(self) -> str:
        return _KIND_NAMES[self]


_KIND_NAMES = {
    OperandKind.VALUE: "immediate value",
    OperandKind.ADDRESS: "memory address",
    OperandKind.TARGET: "jump target",
}


@dataclass(frozen=True)
class Operand:
    """
    One operand slot of an instruction.

    Attributes:
        name: Accessor name (``src``, ``dst``, ``value``, ``target``)
        kind: How the operand byte is interpreted
    """
    name: str
    kind: OperandKind


# =============================================================================
# Opcodes
# =============================================================================

class Opcode(IntEnum):
    """
    The closed set of tiny8 opcodes. Each member's value is its encoding byte.
    """
    NOP = 0x00
    LD = 0x10
    LDI = 0x11
    ST = 0x12
    STI = 0x13
    MOV = 0x14
    JMP = 0x20
    JZ = 0x21
    ADD = 0x30
    ADDI = 0x31
    SUB = 0x32
    SUBI = 0x33
    SHR = 0x34
    SHL = 0x35
    AND = 0x36
    ANDI = 0x37
    PRINT = 0x40
    STOP = 0x50

    @property
    def mnemonic(self) -> str:
        """Assembly mnemonic (always lower case)."""
        return self.name.lower()

    @property
    def info(self) -> "InstructionInfo":
        return OPCODE_TABLE[self]

    @property
    def size(self) -> int:
        """Encoded size in bytes."""
        return OPCODE_TABLE[self].size

    def __str__(self) -> str:
        return self.mnemonic


@dataclass(frozen=True)
class InstructionInfo:
    """
    Information about a single instruction.

    Attributes:
        opcode: The opcode (its value is the encoding byte)
        operands: Operand slots in encoding order
    """
    opcode: Opcode
    operands: tuple[Operand, ...] = ()

    @property
    def mnemonic(self) -> str:
        return self.opcode.mnemonic

    @property
    def size(self) -> int:
        """Total instruction size: opcode byte plus one byte per operand."""
        return 1 + len(self.operands)

    @property
    def operand_count(self) -> int:
        return len(self.operands)

    @property
    def operand_names(self) -> tuple[str, ...]:
        return tuple(operand.name for operand in self.operands)

    def __repr__(self) -> str:
        return f"InstructionInfo({self.mnemonic}, ${self.opcode:02X}, size={self.size})"


# =============================================================================
# Complete Opcode Table
# =============================================================================

_SRC = Operand("src", OperandKind.ADDRESS)
_DST = Operand("dst", OperandKind.ADDRESS)
_VALUE = Operand("value", OperandKind.VALUE)
_TARGET = Operand("target", OperandKind.TARGET)

OPCODE_TABLE: dict[Opcode, InstructionInfo] = {
    # -------------------------------------------------------------------------
    # Data Movement
    # -------------------------------------------------------------------------
    Opcode.NOP: InstructionInfo(Opcode.NOP),
    Opcode.LD: InstructionInfo(Opcode.LD, (_SRC,)),
    Opcode.LDI: InstructionInfo(Opcode.LDI, (_VALUE,)),
    Opcode.ST: InstructionInfo(Opcode.ST, (_DST,)),
    Opcode.STI: InstructionInfo(Opcode.STI, (_VALUE, _DST)),
    Opcode.MOV: InstructionInfo(Opcode.MOV, (_SRC, _DST)),

    # -------------------------------------------------------------------------
    # Control Flow
    # -------------------------------------------------------------------------
    Opcode.JMP: InstructionInfo(Opcode.JMP, (_TARGET,)),
    Opcode.JZ: InstructionInfo(Opcode.JZ, (_TARGET,)),

    # -------------------------------------------------------------------------
    # Arithmetic and Logic
    # -------------------------------------------------------------------------
    Opcode.ADD: InstructionInfo(Opcode.ADD, (_SRC,)),
    Opcode.ADDI: InstructionInfo(Opcode.ADDI, (_VALUE,)),
    Opcode.SUB: InstructionInfo(Opcode.SUB, (_SRC,)),
    Opcode.SUBI: InstructionInfo(Opcode.SUBI, (_VALUE,)),
    Opcode.SHR: InstructionInfo(Opcode.SHR),
    Opcode.SHL: InstructionInfo(Opcode.SHL),
    Opcode.AND: InstructionInfo(Opcode.AND, (_SRC,)),
    Opcode.ANDI: InstructionInfo(Opcode.ANDI, (_VALUE,)),

    # -------------------------------------------------------------------------
    # Output and Halt
    # -------------------------------------------------------------------------
    Opcode.PRINT: InstructionInfo(Opcode.PRINT, (_SRC,)),
    Opcode.STOP: InstructionInfo(Opcode.STOP),
}

# Mnemonic -> opcode
MNEMONICS: dict[str, Opcode] = {opcode.mnemonic: opcode for opcode in Opcode}

# Assembler directives (written with a leading '.')
DIRECTIVES = frozenset({"byte"})

# Instructions that transfer control
JUMP_INSTRUCTIONS = frozenset({Opcode.JMP, Opcode.JZ})


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_info(opcode: int) -> Optional[InstructionInfo]:
    """
    Look up the instruction encoded by an opcode byte.

    Args:
        opcode: Byte value 0..255

    Returns:
        InstructionInfo if the byte is a valid opcode, None otherwise
    """
    try:
        return OPCODE_TABLE[Opcode(opcode)]
    except ValueError:
        return None


def lookup_mnemonic(mnemonic: str) -> Optional[Opcode]:
    """Return the opcode for a mnemonic, or None if it is not an instruction."""
    return MNEMONICS.get(mnemonic)


def is_valid_opcode(opcode: int) -> bool:
    """Check whether a byte decodes to an instruction."""
    return get_instruction_info(opcode) is not None


def is_valid_instruction(mnemonic: str) -> bool:
    """Check whether a mnemonic names an instruction."""
    return mnemonic in MNEMONICS
