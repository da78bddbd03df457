"""
Instruction Set Definition Tests
================================

The opcode table is shared by the assembler, disassembler and machine, so
these tests pin down every byte value, operand count and size.
"""

import pytest
from tiny8.cpu import (
    MNEMONICS,
    OPCODE_TABLE,
    Opcode,
    OperandKind,
    get_instruction_info,
    is_valid_instruction,
    is_valid_opcode,
    lookup_mnemonic,
)


# (mnemonic, byte, operand kinds)
EXPECTED_TABLE = [
    ("nop", 0x00, ()),
    ("ld", 0x10, (OperandKind.ADDRESS,)),
    ("ldi", 0x11, (OperandKind.VALUE,)),
    ("st", 0x12, (OperandKind.ADDRESS,)),
    ("sti", 0x13, (OperandKind.VALUE, OperandKind.ADDRESS)),
    ("mov", 0x14, (OperandKind.ADDRESS, OperandKind.ADDRESS)),
    ("jmp", 0x20, (OperandKind.TARGET,)),
    ("jz", 0x21, (OperandKind.TARGET,)),
    ("add", 0x30, (OperandKind.ADDRESS,)),
    ("addi", 0x31, (OperandKind.VALUE,)),
    ("sub", 0x32, (OperandKind.ADDRESS,)),
    ("subi", 0x33, (OperandKind.VALUE,)),
    ("shr", 0x34, ()),
    ("shl", 0x35, ()),
    ("and", 0x36, (OperandKind.ADDRESS,)),
    ("andi", 0x37, (OperandKind.VALUE,)),
    ("print", 0x40, (OperandKind.ADDRESS,)),
    ("stop", 0x50, ()),
]


class TestOpcodeTable:
    """Test the opcode table against the documented instruction set."""

    @pytest.mark.parametrize("mnemonic,byte,kinds", EXPECTED_TABLE)
    def test_entry(self, mnemonic, byte, kinds):
        opcode = lookup_mnemonic(mnemonic)
        assert opcode == byte
        info = OPCODE_TABLE[opcode]
        assert info.mnemonic == mnemonic
        assert tuple(op.kind for op in info.operands) == kinds
        assert info.size == 1 + len(kinds)

    def test_table_is_complete(self):
        assert len(Opcode) == len(EXPECTED_TABLE)
        assert set(OPCODE_TABLE) == set(Opcode)
        assert set(MNEMONICS) == {m for m, _, _ in EXPECTED_TABLE}

    def test_bytes_are_unique(self):
        assert len({int(op) for op in Opcode}) == len(Opcode)

    def test_operand_names(self):
        assert OPCODE_TABLE[Opcode.STI].operand_names == ("value", "dst")
        assert OPCODE_TABLE[Opcode.MOV].operand_names == ("src", "dst")
        assert OPCODE_TABLE[Opcode.JZ].operand_names == ("target",)

    def test_opcode_properties(self):
        assert Opcode.PRINT.mnemonic == "print"
        assert Opcode.STI.size == 3
        assert str(Opcode.ANDI) == "andi"


class TestLookup:
    """Test lookup helpers."""

    def test_get_instruction_info(self):
        assert get_instruction_info(0x11).opcode == Opcode.LDI

    def test_unknown_bytes(self):
        known = {int(op) for op in Opcode}
        for byte in range(256):
            assert is_valid_opcode(byte) == (byte in known)
        assert get_instruction_info(0x60) is None

    def test_mnemonic_lookup(self):
        assert lookup_mnemonic("jz") == Opcode.JZ
        assert lookup_mnemonic("JZ") is None
        assert is_valid_instruction("shr")
        assert not is_valid_instruction("halt")
