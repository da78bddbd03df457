"""
Memory Subsystem Unit Tests
===========================

Tests for the 256-byte wrapping memory used by the virtual machine.
"""

import pytest
from tiny8.emulator import Memory
from tiny8.errors import ProgramSizeError


class TestMemoryBasics:
    """Test construction and byte access."""

    def test_starts_zeroed(self):
        memory = Memory()
        assert len(memory) == 256
        assert bytes(memory) == bytes(256)

    def test_program_loaded_at_zero(self):
        memory = Memory.from_program(b"\x11\x05\x50")
        assert memory[0] == 0x11
        assert memory[2] == 0x50
        assert memory[3] == 0

    def test_full_program(self):
        assert bytes(Memory(bytes(range(256)))) == bytes(range(256))

    def test_program_too_large(self):
        with pytest.raises(ProgramSizeError) as exc_info:
            Memory(bytes(257))
        assert exc_info.value.size == 257

    def test_write_masks_value(self):
        memory = Memory()
        memory.write(0x10, 0x1FF)
        assert memory.read(0x10) == 0xFF

    def test_item_access(self):
        memory = Memory()
        memory[0x20] = 0x42
        assert memory[0x20] == 0x42


class TestWrapping:
    """Addresses wrap modulo 256."""

    def test_read_wraps(self):
        memory = Memory(b"\x07")
        assert memory.read(0x100) == 0x07

    def test_write_wraps(self):
        memory = Memory()
        memory.write(0x101, 0x33)
        assert memory.read(0x01) == 0x33

    def test_read_block_wraps(self):
        memory = Memory()
        memory[0xFF] = 0xAA
        memory[0x00] = 0xBB
        assert memory.read_block(0xFF, 2) == b"\xaa\xbb"

    def test_load_wraps(self):
        memory = Memory()
        memory.load(b"\x01\x02", address=0xFF)
        assert memory[0xFF] == 0x01
        assert memory[0x00] == 0x02


class TestStrings:
    """Test length-prefixed string reads."""

    def test_read_string(self):
        memory = Memory()
        memory.load(b"\x02HI", address=10)
        assert memory.read_string(10) == "HI"

    def test_empty_string(self):
        assert Memory().read_string(0x40) == ""

    def test_string_wraps(self):
        memory = Memory()
        memory.load(b"\x03abc", address=0xFD)
        assert memory.read_string(0xFD) == "abc"

    def test_invalid_utf8_replaced(self):
        memory = Memory()
        memory.load(b"\x01\xff", address=0)
        assert memory.read_string(0) == "�"

    def test_utf8(self):
        memory = Memory()
        memory.load(b"\x02\xc3\xa9", address=0)
        assert memory.read_string(0) == "é"


class TestDump:
    """Test the hex dump."""

    def test_row_format(self):
        memory = Memory(b"HI\x00")
        first = memory.dump(length=16).splitlines()[0]
        assert first.startswith("$00: 48 49 00 00")
        assert first.endswith("  HI..............")

    def test_row_count(self):
        assert len(Memory().dump().splitlines()) == 16

    def test_partial_row(self):
        assert Memory().dump(start=0x10, length=4) == "$10: 00 00 00 00" + " " * 36 + "  ...."
