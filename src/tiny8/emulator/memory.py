"""
Memory Subsystem for the tiny8 Virtual Machine
==============================================

The machine has a flat 256-byte address space. Every address is reduced
modulo 256 on access, so reads and writes past $FF wrap around to $00.

Memory Map:
    $00-$FF  Program, data and working storage (all read/write)

Programs are loaded at $00; the remainder of memory starts zeroed.
"""

from typing import Optional

from tiny8.errors import ProgramSizeError


class Memory:
    """
    256 bytes of read/write memory with wrapping addresses.

    Attributes:
        SIZE: Number of addressable bytes
    """

    SIZE = 256

    def __init__(self, data: bytes = b""):
        """
        Initialize memory, copying ``data`` to address $00.

        Raises:
            ProgramSizeError: If data is larger than memory
        """
        if len(data) > self.SIZE:
            raise ProgramSizeError(len(data), self.SIZE)

        self._data = bytearray(self.SIZE)
        self._data[:len(data)] = data

    @classmethod
    def from_program(cls, program: bytes) -> "Memory":
        """Create memory holding ``program`` at $00 and zeros elsewhere."""
        return cls(program)

    def read(self, address: int) -> int:
        """Read byte from address."""
        return self._data[address & 0xFF]

    def write(self, address: int, value: int) -> None:
        """Write byte to address."""
        self._data[address & 0xFF] = value & 0xFF

    def read_block(self, address: int, length: int) -> bytes:
        """Read ``length`` bytes starting at ``address``, wrapping past $FF."""
        return bytes(self._data[(address + i) & 0xFF] for i in range(length))

    def read_string(self, address: int) -> str:
        """
        Read a length-prefixed string.

        The byte at ``address`` holds the length; the characters follow it.
        Invalid UTF-8 is replaced rather than rejected.
        """
        length = self.read(address)
        return self.read_block(address + 1, length).decode("utf-8", errors="replace")

    def load(self, data: bytes, address: int = 0) -> None:
        """Copy ``data`` into memory starting at ``address`` (wrapping)."""
        for i, value in enumerate(data):
            self.write(address + i, value)

    def dump(self, start: int = 0, length: Optional[int] = None, width: int = 16) -> str:
        """
        Format memory as a hex dump.

        Each row shows the address, ``width`` bytes in hex and their
        printable ASCII characters.
        """
        if length is None:
            length = self.SIZE - start

        rows = []
        for row_start in range(start, start + length, width):
            row = self.read_block(row_start, min(width, start + length - row_start))
            hex_str = " ".join(f"{b:02X}" for b in row)
            ascii_str = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in row)
            rows.append(f"${row_start & 0xFF:02X}: {hex_str:<{width * 3 - 1}}  {ascii_str}")
        return "\n".join(rows)

    def __getitem__(self, address: int) -> int:
        return self.read(address)

    def __setitem__(self, address: int, value: int) -> None:
        self.write(address, value)

    def __len__(self) -> int:
        return self.SIZE

    def __bytes__(self) -> bytes:
        return bytes(self._data)
