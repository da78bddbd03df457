"""
tiny8 Disassembler
==================

Disassembles tiny8 machine code into human-readable assembly language.
This is the inverse operation of the assembler's code generation: each
opcode byte is looked up in the shared opcode table and followed by one
operand byte per operand slot.

Bytes that are not opcodes decode as ``.byte $XX`` data, so any byte stream
can be disassembled. ``to_source`` produces text that the assembler turns
back into exactly the same bytes.

Usage:
    disasm = Disassembler()

    # Disassemble from bytes
    instructions = disasm.disassemble(program_bytes, count=10)

    # Disassemble single instruction
    instr = disasm.disassemble_one(program_bytes, address=0x04)
    print(f"{instr.address:02X}: {instr.mnemonic} {instr.operand_str}")

    # Re-assemblable source, with labels for jump targets
    source = disasm.to_source(program_bytes, labels=True)
"""

from dataclasses import dataclass
from typing import Optional

from tiny8.cpu import JUMP_INSTRUCTIONS, OPCODE_TABLE, InstructionInfo, OperandKind


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    Represents a single disassembled tiny8 instruction.

    Attributes:
        address: Memory address of the instruction
        opcode: The opcode byte
        mnemonic: The instruction mnemonic (``.byte`` for data)
        operand_bytes: Raw operand bytes (may be empty)
        operand_str: Formatted operand string for display
        size: Total instruction size in bytes
        raw_bytes: All bytes comprising this instruction
        comment: Optional comment (e.g. symbol names, printable characters)
        info: Opcode table entry, None for data bytes
    """
    address: int
    opcode: int
    mnemonic: str
    operand_bytes: bytes
    operand_str: str
    size: int
    raw_bytes: bytes
    comment: str = ""
    info: Optional[InstructionInfo] = None

    @property
    def is_data(self) -> bool:
        """True if the bytes did not decode to a complete instruction."""
        return self.info is None or len(self.raw_bytes) < self.info.size

    @property
    def asm(self) -> str:
        if self.operand_str:
            return f"{self.mnemonic} {self.operand_str}"
        return self.mnemonic

    def __str__(self) -> str:
        """Format as listing line: ADDRESS: BYTES  MNEMONIC OPERANDS"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes)
        # Pad hex bytes to consistent width (max 3 bytes = 8 chars with spaces)
        hex_bytes = hex_bytes.ljust(8)

        if self.comment:
            return f"${self.address:02X}: {hex_bytes}  {self.asm:<16} ; {self.comment}"
        return f"${self.address:02X}: {hex_bytes}  {self.asm}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:02X}",
            "address_int": self.address,
            "opcode": f"${self.opcode:02X}",
            "mnemonic": self.mnemonic,
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "comment": self.comment,
        }


# =============================================================================
# tiny8 Disassembler
# =============================================================================

class Disassembler:
    """
    Disassembler for tiny8 machine code.

    Builds a reverse lookup table from the shared OPCODE_TABLE to decode
    instructions from their binary representation. Output uses the t8asm
    source syntax.

    Attributes:
        _reverse_table: Maps opcode byte to its InstructionInfo
        _symbol_table: Optional symbol table for address annotation
    """

    def __init__(self, symbol_table: Optional[dict[int, str]] = None):
        """
        Initialize the disassembler.

        Args:
            symbol_table: Optional dict mapping addresses to label names.
                          Used to annotate operands and name jump targets.
        """
        self._symbol_table = dict(symbol_table or {})
        self._reverse_table = {int(opcode): info for opcode, info in OPCODE_TABLE.items()}

    def disassemble_one(
        self,
        data: bytes,
        address: int = 0,
        offset: int = 0
    ) -> DisassembledInstruction:
        """
        Disassemble a single instruction.

        Args:
            data: Byte buffer containing the instruction
            address: Memory address of the instruction
            offset: Offset into data buffer where instruction starts

        Returns:
            DisassembledInstruction with decoded information

        Raises:
            ValueError: If offset is beyond the end of data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        opcode = data[offset]
        info = self._reverse_table.get(opcode)

        if info is None:
            # Unknown opcode - return as data byte
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=".byte",
                operand_bytes=bytes(),
                operand_str=f"${opcode:02X}",
                size=1,
                raw_bytes=bytes([opcode]),
                comment="unknown opcode",
            )

        if offset + info.size > len(data):
            # Partial instruction - return what we have
            partial = data[offset:]
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=info.mnemonic,
                operand_bytes=bytes(),
                operand_str="???",
                size=len(partial),
                raw_bytes=bytes(partial),
                comment="incomplete instruction",
                info=info,
            )

        raw_bytes = bytes(data[offset:offset + info.size])
        operand_bytes = raw_bytes[1:]
        operand_str, comment = self._format_operands(info, operand_bytes)

        return DisassembledInstruction(
            address=address,
            opcode=opcode,
            mnemonic=info.mnemonic,
            operand_bytes=operand_bytes,
            operand_str=operand_str,
            size=info.size,
            raw_bytes=raw_bytes,
            comment=comment,
            info=info,
        )

    def _format_operands(
        self,
        info: InstructionInfo,
        operand_bytes: bytes,
        labels: Optional[dict[int, str]] = None,
    ) -> tuple[str, str]:
        """
        Format the operands of an instruction.

        Address operands are bracketed. When ``labels`` is given, operands
        that point at a labelled address are written as the label name.

        Returns:
            Tuple of (operand_string, comment_string)
        """
        parts = []
        comments = []

        for slot, value in zip(info.operands, operand_bytes):
            text = f"${value:02X}"

            if slot.kind == OperandKind.VALUE:
                if 0x20 <= value < 0x7F:
                    comments.append(f"'{chr(value)}'")
            elif labels is not None and value in labels:
                text = labels[value]
            elif value in self._symbol_table:
                comments.append(self._symbol_table[value])

            if slot.kind == OperandKind.ADDRESS:
                text = f"[{text}]"
            parts.append(text)

        return " ".join(parts), ", ".join(comments)

    def disassemble(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
        max_bytes: Optional[int] = None
    ) -> list[DisassembledInstruction]:
        """
        Disassemble multiple instructions.

        Args:
            data: Byte buffer containing machine code
            start_address: Memory address of first byte
            count: Maximum number of instructions to disassemble (None = all)
            max_bytes: Maximum number of bytes to process (None = all)

        Returns:
            List of DisassembledInstruction objects
        """
        result = []
        offset = 0
        address = start_address

        while offset < len(data):
            if count is not None and len(result) >= count:
                break
            if max_bytes is not None and offset >= max_bytes:
                break

            instr = self.disassemble_one(data, address, offset)
            result.append(instr)

            offset += instr.size
            address += instr.size

        return result

    def disassemble_to_text(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None
    ) -> str:
        """
        Disassemble and return a formatted listing (addresses and bytes).
        """
        instructions = self.disassemble(data, start_address, count)
        return "\n".join(str(instr) for instr in instructions)

    def to_source(self, data: bytes, labels: bool = False) -> str:
        """
        Disassemble into source text that assembles back to ``data``.

        Unknown opcodes and truncated instructions become ``.byte`` lines.

        Args:
            data: Program bytes, assumed to start at address $00
            labels: Name jump targets and symbol-table addresses with labels

        Returns:
            Assembly source, one statement per line
        """
        instructions = self.disassemble(data)
        label_map = self._build_labels(instructions) if labels else None

        lines = []
        for instr in instructions:
            if label_map is not None and instr.address in label_map:
                lines.append(f".{label_map[instr.address]}:")

            if instr.is_data:
                for value in instr.raw_bytes:
                    lines.append(f"    .byte ${value:02X}")
                continue

            operand_str, comment = self._format_operands(
                instr.info, instr.operand_bytes, label_map
            )
            asm = f"{instr.mnemonic} {operand_str}" if operand_str else instr.mnemonic
            if comment:
                lines.append(f"    {asm:<16} ; {comment}")
            else:
                lines.append(f"    {asm}")

        return "\n".join(lines) + "\n"

    def _build_labels(self, instructions: list[DisassembledInstruction]) -> dict[int, str]:
        """
        Choose label names for jump targets that start an instruction.

        Symbol table names are used where present, otherwise ``LXX``.
        A generated name already taken by a symbol becomes ``LXXn1``,
        ``LXXn2`` and so on.
        Targets that fall inside an instruction or past the end keep their
        numeric form.
        """
        starts = {instr.address for instr in instructions}
        labels = {
            address: name for address, name in self._symbol_table.items()
            if address in starts
        }
        taken = set(labels.values())

        for instr in instructions:
            if instr.is_data or instr.info.opcode not in JUMP_INSTRUCTIONS:
                continue
            target = instr.operand_bytes[0]
            if target in starts and target not in labels:
                name = base = f"L{target:02X}"
                count = 1
                while name in taken:
                    name = f"{base}n{count}"
                    count += 1
                labels[target] = name
                taken.add(name)

        return labels
