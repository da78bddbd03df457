"""
tiny8 Command-Line Interface
============================

This package provides command-line tools for tiny8:

- **t8asm**: assembler
- **t8vm**: virtual machine
- **t8disasm**: disassembler

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["t8asm", "t8vm", "t8disasm"]
