"""
tiny8 Assembler
===============

This package turns tiny8 assembly source into the byte stream executed by
the virtual machine.

Main Components
---------------
- **Assembler**: Main assembler class that orchestrates the process
- **Lexer**: Tokenizes one source line into span-tagged tokens
- **LineParser**: Parses one line's tokens into a statement
- **CodeGenerator**: Two-pass encoder with label resolution

Assembly Process
----------------
1. **Parsing (Lexer + LineParser)**: every line is tokenized and parsed
   independently; all errors are collected and reported together.
2. **Code Generation (CodeGenerator)**: pass 1 binds labels to addresses,
   pass 2 emits bytes and resolves label operands.

Source Syntax
-------------
    ; comment
    .label:              ; label definition
    .byte $2A            ; literal data byte
    ldi $05              ; instruction with a literal operand
    sti $01 [counter]    ; address operands may be bracketed
    jz label             ; label operand
"""

from tiny8.assembler.assembler import Assembler, assemble, assemble_file
from tiny8.assembler.lexer import Lexer, Token, TokenType, tokenize
from tiny8.assembler.parser import (
    Arg,
    ByteDirective,
    Directive,
    Instruction,
    LabelArg,
    LabelDef,
    Line,
    LineParser,
    Program,
    SourceLine,
    Statement,
    ValueArg,
    parse,
    parse_line,
    split_lines,
)
from tiny8.assembler.codegen import CodeGenerator

__all__ = [
    "Assembler",
    "assemble",
    "assemble_file",
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    "Arg",
    "ByteDirective",
    "Directive",
    "Instruction",
    "LabelArg",
    "LabelDef",
    "Line",
    "LineParser",
    "Program",
    "SourceLine",
    "Statement",
    "ValueArg",
    "parse",
    "parse_line",
    "split_lines",
    "CodeGenerator",
]
