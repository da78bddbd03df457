# =============================================================================
# test_codegen.py - Code Generator Unit Tests
# =============================================================================
# Tests for the two-pass tiny8 code generator.
#
# Test coverage includes:
#   - Encoding of instructions and .byte directives
#   - Label resolution (forward, backward, case sensitivity)
#   - Undefined and duplicate labels, program size limit
#   - Listing and symbol table output
# =============================================================================

import pytest
from tiny8.assembler.codegen import CodeGenerator
from tiny8.assembler.parser import parse
from tiny8.cpu import Opcode
from tiny8.errors import AssemblyError, DuplicateLabelError, Span, UndefinedLabelError


# =============================================================================
# Helper Functions
# =============================================================================

def generate(source: str) -> bytes:
    return CodeGenerator().generate(parse(source))


def generate_errors(source: str) -> list:
    with pytest.raises(AssemblyError) as exc_info:
        generate(source)
    return exc_info.value.errors


# =============================================================================
# Encoding Tests
# =============================================================================

class TestEncoding:
    """Test byte emission."""

    def test_empty_program(self):
        assert generate("") == b""

    def test_single_instruction(self):
        assert generate("ldi $05\nstop") == bytes([0x11, 0x05, 0x50])

    def test_every_opcode(self):
        """Each instruction emits its opcode then one byte per operand."""
        for opcode in Opcode:
            count = opcode.info.operand_count
            operands = " ".join(f"${0xA0 + i:02X}" for i in range(count))
            code = generate(f"{opcode.mnemonic} {operands}")
            assert code == bytes([opcode] + [0xA0 + i for i in range(count)])

    def test_sti_operand_order(self):
        assert generate("sti $2A $80") == bytes([0x13, 0x2A, 0x80])

    def test_byte_directive(self):
        assert generate(".byte $02\n.byte $48\n.byte $49") == b"\x02HI"

    def test_every_byte_value(self):
        for value in range(256):
            assert generate(f".byte ${value:02X}") == bytes([value])

    def test_brackets_do_not_change_encoding(self):
        assert generate("ld [$10]") == generate("ld $10")
        assert generate("mov [$01] [$02]") == bytes([0x14, 0x01, 0x02])

    def test_labels_emit_nothing(self):
        assert generate(".a:\n.b:\nnop") == b"\x00"


# =============================================================================
# Label Resolution Tests
# =============================================================================

class TestLabels:
    """Test label definition and resolution."""

    def test_backward_reference(self):
        code = generate(".loop:\nnop\njmp loop")
        assert code == bytes([0x00, 0x20, 0x00])

    def test_forward_reference(self):
        code = generate("jz done\nnop\n.done:\nstop")
        assert code == bytes([0x21, 0x03, 0x00, 0x50])

    def test_label_as_data_address(self):
        code = generate("print msg\nstop\n.msg:\n.byte $01\n.byte $41")
        assert code == bytes([0x40, 0x03, 0x50, 0x01, 0x41])

    def test_label_in_brackets(self):
        code = generate("ld [value]\nstop\n.value:\n.byte $07")
        assert code == bytes([0x10, 0x03, 0x50, 0x07])

    def test_symbols(self):
        codegen = CodeGenerator()
        codegen.generate(parse(".start:\nldi $01\n.end:\nstop"))
        assert codegen.get_symbols() == {"start": 0, "end": 2}

    def test_labels_are_case_sensitive(self):
        errors = generate_errors(".Loop:\njmp loop")
        assert isinstance(errors[0], UndefinedLabelError)

    def test_undefined_label(self):
        errors = generate_errors("nop\njmp nowhere")
        assert len(errors) == 1
        error = errors[0]
        assert isinstance(error, UndefinedLabelError)
        assert error.message == "undefined label 'nowhere'"
        assert error.line_number == 1
        assert error.line_text == "jmp nowhere"
        assert error.diag.span == Span(4, 11)

    def test_undefined_label_suggestion(self):
        errors = generate_errors(".loop:\njmp lopo")
        assert errors[0].diag.notes == ("did you mean 'loop'?",)

    def test_duplicate_label(self):
        errors = generate_errors(".a:\nnop\n.a:")
        assert len(errors) == 1
        error = errors[0]
        assert isinstance(error, DuplicateLabelError)
        assert error.line_number == 2
        assert error.diag.span == Span(1, 2)
        assert error.diag.notes == ("first defined on line 1",)

    def test_all_errors_reported(self):
        errors = generate_errors(".a:\n.a:\njmp b\njz c")
        assert [e.line_number for e in errors] == [1, 2, 3]


# =============================================================================
# Size Limit Tests
# =============================================================================

class TestSizeLimit:
    """Programs must fit in 256 bytes of memory."""

    def test_exactly_full(self):
        assert len(generate(".byte $00\n" * 256)) == 256

    def test_too_large(self):
        errors = generate_errors(".byte $00\n" * 257)
        assert len(errors) == 1
        assert errors[0].message == "program is 257 bytes, but memory holds only 256"
        assert errors[0].line_number is None

    def test_label_past_end_of_memory(self):
        source = ".byte $00\n" * 254 + "jmp end\n.end:\n"
        errors = generate_errors(source)
        assert errors[0].message == "label 'end' is outside memory"
        assert errors[0].line_number == 254


# =============================================================================
# Output Tests
# =============================================================================

class TestOutput:
    """Test listing and symbol files."""

    SOURCE = ".start:\nldi $05 ; five\nsti $01 $20\nstop\n"

    def test_listing(self):
        codegen = CodeGenerator()
        codegen.generate(parse(self.SOURCE))
        listing = codegen.get_listing()
        assert "$00   11 05         2  ldi $05 ; five" in listing
        assert "$02   13 01 20      3  sti $01 $20" in listing
        assert "start                = $00" in listing

    def test_write_symbols(self, tmp_path):
        codegen = CodeGenerator()
        codegen.generate(parse(self.SOURCE + ".end:\n"))
        path = tmp_path / "out.sym"
        codegen.write_symbols(path)
        assert path.read_text() == (
            "# Symbol table\n"
            "# Generated by t8asm\n"
            "end $06\n"
            "start $00\n"
        )

    def test_write_listing(self, tmp_path):
        codegen = CodeGenerator()
        codegen.generate(parse(self.SOURCE))
        path = tmp_path / "out.lst"
        codegen.write_listing(path)
        assert path.read_text() == codegen.get_listing()

    def test_generator_is_reusable(self):
        codegen = CodeGenerator()
        codegen.generate(parse(".a:\nnop"))
        assert codegen.generate(parse(".a:\nstop")) == b"\x50"
        assert codegen.get_symbols() == {"a": 0}
