# =============================================================================
# test_emulator_machine.py - Virtual Machine Unit Tests
# =============================================================================
# Tests for the tiny8 fetch-decode-execute loop.
#
# Test coverage includes:
#   - Every instruction's effect on acc, pc and memory
#   - Wrapping arithmetic and addressing
#   - print output, stop, and unknown-opcode faults
#   - Step limits, breakpoints, and single-stepping
# =============================================================================

import io

import pytest
from tiny8.assembler import assemble
from tiny8.emulator import Machine, Memory, StopReason
from tiny8.errors import MachineFault, ProgramSizeError


# =============================================================================
# Helper Functions
# =============================================================================

def make_machine(program: bytes) -> tuple[Machine, io.StringIO]:
    """Create a machine with ``program`` at $00 and captured output."""
    output = io.StringIO()
    return Machine.from_program(bytes(program), output=output), output


def run_program(program: bytes, max_steps: int = 1000) -> tuple[Machine, str]:
    machine, output = make_machine(program)
    result = machine.run(max_steps=max_steps)
    assert result.reason == StopReason.STOP
    return machine, output.getvalue()


# =============================================================================
# Documented Scenarios
# =============================================================================

class TestScenarios:
    """The reference programs from the instruction set documentation."""

    def test_load_immediate_and_stop(self):
        machine, output = run_program([0x11, 0x05, 0x50])
        assert machine.acc == 5
        assert machine.pc == 2
        assert machine.halted
        assert output == ""

    def test_add_immediate_wraps(self):
        machine, _ = run_program([0x31, 0xFF, 0x50])
        assert machine.acc == 255

        machine, _ = run_program([0x31, 0xFF, 0x31, 0x02, 0x50])
        assert machine.acc == 1

    def test_print_string(self):
        memory = Memory(bytes([0x40, 10]))
        memory.load(b"\x02HI", address=10)
        output = io.StringIO()
        machine = Machine(memory, output)

        assert machine.step()
        assert output.getvalue() == "HI\n"
        assert machine.pc == 2

    def test_unknown_opcode(self):
        machine, _ = make_machine([0x60])
        with pytest.raises(MachineFault) as exc_info:
            machine.run()
        assert exc_info.value.opcode == 0x60
        assert exc_info.value.pc == 0x00

    def test_unknown_opcode_mid_program(self):
        machine, _ = make_machine([0x11, 0x01, 0x00, 0x60])
        with pytest.raises(MachineFault) as exc_info:
            machine.run()
        assert exc_info.value.pc == 0x03
        assert str(exc_info.value) == "unknown instruction $60 at position $03"


# =============================================================================
# Instruction Tests
# =============================================================================

class TestDataMovement:
    """Test nop, ld, ldi, st, sti and mov."""

    def test_nop(self):
        machine, _ = run_program([0x00, 0x00, 0x50])
        assert machine.pc == 2
        assert machine.acc == 0

    def test_ld(self):
        machine, _ = run_program([0x10, 0x03, 0x50, 0x2A])
        assert machine.acc == 0x2A

    def test_st(self):
        machine, _ = run_program([0x11, 0x07, 0x12, 0x80, 0x50])
        assert machine.memory[0x80] == 0x07

    def test_sti(self):
        machine, _ = run_program([0x13, 0x2A, 0x80, 0x50])
        assert machine.memory[0x80] == 0x2A
        assert machine.acc == 0

    def test_mov(self):
        machine, _ = run_program([0x14, 0x04, 0x90, 0x50, 0x99])
        assert machine.memory[0x90] == 0x99

    def test_self_modifying_code(self):
        """st can overwrite an instruction before it executes."""
        machine, _ = run_program([0x11, 0x50, 0x12, 0x04, 0x00])
        assert machine.pc == 4


class TestControlFlow:
    """Test jmp and jz."""

    def test_jmp(self):
        machine, _ = run_program([0x20, 0x04, 0x11, 0x01, 0x50])
        assert machine.acc == 0
        assert machine.pc == 4

    def test_jz_taken(self):
        machine, _ = run_program([0x21, 0x04, 0x11, 0x01, 0x50])
        assert machine.acc == 0
        assert machine.pc == 4

    def test_jz_not_taken(self):
        machine, _ = run_program([0x11, 0x01, 0x21, 0x06, 0x50, 0x00, 0x11, 0x09, 0x50])
        assert machine.acc == 1
        assert machine.pc == 4

    def test_countdown_loop(self):
        code = assemble(".start:\nsubi $01\njz done\njmp start\n.done:\nstop")
        machine, output = make_machine(code)
        machine.acc = 3
        result = machine.run()
        assert result.reason == StopReason.STOP
        assert result.steps == 3 * 2 + 2 + 1
        assert machine.acc == 0


class TestArithmetic:
    """Test add, sub, shifts and bitwise and."""

    def test_add(self):
        machine, _ = run_program([0x11, 0x02, 0x30, 0x05, 0x50, 0x03])
        assert machine.acc == 5

    def test_add_wraps(self):
        machine, _ = run_program([0x11, 0xF0, 0x30, 0x05, 0x50, 0x20])
        assert machine.acc == 0x10

    def test_sub(self):
        machine, _ = run_program([0x11, 0x09, 0x32, 0x05, 0x50, 0x03])
        assert machine.acc == 6

    def test_subi_wraps(self):
        machine, _ = run_program([0x33, 0x01, 0x50])
        assert machine.acc == 0xFF

    def test_shr(self):
        machine, _ = run_program([0x11, 0x81, 0x34, 0x50])
        assert machine.acc == 0x40

    def test_shl_drops_high_bit(self):
        machine, _ = run_program([0x11, 0x81, 0x35, 0x50])
        assert machine.acc == 0x02

    def test_and(self):
        machine, _ = run_program([0x11, 0xF3, 0x36, 0x05, 0x50, 0x3C])
        assert machine.acc == 0x30

    def test_andi(self):
        machine, _ = run_program([0x11, 0xAB, 0x37, 0x0F, 0x50])
        assert machine.acc == 0x0B


class TestPrint:
    """Test the print instruction."""

    def test_empty_string(self):
        _, output = run_program([0x40, 0x10, 0x50])
        assert output == "\n"

    def test_assembled_hello(self):
        code = assemble(
            "print msg\nstop\n.msg:\n.byte $05\n"
            ".byte $68\n.byte $65\n.byte $6C\n.byte $6C\n.byte $6F\n"
        )
        _, output = run_program(code)
        assert output == "hello\n"

    def test_string_wraps_memory(self):
        memory = Memory(bytes([0x40, 0xFE, 0x50]))
        memory[0xFE] = 2
        memory[0xFF] = ord("A")
        output = io.StringIO()
        Machine(memory, output).run()
        assert output.getvalue() == "A@\n"

    def test_default_output_is_stdout(self, capsys):
        memory = Memory(bytes([0x40, 0x03, 0x50, 0x01, 0x21]))
        Machine(memory).run()
        assert capsys.readouterr().out == "!\n"


class TestWrapping:
    """pc and operand fetches wrap at the end of memory."""

    def test_pc_wraps(self):
        machine = Machine()
        result = machine.run(max_steps=256)
        assert result.reason == StopReason.STEP_LIMIT
        assert machine.pc == 0

    def test_operand_fetch_wraps(self):
        memory = Memory(bytes([0x42]))
        memory[0xFF] = 0x11
        machine = Machine(memory)
        machine.pc = 0xFF
        machine.step()
        assert machine.acc == 0x42
        assert machine.pc == 0x01

    def test_registers_masked(self):
        machine = Machine()
        machine.acc = 0x123
        machine.pc = -1
        assert machine.acc == 0x23
        assert machine.pc == 0xFF


# =============================================================================
# Execution Control Tests
# =============================================================================

class TestExecutionControl:
    """Test run results, step limits, hooks and stepping."""

    def test_run_result(self):
        machine, _ = make_machine([0x11, 0x05, 0x50])
        result = machine.run()
        assert result.reason == StopReason.STOP
        assert result.steps == 2
        assert result.state.acc == 5
        assert result.state.halted

    def test_step_limit(self):
        machine, _ = make_machine([0x20, 0x00])
        result = machine.run(max_steps=5)
        assert result.reason == StopReason.STEP_LIMIT
        assert result.steps == 5
        assert not machine.halted

    def test_zero_step_limit(self):
        machine, _ = make_machine([0x50])
        assert machine.run(max_steps=0).reason == StopReason.STEP_LIMIT

    def test_limit_equal_to_program_length(self):
        machine, _ = make_machine([0x11, 0x05, 0x50])
        assert machine.run(max_steps=2).reason == StopReason.STOP

    def test_breakpoint(self):
        machine, _ = make_machine([0x11, 0x05, 0x11, 0x06, 0x50])
        seen = []

        def hook(pc, opcode):
            seen.append((pc, opcode))
            return pc != 2

        machine.on_instruction = hook
        result = machine.run()
        assert result.reason == StopReason.BREAKPOINT
        assert result.steps == 1
        assert machine.pc == 2
        assert machine.acc == 5
        assert seen == [(0, 0x11), (2, 0x11)]

        machine.on_instruction = None
        assert machine.run().reason == StopReason.STOP
        assert machine.acc == 6

    def test_step_ignores_hook(self):
        machine, _ = make_machine([0x00, 0x50])
        machine.on_instruction = lambda pc, opcode: False
        assert machine.step()
        assert machine.pc == 1

    def test_step_until_halt(self):
        machine, _ = make_machine([0x11, 0x05, 0x50])
        assert machine.step()
        assert not machine.step()
        assert machine.halted
        assert not machine.step()
        assert machine.pc == 2

    def test_run_after_halt(self):
        machine, _ = run_program([0x50])
        result = machine.run()
        assert result.reason == StopReason.STOP
        assert result.steps == 0

    def test_reset(self):
        machine, _ = run_program([0x11, 0x05, 0x50])
        machine.reset()
        assert (machine.pc, machine.acc, machine.halted) == (0, 0, False)
        assert machine.memory[0] == 0x11

    def test_snapshot_is_copy(self):
        machine, _ = make_machine([0x11, 0x05, 0x50])
        before = machine.snapshot()
        machine.run()
        assert before.acc == 0
        assert machine.snapshot().acc == 5

    def test_snapshot_data(self):
        machine, _ = run_program([0x11, 0x05, 0x50])
        data = machine.get_snapshot_data()
        assert data[:3] == [2, 5, 1]
        assert len(data) == 3 + 256

    def test_program_too_large(self):
        with pytest.raises(ProgramSizeError):
            Machine.from_program(bytes(257))

    def test_deterministic(self):
        code = assemble(
            ".loop:\nld n\nsubi $01\nst n\nprint msg\njz done\njmp loop\n"
            ".done:\nstop\n.n:\n.byte $03\n.msg:\n.byte $01\n.byte $2A\n"
        )
        results = []
        for _ in range(2):
            machine, output = make_machine(code)
            result = machine.run()
            results.append((result, bytes(machine.memory), output.getvalue()))
        assert results[0] == results[1]
        assert results[0][2] == "*\n*\n*\n"
