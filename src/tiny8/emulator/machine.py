"""
tiny8 Virtual Machine
=====================

Executes tiny8 machine code with a fetch-decode-execute loop.

The machine has:
- 8-bit accumulator ``acc``
- 8-bit program counter ``pc``
- 256 bytes of memory (see :mod:`tiny8.emulator.memory`)

All arithmetic and address computation wraps modulo 256. There are no
flags: ``jz`` tests the accumulator directly.

Execution ends when a ``stop`` instruction is executed (``pc`` is left on
the ``stop`` byte), when an unknown opcode is fetched (``MachineFault``),
or when the optional step limit passed to :meth:`Machine.run` is reached.

Instrumentation hooks allow tracing every instruction before execution and
pausing the run loop, in the same way as a breakpoint:

    >>> machine = Machine.from_program(code)
    >>> machine.on_instruction = lambda pc, opcode: pc != 0x10
    >>> result = machine.run()
    >>> result.reason
    <StopReason.BREAKPOINT: 3>
"""

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Callable, Optional, TextIO
import logging
import sys

from tiny8.cpu import Opcode
from tiny8.emulator.memory import Memory
from tiny8.errors import MachineFault

logger = logging.getLogger(__name__)


@dataclass
class MachineState:
    """
    Register state of the machine.

    Attributes:
        pc: Program counter (0-255)
        acc: Accumulator (0-255)
        halted: True once a ``stop`` instruction has executed
    """
    pc: int = 0
    acc: int = 0
    halted: bool = False


class StopReason(Enum):
    """Why :meth:`Machine.run` returned."""
    STOP = auto()        # A stop instruction was executed
    STEP_LIMIT = auto()  # max_steps instructions executed without stopping
    BREAKPOINT = auto()  # on_instruction returned False


@dataclass(frozen=True)
class RunResult:
    """
    Outcome of a call to :meth:`Machine.run`.

    Attributes:
        reason: Why execution ended
        steps: Instructions executed during this call
        state: Register state when execution ended
    """
    reason: StopReason
    steps: int
    state: MachineState


class Machine:
    """
    tiny8 virtual machine.

    Example:
        >>> machine = Machine.from_program(bytes([0x11, 0x05, 0x50]))
        >>> machine.run().reason
        <StopReason.STOP: 1>
        >>> machine.acc
        5
    """

    def __init__(self, memory: Optional[Memory] = None, output: Optional[TextIO] = None):
        """
        Initialize the machine.

        Args:
            memory: Memory to execute from (zeroed memory if omitted)
            output: Stream for ``print`` output (sys.stdout if omitted)
        """
        self.memory = memory if memory is not None else Memory()
        self.state = MachineState()
        self._output = output

        # on_instruction(pc, opcode) -> bool: return False to stop execution
        self.on_instruction: Optional[Callable[[int, int], bool]] = None

    @classmethod
    def from_program(cls, program: bytes, output: Optional[TextIO] = None) -> "Machine":
        """
        Create a machine with ``program`` loaded at $00.

        Raises:
            ProgramSizeError: If the program is larger than 256 bytes
        """
        return cls(Memory.from_program(program), output)

    # ========================================
    # Register Properties
    # ========================================

    @property
    def pc(self) -> int:
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value & 0xFF

    @property
    def acc(self) -> int:
        return self.state.acc

    @acc.setter
    def acc(self, value: int) -> None:
        self.state.acc = value & 0xFF

    @property
    def halted(self) -> bool:
        return self.state.halted

    @property
    def output(self) -> TextIO:
        return self._output if self._output is not None else sys.stdout

    def snapshot(self) -> MachineState:
        """Return a copy of the current register state."""
        return replace(self.state)

    def reset(self) -> None:
        """Reset registers; memory is left untouched."""
        self.state = MachineState()

    # ========================================
    # Execution
    # ========================================

    def run(self, max_steps: Optional[int] = None) -> RunResult:
        """
        Run until ``stop``, a breakpoint, or the step limit.

        Args:
            max_steps: Maximum instructions to execute (None = no limit)

        Returns:
            RunResult describing why execution ended

        Raises:
            MachineFault: If an unknown opcode is fetched
        """
        steps = 0
        logger.debug(f"Running from ${self.pc:02X}, max_steps={max_steps}")

        while not self.halted:
            if max_steps is not None and steps >= max_steps:
                logger.debug(f"Step limit reached after {steps} steps")
                return RunResult(StopReason.STEP_LIMIT, steps, self.snapshot())

            # Call instruction hook if set
            if self.on_instruction:
                if not self.on_instruction(self.pc, self.memory.read(self.pc)):
                    return RunResult(StopReason.BREAKPOINT, steps, self.snapshot())

            self._execute_instruction(self._read_byte(self.pc))
            steps += 1

        logger.debug(f"Stopped at ${self.pc:02X} after {steps} steps, acc=${self.acc:02X}")
        return RunResult(StopReason.STOP, steps, self.snapshot())

    def step(self) -> bool:
        """
        Execute exactly one instruction, ignoring the instruction hook.

        Returns:
            False if the machine is halted (before or after the instruction)

        Raises:
            MachineFault: If an unknown opcode is fetched
        """
        if self.halted:
            return False
        self._execute_instruction(self._read_byte(self.pc))
        return not self.halted

    # ========================================
    # Memory Access
    # ========================================

    def _read_byte(self, addr: int) -> int:
        return self.memory.read(addr)

    def _write_byte(self, addr: int, value: int) -> None:
        self.memory.write(addr, value)

    def _operand(self, index: int) -> int:
        """Fetch operand byte ``index`` (1-based) of the current instruction."""
        return self._read_byte(self.pc + index)

    def _print(self, addr: int) -> None:
        self.output.write(self.memory.read_string(addr) + "\n")

    # ========================================
    # Instruction Dispatch
    # ========================================

    def _execute_instruction(self, opcode: int) -> None:
        """
        Execute the instruction at ``pc`` and advance ``pc``.

        Args:
            opcode: The instruction opcode byte (already read from ``pc``)

        Raises:
            MachineFault: If the byte is not a known opcode
        """
        match opcode:
            # ============================================
            # Data Movement
            # ============================================
            case Opcode.NOP:
                self.pc += 1
            case Opcode.LD:
                self.acc = self._read_byte(self._operand(1))
                self.pc += 2
            case Opcode.LDI:
                self.acc = self._operand(1)
                self.pc += 2
            case Opcode.ST:
                self._write_byte(self._operand(1), self.acc)
                self.pc += 2
            case Opcode.STI:
                self._write_byte(self._operand(2), self._operand(1))
                self.pc += 3
            case Opcode.MOV:
                self._write_byte(self._operand(2), self._read_byte(self._operand(1)))
                self.pc += 3

            # ============================================
            # Control Flow
            # ============================================
            case Opcode.JMP:
                self.pc = self._operand(1)
            case Opcode.JZ:
                if self.acc == 0:
                    self.pc = self._operand(1)
                else:
                    self.pc += 2

            # ============================================
            # Arithmetic and Logic
            # ============================================
            case Opcode.ADD:
                self.acc += self._read_byte(self._operand(1))
                self.pc += 2
            case Opcode.ADDI:
                self.acc += self._operand(1)
                self.pc += 2
            case Opcode.SUB:
                self.acc -= self._read_byte(self._operand(1))
                self.pc += 2
            case Opcode.SUBI:
                self.acc -= self._operand(1)
                self.pc += 2
            case Opcode.SHR:
                self.acc >>= 1
                self.pc += 1
            case Opcode.SHL:
                self.acc <<= 1
                self.pc += 1
            case Opcode.AND:
                self.acc &= self._read_byte(self._operand(1))
                self.pc += 2
            case Opcode.ANDI:
                self.acc &= self._operand(1)
                self.pc += 2

            # ============================================
            # Output and Halt
            # ============================================
            case Opcode.PRINT:
                self._print(self._operand(1))
                self.pc += 2
            case Opcode.STOP:
                self.state.halted = True

            case _:
                raise MachineFault(opcode, self.pc)

    def get_snapshot_data(self) -> list[int]:
        """
        Get machine state as a byte list: [PC, ACC, HALTED, memory...].
        """
        return [self.pc, self.acc, 1 if self.halted else 0, *bytes(self.memory)]
