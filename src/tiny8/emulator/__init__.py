"""
tiny8 Virtual Machine
=====================

Runs assembled tiny8 programs.

Usage:
    from tiny8.emulator import Machine

    machine = Machine.from_program(code)
    result = machine.run(max_steps=10_000)
    print(result.reason, machine.acc)
"""

from .memory import Memory
from .machine import Machine, MachineState, RunResult, StopReason

__all__ = [
    "Memory",
    "Machine",
    "MachineState",
    "RunResult",
    "StopReason",
]
