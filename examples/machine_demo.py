#!/usr/bin/env python3
"""
tiny8 Virtual Machine Demo
==========================

This script demonstrates how to use the tiny8 library to:
1. Assemble a source file
2. Disassemble the result
3. Run it with a breakpoint hook
4. Single-step and inspect state

Usage:
    python examples/machine_demo.py
"""

from pathlib import Path

from tiny8.assembler import Assembler
from tiny8.disassembler import Disassembler
from tiny8.emulator import Machine, StopReason


def main():
    # ==========================================================================
    # 1. Assemble
    # ==========================================================================
    source = Path(__file__).parent / "multiply.t8"

    print(f"Assembling {source.name}...")
    asm = Assembler()
    code = asm.assemble_file(source)
    symbols = asm.get_symbols()

    print(f"  {len(code)} bytes")
    for name, address in sorted(symbols.items(), key=lambda item: item[1]):
        print(f"  {name:10s} ${address:02X}")

    # ==========================================================================
    # 2. Disassemble
    # ==========================================================================
    print("\nDisassembly:")
    disasm = Disassembler({address: name for name, address in symbols.items()})
    for instr in disasm.disassemble(code):
        print(f"  {instr}")

    # ==========================================================================
    # 3. Run until the loop has gone round twice
    # ==========================================================================
    machine = Machine.from_program(code)
    visits = 0

    def stop_on_third_visit(pc, opcode):
        nonlocal visits
        if pc == symbols["loop"]:
            visits += 1
        return visits < 3

    machine.on_instruction = stop_on_third_visit
    result = machine.run(max_steps=1000)
    print(f"\nPaused: {result.reason.name} after {result.steps} steps")
    print(f"  product so far = {machine.memory[symbols['product']]}")

    # ==========================================================================
    # 4. Step a few instructions, then finish
    # ==========================================================================
    machine.on_instruction = None
    for _ in range(3):
        machine.step()
        print(f"  pc=${machine.pc:02X} acc=${machine.acc:02X}")

    result = machine.run(max_steps=1000)
    assert result.reason == StopReason.STOP
    print(f"\nFinished after {result.steps} more steps: acc = {machine.acc}")


if __name__ == "__main__":
    main()
