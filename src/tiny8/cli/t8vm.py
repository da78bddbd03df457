"""
t8vm - tiny8 Virtual Machine Command-Line Interface
===================================================

Loads a program image produced by t8asm at address $00 and runs it.
Output of ``print`` instructions goes to stdout; diagnostics, traces and
state dumps go to stderr.

Usage Examples
--------------
Run a program:
    $ t8vm hello.bin

Guard against programs that never stop:
    $ t8vm loop.bin --max-steps 10000

Trace every instruction and show the final state:
    $ t8vm hello.bin --trace --dump-state
"""

from pathlib import Path
from typing import Optional
import logging
import sys

import click

from tiny8 import __version__
from tiny8.cli.errors import ExitCode, handle_cli_exception, setup_logging
from tiny8.disassembler import Disassembler
from tiny8.emulator import Machine, StopReason

logger = logging.getLogger(__name__)


def _make_tracer(machine: Machine):
    """Build an on_instruction hook that prints each instruction before it runs."""
    disasm = Disassembler()

    def trace(pc: int, opcode: int) -> bool:
        window = machine.memory.read_block(pc, 3)
        instr = disasm.disassemble_one(window, address=pc)
        hex_bytes = " ".join(f"{b:02X}" for b in instr.raw_bytes)
        click.echo(f"${pc:02X}: {hex_bytes:8s}  {instr.asm:<16} acc=${machine.acc:02X}", err=True)
        return True

    return trace


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "program_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--max-steps",
    type=click.IntRange(min=0),
    default=None,
    help="Stop with an error after this many instructions (default: no limit)",
)
@click.option(
    "--trace",
    is_flag=True,
    help="Print each instruction to stderr before executing it",
)
@click.option(
    "--info",
    is_flag=True,
    help="Print the program and the initial memory before running",
)
@click.option(
    "--dump-state",
    is_flag=True,
    help="Print registers and memory to stderr after the run",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="t8vm")
def main(
    program_file: Path,
    max_steps: Optional[int],
    trace: bool,
    info: bool,
    dump_state: bool,
    verbose: bool,
) -> None:
    """
    Run a tiny8 program image.

    PROGRAM_FILE is a raw binary of at most 256 bytes.

    \b
    Examples:
        t8vm hello.bin
        t8vm loop.bin --max-steps 1000
    """
    setup_logging(verbose)

    try:
        data = program_file.read_bytes()
        machine = Machine.from_program(data)

        if info:
            click.echo(f"Program: {program_file.name} ({len(data)} bytes)", err=True)
            click.echo(data.hex(" ").upper(), err=True)
            click.echo(machine.memory.dump(), err=True)
            click.echo("", err=True)

        if trace:
            machine.on_instruction = _make_tracer(machine)

        result = machine.run(max_steps=max_steps)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Machine")

    logger.debug(f"Executed {result.steps} instructions")

    if dump_state:
        click.echo(f"pc=${result.state.pc:02X} acc=${result.state.acc:02X} "
                   f"steps={result.steps}", err=True)
        click.echo(machine.memory.dump(), err=True)

    if result.reason == StopReason.STEP_LIMIT:
        click.echo(f"Error: step limit of {max_steps} reached at ${result.state.pc:02X}", err=True)
        sys.exit(ExitCode.ERROR)


if __name__ == "__main__":
    main()
