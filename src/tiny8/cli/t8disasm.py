"""
t8disasm - tiny8 Disassembler Command-Line Interface
====================================================

Command-line tool for disassembling tiny8 program images.

Usage Examples
--------------
Disassemble a program:
    $ t8disasm hello.bin

Save to file:
    $ t8disasm hello.bin -o listing.txt

Annotate with the symbol file written by t8asm:
    $ t8disasm hello.bin -s hello.sym

Produce source that t8asm turns back into the same bytes:
    $ t8disasm hello.bin --source -o hello.t8
"""

from pathlib import Path
from typing import Optional
import sys

import click

from tiny8 import __version__
from tiny8.cli.errors import ExitCode
from tiny8.disassembler import Disassembler


def load_symbol_file(path: Path) -> dict[int, str]:
    """
    Read a t8asm symbol file into an address -> name mapping.

    Lines look like ``name $XX``; blank lines and ``#`` comments are skipped.

    Raises:
        click.BadParameter: If a line cannot be parsed
    """
    symbols = {}
    for number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            name, value = line.split()
            symbols[int(value.lstrip("$"), 16)] = name
        except ValueError:
            raise click.BadParameter(f"{path}:{number}: expected 'name $XX', got {line!r}")
    return symbols


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-c", "--count",
    type=int,
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Symbol file from t8asm used to annotate addresses",
)
@click.option(
    "--source",
    is_flag=True,
    help="Write re-assemblable source with labels instead of a listing",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit raw bytes from output (show only mnemonic and operand)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="t8disasm")
def main(
    input_file: Path,
    output: Optional[Path],
    count: Optional[int],
    symbols: Optional[Path],
    source: bool,
    no_bytes: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a tiny8 program image.

    INPUT_FILE is the binary file to disassemble.

    Examples:

        # Disassemble the first 20 instructions
        t8disasm code.bin --count 20 -o listing.txt

        # Round trip through source
        t8disasm code.bin --source -o code.t8
    """
    try:
        data = input_file.read_bytes()
    except OSError as e:
        click.echo(f"Error reading {input_file}: {e}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if len(data) == 0:
        click.echo(f"Error: {input_file} is empty", err=True)
        sys.exit(ExitCode.ERROR)

    symbol_table = load_symbol_file(symbols) if symbols else None
    disasm = Disassembler(symbol_table=symbol_table)

    if verbose:
        click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)

    output_lines = []

    if source:
        output_lines.append(f"; Disassembly of {input_file.name}")
        output_lines.append(disasm.to_source(data, labels=True).rstrip("\n"))
        instructions = None
    else:
        output_lines.append(f"; Disassembly of {input_file.name}")
        output_lines.append(f"; Size: {len(data)} bytes")
        output_lines.append("")

        instructions = disasm.disassemble(data, count=count)
        for instr in instructions:
            if no_bytes:
                # Compact format
                line = f"${instr.address:02X}: {instr.asm}"
                if instr.comment:
                    line += f"  ; {instr.comment}"
                output_lines.append(line)
            else:
                output_lines.append(str(instr))

    result = "\n".join(output_lines) + "\n"

    if output:
        try:
            output.write_text(result, encoding="utf-8")
        except OSError as e:
            click.echo(f"Error writing {output}: {e}", err=True)
            sys.exit(ExitCode.INVALID_ARGS)
        if verbose:
            click.echo(f"Output written to: {output}", err=True)
    else:
        click.echo(result, nl=False)

    if verbose and instructions is not None:
        click.echo(f"Instructions disassembled: {len(instructions)}", err=True)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
