"""
t8asm - tiny8 Assembler Command-Line Interface
==============================================

This module implements the command-line interface for the tiny8 assembler.

Usage Examples
--------------
Basic assembly (writes hello.bin):
    $ t8asm hello.t8

With output file:
    $ t8asm hello.t8 -o out.bin

Generate all output files:
    $ t8asm hello.t8 -o hello.bin -l hello.lst -s hello.sym

Show how each line was parsed:
    $ t8asm hello.t8 --dump

Errors are reported with the offending line and an underline:

    error: unexpected end of line, expected literal
    3 | .byte
      |      ^
"""

from pathlib import Path
from typing import Optional
import logging

import click

from tiny8 import __version__
from tiny8.assembler import Assembler
from tiny8.cli.errors import handle_cli_exception, setup_logging
from tiny8.errors import AssemblyError

logger = logging.getLogger(__name__)


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
    help="Output binary file (default: input.bin)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "--dump",
    is_flag=True,
    help="Print the parsed lines with their spans instead of writing output",
)
@click.option(
    "--color/--no-color",
    default=None,
    help="Force coloured diagnostics on or off (default: only on a terminal)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="t8asm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    dump: bool,
    color: Optional[bool],
    verbose: bool,
) -> None:
    """
    Assemble tiny8 source code.

    INPUT_FILE is the assembly source file to assemble.

    The output is a raw program image of at most 256 bytes that t8vm
    loads at address $00.

    \b
    Examples:
        t8asm hello.t8               # Outputs hello.bin
        t8asm hello.t8 -o out.bin    # Specify output file
        t8asm hello.t8 -l hello.lst  # Also write a listing
    """
    setup_logging(verbose)
    output_file = output if output is not None else input_file.with_suffix(".bin")

    asm = Assembler()

    try:
        if dump:
            program = asm.parse_string(input_file.read_text(encoding="utf-8"))
            for line in program:
                click.echo(str(line))
            return

        logger.debug(f"Assembling {input_file}...")
        code = asm.assemble_file(input_file)

        asm.write_binary(output_file)
        logger.debug(f"Wrote {len(code)} bytes to {output_file}")

        if listing:
            asm.write_listing(listing)
            logger.debug(f"Wrote listing to {listing}")

        if symbols:
            asm.write_symbols(symbols)
            logger.debug(f"Wrote symbols to {symbols}")

        logger.debug(
            f"Assembly complete: {len(code)} bytes, {len(asm.get_symbols())} symbols"
        )

    except AssemblyError as e:
        # Show every diagnostic, then the summary line
        e.emit_all(err=True, color=color)
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")
    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
