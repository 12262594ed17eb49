"""
aesc - Arduino EasyScript Command-Line Interface
================================================

This module implements the command-line interface for the EasyScript
compiler and formatter.

Commands
--------
- **compile**: Compile a program to an Arduino sketch (.ino)
- **format**: Re-indent a program
- **symbols**: List pins, variables and functions
- **boards**: List board profiles

Usage Examples
--------------
Basic compilation:
    $ aesc compile blink.aes

With output file and board:
    $ aesc compile blink.aes -o sketch/sketch.ino -b nano

Machine-readable output for editors:
    $ aesc compile --json blink.aes

Format in place / check formatting in CI:
    $ aesc format -w blink.aes
    $ aesc format --check blink.aes

Verbose mode:
    $ aesc -v compile blink.aes
"""

import json
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from easyscript import __version__
from easyscript.boards import BOARDS, DEFAULT_BOARD, get_board
from easyscript.aes import AESCompiler, CompilerOptions, reformat
from easyscript.cli.errors import ExitCode, handle_cli_exception


BOARD_OPTION = click.option(
    "-b", "--board",
    type=click.Choice(sorted(BOARDS), case_sensitive=False),
    default=DEFAULT_BOARD.name,
    show_default=True,
    help="Board profile used to validate pin numbers.",
)


def _compiler(board: str) -> AESCompiler:
    return AESCompiler(CompilerOptions(board=get_board(board)))


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose output (debug logging)")
@click.version_option(__version__, "--version", "-V", prog_name="aesc")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """
    Arduino EasyScript compiler.

    Compile beginner-friendly EasyScript programs (.aes) into Arduino
    C++ sketches (.ino) that use only the Arduino core.

    \b
    Commands:
      compile   Compile a program to an Arduino sketch
      format    Re-indent a program
      symbols   List pins, variables and functions
      boards    List board profiles

    \b
    Examples:
      aesc compile blink.aes
      aesc compile blink.aes -o blink.ino -b mega
      aesc format -w blink.aes
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


# =============================================================================
# Compile Command
# =============================================================================

@main.command("compile")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output sketch file (default: input.ino)",
)
@BOARD_OPTION
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Print {code, diagnostics, symbols} as JSON instead of writing a file",
)
@click.pass_context
def cmd_compile(
    ctx: click.Context,
    input_file: Path,
    output: Optional[Path],
    board: str,
    as_json: bool,
) -> None:
    """
    Compile an EasyScript program.

    INPUT_FILE is the EasyScript source (.aes). Diagnostics are printed to
    stderr. The sketch is only written when there are no errors.
    """
    verbose = ctx.obj.get("verbose", False)
    if output is None:
        output = input_file.with_suffix(".ino")

    try:
        result = _compiler(board).compile_file(input_file)

        if as_json:
            click.echo(json.dumps(result.to_dict(), indent=2))
            if not result.success:
                sys.exit(ExitCode.BUILD_ERROR)
            return

        result.raise_if_errors()

        if result.warnings:
            click.echo(result.report(), err=True)

        output.write_text(result.code, encoding="utf-8")

        if verbose:
            click.echo(f"Board: {board.upper()}")
            click.echo(
                f"Symbols: {len(result.symbols.pins)} pins, "
                f"{len(result.symbols.variables)} variables, "
                f"{len(result.symbols.functions)} functions"
            )
        click.echo(f"Compiled {input_file} -> {output}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


# =============================================================================
# Format Command
# =============================================================================

@main.command("format")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("-w", "--write", is_flag=True, help="Rewrite the file in place")
@click.option(
    "--check",
    is_flag=True,
    help="Exit with status 1 if the file is not already formatted",
)
@click.pass_context
def cmd_format(ctx: click.Context, input_file: Path, write: bool, check: bool) -> None:
    """
    Re-indent an EasyScript program.

    Prints the formatted program to stdout unless --write or --check is
    given. Formatting never validates the program.
    """
    try:
        source = input_file.read_text(encoding="utf-8")
        formatted = reformat(source)

        if check:
            if formatted != source:
                click.echo(f"{input_file} would be reformatted", err=True)
                sys.exit(ExitCode.BUILD_ERROR)
            click.echo(f"{input_file} is formatted")
            return

        if write:
            if formatted != source:
                input_file.write_text(formatted, encoding="utf-8")
                click.echo(f"Reformatted {input_file}")
            else:
                click.echo(f"{input_file} unchanged")
            return

        click.echo(formatted, nl=False)

    except (FileNotFoundError, PermissionError) as e:
        handle_cli_exception(e, verbose=ctx.obj.get("verbose", False))


# =============================================================================
# Symbols Command
# =============================================================================

@main.command("symbols")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@BOARD_OPTION
@click.option("--json", "as_json", is_flag=True, help="Print the symbol table as JSON")
@click.pass_context
def cmd_symbols(ctx: click.Context, input_file: Path, board: str, as_json: bool) -> None:
    """
    List the pins, variables and functions of a program.

    Only the symbol pass runs, so this works on programs that do not
    compile yet.
    """
    try:
        analysis = _compiler(board).analyze_symbols(input_file.read_text(encoding="utf-8"))

        if as_json:
            click.echo(json.dumps(analysis.to_dict(), indent=2))
            return

        symbols = analysis.symbols
        click.echo(f"{'Name':<16} {'Kind':<10} {'Detail':<16} {'Line':>5}")
        click.echo("-" * 50)
        for name, pin in symbols.pins.items():
            click.echo(f"{name:<16} {'pin':<10} {pin.target:<16} {pin.line:>5}")
        for name, var in symbols.variables.items():
            click.echo(f"{name:<16} {'variable':<10} {var.type.c_name:<16} {var.line:>5}")
        for name, func in symbols.functions.items():
            click.echo(f"{name:<16} {'function':<10} {'void()':<16} {func.line:>5}")

        for diagnostic in analysis.diagnostics:
            click.echo(diagnostic.format(str(input_file)), err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.obj.get("verbose", False))


# =============================================================================
# Boards Command
# =============================================================================

@main.command("boards")
def cmd_boards() -> None:
    """List the available board profiles."""
    click.echo(f"{'Board':<8} {'Digital':<10} {'Analog':<10} PWM")
    click.echo("-" * 50)
    for name in sorted(BOARDS):
        board = BOARDS[name]
        digital = f"{board.digital_min}..{board.digital_max}"
        analog = board.analog_range or "-"
        pwm = ", ".join(str(n) for n in sorted(board.pwm_pins)) or "-"
        click.echo(f"{name:<8} {digital:<10} {analog:<10} {pwm}")


if __name__ == "__main__":
    main()
