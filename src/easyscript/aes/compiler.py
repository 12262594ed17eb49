"""
AES Compiler Main Module
========================

This module provides the main compiler interface for Arduino EasyScript.
It orchestrates the complete compilation process:

    Source → Symbol Pass → Block/Statement Pass → Program Assembly → C++

Usage
-----
Command line:
    $ aesc compile blink.aes -o blink.ino

Programmatic:
    >>> from easyscript.aes import compile_script
    >>> result = compile_script(source, board="uno")
    >>> result.code          # Arduino C++ sketch
    >>> result.diagnostics   # every error and warning found

Compilation Pipeline
--------------------
1. **Symbol pass**: collect pins and functions, seed variable types
2. **Block pass**: check nesting, dispatch statements, emit C++ into the
   setup(), loop() and function buffers (extends the same symbol table)
3. **Assembly**: banner, prototypes, pins, variables, functions, setup,
   loop

Error Handling
--------------
Compilation never raises for problems in the program. All diagnostics are
collected and returned alongside best-effort output; callers decide
whether errors block anything (see CompilationResult.raise_if_errors).

Each call builds its own symbol table, diagnostics and block stack, so a
compiler object can be reused freely. Board profile and reserved words are
immutable configuration passed in through CompilerOptions.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from easyscript import __version__
from easyscript.boards import BoardProfile, DEFAULT_BOARD, get_board
from easyscript.aes.blocks import BlockPass
from easyscript.aes.codegen import ProgramOutput, generate_program
from easyscript.aes.errors import AESCompilationError, Diagnostic, DiagnosticCollector
from easyscript.aes.lexer import RESERVED_WORDS, normalize_newlines
from easyscript.aes.symbols import SymbolTable, SymbolTableBuilder


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompilerOptions:
    """
    Compiler configuration.

    Attributes:
        board: Board profile used for pin validation
        reserved_words: Names programs may not declare
        indent: Indentation unit of the generated C++
    """
    board: BoardProfile = DEFAULT_BOARD
    reserved_words: frozenset[str] = RESERVED_WORDS
    indent: str = "  "


@dataclass
class SymbolAnalysis:
    """Result of analyze_symbols(): the symbol table and first-pass diagnostics."""
    symbols: SymbolTable
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "symbols": self.symbols.to_dict(),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@dataclass
class CompilationResult:
    """
    Result of a compilation.

    Attributes:
        code: Generated Arduino C++ (always present, even with errors)
        diagnostics: All errors and warnings, in the order they were found
        symbols: The final symbol table
        filename: Source filename used in reports
        source_lines: The program's lines, for report context
    """
    code: str
    diagnostics: list[Diagnostic]
    symbols: SymbolTable
    filename: str = "<input>"
    source_lines: list[str] = field(default_factory=list, repr=False)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if not d.is_error]

    @property
    def success(self) -> bool:
        """True when compilation produced no errors (warnings are fine)."""
        return not self.errors

    def to_dict(self) -> dict:
        """``{code, diagnostics, symbols}`` as plain data."""
        return {
            "code": self.code,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "symbols": self.symbols.to_dict(),
        }

    def report(self) -> str:
        """Format all diagnostics with source context."""
        collector = DiagnosticCollector()
        for diagnostic in self.diagnostics:
            collector.add(diagnostic)
        return collector.report(self.filename, self.source_lines)

    def raise_if_errors(self) -> None:
        """Raise AESCompilationError if any errors were found."""
        if not self.success:
            raise AESCompilationError(self.report(), self.errors)


class AESCompiler:
    """
    Arduino EasyScript compiler.

    Example:
        compiler = AESCompiler(CompilerOptions(board=get_board("nano")))
        result = compiler.compile_source(source, "blink.aes")
        print(result.code)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def _new_symbols(self) -> SymbolTable:
        return SymbolTable(self.options.board, self.options.reserved_words)

    def analyze_symbols(self, source: str) -> SymbolAnalysis:
        """
        Run only the symbol pass.

        Cheap enough for editor completion and hover on every keystroke.
        """
        lines = normalize_newlines(source).split("\n")
        diagnostics = DiagnosticCollector()
        symbols = SymbolTableBuilder(self._new_symbols(), diagnostics).scan(lines)
        return SymbolAnalysis(symbols, list(diagnostics))

    def compile_source(self, source: str, filename: str = "<input>") -> CompilationResult:
        """
        Compile EasyScript source to Arduino C++.

        Args:
            source: Program text
            filename: Source filename for reports

        Returns:
            CompilationResult with code, diagnostics and symbols
        """
        lines = normalize_newlines(source).split("\n")
        diagnostics = DiagnosticCollector()
        logger.debug(f"compiling {filename}: {len(lines)} lines, board {self.options.board.name}")

        # Stage 1: symbols
        symbols = SymbolTableBuilder(self._new_symbols(), diagnostics).scan(lines)

        # Stage 2: blocks and statements
        output = ProgramOutput()
        BlockPass(symbols, diagnostics, output).run(lines)

        # Stage 3: assembly
        code = generate_program(
            output, symbols, self.options.board, __version__, self.options.indent
        )

        logger.debug(
            f"compiled {filename}: {diagnostics.error_count()} errors, "
            f"{diagnostics.warning_count()} warnings"
        )
        return CompilationResult(code, list(diagnostics), symbols, filename, lines)

    def compile_file(self, filepath: Union[str, Path]) -> CompilationResult:
        """
        Compile an EasyScript file.

        Raises:
            FileNotFoundError: If the source file does not exist
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")
        return self.compile_source(path.read_text(encoding="utf-8"), str(filepath))


# =============================================================================
# Convenience Functions
# =============================================================================

def _compiler_for(board: Union[str, BoardProfile, None]) -> AESCompiler:
    if board is None:
        profile = DEFAULT_BOARD
    elif isinstance(board, BoardProfile):
        profile = board
    else:
        profile = get_board(board)
    return AESCompiler(CompilerOptions(board=profile))


def compile_script(
    source: str,
    board: Union[str, BoardProfile, None] = None,
    filename: str = "<input>",
) -> CompilationResult:
    """
    Compile EasyScript source to Arduino C++.

    This is the primary high-level interface.

    Raises:
        BoardProfileError: If ``board`` names an unknown board

    Example:
        >>> result = compile_script(open("blink.aes").read())
        >>> if result.success:
        ...     print(result.code)
    """
    return _compiler_for(board).compile_source(source, filename)


def analyze_symbols(source: str, board: Union[str, BoardProfile, None] = None) -> SymbolAnalysis:
    """Collect the symbol table without generating code."""
    return _compiler_for(board).analyze_symbols(source)


def compile_file(
    filepath: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
    board: Union[str, BoardProfile, None] = None,
) -> CompilationResult:
    """
    Compile an EasyScript file, optionally writing the sketch.

    The sketch is written even when there are errors, matching the
    best-effort contract of the compiler; check ``result.success``.
    """
    result = _compiler_for(board).compile_file(filepath)
    if output_path:
        Path(output_path).write_text(result.code, encoding="utf-8")
    return result
