"""
EasyScript SDK - Arduino EasyScript Toolchain
=============================================

This package provides the toolchain for Arduino EasyScript (AES), a small
English-like language for people writing their first microcontroller
programs. Programs compile to plain Arduino C++ sketches that build with
the stock Arduino core.

Main Components
---------------
- **aes**: the compiler (symbol pass, block pass, code generation,
  diagnostics) and the source formatter
- **boards**: board profiles used to validate pin numbers
- **cli**: the ``aesc`` command-line tool

Quick Start
-----------
Compile a program:
    >>> from easyscript import compile_script
    >>> result = compile_script(source, board="uno")
    >>> for d in result.diagnostics:
    ...     print(d.line, d.severity.value, d.message)
    >>> print(result.code)

Or use the command-line tool:
    $ aesc compile blink.aes -o blink.ino
    $ aesc format -w blink.aes
"""

__version__ = "2.0.0"
__author__ = "EasyScript Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from easyscript.errors import EasyScriptError, BoardProfileError, SourceLocation
from easyscript.boards import BoardProfile, BOARDS, DEFAULT_BOARD, get_board
from easyscript.aes import (
    AESCompiler,
    CompilerOptions,
    CompilationResult,
    SymbolAnalysis,
    AESError,
    AESCompilationError,
    Diagnostic,
    Severity,
    compile_script,
    compile_file,
    analyze_symbols,
    reformat,
)

__all__ = [
    "__version__",
    # Errors
    "EasyScriptError",
    "BoardProfileError",
    "SourceLocation",
    "AESError",
    "AESCompilationError",
    # Boards
    "BoardProfile",
    "BOARDS",
    "DEFAULT_BOARD",
    "get_board",
    # Compiler
    "AESCompiler",
    "CompilerOptions",
    "CompilationResult",
    "SymbolAnalysis",
    "Diagnostic",
    "Severity",
    "compile_script",
    "compile_file",
    "analyze_symbols",
    "reformat",
]
