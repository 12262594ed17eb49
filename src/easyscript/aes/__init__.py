"""
Arduino EasyScript (AES) Compiler
=================================

This package compiles Arduino EasyScript, a beginner-friendly,
English-like language, into Arduino C++ that uses only the Arduino core
API (no external libraries).

    # Blink an LED
    pin led is 13

    setup:
      make led output
    end

    loop:
      turn led on
      wait 500 ms
      turn led off
      wait 500 ms
    end

Pipeline
--------
    Source → Symbol pass → Block/statement pass → Program assembly → C++

Diagnostics are collected, never raised: a single run reports as many
problems as it can find and still returns its best-effort sketch.

Usage
-----
>>> from easyscript.aes import compile_script, analyze_symbols, reformat
>>> result = compile_script(source)
>>> result.code            # the .ino sketch
>>> result.diagnostics     # [Diagnostic(severity, line, message, column)]
>>> result.symbols         # pins, variables, functions
>>> reformat(source)       # canonical indentation

Language Subset
---------------
Supported:
- Named pins, pin modes, digital/analog/PWM I/O, tones
- Variables with inferred types (bool, int, long, unsigned long, float, String)
- if/otherwise, repeat N times, forever, while
- Non-blocking timers: every N ms, after N ms
- User functions without parameters
- Serial printing, map/limit, random numbers

Not supported:
- Operator precedence parsing (expressions are passed through)
- else-if chains
- Multiple source files
"""

from easyscript.aes.compiler import (
    AESCompiler,
    CompilerOptions,
    CompilationResult,
    SymbolAnalysis,
    compile_script,
    compile_file,
    analyze_symbols,
)
from easyscript.aes.errors import (
    AESError,
    AESCompilationError,
    Diagnostic,
    DiagnosticCollector,
    Severity,
)
from easyscript.aes.formatter import reformat
from easyscript.aes.lexer import RESERVED_WORDS
from easyscript.aes.symbols import (
    Function,
    Pin,
    PinKind,
    SymbolTable,
    SymbolTableBuilder,
    Variable,
)
from easyscript.aes.types import VarType


__all__ = [
    # Main API
    "AESCompiler",
    "CompilerOptions",
    "CompilationResult",
    "SymbolAnalysis",
    "compile_script",
    "compile_file",
    "analyze_symbols",
    "reformat",
    # Diagnostics
    "AESError",
    "AESCompilationError",
    "Diagnostic",
    "DiagnosticCollector",
    "Severity",
    # Symbols
    "RESERVED_WORDS",
    "SymbolTable",
    "SymbolTableBuilder",
    "Pin",
    "PinKind",
    "Variable",
    "Function",
    "VarType",
]
