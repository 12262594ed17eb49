"""
EasyScript SDK Error Hierarchy
==============================

This module defines the exception hierarchy for the EasyScript SDK.
All exceptions inherit from EasyScriptError, allowing callers to catch all
SDK-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
EasyScriptError (base)
├── BoardProfileError - unknown or malformed board profile
└── AESError (compiler-related, see easyscript.aes.errors)
    └── AESCompilationError - opt-in "block on error" report

Design Philosophy
-----------------
Problems found in user programs are NOT exceptions. The compiler records
them as diagnostics and always returns best-effort output, so an editor can
show every problem from a single run. Exceptions are reserved for misuse of
the API itself (asking for a board that does not exist) and for callers who
explicitly want compilation errors raised.

Diagnostic messages follow the familiar compiler format:
    filename:line:column: error: description
        source_line_text
        ^
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class EasyScriptError(Exception):
    """
    Base exception for all EasyScript SDK errors.

        try:
            result = compile_script(source, board="uno")
            result.raise_if_errors()
        except EasyScriptError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int = 1

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Configuration Exceptions
# =============================================================================

class BoardProfileError(EasyScriptError):
    """
    Raised when a board profile is requested that does not exist.

    Attributes:
        board: The requested board name
        available: Names of the known board profiles
    """

    def __init__(self, board: str, available: Optional[list[str]] = None):
        self.board = board
        self.available = available or []
        message = f"unknown board '{board}'"
        if self.available:
            message += f" (choose from: {', '.join(self.available)})"
        super().__init__(message)
