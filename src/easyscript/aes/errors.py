"""
AES Compiler Diagnostics
========================

The EasyScript compiler never stops at the first problem. Every error and
warning is recorded as a Diagnostic in a DiagnosticCollector and compilation
carries on, so a beginner sees all of their mistakes at once (the way an
IDE problems panel works).

Severity Taxonomy
-----------------
Errors:
    - Naming conflicts (duplicate or reserved identifiers)
    - Structural errors (bad nesting, missing/extra "end", pin declared
      inside a block, "otherwise" without its "if")
    - Operand errors (bad pin, bad mode, malformed range, missing keyword)
Warnings:
    - Pin outside the board's nominal range
    - Variable switching between numeric and String
    - Call to a function that is never defined

Exceptions
----------
AESError (base for all compiler exceptions)
└── AESCompilationError - raised only on request, by
    CompilationResult.raise_if_errors()

Report Format
-------------
    blink.aes:7:1: error: Unknown command: "blink led"
        blink led
        ^
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from easyscript.errors import EasyScriptError, SourceLocation


# =============================================================================
# Diagnostic Records
# =============================================================================

class Severity(str, Enum):
    """Diagnostic severity. The value is the wire name used in to_dict()."""
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single problem found in an EasyScript program.

    Attributes:
        severity: error or warning
        line: Line number (1-indexed)
        message: Human readable description
        column: Column number (1-indexed, defaults to 1)
    """
    severity: Severity
    line: int
    message: str
    column: int = 1

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> dict:
        """Plain-dict form used by editors and the JSON CLI output."""
        return {
            "line": self.line,
            "column": self.column,
            "severity": self.severity.value,
            "message": self.message,
        }

    def format(self, filename: str = "<input>", source_line: Optional[str] = None) -> str:
        """
        Format the diagnostic with location and optional source context.

            blink.aes:7:1: error: Unknown command: "blink led"
                blink led
                ^
        """
        location = SourceLocation(filename, self.line, self.column)
        parts = [f"{location}: {self.severity.value}: {self.message}"]

        if source_line is not None:
            parts.append(f"    {source_line}")
            if self.column > 0:
                padding = " " * (4 + self.column - 1)
                parts.append(f"{padding}^")

        return "\n".join(parts)


# =============================================================================
# Error Collection
# =============================================================================

class DiagnosticCollector:
    """
    Append-only list of diagnostics for one compilation run.

    There is no deduplication and no severity promotion: what is reported
    is exactly what the passes found, in the order they found it.

    Example:
        diagnostics = DiagnosticCollector()
        diagnostics.warning(3, "Pin 20 is outside the default UNO range (0..13).")
        diagnostics.error(9, 'Unknown command: "blink"')
        if diagnostics.has_errors():
            print(diagnostics.report("blink.aes"))
    """

    def __init__(self):
        self.items: list[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> None:
        self.items.append(diagnostic)

    def error(self, line: int, message: str, column: int = 1) -> None:
        """Record an error at the given line."""
        self.add(Diagnostic(Severity.ERROR, line, message, column))

    def warning(self, line: int, message: str, column: int = 1) -> None:
        """Record a warning at the given line."""
        self.add(Diagnostic(Severity.WARNING, line, message, column))

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.items if d.is_error]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.items if not d.is_error]

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return any(d.is_error for d in self.items)

    def error_count(self) -> int:
        return len(self.errors)

    def warning_count(self) -> int:
        return len(self.warnings)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def report(self, filename: str = "<input>", source_lines: Optional[list[str]] = None) -> str:
        """
        Format all diagnostics, sorted by line, followed by a summary line.

        Args:
            filename: Name shown in each location prefix
            source_lines: Program lines, used to print source context
        """
        lines = []

        for diagnostic in sorted(self.items, key=lambda d: d.line):
            source_line = None
            if source_lines and 1 <= diagnostic.line <= len(source_lines):
                source_line = source_lines[diagnostic.line - 1].rstrip()
            lines.append(diagnostic.format(filename, source_line))

        errors = self.error_count()
        warnings = self.warning_count()
        error_word = "error" if errors == 1 else "errors"
        warning_word = "warning" if warnings == 1 else "warnings"
        lines.append(f"{errors} {error_word}, {warnings} {warning_word}")

        return "\n".join(lines)


# =============================================================================
# Exceptions
# =============================================================================

class AESError(EasyScriptError):
    """
    Base exception for EasyScript compiler errors.

    Attributes:
        message: The error description
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AESCompilationError(AESError):
    """
    Aggregate compilation error.

    Raised by CompilationResult.raise_if_errors() for callers that prefer
    exceptions over inspecting diagnostics. The message is the already
    formatted report, and the individual diagnostics stay available.
    """

    def __init__(self, report: str, diagnostics: Optional[list[Diagnostic]] = None):
        self.diagnostics = diagnostics or []
        super().__init__(report)
