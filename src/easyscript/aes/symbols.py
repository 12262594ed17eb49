"""
AES Symbol Table
================

EasyScript has three namespaces that must never overlap:

- **pins**: ``pin led is 13`` (compiled to ``const int led = 13;``)
- **variables**: created implicitly by ``set``, ``read``, expressions...
- **functions**: ``function blink:`` (compiled to ``void blink()``)

A name may live in only one of them and may not be a reserved word. When
two declarations collide, the first one wins and the rejected one leaves
the table untouched.

First Pass
----------
SymbolTableBuilder scans the whole program before any code is generated.
It records every pin and function (so functions can be called before they
are defined) and seeds variable types from ``read ... into`` and
``set ... to`` lines. The code generation pass then keeps adding to the
same table as it meets new variables in expressions.

Pin References
--------------
Wherever a pin is expected the program may write:

    pin 13      keyword form
    13          bare digital number
    A0          analog channel label
    led         a declared pin name

Numbers and labels outside the board profile only produce warnings, since
the user may be using custom wiring.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from easyscript.boards import BoardProfile
from easyscript.aes.errors import DiagnosticCollector
from easyscript.aes.lexer import (
    is_analog_literal,
    is_control_opener,
    is_identifier,
    is_int_literal,
    strip_comments,
)
from easyscript.aes.types import VarType, infer_type


logger = logging.getLogger(__name__)


# =============================================================================
# Symbol Records
# =============================================================================

class PinKind(Enum):
    DIGITAL = "digital"
    ANALOG = "analog"


@dataclass
class Pin:
    """
    A named pin.

    Attributes:
        name: Pin name used in the program
        target: C expression the pin resolves to ("13", "A0" or another pin name)
        kind: Whether the underlying pin is digital or analog
        raw: The literal exactly as written after "is"
        line: Declaring line
        number: Underlying digital pin number, when known
    """
    name: str
    target: str
    kind: PinKind
    raw: str
    line: int
    number: Optional[int] = None


@dataclass
class Variable:
    """A variable and the widest type observed for it so far."""
    name: str
    type: VarType
    line: int


@dataclass
class Function:
    """A user function, declared with ``function NAME:``."""
    name: str
    line: int


@dataclass(frozen=True)
class PinRef:
    """
    A resolved pin operand.

    Attributes:
        target: C expression for the pin
        kind: digital or analog
        consumed: How many words of the statement the reference used
        number: Digital pin number, when known
    """
    target: str
    kind: PinKind
    consumed: int = 1
    number: Optional[int] = None


# =============================================================================
# Symbol Table
# =============================================================================

class SymbolTable:
    """
    Registry of pins, variables and functions for one compilation.

    Entries are only ever added. Every method that can reject a name
    reports why to the diagnostics collector and leaves the table as it was.

    Attributes:
        board: Board profile used to validate pin literals
        reserved_words: Names no symbol may take
        pins: Pin records by name, in declaration order
        variables: Variable records by name, in first-seen order
        functions: Function records by name, in declaration order
    """

    def __init__(self, board: BoardProfile, reserved_words: frozenset[str]):
        self.board = board
        self.reserved_words = reserved_words
        self.pins: dict[str, Pin] = {}
        self.variables: dict[str, Variable] = {}
        self.functions: dict[str, Function] = {}

    # =========================================================================
    # Queries
    # =========================================================================

    def is_reserved(self, name: str) -> bool:
        return name in self.reserved_words

    def is_pin(self, name: str) -> bool:
        return name in self.pins

    def is_variable(self, name: str) -> bool:
        return name in self.variables

    def is_function(self, name: str) -> bool:
        return name in self.functions

    def to_dict(self) -> dict:
        """Plain-dict form: ``{pins, vars, funcs}`` keyed by name."""
        return {
            "pins": {
                name: {"cpp": pin.target, "raw": pin.raw, "kind": pin.kind.value, "line": pin.line}
                for name, pin in self.pins.items()
            },
            "vars": {
                name: {"type": var.type.c_name, "line": var.line}
                for name, var in self.variables.items()
            },
            "funcs": {
                name: {"line": func.line}
                for name, func in self.functions.items()
            },
        }

    # =========================================================================
    # Declarations
    # =========================================================================

    def define_pin(self, name: str, literal: str, line: int, diagnostics: DiagnosticCollector) -> bool:
        """
        Declare a named pin (``pin NAME is LITERAL``).

        Returns:
            True if the pin was recorded
        """
        if not is_identifier(name):
            diagnostics.error(line, "Pin name must be a valid identifier (letters, numbers, underscore).")
            return False
        if self.is_reserved(name):
            diagnostics.error(line, f'"{name}" is reserved. Pick a different pin name.')
            return False
        if self.is_variable(name):
            diagnostics.error(line, f'"{name}" is already a variable. Pins and variables need different names.')
            return False
        if self.is_function(name):
            diagnostics.error(line, f'"{name}" is already a function. Pins and functions need different names.')
            return False
        if self.is_pin(name):
            diagnostics.error(line, f'Pin "{name}" is already defined.')
            return False

        ref = self.parse_pin_literal(literal, line, diagnostics)
        if ref is None:
            diagnostics.error(line, f'I don\'t recognize pin "{literal}". {self._pin_hint()}')
            return False

        self.pins[name] = Pin(name, ref.target, ref.kind, literal, line, ref.number)
        logger.debug(f"line {line}: pin '{name}' -> {ref.target} ({ref.kind.value})")
        return True

    def define_function(self, name: str, line: int, diagnostics: DiagnosticCollector) -> bool:
        """
        Declare a user function (``function NAME:``).

        Returns:
            True if the function was recorded
        """
        if not is_identifier(name):
            diagnostics.error(line, "Function name must be a valid identifier.")
            return False
        if self.is_reserved(name):
            diagnostics.error(line, f'"{name}" is reserved. Pick a different function name.')
            return False
        if self.is_pin(name):
            diagnostics.error(line, f'"{name}" is a pin name. Use a different function name.')
            return False
        if self.is_variable(name):
            diagnostics.error(line, f'"{name}" is a variable name. Use a different function name.')
            return False
        if self.is_function(name):
            diagnostics.error(line, f'Function "{name}" already exists.')
            return False

        self.functions[name] = Function(name, line)
        logger.debug(f"line {line}: function '{name}'")
        return True

    def observe_variable(
        self,
        name: str,
        var_type: VarType,
        line: int,
        diagnostics: DiagnosticCollector,
    ) -> bool:
        """
        Record a use of a variable with a type hint.

        New names are declared with the hint. Known variables are widened
        to the hint if it ranks higher; a String/numeric switch is warned
        about but still applied when it widens.

        Returns:
            True if the name is (now) a variable
        """
        if not is_identifier(name):
            return False
        if self.is_reserved(name):
            diagnostics.error(line, f'"{name}" is reserved. Pick a different name.')
            return False
        if self.is_pin(name):
            diagnostics.error(line, f'"{name}" is a pin name. Use a different variable name.')
            return False
        if self.is_function(name):
            diagnostics.error(line, f'"{name}" is a function name. Use a different variable name.')
            return False

        existing = self.variables.get(name)
        if existing is None:
            self.variables[name] = Variable(name, var_type, line)
            logger.debug(f"line {line}: variable '{name}' as {var_type}")
            return True

        if existing.type.is_string != var_type.is_string:
            diagnostics.warning(
                line,
                f'Variable "{name}" changes type ({existing.type} ↔ {var_type}). '
                f"Arduino C++ might not like that.",
            )
        widened = existing.type.widen(var_type)
        if widened is not existing.type:
            logger.debug(f"line {line}: variable '{name}' widened {existing.type} -> {widened}")
            existing.type = widened
        return True

    def reference_variable(self, name: str, line: int, diagnostics: DiagnosticCollector) -> bool:
        """
        Record a plain reference to a name, declaring it as ``long`` if new.

        Pins and existing variables are left alone, so reading a String
        variable in an expression never counts as a type change.
        """
        if self.is_pin(name) or self.is_variable(name):
            return True
        return self.observe_variable(name, VarType.LONG, line, diagnostics)

    # =========================================================================
    # Pin Resolution
    # =========================================================================

    def parse_pin_literal(self, token: str, line: int, diagnostics: DiagnosticCollector) -> Optional[PinRef]:
        """
        Resolve a single word to a pin: analog label, number or pin name.

        Out-of-profile numbers and labels are accepted with a warning.

        Returns:
            PinRef, or None if the word is not a pin at all
        """
        text = (token or "").strip()

        if is_analog_literal(text):
            label = text.upper()
            if not self.board.is_analog_label(label):
                diagnostics.warning(
                    line, f"{label} isn't in the default {self.board.display_name} analog list."
                )
            return PinRef(label, PinKind.ANALOG)

        if is_int_literal(text):
            number = int(text)
            if not self.board.is_digital_in_range(number):
                diagnostics.warning(
                    line,
                    f"Pin {number} is outside the default {self.board.display_name} range "
                    f"({self.board.digital_min}..{self.board.digital_max}).",
                )
            return PinRef(str(number), PinKind.DIGITAL, number=number)

        pin = self.pins.get(text)
        if pin is not None:
            return PinRef(pin.name, pin.kind, number=pin.number)

        return None

    def resolve_pin_ref(self, tokens: list[str], line: int, diagnostics: DiagnosticCollector) -> Optional[PinRef]:
        """
        Resolve the pin operand at the start of ``tokens``.

        Accepts ``pin X``, a bare number or analog label, or a declared
        pin name. Anything else is reported as an unresolved reference.
        """
        if not tokens:
            diagnostics.error(line, f"Expected a pin here. {self._pin_hint()}")
            return None

        if tokens[0].lower() == "pin":
            if len(tokens) < 2:
                diagnostics.error(line, 'Expected a pin after "pin". Example: pin 13')
                return None
            ref = self.parse_pin_literal(tokens[1], line, diagnostics)
            if ref is None:
                diagnostics.error(line, f'I don\'t recognize pin "{tokens[1]}". {self._pin_hint()}')
                return None
            return PinRef(ref.target, ref.kind, consumed=2, number=ref.number)

        ref = self.parse_pin_literal(tokens[0], line, diagnostics)
        if ref is not None:
            return ref

        diagnostics.error(
            line,
            f'"{tokens[0]}" is an unresolved pin reference. '
            f"Expected a pin (a number, an analog label, or a declared pin name).",
        )
        return None

    def _pin_hint(self) -> str:
        board = self.board
        analog = board.analog_range or "an analog label"
        return f"Use {board.digital_min}..{board.digital_max} or {analog} (or a pin name)."


# =============================================================================
# First Pass
# =============================================================================

class SymbolTableBuilder:
    """
    First pass: collect pins and functions, seed variable types.

    Example:
        symbols = SymbolTable(UNO, RESERVED_WORDS)
        diagnostics = DiagnosticCollector()
        SymbolTableBuilder(symbols, diagnostics).scan(source.split("\\n"))
    """

    FUNCTION_PATTERN = re.compile(r'^function\s+([A-Za-z_]\w*)\s*:\s*$', re.IGNORECASE)
    PIN_PATTERN = re.compile(r'^pin\s+([A-Za-z_]\w*)\s+is\s+(.+?)\s*$', re.IGNORECASE)
    PIN_ALIAS_PATTERN = re.compile(r'^set\s+([A-Za-z_]\w*)\s+to\s+pin\s+(.+?)\s*$', re.IGNORECASE)
    PIN_KEYWORD_PATTERN = re.compile(r'^pin\b', re.IGNORECASE)

    READ_CLOCK_PATTERN = re.compile(r'^read\s+(?:time|micros)\s+into\s+([A-Za-z_]\w*)\s*$', re.IGNORECASE)
    READ_PATTERN = re.compile(r'^read\s+.+\s+into\s+([A-Za-z_]\w*)\s*$', re.IGNORECASE)
    SET_PATTERN = re.compile(r'^set\s+([A-Za-z_]\w*)\s+to\s+(.+?)\s*$', re.IGNORECASE)
    PWM_PATTERN = re.compile(r'^pwm\b', re.IGNORECASE)

    STRUCTURE_OPENERS = ("setup:", "loop:")
    ALTERNATE_BRANCHES = ("otherwise do:", "otherwise:")

    def __init__(self, symbols: SymbolTable, diagnostics: DiagnosticCollector):
        self.symbols = symbols
        self.diagnostics = diagnostics
        self._depth = 0

    def scan(self, lines: list[str]) -> SymbolTable:
        """Scan every line and return the (shared) symbol table."""
        self._depth = 0
        for index, raw in enumerate(lines):
            code = strip_comments(raw).strip()
            if code:
                self._scan_line(code, index + 1)
        logger.debug(
            f"symbol pass: {len(self.symbols.pins)} pins, "
            f"{len(self.symbols.variables)} variables, {len(self.symbols.functions)} functions"
        )
        return self.symbols

    def _scan_line(self, code: str, line: int) -> None:
        lower = code.lower()

        if lower in self.STRUCTURE_OPENERS:
            self._depth += 1
            return
        if lower == "end":
            self._depth = max(0, self._depth - 1)
            return
        if lower in self.ALTERNATE_BRANCHES:
            return
        if lower.endswith("do:"):
            # Anything else ending in "do:" is reported by the block pass
            if is_control_opener(code):
                self._depth += 1
            return

        match = self.FUNCTION_PATTERN.match(code)
        if match:
            if self._depth == 0:
                self.symbols.define_function(match.group(1), line, self.diagnostics)
            self._depth += 1
            return

        if self.PIN_KEYWORD_PATTERN.match(code):
            self._scan_pin_declaration(code, line)
            return

        match = self.PIN_ALIAS_PATTERN.match(code)
        if match:
            if self._depth:
                self.diagnostics.error(
                    line,
                    "Pin assignments must be outside setup:/loop:/function blocks. Use pin NAME is VALUE.",
                )
            else:
                self.symbols.define_pin(match.group(1), match.group(2), line, self.diagnostics)
            return

        self._scan_variable_hints(code, line)

    def _scan_pin_declaration(self, code: str, line: int) -> None:
        if self._depth:
            self.diagnostics.error(line, "Pin declarations must be outside setup:/loop:/function blocks.")
            return
        match = self.PIN_PATTERN.match(code)
        if not match:
            self.diagnostics.error(line, 'Pin declarations look like "pin NAME is VALUE". Example: pin led is 13')
            return
        self.symbols.define_pin(match.group(1), match.group(2), line, self.diagnostics)

    def _scan_variable_hints(self, code: str, line: int) -> None:
        match = self.READ_CLOCK_PATTERN.match(code)
        if match:
            self._seed(match.group(1), VarType.UNSIGNED_LONG, line)
            return

        match = self.READ_PATTERN.match(code)
        if match:
            self._seed(match.group(1), VarType.INT, line)
            return

        match = self.SET_PATTERN.match(code)
        if match and not self.PWM_PATTERN.match(match.group(2)):
            self._seed(match.group(1), infer_type(match.group(2)), line)

    def _seed(self, name: str, var_type: VarType, line: int) -> None:
        symbols = self.symbols
        # Names taken elsewhere are reported when the statement is compiled
        if symbols.is_reserved(name) or symbols.is_pin(name) or symbols.is_function(name):
            return
        symbols.observe_variable(name, var_type, line, self.diagnostics)
