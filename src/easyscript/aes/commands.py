"""
AES Statement Recognizers
=========================

Every line inside a block that is not a block opener, ``otherwise`` or
``end`` is a statement. Statements are matched against RECOGNIZERS, an
ordered tuple of (kind, pattern, handler) entries. The first pattern that
matches owns the line:

- its handler validates the operands and emits C++, or reports why not;
- either way the line is consumed and never tried against later patterns.

Order matters where shapes overlap:

- ``set led to pwm 128`` must be tried before ``set x to EXPR``
- ``read analog``, ``read time`` and ``read micros`` before ``read PIN``
- ``print "text"`` before ``print "text" and EXPR`` before ``print EXPR``

Statement Reference
-------------------
| Statement                          | C++                                  |
|------------------------------------|--------------------------------------|
| make led output                    | pinMode(led, OUTPUT);                |
| turn led on                        | digitalWrite(led, HIGH);             |
| toggle led                         | digitalWrite(led, !digitalRead(led));|
| set led to pwm 128                 | analogWrite(led, 128);               |
| read analog pot into raw           | raw = analogRead(pot);               |
| read time into now                 | now = millis();                      |
| read micros into t                 | t = micros();                        |
| read button into pressed           | pressed = digitalRead(button);       |
| wait 500 ms / wait 2 seconds       | delay(500); / delay(2000);           |
| wait 50 us                         | delayMicroseconds(50);               |
| start serial at 9600               | Serial.begin(9600);                  |
| print "hi" / print "x=" and x      | Serial.println("hi"); / print+println|
| set x to 5                         | x = 5;                               |
| change x by 1                      | x += (1);                            |
| map raw from 0..1023 to 0..255 ... | y = map(raw, 0, 1023, 0, 255);       |
| limit x to 0..255                  | two clamping ifs                     |
| pick random from 1..6 into r       | r = random(1, 7);                    |
| seed random with 42                | randomSeed(42);                      |
| play tone 440 on buzzer            | tone(buzzer, 440);                   |
| stop tone on buzzer                | noTone(buzzer);                      |
| call blink                         | blink();                             |
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, NamedTuple, Optional

from easyscript.aes.errors import DiagnosticCollector
from easyscript.aes.expressions import parse_expression
from easyscript.aes.lexer import escape_c_string, is_string_literal, parse_range, tokenize
from easyscript.aes.symbols import PinKind, PinRef, SymbolTable
from easyscript.aes.types import VarType, infer_type


# =============================================================================
# Statement Kinds and Context
# =============================================================================

class StatementKind(Enum):
    PIN_MODE = auto()
    DIGITAL_WRITE = auto()
    TOGGLE = auto()
    PWM_WRITE = auto()
    READ_ANALOG = auto()
    READ_TIME = auto()
    READ_MICROS = auto()
    READ_DIGITAL = auto()
    WAIT = auto()
    SERIAL_BEGIN = auto()
    PRINT_TEXT = auto()
    PRINT_TEXT_EXPR = auto()
    PRINT_EXPR = auto()
    ASSIGN = auto()
    CHANGE = auto()
    MAP = auto()
    LIMIT = auto()
    RANDOM = auto()
    RANDOM_SEED = auto()
    TONE = auto()
    NO_TONE = auto()
    CALL = auto()


@dataclass
class StatementContext:
    """
    What a handler needs to process one line.

    Attributes:
        symbols: The run's symbol table
        diagnostics: The run's diagnostics collector
        emit: Appends a C++ statement to the active block
        line: Line number being processed
    """
    symbols: SymbolTable
    diagnostics: DiagnosticCollector
    emit: Callable[[str], None]
    line: int

    def error(self, message: str) -> None:
        self.diagnostics.error(self.line, message)

    def warning(self, message: str) -> None:
        self.diagnostics.warning(self.line, message)

    def resolve_pin(self, text: str) -> Optional[tuple[PinRef, list[str]]]:
        """Resolve the pin at the start of ``text``; also return the words after it."""
        tokens = tokenize(text)
        ref = self.symbols.resolve_pin_ref(tokens, self.line, self.diagnostics)
        if ref is None:
            return None
        return ref, tokens[ref.consumed:]

    def expression(self, text: str) -> Optional[str]:
        return parse_expression(text, self.symbols, self.line, self.diagnostics)

    def target(self, name: str, var_type: VarType) -> bool:
        """
        Check the variable a ``read``/``set`` line writes to.

        Names the symbol pass already typed are accepted as they are.
        Anything else goes through observe_variable, which declares it
        with ``var_type`` or reports why it can't be a variable.
        """
        if self.symbols.is_variable(name):
            return True
        return self.symbols.observe_variable(name, var_type, self.line, self.diagnostics)


class Recognizer(NamedTuple):
    kind: StatementKind
    pattern: re.Pattern
    handler: Callable[[StatementContext, re.Match], None]


def _pattern(regex: str) -> re.Pattern:
    return re.compile(regex, re.IGNORECASE)


IDENT = r'([A-Za-z_]\w*)'
TIME_UNITS = {
    "ms": 1, "millisecond": 1, "milliseconds": 1,
    "s": 1000, "second": 1000, "seconds": 1000,
}
MICRO_UNITS = ("us", "microsecond", "microseconds")

PIN_MODES = {
    "output": "OUTPUT",
    "input": "INPUT",
    "input pullup": "INPUT_PULLUP",
    "input_pullup": "INPUT_PULLUP",
    "input with pullup": "INPUT_PULLUP",
}


# =============================================================================
# Pin Statements
# =============================================================================

def _pin_mode(ctx: StatementContext, match: re.Match) -> None:
    resolved = ctx.resolve_pin(match.group(1))
    if resolved is None:
        return
    ref, rest = resolved
    mode = PIN_MODES.get(" ".join(rest).lower())
    if mode is None:
        ctx.error("make needs a mode: output, input, or input pullup.")
        return
    ctx.emit(f"pinMode({ref.target}, {mode});")


def _digital_write(ctx: StatementContext, match: re.Match) -> None:
    resolved = ctx.resolve_pin(match.group(1))
    if resolved is None:
        return
    ref, rest = resolved
    state = " ".join(rest).lower()
    if state not in ("on", "off"):
        ctx.error('turn needs "on" or "off".')
        return
    ctx.emit(f"digitalWrite({ref.target}, {'HIGH' if state == 'on' else 'LOW'});")


def _toggle(ctx: StatementContext, match: re.Match) -> None:
    resolved = ctx.resolve_pin(match.group(1))
    if resolved is None:
        return
    ref, _ = resolved
    ctx.emit(f"digitalWrite({ref.target}, !digitalRead({ref.target}));")


def _pwm_write(ctx: StatementContext, match: re.Match) -> None:
    resolved = ctx.resolve_pin(match.group(1))
    if resolved is None:
        return
    ref, _ = resolved
    expr = ctx.expression(match.group(2))
    if expr is None:
        return

    board = ctx.symbols.board
    if ref.kind is PinKind.ANALOG:
        ctx.warning(f"{ref.target} can't do PWM on the {board.display_name}; use a PWM-capable digital pin.")
    elif ref.number is not None and not board.is_pwm_capable(ref.number):
        pwm = ", ".join(str(n) for n in sorted(board.pwm_pins)) or "none"
        ctx.warning(
            f"Pin {ref.number} can't do PWM on the {board.display_name} (PWM pins: {pwm}). "
            f"It will only switch fully on or off."
        )
    ctx.emit(f"analogWrite({ref.target}, {expr});")


def _tone(ctx: StatementContext, match: re.Match) -> None:
    freq = ctx.expression(match.group(1))
    if freq is None:
        return
    resolved = ctx.resolve_pin(match.group(2))
    if resolved is None:
        return
    ctx.emit(f"tone({resolved[0].target}, {freq});")


def _no_tone(ctx: StatementContext, match: re.Match) -> None:
    resolved = ctx.resolve_pin(match.group(1))
    if resolved is None:
        return
    ctx.emit(f"noTone({resolved[0].target});")


# =============================================================================
# Reads
# =============================================================================

def _read_analog(ctx: StatementContext, match: re.Match) -> None:
    variable = match.group(2)
    if not ctx.target(variable, VarType.INT):
        return
    resolved = ctx.resolve_pin(match.group(1))
    if resolved is None:
        return
    ref, _ = resolved
    if ref.kind is not PinKind.ANALOG:
        board = ctx.symbols.board
        if board.analog_range:
            ctx.error(f"read analog expects {board.analog_range} (or a pin name set to one of them).")
        else:
            ctx.error(f"read analog needs an analog pin, and the {board.display_name} profile has none.")
        return
    ctx.emit(f"{variable} = analogRead({ref.target});")


def _read_time(ctx: StatementContext, match: re.Match) -> None:
    variable = match.group(1)
    if ctx.target(variable, VarType.UNSIGNED_LONG):
        ctx.emit(f"{variable} = millis();")


def _read_micros(ctx: StatementContext, match: re.Match) -> None:
    variable = match.group(1)
    if ctx.target(variable, VarType.UNSIGNED_LONG):
        ctx.emit(f"{variable} = micros();")


def _read_digital(ctx: StatementContext, match: re.Match) -> None:
    variable = match.group(2)
    if not ctx.target(variable, VarType.INT):
        return
    resolved = ctx.resolve_pin(match.group(1))
    if resolved is None:
        return
    ctx.emit(f"{variable} = digitalRead({resolved[0].target});")


# =============================================================================
# Timing and Serial
# =============================================================================

def _wait(ctx: StatementContext, match: re.Match) -> None:
    amount = int(match.group(1))
    unit = match.group(2).lower()
    if unit in MICRO_UNITS:
        ctx.emit(f"delayMicroseconds({amount});")
    else:
        ctx.emit(f"delay({amount * TIME_UNITS[unit]});")


def _serial_begin(ctx: StatementContext, match: re.Match) -> None:
    ctx.emit(f"Serial.begin({int(match.group(1))});")


def _print_text(ctx: StatementContext, match: re.Match) -> None:
    ctx.emit(f'Serial.println("{escape_c_string(match.group(1))}");')


def _print_text_expr(ctx: StatementContext, match: re.Match) -> None:
    expr = ctx.expression(match.group(2))
    if expr is None:
        return
    ctx.emit(f'Serial.print("{escape_c_string(match.group(1))}");')
    ctx.emit(f"Serial.println({expr});")


def _print_expr(ctx: StatementContext, match: re.Match) -> None:
    expr = ctx.expression(match.group(1))
    if expr is not None:
        ctx.emit(f"Serial.println({expr});")


# =============================================================================
# Variables
# =============================================================================

def _assign(ctx: StatementContext, match: re.Match) -> None:
    variable, value = match.group(1), match.group(2).strip()
    if not ctx.target(variable, infer_type(value)):
        return
    if is_string_literal(value):
        ctx.emit(f"{variable} = {value};")
        return
    expr = ctx.expression(value)
    if expr is not None:
        ctx.emit(f"{variable} = {expr};")


def _change(ctx: StatementContext, match: re.Match) -> None:
    variable = match.group(1)
    expr = ctx.expression(match.group(2))
    if expr is None:
        return
    if ctx.symbols.observe_variable(variable, VarType.LONG, ctx.line, ctx.diagnostics):
        ctx.emit(f"{variable} += ({expr});")


def _map(ctx: StatementContext, match: re.Match) -> None:
    source, dest = match.group(1), match.group(4)
    in_range = parse_range(match.group(2))
    out_range = parse_range(match.group(3))
    if in_range is None or out_range is None:
        ctx.error("Bad range. Use like 0..1023")
        return

    ok = ctx.symbols.observe_variable(source, VarType.LONG, ctx.line, ctx.diagnostics)
    ok = ctx.symbols.observe_variable(dest, VarType.LONG, ctx.line, ctx.diagnostics) and ok
    if ok:
        ctx.emit(
            f"{dest} = map({source}, {in_range[0]}, {in_range[1]}, {out_range[0]}, {out_range[1]});"
        )


def _limit(ctx: StatementContext, match: re.Match) -> None:
    variable = match.group(1)
    bounds = parse_range(match.group(2))
    if bounds is None:
        ctx.error("Bad range. Use like 0..255")
        return
    if not ctx.symbols.observe_variable(variable, VarType.LONG, ctx.line, ctx.diagnostics):
        return
    low, high = bounds
    ctx.emit(f"if ({variable} < {low}) {variable} = {low};")
    ctx.emit(f"if ({variable} > {high}) {variable} = {high};")


def _random(ctx: StatementContext, match: re.Match) -> None:
    variable = match.group(2)
    bounds = parse_range(match.group(1))
    if bounds is None:
        ctx.error("Bad range. Use like 1..6")
        return
    if not ctx.symbols.observe_variable(variable, VarType.LONG, ctx.line, ctx.diagnostics):
        return
    low, high = min(bounds), max(bounds)
    # random() excludes its upper bound
    ctx.emit(f"{variable} = random({low}, {high + 1});")


def _random_seed(ctx: StatementContext, match: re.Match) -> None:
    expr = ctx.expression(match.group(1))
    if expr is not None:
        ctx.emit(f"randomSeed({expr});")


def _call(ctx: StatementContext, match: re.Match) -> None:
    name = match.group(1)
    if not ctx.symbols.is_function(name):
        ctx.warning(f'Function "{name}" isn\'t defined (yet). Did you mean to write "function {name}:"?')
    ctx.emit(f"{name}();")


# =============================================================================
# Recognizer Table
# =============================================================================

RECOGNIZERS: tuple[Recognizer, ...] = (
    Recognizer(StatementKind.PIN_MODE, _pattern(r'^make\b\s*(.*?)\s*$'), _pin_mode),
    Recognizer(StatementKind.DIGITAL_WRITE, _pattern(r'^turn\b\s*(.*?)\s*$'), _digital_write),
    Recognizer(StatementKind.TOGGLE, _pattern(r'^toggle\b\s*(.*?)\s*$'), _toggle),
    Recognizer(StatementKind.PWM_WRITE, _pattern(r'^set\s+(.+?)\s+to\s+pwm\s+(.+?)\s*$'), _pwm_write),
    Recognizer(StatementKind.READ_ANALOG, _pattern(rf'^read\s+analog\s+(.+?)\s+into\s+{IDENT}\s*$'), _read_analog),
    Recognizer(StatementKind.READ_TIME, _pattern(rf'^read\s+time\s+into\s+{IDENT}\s*$'), _read_time),
    Recognizer(StatementKind.READ_MICROS, _pattern(rf'^read\s+micros\s+into\s+{IDENT}\s*$'), _read_micros),
    Recognizer(StatementKind.READ_DIGITAL, _pattern(rf'^read\s+(.+?)\s+into\s+{IDENT}\s*$'), _read_digital),
    Recognizer(
        StatementKind.WAIT,
        _pattern(r'^wait\s+(\d+)\s*(ms|milliseconds?|us|microseconds?|seconds?|s)\s*$'),
        _wait,
    ),
    Recognizer(StatementKind.SERIAL_BEGIN, _pattern(r'^start\s+serial\s+at\s+(\d+)\s*$'), _serial_begin),
    Recognizer(StatementKind.PRINT_TEXT, _pattern(r'^print\s+"([^"]*)"\s*$'), _print_text),
    Recognizer(StatementKind.PRINT_TEXT_EXPR, _pattern(r'^print\s+"([^"]*)"\s+and\s+(.+?)\s*$'), _print_text_expr),
    Recognizer(StatementKind.PRINT_EXPR, _pattern(r'^print\s+(.+?)\s*$'), _print_expr),
    Recognizer(StatementKind.ASSIGN, _pattern(rf'^set\s+{IDENT}\s+to\s+(.+?)\s*$'), _assign),
    Recognizer(StatementKind.CHANGE, _pattern(rf'^change\s+{IDENT}\s+by\s+(.+?)\s*$'), _change),
    Recognizer(
        StatementKind.MAP,
        _pattern(rf'^map\s+{IDENT}\s+from\s+(\S+)\s+to\s+(\S+)\s+into\s+{IDENT}\s*$'),
        _map,
    ),
    Recognizer(StatementKind.LIMIT, _pattern(rf'^limit\s+{IDENT}\s+to\s+(\S+)\s*$'), _limit),
    Recognizer(
        StatementKind.RANDOM,
        _pattern(rf'^pick\s+(?:random|a\s+random\s+number)\s+from\s+(\S+)\s+into\s+{IDENT}\s*$'),
        _random,
    ),
    Recognizer(
        StatementKind.RANDOM_SEED,
        _pattern(r'^(?:seed\s+random\s+with|random\s+seed)\s+(.+?)\s*$'),
        _random_seed,
    ),
    Recognizer(StatementKind.TONE, _pattern(r'^play\s+tone\s+(.+?)\s+on\s+(.+?)\s*$'), _tone),
    Recognizer(StatementKind.NO_TONE, _pattern(r'^stop\s+tone\s+on\s+(.+?)\s*$'), _no_tone),
    Recognizer(StatementKind.CALL, _pattern(rf'^call\s+{IDENT}\s*$'), _call),
)


def dispatch(code: str, ctx: StatementContext) -> Optional[StatementKind]:
    """
    Run the first recognizer whose pattern matches ``code``.

    Returns:
        The kind of statement that consumed the line, or None if no
        recognizer matched (an unknown command)
    """
    for recognizer in RECOGNIZERS:
        match = recognizer.pattern.match(code)
        if match:
            recognizer.handler(ctx, match)
            return recognizer.kind
    return None
