"""
AES Lexical Utilities
=====================

EasyScript is line oriented, so there is no token stream in the usual
sense. Each line is stripped of its comment, trimmed and either matched
against a statement shape or split into whitespace-separated words.
This module provides those small building blocks.

Comments
--------
- Hash comments: ``# comment``
- Slash comments: ``// comment``

A comment marker inside a double-quoted string is part of the string:

    print "score # 1"   // only this part is a comment

Tokens
------
Words are separated by whitespace; a double-quoted string (with backslash
escapes) is always a single word:

>>> tokenize('print "hello world" and x')
['print', '"hello world"', 'and', 'x']

Control Openers
---------------
The six ``... do:`` line shapes (if, repeat, forever, while, every, after)
are defined here once and used by both compiler passes.

Literals
--------
| Kind        | Example    | Classifier          |
|-------------|------------|---------------------|
| Integer     | 13, -1     | is_int_literal      |
| Analog pin  | A0, a3     | is_analog_literal   |
| Identifier  | led, _x2   | is_identifier       |
| String      | "hi"       | is_string_literal   |
| Range       | 0..1023    | parse_range         |
"""

import re
from typing import Optional


# =============================================================================
# Reserved Words
# =============================================================================

# Names a program may not use for pins, variables or functions: the Arduino
# core API and C keywords the generated code relies on, plus every word of
# the EasyScript language itself.
RESERVED_WORDS: frozenset[str] = frozenset({
    # Arduino core + common C/C++
    "setup", "loop", "Serial", "delay", "delayMicroseconds", "millis", "micros",
    "pinMode", "digitalWrite", "digitalRead", "analogRead", "analogWrite",
    "tone", "noTone", "map", "random", "randomSeed",
    "HIGH", "LOW", "INPUT", "OUTPUT", "INPUT_PULLUP",
    "true", "false", "int", "long", "float", "double", "char", "bool", "void",
    "String",
    # Language keywords
    "pin", "make", "turn", "toggle", "read", "analog", "into", "set", "change",
    "by", "to", "wait", "ms", "second", "seconds",
    "start", "serial", "print", "call", "seed",
    "if", "otherwise", "do", "end", "repeat", "times", "forever", "while",
    "every", "after", "is",
})


# =============================================================================
# Patterns
# =============================================================================

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
INT_PATTERN = re.compile(r'^-?\d+$')
FLOAT_PATTERN = re.compile(r'^-?\d+\.\d+$')
ANALOG_PATTERN = re.compile(r'^A\d+$', re.IGNORECASE)
STRING_PATTERN = re.compile(r'^"(?:[^"\\]|\\.)*"$')
RANGE_PATTERN = re.compile(r'^(-?\d+)\.\.(-?\d+)$')

# A quoted string (escapes allowed) or any run of non-whitespace
TOKEN_PATTERN = re.compile(r'"(?:[^"\\]|\\.)*"|\S+')

# A quoted string or a run of whitespace outside one
SPACING_PATTERN = re.compile(r'"(?:[^"\\]|\\.)*"|\s+')


# =============================================================================
# Control Block Openers
# =============================================================================

# Both compiler passes count nesting from these shapes only
IF_PATTERN = re.compile(r'^if\s+(.+)\s+do:\s*$', re.IGNORECASE)
REPEAT_PATTERN = re.compile(r'^repeat\s+(-?\d+)\s+times\s+do:\s*$', re.IGNORECASE)
FOREVER_PATTERN = re.compile(r'^forever\s+do:\s*$', re.IGNORECASE)
WHILE_PATTERN = re.compile(r'^while\s+(.+)\s+do:\s*$', re.IGNORECASE)
EVERY_PATTERN = re.compile(r'^every\s+(\d+)\s*(ms|milliseconds?|seconds?|s)\s+do:\s*$', re.IGNORECASE)
AFTER_PATTERN = re.compile(r'^after\s+(\d+)\s*(ms|milliseconds?|seconds?|s)\s+do:\s*$', re.IGNORECASE)

CONTROL_OPENER_PATTERNS = (
    IF_PATTERN,
    REPEAT_PATTERN,
    FOREVER_PATTERN,
    WHILE_PATTERN,
    EVERY_PATTERN,
    AFTER_PATTERN,
)


def is_control_opener(code: str) -> bool:
    """True if a comment-free, trimmed line opens an if/repeat/forever/while/every/after block."""
    return any(pattern.match(code) for pattern in CONTROL_OPENER_PATTERNS)


# =============================================================================
# Line Handling
# =============================================================================

def normalize_newlines(source: Optional[str]) -> str:
    """Convert Windows line endings so the source splits cleanly on '\\n'."""
    return (source or "").replace("\r\n", "\n")


def split_line_comment(line: str) -> tuple[str, str]:
    """
    Split a line into its code part and its trailing comment.

    Returns:
        (code, comment) where comment includes its marker, or "" if none
    """
    in_string = False
    for i, ch in enumerate(line):
        if ch == '"' and (i == 0 or line[i - 1] != "\\"):
            in_string = not in_string
        if in_string:
            continue
        if ch == "#":
            return line[:i], line[i:]
        if ch == "/" and line[i + 1:i + 2] == "/":
            return line[:i], line[i:]
    return line, ""


def strip_comments(line: str) -> str:
    """Return the code part of a line, without its comment."""
    return split_line_comment(line)[0]


def tokenize(text: str) -> list[str]:
    """Split by whitespace, keeping "quoted strings" as single tokens."""
    return TOKEN_PATTERN.findall(text or "")


def collapse_whitespace(text: str) -> str:
    """
    Trim a line and shrink each whitespace run outside strings to one space.

    >>> collapse_whitespace('print   "a   b"+x  ')
    'print "a   b"+x'
    """
    def replace(match: re.Match) -> str:
        found = match.group(0)
        return found if found.startswith('"') else " "

    return SPACING_PATTERN.sub(replace, text or "").strip()


# =============================================================================
# Literal Classifiers
# =============================================================================

def is_identifier(text: str) -> bool:
    return bool(IDENTIFIER_PATTERN.match(text or ""))


def is_int_literal(text: str) -> bool:
    return bool(INT_PATTERN.match((text or "").strip()))


def is_float_literal(text: str) -> bool:
    return bool(FLOAT_PATTERN.match((text or "").strip()))


def is_analog_literal(text: str) -> bool:
    """True for analog channel labels such as A0 or a5 (any channel number)."""
    return bool(ANALOG_PATTERN.match((text or "").strip()))


def is_string_literal(text: str) -> bool:
    return bool(STRING_PATTERN.match((text or "").strip()))


def parse_range(text: str) -> Optional[tuple[int, int]]:
    """
    Parse an inclusive range written as ``low..high``.

    >>> parse_range("0..1023")
    (0, 1023)
    >>> parse_range("0-1023") is None
    True
    """
    match = RANGE_PATTERN.match((text or "").strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def escape_c_string(text: str) -> str:
    """Escape backslashes and double quotes for a C string literal."""
    return text.replace("\\", "\\\\").replace('"', '\\"')
