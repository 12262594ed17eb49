"""
AES Expressions and Conditions
==============================

EasyScript does not parse expressions. Whatever follows ``set x to`` or
``if ... do:`` is copied into the C++ output almost verbatim, after two
light touches:

1. Conditions get their English phrases replaced by C operators:

   | Phrase            | Operator |
   |-------------------|----------|
   | is greater than   | >        |
   | is less than      | <        |
   | is at least       | >=       |
   | is at most        | <=       |
   | is not            | !=       |
   | equals            | ==       |
   | is                | ==       |
   | and               | &&       |
   | or                | ||       |

   Longer phrases come first so ``is not`` never turns into ``== not``.

2. Every identifier in the text is registered with the symbol table.
   Unknown names become ``long`` variables; pin names are left alone and
   act as numeric constants.

There is no precedence handling and no bracket checking; the C++ compiler
downstream is the judge of the final expression.
"""

import re
from typing import Optional

from easyscript.aes.errors import DiagnosticCollector
from easyscript.aes.lexer import is_analog_literal
from easyscript.aes.symbols import SymbolTable


CONDITION_PHRASES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r'\bis\s+greater\s+than\b', re.IGNORECASE), ">"),
    (re.compile(r'\bis\s+less\s+than\b', re.IGNORECASE), "<"),
    (re.compile(r'\bis\s+at\s+least\b', re.IGNORECASE), ">="),
    (re.compile(r'\bis\s+at\s+most\b', re.IGNORECASE), "<="),
    (re.compile(r'\bis\s+not\b', re.IGNORECASE), "!="),
    (re.compile(r'\bequals\b', re.IGNORECASE), "=="),
    (re.compile(r'\bis\b', re.IGNORECASE), "=="),
    (re.compile(r'\band\b', re.IGNORECASE), "&&"),
    (re.compile(r'\bor\b', re.IGNORECASE), "||"),
)

WORD_PATTERN = re.compile(r'\b[A-Za-z_][A-Za-z0-9_]*')
STRING_LITERAL_PATTERN = re.compile(r'"(?:[^"\\]|\\.)*"')


def substitute_phrases(text: str) -> str:
    """
    Rewrite English comparison phrases as C operators.

    >>> substitute_phrases("x is greater than 10 and y is not 0")
    'x > 10 && y != 0'
    """
    result = text
    for pattern, operator in CONDITION_PHRASES:
        result = pattern.sub(operator, result)
    return result


def extract_identifiers(text: str, reserved_words: frozenset[str]) -> list[str]:
    """
    List the identifiers used in an expression, in order of appearance.

    String literals, reserved words and analog labels (A0, A1...) are
    skipped. Words glued to a number (the ``x10`` in ``0x10``) are not
    identifiers.
    """
    code = STRING_LITERAL_PATTERN.sub('""', text)
    names = []
    for word in WORD_PATTERN.findall(code):
        if word in reserved_words or is_analog_literal(word):
            continue
        if word not in names:
            names.append(word)
    return names


def _declare_identifiers(text: str, symbols: SymbolTable, line: int, diagnostics: DiagnosticCollector) -> None:
    for name in extract_identifiers(text, symbols.reserved_words):
        symbols.reference_variable(name, line, diagnostics)


def parse_expression(
    text: str,
    symbols: SymbolTable,
    line: int,
    diagnostics: DiagnosticCollector,
) -> Optional[str]:
    """
    Validate a value expression and register the names it uses.

    Returns:
        The expression text for the C++ output, or None if it is empty
    """
    expr = (text or "").strip()
    if not expr:
        diagnostics.error(line, "Expression is missing.")
        return None
    _declare_identifiers(expr, symbols, line, diagnostics)
    return expr


def parse_condition(
    text: str,
    symbols: SymbolTable,
    line: int,
    diagnostics: DiagnosticCollector,
) -> Optional[str]:
    """
    Translate a condition (``button is 0``) into a C++ test (``button == 0``).

    Returns:
        The rewritten condition, or None if it is empty
    """
    cond = (text or "").strip()
    if not cond:
        diagnostics.error(line, "Condition is missing. Example: if button is 0 do:")
        return None
    cond = substitute_phrases(cond)
    _declare_identifiers(cond, symbols, line, diagnostics)
    return cond
