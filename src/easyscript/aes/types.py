"""
AES Variable Types
==================

EasyScript programs never spell out types. The compiler infers a C type for
each variable from how it is used and keeps the widest one it has seen,
following a small ranked lattice:

    bool < int < long < unsigned long < float < String

| Type          | Rank | Zero value | Inferred from                      |
|---------------|------|------------|------------------------------------|
| bool          | 1    | false      | set x to true                      |
| int           | 2    | 0          | read button into x                 |
| long          | 3    | 0          | set x to 5, any use in expressions |
| unsigned long | 4    | 0UL        | read time into x                   |
| float         | 5    | 0.0        | set x to 1.5                       |
| String        | 6    | ""         | set x to "hello"                   |

A variable's rank only ever goes up. Switching between String and any
numeric type is allowed but reported as a warning, since Arduino C++ will
probably not accept the result.
"""

from enum import Enum

from easyscript.aes.lexer import is_float_literal, is_string_literal


class VarType(Enum):
    """
    Inferred variable type.

    Each member carries (rank, C spelling, zero initializer).
    """
    BOOL = (1, "bool", "false")
    INT = (2, "int", "0")
    LONG = (3, "long", "0")
    UNSIGNED_LONG = (4, "unsigned long", "0UL")
    FLOAT = (5, "float", "0.0")
    STRING = (6, "String", '""')

    def __init__(self, rank: int, c_name: str, zero: str):
        self.rank = rank
        self.c_name = c_name
        self.zero = zero

    @property
    def is_string(self) -> bool:
        return self is VarType.STRING

    def widen(self, other: "VarType") -> "VarType":
        """Return the higher-ranked of the two types."""
        return other if other.rank > self.rank else self

    def __str__(self) -> str:
        return self.c_name


def infer_type(expr: str) -> VarType:
    """
    Guess the type of a value from the text of an expression.

    >>> infer_type('"hi"')
    <VarType.STRING: (6, 'String', '""')>
    >>> infer_type("x + 1").c_name
    'long'
    """
    text = (expr or "").strip()
    if is_string_literal(text):
        return VarType.STRING
    if text.lower() in ("true", "false"):
        return VarType.BOOL
    if is_float_literal(text):
        return VarType.FLOAT
    return VarType.LONG
