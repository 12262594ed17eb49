"""
Arduino C++ Code Generation
===========================

The second pass writes C++ statements into one of several buffers: the
body of ``setup()``, the body of ``loop()`` or the body of a user
function. Once every line has been processed, generate_program() stitches
the buffers together with the declarations collected in the symbol table.

Generated File Layout
---------------------
    // Generated by Arduino EasyScript (AES) v2.0.0      <- banner
    // Board: UNO
    // This file uses ONLY Arduino core functions (no external libraries).

    void blink();                                      <- prototypes

    const int led = 13;                                <- pins

    long count = 0;                                    <- variables

    void blink() {                                     <- functions
      ...
    }

    void setup() {                                     <- entry points
      ...
    }

    void loop() {
      ...
    }

Statements are buffered without indentation. indent_lines() re-indents
them by brace depth, so ``} else {`` sits at the level of its ``if``.
"""

from easyscript.boards import BoardProfile
from easyscript.aes.symbols import SymbolTable


class ProgramOutput:
    """
    Statement buffers for one compilation.

    Attributes:
        setup: Statements of setup()
        loop: Statements of loop()
        functions: Statements of each user function, in definition order
    """

    def __init__(self):
        self.setup: list[str] = []
        self.loop: list[str] = []
        self.functions: dict[str, list[str]] = {}
        self._id_counter = 0

    def function_body(self, name: str) -> list[str]:
        """Create (or reopen) the buffer for a user function."""
        return self.functions.setdefault(name, [])

    def new_id(self) -> int:
        """Unique number for compiler-generated names (__i1, __every_2_last...)."""
        self._id_counter += 1
        return self._id_counter


def indent_lines(lines: list[str], level: int, indent: str = "  ") -> str:
    """
    Indent buffered statements by brace depth, starting at ``level``.

    A line starting with ``}`` is outdented before it is written; a line
    ending with ``{`` indents the lines after it.
    """
    out = []
    depth = level
    for raw in lines:
        text = raw.strip()
        if not text:
            out.append("")
            continue
        if text.startswith("}"):
            depth = max(0, depth - 1)
        out.append(indent * depth + text)
        if text.endswith("{"):
            depth += 1
    return "\n".join(out)


def _emit_function(name: str, body: list[str], indent: str) -> str:
    if not body:
        return f"void {name}() {{\n}}"
    return f"void {name}() {{\n{indent_lines(body, 1, indent)}\n}}"


def generate_program(
    output: ProgramOutput,
    symbols: SymbolTable,
    board: BoardProfile,
    version: str,
    indent: str = "  ",
) -> str:
    """
    Assemble the final sketch from the buffers and the symbol table.

    Returns:
        Complete C++ source text ending in a newline
    """
    sections = [
        "\n".join([
            f"// Generated by Arduino EasyScript (AES) v{version}",
            f"// Board: {board.display_name}",
            "// This file uses ONLY Arduino core functions (no external libraries).",
        ])
    ]

    if output.functions:
        sections.append("\n".join(f"void {name}();" for name in output.functions))

    if symbols.pins:
        sections.append("\n".join(
            f"const int {name} = {pin.target};" for name, pin in symbols.pins.items()
        ))

    if symbols.variables:
        sections.append("\n".join(
            f"{var.type.c_name} {name} = {var.type.zero};" for name, var in symbols.variables.items()
        ))

    for name, body in output.functions.items():
        sections.append(_emit_function(name, body, indent))

    sections.append(_emit_function("setup", output.setup, indent))
    sections.append(_emit_function("loop", output.loop, indent))

    return "\n\n".join(sections) + "\n"
