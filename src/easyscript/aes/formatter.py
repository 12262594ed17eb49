"""
AES Source Formatter
====================

Re-indents EasyScript source in a single forward pass. The formatter is
purely syntactic: it does not know about pins, variables or legal nesting
and will happily reformat a program the compiler would reject.

Rules
-----
- Indentation is two spaces per open block.
- A line ending in ``:`` (``loop:``, ``if x do:``...) opens a block.
- ``end`` closes a block and is written at the outer level.
- ``otherwise do:`` / ``otherwise:`` is written at the outer level and
  opens the alternate branch.
- Comment-only lines are indented like the code around them; trailing
  comments are re-attached two spaces after the code.
- Runs of whitespace outside string literals collapse to one space.
- Blank lines are kept; trailing blank lines are dropped and the result
  ends with exactly one newline.

Formatting is idempotent: reformat(reformat(s)) == reformat(s).

>>> print(reformat("loop:\\nturn led on\\nend"), end="")
loop:
  turn led on
end
"""

from easyscript.aes.lexer import collapse_whitespace, normalize_newlines, split_line_comment


INDENT = "  "
ALTERNATE_BRANCHES = ("otherwise do:", "otherwise:")


def is_block_opener(code: str) -> bool:
    return code.strip().lower().endswith(":")


def is_outdent_line(code: str) -> bool:
    lower = code.strip().lower()
    return lower == "end" or lower in ALTERNATE_BRANCHES


def reformat(source: str) -> str:
    """Return ``source`` re-indented in canonical form."""
    out = []
    indent = 0

    for raw in normalize_newlines(source).split("\n"):
        code, comment = split_line_comment(raw)
        code = collapse_whitespace(code)
        comment = comment.strip()

        if not code and not comment:
            out.append("")
            continue

        level = max(0, indent - 1) if is_outdent_line(code) else indent
        text = INDENT * level + code
        if comment:
            text += ("  " if code else "") + comment
        out.append(text)

        lower = code.lower()
        if lower == "end":
            indent = max(0, indent - 1)
        elif lower in ALTERNATE_BRANCHES:
            indent = max(0, indent - 1) + 1
        elif is_block_opener(code):
            indent += 1

    return "\n".join(out).rstrip() + "\n"
