"""
AES Block Structure
===================

EasyScript programs are built from blocks that open with a colon and close
with ``end``:

    setup:                     structural block (top level only)
      make led output
    end

    loop:
      if button is 0 do:      control block (inside a structural block)
        turn led on
      otherwise do:           alternate branch of the nearest "if"
        turn led off
      end
    end

BlockPass is the second compilation pass. It walks the lines once and
keeps a stack of open BlockFrames:

- **structural openers** (``setup:``, ``loop:``, ``function NAME:``) select
  the output buffer; only one may be open at a time
- **control openers** (``if``, ``repeat``, ``forever``, ``while``,
  ``every``, ``after``) emit an opening brace into the active buffer
- **otherwise** is legal only directly inside an ``if`` without one
- **end** pops exactly one frame
- anything else is a statement, handed to the recognizers in commands.py

Timers
------
``every`` and ``after`` compile to millis() comparisons on ``static``
counters that live across loop() iterations:

    every 250 ms do:                 static unsigned long __every_1_last = 0;
      toggle led          ->         if (millis() - __every_1_last >= 250UL) {
    end                                __every_1_last += 250UL;
                                       digitalWrite(led, !digitalRead(led));
                                     }

The threshold advances by exactly one interval per trigger, so the timer
does not drift. ``after`` latches a done flag so its body runs once.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from easyscript.aes.codegen import ProgramOutput
from easyscript.aes.commands import StatementContext, dispatch
from easyscript.aes.errors import DiagnosticCollector
from easyscript.aes.expressions import parse_condition
from easyscript.aes import lexer
from easyscript.aes.lexer import strip_comments
from easyscript.aes.symbols import SymbolTable, SymbolTableBuilder


logger = logging.getLogger(__name__)


# =============================================================================
# Block Frames
# =============================================================================

class BlockKind(Enum):
    SETUP = "setup"
    LOOP = "loop"
    FUNCTION = "function"
    IF = "if"
    REPEAT = "repeat"
    FOREVER = "forever"
    WHILE = "while"
    EVERY = "every"
    AFTER = "after"

    @property
    def is_structural(self) -> bool:
        return self in (BlockKind.SETUP, BlockKind.LOOP, BlockKind.FUNCTION)


@dataclass
class BlockFrame:
    """
    One open block.

    Attributes:
        kind: What opened the block
        line: Line of the opener
        name: Function name, for function frames
        opened: False when the opener failed validation and emitted no brace
        has_alternate: For "if" frames, whether "otherwise" was seen
    """
    kind: BlockKind
    line: int
    name: Optional[str] = None
    opened: bool = True
    has_alternate: bool = False

    @property
    def label(self) -> str:
        if self.kind is BlockKind.FUNCTION and self.name:
            return f"function {self.name}"
        return self.kind.value


class BlockStack:
    """LIFO of open block frames."""

    def __init__(self):
        self._frames: list[BlockFrame] = []

    def push(self, frame: BlockFrame) -> None:
        logger.debug(f"line {frame.line}: open {frame.label} (depth {len(self._frames) + 1})")
        self._frames.append(frame)

    def pop(self) -> Optional[BlockFrame]:
        if not self._frames:
            return None
        return self._frames.pop()

    def top(self) -> Optional[BlockFrame]:
        return self._frames[-1] if self._frames else None

    def __len__(self) -> int:
        return len(self._frames)

    def __bool__(self) -> bool:
        return bool(self._frames)


# =============================================================================
# Second Pass
# =============================================================================

class BlockPass:
    """
    Second pass: track block nesting and generate code into ProgramOutput.

    Extends the same symbol table and diagnostics collector the first pass
    filled. Nothing here raises; every problem becomes a diagnostic and
    the walk continues with the next line.
    """

    FUNCTION_PATTERN = SymbolTableBuilder.FUNCTION_PATTERN
    PIN_LINE_PATTERN = re.compile(r'^(?:pin\b|set\s+[A-Za-z_]\w*\s+to\s+pin\s+)', re.IGNORECASE)

    IF_PATTERN = lexer.IF_PATTERN
    REPEAT_PATTERN = lexer.REPEAT_PATTERN
    FOREVER_PATTERN = lexer.FOREVER_PATTERN
    WHILE_PATTERN = lexer.WHILE_PATTERN
    EVERY_PATTERN = lexer.EVERY_PATTERN
    AFTER_PATTERN = lexer.AFTER_PATTERN

    ALTERNATE_BRANCHES = ("otherwise do:", "otherwise:")

    def __init__(self, symbols: SymbolTable, diagnostics: DiagnosticCollector, output: ProgramOutput):
        self.symbols = symbols
        self.diagnostics = diagnostics
        self.output = output
        self.stack = BlockStack()
        self.saw_setup = False
        self.saw_loop = False
        self._target: Optional[list[str]] = None

    def run(self, lines: list[str]) -> None:
        """Process every line, then run the end-of-source checks."""
        for index, raw in enumerate(lines):
            code = strip_comments(raw).strip()
            if code:
                self._process_line(code, index + 1)
        self._finish(len(lines))

    # =========================================================================
    # Line Classification
    # =========================================================================

    def _process_line(self, code: str, line: int) -> None:
        lower = code.lower()

        if lower == "setup:":
            if self._open_structure(BlockFrame(BlockKind.SETUP, line), self.output.setup):
                self.saw_setup = True
            return
        if lower == "loop:":
            if self._open_structure(BlockFrame(BlockKind.LOOP, line), self.output.loop):
                self.saw_loop = True
            return
        match = self.FUNCTION_PATTERN.match(code)
        if match:
            self._open_function(match.group(1), line)
            return

        # Reported by the symbol pass when misplaced
        if self.PIN_LINE_PATTERN.match(code):
            return

        if self._open_control(code, line):
            return

        if lower in self.ALTERNATE_BRANCHES:
            self._alternate(line)
            return

        if lower == "end":
            self._close(line)
            return

        if lower.endswith("do:"):
            self.diagnostics.error(
                line,
                f'"{code}" is not a block I know. Blocks look like '
                f'"if CONDITION do:", "repeat N times do:" or "every N ms do:".',
            )
            return

        if self._target is None:
            self.diagnostics.error(line, "Commands must be inside setup:, loop:, or function blocks.")
            return

        ctx = StatementContext(self.symbols, self.diagnostics, self._emit, line)
        if dispatch(code, ctx) is None:
            self.diagnostics.error(line, f'Unknown command: "{code}"')

    def _emit(self, statement: str) -> None:
        self._target.append(statement)

    # =========================================================================
    # Structural Blocks
    # =========================================================================

    def _open_structure(self, frame: BlockFrame, buffer: list[str]) -> bool:
        if self._target is not None:
            if frame.kind is BlockKind.FUNCTION:
                message = "Functions must be top-level (not inside setup/loop)."
            else:
                message = f"{frame.kind.value}: can't be inside another block."
            self.diagnostics.error(frame.line, message)
            # Pushed unopened: its "end" must not close the outer block
            frame.opened = False
            self.stack.push(frame)
            return False
        self._target = buffer
        self.stack.push(frame)
        return True

    def _open_function(self, name: str, line: int) -> None:
        function = self.symbols.functions.get(name)
        if self._target is None and function is not None and function.line == line:
            buffer = self.output.function_body(name)
        else:
            # Duplicate or bad name: validate the body but keep it out of
            # the output. A nested opener is rejected by _open_structure.
            buffer = []
        self._open_structure(BlockFrame(BlockKind.FUNCTION, line, name=name), buffer)

    # =========================================================================
    # Control Blocks
    # =========================================================================

    def _require_structure(self, line: int) -> bool:
        if self._target is None:
            self.diagnostics.error(line, "Start with setup: and loop: blocks.")
            return False
        return True

    def _enter_control(self, kind: BlockKind, line: int) -> bool:
        """Check a control opener has a structural block around it."""
        if self._require_structure(line):
            return True
        self.stack.push(BlockFrame(kind, line, opened=False))
        return False

    def _open_control(self, code: str, line: int) -> bool:
        """Handle a control opener. Returns False if the line is not one."""
        match = self.IF_PATTERN.match(code)
        if match:
            if self._enter_control(BlockKind.IF, line):
                self._open_conditional(BlockKind.IF, "if", match.group(1), line)
            return True

        match = self.REPEAT_PATTERN.match(code)
        if match:
            if self._enter_control(BlockKind.REPEAT, line):
                self._open_repeat(int(match.group(1)), line)
            return True

        if self.FOREVER_PATTERN.match(code):
            if self._enter_control(BlockKind.FOREVER, line):
                self._emit("while (true) {")
                self.stack.push(BlockFrame(BlockKind.FOREVER, line))
            return True

        match = self.WHILE_PATTERN.match(code)
        if match:
            if self._enter_control(BlockKind.WHILE, line):
                self._open_conditional(BlockKind.WHILE, "while", match.group(1), line)
            return True

        match = self.EVERY_PATTERN.match(code)
        if match:
            if self._enter_control(BlockKind.EVERY, line):
                self._open_every(self._to_millis(match), line)
            return True

        match = self.AFTER_PATTERN.match(code)
        if match:
            if self._enter_control(BlockKind.AFTER, line):
                self._open_after(self._to_millis(match), line)
            return True

        return False

    @staticmethod
    def _to_millis(match: re.Match) -> int:
        amount = int(match.group(1))
        return amount * 1000 if match.group(2).lower().startswith("s") else amount

    def _open_conditional(self, kind: BlockKind, keyword: str, condition: str, line: int) -> None:
        cond = parse_condition(condition, self.symbols, line, self.diagnostics)
        if cond is not None:
            self._emit(f"{keyword} ({cond}) {{")
        self.stack.push(BlockFrame(kind, line, opened=cond is not None))

    def _open_repeat(self, count: int, line: int) -> None:
        if count < 0:
            self.diagnostics.error(line, "repeat count must be a non-negative number.")
            self.stack.push(BlockFrame(BlockKind.REPEAT, line, opened=False))
            return
        index = f"__i{self.output.new_id()}"
        self._emit(f"for (int {index} = 0; {index} < {count}; {index}++) {{")
        self.stack.push(BlockFrame(BlockKind.REPEAT, line))

    def _open_every(self, interval: int, line: int) -> None:
        last = f"__every_{self.output.new_id()}_last"
        self._emit(f"static unsigned long {last} = 0;")
        self._emit(f"if (millis() - {last} >= {interval}UL) {{")
        self._emit(f"{last} += {interval}UL;")
        self.stack.push(BlockFrame(BlockKind.EVERY, line))

    def _open_after(self, delay: int, line: int) -> None:
        timer_id = self.output.new_id()
        done = f"__after_{timer_id}_done"
        start = f"__after_{timer_id}_start"
        self._emit(f"static bool {done} = false;")
        self._emit(f"static unsigned long {start} = millis();")
        self._emit(f"if (!{done} && millis() - {start} >= {delay}UL) {{")
        self._emit(f"{done} = true;")
        self.stack.push(BlockFrame(BlockKind.AFTER, line))

    def _alternate(self, line: int) -> None:
        if not self._require_structure(line):
            return
        top = self.stack.top()
        if top is None or top.kind is not BlockKind.IF:
            self.diagnostics.error(line, "otherwise do: must be inside an if block.")
            return
        if top.has_alternate:
            self.diagnostics.error(line, "This if already has an otherwise block.")
            return
        if top.opened:
            self._emit("} else {")
        top.has_alternate = True

    # =========================================================================
    # Terminators and End of Source
    # =========================================================================

    def _close(self, line: int) -> None:
        frame = self.stack.pop()
        if frame is None:
            self.diagnostics.error(line, 'Found "end" but there is no open block.')
            return
        logger.debug(f"line {line}: close {frame.label}")
        if not frame.opened:
            return
        if frame.kind.is_structural:
            self._target = None
        else:
            self._emit("}")

    def _finish(self, last_line: int) -> None:
        top = self.stack.top()
        if top is not None:
            self.diagnostics.error(
                max(last_line, 1),
                f'Unclosed block "{top.label}" (opened on line {top.line}). Add an "end".',
            )
        if not self.saw_setup:
            self.diagnostics.error(1, 'Missing "setup:" block.')
        if not self.saw_loop:
            self.diagnostics.error(1, 'Missing "loop:" block.')
