"""
EasyScript Block Structure Test Suite
=====================================

Tests for the second pass: nesting rules, "otherwise" binding, "end"
handling, end-of-source checks and the code emitted for control blocks.
"""

import pytest

from easyscript.aes import compile_script
from easyscript.aes.blocks import BlockFrame, BlockKind, BlockPass, BlockStack
from easyscript.aes.codegen import ProgramOutput, indent_lines
from easyscript.aes.errors import DiagnosticCollector
from easyscript.aes.expressions import parse_condition
from easyscript.aes.lexer import RESERVED_WORDS
from easyscript.aes.symbols import SymbolTable, SymbolTableBuilder
from easyscript.aes.types import VarType
from easyscript.boards import UNO


def program(loop_body, setup_body="", prelude=""):
    """Wrap statements in setup:/loop: blocks."""
    return f"{prelude}setup:\n{setup_body}end\nloop:\n{loop_body}end\n"


def messages(result):
    return [d.message for d in result.diagnostics]


# =============================================================================
# Block Stack
# =============================================================================

class TestBlockStack:
    """Tests for the frame stack."""

    def test_lifo(self):
        stack = BlockStack()
        stack.push(BlockFrame(BlockKind.LOOP, 1))
        stack.push(BlockFrame(BlockKind.IF, 2))
        assert len(stack) == 2
        assert stack.top().kind is BlockKind.IF
        assert stack.pop().kind is BlockKind.IF
        assert stack.pop().kind is BlockKind.LOOP
        assert stack.pop() is None
        assert not stack

    def test_labels(self):
        assert BlockFrame(BlockKind.FUNCTION, 1, name="blink").label == "function blink"
        assert BlockFrame(BlockKind.EVERY, 1).label == "every"
        assert BlockKind.SETUP.is_structural
        assert not BlockKind.IF.is_structural


# =============================================================================
# Conditionals
# =============================================================================

class TestConditionals:
    """Tests for if/otherwise blocks."""

    def test_condition_auto_declares_variable(self):
        """An undeclared name in a condition becomes a variable."""
        result = compile_script(program('  if button is 0 do:\n    print "pressed"\n  end\n'))
        assert result.errors == []
        assert result.symbols.variables["button"].type is VarType.LONG
        assert "if (button == 0) {" in result.code

    def test_otherwise(self):
        source = program(
            "  if level is greater than 100 do:\n"
            "    turn 13 on\n"
            "  otherwise do:\n"
            "    turn 13 off\n"
            "  end\n"
        )
        result = compile_script(source)
        assert result.errors == []
        assert (
            "void loop() {\n"
            "  if (level > 100) {\n"
            "    digitalWrite(13, HIGH);\n"
            "  } else {\n"
            "    digitalWrite(13, LOW);\n"
            "  }\n"
            "}\n"
        ) in result.code

    def test_otherwise_without_if(self):
        result = compile_script(program("  otherwise do:\n"))
        assert messages(result) == ["otherwise do: must be inside an if block."]

    def test_otherwise_binds_to_nearest_if_only(self):
        source = program("  if x is 1 do:\n    repeat 2 times do:\n    otherwise do:\n    end\n  end\n")
        result = compile_script(source)
        assert messages(result) == ["otherwise do: must be inside an if block."]

    def test_second_otherwise(self):
        source = program("  if x is 1 do:\n  otherwise do:\n  otherwise do:\n  end\n")
        result = compile_script(source)
        assert messages(result) == ["This if already has an otherwise block."]
        assert result.diagnostics[0].line == 6

    def test_missing_condition(self):
        diagnostics = DiagnosticCollector()
        symbols = SymbolTable(UNO, RESERVED_WORDS)
        assert parse_condition("  ", symbols, 4, diagnostics) is None
        assert [d.message for d in diagnostics] == ["Condition is missing. Example: if button is 0 do:"]


# =============================================================================
# Loops and Timers
# =============================================================================

class TestLoopsAndTimers:
    """Tests for repeat, forever, while, every and after blocks."""

    def test_repeat(self):
        result = compile_script(program("  repeat 3 times do:\n    toggle 13\n  end\n"))
        assert result.errors == []
        assert "  for (int __i1 = 0; __i1 < 3; __i1++) {\n    digitalWrite(13, !digitalRead(13));\n  }" in result.code

    def test_repeat_negative_count(self):
        """The bad opener is reported once and its "end" still balances."""
        result = compile_script(program("  repeat -2 times do:\n    toggle 13\n  end\n"))
        assert messages(result) == ["repeat count must be a non-negative number."]
        assert "for (" not in result.code

    def test_forever(self):
        result = compile_script(program("  forever do:\n    wait 1 ms\n  end\n"))
        assert "  while (true) {\n    delay(1);\n  }" in result.code

    def test_while(self):
        result = compile_script(program("  while count is less than 10 do:\n    change count by 1\n  end\n"))
        assert result.errors == []
        assert "while (count < 10) {" in result.code

    def test_every_does_not_drift(self):
        """The periodic threshold advances by the interval, never to now."""
        source = program("  every 250 ms do:\n    toggle led\n  end\n", prelude="pin led is 13\n")
        result = compile_script(source)
        assert result.diagnostics == []
        assert "static unsigned long __every_1_last = 0;" in result.code
        assert "if (millis() - __every_1_last >= 250UL) {" in result.code
        assert "__every_1_last += 250UL;" in result.code
        assert "__every_1_last = millis()" not in result.code

    def test_every_seconds(self):
        result = compile_script(program("  every 2 seconds do:\n  end\n"))
        assert "__every_1_last >= 2000UL" in result.code

    def test_after_runs_once(self):
        result = compile_script(program("  after 5 s do:\n    turn 13 on\n  end\n"))
        assert result.errors == []
        assert "static bool __after_1_done = false;" in result.code
        assert "static unsigned long __after_1_start = millis();" in result.code
        assert "if (!__after_1_done && millis() - __after_1_start >= 5000UL) {" in result.code
        assert "__after_1_done = true;" in result.code

    def test_generated_names_are_unique(self):
        result = compile_script(program("  every 10 ms do:\n  end\n  every 20 ms do:\n  end\n"))
        assert "__every_1_last" in result.code
        assert "__every_2_last" in result.code


# =============================================================================
# Structure Errors
# =============================================================================

class TestStructureErrors:
    """Tests for illegal nesting and unbalanced blocks."""

    def test_end_without_opener(self):
        """The stray end is reported at its line; missing blocks still checked."""
        result = compile_script("end\n")
        assert [(d.line, d.message) for d in result.diagnostics] == [
            (1, 'Found "end" but there is no open block.'),
            (1, 'Missing "setup:" block.'),
            (1, 'Missing "loop:" block.'),
        ]

    def test_missing_loop(self):
        result = compile_script("setup:\nend\n")
        assert messages(result) == ['Missing "loop:" block.']

    def test_unclosed_block_reported_once(self):
        source = "setup:\nend\nloop:\n  if x is 1 do:\n    turn 13 on\nend"
        result = compile_script(source)
        assert result.diagnostics[0].message == 'Unclosed block "loop" (opened on line 3). Add an "end".'
        assert result.diagnostics[0].line == 6
        assert len(result.errors) == 1

    def test_unclosed_function(self):
        result = compile_script("function blink:\n  turn 13 on\nsetup:\nend\nloop:\nend")
        assert 'Unclosed block "function blink" (opened on line 1). Add an "end".' in messages(result)

    def test_nested_structure(self):
        result = compile_script("setup:\n  loop:\n  end\nend\n")
        assert messages(result) == [
            "loop: can't be inside another block.",
            'Missing "loop:" block.',
        ]

    def test_function_inside_loop(self):
        """A rejected nested function is not defined, so calling it warns."""
        source = "setup:\nend\nloop:\n  function blink:\n  end\n  call blink\nend\n"
        result = compile_script(source)
        assert messages(result) == [
            "Functions must be top-level (not inside setup/loop).",
            'Function "blink" isn\'t defined (yet). Did you mean to write "function blink:"?',
        ]
        assert [d.line for d in result.diagnostics] == [4, 6]
        assert result.symbols.functions == {}
        assert "void blink()" not in result.code

    def test_control_outside_structure(self):
        result = compile_script("if x is 1 do:\nend\nsetup:\nend\nloop:\nend\n")
        assert messages(result) == ["Start with setup: and loop: blocks."]

    def test_statement_after_block_closed(self):
        result = compile_script("setup:\nend\nturn 13 on\nloop:\nend\n")
        assert messages(result) == ["Commands must be inside setup:, loop:, or function blocks."]
        assert result.diagnostics[0].line == 3

    def test_unknown_command(self):
        result = compile_script(program("  dance   wildly  \n"))
        assert messages(result) == ['Unknown command: "dance   wildly"']

    def test_keeps_going_after_errors(self):
        """Every problem in the program is reported in a single run."""
        source = program("  blink led\n  turn lamp on\n  wait 10 ms\n  otherwise do:\n")
        result = compile_script(source)
        assert len(result.errors) == 3
        assert "delay(10);" in result.code


class TestUnknownBlocks:
    """Lines that end in "do:" without matching a block opener."""

    @staticmethod
    def unknown_block(code):
        return (
            f'"{code}" is not a block I know. Blocks look like '
            f'"if CONDITION do:", "repeat N times do:" or "every N ms do:".'
        )

    def test_statement_ending_in_do(self):
        result = compile_script(program("  set x to y do:\n"))
        assert [(d.line, d.message) for d in result.diagnostics] == [
            (4, self.unknown_block("set x to y do:")),
        ]
        assert "x" not in result.symbols.variables
        assert not result.success

    def test_later_pins_still_declared(self):
        source = "setup:\n  set note to msg do:\nend\npin led is 13\nloop:\n  turn led on\nend\n"
        result = compile_script(source)
        assert messages(result) == [self.unknown_block("set note to msg do:")]
        assert result.symbols.pins["led"].target == "13"
        assert "digitalWrite(led, HIGH);" in result.code

    def test_otherwise_if(self):
        """There is no else-if; the line is reported and nesting stays intact."""
        source = program("  if a is 1 do:\n  otherwise if a is 2 do:\n  end\n")
        result = compile_script(source)
        assert messages(result) == [self.unknown_block("otherwise if a is 2 do:")]

    @pytest.mark.parametrize("code", [
        "repeat x times do:",
        "every now and then do:",
        "forever and ever do:",
        "wait 5 ms do:",
    ])
    def test_malformed_openers(self, code):
        result = compile_script(program(f"  {code}\n"))
        assert messages(result) == [self.unknown_block(code)]
        assert result.diagnostics[0].line == 4


def run_passes(source):
    """Run both passes; return the block pass and the diagnostics."""
    lines = source.split("\n")
    diagnostics = DiagnosticCollector()
    symbols = SymbolTable(UNO, RESERVED_WORDS)
    SymbolTableBuilder(symbols, diagnostics).scan(lines)
    block_pass = BlockPass(symbols, diagnostics, ProgramOutput())
    block_pass.run(lines)
    return block_pass, diagnostics


class TestBalancedBlocks:
    """Matched openers in legal nesting leave nothing open and report nothing."""

    DEEP = """\
pin led is 13

function pulse:
  every 100 ms do:
    repeat 3 times do:
      if level is 1 do:
        turn led on
      otherwise do:
        while level is 0 do:
          after 1 second do:
            turn led off
          end
          set level to 1
        end
      end
    end
  end
end

setup:
  make led output
end

loop:
  forever do:
    call pulse
  end
end
"""

    def test_deep_mixed_nesting(self):
        block_pass, diagnostics = run_passes(self.DEEP)
        assert len(block_pass.stack) == 0
        assert len(diagnostics) == 0
        assert block_pass.saw_setup and block_pass.saw_loop

    def test_deep_mixed_nesting_braces(self):
        result = compile_script(self.DEEP)
        assert result.diagnostics == []
        assert result.code.count("{") == result.code.count("}")
        assert "} else {" in result.code
        assert "void pulse() {" in result.code

    @pytest.mark.parametrize("opener", [
        "if a is 1 do:",
        "repeat 2 times do:",
        "forever do:",
        "while a is 1 do:",
        "every 1 s do:",
        "after 10 ms do:",
    ])
    def test_each_opener_nested_three_deep(self, opener):
        body = f"  {opener}\n    {opener}\n      {opener}\n        toggle 13\n      end\n    end\n  end\n"
        block_pass, diagnostics = run_passes(program(body))
        assert len(block_pass.stack) == 0
        assert len(diagnostics) == 0


class TestIndentLines:
    """Tests for brace-depth indentation of generated statements."""

    def test_else_sits_with_if(self):
        lines = ["if (x) {", "a();", "} else {", "b();", "}"]
        assert indent_lines(lines, 0) == "if (x) {\n  a();\n} else {\n  b();\n}"

    @pytest.mark.parametrize("indent", ["  ", "    ", "\t"])
    def test_indent_unit(self, indent):
        assert indent_lines(["x();"], 1, indent) == f"{indent}x();"
