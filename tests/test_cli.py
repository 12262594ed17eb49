"""
Tests for aesc - EasyScript Command-Line Tool
=============================================

These tests run the click commands in an isolated filesystem and check
exit codes, written files and printed output.
"""

import importlib
import json
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from easyscript import __version__
from easyscript.boards import BOARDS, BoardProfile
from easyscript.cli.aesc import main
from easyscript.cli.errors import ExitCode


BLINK = """\
pin led is 13

setup:
  make led output
end

loop:
  turn led on
  wait 500 ms
  turn led off
  wait 500 ms
end
"""

BROKEN = "setup:\nend\nloop:\n  blink led\nend\n"


@pytest.fixture
def runner():
    return CliRunner()


# =============================================================================
# Compile Command
# =============================================================================

class TestCompileCommand:
    """Tests for aesc compile."""

    def test_compile_default_output(self, runner):
        """Should write input.ino next to the source."""
        with runner.isolated_filesystem():
            Path("blink.aes").write_text(BLINK)
            result = runner.invoke(main, ["compile", "blink.aes"])

            assert result.exit_code == 0, f"Compile failed: {result.output}"
            assert "Compiled blink.aes -> blink.ino" in result.output
            assert "digitalWrite(led, HIGH);" in Path("blink.ino").read_text()

    def test_compile_explicit_output(self, runner):
        with runner.isolated_filesystem():
            Path("blink.aes").write_text(BLINK)
            result = runner.invoke(main, ["compile", "blink.aes", "-o", "sketch.ino"])

            assert result.exit_code == 0, f"Compile failed: {result.output}"
            assert Path("sketch.ino").exists()
            assert not Path("blink.ino").exists()

    def test_compile_board(self, runner):
        with runner.isolated_filesystem():
            Path("blink.aes").write_text(BLINK)
            result = runner.invoke(main, ["compile", "blink.aes", "-b", "nano"])

            assert result.exit_code == 0
            assert "// Board: NANO" in Path("blink.ino").read_text()

    def test_compile_errors(self, runner):
        """Programs with errors exit 1 and write no sketch."""
        with runner.isolated_filesystem():
            Path("broken.aes").write_text(BROKEN)
            result = runner.invoke(main, ["compile", "broken.aes"])

            assert result.exit_code == ExitCode.BUILD_ERROR
            assert 'broken.aes:4:1: error: Unknown command: "blink led"' in result.output
            assert not Path("broken.ino").exists()

    def test_compile_warnings_still_write(self, runner):
        with runner.isolated_filesystem():
            Path("far.aes").write_text("pin far is 20\nsetup:\nend\nloop:\nend\n")
            result = runner.invoke(main, ["compile", "far.aes"])

            assert result.exit_code == 0
            assert "warning: Pin 20 is outside the default UNO range (0..13)." in result.output
            assert Path("far.ino").exists()

    def test_compile_json(self, runner):
        with runner.isolated_filesystem():
            Path("blink.aes").write_text(BLINK)
            result = runner.invoke(main, ["compile", "--json", "blink.aes"])

            assert result.exit_code == 0
            data = json.loads(result.output)
            assert data["diagnostics"] == []
            assert data["symbols"]["pins"]["led"]["cpp"] == "13"
            assert "void loop() {" in data["code"]
            assert not Path("blink.ino").exists()

    def test_compile_json_errors(self, runner):
        with runner.isolated_filesystem():
            Path("broken.aes").write_text(BROKEN)
            result = runner.invoke(main, ["compile", "--json", "broken.aes"])

            assert result.exit_code == ExitCode.BUILD_ERROR
            data = json.loads(result.output)
            assert data["diagnostics"][0]["severity"] == "error"

    def test_unknown_board_rejected(self, runner):
        with runner.isolated_filesystem():
            Path("blink.aes").write_text(BLINK)
            result = runner.invoke(main, ["compile", "blink.aes", "-b", "esp32"])

            assert result.exit_code == 2

    def test_missing_input(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["compile", "nope.aes"])
            assert result.exit_code == 2

    def test_verbose(self, runner):
        with runner.isolated_filesystem():
            Path("blink.aes").write_text(BLINK)
            result = runner.invoke(main, ["-v", "compile", "blink.aes"])

            assert result.exit_code == 0
            assert "Symbols: 1 pins, 0 variables, 0 functions" in result.output


# =============================================================================
# Format Command
# =============================================================================

class TestFormatCommand:
    """Tests for aesc format."""

    MESSY = "loop:\nturn 13 on\n   end\n"
    TIDY = "loop:\n  turn 13 on\nend\n"

    def test_prints_formatted(self, runner):
        with runner.isolated_filesystem():
            Path("a.aes").write_text(self.MESSY)
            result = runner.invoke(main, ["format", "a.aes"])

            assert result.exit_code == 0
            assert result.output == self.TIDY
            assert Path("a.aes").read_text() == self.MESSY

    def test_write(self, runner):
        with runner.isolated_filesystem():
            Path("a.aes").write_text(self.MESSY)
            result = runner.invoke(main, ["format", "-w", "a.aes"])

            assert result.exit_code == 0
            assert "Reformatted a.aes" in result.output
            assert Path("a.aes").read_text() == self.TIDY

    def test_write_unchanged(self, runner):
        with runner.isolated_filesystem():
            Path("a.aes").write_text(self.TIDY)
            result = runner.invoke(main, ["format", "--write", "a.aes"])

            assert result.exit_code == 0
            assert "a.aes unchanged" in result.output

    def test_check(self, runner):
        with runner.isolated_filesystem():
            Path("messy.aes").write_text(self.MESSY)
            Path("tidy.aes").write_text(self.TIDY)

            messy = runner.invoke(main, ["format", "--check", "messy.aes"])
            tidy = runner.invoke(main, ["format", "--check", "tidy.aes"])

            assert messy.exit_code == ExitCode.BUILD_ERROR
            assert "messy.aes would be reformatted" in messy.output
            assert tidy.exit_code == 0
            assert Path("messy.aes").read_text() == self.MESSY


# =============================================================================
# Symbols and Boards Commands
# =============================================================================

class TestSymbolsCommand:
    """Tests for aesc symbols."""

    SOURCE = "pin led is 13\nfunction blink:\nend\nloop:\n  read time into now\nend\n"

    def test_table(self, runner):
        with runner.isolated_filesystem():
            Path("a.aes").write_text(self.SOURCE)
            result = runner.invoke(main, ["symbols", "a.aes"])

            assert result.exit_code == 0
            lines = result.output.splitlines()
            assert lines[0].split() == ["Name", "Kind", "Detail", "Line"]
            assert lines[2].split() == ["led", "pin", "13", "1"]
            assert lines[3].split() == ["now", "variable", "unsigned", "long", "5"]
            assert lines[4].split() == ["blink", "function", "void()", "2"]

    def test_json(self, runner):
        with runner.isolated_filesystem():
            Path("a.aes").write_text(self.SOURCE)
            result = runner.invoke(main, ["symbols", "--json", "a.aes"])

            assert result.exit_code == 0
            data = json.loads(result.output)
            assert data["symbols"]["funcs"] == {"blink": {"line": 2}}
            assert data["diagnostics"] == []


class TestMiscCommands:
    """Tests for aesc boards and --version."""

    def test_boards(self, runner):
        result = runner.invoke(main, ["boards"])
        assert result.exit_code == 0
        names = [line.split()[0] for line in result.output.splitlines()[2:]]
        assert names == ["mega", "nano", "uno"]
        assert "A0..A5" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_boards_without_analog_or_pwm_pins(self, runner, monkeypatch):
        monkeypatch.setitem(BOARDS, "tiny", BoardProfile("tiny", 0, 5, (), frozenset()))
        result = runner.invoke(main, ["boards"])

        assert result.exit_code == 0
        rows = [line.split() for line in result.output.splitlines()[2:]]
        assert ["tiny", "0..5", "-", "-"] in rows

    def test_package_exports_resolve(self, monkeypatch):
        """Every name in easyscript.cli.__all__ exists after a fresh import."""
        for name in ("easyscript.cli", "easyscript.cli.aesc", "easyscript.cli.errors"):
            monkeypatch.delitem(sys.modules, name, raising=False)
        package = importlib.import_module("easyscript.cli")

        assert [name for name in package.__all__ if not hasattr(package, name)] == []
