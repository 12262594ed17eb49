"""
Tests for the board profile table.
"""

import pytest

from easyscript.boards import BOARDS, DEFAULT_BOARD, MEGA, NANO, UNO, BoardProfile, get_board
from easyscript.errors import BoardProfileError


class TestBoardLookup:
    """Tests for get_board()."""

    def test_default_is_uno(self):
        assert DEFAULT_BOARD is UNO

    def test_case_insensitive(self):
        assert get_board("UNO") is UNO
        assert get_board(" mega ") is MEGA

    def test_unknown_board(self):
        """Unknown names raise with the list of valid choices."""
        with pytest.raises(BoardProfileError) as exc_info:
            get_board("esp32")
        assert exc_info.value.board == "esp32"
        assert "choose from: mega, nano, uno" in str(exc_info.value)

    def test_table(self):
        assert set(BOARDS) == {"uno", "nano", "mega"}


class TestBoardCapabilities:
    """Tests for the pin capability queries."""

    def test_digital_range(self):
        assert UNO.is_digital_in_range(0)
        assert UNO.is_digital_in_range(13)
        assert not UNO.is_digital_in_range(14)
        assert MEGA.is_digital_in_range(53)

    def test_analog_labels(self):
        assert UNO.is_analog_label("a5")
        assert not UNO.is_analog_label("A7")
        assert NANO.is_analog_label("A7")
        assert MEGA.is_analog_label("A15")

    def test_pwm(self):
        assert UNO.is_pwm_capable(9)
        assert not UNO.is_pwm_capable(13)
        assert MEGA.is_pwm_capable(13)
        assert MEGA.is_pwm_capable(44)

    def test_display_name(self):
        assert NANO.display_name == "NANO"

    def test_analog_range(self):
        assert UNO.analog_range == "A0..A5"
        assert MEGA.analog_range == "A0..A15"
        assert BoardProfile("tiny", 0, 5, (), frozenset()).analog_range == ""

    def test_profiles_are_immutable(self):
        with pytest.raises(AttributeError):
            UNO.digital_max = 99
