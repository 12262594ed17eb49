"""
Arduino Board Profiles
======================

This module describes the boards the EasyScript compiler can validate
against. A board profile only affects *validation*: which pin numbers are
considered in range, which analog labels exist and which pins can do PWM.
Swapping the profile never changes how a program is compiled, only which
warnings are reported.

Supported Boards
----------------
| Board | Digital pins | Analog labels | PWM pins                  |
|-------|--------------|---------------|---------------------------|
| uno   | 0..13        | A0..A5        | 3, 5, 6, 9, 10, 11        |
| nano  | 0..13        | A0..A7        | 3, 5, 6, 9, 10, 11        |
| mega  | 0..53        | A0..A15       | 2..13, 44, 45, 46         |

Usage
-----
>>> from easyscript.boards import get_board
>>> board = get_board("uno")
>>> board.is_digital_in_range(13)
True
>>> board.is_pwm_capable(13)
False
"""

from dataclasses import dataclass

from easyscript.errors import BoardProfileError


# =============================================================================
# Board Profile
# =============================================================================

@dataclass(frozen=True)
class BoardProfile:
    """
    Pin capabilities of a microcontroller board.

    Profiles are immutable so a single instance can be shared by any number
    of compiler objects without cross-talk.

    Attributes:
        name: Short board name ("uno", "nano", ...)
        digital_min: Lowest digital pin number
        digital_max: Highest digital pin number
        analog_pins: Analog channel labels, upper case ("A0", "A1", ...)
        pwm_pins: Digital pins that support analogWrite()
    """
    name: str
    digital_min: int
    digital_max: int
    analog_pins: tuple[str, ...]
    pwm_pins: frozenset[int]

    @property
    def display_name(self) -> str:
        """Board name as shown in messages (e.g. "UNO")."""
        return self.name.upper()

    def is_digital_in_range(self, number: int) -> bool:
        """Return True if the pin number exists on this board."""
        return self.digital_min <= number <= self.digital_max

    @property
    def analog_range(self) -> str:
        """Analog labels as "A0..A5", or "" for a board without analog inputs."""
        if not self.analog_pins:
            return ""
        return f"{self.analog_pins[0]}..{self.analog_pins[-1]}"

    def is_analog_label(self, label: str) -> bool:
        """Return True if the analog label (any case) exists on this board."""
        return label.upper() in self.analog_pins

    def is_pwm_capable(self, number: int) -> bool:
        """Return True if analogWrite() works on this digital pin."""
        return number in self.pwm_pins


def _analog_labels(count: int) -> tuple[str, ...]:
    return tuple(f"A{i}" for i in range(count))


# =============================================================================
# Profile Table
# =============================================================================

UNO = BoardProfile(
    name="uno",
    digital_min=0,
    digital_max=13,
    analog_pins=_analog_labels(6),
    pwm_pins=frozenset({3, 5, 6, 9, 10, 11}),
)

NANO = BoardProfile(
    name="nano",
    digital_min=0,
    digital_max=13,
    analog_pins=_analog_labels(8),
    pwm_pins=frozenset({3, 5, 6, 9, 10, 11}),
)

MEGA = BoardProfile(
    name="mega",
    digital_min=0,
    digital_max=53,
    analog_pins=_analog_labels(16),
    pwm_pins=frozenset(set(range(2, 14)) | {44, 45, 46}),
)

BOARDS: dict[str, BoardProfile] = {
    UNO.name: UNO,
    NANO.name: NANO,
    MEGA.name: MEGA,
}

DEFAULT_BOARD = UNO


def get_board(name: str) -> BoardProfile:
    """
    Look up a board profile by name (case-insensitive).

    Raises:
        BoardProfileError: If no profile has that name
    """
    profile = BOARDS.get(name.strip().lower())
    if profile is None:
        raise BoardProfileError(name, sorted(BOARDS))
    return profile
