"""
blink(1) data model - pure data classes, no I/O.

Text form of a light state::

    #RRGGBBL{0,1,2}T{fade ms}       e.g. "#FF0000L1T200"

A sequence is the same states joined with ';'.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Tuple

from .color import color_by_name, hex_to_rgb, hsb_to_rgb, rgb_to_hex


class LEDIndex(IntEnum):
    """Which LED a command addresses."""
    ALL = 0
    LED1 = 1   # top, 'blink(1)' label side
    LED2 = 2   # bottom, 'ThingM' logo side

    @classmethod
    def coerce(cls, value: int) -> 'LEDIndex':
        """Map any int to an LEDIndex; out-of-range values mean all LEDs."""
        try:
            return cls(value)
        except ValueError:
            return cls.ALL

    def __str__(self) -> str:
        if self is LEDIndex.LED1:
            return "LED 1"
        if self is LEDIndex.LED2:
            return "LED 2"
        return "All LED"


_STATE_RE = re.compile(r"^#([0-9A-F]{2})([0-9A-F]{2})([0-9A-F]{2})L([0-2])T(\d+)$")

SEQUENCE_SEPARATOR = ";"


@dataclass(frozen=True)
class LightState:
    """A color on one LED (or all), reached over *fade_ms* milliseconds."""
    r: int = 0
    g: int = 0
    b: int = 0
    led: LEDIndex = LEDIndex.ALL
    fade_ms: int = 0

    def __post_init__(self):
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"{name}={value} out of range [0, 255]")
        if self.fade_ms < 0:
            raise ValueError(f"fade_ms={self.fade_ms} must not be negative")
        object.__setattr__(self, "led", LEDIndex.coerce(self.led))

    # -- Constructors ----------------------------------------------------

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int, fade_ms: int = 0,
                 led: int = LEDIndex.ALL) -> 'LightState':
        return cls(r, g, b, LEDIndex.coerce(led), fade_ms)

    @classmethod
    def from_hsb(cls, hue: float, saturation: float, brightness: float,
                 fade_ms: int = 0, led: int = LEDIndex.ALL) -> 'LightState':
        """Hue in degrees [0, 360], saturation/brightness in percent."""
        r, g, b = hsb_to_rgb(hue, saturation, brightness)
        return cls(r, g, b, LEDIndex.coerce(led), fade_ms)

    @classmethod
    def from_hex(cls, hex_str: str, fade_ms: int = 0,
                 led: int = LEDIndex.ALL) -> 'LightState':
        r, g, b = hex_to_rgb(hex_str)
        return cls(r, g, b, LEDIndex.coerce(led), fade_ms)

    @classmethod
    def from_name(cls, name: str, fade_ms: int = 0,
                  led: int = LEDIndex.ALL) -> 'LightState':
        rgb = color_by_name(name)
        if rgb is None:
            raise ValueError(f"unknown color name: {name!r}")
        return cls(*rgb, led=LEDIndex.coerce(led), fade_ms=fade_ms)

    # -- Properties --------------------------------------------------------

    @property
    def color(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.r, self.g, self.b)

    # -- Text form ---------------------------------------------------------

    def to_text(self) -> str:
        return f"{self.hex}L{int(self.led)}T{self.fade_ms}"

    @classmethod
    def from_text(cls, text: str) -> 'LightState':
        """Parse '#RRGGBBLxTms' (case insensitive).

        Raises:
            ValueError: On empty or malformed input.
        """
        if not text:
            raise ValueError("empty state can't be deserialized")
        m = _STATE_RE.match(text.strip().upper())
        if not m:
            raise ValueError(f"invalid format for LightState: {text!r}")
        r, g, b = (int(m.group(i), 16) for i in (1, 2, 3))
        return cls(r, g, b, LEDIndex(int(m.group(4))), int(m.group(5)))

    def __str__(self) -> str:
        return f"(color={self.hex} led={int(self.led)} fade={self.fade_ms}ms)"


class StateSequence(list):
    """Ordered light states, the payload of a Pattern."""

    def to_text(self) -> str:
        return SEQUENCE_SEPARATOR.join(st.to_text() for st in self)

    @classmethod
    def from_text(cls, text: str) -> 'StateSequence':
        """Parse a ';'-joined list of states.  Empty text gives an empty sequence."""
        if not text:
            return cls()
        return cls(LightState.from_text(part) for part in text.split(SEQUENCE_SEPARATOR))

    def total_fade_ms(self) -> int:
        return sum(st.fade_ms for st in self)

    def __str__(self) -> str:
        if not self:
            return "(empty)"
        if len(self) == 1:
            return f"({self[0].to_text()})"
        return f"({self[0].to_text()}...{len(self)})"


def _as_sequence(states: Iterable[LightState]) -> StateSequence:
    if isinstance(states, StateSequence):
        return states
    return StateSequence(states)


@dataclass
class Pattern:
    """A loop over pattern RAM, optionally preloaded with *sequence*.

    Attributes:
        start_position: First position of the loop, inclusive.
        end_position: Last position of the loop, inclusive; 0 means the last
            position of pattern RAM.
        repeat_times: How many times to play the loop, 0 means forever.
        sequence: States written to RAM from start_position before playing.
    """
    start_position: int = 0
    end_position: int = 0
    repeat_times: int = 0
    sequence: StateSequence = field(default_factory=StateSequence)

    def __post_init__(self):
        self.sequence = _as_sequence(self.sequence)

    def __str__(self) -> str:
        repeat = "inf" if self.repeat_times == 0 else str(self.repeat_times)
        return (f"(loop=[{self.start_position},{self.end_position}] "
                f"repeat={repeat} seq={len(self.sequence)})")


@dataclass
class PatternState:
    """Pattern playback state as reported by the 'S' command.

    end_position is exclusive, as the firmware reports it.
    """
    is_playing: bool = False
    current_position: int = 0
    start_position: int = 0
    end_position: int = 0
    repeat_times: int = 0

    def __str__(self) -> str:
        return (f"(playing={self.is_playing} cur={self.current_position} "
                f"loop=[{self.start_position},{self.end_position}) "
                f"left={self.repeat_times})")
