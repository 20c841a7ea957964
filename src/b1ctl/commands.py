"""
Command buffer builder for the blink(1) feature-report protocol.

Every command is one 9-byte feature report::

    Byte  0:    report ID (0x01)
    Byte  1:    opcode (ASCII)
    Bytes 2-7:  opcode-specific payload
    Byte  8:    0x00

Opcode payloads (bytes 2..7):

    'c' fade to RGB       R  G  B  th tl led
    'n' set RGB now       R  G  B  -  -  led
    'r' read RGB          -  -  -  -  -  led     -> resp[2..4] = R G B
    'p' play loop         on st en n  -  -
    'S' read play state   -  -  -  -  -  -       -> on st en n cur
    'l' set LED for 'P'   led
    'P' set pattern line  R  G  B  th tl pos
    'R' read pattern line -  -  -  -  -  pos     -> R G B th tl led
    'W' save pattern      BE EF CA FE
    'D' tickle mode       on th tl keep st en
    'v' get version       -                      -> resp[3..4] = ASCII major minor
    '!' test              -                      -> echo

th/tl is the fade (or timeout) in centiseconds, big-endian.

Builders take positions and counts that the caller already validated
against the device generation (see Device); they only mask to a byte.
"""

from __future__ import annotations

from typing import Tuple

from .codec import bool_to_byte, byte_to_bool, ms_to_wire_fade, wire_fade_to_ms
from .constants import CMD_BUF_SIZE, REPORT_ID
from .models import LEDIndex, LightState, PatternState

# Opcodes
CMD_FADE_TO_RGB = ord('c')
CMD_SET_RGB_NOW = ord('n')
CMD_READ_RGB = ord('r')
CMD_PLAY_LOOP = ord('p')
CMD_READ_PLAY_STATE = ord('S')
CMD_SET_LED = ord('l')
CMD_SET_PATTERN_LINE = ord('P')
CMD_READ_PATTERN_LINE = ord('R')
CMD_SAVE_PATTERN = ord('W')
CMD_TICKLE_MODE = ord('D')
CMD_GET_VERSION = ord('v')
CMD_TEST = ord('!')

# Flash commit magic for 'W'
SAVE_PATTERN_MAGIC = bytes([0xBE, 0xEF, 0xCA, 0xFE])


def _new_buffer(opcode: int) -> bytearray:
    buf = bytearray(CMD_BUF_SIZE)
    buf[0] = REPORT_ID
    buf[1] = opcode
    return buf


def _led_byte(led: int) -> int:
    return int(LEDIndex.coerce(led))


class CommandBuilder:
    """Builds the 9-byte command buffers.  All methods are pure."""

    @staticmethod
    def fade_to_rgb(r: int, g: int, b: int, fade_ms: int, led: int = LEDIndex.ALL) -> bytes:
        buf = _new_buffer(CMD_FADE_TO_RGB)
        buf[2], buf[3], buf[4] = r & 0xFF, g & 0xFF, b & 0xFF
        buf[5], buf[6] = ms_to_wire_fade(fade_ms)
        buf[7] = _led_byte(led)
        return bytes(buf)

    @staticmethod
    def set_rgb_now(r: int, g: int, b: int, led: int = LEDIndex.ALL) -> bytes:
        buf = _new_buffer(CMD_SET_RGB_NOW)
        buf[2], buf[3], buf[4] = r & 0xFF, g & 0xFF, b & 0xFF
        buf[7] = _led_byte(led)
        return bytes(buf)

    @staticmethod
    def read_rgb(led: int = LEDIndex.ALL) -> bytes:
        buf = _new_buffer(CMD_READ_RGB)
        buf[7] = _led_byte(led)
        return bytes(buf)

    @staticmethod
    def play_loop(play: bool, start: int, end: int, times: int) -> bytes:
        buf = _new_buffer(CMD_PLAY_LOOP)
        buf[2] = bool_to_byte(play)
        buf[3], buf[4] = start & 0xFF, end & 0xFF
        buf[5] = times & 0xFF
        return bytes(buf)

    @staticmethod
    def read_play_state() -> bytes:
        return bytes(_new_buffer(CMD_READ_PLAY_STATE))

    @staticmethod
    def set_led(led: int) -> bytes:
        """LED selector that precedes 'P' on mk2+ devices."""
        buf = _new_buffer(CMD_SET_LED)
        buf[2] = _led_byte(led)
        return bytes(buf)

    @staticmethod
    def set_pattern_line(pos: int, state: LightState) -> bytes:
        buf = _new_buffer(CMD_SET_PATTERN_LINE)
        buf[2], buf[3], buf[4] = state.r, state.g, state.b
        buf[5], buf[6] = ms_to_wire_fade(state.fade_ms)
        buf[7] = pos & 0xFF
        return bytes(buf)

    @staticmethod
    def read_pattern_line(pos: int) -> bytes:
        buf = _new_buffer(CMD_READ_PATTERN_LINE)
        buf[7] = pos & 0xFF
        return bytes(buf)

    @staticmethod
    def save_pattern() -> bytes:
        buf = _new_buffer(CMD_SAVE_PATTERN)
        buf[2:6] = SAVE_PATTERN_MAGIC
        return bytes(buf)

    @staticmethod
    def set_tickle_mode(play: bool, keep: bool, start: int, end: int, timeout_ms: int) -> bytes:
        """Tickle ('D') buffer.

        *end* goes on the wire unchanged here; Device applies the firmware's
        exclusive-end adjustment before calling.
        """
        buf = _new_buffer(CMD_TICKLE_MODE)
        buf[2] = bool_to_byte(play)
        buf[3], buf[4] = ms_to_wire_fade(timeout_ms)
        buf[5] = bool_to_byte(keep)
        buf[6], buf[7] = start & 0xFF, end & 0xFF
        return bytes(buf)

    @staticmethod
    def get_version() -> bytes:
        return bytes(_new_buffer(CMD_GET_VERSION))

    @staticmethod
    def test() -> bytes:
        return bytes(_new_buffer(CMD_TEST))


# =========================================================================
# Response parsers
# =========================================================================

def parse_rgb(resp: bytes) -> Tuple[int, int, int]:
    """'r' response -> (R, G, B)."""
    return resp[2], resp[3], resp[4]


def parse_play_state(resp: bytes) -> PatternState:
    """'S' response -> PatternState (end position exclusive)."""
    return PatternState(
        is_playing=byte_to_bool(resp[2]),
        start_position=resp[3],
        end_position=resp[4],
        repeat_times=resp[5],
        current_position=resp[6],
    )


def parse_pattern_line(resp: bytes) -> LightState:
    """'R' response -> LightState (colors as stored, no gamma undo)."""
    return LightState(
        r=resp[2],
        g=resp[3],
        b=resp[4],
        led=LEDIndex.coerce(resp[7]),
        fade_ms=wire_fade_to_ms(resp[5], resp[6]),
    )


def parse_version(resp: bytes) -> int:
    """'v' response -> major*100 + minor from two ASCII digits."""
    major = resp[3] - ord('0')
    minor = resp[4] - ord('0')
    return major * 100 + minor
