"""Tests for commands -- 9-byte buffer layout and response parsing."""

import pytest

from b1ctl.commands import (
    SAVE_PATTERN_MAGIC,
    CommandBuilder,
    parse_pattern_line,
    parse_play_state,
    parse_rgb,
    parse_version,
)
from b1ctl.constants import CMD_BUF_SIZE, REPORT_ID
from b1ctl.models import LEDIndex, LightState, PatternState

ALL_BUFFERS = [
    CommandBuilder.fade_to_rgb(1, 2, 3, 100, 1),
    CommandBuilder.set_rgb_now(1, 2, 3, 0),
    CommandBuilder.read_rgb(2),
    CommandBuilder.play_loop(True, 0, 11, 5),
    CommandBuilder.read_play_state(),
    CommandBuilder.set_led(1),
    CommandBuilder.set_pattern_line(3, LightState(1, 2, 3)),
    CommandBuilder.read_pattern_line(3),
    CommandBuilder.save_pattern(),
    CommandBuilder.set_tickle_mode(True, False, 0, 12, 3000),
    CommandBuilder.get_version(),
    CommandBuilder.test(),
]


class TestFraming:

    @pytest.mark.parametrize("buf", ALL_BUFFERS)
    def test_size_and_report_id(self, buf):
        assert isinstance(buf, bytes)
        assert len(buf) == CMD_BUF_SIZE
        assert buf[0] == REPORT_ID
        assert buf[8] == 0

    def test_opcodes(self):
        assert bytes(b[1] for b in ALL_BUFFERS) == b"cnrpSlPRWDv!"


class TestBuilders:

    def test_fade_to_rgb(self):
        buf = CommandBuilder.fade_to_rgb(0x10, 0x20, 0x30, 2560, LEDIndex.LED2)
        assert buf == bytes([1, ord('c'), 0x10, 0x20, 0x30, 0x01, 0x00, 2, 0])

    def test_play_loop_masks_times(self):
        buf = CommandBuilder.play_loop(False, 1, 2, 0x1FF)
        assert buf[2:6] == bytes([0, 1, 2, 0xFF])

    def test_set_led(self):
        assert CommandBuilder.set_led(LEDIndex.LED1)[2] == 1

    def test_set_pattern_line(self):
        buf = CommandBuilder.set_pattern_line(7, LightState(9, 8, 7, LEDIndex.LED1, 300))
        # LED is not part of 'P'; mk2+ sends it with 'l' first
        assert buf[2:8] == bytes([9, 8, 7, 0, 30, 7])

    def test_save_pattern_magic(self):
        assert CommandBuilder.save_pattern()[2:6] == SAVE_PATTERN_MAGIC == b"\xbe\xef\xca\xfe"

    def test_tickle_mode_layout(self):
        buf = CommandBuilder.set_tickle_mode(True, True, 2, 6, 1500)
        assert buf[2:8] == bytes([1, 0, 150, 1, 2, 6])


class TestParsers:

    def test_parse_rgb(self):
        assert parse_rgb(bytes([1, ord('r'), 7, 8, 9, 0, 0, 0, 0])) == (7, 8, 9)

    def test_parse_play_state(self):
        st = parse_play_state(bytes([1, ord('S'), 0, 1, 12, 0, 5, 0, 0]))
        assert st == PatternState(is_playing=False, current_position=5,
                                  start_position=1, end_position=12, repeat_times=0)

    def test_parse_pattern_line(self):
        st = parse_pattern_line(bytes([1, ord('R'), 4, 5, 6, 0x01, 0x00, 9, 0]))
        assert st == LightState(4, 5, 6, LEDIndex.ALL, 2560)

    def test_pattern_line_round_trip(self):
        state = LightState(10, 20, 30, LEDIndex.LED2, 1234)
        buf = CommandBuilder.set_pattern_line(5, state)
        # 'R' echo: same RGB and fade bytes, LED in place of the position
        echo = bytes([REPORT_ID, ord('R')]) + buf[2:7] + bytes([state.led, 0])
        assert parse_pattern_line(echo) == LightState(10, 20, 30, LEDIndex.LED2, 1230)

    @pytest.mark.parametrize("major,minor,expected", [("1", "0", 100), ("2", "4", 204), ("3", "0", 300)])
    def test_parse_version(self, major, minor, expected):
        resp = bytes([1, ord('v'), 0, ord(major), ord(minor), 0, 0, 0, 0])
        assert parse_version(resp) == expected
