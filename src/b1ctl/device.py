#!/usr/bin/env python3
"""
blink(1) device session: low-level command API over HID feature reports.

A ``Device`` owns one opened ``HidTransport`` and serializes every logical
operation behind a single lock, including the two-buffer LED-select +
pattern-line write on mk2+ hardware.  After ``close()`` every operation
raises ``DeviceClosedError``.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional, Tuple

from .commands import (
    CommandBuilder,
    parse_pattern_line,
    parse_play_state,
    parse_rgb,
    parse_version,
)
from .constants import CMD_BUF_SIZE, MAX_REPEAT, TEST_READ_DELAY_S, max_pattern_for
from .device_hid import Blink1Info, HidTransport, find_devices, is_blink1, make_transport
from .errors import (
    DeviceClosedError,
    DeviceNotFoundError,
    InvalidPositionError,
    InvalidRepeatTimesError,
    TransportError,
)
from .models import LEDIndex, LightState, PatternState

log = logging.getLogger(__name__)

# Exceptions the HID backends raise on I/O failure (usb.core.USBError is an OSError)
_BACKEND_ERRORS = (OSError, RuntimeError, ValueError)


class Device:
    """One open blink(1).

    Generation and identity are fixed at open time and need no locking.
    """

    def __init__(self, transport: HidTransport, info: Blink1Info):
        self._transport = transport
        self._info = info
        self._lock = threading.Lock()
        self._closed = False

    def __repr__(self) -> str:
        return (f"Device(product={self._info.product!r} gen={self.generation} "
                f"sn={self._info.serial})")

    # -- Identity ---------------------------------------------------------

    @property
    def info(self) -> Blink1Info:
        return self._info

    @property
    def product_name(self) -> str:
        return self._info.product

    @property
    def generation(self) -> int:
        return self._info.generation

    @property
    def serial_number(self) -> str:
        return self._info.serial

    @property
    def max_pattern(self) -> int:
        """Pattern RAM line count (12 on mk1, 32 on mk2+)."""
        return max_pattern_for(self.generation)

    @property
    def is_closed(self) -> bool:
        return self._closed

    # -- Lifecycle ----------------------------------------------------------

    def close(self) -> None:
        """Close the transport.  Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._transport.close()
            except _BACKEND_ERRORS as e:
                log.debug("%r: transport close: %s", self, e)
        log.info("Closed %r", self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # -- Primitives (all hold the lock for the whole operation) --------------

    def _check_open(self) -> None:
        if self._closed:
            raise DeviceClosedError(f"b1: device {self._info.serial or '?'} is closed")

    def _send(self, buf: bytes, op: str) -> None:
        log.debug("%s -> %s", op, buf.hex(' '))
        try:
            self._transport.write_feature(buf)
        except _BACKEND_ERRORS as e:
            raise TransportError(f"b1: {op} fail: {e}") from e

    def _receive(self, buf: bytes) -> bytes:
        try:
            resp = self._transport.read_feature(buf[0], len(buf))
        except _BACKEND_ERRORS as e:
            raise TransportError(f"b1: read fail: {e}") from e
        if len(resp) < CMD_BUF_SIZE:
            raise TransportError(f"b1: read fail: short response ({len(resp)} bytes)")
        log.debug("read <- %s", resp.hex(' '))
        return resp

    def _write(self, buf: bytes) -> None:
        with self._lock:
            self._check_open()
            self._send(buf, "write")

    def _double_write(self, buf1: bytes, buf2: bytes) -> None:
        """Two writes under one lock acquisition, nothing in between."""
        with self._lock:
            self._check_open()
            self._send(buf1, "write buf1")
            self._send(buf2, "write buf2")

    def _read(self, buf: bytes) -> bytes:
        """Send *buf* then read the response back."""
        with self._lock:
            self._check_open()
            self._send(buf, "write")
            return self._receive(buf)

    def _delay_read(self, buf: bytes, delay_s: float) -> bytes:
        """Like _read, but waits *delay_s* between the write and the read."""
        with self._lock:
            self._check_open()
            self._send(buf, "write")
            if delay_s > 0:
                time.sleep(delay_s)
            return self._receive(buf)

    def _check_pattern_pos(self, pos: int) -> None:
        """Position must be in [0, max_pattern).

        The firmware itself does not check, but a bad position makes the
        device play from arbitrary RAM.
        """
        max_pos = self.max_pattern
        if not 0 <= pos < max_pos:
            raise InvalidPositionError(
                f"b1: pattern position {pos} is out of range [0, {max_pos})"
            )

    # -- Commands -------------------------------------------------------------

    def fade_to_rgb(self, r: int, g: int, b: int, fade_ms: int,
                    led: int = LEDIndex.ALL) -> None:
        """Fade *led* to the color over *fade_ms* (below 10 ms means no fade).

        Colors go out as given; gamma correction is the caller's job.
        """
        self._write(CommandBuilder.fade_to_rgb(r, g, b, fade_ms, led))

    def set_rgb_now(self, r: int, g: int, b: int, led: int = LEDIndex.ALL) -> None:
        """Set *led* to the color immediately.

        Firmware quirk: on mk2+ devices a non-zero *led* makes this command
        set all LEDs to white (255, 255, 255), ignoring the color.  Use
        fade_to_rgb with fade_ms=0 to address a single LED.
        """
        self._write(CommandBuilder.set_rgb_now(r, g, b, led))

    def read_rgb(self, led: int = LEDIndex.ALL) -> Tuple[int, int, int]:
        """Current color of *led*.  On mk2+, led 0 reports the first LED."""
        return parse_rgb(self._read(CommandBuilder.read_rgb(led)))

    def play_loop(self, play: bool, start: int, end: int, times: int) -> None:
        """Start or stop playing pattern RAM from *start* to *end* inclusive.

        end=0 means the last position.  start > end is not rejected: the
        device wraps from start to the last position, then 0 to end.
        times=0 loops forever; the count must fit in one byte.
        """
        self._check_pattern_pos(start)
        self._check_pattern_pos(end)
        if not 0 <= times <= MAX_REPEAT:
            raise InvalidRepeatTimesError(
                f"b1: repeat times {times} is out of range [0, {MAX_REPEAT}]"
            )
        if end == 0:
            end = self.max_pattern - 1
        self._write(CommandBuilder.play_loop(play, start, end, times))

    def read_play_state(self) -> PatternState:
        return parse_play_state(self._read(CommandBuilder.read_play_state()))

    def set_pattern_line(self, pos: int, state: LightState) -> None:
        """Store *state* at *pos* in pattern RAM.

        mk2+ devices take the LED from a preceding 'l' command; both buffers
        go out under one lock so nothing can interleave.
        """
        self._check_pattern_pos(pos)
        line = CommandBuilder.set_pattern_line(pos, state)
        if self.generation >= 2:
            self._double_write(CommandBuilder.set_led(state.led), line)
        else:
            self._write(line)

    def read_pattern_line(self, pos: int) -> LightState:
        self._check_pattern_pos(pos)
        return parse_pattern_line(self._read(CommandBuilder.read_pattern_line(pos)))

    def save_pattern(self) -> None:
        """Commit pattern RAM to flash.

        The device always fails this transfer: flash programming stalls USB
        long enough for the control request to time out.  That error is
        expected and is dropped here, the only place an I/O error is.
        """
        try:
            self._write(CommandBuilder.save_pattern())
        except TransportError as e:
            log.debug("save_pattern: expected transport error ignored: %s", e)

    def set_tickle_mode(self, play: bool, keep: bool, start: int, end: int,
                        timeout_ms: int) -> None:
        """Arm (play=True) or disarm the device's tickle watchdog.

        If not tickled again within *timeout_ms* the device plays start..end.
        Unlike play_loop, the firmware treats the end as exclusive here, so a
        non-zero end is sent as end+1 and end=0 becomes max_pattern.
        """
        self._check_pattern_pos(start)
        self._check_pattern_pos(end)
        if end == 0:
            end = self.max_pattern
        else:
            end += 1
        self._write(CommandBuilder.set_tickle_mode(play, keep, start, end, timeout_ms))

    def get_version(self) -> int:
        """Firmware version as major*100 + minor (e.g. 204)."""
        return parse_version(self._read(CommandBuilder.get_version()))

    def test(self) -> bytes:
        """Diagnostic echo; returns the raw response."""
        return self._delay_read(CommandBuilder.test(), TEST_READ_DELAY_S)


# =========================================================================
# Opening
# =========================================================================

def open_device(info: Blink1Info, transport: Optional[HidTransport] = None) -> Device:
    """Open the blink(1) described by *info*.

    Raises:
        ValueError: *info* is not a blink(1).
        TransportError: The backend could not open it.
    """
    if not is_blink1(info):
        raise ValueError(f"device is not blink(1): {info!r}")
    if transport is None:
        transport = make_transport(info)
    try:
        transport.open()
    except _BACKEND_ERRORS as e:
        raise TransportError(f"b1: open fail: {e}") from e
    dev = Device(transport, info)
    log.info("Opened %r via %s", dev, info.backend or type(transport).__name__)
    return dev


def open_next_device(serial: Optional[str] = None) -> Device:
    """Open the first connected blink(1), or the one with *serial*."""
    for info in find_devices():
        if serial and info.serial.lower() != serial.lower():
            continue
        return open_device(info)
    if serial:
        raise DeviceNotFoundError(f"b1: device {serial} not found")
    raise DeviceNotFoundError("b1: device not found")
