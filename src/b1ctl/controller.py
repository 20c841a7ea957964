#!/usr/bin/env python3
"""
High-level blink(1) controller.

Wraps a ``Device`` with gamma correction, pattern loading (retry + pacing),
blocking playback, and ownership of the tickle watchdog threads.

Usage::

    from b1ctl import LightState, Pattern, open_controller

    with open_controller() as ctrl:
        ctrl.play_pattern(Pattern(repeat_times=3, sequence=[
            LightState.from_name("red", fade_ms=300),
            LightState.from_name("blue", fade_ms=300),
        ]))
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from typing import Iterable, List, Optional, Tuple

from .codec import actual_fade_ms, degamma
from .color import hsb_to_rgb, parse_color
from .constants import MAX_REPEAT, MIN_TIME_MS, OPS_INTERVAL_S, TICKLE_PERIOD_S
from .device import Device, open_device, open_next_device
from .device_hid import Blink1Info
from .errors import (
    Blink1Error,
    DeviceClosedError,
    InvalidPositionError,
    InvalidRepeatTimesError,
    InvalidTimeoutError,
)
from .models import LEDIndex, LightState, Pattern, PatternState, StateSequence
from .retry import retry_workload
from .tickle import AutoTickle, ManualTickle

log = logging.getLogger(__name__)


def _reraise(e: Blink1Error, context: str) -> Blink1Error:
    """Same error type, message prefixed with the sub-operation that failed."""
    return type(e)(f"b1: {context}: {e}")


class Controller:
    """Task-level API over one blink(1).

    Thread model: the caller issues commands from one thread; at most one
    auto tickle thread runs beside it.  Both go through the Device lock.
    """

    def __init__(self, device: Device, gamma: bool = True,
                 tickle_period_s: float = TICKLE_PERIOD_S):
        self._dev = device
        self._gamma = gamma
        self._tickle_period_s = tickle_period_s
        self._lock = threading.Lock()  # guards gamma flag and tickle handles
        self._auto: Optional[AutoTickle] = None
        self._manual: List[ManualTickle] = []
        self._closed = threading.Event()

    def __repr__(self) -> str:
        return (f"Controller(product={self._dev.product_name!r} "
                f"gen={self._dev.generation} sn={self._dev.serial_number})")

    @property
    def device(self) -> Device:
        return self._dev

    @property
    def max_pattern(self) -> int:
        return self._dev.max_pattern

    # -- Lifecycle ----------------------------------------------------------

    def close(self) -> None:
        """Stop every tickle thread (each sends its final disable), wake any
        blocked playback wait, then close the device.  Idempotent."""
        with self._lock:
            if self._closed.is_set():
                return
            self._closed.set()
            auto, self._auto = self._auto, None
            manual, self._manual = self._manual, []
        if auto is not None:
            auto.stop()
        for handle in manual:
            handle.close()
        self._dev.close()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _wait(self, seconds: Optional[float]) -> None:
        """Sleep *seconds* (None = until close).

        Raises:
            DeviceClosedError: The controller was closed during the wait.
        """
        if self._closed.wait(seconds):
            raise DeviceClosedError("b1: controller closed while waiting")

    # -- Gamma --------------------------------------------------------------

    @property
    def gamma_correction(self) -> bool:
        return self._gamma

    def set_gamma_correction(self, on: bool) -> None:
        """Toggle degamma on colors written by this controller (default on)."""
        with self._lock:
            self._gamma = on

    def _out_rgb(self, r: int, g: int, b: int) -> Tuple[int, int, int]:
        if self._gamma:
            return degamma(r, g, b)
        return r, g, b

    def _out_state(self, st: LightState) -> LightState:
        r, g, b = self._out_rgb(st.r, st.g, st.b)
        return dataclasses.replace(st, r=r, g=g, b=b)

    # -- Colors -------------------------------------------------------------

    def get_firmware_version(self) -> int:
        return self._dev.get_version()

    def play_state(self, st: LightState) -> None:
        """Fade st.led to st's color over st.fade_ms."""
        r, g, b = self._out_rgb(st.r, st.g, st.b)
        self._dev.fade_to_rgb(r, g, b, st.fade_ms, st.led)

    def play_state_blocking(self, st: LightState) -> None:
        """play_state, then wait for the fade to finish."""
        self.play_state(st)
        duration_ms = actual_fade_ms(st.fade_ms)
        if duration_ms > 0:
            self._wait(duration_ms / 1000)

    def play_rgb(self, r: int, g: int, b: int) -> None:
        """Set all LEDs to the color immediately."""
        self._dev.set_rgb_now(*self._out_rgb(r, g, b), led=LEDIndex.ALL)

    def play_hsb(self, hue: float, saturation: float, brightness: float) -> None:
        """Set all LEDs to an HSB color immediately (hue degrees, s/b percent)."""
        self.play_rgb(*hsb_to_rgb(hue, saturation, brightness))

    def play_color(self, color: str) -> None:
        """Set all LEDs to a preset name or hex color immediately."""
        self.play_rgb(*parse_color(color))

    def read_color(self, led: int = LEDIndex.ALL) -> Tuple[int, int, int]:
        """Current (device-side, gamma applied) color of *led*."""
        return self._dev.read_rgb(led)

    # -- Patterns -----------------------------------------------------------

    def is_pos_range_valid(self, start: int, end: int) -> bool:
        """start <= end < max, or end == 0 meaning the last position."""
        mp = self._dev.max_pattern
        return (0 <= start <= end < mp) or (0 <= start < mp and end == 0)

    def _check_range(self, start: int, end: int) -> None:
        if not self.is_pos_range_valid(start, end):
            raise InvalidPositionError(
                f"b1: invalid pattern position range [{start}, {end}] "
                f"for {self._dev.max_pattern} lines"
            )

    def _resolve_end(self, end: int) -> int:
        return end if end != 0 else self._dev.max_pattern - 1

    def _write_line(self, pos: int, st: LightState) -> None:
        try:
            retry_workload(lambda: self._dev.set_pattern_line(pos, st))
        except Blink1Error as e:
            raise _reraise(e, f"failed to set pattern line {pos}") from e

    def _read_line(self, pos: int) -> LightState:
        try:
            return retry_workload(lambda: self._dev.read_pattern_line(pos))
        except Blink1Error as e:
            raise _reraise(e, f"failed to read pattern line {pos}") from e

    def load_pattern(self, start: int, end: int, states: Iterable[LightState]) -> None:
        """Write *states* to pattern RAM from *start* on.

        Stops at the last state or at *end*, whichever comes first; the rest
        of the range is left untouched.  Consecutive writes are spaced by
        OPS_INTERVAL_S since back-to-back RAM writes fail on real devices.
        """
        states = list(states)
        if not states:
            return
        self._check_range(start, end)
        end = self._resolve_end(end)

        positions = range(start, end + 1)
        for n, (pos, st) in enumerate(zip(positions, states)):
            if n:
                time.sleep(OPS_INTERVAL_S)
            self._write_line(pos, self._out_state(st))
        log.debug("load_pattern: wrote %d line(s) from %d",
                  min(len(states), len(positions)), start)

    def play_pattern(self, pattern: Pattern) -> None:
        """Load pattern.sequence (if any) and start playing the loop."""
        start = pattern.start_position
        self._check_range(start, pattern.end_position)
        if not 0 <= pattern.repeat_times <= MAX_REPEAT:
            raise InvalidRepeatTimesError(
                f"b1: invalid pattern repeat times {pattern.repeat_times}"
            )
        end = self._resolve_end(pattern.end_position)

        self.load_pattern(start, end, pattern.sequence)
        self._dev.play_loop(True, start, end, pattern.repeat_times)
        log.info("Playing pattern %s", pattern)

    def play_pattern_blocking(self, pattern: Pattern) -> None:
        """play_pattern, then wait until it should have finished.

        With repeat_times == 0 the pattern loops forever and so does this
        call: it only returns (with DeviceClosedError) once close() is
        called from another thread.

        For finite patterns the wait is the sum of the stored fade times in
        the loop range times repeat_times; the device is not polled.
        """
        self.play_pattern(pattern)

        if pattern.repeat_times == 0:
            log.debug("play_pattern_blocking: infinite repeat, waiting for close")
            self._wait(None)
            return

        start = pattern.start_position
        end = self._resolve_end(pattern.end_position)
        total_ms = sum(self._read_line(pos).fade_ms for pos in range(start, end + 1))
        self._wait(total_ms * pattern.repeat_times / 1000)

    def read_pattern(self) -> StateSequence:
        """Every line of pattern RAM, as stored."""
        return StateSequence(self._read_line(pos) for pos in range(self._dev.max_pattern))

    def write_pattern(self) -> None:
        """Commit pattern RAM to flash (it then plays on power-up)."""
        self._dev.save_pattern()

    def is_pattern_playing(self) -> bool:
        return self._dev.read_play_state().is_playing

    def get_pattern_state(self) -> PatternState:
        return self._dev.read_play_state()

    def stop_playing(self) -> None:
        """Stop any playing pattern and turn all LEDs off.

        Does not stop an auto or manual tickle; the next tickle re-arms the
        device.
        """
        self._dev.set_tickle_mode(False, False, 0, 0, 0)

    # -- Tickle -------------------------------------------------------------

    def start_auto_tickle(self, start: int, end: int, keep_old: bool = False) -> None:
        """Tickle every period (2 s by default) until stop_auto_tickle().

        A running auto tickle is stopped (final disable sent) before the new
        one starts.  If the host stops tickling, the device plays start..end
        after 150% of the period; keep_old keeps the current pattern playing
        meanwhile.
        """
        self._check_range(start, end)
        with self._lock:
            if self._closed.is_set():
                raise DeviceClosedError("b1: controller is closed")
            old, self._auto = self._auto, None
            if old is not None:
                old.stop()
            watchdog = AutoTickle(self._dev, start, end, keep_old, self._tickle_period_s)
            watchdog.start()
            self._auto = watchdog

    def stop_auto_tickle(self) -> None:
        """Stop the auto tickle, if any.  No-op when idle."""
        with self._lock:
            old, self._auto = self._auto, None
        if old is not None:
            old.stop()

    @property
    def auto_tickle_running(self) -> bool:
        auto = self._auto
        return auto is not None and auto.is_alive

    def start_manual_tickle(self, start: int, end: int, timeout_ms: int,
                            keep_old: bool = False) -> ManualTickle:
        """Arm tickle mode driven by the caller.

        Call ``tickle()`` on the returned handle before *timeout_ms* elapses
        or the device plays start..end; ``close()`` it to stop.  The timeout
        must be at least MIN_TIME_MS or the firmware would ignore it.
        """
        self._check_range(start, end)
        if timeout_ms < MIN_TIME_MS:
            raise InvalidTimeoutError(
                f"b1: invalid timeout {timeout_ms}ms, minimum is {MIN_TIME_MS}ms"
            )
        with self._lock:
            if self._closed.is_set():
                raise DeviceClosedError("b1: controller is closed")
            self._manual = [m for m in self._manual if not m.closed]
            handle = ManualTickle(self._dev, start, end, timeout_ms, keep_old)
            handle.start()
            self._manual.append(handle)
        return handle


# =========================================================================
# Opening
# =========================================================================

def open_controller(info: Optional[Blink1Info] = None, serial: Optional[str] = None,
                    gamma: bool = True) -> Controller:
    """Open a controller on *info*, or the first (or *serial*) device found."""
    if info is not None:
        dev = open_device(info)
    else:
        dev = open_next_device(serial)
    return Controller(dev, gamma=gamma)
