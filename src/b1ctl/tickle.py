"""
Tickle watchdog threads.

While the host keeps re-arming the device's tickle timer, the device does
nothing; once a timeout passes without a tickle it plays the configured
pattern range (e.g. "host went away, blink red").

``AutoTickle`` re-arms on a fixed period from a daemon thread.
``ManualTickle`` re-arms whenever the caller calls ``tickle()``.
Both send a final disable when stopped, whatever happened before.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from .constants import TICKLE_PERIOD_S
from .device import Device
from .errors import Blink1Error

log = logging.getLogger(__name__)

# Queued by ManualTickle.close() to end the worker
_STOP = object()


def auto_timeout_ms(period_s: float) -> int:
    """Device timeout for a tickle period: 150% of it, so one late tick is tolerated."""
    period_ms = int(period_s * 1000)
    return period_ms + (period_ms >> 1)


class _TickleBase:
    """Shared enable/disable calls.  Device errors are logged, never raised."""

    def __init__(self, device: Device, start: int, end: int, keep: bool):
        self._device = device
        self._start = start
        self._end = end
        self._keep = keep
        self._thread: Optional[threading.Thread] = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _enable(self, timeout_ms: int) -> None:
        try:
            self._device.set_tickle_mode(True, self._keep, self._start, self._end, timeout_ms)
        except Blink1Error as e:
            log.warning("tickle failed: %s", e)

    def _disable(self) -> None:
        try:
            self._device.set_tickle_mode(False, self._keep, 0, 0, 0)
        except Blink1Error as e:
            log.warning("tickle disable failed: %s", e)


class AutoTickle(_TickleBase):
    """Periodic tickle from a background thread.

    The first tickle goes out one period after start().
    """

    def __init__(self, device: Device, start: int, end: int, keep: bool,
                 period_s: float = TICKLE_PERIOD_S):
        super().__init__(device, start, end, keep)
        self._period_s = period_s
        self._timeout_ms = auto_timeout_ms(period_s)
        self._stop_event = threading.Event()
        self._stop_lock = threading.Lock()

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("AutoTickle already started")
        self._thread = threading.Thread(target=self._run, name="b1-auto-tickle", daemon=True)
        self._thread.start()
        log.info("Auto tickle started: loop=[%d,%d] period=%.1fs timeout=%dms",
                 self._start, self._end, self._period_s, self._timeout_ms)

    def stop(self) -> None:
        """Stop the thread and wait for its final disable.  Idempotent."""
        with self._stop_lock:
            first = not self._stop_event.is_set()
            self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        if first:
            log.info("Auto tickle stopped")

    def _run(self) -> None:
        while not self._stop_event.wait(self._period_s):
            self._enable(self._timeout_ms)
        self._disable()


class ManualTickle(_TickleBase):
    """Caller-driven tickle.

    Each tickle() re-arms the device with *timeout_ms*; close() stops the
    worker, which then disables tickle mode.  Usable as a context manager.
    """

    def __init__(self, device: Device, start: int, end: int, timeout_ms: int, keep: bool):
        super().__init__(device, start, end, keep)
        self._timeout_ms = timeout_ms
        self._signals: "queue.Queue[object]" = queue.Queue()
        self._closed = False
        self._close_lock = threading.Lock()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("ManualTickle already started")
        self._thread = threading.Thread(target=self._run, name="b1-manual-tickle", daemon=True)
        self._thread.start()
        log.info("Manual tickle started: loop=[%d,%d] timeout=%dms",
                 self._start, self._end, self._timeout_ms)

    @property
    def closed(self) -> bool:
        return self._closed

    def tickle(self) -> None:
        """Re-arm the device timer.

        Raises:
            RuntimeError: After close().
        """
        if self._closed:
            raise RuntimeError("tickle on closed ManualTickle")
        self._signals.put(None)

    def close(self) -> None:
        """Stop tickling and wait for the final disable.  Idempotent."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
            self._signals.put(_STOP)
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        log.info("Manual tickle stopped")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _run(self) -> None:
        while self._signals.get() is not _STOP:
            self._enable(self._timeout_ms)
        self._disable()
