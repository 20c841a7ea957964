"""Bounded retry for flaky pattern RAM operations."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from .constants import OPS_INTERVAL_S, OPS_TRY_TIMES
from .errors import Blink1Error, DeviceClosedError, ValidationError

log = logging.getLogger(__name__)

T = TypeVar("T")


def retry_workload(
    workload: Callable[[], T],
    attempts: int = OPS_TRY_TIMES,
    interval: float = OPS_INTERVAL_S,
) -> T:
    """Run *workload* until it succeeds, at most *attempts* times.

    Sleeps *interval* seconds after each failed attempt.  Validation errors
    and a closed device are never retried.  When every attempt fails the
    last error is raised.
    """
    last_error: Optional[Blink1Error] = None
    for attempt in range(1, attempts + 1):
        try:
            return workload()
        except (ValidationError, DeviceClosedError):
            raise
        except Blink1Error as e:
            last_error = e
            log.debug("attempt %d/%d failed: %s", attempt, attempts, e)
            # cool down before the next try
            time.sleep(interval)
    if last_error is None:
        raise ValueError(f"attempts must be positive, got {attempts}")
    raise last_error
