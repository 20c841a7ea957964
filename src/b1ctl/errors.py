"""Exception types raised by b1ctl."""


class Blink1Error(Exception):
    """Base class for all blink(1) errors."""


class TransportError(Blink1Error):
    """A feature report write or read failed on the HID handle."""


class DeviceClosedError(Blink1Error):
    """The device session was closed before the operation."""


class DeviceNotFoundError(Blink1Error):
    """No matching blink(1) is connected."""


class ValidationError(Blink1Error, ValueError):
    """Argument rejected before any I/O was attempted."""


class InvalidPositionError(ValidationError):
    """Pattern position (or position range) outside pattern RAM."""


class InvalidRepeatTimesError(ValidationError):
    """Repeat count does not fit in the one-byte play loop field."""


class InvalidTimeoutError(ValidationError):
    """Tickle timeout shorter than the firmware minimum."""
