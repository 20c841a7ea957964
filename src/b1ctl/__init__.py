"""
b1ctl - blink(1) USB RGB LED control

Drives ThingM blink(1) devices over HID feature reports.

Features:
- Immediate and faded color changes, per LED on mk2+
- Pattern RAM load/read/play/save
- Tickle watchdog (auto or caller-driven)
- Gamma correction and preset color names

Usage:
    # As a library
    from b1ctl import LightState, open_controller
    with open_controller() as ctrl:
        ctrl.play_state(LightState.from_name("orange", fade_ms=500))

    # Command line
    b1ctl list            # List connected devices
    b1ctl color red       # Set all LEDs red
"""

from b1ctl.__version__ import __version__

# Core exports
from b1ctl.controller import Controller, open_controller
from b1ctl.device import Device, open_device, open_next_device
from b1ctl.device_hid import Blink1Info, find_devices
from b1ctl.errors import (
    Blink1Error,
    DeviceClosedError,
    DeviceNotFoundError,
    InvalidPositionError,
    InvalidRepeatTimesError,
    InvalidTimeoutError,
    TransportError,
    ValidationError,
)
from b1ctl.models import LEDIndex, LightState, Pattern, PatternState, StateSequence
from b1ctl.tickle import AutoTickle, ManualTickle

# Colors
from b1ctl.color import color_by_name, hsb_to_rgb, parse_color, rgb_to_hex

__all__ = [
    # Version
    "__version__",
    # Core
    "Controller",
    "open_controller",
    "Device",
    "open_device",
    "open_next_device",
    "Blink1Info",
    "find_devices",
    # Data
    "LEDIndex",
    "LightState",
    "Pattern",
    "PatternState",
    "StateSequence",
    # Tickle
    "AutoTickle",
    "ManualTickle",
    # Colors
    "color_by_name",
    "hsb_to_rgb",
    "parse_color",
    "rgb_to_hex",
    # Errors
    "Blink1Error",
    "TransportError",
    "DeviceClosedError",
    "DeviceNotFoundError",
    "ValidationError",
    "InvalidPositionError",
    "InvalidRepeatTimesError",
    "InvalidTimeoutError",
]
