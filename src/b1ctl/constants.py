"""Shared constants for the blink(1) protocol.

Values from blink1-lib.c / blink1-tool and the device firmware docs.
"""

# USB IDs (ThingM blink(1), all generations share them)
B1_VID = 0x27B8
B1_PID = 0x01ED

# Feature report framing
REPORT_ID = 0x01        # command report (all generations)
CMD_BUF_SIZE = 9        # report ID + opcode + 6 payload + 1 pad

# Pattern RAM capacity per generation
MAX_PATTERN_MK1 = 12
MAX_PATTERN_MK2 = 32

# Fade time: two bytes of centiseconds -> 0xFFFF * 10 ms (10 min 55.35 s)
MAX_FADE_MS = 0xFFFF * 10

# Play loop repeat count is a single byte
MAX_REPEAT = 0xFF

# Any interval shorter than this is "no time" to the firmware
MIN_TIME_MS = 10

# Spacing between consecutive pattern RAM operations, and retry budget
OPS_INTERVAL_S = 0.030
OPS_TRY_TIMES = 3

# Settle time before reading back the '!' test command
TEST_READ_DELAY_S = 0.050

# Auto tickle period; the device timeout is 150% of it
TICKLE_PERIOD_S = 2.0

# HID class requests (USB HID 1.11, 7.2) for the pyusb backend
HID_REQ_GET_REPORT = 0x01
HID_REQ_SET_REPORT = 0x09
HID_REPORT_TYPE_FEATURE = 0x03
USB_INTERFACE = 0
USB_CONFIGURATION = 1

# Default control transfer timeout (ms)
DEFAULT_TIMEOUT_MS = 1000


def max_pattern_for(generation: int) -> int:
    """Pattern RAM line count for a device generation."""
    if generation >= 2:
        return MAX_PATTERN_MK2
    return MAX_PATTERN_MK1
