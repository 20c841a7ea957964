"""
Byte-level conversions between domain values and command buffer fields.

Fade times travel as two big-endian bytes of centiseconds, so every value is
clamped to MAX_FADE_MS and truncated to a multiple of 10 ms on encode.
Colors are degamma'd through a fixed 256-entry table before they are sent.
"""

from __future__ import annotations

from typing import Tuple

from .constants import MAX_FADE_MS, MIN_TIME_MS

# =========================================================================
# Gamma table (blink1-lib.c, GammaE = 255*(res/255).^(1/.45))
# =========================================================================

GAMMA_E: Tuple[int, ...] = (
    0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
    0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 1, 1, 1, 2, 2, 2,
    2, 2, 2, 3, 3, 3, 3, 3, 4, 4, 4, 4, 5, 5, 5, 5,
    6, 6, 6, 7, 7, 7, 8, 8, 8, 9, 9, 9, 10, 10, 11, 11,
    11, 12, 12, 13, 13, 13, 14, 14, 15, 15, 16, 16, 17, 17, 18, 18,
    19, 19, 20, 21, 21, 22, 22, 23, 23, 24, 25, 25, 26, 27, 27, 28,
    29, 29, 30, 31, 31, 32, 33, 34, 34, 35, 36, 37, 37, 38, 39, 40,
    40, 41, 42, 43, 44, 45, 46, 46, 47, 48, 49, 50, 51, 52, 53, 54,
    55, 56, 57, 58, 59, 60, 61, 62, 63, 64, 65, 66, 67, 68, 69, 70,
    71, 72, 73, 74, 76, 77, 78, 79, 80, 81, 83, 84, 85, 86, 88, 89,
    90, 91, 93, 94, 95, 96, 98, 99, 100, 102, 103, 104, 106, 107, 109, 110,
    111, 113, 114, 116, 117, 119, 120, 121, 123, 124, 126, 128, 129, 131, 132, 134,
    135, 137, 138, 140, 142, 143, 145, 146, 148, 150, 151, 153, 155, 157, 158, 160,
    162, 163, 165, 167, 169, 170, 172, 174, 176, 178, 179, 181, 183, 185, 187, 189,
    191, 193, 194, 196, 198, 200, 202, 204, 206, 208, 210, 212, 214, 216, 218, 220,
    222, 224, 227, 229, 231, 233, 235, 237, 239, 241, 244, 246, 248, 250, 252, 255,
)


def degamma(r: int, g: int, b: int) -> Tuple[int, int, int]:
    """Apply gamma correction to an 8-bit RGB triplet.

    Used on every color headed for the device, never on colors read back.
    Not idempotent: degamma(degamma(c)) != degamma(c) for most inputs.
    """
    return GAMMA_E[r & 0xFF], GAMMA_E[g & 0xFF], GAMMA_E[b & 0xFF]


# =========================================================================
# Fade time
# =========================================================================

def ms_to_wire_fade(ms: int) -> Tuple[int, int]:
    """Encode milliseconds as the (hi, lo) centisecond pair.

    Negative values encode as zero, values above MAX_FADE_MS clamp.
    """
    ms = max(0, min(int(ms), MAX_FADE_MS))
    cs = ms // 10
    return (cs >> 8) & 0xFF, cs & 0xFF


def wire_fade_to_ms(hi: int, lo: int) -> int:
    """Decode a (hi, lo) centisecond pair back to milliseconds."""
    return (((hi & 0xFF) << 8) | (lo & 0xFF)) * 10


def actual_fade_ms(ms: int) -> int:
    """Duration the device will really spend on a fade of *ms* milliseconds."""
    if ms > MAX_FADE_MS:
        return MAX_FADE_MS
    if ms < MIN_TIME_MS:
        return 0
    return ms - ms % MIN_TIME_MS


# =========================================================================
# Flags
# =========================================================================

def bool_to_byte(flag: bool) -> int:
    return 1 if flag else 0


def byte_to_bool(value: int) -> bool:
    return value != 0
