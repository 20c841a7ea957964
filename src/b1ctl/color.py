"""
Color helpers: hex/RGB/HSB conversions and the preset color names.

All tables are built once at import time and never mutated afterwards.
"""

from __future__ import annotations

import math
import re
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

RGB = Tuple[int, int, int]

# =========================================================================
# Preset colors
# =========================================================================

PRESET_COLORS: Mapping[str, RGB] = MappingProxyType({
    "apricot": (0xFB, 0xCE, 0xB1),
    "aqua": (0x00, 0xFF, 0xFF),
    "beige": (0xF5, 0xF5, 0xDC),
    "black": (0x00, 0x00, 0x00),
    "blue": (0x00, 0x00, 0xFF),
    "bronze": (0xCD, 0x7F, 0x32),
    "brown": (0xA5, 0x2A, 0x2A),
    "cyan": (0x00, 0xFF, 0xFF),
    "fuchsia": (0xFF, 0x00, 0xFF),
    "gold": (0xFF, 0xD7, 0x00),
    "gray": (0x80, 0x80, 0x80),
    "green": (0x00, 0xFF, 0x00),
    "grey": (0x80, 0x80, 0x80),
    "indigo": (0x4B, 0x00, 0x82),
    "lavender": (0xE6, 0xE6, 0xFA),
    "lime": (0x00, 0x80, 0x00),
    "magenta": (0xFF, 0x00, 0xFF),
    "maroon": (0x80, 0x00, 0x00),
    "mint": (0x16, 0x98, 0x2B),
    "navy": (0x00, 0x00, 0x80),
    "olive": (0x80, 0x80, 0x00),
    "orange": (0xFF, 0xA5, 0x00),
    "peach": (0xFF, 0xE5, 0xB4),
    "pink": (0xFF, 0xC0, 0xCB),
    "plum": (0x8E, 0x45, 0x85),
    "purple": (0x80, 0x00, 0x80),
    "red": (0xFF, 0x00, 0x00),
    "scarlet": (0xFF, 0x24, 0x00),
    "silver": (0xC0, 0xC0, 0xC0),
    "teal": (0x00, 0x80, 0x80),
    "violet": (0x80, 0x00, 0xFF),
    "white": (0xFF, 0xFF, 0xFF),
    "yellow": (0xFF, 0xFF, 0x00),
})

# Aliases share a value with a canonical name; reverse lookups skip them
_ALIASES = frozenset({"aqua", "fuchsia", "grey"})

RAINBOW_COLORS: Tuple[RGB, ...] = tuple(
    PRESET_COLORS[n] for n in ("red", "orange", "yellow", "green", "cyan", "blue", "violet")
)

_HEX_NAMES: Mapping[str, str] = MappingProxyType({
    "#%02X%02X%02X" % rgb: name
    for name, rgb in PRESET_COLORS.items()
    if name not in _ALIASES
})

_COLOR_NAMES: Tuple[str, ...] = tuple(sorted(PRESET_COLORS))


def color_names() -> List[str]:
    """Sorted list of every preset color name (aliases included)."""
    return list(_COLOR_NAMES)


def color_by_name(name: str) -> Optional[RGB]:
    """Look up a preset color; case and surrounding whitespace are ignored."""
    return PRESET_COLORS.get(name.strip().lower())


def name_by_color(r: int, g: int, b: int) -> Tuple[str, bool]:
    """Return (name, True) for a preset color, else (hex string, False)."""
    hx = rgb_to_hex(r, g, b)
    name = _HEX_NAMES.get(hx)
    if name is None:
        return hx, False
    return name, True


def name_or_hex(r: int, g: int, b: int) -> str:
    return name_by_color(r, g, b)[0]


# =========================================================================
# Hex
# =========================================================================

_HEX_RE = re.compile(r"^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """(255, 0, 0) -> '#FF0000'"""
    return "#%02X%02X%02X" % (r & 0xFF, g & 0xFF, b & 0xFF)


def hex_to_rgb(hex_str: str) -> RGB:
    """Parse #RRGGBB, #RGB, RRGGBB or RGB (case insensitive).

    Raises:
        ValueError: On any other format.
    """
    m = _HEX_RE.match(hex_str.strip())
    if not m:
        raise ValueError(f"invalid hex color: {hex_str!r}")
    digits = m.group(1)
    if len(digits) == 3:
        r, g, b = (int(c, 16) * 0x11 for c in digits)
    else:
        r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
    return r, g, b


def parse_color(text: str) -> RGB:
    """Resolve a preset name or a hex string to RGB."""
    rgb = color_by_name(text)
    if rgb is not None:
        return rgb
    return hex_to_rgb(text)


# =========================================================================
# HSB
# =========================================================================

def _round_half_away(n: float) -> int:
    if n < 0:
        return int(n - 0.5)
    return int(n + 0.5)


def hsb_to_rgb(hue: float, saturation: float, brightness: float) -> RGB:
    """Convert HSB/HSV to 8-bit RGB.

    Hue is in degrees (wraps at 360); saturation and brightness are percent
    and are clamped to [0, 100].  Negative hues wrap too, so -120 is 240.
    """
    h = math.fmod(hue, 360) / 60
    s = max(0.0, min(100.0, saturation)) / 100
    v = max(0.0, min(100.0, brightness)) / 100

    i = math.floor(h)
    f = h - i
    p = v * (1 - s)
    q = v * (1 - s * f)
    t = v * (1 - s * (1 - f))

    sector = int(i) % 6
    if sector == 0:
        rf, gf, bf = v, t, p
    elif sector == 1:
        rf, gf, bf = q, v, p
    elif sector == 2:
        rf, gf, bf = p, v, t
    elif sector == 3:
        rf, gf, bf = p, q, v
    elif sector == 4:
        rf, gf, bf = t, p, v
    else:
        rf, gf, bf = v, p, q

    return tuple(_round_half_away(c * 255) & 0xFF for c in (rf, gf, bf))  # type: ignore[return-value]
