"""User settings and config persistence for b1ctl.

Config is stored at ~/.config/b1ctl/config.json (XDG-compliant).

Usage:
    from b1ctl.conf import get_selected_serial, get_gamma_correction

    get_selected_serial()       # serial picked with 'b1ctl select', or None
    get_gamma_correction()      # degamma colors before sending (default True)
    get_default_fade_ms()       # fade used by 'b1ctl color' without --fade

    # Low-level config access
    from b1ctl.conf import load_config, save_config
"""
from __future__ import annotations

import json
import logging
import os
from typing import Optional

log = logging.getLogger(__name__)

# =========================================================================
# Config file location (XDG-compliant)
# =========================================================================

_XDG_CONFIG = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
CONFIG_DIR = os.path.join(_XDG_CONFIG, 'b1ctl')
CONFIG_PATH = os.path.join(CONFIG_DIR, 'config.json')


# =========================================================================
# Low-level config persistence
# =========================================================================

def load_config() -> dict:
    """Load user config from disk. Returns empty dict on missing/corrupt file."""
    try:
        with open(CONFIG_PATH, 'r') as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return {}
    if not isinstance(config, dict):
        log.warning("Ignoring malformed config at %s", CONFIG_PATH)
        return {}
    return config


def save_config(config: dict):
    """Save user config to disk."""
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_PATH, 'w') as f:
        json.dump(config, f, indent=2)


def _set_key(key: str, value):
    config = load_config()
    config[key] = value
    save_config(config)


# =========================================================================
# Selected device (CLI device selection)
# =========================================================================

def get_selected_serial() -> Optional[str]:
    """Serial of the CLI-selected blink(1). None if unset."""
    return load_config().get('selected_serial') or None


def save_selected_serial(serial: Optional[str]):
    """Persist CLI-selected serial (None clears the selection)."""
    _set_key('selected_serial', serial)


# =========================================================================
# Gamma correction
# =========================================================================

def get_gamma_correction() -> bool:
    """Whether colors are degamma'd before sending. Defaults to True."""
    return bool(load_config().get('gamma_correction', True))


def save_gamma_correction(on: bool):
    _set_key('gamma_correction', bool(on))


# =========================================================================
# Default fade
# =========================================================================

def get_default_fade_ms() -> int:
    """Fade for color commands without an explicit one. Defaults to 0."""
    try:
        return max(0, int(load_config().get('default_fade_ms', 0)))
    except (TypeError, ValueError):
        return 0


def save_default_fade_ms(ms: int):
    _set_key('default_fade_ms', int(ms))
