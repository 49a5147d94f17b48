"""User settings persistence for cherryrgb.

Config is stored at ~/.config/cherryrgb/config.json (XDG-compliant).

Usage:
    from cherryrgb.conf import get_backend, get_saved_animation

    get_backend()            # 'pyusb' or 'hidapi'
    get_timeout_ms()         # USB round-trip timeout
    get_saved_animation()    # last animation applied from the CLI, or None
"""
from __future__ import annotations

import json
import logging
import os
from typing import Optional

from .device_usb import BACKENDS, DEFAULT_TIMEOUT_MS
from .errors import CherryRgbError
from .models import Brightness, Color, LightingMode, Speed
from .payloads import LedAnimationPayload

log = logging.getLogger(__name__)

# =========================================================================
# Config file location (XDG-compliant)
# =========================================================================

_XDG_CONFIG = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
CONFIG_DIR = os.path.join(_XDG_CONFIG, 'cherryrgb')
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
    return config if isinstance(config, dict) else {}


def save_config(config: dict):
    """Save user config to disk."""
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_PATH, 'w') as f:
        json.dump(config, f, indent=2)


# =========================================================================
# Transport settings
# =========================================================================

def get_backend() -> str:
    """Get preferred USB backend. Defaults to 'pyusb'."""
    backend = load_config().get('backend', 'pyusb')
    if backend not in BACKENDS:
        log.warning("Ignoring unknown backend %r in %s", backend, CONFIG_PATH)
        return 'pyusb'
    return backend


def save_backend(backend: str):
    """Persist preferred USB backend."""
    if backend not in BACKENDS:
        raise ValueError(f"Unknown backend: {backend!r}")
    config = load_config()
    config['backend'] = backend
    save_config(config)


def get_timeout_ms() -> int:
    """Get USB round-trip timeout in milliseconds. Defaults to 1000."""
    value = load_config().get('timeout_ms', DEFAULT_TIMEOUT_MS)
    if isinstance(value, int) and value > 0:
        return value
    return DEFAULT_TIMEOUT_MS


# =========================================================================
# Last applied animation (CLI resume)
# =========================================================================

def save_animation(animation: LedAnimationPayload):
    """Persist an animation so ``cherryrgb resume`` can re-apply it."""
    config = load_config()
    config['animation'] = {
        'mode': animation.mode.alias,
        'brightness': animation.brightness.alias,
        'speed': animation.speed.alias,
        'color': animation.color.to_hex(),
        'rainbow': animation.rainbow,
    }
    save_config(config)


def get_saved_animation() -> Optional[LedAnimationPayload]:
    """Load the last saved animation. Returns None if unset or invalid."""
    entry = load_config().get('animation')
    if not isinstance(entry, dict):
        return None
    try:
        return LedAnimationPayload(
            mode=LightingMode.parse(entry['mode']),
            brightness=Brightness.parse(entry['brightness']),
            speed=Speed.parse(entry['speed']),
            color=Color.from_hex(entry.get('color', '000000')),
            rainbow=bool(entry.get('rainbow', False)),
        )
    except (KeyError, TypeError, AttributeError, CherryRgbError) as e:
        log.warning("Ignoring invalid saved animation: %s", e)
        return None
