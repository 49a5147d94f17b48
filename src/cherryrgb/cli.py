#!/usr/bin/env python3
"""
cherryrgb - Command Line Interface

Entry point for the cherryrgb package.
"""

import argparse
import logging
import sys

from cherryrgb.__version__ import __version__


def _setup_logging(verbose=0):
    """Configure logging from -v count (pyusb's own logger stays quiet)."""
    if verbose >= 2:
        logging.basicConfig(level=logging.DEBUG, format='[%(levelname)s] %(name)s: %(message)s')
        logging.getLogger('usb').setLevel(logging.WARNING)
    elif verbose == 1:
        logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING, format='[%(levelname)s] %(message)s')


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="cherryrgb",
        description="RGB lighting control for the CHERRY G80-3000N RGB TKL keyboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    cherryrgb list                              Show modes, speeds, brightness
    cherryrgb animation wave slow -c ff00ff     Purple wave
    cherryrgb animation spectrum fast -b high   Spectrum at high brightness
    cherryrgb custom-colors ff0000 00ff00       First two keys red, green
    cherryrgb reset                             Turn custom key colors off
    cherryrgb resume                            Re-apply the last animation
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v, -vv)"
    )
    parser.add_argument(
        "--backend",
        choices=("pyusb", "hidapi"),
        help="USB backend (default: from config, else pyusb)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Animation command
    anim_parser = subparsers.add_parser("animation", help="Set a lighting mode")
    anim_parser.add_argument("mode", help="Lighting mode (see 'cherryrgb list')")
    anim_parser.add_argument("speed", help="Animation speed (very_fast .. very_slow)")
    anim_parser.add_argument("--brightness", "-b", default="full", help="Brightness (off .. full)")
    anim_parser.add_argument("--color", "-c", help="Hex color code (e.g., ff0000 for red)")
    anim_parser.add_argument("--rainbow", "-r", action="store_true", help="Enable rainbow colors")

    # Custom colors command
    custom_parser = subparsers.add_parser("custom-colors", help="Set individual key colors")
    custom_parser.add_argument("colors", nargs="+", help="Hex colors in key order (max 126)")

    # Reset command
    subparsers.add_parser("reset", help="Turn all custom key colors off")

    # Fetch state command
    subparsers.add_parser("fetch-state", help="Replay the vendor tool's state query")

    # Resume command
    subparsers.add_parser("resume", help="Re-apply the last animation set from the CLI")

    # List command
    subparsers.add_parser("list", help="List modes, speeds and brightness levels")

    # Detect command
    subparsers.add_parser("detect", help="Detect connected keyboards")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _setup_logging(args.verbose)

    if args.command == "list":
        return list_options()
    elif args.command == "detect":
        return detect()
    elif args.command == "animation":
        return set_animation(args.mode, args.speed, brightness=args.brightness,
                             color=args.color, rainbow=args.rainbow, backend=args.backend)
    elif args.command == "custom-colors":
        return custom_colors(args.colors, backend=args.backend)
    elif args.command == "reset":
        return reset(backend=args.backend)
    elif args.command == "fetch-state":
        return fetch_state(backend=args.backend)
    elif args.command == "resume":
        return resume(backend=args.backend)

    return 0


# =========================================================================
# Helpers
# =========================================================================

def _open_keyboard(backend=None):
    """Open the keyboard using the given or configured backend."""
    from cherryrgb.conf import get_backend, get_timeout_ms
    from cherryrgb.device_usb import open_transport
    from cherryrgb.keyboard import CherryKeyboard

    transport = open_transport(backend or get_backend(), timeout=get_timeout_ms())
    return CherryKeyboard(transport)


def _run(action, backend=None):
    """Open the keyboard, run *action(keyboard)*, always close the transport."""
    from cherryrgb.errors import CherryRgbError

    log = logging.getLogger(__name__)
    try:
        keyboard = _open_keyboard(backend)
    except (CherryRgbError, ImportError) as e:
        log.error("%s", e)
        return 1

    try:
        action(keyboard)
        return 0
    except CherryRgbError as e:
        log.error("%s", e)
        return 1
    finally:
        keyboard.transport.close()


# =========================================================================
# Commands
# =========================================================================

def list_options():
    """Print available modes, speeds and brightness levels."""
    from cherryrgb.models import MODE_FEATURES, UNOFFICIAL_MODES, Brightness, LightingMode, Speed

    print("Modes:")
    print(f"  {'Name':<12} {'Color':<6} {'Speed':<6}")
    for mode in LightingMode:
        color, speed = MODE_FEATURES[mode]
        note = " (unofficial)" if mode in UNOFFICIAL_MODES else ""
        print(f"  {mode.alias:<12} {'yes' if color else '-':<6} {'yes' if speed else '-':<6}{note}")
    print(f"\nSpeeds:     {', '.join(Speed.aliases())}")
    print(f"Brightness: {', '.join(Brightness.aliases())}")
    return 0


def detect():
    """List connected keyboards."""
    from cherryrgb.device_usb import find_devices
    from cherryrgb.errors import CherryRgbError

    try:
        devices = find_devices()
    except CherryRgbError as e:
        logging.getLogger(__name__).error("%s", e)
        return 1
    if not devices:
        print("No CHERRY G80-3000N RGB TKL keyboard detected.")
        return 1
    for i, dev in enumerate(devices, 1):
        where = dev.get('path') or f"bus {dev.get('bus')} address {dev.get('address')}"
        print(f"[{i}] {dev['vid']:04x}:{dev['pid']:04x} {where} ({dev['backend']})")
    return 0


def set_animation(mode, speed, brightness="full", color=None, rainbow=False, backend=None):
    """Apply a lighting mode and remember it for 'resume'."""
    from cherryrgb.conf import save_animation
    from cherryrgb.errors import CherryRgbError
    from cherryrgb.models import Brightness, Color, LightingMode, Speed
    from cherryrgb.payloads import LedAnimationPayload

    try:
        animation = LedAnimationPayload(
            mode=LightingMode.parse(mode),
            brightness=Brightness.parse(brightness),
            speed=Speed.parse(speed),
            color=Color.from_hex(color) if color else Color(),
            rainbow=rainbow,
        )
    except CherryRgbError as e:
        print(f"Error: {e}")
        return 1

    result = _run(lambda kb: kb.set_led_animation(
        animation.mode, animation.brightness, animation.speed,
        animation.color, animation.rainbow), backend)
    if result == 0:
        save_animation(animation)
        print(f"Animation set: {animation.mode.alias}")
    return result


def custom_colors(colors, backend=None):
    """Set per-key colors from a list of hex strings."""
    from cherryrgb.errors import CherryRgbError
    from cherryrgb.models import Color
    from cherryrgb.payloads import CustomKeyLeds

    try:
        key_leds = CustomKeyLeds.from_colors(Color.from_hex(c) for c in colors)
    except CherryRgbError as e:
        print(f"Error: {e}")
        return 1

    result = _run(lambda kb: kb.set_custom_colors(key_leds), backend)
    if result == 0:
        print(f"Custom colors set ({len(colors)} keys)")
    return result


def reset(backend=None):
    """Turn all custom key colors off."""
    result = _run(lambda kb: kb.reset_custom_colors(), backend)
    if result == 0:
        print("Custom colors reset")
    return result


def fetch_state(backend=None):
    """Replay the state query and dump the raw responses."""
    def action(kb):
        for i, response in enumerate(kb.fetch_device_state()):
            print(f"  [{i:2}] {response.hex()}")

    return _run(action, backend)


def resume(backend=None):
    """Re-apply the last animation saved by 'cherryrgb animation'."""
    from cherryrgb.conf import get_saved_animation

    animation = get_saved_animation()
    if animation is None:
        print("No saved animation. Use 'cherryrgb animation' first.")
        return 1

    result = _run(lambda kb: kb.set_led_animation(
        animation.mode, animation.brightness, animation.speed,
        animation.color, animation.rainbow), backend)
    if result == 0:
        print(f"Animation restored: {animation.mode.alias}")
    return result


if __name__ == "__main__":
    sys.exit(main())
