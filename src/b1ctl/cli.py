#!/usr/bin/env python3
"""
b1ctl - Command Line Interface

Entry point for the b1ctl package (console script ``b1ctl``).
"""

import argparse
import logging
import sys
import time

from . import conf
from .__version__ import __version__
from .color import name_or_hex, parse_color
from .controller import Controller, open_controller
from .device_hid import find_devices
from .errors import Blink1Error
from .models import LEDIndex, LightState, Pattern, StateSequence

# Errors a command reports as "Error: ..." with exit code 1
_CLI_ERRORS = (Blink1Error, ValueError, OSError)


def _setup_logging(verbose=0):
    """Configure root logging from the -v count (pyusb kept quiet)."""
    if verbose >= 2:
        logging.basicConfig(level=logging.DEBUG, format='[%(levelname)s] %(name)s: %(message)s')
    elif verbose == 1:
        logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING)
    logging.getLogger('usb').setLevel(logging.WARNING)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="b1ctl",
        description="Control blink(1) USB RGB LEDs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    b1ctl list                          List connected devices
    b1ctl color red --fade 500          Fade to red over 0.5s
    b1ctl color '#00FF80' --led 2       Set the bottom LED
    b1ctl hsb 200 80 100                Set an HSB color
    b1ctl play '#FF0000L0T300;#0000FFL0T300' --repeat 5
    b1ctl tickle --start 0 --end 1      Blink the pattern if this process dies
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
    parser.add_argument("--serial", "-s", help="Serial number of the device to use")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("list", help="List connected blink(1) devices")

    select_parser = subparsers.add_parser("select", help="Remember a device as the default")
    select_parser.add_argument("target", metavar="SERIAL", help="Serial number from 'b1ctl list'")

    color_parser = subparsers.add_parser("color", help="Set a color (name or hex)")
    color_parser.add_argument("color", help="Preset name (e.g. red) or hex (e.g. #FF0000)")
    color_parser.add_argument("--led", "-l", type=int, choices=[0, 1, 2], default=0,
                              help="LED: 0=all, 1=top, 2=bottom")
    color_parser.add_argument("--fade", "-f", type=int, default=None,
                              help="Fade time in ms (default from config)")

    hsb_parser = subparsers.add_parser("hsb", help="Set an HSB color on all LEDs")
    hsb_parser.add_argument("hue", type=float, help="Hue in degrees")
    hsb_parser.add_argument("saturation", type=float, help="Saturation 0-100")
    hsb_parser.add_argument("brightness", type=float, help="Brightness 0-100")

    subparsers.add_parser("off", help="Turn all LEDs off")

    read_parser = subparsers.add_parser("read", help="Read the current color")
    read_parser.add_argument("--led", "-l", type=int, choices=[0, 1, 2], default=0)

    play_parser = subparsers.add_parser("play", help="Load and play a light sequence")
    play_parser.add_argument("sequence", help="States like '#FF0000L0T500;#00FF00L0T500'")
    play_parser.add_argument("--start", type=int, default=0, help="First pattern position")
    play_parser.add_argument("--end", type=int, default=0, help="Last position (0 = last)")
    play_parser.add_argument("--repeat", "-r", type=int, default=0,
                             help="Repeat count (0 = forever)")
    play_parser.add_argument("--wait", "-w", action="store_true",
                             help="Block until the pattern finishes")

    subparsers.add_parser("stop", help="Stop the playing pattern and turn LEDs off")
    subparsers.add_parser("pattern", help="Dump pattern RAM")
    subparsers.add_parser("save", help="Save pattern RAM to flash")
    subparsers.add_parser("state", help="Show the pattern play state")
    subparsers.add_parser("version", help="Show the firmware version")

    tickle_parser = subparsers.add_parser(
        "tickle", help="Keep the device calm while running; play a pattern if stopped")
    tickle_parser.add_argument("--start", type=int, default=0, help="First pattern position")
    tickle_parser.add_argument("--end", type=int, default=0, help="Last position (0 = last)")
    tickle_parser.add_argument("--keep", "-k", action="store_true",
                               help="Keep the current pattern playing while tickled")
    tickle_parser.add_argument("--timeout", "-t", type=float, default=0,
                               help="Seconds to keep tickling (0 = until Ctrl-C)")

    gamma_parser = subparsers.add_parser("gamma", help="Turn gamma correction on or off")
    gamma_parser.add_argument("state", choices=["on", "off"])

    subparsers.add_parser("test", help="Send the diagnostic test command")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _setup_logging(args.verbose)
    serial = args.serial

    if args.command == "list":
        return list_devices()
    elif args.command == "select":
        return select_device(args.target)
    elif args.command == "color":
        return set_color(args.color, led=args.led, fade_ms=args.fade, serial=serial)
    elif args.command == "hsb":
        return set_hsb(args.hue, args.saturation, args.brightness, serial=serial)
    elif args.command == "off":
        return turn_off(serial=serial)
    elif args.command == "read":
        return read_color(led=args.led, serial=serial)
    elif args.command == "play":
        return play(args.sequence, start=args.start, end=args.end,
                    repeat=args.repeat, wait=args.wait, serial=serial)
    elif args.command == "stop":
        return stop(serial=serial)
    elif args.command == "pattern":
        return show_pattern(serial=serial)
    elif args.command == "save":
        return save_pattern(serial=serial)
    elif args.command == "state":
        return show_state(serial=serial)
    elif args.command == "version":
        return show_version(serial=serial)
    elif args.command == "tickle":
        return tickle(start=args.start, end=args.end, keep=args.keep,
                      duration_s=args.timeout, serial=serial)
    elif args.command == "gamma":
        return set_gamma(args.state == "on")
    elif args.command == "test":
        return test_device(serial=serial)

    return 0


def _open(serial=None) -> Controller:
    """Open the requested, selected, or first device."""
    return open_controller(serial=serial or conf.get_selected_serial(),
                           gamma=conf.get_gamma_correction())


def list_devices():
    """List connected blink(1) devices."""
    try:
        devices = find_devices()
        if not devices:
            print("No blink(1) device found.")
            return 1

        selected = (conf.get_selected_serial() or "").lower()
        for i, info in enumerate(devices, 1):
            marker = "*" if selected and info.serial.lower() == selected else " "
            print(f"{marker} [{i}] {info.serial or '?'} {info.product or 'blink(1)'} "
                  f"(mk{info.generation}, {info.backend})")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def select_device(serial):
    """Remember *serial* as the default device."""
    try:
        known = [d.serial.lower() for d in find_devices()]
        if serial.lower() not in known:
            print(f"Warning: {serial} is not connected right now.")
        conf.save_selected_serial(serial)
        print(f"Selected: {serial}")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def set_color(color, led=0, fade_ms=None, serial=None):
    """Set a named or hex color on *led*."""
    try:
        r, g, b = parse_color(color)
        if fade_ms is None:
            fade_ms = conf.get_default_fade_ms()
        state = LightState(r, g, b, LEDIndex.coerce(led), fade_ms)
        with _open(serial) as ctrl:
            ctrl.play_state(state)
        print(f"Set {name_or_hex(r, g, b)} on {LEDIndex.coerce(led)}")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def set_hsb(hue, saturation, brightness, serial=None):
    """Set an HSB color on all LEDs."""
    try:
        with _open(serial) as ctrl:
            ctrl.play_hsb(hue, saturation, brightness)
        print(f"Set HSB({hue:g}, {saturation:g}, {brightness:g})")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def turn_off(serial=None):
    """Turn all LEDs off."""
    try:
        with _open(serial) as ctrl:
            ctrl.play_rgb(0, 0, 0)
        print("Off")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def read_color(led=0, serial=None):
    """Print the current color of *led*."""
    try:
        with _open(serial) as ctrl:
            r, g, b = ctrl.read_color(led)
        print(f"{LEDIndex.coerce(led)}: {name_or_hex(r, g, b)} ({r}, {g}, {b})")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def play(sequence, start=0, end=0, repeat=0, wait=False, serial=None):
    """Load *sequence* into pattern RAM and play it."""
    try:
        pattern = Pattern(start_position=start, end_position=end, repeat_times=repeat,
                          sequence=StateSequence.from_text(sequence))
        with _open(serial) as ctrl:
            if wait:
                if repeat == 0:
                    print("Playing forever, Ctrl-C to stop...")
                ctrl.play_pattern_blocking(pattern)
            else:
                ctrl.play_pattern(pattern)
        print(f"Playing {len(pattern.sequence)} state(s), repeat={repeat or 'forever'}")
        return 0
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def stop(serial=None):
    """Stop the playing pattern."""
    try:
        with _open(serial) as ctrl:
            ctrl.stop_playing()
        print("Stopped")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def show_pattern(serial=None):
    """Print every pattern RAM line."""
    try:
        with _open(serial) as ctrl:
            lines = ctrl.read_pattern()
        for pos, state in enumerate(lines):
            print(f"  [{pos:2d}] {state.to_text()}")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def save_pattern(serial=None):
    """Commit pattern RAM to flash."""
    try:
        with _open(serial) as ctrl:
            ctrl.write_pattern()
        print("Pattern saved to flash")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def show_state(serial=None):
    """Print the pattern play state."""
    try:
        with _open(serial) as ctrl:
            st = ctrl.get_pattern_state()
        print(f"Playing:  {'yes' if st.is_playing else 'no'}")
        print(f"Position: {st.current_position}")
        print(f"Range:    {st.start_position}-{st.end_position}")
        print(f"Repeat:   {st.repeat_times}")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def show_version(serial=None):
    """Print the firmware version."""
    try:
        with _open(serial) as ctrl:
            version = ctrl.get_firmware_version()
            print(f"{ctrl.device.product_name or 'blink(1)'} "
                  f"({ctrl.device.serial_number or '?'}): firmware {version}")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def tickle(start=0, end=0, keep=False, duration_s=0, serial=None):
    """Run the auto tickle for *duration_s* seconds (0 = until Ctrl-C).

    A clean exit disarms the device; if the process is killed, the device
    plays start..end once the tickle timeout passes.
    """
    try:
        with _open(serial) as ctrl:
            ctrl.start_auto_tickle(start, end, keep)
            print("Tickling, Ctrl-C to stop...")
            try:
                if duration_s > 0:
                    time.sleep(duration_s)
                else:
                    while True:
                        time.sleep(1)
            except KeyboardInterrupt:
                print("\nInterrupted.")
            ctrl.stop_auto_tickle()
        print("Tickle stopped")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


def set_gamma(on):
    """Persist the gamma correction setting."""
    try:
        conf.save_gamma_correction(on)
        print(f"Gamma correction {'on' if on else 'off'}")
        return 0
    except OSError as e:
        print(f"Error: {e}")
        return 1


def test_device(serial=None):
    """Send the diagnostic test command and print the response."""
    try:
        with _open(serial) as ctrl:
            resp = ctrl.device.test()
        print(f"Test response: {resp.hex(' ')}")
        return 0
    except _CLI_ERRORS as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
