#!/usr/bin/env python3

__author__ = "Gregory Maynard-Hoare"
__copyright__ = "Copyright (C) 2024 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"
__version__ = "1.0.0"

import logging
import sys
from argparse import ArgumentParser
from vchip import main
from vchip.constants import DEFAULT_KEYMAP
from vchip.platform import PLATFORMS, DEFAULT_PLATFORM, QUIRK_NAMES


def parse_args(argv=None):
    parser = ArgumentParser()
    parser.add_argument("filename", help="ROM to execute (normally ending in .ch8 or .c8)")
    parser.add_argument(
        "-p", "--platform", choices=list(PLATFORMS.keys()), default=DEFAULT_PLATFORM,
        help="set video geometry, speed, and quirks automatically for a historical interpreter"
    )
    parser.add_argument(
        "-t", "--tick_rate", type=int,
        help="override the number of instructions executed per 60Hz frame, regardless of platform"
    )
    parser.add_argument(
        "-r", "--renderer", choices=["pygame", "null"],
        help="set the rendering, input, and audio systems (pygame by default)"
    )
    parser.add_argument(
        "-s", "--scale", type=int,
        help="set the window width in PyGame mode (default 640)"
    )
    parser.add_argument(
        "-m", "--mute", type=int, choices=[0, 1], default=0,
        help="mute the emulated audio.  0 = unmuted (default), 1 = muted"
    )
    parser.add_argument(
        "-k", "--keymap", default=DEFAULT_KEYMAP,
        help="redefine the 16 PyGame keyscan codes.  Separate each decimal with a comma"
    )
    parser.add_argument(
        "--palette",
        help="redefine the background and foreground colours in comma-separated hex, e.g. 000000,33FF66"
    )

    for quirk in QUIRK_NAMES:
        parser.add_argument(
            "--{}".format(quirk), type=int, choices=[0, 1],
            help="manually disable or enable the {} quirk".format(quirk.replace("_", " "))
        )

    parser.add_argument(
        "-d", "--trace", action="store_true", default=False,
        help="enable live instruction trace output (logged at DEBUG level).  Slows CPU execution"
    )
    parser.add_argument(
        "-l", "--log_level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="set the logging level (default WARNING, or DEBUG when tracing)"
    )
    return parser.parse_args(argv)  # Can call sys.exit(2) if args are incorrect


def run(argv=None):
    args = vars(parse_args(argv))
    log_level = args.pop("log_level") or ("DEBUG" if args["trace"] else "WARNING")
    logging.basicConfig(level=log_level, format="%(levelname)s %(name)s: %(message)s")
    # It is possible to start the interpreter from a GUI by calling this with a dictionary
    return main(args)


if __name__ == "__main__":
    sys.exit(run())
