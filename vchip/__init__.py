#!/usr/bin/env python3

"""
Main Startup Module

Simply call main(args) to start the interpreter, replacing args with a
dictionary of options.  This can be done via the Terminal or GUI.

All options must be supplied.  Defaults can be specified with a 'None'.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import logging
from .constants import APP_INTRO, APP_COPYRIGHT
from .cpu import CPU
from .emulator import Emulator
from .errors import MachineError
from .hostio import Loader
from .platform import QUIRK_NAMES, get_platform
from .system import System
from .tracer import Tracer

logger = logging.getLogger(__name__)


class StartupError(Exception):
    pass


def main(args):
    print("".join((APP_INTRO, APP_COPYRIGHT)))
    quirk_settings = {quirk: args[quirk] for quirk in QUIRK_NAMES}
    platform = get_platform(args["platform"], tick_rate=args["tick_rate"], **quirk_settings)

    opt_renderer = args["renderer"]
    mute_audio = args["mute"]

    # flake8: noqa: F401
    if opt_renderer is None or opt_renderer == "pygame":
        # pylint: disable=unused-import, import-outside-toplevel, raise-missing-from
        try:
            import pygame
        except ImportError:
            raise StartupError("PyGame does not appear to be installed.  Use the null renderer to run headless.")

        from .inputs.i_pygame import Inputs
        from .renderers.r_pygame import Renderer

        if mute_audio:
            from .audio.a_null import Audio
        else:
            from .audio.a_pygame import Audio
    else:
        # pylint: disable=import-outside-toplevel
        from .inputs.i_null import Inputs
        from .renderers.r_null import Renderer
        from .audio.a_null import Audio

    # Read ROM binary.  Whether it fits is checked when it is loaded into the machine.
    program = Loader().load_binary(args["filename"])

    # Set up the tracer for live output if necessary
    tracer = Tracer(live=args["trace"])
    system = System(platform, cpu=CPU(platform, tracer=tracer))

    try:
        system.load(program)
    except MachineError as error:
        raise StartupError(str(error)) from None

    renderer = Renderer(scale=args["scale"], palette=args["palette"])
    inputs = Inputs(args["keymap"])
    audio = Audio()

    try:
        fault = Emulator(system, renderer, inputs, audio).run()
    finally:
        # The session has ended, so shut down the host framework.  __del__ cannot be relied upon when using PyPy
        audio.shutdown()
        inputs.shutdown()
        renderer.shutdown()

    if fault is not None:
        logger.error("Program stopped with a fault: %s", fault)
        return 1

    return 0
