#!/usr/bin/env python3

"""
Emulator Host Loop

Drives a session at 60 frames per second.  Every frame, host inputs are
processed and copied into the guest keypad, one frame's worth of instructions
is run and the keypad is cleared again.  The framebuffer is then drawn, and the
buzzer follows the session's tone flag.  Performance figures are shown in the
window title once a second.

The loop ends when the user quits, or when the session switches itself off
because the program finished or faulted.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import logging
from time import perf_counter, sleep
from .constants import APP_NAME, FRAME_FREQ
from .system import SessionState

logger = logging.getLogger(__name__)

FRAME_INTERVAL = 1.0 / FRAME_FREQ


class Emulator:
    def __init__(self, system, renderer, inputs, audio):
        self.system = system
        self.renderer = renderer
        self.inputs = inputs
        self.audio = audio

        # Performance-related vars
        self.perf_counter_fps = 0
        self.perf_counter_ops = 0
        self.next_perf_report_time = 0
        self.report_perf()

    def report_perf(self, fps=0, ops=0):
        title = "{} - {} FPS, {} OPS".format(APP_NAME, fps, ops)
        self.renderer.set_title(title)

    def run_frame(self):
        # Returns False once the emulator should stop
        system = self.system
        commands = self.inputs.process_messages()

        if "quit" in commands:
            return False

        if "pause" in commands:
            system.pause()
            logger.info("Session %s", system.state.value)

        system.set_keys(self.inputs.get_key_states())
        self.perf_counter_ops += system.run_frame()
        system.clear_keys()
        self.renderer.draw_framebuffer(system.machine.framebuffer)
        self.audio.enable_buzzer(system.should_play_tone)
        self.perf_counter_fps += 1

        return system.state is not SessionState.OFF

    def run(self):
        next_frame_time = perf_counter()

        while True:
            this_time = perf_counter()

            # Performance counters
            if this_time >= self.next_perf_report_time:
                self.next_perf_report_time = int(this_time) + 1.0
                self.report_perf(self.perf_counter_fps, self.perf_counter_ops)
                self.perf_counter_ops = 0
                self.perf_counter_fps = 0

            if not self.run_frame():
                break

            # Wait for the next frame.  If we have fallen behind, don't try to catch up.
            next_frame_time = max(next_frame_time + FRAME_INTERVAL, this_time)
            delay = next_frame_time - perf_counter()

            if delay > 0:
                sleep(delay)

        self.audio.enable_buzzer(False)
        return self.system.fault
