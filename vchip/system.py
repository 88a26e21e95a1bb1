#!/usr/bin/env python3

"""
System Session

step() is the per-cycle driver: fetch one opcode, execute it, then count both
timers down.  It is synchronous and never blocks.  Waiting for a key is just
the same instruction being fetched again on the next call.

System wraps one machine for the host.  It owns the session state (running,
paused or off), runs a frame's worth of steps at a time, and turns any machine
error into a session that is switched off with the fault recorded, so nothing a
guest program does can take the host down.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import logging
from enum import Enum
from .cpu import CPU
from .errors import MachineError
from .machine import MachineState

logger = logging.getLogger(__name__)


class SessionState(Enum):
    RUNNING = "running"
    PAUSED = "paused"
    OFF = "off"


def step(cpu, state):
    """
    Runs one fetch-decode-execute-timer cycle.

    Returns None if the program has already finished, otherwise whether the tone
    should be playing during this step.  Machine errors are raised.
    """
    if state.is_finished():
        return None

    opcode = cpu.fetch(state)

    if not cpu.execute(opcode, state):
        # Unrecognised opcodes change nothing, so move past them here
        state.program_counter += 2

    if state.delay_timer > 0:
        state.delay_timer -= 1

    play_tone = state.sound_timer > 0

    if play_tone:
        state.sound_timer -= 1

    return play_tone


class System:
    def __init__(self, platform, cpu=None):
        self.platform = platform
        self.cpu = CPU(platform) if cpu is None else cpu
        self.machine = MachineState(platform)
        self.state = SessionState.OFF
        self.should_play_tone = False
        self.fault = None
        self.steps_executed = 0

    def load(self, program):
        # Every program gets a brand new machine
        machine = MachineState(self.platform)
        machine.load_program(program)
        self.machine = machine
        self.should_play_tone = False
        self.fault = None
        self.steps_executed = 0
        self.state = SessionState.RUNNING
        logger.info("Loaded %d byte program on the %s platform", len(program), self.platform.name)

    def is_running(self):
        return self.state is SessionState.RUNNING

    def pause(self):
        # Toggles between running and paused.  A switched off session stays off.
        if self.state is SessionState.RUNNING:
            self.state = SessionState.PAUSED
            self.should_play_tone = False
        elif self.state is SessionState.PAUSED:
            self.state = SessionState.RUNNING

    def power_off(self):
        self.state = SessionState.OFF
        self.should_play_tone = False

    def step(self):
        # Returns True if an instruction was executed
        if not self.is_running():
            return False

        machine = self.machine

        try:
            play_tone = step(self.cpu, machine)
        except MachineError as error:
            self.fault = error
            self.power_off()
            logger.error(
                "Emulation halted: %s\n%s", error,
                self.cpu.tracer.describe(machine, self.cpu.opcode, "???", verbose=True)
            )
            return False

        if play_tone is None:
            logger.info("Program finished after %d steps", self.steps_executed)
            self.power_off()
            return False

        self.should_play_tone = play_tone
        self.steps_executed += 1
        return True

    def run_frame(self):
        """
        Runs up to one frame of instructions, as set by the platform tick rate.

        Stops early if a sprite draw asked to wait for vertical blank.  Returns
        the number of instructions executed.
        """
        machine = self.machine
        executed = 0

        for _ in range(self.platform.tick_rate):
            if not self.step():
                break

            executed += 1

            if machine.awaiting_vblank:
                break

        machine.awaiting_vblank = False
        return executed

    def set_keys(self, key_states):
        keypad = self.machine.keypad

        for key, key_down in enumerate(key_states):
            keypad[key] = bool(key_down)

    def clear_keys(self):
        keypad = self.machine.keypad

        for key in range(len(keypad)):
            keypad[key] = False

    def render_text(self):
        return self.machine.framebuffer.render_text()
