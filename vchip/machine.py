#!/usr/bin/env python3

"""
Machine State

Holds everything the guest program can change: RAM, the 16 V registers, the
index register, the program counter, the call stack, both timers, the
framebuffer and the keypad.  There is no behaviour here beyond keeping those
together and loading a program.

A machine is created fresh for every program.  It is never reset in place, so
powering on again means building a new one, which reseeds the system font.

The host writes the keypad before each step, and reads the framebuffer after.
A machine must only be touched by one thread at a time.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import (
    MEMORY_SIZE, ADDRESS_MASK, FONT_LOCATION, PROGRAM_START, MAX_PROGRAM_SIZE, NUM_REGISTERS, FLAG_REGISTER,
    STACK_DEPTH, NUM_KEYS, SYSTEM_FONT
)
from .errors import MachineError
from .framebuffer import Framebuffer
from .ram import RAM
from .stack import Stack


class ProgramLoadError(MachineError):
    pass


class MachineState:
    def __init__(self, platform):
        self.memory = RAM(MEMORY_SIZE)
        self.memory.write_block(FONT_LOCATION, SYSTEM_FONT)
        self.address_mask = ADDRESS_MASK

        # Bytearrays are mutable, so this is fast when a register is updated, and values are always kept to 8 bits
        self.registers = memoryview(bytearray(NUM_REGISTERS))
        self.index_register = 0
        self.program_counter = PROGRAM_START
        self.stack = Stack(STACK_DEPTH)

        self.delay_timer = 0
        self.sound_timer = 0

        self.framebuffer = Framebuffer(
            platform.video_width, platform.video_height, allow_wrapping=platform.quirks.wrap_sprites
        )
        self.keypad = [False] * NUM_KEYS

        self.program_size = PROGRAM_START
        self.awaiting_vblank = False

    @property
    def vf(self):
        return self.registers[FLAG_REGISTER]

    @vf.setter
    def vf(self, value):
        self.registers[FLAG_REGISTER] = value

    @property
    def stack_pointer(self):
        return self.stack.pointer

    def load_program(self, program):
        program_len = len(program)

        if program_len > MAX_PROGRAM_SIZE:
            raise ProgramLoadError(
                "Program is {} bytes, but only {} bytes are available from 0x{:03x}".format(
                    program_len, MAX_PROGRAM_SIZE, PROGRAM_START
                )
            )

        self.memory.write_block(PROGRAM_START, program)
        self.program_size = program_len + PROGRAM_START

    def is_finished(self):
        return self.program_counter >= self.program_size

    def fetch_in_bounds(self):
        return 0 <= self.program_counter <= MEMORY_SIZE - 2
