#!/usr/bin/env python3

"""
CPU Emulator

Like a real computer, this is where most of the processing happens.  Each
opcode is split into four nibbles (c, x, y, n) plus the low byte (nn) and the
low 12 bits (nnn), then looked up in a table keyed by its canonical bit
pattern.  The first nibble picks a family, and the families that share a first
nibble (0, 5, 8, 9, E and F) are told apart by masking in the low nibble or low
byte as well.

Unless an instruction sets the program counter itself (jumps, calls, returns
and the key wait), it moves on by 2.  Skips always move on by 2, then by 2 more
when their condition holds.

Unknown opcodes are logged and otherwise ignored.  They change nothing, not
even the program counter, and execute() reports them by returning False so the
step loop can move past them.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import logging
from collections import namedtuple
from functools import partial
from random import randint
from .constants import FONT_LOCATION, NUM_KEYS
from .errors import MachineError
from .tracer import Tracer

logger = logging.getLogger(__name__)

CPU_ENDIAN = "big"  # CHIP-8 is big-endian
INDEX_MASK = 0xFFFF  # The index register is 16 bits wide

# Masks selecting the bits that identify an instruction within each family.  Families not listed here only need
# their first nibble.
FAMILY_MASKS = {
    0x0: 0xFFFF,
    0x5: 0xF00F,
    0x8: 0xF00F,
    0x9: 0xF00F,
    0xE: 0xF0FF,
    0xF: 0xF0FF
}

Operands = namedtuple("Operands", ("opcode", "c", "x", "y", "n", "nn", "nnn"))


class ProgramCounterError(MachineError):
    pass


class CPU:
    def __init__(self, platform, random_byte=None, tracer=None):
        self.platform = platform
        self.quirks = platform.quirks
        # Any callable returning 0-255.  Tests supply a fixed sequence here.
        self.random_byte = partial(randint, 0, 0xFF) if random_byte is None else random_byte
        self.tracer = Tracer() if tracer is None else tracer
        self.live_trace = self.tracer.is_live()
        self.opcode = 0  # Last opcode fetched, for fault reports

        # Define instruction pointers, keyed on the canonical bit pattern.
        # n = Nibble
        # kk = Byte
        # nnn = address
        # x/y = register (0-15)
        self.instructions = {
            0x00E0: self._00E0,
            0x00EE: self._00EE,
            0x1000: self._1nnn,
            0x2000: self._2nnn,
            0x3000: self._3xkk,
            0x4000: self._4xkk,
            0x5000: self._5xy0,
            0x6000: self._6xkk,
            0x7000: self._7xkk,
            0x8000: self._8xy0,
            0x8001: self._8xy1,
            0x8002: self._8xy2,
            0x8003: self._8xy3,
            0x8004: self._8xy4,
            0x8005: self._8xy5,
            0x8006: self._8xy6,
            0x8007: self._8xy7,
            0x800E: self._8xyE,
            0x9000: self._9xy0,
            0xA000: self._Annn,
            0xB000: self._Bnnn,
            0xC000: self._Cxkk,
            0xD000: self._Dxyn,
            0xE09E: self._Ex9E,
            0xE0A1: self._ExA1,
            0xF007: self._Fx07,
            0xF00A: self._Fx0A,
            0xF015: self._Fx15,
            0xF018: self._Fx18,
            0xF01E: self._Fx1E,
            0xF029: self._Fx29,
            0xF033: self._Fx33,
            0xF055: self._Fx55,
            0xF065: self._Fx65
        }

    def fetch(self, state):
        if not state.fetch_in_bounds():
            raise ProgramCounterError(
                "Program counter 0x{:04x} is outside of memory".format(state.program_counter)
            )

        self.opcode = int.from_bytes(state.memory.read_block(state.program_counter, 2), CPU_ENDIAN, signed=False)
        return self.opcode

    @staticmethod
    def decode(opcode):
        return Operands(
            opcode,
            (opcode & 0xF000) >> 12,
            (opcode & 0xF00) >> 8,
            (opcode & 0xF0) >> 4,
            opcode & 0xF,
            opcode & 0xFF,
            opcode & 0xFFF
        )

    def lookup(self, opcode):
        mask = FAMILY_MASKS.get(opcode >> 12, 0xF000)
        return self.instructions.get(opcode & mask)

    def execute(self, opcode, state):
        # Returns False if the opcode is not recognised
        instruction = self.lookup(opcode)

        if instruction is None:
            logger.warning("Unknown opcode 0x%04x at address 0x%03x ignored", opcode, state.program_counter)
            return False

        instruction(state, self.decode(opcode))
        return True

    def trace(self, state, op, instruction):
        self.tracer.output(state, op.opcode, instruction)

    @staticmethod
    def _advance(state):
        state.program_counter += 2

    def _skip_if(self, state, condition):
        self._advance(state)

        if condition:
            self._advance(state)

    def _00E0(self, state, op):  # CLS
        if self.live_trace:
            self.trace(state, op, "CLS")

        state.framebuffer.clear()
        self._advance(state)

    def _00EE(self, state, op):  # RET
        if self.live_trace:
            self.trace(state, op, "RET")

        # The stack holds the address of the call itself, so resume after it
        state.program_counter = state.stack.pop() + 2

    def _1nnn(self, state, op):  # JP addr
        if self.live_trace:
            self.trace(state, op, "JP 0x{:03x}".format(op.nnn))

        state.program_counter = op.nnn

    def _2nnn(self, state, op):  # CALL addr
        if self.live_trace:
            self.trace(state, op, "CALL 0x{:03x}".format(op.nnn))

        state.stack.push(state.program_counter)
        state.program_counter = op.nnn

    def _3xkk(self, state, op):  # SE Vx, byte
        if self.live_trace:
            self.trace(state, op, "SE V{:01x}, 0x{:02x}".format(op.x, op.nn))

        self._skip_if(state, state.registers[op.x] == op.nn)

    def _4xkk(self, state, op):  # SNE Vx, byte
        if self.live_trace:
            self.trace(state, op, "SNE V{:01x}, 0x{:02x}".format(op.x, op.nn))

        self._skip_if(state, state.registers[op.x] != op.nn)

    def _5xy0(self, state, op):  # SE Vx, Vy
        if self.live_trace:
            self.trace(state, op, "SE V{:01x}, V{:01x}".format(op.x, op.y))

        self._skip_if(state, state.registers[op.x] == state.registers[op.y])

    def _6xkk(self, state, op):  # LD Vx, byte
        if self.live_trace:
            self.trace(state, op, "LD V{:01x}, 0x{:02x}".format(op.x, op.nn))

        state.registers[op.x] = op.nn
        self._advance(state)

    def _7xkk(self, state, op):  # ADD Vx, byte
        if self.live_trace:
            self.trace(state, op, "ADD V{:01x}, 0x{:02x}".format(op.x, op.nn))

        # No carry flag for this one
        state.registers[op.x] = (state.registers[op.x] + op.nn) & 0xFF
        self._advance(state)

    def _post_8xy1_8xy2_8xy3(self, state):
        if self.quirks.vf_reset_on_add:
            state.vf = 0

        self._advance(state)

    def _8xy0(self, state, op):  # LD Vx, Vy
        if self.live_trace:
            self.trace(state, op, "LD V{:01x}, V{:01x}".format(op.x, op.y))

        state.registers[op.x] = state.registers[op.y]
        self._advance(state)

    def _8xy1(self, state, op):  # OR Vx, Vy
        if self.live_trace:
            self.trace(state, op, "OR V{:01x}, V{:01x}".format(op.x, op.y))

        state.registers[op.x] |= state.registers[op.y]
        self._post_8xy1_8xy2_8xy3(state)

    def _8xy2(self, state, op):  # AND Vx, Vy
        if self.live_trace:
            self.trace(state, op, "AND V{:01x}, V{:01x}".format(op.x, op.y))

        state.registers[op.x] &= state.registers[op.y]
        self._post_8xy1_8xy2_8xy3(state)

    def _8xy3(self, state, op):  # XOR Vx, Vy
        if self.live_trace:
            self.trace(state, op, "XOR V{:01x}, V{:01x}".format(op.x, op.y))

        state.registers[op.x] ^= state.registers[op.y]
        self._post_8xy1_8xy2_8xy3(state)

    def _8xy4(self, state, op):  # ADD Vx, Vy
        if self.live_trace:
            self.trace(state, op, "ADD V{:01x}, V{:01x}".format(op.x, op.y))

        val = state.registers[op.x] + state.registers[op.y]
        state.registers[op.x] = val & 0xFF
        state.vf = int(val > 0xFF)  # Vf is set when carrying
        self._advance(state)

    def _post_8xy5_8xy7(self, state, op, val, not_borrow):  # Post-SUB/SUBN
        # The flag is worked out from the operands before Vx changes, but written last, as Vf may be Vx
        state.registers[op.x] = val & 0xFF
        state.vf = int(not_borrow)
        self._advance(state)

    def _8xy5(self, state, op):  # SUB Vx, Vy
        if self.live_trace:
            self.trace(state, op, "SUB V{:01x}, V{:01x}".format(op.x, op.y))

        vx = state.registers[op.x]
        vy = state.registers[op.y]
        self._post_8xy5_8xy7(state, op, vx - vy, vx > vy)

    def _8xy7(self, state, op):  # SUBN Vx, Vy
        if self.live_trace:
            self.trace(state, op, "SUBN V{:01x}, V{:01x}".format(op.x, op.y))

        vx = state.registers[op.x]
        vy = state.registers[op.y]
        self._post_8xy5_8xy7(state, op, vy - vx, vx < vy)

    def _shift_source(self, state, op):
        # On the COSMAC VIP, Vy is shifted into Vx.  Later interpreters shift Vx in place.
        return state.registers[op.y if self.quirks.shift_uses_second_operand else op.x]

    def _trace_8xy6_8xyE(self, state, op, direction):
        self.trace(
            state, op,
            "{} V{:01x}, V{:01x}".format(direction, op.x, op.y) if self.quirks.shift_uses_second_operand else
            "{} V{:01x}".format(direction, op.x)
        )

    def _8xy6(self, state, op):  # SHR Vx {, Vy}
        if self.live_trace:
            self._trace_8xy6_8xyE(state, op, "SHR")

        val = self._shift_source(state, op)
        state.registers[op.x] = val >> 1
        state.vf = val & 1
        self._advance(state)

    def _8xyE(self, state, op):  # SHL Vx {, Vy}
        if self.live_trace:
            self._trace_8xy6_8xyE(state, op, "SHL")

        val = self._shift_source(state, op)
        state.registers[op.x] = (val << 1) & 0xFF
        state.vf = (val & 0x80) >> 7
        self._advance(state)

    def _9xy0(self, state, op):  # SNE Vx, Vy
        if self.live_trace:
            self.trace(state, op, "SNE V{:01x}, V{:01x}".format(op.x, op.y))

        self._skip_if(state, state.registers[op.x] != state.registers[op.y])

    def _Annn(self, state, op):  # LD I, addr
        if self.live_trace:
            self.trace(state, op, "LD I, 0x{:03x}".format(op.nnn))

        state.index_register = op.nnn
        self._advance(state)

    def _Bnnn(self, state, op):  # JP V0, addr
        if self.live_trace:
            self.trace(state, op, "JP V0, 0x{:03x}".format(op.nnn))

        offset = state.registers[0] if self.quirks.jump_adds_first_register else 0
        state.program_counter = op.nnn + offset

    def _Cxkk(self, state, op):  # RND Vx, byte
        if self.live_trace:
            self.trace(state, op, "RND V{:01x}, 0x{:02x}".format(op.x, op.nn))

        # The ANDing here is intentional.  This is not a random number between 0 and 'byte' inclusive.
        state.registers[op.x] = self.random_byte() & op.nn
        self._advance(state)

    def _Dxyn(self, state, op):  # DRW Vx, Vy, nibble
        if self.live_trace:
            self.trace(state, op, "DRW V{:01x}, V{:01x}, 0x{:01x}".format(op.x, op.y, op.n))

        # The sprite's start always wraps.  Whether the rest of it wraps or is clipped is up to the framebuffer.
        framebuffer = state.framebuffer
        memory = state.memory
        address_mask = state.address_mask
        vid_width, vid_height = framebuffer.get_vid_size()
        vx_pos = state.registers[op.x] % vid_width
        vy_pos = state.registers[op.y] % vid_height
        i = state.index_register

        # Collisions accumulate over the whole sprite.  Never overwrite the flag once it is set.
        state.vf = 0

        for y in range(op.n):
            spr_data = memory.read((i + y) & address_mask)

            for x in range(8):
                if spr_data & (0x80 >> x):
                    prior_pixel = framebuffer.xor_pixel(vx_pos + x, vy_pos + y)

                    if prior_pixel is not None:
                        state.vf |= prior_pixel

        # Let the session end the frame here, if the platform waits for vertical blank after drawing
        if self.quirks.vertical_blank_sync:
            state.awaiting_vblank = True

        self._advance(state)

    @staticmethod
    def _is_key_down(state, key):
        # There are only 16 keys, so anything higher is never held
        return key < NUM_KEYS and state.keypad[key]

    def _Ex9E(self, state, op):  # SKP Vx
        if self.live_trace:
            self.trace(state, op, "SKP V{:01x}".format(op.x))

        self._skip_if(state, self._is_key_down(state, state.registers[op.x]))

    def _ExA1(self, state, op):  # SKNP Vx
        if self.live_trace:
            self.trace(state, op, "SKNP V{:01x}".format(op.x))

        self._skip_if(state, not self._is_key_down(state, state.registers[op.x]))

    def _Fx07(self, state, op):  # LD Vx, DT
        if self.live_trace:
            self.trace(state, op, "LD V{:01x}, DT".format(op.x))

        state.registers[op.x] = state.delay_timer
        self._advance(state)

    def _Fx0A(self, state, op):  # LD Vx, K
        if self.live_trace:
            self.trace(state, op, "LD V{:01x}, K".format(op.x))

        # This opcode waits for a keypress.  Timers and the display still need to run while it waits, so rather than
        # block, leave the program counter alone and this instruction gets fetched again on the next step.
        for key, key_down in enumerate(state.keypad):
            if key_down:
                state.registers[op.x] = key
                self._advance(state)
                return

    def _Fx15(self, state, op):  # LD DT, Vx
        if self.live_trace:
            self.trace(state, op, "LD DT, V{:01x}".format(op.x))

        state.delay_timer = state.registers[op.x]
        self._advance(state)

    def _Fx18(self, state, op):  # LD ST, Vx
        if self.live_trace:
            self.trace(state, op, "LD ST, V{:01x}".format(op.x))

        state.sound_timer = state.registers[op.x]
        self._advance(state)

    def _Fx1E(self, state, op):  # ADD I, Vx
        if self.live_trace:
            self.trace(state, op, "ADD I, V{:01x}".format(op.x))

        state.index_register = (state.index_register + state.registers[op.x]) & INDEX_MASK
        self._advance(state)

    def _Fx29(self, state, op):  # LD F, Vx
        if self.live_trace:
            self.trace(state, op, "LD F, V{:01x}".format(op.x))

        state.index_register = FONT_LOCATION + self.platform.glyph_size * state.registers[op.x]
        self._advance(state)

    def _Fx33(self, state, op):  # LD B, Vx
        if self.live_trace:
            self.trace(state, op, "LD B, V{:01x}".format(op.x))

        val = state.registers[op.x]
        i = state.index_register
        address_mask = state.address_mask
        memory = state.memory
        memory.write(i & address_mask, val // 100)                # Most-significant digit
        memory.write((i + 1) & address_mask, (val // 10) % 10)    # Middle digit
        memory.write((i + 2) & address_mask, val % 10)            # Least-significant digit
        self._advance(state)

    def _post_Fx55_Fx65(self, state, op):
        if self.quirks.load_store_increments_index:
            state.index_register = (state.index_register + op.x + 1) & INDEX_MASK

        self._advance(state)

    def _Fx55(self, state, op):  # LD [I], Vx
        if self.live_trace:
            self.trace(state, op, "LD [I], V{:01x}".format(op.x))

        i = state.index_register
        address_mask = state.address_mask

        for reg in range(op.x + 1):
            state.memory.write((i + reg) & address_mask, state.registers[reg])

        self._post_Fx55_Fx65(state, op)

    def _Fx65(self, state, op):  # LD Vx, [I]
        if self.live_trace:
            self.trace(state, op, "LD V{:01x}, [I]".format(op.x))

        i = state.index_register
        address_mask = state.address_mask

        for reg in range(op.x + 1):
            state.registers[reg] = state.memory.read((i + reg) & address_mask)

        self._post_Fx55_Fx65(state, op)
