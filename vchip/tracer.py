#!/usr/bin/env python3

"""
Instruction Tracer

If enabled, this will log a line before each instruction executed:
    * All 16 of the [V] registers, starting with most significant (Vf) and
      reducing to least significant (V0)
    * I  - Index register
    * DT - Delay timer
    * ST - Sound timer
    * PC - Program counter
    * OP - OpCode number
    * IN - Decoded instruction

When a session faults, all of the above is logged along with the stack
contents.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import logging

logger = logging.getLogger(__name__)


class Tracer:
    def __init__(self, live=False):
        self.live = live

    def describe(self, state, opcode, instruction, verbose=False):
        registers = state.registers
        trace_str = (
            "V: 0x" + ("{:02x}" * 16) + " I: 0x{:04x} DT: 0x{:02x} ST: 0x{:02x} PC: 0x{:03x} OP: 0x{:04x} IN: {}"
        ).format(
            *[registers[reg_num] for reg_num in range(15, -1, -1)] +
            [state.index_register, state.delay_timer, state.sound_timer, state.program_counter, opcode, instruction]
        )

        if verbose:
            stack_items = state.stack.get_items()
            stack_str = (" 0x{:03x}" * len(stack_items)).format(*stack_items)
            trace_str += "\nStack:{}".format(stack_str or " (Empty)")

        return trace_str

    def is_live(self):
        return self.live

    def output(self, state, opcode, instruction):
        logger.debug(self.describe(state, opcode, instruction))
