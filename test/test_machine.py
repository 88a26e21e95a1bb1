#!/usr/bin/env python3

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import unittest
from vchip.constants import SYSTEM_FONT
from vchip.machine import MachineState, ProgramLoadError
from vchip.platform import get_platform


class TestMachineState(unittest.TestCase):
    def setUp(self):
        self.machine = MachineState(get_platform())

    def test_machine_power_on(self):
        machine = self.machine
        self.assertEqual(0x1000, len(machine.memory))
        self.assertEqual(SYSTEM_FONT, bytes(machine.memory.read_block(0x000, 0x50)))
        self.assertEqual(0, machine.memory.read(0x50))
        self.assertEqual(16, len(machine.registers))
        self.assertEqual(0x200, machine.program_counter)
        self.assertEqual(0, machine.index_register)
        self.assertEqual(0, machine.stack_pointer)
        self.assertEqual((0, 0), (machine.delay_timer, machine.sound_timer))
        self.assertEqual((64, 32), machine.framebuffer.get_vid_size())
        self.assertEqual([False] * 16, machine.keypad)

    def test_machine_font_zero_glyph(self):
        self.assertEqual("f0909090f0", self.machine.memory.read_block(0x000, 5).hex())

    def test_machine_vf(self):
        self.machine.vf = 1
        self.assertEqual(1, self.machine.registers[0xF])
        self.machine.registers[0xF] = 0
        self.assertEqual(0, self.machine.vf)

    def test_machine_load_program(self):
        self.machine.load_program(b"\x00\xE0\x12\x00")
        self.assertEqual("00e01200", self.machine.memory.read_block(0x200, 4).hex())
        self.assertEqual(0x204, self.machine.program_size)
        self.assertFalse(self.machine.is_finished())

    def test_machine_load_largest_program(self):
        self.machine.load_program(b"\xFF" * 0xE00)
        self.assertEqual(0x1000, self.machine.program_size)
        self.assertEqual(0xFF, self.machine.memory.read(0xFFF))

    def test_machine_load_oversized_program(self):
        with self.assertRaises(ProgramLoadError) as context:
            self.machine.load_program(b"\xFF" * 0xE01)

        self.assertIn("3585", str(context.exception))
        # Nothing should have been copied
        self.assertEqual(0, self.machine.memory.read(0x200))

    def test_machine_empty_program_is_finished(self):
        self.machine.load_program(b"")
        self.assertTrue(self.machine.is_finished())

    def test_machine_fetch_bounds(self):
        machine = self.machine
        machine.program_counter = 0xFFE
        self.assertTrue(machine.fetch_in_bounds())
        machine.program_counter = 0xFFF
        self.assertFalse(machine.fetch_in_bounds())

    def test_machine_wrap_quirk_reaches_framebuffer(self):
        self.assertFalse(self.machine.framebuffer.allow_wrapping)
        self.assertTrue(MachineState(get_platform("modern")).framebuffer.allow_wrapping)
