#!/usr/bin/env python3

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import unittest
from vchip.audio.a_null import Audio
from vchip.constants import DEFAULT_KEYMAP
from vchip.emulator import Emulator
from vchip.inputs.i_null import Inputs
from vchip.platform import get_platform
from vchip.renderers.r_null import Renderer
from vchip.system import SessionState, System


class ScriptedInputs(Inputs):
    def __init__(self, keymap, script):
        super().__init__(keymap)
        self.script = list(script)

    def process_messages(self):
        if self.script:
            return self.script.pop(0)

        return set()


class RecordingRenderer(Renderer):
    def __init__(self):
        super().__init__()
        self.frames = []
        self.titles = []

    def draw_framebuffer(self, framebuffer):
        self.frames.append(framebuffer.render_text())

    def set_title(self, title):
        self.titles.append(title)


class TestEmulator(unittest.TestCase):
    def setUp(self):
        self.system = System(get_platform("modern"))
        self.renderer = RecordingRenderer()
        self.audio = Audio()

    def _emulator(self, script=()):
        return Emulator(self.system, self.renderer, ScriptedInputs(DEFAULT_KEYMAP, script), self.audio)

    def test_emulator_program_finishes(self):
        self.system.load(bytes.fromhex("d015" "6001"))
        self.assertIsNone(self._emulator().run())
        self.assertIs(SessionState.OFF, self.system.state)
        self.assertEqual(1, len(self.renderer.frames))
        self.assertTrue(self.renderer.frames[0].startswith("████"))
        self.assertTrue(self.renderer.titles[0].startswith("VIPChip8"))

    def test_emulator_fault(self):
        self.system.load(bytes.fromhex("00ee"))

        with self.assertLogs("vchip.system", level="ERROR"):
            fault = self._emulator().run()

        self.assertIn("Stack underflow", str(fault))

    def test_emulator_quit(self):
        self.system.load(bytes.fromhex("1200"))
        self.assertIsNone(self._emulator([set(), {"quit"}]).run())
        self.assertEqual(1, len(self.renderer.frames))
        self.assertIs(SessionState.RUNNING, self.system.state)

    def test_emulator_pause(self):
        self.system.load(bytes.fromhex("1200"))
        emulator = self._emulator([{"pause"}, set(), {"pause"}])
        self.assertTrue(emulator.run_frame())
        self.assertEqual(0, self.system.steps_executed)
        self.assertTrue(emulator.run_frame())
        self.assertEqual(0, self.system.steps_executed)
        self.assertTrue(emulator.run_frame())
        self.assertEqual(30, self.system.steps_executed)

    def test_emulator_keys_and_buzzer(self):
        self.system.load(bytes.fromhex("f50a" "6a3c" "fa18" "1206"))
        emulator = self._emulator()
        emulator.inputs.press(49)  # Guest key 1
        self.assertTrue(emulator.run_frame())
        self.assertEqual(0x1, self.system.machine.registers[5])
        self.assertTrue(self.audio.buzzer_enabled)
        self.system.power_off()
        self.assertFalse(emulator.run_frame())
        self.assertFalse(self.audio.buzzer_enabled)

    def test_emulator_pause_silences_buzzer(self):
        self.system.load(bytes.fromhex("60ff" "f018" "1204"))
        emulator = self._emulator([set(), {"pause"}, set(), {"pause"}])
        buzzer = []

        for _ in range(4):
            self.assertTrue(emulator.run_frame())
            buzzer.append((self.system.state, self.audio.buzzer_enabled))

        self.assertEqual([
            (SessionState.RUNNING, True),
            (SessionState.PAUSED, False),
            (SessionState.PAUSED, False),
            (SessionState.RUNNING, True)
        ], buzzer)

    def test_emulator_keypad_cleared_each_frame(self):
        self.system.load(bytes.fromhex("1200"))
        emulator = self._emulator()
        emulator.inputs.press(120)  # Guest key 0, held down
        self.assertTrue(emulator.run_frame())
        self.assertEqual([False] * 16, self.system.machine.keypad)
        self.assertTrue(emulator.inputs.get_key_states()[0x0])
