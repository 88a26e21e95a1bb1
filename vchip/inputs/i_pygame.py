#!/usr/bin/env python3

"""
PyGame Input Plugin

Scans the keyboard and properly detects key 'press' and 'release' events.  Note
that the check should not be called more often than 60Hz, as constantly
checking the queue is time consuming.

Escape or closing the window quits, and P pauses or resumes the session.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import pygame
from .i_null import Inputs as InputsBase


class Inputs(InputsBase):
    def __init__(self, keymap):
        self.pygame_methods = {
            pygame.QUIT:    self._pygame_quit,
            pygame.KEYDOWN: self._pygame_keydown,
            pygame.KEYUP:   self._pygame_keyup
        }

        super().__init__(keymap)

    def process_messages(self):
        # Call PyGame method based on fast dictionary lookup of event
        commands = set()

        for event in pygame.event.get():
            pygame_method = self.pygame_methods.get(event.type)

            if pygame_method:
                command = pygame_method(event)

                if command:
                    commands.add(command)  # Process more events, even if planning to quit

        return commands

    def _pygame_quit(self, _):
        return "quit"

    def _pygame_keydown(self, event):
        self.press(event.key)
        return None

    def _pygame_keyup(self, event):
        if event.key == pygame.K_ESCAPE:
            return "quit"

        if event.key == pygame.K_p:
            return "pause"

        self.press(event.key, down=False)
        return None
