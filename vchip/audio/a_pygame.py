#!/usr/bin/env python3

"""
PyGame Audio Plugin

Plays the buzzer tone within PyGame / SDL.

The guest only ever says whether a tone should be playing or not, so a single
square wave sample is built once at startup, and looped for as long as the
buzzer is enabled.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import pygame
from .a_null import Audio as AudioBase

PLAYBACK_FREQUENCY = 44100
TONE_FREQUENCY = 440.0
DEFAULT_VOLUME = 0.1


class Audio(AudioBase):
    def __init__(self):
        pygame.mixer.pre_init(PLAYBACK_FREQUENCY, size=8, channels=1, allowedchanges=0)
        pygame.mixer.init()
        self.sound = pygame.mixer.Sound(buffer=self._build_square_wave())
        self.sound.set_volume(DEFAULT_VOLUME)
        super().__init__()

    @staticmethod
    def _build_square_wave():
        # One full period of unsigned 8-bit samples, high for the first half and low for the second
        period = int(round(PLAYBACK_FREQUENCY / TONE_FREQUENCY))
        half_period = period // 2
        return bytes(0xFF if pos < half_period else 0x00 for pos in range(period))

    def enable_buzzer(self, enabled):
        # If there is already a tone playing, it won't be restarted
        if enabled:
            if not self.buzzer_enabled:
                self.sound.play(-1)
        elif self.buzzer_enabled:
            self.sound.stop()

        super().enable_buzzer(enabled)

    def shutdown(self):
        self.sound.stop()
        pygame.mixer.quit()
        super().shutdown()
