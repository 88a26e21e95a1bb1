#!/usr/bin/env python3

"""
PyGame Renderer Plugin

Draws the guest framebuffer onto an SDL window surface via PyGame.  The
framebuffer is expanded into an offscreen RGB buffer at the guest resolution,
and then stretched (in the correct aspect ratio using 'Nearest Neighbour'
translation) to fit the window itself.  This means we don't have to draw the
same pixel multiple times.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import pygame
from .r_null import RendererError, Renderer as RendererBase
from ..constants import APP_NAME


class Renderer(RendererBase):
    def __init__(self, scale=None, palette=None, **kwargs):
        if scale is None:
            scale = 640  # Default window width if not supplied

        pygame.display.init()
        self.set_title(APP_NAME)
        self.rgb_buffer = None
        self.scaled_size = (scale, scale // 2)
        self.display_surface = pygame.display.set_mode(self.scaled_size)

        # Background, then foreground
        colour_map = [0x6495ED, 0xFFFFFF]

        # Override one or both colours with a user-defined palette, if necessary
        if palette is not None:
            palette_split = palette.split(",")

            if len(palette_split) > 2:
                raise RendererError("Too many palette colours defined.  Only background and foreground are used.")

            for colour_num, colour in enumerate(palette_split):
                if len(colour) != 6:
                    raise RendererError("Palette colours must all be 6 hex digits long.")

                try:
                    colour_map[colour_num] = int(colour, 16)
                except ValueError:
                    raise RendererError("Invalid palette colour defined.") from None

        # Split compound RGB values for faster byte-based lookup later
        self.rgb_map = [bytes((i >> 16, (i >> 8) & 0xFF, i & 0xFF)) for i in colour_map]

        super().__init__(scale)

    def set_resolution(self, width, height):
        self.rgb_buffer = bytearray(width * height * 3)  # 24-bit
        super().set_resolution(width, height)

    def draw_framebuffer(self, framebuffer):
        width, height = framebuffer.get_vid_size()

        if (width, height) != (self.width, self.height):
            self.set_resolution(width, height)

        # Update RGB buffer in-place to minimise allocations and PyGame calls
        rgb_buffer = self.rgb_buffer
        rgb_map = self.rgb_map

        for location, pixel in enumerate(framebuffer.pixels):
            rgb_location = location * 3
            rgb_buffer[rgb_location:rgb_location + 3] = rgb_map[pixel]

        # Blit the bytearray straight to the surface, then stretch it to the window
        render_surface = pygame.image.frombuffer(rgb_buffer, (width, height), "RGB")
        scaled_win = pygame.transform.scale(render_surface, self.scaled_size)
        self.display_surface.blit(scaled_win, (0, 0))
        pygame.display.flip()

    def set_title(self, title):
        pygame.display.set_caption(title)

    def shutdown(self):
        # PyGame currently segfaults if display.quit is called via __del__
        pygame.display.quit()
        super().shutdown()
