#!/usr/bin/env python3

"""
Framebuffer Emulator

Pixels are written here by the CPU, and are read by the host at the end of
each frame.  There is one byte per pixel, and every byte is either 0
(background) or 1 (foreground).

Programs for this system cannot write directly into video RAM.  Instead,
sprites are drawn to the screen by XORing pixels in.  A pixel that was set and
has been unset by an XOR is a collision, and is reported back to the caller.

Pixels outside the screen either wrap around to the other side, or are
clipped, depending on the platform.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .ram import RAM


class Framebuffer:
    def __init__(self, vid_width, vid_height, allow_wrapping=True):
        self.allow_wrapping = allow_wrapping
        self.vid_width = 0
        self.vid_height = 0
        self.vid_size = 0
        self.ram_bank = RAM()
        self.resize_vid(vid_width, vid_height)

    def resize_vid(self, vid_width, vid_height):
        self.vid_width = vid_width
        self.vid_height = vid_height
        self.vid_size = self.vid_width * self.vid_height
        self.ram_bank.resize(self.vid_size)

    @property
    def pixels(self):
        return self.ram_bank.mem

    def clear(self):
        self.ram_bank.clear()

    def get_pixel(self, x, y):
        return self.ram_bank.read(y * self.vid_width + x)

    def xor_pixel(self, x, y):
        # Returns the prior pixel value, or None if the pixel was clipped

        if self.allow_wrapping:
            x %= self.vid_width
            y %= self.vid_height
        elif x >= self.vid_width or y >= self.vid_height:
            return None

        vram_loc = y * self.vid_width + x
        pixel = self.ram_bank.read(vram_loc)
        self.ram_bank.write(vram_loc, pixel ^ 1)

        return pixel

    def get_vid_size(self):
        return self.vid_width, self.vid_height

    def rows(self):
        # Yields each line of pixels, top to bottom
        vid_width = self.vid_width

        for y in range(self.vid_height):
            yield self.ram_bank.read_block(y * vid_width, vid_width)

    def render_text(self, on_char="█", off_char=" "):
        return "\n".join(
            "".join(on_char if pixel else off_char for pixel in row) for row in self.rows()
        )
