#!/usr/bin/env python3

"""
Platform Definitions

Programs for this architecture were written for several historical
interpreters, and those interpreters disagree on the finer details of a handful
of instructions.  A platform bundles the video geometry, glyph size and tick
rate of one of them, together with the set of quirk flags that select its
instruction behaviour.

Platforms are immutable.  To tweak one, ask for a preset by name and supply
overrides, which returns a new platform and leaves the preset untouched.

Quirks
------

- vf_reset_on_add           : AND/OR/XOR clear VF afterwards, as on the COSMAC VIP.
- load_store_increments_index: Fx55/Fx65 leave I pointing past the last register copied.
- vertical_blank_sync       : A sprite draw ends the frame, waiting for vertical blank.
- wrap_sprites              : Sprite pixels past the screen edges wrap instead of being clipped.
- shift_uses_second_operand : 8xy6/8xyE shift Vy into Vx, rather than shifting Vx in place.
- jump_adds_first_register  : Bnnn jumps to nnn + V0, rather than nnn alone.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from collections import namedtuple


class PlatformError(Exception):
    pass


QUIRK_NAMES = (
    "vf_reset_on_add",
    "load_store_increments_index",
    "vertical_blank_sync",
    "wrap_sprites",
    "shift_uses_second_operand",
    "jump_adds_first_register"
)

Quirks = namedtuple("Quirks", QUIRK_NAMES, defaults=(False,) * len(QUIRK_NAMES))

PlatformSpec = namedtuple("PlatformSpec", ("name", "video_width", "video_height", "glyph_size", "tick_rate", "quirks"))

PLATFORMS = {
    # The reference platform
    "cosmacvip": PlatformSpec(
        "cosmacvip", 64, 32, 5, 15,
        Quirks(vf_reset_on_add=True, vertical_blank_sync=True, jump_adds_first_register=True)
    ),
    # The VIP as it originally shipped, where loads and stores move I and shifts read Vy
    "cosmacvip_legacy": PlatformSpec(
        "cosmacvip_legacy", 64, 32, 5, 15,
        Quirks(
            vf_reset_on_add=True,
            load_store_increments_index=True,
            vertical_blank_sync=True,
            shift_uses_second_operand=True,
            jump_adds_first_register=True
        )
    ),
    "modern": PlatformSpec(
        "modern", 64, 32, 5, 30,
        Quirks(wrap_sprites=True, jump_adds_first_register=True)
    ),
    "chip48": PlatformSpec(
        "chip48", 64, 32, 5, 30,
        Quirks(load_store_increments_index=True, jump_adds_first_register=True)
    ),
    "superchip": PlatformSpec(
        "superchip", 64, 32, 5, 30,
        Quirks(jump_adds_first_register=True)
    )
}

DEFAULT_PLATFORM = "cosmacvip"


def get_platform(name=DEFAULT_PLATFORM, tick_rate=None, **quirk_overrides):
    """
    Returns the named preset, with any quirk flags that are not None replaced.
    """
    try:
        platform = PLATFORMS[name]
    except KeyError:
        raise PlatformError("Unknown platform '{}'.  Choose from: {}".format(name, ", ".join(PLATFORMS))) from None

    unknown = set(quirk_overrides) - set(QUIRK_NAMES)

    if unknown:
        raise PlatformError("Unknown quirk(s): {}".format(", ".join(sorted(unknown))))

    overrides = {quirk: bool(value) for quirk, value in quirk_overrides.items() if value is not None}
    platform = platform._replace(quirks=platform.quirks._replace(**overrides))

    if tick_rate is not None:
        if tick_rate <= 0:
            raise PlatformError("Tick rate must be at least 1 instruction per frame")

        platform = platform._replace(tick_rate=tick_rate)

    return platform
