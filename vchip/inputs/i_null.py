#!/usr/bin/env python3

"""
Null Input Plugin

Serves as a base class for other Input plugins.  Can be used on its own if zero
input functionality is required.

Holds the mapping from host key codes to the 16 guest keys, and the current
up/down state of each guest key.  Once per frame the host copies that state
into the guest keypad.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from ..constants import NUM_KEYS


class InputsError(Exception):
    pass


class Inputs:
    def __init__(self, keymap):
        self.keymap_dict = {}
        self.key_down = [False] * NUM_KEYS
        keymap_split = keymap.split(",")

        if len(keymap_split) != NUM_KEYS:
            raise InputsError("Incorrect number of keys defined -- 16 required.  Use commas to split numbers")

        for key_num, key_defined in enumerate(keymap_split):
            try:
                key_defined_ord = int(key_defined)
            except ValueError:
                raise InputsError("Defined keys are not all integer values") from None

            if key_defined_ord in self.keymap_dict:
                raise InputsError("Duplicate keys defined")

            self.keymap_dict[key_defined_ord] = key_num

    def process_messages(self):
        # Returns a set of host commands ('quit', 'pause'), empty if there is nothing to do
        return set()

    def press(self, host_key, down=True):
        hex_key = self.keymap_dict.get(host_key)

        if hex_key is not None:
            self.key_down[hex_key] = down

        return hex_key

    def get_key_states(self):
        return list(self.key_down)

    def shutdown(self):
        pass
