#!/usr/bin/env python3

"""
Stack Emulator

The call stack lives outside guest RAM, since there is no specified location
for it and no stack pointer register exposed to the running program.  It is a
fixed block of 16 return addresses and a count of the entries in use.

Pushing onto a full stack, or popping an empty one, is a malformed program.
Neither ever wraps around: both raise StackError and leave the stack as it was.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .errors import MachineError


class StackError(MachineError):
    pass


class Stack:
    def __init__(self, size):
        self.items = [0] * size
        self.size = size
        self.pointer = 0

    def __len__(self):
        return self.pointer

    def push(self, item):
        if self.pointer >= self.size:
            raise StackError("Stack overflow")

        self.items[self.pointer] = item
        self.pointer += 1

    def pop(self):
        if self.pointer <= 0:
            raise StackError("Stack underflow")

        self.pointer -= 1
        return self.items[self.pointer]

    def get_items(self):
        # Entries currently in use, oldest first
        return self.items[:self.pointer]
