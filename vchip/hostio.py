#!/usr/bin/env python3

"""
Host I/O Functionality

Handles loading ROM binaries from disk, ready to be handed to a session.  ROMs
have no header or checksum, so any file is accepted here.  Whether it fits in
guest memory is checked when it is loaded into a machine.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"


class Loader:
    def load_binary(self, filename):
        with open(filename, "rb") as f:
            return f.read()
