#!/usr/bin/env python3

"""
Machine Errors

Everything the guest program can do wrong ends up as a subclass of MachineError,
so a session can stop cleanly on any of them and report what happened.  Host
problems (missing libraries, bad key maps) are not machine errors.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"


class MachineError(Exception):
    pass
