# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Pioneer receiver emulator.

Provides a simple emulation of a Pioneer receiver on TCP/IP.
"""

from .emulator_impl import (
    PioneerReceiverEmulator,
  )
