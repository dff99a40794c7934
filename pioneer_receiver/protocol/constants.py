# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Protocol-specific constants
"""

from __future__ import annotations

END_OF_LINE = ord('\r')
"""The terminating byte value for all lines sent to or received from the receiver, as an int."""

END_OF_LINE_BYTES = bytes([END_OF_LINE])
"""The terminating byte for all lines sent to or received from the receiver,
   as a bytes object."""

LINE_FEED = ord('\n')
"""Some serial-to-ethernet bridges terminate lines with CRLF. Line feeds are stripped."""

MAX_LINE_LENGTH = 1024
"""The maximum length of a line received from the receiver, in bytes. Does not include
   the '\\r' delimiter. The longest real responses (display text, input names) are well
   under 100 bytes."""

UNKNOWN_LISTENING_MODE = 999
"""The listening mode ordinal reported when a display listening mode code is not recognized."""
