# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Protocol line type enumeration
"""

from __future__ import annotations

from aenum import Enum as AEnum
from ..internal_types import *

class RawLineType(AEnum):
    UNKNOWN                     = 0x00000000
    """Unknown line type"""

    PIONEER                     = 0x00000001
    """A complete protocol line. Does not include the b'\\r' delimiter."""

    INVALID                     = 0x00000002
    """An invalid protocol byte sequence; the leading portion of a line
       longer than MAX_LINE_LENGTH. The remainder of the line, up to the
       next delimiter, is discarded."""
