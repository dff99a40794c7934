# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Encapsulation of a single Pioneer receiver protocol "line" sent over the TCP/IP socket in either
direction. Basically an arbitrary sequence of ASCII bytes, delimited by a '\\r' character.
"""

from __future__ import annotations

from ..internal_types import *
from ..exceptions import PioneerReceiverError
from .constants import (
    END_OF_LINE,
    END_OF_LINE_BYTES,
    MAX_LINE_LENGTH,
  )
from .raw_line_type import RawLineType

class RawLine:
    """
    Encapsulation of a single protocol line, in either direction, with the
    terminating '\\r' removed. Has no structure until decoded.
    """

    raw_line_type: RawLineType
    """The low-level type of the line."""

    raw_data: bytes

    def __init__(self, raw_line_type: RawLineType=RawLineType.UNKNOWN, raw_data: bytes=b''):
        """Create a RawLine object.

        Args:
            raw_line_type (RawLineType, optional): The line type. Defaults to RawLineType.UNKNOWN.
            raw_data (bytes, optional): The line content, without delimiter. Defaults to b''.
        """
        self.raw_line_type = raw_line_type
        self.raw_data = raw_data

    @classmethod
    def from_raw_data(cls, raw_data: Union[str, bytes]) -> RawLine:
        """
        Create a RawLine object from a line sent to or received from the receiver.

        A line consists of an arbitrary sequence of up to MAX_LINE_LENGTH non-'\\r' bytes.
        As a convenience, if the provided raw_data ends with the '\\r' delimiter, it is
        removed before the line is constructed.
        """
        if isinstance(raw_data, str):
            raw_data = raw_data.encode('utf-8')
        if len(raw_data) > 0 and raw_data[-1] == END_OF_LINE:
            raw_data = raw_data[:-1]
        if len(raw_data) > MAX_LINE_LENGTH:
            raise PioneerReceiverError(f"Line data length {len(raw_data)} exceeds maximum allowed length {MAX_LINE_LENGTH}")
        if END_OF_LINE in raw_data:
            raise PioneerReceiverError(f"Line data contains embedded END_OF_LINE delimiter {END_OF_LINE_BYTES!r}: {raw_data!r}")
        return cls(raw_line_type=RawLineType.PIONEER, raw_data=raw_data)

    @property
    def is_valid(self) -> bool:
        return self.raw_line_type == RawLineType.PIONEER

    @property
    def text(self) -> str:
        """The line content decoded as text. Undecodable bytes are replaced."""
        return self.raw_data.decode('utf-8', errors='replace')

    def __len__(self) -> int:
        return len(self.raw_data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RawLine):
            return NotImplemented
        return self.raw_line_type == other.raw_line_type and self.raw_data == other.raw_data

    def __hash__(self) -> int:
        return hash((self.raw_line_type, self.raw_data))

    def __str__(self) -> str:
        return f"RawLine({self.raw_line_type!r}, {self.raw_data!r})"

    def __repr__(self) -> str:
        return str(self)
