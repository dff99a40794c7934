# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Splits a byte stream received from a Pioneer receiver into protocol lines.
"""

from __future__ import annotations

from ..internal_types import *
from ..pkg_logging import logger
from .constants import END_OF_LINE, LINE_FEED, MAX_LINE_LENGTH
from .raw_line import RawLine
from .raw_line_type import RawLineType

class LineFramer:
    """
    Reassembles '\\r'-terminated lines from arbitrarily chunked bytes.

    Chunk boundaries need not line up with line boundaries; an unterminated
    trailing fragment is held until a later chunk completes it. Empty lines are
    returned as empty RawLines.
    """

    buffer: bytearray

    skipping_invalid_line: bool = False
    """True while discarding the remainder of a line that exceeded MAX_LINE_LENGTH."""

    def __init__(self) -> None:
        self.buffer = bytearray()

    def reset(self) -> None:
        """Discards all buffered data."""
        self.buffer = bytearray()
        self.skipping_invalid_line = False

    @property
    def pending_length(self) -> int:
        """The number of buffered bytes that are not yet part of a complete line."""
        return len(self.buffer)

    def parse_line(self, raw_data: bytes) -> RawLine:
        """
        Create a RawLine from the bytes of a complete line, with the delimiter already removed.

        This method can be overridden by subclasses to implement custom line parsing.
        The default implementation strips line feeds left over from CRLF line endings.
        """
        raw_data = raw_data.strip(bytes([LINE_FEED]))
        return RawLine(raw_line_type=RawLineType.PIONEER, raw_data=raw_data)

    def parse_invalid_line(self, raw_data: bytes) -> RawLine:
        """
        Create a RawLine from the leading portion of a line that is too long.
        """
        return RawLine(raw_line_type=RawLineType.INVALID, raw_data=raw_data)

    def feed(self, data: bytes) -> List[RawLine]:
        """
        Add received bytes to the buffer, and return all lines completed by them, in order.
        """
        self.buffer.extend(data)
        result: List[RawLine] = []
        while True:
            icr = self.buffer.find(END_OF_LINE)
            if self.skipping_invalid_line:
                if icr < 0:
                    # Still inside the oversized line; nothing here is worth keeping
                    del self.buffer[:]
                    break
                del self.buffer[:icr + 1]
                self.skipping_invalid_line = False
            elif 0 <= icr <= MAX_LINE_LENGTH:
                raw_data = bytes(self.buffer[:icr])
                del self.buffer[:icr + 1]
                result.append(self.parse_line(raw_data))
            elif len(self.buffer) > MAX_LINE_LENGTH:
                raw_data = bytes(self.buffer[:MAX_LINE_LENGTH])
                del self.buffer[:MAX_LINE_LENGTH]
                self.skipping_invalid_line = True
                logger.debug(f"LineFramer: Discarding line longer than {MAX_LINE_LENGTH} bytes")
                result.append(self.parse_invalid_line(raw_data))
            else:
                break
        return result
