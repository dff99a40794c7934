# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Commands that can be sent to a Pioneer receiver, and their encoding into protocol lines.

Each command is an immutable value. Encoding is pure: lines() returns the wire
lines without terminators, and encode() returns the bytes to write to the
transport, with each line terminated by '\\r'. Out-of-range numeric arguments
are clamped to the nearest valid wire value, never rejected.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from ..internal_types import *
from ..exceptions import PioneerReceiverError
from ..util import round_half_up
from .constants import END_OF_LINE, END_OF_LINE_BYTES, MAX_LINE_LENGTH
from .tables import HmgButton, inputs

MIN_VOLUME_DB = -80.0
MAX_VOLUME_DB = 12.0
MAX_VOLUME_LEVEL = 185
"""Wire volume levels run from 0 (mute, "---dB") through 1 (-80 dB) and 161 (0 dB) to 185 (+12 dB),
   in 0.5 dB steps."""

MIN_ZONE_VOLUME_DB = -80.0
MAX_ZONE_VOLUME_DB = 0.0
MAX_ZONE_VOLUME_LEVEL = 81
"""Zone 2 wire volume levels run from 0 ("---dB") through 1 (-80 dB) to 81 (0 dB), in 1 dB steps."""

def volume_db_to_level(db: Optional[float]) -> int:
    """Converts a main zone volume in dB to a wire volume level in [0, 185]."""
    if db is None or math.isnan(db):
        return 0
    if db < MIN_VOLUME_DB:
        return 0
    if db > MAX_VOLUME_DB:
        return MAX_VOLUME_LEVEL
    return round_half_up(db * 2 + 161)

def zone_volume_db_to_level(db: Optional[float]) -> int:
    """Converts a zone 2 volume in dB to a wire volume level in [0, 81]."""
    if db is None or math.isnan(db):
        return 0
    if db < MIN_ZONE_VOLUME_DB:
        return 0
    if db > MAX_ZONE_VOLUME_DB:
        return MAX_ZONE_VOLUME_LEVEL
    return round_half_up(db + 81)

def _validate_line(line: str) -> str:
    try:
        raw_data = line.encode('ascii')
    except UnicodeEncodeError as e:
        raise PioneerReceiverError(f"Command line contains non-ASCII characters: {line!r}") from e
    if END_OF_LINE in raw_data:
        raise PioneerReceiverError(f"Command line contains embedded END_OF_LINE delimiter: {line!r}")
    if len(raw_data) > MAX_LINE_LENGTH:
        raise PioneerReceiverError(f"Command line length {len(raw_data)} exceeds maximum allowed length {MAX_LINE_LENGTH}")
    return line

class Direction(Enum):
    UP = "up"
    DOWN = "down"

class PioneerCommand(ABC):
    """A command to a Pioneer receiver"""

    @abstractmethod
    def lines(self) -> Tuple[str, ...]:
        """Returns the protocol lines for this command, without '\\r' terminators."""
        ...

    def encode(self) -> bytes:
        """Returns the bytes to write to the transport, each line terminated by '\\r'."""
        return b''.join(line.encode('ascii') + END_OF_LINE_BYTES for line in self.lines())

class SingleLineCommand(PioneerCommand):
    """A command that is sent as exactly one protocol line."""

    @abstractmethod
    def line(self) -> str:
        ...

    def lines(self) -> Tuple[str, ...]:
        return (self.line(),)

@dataclass(frozen=True)
class Wake(SingleLineCommand):
    """An empty line. Wakes the receiver's network interface after connecting."""

    def line(self) -> str:
        return ""

@dataclass(frozen=True)
class RawCommand(SingleLineCommand):
    """An arbitrary protocol line, sent verbatim."""
    text: str

    def __post_init__(self) -> None:
        _validate_line(self.text)

    def line(self) -> str:
        return self.text

@dataclass(frozen=True)
class StatusQuery(SingleLineCommand):
    """A status query such as "?P". The receiver answers with the matching status line."""
    query: str

    def __post_init__(self) -> None:
        if not self.query.startswith('?'):
            raise PioneerReceiverError(f"Status query must begin with '?': {self.query!r}")
        _validate_line(self.query)

    def line(self) -> str:
        return self.query

POWER_QUERY = StatusQuery("?P")
VOLUME_QUERY = StatusQuery("?V")
ZONE_VOLUME_QUERY = StatusQuery("?ZV")
ZONE_POWER_QUERY = StatusQuery("?AP")
MUTE_QUERY = StatusQuery("?M")
ZONE_MUTE_QUERY = StatusQuery("?Z2M")
INPUT_QUERY = StatusQuery("?F")
DISPLAY_LISTENING_MODE_QUERY = StatusQuery("?L")

@dataclass(frozen=True)
class PowerSet(SingleLineCommand):
    on: bool

    def line(self) -> str:
        return "PO" if self.on else "PF"

@dataclass(frozen=True)
class ZonePowerSet(SingleLineCommand):
    on: bool

    def line(self) -> str:
        return "APO" if self.on else "APF"

@dataclass(frozen=True)
class MuteSet(SingleLineCommand):
    on: bool

    def line(self) -> str:
        return "MO" if self.on else "MF"

@dataclass(frozen=True)
class ZoneMuteSet(SingleLineCommand):
    on: bool

    def line(self) -> str:
        return "Z2MO" if self.on else "Z2MF"

@dataclass(frozen=True)
class VolumeSet(SingleLineCommand):
    """Sets the main zone volume. db is clamped to [-80, +12]; None selects the minimum level."""
    db: Optional[float]

    @property
    def level(self) -> int:
        return volume_db_to_level(self.db)

    def line(self) -> str:
        return f"{self.level:03d}VL"

@dataclass(frozen=True)
class ZoneVolumeSet(SingleLineCommand):
    """Sets the zone 2 volume. db is clamped to [-80, 0]; None selects the minimum level."""
    db: Optional[float]

    @property
    def level(self) -> int:
        return zone_volume_db_to_level(self.db)

    def line(self) -> str:
        return f"{self.level:02d}ZV"

@dataclass(frozen=True)
class VolumeStep(SingleLineCommand):
    direction: Direction

    def line(self) -> str:
        return "VU" if self.direction == Direction.UP else "VD"

@dataclass(frozen=True)
class ZoneVolumeStep(SingleLineCommand):
    direction: Direction

    def line(self) -> str:
        return "ZU" if self.direction == Direction.UP else "ZD"

@dataclass(frozen=True)
class InputSelect(SingleLineCommand):
    input_id: int

    def line(self) -> str:
        return f"{self.input_id:02d}FN"

@dataclass(frozen=True)
class ZoneInputSelect(SingleLineCommand):
    # zone 2 input ids are sent without zero padding
    input_id: int

    def line(self) -> str:
        return f"{self.input_id}ZS"

@dataclass(frozen=True)
class ListeningModeSelect(SingleLineCommand):
    mode_code: int

    def line(self) -> str:
        return f"{self.mode_code:04d}SR"

@dataclass(frozen=True)
class InputNameQuery(SingleLineCommand):
    """Asks the receiver for the display name of an input. The receiver answers with an "RGB" line."""
    input_id: int

    def line(self) -> str:
        return f"?RGB{self.input_id:02d}"

@dataclass(frozen=True)
class HmgButtonPress(SingleLineCommand):
    button: HmgButton

    def line(self) -> str:
        return f"{self.button.value}NW"

BULK_STATUS_QUERIES: Tuple[StatusQuery, ...] = (
    POWER_QUERY,
    VOLUME_QUERY,
    ZONE_VOLUME_QUERY,
    ZONE_POWER_QUERY,
    MUTE_QUERY,
    ZONE_MUTE_QUERY,
    INPUT_QUERY,
    DISPLAY_LISTENING_MODE_QUERY,
  )
"""The status queries issued immediately by a BulkStatusQuery, in order."""

@dataclass(frozen=True)
class BulkStatusQuery(PioneerCommand):
    """Queries all receiver state.

    lines() holds only the status queries that are sent immediately. The input name
    queries are returned separately by deferred_queries(), each with the delay after
    which it should be sent; scheduling them is up to the sender.
    """
    interval_secs: float = 0.1

    def lines(self) -> Tuple[str, ...]:
        return tuple(query.line() for query in BULK_STATUS_QUERIES)

    def deferred_queries(self) -> List[Tuple[float, InputNameQuery]]:
        """Returns (delay_secs, query) for each known input, in table order, with delays
           interval_secs, 2*interval_secs, ..."""
        return [
            ((i + 1) * self.interval_secs, InputNameQuery(input_id))
            for i, input_id in enumerate(inputs.values())
          ]
