# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Typed events decoded from status lines sent by a Pioneer receiver.

Each event class has a `name`, which is the name under which a session emits it
to observers, and args(), the positional payload passed to those observers.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

from ..internal_types import *
from .command import PioneerCommand, DISPLAY_LISTENING_MODE_QUERY
from .constants import UNKNOWN_LISTENING_MODE
from .tables import input_id_to_symbol, ordinal_to_listening_mode

@dataclass(frozen=True)
class DecodedEvent:
    """Base class for all decoded events."""

    name: ClassVar[str] = "event"
    """The event name emitted to observers."""

    follow_up: ClassVar[Tuple[PioneerCommand, ...]] = ()
    """Commands that must be sent back to the receiver when this event is decoded."""

    def args(self) -> Tuple[Any, ...]:
        """The positional payload passed to observers of this event."""
        return tuple(getattr(self, f.name) for f in fields(self))

    def to_jsonable(self) -> JsonableDict:
        result: JsonableDict = dict(event=self.name)
        for f in fields(self):
            result[f.name] = getattr(self, f.name)
        return result

@dataclass(frozen=True)
class PowerChanged(DecodedEvent):
    name: ClassVar[str] = "power"
    on: bool

@dataclass(frozen=True)
class ZonePowerChanged(DecodedEvent):
    name: ClassVar[str] = "zpower"
    on: bool

@dataclass(frozen=True)
class VolumeChanged(DecodedEvent):
    """Main zone volume in dB. May be a half-integer."""
    name: ClassVar[str] = "volume"
    db: float

@dataclass(frozen=True)
class ZoneVolumeChanged(DecodedEvent):
    name: ClassVar[str] = "zvolume"
    db: int

@dataclass(frozen=True)
class MuteChanged(DecodedEvent):
    name: ClassVar[str] = "mute"
    on: bool

@dataclass(frozen=True)
class ZoneMuteChanged(DecodedEvent):
    name: ClassVar[str] = "zmute"
    on: bool

@dataclass(frozen=True)
class InputChanged(DecodedEvent):
    """The selected input. input_name is the display name learned from the receiver, if any."""
    name: ClassVar[str] = "input"
    input_id: int
    input_name: Optional[str] = None

    @property
    def input_symbol(self) -> Optional[str]:
        return input_id_to_symbol(self.input_id)

@dataclass(frozen=True)
class ZoneInputChanged(DecodedEvent):
    name: ClassVar[str] = "zinput"
    input_id: int
    input_name: Optional[str] = None

    @property
    def input_symbol(self) -> Optional[str]:
        return input_id_to_symbol(self.input_id)

@dataclass(frozen=True)
class InputNameLearned(DecodedEvent):
    name: ClassVar[str] = "inputName"
    input_id: int
    input_name: str

@dataclass(frozen=True)
class ListeningModeCommandEcho(DecodedEvent):
    """Echo of a listening mode selection, e.g. from the remote's mode cycle key.

    This does not reflect the mode actually in effect, so the display listening
    mode is queried again whenever this event is decoded.
    """
    name: ClassVar[str] = "listening_mode_set"
    follow_up: ClassVar[Tuple[PioneerCommand, ...]] = (DISPLAY_LISTENING_MODE_QUERY,)
    mode: int

    @property
    def mode_name(self) -> Optional[str]:
        listening_mode = ordinal_to_listening_mode(self.mode)
        return None if listening_mode is None else listening_mode.name

@dataclass(frozen=True)
class ListeningModeDisplay(DecodedEvent):
    """The listening mode in effect. mode is UNKNOWN_LISTENING_MODE if the display code is not known."""
    name: ClassVar[str] = "listening_mode_display"
    mode: int

    @property
    def is_unknown(self) -> bool:
        return self.mode == UNKNOWN_LISTENING_MODE

    @property
    def mode_name(self) -> Optional[str]:
        if self.is_unknown:
            return None
        listening_mode = ordinal_to_listening_mode(self.mode)
        return None if listening_mode is None else listening_mode.name

@dataclass(frozen=True)
class Unclassified(DecodedEvent):
    """A non-empty line that was not recognized."""
    name: ClassVar[str] = "unclassified"
    raw_line: str
