# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Static lookup tables for the Pioneer receiver protocol.

There is no protocol implementation here; only data about the protocol:

  * Input slots: symbolic input name -> numeric input id used by the FN/ZS/RGB
    commands and responses.
  * Listening modes: the decimal code used to select a mode with "SR", and the
    set of hex display codes with which the receiver reports that mode in "LM"
    responses. Several display codes may map to the same mode.
  * HMG (Home Media Gallery) buttons: the codes sent with "NW".

The tables are built once at import time and are read-only.
"""
from __future__ import annotations

from enum import Enum

from ..internal_types import *
from ..exceptions import PioneerReceiverError
from .constants import UNKNOWN_LISTENING_MODE

_known_inputs: List[Tuple[str, int]] = [
    ("dvd", 4),
    ("bd", 25),
    ("tv_sat", 5),
    ("kabel", 6),
    ("dvr_bdr", 15),
    ("video_1", 10),
    ("video_2", 14),
    ("hdmi_1", 19),
    ("hdmi_2", 20),
    ("hdmi_3", 21),
    ("hdmi_4", 22),
    ("hdmi_5", 23),
    ("media", 26),
    ("ipod_usb", 17),
    ("xm_radio", 18),
    ("cd", 1),
    ("cdr_tape", 3),
    ("tuner", 2),
    ("phono", 0),
    ("multi_ch", 12),
    ("adapter_port", 33),
    ("sirius", 27),
    ("MediaServer/Airplay", 44),
  ]
"""Input slots known at the time this table was defined, in query order."""

inputs: Mapping[str, int] = MappingProxyType(dict(_known_inputs))
"""Read-only mapping of symbolic input name to numeric input id (0-99)."""

input_ids: FrozenSet[int] = frozenset(inputs.values())
"""The set of all known numeric input ids."""

_input_id_to_symbol: Mapping[int, str] = MappingProxyType(
    { input_id: symbol for symbol, input_id in _known_inputs })

class ListeningMode:
    name: str
    """The display name of the listening mode."""

    ordinal: int
    """The decimal code used to select the mode with the "SR" command."""

    display_codes: FrozenSet[int]
    """The hex codes with which the receiver reports this mode in "LM" responses."""

    def __init__(self, name: str, ordinal: int, display_codes: Iterable[int]):
        self.name = name
        self.ordinal = ordinal
        self.display_codes = frozenset(display_codes)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        codes = ', '.join(f"0x{code:03x}" for code in sorted(self.display_codes))
        return f"ListeningMode('{self.name}', {self.ordinal}, [{codes}])"

_known_listening_modes: List[ListeningMode] = [
    ListeningMode("OPTIMUM SURROUND", 152, [0x881]),
    ListeningMode("Auto Level Control (Straight Decode)", 151, [0x501, 0x505]),
    ListeningMode("PURE DIRECT", 8, [0x701, 0x705]),
    ListeningMode("Front Stage Surround Advance Wide", 4, [0x210]),
    ListeningMode("EXTENDED STEREO", 112, [0x20d]),
    ListeningMode("TV Surround", 116, [0x207]),
    ListeningMode("Unknown", UNKNOWN_LISTENING_MODE, [0xfff]),
  ]
"""Listening modes known at the time this table was defined. Display codes are
   matched against this list in order; the first match wins."""

listening_modes: Mapping[str, ListeningMode] = MappingProxyType(
    { mode.name: mode for mode in _known_listening_modes })
"""Read-only mapping of listening mode name to ListeningMode."""

_ordinal_to_listening_mode: Mapping[int, ListeningMode] = MappingProxyType(
    { mode.ordinal: mode for mode in _known_listening_modes })

class HmgButton(Enum):
    """Buttons of the HMG (Home Media Gallery) network player, with their "NW" codes."""
    DIGIT_1 = "01"
    PLAY = "10"
    STOP = "20"
    UP = "26"
    DOWN = "27"
    ENTER = "30"
    RETURN = "31"

def display_code_to_listening_mode(display_code: int) -> Optional[ListeningMode]:
    """Returns the first listening mode that claims a hex display code, or None."""
    for mode in _known_listening_modes:
        if display_code in mode.display_codes:
            return mode
    return None

def ordinal_to_listening_mode(ordinal: int) -> Optional[ListeningMode]:
    """Returns the listening mode selected by a decimal "SR" code, or None."""
    return _ordinal_to_listening_mode.get(ordinal)

def input_id_to_symbol(input_id: int) -> Optional[str]:
    """Returns the symbolic name of an input id, or None if the id is not known."""
    return _input_id_to_symbol.get(input_id)

def resolve_input_id(value: Union[int, str]) -> int:
    """Converts an input id or symbolic input name (e.g., "hdmi_1", 19, or "19") to an input id.

    Raises PioneerReceiverError if a name is not known.
    """
    if isinstance(value, int):
        return value
    if value in inputs:
        return inputs[value]
    if value.isdigit():
        return int(value)
    raise PioneerReceiverError(f"Unknown input name: {value!r}")

def get_display_modes() -> Dict[int, str]:
    """Returns a new dict mapping listening mode ordinal to name, excluding the "Unknown" sentinel."""
    return { mode.ordinal: mode.name for mode in _known_listening_modes if mode.ordinal != UNKNOWN_LISTENING_MODE }

def get_input_modes() -> Dict[int, str]:
    """Returns a new dict mapping input id to symbolic input name."""
    return dict(_input_id_to_symbol)
