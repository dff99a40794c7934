# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Classifies protocol lines received from a Pioneer receiver and decodes them into typed events.

Lines are classified by prefix against RESPONSE_RULES, in order; the first matching
prefix wins. Where one prefix could shadow another (e.g., "ZV" vs. "VOL", "Z2MUT" vs.
"MUT"), the more specific one comes first.

Payload offsets are fixed-width and match the receiver's output exactly; e.g., the
"VOL" payload is the three characters starting at offset 3.
"""

from __future__ import annotations

import logging

from ..internal_types import *
from ..pkg_logging import logger as pkg_logger
from .constants import UNKNOWN_LISTENING_MODE
from .raw_line import RawLine
from .tables import input_ids, display_code_to_listening_mode
from .events import (
    DecodedEvent,
    PowerChanged,
    ZonePowerChanged,
    VolumeChanged,
    ZoneVolumeChanged,
    MuteChanged,
    ZoneMuteChanged,
    InputChanged,
    ZoneInputChanged,
    InputNameLearned,
    ListeningModeCommandEcho,
    ListeningModeDisplay,
    Unclassified,
  )

RESPONSE_RULES: Tuple[Tuple[str, str], ...] = (
    ("PWR",   "decode_power"),
    ("APR",   "decode_zone_power"),
    ("ZV",    "decode_zone_volume"),
    ("VOL",   "decode_volume"),
    ("Z2MUT", "decode_zone_mute"),
    ("MUT",   "decode_mute"),
    ("FN",    "decode_input"),
    ("Z2F",   "decode_zone_input"),
    ("SR",    "decode_listening_mode_set"),
    ("LM",    "decode_listening_mode_display"),
    ("RGB",   "decode_input_name"),
    ("SSA",   "decode_informational"),
    ("BPR",   "decode_informational"),
    ("FL",    "decode_informational"),
    ("RGC",   "decode_informational"),
    ("RGF",   "decode_informational"),
  )
"""(prefix, ResponseDecoder method name) in priority order."""

class ResponseDecoder:
    """
    Decodes protocol lines into DecodedEvents.

    Owns the table of input display names learned from "RGB" responses, which
    is used to attach names to later input change events. One decoder belongs to
    exactly one session; learned names are never shared or persisted.
    """

    learned_input_names: Dict[int, str]
    """Input display names reported by the receiver, keyed by input id."""

    trace: bool
    logger: logging.Logger

    _rules: List[Tuple[str, Callable[[str], Optional[DecodedEvent]]]]

    def __init__(self, trace: bool=False, logger: Optional[logging.Logger]=None) -> None:
        self.learned_input_names = {}
        self.trace = trace
        self.logger = pkg_logger if logger is None else logger
        self._rules = [ (prefix, getattr(self, method_name)) for prefix, method_name in RESPONSE_RULES ]

    def _trace(self, msg: str) -> None:
        if self.trace:
            self.logger.info(msg)

    def decode(self, line: RawLine) -> Optional[DecodedEvent]:
        """
        Decode a single line.

        Returns:
            The decoded event, or None if the line is empty or informational only.
            Unrecognized or malformed lines decode to Unclassified; this method does
            not raise on bad input.
        """
        data = line.text
        if not line.is_valid:
            self.logger.debug(f"ResponseDecoder: invalid line: {line}")
            return Unclassified(data)
        if len(data) == 0:
            return None
        for prefix, handler in self._rules:
            if data.startswith(prefix):
                try:
                    return handler(data)
                except ValueError as e:
                    self.logger.debug(f"ResponseDecoder: malformed {prefix} line {data!r}: {e}")
                    return Unclassified(data)
        self._trace(f"got data: {data}")
        return Unclassified(data)

    def decode_power(self, data: str) -> DecodedEvent:
        # PWR0 = on, PWR1 = off
        on = data[3:4] == "0"
        self._trace(f"got power: {on}")
        return PowerChanged(on)

    def decode_zone_power(self, data: str) -> DecodedEvent:
        on = data[3:4] == "0"
        self._trace(f"got zpower: {on}")
        return ZonePowerChanged(on)

    def decode_zone_volume(self, data: str) -> DecodedEvent:
        vol = data[2:5]
        db = int(vol) - 81
        self._trace(f"got zvolume: {db}dB ({vol})")
        return ZoneVolumeChanged(db)

    def decode_volume(self, data: str) -> DecodedEvent:
        vol = data[3:6]
        db = (int(vol) - 161) / 2
        self._trace(f"got volume: {db}dB ({vol})")
        return VolumeChanged(db)

    def decode_mute(self, data: str) -> DecodedEvent:
        # MUT0 = muted, MUT1 = not muted
        mute = data.endswith("0")
        self._trace(f"got mute: {mute}")
        return MuteChanged(mute)

    def decode_zone_mute(self, data: str) -> DecodedEvent:
        mute = data.endswith("0")
        self._trace(f"got zmute: {mute}")
        return ZoneMuteChanged(mute)

    def decode_input(self, data: str) -> DecodedEvent:
        self.logger.debug(f"ResponseDecoder: received input mode: {data}")
        input_id = int(data[2:4])
        input_name = self.learned_input_names.get(input_id)
        self._trace(f"got input: {input_id} : {input_name}")
        return InputChanged(input_id, input_name)

    def decode_zone_input(self, data: str) -> DecodedEvent:
        input_id = int(data[3:5])
        input_name = self.learned_input_names.get(input_id)
        self._trace(f"got zinput: {input_id} : {input_name}")
        return ZoneInputChanged(input_id, input_name)

    def decode_listening_mode_set(self, data: str) -> DecodedEvent:
        self.logger.debug(f"ResponseDecoder: received set listening mode: {data}")
        mode = int(data[2:], 10)
        return ListeningModeCommandEcho(mode)

    def decode_listening_mode_display(self, data: str) -> DecodedEvent:
        self.logger.debug(f"ResponseDecoder: received display listening mode: {data}")
        display_code = int(data[2:], 16)
        listening_mode = display_code_to_listening_mode(display_code)
        if listening_mode is None:
            self.logger.debug(f"ResponseDecoder: unable to decode hex listening mode: 0x{display_code:x}")
            return ListeningModeDisplay(UNKNOWN_LISTENING_MODE)
        self.logger.debug(
            f"ResponseDecoder: decoded hex listening mode: 0x{display_code:x} into "
            f"{listening_mode.ordinal} ({listening_mode.name})")
        return ListeningModeDisplay(listening_mode.ordinal)

    def decode_input_name(self, data: str) -> Optional[DecodedEvent]:
        # RGB<id:2><default-name-flag:1><name>
        try:
            input_id = int(data[3:5])
        except ValueError:
            return None
        if input_id not in input_ids:
            return None
        input_name = data[6:]
        self.learned_input_names[input_id] = input_name
        self._trace(f"set input {input_id} to {input_name}")
        return InputNameLearned(input_id, input_name)

    def decode_informational(self, data: str) -> None:
        self.logger.debug(f"ResponseDecoder: informational line: {data}")
        return None
