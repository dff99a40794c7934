# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Protocol codec for Pioneer receivers.

This module defines the line-oriented ASCII protocol used by Pioneer receivers for
TCP/IP control: command encoding, line framing, and decoding of status lines into
typed events. It does no I/O.
"""

from .constants import (
    END_OF_LINE,
    END_OF_LINE_BYTES,
    MAX_LINE_LENGTH,
    UNKNOWN_LISTENING_MODE,
  )

from .raw_line_type import RawLineType

from .raw_line import RawLine

from .tables import (
    ListeningMode,
    HmgButton,
    inputs,
    input_ids,
    listening_modes,
    display_code_to_listening_mode,
    ordinal_to_listening_mode,
    input_id_to_symbol,
    resolve_input_id,
    get_display_modes,
    get_input_modes,
  )

from .command import (
    PioneerCommand,
    SingleLineCommand,
    Direction,
    Wake,
    RawCommand,
    StatusQuery,
    PowerSet,
    ZonePowerSet,
    MuteSet,
    ZoneMuteSet,
    VolumeSet,
    ZoneVolumeSet,
    VolumeStep,
    ZoneVolumeStep,
    InputSelect,
    ZoneInputSelect,
    ListeningModeSelect,
    InputNameQuery,
    HmgButtonPress,
    BulkStatusQuery,
    BULK_STATUS_QUERIES,
    INPUT_QUERY,
    DISPLAY_LISTENING_MODE_QUERY,
    volume_db_to_level,
    zone_volume_db_to_level,
  )

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

from .framer import LineFramer

from .decoder import ResponseDecoder, RESPONSE_RULES
