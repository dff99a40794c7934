# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Tests for command encoding."""

import math

import pytest

from pioneer_receiver import PioneerReceiverError
from pioneer_receiver.protocol import (
    BULK_STATUS_QUERIES,
    BulkStatusQuery,
    Direction,
    HmgButton,
    HmgButtonPress,
    InputNameQuery,
    InputSelect,
    ListeningModeSelect,
    MuteSet,
    PowerSet,
    RawCommand,
    StatusQuery,
    VolumeSet,
    VolumeStep,
    Wake,
    ZoneInputSelect,
    ZoneMuteSet,
    ZonePowerSet,
    ZoneVolumeSet,
    ZoneVolumeStep,
    inputs,
  )


def test_on_off_tokens():
    assert PowerSet(True).encode() == b"PO\r"
    assert PowerSet(False).encode() == b"PF\r"
    assert ZonePowerSet(True).encode() == b"APO\r"
    assert ZonePowerSet(False).encode() == b"APF\r"
    assert MuteSet(True).encode() == b"MO\r"
    assert MuteSet(False).encode() == b"MF\r"
    assert ZoneMuteSet(True).encode() == b"Z2MO\r"
    assert ZoneMuteSet(False).encode() == b"Z2MF\r"


def test_wake_is_bare_carriage_return():
    assert Wake().encode() == b"\r"


@pytest.mark.parametrize("db", [x / 2 for x in range(-160, 25)])
def test_volume_in_range(db):
    expected = math.floor(db * 2 + 161 + 0.5)
    line = VolumeSet(db).line()
    assert line == f"{expected:03d}VL"
    assert 1 <= expected <= 185


@pytest.mark.parametrize("db, expected", [
    (0, "161VL"),
    (-80, "001VL"),
    (12, "185VL"),
    (-40.5, "080VL"),
    (-40.25, "081VL"),
  ])
def test_volume_examples(db, expected):
    assert VolumeSet(db).line() == expected


def test_volume_saturates():
    assert VolumeSet(13).encode() == VolumeSet(12).encode()
    assert VolumeSet(1000).line() == "185VL"
    assert VolumeSet(-81).line() == "000VL"
    assert VolumeSet(None).line() == "000VL"
    assert VolumeSet(float("nan")).line() == "000VL"


@pytest.mark.parametrize("db", range(-80, 1))
def test_zone_volume_in_range(db):
    assert ZoneVolumeSet(db).line() == f"{db + 81:02d}ZV"


def test_zone_volume_saturates():
    assert ZoneVolumeSet(5).line() == "81ZV"
    assert ZoneVolumeSet(-100).line() == "00ZV"
    assert ZoneVolumeSet(None).line() == "00ZV"
    assert ZoneVolumeSet(-10.5).line() == "71ZV"


def test_volume_steps():
    assert VolumeStep(Direction.UP).line() == "VU"
    assert VolumeStep(Direction.DOWN).line() == "VD"
    assert ZoneVolumeStep(Direction.UP).line() == "ZU"
    assert ZoneVolumeStep(Direction.DOWN).line() == "ZD"


def test_input_selection_padding():
    assert InputSelect(4).line() == "04FN"
    assert InputSelect(25).line() == "25FN"
    # zone input ids are not padded
    assert ZoneInputSelect(4).line() == "4ZS"
    assert ZoneInputSelect(19).line() == "19ZS"


def test_listening_mode_and_name_query():
    assert ListeningModeSelect(4).line() == "0004SR"
    assert ListeningModeSelect(152).line() == "0152SR"
    assert InputNameQuery(4).line() == "?RGB04"
    assert InputNameQuery(44).line() == "?RGB44"


def test_hmg_buttons():
    assert HmgButtonPress(HmgButton.ENTER).line() == "30NW"
    assert HmgButtonPress(HmgButton.RETURN).line() == "31NW"
    assert HmgButtonPress(HmgButton.DIGIT_1).line() == "01NW"


def test_bulk_query_immediate_lines_in_order():
    bulk = BulkStatusQuery()
    assert bulk.lines() == ("?P", "?V", "?ZV", "?AP", "?M", "?Z2M", "?F", "?L")
    assert bulk.encode() == b"?P\r?V\r?ZV\r?AP\r?M\r?Z2M\r?F\r?L\r"
    assert len(BULK_STATUS_QUERIES) == 8


def test_bulk_query_deferred_input_name_queries():
    bulk = BulkStatusQuery(interval_secs=0.1)
    deferred = bulk.deferred_queries()
    assert [q.input_id for _, q in deferred] == list(inputs.values())
    delays = [delay for delay, _ in deferred]
    assert delays[0] == pytest.approx(0.1)
    for i, delay in enumerate(delays):
        assert delay == pytest.approx((i + 1) * 0.1)


def test_raw_command_validation():
    assert RawCommand("?P").encode() == b"?P\r"
    with pytest.raises(PioneerReceiverError):
        RawCommand("P\rO")
    with pytest.raises(PioneerReceiverError):
        RawCommand("café")
    with pytest.raises(PioneerReceiverError):
        StatusQuery("P")


def test_commands_are_immutable():
    command = PowerSet(True)
    with pytest.raises(Exception):
        command.on = False  # type: ignore[misc]
