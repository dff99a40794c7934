# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Tests for splitting received bytes into protocol lines."""

from pioneer_receiver.protocol import LineFramer, RawLine, RawLineType, MAX_LINE_LENGTH


def texts(lines):
    return [line.text for line in lines]


def test_whole_lines_in_one_chunk():
    framer = LineFramer()
    assert texts(framer.feed(b"PWR0\rMUT0\r")) == ["PWR0", "MUT0"]
    assert framer.pending_length == 0


def test_split_mid_line():
    framer = LineFramer()
    first = framer.feed(b"PWR0\rMU")
    assert texts(first) == ["PWR0"]
    assert framer.pending_length == 2
    second = framer.feed(b"T0\r")
    assert texts(second) == ["MUT0"]


def test_one_byte_at_a_time():
    framer = LineFramer()
    result = []
    for b in b"VOL121\rFN04\r":
        result.extend(framer.feed(bytes([b])))
    assert texts(result) == ["VOL121", "FN04"]


def test_unterminated_fragment_is_held():
    framer = LineFramer()
    assert framer.feed(b"PWR") == []
    assert framer.pending_length == 3


def test_empty_lines_are_returned():
    framer = LineFramer()
    lines = framer.feed(b"\r\rPWR1\r")
    assert texts(lines) == ["", "", "PWR1"]
    assert all(line.is_valid for line in lines)


def test_crlf_line_feeds_stripped():
    framer = LineFramer()
    assert texts(framer.feed(b"PWR0\r\nMUT1\r\n")) == ["PWR0", "MUT1"]


def test_reset_discards_fragment():
    framer = LineFramer()
    framer.feed(b"PWR")
    framer.reset()
    assert framer.pending_length == 0
    assert texts(framer.feed(b"0\r")) == ["0"]


def test_overlong_line_is_invalid_and_skipped():
    framer = LineFramer()
    junk = b"X" * (MAX_LINE_LENGTH + 10)
    lines = framer.feed(junk)
    assert len(lines) == 1
    assert lines[0].raw_line_type == RawLineType.INVALID
    assert len(lines[0]) == MAX_LINE_LENGTH
    lines = framer.feed(b"YYY\rPWR0\r")
    assert texts(lines) == ["PWR0"]


def test_lines_compare_equal():
    framer = LineFramer()
    assert framer.feed(b"PWR0\r") == [RawLine.from_raw_data("PWR0\r")]
