# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Tests for the client session, driven by an in-memory transport."""

import asyncio
import logging

import pytest

from pioneer_receiver import (
    PioneerReceiverError,
    PioneerReceiverSession,
    SessionState,
    inputs,
  )
from pioneer_receiver.protocol import InputChanged, PowerChanged

WAKE_DELAY = 0.01
INTERVAL = 0.001


class FakeTransport(asyncio.Transport):
    def __init__(self, protocol):
        super().__init__()
        self.protocol = protocol
        self.written = bytearray()
        self.closing = False

    def write(self, data):
        assert not self.closing
        self.written.extend(data)

    def is_closing(self):
        return self.closing

    def close(self):
        if not self.closing:
            self.closing = True
            asyncio.get_running_loop().call_soon(self.protocol.connection_lost, None)

    def get_extra_info(self, name, default=None):
        if name == "peername":
            return ("127.0.0.1", 23)
        return default

    def lines(self):
        return bytes(self.written).decode("ascii").split("\r")[:-1]


def make_session(**kwargs):
    session = PioneerReceiverSession(
        wake_delay=WAKE_DELAY,
        input_name_query_interval=INTERVAL,
        **kwargs)
    transport = FakeTransport(session)
    return session, transport


async def connect(session, transport):
    session.connection_made(transport)
    await session.wait_connected()


@pytest.mark.asyncio
async def test_wake_then_bulk_query_then_connect():
    session, transport = make_session()
    connects = []
    session.on("connect", lambda: connects.append(transport.lines()))
    session.connection_made(transport)
    assert session.state == SessionState.WAKING
    assert transport.lines() == [""]
    await session.wait_connected()
    assert session.state == SessionState.CONNECTED
    assert connects == [["", "?P", "?V", "?ZV", "?AP", "?M", "?Z2M", "?F", "?L"]]


@pytest.mark.asyncio
async def test_input_name_queries_are_staggered():
    session, transport = make_session()
    await connect(session, transport)
    await asyncio.sleep(INTERVAL * len(inputs) + 0.1)
    name_queries = [line for line in transport.lines() if line.startswith("?RGB")]
    assert name_queries == [f"?RGB{input_id:02d}" for input_id in inputs.values()]
    session.close()
    await session.wait_closed()


@pytest.mark.asyncio
async def test_deferred_queries_dropped_after_close():
    session = PioneerReceiverSession(wake_delay=WAKE_DELAY, input_name_query_interval=0.05)
    transport = FakeTransport(session)
    await connect(session, transport)
    session.close()
    await session.wait_closed()
    await asyncio.sleep(0.1)
    assert not any(line.startswith("?RGB") for line in transport.lines())


@pytest.mark.asyncio
async def test_events_are_emitted_by_name():
    session, transport = make_session()
    await connect(session, transport)
    received = []
    session.on("power", lambda on: received.append(("power", on)))
    session.on("volume", lambda db: received.append(("volume", db)))
    session.on("zmute", lambda on: received.append(("zmute", on)))
    session.on("input", lambda input_id, name: received.append(("input", input_id, name)))
    session.on("inputName", lambda input_id, name: received.append(("inputName", input_id, name)))
    session.on("unclassified", lambda raw: received.append(("unclassified", raw)))
    events = []
    session.on("event", events.append)

    session.data_received(b"PWR0\rVOL1")
    session.data_received(b"22\rZ2MUT0\rFN04\rRGB041Blu-ray\rFN04\rE04\r")

    assert received == [
        ("power", True),
        ("volume", -19.5),
        ("zmute", True),
        ("input", 4, None),
        ("inputName", 4, "Blu-ray"),
        ("input", 4, "Blu-ray"),
        ("unclassified", "E04"),
      ]
    assert events[0] == PowerChanged(True)
    assert events[-2] == InputChanged(4, "Blu-ray")
    assert dict(session.input_names) == {4: "Blu-ray"}
    session.close()
    await session.wait_closed()


@pytest.mark.asyncio
async def test_listening_mode_echo_requeries_display_mode():
    session, transport = make_session()
    await connect(session, transport)
    modes = []
    session.on("listening_mode_set", modes.append)
    before = len(transport.lines())
    session.data_received(b"SR0112\r")
    assert modes == [112]
    assert transport.lines()[before:] == ["?L"]
    session.close()
    await session.wait_closed()


@pytest.mark.asyncio
async def test_lines_after_close_in_same_chunk_skip_follow_up():
    session, transport = make_session()
    await connect(session, transport)
    session.on("power", lambda on: session.close())
    modes = []
    session.on("listening_mode_set", modes.append)
    before = len(transport.lines())
    session.data_received(b"PWR1\rSR0112\r")
    assert modes == [112]
    assert transport.lines()[before:] == []
    assert not session.is_connected
    await session.wait_closed()


@pytest.mark.asyncio
async def test_commands():
    session, transport = make_session()
    await connect(session, transport)
    transport.written.clear()
    session.power(True)
    session.zpower(False)
    session.mute(True)
    session.zmute(False)
    session.volume(-20)
    session.volume(13)
    session.zvolume(-30)
    session.volume_up()
    session.zvolume_down()
    session.select_input("hdmi_1")
    session.select_zone_input(4)
    session.listening_mode(4)
    session.query_input_name("bd")
    session.button_hmg_enter()
    session.press_hmg_button("play")
    session.send_raw("?P")
    assert transport.lines() == [
        "PO", "APF", "MO", "Z2MF", "121VL", "185VL", "51ZV", "VU", "ZD",
        "19FN", "?F", "4ZS", "0004SR", "?RGB25", "30NW", "10NW", "?P",
      ]
    with pytest.raises(PioneerReceiverError):
        session.press_hmg_button("eject")
    with pytest.raises(PioneerReceiverError):
        session.select_input("nowhere")
    session.close()
    await session.wait_closed()


@pytest.mark.asyncio
async def test_send_while_disconnected_raises():
    session, _ = make_session()
    with pytest.raises(PioneerReceiverError):
        session.power(True)


@pytest.mark.asyncio
async def test_end_emitted_once():
    session, transport = make_session()
    await connect(session, transport)
    ends = []
    session.on("end", lambda: ends.append(True))
    session.eof_received()
    session.connection_lost(None)
    assert ends == [True]
    assert session.state == SessionState.CLOSED
    with pytest.raises(PioneerReceiverError):
        session.power(True)


@pytest.mark.asyncio
async def test_error_emitted_on_connection_failure():
    session, transport = make_session()
    await connect(session, transport)
    errors = []
    session.on("error", errors.append)
    exc = ConnectionResetError("reset by peer")
    session.connection_lost(exc)
    assert errors == [exc]
    await session.wait_closed()


@pytest.mark.asyncio
async def test_wait_connected_fails_if_closed_while_waking():
    session = PioneerReceiverSession(wake_delay=10.0)
    transport = FakeTransport(session)
    session.connection_made(transport)
    session.close()
    with pytest.raises(PioneerReceiverError):
        await session.wait_connected()


@pytest.mark.asyncio
async def test_debug_log_sink_receives_messages():
    messages = []
    session, transport = make_session(debug_log=messages.append, trace=True)
    await connect(session, transport)
    session.data_received(b"PWR0\r")
    assert any("got power: True" in message for message in messages)
    other, other_transport = make_session()
    await connect(other, other_transport)
    count = len(messages)
    other.data_received(b"PWR1\r")
    assert len(messages) == count
    session.close()
    other.close()
    await session.wait_closed()
    await other.wait_closed()


@pytest.mark.asyncio
async def test_async_context_manager_closes():
    session, transport = make_session()
    async with session:
        await connect(session, transport)
    assert transport.closing
    assert session.state == SessionState.CLOSED


class CaptureHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.mark.asyncio
async def test_debug_log_sink_is_not_propagated_and_is_released():
    capture = CaptureHandler()
    root = logging.getLogger()
    root.addHandler(capture)
    try:
        messages = []
        session, transport = make_session(debug_log=messages.append)
        await connect(session, transport)
        session.data_received(b"LM0210\r")
        session.close()
        await session.wait_closed()
    finally:
        root.removeHandler(capture)
    session_logger = session.logger
    assert any("configured custom debug logger" in message for message in messages)
    assert [record for record in capture.records if record.name == session_logger.name] == []
    assert session_logger.handlers == []
    assert session_logger.propagate
    assert session_logger.name not in logging.Logger.manager.loggerDict


@pytest.mark.asyncio
async def test_observer_failure_reaches_debug_log_sink():
    messages = []
    session, transport = make_session(debug_log=messages.append)
    await connect(session, transport)
    powers = []

    def explode(on):
        raise RuntimeError("observer failed")

    session.on("power", explode)
    session.on("power", powers.append)
    session.data_received(b"PWR0\r")
    assert powers == [True]
    assert any("Observer of 'power' raised exception: observer failed" in message for message in messages)
    session.close()
    await session.wait_closed()
