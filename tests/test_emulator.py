# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""End-to-end tests of client sessions against the receiver emulator on a loopback port."""

import asyncio

import pytest

from pioneer_receiver import (
    PioneerReceiverClientConfig,
    PioneerReceiverSession,
    TcpPioneerReceiverConnector,
    pioneer_receiver_connect,
  )
from pioneer_receiver.emulator import PioneerReceiverEmulator
from pioneer_receiver.protocol import inputs


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PIONEER_RECEIVER_HOST", "PIONEER_RECEIVER_PORT", "PIONEER_RECEIVER_CONFIG_FILE"):
        monkeypatch.delenv(name, raising=False)


async def wait_for_event(session, name, predicate=lambda *args: True, timeout=2.0):
    future = asyncio.get_running_loop().create_future()

    def on_event(*args):
        if not future.done() and predicate(*args):
            future.set_result(args)

    session.on(name, on_event)
    try:
        return await asyncio.wait_for(future, timeout)
    finally:
        session.off(name, on_event)


async def wait_for_all_input_names(session, timeout=2.0):
    async def poll():
        while len(session.input_names) < len(inputs):
            await asyncio.sleep(0.01)
    await asyncio.wait_for(poll(), timeout)


async def start_emulator(**kwargs):
    emulator = PioneerReceiverEmulator(bind_addr="127.0.0.1", port=0, **kwargs)
    await emulator.start()
    return emulator


async def open_session(emulator, **kwargs):
    config = PioneerReceiverClientConfig("127.0.0.1", default_port=emulator.bound_port, use_config_file=False)
    session = PioneerReceiverSession(config=config, wake_delay=0.01, input_name_query_interval=0.001, **kwargs)
    return await pioneer_receiver_connect(session=session)


@pytest.mark.asyncio
async def test_initial_status_from_bulk_query():
    emulator = await start_emulator(initial_power=True, input_names={25: "Blu-ray"})
    try:
        session = await open_session(emulator)
        power = asyncio.ensure_future(wait_for_event(session, "power"))
        volume = asyncio.ensure_future(wait_for_event(session, "volume"))
        mode = asyncio.ensure_future(wait_for_event(session, "listening_mode_display"))
        name = asyncio.ensure_future(wait_for_event(session, "inputName", lambda input_id, _: input_id == 25))
        async with session:
            await session.wait_connected()
            assert await power == (True,)
            assert await volume == (-20.0,)
            assert await mode == (152,)
            assert await name == (25, "Blu-ray")
            await wait_for_all_input_names(session)
            assert len(session.input_names) == len(inputs)
    finally:
        await emulator.close_and_wait()


@pytest.mark.asyncio
async def test_commands_change_state_and_broadcast():
    emulator = await start_emulator()
    try:
        async with await open_session(emulator) as first, await open_session(emulator) as second:
            await first.wait_connected()
            await second.wait_connected()

            volume = asyncio.ensure_future(wait_for_event(second, "volume", lambda db: db == -35.5))
            first.volume(-35.5)
            await volume
            assert emulator.volume_level == 90

            mute = asyncio.ensure_future(wait_for_event(second, "mute", lambda on: on))
            first.mute(True)
            await mute
            assert emulator.mute is True

            zmute = asyncio.ensure_future(wait_for_event(first, "zmute", lambda on: on))
            first.zmute(True)
            await zmute

            zvolume = asyncio.ensure_future(wait_for_event(first, "zvolume", lambda db: db == -19))
            first.zvolume_up()
            await zvolume

            await wait_for_all_input_names(first)
            selected = asyncio.ensure_future(wait_for_event(first, "input", lambda input_id, _: input_id == 19))
            first.select_input("hdmi_1")
            assert await selected == (19, "HDMI_1")

            zinput = asyncio.ensure_future(wait_for_event(second, "zinput", lambda input_id, _: input_id == 25))
            first.select_zone_input("bd")
            await zinput
    finally:
        await emulator.close_and_wait()


@pytest.mark.asyncio
async def test_listening_mode_echo_followed_by_display_mode():
    emulator = await start_emulator()
    try:
        async with await open_session(emulator) as session:
            await session.wait_connected()
            echo = asyncio.ensure_future(wait_for_event(session, "listening_mode_set"))
            display = asyncio.ensure_future(wait_for_event(session, "listening_mode_display", lambda mode: mode == 4))
            session.listening_mode(4)
            assert await echo == (4,)
            assert await display == (4,)
            assert emulator.received_lines.count("?L") >= 2
    finally:
        await emulator.close_and_wait()


@pytest.mark.asyncio
async def test_unknown_command_answers_error():
    emulator = await start_emulator()
    try:
        async with await open_session(emulator) as session:
            await session.wait_connected()
            unclassified = asyncio.ensure_future(wait_for_event(session, "unclassified"))
            session.send_raw("BOGUS")
            assert await unclassified == ("E04",)
    finally:
        await emulator.close_and_wait()


@pytest.mark.asyncio
async def test_emulator_close_ends_sessions():
    emulator = await start_emulator()
    session = await open_session(emulator)
    ended = asyncio.ensure_future(wait_for_event(session, "end"))
    await session.wait_connected()
    await emulator.close_and_wait()
    await ended
    await session.wait_closed()


@pytest.mark.asyncio
async def test_emulator_as_context_manager():
    async with PioneerReceiverEmulator(bind_addr="127.0.0.1", port=0) as emulator:
        async with await open_session(emulator) as session:
            await session.wait_connected()
            power = asyncio.ensure_future(wait_for_event(session, "power", lambda on: on))
            session.power(True)
            await power
        assert emulator.power is True


@pytest.mark.asyncio
async def test_connect_resolves_host_from_session_config():
    async with PioneerReceiverEmulator(bind_addr="127.0.0.1", port=0) as emulator:
        config = PioneerReceiverClientConfig(f"127.0.0.1:{emulator.bound_port}", use_config_file=False)
        session = PioneerReceiverSession(config=config, wake_delay=0.01)
        async with await pioneer_receiver_connect(session=session):
            await session.wait_connected()
            assert session.peer_name[1] == emulator.bound_port


@pytest.mark.asyncio
async def test_connector_arguments_override_session_config():
    async with PioneerReceiverEmulator(bind_addr="127.0.0.1", port=0) as emulator:
        config = PioneerReceiverClientConfig("127.0.0.1", default_port=1, use_config_file=False)
        session = PioneerReceiverSession(config=config, wake_delay=0.01)
        connector = TcpPioneerReceiverConnector(port=emulator.bound_port)
        async with await connector.connect(session=session):
            await session.wait_connected()
            assert session.peer_name[1] == emulator.bound_port
