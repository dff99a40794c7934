# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Tests for the pioneer-receiver command-line tool."""

import json

import pytest

from pioneer_receiver import __version__
from pioneer_receiver.__main__ import arun
from pioneer_receiver.emulator import PioneerReceiverEmulator


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PIONEER_RECEIVER_HOST", "PIONEER_RECEIVER_PORT", "PIONEER_RECEIVER_CONFIG_FILE"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.asyncio
async def test_version(capsys):
    assert await arun(["version"]) == 0
    assert capsys.readouterr().out.strip() == __version__


@pytest.mark.asyncio
async def test_exec_against_emulator(capsys):
    async with PioneerReceiverEmulator(bind_addr="127.0.0.1", port=0) as emulator:
        rc = await arun([
            "exec", "--host", f"127.0.0.1:{emulator.bound_port}", "--settle", "0.2",
            "on", "volume=-40", "input=bd",
          ])
        assert rc == 0
        assert emulator.power is True
        assert emulator.volume_level == 81
        assert emulator.input_id == 25
    results = json.loads(capsys.readouterr().out)
    assert [result["name"] for result in results] == ["<connect>", "on", "volume=-40", "input=bd"]
    assert dict(event="power", on=True) in results[1]["events"]
    assert dict(event="volume", db=-40.0) in results[2]["events"]


@pytest.mark.asyncio
async def test_exec_unknown_command(capsys):
    async with PioneerReceiverEmulator(bind_addr="127.0.0.1", port=0) as emulator:
        rc = await arun([
            "exec", "--host", f"127.0.0.1:{emulator.bound_port}", "--settle", "0.05", "explode",
          ])
    assert rc == 1
    captured = capsys.readouterr()
    assert "Unknown command" in captured.err
    results = json.loads(captured.out)
    assert results[-1]["error_message"] == "Unknown command: 'explode'"
