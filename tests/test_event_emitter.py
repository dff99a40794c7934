# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Tests for named event publish/subscribe."""

from pioneer_receiver import EventEmitter


def test_observers_called_in_registration_order():
    emitter = EventEmitter()
    calls = []
    emitter.on("power", lambda on: calls.append(("a", on)))
    emitter.on("power", lambda on: calls.append(("b", on)))
    assert emitter.emit("power", True) is True
    assert calls == [("a", True), ("b", True)]


def test_emit_without_observers():
    assert EventEmitter().emit("nothing") is False


def test_once_and_off():
    emitter = EventEmitter()
    calls = []
    emitter.once("mute", calls.append)
    emitter.emit("mute", True)
    emitter.emit("mute", False)
    assert calls == [True]
    assert emitter.listener_count("mute") == 0

    callback = emitter.on("volume", calls.append)
    emitter.off("volume", callback)
    emitter.emit("volume", -20.0)
    assert calls == [True]


def test_observer_exception_does_not_stop_delivery(caplog):
    emitter = EventEmitter()
    calls = []

    def bad(_):
        raise RuntimeError("boom")

    emitter.on("input", bad)
    emitter.on("input", calls.append)
    emitter.emit("input", 4)
    assert calls == [4]
    assert "boom" in caplog.text
