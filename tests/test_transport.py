from __future__ import annotations

from typing import List

import pytest
from websockets.exceptions import ConnectionClosed
from websockets.frames import Close

from laneduel.transport import CLOSE_NO_OFFER, LoopbackChannel, RelayChannel, SessionSetupError


class Recorder:
    def __init__(self) -> None:
        self.messages: List[str] = []
        self.events: List[str] = []
        self.errors: List[Exception] = []

    def bind(self, channel) -> None:
        channel.bind(
            self.messages.append,
            lambda: self.events.append("open"),
            lambda: self.events.append("close"),
            self.errors.append,
        )


def test_loopback_delivers_only_while_open() -> None:
    left, right = LoopbackChannel.pair()
    received = Recorder()
    received.bind(right)
    left.send("early")
    left.open()
    left.send("hello")
    left.close()
    left.send("late")
    assert received.messages == ["hello"]
    assert received.events == ["open", "close"]
    assert left.sent == 1


def test_relay_channel_builds_room_uri() -> None:
    channel = RelayChannel("ws://relay.example:8000/", "Room1", "guest")
    assert channel.uri == "ws://relay.example:8000/ws/room1/guest"
    with pytest.raises(ValueError):
        RelayChannel("ws://relay.example:8000", "room1", "spectator")


def test_relay_control_frames_toggle_connection() -> None:
    channel = RelayChannel("ws://relay", "room1", "host")
    recorder = Recorder()
    recorder.bind(channel)
    assert channel._control('{"type":"peer","status":"joined"}')
    assert channel.connected
    assert not channel._control('{"type":"input","mx":0,"mz":0,"ax":1,"az":0}')
    assert channel._control('{"type":"peer","status":"left"}')
    assert recorder.events == ["open", "close"]


def test_refused_relay_connection_reports_setup_error() -> None:
    channel = RelayChannel("ws://relay", "ghost", "guest")
    recorder = Recorder()
    recorder.bind(channel)
    reason = "No offer found. Ask host to create room first."
    channel._handle_close(ConnectionClosed(Close(CLOSE_NO_OFFER, reason), None))
    assert len(recorder.errors) == 1
    assert isinstance(recorder.errors[0], SessionSetupError)
    assert str(recorder.errors[0]) == reason


def test_send_before_connection_is_dropped() -> None:
    channel = RelayChannel("ws://relay", "room1", "host")
    channel.send("nothing listens yet")
    channel.close()
