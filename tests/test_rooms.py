"""Relay server tests driven through the FastAPI test client."""
from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from laneduel.rooms import RoomManager
from laneduel.server import app

NO_OFFER = "No offer found. Ask host to create room first."


@pytest.fixture()
def client() -> Iterator[TestClient]:
    app.state.room_manager = RoomManager()
    with TestClient(app) as test_client:
        yield test_client


def test_healthcheck(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "rooms": 0}


def test_unknown_room_status_is_404(client: TestClient) -> None:
    response = client.get("/rooms/ghost")
    assert response.status_code == 404
    assert response.json()["detail"] == NO_OFFER


def test_guest_without_host_is_refused(client: TestClient) -> None:
    with client.websocket_connect("/ws/ghost/guest") as guest:
        with pytest.raises(WebSocketDisconnect) as info:
            guest.receive_text()
    assert info.value.code == 4004


def test_second_host_is_refused(client: TestClient) -> None:
    with client.websocket_connect("/ws/room1/host"):
        response = client.get("/rooms/room1")
        assert response.json() == {"room": "room1", "hosted": True, "guest": False, "relayed": 0}
        with client.websocket_connect("/ws/room1/host") as intruder:
            with pytest.raises(WebSocketDisconnect) as info:
                intruder.receive_text()
    assert info.value.code == 4009


def test_relay_forwards_frames_between_host_and_guest(client: TestClient) -> None:
    with client.websocket_connect("/ws/Room1/host") as host:
        with client.websocket_connect("/ws/room1/guest") as guest:
            assert host.receive_json() == {"type": "peer", "status": "joined"}
            assert guest.receive_json() == {"type": "peer", "status": "joined"}

            guest.send_text('{"type":"input","mx":1}')
            assert host.receive_text() == '{"type":"input","mx":1}'
            host.send_text('{"type":"snapshot","t":0}')
            assert guest.receive_text() == '{"type":"snapshot","t":0}'
            assert client.get("/rooms/room1").json()["relayed"] == 2

            with client.websocket_connect("/ws/room1/guest") as third:
                with pytest.raises(WebSocketDisconnect) as info:
                    third.receive_text()
            assert info.value.code == 4009
            assert client.get("/health").json()["rooms"] == 1

        assert host.receive_json() == {"type": "peer", "status": "left"}
