"""Relay rooms pairing one host and one guest websocket."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)

HOST = "host"
GUEST = "guest"


class RoomError(RuntimeError):
    """Base class for room related failures."""

    close_code = 4000


class RoomNotFound(RoomError):
    """Raised when a guest joins a room no host has opened."""

    close_code = 4004


class RoomOccupied(RoomError):
    """Raised when the requested seat of a room is already taken."""

    close_code = 4009


class RelayRoom:
    """Holds the two websockets of a session and forwards frames between them."""

    def __init__(self, room_id: str, host: WebSocket):
        self.room_id = room_id
        self.sockets: Dict[str, Optional[WebSocket]] = {HOST: host, GUEST: None}
        self.relayed = 0

    @property
    def has_guest(self) -> bool:
        return self.sockets[GUEST] is not None

    def other(self, side: str) -> Optional[WebSocket]:
        return self.sockets[GUEST if side == HOST else HOST]

    async def relay(self, side: str, text: str) -> None:
        """Forward ``text`` verbatim; frames with nobody listening are dropped."""

        target = self.other(side)
        if target is None:
            return
        self.relayed += 1
        try:
            await target.send_text(text)
        except Exception as exc:
            logger.warning("Relay to %s of room %s failed: %s", GUEST if side == HOST else HOST, self.room_id, exc)

    async def notify(self, side: str, status: str) -> None:
        websocket = self.sockets[side]
        if websocket is None:
            return
        try:
            await websocket.send_json({"type": "peer", "status": status})
        except Exception as exc:
            logger.warning("Could not notify %s of room %s: %s", side, self.room_id, exc)

    def describe(self) -> Dict[str, object]:
        return {"room": self.room_id, "hosted": True, "guest": self.has_guest, "relayed": self.relayed}


class RoomManager:
    """Registry of open rooms keyed by lower-cased room code."""

    def __init__(self) -> None:
        self.rooms: Dict[str, RelayRoom] = {}
        self.lock = asyncio.Lock()

    @staticmethod
    def normalise(room_id: str) -> str:
        return room_id.strip().lower()

    async def open_room(self, room_id: str, websocket: WebSocket) -> RelayRoom:
        room_id = self.normalise(room_id)
        async with self.lock:
            if room_id in self.rooms:
                raise RoomOccupied(f"Room {room_id} is already hosted.")
            room = RelayRoom(room_id, websocket)
            self.rooms[room_id] = room
        logger.info("Room %s opened", room_id)
        return room

    async def join_room(self, room_id: str, websocket: WebSocket) -> RelayRoom:
        room_id = self.normalise(room_id)
        async with self.lock:
            room = self.rooms.get(room_id)
            if room is None:
                raise RoomNotFound("No offer found. Ask host to create room first.")
            if room.has_guest:
                raise RoomOccupied(f"Room {room_id} already has a guest.")
            room.sockets[GUEST] = websocket
        logger.info("Guest joined room %s", room_id)
        await room.notify(HOST, "joined")
        await room.notify(GUEST, "joined")
        return room

    async def leave(self, room: RelayRoom, side: str) -> None:
        async with self.lock:
            if side == HOST:
                if self.rooms.get(room.room_id) is room:
                    self.rooms.pop(room.room_id, None)
                guest = room.sockets[GUEST]
            else:
                guest = None
            room.sockets[side] = None
        logger.info("%s left room %s", side.title(), room.room_id)
        if side == HOST:
            if guest is not None:
                await room.notify(GUEST, "left")
                try:
                    await guest.close()
                except RuntimeError as exc:
                    logger.debug("Guest socket of room %s already closed: %s", room.room_id, exc)
        else:
            await room.notify(HOST, "left")

    def lookup(self, room_id: str) -> Optional[RelayRoom]:
        return self.rooms.get(self.normalise(room_id))


__all__ = ["RoomManager", "RelayRoom", "RoomError", "RoomNotFound", "RoomOccupied"]
