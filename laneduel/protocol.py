"""Wire messages exchanged between host and guest.

Both messages are JSON objects tagged with ``type``:

- Guest -> Host ``input``: ``{"type": "input", "mx", "mz", "cast", "ax", "az", "lock"}``
- Host -> Guest ``snapshot``: ``{"type": "snapshot", "t", "entities", "over", "winner"}``

A snapshot always carries the complete entity table; there are no deltas.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from .models import Skill


class MalformedMessage(ValueError):
    """Raised for payloads that cannot be parsed into a known message."""


@dataclass
class InputMessage:
    """Guest intent for one rendered frame."""

    mx: float
    mz: float
    ax: float
    az: float
    cast: Optional[Skill] = None
    lock_on: bool = False

    type = "input"

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": self.type,
            "mx": self.mx,
            "mz": self.mz,
            "cast": self.cast.value if self.cast else None,
            "ax": self.ax,
            "az": self.az,
            "lock": 1 if self.lock_on else 0,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "InputMessage":
        try:
            cast = data.get("cast")
            return cls(
                mx=float(data["mx"]),
                mz=float(data["mz"]),
                ax=float(data["ax"]),
                az=float(data["az"]),
                cast=Skill(cast) if cast else None,
                lock_on=bool(data.get("lock", 0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedMessage(f"bad input message: {exc}") from None


@dataclass
class SnapshotMessage:
    """The host's full entity table at simulation time ``time``."""

    time: float
    entities: List[Dict[str, object]] = field(default_factory=list)
    over: bool = False
    winner: Optional[int] = None

    type = "snapshot"

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": self.type,
            "t": self.time,
            "entities": self.entities,
            "over": self.over,
            "winner": self.winner,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "SnapshotMessage":
        entities = data.get("entities")
        if not isinstance(entities, list):
            raise MalformedMessage("snapshot without entity list")
        try:
            winner = data.get("winner")
            return cls(
                time=float(data["t"]),
                entities=entities,
                over=bool(data.get("over", False)),
                winner=int(winner) if winner is not None else None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedMessage(f"bad snapshot message: {exc}") from None


Message = Union[InputMessage, SnapshotMessage]

MESSAGE_TYPES = {
    InputMessage.type: InputMessage,
    SnapshotMessage.type: SnapshotMessage,
}


def encode(message: Message) -> str:
    return json.dumps(message.to_dict(), separators=(",", ":"))


def decode(raw: Union[str, bytes, Dict[str, object]]) -> Message:
    """Parse a message received from the channel."""

    if isinstance(raw, (str, bytes, bytearray)):
        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedMessage(f"unparseable payload: {exc}") from None
    else:
        data = raw
    if not isinstance(data, dict):
        raise MalformedMessage("message must be a JSON object")
    message_type = data.get("type")
    message_cls = MESSAGE_TYPES.get(message_type) if isinstance(message_type, str) else None
    if message_cls is None:
        raise MalformedMessage(f"unknown message type {data.get('type')!r}")
    return message_cls.from_dict(data)
