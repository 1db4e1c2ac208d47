"""Byte channels carrying protocol messages between host and guest.

The session only relies on the ``Channel`` contract: ``send`` text frames
(best effort, no backpressure) and receive them through the bound callbacks.
How the channel was established is not its concern.
"""
from __future__ import annotations

import asyncio
import json
import logging
import threading
from typing import Callable, Optional, Tuple

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str], None]
Callback = Callable[[], None]
ErrorCallback = Callable[[Exception], None]

CLOSE_NO_OFFER = 4004
CLOSE_OCCUPIED = 4009


class SessionSetupError(RuntimeError):
    """Raised when a host or guest cannot establish its session."""


class Channel:
    """Base class for transports.  Subclasses implement ``send`` and ``close``."""

    def __init__(self) -> None:
        self.connected = False
        self._on_message: Optional[MessageCallback] = None
        self._on_open: Optional[Callback] = None
        self._on_close: Optional[Callback] = None
        self._on_error: Optional[ErrorCallback] = None

    def bind(
        self,
        on_message: MessageCallback,
        on_open: Optional[Callback] = None,
        on_close: Optional[Callback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._on_message = on_message
        self._on_open = on_open
        self._on_close = on_close
        self._on_error = on_error

    def send(self, message: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Callback helpers
    # ------------------------------------------------------------------
    def _deliver(self, message: str) -> None:
        if self._on_message is not None:
            self._on_message(message)

    def _opened(self) -> None:
        self.connected = True
        if self._on_open is not None:
            self._on_open()

    def _closed(self) -> None:
        was_connected = self.connected
        self.connected = False
        if was_connected and self._on_close is not None:
            self._on_close()

    def _failed(self, exc: Exception) -> None:
        self.connected = False
        if self._on_error is not None:
            self._on_error(exc)


class LoopbackChannel(Channel):
    """In-memory channel; ``pair()`` returns two ends wired to each other."""

    def __init__(self) -> None:
        super().__init__()
        self.peer: Optional["LoopbackChannel"] = None
        self.sent = 0

    @classmethod
    def pair(cls) -> Tuple["LoopbackChannel", "LoopbackChannel"]:
        left, right = cls(), cls()
        left.peer, right.peer = right, left
        return left, right

    def open(self) -> None:
        """Mark both ends connected and fire their ``on_open`` callbacks."""

        self._opened()
        if self.peer is not None and not self.peer.connected:
            self.peer._opened()

    def send(self, message: str) -> None:
        if not self.connected or self.peer is None or not self.peer.connected:
            return
        self.sent += 1
        self.peer._deliver(message)

    def close(self) -> None:
        peer = self.peer
        self._closed()
        if peer is not None:
            peer._closed()


class RelayChannel(Channel):
    """Websocket client talking to the relay server from a background thread.

    ``start`` returns immediately; the connection is made on the channel's own
    event loop so the frame loop never waits on it.  Inbound frames reach the
    bound ``on_message`` callback from that thread, so the callback must only
    enqueue.
    """

    def __init__(self, relay_url: str, room: str, role: str) -> None:
        super().__init__()
        if role not in ("host", "guest"):
            raise ValueError(f"role must be host or guest, got {role!r}")
        self.relay_url = relay_url.rstrip("/")
        self.room = room.lower()
        self.role = role
        self.thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._outbox: Optional[asyncio.Queue] = None
        self._stop = threading.Event()

    @property
    def uri(self) -> str:
        return f"{self.relay_url}/ws/{self.room}/{self.role}"

    def start(self) -> None:
        self.thread = threading.Thread(target=self._run, name=f"relay-{self.role}", daemon=True)
        self.thread.start()

    def send(self, message: str) -> None:
        loop, outbox = self._loop, self._outbox
        if not self.connected or loop is None or outbox is None:
            return
        try:
            loop.call_soon_threadsafe(outbox.put_nowait, message)
        except RuntimeError:
            # Loop already closed; the frame is dropped like any best-effort send.
            logger.debug("Dropped frame on closed relay loop")

    def close(self) -> None:
        self._stop.set()
        loop, outbox = self._loop, self._outbox
        if loop is not None and outbox is not None:
            try:
                loop.call_soon_threadsafe(outbox.put_nowait, None)
            except RuntimeError:
                pass
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)

    def _run(self) -> None:
        asyncio.run(self._main())

    async def _main(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._outbox = asyncio.Queue()
        logger.info("Connecting to relay %s", self.uri)
        try:
            async with websockets.connect(self.uri) as ws:
                consumer = asyncio.create_task(self._consumer(ws))
                producer = asyncio.create_task(self._producer(ws))
                done, pending = await asyncio.wait(
                    [consumer, producer], return_when=asyncio.FIRST_COMPLETED
                )
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
                for task in done:
                    task.result()
        except ConnectionClosed as exc:
            self._handle_close(exc)
        except (OSError, InvalidHandshake) as exc:
            logger.error("Relay %s unreachable: %s", self.relay_url, exc)
            self._failed(SessionSetupError(f"relay unreachable: {exc}"))
        else:
            self._closed()
        finally:
            self._loop = None
            self._outbox = None

    async def _consumer(self, ws) -> None:
        async for raw in ws:
            text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
            if not self._control(text):
                self._deliver(text)

    async def _producer(self, ws) -> None:
        while not self._stop.is_set():
            message = await self._outbox.get()
            if message is None:
                await ws.close()
                return
            await ws.send(message)

    def _control(self, text: str) -> bool:
        """Handle relay control frames; return True when ``text`` was one."""

        if '"peer"' not in text:
            return False
        try:
            data = json.loads(text)
        except ValueError:
            return False
        if not isinstance(data, dict) or data.get("type") != "peer":
            return False
        status = data.get("status")
        if status == "joined":
            logger.info("Peer joined room %s", self.room)
            self._opened()
        elif status == "left":
            logger.info("Peer left room %s", self.room)
            self._closed()
        return True

    def _handle_close(self, exc: ConnectionClosed) -> None:
        frame = exc.rcvd
        code = frame.code if frame is not None else None
        reason = frame.reason if frame is not None else ""
        if code in (CLOSE_NO_OFFER, CLOSE_OCCUPIED):
            logger.error("Relay refused %s for room %s: %s", self.role, self.room, reason)
            self._failed(SessionSetupError(reason or f"relay refused connection ({code})"))
            return
        logger.warning("Relay connection closed (%s %s)", code, reason)
        self._closed()


__all__ = [
    "Channel",
    "LoopbackChannel",
    "RelayChannel",
    "SessionSetupError",
    "CLOSE_NO_OFFER",
    "CLOSE_OCCUPIED",
]
