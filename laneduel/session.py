"""Role selection and host/guest state synchronisation.

A ``GameSession`` is either authoritative (``local`` or ``host``) and runs
the simulation, or a mirror (``guest``) that sends its intent and replaces its
entity table with every snapshot it receives.

::

    idle --start_local--> local
    idle --start_host---> awaiting_guest --first input----> host
    idle --start_guest--> awaiting_host  --first snapshot-> guest
    any  --end----------> idle

Transport callbacks may fire on another thread.  They only append to the
inbox, which ``frame`` drains at the start of the next frame, so the entity
table is never touched mid-tick.
"""
from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Deque, Dict, List, Optional, Tuple

from .clock import SimulationClock
from .config import GameConfig
from .game import Simulation
from .models import FrameInput, Hero, Skill
from .protocol import InputMessage, MalformedMessage, SnapshotMessage, decode, encode
from .rules import steer_hero
from .skills import cast_skill, normalise, resolve_aim
from .transport import Channel, SessionSetupError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    LOCAL = "local"
    HOST = "host"
    GUEST = "guest"


class SessionState(str, Enum):
    IDLE = "idle"
    LOCAL = "local"
    AWAITING_GUEST = "awaiting_guest"
    HOST = "host"
    AWAITING_HOST = "awaiting_host"
    GUEST = "guest"


AUTHORITATIVE_STATES = {SessionState.LOCAL, SessionState.AWAITING_GUEST, SessionState.HOST}

HOST_TEAM = 1
GUEST_TEAM = 2


class GameSession:
    """Wires the simulation, the clock and an optional channel together."""

    def __init__(self, config: Optional[GameConfig] = None) -> None:
        self.simulation = Simulation(config)
        self.config = self.simulation.config
        self.clock = SimulationClock(self.config.max_step)
        self.role: Optional[Role] = None
        self.state = SessionState.IDLE
        self.channel: Optional[Channel] = None
        self.room: Optional[str] = None
        self.my_team = HOST_TEAM
        self.status = "Idle"
        self.connected = False
        self.aim: Tuple[float, float] = (1.0, 0.0)
        self._inbox: Deque[Tuple[str, object]] = deque()
        self._since_snapshot = 0.0
        self._error: Optional[str] = None

    # ------------------------------------------------------------------
    # Role selection
    # ------------------------------------------------------------------
    @property
    def authoritative(self) -> bool:
        return self.state in AUTHORITATIVE_STATES

    def start_local(self) -> None:
        self._detach_channel()
        self.simulation.reset()
        self._begin(Role.LOCAL, SessionState.LOCAL, HOST_TEAM, "Local mode")

    def start_host(self, channel: Channel, room: Optional[str] = None) -> None:
        self._detach_channel()
        self.simulation.reset()
        self._attach_channel(channel)
        self.room = room
        self._begin(Role.HOST, SessionState.AWAITING_GUEST, HOST_TEAM, f"Hosting {room or ''}".strip())

    def start_guest(self, channel: Channel, room: Optional[str] = None) -> None:
        self._detach_channel()
        self.simulation.table.clear()
        self._attach_channel(channel)
        self.room = room
        self._begin(Role.GUEST, SessionState.AWAITING_HOST, GUEST_TEAM, f"Joining {room or ''}".strip())

    def end(self) -> None:
        """Leave the current role and return to idle."""

        self._detach_channel()
        self.role = None
        self.state = SessionState.IDLE
        self.status = "Idle"

    def _begin(self, role: Role, state: SessionState, team: int, status: str) -> None:
        self.role = role
        self.state = state
        self.my_team = team
        self.status = status
        self._since_snapshot = 0.0
        self.clock.restart()
        logger.info("Session started as %s", role.value)

    def _attach_channel(self, channel: Channel) -> None:
        self.channel = channel
        self._inbox.clear()
        channel.bind(self.receive, self._on_open, self._on_close, self._on_error)

    def _detach_channel(self) -> None:
        channel, self.channel = self.channel, None
        self.connected = False
        self.room = None
        if channel is not None:
            channel.close()
        self._inbox.clear()

    # ------------------------------------------------------------------
    # Operator commands
    # ------------------------------------------------------------------
    def reset(self) -> bool:
        if not self.authoritative:
            logger.info("Ignoring reset in state %s", self.state.value)
            return False
        self.simulation.reset()
        return True

    def force_spawn_wave(self) -> bool:
        if not self.authoritative:
            logger.info("Ignoring wave request in state %s", self.state.value)
            return False
        self.simulation.spawn_wave()
        return True

    def take_error(self) -> Optional[str]:
        """Return the last setup failure once, then forget it."""

        error, self._error = self._error, None
        return error

    # ------------------------------------------------------------------
    # Transport callbacks (any thread)
    # ------------------------------------------------------------------
    def receive(self, raw: str) -> None:
        self._inbox.append(("message", raw))

    def _on_open(self) -> None:
        self._inbox.append(("open", None))

    def _on_close(self) -> None:
        self._inbox.append(("close", None))

    def _on_error(self, exc: Exception) -> None:
        self._inbox.append(("error", exc))

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------
    def frame(self, now: float, frame_input: FrameInput) -> List[Dict[str, object]]:
        """Run one frame: drain inbound traffic, apply input, simulate, sync.

        Returns the simulation events of this frame (always empty for a guest).
        """

        self._drain_inbox()
        step = self.clock.tick(now)
        if self.state is SessionState.IDLE:
            return []

        simulation = self.simulation
        my_hero = simulation.hero(self.my_team)
        self.aim = resolve_aim(simulation.table, my_hero, frame_input)

        if not self.authoritative:
            self._send_input(frame_input)
            return []

        if my_hero is not None:
            self._apply_input(my_hero, frame_input.mx, frame_input.mz, frame_input.cast, self.aim)
        events = simulation.step(step)
        for event in events:
            if event["type"] == "hit":
                logger.debug("Hit %s for %s", event["target"], event["amount"])
            else:
                logger.info("Event %s", event)

        if self.role is Role.HOST:
            self._since_snapshot += step
            if self._since_snapshot >= self.config.snapshot_interval:
                self._since_snapshot = 0.0
                self._send(encode(simulation.snapshot()))
        return events

    def _apply_input(
        self, hero: Hero, mx: float, mz: float, cast: Optional[Skill], aim: Tuple[float, float]
    ) -> None:
        if hero.is_alive():
            steer_hero(hero, mx, mz, self.config.hero.speed)
        if cast:
            cast_skill(self.simulation, hero, cast, aim)

    def _send_input(self, frame_input: FrameInput) -> None:
        message = InputMessage(
            mx=frame_input.mx,
            mz=frame_input.mz,
            ax=self.aim[0],
            az=self.aim[1],
            cast=frame_input.cast,
            lock_on=frame_input.lock_on,
        )
        self._send(encode(message))

    def _send(self, text: str) -> None:
        if self.channel is not None:
            self.channel.send(text)

    # ------------------------------------------------------------------
    # Inbound handling
    # ------------------------------------------------------------------
    def _drain_inbox(self) -> None:
        while self._inbox:
            kind, payload = self._inbox.popleft()
            if kind == "message":
                self._handle_message(payload)
            elif kind == "open":
                self.connected = True
                self.status = "Hosting" if self.role is Role.HOST else "Connected"
                logger.info("Channel open (%s)", self.status)
            elif kind == "close":
                self.connected = False
                self.status = "Disconnected"
                logger.warning("Channel closed; %s keeps its last state", self.state.value)
            elif kind == "error":
                self._setup_failed(payload)
                # Anything queued behind a failure belongs to the dead attempt.
                self._inbox.clear()

    def _setup_failed(self, exc: object) -> None:
        message = str(exc) if isinstance(exc, SessionSetupError) else f"session setup failed: {exc}"
        logger.error("Session setup failed: %s", message)
        self.end()
        self._error = message
        self.status = f"Setup failed: {message}"

    def _handle_message(self, raw: object) -> None:
        try:
            message = decode(raw)
            if isinstance(message, InputMessage):
                self._handle_input(message)
            elif isinstance(message, SnapshotMessage):
                self._handle_snapshot(message)
        except (MalformedMessage, ValueError) as exc:
            logger.warning("Dropping malformed message: %s", exc)

    def _handle_input(self, message: InputMessage) -> None:
        if self.role is not Role.HOST:
            logger.debug("Ignoring input message in state %s", self.state.value)
            return
        if self.state is SessionState.AWAITING_GUEST:
            self.state = SessionState.HOST
            logger.info("Guest input received; hosting live")
        hero = self.simulation.hero(GUEST_TEAM)
        if hero is None:
            return
        # The declared aim is trusted as sent; only cooldowns gate casts.
        self._apply_input(hero, message.mx, message.mz, message.cast, normalise(message.ax, message.az))

    def _handle_snapshot(self, message: SnapshotMessage) -> None:
        if self.role is not Role.GUEST:
            logger.debug("Ignoring snapshot in state %s", self.state.value)
            return
        self.simulation.apply_snapshot(message)
        if self.state is SessionState.AWAITING_HOST:
            self.state = SessionState.GUEST
            logger.info("First snapshot received; mirroring host")


__all__ = ["GameSession", "Role", "SessionState", "SessionSetupError"]
