"""Authoritative lane duel simulation."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from .config import GameConfig
from .models import Core, EntityKind, EntityTable, Hero
from .protocol import SnapshotMessage
from .rules import RULES

logger = logging.getLogger(__name__)


class Simulation:
    """Owns the entity table, the running clock and the match outcome.

    Nothing outside ``reset``, ``spawn_wave``, ``step`` and the skill system
    mutates the table, and all of them run on the frame loop.
    """

    def __init__(self, config: Optional[GameConfig] = None) -> None:
        self.config = config or GameConfig()
        self.config.validate()
        self.table = EntityTable()
        self.time: float = 0.0
        self.next_wave: float = self.config.creep.first_wave
        self.tower_timer: float = 0.0
        self.over: bool = False
        self.winner: Optional[int] = None

    # ------------------------------------------------------------------
    # Lifecycle management
    # ------------------------------------------------------------------
    def reset(self) -> Tuple[str, str]:
        """Re-seed the match: towers, cores and one hero per team.

        Returns the hero ids for team 1 and team 2.
        """

        config = self.config
        lane = config.lane_z
        far = config.map_width
        self.table.clear()
        self.table.create(EntityKind.TOWER, 1, config.tower.spawn_offset, lane, config.tower.hp)
        self.table.create(EntityKind.TOWER, 2, far - config.tower.spawn_offset, lane, config.tower.hp)
        self.table.create(EntityKind.CORE, 1, config.core.spawn_offset, lane, config.core.hp)
        self.table.create(EntityKind.CORE, 2, far - config.core.spawn_offset, lane, config.core.hp)
        first = self.table.create(EntityKind.HERO, 1, config.hero.spawn_offset, lane, config.hero.hp)
        second = self.table.create(EntityKind.HERO, 2, far - config.hero.spawn_offset, lane, config.hero.hp)
        self.time = 0.0
        self.next_wave = config.creep.first_wave
        self.tower_timer = 0.0
        self.over = False
        self.winner = None
        logger.info("Match reset with %d entities", len(self.table))
        return first, second

    def spawn_wave(self) -> None:
        stats = self.config.creep
        lane = self.config.lane_z
        for index in range(stats.wave_size):
            offset = stats.spawn_offset + index * stats.spacing
            self.table.create(
                EntityKind.CREEP, 1, offset, lane, stats.hp, reveal_radius=stats.reveal_radius
            )
            self.table.create(
                EntityKind.CREEP,
                2,
                self.config.map_width - offset,
                lane,
                stats.hp,
                reveal_radius=stats.reveal_radius,
            )
        logger.debug("Spawned a wave of %d creeps per team at t=%.2f", stats.wave_size, self.time)

    # ------------------------------------------------------------------
    # Update loop
    # ------------------------------------------------------------------
    def step(self, dt: float) -> List[Dict[str, object]]:
        """Advance one tick.  Once the match is over the state is frozen."""

        if self.over:
            return []
        self.time += dt
        events: List[Dict[str, object]] = []
        for rule in RULES:
            rule(self, dt, events)
        return events

    def hero(self, team: int) -> Optional[Hero]:
        return self.table.hero_for(team)

    def core(self, team: int) -> Optional[Core]:
        return self.table.core_for(team)

    # ------------------------------------------------------------------
    # Snapshotting
    # ------------------------------------------------------------------
    def snapshot(self) -> SnapshotMessage:
        return SnapshotMessage(
            time=self.time,
            entities=self.table.serialise(),
            over=self.over,
            winner=self.winner,
        )

    def apply_snapshot(self, message: SnapshotMessage) -> None:
        """Mirror a host snapshot, discarding the local table wholesale."""

        self.table.load(message.entities)
        self.time = message.time
        self.over = message.over
        self.winner = message.winner


__all__ = ["Simulation"]
