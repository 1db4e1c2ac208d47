"""Configuration for the lane duel simulation and its runtime.

Module constants tune the processes around the simulation (relay address,
window, frame rate).  Gameplay numbers live in frozen dataclasses so a match
can be started with a tweaked ruleset without touching module state.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

GAME_NAME = "Lane Duel"

# Networking configuration.
RELAY_HOST = "127.0.0.1"
RELAY_PORT = 8000
RELAY_URL = f"ws://{RELAY_HOST}:{RELAY_PORT}"
DEFAULT_ROOM = "room1"
SNAPSHOT_RATE = 12  # host -> guest snapshots per second

# Client configuration.
WINDOW_WIDTH = 1280
WINDOW_HEIGHT = 720
FRAME_RATE = 60
MINIMAP_SIZE = (180, 108)

MAX_STEP = 1 / 20  # largest simulated step per frame, in seconds


@dataclass(frozen=True)
class SkillConfig:
    """A projectile skill (Q nuke or A basic attack)."""

    damage: float
    speed: float
    range: float
    cooldown: float


@dataclass(frozen=True)
class DashConfig:
    """The E skill: instant translation along the aim."""

    distance: float = 220
    cooldown: float = 10


@dataclass(frozen=True)
class HeroConfig:
    hp: float = 700
    speed: float = 220
    radius: float = 14
    spawn_offset: float = 300
    q: SkillConfig = field(default_factory=lambda: SkillConfig(damage=80, speed=640, range=900, cooldown=6))
    e: DashConfig = field(default_factory=DashConfig)
    a: SkillConfig = field(default_factory=lambda: SkillConfig(damage=40, speed=700, range=600, cooldown=0.6))


@dataclass(frozen=True)
class CreepConfig:
    """Minion tuning.

    ``damage`` is applied every tick an enemy stays within ``reach``; creeps
    have no swing timer.
    """

    hp: float = 220
    speed: float = 120
    damage: float = 12
    radius: float = 10
    reach: float = 22
    wave_size: int = 3
    interval: float = 15
    first_wave: float = 2
    spawn_offset: float = 360
    spacing: float = 16
    reveal_radius: Optional[float] = None


@dataclass(frozen=True)
class TowerConfig:
    hp: float = 900
    range: float = 260
    damage: float = 18
    rate: float = 0.75
    radius: float = 18
    spawn_offset: float = 600


@dataclass(frozen=True)
class CoreConfig:
    hp: float = 1500
    radius: float = 26
    spawn_offset: float = 220


@dataclass(frozen=True)
class Obstacle:
    """Axis aligned solid region heroes cannot stand in."""

    x: float
    z: float
    width: float
    depth: float

    def contains(self, x: float, z: float) -> bool:
        return self.x <= x <= self.x + self.width and self.z <= z <= self.z + self.depth


@dataclass(frozen=True)
class GameConfig:
    """Static ruleset for one match.

    Attributes
    ----------
    map_width, map_height:
        World bounds.  Projectiles leaving them are discarded and heroes are
        clamped inside them.
    lane_z, lane_half_width:
        The lane band heroes are confined to along the depth axis.
    obstacles:
        Solid regions; a hero move ending inside one is rejected.
    max_step:
        Upper bound on the simulated step of a single frame.
    snapshot_rate:
        How many snapshots per second a host broadcasts to its guest.
    projectile_radius:
        Collision radius reported for projectiles.  Projectiles are never
        hit themselves; the value is used for drawing.
    """

    map_width: float = 2000
    map_height: float = 1200
    lane_z: float = 600
    lane_half_width: float = 60
    hero: HeroConfig = field(default_factory=HeroConfig)
    creep: CreepConfig = field(default_factory=CreepConfig)
    tower: TowerConfig = field(default_factory=TowerConfig)
    core: CoreConfig = field(default_factory=CoreConfig)
    obstacles: Tuple[Obstacle, ...] = ()
    max_step: float = MAX_STEP
    snapshot_rate: int = SNAPSHOT_RATE
    projectile_radius: float = 6

    def validate(self) -> None:
        if self.map_width <= 0 or self.map_height <= 0:
            raise ValueError("Map dimensions must be positive")
        if not 0 <= self.lane_z - self.lane_half_width <= self.lane_z + self.lane_half_width <= self.map_height:
            raise ValueError("Lane band must lie inside the map")
        if self.max_step <= 0:
            raise ValueError("max_step must be positive")
        if self.snapshot_rate <= 0:
            raise ValueError("Snapshot rate must be positive")
        if self.creep.wave_size < 0:
            raise ValueError("Wave size cannot be negative")
        if self.creep.interval <= 0 or self.tower.rate <= 0:
            raise ValueError("Wave interval and tower rate must be positive")
        for skill in (self.hero.q, self.hero.a):
            if skill.cooldown < 0 or skill.range <= 0:
                raise ValueError("Skill range must be positive and cooldown non-negative")
        if self.hero.e.cooldown < 0:
            raise ValueError("Dash cooldown cannot be negative")

    @property
    def snapshot_interval(self) -> float:
        return 1.0 / self.snapshot_rate

    def in_bounds(self, x: float, z: float) -> bool:
        return 0 <= x <= self.map_width and 0 <= z <= self.map_height

    def blocked(self, x: float, z: float) -> bool:
        return any(obstacle.contains(x, z) for obstacle in self.obstacles)

    def lane_band(self) -> Tuple[float, float]:
        return (self.lane_z - self.lane_half_width, self.lane_z + self.lane_half_width)
