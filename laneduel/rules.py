"""Per-tick combat and movement rules.

Each rule is a plain function over the simulation context and is run once per
tick by ``Simulation.step`` in this order:

1. ``move_heroes``
2. ``advance_wave_timer``
3. ``advance_projectiles``
4. ``march_creeps``
5. ``fire_towers``
6. ``check_winner``

"Nearest" always means the smallest Euclidean distance among eligible
candidates.  Exact floating point ties resolve to table iteration order, the
first candidate found wins.
"""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Dict, List, Optional

from .config import GameConfig
from .models import Core, Creep, Entity, EntityTable, Hero, Projectile, Tower

if TYPE_CHECKING:  # pragma: no cover - imported for type checkers only
    from .game import Simulation

logger = logging.getLogger(__name__)

Events = List[Dict[str, object]]


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp *value* to the inclusive range [minimum, maximum]."""

    return max(minimum, min(value, maximum))


def collision_radius(config: GameConfig, entity: Entity) -> float:
    if isinstance(entity, Tower):
        return config.tower.radius
    if isinstance(entity, Core):
        return config.core.radius
    if isinstance(entity, Hero):
        return config.hero.radius
    if isinstance(entity, Creep):
        return config.creep.radius
    if isinstance(entity, Projectile):
        return config.projectile_radius
    raise TypeError(f"unknown entity variant {type(entity).__name__}")


def is_target(origin: Entity, candidate: Entity) -> bool:
    """Whether ``candidate`` may be hit by something on ``origin``'s team."""

    return (
        candidate.team != origin.team
        and not isinstance(candidate, Projectile)
        and candidate.is_alive()
    )


def closest_enemy(table: EntityTable, origin: Entity, reach: float = math.inf) -> Optional[Entity]:
    best: Optional[Entity] = None
    best_distance = math.inf
    for candidate in table:
        if not is_target(origin, candidate):
            continue
        distance = candidate.distance_to(origin.x, origin.z)
        if distance < reach and distance < best_distance:
            best = candidate
            best_distance = distance
    return best


def constrain_hero(config: GameConfig, hero: Hero, previous_x: float, previous_z: float) -> None:
    """Keep ``hero`` on the map, inside the lane band and out of obstacles."""

    low, high = config.lane_band()
    hero.x = clamp(hero.x, 0, config.map_width)
    hero.z = clamp(hero.z, low, high)
    if config.blocked(hero.x, hero.z):
        hero.x, hero.z = previous_x, previous_z


def steer_hero(hero: Hero, mx: float, mz: float, speed: float) -> None:
    """Turn a movement vector into velocity.  The move lands on the next tick."""

    length = math.hypot(mx, mz) or 1.0
    hero.vx = (mx / length) * speed
    hero.vz = (mz / length) * speed


def apply_damage(target: Entity, amount: float, events: Events, source: str) -> None:
    target.take_damage(amount)
    events.append({"type": "hit", "target": target.id, "amount": amount, "source": source})


# ----------------------------------------------------------------------
# Rules
# ----------------------------------------------------------------------
def move_heroes(sim: "Simulation", dt: float, events: Events) -> None:
    for hero in sim.table.of_kind(Hero):
        if not hero.is_alive():
            continue
        previous_x, previous_z = hero.x, hero.z
        hero.x += hero.vx * dt
        hero.z += hero.vz * dt
        constrain_hero(sim.config, hero, previous_x, previous_z)


def advance_wave_timer(sim: "Simulation", dt: float, events: Events) -> None:
    sim.next_wave -= dt
    if sim.next_wave > 0:
        return
    sim.next_wave = sim.config.creep.interval
    sim.spawn_wave()
    events.append({"type": "wave", "time": sim.time})


def advance_projectiles(sim: "Simulation", dt: float, events: Events) -> None:
    config = sim.config
    finished: List[str] = []
    for projectile in sim.table.of_kind(Projectile):
        step_x = projectile.vx * dt
        step_z = projectile.vz * dt
        projectile.x += step_x
        projectile.z += step_z
        projectile.range = max(0.0, projectile.range - math.hypot(step_x, step_z))
        if projectile.range <= 0 or not config.in_bounds(projectile.x, projectile.z):
            finished.append(projectile.id)
            continue
        for target in sim.table:
            if not is_target(projectile, target):
                continue
            if target.distance_to(projectile.x, projectile.z) < collision_radius(config, target):
                apply_damage(target, projectile.damage, events, source=projectile.owner or projectile.id)
                finished.append(projectile.id)
                break
    for projectile_id in finished:
        sim.table.remove(projectile_id)


def march_creeps(sim: "Simulation", dt: float, events: Events) -> None:
    stats = sim.config.creep
    for creep in sim.table.of_kind(Creep):
        if not creep.is_alive():
            continue
        direction = 1 if creep.team == 1 else -1
        creep.x += direction * stats.speed * dt
        target = closest_enemy(sim.table, creep, stats.reach)
        if target:
            apply_damage(target, stats.damage, events, source=creep.id)


def fire_towers(sim: "Simulation", dt: float, events: Events) -> None:
    stats = sim.config.tower
    sim.tower_timer += dt
    if sim.tower_timer < stats.rate:
        return
    # One volley per crossing; the overshoot is dropped.
    sim.tower_timer = 0.0
    for tower in sim.table.of_kind(Tower):
        if not tower.is_alive():
            continue
        target = closest_enemy(sim.table, tower, stats.range)
        if target:
            apply_damage(target, stats.damage, events, source=tower.id)


def check_winner(sim: "Simulation", dt: float, events: Events) -> None:
    if sim.over:
        return
    for team, enemy in ((1, 2), (2, 1)):
        core = sim.table.core_for(team)
        if core and not core.is_alive():
            sim.over = True
            sim.winner = enemy
            events.append({"type": "victory", "team": enemy, "time": sim.time})
            logger.info("Core of team %d destroyed at t=%.2f; team %d wins", team, sim.time, enemy)
            return


RULES = (
    move_heroes,
    advance_wave_timer,
    advance_projectiles,
    march_creeps,
    fire_towers,
    check_winner,
)
