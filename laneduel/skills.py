"""Hero skills, cooldown gating and aim resolution."""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Dict, Optional

from .config import SkillConfig
from .models import EntityKind, EntityTable, FrameInput, Hero, Skill, Vector2
from .rules import closest_enemy, constrain_hero

if TYPE_CHECKING:  # pragma: no cover - imported for type checkers only
    from .game import Simulation

logger = logging.getLogger(__name__)

READY_ATTRIBUTES: Dict[Skill, str] = {
    Skill.Q: "q_ready",
    Skill.E: "e_ready",
    Skill.A: "a_ready",
}

DEFAULT_AIM: Vector2 = (1.0, 0.0)


def normalise(dx: float, dz: float) -> Vector2:
    """Unit vector along (dx, dz); a zero vector stays zero instead of NaN."""

    length = math.hypot(dx, dz) or 1.0
    return (dx / length, dz / length)


def resolve_aim(table: EntityTable, hero: Optional[Hero], frame: FrameInput) -> Vector2:
    """Pick the cast direction: explicit drag, then lock-on target, then pointer."""

    if hero is None:
        return DEFAULT_AIM
    if frame.drag is not None:
        return normalise(*frame.drag)
    if frame.lock_on:
        target = closest_enemy(table, hero)
        if target:
            return normalise(target.x - hero.x, target.z - hero.z)
    pointer_x, pointer_z = frame.pointer
    return normalise(pointer_x - hero.x, pointer_z - hero.z)


def cooldown_for(sim: "Simulation", skill: Skill) -> float:
    hero_config = sim.config.hero
    if skill is Skill.Q:
        return hero_config.q.cooldown
    if skill is Skill.E:
        return hero_config.e.cooldown
    return hero_config.a.cooldown


def cast_skill(sim: "Simulation", hero: Hero, skill: Skill, aim: Vector2) -> bool:
    """Cast ``skill`` along ``aim`` if it is ready.

    A cast before the next-ready timestamp, by a dead hero or after the match
    has ended is dropped: nothing on the hero changes and ``False`` is
    returned.
    """

    skill = Skill(skill)
    if sim.over or not hero.is_alive():
        return False
    attribute = READY_ATTRIBUTES[skill]
    now = sim.time
    if now < getattr(hero, attribute):
        return False
    setattr(hero, attribute, now + cooldown_for(sim, skill))
    if skill is Skill.E:
        _dash(sim, hero, aim)
    else:
        stats = sim.config.hero.q if skill is Skill.Q else sim.config.hero.a
        _launch(sim, hero, aim, stats)
    logger.debug("%s cast %s at t=%.2f", hero.id, skill.value, now)
    return True


def _dash(sim: "Simulation", hero: Hero, aim: Vector2) -> None:
    previous_x, previous_z = hero.x, hero.z
    distance = sim.config.hero.e.distance
    hero.x += aim[0] * distance
    hero.z += aim[1] * distance
    constrain_hero(sim.config, hero, previous_x, previous_z)


def _launch(sim: "Simulation", hero: Hero, aim: Vector2, stats: SkillConfig) -> str:
    return sim.table.create(
        EntityKind.PROJECTILE,
        hero.team,
        hero.x,
        hero.z,
        1,
        vx=aim[0] * stats.speed,
        vz=aim[1] * stats.speed,
        range=stats.range,
        damage=stats.damage,
        owner=hero.id,
    )


def cooldowns_remaining(hero: Hero, now: float) -> Dict[Skill, float]:
    """Seconds left before each skill is ready again, for the HUD."""

    return {
        skill: max(0.0, getattr(hero, attribute) - now)
        for skill, attribute in READY_ATTRIBUTES.items()
    }
