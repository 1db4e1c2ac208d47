"""Match lifecycle tests for the simulation facade."""
from __future__ import annotations

import pytest

from laneduel.config import CreepConfig, GameConfig
from laneduel.game import Simulation
from laneduel.models import Core, Creep, EntityKind, Hero, Projectile, Skill, Tower
from laneduel.skills import cast_skill


@pytest.fixture()
def sim() -> Simulation:
    simulation = Simulation()
    simulation.reset()
    return simulation


def test_reset_seeds_towers_cores_and_heroes(sim: Simulation) -> None:
    assert len(sim.table) == 6
    towers = sim.table.of_kind(Tower)
    assert sorted(tower.x for tower in towers) == [600, 1400]
    assert sorted(core.x for core in sim.table.of_kind(Core)) == [220, 1780]
    assert sim.hero(1).x == 300
    assert sim.hero(2).x == 1700
    assert all(entity.z == 600 for entity in sim.table)


def test_double_reset_restores_a_fresh_match(sim: Simulation) -> None:
    sim.hero(1).take_damage(100)
    for _ in range(60):
        sim.step(0.05)
    first, second = sim.reset()
    sim_again = sim.reset()
    assert len(sim.table) == 6
    assert all(entity.hp == entity.max_hp for entity in sim.table)
    assert sim.time == 0
    assert not sim.over and sim.winner is None
    assert first not in sim.table and second not in sim.table
    assert sim.hero(1).id == sim_again[0]


def test_destroyed_core_ends_match_and_freezes_time(sim: Simulation) -> None:
    sim.core(2).take_damage(10_000)
    events = sim.step(0.05)
    assert sim.over
    assert sim.winner == 1
    assert {"type": "victory", "team": 1, "time": sim.time} in events

    frozen = sim.time
    hero = sim.hero(1)
    hero.vx = 220
    position = hero.x
    sim.step(0.05)
    assert sim.time == frozen
    assert hero.x == position


def test_team_one_core_is_checked_first(sim: Simulation) -> None:
    sim.core(1).take_damage(10_000)
    sim.core(2).take_damage(10_000)
    sim.step(0.05)
    assert sim.winner == 2


def test_spawn_wave_adds_creeps_for_both_teams(sim: Simulation) -> None:
    sim.spawn_wave()
    creeps = sim.table.of_kind(Creep)
    assert len(creeps) == 6
    assert sorted(creep.x for creep in creeps if creep.team == 2) == [1608, 1624, 1640]


def test_snapshot_round_trip_into_another_simulation(sim: Simulation) -> None:
    sim.step(0.05)
    mirror = Simulation()
    mirror.apply_snapshot(sim.snapshot())
    assert mirror.table.serialise() == sim.table.serialise()
    assert mirror.time == sim.time
    assert isinstance(mirror.hero(2), Hero)


def test_invalid_config_is_rejected() -> None:
    with pytest.raises(ValueError):
        Simulation(GameConfig(creep=CreepConfig(interval=0)))
    with pytest.raises(ValueError):
        Simulation(GameConfig(lane_z=10, lane_half_width=60))


def test_finished_match_stays_frozen(sim: Simulation) -> None:
    sim.core(2).take_damage(10_000)
    sim.step(0.05)
    assert sim.over

    ally = sim.table.get(sim.table.create(EntityKind.CREEP, 1, 1000, 600, 220))
    enemy = sim.table.get(sim.table.create(EntityKind.CREEP, 2, 1015, 600, 220))
    before = sim.table.serialise()
    for _ in range(5):
        assert sim.step(0.05) == []
    assert (ally.hp, enemy.hp) == (220, 220)
    assert sim.table.serialise() == before


def test_casts_after_victory_are_dropped(sim: Simulation) -> None:
    sim.core(2).take_damage(10_000)
    sim.step(0.05)
    hero = sim.hero(1)
    position = (hero.x, hero.z)
    assert not cast_skill(sim, hero, Skill.E, (1.0, 0.0))
    assert not cast_skill(sim, hero, Skill.Q, (1.0, 0.0))
    assert (hero.x, hero.z) == position
    assert sim.table.of_kind(Projectile) == []
    assert hero.e_ready == hero.q_ready == 0
