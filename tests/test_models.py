from __future__ import annotations

import pytest

from laneduel.models import (
    Creep,
    EntityKind,
    EntityTable,
    Hero,
    Projectile,
    entity_from_dict,
)


@pytest.fixture()
def table() -> EntityTable:
    return EntityTable()


def test_create_assigns_unique_ids_in_creation_order(table: EntityTable) -> None:
    first = table.create(EntityKind.HERO, 1, 300, 600, 700)
    second = table.create(EntityKind.CREEP, 2, 1640, 600, 220)
    assert first != second
    assert [entity.id for entity in table] == [first, second]
    hero = table.get(first)
    assert isinstance(hero, Hero)
    assert hero.max_hp == hero.hp == 700


def test_ids_are_not_reused_after_clear(table: EntityTable) -> None:
    before = table.create(EntityKind.CORE, 1, 220, 600, 1500)
    table.clear()
    after = table.create(EntityKind.CORE, 1, 220, 600, 1500)
    assert len(table) == 1
    assert before != after
    assert before not in table


def test_create_rejects_unknown_team(table: EntityTable) -> None:
    with pytest.raises(ValueError):
        table.create(EntityKind.TOWER, 3, 600, 600, 900)


def test_removing_during_iteration_is_safe(table: EntityTable) -> None:
    ids = [table.create(EntityKind.CREEP, 1, 360 + i * 16, 600, 220) for i in range(3)]
    for entity in table.for_each():
        table.remove(entity.id)
    assert len(table) == 0
    table.remove(ids[0])  # removing twice is a no-op


def test_take_damage_clamps_to_bounds() -> None:
    creep = Creep(id="creep-1", team=1, x=0, z=0, hp=220, max_hp=220)
    creep.take_damage(500)
    assert creep.hp == 0
    assert not creep.is_alive()
    creep.take_damage(-1000)
    assert creep.hp == creep.max_hp


def test_serialise_and_load_preserve_records(table: EntityTable) -> None:
    table.create(EntityKind.HERO, 1, 300, 600, 700)
    table.create(
        EntityKind.PROJECTILE, 2, 900, 610, 1, vx=-640, range=850, damage=80, owner="hero-9"
    )
    records = table.serialise()
    assert records[1]["type"] == "projectile"

    mirror = EntityTable()
    mirror.load(records)
    assert mirror.serialise() == records
    projectile = mirror.of_kind(Projectile)[0]
    assert projectile.owner == "hero-9"


def test_load_is_atomic_on_bad_record(table: EntityTable) -> None:
    table.create(EntityKind.HERO, 1, 300, 600, 700)
    good = table.serialise()
    with pytest.raises(ValueError):
        table.load(good + [{"type": "dragon", "id": "x"}])
    assert table.serialise() == good


@pytest.mark.parametrize(
    "record",
    [
        {"type": "hero"},
        {"type": "tower", "id": "t", "team": 5, "x": 0, "z": 0, "hp": 1, "max_hp": 1},
        ["not", "a", "record"],
    ],
)
def test_entity_from_dict_rejects_bad_records(record: object) -> None:
    with pytest.raises(ValueError):
        entity_from_dict(record)  # type: ignore[arg-type]


def test_hero_and_core_lookup_by_team(table: EntityTable) -> None:
    table.create(EntityKind.CORE, 1, 220, 600, 1500)
    enemy_core = table.create(EntityKind.CORE, 2, 1780, 600, 1500)
    hero = table.create(EntityKind.HERO, 2, 1700, 600, 700)
    assert table.core_for(2).id == enemy_core
    assert table.hero_for(2).id == hero
    assert table.hero_for(1) is None
