"""Core data structures used by the lane duel simulation."""
from __future__ import annotations

import itertools
import math
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import ClassVar, Dict, Iterable, Iterator, List, Optional, Tuple, Type, TypeVar

Vector2 = Tuple[float, float]

TEAMS = (1, 2)


class EntityKind(str, Enum):
    """Closed set of entity variants."""

    HERO = "hero"
    CREEP = "creep"
    TOWER = "tower"
    CORE = "core"
    PROJECTILE = "projectile"


class Skill(str, Enum):
    """The three hero actions."""

    Q = "Q"
    E = "E"
    A = "A"


@dataclass
class Entity:
    """Fields shared by every variant."""

    id: str
    team: int
    x: float
    z: float
    hp: float
    max_hp: float
    vx: float = 0.0
    vz: float = 0.0

    kind: ClassVar[EntityKind]

    def is_alive(self) -> bool:
        return self.hp > 0

    def take_damage(self, amount: float) -> None:
        self.hp = min(self.max_hp, max(0, self.hp - amount))

    def distance_to(self, x: float, z: float) -> float:
        return math.hypot(self.x - x, self.z - z)

    def serialise(self) -> Dict[str, object]:
        data = asdict(self)
        data["type"] = self.kind.value
        return data


@dataclass
class Hero(Entity):
    """Player controlled champion; one per team."""

    q_ready: float = 0.0
    e_ready: float = 0.0
    a_ready: float = 0.0

    kind: ClassVar[EntityKind] = EntityKind.HERO


@dataclass
class Creep(Entity):
    """Lane minion marching towards the enemy side."""

    reveal_radius: Optional[float] = None

    kind: ClassVar[EntityKind] = EntityKind.CREEP


@dataclass
class Tower(Entity):
    kind: ClassVar[EntityKind] = EntityKind.TOWER


@dataclass
class Core(Entity):
    """Team base.  Losing it loses the match."""

    kind: ClassVar[EntityKind] = EntityKind.CORE


@dataclass
class Projectile(Entity):
    """Skill shot travelling until it hits, leaves the map or runs out of range."""

    range: float = 0.0
    damage: float = 0.0
    owner: Optional[str] = None

    kind: ClassVar[EntityKind] = EntityKind.PROJECTILE


ENTITY_TYPES: Dict[EntityKind, Type[Entity]] = {
    cls.kind: cls for cls in (Hero, Creep, Tower, Core, Projectile)
}

EntityType = TypeVar("EntityType", bound=Entity)


def entity_from_dict(data: Dict[str, object]) -> Entity:
    """Rebuild an entity from the record produced by ``Entity.serialise``."""

    if not isinstance(data, dict):
        raise ValueError("entity record must be an object")
    try:
        cls = ENTITY_TYPES[EntityKind(data.get("type"))]
    except ValueError:
        raise ValueError(f"unknown entity type {data.get('type')!r}") from None
    values = {}
    for item in fields(cls):
        if item.name in data:
            values[item.name] = data[item.name]
    try:
        entity = cls(**values)
    except TypeError as exc:
        raise ValueError(f"incomplete {cls.kind.value} record: {exc}") from None
    if entity.team not in TEAMS:
        raise ValueError(f"invalid team {entity.team!r}")
    return entity


class EntityTable:
    """Insertion ordered mapping of entity id to entity.

    Iteration order is creation order, which makes "first found" tie breaks
    reproducible between two runs fed the same inputs.
    """

    def __init__(self) -> None:
        self._entities: Dict[str, Entity] = {}
        self._ids = itertools.count(1)

    def create(self, kind: EntityKind, team: int, x: float, z: float, hp: float, **extra: object) -> str:
        if team not in TEAMS:
            raise ValueError(f"team must be one of {TEAMS}, got {team!r}")
        cls = ENTITY_TYPES[EntityKind(kind)]
        entity_id = f"{cls.kind.value}-{next(self._ids)}"
        entity = cls(id=entity_id, team=team, x=x, z=z, hp=hp, max_hp=hp, **extra)
        self._entities[entity_id] = entity
        return entity_id

    def get(self, entity_id: str) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def for_each(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))

    def remove(self, entity_id: str) -> None:
        self._entities.pop(entity_id, None)

    def clear(self) -> None:
        self._entities.clear()

    def of_kind(self, cls: Type[EntityType]) -> List[EntityType]:
        return [entity for entity in self._entities.values() if isinstance(entity, cls)]

    def hero_for(self, team: int) -> Optional[Hero]:
        return self._first(Hero, team)

    def core_for(self, team: int) -> Optional[Core]:
        return self._first(Core, team)

    def _first(self, cls: Type[EntityType], team: int) -> Optional[EntityType]:
        for entity in self._entities.values():
            if isinstance(entity, cls) and entity.team == team:
                return entity
        return None

    # ------------------------------------------------------------------
    # Snapshotting
    # ------------------------------------------------------------------
    def serialise(self) -> List[Dict[str, object]]:
        return [entity.serialise() for entity in self._entities.values()]

    def load(self, records: Iterable[Dict[str, object]]) -> None:
        """Replace the whole table with ``records``.

        The new mapping is built aside and swapped in only when every record
        parsed, so a bad record leaves the current table untouched.
        """

        replacement: Dict[str, Entity] = {}
        for record in records:
            entity = entity_from_dict(record)
            replacement[entity.id] = entity
        self._entities = replacement

    def __iter__(self) -> Iterator[Entity]:
        return self.for_each()

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities


@dataclass
class FrameInput:
    """Per-frame input, already reduced from keys, mouse or touch.

    ``pointer`` is in world coordinates.  ``cast`` is one shot per press.
    """

    mx: float = 0.0
    mz: float = 0.0
    cast: Optional[Skill] = None
    drag: Optional[Vector2] = None
    lock_on: bool = False
    pointer: Vector2 = (0.0, 0.0)
