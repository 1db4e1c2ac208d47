"""pygame presentation of the entity table.  Reads state, never writes it."""
from __future__ import annotations

from typing import Dict, Optional, Tuple

import pygame

from . import config
from .models import Core, Creep, Entity, Hero, Projectile, Skill, Tower, Vector2
from .rules import collision_radius
from .session import GameSession
from .skills import cooldowns_remaining

Color = Tuple[int, int, int]

BACKGROUND: Color = (15, 23, 42)
LANE: Color = (31, 41, 55)
OBSTACLE: Color = (71, 85, 105)
PROJECTILE: Color = (234, 179, 8)
TEXT: Color = (229, 231, 235)

TEAM_COLORS: Dict[type, Tuple[Color, Color]] = {
    Hero: ((96, 165, 250), (245, 158, 11)),
    Creep: ((34, 211, 238), (251, 113, 133)),
    Tower: ((56, 189, 248), (248, 113, 113)),
    Core: ((125, 211, 252), (252, 165, 165)),
}


# Back to front.
DRAW_ORDER = (Core, Tower, Creep, Hero, Projectile)


class Camera:
    """Viewport following a world point with exponential easing."""

    def __init__(self, width: int, height: int, world: Tuple[float, float]) -> None:
        self.x = 0.0
        self.y = 0.0
        self.width = width
        self.height = height
        self.world_width, self.world_height = world

    def follow(self, target: Optional[Entity], dt: float) -> None:
        if target is None:
            return
        factor = min(1.0, dt * 4)
        self.x += (target.x - self.width / 2 - self.x) * factor
        self.y += (target.z - self.height / 2 - self.y) * factor
        self.x = max(0.0, min(self.world_width - self.width, self.x))
        self.y = max(0.0, min(self.world_height - self.height, self.y))

    def to_screen(self, x: float, z: float) -> Tuple[int, int]:
        return int(x - self.x), int(z - self.y)

    def to_world(self, pos: Tuple[int, int]) -> Vector2:
        return (pos[0] + self.x, pos[1] + self.y)


class Renderer:
    def __init__(self, screen: pygame.Surface, session: GameSession) -> None:
        self.screen = screen
        self.session = session
        game_config = session.config
        self.camera = Camera(screen.get_width(), screen.get_height(), (game_config.map_width, game_config.map_height))
        self.font = pygame.font.Font(None, 24)
        self.banner_font = pygame.font.Font(None, 64)

    def draw(self, dt: float, lock_on: bool = False) -> None:
        session = self.session
        simulation = session.simulation
        game_config = session.config
        self.camera.width, self.camera.height = self.screen.get_size()
        self.camera.follow(simulation.hero(session.my_team), dt)

        self.screen.fill((0, 0, 0))
        self._rect(0, 0, game_config.map_width, game_config.map_height, BACKGROUND)
        low, high = game_config.lane_band()
        self._rect(0, low, game_config.map_width, high - low, LANE)
        for obstacle in game_config.obstacles:
            self._rect(obstacle.x, obstacle.z, obstacle.width, obstacle.depth, OBSTACLE)

        for kind in DRAW_ORDER:
            for entity in simulation.table.of_kind(kind):
                self._draw_entity(entity)
        for entity in simulation.table:
            if not isinstance(entity, Projectile):
                self._draw_health(entity)

        self._draw_minimap()
        self._draw_hud(lock_on)

    def _rect(self, x: float, z: float, width: float, depth: float, color: Color) -> None:
        left, top = self.camera.to_screen(x, z)
        pygame.draw.rect(self.screen, color, pygame.Rect(left, top, int(width), int(depth)))

    def _draw_entity(self, entity: Entity) -> None:
        center = self.camera.to_screen(entity.x, entity.z)
        radius = int(collision_radius(self.session.config, entity))
        if isinstance(entity, Projectile):
            pygame.draw.circle(self.screen, PROJECTILE, center, radius)
            return
        color = TEAM_COLORS[type(entity)][entity.team - 1]
        if not entity.is_alive():
            color = tuple(channel // 3 for channel in color)
        pygame.draw.circle(self.screen, color, center, radius)
        if isinstance(entity, (Hero, Core, Tower)):
            pygame.draw.circle(self.screen, (255, 255, 255), center, radius, 2)

    def _draw_health(self, entity: Entity) -> None:
        ratio = entity.hp / entity.max_hp if entity.max_hp else 0.0
        if ratio >= 1:
            return
        width = 36
        left, top = self.camera.to_screen(entity.x - width / 2, entity.z - 28)
        pygame.draw.rect(self.screen, (17, 24, 39), pygame.Rect(left, top, width, 6))
        if ratio > 0.5:
            color = (34, 197, 94)
        elif ratio > 0.2:
            color = (245, 158, 11)
        else:
            color = (239, 68, 68)
        pygame.draw.rect(self.screen, color, pygame.Rect(left, top, max(0, int(width * ratio)), 6))

    def _draw_minimap(self) -> None:
        width, height = config.MINIMAP_SIZE
        game_config = self.session.config
        surface = pygame.Surface((width, height), pygame.SRCALPHA)
        surface.fill((255, 255, 255, 16))
        scale_x = width / game_config.map_width
        scale_z = height / game_config.map_height
        lane_y = int(game_config.lane_z * scale_z)
        pygame.draw.rect(surface, (255, 255, 255, 32), pygame.Rect(0, lane_y - 3, width, 6))
        for entity in self.session.simulation.table:
            if isinstance(entity, Projectile):
                color, radius = PROJECTILE, 2
            else:
                color = TEAM_COLORS[type(entity)][entity.team - 1]
                radius = 4 if isinstance(entity, Core) else 3
            pygame.draw.circle(surface, color, (int(entity.x * scale_x), int(entity.z * scale_z)), radius)
        view = pygame.Rect(
            int(self.camera.x * scale_x),
            int(self.camera.y * scale_z),
            int(self.camera.width * scale_x),
            int(self.camera.height * scale_z),
        )
        pygame.draw.rect(surface, (255, 255, 255), view, 1)
        position = (self.screen.get_width() - width - 10, 10)
        self.screen.blit(surface, position)

    def _draw_hud(self, lock_on: bool) -> None:
        session = self.session
        simulation = session.simulation
        lines = [f"{session.status}  |  lock {'on' if lock_on else 'off'}"]
        hero = simulation.hero(session.my_team)
        if hero is not None:
            remaining = cooldowns_remaining(hero, simulation.time)
            lines.append(
                "  ".join(
                    f"{skill.value}: {remaining[skill]:.1f}" if remaining[skill] > 0 else f"{skill.value}: ready"
                    for skill in (Skill.A, Skill.Q, Skill.E)
                )
            )
        for index, line in enumerate(lines):
            self.screen.blit(self.font.render(line, True, TEXT), (10, 10 + index * 22))
        if simulation.over and simulation.winner is not None:
            banner = self.banner_font.render(f"Team {simulation.winner} Wins!", True, TEXT)
            rect = banner.get_rect(center=(self.screen.get_width() // 2, self.screen.get_height() // 3))
            self.screen.blit(banner, rect)


__all__ = ["Camera", "Renderer"]
