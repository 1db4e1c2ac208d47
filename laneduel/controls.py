"""Keyboard and mouse capture reduced to a per-frame ``FrameInput``."""
from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import pygame

from .models import FrameInput, Skill, Vector2

MOVE_RIGHT = (pygame.K_d, pygame.K_RIGHT)
MOVE_LEFT = (pygame.K_a, pygame.K_LEFT)
MOVE_DOWN = (pygame.K_s, pygame.K_DOWN)
MOVE_UP = (pygame.K_w, pygame.K_UP)

CAST_KEYS = {
    pygame.K_q: Skill.Q,
    pygame.K_e: Skill.E,
    pygame.K_SPACE: Skill.A,
}
LOCK_KEY = pygame.K_l
DRAG_BUTTON = 3
DRAG_DEADZONE = 4.0  # pixels; shorter drags fall back to lock-on or pointer aim


class Controls:
    """Collects pygame events between frames.

    Casts are one shot: a key press yields exactly one ``cast`` on the next
    ``poll``.  Holding the right mouse button and dragging sets an explicit aim
    vector; releasing it casts Q along that vector.
    """

    def __init__(self) -> None:
        self.lock_on = False
        self._pending: Optional[Skill] = None
        self._drag_start: Optional[Tuple[int, int]] = None
        self._drag: Optional[Vector2] = None
        self._release_drag = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            if event.key in CAST_KEYS and self._pending is None:
                self._pending = CAST_KEYS[event.key]
            elif event.key == LOCK_KEY:
                self.lock_on = not self.lock_on
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == DRAG_BUTTON:
            self._drag_start = event.pos
            self._drag = (0.0, 0.0)
        elif event.type == pygame.MOUSEMOTION and self._drag_start is not None:
            self._drag = (
                float(event.pos[0] - self._drag_start[0]),
                float(event.pos[1] - self._drag_start[1]),
            )
        elif event.type == pygame.MOUSEBUTTONUP and event.button == DRAG_BUTTON:
            if self._drag_start is not None:
                self._pending = Skill.Q
                self._release_drag = True

    def poll(self, pressed: Sequence[bool], pointer_world: Vector2) -> FrameInput:
        """Build this frame's input from the held keys and pending events."""

        horizontal = _held(pressed, MOVE_RIGHT) - _held(pressed, MOVE_LEFT)
        vertical = _held(pressed, MOVE_DOWN) - _held(pressed, MOVE_UP)
        length = math.hypot(horizontal, vertical) or 1.0
        frame = FrameInput(
            mx=horizontal / length,
            mz=vertical / length,
            cast=self._pending,
            drag=self._drag if self._drag and math.hypot(*self._drag) >= DRAG_DEADZONE else None,
            lock_on=self.lock_on,
            pointer=pointer_world,
        )
        self._pending = None
        if self._release_drag:
            self._drag_start = None
            self._drag = None
            self._release_drag = False
        return frame


def _held(pressed: Sequence[bool], keys: Sequence[int]) -> int:
    return 1 if any(pressed[key] for key in keys) else 0
