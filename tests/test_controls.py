from __future__ import annotations

from collections import defaultdict

import pygame
import pytest

from laneduel.controls import Controls
from laneduel.models import Skill


def _pressed(*keys: int) -> defaultdict:
    return defaultdict(bool, {key: True for key in keys})


@pytest.fixture()
def controls() -> Controls:
    return Controls()


def test_diagonal_movement_is_normalised(controls: Controls) -> None:
    frame = controls.poll(_pressed(pygame.K_d, pygame.K_s), (0.0, 0.0))
    assert frame.mx == pytest.approx(0.7071, abs=1e-4)
    assert frame.mz == pytest.approx(0.7071, abs=1e-4)


def test_arrow_keys_move_too(controls: Controls) -> None:
    frame = controls.poll(_pressed(pygame.K_LEFT, pygame.K_UP, pygame.K_DOWN), (0.0, 0.0))
    assert (frame.mx, frame.mz) == (-1.0, 0.0)


def test_cast_is_one_shot(controls: Controls) -> None:
    controls.handle_event(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_SPACE))
    assert controls.poll(_pressed(), (0.0, 0.0)).cast is Skill.A
    assert controls.poll(_pressed(), (0.0, 0.0)).cast is None


def test_lock_toggles(controls: Controls) -> None:
    controls.handle_event(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_l))
    assert controls.poll(_pressed(), (0.0, 0.0)).lock_on
    controls.handle_event(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_l))
    assert not controls.poll(_pressed(), (0.0, 0.0)).lock_on


def test_right_drag_aims_and_casts_nuke_on_release(controls: Controls) -> None:
    controls.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=3, pos=(100, 100)))
    controls.handle_event(pygame.event.Event(pygame.MOUSEMOTION, pos=(100, 40), rel=(0, -60), buttons=(0, 0, 1)))
    held = controls.poll(_pressed(), (0.0, 0.0))
    assert held.drag == (0.0, -60.0)
    assert held.cast is None

    controls.handle_event(pygame.event.Event(pygame.MOUSEBUTTONUP, button=3, pos=(100, 40)))
    released = controls.poll(_pressed(), (0.0, 0.0))
    assert released.cast is Skill.Q
    assert released.drag == (0.0, -60.0)
    assert controls.poll(_pressed(), (0.0, 0.0)).drag is None


def test_tiny_drag_is_ignored(controls: Controls) -> None:
    controls.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=3, pos=(10, 10)))
    controls.handle_event(pygame.event.Event(pygame.MOUSEBUTTONUP, button=3, pos=(10, 10)))
    frame = controls.poll(_pressed(), (50.0, 60.0))
    assert frame.cast is Skill.Q
    assert frame.drag is None
    assert frame.pointer == (50.0, 60.0)
