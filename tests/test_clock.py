from __future__ import annotations

import pytest

from laneduel.clock import SimulationClock


def test_first_tick_is_zero_and_steps_are_clamped() -> None:
    clock = SimulationClock(max_step=0.05)
    assert clock.tick(100.0) == 0.0
    assert clock.tick(100.02) == pytest.approx(0.02)
    assert clock.tick(103.0) == 0.05  # a stall is clamped
    assert clock.tick(102.0) == 0.0  # wall clock going backwards


def test_restart_forgets_the_previous_frame() -> None:
    clock = SimulationClock()
    clock.tick(1.0)
    clock.restart()
    assert clock.tick(50.0) == 0.0


def test_max_step_must_be_positive() -> None:
    with pytest.raises(ValueError):
        SimulationClock(max_step=0)
