"""Frame clock turning wall time into bounded simulation steps."""
from __future__ import annotations

from typing import Optional

from .config import MAX_STEP


class SimulationClock:
    """Clamps the wall time between frames to ``max_step``.

    Stalls (a paused debugger, a minimised window) would otherwise produce a
    single huge step that lets projectiles tunnel through collision radii.
    """

    def __init__(self, max_step: float = MAX_STEP) -> None:
        if max_step <= 0:
            raise ValueError("max_step must be positive")
        self.max_step = max_step
        self._last: Optional[float] = None

    def tick(self, now: float) -> float:
        """Return the clamped step since the previous call (0 on the first)."""

        if self._last is None:
            self._last = now
            return 0.0
        elapsed = now - self._last
        self._last = now
        return self.clamp(elapsed)

    def clamp(self, elapsed: float) -> float:
        return min(self.max_step, max(0.0, elapsed))

    def restart(self) -> None:
        self._last = None
