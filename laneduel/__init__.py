"""Lane Duel: a two-team single-lane arena with a host-authoritative relay mode."""

from .config import GameConfig
from .game import Simulation
from .session import GameSession, Role, SessionState

__all__ = ["GameConfig", "Simulation", "GameSession", "Role", "SessionState"]
