from pickem import db  # noqa: F401 - imported for model imports

from .app_config import AppConfig
from .game import Game, GameStatus
from .team import Team

__all__ = [
    "AppConfig",
    "Game",
    "GameStatus",
    "Team",
]
