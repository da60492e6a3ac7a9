"""Rule engine for Avalon: a turn-driving state machine and its concurrent command façade."""

from .client import GameClient
from .constants import Alignment, GameResult, MissionVote, Phase, Role, TeamVote
from .driver import GameDriver
from .errors import (
    ChannelClosed,
    ConfigurationError,
    GameError,
    IllegalAction,
    RoleViolation,
    ShapeMismatch,
)
from .game import Game, setup_game
from .schemas import GameConfig

__all__ = [
    "setup_game",
    "Game",
    "GameClient",
    "GameDriver",
    "GameConfig",
    "Alignment",
    "GameResult",
    "MissionVote",
    "Phase",
    "Role",
    "TeamVote",
    "GameError",
    "IllegalAction",
    "ShapeMismatch",
    "RoleViolation",
    "ChannelClosed",
    "ConfigurationError",
]
