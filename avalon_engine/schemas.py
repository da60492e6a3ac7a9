"""Pydantic data schemas used across the engine and its HTTP adapter.

This module centralises all models so that other modules can import
from a single location instead of sprinkling the definitions across
multiple files.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .constants import (
    Alignment,
    GameResult,
    MAX_PLAYERS,
    MIN_PLAYERS,
    MissionVote,
    Phase,
    Role,
    TeamVote,
)

# -----------------------------
# Game rules
# -----------------------------

class GameConfig(BaseModel):
    """Rule toggles fixed for the whole game."""

    # --- Clairvoyance (Lady of the Lake) --- #
    clairvoyance_enabled: bool = True
    clairvoyance_min_players: int = Field(default=7, ge=MIN_PLAYERS)
    # Completed mission counts (1-indexed) after which the power is used.
    clairvoyance_after_missions: List[int] = Field(default_factory=lambda: [2, 3, 4])
    # Opt-in house rule: a player who already held the power cannot be checked.
    clairvoyance_excludes_previous_holders: bool = False

    # --- Endgame --- #
    # Role that names Merlin after Good's third success; Mordred stands in if absent.
    merlin_guesser_role: Role = Role.MORGANA


# -----------------------------
# Read models
# -----------------------------

class GameSnapshot(BaseModel):
    """Public view of the shared record. Roles stay hidden until the game ends."""

    num_players: int
    phase: Phase
    round_id: int
    crown_id: int
    clairvoyance_holder_id: int
    expected_team_size: int
    current_team: List[int] = []
    missions: List[MissionVote] = []
    reject_count: int = 0
    result: Optional[GameResult] = None
    roles: Optional[List[Role]] = None


class PlayerInfo(BaseModel):
    """What a single player privately knows once roles are dealt."""

    player_id: int
    role: Role
    alignment: Alignment
    # Players revealed by the role's night knowledge (sorted ids).
    known_players: List[int] = []


# -----------------------------
# REST request / response models
# -----------------------------

class CreateGameRequest(BaseModel):
    num_players: int = Field(..., ge=MIN_PLAYERS, le=MAX_PLAYERS)
    seed: Optional[int] = None
    config: GameConfig = Field(default_factory=GameConfig)


class CreateGameResponse(BaseModel):
    game_id: str
    snapshot: GameSnapshot


class SuggestTeamRequest(BaseModel):
    player_id: int
    team: List[int]


class TeamVoteRequest(BaseModel):
    player_id: int
    vote: TeamVote
    round_id: Optional[int] = None


class MissionVoteRequest(BaseModel):
    player_id: int
    vote: MissionVote
    round_id: Optional[int] = None


class TargetRequest(BaseModel):
    player_id: int
    target_id: int


class AnnounceWordRequest(BaseModel):
    player_id: int
    word: Alignment


class CommandResponse(BaseModel):
    accepted: bool = True
    batch_complete: Optional[bool] = None
    snapshot: GameSnapshot


__all__ = [
    # rules
    "GameConfig",
    # read models
    "GameSnapshot",
    "PlayerInfo",
    # REST
    "CreateGameRequest",
    "CreateGameResponse",
    "SuggestTeamRequest",
    "TeamVoteRequest",
    "MissionVoteRequest",
    "TargetRequest",
    "AnnounceWordRequest",
    "CommandResponse",
]
