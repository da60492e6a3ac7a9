"""Core Avalon rules.

This module implements the rules of Avalon as plain functions over role
lists, vote lists and mission histories. The driver and the client façade
import them; nothing here touches the shared record, channels or locks.
"""
from __future__ import annotations

import random
from typing import Iterable, List, Optional, Sequence

from .constants import (
    DEFAULT_GUESSER_ROLE,
    EVIL_ROLES_KNOWN_TO_EACH_OTHER,
    GameResult,
    MISSION_COUNT,
    MissionVote,
    QUEST_SIZES,
    ROLE_TABLE,
    Role,
    TeamVote,
    TWO_FAIL_MIN_PLAYERS,
    TWO_FAIL_MISSION_INDEX,
    WINNING_MISSIONS,
)
from .errors import ConfigurationError
from .schemas import GameConfig

# ---------------------------------------------------------------------------
# Role deck generation & night-phase information
# ---------------------------------------------------------------------------

def build_role_deck(num_players: int, rng: random.Random) -> List[Role]:
    """Return the canonical roles for *num_players*, shuffled once with *rng*."""
    if num_players not in ROLE_TABLE:
        raise ConfigurationError(f"Unsupported number of players: {num_players}")
    roles = list(ROLE_TABLE[num_players])
    rng.shuffle(roles)
    return roles


def nth_player_with_role(roles: Sequence[Role], role: Role, n: int = 0) -> Optional[int]:
    """Return the id of the *n*-th (0-based) player holding *role*, if any."""
    seen = 0
    for pid, r in enumerate(roles):
        if r != role:
            continue
        if seen == n:
            return pid
        seen += 1
    return None


def bad_team(roles: Sequence[Role]) -> List[int]:
    return [pid for pid, r in enumerate(roles) if not r.is_good]


def merlin_guesser(roles: Sequence[Role], config: GameConfig) -> int:
    """The configured guesser if dealt, otherwise the bad-team leader."""
    guesser = nth_player_with_role(roles, config.merlin_guesser_role)
    if guesser is None or roles[guesser].is_good:
        guesser = nth_player_with_role(roles, DEFAULT_GUESSER_ROLE)
    if guesser is None:
        raise ConfigurationError("No bad player can guess Merlin")
    return guesser


def visible_players(roles: Sequence[Role], player_id: int) -> List[int]:
    """Ids revealed to *player_id* by its role before the first mission."""
    role = roles[player_id]
    if role == Role.MERLIN:
        # Mordred stays hidden from Merlin
        return [pid for pid, r in enumerate(roles) if not r.is_good and r != Role.MORDRED]
    if role == Role.PERCIVAL:
        return [pid for pid, r in enumerate(roles) if r in {Role.MERLIN, Role.MORGANA}]
    if role in EVIL_ROLES_KNOWN_TO_EACH_OTHER:
        return [
            pid for pid, r in enumerate(roles)
            if r in EVIL_ROLES_KNOWN_TO_EACH_OTHER and pid != player_id
        ]
    return []


# ---------------------------------------------------------------------------
# Game flow helpers
# ---------------------------------------------------------------------------

def next_index(idx: int, num_players: int) -> int:
    return (idx + 1) % num_players


def prev_index(idx: int, num_players: int) -> int:
    return (idx - 1) % num_players


def expected_team_size(mission_index: int, num_players: int) -> int:
    """Team size for the 0-based *mission_index* at a table of *num_players*."""
    if num_players not in QUEST_SIZES:
        raise ConfigurationError(f"Unsupported number of players: {num_players}")
    if not 0 <= mission_index < MISSION_COUNT:
        raise ConfigurationError(f"Unsupported mission index: {mission_index}")
    return QUEST_SIZES[num_players][mission_index]


def majority_approved(votes: Iterable[TeamVote]) -> bool:
    votes = list(votes)
    approvals = sum(1 for v in votes if v == TeamVote.APPROVE)
    return approvals * 2 > len(votes)


def mission_requires_two_fails(mission_index: int, num_players: int) -> bool:
    return num_players >= TWO_FAIL_MIN_PLAYERS and mission_index == TWO_FAIL_MISSION_INDEX


def mission_outcome(mission_index: int, num_players: int, votes: Iterable[MissionVote]) -> MissionVote:
    fail_count = sum(1 for v in votes if v == MissionVote.FAIL)
    required_fails = 2 if mission_requires_two_fails(mission_index, num_players) else 1
    return MissionVote.SUCCESS if fail_count < required_fails else MissionVote.FAIL


def calc_winner(missions: Sequence[MissionVote]) -> Optional[GameResult]:
    """First side to accumulate three missions wins; ``None`` while undecided."""
    fails = 0
    successes = 0
    for outcome in missions:
        if outcome == MissionVote.FAIL:
            fails += 1
        else:
            successes += 1
        if fails >= WINNING_MISSIONS:
            return GameResult.BAD_WINS
        if successes >= WINNING_MISSIONS:
            return GameResult.GOOD_WINS
    return None


def clairvoyance_active(config: GameConfig, num_players: int, completed_missions: int) -> bool:
    """Whether the power is used right after *completed_missions* missions."""
    if not config.clairvoyance_enabled:
        return False
    if num_players < config.clairvoyance_min_players:
        return False
    return completed_missions in config.clairvoyance_after_missions


__all__ = [
    "build_role_deck",
    "nth_player_with_role",
    "bad_team",
    "merlin_guesser",
    "visible_players",
    "next_index",
    "prev_index",
    "expected_team_size",
    "majority_approved",
    "mission_requires_two_fails",
    "mission_outcome",
    "calc_winner",
    "clairvoyance_active",
]
