from __future__ import annotations

from enum import Enum
from typing import Dict, List


class Alignment(str, Enum):
    """Meta-team membership; also the word a clairvoyance holder announces."""

    GOOD = "good"
    BAD = "bad"


class Role(str, Enum):
    MORDRED = "Mordred"
    MORGANA = "Morgana"
    OBERON = "Oberon"
    MINION = "Minion of Mordred"

    MERLIN = "Merlin"
    PERCIVAL = "Percival"
    SERVANT = "Loyal Servant of Arthur"

    @property
    def is_good(self) -> bool:
        return self in GOOD_ROLES

    @property
    def alignment(self) -> Alignment:
        return Alignment.GOOD if self.is_good else Alignment.BAD


class TeamVote(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class MissionVote(str, Enum):
    SUCCESS = "success"
    FAIL = "fail"


class GameResult(str, Enum):
    GOOD_WINS = "good_wins"
    BAD_WINS = "bad_wins"


class Phase(str, Enum):
    SETUP = "setup"
    TEAM_SUGGESTION = "team_suggestion"
    TEAM_VOTE = "team_vote"
    MISSION_VOTE = "mission_vote"
    RESOLVING = "resolving"  # a batch is on its way to the driver
    CLAIRVOYANCE_SELECTION = "clairvoyance_selection"
    CLAIRVOYANCE_ANNOUNCEMENT = "clairvoyance_announcement"
    LAST_CHANCE = "last_chance"
    FINISHED = "finished"
    ABORTED = "aborted"


GOOD_ROLES = {Role.MERLIN, Role.PERCIVAL, Role.SERVANT}
EVIL_ROLES = {Role.MORDRED, Role.MORGANA, Role.OBERON, Role.MINION}

# Bad players that know each other during the night (Oberon stays hidden).
EVIL_ROLES_KNOWN_TO_EACH_OTHER = {Role.MORDRED, Role.MORGANA, Role.MINION}

MIN_PLAYERS = 5
MAX_PLAYERS = 10
MISSION_COUNT = 5
WINNING_MISSIONS = 3
MAX_REJECTIONS = 5

# Canonical role multiset for each supported player count (before shuffling).
ROLE_TABLE: Dict[int, List[Role]] = {
    5: [Role.MORDRED, Role.MORGANA,
        Role.MERLIN] + [Role.SERVANT] * 2,
    6: [Role.MORDRED, Role.MORGANA,
        Role.MERLIN, Role.PERCIVAL] + [Role.SERVANT] * 2,
    7: [Role.MORDRED, Role.MORGANA, Role.OBERON,
        Role.MERLIN, Role.PERCIVAL] + [Role.SERVANT] * 2,
    8: [Role.MORDRED, Role.MORGANA, Role.OBERON,
        Role.MERLIN, Role.PERCIVAL] + [Role.SERVANT] * 3,
    9: [Role.MORDRED, Role.MORGANA, Role.OBERON,
        Role.MERLIN, Role.PERCIVAL] + [Role.SERVANT] * 4,
    10: [Role.MORDRED, Role.MORGANA, Role.OBERON, Role.MINION,
         Role.MERLIN, Role.PERCIVAL] + [Role.SERVANT] * 4,
}

# Required team sizes per mission for each total player count.
# Index 0-4 correspond to missions 1-5 respectively.
QUEST_SIZES: Dict[int, List[int]] = {
    5: [2, 3, 2, 3, 3],
    6: [2, 3, 4, 3, 4],
    7: [2, 3, 3, 4, 4],
    8: [3, 4, 4, 5, 5],
    9: [3, 4, 4, 5, 5],
    10: [3, 4, 4, 5, 5],
}

# The one mission (0-based) that needs two fails once the table is large enough.
TWO_FAIL_MISSION_INDEX = 4
TWO_FAIL_MIN_PLAYERS = 8

# Leader of the bad team; guesses Merlin when the configured guesser is absent.
DEFAULT_GUESSER_ROLE = Role.MORDRED

__all__ = [
    "Alignment",
    "Role",
    "TeamVote",
    "MissionVote",
    "GameResult",
    "Phase",
    "GOOD_ROLES",
    "EVIL_ROLES",
    "EVIL_ROLES_KNOWN_TO_EACH_OTHER",
    "MIN_PLAYERS",
    "MAX_PLAYERS",
    "MISSION_COUNT",
    "WINNING_MISSIONS",
    "MAX_REJECTIONS",
    "ROLE_TABLE",
    "QUEST_SIZES",
    "TWO_FAIL_MISSION_INDEX",
    "TWO_FAIL_MIN_PLAYERS",
    "DEFAULT_GUESSER_ROLE",
]
