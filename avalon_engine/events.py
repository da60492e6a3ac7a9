"""Every externally observable transition of a game.

The driver publishes these records on the game's event stream in protocol
order. Most are public; :meth:`EventBase.visible_to` names the single player
allowed to see a private one.
"""
from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .constants import Alignment, GameResult, MissionVote, TeamVote


class EventBase(BaseModel):
    def visible_to(self) -> Optional[int]:
        """Return the only player id allowed to see this event, or ``None`` if public."""
        return None


class Turn(EventBase):
    type: Literal["turn"] = "turn"
    crown_id: int
    team_size: int
    mission_index: int
    round_id: int
    reject_count: int = 0


class TeamSuggested(EventBase):
    type: Literal["team_suggested"] = "team_suggested"
    crown_id: int
    team: List[int]


class TeamVotes(EventBase):
    type: Literal["team_vote"] = "team_vote"
    # Ordered by player id.
    votes: List[TeamVote]


class TeamApproved(EventBase):
    type: Literal["team_approved"] = "team_approved"
    team: List[int]


class TeamRejected(EventBase):
    type: Literal["team_rejected"] = "team_rejected"
    count: int


class MissionResult(EventBase):
    type: Literal["mission_result"] = "mission_result"
    mission_index: int
    # Shuffled, so positions say nothing about who voted what.
    votes: List[MissionVote]
    outcome: MissionVote


class ClairvoyanceTurn(EventBase):
    type: Literal["clairvoyance_turn"] = "clairvoyance_turn"
    holder_id: int


class ClairvoyanceResult(EventBase):
    type: Literal["clairvoyance_result"] = "clairvoyance_result"
    holder_id: int
    target_id: int
    alignment: Alignment

    def visible_to(self) -> Optional[int]:
        return self.holder_id


class ClairvoyanceAnnouncement(EventBase):
    type: Literal["clairvoyance_announcement"] = "clairvoyance_announcement"
    holder_id: int
    target_id: int
    word: Alignment


class BadTeamLastChance(EventBase):
    type: Literal["bad_team_last_chance"] = "bad_team_last_chance"
    bad_team: List[int]
    guesser_id: int


class MerlinRevealed(EventBase):
    type: Literal["merlin_revealed"] = "merlin_revealed"
    merlin_id: int


class GameOver(EventBase):
    type: Literal["game_result"] = "game_result"
    result: GameResult


GameEvent = Annotated[
    Union[
        Turn,
        TeamSuggested,
        TeamVotes,
        TeamApproved,
        TeamRejected,
        MissionResult,
        ClairvoyanceTurn,
        ClairvoyanceResult,
        ClairvoyanceAnnouncement,
        BadTeamLastChance,
        MerlinRevealed,
        GameOver,
    ],
    Field(discriminator="type"),
]

__all__ = [
    "EventBase",
    "Turn",
    "TeamSuggested",
    "TeamVotes",
    "TeamApproved",
    "TeamRejected",
    "MissionResult",
    "ClairvoyanceTurn",
    "ClairvoyanceResult",
    "ClairvoyanceAnnouncement",
    "BadTeamLastChance",
    "MerlinRevealed",
    "GameOver",
    "GameEvent",
]
