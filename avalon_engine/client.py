"""Validated command API used concurrently by the players.

Each method takes the shared record's lock for a short critical section,
checks that the command is legal right now and either mutates the record or
forwards a batch to the driver. Rejected commands raise and leave the record
unchanged.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional, Union

from .channels import Inbox
from .constants import Alignment, MissionVote, Phase, TeamVote
from .errors import (
    ChannelClosed,
    IllegalAction,
    NotClairvoyanceHolder,
    NotCrownHolder,
    NotGuesser,
    NotTeamMember,
    RoleViolation,
    ShapeMismatch,
    WrongTeamSize,
)
from .record import GameRecord
from .schemas import GameSnapshot, PlayerInfo

logger = logging.getLogger(__name__)


def _coerce(enum_cls, value, what: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ShapeMismatch(f"Invalid {what}: {value!r}") from exc


class GameClient:
    def __init__(self, record: GameRecord, inbox: Inbox):
        self._record = record
        self._inbox = inbox

    @staticmethod
    def _require_open(channel) -> None:
        if channel.closed:
            raise ChannelClosed(f"Channel {channel.name!r} is closed")

    # -------------------- Read helpers -------------------- #

    def snapshot(self) -> GameSnapshot:
        return self._record.snapshot()

    def private_info(self, player_id: int) -> PlayerInfo:
        return self._record.private_info(player_id)

    # -------------------- Team proposal & approval -------------------- #

    async def suggest_team(self, from_id: int, team: Iterable[int]) -> None:
        record = self._record
        if isinstance(team, (str, bytes)) or not isinstance(team, Iterable):
            raise ShapeMismatch(f"Team must be a list of player ids, got {team!r}")
        team = list(team)
        async with record.lock:
            self._require_open(self._inbox.team)
            record.check_player(from_id)
            record.require_phase(Phase.TEAM_SUGGESTION)
            if from_id != record.crown_id:
                raise NotCrownHolder("Only the crown holder can suggest a team")
            if len(team) != record.expected_team_size:
                raise WrongTeamSize(
                    f"Team must have {record.expected_team_size} players, got {len(team)}"
                )
            for pid in team:
                record.check_player(pid)
            if len(set(team)) != len(team):
                raise ShapeMismatch("Team members must be distinct")

            self._inbox.team.send(record.round_id, team)
            record.current_team = team
            record.team_votes.clear()
            record.phase = Phase.TEAM_VOTE
        logger.debug("Player %d suggested %s", from_id, team)

    async def cast_team_vote(
        self,
        from_id: int,
        vote: Union[TeamVote, str],
        round_id: Optional[int] = None,
    ) -> bool:
        """Record *vote*; return ``True`` if it completed the batch."""
        record = self._record
        vote = _coerce(TeamVote, vote, "team vote")
        async with record.lock:
            self._require_open(self._inbox.team_votes)
            record.check_player(from_id)
            record.require_round(round_id)
            record.require_phase(Phase.TEAM_VOTE)
            batch = record.team_votes.cast(from_id, vote)
            if batch is None:
                return False
            self._inbox.team_votes.send(record.round_id, batch)
            record.phase = Phase.RESOLVING
        logger.debug("Team vote batch complete for round %d", record.round_id)
        return True

    # -------------------- Mission -------------------- #

    async def cast_mission_vote(
        self,
        from_id: int,
        vote: Union[MissionVote, str],
        round_id: Optional[int] = None,
    ) -> bool:
        """Record *vote*; return ``True`` if it completed the batch."""
        record = self._record
        vote = _coerce(MissionVote, vote, "mission vote")
        async with record.lock:
            self._require_open(self._inbox.mission_votes)
            record.check_player(from_id)
            record.require_round(round_id)
            record.require_phase(Phase.MISSION_VOTE)
            if from_id not in record.current_team:
                raise NotTeamMember("Only team members vote on the mission")
            if vote == MissionVote.FAIL and record.is_good(from_id):
                raise RoleViolation("Good players can only vote for success")
            batch = record.mission_votes.cast(record.current_team.index(from_id), vote)
            if batch is None:
                return False
            self._inbox.mission_votes.send(record.round_id, batch)
            record.phase = Phase.RESOLVING
        logger.debug("Mission vote batch complete for round %d", record.round_id)
        return True

    # -------------------- Clairvoyance -------------------- #

    async def select_clairvoyance_target(self, from_id: int, target_id: int) -> None:
        record = self._record
        async with record.lock:
            self._require_open(self._inbox.clairvoyance_target)
            record.check_player(from_id)
            record.check_player(target_id)
            record.require_phase(Phase.CLAIRVOYANCE_SELECTION)
            if from_id != record.clairvoyance_holder_id:
                raise NotClairvoyanceHolder("Only the clairvoyance holder can check a player")
            if target_id == from_id:
                raise IllegalAction("The clairvoyance holder cannot check themselves")
            if (
                record.config.clairvoyance_excludes_previous_holders
                and target_id in record.clairvoyance_history
            ):
                raise IllegalAction("Previous clairvoyance holders cannot be checked")
            self._inbox.clairvoyance_target.send(record.round_id, target_id)
            record.phase = Phase.RESOLVING

    async def announce_clairvoyance_word(self, from_id: int, word: Union[Alignment, str]) -> None:
        record = self._record
        word = _coerce(Alignment, word, "announcement")
        async with record.lock:
            self._require_open(self._inbox.clairvoyance_word)
            record.check_player(from_id)
            record.require_phase(Phase.CLAIRVOYANCE_ANNOUNCEMENT)
            if from_id != record.clairvoyance_holder_id:
                raise NotClairvoyanceHolder("Only the clairvoyance holder can announce")
            self._inbox.clairvoyance_word.send(record.round_id, word)
            record.phase = Phase.RESOLVING

    # -------------------- Endgame -------------------- #

    async def guess_merlin(self, from_id: int, target_id: int) -> None:
        record = self._record
        async with record.lock:
            self._require_open(self._inbox.merlin_guess)
            record.check_player(from_id)
            record.check_player(target_id)
            record.require_phase(Phase.LAST_CHANCE)
            if from_id != record.guesser_id:
                raise NotGuesser("Only the designated guesser can name Merlin")
            if not record.is_good(target_id):
                raise IllegalAction("Merlin is on the good team")
            self._inbox.merlin_guess.send(record.round_id, target_id)
            record.phase = Phase.RESOLVING

    # -------------------- Lifecycle -------------------- #

    def close(self) -> None:
        """Abandon the game; the driver's next receive fails with ``ChannelClosed``."""
        self._inbox.close()


__all__ = ["GameClient"]
