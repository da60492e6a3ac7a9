"""Turn-driving state machine.

One :class:`GameDriver` walks a game from the first team proposal to the
final result. It suspends on the inbox channels while players act through
the client façade, mutates the shared record in short locked sections and
publishes an event for every observable transition.
"""
from __future__ import annotations

import logging
import random

from .channels import EventStream, Inbox
from .constants import GameResult, MAX_REJECTIONS, Phase
from .errors import ChannelClosed, ConfigurationError
from .events import (
    BadTeamLastChance,
    ClairvoyanceAnnouncement,
    ClairvoyanceResult,
    ClairvoyanceTurn,
    EventBase,
    GameOver,
    MerlinRevealed,
    MissionResult,
    TeamApproved,
    TeamRejected,
    TeamSuggested,
    TeamVotes,
    Turn,
)
from .game_logic import (
    calc_winner,
    clairvoyance_active,
    expected_team_size,
    majority_approved,
    mission_outcome,
    next_index,
)
from .record import GameRecord

logger = logging.getLogger(__name__)


class GameDriver:
    def __init__(self, record: GameRecord, inbox: Inbox, events: EventStream, rng: random.Random):
        self.record = record
        self.inbox = inbox
        self.events = events
        self.rng = rng

    def _emit(self, event: EventBase) -> None:
        self.events.publish(event)

    async def run(self) -> GameResult:
        """Play the game to the end and return the final result.

        Raises
        ------
        ChannelClosed
            If the façade side abandoned the game.
        ConfigurationError
            If the table has no entry for the player count or mission.
        """
        try:
            winner = await self._play_missions()
            if winner == GameResult.GOOD_WINS:
                winner = await self._last_chance()
            await self._finish(winner)
            return winner
        except (ChannelClosed, ConfigurationError) as exc:
            logger.warning("Game aborted without a winner: %s", exc)
            async with self.record.lock:
                self.record.phase = Phase.ABORTED
            raise
        finally:
            self.inbox.close()
            self.events.close()

    # ---------------------------------------------------------------------
    # Missions
    # ---------------------------------------------------------------------

    async def _play_missions(self) -> GameResult:
        record = self.record
        n = record.num_players
        while True:
            mission_index = len(record.missions)
            size = expected_team_size(mission_index, n)

            async with record.lock:
                record.expected_team_size = size
                record.current_team = []
                record.team_votes.reset(n)
                round_id = record.begin_round(Phase.TEAM_SUGGESTION)
                crown_id = record.crown_id
                reject_count = record.reject_count
            logger.info("Mission %d, round %d: crown %d picks %d", mission_index + 1, round_id, crown_id, size)
            self._emit(Turn(
                crown_id=crown_id,
                team_size=size,
                mission_index=mission_index,
                round_id=round_id,
                reject_count=reject_count,
            ))

            team = await self.inbox.team.receive(round_id)
            async with record.lock:
                record.current_team = list(team)
            self._emit(TeamSuggested(crown_id=crown_id, team=list(team)))

            votes = await self.inbox.team_votes.receive(round_id)
            self._emit(TeamVotes(votes=list(votes)))

            if not majority_approved(votes):
                async with record.lock:
                    record.reject_count += 1
                    count = record.reject_count
                    if count < MAX_REJECTIONS:
                        record.crown_id = next_index(record.crown_id, n)
                        record.phase = Phase.RESOLVING
                logger.info("Team rejected (%d/%d)", count, MAX_REJECTIONS)
                self._emit(TeamRejected(count=count))
                if count >= MAX_REJECTIONS:
                    return GameResult.BAD_WINS
                continue

            async with record.lock:
                record.reject_count = 0
                record.crown_id = next_index(record.crown_id, n)
                record.mission_votes.reset(size)
                record.phase = Phase.MISSION_VOTE
            logger.info("Team approved: %s", team)
            self._emit(TeamApproved(team=list(team)))

            mission_votes = await self.inbox.mission_votes.receive(round_id)
            outcome = mission_outcome(mission_index, n, mission_votes)
            shuffled = list(mission_votes)
            self.rng.shuffle(shuffled)

            async with record.lock:
                record.missions.append(outcome)
                winner = calc_winner(record.missions)
                completed = len(record.missions)
                record.phase = Phase.RESOLVING
            logger.info("Mission %d: %s", completed, outcome.value)
            self._emit(MissionResult(mission_index=mission_index, votes=shuffled, outcome=outcome))

            if winner is not None:
                return winner
            if clairvoyance_active(record.config, n, completed):
                await self._clairvoyance()

    async def _clairvoyance(self) -> None:
        record = self.record
        async with record.lock:
            round_id = record.begin_round(Phase.CLAIRVOYANCE_SELECTION)
            holder_id = record.clairvoyance_holder_id
        self._emit(ClairvoyanceTurn(holder_id=holder_id))

        target_id = await self.inbox.clairvoyance_target.receive(round_id)
        alignment = record.alignment(target_id)
        async with record.lock:
            record.clairvoyance_target_id = target_id
            record.phase = Phase.CLAIRVOYANCE_ANNOUNCEMENT
        self._emit(ClairvoyanceResult(holder_id=holder_id, target_id=target_id, alignment=alignment))

        word = await self.inbox.clairvoyance_word.receive(round_id)
        async with record.lock:
            # The power moves on whether or not the holder told the truth.
            record.clairvoyance_holder_id = target_id
            record.clairvoyance_history.append(target_id)
            record.clairvoyance_target_id = None
            record.phase = Phase.RESOLVING
        logger.info("Clairvoyance passes from %d to %d", holder_id, target_id)
        self._emit(ClairvoyanceAnnouncement(holder_id=holder_id, target_id=target_id, word=word))

    # ---------------------------------------------------------------------
    # Endgame
    # ---------------------------------------------------------------------

    async def _last_chance(self) -> GameResult:
        record = self.record
        bad_team = record.bad_team()
        guesser_id = record.merlin_guesser()
        async with record.lock:
            record.guesser_id = guesser_id
            round_id = record.begin_round(Phase.LAST_CHANCE)
        logger.info("Good leads; player %d guesses Merlin", guesser_id)
        self._emit(BadTeamLastChance(bad_team=bad_team, guesser_id=guesser_id))

        guess = await self.inbox.merlin_guess.receive(round_id)
        merlin_id = record.merlin_id()
        self._emit(MerlinRevealed(merlin_id=merlin_id))
        return GameResult.BAD_WINS if guess == merlin_id else GameResult.GOOD_WINS

    async def _finish(self, result: GameResult) -> None:
        async with self.record.lock:
            self.record.finish(result)
        logger.info("Game over: %s", result.value)
        self._emit(GameOver(result=result))


__all__ = ["GameDriver"]
