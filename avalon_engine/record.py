from __future__ import annotations

import asyncio
from typing import List, Optional

from .constants import Alignment, GameResult, MissionVote, Phase, Role, TeamVote
from .errors import StaleRound, UnknownPlayer, WrongPhase
from .game_logic import bad_team, merlin_guesser, nth_player_with_role, prev_index, visible_players
from .schemas import GameConfig, GameSnapshot, PlayerInfo
from .votes import VoteBuffer

# NOTE: the record is only ever mutated while ``lock`` is held, by the driver
# and by the client façade. No critical section awaits a channel.


class GameRecord:
    """Authoritative state of one game, shared by the driver and the client façade."""

    def __init__(self, roles: List[Role], crown_id: int, config: Optional[GameConfig] = None):
        self.roles: List[Role] = list(roles)
        self.config = config or GameConfig()
        self.lock = asyncio.Lock()

        self.phase: Phase = Phase.SETUP
        # Bumped at every phase that waits for player input; tags inbound messages.
        self.round_id: int = 0

        # --- Mission progression --- #
        self.crown_id: int = crown_id
        self.expected_team_size: int = 0
        self.current_team: List[int] = []
        self.missions: List[MissionVote] = []
        self.reject_count: int = 0
        self.result: Optional[GameResult] = None

        # --- Clairvoyance runtime state --- #
        # The player seated just before the first crown starts with the power.
        self.clairvoyance_holder_id: int = prev_index(crown_id, len(self.roles))
        self.clairvoyance_history: List[int] = [self.clairvoyance_holder_id]
        self.clairvoyance_target_id: Optional[int] = None

        # --- Endgame --- #
        self.guesser_id: Optional[int] = None

        # Per-round vote buffers
        self.team_votes: VoteBuffer[TeamVote] = VoteBuffer(len(self.roles))
        self.mission_votes: VoteBuffer[MissionVote] = VoteBuffer()

    # ---------------------------------------------------------------------
    # Lookups
    # ---------------------------------------------------------------------

    @property
    def num_players(self) -> int:
        return len(self.roles)

    @property
    def finished(self) -> bool:
        return self.phase in {Phase.FINISHED, Phase.ABORTED}

    def alignment(self, player_id: int) -> Alignment:
        return self.roles[player_id].alignment

    def is_good(self, player_id: int) -> bool:
        return self.roles[player_id].is_good

    def bad_team(self) -> List[int]:
        return bad_team(self.roles)

    def merlin_id(self) -> int:
        merlin = nth_player_with_role(self.roles, Role.MERLIN)
        assert merlin is not None, "every role table deals Merlin"
        return merlin

    def merlin_guesser(self) -> int:
        return merlin_guesser(self.roles, self.config)

    # ---------------------------------------------------------------------
    # Guards used by the client façade
    # ---------------------------------------------------------------------

    def check_player(self, player_id: int) -> None:
        if (
            isinstance(player_id, bool)
            or not isinstance(player_id, int)
            or not 0 <= player_id < self.num_players
        ):
            raise UnknownPlayer(f"Unknown player {player_id!r}")

    def require_phase(self, *phases: Phase) -> None:
        if self.phase not in phases:
            raise WrongPhase(f"Not allowed during {self.phase.value}")

    def require_round(self, round_id: Optional[int]) -> None:
        if round_id is not None and round_id != self.round_id:
            raise StaleRound(f"Round {round_id} is over (current round {self.round_id})")

    # ---------------------------------------------------------------------
    # Transitions used by the driver
    # ---------------------------------------------------------------------

    def begin_round(self, phase: Phase) -> int:
        self.round_id += 1
        self.phase = phase
        return self.round_id

    def finish(self, result: GameResult) -> None:
        if self.result is not None:
            raise RuntimeError("Game result already assigned")
        self.result = result
        self.phase = Phase.FINISHED

    # ---------------------------------------------------------------------
    # Read models
    # ---------------------------------------------------------------------

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            num_players=self.num_players,
            phase=self.phase,
            round_id=self.round_id,
            crown_id=self.crown_id,
            clairvoyance_holder_id=self.clairvoyance_holder_id,
            expected_team_size=self.expected_team_size,
            current_team=list(self.current_team),
            missions=list(self.missions),
            reject_count=self.reject_count,
            result=self.result,
            # Roles become public only once the game is over.
            roles=list(self.roles) if self.phase == Phase.FINISHED else None,
        )

    def private_info(self, player_id: int) -> PlayerInfo:
        self.check_player(player_id)
        role = self.roles[player_id]
        return PlayerInfo(
            player_id=player_id,
            role=role,
            alignment=role.alignment,
            known_players=visible_players(self.roles, player_id),
        )


__all__ = ["GameRecord"]
