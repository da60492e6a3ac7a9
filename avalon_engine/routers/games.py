from __future__ import annotations

import logging
import random
import uuid
from contextlib import contextmanager
from typing import Iterator, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import TypeAdapter

from ..config import settings
from ..errors import (
    ChannelClosed,
    GameError,
    IllegalAction,
    RoleViolation,
    StaleRound,
    WrongPhase,
)
from ..events import GameEvent
from ..game import setup_game
from ..schemas import (
    AnnounceWordRequest,
    CommandResponse,
    CreateGameRequest,
    CreateGameResponse,
    GameSnapshot,
    MissionVoteRequest,
    PlayerInfo,
    SuggestTeamRequest,
    TargetRequest,
    TeamVoteRequest,
)
from ..state import games, get_game, prune_when_done

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games", tags=["games"])

_event_list = TypeAdapter(List[GameEvent])


def _status_for(exc: GameError) -> int:
    if isinstance(exc, (WrongPhase, StaleRound)):
        return 409
    if isinstance(exc, IllegalAction):
        return 403
    if isinstance(exc, RoleViolation):
        return 422
    if isinstance(exc, ChannelClosed):
        return 410
    return 400


@contextmanager
def _game_errors() -> Iterator[None]:
    try:
        yield
    except GameError as exc:
        logger.debug("Rejected command: %r", exc)
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc


@router.post("", response_model=CreateGameResponse)
async def create_game(req: CreateGameRequest):
    seed = req.seed if req.seed is not None else settings.game_seed
    rng = random.Random(seed)
    with _game_errors():
        game = setup_game(req.num_players, config=req.config, rng=rng)

    game_id = str(uuid.uuid4())
    games[game_id] = game

    # Wait for the first Turn so the crown holder can act right away.
    sub = game.subscribe()
    game.start()
    prune_when_done(game_id, game)
    await sub.get()
    sub.close()
    return CreateGameResponse(game_id=game_id, snapshot=game.client.snapshot())


@router.get("/{game_id}", response_model=GameSnapshot)
async def get_snapshot(game_id: str):
    return get_game(game_id).client.snapshot()


@router.get("/{game_id}/events")
async def list_events(game_id: str, player_id: Optional[int] = None):
    """Public history, plus the private events addressed to *player_id*."""
    game = get_game(game_id)
    visible = [
        e for e in game.events.history
        if e.visible_to() is None or e.visible_to() == player_id
    ]
    return _event_list.dump_python(visible, mode="json")


@router.get("/{game_id}/players/{player_id}", response_model=PlayerInfo)
async def get_private_info(game_id: str, player_id: int):
    game = get_game(game_id)
    with _game_errors():
        return game.client.private_info(player_id)


@router.delete("/{game_id}")
async def abandon_game(game_id: str):
    game = games.pop(game_id, None)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")
    game.abandon()
    return {"abandoned": game_id}


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@router.post("/{game_id}/team", response_model=CommandResponse)
async def suggest_team(game_id: str, req: SuggestTeamRequest):
    game = get_game(game_id)
    with _game_errors():
        await game.client.suggest_team(req.player_id, req.team)
    return CommandResponse(snapshot=game.client.snapshot())


@router.post("/{game_id}/team-votes", response_model=CommandResponse)
async def cast_team_vote(game_id: str, req: TeamVoteRequest):
    game = get_game(game_id)
    with _game_errors():
        complete = await game.client.cast_team_vote(req.player_id, req.vote, round_id=req.round_id)
    return CommandResponse(batch_complete=complete, snapshot=game.client.snapshot())


@router.post("/{game_id}/mission-votes", response_model=CommandResponse)
async def cast_mission_vote(game_id: str, req: MissionVoteRequest):
    game = get_game(game_id)
    with _game_errors():
        complete = await game.client.cast_mission_vote(req.player_id, req.vote, round_id=req.round_id)
    return CommandResponse(batch_complete=complete, snapshot=game.client.snapshot())


@router.post("/{game_id}/clairvoyance/target", response_model=CommandResponse)
async def select_clairvoyance_target(game_id: str, req: TargetRequest):
    game = get_game(game_id)
    with _game_errors():
        await game.client.select_clairvoyance_target(req.player_id, req.target_id)
    return CommandResponse(snapshot=game.client.snapshot())


@router.post("/{game_id}/clairvoyance/word", response_model=CommandResponse)
async def announce_clairvoyance_word(game_id: str, req: AnnounceWordRequest):
    game = get_game(game_id)
    with _game_errors():
        await game.client.announce_clairvoyance_word(req.player_id, req.word)
    return CommandResponse(snapshot=game.client.snapshot())


@router.post("/{game_id}/merlin-guess", response_model=CommandResponse)
async def guess_merlin(game_id: str, req: TargetRequest):
    game = get_game(game_id)
    with _game_errors():
        await game.client.guess_merlin(req.player_id, req.target_id)
    return CommandResponse(snapshot=game.client.snapshot())
