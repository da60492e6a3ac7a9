"""HTTP adapter tests."""

import time

import pytest
from fastapi.testclient import TestClient

from avalon_engine.app import app
from avalon_engine.config import settings
from avalon_engine.constants import Role
from avalon_engine.state import games


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(settings, "game_retention_seconds", 0)
    with TestClient(app) as c:
        yield c
        for game_id in list(games):
            c.delete(f"/games/{game_id}")
    games.clear()


def _create(client, num_players=5, seed=3):
    r = client.post("/games", json={"num_players": num_players, "seed": seed})
    assert r.status_code == 200
    return r.json()


def _poll(client, game_id, done, attempts=300):
    """Re-read the snapshot until *done* accepts it (None once the game is gone)."""
    for _ in range(attempts):
        r = client.get(f"/games/{game_id}")
        snapshot = r.json() if r.status_code == 200 else None
        if done(snapshot):
            return snapshot
        time.sleep(0.01)
    raise AssertionError(f"game {game_id} never reached the expected state")


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_game(client):
    data = _create(client)
    snapshot = data["snapshot"]
    assert snapshot["num_players"] == 5
    assert snapshot["phase"] == "team_suggestion"
    assert snapshot["expected_team_size"] == 2
    assert snapshot["round_id"] == 1
    assert snapshot["roles"] is None

    r = client.get(f"/games/{data['game_id']}")
    assert r.status_code == 200
    assert r.json()["crown_id"] == snapshot["crown_id"]


def test_create_game_validation(client):
    assert client.post("/games", json={"num_players": 4}).status_code == 422
    assert client.post("/games", json={"num_players": 11}).status_code == 422


def test_unknown_game(client):
    assert client.get("/games/nope").status_code == 404
    r = client.post("/games/nope/team", json={"player_id": 0, "team": [0, 1]})
    assert r.status_code == 404


def test_private_info(client):
    game_id = _create(client)["game_id"]
    roles = {role.value for role in Role}
    for pid in range(5):
        r = client.get(f"/games/{game_id}/players/{pid}")
        assert r.status_code == 200
        info = r.json()
        assert info["player_id"] == pid
        assert info["role"] in roles
    assert client.get(f"/games/{game_id}/players/5").status_code == 400


def test_suggest_team_and_vote(client):
    data = _create(client)
    game_id = data["game_id"]
    crown = data["snapshot"]["crown_id"]
    other = (crown + 1) % 5

    r = client.post(f"/games/{game_id}/team", json={"player_id": other, "team": [0, 1]})
    assert r.status_code == 403
    r = client.post(f"/games/{game_id}/team", json={"player_id": crown, "team": [0, 1, 2]})
    assert r.status_code == 400

    r = client.post(f"/games/{game_id}/team", json={"player_id": crown, "team": [0, 1]})
    assert r.status_code == 200
    snapshot = r.json()["snapshot"]
    assert snapshot["phase"] == "team_vote"
    assert snapshot["current_team"] == [0, 1]

    r = client.post(f"/games/{game_id}/team-votes", json={"player_id": 0, "vote": "approve", "round_id": 0})
    assert r.status_code == 409
    r = client.post(f"/games/{game_id}/team-votes", json={"player_id": 0, "vote": "maybe"})
    assert r.status_code == 422

    completions = []
    for pid in range(5):
        r = client.post(f"/games/{game_id}/team-votes", json={"player_id": pid, "vote": "approve", "round_id": 1})
        assert r.status_code == 200
        completions.append(r.json()["batch_complete"])
    assert completions == [False, False, False, False, True]


def test_mission_vote_outside_mission_phase(client):
    game_id = _create(client)["game_id"]
    r = client.post(f"/games/{game_id}/mission-votes", json={"player_id": 0, "vote": "success"})
    assert r.status_code == 409


def test_event_history(client):
    data = _create(client)
    game_id = data["game_id"]
    r = client.get(f"/games/{game_id}/events")
    assert r.status_code == 200
    events = r.json()
    assert events[0]["type"] == "turn"
    assert events[0]["crown_id"] == data["snapshot"]["crown_id"]
    assert events[0]["team_size"] == 2


def test_abandon_game(client):
    game_id = _create(client)["game_id"]
    assert client.delete(f"/games/{game_id}").status_code == 200
    assert client.get(f"/games/{game_id}").status_code == 404


def test_websocket_streams_state_and_private_info(client):
    data = _create(client)
    game_id = data["game_id"]
    with client.websocket_connect(f"/ws/{game_id}?player_id=0") as ws:
        state = ws.receive_json()
        assert state["type"] == "state"
        assert state["data"]["phase"] == "team_suggestion"
        info = ws.receive_json()
        assert info["type"] == "info"
        assert info["data"]["player_id"] == 0
        first = ws.receive_json()
        assert first["type"] == "event"
        assert first["data"]["type"] == "turn"

        ws.send_json({"type": "team_vote", "vote": "approve"})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["error"] == "WrongPhase"


def test_finished_game_is_pruned_from_registry(client):
    data = _create(client)
    game_id = data["game_id"]
    snapshot = data["snapshot"]
    for rejection in range(1, 6):
        round_id = snapshot["round_id"]
        r = client.post(f"/games/{game_id}/team", json={"player_id": snapshot["crown_id"], "team": [0, 1]})
        assert r.status_code == 200
        for pid in range(5):
            r = client.post(
                f"/games/{game_id}/team-votes",
                json={"player_id": pid, "vote": "reject", "round_id": round_id},
            )
            assert r.status_code == 200
        if rejection < 5:
            snapshot = _poll(
                client, game_id,
                lambda s: s is not None and s["phase"] == "team_suggestion" and s["round_id"] > round_id,
            )
    # the fifth rejection ends the game and its entry is dropped
    _poll(client, game_id, lambda s: s is None)
    assert game_id not in games


def test_websocket_malformed_messages_get_error_frames(client):
    game_id = _create(client)["game_id"]
    with client.websocket_connect(f"/ws/{game_id}?player_id=0") as ws:
        for _ in range(3):
            ws.receive_json()  # state, info, first turn
        for message in ([], 1, {"type": "suggest_team", "team": 5}):
            ws.send_json(message)
            error = ws.receive_json()
            assert error["type"] == "error"
            assert error["error"] == "ShapeMismatch"
        # the connection survives and keeps serving commands
        ws.send_json({"type": "team_vote", "vote": "approve"})
        assert ws.receive_json()["error"] == "WrongPhase"
