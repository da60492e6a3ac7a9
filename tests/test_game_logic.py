"""Unit tests for the pure rules."""

import random
from collections import Counter

import pytest

from avalon_engine.constants import GameResult, MissionVote, ROLE_TABLE, Role, TeamVote
from avalon_engine.errors import ConfigurationError
from avalon_engine.game_logic import (
    bad_team,
    build_role_deck,
    calc_winner,
    clairvoyance_active,
    expected_team_size,
    majority_approved,
    merlin_guesser,
    mission_outcome,
    next_index,
    nth_player_with_role,
    prev_index,
    visible_players,
)
from avalon_engine.schemas import GameConfig

S = MissionVote.SUCCESS
F = MissionVote.FAIL
A = TeamVote.APPROVE
R = TeamVote.REJECT

# mission number (1-5) -> team size for 5..10 players
REFERENCE_TEAM_SIZES = {
    1: [2, 2, 2, 3, 3, 3],
    2: [3, 3, 3, 4, 4, 4],
    3: [2, 4, 3, 4, 4, 4],
    4: [3, 3, 4, 5, 5, 5],
    5: [3, 4, 4, 5, 5, 5],
}


@pytest.mark.parametrize(
    "missions, expected",
    [
        ([], None),
        ([S], None),
        ([S, S], None),
        ([S, S, S], GameResult.GOOD_WINS),
        ([F, F, F], GameResult.BAD_WINS),
        ([F, S, F, S, F], GameResult.BAD_WINS),
        ([S, F, S, F, S], GameResult.GOOD_WINS),
        ([S, F, F, S], None),
    ],
)
def test_calc_winner(missions, expected):
    assert calc_winner(missions) == expected


def test_team_size_table_matches_reference():
    for mission, sizes in REFERENCE_TEAM_SIZES.items():
        for offset, size in enumerate(sizes):
            assert expected_team_size(mission - 1, offset + 5) == size


def test_team_size_examples():
    assert expected_team_size(0, 7) == 2
    assert expected_team_size(3, 7) == 4


@pytest.mark.parametrize("mission_index, players", [(5, 7), (-1, 7), (0, 4), (0, 11)])
def test_team_size_out_of_range(mission_index, players):
    with pytest.raises(ConfigurationError):
        expected_team_size(mission_index, players)


@pytest.mark.parametrize("players", [8, 9, 10])
def test_fifth_mission_needs_two_fails_on_large_tables(players):
    assert mission_outcome(4, players, [F, S, S, S, S]) == S
    assert mission_outcome(4, players, [F, F, S, S, S]) == F
    # every other mission still fails on a single fail
    for idx in range(4):
        assert mission_outcome(idx, players, [S, F, S]) == F


@pytest.mark.parametrize("players", [5, 6, 7])
def test_single_fail_fails_small_tables(players):
    for idx in range(5):
        assert mission_outcome(idx, players, [S, S, F]) == F
        assert mission_outcome(idx, players, [S, S, S]) == S


def test_majority_approved():
    assert majority_approved([A, A, A, R, R])
    assert not majority_approved([A, A, R, R, R])
    # ties reject
    assert not majority_approved([A, A, A, R, R, R])
    assert not majority_approved([])


@pytest.mark.parametrize("players", sorted(ROLE_TABLE))
def test_role_deck_matches_table(players):
    deck = build_role_deck(players, random.Random(3))
    assert Counter(deck) == Counter(ROLE_TABLE[players])
    assert len(deck) == players


def test_role_deck_reproducible_with_seed():
    assert build_role_deck(8, random.Random(42)) == build_role_deck(8, random.Random(42))


@pytest.mark.parametrize("players", [4, 11])
def test_role_deck_unsupported(players):
    with pytest.raises(ConfigurationError):
        build_role_deck(players, random.Random(0))


def test_index_arithmetic_wraps():
    assert next_index(4, 5) == 0
    assert next_index(2, 5) == 3
    assert prev_index(0, 5) == 4
    assert prev_index(3, 7) == 2


def test_clairvoyance_window_default():
    config = GameConfig()
    for n in (7, 8, 10):
        assert [c for c in range(1, 6) if clairvoyance_active(config, n, c)] == [2, 3, 4]
    for n in (5, 6):
        assert not any(clairvoyance_active(config, n, c) for c in range(1, 6))


def test_clairvoyance_window_configurable():
    config = GameConfig(clairvoyance_min_players=5, clairvoyance_after_missions=[1, 2, 3, 4])
    assert clairvoyance_active(config, 5, 1)
    assert not clairvoyance_active(config, 5, 5)
    assert not clairvoyance_active(GameConfig(clairvoyance_enabled=False), 8, 2)


def test_nth_player_with_role():
    roles = [Role.SERVANT, Role.MERLIN, Role.SERVANT, Role.MORDRED, Role.MORGANA]
    assert nth_player_with_role(roles, Role.SERVANT, 0) == 0
    assert nth_player_with_role(roles, Role.SERVANT, 1) == 2
    assert nth_player_with_role(roles, Role.SERVANT, 2) is None
    assert nth_player_with_role(roles, Role.PERCIVAL) is None


def test_merlin_guesser():
    roles = [Role.SERVANT, Role.MERLIN, Role.SERVANT, Role.MORDRED, Role.MORGANA]
    assert merlin_guesser(roles, GameConfig()) == 4
    # Minion is not dealt at five players: the bad-team leader guesses instead
    assert merlin_guesser(roles, GameConfig(merlin_guesser_role=Role.MINION)) == 3
    # a good role can never be the guesser
    assert merlin_guesser(roles, GameConfig(merlin_guesser_role=Role.MERLIN)) == 3


def test_night_information():
    roles = [
        Role.MERLIN, Role.PERCIVAL, Role.MORDRED, Role.MORGANA,
        Role.OBERON, Role.SERVANT, Role.SERVANT,
    ]
    assert bad_team(roles) == [2, 3, 4]
    # Merlin sees every bad player but Mordred
    assert visible_players(roles, 0) == [3, 4]
    # Percival sees Merlin and Morgana
    assert visible_players(roles, 1) == [0, 3]
    # bad players see each other, Oberon stays hidden and sees nobody
    assert visible_players(roles, 2) == [3]
    assert visible_players(roles, 3) == [2]
    assert visible_players(roles, 4) == []
    assert visible_players(roles, 5) == []
