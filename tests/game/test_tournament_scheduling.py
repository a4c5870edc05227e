from __future__ import annotations

import random
from itertools import combinations

import pytest

from integral_rush.game.tournaments.scheduling import (
    build_knockout_first_round,
    build_knockout_next_round,
    build_round_robin_rounds,
    knockout_total_rounds,
    next_power_of_two,
    shuffle_roster,
)
from integral_rush.game.tournaments.scoring import answer_points, seat_match_totals


@pytest.mark.parametrize("players_total", range(2, 9))
def test_round_robin_meets_every_pair_once(players_total: int) -> None:
    user_ids = list(range(1, players_total + 1))

    rounds = build_round_robin_rounds(user_ids)

    expected_rounds = players_total if players_total % 2 else players_total - 1
    assert len(rounds) == expected_rounds
    seen: list[frozenset[int]] = []
    byes: list[int] = []
    for pairs in rounds:
        in_round = [pair.user_a for pair in pairs] + [pair.user_b for pair in pairs if pair.user_b is not None]
        assert sorted(in_round) == user_ids
        seen.extend(frozenset((pair.user_a, pair.user_b)) for pair in pairs if pair.user_b is not None)
        byes.extend(pair.user_a for pair in pairs if pair.user_b is None)
        bye_positions = [index for index, pair in enumerate(pairs) if pair.user_b is None]
        assert bye_positions in ([], [len(pairs) - 1])

    assert sorted(seen, key=sorted) == sorted(
        (frozenset(pair) for pair in combinations(user_ids, 2)),
        key=sorted,
    )
    if players_total % 2:
        assert sorted(byes) == user_ids
    else:
        assert byes == []


@pytest.mark.parametrize(
    ("players_total", "expected_power", "expected_rounds"),
    [(2, 2, 1), (3, 4, 2), (5, 8, 3), (8, 8, 3), (9, 16, 4)],
)
def test_knockout_bracket_size(players_total: int, expected_power: int, expected_rounds: int) -> None:
    assert next_power_of_two(players_total) == expected_power
    assert knockout_total_rounds(players_total) == expected_rounds


def test_knockout_first_round_gives_top_seeds_byes() -> None:
    pairs = build_knockout_first_round([10, 20, 30, 40, 50])

    assert [(pair.user_a, pair.user_b) for pair in pairs] == [
        (10, None),
        (20, None),
        (30, None),
        (40, 50),
    ]


def test_knockout_next_round_pairs_winners_in_order() -> None:
    pairs = build_knockout_next_round([1, 2, 3])

    assert [(pair.user_a, pair.user_b) for pair in pairs] == [(1, 2), (3, None)]


def test_shuffle_roster_keeps_members_and_input() -> None:
    roster = [1, 2, 3, 4, 5, 6]

    shuffled = shuffle_roster(roster, rng=random.Random(4))

    assert sorted(shuffled) == roster
    assert roster == [1, 2, 3, 4, 5, 6]


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0.0, 1500), (30.0, 1250), (59.9, 1000), (60.0, 1000), (75.0, 1000)],
)
def test_answer_points_speed_bonus(seconds: float, expected: int) -> None:
    assert answer_points(seconds=seconds, time_per_question=60) == expected


def test_seat_match_totals_counts_only_correct_answers_for_points() -> None:
    answer_log = [
        {"question_no": 1, "seat": "host", "is_correct": True, "seconds": 6.0},
        {"question_no": 1, "seat": "opponent", "is_correct": True, "seconds": 9.0},
        {"question_no": 2, "seat": "host", "is_correct": False, "seconds": 12.5},
    ]

    assert seat_match_totals(answer_log, seat="host", time_per_question=60) == (1450, 18.5)
    assert seat_match_totals(answer_log, seat="opponent", time_per_question=60) == (1425, 9.0)
