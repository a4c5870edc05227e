from __future__ import annotations

import random
from typing import Sequence

from integral_rush.game.tournaments.types import TournamentPair


def next_power_of_two(value: int) -> int:
    power = 1
    while power < value:
        power *= 2
    return power


def knockout_total_rounds(participants_total: int) -> int:
    return max(1, next_power_of_two(participants_total).bit_length() - 1)


def build_round_robin_rounds(user_ids: Sequence[int]) -> list[list[TournamentPair]]:
    """Circle-method schedule: every unordered pair meets exactly once.

    Odd rosters get a phantom seat; whoever faces it sits the round out as a
    bye, listed last in the round.
    """
    roster: list[int | None] = list(user_ids)
    if len(roster) % 2 == 1:
        roster.append(None)
    seats = len(roster)

    rounds: list[list[TournamentPair]] = []
    for _ in range(seats - 1):
        pairs: list[TournamentPair] = []
        byes: list[TournamentPair] = []
        for index in range(seats // 2):
            user_a = roster[index]
            user_b = roster[seats - 1 - index]
            if user_a is None:
                user_a, user_b = user_b, None
            if user_a is None:
                continue
            if user_b is None:
                byes.append(TournamentPair(user_a=user_a, user_b=None))
            else:
                pairs.append(TournamentPair(user_a=user_a, user_b=user_b))
        rounds.append(pairs + byes)
        roster = [roster[0], roster[-1], *roster[1:-1]]
    return rounds


def shuffle_roster(user_ids: Sequence[int], *, rng: random.Random | None = None) -> list[int]:
    roster = list(user_ids)
    (rng if rng is not None else random.SystemRandom()).shuffle(roster)
    return roster


def build_knockout_first_round(roster: Sequence[int]) -> list[TournamentPair]:
    """Gives the first ``next_pow2(n) - n`` seeds a bye so round two is a power of two."""
    byes_total = next_power_of_two(len(roster)) - len(roster)
    pairs = [TournamentPair(user_a=user_id, user_b=None) for user_id in roster[:byes_total]]
    playing = list(roster[byes_total:])
    for index in range(0, len(playing), 2):
        pairs.append(TournamentPair(user_a=playing[index], user_b=playing[index + 1]))
    return pairs


def build_knockout_next_round(winners: Sequence[int]) -> list[TournamentPair]:
    pairs: list[TournamentPair] = []
    for index in range(0, len(winners), 2):
        user_b = winners[index + 1] if index + 1 < len(winners) else None
        pairs.append(TournamentPair(user_a=winners[index], user_b=user_b))
    return pairs
