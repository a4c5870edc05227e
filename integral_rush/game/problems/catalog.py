from __future__ import annotations

import random
from typing import Protocol

from integral_rush.game.problems.constants import CONCRETE_DIFFICULTIES, DIFFICULTY_MIXED
from integral_rush.game.problems.errors import ProblemCatalogUnavailableError
from integral_rush.game.problems.static_bank import STATIC_PROBLEM_POOLS
from integral_rush.game.problems.types import IntegralProblem


class ProblemCatalog(Protocol):
    async def get_random(self, difficulty: str) -> IntegralProblem: ...


def resolve_concrete_difficulty(difficulty: str, *, rng: random.Random | None = None) -> str:
    """Maps Mixed to a uniformly sampled concrete tier; other tiers pass through."""
    if difficulty != DIFFICULTY_MIXED:
        return difficulty
    chooser = rng if rng is not None else random
    return chooser.choice(CONCRETE_DIFFICULTIES)


class StaticProblemCatalog:
    def __init__(
        self,
        pools: dict[str, tuple[IntegralProblem, ...]] | None = None,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self._pools = pools if pools is not None else STATIC_PROBLEM_POOLS
        self._rng = rng if rng is not None else random.Random()

    async def get_random(self, difficulty: str) -> IntegralProblem:
        pool = self._pools.get(difficulty)
        if not pool:
            raise ProblemCatalogUnavailableError(f"no problems for difficulty {difficulty!r}")
        return self._rng.choice(pool)


def get_default_problem_catalog() -> ProblemCatalog:
    return StaticProblemCatalog()
