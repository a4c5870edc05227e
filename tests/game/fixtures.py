from __future__ import annotations

import asyncio
from itertools import count
from typing import Sequence

from integral_rush.game.judging.errors import AnswerJudgeUnavailableError
from integral_rush.game.judging.types import AnswerVerdict
from integral_rush.game.problems.errors import ProblemCatalogUnavailableError
from integral_rush.game.problems.types import IntegralProblem


class FakeProblemCatalog:
    """Hands out numbered problems whose solution is always ``x^2/2``."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.requested: list[str] = []
        self._ids = count(1)

    async def get_random(self, difficulty: str) -> IntegralProblem:
        self.requested.append(difficulty)
        if self.fail:
            raise ProblemCatalogUnavailableError("catalog offline")
        problem_no = next(self._ids)
        return IntegralProblem(
            problem_id=f"fake_{problem_no}",
            statement=f"\\int x \\, dx  (#{problem_no})",
            solution="x^2/2",
            difficulty=difficulty,
            hint="Power rule.",
            alternatives=("0.5x^2",),
        )


class FakeAnswerJudge:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls = 0

    async def evaluate(
        self,
        *,
        answer: str,
        solution: str,
        alternatives: Sequence[str] = (),
    ) -> AnswerVerdict:
        self.calls += 1
        if self.fail:
            raise AnswerJudgeUnavailableError("judge offline")
        is_correct = answer.strip() in {solution, *alternatives}
        return AnswerVerdict(
            is_correct=is_correct,
            feedback="Correct." if is_correct else f"Expected {solution}.",
        )


class GatedAnswerJudge(FakeAnswerJudge):
    """Holds every verdict until ``release`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def evaluate(
        self,
        *,
        answer: str,
        solution: str,
        alternatives: Sequence[str] = (),
    ) -> AnswerVerdict:
        self.entered.set()
        await self.release.wait()
        return await super().evaluate(answer=answer, solution=solution, alternatives=alternatives)


CORRECT_ANSWER = "x^2/2"
WRONG_ANSWER = "x^3"
