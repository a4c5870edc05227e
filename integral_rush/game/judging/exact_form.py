from __future__ import annotations

import re
from typing import Sequence

from integral_rush.game.judging.types import AnswerVerdict

_WHITESPACE_RE = re.compile(r"\s+")
_CONSTANT_SUFFIX_RE = re.compile(r"\+(c|k|constant)$")


def normalize_expression(expression: str) -> str:
    normalized = _WHITESPACE_RE.sub("", expression).lower()
    normalized = normalized.replace("**", "^").replace("\\\\", "\\")
    normalized = normalized.replace("\\left", "").replace("\\right", "")
    normalized = normalized.replace("\\,", "")
    return _CONSTANT_SUFFIX_RE.sub("", normalized)


class ExactFormAnswerJudge:
    """Accepts an answer when it matches the solution or an accepted alternative.

    Comparison ignores whitespace, letter case and a trailing constant of
    integration; anything cleverer belongs to an external judge.
    """

    async def evaluate(
        self,
        *,
        answer: str,
        solution: str,
        alternatives: Sequence[str] = (),
    ) -> AnswerVerdict:
        submitted = normalize_expression(answer)
        if not submitted:
            return AnswerVerdict(is_correct=False, feedback="Empty answer.")
        accepted = {normalize_expression(form) for form in (solution, *alternatives)}
        if submitted in accepted:
            return AnswerVerdict(is_correct=True, feedback="Matches an accepted form.")
        return AnswerVerdict(is_correct=False, feedback=f"Expected {solution}.")
