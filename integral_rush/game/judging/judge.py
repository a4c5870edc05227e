from __future__ import annotations

from typing import Protocol, Sequence

from integral_rush.core.config import Settings, get_settings
from integral_rush.game.judging.exact_form import ExactFormAnswerJudge
from integral_rush.game.judging.http_judge import HttpAnswerJudge
from integral_rush.game.judging.types import AnswerVerdict


class AnswerJudge(Protocol):
    async def evaluate(
        self,
        *,
        answer: str,
        solution: str,
        alternatives: Sequence[str] = (),
    ) -> AnswerVerdict: ...


def build_answer_judge(settings: Settings | None = None) -> AnswerJudge:
    resolved = settings if settings is not None else get_settings()
    if resolved.answer_judge_url:
        return HttpAnswerJudge(
            url=resolved.answer_judge_url,
            timeout_seconds=resolved.answer_judge_timeout_seconds,
        )
    return ExactFormAnswerJudge()
