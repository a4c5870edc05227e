from __future__ import annotations

from typing import Any, Sequence

import httpx
import structlog

from integral_rush.game.judging.errors import AnswerJudgeUnavailableError
from integral_rush.game.judging.types import AnswerVerdict

logger = structlog.get_logger(__name__)


class HttpAnswerJudge:
    def __init__(
        self,
        *,
        url: str,
        timeout_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def evaluate(
        self,
        *,
        answer: str,
        solution: str,
        alternatives: Sequence[str] = (),
    ) -> AnswerVerdict:
        body = {
            "answer": answer,
            "solution": solution,
            "alternatives": list(alternatives),
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(self._url, json=body)
                response.raise_for_status()
                payload: Any = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("answer_judge_request_failed", url=self._url, error=type(exc).__name__)
            raise AnswerJudgeUnavailableError from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("is_correct"), bool):
            logger.warning("answer_judge_response_invalid", url=self._url)
            raise AnswerJudgeUnavailableError
        feedback = payload.get("feedback")
        return AnswerVerdict(
            is_correct=payload["is_correct"],
            feedback=(str(feedback) if feedback is not None else None),
        )
