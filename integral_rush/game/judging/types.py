from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class AnswerVerdict:
    is_correct: bool
    feedback: str | None = None
