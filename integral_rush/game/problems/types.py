from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class IntegralProblem:
    problem_id: str
    statement: str
    solution: str
    difficulty: str
    hint: str | None = None
    alternatives: tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.problem_id,
            "statement": self.statement,
            "solution": self.solution,
            "difficulty": self.difficulty,
            "hint": self.hint,
            "alternatives": list(self.alternatives),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> IntegralProblem:
        return cls(
            problem_id=str(payload["id"]),
            statement=str(payload["statement"]),
            solution=str(payload["solution"]),
            difficulty=str(payload["difficulty"]),
            hint=(str(payload["hint"]) if payload.get("hint") is not None else None),
            alternatives=tuple(str(item) for item in payload.get("alternatives") or ()),
        )
