from __future__ import annotations

from functools import lru_cache

from fastapi import Header, HTTPException, status

from integral_rush.game.judging.judge import AnswerJudge, build_answer_judge
from integral_rush.game.problems.catalog import ProblemCatalog, get_default_problem_catalog


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> int:
    """Resolves the authenticated principal forwarded by the edge proxy."""
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "E_UNAUTHENTICATED"},
        )
    try:
        user_id = int(x_user_id.strip())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "E_UNAUTHENTICATED"},
        ) from exc
    if user_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "E_UNAUTHENTICATED"},
        )
    return user_id


@lru_cache(maxsize=1)
def get_problem_catalog() -> ProblemCatalog:
    return get_default_problem_catalog()


@lru_cache(maxsize=1)
def get_answer_judge() -> AnswerJudge:
    return build_answer_judge()
