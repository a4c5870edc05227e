from __future__ import annotations

from datetime import datetime, timezone
from typing import NoReturn

from fastapi import APIRouter, Depends

from integral_rush.api.deps import get_answer_judge, get_current_user_id, get_problem_catalog
from integral_rush.api.errors import as_http_exception
from integral_rush.db.session import SessionLocal
from integral_rush.game.duels.constants import DUEL_PHASE_PLAYING
from integral_rush.game.duels.errors import DuelInvariantViolationError
from integral_rush.game.duels.service_facade import DuelServiceFacade
from integral_rush.game.duels.types import DuelRoomSnapshot
from integral_rush.game.errors import GameError
from integral_rush.game.judging.judge import AnswerJudge
from integral_rush.game.problems.catalog import ProblemCatalog

from .duels_models import (
    DuelAbandonResponse,
    DuelAnswerRequest,
    DuelAnswerResponse,
    DuelCreateRequest,
    DuelProblemResponse,
    DuelQuestionResponse,
    DuelRoomResponse,
    DuelTickResponse,
)

router = APIRouter(prefix="/duels", tags=["duels"])


def as_room_response(snapshot: DuelRoomSnapshot) -> DuelRoomResponse:
    problem_response: DuelProblemResponse | None = None
    problem = snapshot.current_problem
    if problem is not None:
        reveal = snapshot.phase != DUEL_PHASE_PLAYING
        problem_response = DuelProblemResponse(
            id=problem.problem_id,
            statement=problem.statement,
            difficulty=problem.difficulty,
            hint=problem.hint,
            solution=problem.solution if reveal else None,
            alternatives=list(problem.alternatives) if reveal else None,
        )
    return DuelRoomResponse(
        code=snapshot.code,
        source=snapshot.source,
        status=snapshot.status,
        phase=snapshot.phase,
        host_id=snapshot.host_id,
        opponent_id=snapshot.opponent_id,
        time_control=snapshot.time_control,
        difficulty=snapshot.difficulty,
        questions_to_win=snapshot.questions_to_win,
        question_budget=snapshot.question_budget,
        host_score=snapshot.host_score,
        opponent_score=snapshot.opponent_score,
        host_time_remaining=snapshot.host_time_remaining,
        opponent_time_remaining=snapshot.opponent_time_remaining,
        question_no=snapshot.question_no,
        current_problem=problem_response,
        question_started_at=snapshot.question_started_at,
        host_answered=snapshot.host_answered,
        opponent_answered=snapshot.opponent_answered,
        winner_id=snapshot.winner_id,
        created_at=snapshot.created_at,
        started_at=snapshot.started_at,
        completed_at=snapshot.completed_at,
        version=snapshot.version,
    )


async def _quarantine_room(*, code: str, now_utc: datetime) -> None:
    # The failed transaction rolled back; the forced abandonment needs its own.
    async with SessionLocal.begin() as session:
        await DuelServiceFacade.quarantine(session, code=code, now_utc=now_utc)


async def _raise_for_game_error(exc: GameError, *, now_utc: datetime) -> NoReturn:
    if isinstance(exc, DuelInvariantViolationError):
        await _quarantine_room(code=exc.room_code, now_utc=now_utc)
    raise as_http_exception(exc) from exc


@router.post("", response_model=DuelRoomResponse, status_code=201)
async def create_duel(
    payload: DuelCreateRequest,
    user_id: int = Depends(get_current_user_id),
) -> DuelRoomResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await DuelServiceFacade.create(
                session,
                host_id=user_id,
                now_utc=now_utc,
                time_control=payload.time_control,
                difficulty=payload.difficulty,
                questions_to_win=payload.questions_to_win,
            )
    except GameError as exc:
        raise as_http_exception(exc) from exc
    return as_room_response(snapshot)


@router.get("/{code}", response_model=DuelRoomResponse)
async def get_duel(code: str, user_id: int = Depends(get_current_user_id)) -> DuelRoomResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await DuelServiceFacade.get_state(session, code=code, viewer_id=user_id)
    except GameError as exc:
        await _raise_for_game_error(exc, now_utc=now_utc)
    return as_room_response(snapshot)


@router.post("/{code}/join", response_model=DuelRoomResponse)
async def join_duel(code: str, user_id: int = Depends(get_current_user_id)) -> DuelRoomResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await DuelServiceFacade.join(
                session,
                code=code,
                opponent_id=user_id,
                now_utc=now_utc,
            )
    except GameError as exc:
        await _raise_for_game_error(exc, now_utc=now_utc)
    return as_room_response(snapshot)


@router.post("/{code}/question", response_model=DuelQuestionResponse)
async def advance_duel_question(
    code: str,
    user_id: int = Depends(get_current_user_id),
    catalog: ProblemCatalog = Depends(get_problem_catalog),
) -> DuelQuestionResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        result = await DuelServiceFacade.advance(
            SessionLocal,
            code=code,
            caller_id=user_id,
            catalog=catalog,
            now_utc=now_utc,
        )
    except GameError as exc:
        await _raise_for_game_error(exc, now_utc=now_utc)
    return DuelQuestionResponse(room=as_room_response(result.snapshot), issued_now=result.issued_now)


@router.post("/{code}/answer", response_model=DuelAnswerResponse)
async def submit_duel_answer(
    code: str,
    payload: DuelAnswerRequest,
    user_id: int = Depends(get_current_user_id),
    judge: AnswerJudge = Depends(get_answer_judge),
) -> DuelAnswerResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        result = await DuelServiceFacade.submit(
            SessionLocal,
            code=code,
            caller_id=user_id,
            answer=payload.answer,
            judge=judge,
            now_utc=now_utc,
        )
    except GameError as exc:
        await _raise_for_game_error(exc, now_utc=now_utc)
    return DuelAnswerResponse(
        room=as_room_response(result.snapshot),
        applied=result.applied,
        is_correct=result.is_correct,
        feedback=result.feedback,
        completed_now=result.completed_now,
    )


@router.post("/{code}/timer", response_model=DuelTickResponse)
async def tick_duel_timer(code: str, user_id: int = Depends(get_current_user_id)) -> DuelTickResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await DuelServiceFacade.tick(
                session,
                code=code,
                caller_id=user_id,
                now_utc=now_utc,
            )
    except GameError as exc:
        await _raise_for_game_error(exc, now_utc=now_utc)
    return DuelTickResponse(
        room=as_room_response(result.snapshot),
        applied=result.applied,
        expired_now=result.expired_now,
    )


@router.post("/{code}/abandon", response_model=DuelAbandonResponse)
async def abandon_duel(
    code: str,
    user_id: int = Depends(get_current_user_id),
) -> DuelAbandonResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await DuelServiceFacade.abandon(
                session,
                code=code,
                now_utc=now_utc,
                caller_id=user_id,
            )
    except GameError as exc:
        await _raise_for_game_error(exc, now_utc=now_utc)
    return DuelAbandonResponse(room=as_room_response(result.snapshot), applied=result.applied)
