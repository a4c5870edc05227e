from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from integral_rush.api.deps import get_current_user_id
from integral_rush.api.errors import as_http_exception
from integral_rush.db.session import SessionLocal
from integral_rush.game.errors import GameError
from integral_rush.game.matchmaking.service_facade import MatchmakingServiceFacade
from integral_rush.game.matchmaking.types import MatchmakingStatus

from .duels import as_room_response
from .matchmaking_models import (
    MatchmakingJoinRequest,
    MatchmakingLeaveResponse,
    MatchmakingStatusResponse,
    QueueEntryResponse,
)

router = APIRouter(prefix="/matchmaking", tags=["matchmaking"])


def _as_status_response(status: MatchmakingStatus) -> MatchmakingStatusResponse:
    entry = status.entry
    return MatchmakingStatusResponse(
        state=status.state,
        entry=(
            QueueEntryResponse(
                user_id=entry.user_id,
                time_control=entry.time_control,
                difficulty=entry.difficulty,
                enqueued_at=entry.enqueued_at,
            )
            if entry is not None
            else None
        ),
        room=as_room_response(status.room) if status.room is not None else None,
    )


@router.post("", response_model=MatchmakingStatusResponse)
async def join_matchmaking(
    payload: MatchmakingJoinRequest,
    user_id: int = Depends(get_current_user_id),
) -> MatchmakingStatusResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            status = await MatchmakingServiceFacade.join_queue(
                session,
                user_id=user_id,
                time_control=payload.time_control,
                difficulty=payload.difficulty,
                now_utc=now_utc,
            )
    except GameError as exc:
        raise as_http_exception(exc) from exc
    return _as_status_response(status)


@router.get("", response_model=MatchmakingStatusResponse)
async def poll_matchmaking(
    user_id: int = Depends(get_current_user_id),
    since: datetime | None = Query(default=None),
) -> MatchmakingStatusResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            status = await MatchmakingServiceFacade.poll_queue_status(
                session,
                user_id=user_id,
                now_utc=now_utc,
                since=since,
            )
    except GameError as exc:
        raise as_http_exception(exc) from exc
    return _as_status_response(status)


@router.delete("", response_model=MatchmakingLeaveResponse)
async def leave_matchmaking(user_id: int = Depends(get_current_user_id)) -> MatchmakingLeaveResponse:
    async with SessionLocal.begin() as session:
        result = await MatchmakingServiceFacade.leave_queue(session, user_id=user_id)
    return MatchmakingLeaveResponse(removed=result.removed)
