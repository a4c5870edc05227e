from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from integral_rush.api.deps import get_current_user_id
from integral_rush.api.errors import as_http_exception
from integral_rush.db.session import SessionLocal
from integral_rush.game.errors import GameError
from integral_rush.game.tournaments.service_facade import TournamentServiceFacade
from integral_rush.game.tournaments.types import TournamentLobbySnapshot, TournamentSnapshot

from .tournaments_models import (
    TournamentAbandonResponse,
    TournamentCreateRequest,
    TournamentJoinResponse,
    TournamentLeaderboardResponse,
    TournamentLobbyResponse,
    TournamentMatchResponse,
    TournamentParticipantResponse,
    TournamentResponse,
    TournamentStandingResponse,
    TournamentStartResponse,
)

router = APIRouter(prefix="/tournaments", tags=["tournaments"])


def _as_tournament_response(snapshot: TournamentSnapshot) -> TournamentResponse:
    return TournamentResponse(**asdict(snapshot))


def _as_lobby_response(lobby: TournamentLobbySnapshot) -> TournamentLobbyResponse:
    return TournamentLobbyResponse(
        tournament=_as_tournament_response(lobby.tournament),
        participants=[TournamentParticipantResponse(**asdict(item)) for item in lobby.participants],
        current_round_matches=[
            TournamentMatchResponse(**asdict(item)) for item in lobby.current_round_matches
        ],
        viewer_joined=lobby.viewer_joined,
        viewer_is_host=lobby.viewer_is_host,
        can_start=lobby.can_start,
        viewer_current_room_code=lobby.viewer_current_room_code,
    )


@router.post("", response_model=TournamentResponse, status_code=201)
async def create_tournament(
    payload: TournamentCreateRequest,
    user_id: int = Depends(get_current_user_id),
) -> TournamentResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await TournamentServiceFacade.create(
                session,
                host_id=user_id,
                now_utc=now_utc,
                format_code=payload.format.strip().upper(),
                max_players=payload.max_players,
                difficulty=payload.difficulty,
                questions_per_match=payload.questions_per_match,
                time_per_question=payload.time_per_question,
            )
    except GameError as exc:
        raise as_http_exception(exc) from exc
    return _as_tournament_response(snapshot)


@router.get("/{code}", response_model=TournamentLobbyResponse)
async def get_tournament(
    code: str,
    user_id: int = Depends(get_current_user_id),
) -> TournamentLobbyResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            lobby = await TournamentServiceFacade.poll(
                session,
                code=code,
                viewer_id=user_id,
                now_utc=now_utc,
            )
    except GameError as exc:
        raise as_http_exception(exc) from exc
    return _as_lobby_response(lobby)


@router.post("/{code}/join", response_model=TournamentJoinResponse)
async def join_tournament(
    code: str,
    user_id: int = Depends(get_current_user_id),
) -> TournamentJoinResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await TournamentServiceFacade.join(
                session,
                code=code,
                user_id=user_id,
                now_utc=now_utc,
            )
    except GameError as exc:
        raise as_http_exception(exc) from exc
    return TournamentJoinResponse(
        tournament=_as_tournament_response(result.snapshot),
        participants_total=result.participants_total,
    )


@router.post("/{code}/start", response_model=TournamentStartResponse)
async def start_tournament(
    code: str,
    user_id: int = Depends(get_current_user_id),
) -> TournamentStartResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await TournamentServiceFacade.start(
                session,
                code=code,
                caller_id=user_id,
                now_utc=now_utc,
            )
    except GameError as exc:
        raise as_http_exception(exc) from exc
    return TournamentStartResponse(
        tournament=_as_tournament_response(result.snapshot),
        round_no=result.round_no,
        matches_total=result.matches_total,
    )


@router.get("/{code}/leaderboard", response_model=TournamentLeaderboardResponse)
async def get_tournament_leaderboard(
    code: str,
    user_id: int = Depends(get_current_user_id),
) -> TournamentLeaderboardResponse:
    try:
        async with SessionLocal.begin() as session:
            standings = await TournamentServiceFacade.leaderboard(session, code=code)
    except GameError as exc:
        raise as_http_exception(exc) from exc
    return TournamentLeaderboardResponse(
        code=code,
        items=[TournamentStandingResponse(**asdict(item)) for item in standings],
    )


@router.post("/{code}/abandon", response_model=TournamentAbandonResponse)
async def abandon_tournament(
    code: str,
    user_id: int = Depends(get_current_user_id),
) -> TournamentAbandonResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await TournamentServiceFacade.abandon(
                session,
                code=code,
                caller_id=user_id,
                now_utc=now_utc,
            )
    except GameError as exc:
        raise as_http_exception(exc) from exc
    return TournamentAbandonResponse(
        tournament=_as_tournament_response(result.snapshot),
        applied=result.applied,
        rooms_abandoned=result.rooms_abandoned,
    )
