from __future__ import annotations

from datetime import datetime

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.tournament_participants import TournamentParticipant


class TournamentParticipantsRepo:
    @staticmethod
    async def create_once(
        session: AsyncSession,
        *,
        tournament_code: str,
        user_id: int,
        joined_at: datetime,
    ) -> bool:
        stmt = insert(TournamentParticipant).values(
            tournament_code=tournament_code,
            user_id=user_id,
            joined_at=joined_at,
            points=0,
            seconds_spent=0.0,
            matches_played=0,
            wins=0,
            eliminated_in_round=None,
        )
        try:
            async with session.begin_nested():
                await session.execute(stmt)
        except IntegrityError:
            return False
        return True

    @staticmethod
    async def list_for_tournament(
        session: AsyncSession,
        *,
        tournament_code: str,
    ) -> list[TournamentParticipant]:
        stmt = (
            select(TournamentParticipant)
            .where(TournamentParticipant.tournament_code == tournament_code)
            .order_by(TournamentParticipant.joined_at.asc(), TournamentParticipant.user_id.asc())
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_standings(
        session: AsyncSession,
        *,
        tournament_code: str,
    ) -> list[TournamentParticipant]:
        stmt = (
            select(TournamentParticipant)
            .where(TournamentParticipant.tournament_code == tournament_code)
            .order_by(
                TournamentParticipant.points.desc(),
                TournamentParticipant.seconds_spent.asc(),
                TournamentParticipant.joined_at.asc(),
                TournamentParticipant.user_id.asc(),
            )
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def apply_match_result(
        session: AsyncSession,
        *,
        tournament_code: str,
        user_id: int,
        points_delta: int,
        seconds_delta: float,
        won: bool,
        played: bool = True,
    ) -> int:
        stmt = (
            update(TournamentParticipant)
            .where(
                TournamentParticipant.tournament_code == tournament_code,
                TournamentParticipant.user_id == user_id,
            )
            .values(
                points=TournamentParticipant.points + points_delta,
                seconds_spent=TournamentParticipant.seconds_spent + seconds_delta,
                matches_played=TournamentParticipant.matches_played + int(played),
                wins=TournamentParticipant.wins + int(won),
            )
            .returning(TournamentParticipant.user_id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one_or_none() is not None)

    @staticmethod
    async def mark_eliminated(
        session: AsyncSession,
        *,
        tournament_code: str,
        user_id: int,
        round_no: int,
    ) -> int:
        stmt = (
            update(TournamentParticipant)
            .where(
                TournamentParticipant.tournament_code == tournament_code,
                TournamentParticipant.user_id == user_id,
                TournamentParticipant.eliminated_in_round.is_(None),
            )
            .values(eliminated_in_round=round_no)
            .returning(TournamentParticipant.user_id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one_or_none() is not None)
