from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.tournament_matches import TournamentMatch


class TournamentMatchesRepo:
    @staticmethod
    async def create_many(
        session: AsyncSession,
        *,
        matches: list[TournamentMatch],
    ) -> list[TournamentMatch]:
        if not matches:
            return []
        session.add_all(matches)
        await session.flush()
        return matches

    @staticmethod
    async def list_by_tournament(
        session: AsyncSession,
        *,
        tournament_code: str,
    ) -> list[TournamentMatch]:
        stmt = (
            select(TournamentMatch)
            .where(TournamentMatch.tournament_code == tournament_code)
            .order_by(TournamentMatch.round_no.asc(), TournamentMatch.slot.asc())
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_by_tournament_round(
        session: AsyncSession,
        *,
        tournament_code: str,
        round_no: int,
    ) -> list[TournamentMatch]:
        stmt = (
            select(TournamentMatch)
            .where(
                TournamentMatch.tournament_code == tournament_code,
                TournamentMatch.round_no == round_no,
            )
            .order_by(TournamentMatch.slot.asc())
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_open_for_round(
        session: AsyncSession,
        *,
        tournament_code: str,
        round_no: int,
    ) -> int:
        stmt = select(func.count(TournamentMatch.id)).where(
            TournamentMatch.tournament_code == tournament_code,
            TournamentMatch.round_no == round_no,
            TournamentMatch.status.in_(("SCHEDULED", "IN_PROGRESS")),
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
