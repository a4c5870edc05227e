from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.tournament_rooms import TournamentRoom


class TournamentRoomsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, tournament: TournamentRoom) -> TournamentRoom:
        session.add(tournament)
        await session.flush()
        return tournament

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> TournamentRoom | None:
        return await session.get(TournamentRoom, code)

    @staticmethod
    async def get_by_code_for_update(session: AsyncSession, code: str) -> TournamentRoom | None:
        stmt = (
            select(TournamentRoom)
            .where(TournamentRoom.code == code)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def code_exists(session: AsyncSession, code: str) -> bool:
        stmt = select(TournamentRoom.code).where(TournamentRoom.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_codes_by_status(
        session: AsyncSession,
        *,
        status: str,
        limit: int,
    ) -> list[str]:
        resolved_limit = max(1, int(limit))
        stmt = (
            select(TournamentRoom.code)
            .where(TournamentRoom.status == status)
            .order_by(TournamentRoom.started_at.asc(), TournamentRoom.code.asc())
            .limit(resolved_limit)
        )
        result = await session.execute(stmt)
        return [str(code) for code in result.scalars().all()]
