from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.duel_queue import DuelQueueEntry


class DuelQueueRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: int) -> DuelQueueEntry | None:
        stmt = (
            select(DuelQueueEntry)
            .where(DuelQueueEntry.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_once(
        session: AsyncSession,
        *,
        user_id: int,
        time_control: int,
        difficulty: str,
        enqueued_at: datetime,
    ) -> bool:
        stmt = insert(DuelQueueEntry).values(
            user_id=user_id,
            time_control=time_control,
            difficulty=difficulty,
            enqueued_at=enqueued_at,
        )
        try:
            async with session.begin_nested():
                await session.execute(stmt)
        except IntegrityError:
            return False
        return True

    @staticmethod
    async def find_oldest_compatible(
        session: AsyncSession,
        *,
        time_control: int,
        difficulty: str,
        exclude_user_id: int,
        fresh_after: datetime,
    ) -> DuelQueueEntry | None:
        stmt = (
            select(DuelQueueEntry)
            .where(
                DuelQueueEntry.time_control == time_control,
                DuelQueueEntry.difficulty == difficulty,
                DuelQueueEntry.user_id != exclude_user_id,
                DuelQueueEntry.enqueued_at > fresh_after,
            )
            .order_by(DuelQueueEntry.enqueued_at.asc(), DuelQueueEntry.user_id.asc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_live(
        session: AsyncSession,
        *,
        fresh_after: datetime,
        limit: int,
    ) -> list[DuelQueueEntry]:
        resolved_limit = max(1, int(limit))
        stmt = (
            select(DuelQueueEntry)
            .where(DuelQueueEntry.enqueued_at > fresh_after)
            .order_by(DuelQueueEntry.enqueued_at.asc(), DuelQueueEntry.user_id.asc())
            .limit(resolved_limit)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete_if_enqueued_at(
        session: AsyncSession,
        *,
        user_id: int,
        enqueued_at: datetime,
    ) -> bool:
        stmt = (
            delete(DuelQueueEntry)
            .where(
                DuelQueueEntry.user_id == user_id,
                DuelQueueEntry.enqueued_at == enqueued_at,
            )
            .returning(DuelQueueEntry.user_id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def delete_by_user_id(session: AsyncSession, *, user_id: int) -> int:
        stmt = (
            delete(DuelQueueEntry)
            .where(DuelQueueEntry.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def delete_enqueued_before(session: AsyncSession, *, cutoff_utc: datetime) -> int:
        stmt = (
            delete(DuelQueueEntry)
            .where(DuelQueueEntry.enqueued_at <= cutoff_utc)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
