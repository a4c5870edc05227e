from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.duel_rooms import DuelRoom


class DuelRoomsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, room: DuelRoom) -> DuelRoom:
        session.add(room)
        await session.flush()
        return room

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> DuelRoom | None:
        return await session.get(DuelRoom, code)

    @staticmethod
    async def get_by_code_for_update(session: AsyncSession, code: str) -> DuelRoom | None:
        stmt = (
            select(DuelRoom)
            .where(DuelRoom.code == code)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def code_exists(session: AsyncSession, code: str) -> bool:
        stmt = select(DuelRoom.code).where(DuelRoom.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def update_if_version(
        session: AsyncSession,
        *,
        code: str,
        expected_version: int,
        expected_status: str,
        values: dict[str, Any],
    ) -> bool:
        stmt = (
            update(DuelRoom)
            .where(
                DuelRoom.code == code,
                DuelRoom.version == expected_version,
                DuelRoom.status == expected_status,
            )
            .values(**values, version=expected_version + 1)
            .returning(DuelRoom.code)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def get_latest_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        status: str,
        source: str,
        created_since: datetime | None = None,
    ) -> DuelRoom | None:
        stmt = select(DuelRoom).where(
            DuelRoom.status == status,
            DuelRoom.source == source,
            or_(DuelRoom.host_id == user_id, DuelRoom.opponent_id == user_id),
        )
        if created_since is not None:
            stmt = stmt.where(DuelRoom.created_at >= created_since)
        stmt = (
            stmt.order_by(DuelRoom.created_at.desc(), DuelRoom.code.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_codes(session: AsyncSession, *, codes: list[str]) -> list[DuelRoom]:
        if not codes:
            return []
        stmt = (
            select(DuelRoom)
            .where(DuelRoom.code.in_(codes))
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
