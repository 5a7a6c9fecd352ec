"""XP service tests."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from questline.db.models import User, XPLedger
from questline.errors import NotFoundError
from questline.gamification.xp_service import get_user, get_user_for_update, grant_xp


class TestGetUser:
    @pytest.mark.asyncio
    async def test_returns_user(self, db_session: AsyncSession, user: User):
        found = await get_user(db_session, user.id)
        assert found.name == "Ada"
        assert found.total_xp == 0

    @pytest.mark.asyncio
    async def test_missing_user_raises(self, db_session: AsyncSession):
        with pytest.raises(NotFoundError) as exc_info:
            await get_user(db_session, 999)
        assert exc_info.value.status_code == 404
        assert "999" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_for_update_missing_user_raises(self, db_session: AsyncSession):
        with pytest.raises(NotFoundError):
            await get_user_for_update(db_session, 999)


class TestGrantXp:
    @pytest.mark.asyncio
    async def test_grant_adds_to_total(self, db_session: AsyncSession, user: User):
        granted = await grant_xp(
            db_session, user, amount=25, source="task", source_id="t1",
            description="Completed: t1", idempotency_key="task:t1:1",
        )
        await db_session.commit()

        assert granted is True
        assert user.total_xp == 25

    @pytest.mark.asyncio
    async def test_duplicate_key_credits_nothing(self, db_session: AsyncSession, user: User):
        for _ in range(3):
            await grant_xp(
                db_session, user, amount=25, source="task", source_id="t1",
                description="Completed: t1", idempotency_key="task:t1:dup",
            )
        await db_session.commit()

        assert user.total_xp == 25
        count = (
            await db_session.execute(
                select(func.count(XPLedger.id)).where(XPLedger.idempotency_key == "task:t1:dup")
            )
        ).scalar()
        assert count == 1

    @pytest.mark.asyncio
    async def test_zero_amount_is_recorded(self, db_session: AsyncSession, user: User):
        granted = await grant_xp(
            db_session, user, amount=0, source="task", source_id="t4",
            description="Completed: t4", idempotency_key="task:t4:1",
        )
        assert granted is True
        assert user.total_xp == 0
