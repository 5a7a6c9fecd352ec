"""XP accumulator: user lookups and idempotent XP credit."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from questline.db.models import User, XPLedger
from questline.errors import NotFoundError

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> User:
    """Fetch a user or raise NotFoundError."""
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("user", user_id)
    return user


async def get_user_for_update(db: AsyncSession, user_id: int) -> User:
    """Fetch a user with a row lock (SELECT ... FOR UPDATE).

    Holding this lock until commit serializes concurrent progress writes for
    the same user across API processes. SQLite ignores FOR UPDATE.
    """
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("user", user_id)
    return user


async def create_user(db: AsyncSession, name: str, email: str | None = None) -> User:
    """Insert a new user with zero XP."""
    user = User(
        name=name,
        email=email,
        total_xp=0,
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    await db.flush()
    return user


async def grant_xp(
    db: AsyncSession,
    user: User,
    amount: int,
    source: str,
    source_id: str,
    description: str,
    idempotency_key: str,
) -> bool:
    """Credit XP to a user. Returns True if granted, False if duplicate.

    1. Insert into xp_ledger (UNIQUE idempotency_key)
    2. Add ``amount`` to users.total_xp
    """
    existing = await db.execute(
        select(XPLedger.id).where(XPLedger.idempotency_key == idempotency_key)
    )
    if existing.scalar_one_or_none() is not None:
        logger.info("Duplicate XP grant skipped: %s", idempotency_key)
        return False

    entry = XPLedger(
        user_id=user.id,
        amount=amount,
        source=source,
        source_id=source_id,
        description=description,
        idempotency_key=idempotency_key,
        created_at=datetime.now(timezone.utc),
    )
    try:
        async with db.begin_nested():
            db.add(entry)
    except IntegrityError:
        logger.info("Concurrent XP grant lost the race: %s", idempotency_key)
        return False

    user.total_xp = (user.total_xp or 0) + amount
    await db.flush()
    return True
