"""Badge catalog and idempotent award ledger."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from questline.db.models import Badge, UserBadge
from questline.errors import NotFoundError
from questline.redis_client import publish_event

logger = logging.getLogger(__name__)


async def list_badges(db: AsyncSession) -> list[Badge]:
    """All badge definitions in display order."""
    result = await db.execute(select(Badge).order_by(Badge.sort_order, Badge.id))
    return list(result.scalars().all())


async def get_badge(db: AsyncSession, badge_id: str) -> Badge:
    """Fetch a badge definition or raise NotFoundError."""
    badge = await db.get(Badge, badge_id)
    if badge is None:
        raise NotFoundError("badge", badge_id)
    return badge


async def get_user_badge(db: AsyncSession, user_id: int, badge_id: str) -> UserBadge | None:
    """Return the user's award row for a badge, if any."""
    result = await db.execute(
        select(UserBadge).where(
            UserBadge.user_id == user_id,
            UserBadge.badge_id == badge_id,
        )
    )
    return result.scalar_one_or_none()


async def list_user_badges(db: AsyncSession, user_id: int) -> list[UserBadge]:
    """Badges earned by a user, oldest first."""
    result = await db.execute(
        select(UserBadge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_at, UserBadge.id)
    )
    return list(result.scalars().all())


async def count_user_badges(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(UserBadge.id)).where(UserBadge.user_id == user_id)
    )
    return result.scalar() or 0


async def award_badge(
    db: AsyncSession,
    redis: object,
    user_id: int,
    badge_id: str,
) -> tuple[UserBadge, bool]:
    """Award a badge to a user.

    Returns ``(user_badge, created)``. Re-awarding a held badge returns the
    existing row with ``created=False``. Raises NotFoundError for an unknown
    badge id. A unique-key violation from a concurrent award is treated as
    "already awarded".
    """
    badge = await get_badge(db, badge_id)

    existing = await get_user_badge(db, user_id, badge.id)
    if existing is not None:
        return existing, False

    user_badge = UserBadge(
        user_id=user_id,
        badge_id=badge.id,
        earned_at=datetime.now(timezone.utc),
    )
    try:
        async with db.begin_nested():
            db.add(user_badge)
    except IntegrityError:
        # Race condition: badge already awarded
        existing = await get_user_badge(db, user_id, badge.id)
        if existing is None:
            raise
        return existing, False

    logger.info("Awarded badge %s to user %s", badge.id, user_id)
    await publish_event(
        redis,
        "pubsub:badge_earned",
        {"user_id": user_id, "badge_id": badge.id, "badge_name": badge.name},
    )
    return user_badge, True


async def try_award_badge(
    db: AsyncSession,
    redis: object,
    user_id: int,
    badge_id: str,
) -> bool:
    """Best-effort award used by milestone checks. Never raises.

    Returns True only when a new award row was created.
    """
    try:
        _, created = await award_badge(db, redis, user_id, badge_id)
    except Exception:
        logger.warning("Badge award failed: %s for user %s", badge_id, user_id, exc_info=True)
        return False
    return created
