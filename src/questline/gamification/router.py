"""Badge API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from questline.database import get_session
from questline.gamification.badge_service import (
    award_badge,
    get_badge,
    list_badges,
    list_user_badges,
)
from questline.gamification.schemas import (
    AllBadgesResponse,
    AwardBadgeResponse,
    BadgeResponse,
    EarnedBadgeResponse,
    UserBadgesResponse,
)
from questline.gamification.xp_service import get_user
from questline.redis_client import get_event_client

router = APIRouter(prefix="/api/v1", tags=["Badges"])


@router.get("/badges", response_model=AllBadgesResponse)
async def get_all_badges(db: AsyncSession = Depends(get_session)):
    """Get all badge definitions."""
    badges = await list_badges(db)
    return AllBadgesResponse(badges=[BadgeResponse.model_validate(b) for b in badges])


@router.get("/badges/{badge_id}", response_model=BadgeResponse)
async def get_badge_by_id(badge_id: str, db: AsyncSession = Depends(get_session)):
    return BadgeResponse.model_validate(await get_badge(db, badge_id))


@router.get("/users/{user_id}/badges", response_model=UserBadgesResponse)
async def get_user_badges(user_id: int, db: AsyncSession = Depends(get_session)):
    """Get a user's earned badges, oldest first."""
    await get_user(db, user_id)
    earned = await list_user_badges(db, user_id)
    total_available = len(await list_badges(db))

    return UserBadgesResponse(
        earned=[
            EarnedBadgeResponse(
                badge_id=ub.badge_id,
                name=ub.badge.name,
                earned_at=ub.earned_at,
            )
            for ub in earned
        ],
        total_available=total_available,
        total_earned=len(earned),
    )


@router.post("/users/{user_id}/badges/{badge_id}", response_model=AwardBadgeResponse)
async def award_badge_to_user(
    user_id: int,
    badge_id: str,
    db: AsyncSession = Depends(get_session),
):
    """Award a badge manually. Awarding a held badge is a no-op."""
    await get_user(db, user_id)
    user_badge, created = await award_badge(db, get_event_client(), user_id, badge_id)
    await db.commit()
    return AwardBadgeResponse(
        badge_id=user_badge.badge_id,
        earned_at=user_badge.earned_at,
        newly_awarded=created,
    )
