"""Progress ledger: per-(user, task) and per-(user, quest) status rows."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from questline.db.models import UserQuestProgress, UserTaskProgress
from questline.gamification.milestones import ProgressStatus

COMPLETED = ProgressStatus.COMPLETED.value


# --- Task progress ---


async def get_task_progress(db: AsyncSession, user_id: int, task_id: str) -> UserTaskProgress | None:
    result = await db.execute(
        select(UserTaskProgress).where(
            UserTaskProgress.user_id == user_id,
            UserTaskProgress.task_id == task_id,
        )
    )
    return result.scalar_one_or_none()


async def list_task_progress_by_user(db: AsyncSession, user_id: int) -> list[UserTaskProgress]:
    result = await db.execute(
        select(UserTaskProgress)
        .where(UserTaskProgress.user_id == user_id)
        .order_by(UserTaskProgress.id)
    )
    return list(result.scalars().all())


async def task_progress_by_task(
    db: AsyncSession, user_id: int, task_ids: list[str]
) -> dict[str, UserTaskProgress]:
    """Map task_id -> progress row for the given tasks (absent tasks omitted)."""
    if not task_ids:
        return {}
    result = await db.execute(
        select(UserTaskProgress).where(
            UserTaskProgress.user_id == user_id,
            UserTaskProgress.task_id.in_(task_ids),
        )
    )
    return {row.task_id: row for row in result.scalars()}


async def count_completed_tasks(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(UserTaskProgress.id)).where(
            UserTaskProgress.user_id == user_id,
            UserTaskProgress.status == COMPLETED,
        )
    )
    return result.scalar() or 0


async def save_task_progress(db: AsyncSession, progress: UserTaskProgress) -> UserTaskProgress:
    """Persist a task progress row, stamping ``updated_at``."""
    progress.updated_at = datetime.now(timezone.utc)
    db.add(progress)
    await db.flush()
    return progress


async def create_task_progress(db: AsyncSession, user_id: int, task_id: str) -> UserTaskProgress:
    """Insert an IN_PROGRESS row, or return the row a concurrent writer created."""
    progress = UserTaskProgress(
        user_id=user_id,
        task_id=task_id,
        status=ProgressStatus.IN_PROGRESS.value,
        gained_xp=0,
        updated_at=datetime.now(timezone.utc),
    )
    try:
        async with db.begin_nested():
            db.add(progress)
    except IntegrityError:
        existing = await get_task_progress(db, user_id, task_id)
        if existing is None:
            raise
        return existing
    return progress


# --- Quest progress ---


async def get_quest_progress(db: AsyncSession, user_id: int, quest_id: str) -> UserQuestProgress | None:
    result = await db.execute(
        select(UserQuestProgress).where(
            UserQuestProgress.user_id == user_id,
            UserQuestProgress.quest_id == quest_id,
        )
    )
    return result.scalar_one_or_none()


async def list_quest_progress_by_user(db: AsyncSession, user_id: int) -> list[UserQuestProgress]:
    result = await db.execute(
        select(UserQuestProgress)
        .where(UserQuestProgress.user_id == user_id)
        .order_by(UserQuestProgress.id)
    )
    return list(result.scalars().all())


async def count_completed_quests(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(UserQuestProgress.id)).where(
            UserQuestProgress.user_id == user_id,
            UserQuestProgress.status == COMPLETED,
        )
    )
    return result.scalar() or 0


async def save_quest_progress(db: AsyncSession, progress: UserQuestProgress) -> UserQuestProgress:
    progress.updated_at = datetime.now(timezone.utc)
    db.add(progress)
    await db.flush()
    return progress


async def get_or_create_quest_progress(db: AsyncSession, user_id: int, quest_id: str) -> UserQuestProgress:
    """Fetch the user's quest row, lazily creating it IN_PROGRESS with 0 XP."""
    existing = await get_quest_progress(db, user_id, quest_id)
    if existing is not None:
        return existing

    progress = UserQuestProgress(
        user_id=user_id,
        quest_id=quest_id,
        status=ProgressStatus.IN_PROGRESS.value,
        gained_xp=0,
        updated_at=datetime.now(timezone.utc),
    )
    try:
        async with db.begin_nested():
            db.add(progress)
    except IntegrityError:
        existing = await get_quest_progress(db, user_id, quest_id)
        if existing is None:
            raise
        return existing
    return progress
