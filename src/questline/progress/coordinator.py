"""Progress coordinator: task start/complete with quest XP and badge cascades."""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from questline.catalog.service import CatalogService
from questline.db.models import (
    Quest,
    Task,
    UserBadge,
    UserQuestProgress,
    UserTaskProgress,
)
from questline.errors import (
    InvalidProgressStateError,
    QuestNotStartedError,
    TaskNotStartedError,
)
from questline.gamification.badge_service import try_award_badge
from questline.gamification.milestones import (
    TASK_MILESTONES,
    BadgeSlug,
    ProgressStatus,
    badges_for_count,
    quest_badges_for_count,
)
from questline.gamification.xp_service import get_user, get_user_for_update, grant_xp
from questline.progress import ledger
from questline.redis_client import publish_event

logger = logging.getLogger(__name__)

COMPLETED = ProgressStatus.COMPLETED.value
IN_PROGRESS = ProgressStatus.IN_PROGRESS.value
NOT_STARTED = ProgressStatus.NOT_STARTED.value

# One lock per user id while any operation for that user is in flight.
_user_locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()


def _user_lock(user_id: int) -> asyncio.Lock:
    lock = _user_locks.get(user_id)
    if lock is None:
        lock = asyncio.Lock()
        _user_locks[user_id] = lock
    return lock


class ProgressCoordinator:
    """Keeps task progress, quest progress, user XP and badges consistent.

    Every mutating operation runs under a per-user serialization boundary:
    an in-process lock held until commit, plus a row lock on the user
    (``SELECT ... FOR UPDATE``) for writers in other processes.
    """

    def __init__(self, db: AsyncSession, redis: object | None = None) -> None:
        self.db = db
        self.redis = redis
        self.catalog = CatalogService(db)

    @asynccontextmanager
    async def _user_transaction(self, user_id: int) -> AsyncGenerator[None, None]:
        async with _user_lock(user_id):
            try:
                yield
                await self.db.commit()
            except BaseException:
                await self.db.rollback()
                raise

    # --- Commands ---

    async def start_task(self, user_id: int, task_id: str) -> UserTaskProgress:
        """Start a task. Idempotent: started or completed tasks are returned unchanged."""
        async with self._user_transaction(user_id):
            await get_user_for_update(self.db, user_id)
            task = await self.catalog.get_task(task_id)

            if task.quest_id is not None:
                await ledger.get_or_create_quest_progress(self.db, user_id, task.quest_id)

            progress = await ledger.get_task_progress(self.db, user_id, task_id)
            if progress is None:
                progress = await ledger.create_task_progress(self.db, user_id, task_id)
                logger.info("User %s started task %s", user_id, task_id)
            elif progress.status not in (IN_PROGRESS, COMPLETED):
                progress.status = IN_PROGRESS
                await ledger.save_task_progress(self.db, progress)
                logger.info("User %s restarted task %s", user_id, task_id)

        return progress

    async def complete_task(self, user_id: int, task_id: str) -> UserTaskProgress:
        """Complete a started task.

        Credits the task's XP exactly once, updates the owning quest and
        evaluates task/quest milestone badges. Re-completing returns the
        existing record with no further effects.
        """
        newly_completed = False
        async with self._user_transaction(user_id):
            user = await get_user_for_update(self.db, user_id)

            progress = await ledger.get_task_progress(self.db, user_id, task_id)
            if progress is None:
                raise TaskNotStartedError(user_id, task_id)
            if progress.id is None:
                msg = f"Task progress for user {user_id}, task {task_id} has no id"
                raise InvalidProgressStateError(msg)
            if progress.status == COMPLETED:
                return progress

            task = await self.catalog.get_task(task_id)
            reward = task.xp_reward or 0

            progress.status = COMPLETED
            progress.gained_xp = reward
            await ledger.save_task_progress(self.db, progress)

            await grant_xp(
                self.db,
                user,
                amount=reward,
                source="task",
                source_id=task_id,
                description=f"Completed: {task.title}",
                idempotency_key=f"task:{task_id}:{user_id}",
            )

            if task.quest_id is not None:
                await self._update_quest_progress(user_id, task.quest_id, reward)

            await self._check_task_milestones(user_id)
            newly_completed = True

        if newly_completed:
            await publish_event(
                self.redis,
                "pubsub:task_completed",
                {"user_id": user_id, "task_id": task_id, "gained_xp": progress.gained_xp},
            )
        return progress

    async def award_mastery_badges(self, user_id: int) -> dict:
        """Award catalog-completion badges, then return the refreshed status.

        ``legend_master`` requires every task and quest completed;
        ``java_master`` requires every quest completed.
        """
        async with self._user_transaction(user_id):
            await get_user_for_update(self.db, user_id)
            status = await self.completion_status(user_id)

            if status["is_fully_completed"]:
                await try_award_badge(self.db, self.redis, user_id, BadgeSlug.LEGEND_MASTER.value)
            if status["all_quests_completed"]:
                await try_award_badge(self.db, self.redis, user_id, BadgeSlug.JAVA_MASTER.value)

        return await self.completion_status(user_id)

    # --- Cascades ---

    async def _update_quest_progress(self, user_id: int, quest_id: str, reward: int) -> UserQuestProgress:
        """Add a completed task's XP to its quest and close the quest when done."""
        quest_progress = await ledger.get_or_create_quest_progress(self.db, user_id, quest_id)
        quest_progress.gained_xp = (quest_progress.gained_xp or 0) + reward

        if quest_progress.status != COMPLETED and await self._is_quest_complete(user_id, quest_id):
            quest_progress.status = COMPLETED
            await ledger.save_quest_progress(self.db, quest_progress)
            logger.info("User %s completed quest %s", user_id, quest_id)
            await self._check_quest_milestones(user_id)
        else:
            await ledger.save_quest_progress(self.db, quest_progress)

        return quest_progress

    async def _is_quest_complete(self, user_id: int, quest_id: str) -> bool:
        """True when every task of the quest is COMPLETED for the user (vacuous for empty quests)."""
        tasks = await self.catalog.list_tasks_by_quest(quest_id)
        rows = await ledger.task_progress_by_task(self.db, user_id, [t.id for t in tasks])
        return all(
            t.id in rows and rows[t.id].status == COMPLETED
            for t in tasks
        )

    async def _check_task_milestones(self, user_id: int) -> list[str]:
        count = await ledger.count_completed_tasks(self.db, user_id)
        return await self._award_all(user_id, badges_for_count(TASK_MILESTONES, count))

    async def _check_quest_milestones(self, user_id: int) -> list[str]:
        count = await ledger.count_completed_quests(self.db, user_id)
        total_quests = await self.catalog.count_all_quests()
        return await self._award_all(user_id, quest_badges_for_count(count, total_quests))

    async def _award_all(self, user_id: int, slugs: list[BadgeSlug]) -> list[str]:
        awarded = []
        for slug in slugs:
            if await try_award_badge(self.db, self.redis, user_id, slug.value):
                awarded.append(slug.value)
        return awarded

    # --- Queries ---

    async def get_task_progress(self, user_id: int, task_id: str) -> UserTaskProgress | None:
        return await ledger.get_task_progress(self.db, user_id, task_id)

    async def get_quest_progress(self, user_id: int, quest_id: str) -> UserQuestProgress | None:
        return await ledger.get_quest_progress(self.db, user_id, quest_id)

    async def list_user_task_progress(self, user_id: int) -> list[UserTaskProgress]:
        return await ledger.list_task_progress_by_user(self.db, user_id)

    async def list_user_quest_progress(self, user_id: int) -> list[UserQuestProgress]:
        return await ledger.list_quest_progress_by_user(self.db, user_id)

    async def quest_with_task_detail(self, user_id: int, quest_id: str) -> dict:
        """Quest progress plus the status of each of its tasks for the user."""
        quest_progress = await ledger.get_quest_progress(self.db, user_id, quest_id)
        if quest_progress is None:
            raise QuestNotStartedError(user_id, quest_id)

        tasks = await self.catalog.list_tasks_by_quest(quest_id)
        rows = await ledger.task_progress_by_task(self.db, user_id, [t.id for t in tasks])

        task_list = []
        for task in tasks:
            row = rows.get(task.id)
            task_list.append({
                "task_id": task.id,
                "task_title": task.title,
                "status": row.status if row else NOT_STARTED,
                "gained_xp": row.gained_xp if row else 0,
            })

        return {
            "quest_id": quest_id,
            "quest_progress": {
                "status": quest_progress.status,
                "gained_xp": quest_progress.gained_xp,
            },
            "tasks": task_list,
        }

    async def completion_status(self, user_id: int) -> dict:
        """Catalog-wide completion summary for a user.

        The six counts are independent scalar subqueries fetched in one
        round trip.
        """
        user = await get_user(self.db, user_id)

        counts = (
            await self.db.execute(
                select(
                    select(func.count(UserTaskProgress.id))
                    .where(UserTaskProgress.user_id == user_id, UserTaskProgress.status == COMPLETED)
                    .scalar_subquery()
                    .label("tasks_completed"),
                    select(func.count(UserQuestProgress.id))
                    .where(UserQuestProgress.user_id == user_id, UserQuestProgress.status == COMPLETED)
                    .scalar_subquery()
                    .label("quests_completed"),
                    select(func.count(UserBadge.id))
                    .where(UserBadge.user_id == user_id)
                    .scalar_subquery()
                    .label("badges_earned"),
                    select(func.count(Task.id)).scalar_subquery().label("tasks_total"),
                    select(func.count(Quest.id)).scalar_subquery().label("quests_total"),
                )
            )
        ).one()

        all_tasks = counts.tasks_completed == counts.tasks_total and counts.tasks_total > 0
        all_quests = counts.quests_completed == counts.quests_total and counts.quests_total > 0

        return {
            "user_id": user.id,
            "total_xp": user.total_xp,
            "tasks_completed": counts.tasks_completed,
            "tasks_total": counts.tasks_total,
            "quests_completed": counts.quests_completed,
            "quests_total": counts.quests_total,
            "badges_earned": counts.badges_earned,
            "all_tasks_completed": all_tasks,
            "all_quests_completed": all_quests,
            "is_fully_completed": all_tasks and all_quests,
        }
