"""Read-only catalog lookups: topics, quests and tasks."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from questline.db.models import Quest, Task, Topic
from questline.errors import NotFoundError


class CatalogService:
    """Catalog reads consumed by the progress coordinator."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_task(self, task_id: str) -> Task:
        task = await self.db.get(Task, task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    async def get_quest(self, quest_id: str) -> Quest:
        quest = await self.db.get(Quest, quest_id)
        if quest is None:
            raise NotFoundError("quest", quest_id)
        return quest

    async def list_tasks_by_quest(self, quest_id: str) -> list[Task]:
        """Tasks of a quest ordered by position."""
        result = await self.db.execute(
            select(Task)
            .where(Task.quest_id == quest_id)
            .order_by(Task.order_index, Task.id)
        )
        return list(result.scalars().all())

    async def count_all_tasks(self) -> int:
        result = await self.db.execute(select(func.count(Task.id)))
        return result.scalar() or 0

    async def count_all_quests(self) -> int:
        result = await self.db.execute(select(func.count(Quest.id)))
        return result.scalar() or 0

    async def topic_tree(self) -> list[dict]:
        """Topics with their quests and tasks nested, all ordered by position."""
        result = await self.db.execute(
            select(Topic)
            .options(selectinload(Topic.quests).selectinload(Quest.tasks))
            .order_by(Topic.order_index, Topic.id)
        )
        return [
            {
                "id": topic.id,
                "name": topic.name,
                "description": topic.description,
                "quests": [
                    {
                        "id": quest.id,
                        "name": quest.name,
                        "description": quest.description,
                        "order_index": quest.order_index,
                        "tasks": [
                            {
                                "id": task.id,
                                "title": task.title,
                                "description": task.description,
                                "order_index": task.order_index,
                                "xp_reward": task.xp_reward or 0,
                            }
                            for task in quest.tasks
                        ],
                    }
                    for quest in topic.quests
                ],
            }
            for topic in result.scalars().all()
        ]
