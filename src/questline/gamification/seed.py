"""Badge definitions seeded on startup."""

from __future__ import annotations

import logging

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from questline.db.models import Badge
from questline.gamification.milestones import BadgeSlug

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    # Task milestones
    {
        "id": BadgeSlug.FIRST_STEP.value,
        "name": "First Step",
        "description": "Complete your very first task",
        "sort_order": 1,
    },
    {
        "id": BadgeSlug.TASK_WARRIOR.value,
        "name": "Task Warrior",
        "description": "Complete 5 tasks",
        "sort_order": 2,
    },
    {
        "id": BadgeSlug.TASK_LEGEND.value,
        "name": "Task Legend",
        "description": "Complete 10 tasks",
        "sort_order": 3,
    },
    # Quest milestones
    {
        "id": BadgeSlug.QUEST_STARTER.value,
        "name": "Quest Starter",
        "description": "Complete your first quest",
        "sort_order": 4,
    },
    {
        "id": BadgeSlug.QUEST_EXPLORER.value,
        "name": "Quest Explorer",
        "description": "Complete 3 quests",
        "sort_order": 5,
    },
    {
        "id": BadgeSlug.QUEST_COMPLETIONIST.value,
        "name": "Quest Completionist",
        "description": "Complete every quest in the catalog",
        "sort_order": 6,
    },
    # Mastery
    {
        "id": BadgeSlug.LEGEND_MASTER.value,
        "name": "Legend Master",
        "description": "Complete every task and every quest",
        "sort_order": 7,
    },
    {
        "id": BadgeSlug.JAVA_MASTER.value,
        "name": "Java Master",
        "description": "Master every quest in the curriculum",
        "sort_order": 8,
    },
]


async def seed_badges(db: AsyncSession) -> int:
    """Upsert all badge definitions. Returns number of badges seeded."""
    insert = sqlite_insert if db.get_bind().dialect.name == "sqlite" else pg_insert
    seeded = 0
    for badge_data in BADGE_SEED_DATA:
        stmt = insert(Badge).values(**badge_data)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "name": stmt.excluded.name,
                "description": stmt.excluded.description,
                "sort_order": stmt.excluded.sort_order,
            },
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d badge definitions", seeded)
    return seeded
