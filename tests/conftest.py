"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from pathlib import Path

# Events need Redis; tests run without it.
os.environ.setdefault("QL_PUBLISH_EVENTS", "false")
os.environ.setdefault("QL_SEED_BADGES_ON_STARTUP", "false")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from questline.config import get_settings  # noqa: E402
from questline.database import close_db, get_engine, get_session_factory, init_db  # noqa: E402
from questline.db import models  # noqa: E402, F401
from questline.db.base import Base  # noqa: E402
from questline.db.models import Quest, Task, Topic, User  # noqa: E402
from questline.gamification.seed import seed_badges  # noqa: E402
from questline.gamification.xp_service import create_user  # noqa: E402
from questline.main import create_app  # noqa: E402

get_settings.cache_clear()


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[None, None]:
    """Fresh on-disk SQLite database with the schema created and badges seeded."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'questline.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with get_session_factory()() as session:
        await seed_badges(session)

    yield

    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for tests and assertions."""
    async with get_session_factory()() as session:
        yield session


@pytest_asyncio.fixture
async def catalog(db_session: AsyncSession) -> dict[str, list[str]]:
    """One topic, two quests, five tasks.

    q1: t1 (10 XP), t2 (20 XP)
    q2: t3 (5 XP), t4 (no reward), t5 (15 XP)
    """
    db_session.add(Topic(id="java", name="Java", description="Java fundamentals", order_index=1))
    db_session.add_all([
        Quest(id="q1", topic_id="java", name="Variables", order_index=1),
        Quest(id="q2", topic_id="java", name="Control flow", order_index=2),
    ])
    db_session.add_all([
        Task(id="t1", quest_id="q1", title="Declare a variable", xp_reward=10, order_index=1),
        Task(id="t2", quest_id="q1", title="Reassign a variable", xp_reward=20, order_index=2),
        Task(id="t3", quest_id="q2", title="Write an if", xp_reward=5, order_index=1),
        Task(id="t4", quest_id="q2", title="Write a loop", xp_reward=None, order_index=2),
        Task(id="t5", quest_id="q2", title="Write a switch", xp_reward=15, order_index=3),
    ])
    await db_session.commit()
    return {"q1": ["t1", "t2"], "q2": ["t3", "t4", "t5"]}


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> User:
    """A learner with zero XP."""
    learner = await create_user(db_session, "Ada", "ada@example.com")
    await db_session.commit()
    return learner


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP test client bound to the test database."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
