"""Catalog read endpoint: the topic, quest and task tree."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from questline.catalog.service import CatalogService
from questline.database import get_session

router = APIRouter(prefix="/api/v1/topics", tags=["Catalog"])


@router.get("/tree")
async def get_topic_tree(db: AsyncSession = Depends(get_session)) -> dict:
    """All topics with nested quests and tasks, ordered by position."""
    return {"topics": await CatalogService(db).topic_tree()}
