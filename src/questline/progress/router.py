"""Progress API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from questline.database import get_session
from questline.progress.coordinator import ProgressCoordinator
from questline.progress.schemas import (
    CompletionStatusResponse,
    QuestProgressResponse,
    QuestWithTasksResponse,
    TaskProgressResponse,
)
from questline.redis_client import get_event_client

router = APIRouter(prefix="/api/v1/progress", tags=["Progress"])


def get_coordinator(db: AsyncSession = Depends(get_session)) -> ProgressCoordinator:
    """Build a coordinator bound to the request's session."""
    return ProgressCoordinator(db, redis=get_event_client())


# ---- Commands ----


@router.post("/tasks/{task_id}/start", response_model=TaskProgressResponse)
async def start_task(
    task_id: str,
    user_id: int = Query(...),
    coordinator: ProgressCoordinator = Depends(get_coordinator),
):
    """Start a task. Creates the quest's progress row on first touch."""
    return await coordinator.start_task(user_id, task_id)


@router.post("/tasks/{task_id}/complete", response_model=TaskProgressResponse)
async def complete_task(
    task_id: str,
    user_id: int = Query(...),
    coordinator: ProgressCoordinator = Depends(get_coordinator),
):
    """Complete a started task. Awards XP and checks badge milestones."""
    return await coordinator.complete_task(user_id, task_id)


@router.post("/users/{user_id}/award-mastery", response_model=CompletionStatusResponse)
async def award_mastery(
    user_id: int,
    coordinator: ProgressCoordinator = Depends(get_coordinator),
):
    """Award catalog-completion badges and return the refreshed status."""
    return await coordinator.award_mastery_badges(user_id)


# ---- Queries ----


@router.get("/users/{user_id}/tasks", response_model=list[TaskProgressResponse])
async def list_task_progress(
    user_id: int,
    coordinator: ProgressCoordinator = Depends(get_coordinator),
):
    return await coordinator.list_user_task_progress(user_id)


@router.get("/users/{user_id}/quests", response_model=list[QuestProgressResponse])
async def list_quest_progress(
    user_id: int,
    coordinator: ProgressCoordinator = Depends(get_coordinator),
):
    return await coordinator.list_user_quest_progress(user_id)


@router.get("/users/{user_id}/tasks/{task_id}", response_model=TaskProgressResponse)
async def get_task_progress(
    user_id: int,
    task_id: str,
    coordinator: ProgressCoordinator = Depends(get_coordinator),
):
    progress = await coordinator.get_task_progress(user_id, task_id)
    if progress is None:
        raise HTTPException(404, "Task progress not found")
    return progress


@router.get("/users/{user_id}/quests/{quest_id}", response_model=QuestProgressResponse)
async def get_quest_progress(
    user_id: int,
    quest_id: str,
    coordinator: ProgressCoordinator = Depends(get_coordinator),
):
    progress = await coordinator.get_quest_progress(user_id, quest_id)
    if progress is None:
        raise HTTPException(404, "Quest progress not found")
    return progress


@router.get("/users/{user_id}/quests/{quest_id}/with-tasks", response_model=QuestWithTasksResponse)
async def get_quest_with_tasks(
    user_id: int,
    quest_id: str,
    coordinator: ProgressCoordinator = Depends(get_coordinator),
):
    """Quest progress with each task's status for the user."""
    return await coordinator.quest_with_task_detail(user_id, quest_id)


@router.get("/users/{user_id}/completion-status", response_model=CompletionStatusResponse)
async def get_completion_status(
    user_id: int,
    coordinator: ProgressCoordinator = Depends(get_coordinator),
):
    """Tasks, quests, XP and badge totals against the whole catalog."""
    return await coordinator.completion_status(user_id)
