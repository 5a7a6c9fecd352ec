"""Pydantic response models for progress endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class TaskProgressResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    user_id: int
    task_id: str
    status: str
    gained_xp: int
    updated_at: datetime


class QuestProgressResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    user_id: int
    quest_id: str
    status: str
    gained_xp: int
    updated_at: datetime


class QuestProgressSummary(BaseModel):
    status: str
    gained_xp: int


class QuestTaskDetail(BaseModel):
    task_id: str
    task_title: str
    status: str
    gained_xp: int


class QuestWithTasksResponse(BaseModel):
    quest_id: str
    quest_progress: QuestProgressSummary
    tasks: list[QuestTaskDetail]


class CompletionStatusResponse(BaseModel):
    user_id: int
    total_xp: int
    tasks_completed: int
    tasks_total: int
    quests_completed: int
    quests_total: int
    badges_earned: int
    all_tasks_completed: bool
    all_quests_completed: bool
    is_fully_completed: bool
