"""Typed errors raised by the progress and reward services."""

from __future__ import annotations


class ProgressError(Exception):
    """Base class for progress/reward domain errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ProgressError):
    """A referenced task, quest, user or badge does not exist."""

    status_code = 404

    def __init__(self, kind: str, identifier: object) -> None:
        super().__init__(f"{kind.capitalize()} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class TaskNotStartedError(ProgressError):
    """Completing a task that was never started."""

    status_code = 409

    def __init__(self, user_id: int, task_id: str) -> None:
        super().__init__(f"Task {task_id} not started by user {user_id}")
        self.user_id = user_id
        self.task_id = task_id


class QuestNotStartedError(ProgressError):
    """Reading quest detail for a quest the user never touched."""

    status_code = 409

    def __init__(self, user_id: int, quest_id: str) -> None:
        super().__init__(f"Quest {quest_id} not started by user {user_id}")
        self.user_id = user_id
        self.quest_id = quest_id


class InvalidProgressStateError(ProgressError):
    """A persisted progress record is corrupt (e.g. it has no id)."""
