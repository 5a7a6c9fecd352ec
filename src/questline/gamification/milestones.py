"""Progress statuses, badge slugs and milestone tables."""

from __future__ import annotations

from enum import Enum


class ProgressStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class BadgeSlug(str, Enum):
    FIRST_STEP = "first_step"
    TASK_WARRIOR = "task_warrior"
    TASK_LEGEND = "task_legend"
    QUEST_STARTER = "quest_starter"
    QUEST_EXPLORER = "quest_explorer"
    QUEST_COMPLETIONIST = "quest_completionist"
    LEGEND_MASTER = "legend_master"
    JAVA_MASTER = "java_master"


# Exact-match thresholds: count of COMPLETED rows -> badge.
TASK_MILESTONES: dict[int, BadgeSlug] = {
    1: BadgeSlug.FIRST_STEP,
    5: BadgeSlug.TASK_WARRIOR,
    10: BadgeSlug.TASK_LEGEND,
}

QUEST_MILESTONES: dict[int, BadgeSlug] = {
    1: BadgeSlug.QUEST_STARTER,
    3: BadgeSlug.QUEST_EXPLORER,
}


def badges_for_count(milestones: dict[int, BadgeSlug], count: int) -> list[BadgeSlug]:
    """Return the badges whose threshold equals ``count``."""
    return [slug for threshold, slug in milestones.items() if threshold == count]


def quest_badges_for_count(count: int, total_quests: int) -> list[BadgeSlug]:
    """Badges earned when the user's completed-quest count reaches ``count``."""
    badges = badges_for_count(QUEST_MILESTONES, count)
    if total_quests > 0 and count == total_quests:
        badges.append(BadgeSlug.QUEST_COMPLETIONIST)
    return badges
