"""Board event models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class EventType(StrEnum):
    # Task events
    TASK_CREATED = "task_created"
    TASK_MOVED = "task_moved"
    TASK_UPDATED = "task_updated"
    TASK_ARCHIVED = "task_archived"
    TASK_RESTORED = "task_restored"
    TASKS_ARCHIVED = "tasks_archived"
    # Comment events
    COMMENT_ADDED = "comment_added"
    # Integration events
    LINK_UPDATED = "link_updated"
    # Misc
    NOTIFICATION = "notification"


@dataclass
class Event:
    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    channel: str = ""
