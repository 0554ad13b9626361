"""Command interpreter data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum


class CommandType(StrEnum):
    CREATE = "create"
    MOVE = "move"
    COMPLETE = "complete"
    PRIORITY = "priority"
    DUE = "due"
    ARCHIVE = "archive"
    QUERY = "query"
    UNKNOWN = "unknown"


class Priority(StrEnum):
    """Ordered task priority, p0 is the most urgent."""

    P0 = "p0"
    P1 = "p1"
    P2 = "p2"
    P3 = "p3"

    @property
    def rank(self) -> int:
        return int(self.value[1])


DEFAULT_PRIORITY = Priority.P2

# Alias -> priority. Checked as whole words.
PRIORITY_ALIASES: dict[str, Priority] = {
    "critical": Priority.P0,
    "urgent": Priority.P0,
    "p0": Priority.P0,
    "high": Priority.P1,
    "important": Priority.P1,
    "p1": Priority.P1,
    "medium": Priority.P2,
    "normal": Priority.P2,
    "p2": Priority.P2,
    "low": Priority.P3,
    "minor": Priority.P3,
    "p3": Priority.P3,
}


class QueryKind(StrEnum):
    ALL = "all"
    OVERDUE = "overdue"
    STUCK = "stuck"
    IN_PROGRESS = "in_progress"
    TODO = "todo"
    DONE = "done"
    PRIORITY = "priority"
    TEXT = "text"
    # Bulk archive selector ("archive all done tasks")
    ALL_DONE = "all_done"


@dataclass
class Fragments:
    """Structured pieces pulled out of free text. Absent pieces stay None."""

    title: str | None = None
    description: str | None = None
    priority: Priority | None = None
    due_date: date | None = None
    labels: list[str] | None = None
    column: str | None = None

    def count(self) -> int:
        return sum(
            1
            for value in (
                self.title,
                self.description,
                self.priority,
                self.due_date,
                self.labels,
                self.column,
            )
            if value
        )


@dataclass
class CommandParams:
    title: str | None = None
    description: str | None = None
    priority: Priority | None = None
    due_date: date | None = None
    labels: list[str] = field(default_factory=list)
    column: str | None = None
    query_kind: QueryKind | None = None
    query: str | None = None


@dataclass
class ParsedCommand:
    """Transient interpretation of one command-bar input."""

    type: CommandType
    confidence: float
    raw: str
    task_ref: str | None = None
    params: CommandParams = field(default_factory=CommandParams)
    # True when the request targets the done bucket by intent (complete)
    done_intent: bool = False

    @property
    def is_actionable(self) -> bool:
        return self.type is not CommandType.UNKNOWN
