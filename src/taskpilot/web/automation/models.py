"""Automation models: trigger/action kinds, events, rule schemas."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from ...integrations.github.models import Issue, PullRequest


class TriggerKind(StrEnum):
    GITHUB_PR_OPENED = "github_pr_opened"
    GITHUB_PR_MERGED = "github_pr_merged"
    GITHUB_PR_CLOSED = "github_pr_closed"
    GITHUB_ISSUE_OPENED = "github_issue_opened"
    GITHUB_ISSUE_CLOSED = "github_issue_closed"
    TASK_CREATED = "task_created"
    TASK_MOVED = "task_moved"

    @property
    def is_pull_request(self) -> bool:
        return self.value.startswith("github_pr_")

    @property
    def is_issue(self) -> bool:
        return self.value.startswith("github_issue_")


class ActionKind(StrEnum):
    CREATE_TASK = "create_task"
    MOVE_TASK = "move_task"
    UPDATE_TASK = "update_task"
    ADD_LABEL = "add_label"
    ADD_COMMENT = "add_comment"
    NOTIFY = "notify"
    ARCHIVE_TASK = "archive_task"


@dataclass
class AutomationEvent:
    """One domain event offered to the rule engine.

    ``task`` is the subject of a lifecycle event; ``tasks`` are the tasks an
    external object (PR, issue) references.
    """

    trigger: TriggerKind
    tenant_id: str
    board_id: str
    project_id: str | None = None
    repo: str = ""
    pull_request: PullRequest | None = None
    issue: Issue | None = None
    task: dict | None = None
    tasks: list[dict] = field(default_factory=list)
    from_column: dict | None = None
    to_column: dict | None = None

    @property
    def subject_title(self) -> str:
        if self.pull_request is not None:
            return self.pull_request.title
        if self.issue is not None:
            return self.issue.title
        return (self.task or {}).get("title", "")

    @property
    def labels(self) -> list[str]:
        if self.pull_request is not None:
            return self.pull_request.label_names
        if self.issue is not None:
            return self.issue.label_names
        return list((self.task or {}).get("labels", []))

    @property
    def targets(self) -> list[dict]:
        """Tasks an action on "the task" applies to."""
        if self.task is not None:
            return [self.task]
        return list(self.tasks)

    def variables(self) -> dict[str, Any]:
        variables: dict[str, Any] = {"repo": self.repo}
        pr = self.pull_request
        if pr is not None:
            variables["pr"] = {
                "title": pr.title,
                "number": pr.number,
                "author": pr.author,
                "url": pr.html_url,
                "body": pr.body,
                "branch": pr.head.ref,
                "base": pr.base.ref,
            }
        issue = self.issue
        if issue is not None:
            variables["issue"] = {
                "title": issue.title,
                "number": issue.number,
                "author": issue.author,
                "url": issue.html_url,
                "body": issue.body,
            }
        if self.task is not None:
            variables["task"] = {
                "id": self.task["id"],
                "title": self.task["title"],
                "priority": self.task.get("priority", ""),
            }
        if self.to_column is not None:
            variables["column"] = {"title": self.to_column["title"]}
        return variables


@dataclass
class RuleOutcome:
    rule_id: str
    name: str
    status: str  # executed | skipped | failed
    message: str = ""


class RuleConditions(BaseModel):
    """Optional narrowing; an empty condition set always qualifies."""

    labels: list[str] = Field(default_factory=list)
    title_pattern: str | None = None
    branches: list[str] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)
    priorities: list[str] = Field(default_factory=list)


class RuleCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    trigger: TriggerKind
    action: ActionKind
    conditions: RuleConditions = Field(default_factory=RuleConditions)
    action_params: dict[str, Any] = Field(default_factory=dict)
    project_id: str | None = None
    board_id: str | None = None
    enabled: bool = True


class RuleUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    trigger: TriggerKind | None = None
    action: ActionKind | None = None
    conditions: RuleConditions | None = None
    action_params: dict[str, Any] | None = None
    project_id: str | None = None
    board_id: str | None = None
    enabled: bool | None = None


class RuleResponse(BaseModel):
    id: str
    name: str
    description: str
    trigger: str
    action: str
    conditions: RuleConditions
    action_params: dict[str, Any]
    project_id: str | None
    board_id: str | None
    enabled: bool
    trigger_count: int
    last_triggered_at: str | None
    created_at: str
    updated_at: str
