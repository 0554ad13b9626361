"""Typed GitHub webhook payloads.

GitHub sends loosely shaped JSON; everything downstream consumes these
validated models instead of poking at raw dicts.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _GitHubModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class GitHubUser(_GitHubModel):
    login: str = ""


class GitHubLabel(_GitHubModel):
    name: str


class GitHubRef(_GitHubModel):
    ref: str = ""


class Repository(_GitHubModel):
    full_name: str
    name: str = ""

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.full_name.split("/", 1)[-1]


class PullRequest(_GitHubModel):
    number: int
    title: str
    body: str = ""
    state: str = "open"
    merged: bool = False
    draft: bool = False
    html_url: str = ""
    user: GitHubUser = Field(default_factory=GitHubUser)
    labels: list[GitHubLabel] = Field(default_factory=list)
    head: GitHubRef = Field(default_factory=GitHubRef)
    base: GitHubRef = Field(default_factory=GitHubRef)

    @field_validator("body", mode="before")
    @classmethod
    def _none_body(cls, value: Any) -> Any:
        return value or ""

    @property
    def author(self) -> str:
        return self.user.login

    @property
    def label_names(self) -> list[str]:
        return [label.name for label in self.labels]

    @property
    def link_status(self) -> str:
        if self.merged:
            return "merged"
        if self.state == "closed":
            return "closed"
        if self.draft:
            return "draft"
        return "open"


class Issue(_GitHubModel):
    number: int
    title: str
    body: str = ""
    state: str = "open"
    html_url: str = ""
    user: GitHubUser = Field(default_factory=GitHubUser)
    labels: list[GitHubLabel] = Field(default_factory=list)

    @field_validator("body", mode="before")
    @classmethod
    def _none_body(cls, value: Any) -> Any:
        return value or ""

    @property
    def author(self) -> str:
        return self.user.login

    @property
    def label_names(self) -> list[str]:
        return [label.name for label in self.labels]


class GitHubEvent(_GitHubModel):
    """One webhook delivery: the event name header plus the parsed body."""

    event: str
    action: str = ""
    repository: Repository
    sender: GitHubUser = Field(default_factory=GitHubUser)
    pull_request: PullRequest | None = None
    issue: Issue | None = None


def parse_webhook(event: str, payload: dict[str, Any]) -> GitHubEvent:
    """Validate a raw webhook body. Raises pydantic.ValidationError on bad shapes."""
    return GitHubEvent.model_validate({**payload, "event": event})
