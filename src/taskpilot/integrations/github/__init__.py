"""GitHub webhook payloads and task reference extraction."""

from .models import GitHubEvent, Issue, PullRequest, parse_webhook
from .refs import TaskRef, extract_task_refs

__all__ = [
    "GitHubEvent",
    "Issue",
    "PullRequest",
    "TaskRef",
    "extract_task_refs",
    "parse_webhook",
]
