"""Template rendering for automation action parameters."""

from __future__ import annotations

DEFAULT_PR_REVIEW_TITLE = "Review PR #{{pr.number}}: {{pr.title}}"
DEFAULT_PR_REVIEW_DESCRIPTION = "PR: {{pr.url}}\n\nOpened by @{{pr.author}}"
DEFAULT_ISSUE_DESCRIPTION = "GitHub Issue: {{issue.url}}\n\n{{issue.body}}"


def flatten(variables: dict, prefix: str = "") -> dict[str, str]:
    """{"pr": {"number": 7}} -> {"pr.number": "7"}"""
    flat: dict[str, str] = {}
    for key, value in variables.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(flatten(value, f"{name}."))
        elif isinstance(value, list | tuple):
            flat[name] = ", ".join(str(v) for v in value)
        else:
            flat[name] = "" if value is None else str(value)
    return flat


def render(template: str | None, variables: dict) -> str:
    """Render ``{{dotted.name}}`` placeholders from nested event variables.

    Supported variables:
        {{pr.title}}, {{pr.number}}, {{pr.author}}, {{pr.url}}, {{pr.branch}},
        {{issue.title}}, {{issue.number}}, {{issue.author}}, {{issue.url}},
        {{task.title}}, {{task.id}}, {{task.priority}}, {{repo}}
    """
    if not template:
        return ""

    # Safe substitution: unknown placeholders stay as written
    result = template
    for key, value in flatten(variables).items():
        result = result.replace("{{" + key + "}}", value)

    return result
