"""GitHub webhook handling.

Built-in behaviour driven by the project's flags (link referenced tasks,
move them on merge/close, create tasks from issues), then the matching
automation trigger is offered to the rule engine.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass, field

import aiosqlite

from ...commands.resolver import default_column, find_column_by_family
from ...integrations.github.models import GitHubEvent, Issue, PullRequest
from ...integrations.github.refs import DEFAULT_PREFIXES, extract_task_refs
from ..automation.engine import process_event
from ..automation.models import AutomationEvent, RuleOutcome, TriggerKind
from ..automation.templates import DEFAULT_ISSUE_DESCRIPTION, render
from ..boards.service import get_board
from ..context import ActorContext
from ..errors import BoardNotFound
from ..links import service as link_service
from ..tasks import service as task_service

logger = logging.getLogger(__name__)


@dataclass
class WebhookOutcome:
    actions: list[str] = field(default_factory=list)
    rules: list[RuleOutcome] = field(default_factory=list)


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check an ``X-Hub-Signature-256`` header against the raw body."""
    if not signature:
        return False
    expected = "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


async def find_project(db: aiosqlite.Connection, owner: str, repo: str) -> dict | None:
    """The project a repository is connected to; owner/repo match case-insensitively."""
    cursor = await db.execute(
        """SELECT * FROM projects
           WHERE lower(github_owner) = lower(?) AND lower(github_repo) = lower(?)
           ORDER BY created_at, rowid LIMIT 1""",
        (owner, repo),
    )
    row = await cursor.fetchone()
    if not row:
        return None
    project = dict(row)
    for flag in ("auto_link_prs", "auto_move_tasks", "create_tasks_from_issues"):
        project[flag] = bool(project[flag])
    return project


def pr_trigger(action: str, pr: PullRequest) -> TriggerKind | None:
    if action == "opened" and not pr.draft:
        return TriggerKind.GITHUB_PR_OPENED
    if action == "closed":
        return TriggerKind.GITHUB_PR_MERGED if pr.merged else TriggerKind.GITHUB_PR_CLOSED
    return None


def issue_trigger(action: str) -> TriggerKind | None:
    return {
        "opened": TriggerKind.GITHUB_ISSUE_OPENED,
        "closed": TriggerKind.GITHUB_ISSUE_CLOSED,
    }.get(action)


async def _move_to_done(
    db: aiosqlite.Connection, ctx: ActorContext, board: dict, tasks: list[dict], note: str
) -> list[dict]:
    done = find_column_by_family(board["columns"], "done")
    if done is None:
        logger.warning("Board %s has no done column; not moving tasks", board["id"])
        return []
    moved = []
    for task in tasks:
        if task["column_id"] != done["id"] and not task["archived"]:
            moved.append(await task_service.move_task(db, ctx, task, done["id"], note=note))
    return moved


async def _handle_pull_request(
    db: aiosqlite.Connection,
    ctx: ActorContext,
    project: dict,
    board: dict,
    event: GitHubEvent,
    prefixes: tuple[str, ...],
    outcome: WebhookOutcome,
) -> AutomationEvent | None:
    pr = event.pull_request
    repo = event.repository.full_name
    logger.info("PR #%s %s: %s", pr.number, event.action, pr.title)

    refs = extract_task_refs(f"{pr.title} {pr.body}", prefixes)
    linked = await task_service.find_tasks_by_refs(db, ctx.tenant_id, refs, board["id"])

    if project["auto_link_prs"]:
        for task in linked:
            await link_service.link_pull_request(db, ctx.tenant_id, task, repo, pr)
            outcome.actions.append(f'Linked PR #{pr.number} to task "{task["title"]}"')

    if event.action == "closed" and pr.merged and project["auto_move_tasks"]:
        note = f"Auto-moved: PR #{pr.number} merged"
        for task in await _move_to_done(db, ctx, board, linked, note):
            outcome.actions.append(f'Moved "{task["title"]}" to Done (PR #{pr.number} merged)')

    trigger = pr_trigger(event.action, pr)
    if trigger is None:
        return None
    return AutomationEvent(
        trigger=trigger,
        tenant_id=ctx.tenant_id,
        board_id=board["id"],
        project_id=project["id"],
        repo=repo,
        pull_request=pr,
        tasks=linked,
    )


async def _create_issue_task(
    db: aiosqlite.Connection, ctx: ActorContext, board: dict, repo: str, issue: Issue
) -> dict | None:
    column = default_column(board["columns"])
    if column is None:
        logger.warning("Board %s has no columns; issue #%s not imported", board["id"], issue.number)
        return None
    variables = {"issue": {"url": issue.html_url, "body": issue.body}}
    task = await task_service.insert_task(
        db,
        ctx,
        board["id"],
        column["id"],
        issue.title,
        description=render(DEFAULT_ISSUE_DESCRIPTION, variables),
        labels=["github-issue", *issue.label_names],
        note=f"Created from GitHub issue #{issue.number}",
    )
    await link_service.link_issue(db, ctx.tenant_id, task, repo, issue)
    return task


async def _handle_issue(
    db: aiosqlite.Connection,
    ctx: ActorContext,
    project: dict,
    board: dict,
    event: GitHubEvent,
    outcome: WebhookOutcome,
) -> AutomationEvent | None:
    issue = event.issue
    repo = event.repository
    logger.info("Issue #%s %s: %s", issue.number, event.action, issue.title)
    tasks: list[dict] = []

    if event.action == "opened" and project["create_tasks_from_issues"]:
        task = await _create_issue_task(db, ctx, board, repo.full_name, issue)
        if task is not None:
            tasks.append(task)
            outcome.actions.append(f"Created task from issue #{issue.number}")

    if event.action == "closed":
        links = await link_service.find_github_links(
            db, ctx.tenant_id, "github_issue", issue.number, repo.owner, repo.repo
        )
        for link in links:
            await link_service.set_link_status(db, ctx.tenant_id, link, "closed")
            task = await task_service.get_task(db, ctx.tenant_id, link["task_id"])
            if task is not None:
                tasks.append(task)
        if project["auto_move_tasks"]:
            note = f"Auto-moved: Issue #{issue.number} closed"
            for task in await _move_to_done(db, ctx, board, tasks, note):
                outcome.actions.append(f"Moved task to Done (Issue #{issue.number} closed)")

    trigger = issue_trigger(event.action)
    if trigger is None:
        return None
    return AutomationEvent(
        trigger=trigger,
        tenant_id=ctx.tenant_id,
        board_id=board["id"],
        project_id=project["id"],
        repo=repo.full_name,
        issue=issue,
        tasks=[t for t in tasks if not t["archived"]],
    )


async def handle_github_event(
    db: aiosqlite.Connection,
    ctx: ActorContext,
    project: dict,
    event: GitHubEvent,
    prefixes: tuple[str, ...] = DEFAULT_PREFIXES,
) -> WebhookOutcome:
    """Apply a webhook delivery to the project's board.

    Raises:
        BoardNotFound: the project points at a board that no longer exists.
    """
    board = await get_board(db, ctx.tenant_id, project["board_id"])
    if board is None:
        raise BoardNotFound(project["board_id"])

    outcome = WebhookOutcome()
    automation_event = None
    if event.event == "pull_request" and event.pull_request is not None:
        automation_event = await _handle_pull_request(
            db, ctx, project, board, event, prefixes, outcome
        )
    elif event.event == "issues" and event.issue is not None:
        automation_event = await _handle_issue(db, ctx, project, board, event, outcome)

    if automation_event is not None:
        outcome.rules = await process_event(db, ctx, automation_event)
    return outcome
