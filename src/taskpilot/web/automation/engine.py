"""Automation rule engine.

For each event: match enabled rules for the trigger, evaluate their
conditions, execute the action through the task store primitives as the
system actor, and count the rule only when the action went through.
Rules are isolated from each other: a rule that cannot resolve its target
is skipped and a rule that errors is logged. Either way nothing the rule
wrote is kept and the batch moves on to the next rule.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from functools import partial

import aiosqlite

from ...commands.extractor import parse_priority
from ...commands.models import DEFAULT_PRIORITY
from ...commands.resolver import (
    ColumnNotFound,
    ResolutionError,
    TaskNotFound,
    default_column,
    find_column_by_family,
    resolve_column,
)
from ..activity.service import log_activity
from ..boards.service import get_board
from ..context import ActorContext
from ..db.database import after_commit, transaction
from ..errors import CommandError
from ..events import Event, EventType, event_manager
from ..links import service as link_service
from ..tasks import service as task_service
from . import service
from .models import ActionKind, AutomationEvent, RuleConditions, RuleOutcome
from .templates import (
    DEFAULT_ISSUE_DESCRIPTION,
    DEFAULT_PR_REVIEW_DESCRIPTION,
    DEFAULT_PR_REVIEW_TITLE,
    render,
)

logger = logging.getLogger(__name__)

ActionHandler = Callable[
    [aiosqlite.Connection, ActorContext, dict, AutomationEvent, dict], Awaitable[str]
]


def evaluate_conditions(
    conditions: RuleConditions, event: AutomationEvent, columns: Sequence[dict] = ()
) -> bool:
    """True when the event satisfies every narrowing condition the rule sets.

    ``columns`` are the board's columns, used to name the column of an
    event that only carries its task.
    """
    if conditions.labels:
        have = {label.lower() for label in event.labels}
        if not all(label.lower() in have for label in conditions.labels):
            return False

    if conditions.title_pattern:
        try:
            if not re.search(conditions.title_pattern, event.subject_title, re.I):
                return False
        except re.error:
            logger.warning("Invalid title_pattern %r", conditions.title_pattern)
            return False

    if conditions.branches:
        pr = event.pull_request
        if pr is None or pr.base.ref not in conditions.branches:
            return False

    if conditions.columns:
        column = event.to_column
        if column is None and event.task is not None:
            column_id = event.task["column_id"]
            column = next(
                (c for c in columns if c["id"] == column_id), {"id": column_id, "title": ""}
            )
        if column is None:
            return False
        wanted = {c.lower() for c in conditions.columns}
        if column["id"].lower() not in wanted and column["title"].lower() not in wanted:
            return False

    if conditions.priorities:
        if event.task is None or event.task.get("priority") not in conditions.priorities:
            return False

    return True


async def _targets(db: aiosqlite.Connection, event: AutomationEvent) -> list[dict]:
    """The event's tasks as they are now, after earlier rules had their turn."""
    targets = []
    for task in event.targets:
        current = await task_service.get_task(db, event.tenant_id, task["id"])
        if current is not None:
            targets.append(current)
    if not targets:
        raise TaskNotFound(f"task referenced by {event.trigger}")
    return targets


def _note(rule: dict) -> str:
    return f'Automation: rule "{rule["name"]}"'


async def _create_task(db, ctx, rule, event, board) -> str:
    params = rule["action_params"]
    variables = event.variables()
    columns = board["columns"]

    if params.get("column"):
        column = resolve_column(columns, render(params["column"], variables))
    elif event.trigger.is_pull_request:
        column = find_column_by_family(columns, "review")
        if column is None:
            raise ColumnNotFound("review")
    else:
        column = default_column(columns)
        if column is None:
            raise ColumnNotFound("todo")

    pr, issue = event.pull_request, event.issue
    if pr is not None:
        title_tpl, desc_tpl = DEFAULT_PR_REVIEW_TITLE, DEFAULT_PR_REVIEW_DESCRIPTION
        labels = ["pr-review"]
    elif issue is not None:
        title_tpl, desc_tpl = "{{issue.title}}", DEFAULT_ISSUE_DESCRIPTION
        labels = ["github-issue", *issue.label_names]
    else:
        title_tpl, desc_tpl, labels = "Follow up: {{task.title}}", "", []

    title = render(params.get("title") or title_tpl, variables).strip()
    if not title:
        raise CommandError("Rule produced an empty task title")
    description = render(params.get("description") or desc_tpl, variables)
    if params.get("labels"):
        labels = [render(label, variables) for label in params["labels"]]
    priority = parse_priority(str(params.get("priority") or "")) or DEFAULT_PRIORITY

    task = await task_service.insert_task(
        db,
        ctx,
        board["id"],
        column["id"],
        title,
        description=description,
        priority=priority,
        labels=labels,
        note=_note(rule),
    )
    if pr is not None:
        await link_service.link_pull_request(db, ctx.tenant_id, task, event.repo, pr)
    elif issue is not None:
        await link_service.link_issue(db, ctx.tenant_id, task, event.repo, issue)
    return f'Created task "{task["title"]}" in {column["title"]}'


async def _move_task(db, ctx, rule, event, board) -> str:
    params = rule["action_params"]
    target = params.get("column") or params.get("to_column")
    column = resolve_column(board["columns"], render(target, event.variables()))
    targets = await _targets(db, event)
    for task in targets:
        await task_service.move_task(db, ctx, task, column["id"], note=_note(rule))
    return f"Moved {len(targets)} task(s) to {column['title']}"


async def _update_task(db, ctx, rule, event, board) -> str:
    params = rule["action_params"]
    variables = event.variables()
    updates = {
        key: render(params[key], variables) for key in ("title", "description") if params.get(key)
    }
    priority = parse_priority(str(params.get("priority") or ""))
    if not updates and priority is None:
        raise CommandError("update_task needs a title, description or priority")

    targets = await _targets(db, event)
    for task in targets:
        if updates:
            task = await task_service.update_task(db, ctx, task, updates)
        if priority is not None and task.get("priority") != priority.value:
            await task_service.set_priority(db, ctx, task, priority)
    return f"Updated {len(targets)} task(s)"


async def _add_label(db, ctx, rule, event, board) -> str:
    params = rule["action_params"]
    variables = event.variables()
    wanted = params.get("labels") or [params.get("label")]
    wanted = [render(label, variables) for label in wanted if label]
    if not wanted:
        raise CommandError("add_label needs a label")

    targets = await _targets(db, event)
    for task in targets:
        labels = list(task.get("labels", []))
        labels += [label for label in wanted if label not in labels]
        await task_service.update_task(db, ctx, task, {"labels": labels})
    return f"Labelled {len(targets)} task(s) with {', '.join(wanted)}"


async def _add_comment(db, ctx, rule, event, board) -> str:
    params = rule["action_params"]
    content = render(params.get("comment") or params.get("content"), event.variables()).strip()
    if not content:
        raise CommandError("add_comment needs a comment")

    targets = await _targets(db, event)
    for task in targets:
        await task_service.add_comment(db, ctx, task, content)
    return f"Commented on {len(targets)} task(s)"


async def _notify(db, ctx, rule, event, board) -> str:
    params = rule["action_params"]
    default = f'Rule "{rule["name"]}" triggered by {event.trigger}'
    message = render(params.get("message"), event.variables()) or default
    targets = event.targets
    task_id = targets[0]["id"] if targets else None

    await log_activity(db, ctx, board["id"], "notified", task_id, {"message": message})
    notification = Event(
        event_type=EventType.NOTIFICATION,
        data={"rule_id": rule["id"], "message": message, "task_id": task_id},
    )
    await after_commit(db, partial(event_manager.publish_to_board, board["id"], notification))
    logger.info("Notification from rule %s: %s", rule["id"], message)
    return message


async def _archive_task(db, ctx, rule, event, board) -> str:
    targets = await _targets(db, event)
    for task in targets:
        await task_service.archive_task(db, ctx, task)
    return f"Archived {len(targets)} task(s)"


ACTIONS: dict[ActionKind, ActionHandler] = {
    ActionKind.CREATE_TASK: _create_task,
    ActionKind.MOVE_TASK: _move_task,
    ActionKind.UPDATE_TASK: _update_task,
    ActionKind.ADD_LABEL: _add_label,
    ActionKind.ADD_COMMENT: _add_comment,
    ActionKind.NOTIFY: _notify,
    ActionKind.ARCHIVE_TASK: _archive_task,
}


async def process_event(
    db: aiosqlite.Connection, ctx: ActorContext, event: AutomationEvent
) -> list[RuleOutcome]:
    """Run every qualifying rule for ``event``, one after another.

    Each rule is its own unit of work: its action and its trigger count
    commit together, or nothing it wrote is kept.
    """
    board = await get_board(db, event.tenant_id, event.board_id)
    if board is None:
        logger.warning("Automation event %s for unknown board %s", event.trigger, event.board_id)
        return []

    system = ctx.as_system()
    rules = await service.match_rules(
        db, event.tenant_id, event.trigger.value, event.board_id, event.project_id
    )
    outcomes: list[RuleOutcome] = []

    for rule in rules:
        if not evaluate_conditions(rule["conditions"], event, board["columns"]):
            logger.debug("Rule %s conditions not met", rule["id"])
            continue

        handler = ACTIONS.get(rule["action"])
        if handler is None:
            logger.warning("Rule %s has unsupported action %r", rule["id"], rule["action"])
            outcomes.append(RuleOutcome(rule["id"], rule["name"], "skipped", "unsupported action"))
            continue

        try:
            async with transaction(db):
                message = await handler(db, system, rule, event, board)
                await service.record_trigger(db, rule["id"])
        except ResolutionError as e:
            logger.warning("Rule %s skipped: %s", rule["id"], e.message)
            outcomes.append(RuleOutcome(rule["id"], rule["name"], "skipped", e.message))
            continue
        except CommandError as e:
            logger.warning("Rule %s failed: %s", rule["id"], e.message)
            outcomes.append(RuleOutcome(rule["id"], rule["name"], "failed", e.message))
            continue
        except Exception as e:
            logger.exception("Rule %s failed", rule["id"])
            outcomes.append(RuleOutcome(rule["id"], rule["name"], "failed", str(e)))
            continue

        logger.info("Rule %s executed: %s", rule["id"], message)
        outcomes.append(RuleOutcome(rule["id"], rule["name"], "executed", message))

    return outcomes
