"""Command executor: carries out a parsed command against one board."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

import aiosqlite

from ...commands.models import DEFAULT_PRIORITY, CommandType, ParsedCommand, Priority, QueryKind
from ...commands.resolver import (
    ColumnNotFound,
    default_column,
    resolve_column,
    resolve_done_column,
    resolve_task,
)
from ..automation.engine import process_event
from ..automation.models import AutomationEvent, TriggerKind
from ..context import ActorContext
from ..errors import CommandParseError
from ..tasks import service as task_service

logger = logging.getLogger(__name__)

HELP_HINT = 'Try: "create task: ...", "move X to done", "show overdue tasks"'


@dataclass
class CommandResult:
    action: str
    message: str
    task: dict | None = None
    tasks: list[dict] | None = None
    automations: list = field(default_factory=list)

    def to_dict(self) -> dict:
        result: dict = {"action": self.action, "message": self.message}
        if self.task is not None:
            result["task"] = self.task
        if self.tasks is not None:
            result["tasks"] = self.tasks
        return result


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def _query_label(kind: QueryKind, arg: str | None) -> str:
    if kind is QueryKind.PRIORITY:
        return f"priority:{arg}"
    if kind is QueryKind.TEXT:
        return arg or ""
    return kind.value


class CommandExecutor:
    """Executes parsed commands for one actor on one board.

    ``board`` is a board dict with its ordered ``columns``. Resolution runs
    over a task snapshot taken when the command starts.
    """

    def __init__(
        self,
        db: aiosqlite.Connection,
        ctx: ActorContext,
        board: dict,
        today: date | None = None,
        query_limit: int = 20,
        stuck_days: int = 3,
    ):
        self.db = db
        self.ctx = ctx
        self.board = board
        self.columns = board["columns"]
        self.today = today or date.today()
        self.query_limit = query_limit
        self.stuck_days = stuck_days

    async def execute(self, cmd: ParsedCommand) -> CommandResult:
        """Run ``cmd``.

        Raises:
            CommandParseError: unknown command or a required fragment is missing.
            TaskNotFound, ColumnNotFound: a reference did not resolve.
        """
        handlers = {
            CommandType.CREATE: self._create,
            CommandType.MOVE: self._move,
            CommandType.COMPLETE: self._move,
            CommandType.PRIORITY: self._priority,
            CommandType.DUE: self._due,
            CommandType.ARCHIVE: self._archive,
            CommandType.QUERY: self._query,
        }
        handler = handlers.get(cmd.type)
        if handler is None:
            raise CommandParseError(f"I didn't understand that command. {HELP_HINT}")
        result = await handler(cmd)
        logger.info("Command %s on board %s: %s", cmd.type, self.board["id"], result.message)
        return result

    async def _snapshot(self, include_archived: bool = False) -> list[dict]:
        return await task_service.list_tasks(
            self.db, self.ctx.tenant_id, self.board["id"], include_archived=include_archived
        )

    async def _resolve(self, cmd: ParsedCommand, include_archived: bool = False) -> dict:
        if not cmd.task_ref:
            raise CommandParseError(f"Could not identify which task you mean. {HELP_HINT}")
        return resolve_task(await self._snapshot(include_archived), cmd.task_ref)

    def _note(self, cmd: ParsedCommand, verb: str) -> str:
        return f'{verb} via command: "{cmd.raw}"'

    async def _create(self, cmd: ParsedCommand) -> CommandResult:
        p = cmd.params
        if not p.title:
            raise CommandParseError('Could not extract a task title. Try: "create task: Title"')

        if p.column:
            column = resolve_column(self.columns, p.column)
        else:
            column = default_column(self.columns)
            if column is None:
                raise ColumnNotFound("todo")

        task = await task_service.insert_task(
            self.db,
            self.ctx,
            self.board["id"],
            column["id"],
            p.title,
            description=p.description or "",
            priority=p.priority or DEFAULT_PRIORITY,
            due_date=p.due_date,
            labels=p.labels,
            note=self._note(cmd, "Created"),
        )

        message = f'✅ Created task: "{task["title"]}" ({task["priority"].upper()})'
        if task["due_date"]:
            message += f" due {task['due_date']}"
        result = CommandResult(action="created", message=message, task=task)
        result.automations = await self._dispatch(TriggerKind.TASK_CREATED, task, to_column=column)
        return result

    async def _move(self, cmd: ParsedCommand) -> CommandResult:
        task = await self._resolve(cmd)
        if cmd.done_intent:
            column = resolve_done_column(self.columns)
        else:
            if not cmd.params.column:
                raise CommandParseError(f"Could not identify the target column. {HELP_HINT}")
            column = resolve_column(self.columns, cmd.params.column)

        from_column_id = task["column_id"]
        moved = await task_service.move_task(
            self.db, self.ctx, task, column["id"], note=self._note(cmd, "Moved")
        )
        result = CommandResult(
            action="moved", message=f'✅ Moved "{task["title"]}" to {column["title"]}', task=moved
        )
        if from_column_id != column["id"]:
            from_column = next((c for c in self.columns if c["id"] == from_column_id), None)
            result.automations = await self._dispatch(
                TriggerKind.TASK_MOVED, moved, from_column=from_column, to_column=column
            )
        return result

    async def _priority(self, cmd: ParsedCommand) -> CommandResult:
        if not cmd.params.priority:
            raise CommandParseError(f"Could not identify the priority. {HELP_HINT}")
        task = await self._resolve(cmd)
        priority = Priority(cmd.params.priority)
        updated = await task_service.set_priority(self.db, self.ctx, task, priority)
        return CommandResult(
            action="priority_changed",
            message=f'✅ Set priority of "{task["title"]}" to {priority.upper()}',
            task=updated,
        )

    async def _due(self, cmd: ParsedCommand) -> CommandResult:
        if not cmd.params.due_date:
            raise CommandParseError(f"Could not identify the due date. {HELP_HINT}")
        task = await self._resolve(cmd)
        updated = await task_service.set_due_date(self.db, self.ctx, task, cmd.params.due_date)
        return CommandResult(
            action="due_set",
            message=f'✅ Set due date of "{task["title"]}" to {cmd.params.due_date.isoformat()}',
            task=updated,
        )

    async def _archive(self, cmd: ParsedCommand) -> CommandResult:
        if cmd.params.query_kind is QueryKind.ALL_DONE:
            column = resolve_done_column(self.columns)
            archived = await task_service.archive_column_tasks(
                self.db, self.ctx, self.board["id"], column["id"]
            )
            return CommandResult(
                action="archived",
                message=f"✅ Archived {_plural(len(archived), 'completed task')}",
                tasks=archived,
            )

        # Archived tasks stay resolvable so a repeat archive is reported
        task = await self._resolve(cmd, include_archived=True)
        archived = await task_service.archive_task(self.db, self.ctx, task)
        return CommandResult(
            action="archived", message=f'✅ Archived "{task["title"]}"', task=archived
        )

    async def _query(self, cmd: ParsedCommand) -> CommandResult:
        kind = cmd.params.query_kind or QueryKind.ALL
        tasks = await task_service.query_tasks(
            self.db,
            self.ctx.tenant_id,
            self.board,
            kind,
            cmd.params.query,
            today=self.today,
            stuck_days=self.stuck_days,
            limit=self.query_limit,
        )
        if tasks:
            message = f"Found {_plural(len(tasks), 'task')}"
        else:
            message = f'No tasks found for "{_query_label(kind, cmd.params.query)}"'
        return CommandResult(action="query", message=message, tasks=tasks)

    async def _dispatch(
        self,
        trigger: TriggerKind,
        task: dict,
        from_column: dict | None = None,
        to_column: dict | None = None,
    ) -> list:
        if not self.ctx.dispatch_events:
            return []
        event = AutomationEvent(
            trigger=trigger,
            tenant_id=self.ctx.tenant_id,
            board_id=self.board["id"],
            task=task,
            from_column=from_column,
            to_column=to_column,
        )
        return await process_event(self.db, self.ctx, event)


async def execute_command(
    db: aiosqlite.Connection,
    ctx: ActorContext,
    board: dict,
    cmd: ParsedCommand,
    **options,
) -> CommandResult:
    """Convenience wrapper: ``CommandExecutor(db, ctx, board, **options).execute(cmd)``."""
    return await CommandExecutor(db, ctx, board, **options).execute(cmd)
