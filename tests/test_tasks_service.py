"""Tests for the task service store primitives."""

from __future__ import annotations

from datetime import date

import aiosqlite
import pytest

from taskpilot.commands.models import QueryKind
from taskpilot.integrations.github.refs import TaskRef
from taskpilot.web.activity.service import log_activity
from taskpilot.web.context import Actor, ActorContext
from taskpilot.web.errors import TaskAlreadyArchived, TaskNotArchived
from taskpilot.web.events import EventType, event_manager
from taskpilot.web.tasks import service

from conftest import BOARD, TENANT

TODAY = date(2026, 10, 14)


class TestInsertTask:
    async def test_sequence_and_position(self, db, ctx, make_task, activities):
        await make_task("Existing", position=4)
        task = await service.insert_task(db, ctx, BOARD, "col_backlog", "New one")
        assert task["seq"] == 2
        assert task["position"] == 5
        assert task["priority"] == "p2"
        assert task["labels"] == []
        assert task["created_by"] == "human"

        records = await activities(task["id"])
        assert [r["action"] for r in records] == ["created"]
        assert records[0]["details"] == {"column": "Backlog"}

    async def test_sequence_is_per_tenant(self, db, ctx, make_task):
        await make_task("Other tenant", tenant_id="t2")
        task = await service.insert_task(db, ctx, BOARD, "col_backlog", "Mine")
        # Fixture seqs are global to the test, so t2 holds seq 1
        assert task["seq"] == 1

    async def test_fields_and_note(self, db, ctx, activities):
        task = await service.insert_task(
            db,
            ctx,
            BOARD,
            "col_progress",
            "Ship it",
            description="all of it",
            priority="p0",
            due_date=date(2026, 11, 1),
            labels=["release"],
            note="from test",
        )
        assert task["due_date"] == "2026-11-01"
        assert task["labels"] == ["release"]
        assert task["position"] == 0
        records = await activities(task["id"])
        assert records[0]["details"] == {"column": "In Progress", "note": "from test"}

    async def test_publishes_board_event(self, db, ctx):
        queue = await event_manager.subscribe(f"board:{BOARD}")
        try:
            task = await service.insert_task(db, ctx, BOARD, "col_backlog", "Watched")
            event = queue.get_nowait()
            assert event.event_type == EventType.TASK_CREATED
            assert event.data["id"] == task["id"]
        finally:
            await event_manager.unsubscribe(f"board:{BOARD}", queue)


class TestMoveTask:
    async def test_moves_to_bottom(self, db, ctx, make_task, activities):
        await make_task("Done already", column_id="col_done", position=2)
        task_id = await make_task("Mover", column_id="col_progress")
        task = await service.get_task(db, TENANT, task_id)

        moved = await service.move_task(db, ctx, task, "col_done")
        assert moved["column_id"] == "col_done"
        assert moved["position"] == 3

        records = await activities(task_id)
        assert len(records) == 1
        assert records[0]["action"] == "moved"
        assert records[0]["details"]["from"] == "In Progress"
        assert records[0]["details"]["to"] == "Done"

    async def test_same_column_is_noop(self, db, ctx, make_task, activities):
        task_id = await make_task("Stay")
        task = await service.get_task(db, TENANT, task_id)
        assert await service.move_task(db, ctx, task, "col_backlog") == task
        assert await activities(task_id) == []


class TestUpdates:
    async def test_set_priority(self, db, ctx, make_task, activities):
        task = await service.get_task(db, TENANT, await make_task("P"))
        updated = await service.set_priority(db, ctx, task, "p0")
        assert updated["priority"] == "p0"
        assert (await activities(task["id"]))[0]["details"] == {"from": "p2", "to": "p0"}

    async def test_set_due_date(self, db, ctx, make_task, activities):
        task = await service.get_task(db, TENANT, await make_task("D"))
        updated = await service.set_due_date(db, ctx, task, date(2026, 10, 16))
        assert updated["due_date"] == "2026-10-16"
        details = (await activities(task["id"]))[0]["details"]
        assert details == {"field": "due_date", "from": None, "to": "2026-10-16"}

    async def test_update_task_only_changed_fields(self, db, ctx, make_task, activities):
        task = await service.get_task(db, TENANT, await make_task("Same", labels=["a"]))
        updated = await service.update_task(
            db, ctx, task, {"title": "Same", "labels": ["a", "b"], "priority": "p0"}
        )
        assert updated["labels"] == ["a", "b"]
        assert updated["priority"] == "p2"
        details = (await activities(task["id"]))[0]["details"]
        assert details == {"fields": {"labels": {"from": ["a"], "to": ["a", "b"]}}}

    async def test_update_without_changes(self, db, ctx, make_task, activities):
        task = await service.get_task(db, TENANT, await make_task("Same"))
        assert await service.update_task(db, ctx, task, {"title": "Same"}) == task
        assert await activities(task["id"]) == []

    async def test_add_comment(self, db, ctx, make_task, activities):
        task = await service.get_task(db, TENANT, await make_task("C"))
        comment = await service.add_comment(db, ctx, task, "Looks good")
        assert comment["author"] == "user1"
        assert comment["content"] == "Looks good"
        assert (await activities(task["id"]))[0]["action"] == "commented"


class TestArchive:
    async def test_archive_and_restore(self, db, ctx, make_task, activities):
        task = await service.get_task(db, TENANT, await make_task("Old"))
        archived = await service.archive_task(db, ctx, task)
        assert archived["archived"] is True
        assert archived["archived_by"] == "human"
        assert archived["archived_at"]

        with pytest.raises(TaskAlreadyArchived):
            await service.archive_task(db, ctx, archived)

        restored = await service.restore_task(db, ctx, archived)
        assert restored["archived"] is False
        assert restored["archived_at"] is None

        with pytest.raises(TaskNotArchived):
            await service.restore_task(db, ctx, restored)

        assert [r["action"] for r in await activities(task["id"])] == ["archived", "restored"]

    async def test_archive_column(self, db, ctx, make_task, activities):
        ids = [await make_task(f"Done {i}", column_id="col_done") for i in range(3)]
        await make_task("Already gone", column_id="col_done", archived=True)
        await make_task("Not done")

        archived = await service.archive_column_tasks(db, ctx, BOARD, "col_done")
        assert [t["id"] for t in archived] == ids
        assert all(t["archived"] for t in archived)
        for task_id in ids:
            records = await activities(task_id)
            assert [(r["action"], r["details"]) for r in records] == [("archived", {"bulk": True})]

    async def test_archive_empty_column(self, db, ctx):
        assert await service.archive_column_tasks(db, ctx, BOARD, "col_done") == []

    async def test_archived_tasks_hidden_from_snapshot(self, db, make_task):
        await make_task("Visible")
        await make_task("Hidden", archived=True)
        titles = [t["title"] for t in await service.list_tasks(db, TENANT, BOARD)]
        assert titles == ["Visible"]
        everything = await service.list_tasks(db, TENANT, BOARD, include_archived=True)
        assert len(everything) == 2


class TestFindTasksByRefs:
    async def test_by_id_and_seq(self, db, make_task):
        first = await make_task("First")
        second = await make_task("Second")
        found = await service.find_tasks_by_refs(
            db, TENANT, [TaskRef("seq", "2"), TaskRef("id", first), TaskRef("seq", "2")]
        )
        assert [t["id"] for t in found] == [second, first]

    async def test_skips_archived_and_other_tenants(self, db, make_task):
        archived = await make_task("Gone", archived=True)
        foreign = await make_task("Theirs", tenant_id="t2")
        refs = [TaskRef("id", archived), TaskRef("id", foreign)]
        assert await service.find_tasks_by_refs(db, TENANT, refs) == []

    async def test_board_scope(self, db, make_task):
        task_id = await make_task("Here")
        refs = [TaskRef("id", task_id)]
        assert await service.find_tasks_by_refs(db, TENANT, refs, board_id="elsewhere") == []


class TestQueryTasks:
    async def test_priority_sorted(self, db, board, make_task):
        await make_task("Low one", priority="p3")
        a = await make_task("High B", priority="p1", position=5)
        b = await make_task("High A", priority="p1", position=1)
        found = await service.query_tasks(db, TENANT, board, QueryKind.PRIORITY, "p1")
        assert [t["id"] for t in found] == [b, a]

    async def test_all_is_priority_ordered(self, db, board, make_task):
        await make_task("Later", priority="p3")
        urgent = await make_task("Now", priority="p0", column_id="col_done")
        found = await service.query_tasks(db, TENANT, board, QueryKind.ALL)
        assert found[0]["id"] == urgent
        assert len(found) == 2

    async def test_overdue(self, db, board, make_task):
        late = await make_task("Late", due_date="2026-10-01")
        await make_task("Future", due_date="2026-10-20")
        await make_task("Undated")
        found = await service.query_tasks(db, TENANT, board, QueryKind.OVERDUE, today=TODAY)
        assert [t["id"] for t in found] == [late]

    async def test_stuck(self, db, board, make_task):
        stale = await make_task("Stale", column_id="col_progress", updated_at="2020-01-01 00:00:00")
        await make_task("Fresh", column_id="col_progress")
        await make_task("Stale backlog", updated_at="2020-01-01 00:00:00")
        found = await service.query_tasks(db, TENANT, board, QueryKind.STUCK)
        assert [t["id"] for t in found] == [stale]

    async def test_column_kinds(self, db, board, make_task):
        todo = await make_task("Todo")
        doing = await make_task("Doing", column_id="col_progress")
        done = await make_task("Done", column_id="col_done")
        expected = {QueryKind.TODO: todo, QueryKind.IN_PROGRESS: doing, QueryKind.DONE: done}
        for kind, task_id in expected.items():
            found = await service.query_tasks(db, TENANT, board, kind)
            assert [t["id"] for t in found] == [task_id]

    async def test_missing_family_column_finds_nothing(self, db, board, make_task):
        await make_task("Done", column_id="col_done")
        no_done = {**board, "columns": [c for c in board["columns"] if c["title"] != "Done"]}
        assert await service.query_tasks(db, TENANT, no_done, QueryKind.DONE) == []

    async def test_text(self, db, board, make_task):
        hit = await make_task("Fix LOGIN redirect")
        await make_task("Write docs")
        found = await service.query_tasks(db, TENANT, board, QueryKind.TEXT, "login")
        assert [t["id"] for t in found] == [hit]

    async def test_limit_and_archived(self, db, board, make_task):
        for i in range(5):
            await make_task(f"Task {i}")
        await make_task("Archived", archived=True, priority="p0")
        found = await service.query_tasks(db, TENANT, board, QueryKind.ALL, limit=3)
        assert len(found) == 3
        assert all(not t["archived"] for t in found)


class TestActivityLog:
    async def test_append_only(self, db, make_task):
        task_id = await make_task("Logged")
        agent_ctx = ActorContext(tenant_id=TENANT, actor=Actor.AGENT)
        record = await log_activity(db, agent_ctx, BOARD, "commented", task_id)
        await db.commit()
        assert record["actor"] == "agent"

        with pytest.raises(aiosqlite.IntegrityError):
            await db.execute("DELETE FROM activities WHERE id = ?", (record["id"],))
