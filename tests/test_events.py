"""Tests for units of work and the board event stream."""

from __future__ import annotations

import asyncio
import json

import pytest
from conftest import BOARD, TENANT

from taskpilot.web.db.database import after_commit, transaction
from taskpilot.web.events import Event, EventType
from taskpilot.web.events.router import board_stream, format_event
from taskpilot.web.tasks import service as task_service


async def _titles(db) -> list[str]:
    return [t["title"] for t in await task_service.list_tasks(db, TENANT, BOARD)]


class TestTransaction:
    async def test_commits_on_success(self, db, ctx):
        async with transaction(db):
            await task_service.insert_task(db, ctx, BOARD, "col_backlog", "Kept")
        assert not db.in_transaction
        assert await _titles(db) == ["Kept"]

    async def test_rolls_back_whole_unit(self, db, ctx):
        with pytest.raises(RuntimeError):
            async with transaction(db):
                await task_service.insert_task(db, ctx, BOARD, "col_backlog", "First")
                await task_service.insert_task(db, ctx, BOARD, "col_backlog", "Second")
                raise RuntimeError("boom")
        assert await _titles(db) == []
        cursor = await db.execute("SELECT COUNT(*) FROM activities")
        assert (await cursor.fetchone())[0] == 0

    async def test_nested_failure_keeps_outer_writes(self, db, ctx):
        async with transaction(db):
            await task_service.insert_task(db, ctx, BOARD, "col_backlog", "Outer")
            with pytest.raises(RuntimeError):
                async with transaction(db):
                    await task_service.insert_task(db, ctx, BOARD, "col_backlog", "Inner")
                    raise RuntimeError("boom")
        assert await _titles(db) == ["Outer"]

    async def test_concurrent_units_do_not_interleave(self, db, ctx):
        async def failing():
            async with transaction(db):
                await task_service.insert_task(db, ctx, BOARD, "col_backlog", "Doomed")
                await asyncio.sleep(0)
                raise RuntimeError("boom")

        results = await asyncio.gather(
            failing(),
            task_service.insert_task(db, ctx, BOARD, "col_backlog", "Survivor"),
            return_exceptions=True,
        )
        assert isinstance(results[0], RuntimeError)
        assert results[1]["title"] == "Survivor"
        assert await _titles(db) == ["Survivor"]

    async def test_after_commit_callbacks(self, db):
        calls: list[str] = []

        async def record(name):
            calls.append(name)

        async with transaction(db):
            await after_commit(db, lambda: record("outer"))
            with pytest.raises(RuntimeError):
                async with transaction(db):
                    await after_commit(db, lambda: record("dropped"))
                    raise RuntimeError("boom")
            assert calls == []
        assert calls == ["outer"]

        await after_commit(db, lambda: record("immediate"))
        assert calls == ["outer", "immediate"]


class TestBoardStream:
    async def test_streams_committed_changes(self, db, ctx):
        stream = board_stream(BOARD, heartbeat=5)
        message = asyncio.ensure_future(anext(stream))
        await asyncio.sleep(0)
        try:
            task = await task_service.insert_task(db, ctx, BOARD, "col_backlog", "Watched")
            body = json.loads((await asyncio.wait_for(message, 5))["data"])
        finally:
            await stream.aclose()
        assert body["type"] == "task_created"
        assert body["task"]["id"] == task["id"]

    async def test_rolled_back_changes_are_not_streamed(self, db, ctx):
        stream = board_stream(BOARD, heartbeat=0.05)
        message = asyncio.ensure_future(anext(stream))
        await asyncio.sleep(0)
        try:
            with pytest.raises(RuntimeError):
                async with transaction(db):
                    await task_service.insert_task(db, ctx, BOARD, "col_backlog", "Ghost")
                    raise RuntimeError("boom")
            body = json.loads((await asyncio.wait_for(message, 5))["data"])
        finally:
            await stream.aclose()
        assert body["type"] == "heartbeat"


class TestFormatEvent:
    def test_entity_events_are_wrapped(self):
        event = Event(event_type=EventType.TASK_UPDATED, data={"id": "task_1"})
        assert format_event(event) == {"type": "task_updated", "task": {"id": "task_1"}}

    def test_structured_events_are_flat(self):
        event = Event(
            event_type=EventType.NOTIFICATION, data={"rule_id": "rule_1", "message": "hi"}
        )
        assert format_event(event) == {
            "type": "notification",
            "rule_id": "rule_1",
            "message": "hi",
        }
