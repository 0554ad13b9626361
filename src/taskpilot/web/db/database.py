"""Async SQLite connection manager (singleton pattern).

All writes go through `transaction()`. The process shares one connection,
so a unit of work holds that connection's write lock from its first
statement to its commit or rollback, and a rollback only ever discards
its own statements.
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from pathlib import Path

import aiosqlite

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

_db: aiosqlite.Connection | None = None
_db_path: str = ""


async def connect(db_path: str) -> aiosqlite.Connection:
    """Open a connection with row access by name and the schema applied."""
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    db = await aiosqlite.connect(db_path)
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA journal_mode=WAL")
    await db.execute("PRAGMA foreign_keys=ON")

    await db.executescript(SCHEMA_PATH.read_text())
    await db.commit()

    await _run_migrations(db)
    return db


async def init_db(db_path: str) -> None:
    """Initialize the process-wide connection and run schema."""
    global _db, _db_path
    _db_path = db_path
    _db = await connect(db_path)


async def _run_migrations(db: aiosqlite.Connection) -> None:
    """Add columns that may be missing from older databases."""
    cursor = await db.execute("PRAGMA table_info(tasks)")
    task_cols = {row[1] for row in await cursor.fetchall()}
    if "archived_by" not in task_cols:
        await db.execute("ALTER TABLE tasks ADD COLUMN archived_by TEXT")

    cursor = await db.execute("PRAGMA table_info(automation_rules)")
    rule_cols = {row[1] for row in await cursor.fetchall()}
    if "board_id" not in rule_cols:
        await db.execute("ALTER TABLE automation_rules ADD COLUMN board_id TEXT")

    # Stored actor values predating the canonical set
    await db.execute(
        "UPDATE tasks SET created_by = 'agent' WHERE created_by IN ('moltbot', 'bot')"
    )

    await db.commit()


async def get_db() -> aiosqlite.Connection:
    """Get the active database connection."""
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _db


@dataclass
class _UnitOfWork:
    db: aiosqlite.Connection
    depth: int = 0
    on_commit: list[Callable[[], Awaitable[None]]] = field(default_factory=list)


_write_locks: weakref.WeakKeyDictionary[aiosqlite.Connection, asyncio.Lock] = (
    weakref.WeakKeyDictionary()
)
_current_unit: ContextVar[_UnitOfWork | None] = ContextVar("taskpilot_unit", default=None)


@asynccontextmanager
async def transaction(db: aiosqlite.Connection) -> AsyncIterator[None]:
    """Run the enclosed writes as one atomic unit of work.

    The outermost unit takes the connection's write lock, commits on exit
    and rolls back if the block raises. A unit opened inside another one
    becomes a savepoint: it rolls back its own writes on error and is
    committed, or discarded, with the enclosing unit.
    """
    unit = _current_unit.get()
    if unit is not None and unit.db is db:
        unit.depth += 1
        savepoint = f"unit_{unit.depth}"
        mark = len(unit.on_commit)
        await db.execute(f"SAVEPOINT {savepoint}")
        try:
            yield
        except BaseException:
            await db.execute(f"ROLLBACK TO {savepoint}")
            await db.execute(f"RELEASE {savepoint}")
            del unit.on_commit[mark:]
            raise
        else:
            await db.execute(f"RELEASE {savepoint}")
        finally:
            unit.depth -= 1
        return

    lock = _write_locks.setdefault(db, asyncio.Lock())
    async with lock:
        unit = _UnitOfWork(db)
        token = _current_unit.set(unit)
        try:
            if not db.in_transaction:
                await db.execute("BEGIN")
            try:
                yield
            except BaseException:
                await db.rollback()
                raise
            await db.commit()
        finally:
            _current_unit.reset(token)

    for callback in unit.on_commit:
        await callback()


async def after_commit(db: aiosqlite.Connection, callback: Callable[[], Awaitable[None]]) -> None:
    """Run ``callback`` once the current unit of work on ``db`` commits.

    Outside a unit of work the callback runs straight away. Callbacks of a
    unit that rolls back are dropped.
    """
    unit = _current_unit.get()
    if unit is not None and unit.db is db:
        unit.on_commit.append(callback)
    else:
        await callback()


async def close_db() -> None:
    """Close the database connection."""
    global _db
    if _db is not None:
        await _db.close()
        _db = None
