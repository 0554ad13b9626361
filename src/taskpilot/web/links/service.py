"""External link service.

A link ties a task to an object in another system. Link ids are derived
from (task, type, external id), so re-ingesting the same PR or issue
updates the existing row instead of adding a new one.
"""

from __future__ import annotations

import json
from functools import partial

import aiosqlite

from ...integrations.github.models import Issue, PullRequest
from ..db.database import after_commit, transaction
from ..events import Event, EventType, event_manager

_TYPE_TAGS = {"github_pr": "pr", "github_issue": "issue", "url": "url"}


def link_id(task_id: str, link_type: str, external_id: str) -> str:
    return f"link_{task_id}_{_TYPE_TAGS.get(link_type, link_type)}_{external_id}"


def _row_to_link(row: aiosqlite.Row) -> dict:
    link = dict(row)
    link["metadata"] = json.loads(link.pop("metadata_json") or "{}")
    return link


async def get_link(db: aiosqlite.Connection, tenant_id: str, id_: str) -> dict | None:
    cursor = await db.execute(
        "SELECT * FROM external_links WHERE id = ? AND tenant_id = ?", (id_, tenant_id)
    )
    row = await cursor.fetchone()
    return _row_to_link(row) if row else None


async def upsert_link(
    db: aiosqlite.Connection,
    tenant_id: str,
    task: dict,
    link_type: str,
    external_id: str,
    url: str = "",
    title: str = "",
    status: str = "unknown",
    metadata: dict | None = None,
) -> dict:
    """Create the link or refresh its url/title/status/metadata."""
    id_ = link_id(task["id"], link_type, external_id)
    async with transaction(db):
        await db.execute(
            """INSERT INTO external_links (id, tenant_id, task_id, board_id, link_type,
               external_id, url, title, status, metadata_json)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   url = excluded.url,
                   title = excluded.title,
                   status = excluded.status,
                   metadata_json = excluded.metadata_json,
                   updated_at = CURRENT_TIMESTAMP,
                   synced_at = CURRENT_TIMESTAMP""",
            (
                id_,
                tenant_id,
                task["id"],
                task["board_id"],
                link_type,
                external_id,
                url,
                title,
                status,
                json.dumps(metadata or {}),
            ),
        )
        link = await get_link(db, tenant_id, id_)
        event = Event(event_type=EventType.LINK_UPDATED, data=link)
        await after_commit(db, partial(event_manager.publish_to_board, task["board_id"], event))
    return link


async def set_link_status(
    db: aiosqlite.Connection, tenant_id: str, link: dict, status: str
) -> dict:
    async with transaction(db):
        await db.execute(
            """UPDATE external_links SET status = ?, updated_at = CURRENT_TIMESTAMP,
               synced_at = CURRENT_TIMESTAMP WHERE id = ? AND tenant_id = ?""",
            (status, link["id"], tenant_id),
        )
    return await get_link(db, tenant_id, link["id"])


async def list_links(db: aiosqlite.Connection, tenant_id: str, task_id: str) -> list[dict]:
    cursor = await db.execute(
        """SELECT * FROM external_links WHERE tenant_id = ? AND task_id = ?
           ORDER BY created_at, id""",
        (tenant_id, task_id),
    )
    return [_row_to_link(r) for r in await cursor.fetchall()]


async def find_github_links(
    db: aiosqlite.Connection,
    tenant_id: str,
    link_type: str,
    number: int,
    owner: str,
    repo: str,
) -> list[dict]:
    """Links to a PR or issue number of one repository."""
    cursor = await db.execute(
        """SELECT * FROM external_links
           WHERE tenant_id = ? AND link_type = ? AND external_id = ?
             AND lower(json_extract(metadata_json, '$.owner')) = lower(?)
             AND lower(json_extract(metadata_json, '$.repo')) = lower(?)
           ORDER BY created_at, id""",
        (tenant_id, link_type, str(number), owner, repo),
    )
    return [_row_to_link(r) for r in await cursor.fetchall()]


def _split_repo(repo: str) -> tuple[str, str]:
    owner, _, name = repo.partition("/")
    return owner, name


async def link_pull_request(
    db: aiosqlite.Connection, tenant_id: str, task: dict, repo: str, pr: PullRequest
) -> dict:
    owner, name = _split_repo(repo)
    return await upsert_link(
        db,
        tenant_id,
        task,
        "github_pr",
        str(pr.number),
        url=pr.html_url,
        title=pr.title,
        status=pr.link_status,
        metadata={
            "owner": owner,
            "repo": name,
            "number": pr.number,
            "author": pr.author,
            "labels": pr.label_names,
            "head_branch": pr.head.ref,
            "base_branch": pr.base.ref,
        },
    )


async def link_issue(
    db: aiosqlite.Connection, tenant_id: str, task: dict, repo: str, issue: Issue
) -> dict:
    owner, name = _split_repo(repo)
    return await upsert_link(
        db,
        tenant_id,
        task,
        "github_issue",
        str(issue.number),
        url=issue.html_url,
        title=issue.title,
        status="closed" if issue.state == "closed" else "open",
        metadata={
            "owner": owner,
            "repo": name,
            "number": issue.number,
            "author": issue.author,
            "labels": issue.label_names,
        },
    )
