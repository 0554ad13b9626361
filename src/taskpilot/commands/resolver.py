"""Task and column resolution.

Both resolvers work on plain row dicts (as returned by the store) and
never touch the database: callers hand them a point-in-time snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence


class ResolutionError(LookupError):
    """A reference could not be mapped to a concrete entity."""

    status_code = 404

    def __init__(self, reference: str | None, message: str):
        super().__init__(message)
        self.reference = reference
        self.message = message


class TaskNotFound(ResolutionError):
    def __init__(self, reference: str | None):
        super().__init__(reference, f'Could not find task matching "{reference or ""}"')


class ColumnNotFound(ResolutionError):
    def __init__(self, name: str | None):
        super().__init__(name, f'Could not find column "{name or ""}"')


# Logical bucket -> keywords looked for in column titles. Order matters:
# the first family whose keyword appears in the requested name is used.
KEYWORD_FAMILIES: dict[str, tuple[str, ...]] = {
    "todo": ("to do", "todo", "backlog"),
    "in_progress": ("in progress", "doing", "progress"),
    "review": ("review", "testing"),
    "done": ("done", "complete", "finished"),
}


def bucket_for(name: str | None) -> str | None:
    """Return the keyword family a requested bucket name belongs to, if any."""
    if not name:
        return None
    lowered = name.lower()
    if lowered in KEYWORD_FAMILIES:
        return lowered
    for bucket, keywords in KEYWORD_FAMILIES.items():
        if any(k in lowered for k in keywords):
            return bucket
    return None


def _title(row: dict) -> str:
    return (row.get("title") or "").lower()


def _creation_key(task: dict) -> tuple:
    return (task.get("seq") or 0, task.get("created_at") or "", task.get("id") or "")


def resolve_task(tasks: Iterable[dict], reference: str | None) -> dict:
    """Find the task a free-text or id reference points at.

    Tiers, first hit wins:
      1. exact id
      2. exact title, case-insensitive
      3. substring either way, case-insensitive; several hits are broken
         by creation order (lowest ``seq``)

    Raises:
        TaskNotFound: nothing qualified; the reference is echoed back.
    """
    ref = (reference or "").strip()
    if not ref:
        raise TaskNotFound(reference)
    snapshot = list(tasks)

    for task in snapshot:
        if task.get("id") == ref:
            return task

    lowered = ref.lower()
    exact = [t for t in snapshot if _title(t) == lowered]
    if exact:
        return min(exact, key=_creation_key)

    partial = [t for t in snapshot if _title(t) and (lowered in _title(t) or _title(t) in lowered)]
    if partial:
        return min(partial, key=_creation_key)

    raise TaskNotFound(reference)


def find_column_by_family(columns: Sequence[dict], bucket: str) -> dict | None:
    """First column (by position) whose title contains a keyword of ``bucket``."""
    keywords = KEYWORD_FAMILIES[bucket]
    for column in sorted(columns, key=lambda c: c.get("position", 0)):
        if any(k in _title(column) for k in keywords):
            return column
    return None


def resolve_done_column(columns: Sequence[dict]) -> dict:
    """The column a completion intent targets."""
    column = find_column_by_family(columns, "done")
    if column is None:
        raise ColumnNotFound("done")
    return column


def resolve_column(columns: Sequence[dict], name: str | None) -> dict:
    """Map a requested bucket name to one of the board's columns.

    Direct substring match against column titles first, then the
    keyword-family table.

    Raises:
        ColumnNotFound: neither step produced a column.
    """
    requested = (name or "").strip().lower()
    if not requested:
        raise ColumnNotFound(name)
    ordered = sorted(columns, key=lambda c: c.get("position", 0))

    for column in ordered:
        title = _title(column)
        if title and (requested in title or title in requested):
            return column

    for bucket, keywords in KEYWORD_FAMILIES.items():
        if requested == bucket or any(k in requested for k in keywords):
            column = find_column_by_family(ordered, bucket)
            if column is not None:
                return column

    raise ColumnNotFound(name)


def default_column(columns: Sequence[dict]) -> dict | None:
    """Where new tasks land: the todo-family column, else the first column."""
    if not columns:
        return None
    return find_column_by_family(columns, "todo") or min(
        columns, key=lambda c: c.get("position", 0)
    )
