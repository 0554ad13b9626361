"""Find task references in external text (PR titles, issue bodies)."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

# task_ followed by exactly 16 hex chars, the shape of generated task ids
TASK_ID_PATTERN = re.compile(r"\btask_[a-f0-9]{16}\b", re.I)

DEFAULT_PREFIXES = ("TP",)


@dataclass(frozen=True)
class TaskRef:
    """A reference to a task, either by id or by per-tenant sequence number."""

    kind: str  # "id" or "seq"
    value: str

    @property
    def seq(self) -> int | None:
        return int(self.value) if self.kind == "seq" else None


def _bracket_pattern(prefixes: Iterable[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(p) for p in prefixes)
    return re.compile(rf"\[(?:{alternatives})-(\d+)\]", re.I)


def extract_task_refs(
    text: str | None, prefixes: Iterable[str] = DEFAULT_PREFIXES
) -> list[TaskRef]:
    """Return de-duplicated task references in first-seen order.

    Recognises ``task_<16 hex>`` ids and ``[PREFIX-<n>]`` shorthands, the
    latter mapping to the task's sequence number.
    """
    if not text:
        return []
    prefixes = tuple(prefixes) or DEFAULT_PREFIXES
    found: list[tuple[int, TaskRef]] = []
    for match in TASK_ID_PATTERN.finditer(text):
        found.append((match.start(), TaskRef("id", match.group(0).lower())))
    for match in _bracket_pattern(prefixes).finditer(text):
        found.append((match.start(), TaskRef("seq", str(int(match.group(1))))))

    refs: list[TaskRef] = []
    for _, ref in sorted(found, key=lambda item: item[0]):
        if ref not in refs:
            refs.append(ref)
    return refs
