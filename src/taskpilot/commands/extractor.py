"""Lexical extractor - pulls structured fragments out of command text.

Nothing in here raises on odd input: a fragment that does not match is
simply left as None and the classifier decides what that means.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date, timedelta

from .models import PRIORITY_ALIASES, Fragments, Priority

_WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
_MONTHS = ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]

# Longest aliases first so "p1" never shadows a longer word
_PRIORITY_WORDS = "|".join(sorted(PRIORITY_ALIASES, key=len, reverse=True))

_PRIORITY_PATTERNS = [
    re.compile(rf"\bpriority\s*(?:[:=]|of|is|to)?\s*(?P<p>{_PRIORITY_WORDS})\b", re.I),
    re.compile(rf"\b(?P<p>{_PRIORITY_WORDS})\s+priority\b", re.I),
    re.compile(rf"(?:^|,)\s*(?P<p>{_PRIORITY_WORDS})\s*!*\s*(?=,|$)", re.I),
    re.compile(r"\b(?P<p>p[0-3])\b", re.I),
]

# Words that open a new fragment; tails stop in front of them
_CUE_WORDS = r"(?:priority|due|by|column|labels?|tags?|tagged|description|desc|details|notes?)"

_DESCRIPTION_CUE = re.compile(
    rf"[,;]?\s*\b(?:description|desc|details|notes?)\s*[:=]\s*"
    rf"(?P<v>.+?)(?=\s*[,;]\s*{_CUE_WORDS}\b|$)",
    re.I,
)
_LABELS_CUE = re.compile(
    rf"[,;]?\s*\b(?:(?:labels?|tags?)\s*[:=]|tagged\b|labell?ed\b)\s*"
    rf"(?P<v>.+?)(?=\s*[,;]\s*{_CUE_WORDS}\b|$)",
    re.I,
)
_HASHTAG = re.compile(r"(?<![\w&])#(?P<tag>[A-Za-z][\w-]*)")

_EXPLICIT_COLUMN = re.compile(r"[,;]?\s*\bcolumn\s*[:=]\s*(?P<col>[^,;]+)", re.I)
_TRAILING_COLUMN = re.compile(
    r"\s+\b(?:to|into)\s+(?:the\s+)?(?P<col>[^,;]+?)(?:\s+column)?\s*$", re.I
)

_QUOTED = re.compile(r"\"(?P<dq>[^\"]+)\"|“(?P<cq>[^”]+)”|(?<!\w)'(?P<sq>[^']+)'(?!\w)")

_CREATE_MARKER = re.compile(
    r"^\s*(?:please\s+)?"
    r"(?:(?:create|add|new)\s+(?:a\s+)?(?:new\s+)?task\b\s*:?"
    r"|task\s*:"
    r"|(?:create|add|new)\b\s*:?)\s*",
    re.I,
)


def _relative_days(days: int) -> Callable[[dict, date], date]:
    return lambda groups, today: today + timedelta(days=days)


def _next_weekday(groups: dict, today: date) -> date:
    target = _WEEKDAYS.index(groups["weekday"].lower())
    ahead = (target - today.weekday()) % 7
    return today + timedelta(days=ahead or 7)


def _in_n(groups: dict, today: date) -> date:
    n = int(groups["n"])
    if groups["unit"].lower().startswith("week"):
        n *= 7
    return today + timedelta(days=n)


def _iso(groups: dict, today: date) -> date:
    return date(int(groups["y"]), int(groups["m"]), int(groups["d"]))


def _slashed(groups: dict, today: date) -> date:
    year = groups.get("y")
    if not year:
        year_num = today.year
    elif len(year) == 2:
        year_num = 2000 + int(year)
    else:
        year_num = int(year)
    return date(year_num, int(groups["m"]), int(groups["d"]))


def _month_name(groups: dict, today: date) -> date:
    month = _MONTHS.index(groups["mon"].lower()[:3]) + 1
    year = int(groups["y"]) if groups.get("y") else today.year
    return date(year, month, int(groups["d"]))


# (pattern, handler); order matters, ISO must win over m/d
DATE_PATTERNS: list[tuple[str, Callable[[dict, date], date]]] = [
    (r"today", _relative_days(0)),
    (r"tomorrow", _relative_days(1)),
    (rf"next\s+(?P<weekday>{'|'.join(_WEEKDAYS)})", _next_weekday),
    (rf"(?:on\s+|this\s+)?(?P<weekday>{'|'.join(_WEEKDAYS)})", _next_weekday),
    (r"in\s+(?P<n>\d+)\s+(?P<unit>days?|weeks?)", _in_n),
    (r"(?P<y>\d{4})-(?P<m>\d{1,2})-(?P<d>\d{1,2})", _iso),
    (r"(?P<m>\d{1,2})/(?P<d>\d{1,2})(?:/(?P<y>\d{4}|\d{2}))?", _slashed),
    (
        rf"(?P<mon>{'|'.join(_MONTHS)})[a-z]*\.?\s+(?P<d>\d{{1,2}})(?:st|nd|rd|th)?"
        r"(?:\s*,?\s*(?P<y>\d{4}))?",
        _month_name,
    ),
]

_DATE_ANYWHERE = [(re.compile(rf"\b{p}\b", re.I), h) for p, h in DATE_PATTERNS]
_DATE_PREFIXED = [
    (re.compile(rf"[,;]?\s*\b(?:due|by)\s+(?:on\s+)?{p}\b", re.I), h) for p, h in DATE_PATTERNS
]
_DATE_SEGMENT = [(re.compile(rf"(?:^|,)\s*{p}\s*(?=,|$)", re.I), h) for p, h in DATE_PATTERNS]


def parse_priority(word: str | None) -> Priority | None:
    """Map a priority word (high, urgent, p2, ...) to a Priority."""
    if not word:
        return None
    return PRIORITY_ALIASES.get(word.strip().lower())


def _match_date(
    text: str,
    today: date,
    patterns: list[tuple[re.Pattern[str], Callable[[dict, date], date]]],
) -> tuple[date, tuple[int, int]] | None:
    for pattern, handler in patterns:
        for match in pattern.finditer(text):
            try:
                return handler(match.groupdict(), today), match.span()
            except ValueError:
                # 13/45 and friends: keep looking
                continue
    return None


def parse_date(text: str | None, today: date | None = None) -> date | None:
    """Parse the first recognisable date phrase anywhere in ``text``."""
    if not text:
        return None
    found = _match_date(text, today or date.today(), _DATE_ANYWHERE)
    return found[0] if found else None


def _cut(text: str, span: tuple[int, int]) -> str:
    return text[: span[0]] + " " + text[span[1] :]


def _split_labels(value: str) -> list[str]:
    labels: list[str] = []
    for part in re.split(r"\s*(?:,|;|\band\b)\s*", value.strip().rstrip(".")):
        label = part.strip().strip("#").strip()
        if label and label not in labels:
            labels.append(label)
    return labels


def _clean_title(text: str) -> str:
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\s*([,;])(?:\s*[,;])+", r"\1", text)
    text = re.sub(r"\s+([,;])", r"\1", text)
    return text.strip(" ,;:-\t")


def extract_fragments(
    text: str,
    today: date | None = None,
    *,
    trailing_column: bool = True,
) -> Fragments:
    """Pull title, priority, due date, labels, description and column out of ``text``.

    Args:
        text: Raw command text.
        today: Reference date for relative phrases; defaults to ``date.today()``.
        trailing_column: Treat a trailing "to/into <name>" as a column request.
            Creation text turns this off so "talk to bob" stays in the title.
    """
    today = today or date.today()
    fragments = Fragments()
    if not text or not text.strip():
        return fragments

    marker = _CREATE_MARKER.match(text)
    work = text[marker.end() :] if marker else text

    quoted = _QUOTED.search(work)
    if quoted:
        fragments.title = (quoted.group("dq") or quoted.group("cq") or quoted.group("sq")).strip()
        work = _cut(work, quoted.span())

    desc = _DESCRIPTION_CUE.search(work)
    if desc:
        fragments.description = desc.group("v").strip() or None
        work = _cut(work, desc.span())

    labels: list[str] = []
    label_match = _LABELS_CUE.search(work)
    if label_match:
        labels.extend(_split_labels(label_match.group("v")))
        work = _cut(work, label_match.span())
    for tag in _HASHTAG.finditer(work):
        if tag.group("tag") not in labels:
            labels.append(tag.group("tag"))
    work = _HASHTAG.sub(" ", work)
    fragments.labels = labels or None

    for pattern in _PRIORITY_PATTERNS:
        match = pattern.search(work)
        if match:
            fragments.priority = parse_priority(match.group("p"))
            work = _cut(work, match.span())
            break

    found = _match_date(work, today, _DATE_PREFIXED) or _match_date(work, today, _DATE_SEGMENT)
    if found:
        fragments.due_date, span = found
        work = _cut(work, span)

    column = _EXPLICIT_COLUMN.search(work)
    if not column and trailing_column:
        column = _TRAILING_COLUMN.search(work)
    if column:
        fragments.column = column.group("col").strip() or None
        work = _cut(work, column.span())

    if fragments.title is None and marker:
        fragments.title = _clean_title(work) or None

    return fragments
