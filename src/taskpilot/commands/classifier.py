"""CommandClassifier - decide what a command-bar input asks for."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from .extractor import extract_fragments, parse_date, parse_priority
from .models import (
    PRIORITY_ALIASES,
    CommandParams,
    CommandType,
    Fragments,
    ParsedCommand,
    QueryKind,
)
from .resolver import bucket_for

DEFAULT_MIN_CONFIDENCE = 0.5
FRAGMENT_BONUS = 0.1


@dataclass(frozen=True)
class Cue:
    """A verb cue: the regex that recognises it and the confidence it starts from."""

    type: CommandType
    pattern: re.Pattern[str]
    base: float
    query_kind: QueryKind | None = None


def _cue(
    type_: CommandType, pattern: str, base: float, query_kind: QueryKind | None = None
) -> Cue:
    return Cue(type_, re.compile(pattern, re.I), base, query_kind)


_OTHER_VERBS = (
    r"(?:create|add|new|task|move|set|change|make|mark|complete|finish|close|archive"
    r"|show|list|find|search|what|which|who|when|where|how)\b"
)
_DONE_WORDS = r"(?:done|complete|completed|finished)"
_PRIORITY_WORDS = "|".join(sorted(PRIORITY_ALIASES, key=len, reverse=True))
_REF = r"(?:['\"“](?P<qref>[^'\"”]+)['\"”]|(?P<ref>.+?))"

# Checked top to bottom; the first cue that matches decides the type.
# Create beats move beats complete beats priority/due beats archive beats query.
CUES: list[Cue] = [
    # create
    _cue(
        CommandType.CREATE,
        r"^(?:please\s+)?(?:create|add|new)\s+(?:a\s+)?(?:new\s+)?task\b",
        0.8,
    ),
    _cue(CommandType.CREATE, r"^task\s*:", 0.7),
    _cue(CommandType.CREATE, r"^(?:create|add|new)\b\s*:?\s*\S", 0.6),
    # move
    _cue(CommandType.MOVE, rf"^move\s+{_REF}\s+(?:to|into)\s+(?P<column>.+)$", 0.7),
    _cue(
        CommandType.MOVE,
        rf"^(?:set|change)\s+(?!(?:the\s+)?(?:priority|due)\b){_REF}\s+(?:status\s+)?"
        r"(?:to|into)\s+(?P<column>.+)$",
        0.6,
    ),
    _cue(CommandType.MOVE, rf"^(?!{_OTHER_VERBS}){_REF}\s+(?:to|into)\s+(?P<column>.+)$", 0.25),
    # complete
    _cue(CommandType.COMPLETE, rf"^(?:complete|finish|close)\s+{_REF}$", 0.7),
    _cue(CommandType.COMPLETE, rf"^mark\s+{_REF}\s+(?:as\s+)?{_DONE_WORDS}$", 0.7),
    _cue(CommandType.COMPLETE, rf"^(?!{_OTHER_VERBS}){_REF}\s+(?:is\s+)?{_DONE_WORDS}$", 0.4),
    # priority
    _cue(
        CommandType.PRIORITY,
        rf"^(?:set|change)\s+(?:the\s+)?priority\s+(?:of\s+|for\s+)?{_REF}"
        r"\s+to\s+(?P<priority>\w+)$",
        0.7,
    ),
    _cue(CommandType.PRIORITY, rf"^make\s+{_REF}\s+(?P<priority>{_PRIORITY_WORDS})$", 0.7),
    # due
    _cue(
        CommandType.DUE,
        rf"^(?:set|change)\s+(?:the\s+)?due\s*(?:date)?\s+(?:of\s+|for\s+)?{_REF}"
        r"\s+to\s+(?P<date>.+)$",
        0.7,
    ),
    _cue(CommandType.DUE, rf"^(?!{_OTHER_VERBS}){_REF}\s+(?:is\s+)?due\s+(?P<date>.+)$", 0.6),
    # archive
    _cue(
        CommandType.ARCHIVE,
        rf"^archive\s+(?:all\s+)?(?:the\s+)?{_DONE_WORDS}(?:\s+tasks?)?$",
        0.8,
        QueryKind.ALL_DONE,
    ),
    _cue(CommandType.ARCHIVE, rf"^archive\s+{_REF}$", 0.7),
    # query
    _cue(
        CommandType.QUERY,
        r"^(?:list|show)\s+(?:me\s+)?(?:all\s+)?(?:the\s+)?(?:tasks?|board)$",
        0.7,
        QueryKind.ALL,
    ),
    _cue(CommandType.QUERY, r"^what(?:'s|s|\s+is)?\s+on\s+my\s+plate\b", 0.7, QueryKind.ALL),
    _cue(
        CommandType.QUERY,
        r"^(?:show|list|find|search)\s+(?:me\s+)?(?:for\s+)?(?:all\s+)?(?:the\s+)?"
        r"(?P<query>.+?)(?:\s+tasks?)?\??$",
        0.6,
    ),
    _cue(
        CommandType.QUERY,
        r"^(?:what|which|who|when|where|how)\b(?:'s|s)?\s*(?:is\s+|are\s+)?"
        r"(?P<query>.*?)(?:\s+tasks?)?\??$",
        0.5,
    ),
]

# Query keyword -> kind, first hit wins
_QUERY_KINDS: list[tuple[re.Pattern[str], QueryKind]] = [
    (re.compile(r"\boverdue\b|\blate\b", re.I), QueryKind.OVERDUE),
    (re.compile(r"\bstuck\b|\bstale\b", re.I), QueryKind.STUCK),
    (re.compile(r"\bin\s+progress\b|\bdoing\b", re.I), QueryKind.IN_PROGRESS),
    (re.compile(r"\bto\s*-?\s*do\b|\bbacklog\b", re.I), QueryKind.TODO),
    (re.compile(rf"\b{_DONE_WORDS}\b", re.I), QueryKind.DONE),
]
_PRIORITY_IN_QUERY = re.compile(rf"\b(?P<p>{_PRIORITY_WORDS})\b", re.I)


def _strip_ref(ref: str | None) -> str | None:
    if ref is None:
        return None
    ref = ref.strip().strip("'\"“”").strip()
    return ref or None


def classify_query(text: str) -> tuple[QueryKind, str | None]:
    """Map the object of a show/list/what query to a query kind.

    Returns (kind, argument). The argument carries the priority value for
    ``PRIORITY`` and the search text for ``TEXT``.
    """
    text = text.strip().lower()
    if not text or text in ("all", "everything", "tasks", "board"):
        return QueryKind.ALL, None
    for pattern, kind in _QUERY_KINDS:
        if pattern.search(text):
            return kind, None
    prio = _PRIORITY_IN_QUERY.search(text)
    if prio:
        return QueryKind.PRIORITY, str(parse_priority(prio.group("p")))
    return QueryKind.TEXT, text


class CommandClassifier:
    """Rule-based command classifier.

    Each cue carries a base confidence. Every recognised fragment adds
    ``FRAGMENT_BONUS`` on top, capped at 1.0. A result below
    ``min_confidence`` is reported as ``unknown``.
    """

    def __init__(
        self, min_confidence: float = DEFAULT_MIN_CONFIDENCE, cues: list[Cue] | None = None
    ):
        self.min_confidence = min_confidence
        self.cues = cues or CUES

    def match_cue(self, text: str) -> tuple[Cue, re.Match[str]] | None:
        for cue in self.cues:
            match = cue.pattern.search(text)
            if match:
                return cue, match
        return None

    def classify(self, text: str, today: date | None = None) -> ParsedCommand:
        raw = text
        text = (text or "").strip()
        found = self.match_cue(text)
        if found is None:
            return ParsedCommand(type=CommandType.UNKNOWN, confidence=0.0, raw=raw)

        cue, match = found
        groups = match.groupdict()
        is_create = cue.type is CommandType.CREATE
        fragments = extract_fragments(text, today, trailing_column=not is_create)
        cmd = ParsedCommand(type=cue.type, confidence=0.0, raw=raw)
        self._fill(cmd, cue, groups, fragments, today)

        recognised = fragments.count()
        if cmd.task_ref:
            recognised += 1
        if cue.type is CommandType.MOVE and bucket_for(cmd.params.column):
            recognised += 1
        if cmd.params.query_kind and cmd.params.query_kind not in (QueryKind.TEXT, QueryKind.ALL):
            recognised += 1
        # Fragments the cue itself parsed (priority word, date text) also count
        if cue.type is CommandType.PRIORITY and cmd.params.priority and not fragments.priority:
            recognised += 1
        if cue.type is CommandType.DUE and cmd.params.due_date and not fragments.due_date:
            recognised += 1

        confidence = round(min(cue.base + FRAGMENT_BONUS * recognised, 1.0), 2)
        cmd.confidence = confidence
        if confidence < self.min_confidence:
            cmd.type = CommandType.UNKNOWN
        return cmd

    def _fill(
        self,
        cmd: ParsedCommand,
        cue: Cue,
        groups: dict,
        fragments: Fragments,
        today: date | None,
    ) -> None:
        params: CommandParams = cmd.params
        params.priority = fragments.priority
        params.due_date = fragments.due_date
        params.labels = list(fragments.labels or [])
        params.description = fragments.description
        cmd.task_ref = _strip_ref(groups.get("qref") or groups.get("ref"))

        if cue.type is CommandType.CREATE:
            params.title = fragments.title
            params.column = fragments.column
        elif cue.type is CommandType.MOVE:
            params.column = _strip_ref(groups.get("column")) or fragments.column
            if params.column:
                params.column = re.sub(r"\s+column$", "", params.column, flags=re.I)
        elif cue.type is CommandType.COMPLETE:
            cmd.done_intent = True
            params.column = "done"
        elif cue.type is CommandType.PRIORITY:
            params.priority = parse_priority(groups.get("priority"))
        elif cue.type is CommandType.DUE:
            params.due_date = parse_date(groups.get("date"), today)
        elif cue.type is CommandType.ARCHIVE:
            if cue.query_kind is QueryKind.ALL_DONE:
                params.query_kind = QueryKind.ALL_DONE
                cmd.done_intent = True
        elif cue.type is CommandType.QUERY:
            if cue.query_kind is not None:
                params.query_kind = cue.query_kind
            else:
                params.query_kind, params.query = classify_query(groups.get("query") or "")


_default = CommandClassifier()


def parse_command(
    text: str, today: date | None = None, min_confidence: float | None = None
) -> ParsedCommand:
    """Classify ``text`` with the default cue table."""
    if min_confidence is None:
        return _default.classify(text, today)
    return CommandClassifier(min_confidence=min_confidence).classify(text, today)


def describe_command(cmd: ParsedCommand) -> str:
    """Human-readable "what I understood" line for a parsed command."""
    p = cmd.params
    if cmd.type is CommandType.CREATE:
        desc = f'Create task: "{p.title or ""}"'
        if p.priority:
            desc += f" ({p.priority.upper()})"
        if p.due_date:
            desc += f" due {p.due_date.isoformat()}"
        return desc
    if cmd.type is CommandType.MOVE:
        return f'Move "{cmd.task_ref}" to {p.column}'
    if cmd.type is CommandType.COMPLETE:
        return f'Complete "{cmd.task_ref}"'
    if cmd.type is CommandType.PRIORITY:
        prio = p.priority.upper() if p.priority else "?"
        return f'Set priority of "{cmd.task_ref}" to {prio}'
    if cmd.type is CommandType.DUE:
        due = p.due_date.isoformat() if p.due_date else "?"
        return f'Set due date of "{cmd.task_ref}" to {due}'
    if cmd.type is CommandType.ARCHIVE:
        if p.query_kind is QueryKind.ALL_DONE:
            return "Archive all completed tasks"
        return f'Archive "{cmd.task_ref}"'
    if cmd.type is CommandType.QUERY:
        if p.query_kind is QueryKind.ALL:
            return "List all tasks"
        if p.query_kind is QueryKind.PRIORITY:
            return f"Search: priority {str(p.query).upper()}"
        if p.query_kind is QueryKind.TEXT:
            return f"Search: {p.query}"
        return f"Search: {p.query_kind}"
    return f"Unknown command: {cmd.raw}"
