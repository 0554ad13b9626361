"""Natural-language command interpreter."""

from .classifier import CommandClassifier, describe_command, parse_command
from .extractor import extract_fragments, parse_date, parse_priority
from .models import CommandType, Fragments, ParsedCommand, Priority, QueryKind
from .resolver import (
    ColumnNotFound,
    ResolutionError,
    TaskNotFound,
    default_column,
    resolve_column,
    resolve_done_column,
    resolve_task,
)

__all__ = [
    "CommandClassifier",
    "CommandType",
    "ColumnNotFound",
    "Fragments",
    "ParsedCommand",
    "Priority",
    "QueryKind",
    "ResolutionError",
    "TaskNotFound",
    "default_column",
    "describe_command",
    "extract_fragments",
    "parse_command",
    "parse_date",
    "parse_priority",
    "resolve_column",
    "resolve_done_column",
    "resolve_task",
]
