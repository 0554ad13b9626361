"""Tests for command classification and confidence scoring."""

from __future__ import annotations

from datetime import date

import pytest

from taskpilot.commands.classifier import (
    CommandClassifier,
    classify_query,
    describe_command,
    parse_command,
)
from taskpilot.commands.models import CommandType, Priority, QueryKind

TODAY = date(2026, 10, 14)


class TestCreate:
    def test_full_create(self):
        cmd = parse_command("create task: Fix login bug, priority high, due tomorrow", TODAY)
        assert cmd.type is CommandType.CREATE
        assert cmd.params.title == "Fix login bug"
        assert cmd.params.priority is Priority.P1
        assert cmd.params.due_date == date(2026, 10, 15)
        assert cmd.confidence == 1.0

    def test_create_with_labels(self):
        cmd = parse_command("add task: Call Bob, labels: sales, phone", TODAY)
        assert cmd.type is CommandType.CREATE
        assert cmd.params.title == "Call Bob"
        assert cmd.params.labels == ["sales", "phone"]

    def test_create_wins_over_complete(self):
        cmd = parse_command("create task: mark docs as done", TODAY)
        assert cmd.type is CommandType.CREATE
        assert cmd.params.title == "mark docs as done"

    def test_create_keeps_to_in_title(self):
        cmd = parse_command("create task: talk to bob", TODAY)
        assert cmd.type is CommandType.CREATE
        assert cmd.params.title == "talk to bob"
        assert cmd.params.column is None

    def test_polite_create(self):
        cmd = parse_command("please create a new task: Plan offsite", TODAY)
        assert cmd.type is CommandType.CREATE
        assert cmd.params.title == "Plan offsite"


class TestMoveAndComplete:
    def test_move(self):
        cmd = parse_command("move login bug to done", TODAY)
        assert cmd.type is CommandType.MOVE
        assert cmd.task_ref == "login bug"
        assert cmd.params.column == "done"
        assert cmd.confidence == 1.0

    def test_move_quoted_ref(self):
        cmd = parse_command('move "Fix to-do list" to review', TODAY)
        assert cmd.type is CommandType.MOVE
        assert cmd.task_ref == "Fix to-do list"
        assert cmd.params.column == "review"

    def test_mark_as_done(self):
        cmd = parse_command("mark login bug as done", TODAY)
        assert cmd.type is CommandType.COMPLETE
        assert cmd.task_ref == "login bug"
        assert cmd.done_intent

    def test_bare_statement_is_complete_at_threshold(self):
        cmd = parse_command("login bug is done", TODAY)
        assert cmd.type is CommandType.COMPLETE
        assert cmd.confidence == 0.5

    def test_ambiguous_phrase_is_unknown(self):
        cmd = parse_command("talk to bob", TODAY)
        assert cmd.type is CommandType.UNKNOWN
        assert cmd.confidence == 0.45


class TestPriorityAndDue:
    def test_make_urgent(self):
        cmd = parse_command("make login bug urgent", TODAY)
        assert cmd.type is CommandType.PRIORITY
        assert cmd.task_ref == "login bug"
        assert cmd.params.priority is Priority.P0
        assert cmd.confidence == 0.9

    def test_set_priority(self):
        cmd = parse_command("set priority of login bug to high", TODAY)
        assert cmd.type is CommandType.PRIORITY
        assert cmd.task_ref == "login bug"
        assert cmd.params.priority is Priority.P1

    def test_set_due_date(self):
        cmd = parse_command("set due date of login bug to friday", TODAY)
        assert cmd.type is CommandType.DUE
        assert cmd.task_ref == "login bug"
        assert cmd.params.due_date == date(2026, 10, 16)


class TestArchive:
    def test_archive_all_done(self):
        cmd = parse_command("archive all done tasks", TODAY)
        assert cmd.type is CommandType.ARCHIVE
        assert cmd.params.query_kind is QueryKind.ALL_DONE
        assert cmd.task_ref is None

    def test_archive_one(self):
        cmd = parse_command("archive login bug", TODAY)
        assert cmd.type is CommandType.ARCHIVE
        assert cmd.task_ref == "login bug"
        assert cmd.params.query_kind is None


class TestQuery:
    def test_high_tasks(self):
        cmd = parse_command("show high tasks", TODAY)
        assert cmd.type is CommandType.QUERY
        assert cmd.params.query_kind is QueryKind.PRIORITY
        assert cmd.params.query == "p1"
        assert cmd.confidence == 0.7

    def test_high_priority_tasks(self):
        cmd = parse_command("show high priority tasks", TODAY)
        assert cmd.params.query_kind is QueryKind.PRIORITY
        assert cmd.params.query == "p1"
        assert cmd.confidence == 0.8

    def test_list_everything(self):
        cmd = parse_command("list tasks", TODAY)
        assert cmd.type is CommandType.QUERY
        assert cmd.params.query_kind is QueryKind.ALL

    def test_on_my_plate(self):
        cmd = parse_command("what's on my plate", TODAY)
        assert cmd.params.query_kind is QueryKind.ALL

    def test_whats_overdue(self):
        cmd = parse_command("what's overdue?", TODAY)
        assert cmd.type is CommandType.QUERY
        assert cmd.params.query_kind is QueryKind.OVERDUE

    def test_free_text(self):
        cmd = parse_command("find invoice", TODAY)
        assert cmd.params.query_kind is QueryKind.TEXT
        assert cmd.params.query == "invoice"


class TestClassifyQuery:
    @pytest.mark.parametrize(
        ("text", "kind"),
        [
            ("", QueryKind.ALL),
            ("everything", QueryKind.ALL),
            ("overdue", QueryKind.OVERDUE),
            ("stuck", QueryKind.STUCK),
            ("in progress", QueryKind.IN_PROGRESS),
            ("to-do", QueryKind.TODO),
            ("completed", QueryKind.DONE),
        ],
    )
    def test_kinds(self, text, kind):
        assert classify_query(text)[0] is kind

    def test_priority_argument(self):
        assert classify_query("urgent") == (QueryKind.PRIORITY, "p0")


class TestThreshold:
    def test_empty_input(self):
        cmd = parse_command("", TODAY)
        assert cmd.type is CommandType.UNKNOWN
        assert cmd.confidence == 0.0
        assert not cmd.is_actionable

    def test_gibberish(self):
        assert parse_command("hello there", TODAY).type is CommandType.UNKNOWN

    def test_custom_threshold(self):
        cmd = parse_command("login bug is done", TODAY, min_confidence=0.6)
        assert cmd.type is CommandType.UNKNOWN
        assert cmd.confidence == 0.5

    def test_classifier_instance(self):
        classifier = CommandClassifier(min_confidence=0.4)
        assert classifier.classify("talk to bob", TODAY).type is CommandType.MOVE


class TestDescribeCommand:
    def test_create(self):
        cmd = parse_command("create task: Fix login bug, priority high, due tomorrow", TODAY)
        assert describe_command(cmd) == 'Create task: "Fix login bug" (P1) due 2026-10-15'

    def test_move(self):
        cmd = parse_command("move login bug to done", TODAY)
        assert describe_command(cmd) == 'Move "login bug" to done'

    def test_archive_all(self):
        cmd = parse_command("archive all done tasks", TODAY)
        assert describe_command(cmd) == "Archive all completed tasks"

    def test_priority_query(self):
        cmd = parse_command("show high priority tasks", TODAY)
        assert describe_command(cmd) == "Search: priority P1"

    def test_unknown(self):
        cmd = parse_command("hello there", TODAY)
        assert describe_command(cmd) == "Unknown command: hello there"
