"""Tests for the lexical extractor."""

from __future__ import annotations

from datetime import date

import pytest

from taskpilot.commands.extractor import extract_fragments, parse_date, parse_priority
from taskpilot.commands.models import Priority

TODAY = date(2026, 10, 14)  # a Wednesday


class TestParsePriority:
    @pytest.mark.parametrize(
        ("word", "expected"),
        [
            ("urgent", Priority.P0),
            ("Critical", Priority.P0),
            ("high", Priority.P1),
            ("P1", Priority.P1),
            ("normal", Priority.P2),
            ("minor", Priority.P3),
        ],
    )
    def test_aliases(self, word, expected):
        assert parse_priority(word) is expected

    def test_unknown_word(self):
        assert parse_priority("whenever") is None

    def test_empty(self):
        assert parse_priority(None) is None
        assert parse_priority("") is None


class TestParseDate:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("today", date(2026, 10, 14)),
            ("tomorrow", date(2026, 10, 15)),
            ("friday", date(2026, 10, 16)),
            ("next monday", date(2026, 10, 19)),
            ("in 3 days", date(2026, 10, 17)),
            ("in 2 weeks", date(2026, 10, 28)),
            ("2026-11-01", date(2026, 11, 1)),
            ("12/25", date(2026, 12, 25)),
            ("1/5/27", date(2027, 1, 5)),
            ("Nov 3, 2026", date(2026, 11, 3)),
            ("december 1st", date(2026, 12, 1)),
        ],
    )
    def test_phrases(self, text, expected):
        assert parse_date(text, TODAY) == expected

    def test_same_weekday_means_next_week(self):
        assert parse_date("wednesday", TODAY) == date(2026, 10, 21)

    def test_invalid_calendar_date(self):
        assert parse_date("13/45", TODAY) is None

    def test_no_date(self):
        assert parse_date("sometime soon", TODAY) is None
        assert parse_date("", TODAY) is None


class TestExtractFragments:
    def test_title_priority_and_due(self):
        f = extract_fragments("create task: Fix login bug, priority high, due tomorrow", TODAY)
        assert f.title == "Fix login bug"
        assert f.priority is Priority.P1
        assert f.due_date == date(2026, 10, 15)
        assert f.count() == 3

    def test_labels_cue(self):
        f = extract_fragments("add task: Call Bob, labels: sales, phone", TODAY)
        assert f.title == "Call Bob"
        assert f.labels == ["sales", "phone"]

    def test_hashtags(self):
        f = extract_fragments("create task: Ship release #ops #infra", TODAY)
        assert f.title == "Ship release"
        assert f.labels == ["ops", "infra"]

    def test_description(self):
        f = extract_fragments("create task: Update docs, description: cover the new API", TODAY)
        assert f.title == "Update docs"
        assert f.description == "cover the new API"

    def test_explicit_column(self):
        f = extract_fragments("create task: Triage bugs, column: In Progress", TODAY)
        assert f.title == "Triage bugs"
        assert f.column == "In Progress"

    def test_trailing_column(self):
        f = extract_fragments("move login bug to review", TODAY)
        assert f.column == "review"
        # Without a create marker there is no title
        assert f.title is None

    def test_trailing_column_disabled(self):
        f = extract_fragments("create task: talk to bob", TODAY, trailing_column=False)
        assert f.title == "talk to bob"
        assert f.column is None

    def test_quoted_title_is_kept_whole(self):
        f = extract_fragments('create task "Fix to-do list" due 2026-11-01', TODAY)
        assert f.title == "Fix to-do list"
        assert f.due_date == date(2026, 11, 1)

    def test_empty_text(self):
        f = extract_fragments("   ", TODAY)
        assert f.count() == 0
        assert f.title is None
