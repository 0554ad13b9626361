"""Tests for the taskpilot CLI."""

from __future__ import annotations

from typer.testing import CliRunner

from taskpilot.cli import app

runner = CliRunner()


class TestParseCommand:
    def test_move(self):
        result = runner.invoke(app, ["parse", "move login bug to done", "--today", "2026-10-14"])
        assert result.exit_code == 0
        assert 'Move "login bug" to done' in result.output

    def test_create_shows_due_date(self):
        result = runner.invoke(
            app, ["parse", "create task: Ship it, due tomorrow", "--today", "2026-10-14"]
        )
        assert result.exit_code == 0
        assert "2026-10-15" in result.output

    def test_unknown_exits_nonzero(self):
        result = runner.invoke(app, ["parse", "hello there"])
        assert result.exit_code == 1
        assert "Unknown command" in result.output

    def test_bad_today(self):
        result = runner.invoke(app, ["parse", "list tasks", "--today", "someday"])
        assert result.exit_code == 2
