"""Tests for the command line interface."""

import asyncio
import io
import sys
from datetime import datetime

import pytest
from rich.console import Console

from workout_engagement import cli
from workout_engagement.db.adapters.sqlite_adapter import SQLiteAdapter
from workout_engagement.models.progress import UserProgress


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["engagement", *argv])
    cli.main()


class TestParser:
    """Tests for argument parsing."""

    def test_workout_at(self):
        args = cli.build_parser().parse_args(["--user", "alice", "workout", "--at", "2024-03-04T07:00"])
        assert args.user == "alice"
        assert args.command == "workout"
        assert args.at == datetime(2024, 3, 4, 7, 0)

    def test_defaults(self):
        args = cli.build_parser().parse_args(["spin"])
        assert args.user == "default"
        assert args.cost is None
        assert args.db is None

    def test_reset_period_choices(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["reset", "--period", "yearly"])


class TestCommands:
    """End-to-end command runs against a temporary database."""

    def test_workout_then_show(self, monkeypatch, tmp_path, capsys):
        db_path = tmp_path / "cli.db"

        run_cli(monkeypatch, "--db", str(db_path), "--user", "alice", "workout", "--at", "2024-03-04T07:00")
        output = capsys.readouterr().out
        assert "+65 points" in output
        assert "First Step" in output

        run_cli(monkeypatch, "--db", str(db_path), "--user", "alice", "workout", "--at", "2024-03-04T19:00")
        assert "already recorded" in capsys.readouterr().out

        stored = asyncio.run(SQLiteAdapter(db_path).load("alice"))
        assert stored.progress.points == 165

        run_cli(monkeypatch, "--db", str(db_path), "--user", "alice", "show")
        assert "165" in capsys.readouterr().out

    def test_redeem_unknown_coupon_exits(self, monkeypatch, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, "--db", str(tmp_path / "cli.db"), "redeem", "nope")
        assert exc_info.value.code == 1
        assert "nope" in capsys.readouterr().out

    def test_spin_without_points(self, monkeypatch, tmp_path, capsys):
        run_cli(monkeypatch, "--db", str(tmp_path / "cli.db"), "spin")
        assert "Not enough points" in capsys.readouterr().out

    def test_no_command_prints_help(self, monkeypatch, capsys):
        run_cli(monkeypatch)
        assert "usage" in capsys.readouterr().out.lower()


class TestProgressTable:
    """Tests for the progress table."""

    def test_level_fraction_spans_the_level(self):
        output = io.StringIO()
        Console(file=output, width=120).print(cli.progress_table(UserProgress(points=141, level=1)))

        # Level 2 starts at 282 points
        assert "1 (141/282, 50%)" in output.getvalue()
