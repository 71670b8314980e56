"""Tests for the command line interface."""

import json

import pytest

from eventaudit.cli import main


@pytest.fixture
def run(db_url, capsys):
    """Run the CLI against a fresh file database and return (code, stdout, stderr)."""
    def _run(*args):
        code = main(["--db-url", db_url, *args])
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    code, _, _ = _run("init")
    assert code == 0
    return _run


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_init_with_migrations(db_url, capsys):
    assert main(["--db-url", db_url, "init", "--migrate"]) == 0
    assert "initialized successfully" in capsys.readouterr().out


def test_create_show_and_list(run):
    code, out, _ = run("create", "Kickoff", "--date", "2026-10-19T09:30:00")
    assert code == 0
    assert "Created event 1" in out

    code, out, _ = run("show", "1")
    assert out.strip() == "#1  2026-10-19T09:30:00  Kickoff"

    run("create", "Retro", "--date", "2026-10-20T16:00:00")
    code, out, _ = run("list")
    assert out.splitlines() == [
        "#1  2026-10-19T09:30:00  Kickoff",
        "#2  2026-10-20T16:00:00  Retro",
    ]


def test_update_history_and_as_of(run):
    run("--user", "alice", "create", "A", "--date", "2026-10-19T09:30:00")
    code, out, _ = run("--user", "bob", "update", "1", "--title", "A-edited")
    assert code == 0

    code, out, _ = run("history", "1")
    lines = out.splitlines()
    assert lines[0].startswith("r1  ADD")
    assert lines[0].endswith("A  by alice")
    assert lines[1].startswith("r2  MOD")
    assert lines[1].endswith("A-edited  by bob")

    code, out, _ = run("as-of", "1", "1")
    assert out.strip().endswith("  A")

    code, out, _ = run("diff", "1", "1", "2")
    assert out.strip() == "title: 'A' -> 'A-edited'"


def test_update_requires_a_field(run):
    run("create", "A")
    code, _, err = run("update", "1")

    assert code == 1
    assert "Nothing to update" in err


def test_delete_then_revert(run):
    run("create", "A", "--date", "2026-10-19T09:30:00")
    run("delete", "1")

    code, _, err = run("show", "1")
    assert code == 1
    assert "Event 1 not found" in err

    code, out, _ = run("revert", "1", "1")
    assert code == 0
    assert "Reverted: #1" in out

    code, out, _ = run("show", "1")
    assert code == 0


def test_as_of_missing_revision_fails(run):
    run("create", "A")

    code, _, err = run("as-of", "1", "0")

    assert code == 1
    assert "Error" in err


def test_export_and_stats(run, tmp_path):
    run("create", "A")
    run("update", "1", "--title", "B")

    code, out, _ = run("export", str(tmp_path / "out"), "--event", "1")
    assert code == 0
    history = json.loads((tmp_path / "out" / "event_1_history.json").read_text(encoding="utf-8"))
    assert [r['title'] for r in history['revisions']] == ["A", "B"]

    code, out, _ = run("export", str(tmp_path / "all"))
    assert code == 0
    assert (tmp_path / "all" / "events.json").exists()

    code, out, _ = run("stats")
    assert "Events: 1" in out
    assert "Current revision: 2" in out
