"""
Tests for the ttlkv Command Line

These tests run cli.main() in-process against a temporary database.

Run with: python -m pytest tests/test_cli.py -v
"""

import pytest

from ttlkv.cli import NIL, main, parse_args


@pytest.fixture
def run(sqlite_path, capsys):
    """Run the CLI against one database and return (exit code, stdout)."""
    def runner(*argv):
        code = main(["--db", sqlite_path, *argv])
        out = capsys.readouterr().out.strip()
        return code, out
    return runner


class TestCommands:
    """Test each subcommand."""

    def test_set_and_get(self, run):
        assert run("set", "greeting", "hello") == (0, "OK")
        assert run("get", "greeting") == (0, "hello")

    def test_get_missing(self, run):
        assert run("get", "missing") == (0, NIL)

    def test_ttl(self, run):
        run("set", "plain", "v")
        run("set", "session", "v", "--ttl", "30")

        assert run("ttl", "missing") == (0, "-2")
        assert run("ttl", "plain") == (0, "-1")
        code, out = run("ttl", "session")
        assert code == 0
        assert 0 < int(out) <= 30

    def test_expire(self, run):
        assert run("expire", "missing", "10") == (0, "0")
        run("set", "key", "v")
        assert run("expire", "key", "10") == (0, "1")
        assert run("expire", "key", "0") == (0, "1")
        assert run("ttl", "key") == (0, "-1")

    def test_counters(self, run):
        assert run("incr", "hits") == (0, "1")
        assert run("incr", "hits", "--by", "5") == (0, "6")
        assert run("decr", "hits", "--by", "2") == (0, "4")
        assert run("decr", "hits") == (0, "3")

    def test_del_and_exists(self, run):
        run("set", "key", "v")
        assert run("exists", "key") == (0, "1")
        assert run("del", "key") == (0, "1")
        assert run("del", "key") == (0, "0")
        assert run("exists", "key") == (0, "0")


class TestErrors:
    """Test failures give a non-zero exit status."""

    def test_incr_non_numeric(self, run):
        run("set", "key", "hello")
        code, out = run("incr", "key")
        assert code == 1
        assert out == ""

    def test_unusable_database(self, tmp_path, capsys):
        assert main(["--db", str(tmp_path), "get", "key"]) == 1

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            parse_args(["frobnicate", "key"])


class TestArguments:
    """Test argument parsing."""

    def test_defaults(self):
        args = parse_args(["get", "key"])
        assert args.command == "get"
        assert args.key == "key"

    def test_memory_engine(self, capsys):
        assert main(["--engine", "memory", "incr", "c"]) == 0
        assert capsys.readouterr().out.strip() == "1"
