"""
tests/test_cli.py

Command loop behaviour, driven two ways:
  - CommandLoop with a scripted reader and a MemoryBackend store
  - the `ledgerbook` click command through CliRunner against a real file
"""

import json

import pytest
from click.testing import CliRunner

from ledgerbook.cli import cli
from ledgerbook.cli.loop import (
    CommandLoop,
    EndOfInput,
    LoopState,
    format_entry,
    parse_assignments,
)
from ledgerbook.core.exceptions import InvalidInputError, IOFailureError
from ledgerbook.ledger.backends import MemoryBackend
from ledgerbook.ledger.store import LedgerStore
from tests.helpers.entries import make_entry


class ReadOnlyBackend(MemoryBackend):
    """MemoryBackend whose saves always fail, like a read-only disk."""

    def save(self, entries):
        raise IOFailureError("Failed to write entries.txt: read-only file system")


class ScriptedLoop:
    """Feeds lines to a CommandLoop and records what it prints."""

    def __init__(self, *entries, backend=None):
        self.backend = backend if backend is not None else MemoryBackend(entries)
        self.output = []
        self.prompts = []
        self.lines = []
        self.loop = CommandLoop(
            LedgerStore(self.backend), read=self._read, echo=self.output.append,
        )

    def _read(self, prompt):
        self.prompts.append(prompt)
        if not self.lines:
            raise EndOfInput()
        return self.lines.pop(0)

    def run(self, *lines):
        self.lines = list(lines)
        self.loop.run()
        return "\n".join(self.output)

    def handle(self, line, *answers):
        self.lines = list(answers)
        self.loop.handle(line)
        return "\n".join(self.output)


# ── CommandLoop ───────────────────────────────────────────────

class TestLoopStates:

    def test_starts_running_and_exits(self):
        s = ScriptedLoop()
        assert s.loop.state is LoopState.RUNNING
        out = s.run("exit")
        assert s.loop.state is LoopState.EXITED
        assert "Goodbye!" in out

    def test_end_of_input_exits(self):
        s = ScriptedLoop()
        out = s.run()
        assert s.loop.state is LoopState.EXITED
        assert "Goodbye!" in out

    def test_errors_do_not_stop_the_loop(self):
        s = ScriptedLoop(make_entry(1))
        out = s.run("get 99", "get abc", "delete", "x", "frobnicate", "get 1", "exit")
        assert "Error: Entry 99 not found" in out
        assert "Error: Invalid id: 'abc'" in out
        assert "Error: Invalid id: 'x'" in out
        assert "Unknown command: frobnicate" in out
        assert "account_id" in out
        assert s.loop.state is LoopState.EXITED

    def test_save_failure_does_not_stop_the_loop(self):
        s = ScriptedLoop(backend=ReadOnlyBackend([make_entry(1)]))
        out = s.run("delete 1", "update 1 account_id=X", "list", "exit")
        assert out.count("Error: Failed to write entries.txt") == 2
        assert format_entry(make_entry(1)) in out
        assert "Goodbye!" in out
        assert s.loop.state is LoopState.EXITED

    def test_undecodable_amount_does_not_stop_the_loop(self):
        s = ScriptedLoop(make_entry(1))
        s.backend.lines.append(
            json.dumps(make_entry(2).to_dict()).replace("200.0", "9" * 400)
        )
        out = s.run("list", "exit")
        assert "Error: Invalid amount_debt" in out
        assert "line=2" in out
        assert "Goodbye!" in out

    def test_commands_are_case_insensitive(self):
        s = ScriptedLoop(make_entry(1))
        out = s.run("LIST", "Exit")
        assert "#1" in out
        assert s.loop.state is LoopState.EXITED

    def test_blank_lines_ignored(self):
        s = ScriptedLoop()
        s.handle("   ")
        assert s.output == []


class TestLoopCommands:

    def test_add_inline(self):
        s = ScriptedLoop()
        out = s.handle(
            "add journal_date=2024-01-01 account_id=A1 amount_debt=100 amount_credit=0 total=100"
        )
        assert "Entry added." in out
        assert "#1" in out
        assert s.prompts == []
        [entry] = s.backend.load()
        assert entry.id == 1 and entry.is_deleted is False

    def test_add_prompts_for_every_field(self):
        s = ScriptedLoop()
        s.handle("add", "2024-03-05", "CASH", "10", "2.5", "", "true")
        [entry] = s.backend.load()
        assert entry.account_id == "CASH"
        assert entry.total == 7.5
        assert entry.reconciled is True
        assert s.prompts[0].startswith("journal_date")

    def test_add_prompts_only_for_missing_fields(self):
        s = ScriptedLoop()
        s.handle("add account_id=B2 amount_debt=1 amount_credit=0", "2024-01-09")
        assert len(s.prompts) == 1
        assert s.backend.load()[0].account_id == "B2"

    def test_add_invalid_date_reports_and_writes_nothing(self):
        s = ScriptedLoop()
        out = s.handle("add", "31/12/2024", "A1", "1", "0", "", "")
        assert "Error: Invalid date" in out
        assert s.backend.save_count == 0

    def test_add_cancelled_by_eof(self):
        s = ScriptedLoop()
        out = s.handle("add", "2024-01-01")
        assert "Cancelled." in out
        assert s.backend.save_count == 0

    def test_list(self):
        s = ScriptedLoop(make_entry(1), make_entry(2, is_deleted=True), make_entry(3))
        out = s.handle("list")
        assert "Current entries:" in out
        assert format_entry(make_entry(1)) in out
        assert format_entry(make_entry(3)) in out
        assert "#2" not in out

    def test_list_empty(self):
        assert "No entries." in ScriptedLoop().handle("list")

    def test_get_prints_all_fields(self):
        out = ScriptedLoop(make_entry(2)).handle("get 2")
        for name in make_entry(2).to_dict():
            assert name in out
        assert "2024-01-02" in out

    def test_get_prompts_for_id(self):
        s = ScriptedLoop(make_entry(1))
        out = s.handle("get", "1")
        assert s.prompts == ["id: "]
        assert "A1" in out

    def test_update_inline(self):
        s = ScriptedLoop(make_entry(1))
        out = s.handle("update 1 account_id=Z9 reconciled=yes")
        assert "Entry 1 updated." in out
        entry = s.backend.load()[0]
        assert entry.account_id == "Z9"
        assert entry.reconciled is True

    def test_update_prompts_and_blank_keeps_value(self):
        s = ScriptedLoop(make_entry(1))
        s.handle("update 1", "", "NEW", "", "", "", "")
        entry = s.backend.load()[0]
        assert entry.account_id == "NEW"
        assert entry.amount_debt == 100.0
        assert s.prompts[1] == "account_id [A1]: "

    def test_update_with_no_changes(self):
        s = ScriptedLoop(make_entry(1))
        out = s.handle("update 1", "", "", "", "", "", "")
        assert "Nothing to update." in out
        assert s.backend.save_count == 0

    def test_update_id_rejected(self):
        s = ScriptedLoop(make_entry(1))
        out = s.handle("update 1 id=5")
        assert "Error: id cannot be changed" in out
        assert s.backend.load() == [make_entry(1)]

    def test_update_deleted_entry(self):
        out = ScriptedLoop(make_entry(1, is_deleted=True)).handle("update 1 total=3")
        assert "Error: Entry 1 not found" in out

    def test_delete_then_list_and_get(self):
        s = ScriptedLoop(make_entry(1), make_entry(2), make_entry(3))
        out = s.run("delete 2", "list", "get 2", "exit")
        assert "Entry 2 deleted." in out
        assert "#1" in out and "#3" in out
        assert "Error: Entry 2 not found" in out
        assert [e.is_deleted for e in s.backend.load()] == [False, True, False]

    def test_help(self):
        out = ScriptedLoop().handle("help")
        assert "update <id>" in out

    def test_unbalanced_quotes(self):
        out = ScriptedLoop().handle('add account_id="A1')
        assert "Error: could not parse command" in out


class TestParseAssignments:

    def test_pairs(self):
        assert parse_assignments(["a=1", "B=x y"]) == {"a": "1", "b": "x y"}

    def test_value_may_contain_equals(self):
        assert parse_assignments(["account_id=a=b"]) == {"account_id": "a=b"}

    @pytest.mark.parametrize("token", ["novalue", "=5"])
    def test_rejects(self, token):
        with pytest.raises(InvalidInputError):
            parse_assignments([token])


# ── click entry point ─────────────────────────────────────────

class TestCli:

    def test_session_persists_to_file(self, tmp_path):
        path = tmp_path / "entries.txt"
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["--file", str(path)],
            input=(
                "add journal_date=2024-01-01 account_id=A1 amount_debt=100 "
                "amount_credit=0 total=100\n"
                "list\n"
                "exit\n"
            ),
        )

        assert result.exit_code == 0, result.output
        assert "Welcome to ledgerbook!" in result.output
        assert "Entry added." in result.output
        assert "Goodbye!" in result.output

        [line] = path.read_text(encoding="utf-8").splitlines()
        record = json.loads(line)
        assert record["id"] == 1
        assert record["is_deleted"] is False
        assert record["reconciled"] is False

    def test_second_session_continues_ids(self, tmp_path):
        path = tmp_path / "entries.txt"
        runner = CliRunner()
        add = "add journal_date=2024-01-01 account_id=A1 amount_debt=1 amount_credit=0\n"
        runner.invoke(cli, ["--file", str(path)], input=add + add + "delete 2\nexit\n")
        runner.invoke(cli, ["--file", str(path)], input=add + "exit\n")

        ids = [json.loads(l)["id"] for l in path.read_text(encoding="utf-8").splitlines()]
        assert ids == [1, 2, 3]

    def test_eof_exits_cleanly(self, tmp_path):
        result = CliRunner().invoke(cli, ["--file", str(tmp_path / "e.txt")], input="list\n")
        assert result.exit_code == 0
        assert "No entries." in result.output
        assert "Goodbye!" in result.output

    def test_corrupt_file_is_reported_and_loop_continues(self, tmp_path):
        path = tmp_path / "entries.txt"
        path.write_text("not json\n", encoding="utf-8")
        result = CliRunner().invoke(cli, ["--file", str(path)], input="list\nexit\n")

        assert result.exit_code == 0
        assert "Error: Invalid JSON at line 1" in result.output
        assert "Goodbye!" in result.output
        assert path.read_text(encoding="utf-8") == "not json\n"

    def test_invalid_utf8_is_reported_with_line(self, tmp_path):
        path = tmp_path / "entries.txt"
        path.write_bytes(b"\xff\xfe\n")
        result = CliRunner().invoke(cli, ["--file", str(path)], input="get 1\nexit\n")

        assert result.exit_code == 0
        assert "Error: Invalid UTF-8 at line 1" in result.output
        assert "Goodbye!" in result.output

    def test_unusable_path_exits_2(self, tmp_path):
        missing = tmp_path / "nope" / "entries.txt"
        result = CliRunner().invoke(cli, ["--file", str(missing)], input="exit\n")
        assert result.exit_code == 2
        assert "does not exist" in result.output
