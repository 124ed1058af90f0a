from __future__ import annotations
import json
import runpy
import sys
import warnings
from pathlib import Path

import pytest

from colrecon.cli.__main__ import EXIT_BLOCKED, EXIT_FATAL, EXIT_HANDED_OFF
from colrecon.cli.__main__ import main as cli_main


@pytest.fixture()
def contacts_csv(temp_workdir: Path, write_csv) -> Path:
    return write_csv(
        temp_workdir / "data" / "contacts.csv",
        [
            ["Email", "Mobile", "First Name", "Surname", "Notes"],
            ["a@example.com", "0400", "Ann", "Lee", "vip"],
            ["b@example.com", "0411", "Bob", "Ng", ""],
        ],
    )


def _json_block(out: str) -> dict:
    start = out.index("{")
    end = out.rindex("}") + 1
    return json.loads(out[start:end])


def test_cli_hand_off_success(write_registry, contacts_csv: Path, capsys):
    code = cli_main([str(contacts_csv), "--ignore", "Notes", "--assign", "Mobile=phone"])
    out = capsys.readouterr().out
    assert code == EXIT_HANDED_OFF
    payload = _json_block(out)
    assert payload["file"] == "contacts.csv"
    assert payload["mapping"] == {"Email": "email", "Mobile": "phone", "First Name": "first_name"}
    assert "SUMMARY file=contacts.csv columns=5 matched=3 unmatched=1 ignored=1 missing_required=0" in out


def test_cli_blocked_lists_missing_fields(write_registry, contacts_csv: Path, capsys):
    code = cli_main([str(contacts_csv), "--ignore", "Email"])
    out = capsys.readouterr().out
    assert code == EXIT_BLOCKED
    assert "WARN missing required fields:" in out
    assert "  - Email: Primary contact email" in out
    assert "missing_required=1" in out
    assert "{" not in out


def test_cli_assign_conflict_resolved_for_requester(write_registry, contacts_csv: Path, capsys):
    code = cli_main([str(contacts_csv), "--assign", "Notes=email"])
    out = capsys.readouterr().out
    assert code == EXIT_HANDED_OFF
    mapping = _json_block(out)["mapping"]
    assert mapping["Notes"] == "email"
    assert "Email" not in mapping


def test_cli_inspect_data(write_registry, contacts_csv: Path, capsys):
    code = cli_main([str(contacts_csv), "--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    assert "FILE: contacts.csv" in out
    assert "  COLUMN[0]: Email -> email" in out
    assert "  COLUMN[1]: Mobile -> UNMATCHED" in out
    assert "sample_rows= ['0400', '0411']" in out
    assert "There are 3 columns that are not matched in 'contacts.csv'" in out


def test_cli_missing_registry(temp_workdir: Path, contacts_csv: Path, capsys):
    code = cli_main([str(contacts_csv)])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR config: config file not found:" in out


def test_cli_registry_from_env(temp_workdir: Path, sample_registry_yaml: str, contacts_csv: Path, monkeypatch, capsys):
    alt = temp_workdir / "alt.yml"
    alt.write_text(sample_registry_yaml, encoding="utf-8")
    monkeypatch.setenv("COLRECON_REGISTRY", str(alt))
    code = cli_main([str(contacts_csv), "--inspect-data"])
    assert code == 0
    assert "FILE: contacts.csv" in capsys.readouterr().out


def test_cli_registry_from_dotenv(temp_workdir: Path, sample_registry_yaml: str, contacts_csv: Path, monkeypatch, capsys):
    alt = temp_workdir / "from_dotenv.yml"
    alt.write_text(sample_registry_yaml, encoding="utf-8")
    (temp_workdir / ".env").write_text(f"COLRECON_REGISTRY={alt}\n", encoding="utf-8")
    # .env の値がプロセス環境より優先される
    monkeypatch.setenv("COLRECON_REGISTRY", str(temp_workdir / "missing.yml"))
    code = cli_main([str(contacts_csv), "--inspect-data"])
    assert code == 0
    assert "FILE: contacts.csv" in capsys.readouterr().out


def test_cli_file_not_found(write_registry, temp_workdir: Path, capsys):
    code = cli_main([str(temp_workdir / "data" / "nope.csv")])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR file not found:" in out


def test_cli_unsupported_file(write_registry, temp_workdir: Path, capsys):
    path = temp_workdir / "data" / "notes.txt"
    path.write_text("a,b\n", encoding="utf-8")
    code = cli_main([str(path)])
    assert code == EXIT_FATAL
    assert "ERROR read: unsupported file type" in capsys.readouterr().out


@pytest.mark.parametrize(
    "args,message",
    [
        (["--assign", "Mobile"], "invalid --assign value"),
        (["--assign", "Mobile=fax"], "unknown target field"),
        (["--ignore", "Fax"], "Fax"),
    ],
)
def test_cli_bad_intent(write_registry, contacts_csv: Path, capsys, args: list[str], message: str):
    code = cli_main([str(contacts_csv), *args])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR intent:" in out and message in out


def test_cli_event_log_written(write_registry, contacts_csv: Path, temp_workdir: Path, capsys):
    code = cli_main([str(contacts_csv), "--event-log", "--assign", "Notes=email"])
    assert code == EXIT_HANDED_OFF
    logs = list((temp_workdir / "logs").glob("session-*.log"))
    assert len(logs) == 1
    events = [json.loads(line)["event_type"] for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert events == ["BOOTSTRAP", "CONFLICT_OPENED", "CONFLICT_RESOLVED", "HANDED_OFF"]


def test_cli_debug_mode(write_registry, contacts_csv: Path, capsys):
    code = cli_main([str(contacts_csv), "--debug", "--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out


def test_cli_runs_as_module(write_registry, contacts_csv: Path, monkeypatch, capsys):
    # python -m colrecon.cli 相当 (二重ロード警告が出ないこと)
    monkeypatch.delitem(sys.modules, "colrecon.cli.__main__", raising=False)
    monkeypatch.setattr(sys, "argv", ["colrecon", str(contacts_csv), "--inspect-data"])
    with warnings.catch_warnings():
        warnings.simplefilter("error", RuntimeWarning)
        with pytest.raises(SystemExit) as e:
            runpy.run_module("colrecon.cli", run_name="__main__", alter_sys=True)
    assert e.value.code == 0
    assert "FILE: contacts.csv" in capsys.readouterr().out
