from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
from typer.testing import CliRunner

from trustmap import main
from trustmap.domain.models import RunSummary
from trustmap.exceptions import DirectoryError, PartitionEnumerationError

runner = CliRunner()

pytestmark = pytest.mark.usefixtures("restore_logging")
NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _fake_run(calls):
    def run_enumeration(output, settings=None, client=None):
        calls.append(output)
        Path(output).write_text("<Domains/>", encoding="utf-8")
        return RunSummary(output=Path(output), started=NOW, finished=NOW, domains=2, trusts=1)

    return run_enumeration


def test_cli_runs_enumeration(monkeypatch, tmp_path: Path):
    calls = []
    monkeypatch.setattr(main, "run_enumeration", _fake_run(calls))
    output = tmp_path / "trusts.xml"

    result = runner.invoke(main.app, [str(output)])

    assert result.exit_code == 0
    assert calls == [output]
    assert "already exists" not in result.output


def test_cli_warns_before_overwriting(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(main, "run_enumeration", _fake_run([]))
    output = tmp_path / "trusts.xml"
    output.write_text("old", encoding="utf-8")

    result = runner.invoke(main.app, [str(output)])

    assert result.exit_code == 0
    assert "already exists" in result.output
    assert output.read_text(encoding="utf-8") == "<Domains/>"


def test_cli_fatal_error_exits_with_one(monkeypatch, tmp_path: Path):
    def failing(output, settings=None, client=None):
        raise PartitionEnumerationError(DirectoryError("root.example", "unreachable"))

    monkeypatch.setattr(main, "run_enumeration", failing)

    result = runner.invoke(main.app, [str(tmp_path / "trusts.xml")])

    assert result.exit_code == 1


def test_cli_requires_output_argument():
    result = runner.invoke(main.app, [])

    assert result.exit_code != 0
