"""Tests for the backup command-line interface."""

import json

import pytest

from src.services.backup_service import table_counts
from src.utils import backup_cli

ALICE = "11111111-1111-1111-1111-111111111111"
BOB = "22222222-2222-2222-2222-222222222222"


@pytest.fixture
def cli_db(test_db, monkeypatch):
    """Route the CLI at the test database instead of creating a real one."""
    monkeypatch.setattr(backup_cli, "initialize_app_database", lambda: None)
    return test_db


@pytest.fixture
def bundle_file(tmp_path, scenario_bundle):
    path = tmp_path / "bundle.json"
    path.write_text(json.dumps(scenario_bundle), encoding="utf-8")
    return path


def test_no_command_prints_help(capsys):
    assert backup_cli.main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_import_then_export(cli_db, bundle_file, tmp_path, capsys):
    assert backup_cli.main(["import", str(bundle_file)]) == 0
    assert "Rows Written: 12" in capsys.readouterr().out

    out_path = tmp_path / "export.json"
    assert backup_cli.main(["export", str(out_path), "--user-id", ALICE]) == 0

    exported = json.loads(out_path.read_text(encoding="utf-8"))
    assert exported["user_id"] == ALICE
    assert len(exported["log_entries"]) == 3


def test_import_into_other_user(cli_db, bundle_file):
    assert backup_cli.main(["import", str(bundle_file), "--user-id", BOB]) == 0
    assert table_counts()["users"] == 1


def test_failed_import_exits_nonzero(cli_db, tmp_path, scenario_bundle, capsys):
    scenario_bundle["daily_activity"][0]["date"] = "2024-13-45"
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(scenario_bundle), encoding="utf-8")

    assert backup_cli.main(["import", str(path)]) == 1

    out = capsys.readouterr().out
    assert "No changes were made." in out
    assert all(count == 0 for count in table_counts().values())


def test_missing_import_file(cli_db, tmp_path, capsys):
    assert backup_cli.main(["import", str(tmp_path / "nope.json")]) == 1
    assert "cannot read" in capsys.readouterr().out


def test_validate(bundle_file, capsys):
    assert backup_cli.main(["validate", str(bundle_file)]) == 0
    assert "Bundle is valid" in capsys.readouterr().out


def test_validate_invalid(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text('{"version": 1, "presets": [{"name": "no id"}]}', encoding="utf-8")

    assert backup_cli.main(["validate", str(path)]) == 1
    assert "presets[0].id" in capsys.readouterr().out


def test_entry_point_exits_with_status(bundle_file):
    from src.main import main

    with pytest.raises(SystemExit) as exc_info:
        main(["validate", str(bundle_file)])

    assert exc_info.value.code == 0
