from __future__ import annotations

import json
from pathlib import Path

import duckdb

from hms.cli import main
from tests.helpers import make_team_payload


def _write_team(path: Path, payload: dict) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_cli_prints_match(tmp_path: Path, capsys) -> None:
    home = _write_team(tmp_path / "home.json", make_team_payload("Vardar"))
    away = _write_team(tmp_path / "away.json", make_team_payload("Veszprem"))
    assert main([str(home), str(away), "--seed", "cli-1"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Vardar ")
    assert "Veszprem" in out
    assert "passes=" in out

    assert main([str(home), str(away), "--seed", "cli-1"]) == 0
    assert capsys.readouterr().out == out


def test_cli_empty_roster_writes_forensic_artifact(tmp_path: Path, capsys) -> None:
    home = _write_team(tmp_path / "home.json", make_team_payload("Vardar"))
    away = _write_team(tmp_path / "away.json", {"name": "Empty", "players": []})
    forensic_dir = tmp_path / "forensics"
    assert main([str(home), str(away), "--forensic-dir", str(forensic_dir)]) == 2
    assert "Simulation failed" in capsys.readouterr().out
    artifacts = list(forensic_dir.glob("forensic_*.json"))
    assert len(artifacts) == 1
    payload = json.loads(artifacts[0].read_text(encoding="utf-8"))
    assert payload["error_code"] == "EMPTY_ROSTER"


def test_cli_calibration_batch_persists_and_exports(tmp_path: Path, capsys) -> None:
    home = _write_team(tmp_path / "home.json", make_team_payload("Vardar"))
    away = _write_team(tmp_path / "away.json", make_team_payload("Veszprem"))
    db_path = tmp_path / "calibration.duckdb"
    export_dir = tmp_path / "export"
    code = main(
        [str(home), str(away), "--calibrate", "6", "--seed", "batch", "--duckdb", str(db_path), "--export-dir", str(export_dir)]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert '"sample_count": 6' in out
    assert "Exported datasets:" in out
    assert (export_dir / "dev_calibration_runs.csv").exists()
    with duckdb.connect(str(db_path)) as conn:
        assert conn.execute("SELECT COUNT(*) FROM dev_calibration_runs").fetchone()[0] == 1
