from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from apps.cli.main import app

runner = CliRunner()


def _uploads(root: Path) -> Path:
    uploads = root / "uploads"
    uploads.mkdir()
    for name in ("1690000000_Figura1.png", "logo.png", "notes.txt"):
        (uploads / name).write_bytes(b"")
    return uploads


def test_match_prints_candidate_and_stage(tmp_path: Path) -> None:
    uploads = _uploads(tmp_path)

    result = runner.invoke(app, ["match", "Figura1.png", "--uploads-dir", str(uploads)])

    assert result.exit_code == 0
    assert "MATCHED: 1690000000_Figura1.png strategy=exact" in result.output


def test_match_unresolved_exits_1(tmp_path: Path) -> None:
    uploads = _uploads(tmp_path)

    result = runner.invoke(app, ["match", "notes.txt", "--uploads-dir", str(uploads)])

    assert result.exit_code == 1
    assert "UNRESOLVED: notes.txt (candidates=2)" in result.output


def test_validate_charts_reports_each_descriptor(tmp_path: Path) -> None:
    charts = tmp_path / "charts.json"
    charts.write_text(
        json.dumps(
            {
                "charts": [
                    {
                        "id": "ok1",
                        "name": "Vendas",
                        "type": "bar",
                        "series": [{"label": "Norte", "value": 1}],
                    },
                    {
                        "id": "bad1",
                        "name": "Vendas",
                        "type": "bar",
                        "series": [{"label": "Categoria 1", "value": 1}],
                    },
                    {"name": "sem id", "type": "pie", "series": []},
                ]
            }
        ),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["validate-charts", str(charts)])

    assert result.exit_code == 1
    lines = result.output.strip().splitlines()
    assert lines[0] == "ok1: ok"
    assert lines[1].startswith("bad1: placeholder_label (")
    assert lines[2].startswith("#2: missing_field (")
    assert lines[3] == "checked=3 rejected=2"


def test_validate_charts_all_valid_exits_0(tmp_path: Path) -> None:
    charts = tmp_path / "charts.json"
    charts.write_text(
        json.dumps(
            [{"id": "c1", "name": "Linha", "type": "line", "data": {"labels": ["Jan"], "values": [1]}}]
        ),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["validate-charts", str(charts)])

    assert result.exit_code == 0
    assert "c1: ok" in result.output


def test_validate_charts_invalid_json_exits_1(tmp_path: Path) -> None:
    charts = tmp_path / "charts.json"
    charts.write_text("[", encoding="utf-8")

    result = runner.invoke(app, ["validate-charts", str(charts)])

    assert result.exit_code == 1
    assert "Invalid chart JSON" in result.output
