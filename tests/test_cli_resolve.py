from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from apps.cli.main import app

runner = CliRunner()


def _write_inputs(root: Path, content: str, charts: list[dict[str, object]] | None = None) -> None:
    (root / "article.md").write_text(content, encoding="utf-8")
    uploads = root / "uploads"
    uploads.mkdir()
    (uploads / "123_foo.png").write_bytes(b"png")
    if charts is not None:
        (root / "charts.json").write_text(json.dumps(charts), encoding="utf-8")


def _demo_chart() -> dict[str, object]:
    return {
        "id": "c1",
        "type": "bar",
        "name": "Demo",
        "series": [{"label": "A", "value": 10}, {"label": "B", "value": 20}],
    }


def test_resolve_writes_html_and_report(tmp_path: Path) -> None:
    _write_inputs(tmp_path, "See [CHART:c1] and [Imagem: foo.png]", [_demo_chart()])
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        [
            "resolve",
            "--content",
            str(tmp_path / "article.md"),
            "--uploads-dir",
            str(tmp_path / "uploads"),
            "--charts",
            str(tmp_path / "charts.json"),
            "--out-dir",
            str(out_dir),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "resolved=2 unresolved=0 rejected=0" in result.output
    assert "INFO: success" in result.output
    html = (out_dir / "out.html").read_text(encoding="utf-8")
    assert 'src="/uploads/123_foo.png"' in html
    report = json.loads((out_dir / "out.report.json").read_text(encoding="utf-8"))
    assert report["resolved_count"] == 2
    assert list(out_dir.glob("*.tmp")) == []


def test_resolve_raster_writes_chart_into_uploads(tmp_path: Path) -> None:
    _write_inputs(tmp_path, "[CHART:c1]", [_demo_chart()])

    result = runner.invoke(
        app,
        [
            "resolve",
            "--content",
            str(tmp_path / "article.md"),
            "--uploads-dir",
            str(tmp_path / "uploads"),
            "--charts",
            str(tmp_path / "charts.json"),
            "--out-dir",
            str(tmp_path / "out"),
            "--chart-format",
            "raster_file",
        ],
    )

    assert result.exit_code == 0, result.output
    charts = sorted(path.name for path in (tmp_path / "uploads").glob("c1_*.png"))
    assert len(charts) == 1
    assert charts[0] in (tmp_path / "out" / "out.html").read_text(encoding="utf-8")


def test_resolve_strict_exits_2_on_unresolved(tmp_path: Path) -> None:
    _write_inputs(tmp_path, "[Imagem: nonexistent.png]")

    result = runner.invoke(
        app,
        [
            "resolve",
            "--content",
            str(tmp_path / "article.md"),
            "--uploads-dir",
            str(tmp_path / "uploads"),
            "--out-dir",
            str(tmp_path / "out"),
            "--strict",
        ],
    )

    assert result.exit_code == 2
    assert "unresolved: nonexistent.png" in result.output
    assert (tmp_path / "out" / "out.html").read_text(encoding="utf-8") == "[Imagem: nonexistent.png]"


def test_resolve_warns_without_strict(tmp_path: Path) -> None:
    _write_inputs(tmp_path, "[Imagem: nonexistent.png]")

    result = runner.invoke(
        app,
        [
            "resolve",
            "--content",
            str(tmp_path / "article.md"),
            "--uploads-dir",
            str(tmp_path / "uploads"),
            "--out-dir",
            str(tmp_path / "out"),
            "--report",
            "json",
        ],
    )

    assert result.exit_code == 0
    assert "WARNING: unresolved tags or rejected charts" in result.output
    assert '"unresolved_requests":["nonexistent.png"]' in result.output


def test_resolve_invalid_chart_format_writes_fallback(tmp_path: Path) -> None:
    _write_inputs(tmp_path, "[CHART:c1]")
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        [
            "resolve",
            "--content",
            str(tmp_path / "article.md"),
            "--out-dir",
            str(out_dir),
            "--chart-format",
            "gif",
        ],
    )

    assert result.exit_code == 1
    assert "--chart-format must be one of" in result.output
    report = json.loads((out_dir / "out.report.json").read_text(encoding="utf-8"))
    assert report["error"]["error_type"] == "ArgumentValidationError"
    assert report["error"]["stage"] == "args"
    assert not (out_dir / "out.html").exists()


def test_resolve_invalid_charts_json_exits_1(tmp_path: Path) -> None:
    _write_inputs(tmp_path, "[CHART:c1]")
    (tmp_path / "charts.json").write_text("{broken", encoding="utf-8")
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        [
            "resolve",
            "--content",
            str(tmp_path / "article.md"),
            "--charts",
            str(tmp_path / "charts.json"),
            "--out-dir",
            str(out_dir),
        ],
    )

    assert result.exit_code == 1
    report = json.loads((out_dir / "out.report.json").read_text(encoding="utf-8"))
    assert report["error"]["stage"] == "load_charts"
    assert report["resolved_count"] == 0


def test_resolve_no_overwrite_refuses_existing_outputs(tmp_path: Path) -> None:
    _write_inputs(tmp_path, "text")
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    (out_dir / "out.html").write_text("old", encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "resolve",
            "--content",
            str(tmp_path / "article.md"),
            "--out-dir",
            str(out_dir),
            "--no-overwrite",
        ],
    )

    assert result.exit_code == 1
    assert (out_dir / "out.html").read_text(encoding="utf-8") == "old"
