from __future__ import annotations

from pathlib import Path

import matplotlib
import pandas as pd
import pytest
from typer.testing import CliRunner

from apastyle.cli.main import app


@pytest.fixture
def observations_csv(tmp_path: Path, two_by_three_data: pd.DataFrame) -> Path:
    path = tmp_path / "scores.csv"
    two_by_three_data.to_csv(path, index=False)
    return path


@pytest.fixture
def descriptives_csv(tmp_path: Path, descriptives: pd.DataFrame) -> Path:
    path = tmp_path / "descriptives.csv"
    descriptives.reset_index().to_csv(path, index=False)
    return path


def test_cli_version_flag() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "apastyle 0.1.0" in result.stdout


def test_cli_barplot_writes_figure(tmp_path: Path, observations_csv: Path) -> None:
    runner = CliRunner()
    out = tmp_path / "figures" / "scores.png"
    cells = tmp_path / "cells.csv"

    result = runner.invoke(
        app,
        [
            "barplot",
            str(observations_csv),
            "--id",
            "subject",
            "-f",
            "A",
            "-f",
            "B",
            "--dv",
            "score",
            "--dispersion",
            "se",
            "--out",
            str(out),
            "--cells-csv",
            str(cells),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Saved bar plot (6 cells)" in result.stdout
    assert out.exists()
    written = pd.read_csv(cells)
    assert len(written) == 6
    assert {"tendency", "dispersion", "lower_limit", "upper_limit"} <= set(written.columns)


def test_cli_barplot_uses_config_file(tmp_path: Path, observations_csv: Path) -> None:
    config = tmp_path / "plot.yaml"
    config.write_text("dispersion: se\nylab: Mean score\nylim: [0, 25]\n")
    out = tmp_path / "scores.pdf"

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "barplot",
            str(observations_csv),
            "--id",
            "subject",
            "-f",
            "A",
            "--dv",
            "score",
            "--config",
            str(config),
            "--ylab",
            "Score",
            "--out",
            str(out),
        ],
    )

    assert result.exit_code == 0, result.output
    assert out.exists()


def test_cli_barplot_reports_bad_columns(tmp_path: Path, observations_csv: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "barplot",
            str(observations_csv),
            "--id",
            "subject",
            "-f",
            "C",
            "--dv",
            "score",
            "--out",
            str(tmp_path / "x.png"),
        ],
    )

    assert result.exit_code == 1
    assert "Columns not found" in result.output


def test_cli_table_latex_to_stdout(descriptives_csv: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "table",
            str(descriptives_csv),
            "--index-col",
            "Group",
            "--caption",
            "Descriptive statistics",
            "--note",
            "Values are means.",
        ],
    )

    assert result.exit_code == 0, result.output
    assert r"\caption{Descriptive statistics}" in result.stdout
    assert r"Control & 12.35 & 1.20 & 20 \\" in result.stdout
    assert r"\textit{Note.} Values are means." in result.stdout


def test_cli_table_markdown_to_file(tmp_path: Path, descriptives_csv: Path) -> None:
    config = tmp_path / "table.yaml"
    config.write_text("format: markdown\ndigits: 1\n")
    out = tmp_path / "tables" / "descriptives.md"

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["table", str(descriptives_csv), "--config", str(config), "--out", str(out)],
    )

    assert result.exit_code == 0, result.output
    text = out.read_text(encoding="utf-8")
    assert text.startswith("| Group | M | SD | n |")
    assert "| Control | 12.3 | 1.2 | 20 |" in text


def test_cli_table_rejects_unknown_config_option(tmp_path: Path, descriptives_csv: Path) -> None:
    config = tmp_path / "table.yaml"
    config.write_text("colour: red\n")

    runner = CliRunner()
    result = runner.invoke(app, ["table", str(descriptives_csv), "--config", str(config)])

    assert result.exit_code == 1
    assert "Unknown TableConfig options" in result.output


def test_cli_barplot_selects_headless_backend(
    tmp_path: Path, observations_csv: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    backends = []
    monkeypatch.setattr(matplotlib, "use", lambda backend, *args, **kwargs: backends.append(backend))

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "barplot",
            str(observations_csv),
            "--id",
            "subject",
            "-f",
            "A",
            "--dv",
            "score",
            "--out",
            str(tmp_path / "scores.png"),
        ],
    )

    assert result.exit_code == 0, result.output
    assert backends == ["Agg"]
