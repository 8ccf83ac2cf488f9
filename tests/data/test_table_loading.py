"""Tests for apastyle.data.loaders module."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from apastyle.data import DataFormat, load_table


@pytest.fixture
def observations():
    return pd.DataFrame(
        {
            "block": ["1", "1", "2", "2"],
            "N": ["0", "1", "0", "1"],
            "yield": [49.5, 62.8, 46.8, 57.0],
        }
    )


def test_format_from_path():
    assert DataFormat.from_path(Path("npk.csv")) == DataFormat.CSV
    assert DataFormat.from_path(Path("npk.PARQUET")) == DataFormat.PARQUET

    with pytest.raises(ValueError, match="Cannot infer data format"):
        DataFormat.from_path(Path("npk.xlsx"))


def test_load_csv(tmp_path, observations):
    path = tmp_path / "npk.csv"
    observations.to_csv(path, index=False)

    df = load_table(path)

    assert list(df.columns) == ["block", "N", "yield"]
    assert len(df) == 4
    assert df["yield"].dtype.kind == "f"


def test_load_csv_column_subset(tmp_path, observations):
    path = tmp_path / "npk.csv"
    observations.to_csv(path, index=False)

    df = load_table(path, columns=["N", "yield"])

    assert list(df.columns) == ["N", "yield"]


def test_load_parquet(tmp_path, observations):
    pytest.importorskip("pyarrow")
    path = tmp_path / "npk.parquet"
    observations.to_parquet(path, index=False)

    df = load_table(path)

    pd.testing.assert_frame_equal(df, observations)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError, match="Data file not found"):
        load_table(tmp_path / "absent.csv")


def test_unsupported_suffix_raises(tmp_path):
    path = tmp_path / "npk.txt"
    path.write_text("a,b\n1,2\n")

    with pytest.raises(ValueError, match="Cannot infer data format"):
        load_table(path)
