"""Loading of observation tables from disk.

Supports CSV and Parquet files.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import pandas as pd

logger = logging.getLogger(__name__)


class DataFormat(str, Enum):
    """Supported data formats."""

    CSV = "csv"
    PARQUET = "parquet"

    @classmethod
    def from_path(cls, path: Path) -> "DataFormat":
        """
        Infer format from a file suffix.

        Parameters
        ----------
        path : Path
            Path to data file

        Returns
        -------
        DataFormat
            Inferred format

        Raises
        ------
        ValueError
            If format cannot be inferred
        """
        suffix = Path(path).suffix.lower()
        if suffix == ".csv":
            return cls.CSV
        elif suffix == ".parquet":
            return cls.PARQUET
        else:
            raise ValueError(f"Cannot infer data format from path: {path}. Expected a .csv or .parquet file.")


def validate_parquet_available() -> None:
    """
    Check if PyArrow is available for Parquet operations.

    Raises
    ------
    ImportError
        If PyArrow is not installed
    """
    try:
        import pyarrow  # noqa: F401
    except ImportError:
        raise ImportError(
            "PyArrow is required for Parquet support but is not installed.\n"
            "Install with: pip install apastyle[parquet] or pip install pyarrow"
        ) from None


def load_table(path: Path, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Load an observation table from a CSV or Parquet file.

    Parameters
    ----------
    path : Path
        Path to data file
    columns : List[str], optional
        Subset of columns to load

    Returns
    -------
    pd.DataFrame
        Loaded data

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValueError
        If the format is not supported

    Examples
    --------
    >>> df = load_table(Path("npk.csv"))
    """
    path = Path(path)
    fmt = DataFormat.from_path(path)

    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    logger.info(f"Loading table from {path} (format: {fmt.value})")

    if fmt == DataFormat.CSV:
        df = pd.read_csv(path, usecols=columns)
    else:
        validate_parquet_available()
        df = pd.read_parquet(path, columns=columns)

    logger.info(f"Loaded {len(df)} rows, {len(df.columns)} columns")
    return df
