"""Eager argument validation shared by the table and plot entry points."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def as_name_list(value: Union[str, Sequence[str]], name: str) -> List[str]:
    """Normalize a column name or a sequence of column names to a list.

    Parameters
    ----------
    value : str or sequence of str
        Column name(s)
    name : str
        Argument name used in error messages

    Returns
    -------
    List[str]
        Column names

    Raises
    ------
    TypeError
        If value is neither a string nor a sequence of strings
    """
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple, pd.Index)) and all(isinstance(v, str) for v in value):
        return list(value)
    raise TypeError(f"'{name}' must be a string or a sequence of strings, got {type(value).__name__}")


def validate_columns(df: pd.DataFrame, columns: Sequence[str], name: str = "data") -> None:
    """
    Check that all named columns exist in a DataFrame.

    Raises
    ------
    TypeError
        If df is not a DataFrame
    ValueError
        If any column is missing
    """
    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"'{name}' must be a pandas DataFrame, got {type(df).__name__}")

    available = set(df.columns)
    missing = [c for c in columns if c not in available]
    if missing:
        raise ValueError(
            f"Columns not found in '{name}': {missing}. Available: {sorted(map(str, available))[:10]}"
        )


def validate_range(
    value: Any,
    name: str,
    bounds: Tuple[float, float],
    inclusive: bool = True,
) -> None:
    """Check that a scalar number lies within bounds.

    Args:
        value: Value to check
        name: Argument name used in error messages
        bounds: (low, high)
        inclusive: Whether the bounds themselves are allowed

    Raises:
        TypeError: If value is not a real number
        ValueError: If value is outside the bounds
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise TypeError(f"'{name}' must be numeric, got {type(value).__name__}")

    low, high = bounds
    if inclusive:
        ok = low <= value <= high
        interval = f"[{low}, {high}]"
    else:
        ok = low < value < high
        interval = f"({low}, {high})"

    if not ok:
        raise ValueError(f"'{name}' must be in {interval}, got {value}")


def validate_callable(value: Any, name: str) -> None:
    if not callable(value):
        raise TypeError(f"'{name}' must be a function, got {type(value).__name__}")


def validate_numeric_column(df: pd.DataFrame, column: str) -> None:
    """Raise ValueError if a column is not numeric."""
    if not pd.api.types.is_numeric_dtype(df[column]) or pd.api.types.is_bool_dtype(df[column]):
        raise ValueError(f"Dependent variable '{column}' must be numeric, got dtype {df[column].dtype}")


def validate_no_missing(df: pd.DataFrame, columns: Sequence[str], name: str = "data") -> None:
    """Raise ValueError if any of the columns contains missing values."""
    bad = [c for c in columns if df[c].isna().any()]
    if bad:
        raise ValueError(f"Missing values are not allowed in '{name}' columns {bad}")


def validate_positions(
    positions: Sequence[int],
    name: str,
    n: int,
    low: int = 1,
) -> List[int]:
    """Validate 1-based row or column positions against an upper bound.

    Args:
        positions: Positions to check
        name: Argument name used in error messages
        n: Largest allowed position
        low: Smallest allowed position

    Returns:
        Positions as a list of ints
    """
    out: List[int] = []
    for p in positions:
        if isinstance(p, bool) or not isinstance(p, (int, np.integer)):
            raise TypeError(f"'{name}' must contain integers, got {p!r}")
        if not low <= p <= n:
            raise ValueError(f"'{name}' positions must be in [{low}, {n}], got {p}")
        out.append(int(p))
    return out


def validate_shape(array: Optional[np.ndarray], name: str, shape: Tuple[int, ...]) -> None:
    if array is not None and np.shape(array) != shape:
        raise ValueError(f"'{name}' must have shape {shape}, got {np.shape(array)}")
