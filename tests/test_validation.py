"""Tests for shared argument validation."""

import numpy as np
import pandas as pd
import pytest

from apastyle.validation import (
    as_name_list,
    validate_columns,
    validate_no_missing,
    validate_numeric_column,
    validate_positions,
    validate_range,
    validate_shape,
)


def test_as_name_list():
    assert as_name_list("A", "factors") == ["A"]
    assert as_name_list(("A", "B"), "factors") == ["A", "B"]

    with pytest.raises(TypeError, match="'factors'"):
        as_name_list(["A", 2], "factors")

    with pytest.raises(TypeError, match="'factors'"):
        as_name_list(None, "factors")


def test_validate_columns():
    df = pd.DataFrame({"a": [1], "b": [2]})

    validate_columns(df, ["a", "b"])

    with pytest.raises(ValueError, match=r"Columns not found in 'data': \['c'\]"):
        validate_columns(df, ["a", "c"])

    with pytest.raises(TypeError, match="DataFrame"):
        validate_columns(df.to_numpy(), ["a"])


def test_validate_range():
    validate_range(0.95, "level", (0, 1), inclusive=False)
    validate_range(np.int64(3), "n", (1, 4))
    validate_range(4, "n", (1, 4))

    with pytest.raises(ValueError, match=r"\(0, 1\)"):
        validate_range(0, "level", (0, 1), inclusive=False)

    with pytest.raises(ValueError, match=r"\[1, 4\]"):
        validate_range(5, "n", (1, 4))

    with pytest.raises(TypeError, match="'flag'"):
        validate_range(True, "flag", (0, 1))


def test_validate_numeric_column():
    df = pd.DataFrame({"x": [1.0, 2.0], "s": ["a", "b"], "b": [True, False]})

    validate_numeric_column(df, "x")

    with pytest.raises(ValueError, match="must be numeric"):
        validate_numeric_column(df, "s")

    with pytest.raises(ValueError, match="must be numeric"):
        validate_numeric_column(df, "b")


def test_validate_no_missing():
    df = pd.DataFrame({"x": [1.0, np.nan], "y": [1, 2]})

    validate_no_missing(df, ["y"])

    with pytest.raises(ValueError, match=r"\['x'\]"):
        validate_no_missing(df, ["x", "y"])


def test_validate_positions():
    assert validate_positions([1, np.int64(3)], "midrules", 3) == [1, 3]
    assert validate_positions([], "midrules", 3) == []

    with pytest.raises(ValueError, match=r"\[1, 3\]"):
        validate_positions([4], "midrules", 3)

    with pytest.raises(TypeError, match="integers"):
        validate_positions([1.5], "midrules", 3)


def test_validate_shape():
    validate_shape(None, "legend_visibility", (2, 2))
    validate_shape(np.zeros((2, 2)), "legend_visibility", (2, 2))

    with pytest.raises(ValueError, match=r"shape \(2, 2\)"):
        validate_shape(np.zeros(4), "legend_visibility", (2, 2))
