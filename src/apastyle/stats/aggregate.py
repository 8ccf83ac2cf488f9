"""Aggregation of subject-level observations into design cells."""

from __future__ import annotations

import logging
from typing import Callable, List, Sequence, Union

import numpy as np
import pandas as pd

from apastyle.stats.dispersion import (
    DispersionKind,
    conf_int,
    se,
    within_subjects_conf_int,
)
from apastyle.validation import (
    as_name_list,
    validate_callable,
    validate_columns,
    validate_numeric_column,
    validate_range,
)

logger = logging.getLogger(__name__)

MAX_FACTORS = 4


def as_categorical(values: pd.Series) -> pd.Series:
    """Convert a column to a categorical without unused levels.

    Existing categorical order is kept; otherwise levels are the sorted unique values.
    """
    if isinstance(values.dtype, pd.CategoricalDtype):
        return values.cat.remove_unused_categories()
    return values.astype("category")


def drop_unused_levels(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    for col in columns:
        if isinstance(df[col].dtype, pd.CategoricalDtype):
            df[col] = df[col].cat.remove_unused_categories()
    return df


def prepare_observations(
    data: pd.DataFrame,
    id: str,
    factors: Union[str, Sequence[str]],
    dv: str,
) -> pd.DataFrame:
    """Validate an observation table and reduce it to the columns of the design.

    Args:
        data: Observation table, one row per measurement
        id: Subject identifier column
        factors: 1 to 4 factor columns
        dv: Numeric dependent variable column

    Returns:
        Copy of ``data[[id, *factors, dv]]`` with id and factors as categoricals
        and unused levels dropped

    Raises:
        TypeError: If arguments have the wrong type
        ValueError: If columns are missing, the factor count is outside [1, 4],
            names repeat, or the dependent variable is not numeric
    """
    if not isinstance(id, str):
        raise TypeError(f"'id' must be a string, got {type(id).__name__}")
    if not isinstance(dv, str):
        raise TypeError(f"'dv' must be a string, got {type(dv).__name__}")
    factors = as_name_list(factors, "factors")
    validate_range(len(factors), "number of factors", (1, MAX_FACTORS))

    names = [id, *factors, dv]
    if len(set(names)) != len(names):
        raise ValueError(f"'id', 'factors' and 'dv' must name distinct columns, got {names}")

    validate_columns(data, names)
    validate_numeric_column(data, dv)

    df = data[names].copy()
    for col in [id, *factors]:
        df[col] = as_categorical(df[col])

    n_missing = int(df[[id, *factors]].isna().any(axis=1).sum())
    if n_missing:
        logger.warning(f"Dropping {n_missing} rows with missing subject or factor labels")
        df = drop_unused_levels(df.dropna(subset=[id, *factors]), [id, *factors])

    return df


def aggregate_subjects(
    data: pd.DataFrame,
    id: str,
    factors: List[str],
    dv: str,
    fun_aggregate: Callable = np.mean,
    na_rm: bool = True,
) -> pd.DataFrame:
    """Collapse observations to one value per subject and design cell.

    Args:
        data: Output of prepare_observations()
        id: Subject identifier column
        factors: Factor columns
        dv: Dependent variable column
        fun_aggregate: Function applied to each subject's values in a cell
        na_rm: Drop missing dependent values before aggregating

    Returns:
        DataFrame with columns: id, <factors...>, dv
    """
    validate_callable(fun_aggregate, "fun_aggregate")

    if na_rm:
        data = data.dropna(subset=[dv])

    aggregated = (
        data.groupby([id, *factors], observed=True)[dv]
        .agg(lambda s: fun_aggregate(s.to_numpy()))
        .reset_index()
    )
    return drop_unused_levels(aggregated, [id, *factors])


def _cell_dispersion(
    aggregated: pd.DataFrame,
    id: str,
    factors: List[str],
    dv: str,
    kind: DispersionKind,
    dispersion: Union[DispersionKind, str, Callable],
    level: float,
    na_rm: bool,
) -> pd.DataFrame:
    if kind == DispersionKind.WITHIN_SUBJECTS_CONF_INT:
        return within_subjects_conf_int(aggregated, id, factors, dv, level=level)

    if kind == DispersionKind.CONF_INT:
        fun = lambda x: conf_int(x, level=level, na_rm=na_rm)  # noqa: E731
    elif kind == DispersionKind.SE:
        fun = lambda x: se(x, na_rm=na_rm)  # noqa: E731
    else:
        if not callable(dispersion):
            raise ValueError("A custom dispersion needs a function, e.g. dispersion=np.std")
        fun = dispersion

    ee = aggregated.groupby(factors, observed=True)[dv].agg(lambda s: fun(s.to_numpy()))
    return ee.rename("dispersion").reset_index()


def summarize_cells(
    aggregated: pd.DataFrame,
    id: str,
    factors: List[str],
    dv: str,
    tendency: Callable = np.mean,
    dispersion: Union[DispersionKind, str, Callable] = DispersionKind.CONF_INT,
    level: float = 0.95,
    na_rm: bool = True,
) -> pd.DataFrame:
    """Compute tendency, dispersion and error-bar limits per design cell.

    The subject dimension is collapsed; each combination of factor levels
    yields one row.

    Args:
        aggregated: Output of aggregate_subjects()
        id: Subject identifier column (needed for within-subjects intervals)
        factors: Factor columns
        dv: Dependent variable column
        tendency: Measure of central tendency
        dispersion: Kind of error bar, or a function (custom dispersion)
        level: Confidence level for interval kinds
        na_rm: Drop missing values when summarising

    Returns:
        DataFrame with columns:
            <factors...>, tendency, dispersion, lower_limit, upper_limit
    """
    validate_callable(tendency, "tendency")
    validate_range(level, "level", (0, 1), inclusive=False)
    kind = DispersionKind.from_value(dispersion)

    values = aggregated.dropna(subset=[dv]) if na_rm else aggregated

    yy = (
        values.groupby(factors, observed=True)[dv]
        .agg(lambda s: tendency(s.to_numpy()))
        .rename("tendency")
        .reset_index()
    )
    ee = _cell_dispersion(values, id, factors, dv, kind, dispersion, level, na_rm)

    cells = yy.merge(ee, on=factors, how="left")
    cells["tendency"] = cells["tendency"].astype(float)
    cells["dispersion"] = cells["dispersion"].astype(float)

    # Missing parts are skipped, not propagated
    cells["lower_limit"] = cells["tendency"].fillna(0) - cells["dispersion"].fillna(0)
    cells["upper_limit"] = cells["tendency"].fillna(0) + cells["dispersion"].fillna(0)

    cells = cells.sort_values(factors).reset_index(drop=True)
    logger.debug(f"Summarised {len(cells)} cells of {factors} ({kind.value})")
    return drop_unused_levels(cells, factors)


def aggregate_cells(
    data: pd.DataFrame,
    id: str,
    factors: Union[str, Sequence[str]],
    dv: str,
    tendency: Callable = np.mean,
    dispersion: Union[DispersionKind, str, Callable] = DispersionKind.CONF_INT,
    level: float = 0.95,
    fun_aggregate: Callable = np.mean,
    na_rm: bool = True,
) -> pd.DataFrame:
    """Run the full aggregation stage on a raw observation table.

    Example:
        >>> cells = aggregate_cells(df, id="subject", factors=["A", "B"], dv="rt",
        ...                         dispersion="se")
        >>> cells.columns.tolist()
        ['A', 'B', 'tendency', 'dispersion', 'lower_limit', 'upper_limit']
    """
    factors = as_name_list(factors, "factors")
    observations = prepare_observations(data, id, factors, dv)
    aggregated = aggregate_subjects(observations, id, factors, dv, fun_aggregate, na_rm)
    return summarize_cells(aggregated, id, factors, dv, tendency, dispersion, level, na_rm)
