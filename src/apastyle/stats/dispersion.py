"""Measures of dispersion used for error bars."""

from __future__ import annotations

from enum import Enum
from typing import Callable, List, Union

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from apastyle.validation import (
    as_name_list,
    validate_columns,
    validate_no_missing,
    validate_range,
)


class DispersionKind(str, Enum):
    """Kinds of error bars a plot can show."""

    SE = "se"
    CONF_INT = "conf_int"
    WITHIN_SUBJECTS_CONF_INT = "within_subjects_conf_int"
    CUSTOM = "custom"

    @classmethod
    def from_value(cls, value: Union["DispersionKind", str, Callable]) -> "DispersionKind":
        """
        Coerce a user-supplied dispersion option to a kind.

        Parameters
        ----------
        value : DispersionKind, str or callable
            A kind, its name (``"wsci"`` is accepted for the within-subjects
            interval), or a function, which selects ``CUSTOM``

        Returns
        -------
        DispersionKind

        Raises
        ------
        ValueError
            If a string does not name a known kind
        TypeError
            If value is neither a kind, a string, nor callable
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_")
            if key == "wsci":
                return cls.WITHIN_SUBJECTS_CONF_INT
            try:
                return cls(key)
            except ValueError:
                valid = [k.value for k in cls] + ["wsci"]
                raise ValueError(f"Unknown dispersion '{value}'. Expected one of {valid}") from None
        if callable(value):
            return cls.CUSTOM
        raise TypeError(
            f"'dispersion' must be a DispersionKind, a string or a function, got {type(value).__name__}"
        )


def _clean(x, na_rm: bool) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    if na_rm:
        x = x[~np.isnan(x)]
    return x


def _t_quantile(level: float, n: int) -> float:
    return float(sp_stats.t.ppf(1 - (1 - level) / 2, df=n - 1))


def se(x, na_rm: bool = True) -> float:
    """Standard error of the mean.

    Args:
        x: Values
        na_rm: Drop missing values first

    Returns:
        ``sd(x) / sqrt(n)``; NaN with fewer than two values
    """
    x = _clean(x, na_rm)
    n = len(x)
    if n < 2:
        return np.nan
    return float(np.std(x, ddof=1) / np.sqrt(n))


def conf_int(x, level: float = 0.95, na_rm: bool = True) -> float:
    """Half-width of a between-subjects t confidence interval.

    Args:
        x: Values
        level: Confidence level in (0, 1)
        na_rm: Drop missing values first

    Returns:
        ``t(1 - (1 - level) / 2, n - 1) * se(x)``
    """
    validate_range(level, "level", (0, 1), inclusive=False)
    x = _clean(x, na_rm)
    n = len(x)
    if n < 2:
        return np.nan
    return _t_quantile(level, n) * se(x, na_rm=False)


def split_within_between(data: pd.DataFrame, id: str, factors: List[str]) -> tuple[List[str], List[str]]:
    """Split factors into within- and between-subjects factors.

    A factor is within-subjects if its levels vary inside at least one subject.
    """
    within, between = [], []
    for f in factors:
        per_subject = data.groupby(id, observed=True)[f].nunique()
        if (per_subject > 1).any():
            within.append(f)
        else:
            between.append(f)
    return within, between


def within_subjects_conf_int(
    data: pd.DataFrame,
    id: str,
    factors: Union[str, List[str]],
    dv: str,
    level: float = 0.95,
) -> pd.DataFrame:
    """Within-subjects confidence intervals (Cousineau normalisation, Morey correction).

    Subject means are removed from every observation and the grand mean of the
    subject's between-subjects group is added back. The t interval of the
    normalised values is then inflated by ``sqrt(M / (M - 1))``, ``M`` being the
    number of within-subjects cells.

    Args:
        data: One row per subject and within-subjects cell
        id: Subject identifier column
        factors: Factor column(s)
        dv: Dependent variable column
        level: Confidence level in (0, 1)

    Returns:
        DataFrame with columns: <factors...>, dispersion

    Raises:
        ValueError: If subject or factor labels are missing, no factor varies
            within subjects, or the design is incomplete
    """
    factors = as_name_list(factors, "factors")
    validate_columns(data, [id, *factors, dv])
    validate_no_missing(data, [id, *factors])
    validate_range(level, "level", (0, 1), inclusive=False)

    df = data[[id, *factors, dv]].copy()
    within, between = split_within_between(df, id, factors)
    if not within:
        raise ValueError(
            "Within-subjects confidence intervals need at least one within-subjects factor; "
            f"all of {factors} are constant within '{id}'"
        )

    n_cells = int(np.prod([df[f].nunique() for f in within]))
    per_subject = df.groupby(id, observed=True).size()
    if df.duplicated([id, *within]).any() or (per_subject != n_cells).any():
        raise ValueError(
            f"Within-subjects confidence intervals need exactly one value per subject and "
            f"within-subjects cell ({n_cells} cells of {within}); aggregate the data first"
        )

    subject_mean = df.groupby(id, observed=True)[dv].transform("mean")
    if between:
        grand_mean = df.groupby(between, observed=True)[dv].transform("mean")
    else:
        grand_mean = df[dv].mean()
    df["_normed"] = df[dv] - subject_mean + grand_mean

    morey = np.sqrt(n_cells / (n_cells - 1))

    def half_width(x: pd.Series) -> float:
        x = x.dropna().to_numpy()
        n = len(x)
        if n < 2:
            return np.nan
        return _t_quantile(level, n) * np.std(x, ddof=1) / np.sqrt(n) * morey

    out = df.groupby(factors, observed=True)["_normed"].agg(half_width).reset_index()
    return out.rename(columns={"_normed": "dispersion"})
