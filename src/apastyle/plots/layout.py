"""Geometric layout of factorial bar plots.

Bars are placed on a continuous x axis: level ``i`` of the first factor owns
the interval ``[i, i + 1]``, which is split evenly among the levels of the
second factor after leaving a gap of ``space`` (half on each side). Factors
three and four select panels instead of bars.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from apastyle.validation import validate_shape

DEFAULT_SPACE = 0.2
CAP_FRACTION = 0.125
AXIS_OFFSET = 0.02


def _codes(values: pd.Series) -> Tuple[np.ndarray, int]:
    if not isinstance(values.dtype, pd.CategoricalDtype):
        values = values.astype("category")
    return values.cat.codes.to_numpy(), len(values.cat.categories)


def levels(values: pd.Series) -> List:
    """Display order of a factor column."""
    if isinstance(values.dtype, pd.CategoricalDtype):
        return list(values.cat.categories)
    return sorted(pd.unique(values.dropna()))


def bar_positions(
    cells: pd.DataFrame,
    factors: Sequence[str],
    space: float = DEFAULT_SPACE,
) -> pd.DataFrame:
    """Compute bar edges, centres and error bar ends for every cell.

    Args:
        cells: Output of summarize_cells() (or a panel subset of it)
        factors: Factor columns; only the first two affect positions
        space: Gap between groups as a fraction of the group width

    Returns:
        Copy of cells with columns x0, x1, center, error_low, error_high
    """
    i, _ = _codes(cells[factors[0]])
    if len(factors) > 1:
        j, n2 = _codes(cells[factors[1]])
    else:
        j, n2 = np.zeros(len(cells), dtype=int), 1

    width = (1 - space) / n2

    positions = cells.copy()
    positions["x0"] = i + space / 2 + width * j
    positions["x1"] = i + space / 2 + width * (j + 1)
    positions["center"] = (positions["x0"] + positions["x1"]) / 2
    positions["error_low"] = positions["tendency"] - positions["dispersion"]
    positions["error_high"] = positions["tendency"] + positions["dispersion"]
    return positions


def default_ylim(cells: pd.DataFrame, reference: float = 0.0) -> Tuple[float, float]:
    """y limits covering the reference and every error bar; missing values are ignored."""
    low = np.nanmin(np.append(cells["lower_limit"].to_numpy(dtype=float), reference))
    high = np.nanmax(np.append(cells["upper_limit"].to_numpy(dtype=float), reference))
    return float(low), float(high)


def bar_bottom(ylim: Tuple[float, float], reference: float = 0.0) -> float:
    """Where bars start.

    Bars grow from the reference, unless the axis range excludes it, in which
    case they start at the lower axis limit.
    """
    if ylim[0] < ylim[1]:
        return ylim[0] if ylim[0] > reference else reference
    return ylim[0] if ylim[0] < reference else reference


def x_axis_position(ylim: Tuple[float, float], reference: float = 0.0) -> Tuple[float, bool]:
    """Height of the x axis and whether its line is drawn.

    When the lower limit is the reference, the baseline already marks the axis.
    """
    if ylim[0] == reference:
        return ylim[0], False
    return ylim[0] - (ylim[1] - ylim[0]) * AXIS_OFFSET, True


def error_bar_cap_width(n2: int, space: float = DEFAULT_SPACE) -> float:
    return (1 - space) / n2 * CAP_FRACTION


def bar_colors(n2: Optional[int]) -> List[str]:
    """White bars for one factor, otherwise grey levels from white to dark."""
    if not n2:
        return ["white"]
    return [str(((n2 - j) / n2) ** 0.6) for j in range(n2)]


def panel_grid(n_factors: int, k3: int = 1, k4: int = 1) -> Tuple[int, int]:
    """(nrows, ncols) of the panel grid."""
    if n_factors <= 2:
        return 1, 1
    if n_factors == 3:
        return 1, k3
    return k3, k4


def legend_visibility(
    n_factors: int,
    k3: int = 1,
    k4: int = 1,
    explicit: Optional[Sequence] = None,
) -> np.ndarray:
    """Which panels draw a legend.

    Args:
        n_factors: Number of factors in the design
        k3: Levels of the third factor
        k4: Levels of the fourth factor
        explicit: User override, a vector over k3 panels (3 factors) or a
            k3 x k4 matrix (4 factors)

    Returns:
        Boolean array shaped like the panels: (1,) for 1-2 factors, (k3,) for 3,
        (k3, k4) for 4. One factor never gets a legend; by default only the last
        panel (top right for 4 factors) shows one.

    Raises:
        ValueError: If explicit does not have the panel shape
    """
    if n_factors <= 2:
        shape: Tuple[int, ...] = (1,)
        default = np.array([n_factors == 2])
    elif n_factors == 3:
        shape = (k3,)
        default = np.zeros(shape, dtype=bool)
        default[-1] = True
    else:
        shape = (k3, k4)
        default = np.zeros(shape, dtype=bool)
        default[0, -1] = True

    if explicit is None:
        return default

    explicit = np.asarray(explicit, dtype=bool)
    if n_factors <= 2 and explicit.ndim == 0:
        explicit = explicit.reshape(1)
    validate_shape(explicit, "legend_visibility", shape)
    if n_factors == 1:
        return np.array([False])
    return explicit


def panel_title(
    main: Optional[str],
    names: Sequence[str],
    panel_levels: Sequence,
) -> str:
    """Title of a panel selected by the levels of factors three (and four).

    >>> panel_title(None, ["K"], ["1"])
    'K: 1'
    >>> panel_title("Yield. ", ["K", "B"], ["0", "II"])
    'Yield. K: 0 & B: II'
    """
    parts = [f"{name}: {level}" for name, level in zip(names, panel_levels)]
    title = f"{main or ''}{' & '.join(parts)}"
    return title.replace("_", " ")
