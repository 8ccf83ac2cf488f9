"""Tests for bar plot layout arithmetic."""

import numpy as np
import pandas as pd
import pytest

from apastyle.plots.layout import (
    bar_bottom,
    bar_colors,
    bar_positions,
    default_ylim,
    error_bar_cap_width,
    legend_visibility,
    panel_grid,
    panel_title,
    x_axis_position,
)


def make_cells(n1, n2=None):
    rows = []
    for i in range(n1):
        for j in range(n2 or 1):
            row = {"F1": f"f{i}", "tendency": float(i + j), "dispersion": 0.5}
            if n2:
                row["F2"] = f"g{j}"
            rows.append(row)
    cells = pd.DataFrame(rows)
    cells["F1"] = cells["F1"].astype("category")
    if n2:
        cells["F2"] = cells["F2"].astype("category")
    cells["lower_limit"] = cells["tendency"] - cells["dispersion"]
    cells["upper_limit"] = cells["tendency"] + cells["dispersion"]
    return cells


@pytest.mark.parametrize("n1,n2", [(1, 2), (2, 3), (3, 4), (4, 1)])
def test_bars_tile_each_group(n1, n2):
    """Bars in a group are contiguous and cover the group minus the gap."""
    space = 0.2
    positions = bar_positions(make_cells(n1, n2), ["F1", "F2"], space=space)

    assert len(positions) == n1 * n2
    for i, group in positions.groupby("F1", observed=True):
        group = group.sort_values("x0")
        code = int(group["F1"].cat.codes.iloc[0])
        assert group["x0"].iloc[0] == pytest.approx(code + space / 2)
        assert group["x1"].iloc[-1] == pytest.approx(code + 1 - space / 2)
        assert np.allclose(group["x0"].to_numpy()[1:], group["x1"].to_numpy()[:-1])
        assert np.allclose(group["x1"] - group["x0"], (1 - space) / n2)


def test_single_factor_bars_fill_group():
    positions = bar_positions(make_cells(3), ["F1"], space=0.2)

    assert np.allclose(positions["x0"], [0.1, 1.1, 2.1])
    assert np.allclose(positions["x1"], [0.9, 1.9, 2.9])
    assert np.allclose(positions["center"], [0.5, 1.5, 2.5])


def test_gap_between_groups_is_constant():
    positions = bar_positions(make_cells(3, 2), ["F1", "F2"], space=0.3).sort_values("x0")

    gaps = positions["x0"].to_numpy()[2::2] - positions["x1"].to_numpy()[1:-1:2]
    assert np.allclose(gaps, 0.3)


def test_error_bar_ends():
    positions = bar_positions(make_cells(2, 2), ["F1", "F2"])

    assert np.allclose(positions["error_low"], positions["tendency"] - 0.5)
    assert np.allclose(positions["error_high"], positions["tendency"] + 0.5)


def test_default_ylim_includes_reference():
    cells = make_cells(2, 2)

    assert default_ylim(cells) == (-0.5, 2.5)
    assert default_ylim(cells, reference=5) == (-0.5, 5)


def test_default_ylim_ignores_missing_values():
    cells = make_cells(2)
    cells.loc[0, "upper_limit"] = np.nan

    assert default_ylim(cells) == (-0.5, 1.5)


@pytest.mark.parametrize(
    "ylim,reference,expected",
    [
        ((0, 10), 0, 0),
        ((-5, 10), 0, 0),
        ((2, 10), 0, 2),
        ((10, 0), 0, 0),
        ((-2, 10), 5, 5),
        ((10, -5), 0, 0),
        ((-5, -10), 0, -5),
    ],
)
def test_bar_bottom(ylim, reference, expected):
    assert bar_bottom(ylim, reference) == expected


def test_x_axis_position():
    assert x_axis_position((0, 10), 0) == (0, False)

    pos, draw = x_axis_position((2, 12), 0)
    assert pos == pytest.approx(1.8)
    assert draw


def test_error_bar_cap_width():
    assert error_bar_cap_width(1, 0.2) == pytest.approx(0.1)
    assert error_bar_cap_width(4, 0.2) == pytest.approx(0.025)


def test_bar_colors():
    assert bar_colors(None) == ["white"]
    colors = bar_colors(3)
    assert colors[0] == "1.0"
    assert [float(c) for c in colors] == sorted((float(c) for c in colors), reverse=True)
    assert float(colors[-1]) == pytest.approx((1 / 3) ** 0.6)


def test_panel_grid():
    assert panel_grid(1) == (1, 1)
    assert panel_grid(2) == (1, 1)
    assert panel_grid(3, 4) == (1, 4)
    assert panel_grid(4, 2, 3) == (2, 3)


def test_legend_visibility_defaults():
    assert list(legend_visibility(1)) == [False]
    assert list(legend_visibility(2)) == [True]
    assert list(legend_visibility(3, k3=3)) == [False, False, True]

    matrix = legend_visibility(4, k3=2, k4=3)
    assert matrix.shape == (2, 3)
    assert matrix.sum() == 1
    assert matrix[0, 2]


def test_legend_visibility_explicit():
    vis = legend_visibility(3, k3=2, explicit=[True, True])
    assert list(vis) == [True, True]

    vis = legend_visibility(4, k3=2, k4=2, explicit=[[False, False], [True, False]])
    assert vis[1, 0] and vis.sum() == 1

    # One factor never draws a legend
    assert list(legend_visibility(1, explicit=True)) == [False]


def test_legend_visibility_shape_mismatch_raises():
    with pytest.raises(ValueError, match="legend_visibility"):
        legend_visibility(3, k3=3, explicit=[True, False])

    with pytest.raises(ValueError, match="legend_visibility"):
        legend_visibility(4, k3=2, k4=2, explicit=[True, False, True, False])


def test_panel_title():
    assert panel_title(None, ["K"], ["1"]) == "K: 1"
    assert panel_title("Yield. ", ["K", "B"], ["0", "II"]) == "Yield. K: 0 & B: II"
    assert panel_title(None, ["time_point"], ["t_1"]) == "time point: t 1"
