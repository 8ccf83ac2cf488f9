"""Bar plots for factorial designs with APA-friendly defaults."""

from __future__ import annotations

import dataclasses
import logging
import warnings
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.patches import Patch

from apastyle.config import BarplotConfig, resolve_options
from apastyle.plots.layout import (
    bar_bottom,
    bar_colors,
    bar_positions,
    default_ylim,
    error_bar_cap_width,
    legend_visibility,
    levels,
    panel_grid,
    panel_title,
    x_axis_position,
)
from apastyle.stats.aggregate import aggregate_subjects, prepare_observations, summarize_cells
from apastyle.validation import as_name_list

logger = logging.getLogger(__name__)

APA_STYLE: Dict[str, Any] = {
    "axes.spines.top": False,
    "axes.spines.right": False,
    "axes.grid": False,
    "axes.facecolor": "white",
    "figure.facecolor": "white",
    "axes.edgecolor": "black",
    "axes.linewidth": 0.8,
    "legend.frameon": False,
    "font.size": 10,
}

LINE_DEFAULTS: Dict[str, Any] = {"colors": "black", "linewidths": 0.8}

# Line2D-style names accepted in args_arrows
LINE_ALIASES: Dict[str, str] = {"color": "colors", "linewidth": "linewidths", "linestyle": "linestyles"}


class PanelLayout:
    """Scoped panel grid for one drawing call.

    Entering creates a figure with an ``nrows x ncols`` grid of axes under the
    APA matplotlib style; the previous rcParams are restored on exit. A single
    existing ``ax`` may be supplied instead of creating a figure.

    Example:
        >>> with PanelLayout(1, 3) as layout:
        ...     for ax in layout.panels():
        ...         ax.bar([0.5], [1.0])
    """

    def __init__(
        self,
        nrows: int = 1,
        ncols: int = 1,
        figsize: Optional[Tuple[float, float]] = None,
        dpi: int = 100,
        ax: Optional[Axes] = None,
        style: Optional[Dict[str, Any]] = None,
    ):
        if ax is not None and (nrows, ncols) != (1, 1):
            raise ValueError(
                f"An existing axes can only hold a single panel, the design needs {nrows}x{ncols}"
            )
        self.nrows = nrows
        self.ncols = ncols
        self.figsize = figsize or (4.0 * ncols, 3.5 * nrows)
        self.dpi = dpi
        self.style = APA_STYLE if style is None else style
        self._ax = ax
        self._stack: Optional[ExitStack] = None
        self.figure: Optional[Figure] = None
        self.axes: Optional[np.ndarray] = None
        self.owns_figure = ax is None

    def __enter__(self) -> "PanelLayout":
        self._stack = ExitStack()
        self._stack.enter_context(matplotlib.rc_context(self.style))
        if self._ax is not None:
            self.figure = self._ax.figure
            self.axes = np.array([[self._ax]], dtype=object)
        else:
            self.figure, self.axes = plt.subplots(
                self.nrows, self.ncols, figsize=self.figsize, dpi=self.dpi, squeeze=False
            )
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None and self.owns_figure and self.figure is not None:
            plt.close(self.figure)
        self._stack.close()
        return False

    def panel(self, row: int = 0, col: int = 0) -> Axes:
        return self.axes[row, col]

    def panels(self) -> List[Axes]:
        return list(self.axes.ravel())


@dataclass
class BarplotResult:
    """Output of apa_barplot().

    Attributes:
        cells: One row per design cell with tendency, dispersion and limits
        positions: cells plus bar geometry (x0, x1, center, error_low, error_high)
        figure: The matplotlib figure
        axes: Array of panel axes, shaped like the panel grid
    """

    cells: pd.DataFrame
    positions: pd.DataFrame
    figure: Figure
    axes: np.ndarray

    def save(self, path: Union[str, Path], **kwargs) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        kwargs.setdefault("bbox_inches", "tight")
        self.figure.savefig(path, **kwargs)
        logger.info(f"Saved bar plot to {path}")
        return path


def _legend_args(config: BarplotConfig, factors: Sequence[str]) -> Dict[str, Any]:
    args = resolve_options(
        explicit=config.args_legend,
        contextual={"title": factors[1]},
        global_defaults={"loc": "upper right", "frameon": False},
    )
    # An empty title saves space
    if args.get("title") == "":
        del args["title"]
    return args


def draw_barplot_panel(
    ax: Axes,
    cells: pd.DataFrame,
    factors: Sequence[str],
    config: BarplotConfig,
    ylim: Tuple[float, float],
    xlab: Optional[str] = None,
    ylab: Optional[str] = None,
    title: Optional[str] = None,
    legend: bool = True,
) -> pd.DataFrame:
    """Draw bars, error bars and legend of one panel.

    Args:
        ax: Target axes
        cells: Cells of this panel; factor columns must be categorical so that
            every panel shares the same levels
        factors: The one or two factors that place the bars
        config: BarplotConfig object
        ylim: y axis limits
        xlab: x axis label
        ylab: y axis label
        title: Panel title
        legend: Draw the legend (only meaningful with two factors)

    Returns:
        Layout descriptor from bar_positions()
    """
    factors = list(factors[:2])
    positions = bar_positions(cells, factors, config.space)

    levels1 = levels(cells[factors[0]])
    two_factors = len(factors) > 1
    levels2 = levels(cells[factors[1]]) if two_factors else [None]
    n2 = len(levels2)

    colors = list(config.colors) if config.colors is not None else bar_colors(n2 if two_factors else None)
    if two_factors and len(colors) < n2:
        raise ValueError(f"'colors' needs {n2} entries for the levels of '{factors[1]}', got {len(colors)}")

    reference = config.reference

    ax.set_xlim(0, len(levels1))
    ax.set_ylim(*ylim)

    axis_pos, draw_axis_line = x_axis_position(ylim, reference)
    ax.spines["bottom"].set_position(("data", axis_pos))
    ax.spines["bottom"].set_visible(draw_axis_line)
    ax.set_xticks([k + 0.5 for k in range(len(levels1))])
    ax.set_xticklabels([str(level) for level in levels1])
    ax.tick_params(axis="y", labelrotation=0 if config.las == 1 else 90)

    ax.axhline(reference, color="black", linewidth=0.8)

    if title:
        ax.set_title(title)
    if xlab is not None:
        ax.set_xlabel(xlab)
    if ylab is not None:
        ax.set_ylabel(ylab)

    if two_factors:
        fills = [colors[code] for code in positions[factors[1]].cat.codes]
    else:
        fills = [colors[0]] * len(positions)

    bottom = bar_bottom(ylim, reference)
    ax.bar(
        positions["x0"].to_numpy(),
        (positions["tendency"] - bottom).to_numpy(),
        width=(positions["x1"] - positions["x0"]).to_numpy(),
        bottom=bottom,
        align="edge",
        color=fills,
        edgecolor="black",
        linewidth=0.8,
        clip_on=True,
    )

    arrows = {LINE_ALIASES.get(k, k): v for k, v in config.args_arrows.items()}
    cap = arrows.pop("cap_width", error_bar_cap_width(n2, config.space))
    line_args = resolve_options(explicit=arrows, global_defaults=LINE_DEFAULTS)

    bars = positions.dropna(subset=["error_low", "error_high"])
    if len(bars) > 0:
        center = bars["center"].to_numpy()
        ax.vlines(center, bars["error_low"].to_numpy(), bars["error_high"].to_numpy(), **line_args)
        for end in ("error_low", "error_high"):
            ax.hlines(bars[end].to_numpy(), center - cap, center + cap, **line_args)

    if two_factors and legend:
        handles = [
            Patch(facecolor=colors[k], edgecolor="black", label=str(level))
            for k, level in enumerate(levels2)
        ]
        ax.legend(handles=handles, **_legend_args(config, factors))

    if config.intercept is not None:
        # One segment per bar slot, as wide as the whole group
        i = positions[factors[0]].cat.codes.to_numpy()
        j = positions[factors[1]].cat.codes.to_numpy() if two_factors else np.zeros(len(positions))
        ax.hlines(
            np.full(len(positions), config.intercept),
            i + j / n2,
            i + (j + 1) / n2,
            **LINE_DEFAULTS,
        )

    return positions


def apa_barplot(
    data: pd.DataFrame,
    id: str,
    factors: Union[str, Sequence[str]],
    dv: str,
    config: Optional[BarplotConfig] = None,
    ax: Optional[Axes] = None,
    **overrides,
) -> BarplotResult:
    """Draw one or more bar plots for a factorial design.

    Observations are first aggregated within subjects and cells
    (``fun_aggregate``), then tendency and dispersion are computed per cell.
    The first factor defines groups of bars on the x axis, the second factor
    the bars inside a group. A third factor yields one panel per level in a
    single row; a fourth factor yields a grid (rows: third factor, columns:
    fourth factor).

    Args:
        data: Observation table
        id: Subject identifier column
        factors: 1 to 4 factor columns
        dv: Dependent variable column
        config: BarplotConfig object; defaults are used if None
        ax: Existing axes to draw into (1-2 factors only)
        **overrides: BarplotConfig fields that take precedence over config

    Returns:
        BarplotResult with cells, bar positions, figure and axes

    Example:
        >>> result = apa_barplot(df, id="block", factors=["N", "P"], dv="yield",
        ...                      dispersion="se")
        >>> result.save("yield.pdf")
    """
    if config is None:
        config = BarplotConfig(**overrides)
    elif overrides:
        config = dataclasses.replace(config, **overrides)

    if not config.beside:
        warnings.warn(
            "Stacked barplots are not supported. Ignoring 'beside=False'.", UserWarning, stacklevel=2
        )
        config = dataclasses.replace(config, beside=True)

    factors = as_name_list(factors, "factors")
    observations = prepare_observations(data, id, factors, dv)
    aggregated = aggregate_subjects(observations, id, factors, dv, config.fun_aggregate, config.na_rm)
    cells = summarize_cells(
        aggregated,
        id,
        factors,
        dv,
        tendency=config.tendency,
        dispersion=config.dispersion,
        level=config.level,
        na_rm=config.na_rm,
    )

    n_factors = len(factors)
    if ax is not None and n_factors > 2:
        raise ValueError(f"'ax' can only be used with 1 or 2 factors, got {n_factors}")

    ylim = config.ylim if config.ylim is not None else default_ylim(cells, config.reference)
    labels = resolve_options(
        explicit={"xlab": config.xlab, "ylab": config.ylab},
        contextual={"xlab": factors[0], "ylab": dv},
    )

    levels3 = levels(cells[factors[2]]) if n_factors > 2 else []
    levels4 = levels(cells[factors[3]]) if n_factors > 3 else []
    visible = legend_visibility(
        n_factors, len(levels3) or 1, len(levels4) or 1, config.legend_visibility
    )
    nrows, ncols = panel_grid(n_factors, len(levels3), len(levels4))

    logger.info(
        f"Drawing bar plot of '{dv}' by {factors}: {len(cells)} cells in {nrows}x{ncols} panel(s)"
    )

    panel_positions = []
    with PanelLayout(nrows, ncols, config.figsize, config.dpi, ax=ax) as layout:
        common = dict(config=config, ylim=ylim, xlab=labels["xlab"], ylab=labels["ylab"])

        if n_factors <= 2:
            panel_positions.append(
                draw_barplot_panel(
                    layout.panel(), cells, factors, title=config.main, legend=bool(visible[0]), **common
                )
            )
        elif n_factors == 3:
            for col, l3 in enumerate(levels3):
                subset = cells[cells[factors[2]] == l3]
                panel_positions.append(
                    draw_barplot_panel(
                        layout.panel(0, col),
                        subset,
                        factors,
                        title=panel_title(config.main, [factors[2]], [l3]),
                        legend=bool(visible[col]),
                        **common,
                    )
                )
        else:
            for row, l3 in enumerate(levels3):
                for col, l4 in enumerate(levels4):
                    subset = cells[(cells[factors[2]] == l3) & (cells[factors[3]] == l4)]
                    panel_positions.append(
                        draw_barplot_panel(
                            layout.panel(row, col),
                            subset,
                            factors,
                            title=panel_title(config.main, factors[2:], [l3, l4]),
                            legend=bool(visible[row, col]),
                            **common,
                        )
                    )

        if layout.owns_figure:
            layout.figure.tight_layout()

    positions = pd.concat(panel_positions, ignore_index=True)
    return BarplotResult(cells=cells, positions=positions, figure=layout.figure, axes=layout.axes)
