"""Bar plots for factorial designs."""

from apastyle.plots.barplot import (
    APA_STYLE,
    BarplotResult,
    PanelLayout,
    apa_barplot,
    draw_barplot_panel,
)
from apastyle.plots.layout import (
    bar_bottom,
    bar_colors,
    bar_positions,
    default_ylim,
    legend_visibility,
    panel_grid,
    panel_title,
)

__all__ = [
    "APA_STYLE",
    "BarplotResult",
    "PanelLayout",
    "apa_barplot",
    "draw_barplot_panel",
    "bar_bottom",
    "bar_colors",
    "bar_positions",
    "default_ylim",
    "legend_visibility",
    "panel_grid",
    "panel_title",
]
