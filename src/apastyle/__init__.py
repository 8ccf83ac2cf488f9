"""
apastyle: APA-style tables and factorial bar plots for manuscripts.

This package provides:
- Aggregation of subject-level observations over up to four factors
- Standard errors, confidence intervals and within-subjects confidence intervals
- Bar plots with error bars laid out in one or several panels
- APA tables with captions, notes, spanners and stub indents (LaTeX, Markdown)
- A command line interface
"""

__version__ = "0.1.0"

from apastyle.config import BarplotConfig, TableConfig
from apastyle.plots.barplot import apa_barplot
from apastyle.stats.aggregate import aggregate_cells
from apastyle.stats.dispersion import DispersionKind
from apastyle.tables.table import apa_table

__all__ = [
    "__version__",
    "apa_barplot",
    "apa_table",
    "aggregate_cells",
    "BarplotConfig",
    "TableConfig",
    "DispersionKind",
]
