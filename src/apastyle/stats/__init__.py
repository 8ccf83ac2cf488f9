"""Aggregation of factorial designs into cell means and error bars.

Public API:
-----------
from apastyle.stats import aggregate_cells, DispersionKind

cells = aggregate_cells(
    data=df,
    id="subject",
    factors=["condition", "block"],
    dv="rt",
    dispersion=DispersionKind.WITHIN_SUBJECTS_CONF_INT,
    level=0.95,
)
"""

from apastyle.stats.aggregate import (
    aggregate_cells,
    aggregate_subjects,
    prepare_observations,
    summarize_cells,
)
from apastyle.stats.dispersion import (
    DispersionKind,
    conf_int,
    se,
    within_subjects_conf_int,
)

__all__ = [
    "aggregate_cells",
    "aggregate_subjects",
    "prepare_observations",
    "summarize_cells",
    "DispersionKind",
    "conf_int",
    "se",
    "within_subjects_conf_int",
]
