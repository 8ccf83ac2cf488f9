"""Configuration dataclasses for plots and tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from apastyle.stats.dispersion import DispersionKind
from apastyle.validation import validate_callable, validate_range

logger = logging.getLogger(__name__)

TABLE_FORMATS = ["latex", "markdown"]

# Names usable for function-valued options in YAML files and on the command line
NAMED_FUNCTIONS: Dict[str, Callable] = {
    "mean": np.mean,
    "median": np.median,
    "sum": np.sum,
    "min": np.min,
    "max": np.max,
    "std": lambda x: np.std(x, ddof=1),
}


class ConfigFileError(RuntimeError):
    """Raised when a configuration file cannot be read."""


def resolve_options(
    explicit: Optional[Mapping[str, Any]] = None,
    contextual: Optional[Mapping[str, Any]] = None,
    global_defaults: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Merge option layers.

    A key takes the explicit value unless that is None, then the contextual
    default, then the global default.

    Args:
        explicit: Values given by the caller
        contextual: Defaults computed from the data at hand
        global_defaults: Fixed package defaults

    Returns:
        Merged dictionary over the union of keys
    """
    layers = [global_defaults or {}, contextual or {}, explicit or {}]
    merged: Dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            if value is not None or key not in merged:
                merged[key] = value
    return merged


def resolve_function(value: Union[str, Callable], name: str) -> Callable:
    if isinstance(value, str):
        try:
            return NAMED_FUNCTIONS[value]
        except KeyError:
            raise ValueError(
                f"Unknown function name '{value}' for '{name}'. Expected one of {sorted(NAMED_FUNCTIONS)}"
            ) from None
    validate_callable(value, name)
    return value


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML mapping of options from disk."""
    import yaml

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigFileError(f"Could not parse config file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigFileError(f"Config file {path} must contain a mapping, got {type(data).__name__}")

    logger.info(f"Loaded {len(data)} options from {path}")
    return data


def _from_mapping(cls, options: Mapping[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(options) - known)
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} options: {unknown}")
    return cls(**dict(options))


@dataclass
class BarplotConfig:
    """Configuration for factorial bar plots.

    Attributes:
        tendency: Measure of central tendency per cell (default: mean)
        dispersion: Error bar kind or function (default: confidence interval)
        level: Confidence level for interval kinds, in (0, 1)
        fun_aggregate: Aggregates each subject's values within a cell (default: mean)
        na_rm: Drop missing values (default: True)
        reference: Height of the x axis, bars start here (default: 0)
        intercept: Optional horizontal reference line
        ylim: y axis limits; computed from the error bars and reference if None
        xlab: x axis label (default: first factor)
        ylab: y axis label (default: dependent variable)
        main: Title, prefixed to panel titles with 3-4 factors
        colors: Bar fill colors per level of the second factor
        space: Gap between groups of bars as a fraction of the group width
        beside: Grouped bars; False (stacked) is not supported and falls back to True
        legend_visibility: Which panels get a legend (vector for 3, matrix for 4 factors)
        args_arrows: Extra keyword arguments for the error bar lines
        args_legend: Extra keyword arguments for Axes.legend; ``title=""`` drops the title
        figsize: Figure size in inches; derived from the panel grid if None
        dpi: Figure resolution
        las: 1 for horizontal y tick labels, 0 for parallel to the axis
    """

    tendency: Union[Callable, str] = np.mean
    dispersion: Union[DispersionKind, str, Callable] = DispersionKind.CONF_INT
    level: float = 0.95
    fun_aggregate: Union[Callable, str] = np.mean
    na_rm: bool = True
    reference: float = 0.0
    intercept: Optional[float] = None
    ylim: Optional[Tuple[float, float]] = None
    xlab: Optional[str] = None
    ylab: Optional[str] = None
    main: Optional[str] = None
    colors: Optional[List[Any]] = None
    space: float = 0.2
    beside: bool = True
    legend_visibility: Optional[Sequence[Any]] = None
    args_arrows: Dict[str, Any] = field(default_factory=dict)
    args_legend: Dict[str, Any] = field(default_factory=dict)
    figsize: Optional[Tuple[float, float]] = None
    dpi: int = 100
    las: int = 1

    def __post_init__(self):
        """Validate configuration."""
        self.tendency = resolve_function(self.tendency, "tendency")
        self.fun_aggregate = resolve_function(self.fun_aggregate, "fun_aggregate")
        self.dispersion_kind = DispersionKind.from_value(self.dispersion)
        if self.dispersion_kind == DispersionKind.CUSTOM and not callable(self.dispersion):
            raise ValueError("dispersion='custom' needs a function; pass the function itself")

        validate_range(self.level, "level", (0, 1), inclusive=False)
        validate_range(self.reference, "reference", (-np.inf, np.inf))
        if self.intercept is not None:
            validate_range(self.intercept, "intercept", (-np.inf, np.inf))
        validate_range(self.space, "space", (0, 1), inclusive=True)
        if self.space == 1:
            raise ValueError("'space' must be below 1, otherwise bars have no width")

        if not isinstance(self.na_rm, bool):
            raise TypeError(f"'na_rm' must be a bool, got {type(self.na_rm).__name__}")

        if self.ylim is not None:
            if len(self.ylim) != 2:
                raise ValueError(f"'ylim' must have length 2, got {len(self.ylim)}")
            self.ylim = (float(self.ylim[0]), float(self.ylim[1]))
            if self.ylim[0] == self.ylim[1]:
                raise ValueError(f"'ylim' must span a non-empty range, got {self.ylim}")

        if self.figsize is not None:
            self.figsize = tuple(self.figsize)

        if self.las not in (0, 1):
            raise ValueError(f"'las' must be 0 or 1, got {self.las}")

        self.args_arrows = dict(self.args_arrows or {})
        self.args_legend = dict(self.args_legend or {})

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "BarplotConfig":
        """Build a config from a plain mapping, e.g. a parsed YAML file."""
        return _from_mapping(cls, options)


@dataclass
class TableConfig:
    """Configuration for APA tables.

    Attributes:
        caption: Table caption
        note: Table note, printed below the table after "Note."
        label: LaTeX label for cross references
        align: Column alignment tokens, e.g. "lcc" or ["l", "c", "p{2cm}"]
        small: Typeset the table in small font
        added_stub_head: Heading of the column added when tables are merged
        stub_head: Heading of the row-label column
        col_spanners: Mapping label -> (first, last) 1-based column positions
        stub_indents: Mapping label -> row positions, or a list of row position lists
        midrules: 1-based row positions followed by a rule
        longtable: Use a longtable environment that can break across pages
        landscape: Rotate the page
        digits: Decimal places for floats
        na_string: Text for missing values
        escape: Escape LaTeX special characters
        format: Output format ("latex" or "markdown")
    """

    caption: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None
    align: Optional[Union[str, Sequence[str]]] = None
    small: bool = False
    added_stub_head: str = "Table"
    stub_head: str = ""
    col_spanners: Optional[Mapping[str, Sequence[int]]] = None
    stub_indents: Optional[Union[Mapping[str, Sequence[int]], Sequence[Sequence[int]]]] = None
    midrules: Optional[Sequence[int]] = None
    longtable: bool = False
    landscape: bool = False
    digits: int = 2
    na_string: str = ""
    escape: bool = True
    format: str = "latex"

    def __post_init__(self):
        """Validate configuration."""
        if self.format not in TABLE_FORMATS:
            raise ValueError(f"format must be one of {TABLE_FORMATS}, got {self.format}")

        if isinstance(self.digits, bool) or not isinstance(self.digits, int) or self.digits < 0:
            raise ValueError(f"digits must be a non-negative integer, got {self.digits}")

        for name in ("small", "longtable", "landscape", "escape"):
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"'{name}' must be a bool, got {type(getattr(self, name)).__name__}")

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "TableConfig":
        """Build a config from a plain mapping, e.g. a parsed YAML file."""
        return _from_mapping(cls, options)
