"""Assembly of APA table descriptors from data frames."""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from apastyle.config import TableConfig
from apastyle.validation import validate_positions

logger = logging.getLogger(__name__)

ALIGN_TOKEN = re.compile(r"[lcr]|[pmb]\{[^{}]*\}")


@dataclass
class ApaTable:
    """Rendering-ready description of one APA table.

    ``rows`` hold display strings; escaping happens at render time. Row
    positions in ``indented_rows``, ``indent_headings`` and ``midrules`` are
    1-based and refer to ``rows`` before any heading rows are inserted.
    """

    header: List[str]
    rows: List[List[str]]
    align: List[str]
    caption: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None
    col_spanners: List[Tuple[str, int, int]] = field(default_factory=list)
    indented_rows: List[int] = field(default_factory=list)
    indent_headings: Dict[int, str] = field(default_factory=dict)
    midrules: List[int] = field(default_factory=list)
    small: bool = False
    longtable: bool = False
    landscape: bool = False
    escape: bool = True
    format: str = "latex"

    @property
    def n_cols(self) -> int:
        return len(self.header)

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    def to_latex(self) -> str:
        from apastyle.tables.render import render_latex

        return render_latex(self)

    def to_markdown(self) -> str:
        from apastyle.tables.render import render_markdown

        return render_markdown(self)

    def render(self) -> str:
        """Render in the configured format."""
        if self.format == "markdown":
            return self.to_markdown()
        return self.to_latex()


def format_cell(value: Any, digits: int = 2, na_string: str = "") -> str:
    """Display string of one cell.

    >>> format_cell(3.14159)
    '3.14'
    >>> format_cell(12)
    '12'
    >>> format_cell(np.nan, na_string="--")
    '--'
    """
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return na_string
    if isinstance(value, (bool, np.bool_)):
        return str(value)
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        return f"{value:.{digits}f}"
    return str(value)


def has_default_row_names(index: pd.Index) -> bool:
    """True for row labels that only number the rows (0..n-1 range index or 1..n)."""
    n = len(index)
    if isinstance(index, pd.RangeIndex) and index.start == 0 and index.step == 1:
        return True
    return [str(v) for v in index] == [str(k) for k in range(1, n + 1)]


def merge_tables(
    tables: Mapping[str, pd.DataFrame],
    added_stub_head: str = "Table",
) -> Tuple[pd.DataFrame, List[int]]:
    """Stack named tables into one, adding a leftmost column with the names.

    Each name is written into the first row of its block; the other rows of
    the block are left blank.

    Args:
        tables: Mapping name -> DataFrame; all tables need the same columns
        added_stub_head: Heading of the added column

    Returns:
        Tuple of (merged DataFrame, 1-based rows that end a block, last one excluded)

    Raises:
        ValueError: If tables is empty, a table has no rows, columns differ, or
            the heading collides with an existing column
    """
    if len(tables) == 0:
        raise ValueError("Cannot merge an empty collection of tables")

    names = list(tables)
    frames = [tables[name] for name in names]
    for name, frame in zip(names, frames):
        if not isinstance(frame, pd.DataFrame):
            raise TypeError(f"Table '{name}' must be a pandas DataFrame, got {type(frame).__name__}")
        if len(frame) == 0:
            raise ValueError(f"Table '{name}' has no rows and cannot be merged")

    columns = list(frames[0].columns)
    for name, frame in zip(names[1:], frames[1:]):
        if list(frame.columns) != columns:
            raise ValueError(
                f"Tables must share the same columns to be merged; '{name}' has "
                f"{list(frame.columns)}, expected {columns}"
            )
    if added_stub_head in columns:
        raise ValueError(f"added_stub_head '{added_stub_head}' already is a column name")

    blocks = []
    for name, frame in zip(names, frames):
        block = frame.copy()
        block.insert(0, added_stub_head, [str(name)] + [""] * (len(frame) - 1))
        blocks.append(block)

    keep_labels = not all(has_default_row_names(frame.index) for frame in frames)
    merged = pd.concat(blocks, ignore_index=not keep_labels)

    ends = np.cumsum([len(frame) for frame in frames])[:-1]
    midrules = [int(e) for e in ends]
    logger.debug(f"Merged {len(frames)} tables into {len(merged)} rows")
    return merged, midrules


def parse_align(align: Union[str, Sequence[str], None], n_cols: int) -> List[str]:
    """Column alignment tokens; default left for the first column, centred otherwise."""
    if align is None:
        return ["l"] + ["c"] * (n_cols - 1)

    if isinstance(align, str):
        tokens = ALIGN_TOKEN.findall(align.replace(" ", ""))
        if "".join(tokens) != align.replace(" ", ""):
            raise ValueError(f"Invalid alignment '{align}'. Use l, c, r or p{{width}} tokens")
    else:
        tokens = list(align)
        bad = [t for t in tokens if not isinstance(t, str) or not ALIGN_TOKEN.fullmatch(t)]
        if bad:
            raise ValueError(f"Invalid alignment tokens {bad}. Use l, c, r or p{{width}}")

    if len(tokens) != n_cols:
        raise ValueError(f"'align' needs {n_cols} tokens (one per column), got {len(tokens)}")
    return tokens


def parse_spanners(
    col_spanners: Optional[Mapping[str, Sequence[int]]], n_cols: int
) -> List[Tuple[str, int, int]]:
    if not col_spanners:
        return []

    spans = []
    for label, span in col_spanners.items():
        if isinstance(span, (int, np.integer)):
            span = (span, span)
        if len(span) != 2:
            raise ValueError(f"Spanner '{label}' needs (first, last) column positions, got {span}")
        first, last = validate_positions(span, f"col_spanners['{label}']", n_cols)
        if first > last:
            raise ValueError(f"Spanner '{label}' starts after it ends: {first} > {last}")
        spans.append((str(label), first, last))

    spans.sort(key=lambda s: s[1])
    for (a, _, a_last), (b, b_first, _) in zip(spans, spans[1:]):
        if b_first <= a_last:
            raise ValueError(f"Spanners '{a}' and '{b}' overlap")
    return spans


def parse_stub_indents(
    stub_indents: Union[Mapping[str, Sequence[int]], Sequence[Sequence[int]], None],
    n_rows: int,
) -> Tuple[List[int], Dict[int, str]]:
    """Indented rows and headings to insert above named groups.

    Args:
        stub_indents: Mapping label -> rows (named groups) or a sequence of row
            sequences (positional groups); a flat sequence of ints is one group
        n_rows: Number of body rows

    Returns:
        Tuple of (sorted indented rows, mapping first row of group -> heading)
    """
    if not stub_indents:
        return [], {}

    if isinstance(stub_indents, Mapping):
        groups = [(str(label), rows) for label, rows in stub_indents.items()]
    elif all(isinstance(r, (int, np.integer)) for r in stub_indents):
        groups = [(None, stub_indents)]
    else:
        groups = [(None, rows) for rows in stub_indents]

    indented: set = set()
    headings: Dict[int, str] = {}
    for label, rows in groups:
        rows = validate_positions(list(rows), "stub_indents", n_rows)
        if not rows:
            continue
        indented.update(rows)
        if label is not None:
            first = min(rows)
            if first in headings:
                raise ValueError(f"Stub indent groups '{headings[first]}' and '{label}' start on the same row")
            headings[first] = label

    return sorted(indented), headings


def apa_table(
    x: Union[pd.DataFrame, np.ndarray, Mapping[str, pd.DataFrame]],
    config: Optional[TableConfig] = None,
    **overrides,
) -> ApaTable:
    """Build an APA table descriptor.

    Args:
        x: A DataFrame, a 2-D array, or a mapping name -> DataFrame to merge
        config: TableConfig object; defaults are used if None
        **overrides: TableConfig fields that take precedence over config

    Returns:
        ApaTable, rendered with .to_latex(), .to_markdown() or .render()

    Example:
        >>> table = apa_table(descriptives, caption="Descriptive statistics",
        ...                   note="Values are means.", col_spanners={"Session 1": (2, 3)})
        >>> print(table.to_latex())
    """
    if config is None:
        config = TableConfig(**overrides)
    elif overrides:
        config = dataclasses.replace(config, **overrides)

    merge_midrules: List[int] = []
    if isinstance(x, Mapping):
        frame, merge_midrules = merge_tables(x, config.added_stub_head)
    elif isinstance(x, pd.DataFrame):
        frame = x
    elif isinstance(x, np.ndarray):
        if x.ndim != 2:
            raise ValueError(f"Arrays must be 2-dimensional, got {x.ndim} dimensions")
        frame = pd.DataFrame(x)
    else:
        raise TypeError(
            f"'x' must be a DataFrame, a 2-D array or a mapping of DataFrames, got {type(x).__name__}"
        )

    if frame.shape[1] == 0:
        raise ValueError("Cannot build a table without columns")

    header = [str(c) for c in frame.columns]
    rows = [
        [format_cell(v, config.digits, config.na_string) for v in record]
        for record in frame.itertuples(index=False, name=None)
    ]

    if not has_default_row_names(frame.index):
        header = [config.stub_head] + header
        rows = [[str(label)] + row for label, row in zip(frame.index, rows)]

    n_cols, n_rows = len(header), len(rows)
    indented, headings = parse_stub_indents(config.stub_indents, n_rows)
    midrules = sorted(
        set(validate_positions(list(config.midrules or []), "midrules", n_rows)) | set(merge_midrules)
    )

    logger.debug(f"Built table with {n_rows} rows and {n_cols} columns")
    return ApaTable(
        header=header,
        rows=rows,
        align=parse_align(config.align, n_cols),
        caption=config.caption,
        note=config.note,
        label=config.label,
        col_spanners=parse_spanners(config.col_spanners, n_cols),
        indented_rows=indented,
        indent_headings=headings,
        midrules=midrules,
        small=config.small,
        longtable=config.longtable,
        landscape=config.landscape,
        escape=config.escape,
        format=config.format,
    )
