"""APA tables rendered to LaTeX or Markdown."""

from apastyle.tables.render import escape_latex, render_latex, render_markdown
from apastyle.tables.table import ApaTable, apa_table, format_cell, merge_tables

__all__ = [
    "ApaTable",
    "apa_table",
    "format_cell",
    "merge_tables",
    "escape_latex",
    "render_latex",
    "render_markdown",
]
