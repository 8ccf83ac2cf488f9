"""LaTeX and Markdown rendering of APA tables."""

from __future__ import annotations

import logging
import re
from typing import List

from apastyle.tables.table import ApaTable

logger = logging.getLogger(__name__)

LATEX_SPECIALS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}
_LATEX_SPECIALS_RE = re.compile("|".join(re.escape(c) for c in LATEX_SPECIALS))

LATEX_INDENT = r"\hspace{1em}"
MARKDOWN_INDENT = "\u00a0" * 3
MARKDOWN_ALIGN = {"l": ":--", "c": ":-:", "r": "--:"}


def escape_latex(text: str) -> str:
    r"""Escape LaTeX special characters.

    >>> escape_latex("M_1 & 50%")
    'M\\_1 \\& 50\\%'
    """
    return _LATEX_SPECIALS_RE.sub(lambda m: LATEX_SPECIALS[m.group()], text)


def _row(cells: List[str]) -> str:
    return " & ".join(cells) + r" \\"


def _latex_head(table: ApaTable, esc) -> List[str]:
    lines = []
    if table.col_spanners:
        cells, rules = [], []
        starts = {first: (label, last) for label, first, last in table.col_spanners}
        pos = 1
        while pos <= table.n_cols:
            if pos in starts:
                label, last = starts[pos]
                cells.append(rf"\multicolumn{{{last - pos + 1}}}{{c}}{{{esc(label)}}}")
                rules.append(rf"\cmidrule(r){{{pos}-{last}}}")
                pos = last + 1
            else:
                cells.append("")
                pos += 1
        lines.append(_row(cells))
        lines.append(" ".join(rules))
    lines.append(_row([esc(h) for h in table.header]))
    return lines


def _latex_body(table: ApaTable, esc) -> List[str]:
    lines = []
    indented = set(table.indented_rows)
    midrules = set(table.midrules)
    for k, row in enumerate(table.rows, start=1):
        if k in table.indent_headings:
            lines.append(_row([esc(table.indent_headings[k])] + [""] * (table.n_cols - 1)))
        cells = [esc(c) for c in row]
        if k in indented:
            cells[0] = LATEX_INDENT + cells[0]
        lines.append(_row(cells))
        if k in midrules and k < table.n_rows:
            lines.append(r"\midrule")
    return lines


def render_latex(table: ApaTable) -> str:
    """Render an APA table as LaTeX.

    Needs the booktabs and threeparttable packages, plus longtable and
    pdflscape for the corresponding layout flags.
    """
    esc = escape_latex if table.escape else (lambda s: s)
    colspec = "".join(table.align)
    head = _latex_head(table, esc)
    body = _latex_body(table, esc)
    note = rf"\textit{{Note.}} {table.note}" if table.note else None

    lines: List[str] = []
    if table.landscape:
        lines.append(r"\begin{landscape}")

    if table.longtable:
        if table.small:
            lines.append(r"\begingroup\small")
        lines.append(rf"\begin{{longtable}}{{{colspec}}}")
        if table.caption is not None:
            label = rf"\label{{{table.label}}}" if table.label else ""
            lines.append(rf"\caption{{{table.caption}}}{label} \\")
        lines.extend([r"\toprule", *head, r"\midrule", r"\endfirsthead"])
        if table.caption is not None:
            lines.append(r"\caption[]{(continued)} \\")
        lines.extend([r"\toprule", *head, r"\midrule", r"\endhead"])
        lines.extend([r"\bottomrule", r"\endfoot"])
        if note:
            lines.extend(
                [
                    r"\bottomrule",
                    r"\addlinespace",
                    rf"\multicolumn{{{table.n_cols}}}{{p{{\linewidth}}}}{{{note}}} \\",
                    r"\endlastfoot",
                ]
            )
        lines.extend(body)
        lines.append(r"\end{longtable}")
        if table.small:
            lines.append(r"\endgroup")
    else:
        lines.extend([r"\begin{table}[tbp]", r"\centering", r"\begin{threeparttable}"])
        if table.caption is not None:
            lines.append(rf"\caption{{{table.caption}}}")
        if table.label:
            lines.append(rf"\label{{{table.label}}}")
        if table.small:
            lines.append(r"\small")
        lines.append(rf"\begin{{tabular}}{{{colspec}}}")
        lines.extend([r"\toprule", *head, r"\midrule", *body, r"\bottomrule"])
        lines.append(r"\end{tabular}")
        if note:
            lines.extend([r"\begin{tablenotes}[flushleft]", rf"\item {note}", r"\end{tablenotes}"])
        lines.extend([r"\end{threeparttable}", r"\end{table}"])

    if table.landscape:
        lines.append(r"\end{landscape}")

    return "\n".join(lines)


def _md_escape(text: str) -> str:
    return text.replace("|", r"\|")


def render_markdown(table: ApaTable) -> str:
    """Render an APA table as a pandoc pipe table.

    Spanners, midrules and the layout flags have no pipe table equivalent and
    are left out.
    """
    if table.col_spanners:
        logger.info("Column spanners are not supported in Markdown tables and were omitted")
    if table.small or table.longtable or table.landscape:
        logger.debug("Layout flags (small, longtable, landscape) only apply to LaTeX output")

    def md_row(cells: List[str]) -> str:
        return "| " + " | ".join(_md_escape(c) for c in cells) + " |"

    lines: List[str] = []
    if table.caption is not None:
        lines.extend([f"Table: {table.caption}", ""])

    lines.append(md_row(table.header))
    lines.append("|" + "|".join(MARKDOWN_ALIGN.get(a, "---") for a in table.align) + "|")

    indented = set(table.indented_rows)
    for k, row in enumerate(table.rows, start=1):
        if k in table.indent_headings:
            lines.append(md_row([table.indent_headings[k]] + [""] * (table.n_cols - 1)))
        cells = list(row)
        if k in indented:
            cells[0] = MARKDOWN_INDENT + cells[0]
        lines.append(md_row(cells))

    if table.note:
        lines.extend(["", f"*Note.* {table.note}"])

    return "\n".join(lines)
