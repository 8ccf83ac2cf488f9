"""CLI commands for bar plots and tables."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer

from apastyle.config import BarplotConfig, ConfigFileError, TableConfig, load_config_file, resolve_options

logger = logging.getLogger(__name__)

CLI_ERRORS = (ValueError, TypeError, FileNotFoundError, ConfigFileError, ImportError)


def _merge_cli_options(config_path: Optional[Path], cli_options: Dict[str, Any]) -> Dict[str, Any]:
    """Command line values override the config file; unset options are dropped."""
    file_options = load_config_file(config_path) if config_path is not None else {}
    merged = resolve_options(explicit=cli_options, global_defaults=file_options)
    return {k: v for k, v in merged.items() if v is not None}


def _fail(exc: Exception) -> None:
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def barplot_cmd(
    data: Path = typer.Argument(..., help="Observation table (.csv or .parquet)"),
    id: str = typer.Option(..., "--id", help="Subject identifier column"),
    factors: List[str] = typer.Option(..., "--factor", "-f", help="Factor column (repeat up to 4 times)"),
    dv: str = typer.Option(..., "--dv", help="Dependent variable column"),
    out: Path = typer.Option(..., "--out", "-o", help="Output figure (.png, .pdf, .svg)"),
    dispersion: Optional[str] = typer.Option(
        None, "--dispersion", help="se, conf_int or within_subjects_conf_int"
    ),
    level: Optional[float] = typer.Option(None, "--level", help="Confidence level in (0, 1)"),
    tendency: Optional[str] = typer.Option(None, "--tendency", help="mean or median"),
    fun_aggregate: Optional[str] = typer.Option(
        None, "--fun-aggregate", help="Aggregation within subjects (mean, median, ...)"
    ),
    reference: Optional[float] = typer.Option(None, "--reference", help="Height of the x axis"),
    intercept: Optional[float] = typer.Option(None, "--intercept", help="Horizontal reference line"),
    ylim: Optional[Tuple[float, float]] = typer.Option(None, "--ylim", help="y axis limits LOW HIGH"),
    main: Optional[str] = typer.Option(None, "--main", help="Plot title"),
    xlab: Optional[str] = typer.Option(None, "--xlab", help="x axis label"),
    ylab: Optional[str] = typer.Option(None, "--ylab", help="y axis label"),
    dpi: Optional[int] = typer.Option(None, "--dpi", help="Figure resolution"),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML file with plot options"),
    cells_csv: Optional[Path] = typer.Option(None, "--cells-csv", help="Also write the cell table to CSV"),
):
    """
    Draw a bar plot for a factorial design.

    Examples:
        apastyle barplot npk.csv --id block -f N -f P --dv yield --out npk.png

        apastyle barplot rt.csv --id subject -f congruency -f block --dv rt \\
            --dispersion within_subjects_conf_int --config apa.yaml --out rt.pdf
    """
    import matplotlib

    matplotlib.use("Agg")

    from apastyle.data import load_table
    from apastyle.plots import apa_barplot

    if ylim is not None and None in ylim:
        ylim = None

    try:
        options = _merge_cli_options(
            config,
            {
                "dispersion": dispersion,
                "level": level,
                "tendency": tendency,
                "fun_aggregate": fun_aggregate,
                "reference": reference,
                "intercept": intercept,
                "ylim": ylim,
                "main": main,
                "xlab": xlab,
                "ylab": ylab,
                "dpi": dpi,
            },
        )
        plot_config = BarplotConfig.from_mapping(options)
        df = load_table(data)
        result = apa_barplot(df, id=id, factors=factors, dv=dv, config=plot_config)
        result.save(out)
    except CLI_ERRORS as e:
        _fail(e)

    if cells_csv is not None:
        cells_csv.parent.mkdir(parents=True, exist_ok=True)
        result.cells.to_csv(cells_csv, index=False)
        logger.info(f"Saved cell table to {cells_csv}")

    typer.echo(f"Saved bar plot ({len(result.cells)} cells) to {out}")


def table_cmd(
    data: Path = typer.Argument(..., help="Table to render (.csv or .parquet)"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Output file (default: stdout)"),
    fmt: Optional[str] = typer.Option(None, "--format", help="latex or markdown"),
    caption: Optional[str] = typer.Option(None, "--caption", help="Table caption"),
    note: Optional[str] = typer.Option(None, "--note", help="Table note"),
    label: Optional[str] = typer.Option(None, "--label", help="LaTeX label"),
    index_col: Optional[str] = typer.Option(None, "--index-col", help="Column holding row labels"),
    digits: Optional[int] = typer.Option(None, "--digits", help="Decimal places for floats"),
    small: bool = typer.Option(False, "--small", help="Small font"),
    longtable: bool = typer.Option(False, "--longtable", help="Allow page breaks"),
    landscape: bool = typer.Option(False, "--landscape", help="Rotate the page"),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML file with table options"),
):
    """
    Render a table in APA style.

    Examples:
        apastyle table descriptives.csv --caption "Descriptive statistics" --index-col variable

        apastyle table anova.csv --format markdown --config table.yaml --out anova.md
    """
    from apastyle.data import load_table
    from apastyle.tables import apa_table

    try:
        options = _merge_cli_options(
            config,
            {
                "format": fmt,
                "caption": caption,
                "note": note,
                "label": label,
                "digits": digits,
                "small": small or None,
                "longtable": longtable or None,
                "landscape": landscape or None,
            },
        )
        table_config = TableConfig.from_mapping(options)
        df = load_table(data)
        if index_col is not None:
            if index_col not in df.columns:
                raise ValueError(f"Index column '{index_col}' not found in {data}")
            df = df.set_index(index_col)
        rendered = apa_table(df, config=table_config).render()
    except CLI_ERRORS as e:
        _fail(e)

    if out is None:
        typer.echo(rendered)
    else:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(rendered + "\n", encoding="utf-8")
        typer.echo(f"Saved table to {out}")
