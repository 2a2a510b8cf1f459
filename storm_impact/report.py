from __future__ import annotations

"""
Storm Impact report output
--------------------------
This module turns the ranked tables from `aggregate` into what the reader
actually sees:

- fixed-width console tables (health and economic rankings)
- two bar charts saved as PNG:
    1) population health: top event types by fatalities + injuries (grouped bars)
    2) economic cost: top event types by total damage (property + crop stacked)
- an optional DOCX document bundling the summary, charts and tables

matplotlib and python-docx are imported lazily so that the aggregation code
(and its tests) do not need a plotting stack.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
from datetime import datetime
import logging
import os

import numpy as np
import pandas as pd

from .aggregate import top_rows
from .models import (
    CROPDMG_USD, EVTYPE, FATALITIES, HEALTH_TOTAL, INJURIES, PROPDMG_USD, RANK,
    TOTAL_USD, EconomicImpact, HealthImpact,
)

logger = logging.getLogger(__name__)


# -----------------------------
# Configuration / citation types
# -----------------------------

@dataclass
class DatasetCitation:
    """Minimal dataset citation metadata for the report."""
    database_name: str = "NOAA Storm Events Database"
    institutional_author: str = "U.S. National Oceanic and Atmospheric Administration"
    distribution: str = "Coursera Reproducible Research course mirror"
    website: str = "https://www.ncdc.noaa.gov/stormevents/"
    file_name: Optional[str] = None
    file_note: Optional[str] = "Events from 1950 to November 2011; early years record fewer event types."


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Storm Impact Report"
    subtitle: str = "Health and economic consequences of severe weather events in the U.S."
    citation: DatasetCitation = field(default_factory=DatasetCitation)

    # How many event types to show in tables and charts
    top_n: int = 10

    # Where the PNG charts go
    output_dir: str = "figures"
    health_chart: str = "health_impact.png"
    economic_chart: str = "economic_impact.png"
    dpi: int = 150
    figsize: Tuple[float, float] = (12.0, 6.0)

    # Abbreviate US$ amounts in console tables ($1.23B instead of 1,230,000,000)
    abbreviate_money: bool = True

    # Recorded in the reproducibility footer
    settings: Dict[str, object] = field(default_factory=dict)

    def chart_path(self, name: str) -> str:
        return os.path.join(self.output_dir, name)


# -----------------------------
# Console tables
# -----------------------------

def format_money(value: float, abbreviate: bool = True) -> str:
    """Format a US$ amount: 1.5e9 -> "$1.50B" (or "$1,500,000,000")."""
    if not abbreviate:
        return f"${value:,.0f}"
    for scale, suffix in ((1e9, "B"), (1e6, "M"), (1e3, "K")):
        if abs(value) >= scale:
            return f"${value / scale:,.2f}{suffix}"
    return f"${value:,.0f}"


def format_count(value: float) -> str:
    return f"{int(round(value)):,}"


def format_table(
    table: pd.DataFrame,
    columns: Sequence[str],
    title: str,
    *,
    money: bool = False,
    abbreviate: bool = True,
) -> str:
    """Render a ranked table as fixed-width text.

    `columns` are the value columns to show after RANK and EVTYPE.
    """
    fmt = (lambda v: format_money(v, abbreviate)) if money else format_count
    header = [RANK, EVTYPE] + list(columns)
    rows: List[List[str]] = [
        [str(int(r[RANK])), str(r[EVTYPE])] + [fmt(float(r[c])) for c in columns]
        for _, r in table.iterrows()
    ]
    widths = [max([len(h)] + [len(row[i]) for row in rows]) for i, h in enumerate(header)]

    def _line(cells: List[str]) -> str:
        # event type left-aligned, numbers right-aligned
        return "  ".join(
            c.ljust(widths[i]) if i == 1 else c.rjust(widths[i])
            for i, c in enumerate(cells)
        ).rstrip()

    lines = [title, "-" * len(title), _line(header), _line(["-" * w for w in widths])]
    lines.extend(_line(row) for row in rows)
    if not rows:
        lines.append("(no events)")
    return "\n".join(lines)


def format_year_range(year_range) -> str:
    """(2000, None) -> "2000 to end"; a year of 0 is a real bound."""
    y1, y2 = year_range
    return f"{y1 if y1 is not None else 'start'} to {y2 if y2 is not None else 'end'}"


def format_summary(
    summary: Dict[str, object],
    abbreviate: bool = True,
    grand_total: Optional[float] = None,
) -> str:
    lines = []
    if summary.get("dataset"):
        lines.append(f"Dataset:            {summary['dataset']}")
    lines += [
        f"Rows loaded:        {summary['rows_loaded']:,}",
        f"Rows in scope:      {summary['rows_in_scope']:,}",
        f"Event types:        {summary['event_types']:,}",
    ]
    if summary.get("year_filter") and any(y is not None for y in summary["year_filter"]):
        lines.append(f"Year filter:        {format_year_range(summary['year_filter'])}")
    if summary.get("year_min") is not None:
        lines.append(f"Years:              {summary['year_min']} to {summary['year_max']}")
    lines += [
        f"Total fatalities:   {format_count(summary['fatalities'])}",
        f"Total injuries:     {format_count(summary['injuries'])}",
        f"Property damage:    {format_money(summary['property_usd'], abbreviate)}",
        f"Crop damage:        {format_money(summary['crop_usd'], abbreviate)}",
    ]
    if grand_total is not None:
        lines.append(f"Total damage:       {format_money(grand_total, abbreviate)}")
    return "\n".join(lines)


def print_summary(
    summary: Dict[str, object],
    health: HealthImpact,
    economic: EconomicImpact,
    config: Optional[ReportConfig] = None,
) -> None:
    """Print the dataset summary and every ranked table to stdout."""
    config = config or ReportConfig()
    n = config.top_n
    ab = config.abbreviate_money
    blocks = [
        format_summary(summary, ab, grand_total=economic.grand_total()),
        format_table(health.fatalities.head(n), [FATALITIES], f"Top {n} event types by fatalities"),
        format_table(health.injuries.head(n), [INJURIES], f"Top {n} event types by injuries"),
        format_table(health.combined.head(n), [FATALITIES, INJURIES, HEALTH_TOTAL],
                     f"Top {n} event types by fatalities + injuries"),
        format_table(economic.property.head(n), [PROPDMG_USD], f"Top {n} event types by property damage",
                     money=True, abbreviate=ab),
        format_table(economic.crop.head(n), [CROPDMG_USD], f"Top {n} event types by crop damage",
                     money=True, abbreviate=ab),
        format_table(economic.combined.head(n), [PROPDMG_USD, CROPDMG_USD, TOTAL_USD],
                     f"Top {n} event types by total economic damage", money=True, abbreviate=ab),
    ]
    print("\n\n".join(blocks))


# -----------------------------
# Charts
# -----------------------------

def _pyplot():
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib.\n"
            "Install it with: python -m pip install matplotlib"
        ) from e
    return plt


def _save(plt, fig, path: str, dpi: int) -> str:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=dpi)
    plt.close(fig)
    logger.info("Saved chart %s", path)
    return path


def health_figure(health: HealthImpact, config: Optional[ReportConfig] = None):
    """Bar chart #1: top event types by fatalities + injuries, the two measures side by side."""
    config = config or ReportConfig()
    plt = _pyplot()
    table = health.combined.head(config.top_n)
    # largest at the top
    labels = table[EVTYPE].to_numpy()[::-1]
    fatalities = table[FATALITIES].to_numpy(dtype=float)[::-1]
    injuries = table[INJURIES].to_numpy(dtype=float)[::-1]
    y = np.arange(len(labels))
    height = 0.4

    fig, ax = plt.subplots(figsize=config.figsize)
    ax.barh(y + height / 2, fatalities, height=height, color="#c0392b", edgecolor="black",
            linewidth=0.6, label="Fatalities")
    ax.barh(y - height / 2, injuries, height=height, color="#e67e22", edgecolor="black",
            linewidth=0.6, label="Injuries")
    ax.set_yticks(y)
    ax.set_yticklabels(labels)
    ax.set_title(f"Top {config.top_n} event types most harmful to population health", fontweight="bold")
    ax.set_xlabel("People")
    ax.grid(axis="x", linestyle="--", alpha=0.4)
    ax.legend(loc="lower right")
    return fig


def plot_health(health: HealthImpact, path: str, config: Optional[ReportConfig] = None) -> str:
    config = config or ReportConfig()
    return _save(_pyplot(), health_figure(health, config), path, config.dpi)


def economic_figure(economic: EconomicImpact, config: Optional[ReportConfig] = None):
    """Bar chart #2: top event types by total damage, property and crop stacked (US$ billions)."""
    config = config or ReportConfig()
    plt = _pyplot()
    table = economic.combined.head(config.top_n)
    # largest at the top
    labels = table[EVTYPE].to_numpy()[::-1]
    prop = table[PROPDMG_USD].to_numpy(dtype=float)[::-1] / 1e9
    crop = table[CROPDMG_USD].to_numpy(dtype=float)[::-1] / 1e9
    y = np.arange(len(labels))

    fig, ax = plt.subplots(figsize=config.figsize)
    ax.barh(y, prop, color="#2e86c1", edgecolor="black", linewidth=0.6, label="Property")
    ax.barh(y, crop, left=prop, color="#28b463", edgecolor="black", linewidth=0.6, label="Crop")
    ax.set_yticks(y)
    ax.set_yticklabels(labels)
    for i, total in enumerate(prop + crop):
        ax.text(total, i, f" {total:,.1f}", va="center", fontsize=9)
    ax.set_title(f"Top {config.top_n} event types by economic damage", fontweight="bold")
    ax.set_xlabel("Damage (US$ billions)")
    ax.grid(axis="x", linestyle="--", alpha=0.4)
    ax.legend(loc="lower right")
    return fig


def plot_economic(economic: EconomicImpact, path: str, config: Optional[ReportConfig] = None) -> str:
    config = config or ReportConfig()
    return _save(_pyplot(), economic_figure(economic, config), path, config.dpi)


def render_charts(health: HealthImpact, economic: EconomicImpact, config: Optional[ReportConfig] = None) -> List[str]:
    config = config or ReportConfig()
    return [
        plot_health(health, config.chart_path(config.health_chart), config),
        plot_economic(economic, config.chart_path(config.economic_chart), config),
    ]


# -----------------------------
# DOCX report
# -----------------------------

def generate_docx_report(
    out_path: str,
    summary: Dict[str, object],
    health: HealthImpact,
    economic: EconomicImpact,
    chart_paths: Sequence[str],
    *,
    code_breakdown: Optional[pd.DataFrame] = None,
    config: Optional[ReportConfig] = None,
) -> str:
    """
    Write a DOCX document with the summary, charts and ranked tables.

    The charts must already exist on disk (see `render_charts`).
    """
    config = config or ReportConfig()

    # Lazy import: only required when --docx is used.
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    def _table(table: pd.DataFrame, columns: Sequence[str], money: bool) -> None:
        fmt = (lambda v: format_money(v, config.abbreviate_money)) if money else format_count
        t = doc.add_table(rows=1, cols=2 + len(columns))
        t.style = "Light Grid Accent 1"
        for i, h in enumerate(["Rank", "Event type"] + list(columns)):
            t.rows[0].cells[i].text = h
        for _, r in table.iterrows():
            cells = t.add_row().cells
            cells[0].text = str(int(r[RANK]))
            cells[1].text = str(r[EVTYPE])
            for i, c in enumerate(columns, start=2):
                cells[i].text = fmt(float(r[c]))

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_heading("Synopsis", level=1)
    top_health = top_rows(health.combined.head(1), HEALTH_TOTAL)
    top_damage = top_rows(economic.combined.head(1), TOTAL_USD, parts=(PROPDMG_USD, CROPDMG_USD))
    if top_health and top_damage:
        money = (lambda v: format_money(v, config.abbreviate_money))
        prop, crop = top_damage[0].parts
        doc.add_paragraph(
            f"Across {summary['rows_in_scope']:,} recorded events, {top_health[0].event_type} caused "
            f"the most fatalities and injuries combined ({format_count(top_health[0].value)}), and "
            f"{top_damage[0].event_type} caused the greatest economic damage "
            f"({money(top_damage[0].value)}: {money(prop)} property, {money(crop)} crop)."
        )
    _kv("Total damage", format_money(economic.grand_total(), config.abbreviate_money))
    _kv("Rows loaded", f"{summary['rows_loaded']:,}")
    _kv("Rows in scope", f"{summary['rows_in_scope']:,}")
    _kv("Event types", f"{summary['event_types']:,}")
    if summary.get("year_min") is not None:
        _kv("Years", f"{summary['year_min']} to {summary['year_max']}")

    doc.add_heading("Dataset citation", level=1)
    cit = config.citation
    if cit.file_name:
        doc.add_paragraph(f"Data file used: {cit.file_name}")
    if cit.file_note:
        doc.add_paragraph(f"File note: {cit.file_note}")
    doc.add_paragraph(f"{cit.institutional_author}. {cit.database_name}. {cit.website} ({cit.distribution}).")

    if code_breakdown is not None:
        doc.add_heading("Damage magnitude codes", level=1)
        doc.add_paragraph(
            "Rows with a non-zero damage amount, split by whether their magnitude code "
            "was recognized. Unrecognized codes contribute no damage."
        )
        t = doc.add_table(rows=1, cols=4)
        t.style = "Light Grid Accent 1"
        for i, h in enumerate(["Column", "Recognized", "Unrecognized", "Unrecognized raw sum"]):
            t.rows[0].cells[i].text = h
        for col, r in code_breakdown.iterrows():
            cells = t.add_row().cells
            cells[0].text = str(col)
            cells[1].text = f"{int(r['recognized']):,}"
            cells[2].text = f"{int(r['unrecognized']):,}"
            cells[3].text = f"{float(r['unrecognized_raw_sum']):,.2f}"

    doc.add_heading("Results", level=1)
    for path in chart_paths:
        doc.add_picture(path, width=Inches(6.5))

    n = config.top_n
    doc.add_heading("Population health", level=2)
    doc.add_paragraph(f"Top {n} event types by fatalities and injuries combined")
    _table(health.combined.head(n), [FATALITIES, INJURIES, HEALTH_TOTAL], money=False)

    doc.add_heading("Economic consequences", level=2)
    doc.add_paragraph(f"Top {n} event types by total damage (US$)")
    _table(economic.combined.head(n), [PROPDMG_USD, CROPDMG_USD, TOTAL_USD], money=True)

    # -----------------------------
    # Reproducibility footer
    # -----------------------------
    from . import __version__

    doc.add_heading("Reproducibility footer", level=1)
    doc.add_paragraph(f"storm_impact version: {__version__}")
    doc.add_paragraph(f"Report generated at: {datetime.now().isoformat(timespec='seconds')}")
    if summary.get("dataset"):
        doc.add_paragraph(f"Dataset path: {summary['dataset']}")
    if summary.get("year_filter") is not None:
        doc.add_paragraph(f"Year filter: {format_year_range(summary['year_filter'])}")
    for key, value in config.settings.items():
        doc.add_paragraph(f"{key}: {value}", style="List Bullet")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    logger.info("Saved report %s", out_path)
    return out_path
