from __future__ import annotations

"""
PIER report writer
------------------
This module writes the pipeline tables into DOCX reports, and exports them as
CSV files.

Design goals:
- Keep the pipelines usable without python-docx (lazy import, only needed
  when a DOCX report is requested).
- Reports contain tables only. Charts are drawn by whoever consumes the
  exported CSVs.
- Long tables are cut to `max_rows` rows; the CSV export is always complete.
"""

from dataclasses import dataclass, field
from datetime import datetime as _dt
from typing import Dict, List, Optional, Sequence
import math
import os

import pandas as pd

from .aggregate import SEVERITY_LABELS
from .mortality import MortalityReport
from .shootings import ShootingReport


# -----------------------------
# Configuration / citation types
# -----------------------------

@dataclass
class DatasetCitation:
    """Minimal dataset citation metadata for the DOCX report."""
    database_name: str
    institutional_author: str
    website: str
    access_date_iso: str = field(default_factory=lambda: _dt.now().date().isoformat())
    file_name: Optional[str] = None


NYPD_CITATION = DatasetCitation(
    database_name="NYPD Shooting Incident Data (Historic)",
    institutional_author="City of New York / NYPD",
    website="https://data.cityofnewyork.us/Public-Safety/NYPD-Shooting-Incident-Data-Historic-/833y-fsy8",
)

JHU_CITATION = DatasetCitation(
    database_name="COVID-19 Data Repository",
    institutional_author="Center for Systems Science and Engineering (CSSE) at Johns Hopkins University",
    website="https://github.com/CSSEGISandData/COVID-19",
)


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "PIER Report"
    subtitle: str = "Public Incident & Epidemic Reports"
    citation: Optional[DatasetCitation] = None

    # How many rows to show per table (CSV export is not limited)
    max_rows: int = 25

    # Optional: command line that produced the report
    command_log: Optional[List[str]] = None


# -----------------------------
# Cell formatting
# -----------------------------

def _fmt(v) -> str:
    if v is None:
        return ""
    if isinstance(v, float):
        if math.isnan(v):
            return ""
        if v.is_integer() and abs(v) >= 1000:
            return f"{int(v):,}"
        return f"{v:,.2f}"
    return str(v)


def export_tables(tables: Dict[str, pd.DataFrame], out_dir: str) -> List[str]:
    """Write each table to `<out_dir>/<name>.csv`. Returns the written paths."""
    os.makedirs(out_dir, exist_ok=True)
    paths: List[str] = []
    for name, df in tables.items():
        path = os.path.join(out_dir, f"{name}.csv")
        df.to_csv(path, index=False)
        paths.append(path)
    return paths


# -----------------------------
# DOCX building blocks
# -----------------------------

class _Doc:
    """Thin wrapper around a python-docx Document with the helpers we reuse."""

    def __init__(self, config: ReportConfig) -> None:
        try:
            from docx import Document
            from docx.enum.text import WD_ALIGN_PARAGRAPH
            from docx.shared import Pt
        except ImportError as e:
            raise ImportError(
                "Missing dependency: python-docx.\n"
                "Install it with: python -m pip install python-docx"
            ) from e
        self._pt = Pt
        self._center = WD_ALIGN_PARAGRAPH.CENTER
        self.config = config
        self.doc = Document()
        style = self.doc.styles["Normal"]
        style.font.name = "Calibri"
        style.font.size = Pt(11)

    def title(self, text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = self.doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = self._pt(size)
        p.alignment = self._center

    def kv(self, key: str, value: str) -> None:
        p = self.doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    def table(self, heading: str, df: pd.DataFrame, columns: Optional[Sequence[str]] = None) -> None:
        self.doc.add_heading(heading, level=2)
        cols = list(columns) if columns else list(df.columns)
        shown = df[cols].head(self.config.max_rows)
        t = self.doc.add_table(rows=1, cols=len(cols))
        for i, c in enumerate(cols):
            t.rows[0].cells[i].text = c
        for row in shown.itertuples(index=False):
            cells = t.add_row().cells
            for i, v in enumerate(row):
                cells[i].text = _fmt(v)
        if len(df) > len(shown):
            self.doc.add_paragraph(f"Showing {len(shown)} of {len(df)} rows.")

    def header(self) -> None:
        self.title(self.config.title, 22, bold=True)
        self.title(self.config.subtitle, 12, italic=True)
        cit = self.config.citation
        if cit:
            self.doc.add_heading("Dataset citation", level=1)
            if cit.file_name:
                self.doc.add_paragraph(f"Data file used: {cit.file_name}")
            self.doc.add_paragraph(
                f"{cit.institutional_author} (accessed {cit.access_date_iso}). "
                f"{cit.database_name}. {cit.website}."
            )

    def footer_and_save(self, out_path: str) -> str:
        from . import __version__ as pier_version

        self.doc.add_heading("Reproducibility footer", level=1)
        self.doc.add_paragraph(f"PIER version: {pier_version}")
        self.doc.add_paragraph(f"Report generated at: {_dt.now().isoformat(timespec='seconds')}")
        if self.config.command_log:
            self.doc.add_paragraph("Commands used (log):")
            for line in self.config.command_log:
                self.doc.add_paragraph(line, style="List Bullet")
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        self.doc.save(out_path)
        return out_path


# -----------------------------
# Report entry points used by the CLI
# -----------------------------

def write_shootings_docx(report: ShootingReport, out_path: str, config: Optional[ReportConfig] = None,
                         rejected_rows: int = 0) -> str:
    config = config or ReportConfig(title="NYPD Shooting Incidents", citation=NYPD_CITATION)
    d = _Doc(config)
    d.header()

    d.doc.add_heading("Summary", level=1)
    d.kv("Distinct incidents", f"{report.total_incidents:,}")
    d.kv("Rows dropped (malformed date/time)", str(rejected_rows))
    years = report.tables.by_year["year"]
    if len(years):
        d.kv("Years covered", f"{years.min()} to {years.max()}")

    d.doc.add_heading("Incidents over time", level=1)
    d.table("Incidents by year", report.tables.by_year)
    d.table("Statistical murders by year", report.tables.murders_by_year)
    d.table("Incidents by year and borough", report.tables.by_year_borough)
    d.table("Incidents by year and month", report.tables.by_year_month)
    d.table("Incidents by weekday", report.tables.by_weekday, ["weekday_name", "incidents"])
    d.table("Incidents by hour of day", report.tables.by_hour)

    d.doc.add_heading("Demographics", level=1)
    d.table("Incidents by perpetrator age group, sex and race",
            report.tables.by_perpetrator.sort_values("incidents", ascending=False, kind="mergesort"))
    d.table("Incidents by victim age group, sex and race",
            report.tables.by_victim.sort_values("incidents", ascending=False, kind="mergesort"))

    d.doc.add_heading("Perpetrator sex rate model", level=1)
    if report.model is None:
        d.doc.add_paragraph(f"Model not fitted: {report.regression_error}")
    else:
        m = report.model
        d.doc.add_paragraph("Poisson GLM (log link): incidents ~ sex_code, with sex_code = 1 for female.")
        d.kv("Coefficient", f"{m.coefficient:.4f}")
        d.kv("Rate ratio (exp(coefficient))", f"{m.rate_ratio:.4f}")
        d.kv("Standard error", f"{m.std_error:.4f}")
        d.kv("p-value", f"{m.p_value:.3g}")
        d.kv("Groups", str(m.n_groups))
        d.doc.add_paragraph(m.describe())
    return d.footer_and_save(out_path)


_RATIO_COLUMNS = ["cases", "deaths", "population", "crude_death_ratio", "case_fatality_ratio", "severity_bucket"]


def write_mortality_docx(report: MortalityReport, out_path: str, config: Optional[ReportConfig] = None) -> str:
    config = config or ReportConfig(title="COVID-19 Mortality Ratios", citation=JHU_CITATION)
    d = _Doc(config)
    d.header()

    def _ranked(heading: str, df: pd.DataFrame, keys: List[str], by: str) -> None:
        ranked = df.sort_values(by, ascending=False, kind="mergesort", na_position="last")
        d.table(heading, ranked, keys + _RATIO_COLUMNS)

    def _buckets(heading: str, df: pd.DataFrame) -> None:
        counts = df["severity_bucket"].value_counts()
        table = pd.DataFrame({
            "severity_bucket": list(SEVERITY_LABELS),
            "locations": [int(counts.get(b, 0)) for b in SEVERITY_LABELS],
        })
        d.table(heading, table)

    d.doc.add_heading("Countries", level=1)
    d.kv("Countries with defined ratios", str(len(report.countries)))
    _ranked("Highest crude death ratio (per 100,000)", report.countries, ["country"], "crude_death_ratio")
    _ranked("Highest case fatality ratio (%)", report.countries, ["country"], "case_fatality_ratio")
    _buckets("Countries by case fatality bucket", report.countries)

    d.doc.add_heading("United States", level=1)
    _ranked("States by crude death ratio", report.us_states, ["state"], "crude_death_ratio")
    _ranked("Counties by crude death ratio", report.us_counties, ["county", "state"], "crude_death_ratio")
    _buckets("Counties by case fatality bucket", report.us_counties)

    flagged = report.countries[report.countries["cfr_exceeds_100"]]
    if len(flagged):
        d.doc.add_heading("Data quality", level=1)
        d.table("Countries reporting more deaths than cases", flagged, ["country", "cases", "deaths"])
    return d.footer_and_save(out_path)
