"""
PIER report driver
==================

Runs one report end to end:

    python -m pier.cli shootings --csv NYPD_Shooting_Incident_Data__Historic_.csv --docx shootings.docx
    python -m pier.cli mortality --data-dir data --download --docx mortality.docx

Steps:
1) Load (optionally download) the source CSVs
2) Run the pipeline (pure functions, nothing written back to the sources)
3) Write a DOCX report and/or export every table to CSV

Exit code is 0 on success and 1 when a pipeline, download or duplicate-key
error stops the run.
"""

from __future__ import annotations
from dataclasses import replace
from typing import List, Optional
import argparse
import logging
import os
import sys

import pandas as pd
import requests

from . import fetch, loader, mortality, shootings
from .errors import PierError
from .report import JHU_CITATION, NYPD_CITATION, ReportConfig, export_tables, write_mortality_docx, write_shootings_docx


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="pier", description="Public Incident & Epidemic Reports")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    s = sub.add_parser("shootings", help="NYPD shooting incidents report")
    s.add_argument("--csv", help="Path to the NYPD shooting incident CSV")
    s.add_argument("--download", action="store_true", help="Download the CSV into --data-dir first")
    s.add_argument("--data-dir", default=fetch.DEFAULT_DATA_DIR)
    s.add_argument("--docx", help="Write a DOCX report to this path")
    s.add_argument("--export", metavar="DIR", help="Export every table as CSV into DIR")

    m = sub.add_parser("mortality", help="COVID-19 mortality ratio report")
    m.add_argument("--data-dir", default=fetch.DEFAULT_DATA_DIR,
                   help="Directory holding the JHU time series and lookup CSVs (default: $PIER_DATA_DIR or ./data)")
    m.add_argument("--download", action="store_true", help="Download the CSVs into --data-dir first")
    m.add_argument("--keep-undefined", action="store_true",
                   help="Keep locations with zero population/cases (ratios left empty)")
    m.add_argument("--docx", help="Write a DOCX report to this path")
    m.add_argument("--export", metavar="DIR", help="Export every table as CSV into DIR")
    return ap


def run_shootings(args: argparse.Namespace, command_line: str) -> None:
    path = args.csv or fetch.source_path(args.data_dir, "shootings")
    if args.download:
        fetch.download(fetch.SOURCES["shootings"].url, path)

    print("Loading incidents...")
    ingest = loader.load_incidents(path)
    report = shootings.run(ingest.records)
    print(f"Loaded {len(ingest.records)} rows ({report.total_incidents} distinct incidents), "
          f"dropped {ingest.rejected} malformed row(s).")
    if report.model is not None:
        print(report.model.describe())
    else:
        print(f"Regression skipped: {report.regression_error}")

    if args.export:
        tables = report.tables.as_dict()
        if report.regression_table is not None:
            tables["regression_input"] = report.regression_table
        for p in export_tables(tables, args.export):
            print(f"Exported {p}")
    if args.docx:
        citation = replace(NYPD_CITATION, file_name=os.path.basename(path))
        cfg = ReportConfig(title="NYPD Shooting Incidents", citation=citation, command_log=[command_line])
        write_shootings_docx(report, args.docx, config=cfg, rejected_rows=ingest.rejected)
        print(f"Report written to {args.docx}")


def run_mortality(args: argparse.Namespace, command_line: str) -> None:
    if args.download:
        fetch.download_all(args.data_dir, fetch.MORTALITY_SOURCES)

    print("Loading time series...")
    paths = {n: fetch.source_path(args.data_dir, n) for n in fetch.MORTALITY_SOURCES}
    report = mortality.run(
        loader.load_time_series(paths["us_cases"]),
        loader.load_time_series(paths["us_deaths"]),
        loader.load_time_series(paths["global_cases"]),
        loader.load_time_series(paths["global_deaths"]),
        loader.load_population_lookup(paths["lookup"]),
        keep_undefined=args.keep_undefined,
    )
    print(f"{len(report.countries)} countries, {len(report.us_states)} US states, "
          f"{len(report.us_counties)} US counties.")

    if args.export:
        for p in export_tables(report.summaries(), args.export):
            print(f"Exported {p}")
    if args.docx:
        cfg = ReportConfig(title="COVID-19 Mortality Ratios", citation=JHU_CITATION, command_log=[command_line])
        write_mortality_docx(report, args.docx, config=cfg)
        print(f"Report written to {args.docx}")


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the PIER driver."""
    argv = list(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    command_line = "pier " + " ".join(argv)
    try:
        if args.command == "shootings":
            run_shootings(args, command_line)
        else:
            run_mortality(args, command_line)
    except (PierError, FileNotFoundError, KeyError, pd.errors.MergeError, requests.RequestException) as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
