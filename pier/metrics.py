"""
Mortality metrics
=================

- crude death ratio (CDR): deaths per 100,000 population
- case fatality ratio (CFR): deaths as a percentage of confirmed cases

The source series are cumulative, so a location-year is summarised by the
maximum value seen in that year (its year-end total). The all-time summary is
the maximum over the yearly summaries.

Zero denominators:
- the scalar helpers raise `DivisionByZero`;
- `all_time_summary` excludes those rows by default and logs how many were
  excluded. With `keep_undefined=True` they stay in the table with NaN ratios
  and no bucket.
"""

from __future__ import annotations
from typing import List, Sequence
import logging

import pandas as pd

from .aggregate import group_and_reduce, severity_bucket
from .errors import DivisionByZero

log = logging.getLogger(__name__)

PER_POPULATION = 100_000
MEASURES = ("cases", "deaths", "population")


def crude_death_ratio(deaths: float, population: float) -> float:
    if not population:
        raise DivisionByZero("crude death ratio is undefined for zero population")
    return deaths / population * PER_POPULATION


def case_fatality_ratio(deaths: float, cases: float) -> float:
    if not cases:
        raise DivisionByZero("case fatality ratio is undefined for zero cases")
    return deaths / cases * 100


def yearly_summary(long: pd.DataFrame, keys: Sequence[str]) -> pd.DataFrame:
    """One row per (location, year): maxima of cases, deaths and population."""
    frame = long.assign(year=long["date"].dt.year)
    measures = [m for m in MEASURES if m in frame.columns]
    return group_and_reduce(frame, list(keys) + ["year"], {m: "max" for m in measures})


def all_time_summary(
    yearly: pd.DataFrame,
    keys: Sequence[str],
    keep_undefined: bool = False,
) -> pd.DataFrame:
    """One row per location with CDR, CFR and severity bucket columns."""
    keys = list(keys)
    summary = group_and_reduce(yearly, keys, {m: "max" for m in MEASURES})

    has_population = summary["population"] > 0
    has_cases = summary["cases"] > 0
    if not keep_undefined:
        excluded: List[str] = []
        if (~has_population).any():
            excluded.append(f"{int((~has_population).sum())} without population")
        if (~has_cases).any():
            excluded.append(f"{int((~has_cases).sum())} without cases")
        if excluded:
            log.warning("excluding location(s) from ratio table: %s", ", ".join(excluded))
        summary = summary[has_population & has_cases].reset_index(drop=True)

    # NaN denominators give NaN ratios
    population = summary["population"].where(summary["population"] > 0).astype(float)
    cases = summary["cases"].where(summary["cases"] > 0).astype(float)
    deaths = summary["deaths"].astype(float)
    summary["crude_death_ratio"] = deaths / population * PER_POPULATION
    summary["case_fatality_ratio"] = deaths / cases * 100
    summary["severity_bucket"] = summary["case_fatality_ratio"].map(severity_bucket)
    summary["cfr_exceeds_100"] = summary["case_fatality_ratio"] > 100
    if summary["cfr_exceeds_100"].any():
        log.warning("%d location(s) report more deaths than cases",
                    int(summary["cfr_exceeds_100"].sum()))
    return summary.sort_values(keys, kind="mergesort").reset_index(drop=True)
