"""
Shooting incidents report pipeline
==================================

Turns loaded `IncidentRecord`s into the tidy tables the report shows:

- incidents by year, year x borough, year x month, weekday, hour,
  weekday x hour
- perpetrator and victim demographics (age group x sex x race)
- statistical murders by year and the murder share of incidents per year
- the perpetrator-sex rate model (see `pier.regression`)

All incident counts are distinct counts over `incident_id`. Borough and
demographic columns hold canonical spellings (see `pier.models.canonical`),
the same parsing the regression input uses.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Dict, Optional, Sequence
import logging

import pandas as pd

from .aggregate import KeyFunc, counts_frame, group_and_count_distinct
from .errors import EmptyRegressionInput
from .models import (
    MONTH_NAMES, WEEKDAY_NAMES, AgeGroup, Borough, IncidentRecord, Race, Sex, canonical, encode_flag,
)
from .regression import SexRateModel, fit_sex_rate_model, regression_input

log = logging.getLogger(__name__)

DEMOGRAPHIC_FIELDS = ("age_group", "sex", "race")
DEMOGRAPHIC_PARSERS = (AgeGroup.parse, Sex.parse, Race.parse)


@dataclass
class ShootingTables:
    by_year: pd.DataFrame
    by_year_borough: pd.DataFrame
    by_year_month: pd.DataFrame
    by_weekday: pd.DataFrame
    by_hour: pd.DataFrame
    by_weekday_hour: pd.DataFrame
    by_perpetrator: pd.DataFrame
    by_victim: pd.DataFrame
    murders_by_year: pd.DataFrame

    def as_dict(self) -> Dict[str, pd.DataFrame]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class ShootingReport:
    tables: ShootingTables
    total_incidents: int
    regression_table: Optional[pd.DataFrame]
    model: Optional[SexRateModel]
    # set when the regression step could not run
    regression_error: Optional[str] = None


def count_incidents(
    records: Sequence[IncidentRecord],
    group_keys: Sequence[KeyFunc],
    names: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Distinct incident counts grouped by record attributes.

    Callable keys need `names` for the output columns.
    """
    counts = group_and_count_distinct(records, group_keys, "incident_id")
    return counts_frame(counts, names if names is not None else group_keys)


def _demographic_keys(side: str):
    """Keys and column names for one side's age group, sex and race."""
    def key(parse, attr):
        return lambda r: canonical(parse, getattr(getattr(r, side), attr))
    keys = tuple(key(parse, f) for parse, f in zip(DEMOGRAPHIC_PARSERS, DEMOGRAPHIC_FIELDS))
    return keys, tuple(f"{side}_{f}" for f in DEMOGRAPHIC_FIELDS)


def _with_weekday_names(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out.insert(out.columns.get_loc("weekday") + 1, "weekday_name",
               [WEEKDAY_NAMES[d] for d in out["weekday"]])
    return out


def build_tables(records: Sequence[IncidentRecord]) -> ShootingTables:
    """Compute every descriptive table from the loaded records."""
    by_year_month = count_incidents(records, ("year", "month"))
    by_year_month.insert(2, "month_name", [MONTH_NAMES[m - 1] for m in by_year_month["month"]])

    by_year = count_incidents(records, ("year",))
    by_flag = group_and_count_distinct(
        records, ("year", lambda r: encode_flag(r.is_statistical_murder)), "incident_id")
    murders = by_year.copy()
    murders["murders"] = [by_flag.get((y, 1), 0) for y in murders["year"]]
    murders["murder_share"] = murders["murders"] / murders["incidents"]

    perp_keys, perp_names = _demographic_keys("perpetrator")
    vic_keys, vic_names = _demographic_keys("victim")
    return ShootingTables(
        by_year=by_year,
        by_year_borough=count_incidents(
            records, ("year", lambda r: canonical(Borough.parse, r.borough)), ("year", "borough")),
        by_year_month=by_year_month,
        by_weekday=_with_weekday_names(count_incidents(records, ("weekday",))),
        by_hour=count_incidents(records, ("hour_of_day",)),
        by_weekday_hour=_with_weekday_names(count_incidents(records, ("weekday", "hour_of_day"))),
        by_perpetrator=count_incidents(records, perp_keys, perp_names),
        by_victim=count_incidents(records, vic_keys, vic_names),
        murders_by_year=murders[["year", "incidents", "murders", "murder_share"]],
    )


def run(records: Sequence[IncidentRecord]) -> ShootingReport:
    """Build the tables and fit the regression.

    A regression that has nothing to fit is reported on the result, not
    swallowed: `model` is None and `regression_error` says why.
    """
    tables = build_tables(records)
    total = group_and_count_distinct(records, (), "incident_id").get((), 0)
    log.info("shootings: %d distinct incident(s) from %d row(s)", total, len(records))

    table: Optional[pd.DataFrame] = None
    model: Optional[SexRateModel] = None
    error: Optional[str] = None
    try:
        table = regression_input(records)
        model = fit_sex_rate_model(table)
    except EmptyRegressionInput as e:
        log.error("regression skipped: %s", e)
        error = str(e)
    return ShootingReport(tables=tables, total_incidents=total,
                          regression_table=table, model=model, regression_error=error)
