"""
COVID-19 mortality report pipeline
==================================

Inputs: the four JHU wide time-series tables (US cases/deaths, global
cases/deaths, as returned by `pier.loader.load_time_series`) and the
population lookup.

Steps, per scope:
1) wide -> long for cases and deaths, full outer join on (location, date)
2) attach population from the lookup
3) drop pre-outbreak rows (cases == 0)
4) roll sub-national rows up when the scope is coarser than the source
   (provinces -> country for the global table, counties -> state for the
   US state table)
5) yearly maxima, then all-time maxima with CDR / CFR / severity bucket
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence
import logging

import pandas as pd

from .metrics import all_time_summary, yearly_summary
from .reshape import attach_population, combine_long, drop_pre_outbreak, rollup, wide_to_long

log = logging.getLogger(__name__)

US_KEYS = ("county", "state", "country")
GLOBAL_KEYS = ("state", "country")
MEASURES = ("cases", "deaths", "population")


@dataclass
class MortalityReport:
    us_daily: pd.DataFrame
    us_yearly: pd.DataFrame
    us_counties: pd.DataFrame
    us_states: pd.DataFrame
    global_daily: pd.DataFrame
    global_yearly: pd.DataFrame
    countries: pd.DataFrame

    def summaries(self) -> dict:
        """The tables handed to the report writer."""
        return {
            "us_yearly": self.us_yearly,
            "us_counties": self.us_counties,
            "us_states": self.us_states,
            "global_yearly": self.global_yearly,
            "countries": self.countries,
        }


def daily_observations(
    cases_wide: pd.DataFrame,
    deaths_wide: pd.DataFrame,
    lookup: pd.DataFrame,
    keys: Sequence[str],
) -> pd.DataFrame:
    """Long (location, date) table with cases, deaths and population."""
    keys = list(keys)
    long = combine_long(wide_to_long(cases_wide, "cases"), wide_to_long(deaths_wide, "deaths"), keys)
    return attach_population(long, lookup, keys)


def country_lookup(lookup: pd.DataFrame) -> pd.DataFrame:
    """Lookup rows at province/country level (no county), matching the global tables."""
    return lookup[lookup["county"] == ""].reset_index(drop=True)


def run(
    us_cases: pd.DataFrame,
    us_deaths: pd.DataFrame,
    global_cases: pd.DataFrame,
    global_deaths: pd.DataFrame,
    lookup: pd.DataFrame,
    keep_undefined: bool = False,
) -> MortalityReport:
    us_daily = drop_pre_outbreak(daily_observations(us_cases, us_deaths, lookup, US_KEYS))
    us_yearly = yearly_summary(us_daily, US_KEYS)
    us_counties = all_time_summary(us_yearly, US_KEYS, keep_undefined=keep_undefined)

    states_daily = rollup(us_daily, ("state", "country"), MEASURES)
    us_states = all_time_summary(yearly_summary(states_daily, ("state", "country")),
                                 ("state", "country"), keep_undefined=keep_undefined)

    provinces = drop_pre_outbreak(
        daily_observations(global_cases, global_deaths, country_lookup(lookup), GLOBAL_KEYS))
    global_daily = rollup(provinces, ("country",), MEASURES)
    global_yearly = yearly_summary(global_daily, ("country",))
    countries = all_time_summary(global_yearly, ("country",), keep_undefined=keep_undefined)

    log.info("mortality: %d US counties, %d US states, %d countries",
             len(us_counties), len(us_states), len(countries))
    return MortalityReport(
        us_daily=us_daily,
        us_yearly=us_yearly,
        us_counties=us_counties,
        us_states=us_states,
        global_daily=global_daily,
        global_yearly=global_yearly,
        countries=countries,
    )
