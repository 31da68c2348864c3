"""
Reshaping (wide <-> long, joins, rollups)
=========================================

The JHU time series are wide: identifying columns followed by one column per
reporting date. The pipeline works on long tables, one row per
(location, date).

Missing vs zero:
- `combine_long` is a full outer join. A location-date present on one side
  only keeps NaN on the other side.
- `rollup` sums with absence preserved.
- Only `drop_pre_outbreak` removes rows, and it does so explicitly.
"""

from __future__ import annotations
from typing import List, Sequence, Tuple
import logging

import pandas as pd

from .aggregate import group_and_reduce
from .errors import MissingJoinKey
from .timeparse import is_date_label, parse_date

log = logging.getLogger(__name__)


def split_date_columns(frame: pd.DataFrame) -> Tuple[List[str], List[str]]:
    """Split columns into (identifying columns, date columns)."""
    ids: List[str] = []
    dates: List[str] = []
    for c in frame.columns:
        (dates if is_date_label(c) else ids).append(c)
    return ids, dates


def wide_to_long(frame: pd.DataFrame, value_name: str) -> pd.DataFrame:
    """One row per (identifying columns, date) with a single value column."""
    ids, dates = split_date_columns(frame)
    if not dates:
        raise ValueError("no date columns found in wide table")
    long = frame.melt(id_vars=ids, value_vars=dates, var_name="date", value_name=value_name)
    # header labels are parsed once each, not once per row
    lookup = {d: pd.Timestamp(parse_date(d)) for d in dates}
    long["date"] = long["date"].map(lookup)
    return long.sort_values(ids + ["date"], kind="mergesort").reset_index(drop=True)


def long_to_wide(frame: pd.DataFrame, id_columns: Sequence[str], value_name: str) -> pd.DataFrame:
    """Pivot a long table back to one column per date (dates as Timestamps)."""
    wide = frame.pivot(index=list(id_columns), columns="date", values=value_name)
    wide.columns.name = None
    return wide.reset_index()


def combine_long(
    left: pd.DataFrame,
    right: pd.DataFrame,
    keys: Sequence[str],
    strict: bool = False,
) -> pd.DataFrame:
    """Full outer join of two long tables on (keys, date).

    One-sided rows keep NaN for the other side's value. They are counted and
    logged; with `strict=True` they raise `MissingJoinKey` instead.
    """
    on = list(keys) + ["date"]
    merged = left.merge(right, on=on, how="outer", indicator=True, validate="one_to_one")
    left_only = int((merged["_merge"] == "left_only").sum())
    right_only = int((merged["_merge"] == "right_only").sum())
    if left_only or right_only:
        if strict:
            raise MissingJoinKey(left_only, right_only)
        log.warning("outer join: %d left-only and %d right-only row(s) kept as missing",
                    left_only, right_only)
    merged = merged.drop(columns="_merge")
    return merged.sort_values(on, kind="mergesort").reset_index(drop=True)


def attach_population(long: pd.DataFrame, lookup: pd.DataFrame, keys: Sequence[str]) -> pd.DataFrame:
    """Left-join `population` from the lookup on `keys`.

    The lookup is de-duplicated on `keys` (first row wins). Locations with
    no lookup row get NaN, never 0.
    """
    keys = list(keys)
    table = lookup[keys + ["population"]].drop_duplicates(subset=keys, keep="first")
    out = long.drop(columns=["population"], errors="ignore").merge(table, on=keys, how="left")
    unmatched = out.loc[out["population"].isna(), keys].drop_duplicates()
    if len(unmatched):
        log.info("%d location(s) have no population in the lookup", len(unmatched))
    return out


def rollup(frame: pd.DataFrame, keys: Sequence[str], values: Sequence[str]) -> pd.DataFrame:
    """Sum `values` over all rows sharing (keys, date).

    Used to roll provinces up to countries and counties up to states.
    """
    return group_and_reduce(frame, list(keys) + ["date"], {v: "sum" for v in values})


def drop_pre_outbreak(frame: pd.DataFrame) -> pd.DataFrame:
    """Keep rows with `cases > 0`. Rows with missing cases go too."""
    kept = frame[frame["cases"] > 0]
    log.debug("dropped %d pre-outbreak row(s)", len(frame) - len(kept))
    return kept.reset_index(drop=True)
