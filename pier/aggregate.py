"""
Aggregation (grouping, distinct counts, reducers, severity buckets)
===================================================================

Two grouping primitives:

- `group_and_count_distinct` works on record objects. It builds a map
  group -> set of identifiers, so rows that share an `incident_id` inside the
  same group are counted once.
- `group_and_reduce` works on pandas frames with `sum` / `max` reducers.
  Missing values are skipped; a group whose values are all missing stays
  missing instead of becoming 0.

`severity_bucket` maps a case fatality ratio (%) onto fixed half-open
intervals `[lower, upper)` using binary search over the thresholds.
"""

from __future__ import annotations
from bisect import bisect_right
from operator import attrgetter
from typing import Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union
import math

import pandas as pd

SEVERITY_THRESHOLDS = (0.5, 1.0, 2.0, 5.0, 10.0)
SEVERITY_LABELS = ("< 0.5", "0.5-1", "1-2", "2-5", "5-10", ">10")

REDUCERS = ("sum", "max")

KeyFunc = Union[str, Callable[[object], Hashable]]


def group_and_count_distinct(
    records: Iterable[object],
    group_keys: Sequence[KeyFunc],
    distinct_key: str,
) -> Dict[Tuple[Hashable, ...], int]:
    """Count distinct `distinct_key` values per group.

    Keys are attribute names, possibly dotted (e.g. "perpetrator.sex"), or
    callables taking a record.
    With no group keys every record falls into the single group `()`.
    """
    getters = [k if callable(k) else attrgetter(k) for k in group_keys]
    get_id = attrgetter(distinct_key)
    seen: Dict[Tuple[Hashable, ...], Set[Hashable]] = {}
    for r in records:
        key = tuple(g(r) for g in getters)
        seen.setdefault(key, set()).add(get_id(r))
    return {k: len(v) for k, v in seen.items()}


def counts_frame(
    counts: Mapping[Tuple[Hashable, ...], int],
    group_keys: Sequence[str],
    value_name: str = "incidents",
) -> pd.DataFrame:
    """Turn a count mapping into a tidy frame sorted by the group keys."""
    columns = [k.replace(".", "_") for k in group_keys]
    rows = [list(k) + [v] for k, v in counts.items()]
    df = pd.DataFrame(rows, columns=columns + [value_name])
    if columns:
        df = df.sort_values(columns, kind="mergesort").reset_index(drop=True)
    return df


def group_and_reduce(
    frame: pd.DataFrame,
    group_keys: Sequence[str],
    reducers: Mapping[str, str],
) -> pd.DataFrame:
    """Group `frame` by `group_keys` and reduce each column with sum or max."""
    for col, how in reducers.items():
        if how not in REDUCERS:
            raise ValueError(f"reducer for {col!r} must be one of {REDUCERS}, got {how!r}")
    grouped = frame.groupby(list(group_keys), sort=True, dropna=False)
    parts: List[pd.Series] = []
    for col, how in reducers.items():
        if how == "sum":
            # min_count=1: an all-missing group sums to NaN, not 0
            parts.append(grouped[col].sum(min_count=1))
        else:
            parts.append(grouped[col].max())
    return pd.concat(parts, axis=1).reset_index()


def severity_bucket(cfr: Optional[float]) -> Optional[str]:
    """Bucket label for a case fatality ratio in percent.

    Intervals are half-open `[lower, upper)`: exactly 1.0 -> "1-2".
    Missing or NaN values have no bucket.
    """
    if cfr is None:
        return None
    v = float(cfr)
    if math.isnan(v):
        return None
    return SEVERITY_LABELS[bisect_right(SEVERITY_THRESHOLDS, v)]
