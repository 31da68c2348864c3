"""
Dataset loaders (CSV -> records / canonical frames)
===================================================

This module reads the source CSVs.

Key ideas:
- We try multiple possible column names because exports vary between the
  NYPD historic / year-to-date files and between the JHU US / global files.
- We keep conversion helpers (_to_int/_to_str/_to_bool) to safely handle blanks.
- A row whose date or time cannot be parsed is dropped and counted. It is
  never kept with a guessed date.
- Categorical sentinels ("UNKNOWN", "", "(null)") are kept as-is; filtering
  is an aggregation-time decision.

Every loader accepts either a path or an already-read DataFrame, so tests and
the CLI share the same code path.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Union
import logging
import re

import pandas as pd

from .errors import MalformedTimestamp
from .models import Demographics, IncidentRecord
from .timeparse import is_date_label, parse_occurrence

log = logging.getLogger(__name__)

Readable = Union[str, "pd.DataFrame"]

# JHU metadata columns that are not part of a location's identity
_TS_METADATA = ("uid", "iso2", "iso3", "code3", "fips", "lat", "long", "combinedkey", "population")


def _to_int(x) -> Optional[int]:
    """Convert a cell to int, returning None if missing/invalid."""
    if pd.isna(x): return None
    try: return int(float(x))
    except Exception: return None

def _to_str(x) -> str:
    if pd.isna(x): return ""
    return str(x).strip()

def _to_bool(x) -> bool:
    if isinstance(x, bool): return x
    if pd.isna(x): return False
    return str(x).strip().upper() in ("TRUE", "T", "Y", "YES", "1")

def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())

def _col(df: pd.DataFrame, *names: str) -> str:
    cols = list(df.columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    raise KeyError(f"Missing required column. Tried={names}. Available={cols}")

def _opt_col(df: pd.DataFrame, *names: str) -> Optional[str]:
    try:
        return _col(df, *names)
    except KeyError:
        return None

def _read(source: Readable) -> pd.DataFrame:
    if isinstance(source, pd.DataFrame):
        df = source.copy()
    else:
        # strings everywhere: date headers and keys must survive untouched
        df = pd.read_csv(source, dtype=str, keep_default_na=False, na_values=[""])
    df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
    return df


@dataclass
class IngestResult:
    """Records that parsed, plus how many rows were rejected (and their keys)."""
    records: List[IncidentRecord]
    rejected: int = 0
    rejected_keys: List[str] = field(default_factory=list)


def load_incidents(source: Readable) -> IngestResult:
    """Load the NYPD shooting CSV into `IncidentRecord`s."""
    df = _read(source)

    key_col = _col(df, "INCIDENT_KEY", "Incident Key")
    date_col = _col(df, "OCCUR_DATE", "Occur Date")
    time_col = _col(df, "OCCUR_TIME", "Occur Time")
    boro_col = _col(df, "BORO", "Borough")
    murder_col = _col(df, "STATISTICAL_MURDER_FLAG", "Murder Flag")
    perp_cols = (_col(df, "PERP_AGE_GROUP"), _col(df, "PERP_SEX"), _col(df, "PERP_RACE"))
    vic_cols = (_col(df, "VIC_AGE_GROUP"), _col(df, "VIC_SEX"), _col(df, "VIC_RACE"))
    precinct_col = _opt_col(df, "PRECINCT")
    location_col = _opt_col(df, "LOCATION_DESC", "Location Description")

    records: List[IncidentRecord] = []
    rejected_keys: List[str] = []
    for _, row in df.iterrows():
        key = _to_str(row[key_col])
        try:
            occurred_at = parse_occurrence(_to_str(row[date_col]), _to_str(row[time_col]))
        except MalformedTimestamp as e:
            log.debug("dropping incident %s: %s", key, e)
            rejected_keys.append(key)
            continue

        records.append(IncidentRecord(
            incident_id=key,
            occurred_at=occurred_at,
            borough=_to_str(row[boro_col]),
            perpetrator=Demographics(*(_to_str(row[c]) for c in perp_cols)),
            victim=Demographics(*(_to_str(row[c]) for c in vic_cols)),
            is_statistical_murder=_to_bool(row[murder_col]),
            precinct=_to_int(row[precinct_col]) if precinct_col else None,
            location_desc=_to_str(row[location_col]) if location_col else "",
        ))

    if rejected_keys:
        log.warning("dropped %d incident row(s) with malformed timestamps", len(rejected_keys))
    log.info("loaded %d incident row(s)", len(records))
    return IngestResult(records=records, rejected=len(rejected_keys), rejected_keys=rejected_keys)


def _canonical_location_columns(df: pd.DataFrame) -> dict:
    """Map source location columns to county/state/country."""
    mapping = {}
    county = _opt_col(df, "Admin2")
    if county:
        mapping[county] = "county"
    mapping[_col(df, "Province_State", "Province/State")] = "state"
    mapping[_col(df, "Country_Region", "Country/Region")] = "country"
    return mapping


def load_time_series(source: Readable) -> pd.DataFrame:
    """Load a JHU wide time-series CSV.

    Returns canonical identifying columns (`county` for US files, `state`,
    `country`) followed by one column per date, in source order. Metadata
    columns (UID, FIPS, Lat/Long, Population, ...) are dropped so cases and
    deaths tables share identical identifying columns.
    """
    df = _read(source)
    mapping = _canonical_location_columns(df)
    date_cols = [c for c in df.columns if is_date_label(c)]
    drop = [c for c in df.columns
            if c not in mapping and c not in date_cols
            and any(_norm(c).startswith(m) for m in _TS_METADATA)]
    out = df.drop(columns=drop).rename(columns=mapping)
    ids = [c for c in ("county", "state", "country") if c in out.columns]
    for c in ids:
        out[c] = out[c].fillna("").astype(str).str.strip()
    for c in date_cols:
        out[c] = pd.to_numeric(out[c], errors="coerce")
    extra = [c for c in out.columns if c not in ids and c not in date_cols]
    if extra:
        log.debug("ignoring unrecognised time-series columns: %s", extra)
    return out[ids + date_cols]


def load_population_lookup(source: Readable) -> pd.DataFrame:
    """Load the UID/ISO/FIPS lookup table as county/state/country/population."""
    df = _read(source)
    mapping = _canonical_location_columns(df)
    pop_col = _col(df, "Population")
    out = df[list(mapping) + [pop_col]].rename(columns=mapping).rename(columns={pop_col: "population"})
    if "county" not in out.columns:
        out["county"] = ""
    for c in ("county", "state", "country"):
        out[c] = out[c].fillna("").astype(str).str.strip()
    out["population"] = pd.to_numeric(out["population"], errors="coerce")
    return out[["county", "state", "country", "population"]].reset_index(drop=True)
