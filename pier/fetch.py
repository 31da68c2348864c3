"""
Source download
===============

Fetches the public CSVs the two reports are built from. This is a thin I/O
wrapper: one GET per file, no retries and no caching. A failed request raises
`requests.HTTPError` (or a connection error) to the caller.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional
import logging
import os

import requests

log = logging.getLogger(__name__)

JHU_BASE = ("https://raw.githubusercontent.com/CSSEGISandData/COVID-19/master/"
            "csse_covid_19_data/")

DEFAULT_DATA_DIR = os.getenv("PIER_DATA_DIR", "data")


@dataclass(frozen=True)
class Source:
    """One downloadable dataset."""
    name: str
    url: str
    filename: str


SOURCES: Dict[str, Source] = {s.name: s for s in (
    Source("shootings",
           "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD",
           "NYPD_Shooting_Incident_Data__Historic_.csv"),
    Source("us_cases",
           JHU_BASE + "csse_covid_19_time_series/time_series_covid19_confirmed_US.csv",
           "time_series_covid19_confirmed_US.csv"),
    Source("us_deaths",
           JHU_BASE + "csse_covid_19_time_series/time_series_covid19_deaths_US.csv",
           "time_series_covid19_deaths_US.csv"),
    Source("global_cases",
           JHU_BASE + "csse_covid_19_time_series/time_series_covid19_confirmed_global.csv",
           "time_series_covid19_confirmed_global.csv"),
    Source("global_deaths",
           JHU_BASE + "csse_covid_19_time_series/time_series_covid19_deaths_global.csv",
           "time_series_covid19_deaths_global.csv"),
    Source("lookup",
           JHU_BASE + "UID_ISO_FIPS_LookUp_Table.csv",
           "UID_ISO_FIPS_LookUp_Table.csv"),
)}

MORTALITY_SOURCES = ("us_cases", "us_deaths", "global_cases", "global_deaths", "lookup")


def download(url: str, dest: str, session: Optional[requests.Session] = None, timeout: float = 60) -> str:
    """Download `url` to `dest` and return `dest`."""
    http = session or requests
    log.info("downloading %s", url)
    r = http.get(url, timeout=timeout)
    r.raise_for_status()
    os.makedirs(os.path.dirname(dest) or ".", exist_ok=True)
    with open(dest, "wb") as f:
        f.write(r.content)
    log.info("saved %d bytes -> %s", len(r.content), dest)
    return dest


def source_path(data_dir: str, name: str) -> str:
    return os.path.join(data_dir, SOURCES[name].filename)


def download_all(data_dir: str = DEFAULT_DATA_DIR, names=None,
                 session: Optional[requests.Session] = None) -> Dict[str, str]:
    """Download the named sources (all by default) into `data_dir`."""
    names = list(names) if names is not None else list(SOURCES)
    return {n: download(SOURCES[n].url, source_path(data_dir, n), session=session) for n in names}
