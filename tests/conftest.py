import pandas as pd
import pytest

from pier import fetch


def incident_row(key, date="01/01/2024", time="10:30:00", boro="BRONX",
                 perp=("25-44", "M", "BLACK"), vic=("18-24", "M", "BLACK"),
                 murder="false", precinct="40"):
    return {
        "INCIDENT_KEY": key,
        "OCCUR_DATE": date,
        "OCCUR_TIME": time,
        "BORO": boro,
        "PRECINCT": precinct,
        "LOCATION_DESC": "",
        "STATISTICAL_MURDER_FLAG": murder,
        "PERP_AGE_GROUP": perp[0],
        "PERP_SEX": perp[1],
        "PERP_RACE": perp[2],
        "VIC_AGE_GROUP": vic[0],
        "VIC_SEX": vic[1],
        "VIC_RACE": vic[2],
    }


@pytest.fixture
def incident_frame():
    return pd.DataFrame([
        # A1 has two victims -> two rows, one incident
        incident_row("A1", "01/01/2024", "23:15:00", "BRONX", murder="true"),
        incident_row("A1", "01/01/2024", "23:15:00", "BRONX", vic=("25-44", "F", "BLACK"), murder="true"),
        incident_row("B2", "01/07/2024", "02:00:00", "BROOKLYN"),
        incident_row("C3", "02/14/2023", "14:05:00", "QUEENS", perp=("18-24", "F", "WHITE")),
        incident_row("D4", "03/03/2023", "00:00:00", "BROOKLYN", perp=("", "", "")),
        incident_row("E5", "03/04/2023", "09:00:00", "MANHATTAN", perp=("UNKNOWN", "U", "UNKNOWN")),
        incident_row("F6", "13/40/2023", "09:00:00", "BRONX"),
    ])


# --- JHU time series -------------------------------------------------------

DATES = ["1/22/20", "12/31/20", "1/1/21"]


def _us_row(county, state, values, population=None):
    row = {"UID": 84000000, "iso2": "US", "iso3": "USA", "code3": 840, "FIPS": 1001.0,
           "Admin2": county, "Province_State": state, "Country_Region": "US",
           "Lat": 32.5, "Long_": -86.6, "Combined_Key": f"{county}, {state}, US"}
    if population is not None:
        row["Population"] = population
    row.update(dict(zip(DATES, values)))
    return row


def _global_row(state, country, values):
    row = {"Province/State": state, "Country/Region": country, "Lat": 1.0, "Long": 2.0}
    row.update(dict(zip(DATES, values)))
    return row


@pytest.fixture
def us_cases_raw():
    return pd.DataFrame([
        _us_row("Autauga", "Alabama", [0, 10, 20]),
        _us_row("Baldwin", "Alabama", [5, 50, 100]),
        _us_row("Kings", "New York", [0, 1000, 2000]),
    ])


@pytest.fixture
def us_deaths_raw():
    return pd.DataFrame([
        _us_row("Autauga", "Alabama", [0, 1, 2], population=55000),
        _us_row("Baldwin", "Alabama", [0, 1, 3], population=220000),
        _us_row("Kings", "New York", [0, 30, 50], population=2500000),
        # deaths-only row: no matching cases row
        _us_row("Unassigned", "Alabama", [0, 0, 1], population=0),
    ])


@pytest.fixture
def global_cases_raw():
    return pd.DataFrame([
        _global_row("North", "Country X", [0, 80, 100]),
        _global_row("South", "Country X", [0, 40, 50]),
        _global_row("", "Country Y", [0, 0, 0]),
        _global_row("", "Country Z", [3, 10, 20]),
    ])


@pytest.fixture
def global_deaths_raw():
    return pd.DataFrame([
        _global_row("North", "Country X", [0, 8, 10]),
        _global_row("South", "Country X", [0, 4, 5]),
        _global_row("", "Country Y", [0, 0, 0]),
        _global_row("", "Country Z", [0, 1, 2]),
    ])


@pytest.fixture
def lookup_raw():
    rows = [
        ("", "North", "Country X", 1000),
        ("", "South", "Country X", 500),
        ("", "", "Country Y", 700),
        ("Autauga", "Alabama", "US", 55000),
        ("Baldwin", "Alabama", "US", 220000),
        ("", "Alabama", "US", 4900000),
        ("Kings", "New York", "US", 2500000),
    ]
    return pd.DataFrame([
        {"UID": i, "iso2": "", "Admin2": c, "Province_State": s, "Country_Region": k,
         "Lat": 0.0, "Long_": 0.0, "Combined_Key": f"{c}, {s}, {k}", "Population": p}
        for i, (c, s, k, p) in enumerate(rows)
    ])


@pytest.fixture
def mortality_data_dir(tmp_path, us_cases_raw, us_deaths_raw, global_cases_raw, global_deaths_raw, lookup_raw):
    frames = {
        "us_cases": us_cases_raw,
        "us_deaths": us_deaths_raw,
        "global_cases": global_cases_raw,
        "global_deaths": global_deaths_raw,
        "lookup": lookup_raw,
    }
    for name, df in frames.items():
        df.to_csv(fetch.source_path(str(tmp_path), name), index=False)
    return tmp_path
