from datetime import datetime

import pytest

from pier.models import AgeGroup, Borough, Demographics, IncidentRecord, Race, Sex, canonical, encode_flag


def _record(ts):
    d = Demographics("25-44", "M", "BLACK")
    return IncidentRecord("K", ts, "BRONX", d, d, False)


def test_calendar_fields_are_derived_once_from_timestamp():
    r = _record(datetime(2024, 1, 7, 2, 0))
    assert (r.year, r.month, r.month_name) == (2024, 1, "January")
    assert r.weekday == 6
    assert r.weekday_name == "Sunday"
    assert r.hour_of_day == 2


def test_week_of_year_is_iso_week():
    assert _record(datetime(2021, 1, 1)).week_of_year == 53
    assert _record(datetime(2024, 1, 1)).week_of_year == 1


def test_monday_is_first_weekday():
    r = _record(datetime(2024, 1, 1))
    assert (r.weekday, r.weekday_name) == (0, "Monday")


def test_records_are_immutable():
    r = _record(datetime(2024, 1, 1))
    with pytest.raises(AttributeError):
        r.year = 1999


def test_sex_parse_and_encode():
    assert Sex.parse("F") is Sex.FEMALE
    assert Sex.parse(" m ") is Sex.MALE
    assert Sex.parse("U") is None
    assert Sex.parse("") is None
    assert Sex.FEMALE.encode() == 1
    assert Sex.MALE.encode() == 0


def test_age_group_parse():
    assert AgeGroup.parse("65+") is AgeGroup.AGE_65_PLUS
    assert AgeGroup.parse("<18") is AgeGroup.UNDER_18
    assert AgeGroup.parse("1020") is None
    assert AgeGroup.parse("UNKNOWN") is None


def test_race_sentinels():
    assert Race.parse("WHITE HISPANIC") == "WHITE HISPANIC"
    for raw in ("UNKNOWN", "", "(null)", None):
        assert Race.parse(raw) is None


def test_borough_parse():
    assert Borough.parse("Staten Island") is Borough.STATEN_ISLAND
    assert Borough.parse("NEWARK") is None


def test_encode_flag():
    assert encode_flag(True) == 1
    assert encode_flag(False) == 0


def test_demographics_is_known():
    assert Demographics("18-24", "F", "WHITE").is_known()
    assert not Demographics("18-24", "F", "UNKNOWN").is_known()
    assert not Demographics("224", "M", "BLACK").is_known()
    assert not Demographics("18-24", "U", "BLACK").is_known()


def test_canonical_uses_the_parser_and_keeps_sentinels():
    assert canonical(Borough.parse, " Bronx ") == "BRONX"
    assert canonical(Sex.parse, "m") == "M"
    assert canonical(AgeGroup.parse, "65+") == "65+"
    assert canonical(Race.parse, "White Hispanic") == "WHITE HISPANIC"
    assert canonical(Race.parse, "(null)") == "(NULL)"
    assert canonical(Sex.parse, "") == ""
