import os

import pandas as pd
import pytest
import requests

pytest.importorskip("docx")

from pier import fetch
from pier.cli import main


def test_shootings_command(tmp_path, incident_frame, capsys):
    csv = tmp_path / "shootings.csv"
    incident_frame.to_csv(csv, index=False)
    out_dir = tmp_path / "tables"
    rc = main(["shootings", "--csv", str(csv), "--docx", str(tmp_path / "r.docx"), "--export", str(out_dir)])
    assert rc == 0
    assert (tmp_path / "r.docx").exists()
    assert (out_dir / "regression_input.csv").exists()
    by_year = pd.read_csv(out_dir / "by_year.csv")
    assert by_year["incidents"].tolist() == [3, 2]
    assert "dropped 1 malformed" in capsys.readouterr().out


def test_mortality_command(mortality_data_dir, tmp_path):
    out_dir = tmp_path / "mortality_tables"
    rc = main(["mortality", "--data-dir", str(mortality_data_dir), "--export", str(out_dir),
               "--docx", str(tmp_path / "m.docx")])
    assert rc == 0
    countries = pd.read_csv(out_dir / "countries.csv")
    assert countries["country"].tolist() == ["Country X"]
    assert countries["crude_death_ratio"].iloc[0] == pytest.approx(1000.0)
    assert sorted(os.listdir(out_dir)) == sorted(
        f"{n}.csv" for n in ("us_yearly", "us_counties", "us_states", "global_yearly", "countries"))


def test_mortality_keep_undefined(mortality_data_dir, tmp_path):
    out_dir = tmp_path / "t"
    assert main(["mortality", "--data-dir", str(mortality_data_dir), "--keep-undefined", "--export", str(out_dir)]) == 0
    countries = pd.read_csv(out_dir / "countries.csv")
    assert set(countries["country"]) == {"Country X", "Country Z"}


def test_missing_input_exits_with_error(tmp_path, capsys):
    rc = main(["mortality", "--data-dir", str(tmp_path / "nothing-here")])
    assert rc == 1
    out = capsys.readouterr().out
    assert out.startswith("Loading time series...")
    assert "Error:" in out and "time_series_covid19_confirmed_US.csv" in out


def test_failed_download_exits_with_error(tmp_path, monkeypatch, capsys):
    def refuse(url, dest, session=None, timeout=60):
        raise requests.ConnectionError(f"cannot reach {url}")

    monkeypatch.setattr(fetch, "download", refuse)
    rc = main(["shootings", "--download", "--data-dir", str(tmp_path)])
    assert rc == 1
    assert "Error: cannot reach https://" in capsys.readouterr().out


def test_duplicate_location_rows_exit_with_error(mortality_data_dir, capsys):
    path = fetch.source_path(str(mortality_data_dir), "us_cases")
    cases = pd.read_csv(path)
    pd.concat([cases, cases.iloc[[0]]], ignore_index=True).to_csv(path, index=False)
    rc = main(["mortality", "--data-dir", str(mortality_data_dir)])
    assert rc == 1
    assert "Error:" in capsys.readouterr().out
