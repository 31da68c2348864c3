import math
from collections import namedtuple

import numpy as np
import pandas as pd
import pytest

from pier.aggregate import (
    SEVERITY_LABELS, counts_frame, group_and_count_distinct, group_and_reduce, severity_bucket,
)

Row = namedtuple("Row", "incident_id borough victim")


def test_distinct_count_without_groups():
    rows = [Row("A1", "BRONX", "v1"), Row("A1", "BRONX", "v2"), Row("B2", "QUEENS", "v3")]
    assert group_and_count_distinct(rows, (), "incident_id") == {(): 2}


def test_distinct_count_per_group_ignores_duplicate_rows():
    rows = [Row("A1", "BRONX", "v1"), Row("A1", "BRONX", "v2"), Row("A1", "BRONX", "v3"),
            Row("B2", "BRONX", "v1"), Row("C3", "QUEENS", "v1")]
    counts = group_and_count_distinct(rows, ("borough",), "incident_id")
    assert counts == {("BRONX",): 2, ("QUEENS",): 1}
    # equals the number of unique ids per group
    for (boro,), n in counts.items():
        assert n == len({r.incident_id for r in rows if r.borough == boro})


def test_distinct_count_with_callable_key():
    rows = [Row("A1", "bronx", "v"), Row("B2", "BRONX", "v")]
    counts = group_and_count_distinct(rows, (lambda r: r.borough.upper(),), "incident_id")
    assert counts == {("BRONX",): 2}


def test_counts_frame_sorted_and_renamed():
    df = counts_frame({("QUEENS",): 1, ("BRONX",): 2}, ("perpetrator.borough",))
    assert list(df.columns) == ["perpetrator_borough", "incidents"]
    assert df["perpetrator_borough"].tolist() == ["BRONX", "QUEENS"]


def test_group_and_reduce_sum_and_max():
    frame = pd.DataFrame({"k": ["a", "a", "b"], "x": [1.0, 2.0, 5.0], "y": [3, 9, 4]})
    out = group_and_reduce(frame, ["k"], {"x": "sum", "y": "max"})
    assert out["x"].tolist() == [3.0, 5.0]
    assert out["y"].tolist() == [9, 4]


def test_group_and_reduce_keeps_absence():
    frame = pd.DataFrame({"k": ["a", "a", "b"], "x": [np.nan, np.nan, 1.0]})
    out = group_and_reduce(frame, ["k"], {"x": "sum"}).set_index("k")
    assert math.isnan(out.loc["a", "x"])
    assert out.loc["b", "x"] == 1.0


def test_group_and_reduce_rejects_unknown_reducer():
    with pytest.raises(ValueError):
        group_and_reduce(pd.DataFrame({"k": [1], "x": [1]}), ["k"], {"x": "mean"})


@pytest.mark.parametrize("cfr,label", [
    (0.0, "< 0.5"), (0.49, "< 0.5"), (0.5, "0.5-1"), (0.99, "0.5-1"),
    (1.0, "1-2"), (1.5, "1-2"), (2.0, "2-5"), (5.0, "5-10"), (9.99, "5-10"),
    (10.0, ">10"), (250.0, ">10"),
])
def test_severity_bucket_half_open(cfr, label):
    assert severity_bucket(cfr) == label


def test_severity_bucket_missing():
    assert severity_bucket(None) is None
    assert severity_bucket(float("nan")) is None


def test_every_defined_value_has_exactly_one_bucket():
    values = [i / 100 for i in range(0, 2000)]
    labels = [severity_bucket(v) for v in values]
    assert None not in labels
    assert set(labels) == set(SEVERITY_LABELS)
