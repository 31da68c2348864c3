"""
Perpetrator-sex rate model
==========================

Input table: one row per (perpetrator age group, sex, race) with the number of
distinct incidents in that group. Only rows where both perpetrator and victim
have a known sex, race and age group are used; everything else is excluded,
never imputed.

Model: Poisson GLM with log link, `incidents ~ sex_code`, where
`sex_code` is 1 for female and 0 for male perpetrators. Because of that
direction, `exp(coefficient)` is the female/male incident rate ratio.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List
import logging

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf

from .aggregate import group_and_count_distinct
from .errors import EmptyRegressionInput
from .models import AgeGroup, IncidentRecord, Race, Sex

log = logging.getLogger(__name__)

FORMULA = "incidents ~ sex_code"


@dataclass(frozen=True)
class SexRateModel:
    """What the report needs from the fit."""
    coefficient: float
    rate_ratio: float
    std_error: float
    p_value: float
    intercept: float
    n_groups: int
    deviance: float
    aic: float

    def describe(self) -> str:
        direction = "fewer" if self.rate_ratio < 1 else "more"
        return (f"Female perpetrators are associated with {self.rate_ratio:.3f}x the incident count "
                f"of male perpetrators per group ({direction}); "
                f"coef={self.coefficient:.4f}, se={self.std_error:.4f}, p={self.p_value:.3g}")


def known_demographics(records: Iterable[IncidentRecord]) -> List[IncidentRecord]:
    """Rows where perpetrator and victim demographics are fully known."""
    return [r for r in records if r.perpetrator.is_known() and r.victim.is_known()]


def regression_input(records: Iterable[IncidentRecord]) -> pd.DataFrame:
    """Build the group-level table the GLM is fitted on.

    Columns: age_group, sex, race, sex_code, incidents, murders.
    """
    rows = known_demographics(records)
    if not rows:
        raise EmptyRegressionInput("no incidents with known perpetrator and victim demographics")

    # group on parsed values so "f" and "F" land in the same group
    keys = (
        lambda r: AgeGroup.parse(r.perpetrator.age_group),
        lambda r: Sex.parse(r.perpetrator.sex),
        lambda r: Race.parse(r.perpetrator.race),
    )
    incidents = group_and_count_distinct(rows, keys, "incident_id")
    murders = group_and_count_distinct([r for r in rows if r.is_statistical_murder], keys, "incident_id")

    table = []
    for (age, sex, race), n in incidents.items():
        table.append({
            "age_group": age.value,
            "sex": sex.value,
            "race": race,
            "sex_code": sex.encode(),
            "incidents": n,
            "murders": murders.get((age, sex, race), 0),
        })
    df = pd.DataFrame(table)
    order = {m: i for i, m in enumerate(AgeGroup)}
    df["_age_order"] = [order[AgeGroup.parse(a)] for a in df["age_group"]]
    df = df.sort_values(["_age_order", "sex", "race"], kind="mergesort").drop(columns="_age_order")
    log.info("regression input: %d group(s) from %d row(s)", len(df), len(rows))
    return df.reset_index(drop=True)


def fit_sex_rate_model(table: pd.DataFrame) -> SexRateModel:
    """Fit the Poisson GLM on a `regression_input` table."""
    if table.empty:
        raise EmptyRegressionInput("regression input table is empty")
    if table["sex_code"].nunique() < 2:
        raise EmptyRegressionInput("regression input has a single perpetrator sex; coefficient is not identifiable")

    res = smf.glm(FORMULA, data=table, family=sm.families.Poisson()).fit()
    coef = float(res.params["sex_code"])
    return SexRateModel(
        coefficient=coef,
        rate_ratio=float(np.exp(coef)),
        std_error=float(res.bse["sex_code"]),
        p_value=float(res.pvalues["sex_code"]),
        intercept=float(res.params["Intercept"]),
        n_groups=int(res.nobs),
        deviance=float(res.deviance),
        aic=float(res.aic),
    )
