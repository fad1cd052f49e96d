"""Flag per-MO UPH values that sit far from the rest of their cohort.

A cohort is one (operator, work center, routing) group. Findings are
informational: they land in the audit log and never change an average.
"""

import logging

import numpy as np
import pandas as pd

from uph_pipeline.domains.workcycles.models import OPERATOR_KEY, AnomalyFinding
from uph_pipeline.utils.types import GroupKey

logger = logging.getLogger(__name__)

MIN_COHORT_SIZE = 3
IQR_MIN_COHORT_SIZE = 5
IQR_FENCE = 1.5
Z_SCORE_LIMIT = 3.0


def _iqr_bounds(values: np.ndarray) -> tuple[float, float, float]:
    """Lower fence, upper fence and median, using floor-index quartiles."""
    n = len(values)
    q1 = values[int(n * 0.25)]
    q3 = values[int(n * 0.75)]
    median = values[int(n * 0.5)]
    iqr = q3 - q1
    return q1 - IQR_FENCE * iqr, q3 + IQR_FENCE * iqr, median


def _cohort_outliers(cohort: pd.DataFrame) -> tuple[pd.DataFrame, float, str]:
    values = np.sort(cohort["uph"].to_numpy(dtype=float))

    if len(values) >= IQR_MIN_COHORT_SIZE:
        lower, upper, median = _iqr_bounds(values)
        flagged = cohort[(cohort["uph"] < lower) | (cohort["uph"] > upper)]
        return flagged, float(median), "iqr"

    mean = values.mean()
    std = values.std()
    if std == 0:
        return cohort.iloc[0:0], float(mean), "zscore"
    z_scores = ((cohort["uph"] - mean) / std).abs()
    return cohort[z_scores > Z_SCORE_LIMIT], float(mean), "zscore"


def detect_cohort_anomalies(audited: pd.DataFrame) -> list[AnomalyFinding]:
    if audited.empty:
        return []

    kept = audited[audited["kept"]]
    findings: list[AnomalyFinding] = []
    for (operator, work_center, routing), cohort in kept.groupby(OPERATOR_KEY, sort=True):
        if len(cohort) < MIN_COHORT_SIZE:
            continue

        flagged, center, method = _cohort_outliers(cohort)
        for row in flagged.itertuples(index=False):
            findings.append(
                AnomalyFinding(
                    operator_name=operator,
                    work_center=work_center,
                    routing=routing,
                    mo_number=row.mo_number,
                    quantity=float(row.quantity),
                    duration_hours=float(row.duration_hours),
                    uph=float(row.uph),
                    cohort_center_uph=center,
                    cohort_size=len(cohort),
                    method=method,
                )
            )

    if findings:
        logger.info(f"Detected {len(findings)} cohort anomalies")
    return findings


def anomaly_free_means(audited: pd.DataFrame, findings: list[AnomalyFinding]) -> dict[GroupKey, float]:
    """Mean per-MO UPH of each cohort with its flagged MOs left out."""
    if audited.empty:
        return {}

    flagged = {(f.operator_name, f.work_center, f.routing, f.mo_number) for f in findings}
    kept = audited[audited["kept"]]
    means: dict[GroupKey, float] = {}
    for key, cohort in kept.groupby(OPERATOR_KEY, sort=True):
        clean = [(*key, mo) not in flagged for mo in cohort["mo_number"]]
        remaining = cohort.loc[clean, "uph"]
        if not remaining.empty:
            means[key] = float(remaining.mean())
    return means
