"""Plausibility filter for per-MO UPH observations."""

import logging

import pandas as pd

from uph_pipeline.config import UphPolicy
from uph_pipeline.utils.types import FilterReason

logger = logging.getLogger(__name__)


def classify_observation(uph: float, duration_hours: float, policy: UphPolicy) -> FilterReason | None:
    """Return why an observation is implausible, or None when it is kept."""
    match (uph, duration_hours):
        case (_, hours) if hours < policy.min_duration_hours:
            return FilterReason.BELOW_MIN_DURATION
        case (value, _) if pd.isna(value):
            return FilterReason.BELOW_MIN_DURATION
        case (value, _) if value < policy.min_uph:
            return FilterReason.BELOW_MIN_UPH
        case (value, _) if value > policy.max_uph:
            return FilterReason.ABOVE_MAX_UPH
        case _:
            return None


def filter_outliers(observations: pd.DataFrame, policy: UphPolicy) -> pd.DataFrame:
    """Flag every observation as kept or filtered, logging each one filtered.

    The full list comes back with ``kept`` and ``filter_reason`` columns so
    the audit trail keeps rejected MOs; only rows with ``kept`` feed the
    operator averages. Running it again on its own output changes nothing.
    """
    audited = observations.copy()
    reasons = [
        classify_observation(uph, hours, policy)
        for uph, hours in zip(audited["uph"], audited["duration_hours"])
    ]
    audited["filter_reason"] = pd.Series(
        [reason.value if reason else None for reason in reasons],
        index=audited.index,
        dtype=object,
    )
    audited["kept"] = audited["filter_reason"].isna()

    for row in audited[~audited["kept"]].itertuples(index=False):
        uph = "n/a" if pd.isna(row.uph) else f"{row.uph:.2f}"
        logger.info(
            f"Filtered MO {row.mo_number} for {row.operator_name} "
            f"{row.work_center}/{row.routing}: {row.filter_reason} "
            f"(UPH={uph}, hours={row.duration_hours:.3f}, qty={row.quantity})"
        )

    logger.info(
        f"Outlier filter kept {int(audited['kept'].sum())} of {len(audited)} MO observations "
        f"(UPH range [{policy.min_uph}, {policy.max_uph}])"
    )
    return audited
