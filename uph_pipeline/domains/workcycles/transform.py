"""Screen raw work cycles and canonicalize their work centers."""

import logging

import numpy as np
import pandas as pd

from uph_pipeline.domains.workcycles.models import AuditLog, CycleFilter, WorkCycleSchema
from uph_pipeline.utils.types import SkipReason

logger = logging.getLogger(__name__)

ASSEMBLY_KEYWORDS = ("sewing", "assembly", "rope")
CUTTING_KEYWORDS = ("cutting",)
PACKAGING_KEYWORDS = ("packaging", "packing")

TEXT_FIELDS = ["operator_name", "work_center_raw", "routing", "mo_number", "operation", "state"]


def consolidate_work_center(raw: str) -> str:
    """Map a free-text work center onto Assembly, Cutting or Packaging.

    Only the first segment of a compound name ("Sewing / Assembly") is
    considered. Names matching no category come back unchanged.
    """
    name = raw.strip()
    primary = name.split(" / ")[0].lower()
    match primary:
        case p if any(kw in p for kw in ASSEMBLY_KEYWORDS):
            return "Assembly"
        case p if any(kw in p for kw in CUTTING_KEYWORDS):
            return "Cutting"
        case p if any(kw in p for kw in PACKAGING_KEYWORDS):
            return "Packaging"
        case _:
            return name


def _clean_text(value: object) -> str | None:
    if isinstance(value, str):
        text = value.strip()
    elif value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return None
    else:
        text = str(value).strip()
    return text or None


def _is_eligible_state(state: str | None) -> bool:
    return state is None or state.lower() == "done"


def normalize_work_cycles(
    df: pd.DataFrame,
    audit: AuditLog,
    cycle_filter: CycleFilter | None = None,
) -> pd.DataFrame:
    """Drop unusable cycles, coerce numerics and add the canonical work center.

    Each skipped cycle is counted once, under the first check it fails.
    Durations that cannot be read are kept as 0 seconds so the cycle still
    shows up in the MO's cycle count.
    """
    df = df.copy()
    for col in TEXT_FIELDS:
        df[col] = df[col].map(_clean_text).astype(object)

    quantity = pd.to_numeric(df["mo_quantity"], errors="coerce").astype(float)
    duration = pd.to_numeric(df["duration_seconds"], errors="coerce").astype(float)
    eligible = df["state"].map(_is_eligible_state).astype(bool)

    checks = [
        (SkipReason.MISSING_OPERATOR_NAME, df["operator_name"].isna()),
        (SkipReason.MISSING_WORK_CENTER, df["work_center_raw"].isna()),
        (SkipReason.MISSING_ROUTING, df["routing"].isna()),
        (SkipReason.MISSING_MO_NUMBER, df["mo_number"].isna()),
        (SkipReason.INVALID_MO_QUANTITY, ~(np.isfinite(quantity) & (quantity > 0))),
        (SkipReason.INELIGIBLE_STATE, ~eligible),
    ]
    reason = pd.Series(None, index=df.index, dtype=object)
    for skip_reason, failed in checks:
        reason = reason.mask(reason.isna() & failed, skip_reason.value)

    for skip_reason, count in reason.dropna().value_counts().sort_index().items():
        logger.warning(f"Skipped {count} work cycles: {skip_reason}")
        audit.record_skip(skip_reason, int(count))

    kept = reason.isna()
    unreadable = ~np.isfinite(duration) | (duration < 0)
    audit.unreadable_durations = int((unreadable & kept).sum())
    if audit.unreadable_durations:
        logger.warning(
            f"{audit.unreadable_durations} work cycles have unreadable durations, counted as 0s"
        )

    screened = df.loc[kept].copy()
    screened["mo_quantity"] = quantity[kept]
    screened["duration_seconds"] = duration.where(~unreadable, 0.0)[kept]
    screened["work_center"] = screened["work_center_raw"].map(consolidate_work_center).astype(object)
    audit.records_accepted = len(screened)

    if cycle_filter is not None:
        screened = _apply_cycle_filter(screened, cycle_filter, audit)

    logger.info(
        f"Accepted {audit.records_accepted} of {audit.records_received} work cycles"
    )
    return WorkCycleSchema.validate(screened.reset_index(drop=True))


def _apply_cycle_filter(
    df: pd.DataFrame,
    cycle_filter: CycleFilter,
    audit: AuditLog,
) -> pd.DataFrame:
    matches = pd.Series(True, index=df.index)
    if cycle_filter.operator_name:
        matches &= df["operator_name"] == cycle_filter.operator_name
    if cycle_filter.work_center:
        matches &= df["work_center"] == consolidate_work_center(cycle_filter.work_center)
    if cycle_filter.routing:
        matches &= df["routing"] == cycle_filter.routing
    if (cutoff := cycle_filter.cutoff()) is not None:
        recorded = pd.to_datetime(df["recorded_at"], errors="coerce", utc=True, format="mixed")
        matches &= recorded >= cutoff
        logger.debug(f"Window of {cycle_filter.window_days} days starts at {cutoff}")

    audit.records_excluded_by_filter = int((~matches).sum())
    if audit.records_excluded_by_filter:
        logger.info(f"Filter excluded {audit.records_excluded_by_filter} work cycles")
    return df[matches]
