"""Average surviving per-MO observations into one UPH per operator, work center and routing."""

import logging

import pandas as pd

from uph_pipeline.config import UphPolicy
from uph_pipeline.domains.workcycles.models import OPERATOR_KEY
from uph_pipeline.utils.types import AveragingStrategy

logger = logging.getLogger(__name__)

AVERAGE_COLUMNS = [
    *OPERATOR_KEY,
    "operation",
    "units_per_hour",
    "observations",
    "total_quantity",
    "total_hours",
]


def _join_operations(groups: pd.Series) -> str:
    names: set[str] = set()
    for operations in groups:
        names.update(operations)
    return ", ".join(sorted(names))


def _units_per_hour(group_stats: pd.DataFrame, strategy: AveragingStrategy) -> pd.Series:
    match strategy:
        case AveragingStrategy.MEAN:
            return group_stats["mean_uph"]
        case AveragingStrategy.DURATION_WEIGHTED:
            # sum(uph_i * h_i) / sum(h_i) reduces to total quantity over total hours
            return group_stats["total_quantity"] / group_stats["total_hours"]
        case other:
            raise ValueError(f"Unknown averaging strategy: {other}")


def average_operator_uph(audited: pd.DataFrame, policy: UphPolicy) -> pd.DataFrame:
    """Build one row per (operator, work center, routing) with surviving observations.

    With the default MEAN strategy every MO counts equally, whatever its size
    or duration. Totals are informational and never feed back into
    ``units_per_hour``. Groups whose observations were all filtered are
    absent from the result.
    """
    kept = audited[audited["kept"]] if not audited.empty else audited
    if kept.empty:
        return pd.DataFrame(columns=AVERAGE_COLUMNS)

    grouped = kept.groupby(OPERATOR_KEY, sort=True)
    stats = grouped.agg(
        mean_uph=("uph", "mean"),
        observations=("mo_number", "count"),
        total_quantity=("quantity", "sum"),
        total_hours=("duration_hours", "sum"),
    )
    stats["operation"] = grouped["operations"].agg(_join_operations)
    stats["units_per_hour"] = _units_per_hour(stats, policy.averaging)
    stats = stats.reset_index()

    logger.info(
        f"Averaged {len(kept)} MO observations into {len(stats)} operator groups "
        f"({policy.averaging} strategy)"
    )
    return stats[AVERAGE_COLUMNS]
