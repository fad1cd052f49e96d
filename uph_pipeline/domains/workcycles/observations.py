"""Turn MO aggregates into per-MO UPH observations."""

import logging

import numpy as np
import pandas as pd

from uph_pipeline.config import SECONDS_PER_HOUR, UphPolicy
from uph_pipeline.domains.workcycles.models import MO_KEY, ObservationSchema

logger = logging.getLogger(__name__)

OBSERVATION_COLUMNS = [
    *MO_KEY,
    "quantity",
    "duration_hours",
    "uph",
    "cycle_count",
    "operations",
]


def calculate_mo_uph(aggregates: pd.DataFrame, policy: UphPolicy) -> pd.DataFrame:
    """Compute ``uph = quantity / hours`` for every MO long enough to measure.

    MOs shorter than the policy's duration floor get no UPH (NaN) and never
    reach the division; the outlier filter records them as too short.
    """
    if aggregates.empty:
        return pd.DataFrame(columns=OBSERVATION_COLUMNS)

    obs = aggregates.rename(columns={"mo_quantity": "quantity"}).copy()
    obs["duration_hours"] = obs["total_duration_seconds"] / SECONDS_PER_HOUR

    measurable = obs["duration_hours"] >= policy.min_duration_hours
    obs["uph"] = np.nan
    obs.loc[measurable, "uph"] = (
        obs.loc[measurable, "quantity"] / obs.loc[measurable, "duration_hours"]
    )

    logger.info(
        f"Computed UPH for {int(measurable.sum())} of {len(obs)} MOs "
        f"(floor {policy.min_duration_hours * 60:.1f} min)"
    )
    return ObservationSchema.validate(obs[OBSERVATION_COLUMNS].copy())
