"""Estimate how long an operator needs for a work order from historical UPH."""

import logging

from uph_pipeline.domains.workcycles.models import OperatorUphSummary, WorkOrderEstimate
from uph_pipeline.domains.workcycles.transform import consolidate_work_center

logger = logging.getLogger(__name__)


def estimate_work_order_hours(
    summaries: list[OperatorUphSummary],
    operator_name: str,
    work_center: str,
    routing: str,
    quantity: float,
) -> WorkOrderEstimate:
    """Hours = quantity / UPH for the exact operator, work center and routing.

    Without a matching summary the estimate carries no hours and a
    ``no_data`` source; there is no fallback to other operators or routings.
    """
    if not quantity > 0:
        raise ValueError(f"Quantity must be positive, got {quantity}")

    work_center = consolidate_work_center(work_center)
    key = (operator_name, work_center, routing)
    match [s for s in summaries if s.key == key]:
        case []:
            logger.info(f"No UPH data for {operator_name} + {work_center} + {routing}")
            return WorkOrderEstimate(
                operator_name=operator_name,
                work_center=work_center,
                routing=routing,
                quantity=quantity,
                uph=None,
                estimated_hours=None,
                data_source="no_data",
            )
        case matches:
            best = max(matches, key=lambda s: (s.observations, s.units_per_hour))

    estimated_hours = quantity / best.units_per_hour
    logger.info(
        f"UPH estimate: {operator_name} {work_center} {routing} - {quantity} units / "
        f"{best.units_per_hour:.2f} UPH = {estimated_hours:.2f}h"
    )
    return WorkOrderEstimate(
        operator_name=operator_name,
        work_center=work_center,
        routing=routing,
        quantity=quantity,
        uph=best.units_per_hour,
        estimated_hours=estimated_hours,
        data_source="historical_uph",
    )
