"""Combine work cycles into one aggregate per operator, work center, routing and MO."""

import logging
from collections import defaultdict

import pandas as pd

from uph_pipeline.domains.workcycles.models import MO_KEY, MoAggregateSchema

logger = logging.getLogger(__name__)

MO_AGGREGATE_COLUMNS = [
    *MO_KEY,
    "total_duration_seconds",
    "cycle_count",
    "mo_quantity",
    "operations",
]


def _collect_operations(cycles: pd.DataFrame, keys: list[str]) -> dict[tuple, frozenset[str]]:
    """Union of operation names seen per group key."""
    seen: dict[tuple, set[str]] = defaultdict(set)
    for row in cycles[[*keys, "operation"]].itertuples(index=False, name=None):
        *key, operation = row
        if operation:
            seen[tuple(key)].add(operation)
    return {key: frozenset(ops) for key, ops in seen.items()}


def aggregate_mo_cycles(cycles: pd.DataFrame) -> pd.DataFrame:
    """Sum durations and count cycles for every (operator, work center, routing, MO).

    Several cycles or operations logged on the same MO inside one work center
    always collapse into a single aggregate. The MO quantity is the order's
    quantity, carried over rather than summed across cycles.
    """
    if cycles.empty:
        return pd.DataFrame(columns=MO_AGGREGATE_COLUMNS)

    aggregates = (
        cycles.groupby(MO_KEY, sort=True)
        .agg(
            total_duration_seconds=("duration_seconds", "sum"),
            cycle_count=("duration_seconds", "count"),
            mo_quantity=("mo_quantity", "max"),
            quantity_variants=("mo_quantity", "nunique"),
        )
        .reset_index()
    )

    conflicting = aggregates[aggregates["quantity_variants"] > 1]
    for row in conflicting.itertuples(index=False):
        logger.warning(
            f"MO {row.mo_number} ({row.operator_name}, {row.work_center}, {row.routing}) "
            f"carries {row.quantity_variants} different quantities, using {row.mo_quantity}"
        )

    operations = _collect_operations(cycles, MO_KEY)
    aggregates["operations"] = [
        operations.get(key, frozenset())
        for key in aggregates[MO_KEY].itertuples(index=False, name=None)
    ]
    aggregates = aggregates[MO_AGGREGATE_COLUMNS].copy()

    logger.info(f"Aggregated {len(cycles)} work cycles into {len(aggregates)} MO groups")
    return MoAggregateSchema.validate(aggregates)
