"""Work-cycle domain: standardized Units Per Hour per operator, work center and routing."""

import logging
import uuid
from collections.abc import Iterable, Mapping
from pathlib import Path

import pandas as pd

from uph_pipeline.config import DEFAULT_DATA_SOURCE, UphPolicy
from uph_pipeline.domains.workcycles.ingest import cycles_to_frame, ingest_work_cycles
from uph_pipeline.domains.workcycles.transform import normalize_work_cycles, consolidate_work_center
from uph_pipeline.domains.workcycles.aggregate import aggregate_mo_cycles
from uph_pipeline.domains.workcycles.observations import calculate_mo_uph
from uph_pipeline.domains.workcycles.outliers import filter_outliers
from uph_pipeline.domains.workcycles.averaging import average_operator_uph
from uph_pipeline.domains.workcycles.anomalies import anomaly_free_means, detect_cohort_anomalies
from uph_pipeline.domains.workcycles.report import (
    OutputValidationError,
    build_summaries,
    emit_summaries,
    publish_summaries,
    summaries_to_frame,
)
from uph_pipeline.domains.workcycles.estimate import estimate_work_order_hours
from uph_pipeline.domains.workcycles.state import CalculationInProgressError, RunState
from uph_pipeline.domains.workcycles.models import (
    AuditLog,
    CycleFilter,
    MoAggregateSchema,
    ObservationSchema,
    OperatorUphSummary,
    SummarySchema,
    WorkCycle,
    WorkCycleSchema,
)

logger = logging.getLogger(__name__)


def validate(df: pd.DataFrame, schema_name: str = "cycles") -> bool:
    """Run pandera validation against the given schema."""
    match schema_name:
        case "cycles":
            WorkCycleSchema.validate(df)
        case "aggregates":
            MoAggregateSchema.validate(df)
        case "observations":
            ObservationSchema.validate(df)
        case "summaries":
            SummarySchema.validate(df)
        case other:
            raise ValueError(f"No schema registered for: {other}")
    return True


def _calculate(
    records: Iterable[WorkCycle | Mapping],
    policy: UphPolicy,
    data_source: str,
    cycle_filter: CycleFilter | None,
    run_id: str,
) -> tuple[list[OperatorUphSummary], AuditLog]:
    audit = AuditLog(run_id=run_id)

    raw = cycles_to_frame(records, audit)
    cycles = normalize_work_cycles(raw, audit, cycle_filter=cycle_filter)
    aggregates = aggregate_mo_cycles(cycles)
    audit.mo_count = len(aggregates)

    observations = calculate_mo_uph(aggregates, policy)
    audited = filter_outliers(observations, policy)
    audit.observations = audited
    audit.anomalies = detect_cohort_anomalies(audited)
    audit.anomaly_free_means = anomaly_free_means(audited, audit.anomalies)

    averages = average_operator_uph(audited, policy)
    summaries = build_summaries(averages, data_source)
    logger.info(f"UPH run {run_id}: {len(summaries)} operator summaries")
    return summaries, audit


def compute_uph(
    records: Iterable[WorkCycle | Mapping],
    policy: UphPolicy | None = None,
    *,
    data_source: str = DEFAULT_DATA_SOURCE,
    run_state: RunState | None = None,
    cycle_filter: CycleFilter | None = None,
    run_id: str | None = None,
) -> tuple[list[OperatorUphSummary], AuditLog]:
    """Recompute every operator UPH from a complete set of work cycles.

    Pure with respect to its inputs: no I/O, no state kept between calls.
    Bad records are skipped and counted in the returned audit log; an empty
    or fully-skipped input gives an empty summary list. When a ``run_state``
    is given, a second call while it is RUNNING raises
    CalculationInProgressError instead of interleaving.
    """
    policy = policy or UphPolicy()
    run_id = run_id or uuid.uuid4().hex[:12]

    if run_state is None:
        return _calculate(records, policy, data_source, cycle_filter, run_id)

    with run_state.calculating(run_id):
        summaries, audit = _calculate(records, policy, data_source, cycle_filter, run_id)
        run_state.last_summary_count = len(summaries)
    return summaries, audit


def run(
    input_path: str | Path,
    output_path: str | Path | None = None,
    fmt: str = "csv",
    policy: UphPolicy | None = None,
    data_source: str = DEFAULT_DATA_SOURCE,
    run_state: RunState | None = None,
    cycle_filter: CycleFilter | None = None,
) -> tuple[list[OperatorUphSummary], AuditLog]:
    """Execute the full work-cycle pipeline: ingest, compute, replace the output.

    Output that fails the contract check raises OutputValidationError and
    leaves the previous result set in place.
    """
    records = ingest_work_cycles(input_path)
    summaries, audit = compute_uph(
        records, policy, data_source=data_source, run_state=run_state, cycle_filter=cycle_filter
    )

    if output_path is not None:
        publish_summaries(summaries, output_path, fmt=fmt)
    return summaries, audit
