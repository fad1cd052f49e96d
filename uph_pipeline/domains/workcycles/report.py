"""Shape operator UPH results for the persistence layer and for display."""

import logging
from pathlib import Path

import pandas as pd
from rich.table import Table

from uph_pipeline.domains.workcycles.models import (
    SUMMARY_COLUMNS,
    AuditLog,
    OperatorUphSummary,
    SummarySchema,
)
from uph_pipeline.utils.io import replace_output
from uph_pipeline.utils.types import SummaryRecord, ValidationOutcome
from uph_pipeline.utils.validators import validate_dataframe, validate_unique

logger = logging.getLogger(__name__)

SUMMARY_KEY = ["operatorName", "workCenter", "routing"]


class OutputValidationError(ValueError):
    """The computed result set does not satisfy the output contract."""


def build_summaries(averages: pd.DataFrame, data_source: str) -> list[OperatorUphSummary]:
    return [
        OperatorUphSummary(
            operator_name=row.operator_name,
            work_center=row.work_center,
            routing=row.routing,
            operation=row.operation,
            units_per_hour=float(row.units_per_hour),
            observations=int(row.observations),
            total_quantity=float(row.total_quantity),
            total_hours=float(row.total_hours),
            data_source=data_source,
        )
        for row in averages.itertuples(index=False)
    ]


def emit_summaries(summaries: list[OperatorUphSummary]) -> list[SummaryRecord]:
    """Map summaries onto the output contract, rounding rates and hours to 2 dp."""
    return [
        {
            "operatorName": s.operator_name,
            "workCenter": s.work_center,
            "routing": s.routing,
            "operation": s.operation,
            "unitsPerHour": round(s.units_per_hour, 2),
            "observations": s.observations,
            "totalQuantity": s.total_quantity,
            "totalHours": round(s.total_hours, 2),
            "dataSource": s.data_source,
        }
        for s in summaries
    ]


def summaries_to_frame(summaries: list[OperatorUphSummary]) -> pd.DataFrame:
    """Output records as a frame; an empty run still carries the contract columns."""
    return pd.DataFrame(emit_summaries(summaries), columns=SUMMARY_COLUMNS)


def check_output(df: pd.DataFrame) -> ValidationOutcome:
    """Validate an output frame against the contract schema and its unique key."""
    unique_result = validate_unique(df, SUMMARY_KEY)
    schema_result = validate_dataframe(df, SummarySchema)
    errors = unique_result["errors"] + schema_result["errors"]
    match errors:
        case []:
            return {"valid": True, "status": "ok", "errors": []}
        case _:
            return {"valid": False, "status": "error", "errors": errors}


def publish_summaries(summaries: list[OperatorUphSummary], path: str | Path, fmt: str = "csv") -> pd.DataFrame:
    """Replace the result set at ``path``, refusing output that breaks the contract.

    On a failed check nothing is written and the previous result set stays.
    """
    df = summaries_to_frame(summaries)
    match check_output(df):
        case {"valid": True}:
            replace_output(df, path, fmt=fmt)
        case {"valid": False, "errors": errs}:
            for error in errs:
                logger.error(error)
            raise OutputValidationError(f"{len(errs)} output check failures: " + "; ".join(errs[:5]))
    return df


def build_summary_table(summaries: list[OperatorUphSummary], title: str = "Operator UPH") -> Table:
    table = Table(title=title)
    for column in ("Operator", "Work Center", "Routing", "UPH", "MOs", "Qty", "Hours"):
        table.add_column(column, justify="right" if column in {"UPH", "MOs", "Qty", "Hours"} else "left")

    for record in emit_summaries(summaries):
        table.add_row(
            record["operatorName"],
            record["workCenter"],
            record["routing"],
            f"{record['unitsPerHour']:.2f}",
            str(record["observations"]),
            f"{record['totalQuantity']:g}",
            f"{record['totalHours']:.2f}",
        )
    return table


def build_audit_table(audit: AuditLog, show_filtered: bool = False) -> Table:
    table = Table(title=f"Audit for run {audit.run_id}")
    table.add_column("Item")
    table.add_column("Count", justify="right")

    table.add_row("Records received", str(audit.records_received))
    table.add_row("Records accepted", str(audit.records_accepted))
    for reason, count in sorted(audit.skipped.items()):
        table.add_row(f"[yellow]Skipped: {reason}[/yellow]", str(count))
    if audit.records_excluded_by_filter:
        table.add_row("Excluded by filter", str(audit.records_excluded_by_filter))
    table.add_row("Unreadable durations (counted as 0s)", str(audit.unreadable_durations))
    table.add_row("MO aggregates", str(audit.mo_count))
    table.add_row("Observations kept", str(audit.observations_kept))

    filtered = audit.filtered_entries()
    table.add_row("[red]Observations filtered[/red]", str(len(filtered)))
    if show_filtered:
        for entry in filtered:
            uph = "n/a" if entry.uph is None else f"{entry.uph:.2f}"
            table.add_row(
                f"  {entry.operator_name} {entry.work_center}/{entry.routing} {entry.mo_number}",
                f"{entry.reason} ({uph})",
            )
    table.add_row("Cohort anomalies", str(len(audit.anomalies)))
    return table
