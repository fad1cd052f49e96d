"""Record types and pandera schemas for the work-cycle UPH domain."""

from dataclasses import dataclass, field
from datetime import datetime

import pandas as pd
import pandera as pa
from pandera import Column, Check

from uph_pipeline.utils.types import FilterReason, GroupKey

CYCLE_FIELDS = [
    "operator_name",
    "work_center_raw",
    "routing",
    "mo_number",
    "mo_quantity",
    "duration_seconds",
    "operation",
    "state",
    "recorded_at",
]
MO_KEY = ["operator_name", "work_center", "routing", "mo_number"]
OPERATOR_KEY = ["operator_name", "work_center", "routing"]

SUMMARY_COLUMNS = [
    "operatorName",
    "workCenter",
    "routing",
    "operation",
    "unitsPerHour",
    "observations",
    "totalQuantity",
    "totalHours",
    "dataSource",
]


@dataclass(frozen=True)
class WorkCycle:
    """One raw ERP cycle record, already mapped to canonical field names."""

    operator_name: str
    work_center_raw: str
    routing: str
    mo_number: str
    mo_quantity: float
    duration_seconds: float
    operation: str | None = None
    state: str | None = "done"
    recorded_at: datetime | str | None = None


@dataclass(frozen=True)
class CycleFilter:
    """Optional narrowing of a run.

    ``window_days`` keeps cycles recorded on or after ``as_of`` minus that
    many days; cycles without a timestamp fall outside any window. ``None``
    or 0 means no window. ``as_of`` defaults to now, naive values are UTC.
    """

    operator_name: str | None = None
    work_center: str | None = None
    routing: str | None = None
    window_days: int | None = None
    as_of: datetime | None = None

    def __post_init__(self):
        if self.window_days is not None and self.window_days < 0:
            raise ValueError(f"window_days must be >= 0, got {self.window_days}")

    def cutoff(self) -> pd.Timestamp | None:
        if not self.window_days:
            return None
        as_of = pd.Timestamp.now(tz="UTC") if self.as_of is None else pd.Timestamp(self.as_of)
        if as_of.tzinfo is None:
            as_of = as_of.tz_localize("UTC")
        return as_of - pd.Timedelta(days=self.window_days)


@dataclass(frozen=True)
class OperatorUphSummary:
    operator_name: str
    work_center: str
    routing: str
    operation: str
    units_per_hour: float
    observations: int
    total_quantity: float
    total_hours: float
    data_source: str

    @property
    def key(self) -> GroupKey:
        return (self.operator_name, self.work_center, self.routing)


@dataclass(frozen=True)
class FilteredObservation:
    operator_name: str
    work_center: str
    routing: str
    mo_number: str
    quantity: float
    duration_hours: float
    uph: float | None
    reason: FilterReason


@dataclass(frozen=True)
class AnomalyFinding:
    operator_name: str
    work_center: str
    routing: str
    mo_number: str
    quantity: float
    duration_hours: float
    uph: float
    cohort_center_uph: float
    cohort_size: int
    method: str


@dataclass(frozen=True)
class WorkOrderEstimate:
    operator_name: str
    work_center: str
    routing: str
    quantity: float
    uph: float | None
    estimated_hours: float | None
    data_source: str


@dataclass
class AuditLog:
    """Everything a run saw, skipped and filtered, kept for traceability."""

    run_id: str
    records_received: int = 0
    records_accepted: int = 0
    records_excluded_by_filter: int = 0
    skipped: dict[str, int] = field(default_factory=dict)
    unreadable_durations: int = 0
    mo_count: int = 0
    observations: pd.DataFrame = field(default_factory=pd.DataFrame)
    anomalies: list[AnomalyFinding] = field(default_factory=list)
    anomaly_free_means: dict[GroupKey, float] = field(default_factory=dict)

    def record_skip(self, reason: str, count: int = 1) -> None:
        self.skipped[reason] = self.skipped.get(reason, 0) + count

    @property
    def records_skipped(self) -> int:
        return sum(self.skipped.values())

    @property
    def observations_kept(self) -> int:
        if self.observations.empty:
            return 0
        return int(self.observations["kept"].sum())

    def filtered_entries(self) -> list[FilteredObservation]:
        if self.observations.empty:
            return []
        rejected = self.observations[~self.observations["kept"]]
        return [
            FilteredObservation(
                operator_name=row.operator_name,
                work_center=row.work_center,
                routing=row.routing,
                mo_number=row.mo_number,
                quantity=float(row.quantity),
                duration_hours=float(row.duration_hours),
                uph=None if pd.isna(row.uph) else float(row.uph),
                reason=FilterReason(row.filter_reason),
            )
            for row in rejected.itertuples(index=False)
        ]


WorkCycleSchema = pa.DataFrameSchema(
    columns={
        "operator_name": Column(str, nullable=False),
        "work_center": Column(str, nullable=False),
        "routing": Column(str, nullable=False),
        "mo_number": Column(str, nullable=False),
        "mo_quantity": Column(float, Check.greater_than(0)),
        "duration_seconds": Column(float, Check.greater_than_or_equal_to(0)),
    },
    coerce=True,
    strict=False,
)

MoAggregateSchema = pa.DataFrameSchema(
    columns={
        "operator_name": Column(str, nullable=False),
        "work_center": Column(str, nullable=False),
        "routing": Column(str, nullable=False),
        "mo_number": Column(str, nullable=False),
        "total_duration_seconds": Column(float, Check.greater_than_or_equal_to(0)),
        "cycle_count": Column(int, Check.greater_than(0)),
        "mo_quantity": Column(float, Check.greater_than(0)),
    },
    unique=MO_KEY,
    coerce=True,
    strict=False,
)

ObservationSchema = pa.DataFrameSchema(
    columns={
        "operator_name": Column(str, nullable=False),
        "work_center": Column(str, nullable=False),
        "routing": Column(str, nullable=False),
        "mo_number": Column(str, nullable=False),
        "quantity": Column(float, Check.greater_than(0)),
        "duration_hours": Column(float, Check.greater_than_or_equal_to(0)),
        "uph": Column(float, Check.greater_than(0), nullable=True),
    },
    coerce=True,
    strict=False,
)

SummarySchema = pa.DataFrameSchema(
    columns={
        "operatorName": Column(str, nullable=False),
        "workCenter": Column(str, nullable=False),
        "routing": Column(str, nullable=False),
        "unitsPerHour": Column(float, Check.greater_than(0)),
        "observations": Column(int, Check.greater_than_or_equal_to(1)),
        "totalQuantity": Column(float, Check.greater_than(0)),
        "totalHours": Column(float, Check.greater_than_or_equal_to(0)),
        "dataSource": Column(str, nullable=False),
    },
    unique=["operatorName", "workCenter", "routing"],
    coerce=True,
    strict=False,
)
