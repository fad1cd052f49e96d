"""Shared type definitions for the pipeline."""

from typing import TypeAlias

from enum import StrEnum


CycleRecord: TypeAlias = dict[str, str | float | None]
SummaryRecord: TypeAlias = dict[str, str | float | int]
GroupKey: TypeAlias = tuple[str, str, str]
ValidationOutcome: TypeAlias = dict[str, bool | str | list[str]]


class PipelineStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class AveragingStrategy(StrEnum):
    MEAN = "mean"
    DURATION_WEIGHTED = "duration_weighted"


class FilterReason(StrEnum):
    BELOW_MIN_DURATION = "below_min_duration"
    BELOW_MIN_UPH = "below_min_uph"
    ABOVE_MAX_UPH = "above_max_uph"


class SkipReason(StrEnum):
    UNREADABLE_RECORD = "unreadable_record"
    MISSING_OPERATOR_NAME = "missing_operator_name"
    MISSING_WORK_CENTER = "missing_work_center"
    MISSING_ROUTING = "missing_routing"
    MISSING_MO_NUMBER = "missing_mo_number"
    INVALID_MO_QUANTITY = "invalid_mo_quantity"
    INELIGIBLE_STATE = "ineligible_state"
