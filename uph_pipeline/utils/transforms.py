"""Common data transformation utilities."""

from typing import TypeAlias

import pandas as pd

ColumnMapping: TypeAlias = dict[str, str]

# ERP export names and contract (camelCase, lower-cased by normalize_columns)
# names resolved to WorkCycle field names in a single place.
WORK_CYCLE_FIELD_MAPPING: ColumnMapping = {
    "work_cycles_operator_rec_name": "operator_name",
    "operatorname": "operator_name",
    "operator": "operator_name",
    "work_cycles_work_center_rec_name": "work_center_raw",
    "workcenterraw": "work_center_raw",
    "workcenter": "work_center_raw",
    "work_center": "work_center_raw",
    "work_production_routing_rec_name": "routing",
    "work_production_number": "mo_number",
    "monumber": "mo_number",
    "work_production_quantity": "mo_quantity",
    "moquantity": "mo_quantity",
    "work_cycles_duration": "duration_seconds",
    "durationseconds": "duration_seconds",
    "work_operation_rec_name": "operation",
    "work_cycles_state": "state",
    "work_cycles_operator_write_date": "recorded_at",
    "work_production_create_date": "recorded_at",
    "recordedat": "recorded_at",
}


def normalize_name(name: str) -> str:
    return name.strip().lower().replace(" ", "_").replace("-", "_")


def normalize_columns(df: pd.DataFrame, mapping: ColumnMapping | None = None) -> pd.DataFrame:
    """Normalize column names to snake_case and apply optional mapping."""
    df.columns = [normalize_name(col) for col in df.columns]

    if mapping:
        df = df.rename(columns=mapping)

    return df


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Keep the first occurrence when two source columns map to the same name."""
    return df.loc[:, ~df.columns.duplicated()].copy()
