"""Bring work-cycle records into the engine's frame shape.

Two entry points: ``cycles_to_frame`` takes records already handed over by a
caller (ERP sync, HTTP handler), ``ingest_work_cycles`` reads ERP CSV
exports from disk and resolves their column names through the shared
field-mapping table.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import asdict
from pathlib import Path

import pandas as pd

from uph_pipeline.domains.workcycles.models import CYCLE_FIELDS, AuditLog, WorkCycle
from uph_pipeline.utils.io import read_csv_files
from uph_pipeline.utils.transforms import (
    WORK_CYCLE_FIELD_MAPPING,
    drop_duplicate_columns,
    normalize_columns,
    normalize_name,
)
from uph_pipeline.utils.types import CycleRecord, SkipReason

logger = logging.getLogger(__name__)


def _resolve_fields(record: Mapping) -> CycleRecord:
    """Pick WorkCycle fields out of a mapping keyed by field, contract or ERP names.

    Exact field names win over aliases; among aliases the first key wins.
    """
    row = {name: record.get(name) for name in CYCLE_FIELDS}
    found = {name for name in CYCLE_FIELDS if name in record}
    for key, value in record.items():
        if not isinstance(key, str):
            continue
        name = WORK_CYCLE_FIELD_MAPPING.get(normalize_name(key))
        if name is not None and name not in found:
            row[name] = value
            found.add(name)
    return row


def cycles_to_frame(
    records: Iterable[WorkCycle | Mapping],
    audit: AuditLog,
) -> pd.DataFrame:
    """Flatten records into a frame with one column per WorkCycle field."""
    rows = []
    unreadable = 0
    for record in records:
        match record:
            case WorkCycle():
                rows.append(asdict(record))
            case Mapping():
                rows.append(_resolve_fields(record))
            case _:
                unreadable += 1

    audit.records_received = len(rows) + unreadable
    if unreadable:
        logger.warning(f"Skipped {unreadable} records that are not work cycles")
        audit.record_skip(SkipReason.UNREADABLE_RECORD.value, unreadable)

    return pd.DataFrame(rows, columns=CYCLE_FIELDS)


def ingest_work_cycles(path: str | Path) -> list[CycleRecord]:
    """Read ERP work-cycle CSV exports into WorkCycle-shaped mappings."""
    raw = read_csv_files(path, dtype=str)
    if raw.empty:
        logger.warning(f"No work-cycle rows found at {path}")
        return []

    df = normalize_columns(raw, WORK_CYCLE_FIELD_MAPPING)
    df = drop_duplicate_columns(df)
    missing = [name for name in CYCLE_FIELDS if name not in df.columns]
    for name in missing:
        df[name] = None
    if missing:
        logger.debug(f"Export at {path} has no columns for {missing}")

    logger.info(f"Ingested {len(df)} work-cycle rows from {path}")
    return df[CYCLE_FIELDS].to_dict(orient="records")
