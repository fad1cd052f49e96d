from pathlib import Path

import pandas as pd
import pytest

from uph_pipeline.config import UphPolicy
from uph_pipeline.domains.workcycles.models import WorkCycle

ERP_COLUMNS = {
    "operator_name": "work_cycles_operator_rec_name",
    "work_center_raw": "work_cycles_work_center_rec_name",
    "routing": "work_production_routing_rec_name",
    "mo_number": "work_production_number",
    "mo_quantity": "work_production_quantity",
    "duration_seconds": "work_cycles_duration",
    "operation": "work_operation_rec_name",
    "state": "state",
    "recorded_at": "work_cycles_operator_write_date",
}


def cycle(
    mo_number: str = "MO1",
    mo_quantity: float = 50,
    duration_seconds: float = 3600,
    operator_name: str = "A",
    work_center_raw: str = "Sewing",
    routing: str = "R1",
    operation: str | None = "Sew",
    state: str | None = "done",
    recorded_at: str | None = None,
) -> WorkCycle:
    return WorkCycle(
        operator_name=operator_name,
        work_center_raw=work_center_raw,
        routing=routing,
        mo_number=mo_number,
        mo_quantity=mo_quantity,
        duration_seconds=duration_seconds,
        operation=operation,
        state=state,
        recorded_at=recorded_at,
    )


@pytest.fixture()
def make_cycle():
    return cycle


@pytest.fixture()
def policy() -> UphPolicy:
    return UphPolicy()


@pytest.fixture()
def erp_export(tmp_path: Path) -> Path:
    """A small ERP work-cycle export using the ERP's own column names."""
    rows = [
        cycle("MO1", 50, 1800, operation="Sew"),
        cycle("MO1", 50, 1800, operation="Hem"),
        cycle("MO2", 60, 3600, work_center_raw="Rope / Assembly"),
        cycle("MO3", 40, 120),
        cycle("MO4", 30, 3600, operator_name="B", work_center_raw="Cutting - Fabric"),
    ]
    df = pd.DataFrame([vars(row) for row in rows]).rename(columns=ERP_COLUMNS)
    path = tmp_path / "work_cycles.csv"
    df.to_csv(path, index=False)
    return path
