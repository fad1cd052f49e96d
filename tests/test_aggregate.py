from uph_pipeline.domains.workcycles.aggregate import aggregate_mo_cycles
from uph_pipeline.domains.workcycles.ingest import cycles_to_frame
from uph_pipeline.domains.workcycles.models import AuditLog
from uph_pipeline.domains.workcycles.transform import normalize_work_cycles


def _aggregate(records):
    audit = AuditLog(run_id="test")
    cycles = normalize_work_cycles(cycles_to_frame(records, audit), audit)
    return aggregate_mo_cycles(cycles)


def test_operations_on_same_mo_merge_into_one_aggregate(make_cycle):
    aggregates = _aggregate([
        make_cycle("MO1", 50, 1800, operation="Sew"),
        make_cycle("MO1", 50, 1200, operation="Hem"),
    ])

    assert len(aggregates) == 1
    row = aggregates.iloc[0]
    assert row["total_duration_seconds"] == 3000
    assert row["cycle_count"] == 2
    assert row["operations"] == frozenset({"Sew", "Hem"})


def test_quantity_is_per_order_not_summed(make_cycle):
    aggregates = _aggregate([make_cycle("MO1", 40, 600) for _ in range(4)])

    assert aggregates.iloc[0]["mo_quantity"] == 40
    assert aggregates.iloc[0]["total_duration_seconds"] == 2400


def test_rope_and_sewing_cycles_share_an_aggregate(make_cycle):
    aggregates = _aggregate([
        make_cycle("MO1", work_center_raw="Rope"),
        make_cycle("MO1", work_center_raw="Sewing"),
    ])

    assert len(aggregates) == 1
    assert aggregates.iloc[0]["work_center"] == "Assembly"


def test_distinct_keys_stay_separate(make_cycle):
    aggregates = _aggregate([
        make_cycle("MO1", operator_name="A"),
        make_cycle("MO1", operator_name="B"),
        make_cycle("MO1", routing="R2"),
        make_cycle("MO1", work_center_raw="Cutting"),
        make_cycle("MO2"),
    ])

    assert len(aggregates) == 5


def test_unreadable_duration_counts_as_cycle_but_adds_no_time(make_cycle):
    aggregates = _aggregate([
        make_cycle("MO1", 50, 3600),
        make_cycle("MO1", 50, float("nan")),
    ])

    row = aggregates.iloc[0]
    assert row["cycle_count"] == 2
    assert row["total_duration_seconds"] == 3600


def test_cycles_without_operation_leave_operations_empty(make_cycle):
    aggregates = _aggregate([make_cycle(operation=None)])

    assert aggregates.iloc[0]["operations"] == frozenset()
