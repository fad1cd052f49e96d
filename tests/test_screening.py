from datetime import datetime, timezone

import pytest

from uph_pipeline.domains.workcycles import compute_uph
from uph_pipeline.domains.workcycles.ingest import cycles_to_frame
from uph_pipeline.domains.workcycles.models import AuditLog, CycleFilter
from uph_pipeline.domains.workcycles.transform import normalize_work_cycles


def _screen(records, cycle_filter=None):
    audit = AuditLog(run_id="test")
    frame = cycles_to_frame(records, audit)
    return normalize_work_cycles(frame, audit, cycle_filter=cycle_filter), audit


def test_bad_records_are_skipped_and_counted(make_cycle):
    records = [
        make_cycle("MO1"),
        make_cycle("MO2", operator_name=""),
        {"operator_name": "A", "work_center_raw": "Sewing", "routing": None,
         "mo_number": "MO3", "mo_quantity": 10, "duration_seconds": 600},
        make_cycle("MO4", mo_quantity=0),
        {"operator_name": "A", "work_center_raw": "Sewing", "routing": "R1",
         "mo_number": "MO5", "mo_quantity": "abc", "duration_seconds": 600},
        make_cycle("MO6", state="cancelled"),
        {"operator_name": "A", "work_center_raw": "Sewing", "routing": "R1",
         "mo_number": "MO7", "mo_quantity": 10, "duration_seconds": "n/a"},
        "not a work cycle",
    ]

    cycles, audit = _screen(records)

    assert audit.records_received == 8
    assert audit.records_accepted == 2
    assert audit.skipped == {
        "unreadable_record": 1,
        "missing_operator_name": 1,
        "missing_routing": 1,
        "invalid_mo_quantity": 2,
        "ineligible_state": 1,
    }
    assert audit.unreadable_durations == 1
    assert sorted(cycles["mo_number"]) == ["MO1", "MO7"]
    assert cycles.loc[cycles["mo_number"] == "MO7", "duration_seconds"].item() == 0.0


def test_missing_state_counts_as_eligible(make_cycle):
    cycles, audit = _screen([make_cycle(state=None), make_cycle(state="DONE")])

    assert audit.records_accepted == 2
    assert audit.skipped == {}


def test_each_record_is_counted_under_its_first_failure(make_cycle):
    _, audit = _screen([make_cycle(operator_name="", mo_quantity=-1, state="draft")])

    assert audit.skipped == {"missing_operator_name": 1}


def test_canonical_work_center_is_added(make_cycle):
    cycles, _ = _screen([make_cycle(work_center_raw="Rope"), make_cycle(work_center_raw="Cutting - Fabric")])

    assert list(cycles["work_center"]) == ["Assembly", "Cutting"]
    assert list(cycles["work_center_raw"]) == ["Rope", "Cutting - Fabric"]


def test_cycle_filter_excludes_without_counting_as_skipped(make_cycle):
    records = [
        make_cycle("MO1", operator_name="A"),
        make_cycle("MO2", operator_name="B"),
        make_cycle("MO3", operator_name="A", work_center_raw="Cutting"),
    ]

    cycles, audit = _screen(records, CycleFilter(operator_name="A", work_center="Sewing"))

    assert list(cycles["mo_number"]) == ["MO1"]
    assert audit.records_excluded_by_filter == 2
    assert audit.skipped == {}


def test_no_valid_input_gives_empty_result(make_cycle):
    summaries, audit = compute_uph([make_cycle(mo_quantity=0), make_cycle(routing="")])

    assert summaries == []
    assert audit.records_accepted == 0
    assert audit.records_skipped == 2
    assert audit.filtered_entries() == []


def test_empty_input_gives_empty_result():
    summaries, audit = compute_uph([])

    assert summaries == []
    assert audit.records_received == 0
    assert audit.mo_count == 0


def test_window_keeps_cycles_from_the_cutoff_onwards(make_cycle):
    records = [
        make_cycle("MO1", recorded_at="2026-10-01T00:00:00Z"),
        make_cycle("MO2", recorded_at="2026-09-30T23:59:59Z"),
        make_cycle("MO3", recorded_at="2026-10-20 08:15:00"),
        make_cycle("MO4", recorded_at=None),
    ]
    window = CycleFilter(window_days=30, as_of=datetime(2026, 10, 31, tzinfo=timezone.utc))

    cycles, audit = _screen(records, window)

    assert sorted(cycles["mo_number"]) == ["MO1", "MO3"]
    assert audit.records_excluded_by_filter == 2
    assert audit.skipped == {}


def test_zero_day_window_keeps_everything(make_cycle):
    records = [make_cycle("MO1", recorded_at=None), make_cycle("MO2", recorded_at="2001-01-01")]

    cycles, audit = _screen(records, CycleFilter(window_days=0))

    assert len(cycles) == 2
    assert audit.records_excluded_by_filter == 0


def test_negative_window_is_rejected():
    with pytest.raises(ValueError, match="window_days"):
        CycleFilter(window_days=-7)


def test_contract_named_mappings_are_read():
    records = [
        {"operatorName": "A", "workCenter": "Sewing / Assembly", "routing": "R1",
         "moNumber": "MO1", "moQuantity": 50, "durationSeconds": 3600},
        {"work_cycles_operator_rec_name": "A", "work_cycles_work_center_rec_name": "Sewing",
         "work_production_routing_rec_name": "R1", "work_production_number": "MO2",
         "work_production_quantity": 60, "work_cycles_duration": 3600},
    ]

    summaries, audit = compute_uph(records)

    assert audit.skipped == {}
    assert audit.records_accepted == 2
    [summary] = summaries
    assert summary.work_center == "Assembly"
    assert summary.observations == 2
    assert summary.units_per_hour == 55.0


def test_field_names_win_over_aliases():
    [row] = cycles_to_frame(
        [{"operatorName": "alias", "operator_name": "A", "routing": "R1"}],
        AuditLog(run_id="test"),
    ).to_dict(orient="records")

    assert row["operator_name"] == "A"
