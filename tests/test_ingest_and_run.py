from datetime import datetime

import pandas as pd
import pytest

from uph_pipeline.domains import workcycles
from uph_pipeline.run import main
from uph_pipeline.utils.io import replace_output


def test_erp_export_is_mapped_to_work_cycle_fields(erp_export):
    records = workcycles.ingest_work_cycles(erp_export)

    assert len(records) == 5
    assert records[0]["operator_name"] == "A"
    assert records[2]["work_center_raw"] == "Rope / Assembly"
    assert set(records[0]) == {
        "operator_name", "work_center_raw", "routing", "mo_number",
        "mo_quantity", "duration_seconds", "operation", "state", "recorded_at",
    }


def test_contract_column_names_are_accepted(tmp_path):
    path = tmp_path / "cycles.csv"
    pd.DataFrame([{
        "operatorName": "C",
        "workCenterRaw": "Packing",
        "routing": "R9",
        "moNumber": "0042",
        "moQuantity": "30",
        "durationSeconds": "1800",
    }]).to_csv(path, index=False)

    records = workcycles.ingest_work_cycles(path)
    summaries, _ = workcycles.compute_uph(records)

    assert records[0]["mo_number"] == "0042"
    assert summaries[0].work_center == "Packaging"
    assert summaries[0].units_per_hour == 60.0


def test_run_replaces_output(erp_export, tmp_path):
    output = tmp_path / "out" / "historical_uph.csv"
    output.parent.mkdir()
    output.write_text("stale\n", encoding="utf-8")

    summaries, audit = workcycles.run(erp_export, output, fmt="csv")

    df = pd.read_csv(output)
    assert len(df) == len(summaries) == 2
    assert df.loc[df["operatorName"] == "A", "unitsPerHour"].item() == 55.0
    assert df.loc[df["operatorName"] == "B", "workCenter"].item() == "Cutting"
    assert len(audit.filtered_entries()) == 1


def test_failed_replace_leaves_previous_result(tmp_path):
    output = tmp_path / "historical_uph.csv"
    output.write_text("previous\n", encoding="utf-8")

    with pytest.raises(ValueError):
        replace_output(pd.DataFrame({"a": [1]}), output, fmt="xml")

    assert output.read_text(encoding="utf-8") == "previous\n"
    assert list(tmp_path.iterdir()) == [output]


def test_cli_writes_result_set(erp_export, tmp_path):
    output = tmp_path / "uph.json"

    code = main(["--input", str(erp_export), "--output", str(output), "--format", "json"])

    assert code == 0
    df = pd.read_json(output)
    assert set(df["operatorName"]) == {"A", "B"}


def test_cli_dry_run_does_not_write(erp_export, tmp_path):
    output = tmp_path / "uph.csv"

    code = main(["--input", str(erp_export), "--output", str(output), "--dry-run"])

    assert code == 0
    assert not output.exists()


def test_cli_missing_input_fails(tmp_path):
    assert main(["--input", str(tmp_path / "missing.csv"), "--dry-run"]) == 1


def test_erp_write_date_drives_the_window(tmp_path):
    path = tmp_path / "cycles.csv"
    pd.DataFrame([
        {"work_cycles_operator_rec_name": "A", "work_cycles_work_center_rec_name": "Sewing",
         "work_production_routing_rec_name": "R1", "work_production_number": "MO1",
         "work_production_quantity": "50", "work_cycles_duration": "3600",
         "work_cycles_operator_write_date": "2026-10-10 09:00:00"},
        {"work_cycles_operator_rec_name": "A", "work_cycles_work_center_rec_name": "Sewing",
         "work_production_routing_rec_name": "R1", "work_production_number": "MO2",
         "work_production_quantity": "90", "work_cycles_duration": "3600",
         "work_cycles_operator_write_date": "2026-06-01 09:00:00"},
    ]).to_csv(path, index=False)
    window = workcycles.CycleFilter(window_days=7, as_of=datetime(2026, 10, 15))

    summaries, audit = workcycles.run(path, cycle_filter=window)

    assert summaries[0].units_per_hour == 50.0
    assert audit.records_excluded_by_filter == 1


def test_invalid_output_keeps_previous_result(tmp_path, make_cycle):
    output = tmp_path / "historical_uph.csv"
    output.write_text("previous\n", encoding="utf-8")
    summaries, _ = workcycles.compute_uph([make_cycle("MO1")])
    duplicated = summaries + summaries

    with pytest.raises(workcycles.OutputValidationError, match="duplicate"):
        workcycles.publish_summaries(duplicated, output)

    assert output.read_text(encoding="utf-8") == "previous\n"


def test_empty_result_set_passes_output_check(tmp_path):
    output = tmp_path / "historical_uph.csv"

    df = workcycles.publish_summaries([], output)

    assert df.empty
    assert list(pd.read_csv(output).columns) == list(df.columns)


def test_cli_window_with_undated_cycles_replaces_with_empty_set(erp_export, tmp_path):
    output = tmp_path / "uph.csv"

    code = main(["--input", str(erp_export), "--output", str(output), "--window-days", "30"])

    assert code == 0
    assert pd.read_csv(output).empty


def test_cli_rejects_negative_window(erp_export):
    assert main(["--input", str(erp_export), "--window-days", "-1", "--dry-run"]) == 1


def test_cli_unknown_environment_fails(erp_export):
    assert main(["--env", "nowhere", "--input", str(erp_export), "--dry-run"]) == 1
