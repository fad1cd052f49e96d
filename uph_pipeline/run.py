"""Main pipeline runner: recomputes operator UPH from ERP work-cycle exports."""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from uph_pipeline.config import get_env_config, load_pipeline_config
from uph_pipeline.domains import workcycles
from uph_pipeline.domains.workcycles.report import build_audit_table, build_summary_table

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Recalculate operator UPH from work cycles")
    parser.add_argument("--env", default="development", help="Config environment")
    parser.add_argument("--input", type=Path, help="Work-cycle CSV file or directory")
    parser.add_argument("--output", type=Path, help="Where to replace the UPH result set")
    parser.add_argument("--format", choices=["csv", "parquet", "json"], help="Output format")
    parser.add_argument("--averaging", choices=["mean", "duration_weighted"])
    parser.add_argument("--window-days", type=int, help="Only use cycles from the last N days")
    parser.add_argument("--dry-run", action="store_true", help="Compute and print, don't write")
    parser.add_argument("--show-filtered", action="store_true", help="List filtered MOs")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    overrides = dict(get_env_config())
    if args.averaging:
        overrides["policy"] = {**overrides.get("policy", {}), "averaging": args.averaging}
    try:
        config = load_pipeline_config(args.env, overrides=overrides)
        cycle_filter = workcycles.CycleFilter(window_days=args.window_days)
    except ValueError as exc:
        console.print(f"[red]Invalid configuration: {exc}[/red]")
        return 1

    input_path = args.input or config.input_path
    output_path = args.output or config.output_path
    fmt = args.format or config.output_format

    if not input_path.exists():
        console.print(f"[red]Input not found: {input_path}[/red]")
        return 1

    console.print(f"[bold]Recalculating UPH from {input_path}...[/bold]")
    records = workcycles.ingest_work_cycles(input_path)
    summaries, audit = workcycles.compute_uph(
        records, config.policy, data_source=config.data_source, cycle_filter=cycle_filter
    )

    console.print(build_summary_table(summaries))
    console.print(build_audit_table(audit, show_filtered=args.show_filtered))

    match (args.dry_run, summaries):
        case (True, _):
            console.print("[yellow]Dry run, result set not replaced[/yellow]")
            return 0
        case (False, []):
            console.print("[yellow]No operator had enough data; replacing with an empty set[/yellow]")

    try:
        workcycles.publish_summaries(summaries, output_path, fmt=fmt)
    except workcycles.OutputValidationError as exc:
        console.print(f"[red]Result set not replaced: {exc}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
