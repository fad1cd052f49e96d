"""File I/O utilities for reading and writing pipeline data."""

from typing import TypeAlias

import os
from pathlib import Path

import pandas as pd
from rich.console import Console

FilePath: TypeAlias = str | Path

console = Console()


def read_csv_files(
    directory: FilePath,
    pattern: str = "*.csv",
    dtype: type | None = None,
) -> pd.DataFrame:
    """Read one CSV file, or every matching CSV in a directory, and concatenate them."""
    directory = Path(directory)
    files = [directory] if directory.is_file() else sorted(directory.glob(pattern))

    chunks = []
    for csv_file in files:
        console.print(f"  Reading {csv_file.name}...")
        chunks.append(pd.read_csv(csv_file, dtype=dtype))

    if not chunks:
        return pd.DataFrame()
    return pd.concat(chunks, ignore_index=True)


def write_output(df: pd.DataFrame, path: FilePath, fmt: str = "csv") -> None:
    """Write a DataFrame to the specified format."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    match fmt:
        case "csv":
            df.to_csv(path, index=False)
        case "parquet":
            df.to_parquet(path, index=False)
        case "json":
            df.to_json(path, orient="records", indent=2)
        case other:
            raise ValueError(f"Unsupported output format: {other}")


def replace_output(df: pd.DataFrame, path: FilePath, fmt: str = "csv") -> None:
    """Replace the previous result set at ``path`` with ``df`` in one step.

    The frame is written to a temporary sibling first and moved over the
    target, so a failed write leaves the prior result set in place.
    """
    path = Path(path)
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        write_output(df, tmp_path, fmt=fmt)
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)

    console.print(f"  Wrote {len(df)} rows to {path}")
