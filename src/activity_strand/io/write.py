from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd

TABLE_WRITERS = {
    ".csv": lambda frame, path: frame.to_csv(path, index=False),
    ".parquet": lambda frame, path: frame.to_parquet(path, index=False),
}


def write_table(df: pd.DataFrame, path: Path) -> Path:
    """Write a table; the file suffix picks the format."""
    writer = TABLE_WRITERS.get(path.suffix)
    if writer is None:
        raise ValueError(f"Unsupported table format: {path.suffix}")
    path.parent.mkdir(parents=True, exist_ok=True)
    writer(df, path)
    return path


def write_summary(data: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    # Timestamps and numpy scalars fall back to their string form.
    path.write_text(json.dumps(data, indent=2, sort_keys=True, default=str), encoding="utf-8")
    return path
