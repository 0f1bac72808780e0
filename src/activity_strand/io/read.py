from __future__ import annotations

from pathlib import Path

import pandas as pd

from activity_strand.config import AppConfig
from activity_strand.io.schema import REQUIRED_COLUMNS, normalize_columns

TABLE_READERS = {
    ".parquet": pd.read_parquet,
    # utf-8-sig strips BOM-prefixed headers commonly found in exported CSV files.
    ".csv": lambda path: pd.read_csv(path, encoding="utf-8-sig"),
    ".json": lambda path: pd.read_json(path, orient="records", convert_dates=False),
}


def load_table(path: Path) -> pd.DataFrame:
    reader = TABLE_READERS.get(path.suffix.lower())
    if reader is None:
        raise ValueError(f"Unsupported table file type: {path.suffix}")
    return reader(path)


def load_events(path: Path, config: AppConfig) -> pd.DataFrame:
    """Load submission events and return the canonical event columns."""
    events = normalize_columns(df=load_table(path), columns=config.columns)
    missing = [column for column in REQUIRED_COLUMNS if column not in events.columns]
    if missing:
        missing_str = ", ".join(missing)
        raise ValueError(f"Normalized events from {path.name} missing column(s): {missing_str}")
    return events
