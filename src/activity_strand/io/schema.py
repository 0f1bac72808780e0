from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from activity_strand.config import ColumnsConfig


@dataclass(frozen=True)
class CanonicalColumns:
    timestamp: str = "timestamp"
    status: str = "status"
    difficulty: str = "difficulty"
    language: str = "language"
    problem: str = "problem"


REQUIRED_COLUMNS = [
    CanonicalColumns.timestamp,
    CanonicalColumns.status,
    CanonicalColumns.language,
    CanonicalColumns.problem,
]


def normalize_columns(df: pd.DataFrame, columns: ColumnsConfig) -> pd.DataFrame:
    """Rename source columns to the canonical event columns used by the bucketer."""
    rename_map = {
        columns.timestamp: CanonicalColumns.timestamp,
        columns.status: CanonicalColumns.status,
        columns.language: CanonicalColumns.language,
        columns.problem: CanonicalColumns.problem,
    }
    missing = [source for source in rename_map if source not in df.columns]
    if missing:
        missing_str = ", ".join(missing)
        raise ValueError(f"Missing required columns in events file: {missing_str}")
    # Difficulty comes from metadata enrichment and may be absent entirely.
    if columns.difficulty in df.columns:
        rename_map[columns.difficulty] = CanonicalColumns.difficulty
    renamed = df.rename(columns=rename_map)
    if CanonicalColumns.difficulty not in renamed.columns:
        renamed[CanonicalColumns.difficulty] = None
    return renamed
