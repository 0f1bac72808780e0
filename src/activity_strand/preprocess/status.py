from __future__ import annotations

import pandas as pd

# Upstream submission feeds encode "Accepted" as status code 10.
ACCEPTED_TOKENS = frozenset({"ACCEPTED", "AC", "10"})

DIFFICULTY_MAP = {
    "EASY": "Easy",
    "MEDIUM": "Medium",
    "HARD": "Hard",
}


def normalize_status(df: pd.DataFrame) -> pd.DataFrame:
    working = df.copy()
    status = working["status"].fillna("").astype(str).str.strip().str.upper()
    # Numeric columns read from CSV may arrive as "10.0".
    status = status.str.replace(r"\.0+$", "", regex=True)
    working["status"] = status.isin(ACCEPTED_TOKENS).map({True: "Accepted", False: "Other"})
    return working


def normalize_difficulty(df: pd.DataFrame) -> pd.DataFrame:
    working = df.copy()
    difficulty = working["difficulty"].fillna("").astype(str).str.strip().str.upper()
    working["difficulty"] = difficulty.map(DIFFICULTY_MAP).astype(object)
    working["difficulty"] = working["difficulty"].where(working["difficulty"].notna(), None)
    return working


def normalize_language(df: pd.DataFrame) -> pd.DataFrame:
    working = df.copy()
    working["language"] = working["language"].fillna("unknown").astype(str).str.strip()
    working.loc[working["language"] == "", "language"] = "unknown"
    return working
