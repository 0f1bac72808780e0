from __future__ import annotations

from datetime import datetime

import pandas as pd

from activity_strand.config import DifficultyFilterName, TimeRangeName

TIME_RANGE_DAYS: dict[str, int | None] = {
    "all_time": None,
    "last_30_days": 30,
    "last_90_days": 90,
    "last_365_days": 365,
}


def filter_time_range(
    events: pd.DataFrame,
    time_range: TimeRangeName,
    now: datetime | pd.Timestamp | None = None,
) -> pd.DataFrame:
    """Keep events no older than the window; ``timestamp`` must already be tz-aware."""
    if time_range not in TIME_RANGE_DAYS:
        raise ValueError(f"Unsupported time_range: {time_range!r}")
    days = TIME_RANGE_DAYS[time_range]
    if days is None or events.empty:
        return events

    reference = pd.Timestamp(now) if now is not None else pd.Timestamp.now(tz="UTC")
    if reference.tzinfo is None:
        reference = reference.tz_localize(events["timestamp"].dt.tz)
    age = reference - events["timestamp"]
    return events.loc[age <= pd.Timedelta(days=days)]


def filter_difficulty(events: pd.DataFrame, difficulty: DifficultyFilterName) -> pd.DataFrame:
    if difficulty == "all" or events.empty:
        return events
    return events.loc[events["difficulty"].fillna("").str.lower() == difficulty]
