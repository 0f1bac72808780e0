from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import numpy as np
import pandas as pd

from activity_strand.chart.contracts import Granularity

PERIOD_FREQ = {
    "monthly": "M",
}


def validate_timezone(timezone_name: str) -> str:
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"invalid timezone: {timezone_name}") from exc
    return timezone_name


def localize_timestamps(values: pd.Series, timezone_name: str) -> pd.Series:
    """Parse timestamps and express them in the canonical bucketing timezone.

    Naive values are wall-clock times in ``timezone_name``; aware values are converted.
    Epoch numbers are read as seconds (the upstream submission feed's unit).
    """
    validate_timezone(timezone_name)
    if pd.api.types.is_numeric_dtype(values):
        timestamps = pd.to_datetime(values, unit="s", errors="coerce", utc=True)
    elif isinstance(values.dtype, pd.DatetimeTZDtype) or pd.api.types.is_datetime64_dtype(values):
        timestamps = values
    else:
        try:
            timestamps = pd.to_datetime(values, errors="coerce", format="mixed")
        except ValueError:
            timestamps = pd.Series(dtype=object)
        if timestamps.dtype == object:
            # Mixed offsets cannot share one dtype; normalize through UTC.
            timestamps = pd.to_datetime(values, errors="coerce", utc=True, format="mixed")

    if timestamps.isna().all() and len(timestamps):
        raise ValueError("No valid timestamps found in timestamp column")

    if timestamps.dt.tz is None:
        # Repeated fall-back wall times resolve to standard time.
        return timestamps.dt.tz_localize(
            timezone_name,
            nonexistent="shift_forward",
            ambiguous=np.zeros(len(timestamps), dtype=bool),
        )
    return timestamps.dt.tz_convert(timezone_name)


def period_start(timestamps: pd.Series, granularity: Granularity) -> pd.Series:
    """Wall-clock start of the calendar period containing each timestamp.

    Daily is local midnight, weekly the ISO Monday, monthly the 1st. The result is
    naive; it is localized per bucket once the groups are known.
    """
    wall = timestamps.dt.tz_localize(None) if timestamps.dt.tz is not None else timestamps
    midnight = wall.dt.normalize()
    if granularity == "weekly":
        return midnight - pd.to_timedelta(wall.dt.weekday, unit="D")
    if granularity == "monthly":
        return wall.dt.to_period(PERIOD_FREQ["monthly"]).dt.start_time
    return midnight


def localize_period_start(start: pd.Timestamp, timezone_name: str) -> pd.Timestamp:
    # Midnight can fall inside a DST gap (e.g. America/Santiago); shift it forward.
    return pd.Timestamp(start).tz_localize(
        timezone_name,
        nonexistent="shift_forward",
        ambiguous=False,
    )
