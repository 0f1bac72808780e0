from __future__ import annotations

from typing import Sequence

import pandas as pd

from activity_strand.chart.contracts import StrandData
from activity_strand.chart.layout import ChartLayout

DateLike = pd.Timestamp | str

# (frequency alias, approximate seconds per tick), finest first.
TICK_FREQUENCIES: tuple[tuple[str, float], ...] = (
    ("h", 3_600.0),
    ("6h", 21_600.0),
    ("D", 86_400.0),
    ("2D", 172_800.0),
    ("W-MON", 604_800.0),
    ("2W-MON", 1_209_600.0),
    ("MS", 2_629_746.0),
    ("3MS", 7_889_238.0),
    ("6MS", 15_778_476.0),
    ("YS", 31_556_952.0),
)


class TimeScale:
    """Affine date -> pixel mapping.

    A zero-width domain maps every date to the centre of the range and inverts to the
    domain start, so a single bucket renders centred instead of dividing by zero.
    """

    def __init__(
        self,
        domain: tuple[DateLike, DateLike],
        output_range: tuple[float, float],
    ) -> None:
        self.range = (float(output_range[0]), float(output_range[1]))
        self.domain: tuple[pd.Timestamp, pd.Timestamp]
        self.set_domain(domain)

    def set_domain(self, domain: tuple[DateLike, DateLike]) -> None:
        start, end = pd.Timestamp(domain[0]), pd.Timestamp(domain[1])
        if end < start:
            start, end = end, start
        self.domain = (start, end)

    @property
    def is_degenerate(self) -> bool:
        return self.domain[0] == self.domain[1]

    def __call__(self, value: DateLike) -> float:
        r0, r1 = self.range
        if self.is_degenerate:
            return (r0 + r1) / 2.0
        start, end = self.domain
        fraction = (pd.Timestamp(value).value - start.value) / (end.value - start.value)
        return r0 + fraction * (r1 - r0)

    def invert(self, pixel: float) -> pd.Timestamp:
        r0, r1 = self.range
        start, end = self.domain
        if self.is_degenerate or r0 == r1:
            return start
        fraction = (float(pixel) - r0) / (r1 - r0)
        nanos = start.value + fraction * (end.value - start.value)
        return pd.Timestamp(int(round(nanos)), tz=start.tz)

    def contains(self, value: DateLike) -> bool:
        start, end = self.domain
        return start <= pd.Timestamp(value) <= end

    def ticks(self, count: int = 8) -> list[pd.Timestamp]:
        start, end = self.domain
        if self.is_degenerate:
            return [start]
        span = (end - start).total_seconds()
        freq, step = TICK_FREQUENCIES[-1]
        for candidate, seconds in TICK_FREQUENCIES:
            if span / seconds <= max(1, count):
                freq, step = candidate, seconds
                break
        anchor_unit = "h" if step < 86_400.0 else "D"
        anchor = start.ceil(anchor_unit, ambiguous=False, nonexistent="shift_forward")
        return list(pd.date_range(start=anchor, end=end, freq=freq))


class LinearScale:
    def __init__(self, domain: tuple[float, float], output_range: tuple[float, float]) -> None:
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(output_range[0]), float(output_range[1]))

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d0 == d1:
            return r0
        return r0 + (float(value) - d0) / (d1 - d0) * (r1 - r0)

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if r0 == r1:
            return d0
        return d0 + (float(pixel) - r0) / (r1 - r0) * (d1 - d0)


def _time_extent(data: StrandData) -> tuple[pd.Timestamp, pd.Timestamp]:
    dates: Sequence[pd.Timestamp] = [block.bucket_date for block in data.time_blocks]
    if not dates:
        return data.overview.start_date, data.overview.end_date
    return min(dates), max(dates)


class ScaleManager:
    """Owns the detail and overview scale pairs for one chart instance."""

    def __init__(self, layout: ChartLayout) -> None:
        self.layout = layout
        self.x = TimeScale((pd.Timestamp(0, tz="UTC"),) * 2, (0.0, layout.chart_width))
        self.y = LinearScale((0.0, 1.0), (layout.chart_height, 0.0))
        self.x_overview = TimeScale(self.x.domain, (0.0, layout.overview_width))
        self.y_overview = LinearScale((0.0, 1.0), (layout.overview_inner_height, 0.0))

    def set_data(self, data: StrandData) -> None:
        extent = _time_extent(data)
        self.x_overview.set_domain(extent)
        self.x.set_domain(extent)
        self.set_value_max(data.overview.max_value)

    def set_value_max(self, max_value: float) -> None:
        """Rescale both value axes to ``[0, max_value]`` without touching the time domains."""
        max_value = float(max_value)
        self.y_overview = LinearScale((0.0, max_value), (self.layout.overview_inner_height, 0.0))
        self.y = LinearScale((0.0, max_value), (self.layout.chart_height, 0.0))

    def set_detail_domain(self, domain: tuple[DateLike, DateLike]) -> None:
        tz = self.x_overview.domain[0].tz
        bounds = []
        for value in domain:
            stamp = pd.Timestamp(value)
            if tz is not None and stamp.tz is None:
                stamp = stamp.tz_localize(tz)
            bounds.append(stamp)
        self.x.set_domain((bounds[0], bounds[1]))

    @property
    def detail_domain(self) -> tuple[pd.Timestamp, pd.Timestamp]:
        return self.x.domain

    @property
    def full_domain(self) -> tuple[pd.Timestamp, pd.Timestamp]:
        return self.x_overview.domain
