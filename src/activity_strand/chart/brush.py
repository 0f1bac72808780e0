from __future__ import annotations

import logging
from typing import Callable

import pandas as pd

from activity_strand.chart.scales import ScaleManager
from activity_strand.chart.surface import Selection

LOGGER = logging.getLogger(__name__)


class BrushController:
    """Turns a pixel selection over the overview strip into a detail time domain.

    Every event replaces the detail domain outright, so a drag that fires many
    intermediate selections leaves only the last one in effect.
    """

    def __init__(
        self,
        scales: ScaleManager,
        on_change: Callable[[tuple[pd.Timestamp, pd.Timestamp]], None],
        extent: tuple[float, float] | None = None,
    ) -> None:
        self.scales = scales
        self.on_change = on_change
        self.extent = extent or (0.0, scales.layout.overview_width)
        self.selection: tuple[float, float] = self.initial_selection()

    def initial_selection(self) -> tuple[float, float]:
        return (float(self.extent[0]), float(self.extent[1]))

    def clamp(self, selection: tuple[float, float]) -> tuple[float, float]:
        low, high = self.extent
        x0, x1 = sorted((float(selection[0]), float(selection[1])))
        return (min(max(x0, low), high), min(max(x1, low), high))

    def to_domain(self, selection: tuple[float, float]) -> tuple[pd.Timestamp, pd.Timestamp]:
        x0, x1 = self.clamp(selection)
        scale = self.scales.x_overview
        return (scale.invert(x0), scale.invert(x1))

    def to_pixels(self, domain: tuple[pd.Timestamp, pd.Timestamp]) -> tuple[float, float]:
        scale = self.scales.x_overview
        return self.clamp((scale(domain[0]), scale(domain[1])))

    def handle(self, selection: Selection) -> bool:
        """Apply a brush event; a cleared selection keeps the current domain."""
        if selection is None:
            return False
        self.selection = self.clamp(selection)
        domain = self.to_domain(self.selection)
        self.scales.set_detail_domain(domain)
        LOGGER.debug("Brush selection %s -> %s..%s", self.selection, domain[0], domain[1])
        self.on_change(self.scales.detail_domain)
        return True

    def move(self, selection: tuple[float, float]) -> bool:
        return self.handle(selection)

    def move_to_dates(self, start: pd.Timestamp | str, end: pd.Timestamp | str) -> bool:
        full_start, _ = self.scales.full_domain
        tz = full_start.tz
        bounds = []
        for value in (start, end):
            stamp = pd.Timestamp(value)
            if tz is not None:
                stamp = stamp.tz_localize(tz) if stamp.tz is None else stamp.tz_convert(tz)
            bounds.append(stamp)
        return self.move(self.to_pixels((bounds[0], bounds[1])))

    def reset(self) -> None:
        self.selection = self.initial_selection()
