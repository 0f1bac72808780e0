from __future__ import annotations

from dataclasses import dataclass

from activity_strand.config import LayoutConfig


@dataclass(frozen=True)
class Margins:
    top: float
    right: float
    bottom: float
    left: float


@dataclass(frozen=True)
class ChartLayout:
    """Pixel geometry of the detail panel and the overview strip below it."""

    width: float
    height: float
    overview_height: float
    overview_gap: float
    margin: Margins
    overview_margin: Margins

    @property
    def total_height(self) -> float:
        return self.height + self.overview_height + self.overview_gap

    @property
    def chart_width(self) -> float:
        return max(self.width - self.margin.left - self.margin.right, 1.0)

    @property
    def chart_height(self) -> float:
        return max(self.height - self.margin.top - self.margin.bottom, 1.0)

    @property
    def overview_width(self) -> float:
        return max(self.width - self.overview_margin.left - self.overview_margin.right, 1.0)

    @property
    def overview_inner_height(self) -> float:
        return max(
            self.overview_height - self.overview_margin.top - self.overview_margin.bottom,
            1.0,
        )

    @property
    def overview_top(self) -> float:
        return self.height + self.overview_gap


def build_layout(measured_width: float | None, config: LayoutConfig) -> ChartLayout:
    # A container that has not been laid out yet measures 0 px wide.
    width = float(measured_width or 0.0)
    if width <= 0:
        width = config.min_width
    return ChartLayout(
        width=width,
        height=config.height,
        overview_height=config.overview_height,
        overview_gap=config.overview_gap,
        margin=Margins(**config.margin.model_dump()),
        overview_margin=Margins(**config.overview_margin.model_dump()),
    )
