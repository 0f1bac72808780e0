from __future__ import annotations

import pandas as pd
import pytest

from activity_strand.chart.brush import BrushController
from activity_strand.chart.contracts import OverviewSummary, StrandData, TimeBlock
from activity_strand.chart.layout import build_layout
from activity_strand.chart.scales import ScaleManager
from activity_strand.config import LayoutConfig


def _scales() -> ScaleManager:
    blocks = tuple(
        TimeBlock(bucket_date=pd.Timestamp(day, tz="UTC"), label=day)
        for day in ("2025-01-01", "2025-01-31")
    )
    scales = ScaleManager(build_layout(800, LayoutConfig()))
    scales.set_data(
        StrandData(
            time_blocks=blocks,
            overview=OverviewSummary(blocks[0].bucket_date, blocks[-1].bucket_date, max_value=1),
        )
    )
    return scales


def test_initial_selection_spans_the_overview() -> None:
    scales = _scales()
    brush = BrushController(scales, on_change=lambda domain: None)

    assert brush.initial_selection() == (0.0, scales.layout.overview_width)
    assert brush.selection == brush.initial_selection()


def test_selection_sets_detail_domain_and_notifies() -> None:
    scales = _scales()
    seen: list[tuple[pd.Timestamp, pd.Timestamp]] = []
    brush = BrushController(scales, on_change=seen.append)
    width = scales.layout.overview_width

    assert brush.handle((width / 2, width)) is True

    assert seen == [scales.detail_domain]
    assert scales.detail_domain[0] == pd.Timestamp("2025-01-16", tz="UTC")
    assert scales.detail_domain[1] == pd.Timestamp("2025-01-31", tz="UTC")
    assert scales.full_domain[0] == pd.Timestamp("2025-01-01", tz="UTC")


def test_cleared_selection_keeps_prior_domain() -> None:
    scales = _scales()
    seen: list[object] = []
    brush = BrushController(scales, on_change=seen.append)
    brush.handle((100.0, 200.0))
    domain = scales.detail_domain

    assert brush.handle(None) is False

    assert scales.detail_domain == domain
    assert len(seen) == 1


def test_selection_is_clamped_and_ordered() -> None:
    scales = _scales()
    brush = BrushController(scales, on_change=lambda domain: None)

    brush.handle((10_000.0, -50.0))

    assert brush.selection == (0.0, scales.layout.overview_width)
    assert scales.detail_domain == scales.full_domain


def test_rapid_events_keep_only_the_last_selection() -> None:
    scales = _scales()
    brush = BrushController(scales, on_change=lambda domain: None)
    for end in range(50, 400, 7):
        brush.handle((20.0, float(end)))
    brush.handle((30.0, 90.0))

    x0, x1 = scales.x_overview(scales.detail_domain[0]), scales.x_overview(scales.detail_domain[1])
    assert (x0, x1) == pytest.approx((30.0, 90.0), abs=1e-6)


def test_move_to_dates_localizes_naive_bounds() -> None:
    scales = _scales()
    brush = BrushController(scales, on_change=lambda domain: None)

    brush.move_to_dates("2025-01-10", "2025-01-20")

    assert scales.detail_domain == (
        pd.Timestamp("2025-01-10", tz="UTC"),
        pd.Timestamp("2025-01-20", tz="UTC"),
    )


def test_move_then_reset_restores_full_selection() -> None:
    scales = _scales()
    brush = BrushController(scales, on_change=lambda domain: None)
    width = scales.layout.overview_width

    assert brush.move((0.0, width / 2)) is True
    assert scales.detail_domain[1] == pd.Timestamp("2025-01-16", tz="UTC")

    brush.reset()
    assert brush.selection == (0.0, width)
