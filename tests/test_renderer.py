from __future__ import annotations

import pandas as pd
import pytest

from activity_strand.chart.animation import TransitionPolicy
from activity_strand.chart.contracts import (
    OverviewSummary,
    ProblemCounts,
    StrandData,
    SubmissionCounts,
    TimeBlock,
    ViewConfig,
)
from activity_strand.chart.layout import build_layout
from activity_strand.chart.palette import default_palette
from activity_strand.chart.renderer import (
    DetailRenderer,
    OverviewRenderer,
    bar_width,
    value_ticks,
    visible_blocks,
)
from activity_strand.chart.scales import ScaleManager
from activity_strand.config import LayoutConfig


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _block(day: str, easy: int = 0, medium: int = 0, accepted: int = 0, failed: int = 0):
    return TimeBlock(
        bucket_date=pd.Timestamp(day, tz="UTC"),
        label=day,
        problem_counts=ProblemCounts(easy=easy, medium=medium),
        submission_counts=SubmissionCounts(accepted=accepted, failed=failed),
        language_counts={"python": accepted + failed} if accepted + failed else {},
    )


def _blocks() -> tuple[TimeBlock, ...]:
    return (
        _block("2025-01-01", easy=1, medium=1, accepted=2, failed=1),
        _block("2025-01-02", easy=1, accepted=1),
        _block("2025-01-03", failed=2),
    )


def _setup(policy: TransitionPolicy | None = None, clock: _Clock | None = None):
    blocks = _blocks()
    data = StrandData(
        time_blocks=blocks,
        overview=OverviewSummary(blocks[0].bucket_date, blocks[-1].bucket_date, max_value=2.0),
    )
    scales = ScaleManager(build_layout(800, LayoutConfig()))
    scales.set_data(data)
    renderer = DetailRenderer(
        scales,
        default_palette(),
        LayoutConfig(),
        policy=policy or TransitionPolicy.immediate(),
        clock=clock or _Clock(),
    )
    return renderer, scales, blocks


def _items_by_key(renderer: DetailRenderer) -> dict:
    return {item.key: item for item in renderer.items()}


def test_bar_width_is_clamped() -> None:
    assert bar_width(740, 3) == 20.0
    assert bar_width(740, 100) == pytest.approx(5.4)
    assert bar_width(740, 1000) == 4.0
    assert bar_width(740, 0) == 20.0


def test_visible_blocks_are_inclusive() -> None:
    blocks = _blocks()
    domain = (blocks[1].bucket_date, blocks[2].bucket_date)
    assert visible_blocks(blocks, domain) == [blocks[1], blocks[2]]


def test_value_ticks_use_whole_numbers() -> None:
    assert value_ticks(2.0) == [0.0, 1.0, 2.0]
    assert value_ticks(100.0) == [0.0, 20.0, 40.0, 60.0, 80.0, 100.0]


def test_initial_render_enters_every_visible_bar() -> None:
    renderer, _, blocks = _setup()

    diff = renderer.render(blocks, ViewConfig())

    assert len(diff.entered) == 3
    assert not diff.updated and not diff.exited
    assert set(renderer.bars) == {block.key for block in blocks}


def test_segments_stack_from_the_zero_line() -> None:
    renderer, scales, blocks = _setup()
    renderer.render(blocks, ViewConfig())
    items = _items_by_key(renderer)
    key = blocks[0].key
    baseline = scales.y(0)

    medium = items[f"{key}:segment:Medium"]
    easy = items[f"{key}:segment:Easy"]

    assert easy.y + easy.height == pytest.approx(baseline)
    assert medium.y + medium.height == pytest.approx(easy.y)
    assert medium.y == pytest.approx(scales.y(2))
    assert medium.radii.top == 4.0 and medium.radii.bottom == 0.0
    assert easy.radii.top == 0.0 and easy.radii.bottom == 4.0
    assert medium.fill == "#ffc01e"


def test_ghost_is_drawn_first_with_other_view_total() -> None:
    renderer, scales, blocks = _setup()
    renderer.render(blocks, ViewConfig())
    items = renderer.items()

    first = items[0]
    assert first.role == "ghost"
    assert first.height == pytest.approx(scales.y(0) - scales.y(3))
    assert first.radii.top == first.radii.bottom == 4.0


def test_bar_without_segments_keeps_only_its_ghost() -> None:
    renderer, _, blocks = _setup()
    renderer.render(blocks, ViewConfig())
    key = blocks[2].key

    keys = [item.key for item in renderer.items() if item.key.startswith(f"{key}:")]
    assert keys == [f"{key}:ghost"]


def test_brushed_domain_exits_bars_outside_it() -> None:
    renderer, scales, blocks = _setup()
    renderer.render(blocks, ViewConfig())
    survivor = renderer.bars[blocks[1].key]

    scales.set_detail_domain((blocks[1].bucket_date, blocks[2].bucket_date))
    diff = renderer.render(blocks, ViewConfig())
    renderer.advance()

    assert diff.exited == (blocks[0].key,)
    assert diff.updated == (blocks[1].key, blocks[2].key)
    assert set(renderer.bars) == {blocks[1].key, blocks[2].key}
    assert renderer.bars[blocks[1].key] is survivor


def test_exit_transition_runs_before_removal() -> None:
    clock = _Clock()
    renderer, scales, blocks = _setup(policy=TransitionPolicy(), clock=clock)
    renderer.render(blocks, ViewConfig())
    renderer.settle()

    clock.now = 1.0
    scales.set_detail_domain((blocks[1].bucket_date, blocks[2].bucket_date))
    renderer.render(blocks, ViewConfig())

    assert renderer.bars[blocks[0].key].exiting
    assert renderer.advance(1.25) is True
    assert blocks[0].key in renderer.bars
    renderer.advance(1.6)
    assert blocks[0].key not in renderer.bars


def test_re_entering_bar_is_revived_mid_exit() -> None:
    clock = _Clock()
    renderer, scales, blocks = _setup(policy=TransitionPolicy(), clock=clock)
    renderer.render(blocks, ViewConfig())
    renderer.settle()
    node = renderer.bars[blocks[0].key]

    clock.now = 1.0
    scales.set_detail_domain((blocks[1].bucket_date, blocks[2].bucket_date))
    renderer.render(blocks, ViewConfig())
    clock.now = 1.2
    scales.set_detail_domain(scales.full_domain)
    renderer.render(blocks, ViewConfig())
    renderer.settle()

    assert renderer.bars[blocks[0].key] is node
    assert not node.exiting
    revived = [item for item in renderer.items() if item.key.startswith(f"{node.block.key}:")]
    assert revived
    assert all(item.opacity == 1.0 for item in revived)


def test_entering_segment_starts_at_zero_height() -> None:
    clock = _Clock()
    renderer, scales, blocks = _setup(policy=TransitionPolicy(), clock=clock)
    renderer.render(blocks, ViewConfig())

    entering = _items_by_key(renderer)[f"{blocks[1].key}:segment:Easy"]
    assert entering.height == 0.0
    assert entering.y == pytest.approx(scales.y(0))

    renderer.advance(0.75)
    settled = _items_by_key(renderer)[f"{blocks[1].key}:segment:Easy"]
    assert settled.height == pytest.approx(scales.y(0) - scales.y(1))


def test_switching_stack_mode_replaces_segments_by_label() -> None:
    renderer, _, blocks = _setup()
    renderer.render(blocks, ViewConfig())
    renderer.render(blocks, ViewConfig(stack_mode="language"))
    key = blocks[0].key

    keys = [item.key for item in renderer.items() if item.key.startswith(f"{key}:")]
    assert keys == [f"{key}:ghost", f"{key}:segment:python"]


def test_hover_reports_segment_under_pointer() -> None:
    renderer, scales, blocks = _setup()
    renderer.render(blocks, ViewConfig())
    x = scales.x(blocks[0].bucket_date)

    tooltip = renderer.hover(x, scales.y(1.5))

    assert tooltip is not None
    assert tooltip.lines == (
        "2025-01-01",
        "Medium: 1",
        "Total Problems: 2",
        "Total Submissions: 3",
    )
    assert renderer.hover(x + 200.0, scales.y(1.5)) is None
    renderer.hover(x, scales.y(0.5))
    renderer.leave()
    assert renderer.tooltip is None


def test_overview_renderer_draws_every_block_once_per_data_change() -> None:
    renderer, scales, blocks = _setup()
    overview = OverviewRenderer(scales, default_palette(), LayoutConfig())

    items = overview.render(blocks, ViewConfig())

    assert len(items) == 3
    assert {item.fill for item in items} == {"#999999"}
    assert items[0].width == pytest.approx(scales.layout.overview_width / 3 - 1)
    assert items[0].radii.top == 2.0
    assert overview.revision == 1
    assert overview.ticks
