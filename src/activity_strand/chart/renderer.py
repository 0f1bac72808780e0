from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

import pandas as pd

from activity_strand.chart.animation import (
    AnimatedRect,
    Clock,
    RectState,
    TransitionPolicy,
    monotonic_clock,
)
from activity_strand.chart.contracts import (
    CornerRadii,
    Segment,
    TimeBlock,
    ViewConfig,
)
from activity_strand.chart.diff import KeyedDiff, reconcile
from activity_strand.chart.palette import Palette
from activity_strand.chart.scales import ScaleManager
from activity_strand.chart.segments import (
    corner_radii,
    ghost_value_for,
    segments_for,
    tooltip_lines,
)
from activity_strand.chart.surface import AxisTick, RectItem, TooltipState
from activity_strand.config import LayoutConfig

LOGGER = logging.getLogger(__name__)

DETAIL_TICK_FORMAT = "%b %d"
OVERVIEW_TICK_FORMAT = "%b"
TOOLTIP_OFFSET = (10.0, -10.0)


def visible_blocks(
    blocks: Sequence[TimeBlock],
    domain: tuple[pd.Timestamp, pd.Timestamp],
) -> list[TimeBlock]:
    start, end = domain
    return [block for block in blocks if start <= block.bucket_date <= end]


def bar_width(
    available: float,
    count: int,
    *,
    gap: float = 2.0,
    minimum: float = 4.0,
    maximum: float = 20.0,
) -> float:
    if count <= 0:
        return maximum
    return max(min(available / count - gap, maximum), minimum)


def value_ticks(max_value: float, count: int = 5) -> list[float]:
    if max_value <= 0:
        return [0.0]
    raw_step = max_value / max(count, 1)
    magnitude = 10 ** math.floor(math.log10(raw_step))
    step = next(
        multiple * magnitude
        for multiple in (1, 2, 5, 10)
        if multiple * magnitude >= raw_step
    )
    # Counts are integral, so never tick between whole numbers.
    step = max(step, 1.0)
    ticks = []
    value = 0.0
    while value <= max_value + 1e-9:
        ticks.append(value)
        value += step
    return ticks


@dataclass
class BarNode:
    block: TimeBlock
    ghost: AnimatedRect | None = None
    segments: dict[str, AnimatedRect] = field(default_factory=dict)
    exiting: bool = False

    def rects(self) -> list[AnimatedRect]:
        ordered = [self.ghost] if self.ghost is not None else []
        return ordered + list(self.segments.values())


class _BarSink:
    """Applies enter/update/exit to the retained bar nodes of one render pass."""

    def __init__(self, renderer: DetailRenderer, now: float, width: float) -> None:
        self.renderer = renderer
        self.now = now
        self.width = width

    def create(self, key: int, item: TimeBlock) -> None:
        existing = self.renderer.bars.get(key)
        if existing is not None:
            # Re-entered while its exit transition was still running.
            existing.exiting = False
            self.update(key, existing.block, item)
            return
        node = BarNode(block=item)
        self.renderer.bars[key] = node
        self.renderer.layout_bar(node, self.now, self.width, entering=True)

    def update(self, key: int, previous: TimeBlock, item: TimeBlock) -> None:
        node = self.renderer.bars[key]
        node.block = item
        self.renderer.layout_bar(node, self.now, self.width, entering=False)

    def destroy(self, key: int, previous: TimeBlock) -> None:
        node = self.renderer.bars[key]
        node.exiting = True
        policy = self.renderer.policy
        for rect in node.rects():
            current = rect.state_at(self.now)
            rect.animate_to(
                RectState(current.x, current.y, current.width, current.height, opacity=0.0),
                now=self.now,
                duration=policy.exit_seconds,
                ease=policy.ease,
            )


class DetailRenderer:
    """Keyed, animated stacked-bar renderer for the detail panel.

    Bars are keyed by bucket start. Each bar draws its ghost rectangle first and the
    stacked segments on top, bottom-anchored at the zero line.
    """

    def __init__(
        self,
        scales: ScaleManager,
        palette: Palette,
        layout_config: LayoutConfig,
        policy: TransitionPolicy | None = None,
        clock: Clock = monotonic_clock,
    ) -> None:
        self.scales = scales
        self.palette = palette
        self.layout_config = layout_config
        self.policy = policy or TransitionPolicy()
        self.clock = clock
        self.bars: dict[int, BarNode] = {}
        self.view_config = ViewConfig()
        self.tooltip: TooltipState | None = None
        self.current_bar_width = layout_config.max_bar_width

    def render(self, blocks: Sequence[TimeBlock], view_config: ViewConfig) -> KeyedDiff[int]:
        now = self.clock()
        self.view_config = view_config
        visible = visible_blocks(blocks, self.scales.detail_domain)
        width = bar_width(
            self.scales.layout.chart_width,
            len(visible),
            gap=self.layout_config.bar_gap,
            minimum=self.layout_config.min_bar_width,
            maximum=self.layout_config.max_bar_width,
        )
        self.current_bar_width = width
        previous = {key: node.block for key, node in self.bars.items() if not node.exiting}
        diff = reconcile(
            previous,
            visible,
            key=lambda block: block.key,
            sink=_BarSink(self, now, width),
        )
        LOGGER.debug(
            "Detail render: visible=%d bar_width=%.1f entered=%d updated=%d exited=%d",
            len(visible),
            width,
            len(diff.entered),
            len(diff.updated),
            len(diff.exited),
        )
        return diff

    def layout_bar(self, node: BarNode, now: float, width: float, *, entering: bool) -> None:
        block = node.block
        y = self.scales.y
        baseline = y(0)
        x = self.scales.x(block.bucket_date) - width / 2.0
        duration = self.policy.enter_seconds if entering else self.policy.update_seconds
        bar_key = str(block.key)
        radius = self.layout_config.corner_radius

        ghost_value = ghost_value_for(block, self.view_config)
        if ghost_value > 0:
            target = RectState(x, y(ghost_value), width, baseline - y(ghost_value))
            if node.ghost is None:
                node.ghost = AnimatedRect(
                    f"{bar_key}:ghost",
                    RectState(x, baseline, width, 0.0),
                    role="ghost",
                    fill=self.palette.ghost,
                    radii=CornerRadii(radius, radius),
                )
            node.ghost.fill = self.palette.ghost
            node.ghost.animate_to(target, now=now, duration=duration, ease=self.policy.ease)
        elif node.ghost is not None:
            self._collapse_ghost(node, now, baseline)

        segments = segments_for(block, self.view_config, self.palette.resolve)
        total = sum(segment.value for segment in segments)
        incoming = {segment.label: segment for segment in segments}
        # Segments mid-exit carry no payload; re-appearing labels revive them in create().
        previous = {
            label: rect.payload for label, rect in node.segments.items() if rect.payload is not None
        }
        reconcile(
            previous,
            segments,
            key=lambda segment: segment.label,
            sink=_SegmentSink(self, node, now, duration, baseline),
        )

        running = 0
        count = len(segments)
        for index, segment in enumerate(segments):
            rect = node.segments[segment.label]
            top = y(total - running)
            target = RectState(x, top, width, baseline - y(segment.value))
            running += segment.value
            rect.fill = segment.color
            rect.payload = segment
            rect.radii = corner_radii(index, count, radius)
            if rect.state_at(now).height == 0.0 and rect.target.height == 0.0:
                # New segment: start from the zero line at its final x position.
                rect.animate_to(RectState(x, baseline, width, 0.0), now=now, duration=0.0)
            rect.animate_to(target, now=now, duration=duration, ease=self.policy.ease)

        # Stack order follows the segment model; dict order drives paint order.
        node.segments = {label: node.segments[label] for label in incoming} | {
            label: rect for label, rect in node.segments.items() if label not in incoming
        }

    def _collapse_ghost(self, node: BarNode, now: float, baseline: float) -> None:
        ghost = node.ghost
        if ghost is None:
            return
        current = ghost.state_at(now)

        def _drop() -> None:
            if node.ghost is ghost:
                node.ghost = None

        ghost.animate_to(
            current.collapsed(baseline),
            now=now,
            duration=self.policy.exit_seconds,
            ease=self.policy.ease,
            on_done=_drop,
        )

    def advance(self, now: float | None = None) -> bool:
        """Step every running transition; returns True while any is still running."""
        now = self.clock() if now is None else now
        running = False
        for key, node in list(self.bars.items()):
            for rect in node.rects():
                running = rect.advance(now) or running
            if node.exiting and not any(rect.is_animating for rect in node.rects()):
                del self.bars[key]
        return running

    def settle(self) -> None:
        for node in list(self.bars.values()):
            for rect in node.rects():
                rect.finish()
        for key in [key for key, node in self.bars.items() if node.exiting]:
            del self.bars[key]

    def clear(self) -> None:
        self.bars.clear()
        self.tooltip = None

    def items(self, now: float | None = None) -> tuple[RectItem, ...]:
        now = self.clock() if now is None else now
        items: list[RectItem] = []
        for node in sorted(self.bars.values(), key=lambda bar: bar.block.key):
            for rect in node.rects():
                state = rect.state_at(now)
                items.append(
                    RectItem(
                        key=rect.key,
                        layer="detail",
                        role=rect.role,  # type: ignore[arg-type]
                        x=state.x,
                        y=state.y,
                        width=state.width,
                        height=max(state.height, 0.0),
                        fill=rect.fill,
                        opacity=state.opacity,
                        radii=rect.radii,
                    )
                )
        return tuple(items)

    def hit_test(self, x: float, y: float) -> tuple[TimeBlock, Segment] | None:
        now = self.clock()
        for node in self.bars.values():
            if node.exiting:
                continue
            for rect in node.segments.values():
                state = rect.state_at(now)
                if state.height <= 0 or not isinstance(rect.payload, Segment):
                    continue
                inside_x = state.x <= x <= state.x + state.width
                inside_y = state.y <= y <= state.y + state.height
                if inside_x and inside_y:
                    return node.block, rect.payload
        return None

    def hover(self, x: float, y: float) -> TooltipState | None:
        hit = self.hit_test(x, y)
        if hit is None:
            self.tooltip = None
            return None
        block, segment = hit
        self.tooltip = TooltipState(
            x=x + TOOLTIP_OFFSET[0],
            y=y + TOOLTIP_OFFSET[1],
            lines=tuple(tooltip_lines(block, segment, self.view_config)),
        )
        return self.tooltip

    def leave(self) -> None:
        self.tooltip = None

    def x_ticks(self) -> tuple[AxisTick, ...]:
        scale = self.scales.x
        return tuple(
            AxisTick(position=scale(tick), label=f"{tick:{DETAIL_TICK_FORMAT}}")
            for tick in scale.ticks()
        )

    def y_ticks(self) -> tuple[AxisTick, ...]:
        scale = self.scales.y
        return tuple(
            AxisTick(position=scale(value), label=f"{value:g}")
            for value in value_ticks(scale.domain[1])
        )


class _SegmentSink:
    def __init__(
        self,
        renderer: DetailRenderer,
        node: BarNode,
        now: float,
        duration: float,
        baseline: float,
    ) -> None:
        self.renderer = renderer
        self.node = node
        self.now = now
        self.duration = duration
        self.baseline = baseline

    def create(self, key: str, item: Segment) -> None:
        existing = self.node.segments.get(key)
        if existing is not None:
            existing.payload = item
            return
        self.node.segments[key] = AnimatedRect(
            f"{self.node.block.key}:segment:{key}",
            RectState(0.0, self.baseline, 0.0, 0.0),
            role="segment",
            fill=item.color,
            payload=item,
        )

    def update(self, key: str, previous: Segment, item: Segment) -> None:
        self.node.segments[key].payload = item

    def destroy(self, key: str, previous: Segment) -> None:
        rect = self.node.segments[key]
        current = rect.state_at(self.now)
        node = self.node

        def _drop() -> None:
            if node.segments.get(key) is rect:
                del node.segments[key]

        rect.payload = None
        rect.animate_to(
            RectState(current.x, self.baseline, current.width, 0.0, opacity=0.0),
            now=self.now,
            duration=self.renderer.policy.exit_seconds,
            ease=self.renderer.policy.ease,
            on_done=_drop,
        )


class OverviewRenderer:
    """Static miniature of every bucket; redrawn only when the data changes."""

    def __init__(
        self,
        scales: ScaleManager,
        palette: Palette,
        layout_config: LayoutConfig,
    ) -> None:
        self.scales = scales
        self.palette = palette
        self.layout_config = layout_config
        self.revision = 0
        self._items: tuple[RectItem, ...] = ()
        self._ticks: tuple[AxisTick, ...] = ()

    def render(self, blocks: Sequence[TimeBlock], view_config: ViewConfig) -> tuple[RectItem, ...]:
        x = self.scales.x_overview
        y = self.scales.y_overview
        count = max(len(blocks), 1)
        width = max(self.scales.layout.overview_width / count - 1.0, 2.0)
        radius = self.layout_config.overview_corner_radius
        items = []
        for block in blocks:
            total = block.total_for(view_config.view_mode)
            items.append(
                RectItem(
                    key=f"overview:{block.key}",
                    layer="overview",
                    role="overview",
                    x=x(block.bucket_date) - width / 2.0,
                    y=y(total),
                    width=width,
                    height=y(0) - y(total),
                    fill=self.palette.overview,
                    radii=CornerRadii(radius, radius),
                )
            )
        self._items = tuple(items)
        self._ticks = tuple(
            AxisTick(position=x(tick), label=f"{tick:{OVERVIEW_TICK_FORMAT}}")
            for tick in x.ticks()
        )
        self.revision += 1
        return self._items

    @property
    def items(self) -> tuple[RectItem, ...]:
        return self._items

    @property
    def ticks(self) -> tuple[AxisTick, ...]:
        return self._ticks

    def clear(self) -> None:
        self._items = ()
        self._ticks = ()
