from __future__ import annotations

import dataclasses
import logging
from enum import Enum
from typing import Callable

import pandas as pd

from activity_strand.chart.animation import Clock, TransitionPolicy, monotonic_clock
from activity_strand.chart.brush import BrushController
from activity_strand.chart.contracts import StrandData, ViewConfig
from activity_strand.chart.layout import ChartLayout, build_layout
from activity_strand.chart.palette import Palette, default_palette, palette_from_config
from activity_strand.chart.renderer import DetailRenderer, OverviewRenderer
from activity_strand.chart.scales import ScaleManager
from activity_strand.chart.surface import Frame, Surface
from activity_strand.config import AppConfig, LayoutConfig

LOGGER = logging.getLogger(__name__)

Rebucketer = Callable[[ViewConfig], StrandData | None]


class RenderPhase(str, Enum):
    IDLE = "idle"
    BUCKETING = "bucketing"
    SCALE_SETUP = "scale_setup"
    DETAIL_DRAW = "detail_draw"
    BRUSHING = "brushing"


class StrandChart:
    """One overview/detail chart bound to a drawing surface.

    All state changes go through ``update``, ``update_options``, brush events and
    ``destroy``. ``rebucket`` is an optional callback used when a granularity change
    needs fresh buckets; without it the caller is expected to follow up with
    ``update``.
    """

    def __init__(
        self,
        surface: Surface,
        data: StrandData,
        options: ViewConfig | None = None,
        *,
        layout_config: LayoutConfig | None = None,
        palette: Palette | None = None,
        policy: TransitionPolicy | None = None,
        clock: Clock = monotonic_clock,
        frame_interval_ms: int = 16,
        rebucket: Rebucketer | None = None,
    ) -> None:
        self.surface = surface
        self.data = data
        self.view_config = options or ViewConfig()
        self.layout_config = layout_config or LayoutConfig()
        self.palette = palette or default_palette()
        self.policy = policy or TransitionPolicy()
        self.clock = clock
        self.frame_interval_ms = frame_interval_ms
        self.rebucket = rebucket
        self.phase = RenderPhase.IDLE
        self.destroyed = False
        self._listeners: list[object] = []
        self._brush_handle: object | None = None
        self._timer: object | None = None
        self.detail: DetailRenderer | None = None
        self.overview: OverviewRenderer | None = None

        try:
            self.layout: ChartLayout = build_layout(surface.measure_width(), self.layout_config)
            surface.mount(self.layout)
            self.scales = ScaleManager(self.layout)
            self.detail = DetailRenderer(
                self.scales,
                self.palette,
                self.layout_config,
                policy=self.policy,
                clock=self.clock,
            )
            self.overview = OverviewRenderer(self.scales, self.palette, self.layout_config)
            self.brush = BrushController(self.scales, self._on_brush)
            self._listeners.append(
                surface.add_pointer_listener(self._on_pointer_move, self._on_pointer_leave)
            )
            self._load(data)
        except Exception:
            LOGGER.exception("Chart construction failed; tearing down")
            self.destroy()
            raise

    @classmethod
    def from_config(
        cls,
        surface: Surface,
        data: StrandData,
        options: ViewConfig | None,
        config: AppConfig,
        **kwargs,
    ) -> StrandChart:
        kwargs.setdefault("policy", TransitionPolicy.from_config(config.animation))
        kwargs.setdefault("frame_interval_ms", config.animation.frame_interval_ms)
        return cls(
            surface,
            data,
            options,
            layout_config=config.layout,
            palette=palette_from_config(config.palette),
            **kwargs,
        )

    def _set_phase(self, phase: RenderPhase) -> None:
        self.phase = phase
        LOGGER.debug("Render phase: %s", phase.value)

    def _renderers(self) -> tuple[DetailRenderer, OverviewRenderer]:
        if self.detail is None or self.overview is None:
            raise RuntimeError("Chart renderers are not initialised")
        return self.detail, self.overview

    def _load(self, data: StrandData) -> None:
        _, overview = self._renderers()
        self.data = data
        self._set_phase(RenderPhase.SCALE_SETUP)
        self.scales.set_data(data)
        overview.render(data.time_blocks, self.view_config)

        if self._brush_handle is not None:
            self.surface.remove_listener(self._brush_handle)
            self._brush_handle = None
        self.brush.reset()
        self._brush_handle = self.surface.attach_brush(self.brush.extent, self.brush.handle)
        self._draw_detail()

    def _draw_detail(self) -> None:
        detail, _ = self._renderers()
        self._set_phase(RenderPhase.DETAIL_DRAW)
        detail.render(self.data.time_blocks, self.view_config)
        now = self.clock()
        if detail.advance(now):
            self._ensure_timer()
        self.redraw(now)
        self._set_phase(RenderPhase.IDLE)

    def _ensure_timer(self) -> None:
        if self._timer is None:
            self._timer = self.surface.start_timer(self.frame_interval_ms, self._on_timer)

    def _on_timer(self) -> bool:
        running = self.tick()
        if not running:
            # The surface stops the timer once the callback reports False.
            self._timer = None
        return running

    def _on_brush(self, domain: tuple[pd.Timestamp, pd.Timestamp]) -> None:
        if self.destroyed:
            return
        self._set_phase(RenderPhase.BRUSHING)
        self._draw_detail()

    def select_range(self, start: pd.Timestamp | str, end: pd.Timestamp | str) -> None:
        """Programmatic brush: narrow the detail panel to ``[start, end]``."""
        if self.destroyed:
            return
        if self.brush.move_to_dates(start, end):
            self.surface.move_brush(self.brush.selection)

    def _on_pointer_move(self, x: float, y: float) -> None:
        if self.destroyed or self.detail is None:
            return
        previous = self.detail.tooltip
        if self.detail.hover(x, y) != previous:
            self.redraw()

    def _on_pointer_leave(self) -> None:
        if self.destroyed or self.detail is None:
            return
        if self.detail.tooltip is not None:
            self.detail.leave()
            self.redraw()

    def frame(self, now: float | None = None) -> Frame:
        detail, overview = self._renderers()
        return Frame(
            detail=detail.items(now),
            overview=overview.items,
            x_ticks=detail.x_ticks(),
            y_ticks=detail.y_ticks(),
            overview_ticks=overview.ticks,
            tooltip=detail.tooltip,
            overview_revision=overview.revision,
        )

    def redraw(self, now: float | None = None) -> None:
        if self.destroyed:
            return
        self.surface.draw(self.frame(now))

    def tick(self, now: float | None = None) -> bool:
        """Advance running transitions and repaint; returns True while any remain."""
        if self.destroyed or self.detail is None:
            return False
        now = self.clock() if now is None else now
        running = self.detail.advance(now)
        self.redraw(now)
        return running

    def settle(self) -> None:
        if self.destroyed or self.detail is None:
            return
        self.detail.settle()
        self.redraw()

    def update(self, data: StrandData, options: ViewConfig | None = None) -> None:
        if self.destroyed:
            LOGGER.warning("update() called on a destroyed chart; ignoring")
            return
        if options is not None and options != self.view_config:
            LOGGER.info("View options changed: %s -> %s", self.view_config, options)
            self.view_config = options
        self._load(data)

    def update_options(self, options: ViewConfig) -> None:
        if self.destroyed:
            LOGGER.warning("update_options() called on a destroyed chart; ignoring")
            return
        if options == self.view_config:
            return
        previous = self.view_config
        LOGGER.info("View options changed: %s -> %s", previous, options)
        self.view_config = options
        if options.granularity != previous.granularity:
            if self.rebucket is None:
                LOGGER.info(
                    "Granularity changed to %s; awaiting re-bucketed data",
                    options.granularity,
                )
            else:
                self._set_phase(RenderPhase.BUCKETING)
                data = self.rebucket(options)
                if data is not None:
                    self._load(data)
                    return
                LOGGER.warning("Re-bucketing produced no data; keeping current buckets")
        if options.view_mode != previous.view_mode:
            self._rescale_values()
        self._draw_detail()

    def _rescale_values(self) -> None:
        """Fit the value axes and the overview strip to the current view's totals."""
        _, overview = self._renderers()
        view_mode = self.view_config.view_mode
        totals = [block.total_for(view_mode) for block in self.data.time_blocks]
        max_value = float(max(totals, default=0))
        max_value = max(max_value, 1.0)
        self.data = dataclasses.replace(
            self.data,
            overview=dataclasses.replace(self.data.overview, max_value=max_value),
        )
        self.scales.set_value_max(max_value)
        overview.render(self.data.time_blocks, self.view_config)
        LOGGER.debug("Value axes rescaled to %s max %g", view_mode, max_value)

    def destroy(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        handles = list(self._listeners)
        for handle in (self._brush_handle, self._timer):
            if handle is not None:
                handles.append(handle)
        for handle in handles:
            self.surface.remove_listener(handle)
        self._listeners.clear()
        self._brush_handle = None
        self._timer = None
        if self.detail is not None:
            self.detail.clear()
        if self.overview is not None:
            self.overview.clear()
        self.surface.clear()
        self._set_phase(RenderPhase.IDLE)
        LOGGER.debug("Chart destroyed")


def render_strand_chart(
    surface: Surface,
    data: StrandData,
    options: ViewConfig | None = None,
    existing: StrandChart | None = None,
    *,
    config: AppConfig | None = None,
    **kwargs,
) -> StrandChart:
    """Create a chart on ``surface`` or update ``existing`` in place and return it."""
    if existing is not None and not existing.destroyed:
        existing.update(data, options)
        return existing
    if config is not None:
        return StrandChart.from_config(surface, data, options, config, **kwargs)
    return StrandChart(surface, data, options, **kwargs)
