from __future__ import annotations

import itertools
import logging
from pathlib import Path
from typing import Callable

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.patches import PathPatch
from matplotlib.path import Path as MplPath
from matplotlib.widgets import SpanSelector

from activity_strand.chart.layout import ChartLayout
from activity_strand.chart.surface import AxisTick, Frame, RectItem, Selection, TooltipState
from activity_strand.viz.common import close_figure, css_to_rgba, save_figure

LOGGER = logging.getLogger(__name__)

BRUSH_COLOR = "#6b7280"
TICK_FONT_SIZE = 8
TOOLTIP_FONT_SIZE = 8
BRUSH_MINSPAN = 1.0


def rounded_rect_path(item: RectItem) -> MplPath:
    """Rectangle path in y-down pixel space with separate top and bottom corner radii."""
    x, y, w, h = item.x, item.y, max(item.width, 0.0), max(item.height, 0.0)
    limit = min(w, h) / 2.0
    rt = min(item.radii.top, limit)
    rb = min(item.radii.bottom, limit)
    vertices = [
        (x + rt, y),
        (x + w - rt, y),
        (x + w, y),
        (x + w, y + rt),
        (x + w, y + h - rb),
        (x + w, y + h),
        (x + w - rb, y + h),
        (x + rb, y + h),
        (x, y + h),
        (x, y + h - rb),
        (x, y + rt),
        (x, y),
        (x + rt, y),
        (x + rt, y),
    ]
    codes = [
        MplPath.MOVETO,
        MplPath.LINETO,
        MplPath.CURVE3,
        MplPath.CURVE3,
        MplPath.LINETO,
        MplPath.CURVE3,
        MplPath.CURVE3,
        MplPath.LINETO,
        MplPath.CURVE3,
        MplPath.CURVE3,
        MplPath.LINETO,
        MplPath.CURVE3,
        MplPath.CURVE3,
        MplPath.CLOSEPOLY,
    ]
    return MplPath(vertices, codes)


class MatplotlibSurface:
    """Chart surface backed by a pyplot figure with a detail and an overview axes.

    Both axes use pixel coordinates with y growing downwards, matching the scene
    items the chart produces. Patches are retained per item key and updated in place.
    """

    def __init__(self, width: float | None = None, *, dpi: int = 100) -> None:
        self.width = width
        self.dpi = dpi
        self.figure = None
        self.detail_ax: Axes | None = None
        self.overview_ax: Axes | None = None
        self.layout: ChartLayout | None = None
        self._patches: dict[str, PathPatch] = {}
        self._overview_revision = -1
        self._tooltip = None
        self._selector: SpanSelector | None = None
        self._disconnects: dict[int, Callable[[], None]] = {}
        self._handle_ids = itertools.count(1)

    def measure_width(self) -> float:
        return float(self.width or 0.0)

    def mount(self, layout: ChartLayout) -> None:
        self.layout = layout
        total_w, total_h = layout.width, layout.total_height
        self.figure = plt.figure(figsize=(total_w / self.dpi, total_h / self.dpi), dpi=self.dpi)

        margin = layout.margin
        self.detail_ax = self.figure.add_axes(
            (
                margin.left / total_w,
                (total_h - margin.top - layout.chart_height) / total_h,
                layout.chart_width / total_w,
                layout.chart_height / total_h,
            )
        )
        self._prepare_axes(self.detail_ax, layout.chart_width, layout.chart_height)

        om = layout.overview_margin
        overview_bottom = total_h - layout.overview_top - om.top - layout.overview_inner_height
        self.overview_ax = self.figure.add_axes(
            (
                om.left / total_w,
                overview_bottom / total_h,
                layout.overview_width / total_w,
                layout.overview_inner_height / total_h,
            )
        )
        self._prepare_axes(self.overview_ax, layout.overview_width, layout.overview_inner_height)
        self.overview_ax.set_yticks([])

        self._tooltip = self.detail_ax.annotate(
            "",
            xy=(0.0, 0.0),
            xytext=(0.0, 0.0),
            textcoords="offset points",
            fontsize=TOOLTIP_FONT_SIZE,
            va="bottom",
            bbox={"boxstyle": "round", "fc": "white", "ec": "#d1d5db", "alpha": 0.95},
            annotation_clip=False,
            zorder=10,
        )
        self._tooltip.set_visible(False)
        LOGGER.debug("Mounted surface %.0fx%.0f px", total_w, total_h)

    @staticmethod
    def _prepare_axes(ax: Axes, width: float, height: float) -> None:
        ax.set_xlim(0.0, width)
        ax.set_ylim(height, 0.0)
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
        ax.tick_params(labelsize=TICK_FONT_SIZE)

    def draw(self, frame: Frame) -> None:
        if self.figure is None:
            return
        self._sync_patches("detail", self.detail_ax, frame.detail)
        if frame.overview_revision != self._overview_revision:
            self._sync_patches("overview", self.overview_ax, frame.overview)
            self._set_ticks(self.overview_ax, frame.overview_ticks, None)
            self._overview_revision = frame.overview_revision
        self._set_ticks(self.detail_ax, frame.x_ticks, frame.y_ticks, rotation=45)
        self._set_tooltip(frame.tooltip)
        self.figure.canvas.draw_idle()

    def _sync_patches(self, layer: str, ax: Axes | None, items: tuple[RectItem, ...]) -> None:
        if ax is None:
            return
        seen = set()
        for zorder, item in enumerate(items):
            seen.add(item.key)
            path = rounded_rect_path(item)
            color = css_to_rgba(item.fill, item.opacity)
            patch = self._patches.get(item.key)
            if patch is None:
                patch = PathPatch(path, facecolor=color, edgecolor="none", linewidth=0)
                ax.add_patch(patch)
                self._patches[item.key] = patch
            else:
                patch.set_path(path)
                patch.set_facecolor(color)
            patch.set_zorder(1 + zorder / max(len(items), 1))
        stale = [
            key
            for key, patch in self._patches.items()
            if key not in seen and patch.axes is ax
        ]
        for key in stale:
            self._patches.pop(key).remove()
        LOGGER.debug("Synced %s layer: %d patches, %d removed", layer, len(items), len(stale))

    @staticmethod
    def _set_ticks(
        ax: Axes | None,
        x_ticks: tuple[AxisTick, ...],
        y_ticks: tuple[AxisTick, ...] | None,
        rotation: float = 0.0,
    ) -> None:
        if ax is None:
            return
        ax.set_xticks(
            [tick.position for tick in x_ticks],
            [tick.label for tick in x_ticks],
            rotation=rotation,
            ha="right" if rotation else "center",
        )
        if y_ticks is not None:
            ax.set_yticks([tick.position for tick in y_ticks], [tick.label for tick in y_ticks])

    def _set_tooltip(self, tooltip: TooltipState | None) -> None:
        if self._tooltip is None:
            return
        if tooltip is None:
            self._tooltip.set_visible(False)
            return
        self._tooltip.xy = (tooltip.x, tooltip.y)
        self._tooltip.set_text("\n".join(tooltip.lines))
        self._tooltip.set_visible(True)

    def _register(self, disconnect: Callable[[], None]) -> int:
        handle = next(self._handle_ids)
        self._disconnects[handle] = disconnect
        return handle

    def attach_brush(
        self,
        extent: tuple[float, float],
        on_select: Callable[[Selection], None],
    ) -> int:
        if self.overview_ax is None:
            raise RuntimeError("Surface must be mounted before attaching a brush")

        def _forward(vmin: float, vmax: float) -> None:
            # A click, or a drag shorter than the minimum span, clears the selection.
            on_select(None if vmax - vmin < BRUSH_MINSPAN else (vmin, vmax))

        selector = SpanSelector(
            self.overview_ax,
            _forward,
            "horizontal",
            minspan=BRUSH_MINSPAN,
            interactive=True,
            onmove_callback=_forward,
            props={"facecolor": BRUSH_COLOR, "alpha": 0.2},
        )
        selector.extents = extent
        self._selector = selector

        def _detach() -> None:
            selector.disconnect_events()
            for artist in selector.artists:
                artist.remove()
            if self._selector is selector:
                self._selector = None

        return self._register(_detach)

    def move_brush(self, selection: tuple[float, float]) -> None:
        if self._selector is not None:
            self._selector.extents = selection
            if self.figure is not None:
                self.figure.canvas.draw_idle()

    def add_pointer_listener(
        self,
        on_move: Callable[[float, float], None],
        on_leave: Callable[[], None],
    ) -> int:
        if self.figure is None:
            raise RuntimeError("Surface must be mounted before listening for pointer events")
        canvas = self.figure.canvas

        def _motion(event) -> None:
            if event.inaxes is self.detail_ax and event.xdata is not None:
                on_move(float(event.xdata), float(event.ydata))
            else:
                on_leave()

        def _leave(event) -> None:
            on_leave()

        ids = [
            canvas.mpl_connect("motion_notify_event", _motion),
            canvas.mpl_connect("axes_leave_event", _leave),
            canvas.mpl_connect("figure_leave_event", _leave),
        ]

        def _detach() -> None:
            for cid in ids:
                canvas.mpl_disconnect(cid)

        return self._register(_detach)

    def start_timer(self, interval_ms: int, on_tick: Callable[[], bool]) -> int:
        if self.figure is None:
            raise RuntimeError("Surface must be mounted before starting a timer")
        timer = self.figure.canvas.new_timer(interval=interval_ms)

        def _tick() -> None:
            if not on_tick():
                timer.stop()

        timer.add_callback(_tick)
        timer.start()
        return self._register(timer.stop)

    def remove_listener(self, handle: object) -> None:
        disconnect = self._disconnects.pop(handle, None)  # type: ignore[arg-type]
        if disconnect is not None:
            disconnect()

    def save(self, path: Path) -> Path:
        if self.figure is None:
            raise RuntimeError("Nothing to save; surface is not mounted")
        return save_figure(self.figure, path, dpi=self.dpi)

    def show(self) -> None:
        if self.figure is not None:
            plt.show()

    def clear(self) -> None:
        for handle in list(self._disconnects):
            self.remove_listener(handle)
        for patch in self._patches.values():
            patch.remove()
        self._patches.clear()
        self._overview_revision = -1
        self._tooltip = None
        if self.figure is not None:
            close_figure(self.figure)
        self.figure = None
        self.detail_ax = None
        self.overview_ax = None
