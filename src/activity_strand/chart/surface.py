from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Protocol

from activity_strand.chart.contracts import CornerRadii
from activity_strand.chart.layout import ChartLayout

Layer = Literal["detail", "overview"]
Role = Literal["ghost", "segment", "overview"]
Selection = tuple[float, float] | None


@dataclass(frozen=True)
class RectItem:
    key: str
    layer: Layer
    role: Role
    x: float
    y: float
    width: float
    height: float
    fill: str
    opacity: float = 1.0
    radii: CornerRadii = CornerRadii()


@dataclass(frozen=True)
class AxisTick:
    position: float
    label: str


@dataclass(frozen=True)
class TooltipState:
    x: float
    y: float
    lines: tuple[str, ...]


@dataclass(frozen=True)
class Frame:
    """Everything a surface needs to paint one moment of the chart."""

    detail: tuple[RectItem, ...]
    overview: tuple[RectItem, ...]
    x_ticks: tuple[AxisTick, ...] = ()
    y_ticks: tuple[AxisTick, ...] = ()
    overview_ticks: tuple[AxisTick, ...] = ()
    tooltip: TooltipState | None = None
    overview_revision: int = 0


class Surface(Protocol):
    """Drawing target a chart instance binds to.

    Listener-returning methods hand back an opaque handle; the instance passes every
    handle it received to ``remove_listener`` on teardown.
    """

    def measure_width(self) -> float: ...

    def mount(self, layout: ChartLayout) -> None: ...

    def draw(self, frame: Frame) -> None: ...

    def attach_brush(
        self,
        extent: tuple[float, float],
        on_select: Callable[[Selection], None],
    ) -> object: ...

    def move_brush(self, selection: tuple[float, float]) -> None: ...

    def add_pointer_listener(
        self,
        on_move: Callable[[float, float], None],
        on_leave: Callable[[], None],
    ) -> object: ...

    def start_timer(self, interval_ms: int, on_tick: Callable[[], bool]) -> object: ...

    def remove_listener(self, handle: object) -> None: ...

    def clear(self) -> None: ...
