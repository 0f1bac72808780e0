from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Callable

from activity_strand.chart.contracts import CornerRadii
from activity_strand.config import AnimationConfig

Clock = Callable[[], float]
Easing = Callable[[float], float]


def ease_quad_out(t: float) -> float:
    t = min(max(t, 0.0), 1.0)
    return t * (2.0 - t)


def ease_linear(t: float) -> float:
    return min(max(t, 0.0), 1.0)


@dataclass(frozen=True)
class TransitionPolicy:
    enter_seconds: float = 0.75
    update_seconds: float = 0.75
    exit_seconds: float = 0.5
    ease: Easing = ease_quad_out

    @classmethod
    def from_config(cls, config: AnimationConfig) -> TransitionPolicy:
        return cls(
            enter_seconds=config.enter_ms / 1000.0,
            update_seconds=config.update_ms / 1000.0,
            exit_seconds=config.exit_ms / 1000.0,
        )

    @classmethod
    def immediate(cls) -> TransitionPolicy:
        return cls(enter_seconds=0.0, update_seconds=0.0, exit_seconds=0.0)


@dataclass(frozen=True)
class RectState:
    x: float
    y: float
    width: float
    height: float
    opacity: float = 1.0

    def lerp(self, other: RectState, t: float) -> RectState:
        return RectState(
            x=self.x + (other.x - self.x) * t,
            y=self.y + (other.y - self.y) * t,
            width=self.width + (other.width - self.width) * t,
            height=self.height + (other.height - self.height) * t,
            opacity=self.opacity + (other.opacity - self.opacity) * t,
        )

    def collapsed(self, baseline: float) -> RectState:
        return replace(self, y=baseline, height=0.0)


@dataclass
class _Tween:
    start: RectState
    end: RectState
    started_at: float
    duration: float
    ease: Easing
    on_done: Callable[[], None] | None = None

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return min(max((now - self.started_at) / self.duration, 0.0), 1.0)


class AnimatedRect:
    """Retained rectangle whose geometry eases towards its latest target.

    Starting a new animation interpolates from wherever the rectangle currently is, so
    a render arriving mid-flight supersedes the old tween instead of queueing behind it.
    """

    def __init__(
        self,
        key: str,
        state: RectState,
        *,
        role: str,
        fill: str,
        radii: CornerRadii = CornerRadii(),
        payload: object = None,
    ) -> None:
        self.key = key
        self.role = role
        self.fill = fill
        self.radii = radii
        self.payload = payload
        self._state = state
        self._tween: _Tween | None = None

    @property
    def target(self) -> RectState:
        return self._tween.end if self._tween is not None else self._state

    @property
    def is_animating(self) -> bool:
        return self._tween is not None

    def state_at(self, now: float) -> RectState:
        tween = self._tween
        if tween is None:
            return self._state
        return tween.start.lerp(tween.end, tween.ease(tween.progress(now)))

    def animate_to(
        self,
        target: RectState,
        *,
        now: float,
        duration: float,
        ease: Easing = ease_quad_out,
        on_done: Callable[[], None] | None = None,
    ) -> None:
        self._state = self.state_at(now)
        self._tween = _Tween(
            start=self._state,
            end=target,
            started_at=now,
            duration=duration,
            ease=ease,
            on_done=on_done,
        )
        if duration <= 0:
            self.advance(now)

    def advance(self, now: float) -> bool:
        """Step to ``now``; returns True while the tween is still running."""
        tween = self._tween
        if tween is None:
            return False
        if tween.progress(now) < 1.0:
            return True
        self._state = tween.end
        self._tween = None
        if tween.on_done is not None:
            tween.on_done()
        return False

    def finish(self) -> None:
        tween = self._tween
        if tween is not None:
            self.advance(tween.started_at + tween.duration)


def monotonic_clock() -> float:
    return time.monotonic()
