from __future__ import annotations

import pytest

from activity_strand.chart.animation import (
    AnimatedRect,
    RectState,
    TransitionPolicy,
    ease_linear,
    ease_quad_out,
)
from activity_strand.config import AnimationConfig


def test_quad_out_easing_is_clamped_and_front_loaded() -> None:
    assert ease_quad_out(-1.0) == 0.0
    assert ease_quad_out(0.5) == 0.75
    assert ease_quad_out(2.0) == 1.0


def test_transition_policy_from_config_uses_seconds() -> None:
    policy = TransitionPolicy.from_config(AnimationConfig(update_ms=300, enter_ms=200, exit_ms=100))
    assert (policy.update_seconds, policy.enter_seconds, policy.exit_seconds) == (0.3, 0.2, 0.1)
    assert TransitionPolicy.immediate().exit_seconds == 0.0


def test_animated_rect_interpolates_and_finishes() -> None:
    rect = AnimatedRect("k", RectState(0.0, 100.0, 10.0, 0.0), role="segment", fill="#000")
    done: list[bool] = []

    rect.animate_to(
        RectState(0.0, 50.0, 10.0, 50.0),
        now=0.0,
        duration=1.0,
        ease=ease_linear,
        on_done=lambda: done.append(True),
    )

    assert rect.state_at(0.5).height == pytest.approx(25.0)
    assert rect.advance(0.5) is True
    assert rect.advance(1.0) is False
    assert rect.state_at(2.0) == RectState(0.0, 50.0, 10.0, 50.0)
    assert done == [True]


def test_new_target_mid_flight_restarts_from_current_state() -> None:
    rect = AnimatedRect("k", RectState(0.0, 0.0, 10.0, 0.0), role="segment", fill="#000")
    rect.animate_to(RectState(0.0, 0.0, 10.0, 100.0), now=0.0, duration=1.0, ease=ease_linear)

    rect.animate_to(RectState(0.0, 0.0, 10.0, 0.0), now=0.5, duration=1.0, ease=ease_linear)

    assert rect.state_at(0.5).height == pytest.approx(50.0)
    assert rect.state_at(1.0).height == pytest.approx(25.0)
    assert rect.target.height == 0.0


def test_zero_duration_applies_immediately() -> None:
    rect = AnimatedRect("k", RectState(0.0, 0.0, 1.0, 1.0), role="ghost", fill="#000")
    rect.animate_to(RectState(5.0, 5.0, 1.0, 1.0, opacity=0.0), now=3.0, duration=0.0)

    assert not rect.is_animating
    assert rect.state_at(3.0).x == 5.0


def test_finish_jumps_to_target() -> None:
    rect = AnimatedRect("k", RectState(0.0, 0.0, 1.0, 1.0), role="ghost", fill="#000")
    rect.animate_to(RectState(0.0, 0.0, 1.0, 9.0), now=0.0, duration=10.0)
    rect.finish()
    assert rect.state_at(0.0).height == 9.0
