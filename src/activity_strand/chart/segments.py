from __future__ import annotations

from activity_strand.chart.contracts import (
    CornerRadii,
    Segment,
    TimeBlock,
    ViewConfig,
    ViewMode,
    view_total,
)
from activity_strand.chart.palette import ColorResolver

TOTAL_LABELS: dict[str, str] = {
    "problems": "Total Problems",
    "submissions": "Total Submissions",
}


def ghost_view(view_mode: ViewMode) -> ViewMode:
    """The complementary view whose total is drawn behind the bars."""
    return "submissions" if view_mode == "problems" else "problems"


def segments_for(
    block: TimeBlock,
    view_config: ViewConfig,
    resolve_color: ColorResolver,
) -> list[Segment]:
    """Stack order is top to bottom; zero-valued segments are dropped."""
    if view_config.view_mode == "problems":
        if view_config.stack_mode == "difficulty":
            counts = block.problem_counts
            candidates = [
                ("Hard", counts.hard, "hard"),
                ("Medium", counts.medium, "medium"),
                ("Easy", counts.easy, "easy"),
            ]
        else:
            candidates = [
                (language, count, language) for language, count in block.language_counts.items()
            ]
    else:
        candidates = [
            ("Failed", block.submission_counts.failed, "failed"),
            ("Accepted", block.submission_counts.accepted, "accepted"),
        ]
    return [
        Segment(label=label, value=int(value), color=resolve_color(token))
        for label, value, token in candidates
        if value > 0
    ]


def ghost_value_for(block: TimeBlock, view_config: ViewConfig) -> int:
    return view_total(block, ghost_view(view_config.view_mode))


def corner_radii(index: int, count: int, radius: float) -> CornerRadii:
    if count == 1:
        return CornerRadii(top=radius, bottom=radius)
    if index == 0:
        return CornerRadii(top=radius, bottom=0.0)
    if index == count - 1:
        return CornerRadii(top=0.0, bottom=radius)
    return CornerRadii()


def tooltip_lines(block: TimeBlock, segment: Segment, view_config: ViewConfig) -> list[str]:
    view_mode = view_config.view_mode
    other = ghost_view(view_mode)
    return [
        block.label,
        f"{segment.label}: {segment.value}",
        f"{TOTAL_LABELS[view_mode]}: {view_total(block, view_mode)}",
        f"{TOTAL_LABELS[other]}: {view_total(block, other)}",
    ]
