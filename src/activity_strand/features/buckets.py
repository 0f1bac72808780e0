from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from activity_strand.chart.contracts import (
    ALLOWED_DIFFICULTIES,
    Granularity,
    OverviewSummary,
    ProblemCounts,
    RawEvent,
    SubmissionCounts,
    TimeBlock,
    ViewMode,
    view_total,
)
from activity_strand.preprocess.time import (
    localize_period_start,
    localize_timestamps,
    period_start,
)

LOGGER = logging.getLogger(__name__)

EVENT_COLUMNS = ["timestamp", "status", "difficulty", "language", "problem"]


def events_frame(events: pd.DataFrame | Iterable[RawEvent]) -> pd.DataFrame:
    if isinstance(events, pd.DataFrame):
        return events
    return pd.DataFrame([event.to_dict() for event in events], columns=EVENT_COLUMNS)


def format_block_label(start: pd.Timestamp, granularity: Granularity) -> str:
    if granularity == "weekly":
        return f"Week of {start:%b} {start.day}"
    if granularity == "monthly":
        return f"{start:%B %Y}"
    return f"{start:%a}, {start:%b} {start.day}"


def bucket_events(
    events: pd.DataFrame | Iterable[RawEvent],
    granularity: Granularity,
    timezone: str = "UTC",
) -> list[TimeBlock]:
    """Group events into calendar buckets, ordered by bucket start.

    ``status`` must already be normalized to ``Accepted``/``Other``. A problem is counted
    as solved in a bucket only on its first Accepted submission there; later Accepted
    submissions of the same problem in the same bucket add to ``accepted`` only.
    """
    frame = events_frame(events)
    if frame.empty:
        return []

    working = frame.reindex(columns=EVENT_COLUMNS).copy()
    working["timestamp"] = localize_timestamps(working["timestamp"], timezone)
    invalid = working["timestamp"].isna()
    if invalid.any():
        LOGGER.warning("Dropping %d event(s) with unparseable timestamps", int(invalid.sum()))
        working = working.loc[~invalid]
        if working.empty:
            return []

    working["bucket_start"] = period_start(working["timestamp"], granularity)
    working["is_accepted"] = working["status"] == "Accepted"

    submissions = working.groupby("bucket_start", sort=True).agg(
        accepted=("is_accepted", "sum"),
        total=("is_accepted", "size"),
    )

    first_solves = working.loc[working["is_accepted"]].drop_duplicates(
        subset=["bucket_start", "problem"],
        keep="first",
    )
    first_solves = first_solves.loc[first_solves["difficulty"].isin(ALLOWED_DIFFICULTIES)]
    solved = {
        (start, difficulty): int(count)
        for (start, difficulty), count in first_solves.groupby(
            ["bucket_start", "difficulty"]
        ).size().items()
    }

    languages: dict[pd.Timestamp, dict[str, int]] = {}
    # sort=False keeps each bucket's languages in first-seen order.
    for (start, language), count in working.groupby(
        ["bucket_start", "language"], sort=False
    ).size().items():
        languages.setdefault(start, {})[str(language)] = int(count)

    blocks: list[TimeBlock] = []
    for start, row in submissions.iterrows():
        accepted = int(row["accepted"])
        bucket_date = localize_period_start(start, timezone)
        blocks.append(
            TimeBlock(
                bucket_date=bucket_date,
                label=format_block_label(bucket_date, granularity),
                problem_counts=ProblemCounts(
                    easy=solved.get((start, "Easy"), 0),
                    medium=solved.get((start, "Medium"), 0),
                    hard=solved.get((start, "Hard"), 0),
                ),
                submission_counts=SubmissionCounts(
                    accepted=accepted,
                    failed=int(row["total"]) - accepted,
                ),
                language_counts=languages.get(start, {}),
            )
        )
    LOGGER.debug("Bucketed %d event(s) into %d %s block(s)", len(working), len(blocks), granularity)
    return blocks


def build_overview(blocks: list[TimeBlock], view_mode: ViewMode) -> OverviewSummary | None:
    if not blocks:
        return None
    totals = [view_total(block, view_mode) for block in blocks]
    return OverviewSummary(
        start_date=blocks[0].bucket_date,
        end_date=blocks[-1].bucket_date,
        max_value=float(max(*totals, 1)),
    )


def time_blocks_table(blocks: list[TimeBlock]) -> pd.DataFrame:
    rows = []
    for block in blocks:
        row = block.to_dict()
        row["languages"] = ";".join(f"{name}:{count}" for name, count in row["languages"].items())
        row["problems_total"] = block.problems_total
        row["submissions_total"] = block.submissions_total
        rows.append(row)
    return pd.DataFrame(
        rows,
        columns=[
            "bucket_date",
            "label",
            "easy",
            "medium",
            "hard",
            "accepted",
            "failed",
            "problems_total",
            "submissions_total",
            "languages",
        ],
    )
