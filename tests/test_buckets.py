from __future__ import annotations

import pandas as pd
import pytest

from activity_strand.chart.contracts import RawEvent
from activity_strand.features.buckets import (
    bucket_events,
    build_overview,
    format_block_label,
    time_blocks_table,
)


def _events(rows: list[tuple[str, str, str | None, str, str]]) -> pd.DataFrame:
    return pd.DataFrame(
        rows,
        columns=["timestamp", "status", "difficulty", "language", "problem"],
    )


def test_end_to_end_example_counts_first_solve_once() -> None:
    events = _events(
        [
            ("2025-01-06 09:00:00", "Accepted", "Easy", "python", "A"),
            ("2025-01-06 10:00:00", "Accepted", "Easy", "python", "A"),
            ("2025-01-07 11:00:00", "Other", "Medium", "java", "B"),
        ]
    )

    blocks = bucket_events(events, "daily")
    overview = build_overview(blocks, "problems")

    assert len(blocks) == 2
    day1, day2 = blocks
    assert (day1.problem_counts.easy, day1.problem_counts.medium, day1.problem_counts.hard) == (
        1,
        0,
        0,
    )
    assert (day1.submission_counts.accepted, day1.submission_counts.failed) == (2, 0)
    assert day2.problem_counts.total == 0
    assert (day2.submission_counts.accepted, day2.submission_counts.failed) == (0, 1)
    assert overview is not None
    assert overview.max_value == 1
    assert overview.start_date == day1.bucket_date
    assert overview.end_date == day2.bucket_date


def test_bucket_coverage_sums_to_event_count() -> None:
    events = _events(
        [
            ("2025-01-01 00:00:00", "Accepted", "Hard", "cpp", "A"),
            ("2025-01-01 23:59:59", "Other", "Hard", "cpp", "A"),
            ("2025-01-02 00:00:00", "Accepted", None, "python", "C"),
            ("2025-01-09 12:00:00", "Other", "Easy", "python", "D"),
            ("2025-02-01 00:00:00", "Accepted", "Medium", "java", "E"),
        ]
    )

    for granularity in ("daily", "weekly", "monthly"):
        blocks = bucket_events(events, granularity)
        assert sum(block.submissions_total for block in blocks) == len(events)
        dates = [block.bucket_date for block in blocks]
        assert dates == sorted(set(dates))


def test_first_solve_wins_within_bucket_only() -> None:
    events = _events(
        [
            ("2025-01-06 09:00:00", "Other", "Medium", "python", "A"),
            ("2025-01-06 10:00:00", "Accepted", "Medium", "python", "A"),
            ("2025-01-06 11:00:00", "Accepted", "Medium", "python", "A"),
            ("2025-01-07 09:00:00", "Accepted", "Medium", "python", "A"),
        ]
    )

    blocks = bucket_events(events, "daily")
    assert [block.problem_counts.medium for block in blocks] == [1, 1]

    weekly = bucket_events(events, "weekly")
    assert len(weekly) == 1
    assert weekly[0].problem_counts.medium == 1
    assert weekly[0].submission_counts.accepted == 3


def test_accepted_without_difficulty_is_not_a_problem_count() -> None:
    events = _events([("2025-01-06 09:00:00", "Accepted", None, "python", "A")])
    (block,) = bucket_events(events, "daily")
    assert block.problem_counts.total == 0
    assert block.submission_counts.accepted == 1


def test_monthly_boundary_splits_buckets() -> None:
    events = _events(
        [
            ("2025-01-31 23:59:59", "Other", "Easy", "python", "A"),
            ("2025-02-01 00:00:00", "Other", "Easy", "python", "A"),
        ]
    )

    blocks = bucket_events(events, "monthly")

    assert [block.bucket_date for block in blocks] == [
        pd.Timestamp("2025-01-01", tz="UTC"),
        pd.Timestamp("2025-02-01", tz="UTC"),
    ]
    assert [block.label for block in blocks] == ["January 2025", "February 2025"]


def test_weekly_buckets_start_on_iso_monday() -> None:
    events = _events(
        [
            # Sunday belongs to the ISO week that started the previous Monday.
            ("2025-01-05 23:00:00", "Other", "Easy", "python", "A"),
            ("2025-01-06 00:00:00", "Other", "Easy", "python", "A"),
            ("2025-01-12 23:59:59", "Other", "Easy", "python", "A"),
        ]
    )

    blocks = bucket_events(events, "weekly")

    assert [block.bucket_date for block in blocks] == [
        pd.Timestamp("2024-12-30", tz="UTC"),
        pd.Timestamp("2025-01-06", tz="UTC"),
    ]
    assert [block.submissions_total for block in blocks] == [1, 2]
    assert blocks[1].label == "Week of Jan 6"


def test_weekly_buckets_cross_year_boundary() -> None:
    events = _events(
        [
            ("2024-12-31 12:00:00", "Other", "Easy", "python", "A"),
            ("2025-01-02 12:00:00", "Other", "Easy", "python", "B"),
        ]
    )
    blocks = bucket_events(events, "weekly")
    assert len(blocks) == 1
    assert blocks[0].bucket_date == pd.Timestamp("2024-12-30", tz="UTC")


def test_buckets_follow_configured_timezone() -> None:
    events = _events(
        [
            ("2025-01-07T02:00:00Z", "Other", "Easy", "python", "A"),
            ("2025-01-07T12:00:00Z", "Other", "Easy", "python", "B"),
        ]
    )

    utc_blocks = bucket_events(events, "daily", timezone="UTC")
    la_blocks = bucket_events(events, "daily", timezone="America/Los_Angeles")

    assert len(utc_blocks) == 1
    assert [block.bucket_date for block in la_blocks] == [
        pd.Timestamp("2025-01-06", tz="America/Los_Angeles"),
        pd.Timestamp("2025-01-07", tz="America/Los_Angeles"),
    ]


def test_language_counts_keep_first_seen_order() -> None:
    events = _events(
        [
            ("2025-01-06 09:00:00", "Other", "Easy", "java", "A"),
            ("2025-01-06 10:00:00", "Other", "Easy", "python", "B"),
            ("2025-01-06 11:00:00", "Other", "Easy", "java", "C"),
        ]
    )
    (block,) = bucket_events(events, "daily")
    assert list(block.language_counts.items()) == [("java", 2), ("python", 1)]


def test_bucket_events_accepts_raw_event_objects() -> None:
    events = [
        RawEvent(pd.Timestamp("2025-03-03 08:00"), "Accepted", "Hard", "python", "A"),
        RawEvent(pd.Timestamp("2025-03-03 09:00"), "Other", "Hard", "python", "B"),
    ]
    (block,) = bucket_events(events, "daily")
    assert block.problem_counts.hard == 1
    assert block.submission_counts.failed == 1
    assert block.label == "Mon, Mar 3"


def test_empty_input_yields_no_blocks_and_no_overview() -> None:
    assert bucket_events(_events([]), "daily") == []
    assert build_overview([], "problems") is None


def test_overview_max_value_follows_view_mode_and_floors_at_one() -> None:
    events = _events(
        [
            ("2025-01-06 09:00:00", "Other", "Easy", "python", "A"),
            ("2025-01-06 10:00:00", "Other", "Easy", "python", "A"),
        ]
    )
    blocks = bucket_events(events, "daily")

    assert build_overview(blocks, "problems").max_value == 1
    assert build_overview(blocks, "submissions").max_value == 2


@pytest.mark.parametrize(
    ("granularity", "expected"),
    [
        ("daily", "Mon, Jan 6"),
        ("weekly", "Week of Jan 6"),
        ("monthly", "January 2025"),
    ],
)
def test_format_block_label(granularity: str, expected: str) -> None:
    assert format_block_label(pd.Timestamp("2025-01-06", tz="UTC"), granularity) == expected


def test_time_blocks_table_flattens_languages() -> None:
    events = _events(
        [
            ("2025-01-06 09:00:00", "Accepted", "Easy", "python", "A"),
            ("2025-01-06 10:00:00", "Other", "Hard", "java", "B"),
        ]
    )
    table = time_blocks_table(bucket_events(events, "daily"))

    assert list(table.columns) == [
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
    ]
    row = table.iloc[0]
    assert row["languages"] == "python:1;java:1"
    assert row["problems_total"] == 1
    assert row["submissions_total"] == 2


def test_fall_back_hour_events_keep_their_bucket() -> None:
    events = _events(
        [
            ("2024-11-03 00:30:00", "Accepted", "Easy", "python", "A"),
            ("2024-11-03 01:30:00", "Accepted", "Easy", "python", "B"),
            ("2024-11-03 03:30:00", "Other", "Easy", "python", "C"),
        ]
    )

    blocks = bucket_events(events, "daily", timezone="America/New_York")

    assert len(blocks) == 1
    assert blocks[0].submissions_total == 3
    assert blocks[0].problem_counts.easy == 2
