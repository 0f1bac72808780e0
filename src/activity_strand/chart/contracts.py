from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal

import pandas as pd

ViewMode = Literal["problems", "submissions"]
StackMode = Literal["difficulty", "language"]
Granularity = Literal["daily", "weekly", "monthly"]
Status = Literal["Accepted", "Other"]
Difficulty = Literal["Easy", "Medium", "Hard"]

ALLOWED_VIEW_MODES = frozenset({"problems", "submissions"})
ALLOWED_STACK_MODES = frozenset({"difficulty", "language"})
ALLOWED_GRANULARITIES = frozenset({"daily", "weekly", "monthly"})
ALLOWED_DIFFICULTIES = frozenset({"Easy", "Medium", "Hard"})


def _ensure_count(name: str, value: int) -> None:
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value!r}.")


@dataclass(slots=True, frozen=True)
class RawEvent:
    timestamp: Any
    status: Status
    difficulty: Difficulty | None
    language: str
    problem: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "status": self.status,
            "difficulty": self.difficulty,
            "language": self.language,
            "problem": self.problem,
        }


@dataclass(slots=True, frozen=True)
class ProblemCounts:
    easy: int = 0
    medium: int = 0
    hard: int = 0

    def __post_init__(self) -> None:
        _ensure_count("easy", self.easy)
        _ensure_count("medium", self.medium)
        _ensure_count("hard", self.hard)

    @property
    def total(self) -> int:
        return self.easy + self.medium + self.hard


@dataclass(slots=True, frozen=True)
class SubmissionCounts:
    accepted: int = 0
    failed: int = 0

    def __post_init__(self) -> None:
        _ensure_count("accepted", self.accepted)
        _ensure_count("failed", self.failed)

    @property
    def total(self) -> int:
        return self.accepted + self.failed


@dataclass(slots=True, frozen=True)
class TimeBlock:
    bucket_date: pd.Timestamp
    label: str
    problem_counts: ProblemCounts = field(default_factory=ProblemCounts)
    submission_counts: SubmissionCounts = field(default_factory=SubmissionCounts)
    language_counts: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bucket_date", pd.Timestamp(self.bucket_date))
        object.__setattr__(self, "language_counts", dict(self.language_counts))

    @property
    def key(self) -> int:
        """Stable identity of the bucket across renders (epoch nanoseconds)."""
        return int(self.bucket_date.value)

    @property
    def problems_total(self) -> int:
        return self.problem_counts.total

    @property
    def submissions_total(self) -> int:
        return self.submission_counts.total

    def total_for(self, view_mode: ViewMode) -> int:
        return view_total(self, view_mode)

    def to_dict(self) -> dict[str, Any]:
        return {
            "bucket_date": self.bucket_date.isoformat(),
            "label": self.label,
            "easy": self.problem_counts.easy,
            "medium": self.problem_counts.medium,
            "hard": self.problem_counts.hard,
            "accepted": self.submission_counts.accepted,
            "failed": self.submission_counts.failed,
            "languages": dict(self.language_counts),
        }


@dataclass(slots=True, frozen=True)
class OverviewSummary:
    start_date: pd.Timestamp
    end_date: pd.Timestamp
    max_value: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.max_value) or self.max_value < 1:
            raise ValueError(f"max_value must be finite and >= 1, got {self.max_value!r}.")
        if pd.Timestamp(self.end_date) < pd.Timestamp(self.start_date):
            raise ValueError("end_date must not precede start_date.")


@dataclass(slots=True, frozen=True)
class StrandData:
    time_blocks: tuple[TimeBlock, ...]
    overview: OverviewSummary

    def __post_init__(self) -> None:
        object.__setattr__(self, "time_blocks", tuple(self.time_blocks))


@dataclass(slots=True, frozen=True)
class ViewConfig:
    view_mode: ViewMode = "problems"
    stack_mode: StackMode = "difficulty"
    granularity: Granularity = "daily"

    def __post_init__(self) -> None:
        if self.view_mode not in ALLOWED_VIEW_MODES:
            raise ValueError(f"Unsupported view_mode: {self.view_mode!r}.")
        if self.stack_mode not in ALLOWED_STACK_MODES:
            raise ValueError(f"Unsupported stack_mode: {self.stack_mode!r}.")
        if self.granularity not in ALLOWED_GRANULARITIES:
            raise ValueError(f"Unsupported granularity: {self.granularity!r}.")


@dataclass(slots=True, frozen=True)
class CornerRadii:
    top: float = 0.0
    bottom: float = 0.0


@dataclass(slots=True, frozen=True)
class Segment:
    label: str
    value: int
    color: str


def view_total(block: TimeBlock, view_mode: ViewMode) -> int:
    if view_mode == "problems":
        return block.problems_total
    return block.submissions_total
