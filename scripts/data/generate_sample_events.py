#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np
import pandas as pd

OUTPUT_PATH = Path(__file__).resolve().parents[2] / "data" / "sample_events.csv"

LANGUAGES = ("python", "javascript", "java", "cpp", "csharp")
LANGUAGE_WEIGHTS = (0.45, 0.2, 0.15, 0.15, 0.05)
DIFFICULTIES = ("Easy", "Medium", "Hard")
DIFFICULTY_WEIGHTS = (0.5, 0.38, 0.12)
# Harder problems take more attempts before an accept.
ACCEPT_RATE = {"Easy": 0.6, "Medium": 0.4, "Hard": 0.25}


def build_events(
    start: str,
    days: int,
    problems: int,
    mean_per_day: float,
    seed: int,
) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    problem_ids = [f"problem-{index:04d}" for index in range(problems)]
    problem_difficulty = dict(
        zip(problem_ids, rng.choice(DIFFICULTIES, size=problems, p=DIFFICULTY_WEIGHTS))
    )

    per_day = rng.poisson(mean_per_day, size=days)
    day_starts = pd.date_range(start, periods=days, freq="D", tz="UTC")
    timestamps = np.repeat(day_starts.to_numpy(), per_day) + pd.to_timedelta(
        rng.integers(0, 86_400, size=int(per_day.sum())), unit="s"
    ).to_numpy()

    chosen = rng.choice(problem_ids, size=len(timestamps))
    difficulty = np.array([problem_difficulty[problem] for problem in chosen])
    accept_p = np.array([ACCEPT_RATE[level] for level in difficulty])
    accepted = rng.random(len(timestamps)) < accept_p

    events = pd.DataFrame(
        {
            "timestamp": pd.to_datetime(timestamps, utc=True),
            "status": np.where(accepted, "Accepted", "Wrong Answer"),
            "difficulty": difficulty,
            "language": rng.choice(LANGUAGES, size=len(timestamps), p=LANGUAGE_WEIGHTS),
            "problem": chosen,
        }
    )
    return events.sort_values("timestamp", kind="stable").reset_index(drop=True)


def main() -> int:
    parser = argparse.ArgumentParser(description="Write a synthetic submission-events CSV.")
    parser.add_argument("--out", type=Path, default=OUTPUT_PATH)
    parser.add_argument("--start", default="2025-01-01")
    parser.add_argument("--days", type=int, default=180)
    parser.add_argument("--problems", type=int, default=400)
    parser.add_argument("--mean-per-day", type=float, default=4.0)
    parser.add_argument("--seed", type=int, default=7)
    args = parser.parse_args()

    events = build_events(
        start=args.start,
        days=args.days,
        problems=args.problems,
        mean_per_day=args.mean_per_day,
        seed=args.seed,
    )
    args.out.parent.mkdir(parents=True, exist_ok=True)
    events.to_csv(args.out, index=False)
    print(f"Wrote {len(events)} events to {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
