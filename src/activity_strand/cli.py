from __future__ import annotations

from enum import Enum
from pathlib import Path

import typer
from pydantic import ValidationError

from activity_strand.chart.contracts import ViewConfig
from activity_strand.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from activity_strand.features.buckets import time_blocks_table
from activity_strand.io.read import load_events
from activity_strand.logging import configure_logging
from activity_strand.pipeline.strand_data import (
    build_strand_data,
    prepare_events,
    render_activity_outputs,
)

app = typer.Typer(no_args_is_help=True, add_completion=False)


class ViewModeOption(str, Enum):
    problems = "problems"
    submissions = "submissions"


class StackModeOption(str, Enum):
    difficulty = "difficulty"
    language = "language"


class GranularityOption(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class TimeRangeOption(str, Enum):
    all_time = "all_time"
    last_30_days = "last_30_days"
    last_90_days = "last_90_days"
    last_365_days = "last_365_days"


class DifficultyOption(str, Enum):
    all = "all"
    easy = "easy"
    medium = "medium"
    hard = "hard"


def _load_app_config(config_path: Path) -> AppConfig:
    try:
        return load_config(config_path)
    except (ValidationError, ValueError) as exc:
        raise typer.BadParameter(f"Invalid config {config_path}: {exc}") from exc


def _view_config(
    cfg: AppConfig,
    view: ViewModeOption | None,
    stack: StackModeOption | None,
    granularity: GranularityOption | None,
) -> ViewConfig:
    return ViewConfig(
        view_mode=view.value if view is not None else cfg.view.view_mode,
        stack_mode=stack.value if stack is not None else cfg.view.stack_mode,
        granularity=granularity.value if granularity is not None else cfg.view.granularity,
    )


def _apply_filter_overrides(
    cfg: AppConfig,
    time_range: TimeRangeOption | None,
    difficulty: DifficultyOption | None,
) -> None:
    if time_range is not None:
        cfg.filters.time_range = time_range.value
    if difficulty is not None:
        cfg.filters.difficulty = difficulty.value


@app.command()
def summarize(
    events: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, resolve_path=True),
    granularity: GranularityOption | None = typer.Option(None),
    view: ViewModeOption | None = typer.Option(None),
    time_range: TimeRangeOption | None = typer.Option(None),
    difficulty: DifficultyOption | None = typer.Option(None),
) -> None:
    """Print the bucketed activity table for an events file."""
    configure_logging()
    cfg = _load_app_config(config)
    _apply_filter_overrides(cfg, time_range, difficulty)
    view_config = _view_config(cfg, view, None, granularity)
    try:
        frame = prepare_events(load_events(events, cfg), cfg)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--events") from exc

    data = build_strand_data(frame, view_config, cfg)
    if data is None:
        typer.echo("No activity to summarize.")
        return
    table = time_blocks_table(list(data.time_blocks))
    typer.echo(table.to_string(index=False))
    typer.echo(
        f"Buckets: {len(data.time_blocks)} ({view_config.granularity}), "
        f"max {view_config.view_mode}: {data.overview.max_value:g}"
    )


@app.command()
def render(
    events: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, resolve_path=True),
    view: ViewModeOption | None = typer.Option(None),
    stack: StackModeOption | None = typer.Option(None),
    granularity: GranularityOption | None = typer.Option(None),
    start: str | None = typer.Option(None, help="Brush start date for the detail panel."),
    end: str | None = typer.Option(None, help="Brush end date for the detail panel."),
    show: bool = typer.Option(False, help="Open an interactive window after export."),
) -> None:
    """Render the overview/detail activity chart and its bucket table."""
    configure_logging()
    cfg = _load_app_config(config)
    view_config = _view_config(cfg, view, stack, granularity)
    try:
        artifacts = render_activity_outputs(
            events_path=events,
            out_dir=out,
            view_config=view_config,
            config=cfg,
            start=start,
            end=end,
            show=show,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    typer.echo(f"Table written to: {artifacts.table}")
    if artifacts.figure is not None:
        typer.echo(f"Figure written to: {artifacts.figure}")
    elif artifacts.data is None:
        typer.echo("No activity to chart; figure skipped.")
