from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pandas as pd

from activity_strand.chart.contracts import StrandData, TimeBlock, ViewConfig
from activity_strand.chart.instance import render_strand_chart
from activity_strand.config import AppConfig
from activity_strand.features.buckets import bucket_events, build_overview, time_blocks_table
from activity_strand.features.filters import filter_difficulty, filter_time_range
from activity_strand.io.read import load_events
from activity_strand.io.write import write_summary, write_table
from activity_strand.paths import build_output_paths
from activity_strand.preprocess.status import (
    normalize_difficulty,
    normalize_language,
    normalize_status,
)
from activity_strand.preprocess.time import localize_timestamps
from activity_strand.viz.strand import MatplotlibSurface

LOGGER = logging.getLogger(__name__)


def prepare_events(df: pd.DataFrame, config: AppConfig) -> pd.DataFrame:
    """Normalize status/difficulty/language and express timestamps in the chart timezone."""
    working = normalize_status(df)
    working = normalize_difficulty(working)
    working = normalize_language(working)
    working["problem"] = working["problem"].astype(str)
    working["timestamp"] = localize_timestamps(working["timestamp"], config.time.timezone)
    invalid = working["timestamp"].isna()
    if invalid.any():
        LOGGER.warning("Dropping %d event(s) with unparseable timestamps", int(invalid.sum()))
        working = working.loc[~invalid]
    return working.sort_values("timestamp", kind="stable").reset_index(drop=True)


def apply_filters(
    events: pd.DataFrame,
    config: AppConfig,
    now: datetime | pd.Timestamp | None = None,
) -> pd.DataFrame:
    filtered = filter_time_range(events, config.filters.time_range, now=now)
    filtered = filter_difficulty(filtered, config.filters.difficulty)
    LOGGER.debug(
        "Filters time_range=%s difficulty=%s kept %d of %d event(s)",
        config.filters.time_range,
        config.filters.difficulty,
        len(filtered),
        len(events),
    )
    return filtered


def build_strand_data(
    events: pd.DataFrame,
    view_config: ViewConfig,
    config: AppConfig,
    now: datetime | pd.Timestamp | None = None,
) -> StrandData | None:
    """Bucket prepared events for the chart; ``None`` when nothing survives the filters."""
    filtered = apply_filters(events, config, now=now)
    blocks = bucket_events(filtered, view_config.granularity, timezone=config.time.timezone)
    overview = build_overview(blocks, view_config.view_mode)
    if overview is None:
        LOGGER.info("No events to chart after filtering")
        return None
    return StrandData(time_blocks=tuple(blocks), overview=overview)


def summary_payload(data: StrandData | None, view_config: ViewConfig) -> dict[str, object]:
    blocks: tuple[TimeBlock, ...] = data.time_blocks if data is not None else ()
    return {
        "view_mode": view_config.view_mode,
        "stack_mode": view_config.stack_mode,
        "granularity": view_config.granularity,
        "buckets": len(blocks),
        "start_date": data.overview.start_date.isoformat() if data is not None else None,
        "end_date": data.overview.end_date.isoformat() if data is not None else None,
        "max_value": data.overview.max_value if data is not None else None,
        "problems_total": sum(block.problems_total for block in blocks),
        "submissions_total": sum(block.submissions_total for block in blocks),
    }


def parse_brush_bound(value: str | None, name: str) -> pd.Timestamp | None:
    if value is None:
        return None
    try:
        stamp = pd.Timestamp(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid brush {name} date: {value!r}") from exc
    if pd.isna(stamp):
        raise ValueError(f"Invalid brush {name} date: {value!r}")
    return stamp


@dataclass(frozen=True)
class RenderArtifacts:
    table: Path
    summary: Path
    figure: Path | None
    data: StrandData | None


def render_activity_outputs(
    events_path: Path,
    out_dir: Path,
    view_config: ViewConfig,
    config: AppConfig,
    *,
    start: str | None = None,
    end: str | None = None,
    show: bool = False,
    now: datetime | pd.Timestamp | None = None,
) -> RenderArtifacts:
    brush_start = parse_brush_bound(start, "start")
    brush_end = parse_brush_bound(end, "end")
    paths = build_output_paths(out_dir, config.outputs)
    events = prepare_events(load_events(events_path, config), config)
    data = build_strand_data(events, view_config, config, now=now)

    table_path = write_table(
        time_blocks_table(list(data.time_blocks) if data is not None else []),
        paths.table_file,
    )
    summary_path = write_summary(summary_payload(data, view_config), paths.summary_file)
    if data is None:
        return RenderArtifacts(table=table_path, summary=summary_path, figure=None, data=None)

    figure_path: Path | None = None
    try:
        figure_path = _render_figure(
            data,
            view_config,
            config,
            paths.figure_file,
            start=brush_start,
            end=brush_end,
            show=show,
        )
    except Exception:  # pragma: no cover
        LOGGER.exception("Failed rendering the activity strand figure")
    return RenderArtifacts(table=table_path, summary=summary_path, figure=figure_path, data=data)


def _render_figure(
    data: StrandData,
    view_config: ViewConfig,
    config: AppConfig,
    output_path: Path,
    *,
    start: pd.Timestamp | None,
    end: pd.Timestamp | None,
    show: bool,
) -> Path:
    surface = MatplotlibSurface(width=config.layout.min_width, dpi=config.layout.dpi)
    chart = render_strand_chart(surface, data, view_config, config=config)
    try:
        if start is not None or end is not None:
            full_start, full_end = chart.scales.full_domain
            chart.select_range(
                start if start is not None else full_start,
                end if end is not None else full_end,
            )
        chart.settle()
        path = surface.save(output_path)
        if show:
            surface.show()
    finally:
        chart.destroy()
    return path
