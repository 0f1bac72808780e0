from __future__ import annotations

import os
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

ViewModeName = Literal["problems", "submissions"]
StackModeName = Literal["difficulty", "language"]
GranularityName = Literal["daily", "weekly", "monthly"]
TimeRangeName = Literal["all_time", "last_30_days", "last_90_days", "last_365_days"]
DifficultyFilterName = Literal["all", "easy", "medium", "hard"]

DEFAULT_LANGUAGE_COLORS: dict[str, str] = {
    "python": "#3776ab",
    "javascript": "#f7df1e",
    "java": "#ed8b00",
    "cpp": "#00599c",
    "csharp": "#239120",
}


class ColumnsConfig(BaseModel):
    timestamp: str = "timestamp"
    status: str = "status"
    difficulty: str = "difficulty"
    language: str = "language"
    problem: str = "problem"


class TimeConfig(BaseModel):
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"invalid timezone: {value}") from exc
        return value


class ViewConfigDefaults(BaseModel):
    view_mode: ViewModeName = "problems"
    stack_mode: StackModeName = "difficulty"
    granularity: GranularityName = "daily"


class FiltersConfig(BaseModel):
    time_range: TimeRangeName = "all_time"
    difficulty: DifficultyFilterName = "all"


class MarginsConfig(BaseModel):
    top: float = Field(default=20.0, ge=0)
    right: float = Field(default=20.0, ge=0)
    bottom: float = Field(default=80.0, ge=0)
    left: float = Field(default=40.0, ge=0)


def _overview_margins() -> MarginsConfig:
    return MarginsConfig(top=10.0, right=20.0, bottom=20.0, left=40.0)


class LayoutConfig(BaseModel):
    height: float = Field(default=320.0, gt=0)
    overview_height: float = Field(default=60.0, gt=0)
    overview_gap: float = Field(default=20.0, ge=0)
    min_width: float = Field(default=800.0, gt=0)
    margin: MarginsConfig = Field(default_factory=MarginsConfig)
    overview_margin: MarginsConfig = Field(default_factory=_overview_margins)
    bar_gap: float = Field(default=2.0, ge=0)
    min_bar_width: float = Field(default=4.0, gt=0)
    max_bar_width: float = Field(default=20.0, gt=0)
    corner_radius: float = Field(default=4.0, ge=0)
    overview_corner_radius: float = Field(default=2.0, ge=0)
    dpi: int = Field(default=100, ge=10)


class AnimationConfig(BaseModel):
    update_ms: int = Field(default=750, ge=0)
    enter_ms: int = Field(default=750, ge=0)
    exit_ms: int = Field(default=500, ge=0)
    frame_interval_ms: int = Field(default=16, ge=1)


class PaletteConfig(BaseModel):
    hard: str = "#ef4743"
    medium: str = "#ffc01e"
    easy: str = "#00b8a3"
    accepted: str = "#00b8a3"
    failed: str = "#ef4743"
    ghost: str = "rgba(156, 163, 175, 0.1)"
    overview: str = "#999999"
    fallback: str = "#6b7280"
    languages: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_LANGUAGE_COLORS))


class OutputsConfig(BaseModel):
    tables_format: Literal["parquet", "csv"] = "csv"
    figures_format: str = "png"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    time: TimeConfig = Field(default_factory=TimeConfig)
    view: ViewConfigDefaults = Field(default_factory=ViewConfigDefaults)
    filters: FiltersConfig = Field(default_factory=FiltersConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    animation: AnimationConfig = Field(default_factory=AnimationConfig)
    palette: PaletteConfig = Field(default_factory=PaletteConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def load_config(path: Path | None) -> AppConfig:
    if path is None or not path.exists():
        config = AppConfig()
    else:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        config = AppConfig.model_validate(data)

    override = os.getenv("ACTIVITY_STRAND_TIMEZONE")
    if override:
        config.time = TimeConfig(timezone=override)
    return config
