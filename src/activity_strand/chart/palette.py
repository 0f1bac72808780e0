from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from activity_strand.config import PaletteConfig

ColorResolver = Callable[[str], str]


@dataclass(frozen=True)
class Palette:
    """Explicit colour table for segments; unknown tokens resolve to ``fallback``."""

    colors: dict[str, str] = field(default_factory=dict)
    ghost: str = "rgba(156, 163, 175, 0.1)"
    overview: str = "#999999"
    fallback: str = "#6b7280"

    def resolve(self, token: str) -> str:
        key = str(token or "").strip().lower()
        return self.colors.get(key, self.fallback)

    __call__ = resolve


def palette_from_config(config: PaletteConfig) -> Palette:
    colors = {
        "hard": config.hard,
        "medium": config.medium,
        "easy": config.easy,
        "accepted": config.accepted,
        "failed": config.failed,
    }
    colors.update({name.lower(): value for name, value in config.languages.items()})
    return Palette(
        colors=colors,
        ghost=config.ghost,
        overview=config.overview,
        fallback=config.fallback,
    )


def default_palette() -> Palette:
    return palette_from_config(PaletteConfig())
