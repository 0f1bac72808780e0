from __future__ import annotations

import re
from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.colors import to_rgba
from matplotlib.figure import Figure

RGBA_PATTERN = re.compile(
    r"^rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+)\s*)?\)$"
)


def css_to_rgba(color: str, opacity: float = 1.0) -> tuple[float, float, float, float]:
    """Matplotlib RGBA for hex/named colours and CSS ``rgb()``/``rgba()`` strings."""
    match = RGBA_PATTERN.match(color.strip())
    if match:
        red, green, blue, alpha = match.groups()
        base = (
            float(red) / 255.0,
            float(green) / 255.0,
            float(blue) / 255.0,
            float(alpha) if alpha is not None else 1.0,
        )
    else:
        base = to_rgba(color)
    return (base[0], base[1], base[2], max(min(base[3] * opacity, 1.0), 0.0))


def save_figure(figure: Figure, path: Path, dpi: int | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    figure.savefig(path, dpi=dpi)
    return path


def close_figure(figure: Figure) -> None:
    plt.close(figure)
