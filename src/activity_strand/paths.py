from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from activity_strand.config import OutputsConfig

ARTIFACT_STEM = "activity_strand"
TABLE_STEM = "time_blocks"


@dataclass(frozen=True)
class OutputPaths:
    """Folder layout of one `render` run: tables/, figures/ and summary/ under the root."""

    root: Path
    outputs: OutputsConfig

    @property
    def tables(self) -> Path:
        return self.root / "tables"

    @property
    def figures(self) -> Path:
        return self.root / "figures"

    @property
    def summary(self) -> Path:
        return self.root / "summary"

    @property
    def table_file(self) -> Path:
        return self.tables / f"{TABLE_STEM}.{self.outputs.tables_format}"

    @property
    def figure_file(self) -> Path:
        return self.figures / f"{ARTIFACT_STEM}.{self.outputs.figures_format}"

    @property
    def summary_file(self) -> Path:
        return self.summary / f"{ARTIFACT_STEM}.json"


def build_output_paths(out_dir: Path, outputs: OutputsConfig | None = None) -> OutputPaths:
    paths = OutputPaths(root=out_dir, outputs=outputs or OutputsConfig())
    for folder in (paths.tables, paths.figures, paths.summary):
        folder.mkdir(parents=True, exist_ok=True)
    return paths
