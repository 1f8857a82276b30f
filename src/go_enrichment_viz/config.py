# go-enrichment-viz/src/go_enrichment_viz/config.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

# User overrides are picked up from the working directory when no path is given.
USER_CONFIG_NAME = "go_viz_config.json"

OutputFormat = Literal["png", "pdf", "svg", "jpg"]
BarplotSortBy = Literal["count", "pvalue"]
DotplotSortBy = Literal["gene_ratio", "pvalue"]
SortOrder = Literal["asc", "desc"]
LayoutName = Literal["force", "fr", "kk", "circle", "star"]
NodeSizeBy = Literal["count", "pvalue", "p_value", "fold_enrichment"]
HeatmapValue = Literal["pvalue", "fold_enrichment", "count"]
PlotType = Literal["barplot", "dotplot", "heatmap", "network"]

PLOT_SUBDIRS: dict[str, str] = {
    "barplot": "Barplots",
    "dotplot": "Dotplots",
    "heatmap": "Heatmaps",
    "network": "Networks",
}


class VizConfig(BaseModel):
    """
    Settings for parsing, filtering and plotting.

    Immutable: derive variants with `with_overrides` instead of mutating.
    Unknown keys are rejected so that typos in a user config fail loudly.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # ===== Data processing =====
    fold_enrichment_threshold: float = 10.0
    top_n_terms: int = 20
    header_line_number: int = Field(default=12, ge=1)
    data_start_line: int = Field(default=13, ge=1)
    min_file_lines: int = Field(default=12, ge=0)
    fold_enrichment_ceiling: float = 100.0
    strict_validation: bool = True

    # ===== Visualization =====
    output_format: OutputFormat = "png"
    output_dpi: int = 300
    plot_width: float = 12.0
    plot_height: float = 8.0
    color_low: str = "blue"
    color_high: str = "red"
    point_size_min: float = Field(default=3.0, gt=0)
    point_size_max: float = Field(default=10.0, gt=0)
    font_size_axis_text: float = 10.0
    font_size_axis_title: float = 12.0
    font_size_plot_title: float = 14.0
    font_size_dotplot_y: float = 15.0

    # ===== Ordering =====
    barplot_sort_by: BarplotSortBy = "count"
    dotplot_sort_by: DotplotSortBy = "gene_ratio"
    secondary_sort_order: SortOrder = "desc"

    # ===== Directories / files =====
    input_dir: str = "Input"
    output_dir: str = "Output"
    input_file_pattern: str = r"\.txt$"

    # ===== Logging =====
    verbose: bool = True

    # ===== Network =====
    network_similarity_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    network_layout: LayoutName = "force"
    network_node_size_by: NodeSizeBy = "count"
    network_max_terms: int = Field(default=100, ge=2)
    network_iterations: int = Field(default=50, ge=0)
    network_seed: int = 42

    # ===== Heatmap =====
    heatmap_value_type: HeatmapValue = "pvalue"
    heatmap_cluster_rows: bool = True
    heatmap_cluster_cols: bool = True

    @field_validator(
        "fold_enrichment_threshold",
        "top_n_terms",
        "output_dpi",
        "plot_width",
        "plot_height",
    )
    @classmethod
    def _positive(cls, v: Any, info: ValidationInfo) -> Any:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be a positive number")
        return v

    @model_validator(mode="after")
    def _check_ranges(self) -> VizConfig:
        if self.point_size_min > self.point_size_max:
            raise ValueError(
                f"point_size_min ({self.point_size_min}) > point_size_max ({self.point_size_max})"
            )
        if self.data_start_line <= self.header_line_number:
            raise ValueError(
                f"data_start_line ({self.data_start_line}) must come after "
                f"header_line_number ({self.header_line_number})"
            )
        return self

    # -------------------------
    # construction
    # -------------------------
    @classmethod
    def from_json(cls, path: str | Path) -> VizConfig:
        p = Path(path)
        try:
            obj = json.loads(p.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise FileNotFoundError(f"Config JSON not found: {p}") from e
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config: {p} ({e.msg} at line {e.lineno})") from e

        if not isinstance(obj, dict):
            raise ValueError(f"Config JSON must be an object/dict: {p}")
        try:
            return cls.model_validate(obj)
        except ValidationError as e:
            raise ValueError(f"Invalid config in {p}:\n{e}") from e

    def with_overrides(self, **overrides: Any) -> VizConfig:
        """Validated copy with some fields replaced (None values are ignored)."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        if not updates:
            return self
        return type(self).model_validate({**self.model_dump(), **updates})

    # -------------------------
    # derived paths / display
    # -------------------------
    def plot_dir(self, plot_type: PlotType) -> Path:
        if plot_type not in PLOT_SUBDIRS:
            raise ValueError(f"Unknown plot_type: {plot_type}")
        return Path(self.output_dir) / PLOT_SUBDIRS[plot_type]

    def plot_dirs(self) -> list[Path]:
        return [self.plot_dir(t) for t in PLOT_SUBDIRS]  # type: ignore[arg-type]

    def output_path(self, input_filename: str, plot_type: PlotType) -> Path:
        stem = Path(input_filename).stem
        return self.plot_dir(plot_type) / f"{stem}_{plot_type}.{self.output_format}"

    def describe(self) -> str:
        lines = ["===== Gene Ontology Analysis Configuration =====", ""]
        for key, value in sorted(self.model_dump().items()):
            lines.append(f"{key:<30}: {value}")
        return "\n".join(lines) + "\n"


def load_config(path: str | Path | None = None, *, search_cwd: bool = True) -> VizConfig:
    """
    Resolve the effective configuration.

    - explicit `path`: must exist; its keys override the defaults
    - otherwise, `go_viz_config.json` in the working directory (if present)
    - otherwise, defaults
    """
    if path is not None:
        return VizConfig.from_json(path)
    user = Path.cwd() / USER_CONFIG_NAME
    if search_cwd and user.is_file():
        return VizConfig.from_json(user)
    return VizConfig()
