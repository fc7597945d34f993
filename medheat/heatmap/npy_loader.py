from __future__ import annotations

from pathlib import Path

from ..core.types import HeatmapFormat, HeatmapMatrix
from ..utils.errors import FormatError
from .base import BaseHeatmapLoader


class NpyHeatmapLoader(BaseHeatmapLoader):
    name = "NumPy"
    format = HeatmapFormat.NPY
    extensions = {".npy"}
    requires_file = False

    def parse(self, path: Path) -> HeatmapMatrix:
        raise FormatError(f"Heatmap format 'npy' is not yet supported: {path}")
