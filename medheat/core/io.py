from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from .types import HeatmapFormat
from ..utils.errors import FormatError


HEATMAP_EXTS = {
    ".json": HeatmapFormat.JSON,
    ".csv": HeatmapFormat.CSV,
    ".bin": HeatmapFormat.BINARY,
    ".raw": HeatmapFormat.BINARY,
    ".dat": HeatmapFormat.BINARY,
    ".npy": HeatmapFormat.NPY,
}
IMPLEMENTED_HEATMAP_FORMATS = {HeatmapFormat.JSON, HeatmapFormat.CSV, HeatmapFormat.BINARY}


def detect_heatmap_format(file_path: Union[str, Path]) -> HeatmapFormat:
    ext = os.path.splitext(str(file_path))[1].lower()
    fmt = HEATMAP_EXTS.get(ext)
    if fmt is None:
        known = ", ".join(sorted(HEATMAP_EXTS))
        raise FormatError(f"Unsupported heatmap file type '{ext or file_path}'. Expected one of: {known}.")
    return fmt


def ensure_implemented(fmt: HeatmapFormat) -> HeatmapFormat:
    if fmt not in IMPLEMENTED_HEATMAP_FORMATS:
        raise FormatError(f"Heatmap format '{fmt.value}' is not yet supported.")
    return fmt
