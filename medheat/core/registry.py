from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

from .io import detect_heatmap_format
from .types import HeatmapFormat, HeatmapMatrix
from ..heatmap.base import BaseHeatmapLoader
from ..heatmap.binary_loader import BinaryHeatmapLoader
from ..heatmap.csv_loader import CsvHeatmapLoader
from ..heatmap.json_loader import JsonHeatmapLoader
from ..heatmap.npy_loader import NpyHeatmapLoader
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

_LOADERS: List[BaseHeatmapLoader] = [
    JsonHeatmapLoader(),
    CsvHeatmapLoader(),
    BinaryHeatmapLoader(),
    NpyHeatmapLoader(),
]
_LOADER_BY_FORMAT: Dict[HeatmapFormat, BaseHeatmapLoader] = {loader.format: loader for loader in _LOADERS}


def list_loaders() -> List[BaseHeatmapLoader]:
    return list(_LOADERS)


def get_loader(fmt: HeatmapFormat) -> BaseHeatmapLoader:
    return _LOADER_BY_FORMAT[fmt]


def load_heatmap(path: Union[str, Path], fmt: Optional[HeatmapFormat] = None) -> HeatmapMatrix:
    """Parse a heatmap file with the loader registered for its format."""
    if fmt is None:
        fmt = detect_heatmap_format(path)
    loader = get_loader(fmt)
    matrix = loader.load(Path(path))
    LOGGER.info("Loaded %s heatmap %s: %dx%d", loader.name, path, matrix.rows, matrix.cols)
    return matrix
