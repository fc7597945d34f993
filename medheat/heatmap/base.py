from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Set

import numpy as np

from ..core.types import HeatmapFormat, HeatmapMatrix
from ..utils.errors import FormatError, MedHeatIOError


class BaseHeatmapLoader(ABC):
    name: str
    format: HeatmapFormat
    extensions: Set[str]
    requires_file: bool = True

    def load(self, path: Path) -> HeatmapMatrix:
        path = Path(path)
        if self.requires_file and not path.is_file():
            raise MedHeatIOError(f"Heatmap file not found: {path}", path=path)
        return self.parse(path)

    @abstractmethod
    def parse(self, path: Path) -> HeatmapMatrix:
        raise NotImplementedError


def ensure_finite(values: np.ndarray, source) -> np.ndarray:
    """Reject NaN and infinite cells; normalization has no meaning for them."""
    bad = np.argwhere(~np.isfinite(values))
    if bad.size:
        r, c = (int(i) for i in bad[0])
        raise FormatError(f"{source}: non-finite value {values[r, c]} at row {r}, column {c}")
    return values
