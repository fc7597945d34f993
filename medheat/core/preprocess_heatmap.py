from __future__ import annotations

import math
from typing import Callable, Dict

import numpy as np

from .types import HeatmapMatrix, NormalizationKind
from ..utils.errors import ValidationError

PERCENTILE_LOW = 0.05
PERCENTILE_HIGH = 0.95


def resize_nearest(matrix: HeatmapMatrix, target_rows: int, target_cols: int) -> HeatmapMatrix:
    """Nearest-neighbour resample; target cell (r, c) reads source
    (floor(r / target_rows * src_rows), floor(c / target_cols * src_cols)),
    clamped to the last source row/column.
    """
    if target_rows <= 0 or target_cols <= 0:
        raise ValidationError(f"Target size must be positive, got {target_rows}x{target_cols}")
    src_rows, src_cols = matrix.shape
    if src_rows == 0 or src_cols == 0:
        raise ValidationError("Cannot resize an empty heatmap")

    # integer form of floor(r / target * src), exact for every r
    row_idx = np.minimum(np.arange(target_rows, dtype=np.int64) * src_rows // target_rows, src_rows - 1)
    col_idx = np.minimum(np.arange(target_cols, dtype=np.int64) * src_cols // target_cols, src_cols - 1)
    return HeatmapMatrix(matrix.values[np.ix_(row_idx, col_idx)])


def _minmax(values: np.ndarray) -> np.ndarray:
    lo = values.min()
    hi = values.max()
    if hi == lo:
        return values
    return (values - lo) / (hi - lo)


def _zscore(values: np.ndarray) -> np.ndarray:
    # all-equal values have a population std of exactly 0
    if values.min() == values.max():
        return values
    std = values.std()
    if std == 0:
        return values
    return (values - values.mean()) / std


def _percentile(values: np.ndarray) -> np.ndarray:
    ordered = np.sort(values, axis=None)
    n = ordered.size
    lo = ordered[min(int(math.floor(PERCENTILE_LOW * n)), n - 1)]
    hi = ordered[min(int(math.floor(PERCENTILE_HIGH * n)), n - 1)]
    if hi == lo:
        return values
    return (values - lo) / (hi - lo)


_NORMALIZERS: Dict[NormalizationKind, Callable[[np.ndarray], np.ndarray]] = {
    NormalizationKind.MINMAX: _minmax,
    NormalizationKind.ZSCORE: _zscore,
    NormalizationKind.PERCENTILE: _percentile,
}


def normalize(matrix: HeatmapMatrix, kind: NormalizationKind) -> HeatmapMatrix:
    """Rescale over the whole matrix, then clamp every cell to [0, 1].

    Degenerate distributions (zero range, zero std, equal percentiles) skip
    the rescale; the clamp still applies.
    """
    if matrix.values.size == 0:
        return matrix
    values = matrix.values.astype(np.float64)
    scaled = _NORMALIZERS[kind](values)
    return HeatmapMatrix(np.clip(scaled, 0.0, 1.0))
