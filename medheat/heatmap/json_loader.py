from __future__ import annotations

import json
from numbers import Real
from pathlib import Path

import numpy as np

from ..core.types import HeatmapFormat, HeatmapMatrix
from ..utils.errors import FormatError, MedHeatIOError
from ..utils.logging import get_logger
from .base import BaseHeatmapLoader, ensure_finite

LOGGER = get_logger(__name__)


class JsonHeatmapLoader(BaseHeatmapLoader):
    name = "JSON"
    format = HeatmapFormat.JSON
    extensions = {".json"}

    def parse(self, path: Path) -> HeatmapMatrix:
        try:
            with open(path, "r", encoding="utf-8") as fh:
                doc = json.load(fh)
        except json.JSONDecodeError as exc:
            raise FormatError(f"{path}: invalid JSON ({exc})") from exc
        except UnicodeDecodeError as exc:
            raise FormatError(f"{path}: JSON heatmap is not UTF-8 text") from exc
        except OSError as exc:
            raise MedHeatIOError(f"Failed to read {path}: {exc}", path=path) from exc
        return parse_json_document(doc, source=str(path))


def parse_json_document(doc, source: str = "<json>") -> HeatmapMatrix:
    """Build a matrix from ``{"data": [[...], ...]}``.

    The first row fixes the column count. Later rows are not length-checked:
    longer rows are cut to that width and shorter ones are padded with 0.
    """
    if not isinstance(doc, dict) or "data" not in doc:
        raise FormatError(f"{source}: missing 'data' field")
    data = doc["data"]
    if not isinstance(data, list) or not all(isinstance(row, list) for row in data):
        raise FormatError(f"{source}: 'data' must be an array of numeric arrays")
    if not data or not data[0]:
        raise FormatError(f"{source}: 'data' holds no values")

    rows = len(data)
    cols = len(data[0])
    out = np.zeros((rows, cols), dtype=np.float32)
    ragged = 0
    for r, row in enumerate(data):
        for c, value in enumerate(row):
            if isinstance(value, bool) or not isinstance(value, Real):
                raise FormatError(f"{source}: non-numeric value {value!r} at row {r}, column {c}")
            if c < cols:
                out[r, c] = _to_float(value, source, r, c)
        if len(row) != cols:
            ragged += 1
    if ragged:
        LOGGER.warning("%s: %d row(s) differ from the first row's width %d", source, ragged, cols)
    return HeatmapMatrix(ensure_finite(out, source))


def _to_float(value, source: str, row: int, col: int) -> float:
    try:
        return float(value)
    except OverflowError:
        raise FormatError(f"{source}: value out of range at row {row}, column {col}") from None
