from __future__ import annotations

import csv
from pathlib import Path

import numpy as np

from ..core.types import HeatmapFormat, HeatmapMatrix
from ..utils.errors import FormatError, MedHeatIOError
from .base import BaseHeatmapLoader, ensure_finite


class CsvHeatmapLoader(BaseHeatmapLoader):
    name = "CSV"
    format = HeatmapFormat.CSV
    extensions = {".csv"}

    def parse(self, path: Path) -> HeatmapMatrix:
        rows = []
        cols = None
        try:
            with open(path, "r", encoding="utf-8", newline="") as fh:
                for record in csv.reader(fh):
                    if not record or all(not field.strip() for field in record):
                        continue
                    r = len(rows)
                    if cols is None:
                        cols = len(record)
                    elif len(record) != cols:
                        raise FormatError(
                            f"{path}: row {r} has {len(record)} fields, expected {cols}"
                        )
                    rows.append([_parse_field(field, path, r, c) for c, field in enumerate(record)])
        except UnicodeDecodeError as exc:
            raise FormatError(f"{path}: CSV heatmap is not UTF-8 text") from exc
        except csv.Error as exc:
            raise FormatError(f"{path}: malformed CSV ({exc})") from exc
        except OSError as exc:
            raise MedHeatIOError(f"Failed to read {path}: {exc}", path=path) from exc

        if not rows:
            raise FormatError(f"{path}: CSV heatmap is empty")
        return HeatmapMatrix(ensure_finite(np.asarray(rows, dtype=np.float32), path))


def _parse_field(field: str, path: Path, row: int, col: int) -> float:
    try:
        return float(field.strip())
    except ValueError:
        raise FormatError(f"{path}: invalid number {field!r} at row {row}, column {col}") from None
