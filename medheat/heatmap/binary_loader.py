from __future__ import annotations

import os
import struct
from pathlib import Path
from typing import Union

import numpy as np

from ..core.types import HeatmapFormat, HeatmapMatrix
from ..utils.errors import FormatError, MedHeatIOError
from .base import BaseHeatmapLoader, ensure_finite

HEADER = struct.Struct("<II")
FLOAT_DTYPE = np.dtype("<f4")


class BinaryHeatmapLoader(BaseHeatmapLoader):
    """``u32 rows | u32 cols | rows*cols f32``, all little-endian, row-major."""

    name = "Binary"
    format = HeatmapFormat.BINARY
    extensions = {".bin", ".raw", ".dat"}

    def parse(self, path: Path) -> HeatmapMatrix:
        try:
            with open(path, "rb") as fh:
                header = fh.read(HEADER.size)
                if len(header) < HEADER.size:
                    raise MedHeatIOError(
                        f"{path}: truncated header ({len(header)} of {HEADER.size} bytes)", path=path
                    )
                rows, cols = HEADER.unpack(header)
                if rows == 0 or cols == 0:
                    raise FormatError(f"{path}: binary heatmap declares no values ({rows}x{cols})")
                expected = rows * cols * FLOAT_DTYPE.itemsize
                # the header is untrusted; size the read by what the file holds
                available = os.fstat(fh.fileno()).st_size - HEADER.size
                if available < expected:
                    raise MedHeatIOError(
                        f"{path}: truncated data ({available} of {expected} bytes for {rows}x{cols})", path=path
                    )
                payload = fh.read(expected)
        except MedHeatIOError:
            raise
        except OSError as exc:
            raise MedHeatIOError(f"Failed to read {path}: {exc}", path=path) from exc

        if len(payload) < expected:
            raise MedHeatIOError(
                f"{path}: truncated data ({len(payload)} of {expected} bytes for {rows}x{cols})", path=path
            )
        values = np.frombuffer(payload, dtype=FLOAT_DTYPE).reshape(rows, cols)
        return HeatmapMatrix(ensure_finite(values.astype(np.float32), path))


def write_binary_heatmap(path: Union[str, Path], matrix: HeatmapMatrix) -> Path:
    path = Path(path)
    with open(path, "wb") as fh:
        fh.write(HEADER.pack(matrix.rows, matrix.cols))
        fh.write(np.ascontiguousarray(matrix.values, dtype=FLOAT_DTYPE).tobytes())
    return path
