from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from ..utils.errors import ValidationError


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, order="C", copy=True)
    arr.setflags(write=False)
    return arr


class _NamedKind(Enum):
    @classmethod
    def parse(cls, name: str):
        """Case-insensitive lookup of a member by its value."""
        token = str(name).strip().lower()
        for member in cls:
            if member.value == token:
                return member
        choices = ", ".join(m.value for m in cls)
        raise ValidationError(f"Unknown {cls._label()} '{name}'. Expected one of: {choices}.")

    @classmethod
    def _label(cls) -> str:
        return cls.__name__

    @classmethod
    def names(cls):
        return [m.value for m in cls]


class ColorMapKind(_NamedKind):
    RED = "red"
    HOT = "hot"
    JET = "jet"
    VIRIDIS = "viridis"
    PLASMA = "plasma"

    @classmethod
    def _label(cls) -> str:
        return "colormap"


class NormalizationKind(_NamedKind):
    MINMAX = "minmax"
    ZSCORE = "zscore"
    PERCENTILE = "percentile"

    @classmethod
    def _label(cls) -> str:
        return "normalization"


class HeatmapFormat(Enum):
    JSON = "json"
    CSV = "csv"
    BINARY = "binary"
    NPY = "npy"


@dataclass(frozen=True)
class RasterImage:
    """Decoded 8-bit single-channel base image.

    ``bits_per_sample`` and ``samples_per_pixel`` record the layout the
    pixels were decoded from; ``pixels`` is always ``uint8`` of shape
    ``(height, width)``.
    """
    pixels: np.ndarray
    width: int
    height: int
    bits_per_sample: int = 8
    samples_per_pixel: int = 1

    def __post_init__(self):
        object.__setattr__(self, "pixels", _frozen(self.pixels.astype(np.uint8, copy=False)))


@dataclass(frozen=True)
class HeatmapMatrix:
    values: np.ndarray  # (rows, cols) float32, row-major

    def __post_init__(self):
        values = np.atleast_2d(np.asarray(self.values, dtype=np.float32))
        object.__setattr__(self, "values", _frozen(values))

    @property
    def rows(self) -> int:
        return int(self.values.shape[0])

    @property
    def cols(self) -> int:
        return int(self.values.shape[1])

    @property
    def shape(self):
        return self.rows, self.cols


@dataclass(frozen=True)
class RGBAImage:
    pixels: np.ndarray  # (height, width, 4) uint8

    def __post_init__(self):
        object.__setattr__(self, "pixels", _frozen(self.pixels.astype(np.uint8, copy=False)))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True)
class OverlayOptions:
    colormap: ColorMapKind = ColorMapKind.HOT
    normalization: NormalizationKind = NormalizationKind.MINMAX
    opacity: float = 0.5


@dataclass
class OverlayResult:
    base: RGBAImage
    heat_layer: RGBAImage
    composite: RGBAImage
    raster: Optional[RasterImage] = None
    used_demo_base: bool = False
    used_gradient_heatmap: bool = False
