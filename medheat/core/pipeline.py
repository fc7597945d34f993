from __future__ import annotations

import math
from pathlib import Path
from typing import Optional, Tuple, Union

from .io import detect_heatmap_format, ensure_implemented
from .preprocess_heatmap import normalize, resize_nearest
from .preprocess_image import demo_base_image, load_base_image, to_rgba
from .registry import load_heatmap
from .types import (
    ColorMapKind,
    HeatmapFormat,
    HeatmapMatrix,
    NormalizationKind,
    OverlayOptions,
    OverlayResult,
    RasterImage,
    RGBAImage,
)
from ..utils.errors import DimensionMismatch, FormatError, MedHeatIOError, UnsupportedFormat, ValidationError
from ..utils.logging import get_logger
from ..utils.viz import apply_colormap, composite_over, gradient_heat_layer

LOGGER = get_logger(__name__)

PathLike = Union[str, Path]

DEMO_WIDTH = 512
DEMO_HEIGHT = 512

BASE_RECOVERABLE = (MedHeatIOError, FormatError, UnsupportedFormat, DimensionMismatch)
HEATMAP_RECOVERABLE = (MedHeatIOError, FormatError)


def validate_options(
    colormap: Union[str, ColorMapKind],
    normalization: Union[str, NormalizationKind],
    opacity: float,
    heatmap_path: Optional[PathLike] = None,
) -> Tuple[OverlayOptions, Optional[HeatmapFormat]]:
    """Check run options before any file is touched.

    Returns the parsed options and the heatmap format resolved from the
    file extension (``None`` when no heatmap is given). Unknown or
    unimplemented heatmap formats fail here rather than at load time.
    """
    try:
        opacity = float(opacity)
    except (TypeError, ValueError):
        raise ValidationError(f"Opacity must be a number, got {opacity!r}") from None
    if math.isnan(opacity) or not 0.0 <= opacity <= 1.0:
        raise ValidationError(f"Opacity must lie in [0.0, 1.0], got {opacity}")

    if not isinstance(colormap, ColorMapKind):
        colormap = ColorMapKind.parse(colormap)
    if not isinstance(normalization, NormalizationKind):
        normalization = NormalizationKind.parse(normalization)

    fmt = None
    if heatmap_path is not None:
        fmt = ensure_implemented(detect_heatmap_format(heatmap_path))

    return OverlayOptions(colormap=colormap, normalization=normalization, opacity=opacity), fmt


def build_heat_layer(matrix: HeatmapMatrix, rows: int, cols: int, options: OverlayOptions) -> RGBAImage:
    """Resize to the base size, normalize, then color the matrix."""
    if matrix.shape != (rows, cols):
        LOGGER.debug("Resizing heatmap %dx%d -> %dx%d", matrix.rows, matrix.cols, rows, cols)
        matrix = resize_nearest(matrix, rows, cols)
    normalized = normalize(matrix, options.normalization)
    return apply_colormap(normalized, options.colormap, options.opacity)


def load_base_or_demo(input_path: Optional[PathLike], demo: bool = False) -> Tuple[RasterImage, bool]:
    if demo or input_path is None:
        LOGGER.info("Using %dx%d demo base image", DEMO_WIDTH, DEMO_HEIGHT)
        return demo_base_image(DEMO_WIDTH, DEMO_HEIGHT), True
    try:
        raster = load_base_image(input_path)
    except BASE_RECOVERABLE as exc:
        LOGGER.warning("Falling back to demo base image: %s", exc)
        return demo_base_image(DEMO_WIDTH, DEMO_HEIGHT), True
    LOGGER.info(
        "Decoded base image %s: %dx%d (%d-bit, %d sample(s))",
        input_path, raster.width, raster.height, raster.bits_per_sample, raster.samples_per_pixel,
    )
    return raster, False


def load_heatmap_or_none(heatmap_path: Optional[PathLike], fmt: Optional[HeatmapFormat] = None) -> Optional[HeatmapMatrix]:
    if heatmap_path is None:
        return None
    try:
        return load_heatmap(heatmap_path, fmt)
    except HEATMAP_RECOVERABLE as exc:
        LOGGER.warning("Heatmap not usable, using gradient overlay instead: %s", exc)
        return None


def run_overlay(
    input_path: Optional[PathLike],
    options: OverlayOptions,
    heatmap_path: Optional[PathLike] = None,
    heatmap_format: Optional[HeatmapFormat] = None,
    demo: bool = False,
) -> OverlayResult:
    raster, used_demo = load_base_or_demo(input_path, demo=demo)
    base = to_rgba(raster)

    matrix = load_heatmap_or_none(heatmap_path, heatmap_format)
    if matrix is None:
        heat_layer = gradient_heat_layer(raster.width, raster.height)
    else:
        heat_layer = build_heat_layer(matrix, raster.height, raster.width, options)

    composite = composite_over(heat_layer, base)
    return OverlayResult(
        base=base,
        heat_layer=heat_layer,
        composite=composite,
        raster=raster,
        used_demo_base=used_demo,
        used_gradient_heatmap=matrix is None,
    )
