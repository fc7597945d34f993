from __future__ import annotations

import io
from pathlib import Path
from typing import Dict, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from ..core.types import ColorMapKind, HeatmapMatrix, RasterImage, RGBAImage
from .errors import DimensionMismatch, MedHeatIOError

Breakpoints = Tuple[Sequence[float], Sequence[Tuple[int, int, int]]]

# Piecewise-linear ramps: positions in [0, 1] and the RGB triple at each.
# Viridis and Plasma are coarse approximations of the matplotlib maps.
COLORMAP_BREAKPOINTS: Dict[ColorMapKind, Breakpoints] = {
    ColorMapKind.RED: (
        (0.0, 1.0),
        ((0, 0, 0), (255, 0, 0)),
    ),
    ColorMapKind.HOT: (
        (0.0, 0.33, 0.66, 1.0),
        ((0, 0, 0), (255, 0, 0), (255, 255, 0), (255, 255, 255)),
    ),
    ColorMapKind.JET: (
        (0.0, 0.25, 0.5, 0.75, 1.0),
        ((0, 0, 255), (0, 255, 255), (0, 255, 0), (255, 255, 0), (255, 0, 0)),
    ),
    ColorMapKind.VIRIDIS: (
        (0.0, 1.0 / 3.0, 2.0 / 3.0, 1.0),
        ((68, 1, 84), (49, 104, 142), (53, 183, 121), (253, 231, 37)),
    ),
    ColorMapKind.PLASMA: (
        (0.0, 0.5, 1.0),
        ((13, 8, 135), (204, 71, 120), (240, 249, 33)),
    ),
}

GRADIENT_ALPHA_MIN = 50
GRADIENT_ALPHA_MAX = 200


def colormap_rgb(values: np.ndarray, kind: ColorMapKind) -> np.ndarray:
    """Map scalars to uint8 RGB of shape ``values.shape + (3,)``.

    Values are clamped to [0, 1] first.
    """
    v = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    positions, colors = COLORMAP_BREAKPOINTS[kind]
    colors = np.asarray(colors, dtype=np.float64)
    rgb = np.empty(v.shape + (3,), dtype=np.float64)
    for channel in range(3):
        rgb[..., channel] = np.interp(v, positions, colors[:, channel])
    return np.rint(np.clip(rgb, 0.0, 255.0)).astype(np.uint8)


def opacity_to_alpha(opacity: float) -> int:
    return int(np.rint(np.clip(opacity, 0.0, 1.0) * 255.0))


def apply_colormap(matrix: HeatmapMatrix, kind: ColorMapKind, opacity: float) -> RGBAImage:
    rgba = np.empty((matrix.rows, matrix.cols, 4), dtype=np.uint8)
    rgba[..., :3] = colormap_rgb(matrix.values, kind)
    rgba[..., 3] = opacity_to_alpha(opacity)
    return RGBAImage(rgba)


def composite_over(src: RGBAImage, dst: RGBAImage) -> RGBAImage:
    """Straight-alpha "over": ``out = src * a + dst * (1 - a)`` per channel."""
    if src.pixels.shape != dst.pixels.shape:
        raise DimensionMismatch(
            f"Heat layer is {src.width}x{src.height} but base image is {dst.width}x{dst.height}"
        )
    s = src.pixels.astype(np.float64) / 255.0
    d = dst.pixels.astype(np.float64) / 255.0
    a = s[..., 3:4]
    out = np.empty_like(s)
    out[..., :3] = s[..., :3] * a + d[..., :3] * (1.0 - a)
    out[..., 3:4] = a + d[..., 3:4] * (1.0 - a)
    return RGBAImage(np.rint(np.clip(out, 0.0, 1.0) * 255.0).astype(np.uint8))


def gradient_heat_layer(width: int, height: int) -> RGBAImage:
    """Stand-in heat layer: red follows x, alpha runs 50..200 down the rows."""
    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(height, dtype=np.float64)
    red = np.rint(255.0 * xs / (width - 1)) if width > 1 else np.zeros(width)
    span = GRADIENT_ALPHA_MAX - GRADIENT_ALPHA_MIN
    alpha = np.rint(GRADIENT_ALPHA_MIN + span * ys / (height - 1)) if height > 1 else np.full(height, GRADIENT_ALPHA_MIN)

    rgba = np.zeros((height, width, 4), dtype=np.uint8)
    rgba[..., 0] = red[None, :]
    rgba[..., 3] = alpha[:, None]
    return RGBAImage(rgba)


def to_pil(image: Union[RGBAImage, RasterImage]) -> Image.Image:
    return Image.fromarray(np.array(image.pixels, dtype=np.uint8))


def encode_png(image: Union[RGBAImage, RasterImage]) -> bytes:
    buf = io.BytesIO()
    to_pil(image).save(buf, format="PNG")
    return buf.getvalue()


def save_png(image: Union[RGBAImage, RasterImage], path: Union[str, Path]) -> Path:
    path = Path(path)
    data = encode_png(image)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as exc:
        raise MedHeatIOError(f"Failed to write {path}: {exc}", path=path) from exc
    return path


def crop_center(img: Image.Image, center_x: float, center_y: float, size_ratio: float) -> Image.Image:
    w, h = img.size
    size_ratio = max(0.1, min(1.0, size_ratio))
    crop_w = int(w * size_ratio)
    crop_h = int(h * size_ratio)
    cx = int(w * center_x)
    cy = int(h * center_y)
    left = max(0, cx - crop_w // 2)
    upper = max(0, cy - crop_h // 2)
    right = min(w, left + crop_w)
    lower = min(h, upper + crop_h)
    return img.crop((left, upper, right, lower))
