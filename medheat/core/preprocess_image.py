from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np
import pydicom
import pydicom.errors
from PIL import Image, UnidentifiedImageError

from .types import RasterImage, RGBAImage
from ..utils.errors import DimensionMismatch, FormatError, MedHeatIOError, UnsupportedFormat
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

DICOM_EXTS = {".dcm", ".dicom"}
SUPPORTED_BITS = (8, 16)
SUPPORTED_SAMPLES = (1, 3)

# ITU-R 601-2 luma, same weights as PIL's convert("L")
LUMA_WEIGHTS = np.array([299, 587, 114], dtype=np.float64) / 1000.0


def decode_pixels(buffer: bytes, bits_allocated: int, samples_per_pixel: int, rows: int, columns: int) -> RasterImage:
    """Decode a raw sample buffer into an 8-bit single-channel raster.

    16-bit samples are little-endian unsigned and get a full-range linear
    rescale to 0..255, which approximates but does not replace clinical
    windowing. Three-sample pixels are interleaved RGB and reduced to luma.
    """
    if bits_allocated not in SUPPORTED_BITS or samples_per_pixel not in SUPPORTED_SAMPLES:
        raise UnsupportedFormat(
            f"Unsupported pixel layout: {bits_allocated}-bit, {samples_per_pixel} sample(s) per pixel."
        )

    dtype = np.uint8 if bits_allocated == 8 else np.dtype("<u2")
    bytes_per_sample = bits_allocated // 8
    expected = rows * columns * samples_per_pixel
    if len(buffer) != expected * bytes_per_sample:
        raise DimensionMismatch(
            f"Pixel buffer holds {len(buffer)} bytes, expected {expected * bytes_per_sample} "
            f"for {rows}x{columns} at {bits_allocated}-bit x{samples_per_pixel}."
        )

    samples = np.frombuffer(buffer, dtype=dtype)
    if bits_allocated == 16:
        samples = rescale_to_uint8(samples)

    if samples_per_pixel == 1:
        gray = samples.reshape(rows, columns)
    else:
        gray = rgb_to_luma(samples.reshape(rows, columns, 3))

    return RasterImage(
        pixels=gray,
        width=columns,
        height=rows,
        bits_per_sample=bits_allocated,
        samples_per_pixel=samples_per_pixel,
    )


def rescale_to_uint8(samples: np.ndarray) -> np.ndarray:
    values = samples.astype(np.float64)
    if values.size == 0:
        return values.astype(np.uint8)
    lo = values.min()
    hi = values.max()
    span = hi - lo if hi != lo else 1.0
    scaled = np.clip((values - lo) / span * 255.0, 0.0, 255.0)
    return np.rint(scaled).astype(np.uint8)


def rgb_to_luma(rgb: np.ndarray) -> np.ndarray:
    luma = rgb.astype(np.float64) @ LUMA_WEIGHTS
    return np.rint(np.clip(luma, 0.0, 255.0)).astype(np.uint8)


def to_rgba(raster: RasterImage) -> RGBAImage:
    gray = raster.pixels
    rgba = np.empty((raster.height, raster.width, 4), dtype=np.uint8)
    rgba[..., :3] = gray[..., None]
    rgba[..., 3] = 255
    return RGBAImage(rgba)


def demo_base_image(width: int = 512, height: int = 512) -> RasterImage:
    """Synthetic diagonal gray ramp used when no base image can be decoded."""
    ys, xs = np.mgrid[0:height, 0:width]
    denom = max(width + height - 2, 1)
    gray = np.rint((xs + ys) * 255.0 / denom).astype(np.uint8)
    return RasterImage(pixels=gray, width=width, height=height)


def load_base_image(path: Union[str, Path]) -> RasterImage:
    path = Path(path)
    if not path.is_file():
        raise MedHeatIOError(f"Base image not found: {path}", path=path)
    if path.suffix.lower() in DICOM_EXTS or _has_dicom_preamble(path):
        return _load_dicom(path)
    return _load_raster(path)


def _has_dicom_preamble(path: Path) -> bool:
    with open(path, "rb") as fh:
        head = fh.read(132)
    return len(head) == 132 and head[128:132] == b"DICM"


def _load_dicom(path: Path) -> RasterImage:
    try:
        ds = pydicom.dcmread(str(path))
    except (pydicom.errors.InvalidDicomError, EOFError) as exc:
        raise FormatError(f"Unreadable DICOM file {path}: {exc}") from exc
    except OSError as exc:
        raise MedHeatIOError(f"Failed to read DICOM file {path}: {exc}", path=path) from exc

    missing = [kw for kw in ("Rows", "Columns", "BitsAllocated", "PixelData") if kw not in ds]
    if missing:
        raise FormatError(f"DICOM file {path} lacks {', '.join(missing)}.")

    rows = int(ds.Rows)
    columns = int(ds.Columns)
    bits = int(ds.BitsAllocated)
    samples_per_pixel = int(ds.get("SamplesPerPixel", 1))
    if bits not in SUPPORTED_BITS or samples_per_pixel not in SUPPORTED_SAMPLES:
        raise UnsupportedFormat(
            f"{path}: {bits}-bit with {samples_per_pixel} sample(s) per pixel is not supported."
        )

    if _is_native_layout(ds):
        frame_bytes = rows * columns * samples_per_pixel * bits // 8
        buffer = bytes(ds.PixelData[:frame_bytes])
    else:
        buffer = _pixel_array_buffer(ds, bits)

    LOGGER.debug("Decoding DICOM %s: %dx%d, %d-bit, %d sample(s)", path.name, columns, rows, bits, samples_per_pixel)
    return decode_pixels(buffer, bits, samples_per_pixel, rows, columns)


def _is_native_layout(ds) -> bool:
    """True when PixelData already holds unsigned, interleaved, little-endian samples."""
    file_meta = getattr(ds, "file_meta", None)
    syntax = file_meta.get("TransferSyntaxUID") if file_meta is not None else None
    if syntax is not None and (syntax.is_compressed or not syntax.is_little_endian):
        return False
    if int(ds.get("PixelRepresentation", 0)) == 1:
        return False
    return int(ds.get("PlanarConfiguration", 0)) == 0


def _pixel_array_buffer(ds, bits: int) -> bytes:
    """Re-serialize pixel_array into the interleaved little-endian layout."""
    try:
        arr = ds.pixel_array
    except (RuntimeError, NotImplementedError, ValueError) as exc:
        raise FormatError(f"Cannot decode DICOM pixel data: {exc}") from exc
    expected_ndim = 3 if int(ds.get("SamplesPerPixel", 1)) == 3 else 2
    if arr.ndim > expected_ndim:
        arr = arr[0]
    if bits == 8:
        return arr.astype(np.uint8).tobytes()
    shifted = arr.astype(np.int64)
    shifted -= shifted.min() if shifted.size else 0
    return np.clip(shifted, 0, 0xFFFF).astype("<u2").tobytes()


def _load_raster(path: Path) -> RasterImage:
    try:
        with Image.open(path) as img:
            img.load()
            mode = img.mode
            if mode == "L":
                arr, bits, spp = np.asarray(img, dtype=np.uint8), 8, 1
            elif mode.startswith("I"):
                raw = np.asarray(img).astype(np.int64)
                arr, bits, spp = np.clip(raw, 0, 0xFFFF).astype("<u2"), 16, 1
            else:
                arr, bits, spp = np.asarray(img.convert("RGB"), dtype=np.uint8), 8, 3
    except UnidentifiedImageError as exc:
        raise FormatError(f"Unrecognized image file {path}: {exc}") from exc
    except OSError as exc:
        raise MedHeatIOError(f"Failed to read image {path}: {exc}", path=path) from exc

    rows, columns = arr.shape[:2]
    LOGGER.debug("Decoding %s (%s): %dx%d", path.name, mode, columns, rows)
    return decode_pixels(np.ascontiguousarray(arr).tobytes(), bits, spp, rows, columns)
