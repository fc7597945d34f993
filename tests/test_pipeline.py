import struct

import numpy as np
import pytest

from medheat.core.pipeline import build_heat_layer, run_overlay, validate_options
from medheat.core.registry import load_heatmap
from medheat.core.types import ColorMapKind, HeatmapFormat, NormalizationKind, OverlayOptions
from medheat.utils.errors import FormatError, ValidationError
from medheat.utils.viz import encode_png


def test_csv_minmax_red_scenario(write_text):
    matrix = load_heatmap(write_text("h.csv", "1,2\n3,4\n"))
    options = OverlayOptions(ColorMapKind.RED, NormalizationKind.MINMAX, 1.0)
    layer = build_heat_layer(matrix, 2, 2, options).pixels
    assert layer[0, 0].tolist() == [0, 0, 0, 255]
    assert layer[1, 1].tolist() == [255, 0, 0, 255]


def test_csv_scenario_end_to_end(write_text, write_png):
    base = write_png("base.png", np.full((2, 2), 90, dtype=np.uint8))
    heatmap = write_text("h.csv", "1,2\n3,4\n")
    options, fmt = validate_options("RED", "MinMax", 1.0, heatmap)
    result = run_overlay(base, options, heatmap, fmt)
    assert not result.used_demo_base
    assert not result.used_gradient_heatmap
    assert result.composite.pixels[0, 0].tolist() == [0, 0, 0, 255]
    assert result.composite.pixels[1, 1].tolist() == [255, 0, 0, 255]


def test_heatmap_is_resized_to_base(write_text, write_png):
    base = write_png("base.png", np.zeros((4, 6), dtype=np.uint8))
    heatmap = write_text("h.json", '{"data": [[0, 1], [1, 0]]}')
    options, fmt = validate_options("hot", "minmax", 0.5, heatmap)
    result = run_overlay(base, options, heatmap, fmt)
    assert result.heat_layer.pixels.shape == (4, 6, 4)
    assert result.composite.pixels.shape == (4, 6, 4)


def test_opacity_out_of_range_fails_before_io(tmp_path):
    with pytest.raises(ValidationError, match="Opacity"):
        validate_options("hot", "minmax", 1.5, tmp_path / "does-not-exist.csv")


@pytest.mark.parametrize("opacity", [-0.1, float("nan"), "abc"])
def test_invalid_opacity_values(opacity):
    with pytest.raises(ValidationError):
        validate_options("hot", "minmax", opacity)


def test_unknown_names_fail_validation():
    with pytest.raises(ValidationError, match="colormap"):
        validate_options("rainbow", "minmax", 0.5)
    with pytest.raises(ValidationError, match="normalization"):
        validate_options("hot", "median", 0.5)


def test_names_are_case_insensitive():
    options, fmt = validate_options(" Viridis ", "ZSCORE", "0.25")
    assert options == OverlayOptions(ColorMapKind.VIRIDIS, NormalizationKind.ZSCORE, 0.25)
    assert fmt is None


def test_missing_base_falls_back_to_demo(tmp_path):
    options, _ = validate_options("hot", "minmax", 0.5)
    result = run_overlay(tmp_path / "missing.dcm", options)
    assert result.used_demo_base
    assert result.used_gradient_heatmap
    assert (result.composite.width, result.composite.height) == (512, 512)
    assert encode_png(result.composite).startswith(b"\x89PNG")


def test_undecodable_base_falls_back_to_demo(write_text):
    options, _ = validate_options("hot", "minmax", 0.5)
    result = run_overlay(write_text("broken.png", "garbage"), options)
    assert result.used_demo_base


def test_demo_flag_ignores_input(write_png):
    base = write_png("base.png", np.zeros((3, 3), dtype=np.uint8))
    options, _ = validate_options("hot", "minmax", 0.5)
    result = run_overlay(base, options, demo=True)
    assert result.used_demo_base
    assert result.base.width == 512


def test_bad_heatmap_falls_back_to_gradient(write_text, write_png):
    base = write_png("base.png", np.zeros((3, 3), dtype=np.uint8))
    heatmap = write_text("h.csv", "1,oops\n")
    options, fmt = validate_options("jet", "percentile", 0.7, heatmap)
    result = run_overlay(base, options, heatmap, fmt)
    assert result.used_gradient_heatmap
    assert result.heat_layer.pixels[2, 0, 3] == 200


def test_npy_heatmap_fails_at_validation(tmp_path):
    path = tmp_path / "h.npy"
    path.write_bytes(b"anything")
    with pytest.raises(FormatError, match="not yet supported"):
        validate_options("hot", "minmax", 0.5, path)


def test_format_resolved_from_extension(tmp_path):
    _, fmt = validate_options("hot", "minmax", 0.5, tmp_path / "weights.bin")
    assert fmt is HeatmapFormat.BINARY


def _write_binary(tmp_path, rows, cols, body=b""):
    path = tmp_path / "h.bin"
    path.write_bytes(struct.pack("<II", rows, cols) + body)
    return path


@pytest.mark.parametrize(
    "rows,cols,body",
    [
        (100000, 100000, b"\x00" * 8),
        (0xFFFFFFFF, 0xFFFFFFFF, b"\x00" * 8),
        (0, 5, b""),
        (1, 2, struct.pack("<2f", 1.0, float("inf"))),
    ],
)
def test_malformed_binary_heatmap_falls_back_to_gradient(tmp_path, write_png, rows, cols, body):
    base = write_png("base.png", np.zeros((3, 3), dtype=np.uint8))
    heatmap = _write_binary(tmp_path, rows, cols, body)
    options, fmt = validate_options("hot", "minmax", 0.5, heatmap)
    result = run_overlay(base, options, heatmap, fmt)
    assert result.used_gradient_heatmap
    assert result.composite.pixels.shape == (3, 3, 4)


@pytest.mark.parametrize(
    "name,content",
    [
        ("h.json", '{"data": [[1, ' + "9" * 400 + "]]}"),
        ("h.json", '{"data": [[NaN, 1], [2, 3]]}'),
        ("h.json", '{"data": [[1, Infinity]]}'),
        ("h.csv", "1,nan\n2,3\n"),
        ("h.csv", "inf,1\n"),
    ],
)
def test_non_finite_heatmap_falls_back_to_gradient(write_text, write_png, name, content):
    base = write_png("base.png", np.zeros((3, 3), dtype=np.uint8))
    heatmap = write_text(name, content)
    options, fmt = validate_options("viridis", "zscore", 0.5, heatmap)
    result = run_overlay(base, options, heatmap, fmt)
    assert result.used_gradient_heatmap
