import numpy as np
import pytest

from medheat.core.preprocess_heatmap import normalize, resize_nearest
from medheat.core.types import HeatmapMatrix, NormalizationKind
from medheat.utils.errors import ValidationError


def _matrix(values):
    return HeatmapMatrix(np.asarray(values, dtype=np.float32))


@pytest.mark.parametrize("shape", [(1, 1), (3, 7), (7, 3), (49, 13)])
def test_resize_same_shape_is_identity(shape):
    values = np.arange(shape[0] * shape[1], dtype=np.float32).reshape(shape)
    resized = resize_nearest(_matrix(values), *shape)
    assert np.array_equal(resized.values, values)


def test_resize_upsamples_by_repetition():
    resized = resize_nearest(_matrix([[1, 2], [3, 4]]), 4, 4)
    assert resized.values.tolist() == [
        [1, 1, 2, 2],
        [1, 1, 2, 2],
        [3, 3, 4, 4],
        [3, 3, 4, 4],
    ]


def test_resize_downsamples_with_floor_indexing():
    values = np.arange(16, dtype=np.float32).reshape(4, 4)
    resized = resize_nearest(_matrix(values), 2, 3)
    # rows 0, 2; columns floor(c/3*4) = 0, 1, 2
    assert resized.values.tolist() == [[0, 1, 2], [8, 9, 10]]


def test_resize_returns_new_matrix():
    original = _matrix([[1, 2]])
    assert resize_nearest(original, 1, 2) is not original


def test_resize_rejects_non_positive_target():
    with pytest.raises(ValidationError):
        resize_nearest(_matrix([[1]]), 0, 3)


def test_minmax_spans_unit_interval():
    values = np.random.default_rng(7).normal(10.0, 3.0, size=(5, 9))
    out = normalize(_matrix(values), NormalizationKind.MINMAX).values
    assert out.min() == 0.0
    assert out.max() == 1.0


def test_minmax_degenerate_passes_through():
    out = normalize(_matrix([[0.25, 0.25], [0.25, 0.25]]), NormalizationKind.MINMAX)
    assert np.all(out.values == np.float32(0.25))


def test_zscore_constant_passes_through():
    values = np.full((3, 3), 0.1, dtype=np.float32)
    out = normalize(_matrix(values), NormalizationKind.ZSCORE)
    assert np.array_equal(out.values, values)


def test_zscore_uses_population_std_and_clamps():
    out = normalize(_matrix([[1, 3]]), NormalizationKind.ZSCORE)
    # mean 2, population std 1 -> [-1, 1] -> clamped
    assert out.values.tolist() == [[0.0, 1.0]]


def test_zscore_non_constant_is_rescaled():
    values = np.array([[0.2, 0.4, 0.6, 0.8]], dtype=np.float32)
    out = normalize(_matrix(values), NormalizationKind.ZSCORE)
    assert not np.array_equal(out.values, values)


def test_percentile_uses_nearest_rank_bounds():
    values = np.arange(100, dtype=np.float32).reshape(10, 10)
    out = normalize(_matrix(values), NormalizationKind.PERCENTILE).values
    # lo = sorted[5] = 5, hi = sorted[95] = 95
    assert out[5, 0] == pytest.approx(0.5)
    assert out[0, 0] == 0.0
    assert out[9, 9] == 1.0


def test_percentile_output_is_bounded():
    values = np.random.default_rng(3).standard_cauchy(size=(16, 16))
    out = normalize(_matrix(values), NormalizationKind.PERCENTILE).values
    assert out.min() >= 0.0
    assert out.max() <= 1.0


def test_percentile_equal_bounds_pass_through():
    values = np.array([[0.5] * 20 + [0.9]], dtype=np.float32)
    out = normalize(_matrix(values), NormalizationKind.PERCENTILE)
    assert np.array_equal(out.values, values)


@pytest.mark.parametrize("kind", list(NormalizationKind))
def test_normalized_values_always_clamped(kind):
    values = np.array([[-50.0, 0.0, 3.0], [7.0, 1e6, -1e6]], dtype=np.float32)
    out = normalize(_matrix(values), kind).values
    assert out.shape == (2, 3)
    assert (out >= 0.0).all() and (out <= 1.0).all()


def test_normalize_does_not_touch_input():
    original = _matrix([[1, 2], [3, 4]])
    normalize(original, NormalizationKind.MINMAX)
    assert original.values.tolist() == [[1, 2], [3, 4]]
