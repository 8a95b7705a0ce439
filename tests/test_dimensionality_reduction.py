import numpy as np
import pytest

from vaultmap.analysis.reduction import SVDReducer, get_reducer, reduce_dimensions
from vaultmap.errors import (
    DimensionalityReductionError,
    InsufficientData,
    InvalidVectorDimensions,
)


def _blob(seed=0, n=12, d=6):
    rng = np.random.default_rng(seed)
    return rng.normal(size=(n, d))


def test_svd_reducer_shape():
    vectors = [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]]
    result = SVDReducer().reduce(vectors, 2)
    assert result.shape == (3, 2)


def test_reduce_is_bit_identical_across_calls():
    data = _blob()
    first = SVDReducer().reduce(data, 3)
    second = SVDReducer().reduce(data.tolist(), 3)
    assert first.tobytes() == second.tobytes()


def test_identical_vectors_reduce_to_zero():
    vectors = [[0.3, -1.7, 2.2, 5.0]] * 5
    result = SVDReducer().reduce(vectors, 3)
    assert result.shape == (5, 3)
    assert np.all(result == 0.0)


def test_rank_deficient_axes_are_exact_zero():
    # points on a line: rank 1 after centering
    t = np.arange(6, dtype=float)
    data = np.stack([t, 2 * t, -t], axis=1)
    result = SVDReducer().reduce(data, 3)
    assert np.any(result[:, 0] != 0.0)
    assert np.all(result[:, 1:] == 0.0)


def test_target_dims_above_min_n_d_is_rejected():
    with pytest.raises(InvalidVectorDimensions) as info:
        SVDReducer().reduce([[1.0, 2.0], [3.0, 4.0]], 5)
    assert info.value.expected == 2
    assert info.value.got == 5


def test_target_dims_limited_by_vector_count():
    with pytest.raises(InvalidVectorDimensions) as info:
        SVDReducer().reduce([[1.0, 2.0, 3.0, 4.0]], 3)
    assert info.value.expected == 1


def test_zero_target_dims_is_rejected():
    with pytest.raises(InvalidVectorDimensions):
        SVDReducer().reduce([[1.0, 2.0], [3.0, 4.0]], 0)


def test_mismatched_dimensions():
    with pytest.raises(InvalidVectorDimensions) as info:
        SVDReducer().reduce([[1.0, 2.0, 3.0], [4.0, 5.0]], 2)
    err = info.value
    assert (err.expected, err.got, err.vector_index) == (3, 2, 1)


def test_empty_input():
    with pytest.raises(InsufficientData) as info:
        SVDReducer().reduce([], 2)
    assert (info.value.required, info.value.provided) == (1, 0)


def test_zero_width_vectors():
    with pytest.raises(InsufficientData):
        SVDReducer().reduce([[], []], 1)


def test_non_finite_input_is_rejected():
    with pytest.raises(DimensionalityReductionError):
        SVDReducer().reduce([[1.0, float("nan")], [0.0, 1.0]], 1)


def test_output_is_centered_and_ordered_by_variance():
    data = _blob(seed=3, n=20, d=5)
    result = SVDReducer().reduce(data, 3)
    assert np.allclose(result.mean(axis=0), 0.0)
    variances = result.var(axis=0)
    assert variances[0] >= variances[1] >= variances[2]


def test_projection_matches_centered_svd_up_to_sign():
    data = _blob(seed=1)
    centered = data - data.mean(axis=0)
    u, s, _ = np.linalg.svd(centered, full_matrices=False)
    expected = u[:, :2] * s[:2]
    result = SVDReducer().reduce(data, 2)
    for j in range(2):
        assert np.allclose(result[:, j], expected[:, j]) or np.allclose(result[:, j], -expected[:, j])


def test_largest_magnitude_entry_is_positive():
    result = SVDReducer().reduce(_blob(seed=5), 3)
    for j in range(3):
        col = result[:, j]
        assert col[np.argmax(np.abs(col))] > 0


def test_translation_does_not_change_output():
    data = _blob(seed=2)
    base = SVDReducer().reduce(data, 2)
    shifted = SVDReducer().reduce(data + 100.0, 2)
    assert np.allclose(base, shifted, atol=1e-8)


def test_scaling_option_equalizes_columns():
    data = _blob(seed=4, n=30, d=3)
    data[:, 0] *= 1000.0
    unscaled = SVDReducer().reduce(data, 1)
    scaled = SVDReducer(scale=True).reduce(data, 1)
    assert unscaled.shape == scaled.shape
    assert np.abs(unscaled).max() > 10 * np.abs(scaled).max()


def test_explicit_rank_tolerance_zeroes_small_axes():
    data = _blob(seed=6)
    result = SVDReducer(rank_tolerance=1e9).reduce(data, 2)
    assert np.all(result == 0.0)


def test_get_reducer_and_method_name():
    reducer = get_reducer("SVD")
    assert isinstance(reducer, SVDReducer)
    assert reducer.method_name == "SVD"
    with pytest.raises(DimensionalityReductionError):
        get_reducer("umap")


def test_reduce_dimensions_helper():
    out = reduce_dimensions(_blob(), 3)
    assert out.shape == (12, 3)


def test_svd_failure_is_reported(monkeypatch):
    def boom(*_args, **_kwargs):
        raise np.linalg.LinAlgError("SVD did not converge")

    monkeypatch.setattr(np.linalg, "svd", boom)
    with pytest.raises(DimensionalityReductionError) as info:
        SVDReducer().reduce(_blob(), 2)
    assert "converge" in info.value.reason
