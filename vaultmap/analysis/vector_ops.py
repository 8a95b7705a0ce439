"""Vector normalization, distances and deterministic k-means clustering."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from vaultmap.errors import (
    InsufficientData,
    InvalidVectorDimensions,
    ValidationError,
    ZeroNormVector,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ZERO_NORM_EPSILON",
    "DEFAULT_MAX_ITERATIONS",
    "as_vector_matrix",
    "normalize_vector",
    "normalize_vectors",
    "normalize_each",
    "euclidean_distance",
    "squared_distance",
    "pairwise_distances",
    "centroid_distances",
    "KMeansResult",
    "kmeans_fit",
    "kmeans",
]

ZERO_NORM_EPSILON = 1e-10
DEFAULT_MAX_ITERATIONS = 100

VectorSet = Union[np.ndarray, Sequence[Sequence[float]]]


def as_vector_matrix(vectors: VectorSet) -> np.ndarray:
    """Return ``vectors`` as an ``(n, d)`` float array.

    Raises
    ------
    InsufficientData
        If no vectors are given.
    InvalidVectorDimensions
        If the vectors do not all share the width of the first one.
    """
    if isinstance(vectors, np.ndarray) and vectors.ndim == 2:
        if vectors.shape[0] == 0:
            raise InsufficientData(required=1, provided=0)
        return np.asarray(vectors, dtype=float)

    rows = list(vectors)
    if not rows:
        raise InsufficientData(required=1, provided=0)
    dim = len(rows[0])
    for i, row in enumerate(rows):
        if len(row) != dim:
            raise InvalidVectorDimensions(expected=dim, got=len(row), vector_index=i)
    return np.asarray(rows, dtype=float).reshape(len(rows), dim)


def normalize_vector(vector: Sequence[float], index: Optional[int] = None) -> np.ndarray:
    """Return ``vector`` scaled to unit Euclidean length."""
    arr = np.asarray(vector, dtype=float)
    norm = float(np.linalg.norm(arr))
    if not norm >= ZERO_NORM_EPSILON:
        raise ZeroNormVector(index=index)
    return arr / norm


def normalize_vectors(vectors: VectorSet) -> np.ndarray:
    """Normalize every vector, aborting on the first zero-norm one."""
    data = as_vector_matrix(vectors)
    return np.vstack([normalize_vector(row, i) for i, row in enumerate(data)])


def normalize_each(
    vectors: VectorSet,
) -> List[Union[np.ndarray, ZeroNormVector]]:
    """Normalize vectors one by one, returning failures in place.

    Each entry is either the unit vector or the :class:`ZeroNormVector`
    describing why that vector was rejected, so the caller can decide to skip
    or abort.
    """
    results: List[Union[np.ndarray, ZeroNormVector]] = []
    for i, row in enumerate(as_vector_matrix(vectors)):
        try:
            results.append(normalize_vector(row, i))
        except ZeroNormVector as exc:
            results.append(exc)
    return results


def _check_same_width(a: np.ndarray, b: np.ndarray) -> None:
    if a.shape != b.shape:
        raise InvalidVectorDimensions(expected=a.size, got=b.size)


def squared_distance(a: Sequence[float], b: Sequence[float]) -> float:
    x = np.asarray(a, dtype=float)
    y = np.asarray(b, dtype=float)
    _check_same_width(x, y)
    diff = x - y
    return float(np.dot(diff, diff))


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the Euclidean distance between ``a`` and ``b``."""
    return float(np.sqrt(squared_distance(a, b)))


def pairwise_distances(vectors: VectorSet) -> np.ndarray:
    """Return the symmetric ``(n, n)`` matrix of Euclidean distances."""
    data = as_vector_matrix(vectors)
    diff = data[:, None, :] - data[None, :, :]
    return np.sqrt(np.einsum("ijk,ijk->ij", diff, diff))


def centroid_distances(vectors: VectorSet, centroids: VectorSet) -> np.ndarray:
    """Return ``(n, k)`` squared distances from each vector to each centroid."""
    data = as_vector_matrix(vectors)
    centers = as_vector_matrix(centroids)
    if centers.shape[1] != data.shape[1]:
        raise InvalidVectorDimensions(expected=data.shape[1], got=centers.shape[1])
    diff = data[:, None, :] - centers[None, :, :]
    return np.einsum("ijk,ijk->ij", diff, diff)


@dataclass
class KMeansResult:
    """Outcome of :func:`kmeans_fit`."""

    assignments: np.ndarray
    centroids: np.ndarray
    iterations: int
    converged: bool


def _initial_centroids(data: np.ndarray, k: int) -> np.ndarray:
    n = data.shape[0]
    seeds = [(c * n) // k for c in range(k)]
    return data[seeds].copy()


def _compute_centroids(data: np.ndarray, assignments: np.ndarray, k: int) -> np.ndarray:
    centroids = np.zeros((k, data.shape[1]), dtype=float)
    np.add.at(centroids, assignments, data)
    counts = np.bincount(assignments, minlength=k).astype(float)
    filled = counts > 0
    centroids[filled] /= counts[filled, None]
    return centroids


def _reseed_empty(assignments: np.ndarray, own_distance: np.ndarray, k: int) -> int:
    """Move the farthest vectors into empty clusters, in cluster order.

    Only vectors whose cluster keeps at least one other member are eligible,
    so filling one cluster never empties another. Returns the number of
    clusters re-seeded.
    """
    counts = np.bincount(assignments, minlength=k)
    reseeded = 0
    for cluster in np.flatnonzero(counts == 0):
        eligible = counts[assignments] > 1
        candidates = np.where(eligible, own_distance, -np.inf)
        idx = int(np.argmax(candidates))
        counts[assignments[idx]] -= 1
        counts[cluster] += 1
        assignments[idx] = cluster
        own_distance[idx] = 0.0
        reseeded += 1
    return reseeded


def kmeans_fit(
    vectors: VectorSet, k: int, *, max_iterations: int = DEFAULT_MAX_ITERATIONS
) -> KMeansResult:
    """Cluster ``vectors`` into ``k`` groups deterministically.

    Initial centroid ``c`` is the vector at index ``floor(c * n / k)``. Each
    iteration assigns vectors to the nearest centroid by squared Euclidean
    distance (ties go to the lower cluster index), refills empty clusters with
    the vector farthest from its own centroid and recomputes the means.
    Iteration stops once assignments no longer change or after
    ``max_iterations`` rounds.

    Raises
    ------
    InsufficientData
        If ``k`` is not within ``[1, n]``.
    InvalidVectorDimensions
        If the vectors have different widths.
    ValidationError
        If any vector contains NaN or infinite values.
    """
    data = as_vector_matrix(vectors)
    n = data.shape[0]
    bad_rows = np.flatnonzero(~np.isfinite(data).all(axis=1))
    if bad_rows.size:
        raise ValidationError("vectors", str(int(bad_rows[0])), "contains NaN or infinite values")
    if k < 1:
        raise InsufficientData(required=1, provided=k)
    if k > n:
        raise InsufficientData(required=k, provided=n)

    centroids = _initial_centroids(data, k)
    assignments: Optional[np.ndarray] = None
    converged = False
    iterations = 0
    for iterations in range(1, max(1, max_iterations) + 1):
        distances = centroid_distances(data, centroids)
        # argmin returns the first minimum, i.e. the lowest cluster index
        current = np.argmin(distances, axis=1)
        own = distances[np.arange(n), current]
        reseeded = _reseed_empty(current, own, k)
        if reseeded:
            logger.debug("kmeans iteration %d re-seeded %d empty clusters", iterations, reseeded)
        if assignments is not None and np.array_equal(current, assignments):
            converged = True
            break
        assignments = current
        centroids = _compute_centroids(data, assignments, k)

    if not converged:
        logger.warning("kmeans stopped after %d iterations without converging", iterations)
    return KMeansResult(
        assignments=assignments.astype(int),
        centroids=centroids,
        iterations=iterations,
        converged=converged,
    )


def kmeans(
    vectors: VectorSet, k: int, *, max_iterations: int = DEFAULT_MAX_ITERATIONS
) -> List[int]:
    """Return the cluster index of every vector; see :func:`kmeans_fit`."""
    return kmeans_fit(vectors, k, max_iterations=max_iterations).assignments.tolist()
