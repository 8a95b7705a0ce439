"""Dimensionality reduction for visualizing note vectors.

The SVD reducer projects centered data onto its leading right-singular
vectors. Output is canonicalized so that identical input always yields
bit-identical coordinates:

* singular values are in descending order, so axis ``0`` carries the most
  variance;
* for every axis the entry of largest magnitude in the corresponding left
  singular vector is positive (lowest row wins ties);
* axes whose singular value is numerically zero are exactly ``0.0``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

import numpy as np

from vaultmap.analysis.vector_ops import VectorSet, as_vector_matrix
from vaultmap.errors import (
    DimensionalityReductionError,
    InsufficientData,
    InvalidVectorDimensions,
)

logger = logging.getLogger(__name__)

__all__ = [
    "DimensionalityReducer",
    "SVDReducer",
    "get_reducer",
    "reduce_dimensions",
]

_STD_FLOOR = 1e-10


class DimensionalityReducer(ABC):
    """Interface shared by all reduction methods."""

    method_name: str = ""

    @abstractmethod
    def reduce(self, vectors: VectorSet, target_dims: int) -> np.ndarray:
        """Return ``vectors`` projected to ``target_dims`` columns."""


class SVDReducer(DimensionalityReducer):
    """Variance-preserving projection via singular value decomposition.

    Parameters
    ----------
    scale:
        Divide each centered column by its standard deviation before the
        decomposition. Centering always happens.
    rank_tolerance:
        Singular values at or below this threshold are treated as zero. The
        default is ``max(n, d) * eps`` times the larger of the leading
        singular value and the input magnitude.
    """

    method_name = "SVD"

    def __init__(self, *, scale: bool = False, rank_tolerance: Optional[float] = None) -> None:
        self.scale = scale
        self.rank_tolerance = rank_tolerance

    def _prepare(self, vectors: VectorSet) -> np.ndarray:
        data = as_vector_matrix(vectors)
        if data.shape[1] == 0:
            raise InsufficientData(required=1, provided=0)
        if not np.isfinite(data).all():
            raise DimensionalityReductionError(self.method_name, "input contains NaN or infinite values")
        return data

    def _tolerance(self, data: np.ndarray, s_max: float) -> float:
        if self.rank_tolerance is not None:
            return float(self.rank_tolerance)
        n, d = data.shape
        magnitude = float(np.abs(data).max()) * np.sqrt(n)
        return max(n, d) * np.finfo(float).eps * max(s_max, magnitude)

    def reduce(self, vectors: VectorSet, target_dims: int) -> np.ndarray:
        """Return an ``(n, target_dims)`` array of reduced coordinates.

        Raises
        ------
        InsufficientData
            No vectors or zero-width vectors.
        InvalidVectorDimensions
            Ragged input, or ``target_dims`` outside ``[1, min(n, d)]``.
        DimensionalityReductionError
            Non-finite input or an SVD that failed to converge.
        """
        data = self._prepare(vectors)
        n, d = data.shape
        limit = min(n, d)
        if target_dims < 1 or target_dims > limit:
            raise InvalidVectorDimensions(expected=limit, got=target_dims)

        if np.all(data == data[0]):
            logger.warning("all %d input vectors are identical; reduced output is zero", n)
            return np.zeros((n, target_dims), dtype=float)

        centered = data - data.mean(axis=0)
        if self.scale:
            std = np.sqrt(np.mean(centered * centered, axis=0))
            centered = centered / np.maximum(std, _STD_FLOOR)

        try:
            u, s, _ = np.linalg.svd(centered, full_matrices=False)
        except np.linalg.LinAlgError as exc:
            raise DimensionalityReductionError(self.method_name, str(exc)) from exc

        u = u[:, :target_dims].copy()
        s = s[:target_dims]
        pivots = np.argmax(np.abs(u), axis=0)
        signs = np.where(u[pivots, np.arange(target_dims)] < 0, -1.0, 1.0)
        u *= signs

        reduced = u * s
        tol = self._tolerance(data, float(s[0]) if s.size else 0.0)
        degenerate = s <= tol
        if degenerate.any():
            logger.warning(
                "numerical rank %d is below the requested %d dimensions",
                int(np.count_nonzero(~degenerate)),
                target_dims,
            )
            reduced[:, degenerate] = 0.0
        if not np.isfinite(reduced).all():
            raise DimensionalityReductionError(self.method_name, "decomposition produced non-finite values")
        logger.debug("reduced %dx%d to %d dims", n, d, target_dims)
        return reduced


REDUCERS: Dict[str, Type[DimensionalityReducer]] = {"svd": SVDReducer}


def get_reducer(method: str = "svd", **options) -> DimensionalityReducer:
    """Return a reducer instance for ``method``."""
    try:
        cls = REDUCERS[method.lower()]
    except KeyError:
        raise DimensionalityReductionError(method, "unsupported reduction method") from None
    return cls(**options)


def reduce_dimensions(
    vectors: VectorSet, target_dims: int = 3, *, method: str = "svd", **options
) -> np.ndarray:
    """Reduce ``vectors`` with the reducer registered under ``method``."""
    return get_reducer(method, **options).reduce(vectors, target_dims)
