"""Numerical core: link matrices, dimensionality reduction and clustering."""

from .adjacency import (
    AdjacencyMatrixBuilder,
    NoteLink,
    links_from_graph,
    to_dense_vectors,
    to_laplacian,
)
from .reduction import DimensionalityReducer, SVDReducer, get_reducer, reduce_dimensions
from .vector_ops import (
    KMeansResult,
    centroid_distances,
    euclidean_distance,
    kmeans,
    kmeans_fit,
    normalize_each,
    normalize_vector,
    normalize_vectors,
    pairwise_distances,
    squared_distance,
)

__all__ = [
    "AdjacencyMatrixBuilder",
    "NoteLink",
    "links_from_graph",
    "to_dense_vectors",
    "to_laplacian",
    "DimensionalityReducer",
    "SVDReducer",
    "get_reducer",
    "reduce_dimensions",
    "KMeansResult",
    "centroid_distances",
    "euclidean_distance",
    "kmeans",
    "kmeans_fit",
    "normalize_each",
    "normalize_vector",
    "normalize_vectors",
    "pairwise_distances",
    "squared_distance",
]
