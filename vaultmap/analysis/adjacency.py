"""Adjacency and Laplacian matrices built from note links.

``A[i][j]`` counts the forward links from note ``i`` to note ``j``. Links are
accumulated in a sparse CSR matrix so building stays ``O(E)`` even for large
vaults; :func:`to_dense_vectors` is the explicit point where rows are
materialized densely for reduction and clustering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, Union

import networkx as nx
import numpy as np
import scipy.sparse as sp

from vaultmap.errors import InvalidLinkIndex

logger = logging.getLogger(__name__)

__all__ = [
    "NoteLink",
    "AdjacencyMatrixBuilder",
    "to_laplacian",
    "to_dense_vectors",
    "links_from_graph",
]


@dataclass(frozen=True)
class NoteLink:
    """Directed link between two notes, by index."""

    from_id: int
    to_id: int


LinkLike = Union[NoteLink, Tuple[int, int]]


def _as_pairs(links: Iterable[LinkLike], n: int) -> np.ndarray:
    pairs = [
        (link.from_id, link.to_id) if isinstance(link, NoteLink) else tuple(link)
        for link in links
    ]
    # checked before the int64 conversion
    for from_id, to_id in pairs:
        if not (0 <= from_id < n and 0 <= to_id < n):
            raise InvalidLinkIndex(from_id=int(from_id), to_id=int(to_id), max=n - 1)
    if not pairs:
        return np.zeros((0, 2), dtype=np.int64)
    return np.asarray(pairs, dtype=np.int64).reshape(-1, 2)


class AdjacencyMatrixBuilder:
    """Build sparse link matrices for an ordered list of notes.

    Parameters
    ----------
    note_keys:
        Ordered note identifiers. The position of the first occurrence of a
        key is its index in every matrix built by this instance.
    """

    def __init__(self, note_keys: Sequence[str]) -> None:
        self._num_notes = len(note_keys)
        self._index: Dict[str, int] = {}
        for i, key in enumerate(note_keys):
            self._index.setdefault(key, i)

    @property
    def num_notes(self) -> int:
        return self._num_notes

    def get_note_index(self, key: str) -> Optional[int]:
        return self._index.get(key)

    def build(self, links: Iterable[LinkLike]) -> sp.csr_matrix:
        """Return the adjacency matrix of ``links``.

        Raises
        ------
        InvalidLinkIndex
            If any link references an index outside ``[0, num_notes)``. The
            first offending link in input order is reported and no matrix is
            produced.
        """
        n = self._num_notes
        pairs = _as_pairs(links, n)

        # duplicate coordinates are summed when converting COO -> CSR
        data = np.ones(len(pairs), dtype=float)
        matrix = sp.coo_matrix(
            (data, (pairs[:, 0], pairs[:, 1])), shape=(n, n)
        ).tocsr()
        logger.debug("adjacency built: n=%d links=%d nnz=%d", n, len(pairs), matrix.nnz)
        return matrix

    def build_laplacian(self, links: Iterable[LinkLike]) -> sp.csr_matrix:
        """Return ``L = D - A`` where ``D`` holds the out-degrees."""
        return to_laplacian(self.build(links))

    def matrix_to_vectors(self, matrix: sp.spmatrix) -> np.ndarray:
        return to_dense_vectors(matrix)


def to_laplacian(matrix: sp.spmatrix) -> sp.csr_matrix:
    """Return the out-degree Laplacian of an adjacency ``matrix``.

    Every row of the result sums to zero: ``D[i][i]`` is the row sum of
    ``matrix`` (self-loops included) and ``L[i][i] = D[i][i] - A[i][i]``.
    """
    adjacency = sp.csr_matrix(matrix, dtype=float)
    if adjacency.shape[0] == 0:
        return adjacency
    out_degree = np.asarray(adjacency.sum(axis=1)).ravel()
    laplacian = (sp.diags(out_degree, shape=adjacency.shape, format="csr") - adjacency).tocsr()
    laplacian.eliminate_zeros()
    return laplacian


def to_dense_vectors(matrix: sp.spmatrix) -> np.ndarray:
    """Materialize ``matrix`` into one dense row per node.

    This is ``O(n^2)`` in memory; callers that need sparsity should keep the
    CSR matrix instead.
    """
    if sp.issparse(matrix):
        return np.asarray(matrix.toarray(), dtype=float)
    return np.asarray(matrix, dtype=float)


def links_from_graph(
    graph: nx.Graph, nodelist: Optional[Sequence[Hashable]] = None
) -> Tuple[List[str], List[NoteLink]]:
    """Return note keys and links describing ``graph``.

    Parallel edges of multigraphs are kept as repeated links. Undirected
    graphs contribute one link in each direction (a single one for
    self-loops).
    """
    nodes = list(graph.nodes()) if nodelist is None else list(nodelist)
    position = {node: i for i, node in enumerate(nodes)}
    links: List[NoteLink] = []
    for u, v in graph.edges():
        if u not in position or v not in position:
            continue
        links.append(NoteLink(position[u], position[v]))
        if not graph.is_directed() and u != v:
            links.append(NoteLink(position[v], position[u]))
    return [str(node) for node in nodes], links
