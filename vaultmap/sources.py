"""Origins of vector sets consumed by the projection pipeline.

The numerical core only sees plain vector sets. This module tags where a set
came from (externally computed embeddings or the vault link graph) and keeps
the per-note identity and metadata that the core drops.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

import networkx as nx
import numpy as np

from vaultmap.analysis.adjacency import (
    AdjacencyMatrixBuilder,
    LinkLike,
    links_from_graph,
    to_dense_vectors,
    to_laplacian,
)
from vaultmap.errors import InvalidVectorDimensions


class VectorSourceType(str, Enum):
    EMBEDDING_MODEL = "embedding_model"
    ADJACENCY_MATRIX = "adjacency_matrix"


class GraphType(str, Enum):
    ADJACENCY = "adjacency"
    LAPLACIAN = "laplacian"


@dataclass
class VectorWithMetadata:
    """A single vector with the note it describes."""

    id: str
    label: str
    vector: List[float]
    source_id: str
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: str) -> None:
        self.metadata[key] = value

    @property
    def dimensionality(self) -> int:
        return len(self.vector)


class VectorSource(ABC):
    """Common interface over vector-set origins."""

    source_id: str
    name: str

    @property
    @abstractmethod
    def source_type(self) -> VectorSourceType:
        ...

    @property
    @abstractmethod
    def dimensionality(self) -> int:
        ...

    @abstractmethod
    def fetch_vectors(self) -> List[VectorWithMetadata]:
        ...


def _note_label(key: str) -> str:
    base = os.path.basename(key)
    stem, ext = os.path.splitext(base)
    return stem if ext == ".md" else base


@dataclass
class EmbeddingSource(VectorSource):
    """Embeddings computed elsewhere (e.g. by an embedding model)."""

    source_id: str
    name: str
    embeddings: Mapping[str, Sequence[float]]
    labels: Mapping[str, str] = field(default_factory=dict)
    expected_dims: Optional[int] = None

    @property
    def source_type(self) -> VectorSourceType:
        return VectorSourceType.EMBEDDING_MODEL

    @property
    def dimensionality(self) -> int:
        if self.expected_dims is not None:
            return self.expected_dims
        first = next(iter(self.embeddings.values()), ())
        return len(first)

    def fetch_vectors(self) -> List[VectorWithMetadata]:
        """Return one entry per embedding in mapping order.

        Raises
        ------
        InvalidVectorDimensions
            If an embedding's width differs from :attr:`dimensionality`.
        """
        dim = self.dimensionality
        points: List[VectorWithMetadata] = []
        for i, (key, vector) in enumerate(self.embeddings.items()):
            if len(vector) != dim:
                raise InvalidVectorDimensions(expected=dim, got=len(vector), vector_index=i)
            points.append(
                VectorWithMetadata(
                    id=key,
                    label=self.labels.get(key, _note_label(key)),
                    vector=[float(v) for v in vector],
                    source_id=self.source_id,
                )
            )
        return points


@dataclass
class GraphSource(VectorSource):
    """Structural vectors derived from the link graph between notes."""

    source_id: str
    name: str
    note_keys: Sequence[str]
    links: Sequence[LinkLike]
    graph_type: GraphType = GraphType.ADJACENCY

    @classmethod
    def from_graph(
        cls,
        graph: nx.Graph,
        *,
        source_id: str = "forward-links",
        name: str = "Forward links",
        graph_type: GraphType = GraphType.ADJACENCY,
    ) -> "GraphSource":
        keys, links = links_from_graph(graph)
        return cls(source_id=source_id, name=name, note_keys=keys, links=links, graph_type=GraphType(graph_type))

    @property
    def source_type(self) -> VectorSourceType:
        return VectorSourceType.ADJACENCY_MATRIX

    @property
    def dimensionality(self) -> int:
        return len(self.note_keys)

    def fetch_vectors(self) -> List[VectorWithMetadata]:
        builder = AdjacencyMatrixBuilder(self.note_keys)
        adjacency = builder.build(self.links)
        out_degree = np.asarray(adjacency.sum(axis=1)).ravel()
        if GraphType(self.graph_type) is GraphType.LAPLACIAN:
            matrix = to_laplacian(adjacency)
        else:
            matrix = adjacency
        rows = to_dense_vectors(matrix)

        points = []
        for i, key in enumerate(self.note_keys):
            point = VectorWithMetadata(
                id=key,
                label=_note_label(key),
                vector=rows[i].tolist(),
                source_id=self.source_id,
            )
            point.add_metadata("path", key)
            point.add_metadata("link_count", str(int(out_degree[i])))
            points.append(point)
        return points
