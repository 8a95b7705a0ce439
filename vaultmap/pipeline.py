"""Project a vector source into colored points for the 3D view.

Reduction and clustering are computed independently from the same vector set
and merged here by index; neither core operation knows about the other.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from vaultmap.analysis.reduction import get_reducer
from vaultmap.analysis.vector_ops import kmeans, normalize_each
from vaultmap.config_models import VisualizationSettings
from vaultmap.errors import ZeroNormVector
from vaultmap.sources import VectorSource

logger = logging.getLogger(__name__)

__all__ = ["VectorDataPoint", "default_cluster_count", "project_source"]


@dataclass
class VectorDataPoint:
    """One note ready for rendering."""

    id: str
    label: str
    vector: List[float]
    position: List[float]
    cluster: int
    source_id: str
    source_name: str
    source_type: str
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def default_cluster_count(n: int, settings: Optional[VisualizationSettings] = None) -> int:
    """Return the number of clusters used for ``n`` points.

    One cluster per ``points_per_cluster`` points, clamped to
    ``[min_clusters, max_clusters]`` and never more than ``n``.
    """
    settings = settings or VisualizationSettings()
    k = min(settings.max_clusters, max(settings.min_clusters, n // settings.points_per_cluster))
    return max(1, min(k, n))


def _normalize_keep_zero(vectors: np.ndarray) -> np.ndarray:
    out = vectors.copy()
    skipped = 0
    for i, result in enumerate(normalize_each(vectors)):
        if isinstance(result, ZeroNormVector):
            skipped += 1
            continue
        out[i] = result
    if skipped:
        logger.warning("%d zero vectors left unnormalized", skipped)
    return out


def project_source(
    source: VectorSource, settings: Optional[VisualizationSettings] = None
) -> List[VectorDataPoint]:
    """Fetch, reduce and cluster the vectors of ``source``.

    The reduced width is limited to what the data supports
    (``min(n, d, target_dims)``); missing trailing coordinates are ``0.0``
    so every point has ``target_dims`` coordinates.
    """
    settings = settings or VisualizationSettings()
    logger.info("Projecting source %s (%s)", source.source_id, source.source_type.value)
    points = source.fetch_vectors()
    if not points:
        logger.warning("Source %s returned no vectors", source.source_id)
        return []

    vectors = np.asarray([p.vector for p in points], dtype=float)
    n, d = vectors.shape
    if settings.normalize:
        vectors = _normalize_keep_zero(vectors)

    target = settings.target_dims
    dims = min(target, n, d)
    reducer = get_reducer(settings.reduction_method, scale=settings.scale)
    positions = np.zeros((n, target), dtype=float)
    if dims >= 1:
        positions[:, :dims] = reducer.reduce(vectors, dims)
    else:
        logger.warning("Source %s has zero-width vectors; positions left at origin", source.source_id)

    k = default_cluster_count(n, settings)
    clusters = kmeans(vectors, k, max_iterations=settings.max_iterations)
    logger.info("Projected %d points into %d dims and %d clusters", n, dims, k)

    return [
        VectorDataPoint(
            id=p.id,
            label=p.label,
            vector=p.vector,
            position=positions[i].tolist(),
            cluster=clusters[i],
            source_id=source.source_id,
            source_name=source.name,
            source_type=source.source_type.value,
            metadata=dict(p.metadata),
        )
        for i, p in enumerate(points)
    ]
