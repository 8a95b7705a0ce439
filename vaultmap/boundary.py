"""JSON entry points used by the host application.

Each call takes JSON text, validates it with pydantic before any computation
starts, runs one core operation and returns JSON text. Failures are raised as
:class:`~vaultmap.errors.VaultmapError` subclasses; malformed input becomes a
:class:`~vaultmap.errors.SerializationError`.
"""

from __future__ import annotations

import functools
import json
import logging
from typing import Annotated, Any, Callable, Dict, List

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
)
from pydantic import ValidationError as PydanticValidationError

from vaultmap.analysis.adjacency import AdjacencyMatrixBuilder, NoteLink, to_dense_vectors
from vaultmap.analysis.reduction import SVDReducer
from vaultmap.analysis.vector_ops import kmeans, normalize_vectors
from vaultmap.errors import SerializationError, VaultmapError
from vaultmap.metrics import track_call

logger = logging.getLogger(__name__)

__all__ = [
    "LinkModel",
    "parse_note_keys",
    "parse_links",
    "parse_vectors",
    "parse_embeddings",
    "build_adjacency_matrix",
    "build_laplacian_matrix",
    "reduce_dimensions_svd",
    "cluster_vectors",
    "normalize_vectors_json",
]


class LinkModel(BaseModel):
    """Serialized link; accepts ``fromId``/``toId`` as well as ``from``/``to``."""

    model_config = ConfigDict(populate_by_name=True)

    from_id: StrictInt = Field(validation_alias=AliasChoices("fromId", "from", "from_id"))
    to_id: StrictInt = Field(validation_alias=AliasChoices("toId", "to", "to_id"))

    def to_link(self) -> NoteLink:
        return NoteLink(self.from_id, self.to_id)


# finite numbers only; the JSON parser otherwise accepts NaN and Infinity
FiniteFloat = Annotated[StrictFloat, Field(allow_inf_nan=False)]

_KEYS = TypeAdapter(List[StrictStr])
_LINKS = TypeAdapter(List[LinkModel])
_VECTORS = TypeAdapter(List[List[FiniteFloat]])
_EMBEDDINGS = TypeAdapter(Dict[StrictStr, List[FiniteFloat]])


def _parse(adapter: TypeAdapter, text: str, context: str) -> Any:
    try:
        return adapter.validate_json(text)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        loc = "/".join(str(p) for p in first.get("loc", ()))
        detail = f"{first.get('msg', 'invalid input')}" + (f" at {loc}" if loc else "")
        raise SerializationError(context, detail) from exc


def parse_note_keys(text: str) -> List[str]:
    return _parse(_KEYS, text, "note keys")


def parse_links(text: str) -> List[NoteLink]:
    return [link.to_link() for link in _parse(_LINKS, text, "links")]


def parse_vectors(text: str) -> List[List[float]]:
    return _parse(_VECTORS, text, "vectors")


def parse_embeddings(text: str) -> Dict[str, List[float]]:
    """Parse a JSON object mapping note keys to embedding vectors."""
    return _parse(_EMBEDDINGS, text, "embeddings")


def _check_count(value: Any, context: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SerializationError(context, f"expected an integer, got {value!r}")
    return value


def _dumps(payload: Any, context: str) -> str:
    try:
        return json.dumps(payload, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(context, str(exc)) from exc


def _boundary_call(name: str) -> Callable[[Callable[..., str]], Callable[..., str]]:
    def decorator(func: Callable[..., str]) -> Callable[..., str]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> str:
            with track_call(name):
                try:
                    return func(*args, **kwargs)
                except VaultmapError as exc:
                    logger.warning("%s failed: %s", name, exc)
                    raise

        return wrapper

    return decorator


@_boundary_call("buildAdjacency")
def build_adjacency_matrix(note_keys_json: str, links_json: str) -> str:
    """Return the adjacency matrix rows for the given notes and links."""
    keys = parse_note_keys(note_keys_json)
    links = parse_links(links_json)
    builder = AdjacencyMatrixBuilder(keys)
    rows = to_dense_vectors(builder.build(links))
    logger.debug("buildAdjacency: %d notes, %d links", len(keys), len(links))
    return _dumps(rows.tolist(), "buildAdjacency")


@_boundary_call("buildLaplacian")
def build_laplacian_matrix(note_keys_json: str, links_json: str) -> str:
    """Return the out-degree Laplacian rows for the given notes and links."""
    keys = parse_note_keys(note_keys_json)
    links = parse_links(links_json)
    builder = AdjacencyMatrixBuilder(keys)
    rows = to_dense_vectors(builder.build_laplacian(links))
    logger.debug("buildLaplacian: %d notes, %d links", len(keys), len(links))
    return _dumps(rows.tolist(), "buildLaplacian")


@_boundary_call("reduceDimensions")
def reduce_dimensions_svd(vectors_json: str, target_dims: int = 3) -> str:
    target_dims = _check_count(target_dims, "target dimensions")
    vectors = parse_vectors(vectors_json)
    reduced = SVDReducer().reduce(vectors, target_dims)
    return _dumps(reduced.tolist(), "reduceDimensions")


@_boundary_call("clusterVectors")
def cluster_vectors(vectors_json: str, num_clusters: int) -> str:
    num_clusters = _check_count(num_clusters, "cluster count")
    vectors = parse_vectors(vectors_json)
    return _dumps(kmeans(vectors, num_clusters), "clusterVectors")


@_boundary_call("normalizeVectors")
def normalize_vectors_json(vectors_json: str) -> str:
    vectors = parse_vectors(vectors_json)
    return _dumps(normalize_vectors(vectors).tolist(), "normalizeVectors")
