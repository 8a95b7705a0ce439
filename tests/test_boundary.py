import json

import pytest

from vaultmap import boundary
from vaultmap.errors import (
    InsufficientData,
    InvalidLinkIndex,
    InvalidVectorDimensions,
    SerializationError,
    ZeroNormVector,
)

KEYS = json.dumps(["note1.md", "note2.md", "note3.md"])
LINKS = json.dumps([{"fromId": 0, "toId": 1}, {"fromId": 0, "toId": 2}, {"fromId": 1, "toId": 2}])


def test_build_adjacency_matrix():
    rows = json.loads(boundary.build_adjacency_matrix(KEYS, LINKS))
    assert rows == [[0, 1, 1], [0, 0, 1], [0, 0, 0]]


def test_build_laplacian_matrix():
    rows = json.loads(boundary.build_laplacian_matrix(KEYS, LINKS))
    assert rows == [[2, -1, -1], [0, 1, -1], [0, 0, 0]]


def test_links_accept_short_field_names():
    links = json.dumps([{"from": 2, "to": 0}])
    rows = json.loads(boundary.build_adjacency_matrix(KEYS, links))
    assert rows[2] == [1, 0, 0]


def test_out_of_range_link():
    links = json.dumps([{"fromId": 0, "toId": 3}])
    with pytest.raises(InvalidLinkIndex) as info:
        boundary.build_adjacency_matrix(KEYS, links)
    assert info.value.to_dict() == {
        "kind": "InvalidLinkIndex",
        "message": str(info.value),
        "from": 0,
        "to": 3,
        "max": 2,
    }


@pytest.mark.parametrize(
    "links",
    [
        "not json",
        json.dumps({"fromId": 0, "toId": 1}),
        json.dumps([{"fromId": 0}]),
        json.dumps([{"fromId": "0", "toId": 1}]),
        json.dumps([{"fromId": 0.5, "toId": 1}]),
        json.dumps([{"fromId": True, "toId": 1}]),
    ],
)
def test_malformed_links(links):
    with pytest.raises(SerializationError) as info:
        boundary.build_laplacian_matrix(KEYS, links)
    assert info.value.context == "links"


def test_malformed_keys():
    with pytest.raises(SerializationError) as info:
        boundary.build_adjacency_matrix(json.dumps([1, 2]), "[]")
    assert info.value.context == "note keys"


def test_reduce_dimensions_svd():
    vectors = [[1.0, 0.0, 2.0], [0.0, 1.0, 1.0], [3.0, 1.0, 0.0], [2.0, 2.0, 2.0]]
    reduced = json.loads(boundary.reduce_dimensions_svd(json.dumps(vectors), 3))
    assert len(reduced) == 4
    assert all(len(row) == 3 for row in reduced)
    again = json.loads(boundary.reduce_dimensions_svd(json.dumps(vectors), 3))
    assert reduced == again


def test_reduce_rejects_bad_target():
    with pytest.raises(InvalidVectorDimensions):
        boundary.reduce_dimensions_svd(json.dumps([[1.0, 2.0], [2.0, 1.0]]), 3)
    with pytest.raises(SerializationError):
        boundary.reduce_dimensions_svd(json.dumps([[1.0, 2.0]]), True)


def test_reduce_rejects_non_numeric():
    with pytest.raises(SerializationError) as info:
        boundary.reduce_dimensions_svd(json.dumps([[1.0, "x"]]), 1)
    assert info.value.context == "vectors"


def test_reduce_ragged_input():
    with pytest.raises(InvalidVectorDimensions):
        boundary.reduce_dimensions_svd(json.dumps([[1.0, 2.0], [1.0]]), 1)


def test_cluster_vectors():
    vectors = [[0.0, 0.0], [0.0, 0.1], [9.0, 9.0], [9.1, 9.0]]
    clusters = json.loads(boundary.cluster_vectors(json.dumps(vectors), 2))
    assert clusters == [0, 0, 1, 1]


def test_cluster_vectors_too_many_clusters():
    with pytest.raises(InsufficientData):
        boundary.cluster_vectors(json.dumps([[1.0], [2.0]]), 3)


def test_normalize_vectors_json():
    out = json.loads(boundary.normalize_vectors_json(json.dumps([[3, 4]])))
    assert len(out) == 1
    assert out[0] == pytest.approx([0.6, 0.8])
    with pytest.raises(ZeroNormVector):
        boundary.normalize_vectors_json(json.dumps([[0, 0]]))


def test_parse_embeddings():
    data = boundary.parse_embeddings(json.dumps({"a.md": [1, 2], "b.md": [3.5, 4]}))
    assert data == {"a.md": [1.0, 2.0], "b.md": [3.5, 4.0]}
    with pytest.raises(SerializationError):
        boundary.parse_embeddings("[]")


@pytest.mark.parametrize("text", ["[[NaN, 1.0], [0.0, 1.0], [5.0, 5.0]]", "[[Infinity, 1.0], [0.0, 1.0]]"])
def test_non_finite_vectors_are_rejected(text):
    with pytest.raises(SerializationError) as info:
        boundary.cluster_vectors(text, 2)
    assert info.value.context == "vectors"
    with pytest.raises(SerializationError):
        boundary.normalize_vectors_json(text)


def test_non_finite_embeddings_are_rejected():
    with pytest.raises(SerializationError) as info:
        boundary.parse_embeddings('{"a.md": [1.0, -Infinity]}')
    assert info.value.context == "embeddings"


def test_link_index_beyond_int64():
    links = json.dumps([{"fromId": 0, "toId": 2**70}])
    with pytest.raises(InvalidLinkIndex) as info:
        boundary.build_adjacency_matrix(KEYS, links)
    assert info.value.to_id == 2**70
    assert info.value.max == 2
