import json

import pytest

from vaultmap.config_models import VisualizationSettings
from vaultmap.errors import SerializationError, UnknownSetting, ValidationError
from vaultmap.settings import (
    deserialize_settings,
    get_default_settings,
    merge_settings,
    serialize_settings,
    validate_setting,
)


def test_default_settings_json():
    data = json.loads(get_default_settings())
    assert data["target_dims"] == 3
    assert data["reduction_method"] == "svd"


def test_serialize_round_trip():
    settings = VisualizationSettings(target_dims=2, normalize=True)
    assert deserialize_settings(serialize_settings(settings)) == settings


def test_deserialize_rejects_garbage():
    with pytest.raises(SerializationError):
        deserialize_settings("{not json")
    with pytest.raises(SerializationError):
        deserialize_settings("[1, 2]")


def test_validate_setting_ok():
    validate_setting("target_dims", "2")
    validate_setting("normalize", "true")
    validate_setting("graph_type", "laplacian")


def test_validate_setting_empty():
    with pytest.raises(ValidationError) as info:
        validate_setting("target_dims", "")
    assert info.value.reason == "Setting value cannot be empty"


def test_validate_setting_out_of_range():
    with pytest.raises(ValidationError) as info:
        validate_setting("max_iterations", "0")
    assert info.value.field == "max_iterations"
    assert info.value.value == "0"


def test_validate_setting_bad_choice():
    with pytest.raises(ValidationError):
        validate_setting("reduction_method", "umap")


def test_validate_unknown_setting():
    with pytest.raises(UnknownSetting) as info:
        validate_setting("colour", "red")
    assert info.value.key == "colour"
    assert str(info.value) == "Unknown setting key: 'colour'"


def test_merge_settings_overlays_loaded_values():
    merged = json.loads(merge_settings(get_default_settings(), json.dumps({"target_dims": 2})))
    assert merged["target_dims"] == 2
    assert merged["max_clusters"] == 10


def test_merge_settings_stores_coerced_values():
    loaded = json.dumps({"target_dims": "2", "scale": "yes"})
    merged = json.loads(merge_settings(get_default_settings(), loaded))
    assert merged["target_dims"] == 2
    assert merged["scale"] is True


def test_merge_settings_ignores_invalid_and_unknown_values():
    loaded = json.dumps({"target_dims": -1, "graph_type": "laplacian", "extra": 1})
    merged = json.loads(merge_settings(get_default_settings(), loaded))
    assert merged["target_dims"] == 3
    assert merged["graph_type"] == "laplacian"
    assert "extra" not in merged


def test_merge_settings_with_corrupt_input():
    merged = json.loads(merge_settings("garbage", "also garbage"))
    assert merged == json.loads(get_default_settings())
