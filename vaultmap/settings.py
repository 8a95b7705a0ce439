"""JSON helpers for host-side persistence of :class:`VisualizationSettings`.

The host stores settings as JSON text; these helpers produce defaults,
validate single edits coming from a settings form and merge stored values
over the defaults without letting a corrupt file break loading.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Any

from vaultmap.config_models import VisualizationSettings
from vaultmap.errors import SerializationError, UnknownSetting, ValidationError
from vaultmap.utils.config import coerce_setting, validate_visualization_settings

logger = logging.getLogger(__name__)

__all__ = [
    "get_default_settings",
    "serialize_settings",
    "deserialize_settings",
    "validate_setting",
    "merge_settings",
]


def serialize_settings(settings: VisualizationSettings) -> str:
    try:
        return json.dumps(asdict(settings), sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise SerializationError("serialize_settings", str(exc)) from exc


def deserialize_settings(text: str) -> VisualizationSettings:
    """Parse and validate settings JSON."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise SerializationError("deserialize_settings", str(exc)) from exc
    if not isinstance(data, dict):
        raise SerializationError("deserialize_settings", "expected a JSON object")
    return validate_visualization_settings(data)


def get_default_settings() -> str:
    return serialize_settings(VisualizationSettings())


def validate_setting(key: str, value: str) -> None:
    """Check that ``value`` (as typed by a user) is acceptable for ``key``.

    Raises
    ------
    UnknownSetting
        If ``key`` is not a settings field.
    ValidationError
        If the value is empty, has the wrong type or is out of range.
    """
    fields = VisualizationSettings.__dataclass_fields__
    if key not in fields:
        raise UnknownSetting(key)
    if value is None or str(value).strip() == "":
        raise ValidationError(key, "" if value is None else str(value), "Setting value cannot be empty")
    default = getattr(VisualizationSettings(), key)
    candidate = asdict(VisualizationSettings())
    candidate[key] = coerce_setting(key, str(value), default)
    try:
        validate_visualization_settings(candidate)
    except ValidationError as exc:
        raise ValidationError(key, str(value), exc.reason) from exc


def _merge_value(merged: dict, key: str, value: Any) -> None:
    candidate = {**merged, key: value}
    try:
        validated = validate_visualization_settings(candidate)
    except ValidationError as exc:
        logger.warning("Ignoring stored setting %s=%r: %s", key, value, exc.reason)
        return
    # keep the coerced value, not the stored text
    merged[key] = getattr(validated, key)


def merge_settings(defaults: str, loaded: str) -> str:
    """Overlay stored settings JSON on the defaults JSON.

    Malformed defaults fall back to the built-in defaults; malformed or
    invalid stored values are ignored key by key.
    """
    try:
        base = deserialize_settings(defaults)
    except (SerializationError, ValidationError):
        logger.warning("Default settings are invalid; using built-in defaults")
        base = VisualizationSettings()
    merged = asdict(base)

    try:
        stored = json.loads(loaded)
    except (TypeError, ValueError):
        logger.warning("Stored settings are not valid JSON; keeping defaults")
        stored = {}
    if isinstance(stored, dict):
        for key, value in stored.items():
            if key in merged and value is not None:
                _merge_value(merged, key, value)

    return serialize_settings(VisualizationSettings.from_dict(merged))
