# Config Utilities
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from vaultmap.config_models import VisualizationSettings, VisualizationSettingsModel
from vaultmap.errors import ValidationError

# Packaged defaults, usable from an installed distribution
PACKAGE_CONFIG_PATH = os.path.abspath(
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "config.yaml")
)

DEFAULT_CONFIG_PATH = PACKAGE_CONFIG_PATH
CONFIG_ENV_VAR = "VAULTMAP_CONFIG"

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load YAML configuration file.

    Resolution order: explicit ``config_path``, the ``VAULTMAP_CONFIG``
    environment variable, then the configuration shipped with the package.
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)

    if not os.path.exists(config_path):
        # Support paths relative to the repository root
        if not os.path.isabs(config_path):
            alt_path = Path(__file__).resolve().parents[2] / config_path
            if alt_path.exists():
                config_path = str(alt_path)
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found at {config_path}")

    logger.info("Loading config from: %s", config_path)
    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Configuration at {config_path} must be a mapping")
    return config


def _env_override(key: str) -> Optional[str]:
    """Helper to fetch environment variable overrides."""
    return os.environ.get(f"VAULTMAP_{key.upper()}")


def coerce_setting(key: str, raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValidationError(key, raw, "expected a boolean")
    try:
        return type(default)(raw)
    except ValueError as exc:
        raise ValidationError(key, raw, str(exc)) from exc


def validate_visualization_settings(data: Dict[str, Any]) -> VisualizationSettings:
    """Validate ``data`` and return :class:`VisualizationSettings`.

    The first pydantic error is reported as a :class:`ValidationError`.
    """
    try:
        return VisualizationSettingsModel(**data).to_settings()
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "visualization"
        value = data.get(field, first.get("input"))
        raise ValidationError(field, str(value), first.get("msg", "invalid value")) from exc


def get_visualization_settings(config: Dict[str, Any]) -> VisualizationSettings:
    """Return visualization configuration as :class:`VisualizationSettings`."""

    defaults = dict(config.get("visualization") or {})
    base = VisualizationSettings()
    for field_name in VisualizationSettings.__dataclass_fields__:
        defaults.setdefault(field_name, getattr(base, field_name))

    # Apply environment variable overrides if present for all known keys
    env_overrides = {
        k: coerce_setting(k, v, getattr(base, k))
        for k in VisualizationSettings.__dataclass_fields__.keys()
        if (v := _env_override(k)) is not None
    }
    if env_overrides:
        logger.debug("Environment overrides: %s", sorted(env_overrides))

    return validate_visualization_settings({**defaults, **env_overrides})


def get_logging_level(config: Dict[str, Any]) -> int:
    """Return the numeric log level configured under ``logging.level``."""
    name = str((config.get("logging") or {}).get("level", "INFO")).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries"""
    result = base_config.copy()
    for key, value in override_config.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_config_with_overrides(
    config_path: str | None = None, overrides: Dict[str, Any] | None = None
) -> Dict[str, Any]:
    """Convenience wrapper around :func:`load_config` applying ``overrides``."""

    cfg = load_config(config_path)
    if overrides:
        cfg = merge_configs(cfg, overrides)
    return cfg
