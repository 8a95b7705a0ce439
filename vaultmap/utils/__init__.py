"""Utility helpers for vaultmap."""

from .config import get_visualization_settings, load_config, merge_configs

__all__ = ["get_visualization_settings", "load_config", "merge_configs"]
