from dataclasses import dataclass
from typing import Any, Dict, Literal

from pydantic import BaseModel, Field, model_validator


@dataclass
class VisualizationSettings:
    """Options controlling how vectors are projected and colored."""

    target_dims: int = 3
    # svd is the only method available
    reduction_method: str = "svd"
    scale: bool = False
    normalize: bool = False
    min_clusters: int = 3
    max_clusters: int = 10
    points_per_cluster: int = 50
    max_iterations: int = 100
    # adjacency|laplacian
    graph_type: str = "adjacency"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VisualizationSettings":
        """Create ``VisualizationSettings`` from a raw dictionary."""
        defaults = cls()
        return cls(**{k: data.get(k, getattr(defaults, k)) for k in cls.__dataclass_fields__})

    def update(self, overrides: Dict[str, Any]) -> None:
        """Update fields from a dictionary of overrides."""
        for key, value in overrides.items():
            if hasattr(self, key) and value is not None:
                setattr(self, key, value)


class VisualizationSettingsModel(BaseModel):
    """Pydantic model for validating visualization settings."""

    target_dims: int = Field(3, ge=1)
    reduction_method: Literal["svd"] = "svd"
    scale: bool = False
    normalize: bool = False
    min_clusters: int = Field(3, ge=1)
    max_clusters: int = Field(10, ge=1)
    points_per_cluster: int = Field(50, ge=1)
    max_iterations: int = Field(100, ge=1)
    graph_type: Literal["adjacency", "laplacian"] = "adjacency"

    @model_validator(mode="after")
    def _check_cluster_bounds(self) -> "VisualizationSettingsModel":
        if self.min_clusters > self.max_clusters:
            raise ValueError("min_clusters must not exceed max_clusters")
        return self

    def to_settings(self) -> VisualizationSettings:
        """Convert to :class:`VisualizationSettings`."""
        return VisualizationSettings.from_dict(self.model_dump())
