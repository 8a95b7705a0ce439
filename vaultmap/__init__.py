"""Vaultmap: graph and embedding vectors reduced to 3D for visualization."""

__version__ = "0.1.0"

# Keep imports light; the numerical core lives in ``vaultmap.analysis`` and the
# JSON entry points in ``vaultmap.boundary``.

__all__: list[str] = ["__version__"]
