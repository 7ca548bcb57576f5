"""GPU acceleration utilities."""

from spatiallagpy.gpu.backend import GPU_AVAILABLE, ensure_numpy, get_array_module

__all__ = ["GPU_AVAILABLE", "get_array_module", "ensure_numpy"]
