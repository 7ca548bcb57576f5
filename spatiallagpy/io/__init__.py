"""I/O utilities for observation sets, weights and result tables."""

from spatiallagpy.io.hdf5 import load_weights_hdf5, save_summary, save_weights_hdf5
from spatiallagpy.io.loaders import get_coordinates, is_geodataframe, load_geodata, load_points

__all__ = [
    "load_points",
    "load_geodata",
    "get_coordinates",
    "is_geodataframe",
    "save_weights_hdf5",
    "load_weights_hdf5",
    "save_summary",
]
