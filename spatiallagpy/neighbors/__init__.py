"""Neighbor search utilities."""

from spatiallagpy.neighbors.base import NeighborList
from spatiallagpy.neighbors.contiguity import contiguity_neighbors
from spatiallagpy.neighbors.kdtree import (
    KNNSearch,
    distance_band_neighbors,
    knn_neighbors,
    min_threshold_distance,
)

__all__ = [
    "NeighborList",
    "KNNSearch",
    "knn_neighbors",
    "distance_band_neighbors",
    "min_threshold_distance",
    "contiguity_neighbors",
]
