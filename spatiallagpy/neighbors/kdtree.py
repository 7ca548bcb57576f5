"""
KD-tree based neighbor search.

Uses scipy.spatial.cKDTree for O(n log n) k-nearest-neighbor and
distance-band queries on point coordinates (or polygon centroids).
"""

import logging

import numpy as np
from scipy.spatial import cKDTree

from spatiallagpy.neighbors.base import NeighborList

logger = logging.getLogger(__name__)


class KNNSearch:
    """
    KD-tree backed neighbor search over 2-D coordinates.

    Parameters
    ----------
    coords : array-like
        Coordinates of shape (n, 2).
    leafsize : int, default=16
        Number of points at which the tree switches to brute force.

    Examples
    --------
    >>> coords = np.random.randn(500, 2) * 100
    >>> search = KNNSearch(coords)
    >>> nl = search.query_knn(k=4)
    >>> nl.cardinalities.min()
    4
    """

    def __init__(self, coords, leafsize: int = 16):
        self.coords = np.asarray(coords, dtype=np.float64)
        if self.coords.ndim != 2 or self.coords.shape[1] != 2:
            raise ValueError(f"coords must have shape (n, 2), got {self.coords.shape}")
        self.n_points = self.coords.shape[0]
        self.tree = cKDTree(self.coords, leafsize=leafsize)

    def query_knn(self, k: int) -> NeighborList:
        """
        Find the ``k`` nearest other points of every point.

        Neighbors are ordered by increasing distance. The query asks the
        tree for ``k + 1`` points and drops the point itself, so coincident
        points still count as neighbors of each other.

        Parameters
        ----------
        k : int
            Number of neighbors, ``1 <= k < n``.

        Returns
        -------
        NeighborList
            Neighbor indices and distances, rule "knn".
        """
        if k < 1 or k >= self.n_points:
            raise ValueError(f"k must satisfy 1 <= k < n ({self.n_points}), got {k}")

        dists, idx = self.tree.query(self.coords, k=k + 1)

        neighbors = []
        distances = []
        for i in range(self.n_points):
            keep = idx[i] != i
            # Duplicate points can push i out of its own result set.
            nb = idx[i][keep][:k]
            d = dists[i][keep][:k]
            neighbors.append(nb)
            distances.append(d)

        return NeighborList(neighbors, distances, rule="knn")

    def query_radius(self, threshold: float) -> NeighborList:
        """
        Find all other points within ``threshold`` (distance band).

        Parameters
        ----------
        threshold : float
            Band radius; pairs with ``d <= threshold`` are neighbors.

        Returns
        -------
        NeighborList
            Neighbor indices sorted by distance, rule "distance_band".
        """
        if threshold <= 0:
            raise ValueError(f"threshold must be positive, got {threshold}")

        candidates = self.tree.query_ball_point(self.coords, threshold)

        neighbors = []
        distances = []
        for i, cand in enumerate(candidates):
            cand = np.asarray([j for j in cand if j != i], dtype=np.int64)
            d = np.linalg.norm(self.coords[cand] - self.coords[i], axis=1) if len(cand) else np.array([])
            order = np.argsort(d, kind="stable")
            neighbors.append(cand[order])
            distances.append(d[order])

        nl = NeighborList(neighbors, distances, rule="distance_band")
        if len(nl.islands):
            logger.warning(
                f"Distance band {threshold} leaves {len(nl.islands)} observations without neighbors"
            )
        return nl

    def nearest_distances(self) -> np.ndarray:
        """Distance from each point to its closest other point."""
        dists, _ = self.tree.query(self.coords, k=2)
        return dists[:, 1]


def knn_neighbors(coords, k: int = 6) -> NeighborList:
    """
    Convenience wrapper for k-nearest-neighbor search.

    Examples
    --------
    >>> nl = knn_neighbors(np.random.randn(100, 2), k=5)
    """
    return KNNSearch(coords).query_knn(k)


def distance_band_neighbors(coords, threshold: float) -> NeighborList:
    """Convenience wrapper for a distance band query."""
    return KNNSearch(coords).query_radius(threshold)


def min_threshold_distance(coords) -> float:
    """
    Smallest distance band that leaves no observation isolated.

    This is the largest nearest-neighbor distance in the data set, nudged
    up by one part in 10^12 so the farthest pair survives the rounding of
    squared-distance comparisons.
    """
    return float(KNNSearch(coords).nearest_distances().max()) * (1 + 1e-12)
