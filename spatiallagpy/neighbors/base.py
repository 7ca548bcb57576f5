"""
Neighbor list container.

A neighbor list maps each observation index to an ordered array of neighbor
indices, optionally with the matching distances. It is the input from which
every weights matrix in this package is built.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy import sparse as sp_sparse


@dataclass
class NeighborList:
    """
    Ordered neighbor sets for ``n`` observations.

    Parameters
    ----------
    neighbors : list of np.ndarray
        ``neighbors[i]`` holds the neighbor indices of observation ``i``.
    distances : list of np.ndarray, optional
        ``distances[i][k]`` is the distance from ``i`` to ``neighbors[i][k]``.
        None for rules that are not distance based (contiguity).
    rule : str
        Name of the rule that produced the list ("knn", "distance_band",
        "queen", "rook").

    Examples
    --------
    >>> nl = NeighborList([np.array([1]), np.array([0, 2]), np.array([1])])
    >>> nl.cardinalities
    array([1, 2, 1])
    """

    neighbors: list
    distances: Optional[list] = None
    rule: str = "custom"

    def __post_init__(self):
        self.neighbors = [np.asarray(nb, dtype=np.int64).ravel() for nb in self.neighbors]
        if self.distances is not None:
            self.distances = [np.asarray(d, dtype=np.float64).ravel() for d in self.distances]
            if len(self.distances) != len(self.neighbors):
                raise ValueError(
                    f"distances has {len(self.distances)} entries, "
                    f"neighbors has {len(self.neighbors)}"
                )
            for i, (nb, d) in enumerate(zip(self.neighbors, self.distances)):
                if nb.shape != d.shape:
                    raise ValueError(f"Observation {i}: {len(nb)} neighbors but {len(d)} distances")
        for i, nb in enumerate(self.neighbors):
            if np.any(nb == i):
                raise ValueError(f"Observation {i} lists itself as a neighbor")

    @property
    def n(self) -> int:
        """Number of observations."""
        return len(self.neighbors)

    @property
    def cardinalities(self) -> np.ndarray:
        """Number of neighbors of each observation."""
        return np.array([len(nb) for nb in self.neighbors], dtype=np.int64)

    @property
    def islands(self) -> np.ndarray:
        """Indices of observations without neighbors."""
        return np.where(self.cardinalities == 0)[0]

    def to_coo(self) -> tuple[np.ndarray, np.ndarray]:
        """Flatten into (rows, cols) index arrays."""
        if self.n == 0:
            return np.array([], dtype=np.int64), np.array([], dtype=np.int64)
        rows = np.repeat(np.arange(self.n), self.cardinalities)
        cols = np.concatenate(self.neighbors)
        return rows, cols.astype(np.int64)

    def flat_distances(self) -> np.ndarray:
        """Distances aligned with :meth:`to_coo`."""
        if self.distances is None:
            raise ValueError(f"Neighbor list built by rule '{self.rule}' carries no distances")
        if self.n == 0:
            return np.array([], dtype=np.float64)
        return np.concatenate(self.distances)

    def to_sparse(self, values=None) -> sp_sparse.csr_matrix:
        """
        Convert to an ``(n, n)`` CSR matrix.

        Parameters
        ----------
        values : array-like, optional
            One value per neighbor pair in :meth:`to_coo` order.
            Default: 1 for every pair (binary weights).

        Returns
        -------
        scipy.sparse.csr_matrix
        """
        rows, cols = self.to_coo()
        if values is None:
            values = np.ones(len(rows), dtype=np.float64)
        else:
            values = np.asarray(values, dtype=np.float64)
            if values.shape != rows.shape:
                raise ValueError(f"Expected {len(rows)} values, got {values.shape[0]}")
        return sp_sparse.csr_matrix((values, (rows, cols)), shape=(self.n, self.n))

    def is_symmetric(self) -> bool:
        """True when j in N(i) implies i in N(j)."""
        A = self.to_sparse()
        return (A != A.T).nnz == 0

    def symmetrize(self) -> "NeighborList":
        """
        Return the union of the relation and its transpose.

        k-nearest-neighbor relations are usually asymmetric; this adds the
        missing reverse links. Distances are kept when present.
        """
        rows, cols = self.to_coo()
        if self.distances is not None:
            d = self.flat_distances()
            d = np.concatenate([d, d])
        else:
            d = None
        rows, cols = np.concatenate([rows, cols]), np.concatenate([cols, rows])

        order = np.lexsort((cols, rows))
        rows, cols = rows[order], cols[order]
        keep = np.ones(len(rows), dtype=bool)
        keep[1:] = (rows[1:] != rows[:-1]) | (cols[1:] != cols[:-1])
        rows, cols = rows[keep], cols[keep]
        if d is not None:
            d = d[order][keep]

        bounds = np.searchsorted(rows, np.arange(self.n + 1))
        neighbors = [cols[bounds[i] : bounds[i + 1]] for i in range(self.n)]
        distances = None
        if d is not None:
            distances = [d[bounds[i] : bounds[i + 1]] for i in range(self.n)]
        return NeighborList(neighbors, distances, rule=f"{self.rule}_symmetric")

    def __len__(self) -> int:
        return self.n

    def __getitem__(self, i: int) -> np.ndarray:
        return self.neighbors[i]
