"""
Spatial weights construction.

Implements:
- Binary weights from a neighbor list
- Inverse-distance weights: w_ij = 1 / d_ij^alpha
- Kernel weights with fixed or adaptive (k-th neighbor) bandwidth
- Gaussian distance-band decay: w(d) = exp(-(d/sigma)^2 / 2)
- Row standardization and other transforms

Every builder returns an (n, n) scipy.sparse.csr_matrix holding only the
explicit neighbor pairs (plus the diagonal where a kernel asks for it).
"""

import logging
from typing import Optional, Union

import numpy as np
from scipy import sparse as sp_sparse

from spatiallagpy.core.kernels import get_kernel
from spatiallagpy.neighbors.base import NeighborList
from spatiallagpy.neighbors.kdtree import KNNSearch

logger = logging.getLogger(__name__)

# Adaptive bandwidths are stretched by this factor so the k-th neighbor keeps
# a small positive kernel weight instead of sitting exactly on the edge.
BANDWIDTH_INFLATION = 1.0000001


def _compute_distances_chunked(
    coords: np.ndarray,
    radius: float,
    chunk_size: int = 5000,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Pairwise distances within ``radius``, computed block by block.

    Returns sparse coordinate format (rows, cols, distances), diagonal included.
    """
    n = coords.shape[0]
    radius_sq = radius * radius

    rows_list = []
    cols_list = []
    dists_list = []

    for chunk_start in range(0, n, chunk_size):
        chunk_end = min(chunk_start + chunk_size, n)
        chunk = coords[chunk_start:chunk_end]

        diff_x = chunk[:, 0:1] - coords[:, 0].reshape(1, -1)
        diff_y = chunk[:, 1:2] - coords[:, 1].reshape(1, -1)
        dist_sq = diff_x**2 + diff_y**2

        rows, cols = np.where(dist_sq <= radius_sq)
        rows_list.append(rows + chunk_start)
        cols_list.append(cols)
        dists_list.append(np.sqrt(dist_sq[rows, cols]))

    if not rows_list:
        return np.array([], dtype=np.int64), np.array([], dtype=np.int64), np.array([])
    return np.concatenate(rows_list), np.concatenate(cols_list), np.concatenate(dists_list)


def create_binary_weights(
    neighbors: NeighborList,
    row_normalize: bool = False,
) -> sp_sparse.csr_matrix:
    """
    Binary weights: 1 for every neighbor pair, 0 elsewhere.

    Parameters
    ----------
    neighbors : NeighborList
        Neighbor structure (k-nearest, distance band or contiguity).
    row_normalize : bool, default=False
        Whether to row-standardize, giving each neighbor weight 1 / k_i.

    Returns
    -------
    scipy.sparse.csr_matrix
        Weights matrix of shape (n, n).
    """
    W = neighbors.to_sparse()
    if row_normalize:
        W = row_normalize_weights(W)
    return W


def create_inverse_distance_weights(
    neighbors: NeighborList,
    alpha: float = 1.0,
    row_normalize: bool = False,
) -> sp_sparse.csr_matrix:
    """
    Inverse-distance weights over a distance-based neighbor list.

    Formula: w_ij = 1 / d_ij^alpha

    Parameters
    ----------
    neighbors : NeighborList
        Neighbor list with distances (k-nearest or distance band).
    alpha : float, default=1.0
        Distance decay exponent. 1 gives inverse distance, 2 the gravity form.
    row_normalize : bool, default=False
        Whether to row-standardize afterwards.

    Returns
    -------
    scipy.sparse.csr_matrix
        Weights matrix of shape (n, n).

    Examples
    --------
    >>> from spatiallagpy.neighbors import knn_neighbors
    >>> coords = np.array([[0.0, 0.0], [1.0, 0.0], [3.0, 0.0]])
    >>> W = create_inverse_distance_weights(knn_neighbors(coords, k=2), alpha=1)
    >>> W[0, 1], W[0, 2]
    (1.0, 0.3333333333333333)
    """
    if alpha <= 0:
        raise ValueError(f"alpha must be positive, got {alpha}")

    dists = neighbors.flat_distances()
    if np.any(dists <= 0):
        raise ValueError(
            "Inverse-distance weights are undefined for coincident points (zero distance)"
        )

    W = neighbors.to_sparse(1.0 / dists**alpha)
    if row_normalize:
        W = row_normalize_weights(W)
    return W


def create_kernel_weights(
    coords,
    k: int = 2,
    function: str = "epanechnikov",
    fixed: bool = False,
    bandwidth: Optional[float] = None,
    include_diagonal: bool = True,
) -> sp_sparse.csr_matrix:
    """
    Kernel weights over the k nearest neighbors.

    Parameters
    ----------
    coords : array-like
        Coordinates of shape (n, 2).
    k : int, default=2
        Number of nearest neighbors that receive weight.
    function : str, default="epanechnikov"
        Kernel name, see :mod:`spatiallagpy.core.kernels`.
    fixed : bool, default=False
        False: each observation's bandwidth is its k-th neighbor distance
        (variable bandwidth). True: a single bandwidth for all observations.
    bandwidth : float, optional
        Explicit bandwidth for ``fixed=True``. Default: the largest k-th
        neighbor distance. With a fixed bandwidth every point within it
        receives weight, not only the k nearest.
    include_diagonal : bool, default=True
        Store K(0) on the diagonal (each observation weighs itself).

    Returns
    -------
    scipy.sparse.csr_matrix
        Weights matrix of shape (n, n).

    Notes
    -----
    Adaptive bandwidths are multiplied by ``BANDWIDTH_INFLATION`` so the
    k-th neighbor's weight is tiny but not zero.
    """
    kernel = get_kernel(function)
    coords = np.asarray(coords, dtype=np.float64)
    search = KNNSearch(coords)
    n = search.n_points

    knn = search.query_knn(k)
    kth_distance = np.array([d[-1] for d in knn.distances])

    if fixed:
        h = float(bandwidth) if bandwidth is not None else kth_distance.max() * BANDWIDTH_INFLATION
        nl = search.query_radius(h)
        rows, cols = nl.to_coo()
        values = kernel(nl.flat_distances(), h)
        diag_bw = np.full(n, h)
    else:
        if bandwidth is not None:
            logger.warning("Explicit bandwidth is ignored for adaptive kernels (fixed=False)")
        h_i = kth_distance * BANDWIDTH_INFLATION
        if np.any(h_i <= 0):
            raise ValueError("Adaptive bandwidth is zero: k nearest neighbors coincide with a point")
        rows, cols = knn.to_coo()
        values = kernel(knn.flat_distances(), h_i[rows])
        diag_bw = h_i

    W = sp_sparse.csr_matrix((values, (rows, cols)), shape=(n, n), dtype=np.float64)
    if include_diagonal:
        W = set_diagonal(W, kernel(np.zeros(n), diag_bw))
    # pairs exactly at the bandwidth get K = 0
    W.eliminate_zeros()

    logger.debug(f"Kernel weights ({function}, fixed={fixed}): {W.nnz} non-zero entries")
    return W


def create_gaussian_weights(
    coords,
    radius: float,
    sigma: Optional[float] = None,
    include_diagonal: bool = False,
    sparse: bool = True,
    row_normalize: bool = False,
) -> Union[np.ndarray, sp_sparse.csr_matrix]:
    """
    Gaussian distance-decay weights within a distance band.

    Weight formula: w(d) = exp(-(d/sigma)^2 / 2)

    Parameters
    ----------
    coords : array-like
        Coordinates of shape (n, 2).
    radius : float
        Maximum distance for non-zero weights.
    sigma : float, optional
        Decay parameter. Default: radius / 3.
    include_diagonal : bool, default=False
        Whether to keep self-weights (value 1).
    sparse : bool, default=True
        Return a sparse matrix; False returns a dense array.
    row_normalize : bool, default=False
        Whether to row-standardize.

    Returns
    -------
    scipy.sparse.csr_matrix or np.ndarray
        Weights matrix of shape (n, n).

    Notes
    -----
    With sigma = radius / 3 the weight at the band edge is about 0.011.
    """
    coords = np.asarray(coords, dtype=np.float64)
    n = coords.shape[0]

    if sigma is None:
        sigma = radius / 3.0
    gaussian_factor = -1.0 / (2.0 * sigma * sigma)

    rows, cols, dists = _compute_distances_chunked(coords, radius)
    if not include_diagonal:
        mask = rows != cols
        rows, cols, dists = rows[mask], cols[mask], dists[mask]

    weights = np.exp(dists**2 * gaussian_factor)
    W = sp_sparse.csr_matrix((weights, (rows, cols)), shape=(n, n), dtype=np.float64)

    if row_normalize:
        W = row_normalize_weights(W)
    if not sparse:
        W = W.toarray()
    return W


def row_normalize_weights(W) -> sp_sparse.csr_matrix:
    """
    Row-standardize a weights matrix.

    Each row with a positive sum is divided by that sum, so the row sums to 1.
    Rows with zero sum (islands) stay all zeros, which gives them a spatial
    lag of 0.

    Parameters
    ----------
    W : sparse matrix or np.ndarray
        Weights matrix.

    Returns
    -------
    scipy.sparse.csr_matrix
        Row-standardized copy.

    Examples
    --------
    >>> W = sp_sparse.csr_matrix(np.array([[0, 1, 1], [2, 0, 0], [0, 0, 0]]))
    >>> row_normalize_weights(W).toarray()
    array([[0. , 0.5, 0.5],
           [1. , 0. , 0. ],
           [0. , 0. , 0. ]])
    """
    W = sp_sparse.csr_matrix(W, dtype=np.float64)

    row_sums = np.asarray(W.sum(axis=1)).ravel()
    n_islands = int(np.sum(row_sums == 0))
    if n_islands:
        logger.warning(f"{n_islands} rows have zero weight sum and stay zero after row standardization")

    row_sums_inv = np.where(row_sums > 0, 1.0 / np.where(row_sums > 0, row_sums, 1.0), 0.0)
    return (sp_sparse.diags(row_sums_inv, format="csr") @ W).tocsr()


def binarize_weights(W) -> sp_sparse.csr_matrix:
    """Replace every stored positive weight with 1."""
    W = sp_sparse.csr_matrix(W, dtype=np.float64, copy=True)
    W.data = (W.data > 0).astype(np.float64)
    W.eliminate_zeros()
    return W


def set_diagonal(W, value) -> sp_sparse.csr_matrix:
    """
    Return a copy of W with its diagonal set to ``value``.

    ``value`` may be a scalar or one value per observation. Setting 0 removes
    self-weights from the sparsity structure.
    """
    W = sp_sparse.lil_matrix(W, dtype=np.float64, copy=True)
    W.setdiag(value)
    W = W.tocsr()
    W.eliminate_zeros()
    return W


def get_weight_sum(W) -> float:
    """Total weight S0 = sum_ij w_ij."""
    if sp_sparse.issparse(W):
        return float(W.sum())
    return float(np.sum(W))


def weights_summary(W) -> dict:
    """
    Describe a weights matrix.

    Returns
    -------
    dict
        n, nonzero, pct_nonzero, min/mean/max cardinality (off-diagonal
        neighbors), islands, has_diagonal, symmetric and s0.
    """
    W = sp_sparse.csr_matrix(W, dtype=np.float64)
    n = W.shape[0]
    diag = W.diagonal()

    off = W - sp_sparse.diags(diag, format="csr")
    off.eliminate_zeros()
    cardinality = np.diff(off.indptr)

    return {
        "n": n,
        "nonzero": int(W.nnz),
        "pct_nonzero": 100.0 * W.nnz / (n * n) if n else 0.0,
        "min_neighbors": int(cardinality.min()) if n else 0,
        "mean_neighbors": float(cardinality.mean()) if n else 0.0,
        "max_neighbors": int(cardinality.max()) if n else 0,
        "islands": np.where(cardinality == 0)[0].tolist(),
        "has_diagonal": bool(np.any(diag != 0)),
        "symmetric": bool(abs(W - W.T).max() < 1e-12) if W.nnz else True,
        "s0": get_weight_sum(W),
    }
