"""
Spatial lag computation.

The spatial lag is the weighted sum of a variable over each observation's
neighbors:
    lag_i = sum_j(w_ij * y_j)

With row-standardized weights this is the neighborhood average.
"""

import logging
from typing import Literal, Optional, Sequence, Union

import numpy as np
from scipy import sparse as sp_sparse

from spatiallagpy.gpu.backend import GPU_AVAILABLE, ensure_numpy, get_array_module, to_device_matrix
from spatiallagpy.neighbors.base import NeighborList

logger = logging.getLogger(__name__)


def _check_shapes(W, n_obs: int) -> None:
    if W.shape[1] != n_obs:
        raise ValueError(f"Weights matrix has {W.shape[1]} columns but the variable has {n_obs} values")


def compute_spatial_lag(
    W,
    y,
    use_gpu: bool = True,
) -> np.ndarray:
    """
    Compute the spatial lag of a variable.

    Formula: lag = W @ y

    Parameters
    ----------
    W : sparse matrix or np.ndarray
        Weights matrix (n x n).
    y : array-like
        Variable values (length n).
    use_gpu : bool, default=True
        Whether to use GPU acceleration when CuPy is installed.

    Returns
    -------
    np.ndarray
        Spatial lag vector (length n).

    Examples
    --------
    >>> from spatiallagpy.neighbors import knn_neighbors
    >>> from spatiallagpy.core.weights import create_binary_weights
    >>> coords = np.random.randn(100, 2)
    >>> W = create_binary_weights(knn_neighbors(coords, k=4), row_normalize=True)
    >>> lag = compute_spatial_lag(W, np.ones(100))
    >>> np.allclose(lag, 1.0)
    True
    """
    y = np.asarray(y, dtype=np.float64).ravel()
    _check_shapes(W, y.shape[0])

    if use_gpu and GPU_AVAILABLE:
        xp = get_array_module(use_gpu)
        return ensure_numpy(to_device_matrix(W) @ xp.asarray(y))

    if sp_sparse.issparse(W):
        return np.asarray(W @ y).ravel()
    return np.dot(np.asarray(W, dtype=np.float64), y)


def compute_spatial_lag_batch(
    W,
    Y,
    use_gpu: bool = True,
) -> np.ndarray:
    """
    Compute spatial lags of several variables at once.

    Formula: lag_Y = W @ Y

    Parameters
    ----------
    W : sparse matrix or np.ndarray
        Weights matrix (n x n).
    Y : array-like
        Variables in columns (n x n_vars).
    use_gpu : bool, default=True
        Whether to use GPU acceleration when CuPy is installed.

    Returns
    -------
    np.ndarray
        Lag matrix (n x n_vars).
    """
    Y = np.asarray(Y, dtype=np.float64)
    if Y.ndim == 1:
        Y = Y.reshape(-1, 1)
    _check_shapes(W, Y.shape[0])

    if use_gpu and GPU_AVAILABLE:
        xp = get_array_module(use_gpu)
        return ensure_numpy(to_device_matrix(W) @ xp.asarray(Y))

    if sp_sparse.issparse(W):
        return np.asarray(W @ Y)
    return np.dot(np.asarray(W, dtype=np.float64), Y)


def lag_dataframe(
    W,
    df,
    columns: Sequence[str],
    suffix: str = "_lag",
    use_gpu: bool = True,
):
    """
    Append spatial lag columns to a DataFrame.

    Parameters
    ----------
    W : sparse matrix or np.ndarray
        Weights matrix aligned with the DataFrame rows.
    df : pandas.DataFrame
        Observation table (a GeoDataFrame works too).
    columns : sequence of str
        Numeric columns to lag.
    suffix : str, default="_lag"
        Suffix for the new column names.
    use_gpu : bool, default=True
        Passed to :func:`compute_spatial_lag_batch`.

    Returns
    -------
    pandas.DataFrame
        Copy of ``df`` with one ``<column><suffix>`` column per input column.
    """
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise KeyError(f"Columns {missing} not found. Available: {list(df.columns)}")

    lags = compute_spatial_lag_batch(W, df[list(columns)].to_numpy(dtype=np.float64), use_gpu=use_gpu)

    out = df.copy()
    for k, col in enumerate(columns):
        out[f"{col}{suffix}"] = lags[:, k]
    return out


def lag_categorical(
    neighbors: Union[NeighborList, sp_sparse.spmatrix, np.ndarray],
    labels,
    ties: Literal["lowest", "random"] = "lowest",
    random_seed: Optional[int] = None,
) -> np.ndarray:
    """
    Spatial lag of a categorical variable: the most common neighbor label.

    Parameters
    ----------
    neighbors : NeighborList or weights matrix
        Neighbor structure. For a matrix, stored off-diagonal entries with
        positive weight define the neighbors and the weights act as votes.
    labels : array-like
        Category per observation (length n).
    ties : {"lowest", "random"}, default="lowest"
        Tie breaking: the label that sorts first, or a random choice among
        the tied labels.
    random_seed : int, optional
        Seed for ``ties="random"``.

    Returns
    -------
    np.ndarray
        Modal neighbor label per observation. Observations without neighbors
        keep their own label.

    Examples
    --------
    >>> nl = NeighborList([np.array([1, 2]), np.array([0]), np.array([0])])
    >>> lag_categorical(nl, np.array(["a", "b", "b"]))
    array(['b', 'a', 'a'], dtype='<U1')
    """
    if ties not in ("lowest", "random"):
        raise ValueError(f"Unknown tie rule: '{ties}'. Use 'lowest' or 'random'.")

    labels = np.asarray(labels)
    uniq, codes = np.unique(labels, return_inverse=True)
    codes = codes.ravel()
    n = labels.shape[0]

    if isinstance(neighbors, NeighborList):
        W = neighbors.to_sparse()
    else:
        W = sp_sparse.csr_matrix(neighbors, dtype=np.float64)
        W = (W - sp_sparse.diags(W.diagonal(), format="csr")).tocsr()
        W.eliminate_zeros()
    _check_shapes(W, n)

    # votes[i, c] = total weight of i's neighbors carrying label c
    indicator = sp_sparse.csr_matrix(
        (np.ones(n), (np.arange(n), codes)), shape=(n, len(uniq))
    )
    votes = np.asarray((W @ indicator).todense())

    rng = np.random.default_rng(random_seed)
    result = labels.copy()
    for i in range(n):
        row = votes[i]
        best = row.max()
        if best <= 0:
            continue
        tied = np.flatnonzero(np.isclose(row, best))
        pick = tied[0] if ties == "lowest" else rng.choice(tied)
        result[i] = uniq[pick]

    return result
