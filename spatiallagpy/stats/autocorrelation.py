"""
Spatial autocorrelation of a variable and its spatial lag.

Implements:
- Global Moran's I with a permutation test
- Local Moran's I (LISA) with conditional permutation pseudo p-values
- Cluster labels from significant local statistics (HH, LL, HL, LH)

All statistics use row-standardized weights and the population-standardized
variable z, so that Moran's I is the slope of lag(z) on z.
"""

import logging
from typing import Literal, Optional

import numpy as np
from scipy import sparse as sp_sparse

from spatiallagpy.core.normalization import standardize_vector
from spatiallagpy.core.weights import row_normalize_weights, set_diagonal
from spatiallagpy.stats.fdr import apply_fdr_correction

logger = logging.getLogger(__name__)

QUADRANT_LABELS = {1: "HH", 2: "LH", 3: "LL", 4: "HL"}


def _prepare(y, W) -> tuple[np.ndarray, sp_sparse.csr_matrix]:
    z = standardize_vector(y)
    if np.allclose(z, 0.0):
        raise ValueError("Moran's I is undefined for a constant variable")
    W = sp_sparse.csr_matrix(W, dtype=np.float64)
    if W.shape != (z.shape[0], z.shape[0]):
        raise ValueError(f"Weights shape {W.shape} does not match {z.shape[0]} observations")
    Wr = row_normalize_weights(set_diagonal(W, 0.0))
    return z, Wr


def moran_from_lag(z, lag, s0: Optional[float] = None) -> float:
    """
    Moran's I from a standardized variable and its spatial lag.

    Formula: I = z' lag / S0, which equals z' lag / n for row-standardized
    weights without islands.
    """
    z = np.asarray(z, dtype=np.float64)
    lag = np.asarray(lag, dtype=np.float64)
    s0 = float(z.shape[0]) if s0 is None else s0
    return float(np.dot(z, lag)) / s0


def moran_i(y, W) -> float:
    """
    Global Moran's I.

    Parameters
    ----------
    y : array-like
        Variable (length n).
    W : sparse matrix or np.ndarray
        Weights; the diagonal is dropped and rows are standardized.

    Returns
    -------
    float
        Moran's I. Values near 1 indicate clustering, near -1/(n-1)
        spatial randomness, negative values dispersion.

    Examples
    --------
    >>> from spatiallagpy.datasets import make_lattice
    >>> from spatiallagpy.neighbors import contiguity_neighbors
    >>> grid = make_lattice(5, 5)
    >>> W = contiguity_neighbors(grid, kind="rook").to_sparse()
    >>> moran_i(grid["col"].to_numpy(), W) > 0.5
    True
    """
    z, Wr = _prepare(y, W)
    return moran_from_lag(z, Wr @ z, s0=Wr.sum())


def moran_permutation_test(
    y,
    W,
    n_permutations: int = 999,
    alternative: Literal["two-sided", "greater", "less"] = "two-sided",
    random_seed: Optional[int] = None,
    batch_size: int = 100,
) -> dict:
    """
    Permutation inference for global Moran's I.

    The variable is randomly reassigned to locations ``n_permutations``
    times; the pseudo p-value is (extreme + 1) / (n_permutations + 1).
    The two-sided test is folded: ``extreme`` is the smaller tail count,
    so it stays centered on the null rather than on zero.

    Parameters
    ----------
    y : array-like
        Variable (length n).
    W : sparse matrix or np.ndarray
        Weights.
    n_permutations : int, default=999
        Number of random relabelings.
    alternative : {"two-sided", "greater", "less"}, default="two-sided"
        Alternative hypothesis.
    random_seed : int, optional
        Seed for reproducibility.
    batch_size : int, default=100
        Permutations evaluated per sparse product.

    Returns
    -------
    dict
        'observed', 'pvalue', 'null_mean', 'null_std', 'z_score',
        'expected' (-1 / (n - 1)).
    """
    if alternative not in ("two-sided", "greater", "less"):
        raise ValueError(f"Unknown alternative: '{alternative}'")
    if n_permutations < 1:
        raise ValueError("n_permutations must be at least 1")

    z, Wr = _prepare(y, W)
    n = z.shape[0]
    s0 = Wr.sum()
    observed = moran_from_lag(z, Wr @ z, s0=s0)

    rng = np.random.default_rng(random_seed)
    null = np.empty(n_permutations)
    for start in range(0, n_permutations, batch_size):
        stop = min(start + batch_size, n_permutations)
        Z = np.stack([rng.permutation(z) for _ in range(stop - start)], axis=1)
        null[start:stop] = np.sum(Z * (Wr @ Z), axis=0) / s0

    greater = int(np.sum(null >= observed))
    if alternative == "two-sided":
        extreme = min(greater, n_permutations - greater)
    elif alternative == "greater":
        extreme = greater
    else:
        extreme = np.sum(null <= observed)
    pvalue = (extreme + 1) / (n_permutations + 1)

    null_mean = float(null.mean())
    null_std = float(null.std())
    z_score = (observed - null_mean) / null_std if null_std > 1e-10 else 0.0

    return {
        "observed": observed,
        "pvalue": float(pvalue),
        "null_mean": null_mean,
        "null_std": null_std,
        "z_score": float(z_score),
        "expected": -1.0 / (n - 1),
    }


def _quadrants(z: np.ndarray, lag: np.ndarray) -> np.ndarray:
    q = np.zeros(z.shape[0], dtype=np.int64)
    q[(z > 0) & (lag >= 0)] = 1
    q[(z <= 0) & (lag > 0)] = 2
    q[(z <= 0) & (lag <= 0)] = 3
    q[(z > 0) & (lag < 0)] = 4
    return q


def local_moran(
    y,
    W,
    n_permutations: int = 999,
    random_seed: Optional[int] = None,
) -> dict:
    """
    Local Moran's I with conditional permutation inference.

    Formula: I_i = z_i * lag_i, lag_i = sum_j w_ij z_j (row-standardized).

    For each observation the value z_i is held fixed while its k_i neighbor
    values are drawn at random (without replacement) from the other n - 1
    observations. The pseudo p-value is folded: it counts the permuted
    statistics at least as extreme as I_i in the direction of I_i.

    Parameters
    ----------
    y : array-like
        Variable (length n).
    W : sparse matrix or np.ndarray
        Weights.
    n_permutations : int, default=999
        Conditional permutations per observation; 0 skips inference.
    random_seed : int, optional
        Seed for reproducibility.

    Returns
    -------
    dict
        'Is' local statistics, 'z', 'lag', 'quadrant' (1=HH, 2=LH, 3=LL,
        4=HL), 'labels' (quadrant names) and 'pvalues' (NaN for islands or
        when n_permutations is 0).
    """
    z, Wr = _prepare(y, W)
    n = z.shape[0]
    lag = Wr @ z
    Is = z * lag
    quadrant = _quadrants(z, lag)

    pvalues = np.full(n, np.nan)
    if n_permutations > 0:
        rng = np.random.default_rng(random_seed)
        cardinality = np.diff(Wr.indptr)
        k_max = int(cardinality.max())

        # One shared draw of (n - 1)-permutation prefixes, shifted per observation
        # so index i itself is never sampled.
        prefixes = rng.random((n_permutations, n - 1)).argsort(axis=1)[:, :k_max]

        for i in range(n):
            k = cardinality[i]
            if k == 0:
                continue
            start, stop = Wr.indptr[i], Wr.indptr[i + 1]
            w = Wr.data[start:stop]
            idx = prefixes[:, :k]
            idx = idx + (idx >= i)
            null = z[i] * (z[idx] @ w)

            above = np.sum(null >= Is[i])
            extreme = min(above, n_permutations - above)
            pvalues[i] = (extreme + 1) / (n_permutations + 1)

    return {
        "Is": Is,
        "z": z,
        "lag": lag,
        "quadrant": quadrant,
        "labels": np.array([QUADRANT_LABELS[q] for q in quadrant]),
        "pvalues": pvalues,
    }


def classify_clusters(
    local: dict,
    alpha: float = 0.05,
    fdr: bool = False,
) -> np.ndarray:
    """
    Label significant local clusters.

    Parameters
    ----------
    local : dict
        Output of :func:`local_moran`.
    alpha : float, default=0.05
        Significance threshold.
    fdr : bool, default=False
        Apply Benjamini-Hochberg adjustment before thresholding.

    Returns
    -------
    np.ndarray
        "HH" (hot spot), "LL" (cold spot), "HL"/"LH" (spatial outliers) for
        significant observations, "ns" elsewhere.
    """
    pvalues = np.asarray(local["pvalues"], dtype=np.float64)
    if np.all(np.isnan(pvalues)):
        raise ValueError("Local statistics carry no p-values; rerun with n_permutations > 0")

    if fdr:
        significant = apply_fdr_correction(pvalues, method="bh", alpha=alpha)["significant"]
    else:
        significant = np.nan_to_num(pvalues, nan=1.0) < alpha

    labels = np.where(significant, local["labels"], "ns")
    logger.info(
        "Local clusters: "
        + ", ".join(f"{lab}={int(np.sum(labels == lab))}" for lab in ("HH", "LL", "HL", "LH"))
    )
    return labels
