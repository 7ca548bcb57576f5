"""
Rate smoothing.

Implements:
- Crude rates and excess risk (standardized ratio)
- Spatial rate smoothing: (sum_j w_ij O_j) / (sum_j w_ij P_j)
- Kernel smoothing with kernel weights as given
- Global Empirical Bayes shrinkage toward the overall rate
- Spatial Empirical Bayes shrinkage toward a local reference rate

Events O (counts) must be non-negative and base populations P strictly
positive, so every smoothing denominator is positive.
"""

import logging

import numpy as np
from scipy import sparse as sp_sparse

from spatiallagpy.core.spatial_lag import compute_spatial_lag
from spatiallagpy.core.weights import binarize_weights, set_diagonal

logger = logging.getLogger(__name__)


def _validate_counts(events, base) -> tuple[np.ndarray, np.ndarray]:
    """Coerce events/base to float vectors and check they describe valid rates."""
    events = np.asarray(events, dtype=np.float64).ravel()
    base = np.asarray(base, dtype=np.float64).ravel()

    if events.shape != base.shape:
        raise ValueError(f"events has {events.shape[0]} values but base has {base.shape[0]}")
    if events.size == 0:
        raise ValueError("events and base are empty")
    if np.any(~np.isfinite(events)) or np.any(~np.isfinite(base)):
        raise ValueError("events and base must be finite")
    if np.any(events < 0):
        raise ValueError("events must be non-negative")
    if np.any(base <= 0):
        raise ValueError(f"base must be strictly positive; {int(np.sum(base <= 0))} values are not")
    return events, base


def _window_weights(W, include_diagonal: bool, binary: bool) -> sp_sparse.csr_matrix:
    """Weights used to pool numerator and denominator."""
    W = sp_sparse.csr_matrix(W, dtype=np.float64)
    if binary:
        W = binarize_weights(W)
    if include_diagonal:
        W = set_diagonal(W, 1.0)
    return W


def crude_rate(events, base) -> np.ndarray:
    """
    Raw rate O_i / P_i.

    Examples
    --------
    >>> crude_rate([1, 4], [10, 20])
    array([0.1, 0.2])
    """
    events, base = _validate_counts(events, base)
    return events / base


def excess_risk(events, base) -> np.ndarray:
    """
    Observed over expected events.

    Expected events are ``P_i * sum(O) / sum(P)``, so values above 1 mark
    observations with more events than the overall rate predicts.
    """
    events, base = _validate_counts(events, base)
    global_rate = events.sum() / base.sum()
    if global_rate == 0:
        return np.zeros_like(events)
    return events / (base * global_rate)


def spatial_rate(
    events,
    base,
    W,
    include_diagonal: bool = True,
    binary: bool = True,
) -> np.ndarray:
    """
    Spatially smoothed rate.

    Formula: rate_i = (sum_j w_ij O_j) / (sum_j w_ij P_j)

    Parameters
    ----------
    events : array-like
        Event counts O (length n).
    base : array-like
        Populations at risk P (length n), strictly positive.
    W : sparse matrix or np.ndarray
        Weights matrix defining the neighbor window.
    include_diagonal : bool, default=True
        Add each observation to its own window with weight 1. This is the
        policy for binary/contiguity windows; kernel weights already carry
        their diagonal (see :func:`kernel_smoother`).
    binary : bool, default=True
        Pool neighbors with equal weight (any positive w_ij becomes 1),
        as with contiguity or k-nearest-neighbor windows.

    Returns
    -------
    np.ndarray
        Smoothed rates (length n).

    Examples
    --------
    >>> from spatiallagpy.neighbors import NeighborList
    >>> nl = NeighborList([np.array([1]), np.array([0])])
    >>> spatial_rate([1, 3], [10, 10], nl.to_sparse())
    array([0.2, 0.2])
    """
    events, base = _validate_counts(events, base)
    Wd = _window_weights(W, include_diagonal, binary)

    numerator = compute_spatial_lag(Wd, events, use_gpu=False)
    denominator = compute_spatial_lag(Wd, base, use_gpu=False)
    return _safe_ratio(numerator, denominator)


def kernel_smoother(events, base, W) -> np.ndarray:
    """
    Kernel-weighted rate using the weights exactly as given.

    Use with :func:`spatiallagpy.core.weights.create_kernel_weights`, whose
    diagonal already holds K(0).
    """
    events, base = _validate_counts(events, base)
    W = sp_sparse.csr_matrix(W, dtype=np.float64)
    if not np.any(W.diagonal() > 0):
        logger.warning("Kernel weights have no diagonal; observations do not weigh their own rate")

    numerator = compute_spatial_lag(W, events, use_gpu=False)
    denominator = compute_spatial_lag(W, base, use_gpu=False)
    return _safe_ratio(numerator, denominator)


def _safe_ratio(numerator: np.ndarray, denominator: np.ndarray) -> np.ndarray:
    """Divide, leaving NaN where a window has no weight at all."""
    empty = denominator <= 0
    if np.any(empty):
        logger.warning(f"{int(empty.sum())} observations have an empty smoothing window")
    return np.where(empty, np.nan, numerator / np.where(empty, 1.0, denominator))


def _shrink(rate, prior_mean, prior_var, base) -> tuple[np.ndarray, np.ndarray]:
    """EB blend: prior + (rate - prior) * var / (var + prior / base)."""
    denom = prior_var + prior_mean / base
    shrinkage = np.where(denom > 0, prior_var / np.where(denom > 0, denom, 1.0), 0.0)
    return prior_mean + (rate - prior_mean) * shrinkage, shrinkage


def empirical_bayes(events, base, return_components: bool = False):
    """
    Global Empirical Bayes smoothing.

    Every raw rate is shrunk toward the overall rate m = sum(O) / sum(P)
    with the method-of-moments prior variance

        v = sum(P_i (r_i - m)^2) / sum(P) - m / mean(P)

    clipped to zero, and shrinkage factor v / (v + m / P_i).

    Parameters
    ----------
    events : array-like
        Event counts O.
    base : array-like
        Populations P, strictly positive.
    return_components : bool, default=False
        Also return the prior mean, prior variance and shrinkage factors.

    Returns
    -------
    np.ndarray or dict
        Smoothed rates, or a dict with 'rate', 'prior_mean',
        'prior_variance' and 'shrinkage'.
    """
    events, base = _validate_counts(events, base)
    rate = events / base

    m = events.sum() / base.sum()
    v = np.sum(base * (rate - m) ** 2) / base.sum() - m / base.mean()
    if v < 0:
        logger.debug(f"Global EB variance estimate {v:.3g} clipped to zero")
        v = 0.0

    smoothed, shrinkage = _shrink(rate, m, v, base)
    if return_components:
        return {
            "rate": smoothed,
            "prior_mean": np.full_like(rate, m),
            "prior_variance": np.full_like(rate, v),
            "shrinkage": shrinkage,
        }
    return smoothed


def spatial_empirical_bayes(events, base, W, return_components: bool = False):
    """
    Spatial Empirical Bayes smoothing.

    Each raw rate r_i = O_i / P_i is shrunk toward a local reference rate
    computed over the window S_i = {i} U N(i):

        m_i = sum_S O_j / sum_S P_j
        v_i = sum_S P_j (r_j - m_i)^2 / sum_S P_j - m_i / (sum_S P_j / |S_i|)
        rate_i = m_i + (r_i - m_i) * v_i / (v_i + m_i / P_i)

    Negative variance estimates are set to zero, in which case the
    observation takes the local reference rate.

    Parameters
    ----------
    events : array-like
        Event counts O (length n).
    base : array-like
        Populations P (length n), strictly positive.
    W : sparse matrix or np.ndarray
        Weights whose positive off-diagonal entries define the neighbors.
    return_components : bool, default=False
        Also return prior means, prior variances and shrinkage factors.

    Returns
    -------
    np.ndarray or dict
        Smoothed rates, or a dict with 'rate', 'prior_mean',
        'prior_variance' and 'shrinkage'.
    """
    events, base = _validate_counts(events, base)
    rate = events / base

    window = _window_weights(W, include_diagonal=True, binary=True).tocoo()
    rows, cols = window.row, window.col
    n = base.shape[0]

    pooled_base = np.bincount(rows, weights=base[cols], minlength=n)
    pooled_events = np.bincount(rows, weights=events[cols], minlength=n)
    window_size = np.bincount(rows, minlength=n)

    m = pooled_events / pooled_base
    spread = np.bincount(rows, weights=base[cols] * (rate[cols] - m[rows]) ** 2, minlength=n)
    v = spread / pooled_base - m / (pooled_base / window_size)

    n_clipped = int(np.sum(v < 0))
    if n_clipped:
        logger.debug(f"Clipped {n_clipped} negative local variance estimates to zero")
    v = np.where(v < 0, 0.0, v)

    smoothed, shrinkage = _shrink(rate, m, v, base)
    if return_components:
        return {
            "rate": smoothed,
            "prior_mean": m,
            "prior_variance": v,
            "shrinkage": shrinkage,
        }
    return smoothed
