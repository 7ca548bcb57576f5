"""
Standardization helpers for autocorrelation statistics.

Moran-type statistics work on deviations from the mean scaled by the
population standard deviation (N, not N-1).
"""

import numpy as np


def standardize_vector(y) -> np.ndarray:
    """
    Z-score a vector with the population standard deviation.

    Parameters
    ----------
    y : array-like
        Values of length n.

    Returns
    -------
    np.ndarray
        (y - mean) / std; all zeros when y is constant.

    Examples
    --------
    >>> standardize_vector([1.0, 2.0])
    array([-1.,  1.])
    """
    y = np.asarray(y, dtype=np.float64).ravel()
    dev = y - y.mean()
    std = np.sqrt(np.mean(dev**2))
    if std < 1e-10:
        return np.zeros_like(y)
    return dev / std


def standardize_columns(Y) -> np.ndarray:
    """Column-wise version of :func:`standardize_vector`; constant columns become 0."""
    Y = np.asarray(Y, dtype=np.float64)
    dev = Y - Y.mean(axis=0, keepdims=True)
    std = np.sqrt(np.mean(dev**2, axis=0, keepdims=True))
    return np.where(std < 1e-10, 0.0, dev / np.where(std < 1e-10, 1.0, std))
