"""
Kernel functions for distance-decay weights.

Each kernel maps a distance ``d`` and a bandwidth ``h`` to a weight, using
the scaled distance ``z = d / h``:

    triangular:    1 - z
    uniform:       0.5
    epanechnikov:  0.75 * (1 - z^2)
    quartic:       (15/16) * (1 - z^2)^2
    gaussian:      exp(-z^2 / 2) / sqrt(2 pi)

All kernels except the Gaussian are zero for ``z >= 1``.
"""

from typing import Callable

import numpy as np


def _scaled(d, bandwidth) -> np.ndarray:
    d = np.asarray(d, dtype=np.float64)
    bandwidth = np.asarray(bandwidth, dtype=np.float64)
    if np.any(bandwidth <= 0):
        raise ValueError("bandwidth must be positive")
    return d / bandwidth


def triangular(d, bandwidth) -> np.ndarray:
    """Triangular kernel, 1 at the origin falling linearly to 0."""
    z = _scaled(d, bandwidth)
    return np.where(z < 1.0, 1.0 - z, 0.0)


def uniform(d, bandwidth) -> np.ndarray:
    """Uniform kernel, constant 0.5 inside the bandwidth."""
    z = _scaled(d, bandwidth)
    return np.where(z < 1.0, 0.5, 0.0)


def epanechnikov(d, bandwidth) -> np.ndarray:
    """
    Epanechnikov (quadratic) kernel.

    Formula: w = 0.75 * (1 - (d / bandwidth)^2) for d < bandwidth, else 0.

    Parameters
    ----------
    d : array-like
        Distances.
    bandwidth : float or array-like
        Bandwidth, scalar or one per distance.

    Returns
    -------
    np.ndarray
        Kernel weights; 0.75 at ``d = 0`` and 0 at the bandwidth edge.

    Examples
    --------
    >>> epanechnikov([0.0, 0.5, 1.0], 1.0)
    array([0.75  , 0.5625, 0.    ])
    """
    z = _scaled(d, bandwidth)
    return np.where(z < 1.0, 0.75 * (1.0 - z * z), 0.0)


def quartic(d, bandwidth) -> np.ndarray:
    """Quartic (biweight) kernel."""
    z = _scaled(d, bandwidth)
    return np.where(z < 1.0, (15.0 / 16.0) * (1.0 - z * z) ** 2, 0.0)


def gaussian(d, bandwidth) -> np.ndarray:
    """Gaussian kernel; never reaches zero, so truncation is up to the caller."""
    z = _scaled(d, bandwidth)
    return np.exp(-0.5 * z * z) / np.sqrt(2.0 * np.pi)


KERNELS: dict[str, Callable] = {
    "triangular": triangular,
    "uniform": uniform,
    "epanechnikov": epanechnikov,
    "quadratic": epanechnikov,
    "quartic": quartic,
    "bisquare": quartic,
    "gaussian": gaussian,
}


def get_kernel(name: str) -> Callable:
    """Look up a kernel function by name."""
    try:
        return KERNELS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown kernel: '{name}'. Available: {sorted(KERNELS)}"
        ) from None
