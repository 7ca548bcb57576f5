"""
Synthetic observation sets for examples and tests.

- make_lattice: square polygon grid, the classic setting for contiguity
- make_points: uniformly scattered points with a smooth trend variable
- simulate_counts: Poisson event counts over heterogeneous populations
"""

from typing import Optional

import numpy as np
import pandas as pd


def make_lattice(n_rows: int, n_cols: int, cell_size: float = 1.0):
    """
    Square polygon lattice.

    Parameters
    ----------
    n_rows, n_cols : int
        Grid dimensions.
    cell_size : float, default=1.0
        Side length of each square.

    Returns
    -------
    geopandas.GeoDataFrame
        Columns 'id', 'row', 'col' and square polygon geometry, ordered row
        by row.

    Examples
    --------
    >>> grid = make_lattice(3, 4)
    >>> len(grid)
    12
    """
    try:
        import geopandas as gpd
        from shapely.geometry import box
    except ImportError:
        raise ImportError("geopandas is required. Install with: pip install geopandas")

    if n_rows < 1 or n_cols < 1:
        raise ValueError(f"Lattice needs at least one row and column, got {n_rows}x{n_cols}")

    rows, cols = np.divmod(np.arange(n_rows * n_cols), n_cols)
    geoms = [
        box(c * cell_size, r * cell_size, (c + 1) * cell_size, (r + 1) * cell_size)
        for r, c in zip(rows, cols)
    ]
    return gpd.GeoDataFrame(
        {"id": np.arange(n_rows * n_cols), "row": rows, "col": cols},
        geometry=geoms,
    )


def make_points(
    n: int = 200,
    extent: float = 100.0,
    trend: float = 1.0,
    noise: float = 1.0,
    random_seed: Optional[int] = 42,
) -> pd.DataFrame:
    """
    Uniform random points with a spatially trending value.

    The value is ``trend * (x + y) / extent`` plus Gaussian noise, so it is
    positively autocorrelated whenever ``trend`` dominates ``noise``.

    Returns
    -------
    pandas.DataFrame
        Columns 'x', 'y' and 'value'.
    """
    rng = np.random.default_rng(random_seed)
    xy = rng.uniform(0.0, extent, size=(n, 2))
    value = trend * xy.sum(axis=1) / extent + rng.normal(0.0, noise, n)
    return pd.DataFrame({"x": xy[:, 0], "y": xy[:, 1], "value": value})


def simulate_counts(
    n: int,
    base_range: tuple[int, int] = (50, 5000),
    rate=0.01,
    random_seed: Optional[int] = 42,
) -> pd.DataFrame:
    """
    Poisson event counts over random populations.

    Parameters
    ----------
    n : int
        Number of areas.
    base_range : tuple of int, default=(50, 5000)
        Inclusive range of populations, drawn log-uniformly so that small
        areas (with unstable raw rates) are common.
    rate : float or array-like, default=0.01
        True underlying rate, scalar or one per area.
    random_seed : int, optional
        Seed for reproducibility.

    Returns
    -------
    pandas.DataFrame
        Columns 'events', 'base' and 'true_rate'.
    """
    lo, hi = base_range
    if lo <= 0 or hi < lo:
        raise ValueError(f"base_range must be positive and increasing, got {base_range}")

    rng = np.random.default_rng(random_seed)
    base = np.round(np.exp(rng.uniform(np.log(lo), np.log(hi), n))).astype(np.int64)
    base = np.clip(base, lo, hi)
    true_rate = np.broadcast_to(np.asarray(rate, dtype=np.float64), (n,)).copy()
    events = rng.poisson(base * true_rate)
    return pd.DataFrame({"events": events, "base": base, "true_rate": true_rate})
