"""
Static plots for lagged and smoothed variables.

Every function draws on a matplotlib axis (created when ``ax`` is None) and
returns it.
"""

from typing import Optional

import numpy as np

from spatiallagpy.core.normalization import standardize_vector


def plot_points(
    coords: np.ndarray,
    values: Optional[np.ndarray] = None,
    highlight: Optional[np.ndarray] = None,
    title: str = "Observations",
    figsize: tuple[float, float] = (8, 8),
    cmap: str = "viridis",
    alpha: float = 0.8,
    point_size: float = 15,
    colorbar_label: str = "Value",
    ax=None,
):
    """
    Scatter map of point observations.

    Parameters
    ----------
    coords : np.ndarray
        Coordinates (n, 2).
    values : np.ndarray, optional
        Numeric values for coloring; categorical values get one color each.
    highlight : np.ndarray, optional
        Indices to outline in red (e.g. significant clusters).
    title : str
        Plot title.
    figsize : tuple
        Figure size when a new figure is created.
    cmap : str
        Colormap for numeric values.
    alpha : float
        Point transparency.
    point_size : float
        Marker size.
    colorbar_label : str
        Label of the colorbar for numeric values.
    ax : matplotlib axis, optional
        Existing axis to draw on.

    Returns
    -------
    matplotlib axis
    """
    import matplotlib.pyplot as plt

    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=figsize)

    coords = np.asarray(coords, dtype=np.float64)
    x, y = coords[:, 0], coords[:, 1]

    if values is None:
        ax.scatter(x, y, alpha=alpha, s=point_size, c="gray")
    elif np.issubdtype(np.asarray(values).dtype, np.number):
        scatter = ax.scatter(x, y, c=values, cmap=cmap, alpha=alpha, s=point_size)
        plt.colorbar(scatter, ax=ax, label=colorbar_label)
    else:
        values = np.asarray(values)
        categories = np.unique(values)
        colors = plt.cm.tab10(np.linspace(0, 1, len(categories)))
        for color, cat in zip(colors, categories):
            mask = values == cat
            ax.scatter(x[mask], y[mask], c=[color], label=str(cat), alpha=alpha, s=point_size)
        ax.legend(loc="upper right", fontsize=8)

    if highlight is not None:
        ax.scatter(
            x[highlight],
            y[highlight],
            facecolors="none",
            edgecolors="red",
            s=point_size * 3,
            linewidths=1.5,
        )

    ax.set_xlabel("X")
    ax.set_ylabel("Y")
    ax.set_title(title)
    ax.set_aspect("equal")
    return ax


def plot_choropleth(
    gdf,
    column: str,
    scheme: Optional[str] = None,
    k: int = 5,
    cmap: str = "viridis",
    title: Optional[str] = None,
    figsize: tuple[float, float] = (8, 8),
    legend: bool = True,
    ax=None,
):
    """
    Choropleth map of a GeoDataFrame column.

    Parameters
    ----------
    gdf : geopandas.GeoDataFrame
        Polygons with the variable to map.
    column : str
        Column to color by.
    scheme : str, optional
        Classification scheme name (e.g. "quantiles"); requires mapclassify.
        None draws a continuous colormap.
    k : int, default=5
        Number of classes for ``scheme``.
    cmap : str
        Colormap.
    title : str, optional
        Plot title. Default: the column name.
    figsize : tuple
        Figure size when a new figure is created.
    legend : bool, default=True
        Draw a legend/colorbar.
    ax : matplotlib axis, optional
        Existing axis to draw on.

    Returns
    -------
    matplotlib axis
    """
    import matplotlib.pyplot as plt

    if column not in gdf.columns:
        raise KeyError(f"Column '{column}' not found. Available: {list(gdf.columns)}")

    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=figsize)

    kwargs = {
        "column": column,
        "cmap": cmap,
        "legend": legend,
        "ax": ax,
        "edgecolor": "white",
        "linewidth": 0.3,
    }
    if scheme is not None:
        kwargs.update(scheme=scheme, k=k)
    gdf.plot(**kwargs)

    ax.set_title(title if title is not None else column)
    ax.set_axis_off()
    return ax


def plot_moran_scatter(
    y,
    lag,
    title: str = "Moran Scatterplot",
    figsize: tuple[float, float] = (6, 6),
    ax=None,
):
    """
    Standardized variable against its spatial lag on the same scale.

    The lag is centered and scaled with the mean and standard deviation of
    ``y``, so for row-standardized weights it equals ``W @ z`` and the
    fitted slope is Moran's I. The quadrant lines at zero split HH, LH, LL
    and HL observations.

    Parameters
    ----------
    y : array-like
        Variable values.
    lag : array-like
        Spatial lag of ``y`` under row-standardized weights.
    title : str
        Plot title.
    figsize : tuple
        Figure size when a new figure is created.
    ax : matplotlib axis, optional
        Existing axis to draw on.

    Returns
    -------
    matplotlib axis
    """
    import matplotlib.pyplot as plt

    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=figsize)

    y = np.asarray(y, dtype=np.float64)
    z = standardize_vector(y)
    # lag on the scale of z so the slope is Moran's I
    sd = y.std()
    z_lag = (np.asarray(lag, dtype=np.float64) - y.mean()) / sd if sd > 1e-10 else np.zeros_like(z)

    ax.scatter(z, z_lag, s=12, alpha=0.6, color="steelblue")
    ax.axhline(0, color="gray", linestyle="--", linewidth=0.8)
    ax.axvline(0, color="gray", linestyle="--", linewidth=0.8)

    if np.any(z != 0):
        slope, intercept = np.polyfit(z, z_lag, 1)
        xs = np.array([z.min(), z.max()])
        ax.plot(xs, intercept + slope * xs, color="red", linewidth=1.5, label=f"slope = {slope:.3f}")
        ax.legend(loc="upper left")

    ax.set_xlabel("Standardized value")
    ax.set_ylabel("Standardized spatial lag")
    ax.set_title(title)
    return ax


def plot_rate_comparison(
    raw,
    smoothed,
    base=None,
    title: str = "Raw vs Smoothed Rates",
    figsize: tuple[float, float] = (6, 6),
    ax=None,
):
    """
    Raw rates against smoothed rates.

    Points on the diagonal were not moved by smoothing. When ``base`` is
    given, marker size grows with population so shrinkage of small areas
    stands out.

    Returns
    -------
    matplotlib axis
    """
    import matplotlib.pyplot as plt

    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=figsize)

    raw = np.asarray(raw, dtype=np.float64)
    smoothed = np.asarray(smoothed, dtype=np.float64)

    sizes = 15
    if base is not None:
        base = np.asarray(base, dtype=np.float64)
        sizes = 5 + 60 * base / base.max()

    ax.scatter(raw, smoothed, s=sizes, alpha=0.6, color="darkorange")
    lo = np.nanmin([raw.min(), np.nanmin(smoothed)])
    hi = np.nanmax([raw.max(), np.nanmax(smoothed)])
    ax.plot([lo, hi], [lo, hi], color="gray", linestyle="--", linewidth=0.8)

    ax.set_xlabel("Raw rate")
    ax.set_ylabel("Smoothed rate")
    ax.set_title(title)
    return ax
