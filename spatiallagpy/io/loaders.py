"""
Loading observation sets: point tables and polygon/point vector files.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def load_points(
    path: str,
    x_col: str = "x",
    y_col: str = "y",
) -> pd.DataFrame:
    """
    Load a point table from CSV or TSV.

    Parameters
    ----------
    path : str
        Path to the table. ``.tsv`` files are tab separated.
    x_col, y_col : str
        Coordinate column names; both must be present.

    Returns
    -------
    pandas.DataFrame
        The table, coordinate columns as float.

    Examples
    --------
    >>> df = load_points("sales.csv", x_col="lon", y_col="lat")
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    sep = "\t" if path.suffix == ".tsv" else ","
    df = pd.read_csv(path, sep=sep)

    if x_col not in df.columns or y_col not in df.columns:
        raise KeyError(
            f"Columns '{x_col}' and/or '{y_col}' not found. Available: {list(df.columns)}"
        )

    df[[x_col, y_col]] = df[[x_col, y_col]].astype(np.float64)
    logger.info(f"Loaded {len(df)} points from {path}")
    return df


def load_geodata(path: str):
    """
    Load a vector file (shapefile, GeoPackage, GeoJSON) as a GeoDataFrame.

    Parameters
    ----------
    path : str
        Anything ``geopandas.read_file`` accepts.

    Returns
    -------
    geopandas.GeoDataFrame
    """
    try:
        import geopandas as gpd
    except ImportError:
        raise ImportError("geopandas is required. Install with: pip install geopandas")

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    gdf = gpd.read_file(path)
    logger.info(f"Loaded {len(gdf)} features ({', '.join(gdf.geom_type.unique())}) from {path}")
    return gdf


def is_geodataframe(data) -> bool:
    """True for GeoDataFrames without importing geopandas eagerly."""
    return hasattr(data, "geometry") and hasattr(data, "crs")


def get_coordinates(
    data,
    x_col: str = "x",
    y_col: str = "y",
) -> np.ndarray:
    """
    Extract an (n, 2) coordinate array.

    Parameters
    ----------
    data : GeoDataFrame, DataFrame or array-like
        GeoDataFrames give point coordinates directly and polygon centroids
        otherwise; DataFrames use ``x_col``/``y_col``; arrays must already
        have shape (n, 2).
    x_col, y_col : str
        Column names for plain DataFrames.

    Returns
    -------
    np.ndarray
        Coordinates of shape (n, 2).
    """
    if is_geodataframe(data):
        geoms = data.geometry
        if not (geoms.geom_type == "Point").all():
            geoms = geoms.centroid
        return np.column_stack([geoms.x.to_numpy(), geoms.y.to_numpy()]).astype(np.float64)

    if isinstance(data, pd.DataFrame):
        if x_col not in data.columns or y_col not in data.columns:
            raise KeyError(
                f"Columns '{x_col}' and/or '{y_col}' not found. Available: {list(data.columns)}"
            )
        return data[[x_col, y_col]].to_numpy(dtype=np.float64)

    coords = np.asarray(data, dtype=np.float64)
    if coords.ndim != 2 or coords.shape[1] != 2:
        raise ValueError(f"coords must have shape (n, 2), got {coords.shape}")
    return coords
