"""
spatiallagpy - spatial weights, spatial lags and rate smoothing

This package turns point or polygon observations into neighbor lists and
sparse spatial weights, and applies the classic weights-based operators:
spatial lags, spatial rate smoothing and Empirical Bayes smoothing.

Key Features:
- k-nearest, distance band and queen/rook contiguity neighbors
- Binary, inverse-distance, kernel and Gaussian weights; row standardization
- Spatial lag of numeric and categorical variables
- Crude, spatial, kernel, Empirical Bayes and spatial Empirical Bayes rates
- Global and local Moran's I with permutation inference
- Optional GPU acceleration of lag products via CuPy

Example:
    >>> from spatiallagpy import knn_neighbors, create_binary_weights, compute_spatial_lag
    >>> W = create_binary_weights(knn_neighbors(coords, k=6), row_normalize=True)
    >>> price_lag = compute_spatial_lag(W, price)
"""

__version__ = "0.1.0"

from spatiallagpy.core.kernels import epanechnikov, get_kernel
from spatiallagpy.core.spatial_lag import (
    compute_spatial_lag,
    compute_spatial_lag_batch,
    lag_categorical,
    lag_dataframe,
)
from spatiallagpy.core.weights import (
    create_binary_weights,
    create_gaussian_weights,
    create_inverse_distance_weights,
    create_kernel_weights,
    row_normalize_weights,
    weights_summary,
)
from spatiallagpy.gpu.backend import GPU_AVAILABLE
from spatiallagpy.neighbors import (
    NeighborList,
    contiguity_neighbors,
    distance_band_neighbors,
    knn_neighbors,
)
from spatiallagpy.smoothing import (
    crude_rate,
    empirical_bayes,
    excess_risk,
    kernel_smoother,
    spatial_empirical_bayes,
    spatial_rate,
)
from spatiallagpy.stats import local_moran, moran_i, moran_permutation_test

__all__ = [
    # Version
    "__version__",
    # Neighbors
    "NeighborList",
    "knn_neighbors",
    "distance_band_neighbors",
    "contiguity_neighbors",
    # Weights
    "create_binary_weights",
    "create_inverse_distance_weights",
    "create_kernel_weights",
    "create_gaussian_weights",
    "row_normalize_weights",
    "weights_summary",
    "epanechnikov",
    "get_kernel",
    # Spatial lag
    "compute_spatial_lag",
    "compute_spatial_lag_batch",
    "lag_dataframe",
    "lag_categorical",
    # Smoothing
    "crude_rate",
    "excess_risk",
    "spatial_rate",
    "kernel_smoother",
    "empirical_bayes",
    "spatial_empirical_bayes",
    # Autocorrelation
    "moran_i",
    "moran_permutation_test",
    "local_moran",
    # GPU
    "GPU_AVAILABLE",
]
