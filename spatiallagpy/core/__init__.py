"""Core weights, kernels and lag operators."""

from spatiallagpy.core.kernels import epanechnikov, get_kernel
from spatiallagpy.core.normalization import standardize_columns, standardize_vector
from spatiallagpy.core.spatial_lag import (
    compute_spatial_lag,
    compute_spatial_lag_batch,
    lag_categorical,
    lag_dataframe,
)
from spatiallagpy.core.weights import (
    binarize_weights,
    create_binary_weights,
    create_gaussian_weights,
    create_inverse_distance_weights,
    create_kernel_weights,
    row_normalize_weights,
    set_diagonal,
    weights_summary,
)

__all__ = [
    "epanechnikov",
    "get_kernel",
    "standardize_vector",
    "standardize_columns",
    "compute_spatial_lag",
    "compute_spatial_lag_batch",
    "lag_dataframe",
    "lag_categorical",
    "create_binary_weights",
    "create_inverse_distance_weights",
    "create_kernel_weights",
    "create_gaussian_weights",
    "row_normalize_weights",
    "binarize_weights",
    "set_diagonal",
    "weights_summary",
]
