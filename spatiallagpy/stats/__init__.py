"""Spatial autocorrelation statistics and multiple-testing correction."""

from spatiallagpy.stats.autocorrelation import (
    classify_clusters,
    local_moran,
    moran_i,
    moran_permutation_test,
)
from spatiallagpy.stats.fdr import apply_fdr_correction

__all__ = [
    "moran_i",
    "moran_permutation_test",
    "local_moran",
    "classify_clusters",
    "apply_fdr_correction",
]
