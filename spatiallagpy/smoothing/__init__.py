"""Rate smoothing estimators."""

from spatiallagpy.smoothing.rates import (
    crude_rate,
    empirical_bayes,
    excess_risk,
    kernel_smoother,
    spatial_empirical_bayes,
    spatial_rate,
)

__all__ = [
    "crude_rate",
    "excess_risk",
    "spatial_rate",
    "kernel_smoother",
    "empirical_bayes",
    "spatial_empirical_bayes",
]
