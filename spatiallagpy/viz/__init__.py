"""Static visualizations."""

from spatiallagpy.viz.plots import (
    plot_choropleth,
    plot_moran_scatter,
    plot_points,
    plot_rate_comparison,
)

__all__ = [
    "plot_points",
    "plot_choropleth",
    "plot_moran_scatter",
    "plot_rate_comparison",
]
