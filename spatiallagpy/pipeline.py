"""
SpatialLagAnalysis - end-to-end orchestration of the weights workflow.

load observations -> neighbor list -> weights -> spatial lags
-> Moran statistics and local clusters -> smoothed rates -> summary tables
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import numpy as np
import pandas as pd

from spatiallagpy.config import AnalysisConfig, NeighborRule, SmoothingMethod, WeightType
from spatiallagpy.core.spatial_lag import lag_dataframe
from spatiallagpy.core.weights import (
    create_binary_weights,
    create_gaussian_weights,
    create_inverse_distance_weights,
    create_kernel_weights,
    row_normalize_weights,
    weights_summary,
)
from spatiallagpy.io.hdf5 import save_summary, save_weights_hdf5
from spatiallagpy.io.loaders import get_coordinates, is_geodataframe, load_geodata, load_points
from spatiallagpy.neighbors.base import NeighborList
from spatiallagpy.neighbors.contiguity import contiguity_neighbors
from spatiallagpy.neighbors.kdtree import (
    distance_band_neighbors,
    knn_neighbors,
    min_threshold_distance,
)
from spatiallagpy.smoothing import rates
from spatiallagpy.stats.autocorrelation import (
    classify_clusters,
    local_moran,
    moran_permutation_test,
)

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """
    Everything produced by one analysis pass.

    Attributes
    ----------
    data : pandas.DataFrame
        Input table plus ``<var>_lag``, ``<var>_cluster`` and
        ``rate_<method>`` columns.
    coords : np.ndarray
        Coordinates (n, 2) used for distance-based rules.
    neighbors : NeighborList
        Neighbor structure.
    weights : scipy.sparse.csr_matrix
        Weights before row standardization.
    lag_weights : scipy.sparse.csr_matrix
        Weights used for the lag columns.
    summary : pandas.DataFrame
        One row per variable: Moran's I, inference and cluster counts.
    weights_info : dict
        Output of :func:`weights_summary` for ``weights``.
    outputs : dict
        Paths of written files, empty without an output directory.
    """

    data: pd.DataFrame
    coords: np.ndarray
    neighbors: NeighborList
    weights: Any
    lag_weights: Any
    summary: pd.DataFrame
    weights_info: dict
    outputs: dict = field(default_factory=dict)


class SpatialLagAnalysis:
    """
    Run a configured spatial lag / rate smoothing analysis.

    Parameters
    ----------
    config : AnalysisConfig
        Analysis configuration.
    use_gpu : bool, default=False
        Compute lag columns on the GPU when CuPy is available.

    Example
    -------
    >>> from spatiallagpy.datasets import make_points
    >>> config = AnalysisConfig(variables=["value"])
    >>> result = SpatialLagAnalysis(config).run(make_points(100))
    >>> result.summary[["variable", "moran_i", "pvalue"]]
    """

    def __init__(self, config: AnalysisConfig, use_gpu: bool = False):
        self.config = config
        self.use_gpu = use_gpu

    def run(self, data=None) -> AnalysisResult:
        """
        Execute every stage.

        Parameters
        ----------
        data : DataFrame or GeoDataFrame, optional
            Observation table. Default: read ``config.data_path``.

        Returns
        -------
        AnalysisResult
        """
        cfg = self.config
        df = self.load(data)
        coords = get_coordinates(df, cfg.x_col, cfg.y_col)
        logger.info(f"Analysis of {len(df)} observations, variables={cfg.variables}")

        neighbors = self.build_neighbors(df, coords)
        W = self.build_weights(neighbors, coords)
        W_lag = row_normalize_weights(W) if cfg.weights.row_standardize else W
        info = weights_summary(W)
        logger.info(
            f"Weights: {cfg.weights.weight_type.value}, mean {info['mean_neighbors']:.2f} neighbors, "
            f"{len(info['islands'])} islands"
        )

        if cfg.variables:
            out = lag_dataframe(W_lag, df, cfg.variables, use_gpu=self.use_gpu)
        else:
            out = df.copy()

        summary_rows = []
        for var in cfg.variables:
            row, clusters = self._autocorrelation(out[var].to_numpy(dtype=np.float64), W)
            out[f"{var}_cluster"] = clusters
            summary_rows.append({"variable": var, **row})
        summary = pd.DataFrame(summary_rows)

        if cfg.smoothing.enabled:
            for name, values in self.smooth(out, W, coords).items():
                out[name] = values

        result = AnalysisResult(
            data=out,
            coords=coords,
            neighbors=neighbors,
            weights=W,
            lag_weights=W_lag,
            summary=summary,
            weights_info=info,
        )
        if cfg.output_dir is not None:
            result.outputs = self.write_outputs(result)
        return result

    def load(self, data=None):
        """Return the observation table, reading ``config.data_path`` if needed."""
        if data is not None:
            return data
        path = self.config.data_path
        if path is None:
            raise ValueError("No data given and config.data_path is not set")
        if Path(path).suffix.lower() in (".csv", ".tsv"):
            return load_points(path, self.config.x_col, self.config.y_col)
        return load_geodata(path)

    def build_neighbors(self, df, coords: np.ndarray) -> NeighborList:
        """Apply the configured neighbor rule."""
        ncfg = self.config.neighbors
        if ncfg.rule == NeighborRule.KNN:
            return knn_neighbors(coords, k=ncfg.k)
        if ncfg.rule == NeighborRule.DISTANCE_BAND:
            threshold = ncfg.threshold
            if threshold is None:
                threshold = min_threshold_distance(coords)
                logger.info(f"Using minimum connecting distance band {threshold:.4g}")
            return distance_band_neighbors(coords, threshold)
        if ncfg.rule in (NeighborRule.QUEEN, NeighborRule.ROOK):
            if not is_geodataframe(df):
                raise ValueError(
                    f"{ncfg.rule.value} contiguity needs polygon geometries (a GeoDataFrame)"
                )
            return contiguity_neighbors(df, kind=ncfg.rule.value)
        raise ValueError(f"Unknown neighbor rule: {ncfg.rule}")

    def build_weights(self, neighbors: NeighborList, coords: np.ndarray):
        """Apply the configured weight type (before row standardization)."""
        wcfg = self.config.weights
        if wcfg.weight_type == WeightType.BINARY:
            return create_binary_weights(neighbors)
        # remaining types are functions of point distances
        if neighbors.distances is None:
            raise ValueError(
                f"{wcfg.weight_type.value} weights need a distance-based neighbor rule, "
                f"not '{neighbors.rule}'"
            )
        if wcfg.weight_type == WeightType.INVERSE_DISTANCE:
            return create_inverse_distance_weights(neighbors, alpha=wcfg.alpha)
        if wcfg.weight_type == WeightType.KERNEL:
            return create_kernel_weights(
                coords,
                k=self.config.neighbors.k,
                function=wcfg.kernel,
                fixed=wcfg.fixed_bandwidth,
                bandwidth=wcfg.bandwidth,
            )
        if wcfg.weight_type == WeightType.GAUSSIAN:
            radius = wcfg.bandwidth or self.config.neighbors.threshold
            if radius is None:
                radius = min_threshold_distance(coords)
            return create_gaussian_weights(coords, radius=radius)
        raise ValueError(f"Unknown weight type: {wcfg.weight_type}")

    def _autocorrelation(self, y: np.ndarray, W) -> tuple[dict, np.ndarray]:
        cfg = self.config
        if np.allclose(y, y[0]):
            logger.warning("Constant variable; Moran statistics skipped")
            return {"moran_i": np.nan, "pvalue": np.nan, "z_score": np.nan}, np.full(len(y), "ns")

        test = moran_permutation_test(
            y, W, n_permutations=cfg.n_permutations, random_seed=cfg.random_seed
        )
        local = local_moran(y, W, n_permutations=cfg.n_permutations, random_seed=cfg.random_seed)
        clusters = classify_clusters(local, alpha=cfg.significance)

        row = {
            "moran_i": test["observed"],
            "expected_i": test["expected"],
            "pvalue": test["pvalue"],
            "z_score": test["z_score"],
        }
        for label in ("HH", "LL", "HL", "LH"):
            row[f"n_{label}"] = int(np.sum(clusters == label))
        return row, clusters

    def smooth(self, df, W, coords: np.ndarray) -> dict[str, np.ndarray]:
        """Compute every configured rate estimator."""
        scfg = self.config.smoothing
        for col in (scfg.events_col, scfg.base_col):
            if col not in df.columns:
                raise KeyError(f"Column '{col}' not found. Available: {list(df.columns)}")
        events = df[scfg.events_col].to_numpy(dtype=np.float64)
        base = df[scfg.base_col].to_numpy(dtype=np.float64)

        results = {}
        for method in scfg.methods:
            if method == SmoothingMethod.CRUDE:
                values = rates.crude_rate(events, base)
            elif method == SmoothingMethod.EXCESS_RISK:
                values = rates.excess_risk(events, base)
            elif method == SmoothingMethod.SPATIAL_RATE:
                values = rates.spatial_rate(events, base, W)
            elif method == SmoothingMethod.KERNEL:
                values = rates.kernel_smoother(events, base, self._kernel_window(W, coords))
            elif method == SmoothingMethod.EMPIRICAL_BAYES:
                values = rates.empirical_bayes(events, base)
            elif method == SmoothingMethod.SPATIAL_EMPIRICAL_BAYES:
                values = rates.spatial_empirical_bayes(events, base, W)
            else:
                raise ValueError(f"Unknown smoothing method: {method}")
            results[f"rate_{method.value}"] = values
            logger.info(f"Smoothed rates ({method.value}): mean {np.nanmean(values):.4g}")
        return results

    def _kernel_window(self, W, coords: np.ndarray):
        wcfg = self.config.weights
        if wcfg.weight_type == WeightType.KERNEL:
            return W
        return create_kernel_weights(
            coords,
            k=self.config.neighbors.k,
            function=wcfg.kernel,
            fixed=wcfg.fixed_bandwidth,
            bandwidth=wcfg.bandwidth,
        )

    def write_outputs(self, result: AnalysisResult) -> dict[str, str]:
        """Write the observation table, the summary and the weights."""
        out_dir = Path(self.config.output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)

        table = result.data
        if is_geodataframe(table):
            table = pd.DataFrame(table.drop(columns=table.geometry.name))

        outputs = {
            "observations": save_summary(table, out_dir / "observations.csv"),
            "summary": save_summary(result.summary, out_dir / "summary.csv"),
        }
        weights_path = out_dir / "weights.h5"
        save_weights_hdf5(
            weights_path,
            result.weights,
            metadata={
                "rule": result.neighbors.rule,
                "weight_type": self.config.weights.weight_type.value,
                "k": self.config.neighbors.k,
            },
        )
        outputs["weights"] = str(weights_path)

        config_path = out_dir / "config.json"
        self.config.save(config_path)
        outputs["config"] = str(config_path)

        logger.info(f"Wrote outputs to {out_dir}")
        return outputs
