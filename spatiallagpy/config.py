"""
Configuration dataclasses for a spatial lag / rate smoothing analysis.

The dataclasses mirror the workflow stages: neighbor rule, weights,
smoothing, and the analysis as a whole (input, variables, inference,
output). Configurations round-trip through JSON.
"""

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

import numpy as np


class NeighborRule(Enum):
    """How neighbors are defined."""

    KNN = "knn"
    DISTANCE_BAND = "distance_band"
    QUEEN = "queen"
    ROOK = "rook"


class WeightType(Enum):
    """How neighbor pairs are weighted."""

    BINARY = "binary"
    INVERSE_DISTANCE = "inverse_distance"
    KERNEL = "kernel"
    GAUSSIAN = "gaussian"


class SmoothingMethod(Enum):
    """Rate estimators."""

    CRUDE = "crude"
    EXCESS_RISK = "excess_risk"
    SPATIAL_RATE = "spatial_rate"
    KERNEL = "kernel"
    EMPIRICAL_BAYES = "empirical_bayes"
    SPATIAL_EMPIRICAL_BAYES = "spatial_empirical_bayes"


@dataclass
class NeighborConfig:
    """
    Neighbor definition.

    Parameters
    ----------
    rule : NeighborRule
        k-nearest, distance band or polygon contiguity.
    k : int
        Number of neighbors for KNN (and for kernel bandwidths).
    threshold : float, optional
        Distance band radius. None uses the smallest band that leaves no
        observation isolated.
    """

    rule: NeighborRule = NeighborRule.KNN
    k: int = 6
    threshold: Optional[float] = None


@dataclass
class WeightConfig:
    """
    Weights definition.

    Parameters
    ----------
    weight_type : WeightType
        Binary, inverse-distance, kernel or Gaussian decay.
    row_standardize : bool
        Row-standardize the weights used for lags.
    alpha : float
        Inverse-distance exponent.
    kernel : str
        Kernel function name for KERNEL weights.
    fixed_bandwidth : bool
        Single bandwidth (True) or per-observation k-th neighbor bandwidth.
    bandwidth : float, optional
        Explicit fixed bandwidth; also the radius for GAUSSIAN weights.
    """

    weight_type: WeightType = WeightType.BINARY
    row_standardize: bool = True
    alpha: float = 1.0
    kernel: str = "epanechnikov"
    fixed_bandwidth: bool = False
    bandwidth: Optional[float] = None


@dataclass
class SmoothingConfig:
    """
    Rate smoothing.

    Parameters
    ----------
    events_col : str, optional
        Column of event counts. Smoothing is skipped when unset.
    base_col : str, optional
        Column of populations at risk.
    methods : list of SmoothingMethod
        Estimators to compute; each adds a ``rate_<method>`` column.
    """

    events_col: Optional[str] = None
    base_col: Optional[str] = None
    methods: list[SmoothingMethod] = field(
        default_factory=lambda: [
            SmoothingMethod.CRUDE,
            SmoothingMethod.SPATIAL_RATE,
            SmoothingMethod.SPATIAL_EMPIRICAL_BAYES,
        ]
    )

    @property
    def enabled(self) -> bool:
        return self.events_col is not None and self.base_col is not None


@dataclass
class AnalysisConfig:
    """
    Complete analysis configuration.

    Example
    -------
    >>> config = AnalysisConfig(data_path="sales.csv", variables=["price"])
    >>> config.neighbors.k = 8
    >>> config.save("analysis.json")
    """

    data_path: Optional[str] = None
    x_col: str = "x"
    y_col: str = "y"
    variables: list[str] = field(default_factory=list)
    neighbors: NeighborConfig = field(default_factory=NeighborConfig)
    weights: WeightConfig = field(default_factory=WeightConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    n_permutations: int = 999
    significance: float = 0.05
    random_seed: Optional[int] = 42
    output_dir: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        d = asdict(self)
        d["neighbors"]["rule"] = self.neighbors.rule.value
        d["weights"]["weight_type"] = self.weights.weight_type.value
        d["smoothing"]["methods"] = [m.value for m in self.smoothing.methods]
        return _convert_to_native(d)

    def save(self, path: str) -> None:
        """Save configuration to a JSON file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, d: dict) -> "AnalysisConfig":
        """Build a configuration from a (possibly partial) dictionary."""
        config = cls()
        known = {f for f in cls.__dataclass_fields__}
        unknown = set(d) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

        for k, v in d.get("neighbors", {}).items():
            if k == "rule":
                v = NeighborRule(v)
            _set_checked(config.neighbors, k, v)

        for k, v in d.get("weights", {}).items():
            if k == "weight_type":
                v = WeightType(v)
            _set_checked(config.weights, k, v)

        for k, v in d.get("smoothing", {}).items():
            if k == "methods":
                v = [SmoothingMethod(m) for m in v]
            _set_checked(config.smoothing, k, v)

        for k, v in d.items():
            if k not in ("neighbors", "weights", "smoothing"):
                setattr(config, k, v)

        return config

    @classmethod
    def load(cls, path: str) -> "AnalysisConfig":
        """Load configuration from a JSON file."""
        with open(path) as f:
            return cls.from_dict(json.load(f))


def _set_checked(section: Any, key: str, value: Any) -> None:
    if key not in section.__dataclass_fields__:
        raise ValueError(f"Unknown {type(section).__name__} key: '{key}'")
    setattr(section, key, value)


def _convert_to_native(obj: Any) -> Any:
    """Convert numpy scalars/arrays and enums to JSON-friendly values."""
    if isinstance(obj, dict):
        return {k: _convert_to_native(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_convert_to_native(v) for v in obj]
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, Enum):
        return obj.value
    else:
        return obj
