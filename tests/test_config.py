"""Tests for analysis configuration."""

import json

import numpy as np
import pytest

from spatiallagpy.config import (
    AnalysisConfig,
    NeighborRule,
    SmoothingConfig,
    SmoothingMethod,
    WeightType,
    _convert_to_native,
)


class TestAnalysisConfig:
    """Tests for AnalysisConfig."""

    def test_defaults(self):
        """Test default settings."""
        config = AnalysisConfig()
        assert config.neighbors.rule == NeighborRule.KNN
        assert config.neighbors.k == 6
        assert config.weights.weight_type == WeightType.BINARY
        assert config.weights.row_standardize
        assert config.n_permutations == 999
        assert not config.smoothing.enabled

    def test_to_dict_serializable(self):
        """Test to_dict produces plain JSON types."""
        config = AnalysisConfig(variables=["price"])
        d = config.to_dict()
        assert d["neighbors"]["rule"] == "knn"
        assert d["weights"]["weight_type"] == "binary"
        assert d["smoothing"]["methods"] == ["crude", "spatial_rate", "spatial_empirical_bayes"]
        json.dumps(d)

    def test_save_load_roundtrip(self, tmp_path):
        """Test JSON round trip preserves every section."""
        config = AnalysisConfig(data_path="sales.csv", variables=["price", "area"])
        config.neighbors.rule = NeighborRule.DISTANCE_BAND
        config.neighbors.threshold = 250.0
        config.weights.weight_type = WeightType.KERNEL
        config.weights.kernel = "triangular"
        config.smoothing.events_col = "cases"
        config.smoothing.base_col = "population"
        config.smoothing.methods = [SmoothingMethod.EMPIRICAL_BAYES]

        path = tmp_path / "config.json"
        config.save(path)
        loaded = AnalysisConfig.load(path)

        assert loaded == config
        assert loaded.smoothing.enabled

    def test_partial_dict(self):
        """Test missing keys keep their defaults."""
        config = AnalysisConfig.from_dict({"variables": ["v"], "neighbors": {"k": 3}})
        assert config.variables == ["v"]
        assert config.neighbors.k == 3
        assert config.neighbors.rule == NeighborRule.KNN

    def test_unknown_top_level_key(self):
        """Test misspelled keys are reported."""
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            AnalysisConfig.from_dict({"n_permutation": 99})

    def test_unknown_section_key(self):
        """Test misspelled section keys are reported."""
        with pytest.raises(ValueError, match="NeighborConfig"):
            AnalysisConfig.from_dict({"neighbors": {"kk": 3}})

    def test_invalid_enum_value(self):
        """Test invalid enum values are rejected."""
        with pytest.raises(ValueError):
            AnalysisConfig.from_dict({"weights": {"weight_type": "cosine"}})


class TestSmoothingConfig:
    """Tests for SmoothingConfig."""

    def test_enabled_needs_both_columns(self):
        """Test smoothing needs events and base columns."""
        assert not SmoothingConfig(events_col="cases").enabled
        assert SmoothingConfig(events_col="cases", base_col="pop").enabled


def test_convert_to_native():
    """Test numpy values and enums become JSON types."""
    d = _convert_to_native(
        {"a": np.int64(3), "b": [np.float32(0.5)], "c": np.arange(2), "d": WeightType.GAUSSIAN}
    )
    assert d == {"a": 3, "b": [0.5], "c": [0, 1], "d": "gaussian"}
    assert type(d["a"]) is int
