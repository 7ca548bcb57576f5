"""Tests for Moran's I and local cluster statistics."""

import numpy as np
import pytest

from spatiallagpy.core.weights import create_binary_weights
from spatiallagpy.neighbors import distance_band_neighbors, knn_neighbors
from spatiallagpy.stats.autocorrelation import (
    classify_clusters,
    local_moran,
    moran_from_lag,
    moran_i,
    moran_permutation_test,
)


def _grid(n_side: int = 8):
    """Unit grid points and rook weights (distance band of 1)."""
    rows, cols = np.divmod(np.arange(n_side * n_side), n_side)
    coords = np.column_stack([cols, rows]).astype(float)
    W = create_binary_weights(distance_band_neighbors(coords, threshold=1.0))
    return coords, rows, cols, W


class TestMoranI:
    """Tests for global Moran's I."""

    def test_gradient_positive(self):
        """Test a smooth gradient is strongly positively autocorrelated."""
        _, _, cols, W = _grid()
        assert moran_i(cols.astype(float), W) > 0.5

    def test_checkerboard_negative_one(self):
        """Test a checkerboard gives I = -1 under rook weights."""
        _, rows, cols, W = _grid()
        y = ((rows + cols) % 2).astype(float)
        assert np.isclose(moran_i(y, W), -1.0)

    def test_scale_invariant(self):
        """Test I does not change under affine transforms of y."""
        _, _, cols, W = _grid()
        y = cols.astype(float) + np.sin(np.arange(len(cols)))
        assert np.isclose(moran_i(y, W), moran_i(3.0 * y - 7.0, W))

    def test_from_lag(self):
        """Test the slope formula z' lag / n."""
        z = np.array([1.0, -1.0])
        lag = np.array([0.5, -0.5])
        assert np.isclose(moran_from_lag(z, lag), 0.5)

    def test_constant_rejected(self):
        """Test Moran's I is undefined for a constant variable."""
        _, _, _, W = _grid()
        with pytest.raises(ValueError, match="constant"):
            moran_i(np.ones(64), W)

    def test_shape_mismatch(self):
        """Test weights must match the number of observations."""
        _, _, _, W = _grid()
        with pytest.raises(ValueError, match="does not match"):
            moran_i(np.arange(10.0), W)


class TestMoranPermutation:
    """Tests for permutation inference on Moran's I."""

    def test_clustered_significant(self):
        """Test a gradient is significant against random relabelings."""
        _, _, cols, W = _grid()
        result = moran_permutation_test(
            cols.astype(float), W, n_permutations=199, alternative="greater", random_seed=0
        )
        assert result["pvalue"] == pytest.approx(1 / 200)
        assert result["z_score"] > 3
        assert result["expected"] == pytest.approx(-1 / 63)

    def test_random_not_significant_on_average(self):
        """Test the null mean sits near -1/(n-1) for random data."""
        np.random.seed(0)
        coords = np.random.rand(150, 2)
        W = create_binary_weights(knn_neighbors(coords, k=6))
        y = np.random.randn(150)
        result = moran_permutation_test(y, W, n_permutations=499, random_seed=1)
        assert abs(result["null_mean"] - result["expected"]) < 0.02
        assert 0 < result["pvalue"] <= 1

    def test_reproducible(self):
        """Test the seed fixes the null distribution."""
        _, _, cols, W = _grid()
        y = np.cos(cols) + np.arange(64) % 3
        a = moran_permutation_test(y, W, n_permutations=99, random_seed=5)
        b = moran_permutation_test(y, W, n_permutations=99, random_seed=5)
        assert a == b

    def test_observed_matches_moran_i(self):
        """Test the observed statistic equals moran_i."""
        _, rows, cols, W = _grid()
        y = rows * 0.5 + cols
        result = moran_permutation_test(y, W, n_permutations=9, random_seed=0)
        assert np.isclose(result["observed"], moran_i(y, W))

    def test_two_sided_folds_tails(self):
        """Test the two-sided count is the smaller tail of the null."""
        np.random.seed(3)
        coords = np.random.rand(12, 2)
        W = create_binary_weights(knn_neighbors(coords, k=3))
        y = np.random.randn(12)
        n_perm = 199

        upper = moran_permutation_test(
            y, W, n_permutations=n_perm, alternative="greater", random_seed=7
        )
        both = moran_permutation_test(
            y, W, n_permutations=n_perm, alternative="two-sided", random_seed=7
        )
        greater = round(upper["pvalue"] * (n_perm + 1)) - 1
        expected = (min(greater, n_perm - greater) + 1) / (n_perm + 1)
        assert both["pvalue"] == pytest.approx(expected)
        assert both["pvalue"] <= 0.5 + 1 / (n_perm + 1)

    def test_invalid_alternative(self):
        """Test unknown alternatives are rejected."""
        _, _, cols, W = _grid()
        with pytest.raises(ValueError, match="alternative"):
            moran_permutation_test(cols.astype(float), W, alternative="both")


class TestLocalMoran:
    """Tests for local Moran's I."""

    def test_sum_equals_global(self):
        """Test the mean local statistic equals global I without islands."""
        _, rows, cols, W = _grid()
        y = rows + 0.3 * cols
        local = local_moran(y, W, n_permutations=0)
        assert np.isclose(local["Is"].mean(), moran_i(y, W))

    def test_checkerboard_quadrants(self):
        """Test a checkerboard only produces spatial outliers."""
        _, rows, cols, W = _grid()
        y = ((rows + cols) % 2).astype(float)
        local = local_moran(y, W, n_permutations=0)
        assert set(local["labels"]) == {"HL", "LH"}
        assert np.all(local["Is"] < 0)

    def test_gradient_quadrants(self):
        """Test a gradient puts high values in HH and low values in LL."""
        _, _, cols, W = _grid()
        local = local_moran(cols.astype(float), W, n_permutations=0)
        assert np.all(local["labels"][cols == 7] == "HH")
        assert np.all(local["labels"][cols == 0] == "LL")

    def test_pvalues(self):
        """Test pseudo p-values lie in (0, 1] and mark the low edge as extreme."""
        _, rows, cols, W = _grid()
        local = local_moran(cols.astype(float), W, n_permutations=199, random_seed=3)
        p = local["pvalues"]
        assert np.all((p > 0) & (p <= 1))
        low_edge = (cols == 0) & (rows > 0) & (rows < 7)
        assert np.max(p[low_edge]) < 0.05

    def test_no_permutations(self):
        """Test n_permutations=0 leaves NaN p-values."""
        _, _, cols, W = _grid()
        local = local_moran(cols.astype(float), W, n_permutations=0)
        assert np.all(np.isnan(local["pvalues"]))

    def test_reproducible(self):
        """Test the seed fixes local p-values."""
        _, rows, cols, W = _grid()
        y = np.sin(rows) + cols
        a = local_moran(y, W, n_permutations=99, random_seed=9)["pvalues"]
        b = local_moran(y, W, n_permutations=99, random_seed=9)["pvalues"]
        assert np.array_equal(a, b)


class TestClassifyClusters:
    """Tests for cluster labels."""

    def test_labels(self):
        """Test significant observations keep their quadrant label."""
        local = {
            "labels": np.array(["HH", "LL", "HL", "LH"]),
            "pvalues": np.array([0.01, 0.2, 0.04, np.nan]),
        }
        assert list(classify_clusters(local, alpha=0.05)) == ["HH", "ns", "HL", "ns"]

    def test_fdr(self):
        """Test FDR adjustment can remove marginal clusters."""
        local = {
            "labels": np.array(["HH"] * 10),
            "pvalues": np.array([0.001] + [0.04] * 9),
        }
        raw = classify_clusters(local, alpha=0.05)
        adjusted = classify_clusters(local, alpha=0.02, fdr=True)
        assert np.sum(raw == "HH") == 10
        assert list(adjusted) == ["HH"] + ["ns"] * 9

    def test_requires_pvalues(self):
        """Test labels need permutation p-values."""
        local = {"labels": np.array(["HH"]), "pvalues": np.array([np.nan])}
        with pytest.raises(ValueError, match="n_permutations"):
            classify_clusters(local)

    def test_gradient_clusters(self):
        """Test a gradient yields hot and cold spots but no outliers."""
        _, _, cols, W = _grid()
        local = local_moran(cols.astype(float), W, n_permutations=199, random_seed=0)
        labels = classify_clusters(local, alpha=0.05)
        assert np.any(labels == "HH")
        assert np.any(labels == "LL")
        assert not np.any(np.isin(labels, ["HL", "LH"]))
