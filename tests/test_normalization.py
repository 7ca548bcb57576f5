"""Tests for normalization functions."""

import numpy as np

from spatiallagpy.core.normalization import standardize_columns, standardize_vector


class TestStandardizeVector:
    """Tests for standardize_vector."""

    def test_basic(self):
        """Test basic standardization."""
        x = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        z = standardize_vector(x)

        assert np.abs(z.mean()) < 1e-10
        assert np.abs(np.sqrt(np.mean(z**2)) - 1.0) < 1e-10

    def test_constant_vector(self):
        """Test constant vector returns zeros."""
        z = standardize_vector(np.full(4, 5.0))
        assert np.allclose(z, 0.0)

    def test_population_std(self):
        """Test that population std (N, not N-1) is used."""
        # population std of [1, 2] is 0.5
        assert np.allclose(standardize_vector([1.0, 2.0]), [-1.0, 1.0])


class TestStandardizeColumns:
    """Tests for standardize_columns."""

    def test_matches_vector(self):
        """Test each column matches standardize_vector."""
        np.random.seed(42)
        Y = np.random.randn(30, 3) * [1.0, 5.0, 0.1] + [0.0, 10.0, -3.0]
        Z = standardize_columns(Y)
        for k in range(3):
            assert np.allclose(Z[:, k], standardize_vector(Y[:, k]))

    def test_constant_column(self):
        """Test constant columns become zeros."""
        Y = np.column_stack([np.arange(5.0), np.full(5, 2.0)])
        Z = standardize_columns(Y)
        assert np.allclose(Z[:, 1], 0.0)
        assert not np.allclose(Z[:, 0], 0.0)
