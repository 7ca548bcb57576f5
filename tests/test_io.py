"""Tests for loading observations and saving weights."""

import numpy as np
import pandas as pd
import pytest
from scipy import sparse as sp_sparse

from spatiallagpy.io import get_coordinates, is_geodataframe, load_points, save_summary


@pytest.fixture
def points_csv(tmp_path):
    df = pd.DataFrame({"lon": [0, 1, 2], "lat": [5, 6, 7], "price": [1.0, 2.0, 3.0]})
    path = tmp_path / "points.csv"
    df.to_csv(path, index=False)
    return path


class TestLoadPoints:
    """Tests for point tables."""

    def test_load_csv(self, points_csv):
        """Test a CSV loads with float coordinates."""
        df = load_points(points_csv, x_col="lon", y_col="lat")
        assert len(df) == 3
        assert df["lon"].dtype == np.float64

    def test_load_tsv(self, tmp_path):
        """Test TSV files are tab separated."""
        path = tmp_path / "points.tsv"
        pd.DataFrame({"x": [0.0, 1.0], "y": [0.0, 1.0]}).to_csv(path, sep="\t", index=False)
        df = load_points(path)
        assert list(df.columns) == ["x", "y"]

    def test_missing_file(self, tmp_path):
        """Test missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_points(tmp_path / "none.csv")

    def test_missing_columns(self, points_csv):
        """Test missing coordinate columns raise KeyError."""
        with pytest.raises(KeyError):
            load_points(points_csv)


class TestCoordinates:
    """Tests for coordinate extraction."""

    def test_from_dataframe(self):
        """Test DataFrame columns become an (n, 2) array."""
        df = pd.DataFrame({"x": [0, 1], "y": [2, 3]})
        coords = get_coordinates(df)
        assert coords.shape == (2, 2)
        assert np.array_equal(coords[1], [1.0, 3.0])
        assert not is_geodataframe(df)

    def test_from_array(self):
        """Test arrays pass through."""
        coords = get_coordinates([[0, 1], [2, 3], [4, 5]])
        assert coords.shape == (3, 2)

    def test_bad_array(self):
        """Test arrays must be (n, 2)."""
        with pytest.raises(ValueError):
            get_coordinates(np.zeros((4, 3)))

    def test_missing_columns(self):
        """Test unknown column names raise KeyError."""
        with pytest.raises(KeyError):
            get_coordinates(pd.DataFrame({"a": [1]}), "x", "y")

    def test_polygon_centroids(self):
        """Test polygon GeoDataFrames give centroids."""
        pytest.importorskip("geopandas")
        from spatiallagpy.datasets import make_lattice

        grid = make_lattice(2, 3, cell_size=2.0)
        coords = get_coordinates(grid)
        assert is_geodataframe(grid)
        assert np.allclose(coords[0], [1.0, 1.0])
        assert np.allclose(coords[5], [5.0, 3.0])


class TestGeodata:
    """Tests for vector files."""

    def test_roundtrip_geojson(self, tmp_path):
        """Test a GeoJSON file loads as a GeoDataFrame."""
        pytest.importorskip("geopandas")
        from spatiallagpy.datasets import make_lattice
        from spatiallagpy.io import load_geodata

        path = tmp_path / "grid.geojson"
        make_lattice(2, 2).to_file(path, driver="GeoJSON")
        gdf = load_geodata(path)
        assert len(gdf) == 4
        assert is_geodataframe(gdf)

    def test_missing_file(self, tmp_path):
        """Test missing vector files raise FileNotFoundError."""
        pytest.importorskip("geopandas")
        from spatiallagpy.io import load_geodata

        with pytest.raises(FileNotFoundError):
            load_geodata(tmp_path / "none.gpkg")


class TestHDF5:
    """Tests for weights in HDF5."""

    def test_roundtrip(self, tmp_path):
        """Test weights, metadata and ids survive a round trip."""
        pytest.importorskip("h5py")
        from spatiallagpy.io import load_weights_hdf5, save_weights_hdf5

        W = sp_sparse.csr_matrix(np.array([[0, 0.5, 0.5], [1.0, 0, 0], [0, 0, 0]]))
        path = tmp_path / "sub" / "w.h5"
        save_weights_hdf5(path, W, metadata={"rule": "knn", "k": 2}, ids=["a", "b", "c"])

        loaded = load_weights_hdf5(path)
        assert np.allclose(loaded["W"].toarray(), W.toarray())
        assert loaded["metadata"]["rule"] == "knn"
        assert loaded["metadata"]["k"] == 2
        assert loaded["ids"] == ["a", "b", "c"]

    def test_missing_file(self, tmp_path):
        """Test missing files raise FileNotFoundError."""
        pytest.importorskip("h5py")
        from spatiallagpy.io import load_weights_hdf5

        with pytest.raises(FileNotFoundError):
            load_weights_hdf5(tmp_path / "none.h5")


def test_save_summary(tmp_path):
    """Test summary tables are written as CSV."""
    df = pd.DataFrame({"variable": ["price"], "moran_i": [0.4]})
    path = save_summary(df, tmp_path / "out" / "summary.csv")
    assert pd.read_csv(path).equals(df)
