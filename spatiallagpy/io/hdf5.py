"""
HDF5 and CSV export of weights matrices and analysis tables.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import numpy as np
from scipy import sparse as sp_sparse

logger = logging.getLogger(__name__)


def save_weights_hdf5(
    path: str,
    W,
    metadata: Optional[dict[str, Any]] = None,
    ids: Optional[list] = None,
    compression: str = "gzip",
    compression_level: int = 4,
) -> None:
    """
    Save a weights matrix to HDF5 in CSR form.

    Datasets ``data``, ``indices`` and ``indptr`` hold the CSR arrays, the
    ``shape`` attribute its dimensions. Scalar metadata (rule, k, alpha, ...)
    is stored as file attributes.

    Parameters
    ----------
    path : str
        Output file path; parent directories are created.
    W : sparse matrix or np.ndarray
        Weights matrix.
    metadata : dict, optional
        Scalars or lists stored as attributes.
    ids : list, optional
        Observation identifiers stored as strings.
    compression : str, default="gzip"
        Compression algorithm.
    compression_level : int, default=4
        Compression level (1-9).

    Examples
    --------
    >>> save_weights_hdf5("w.h5", W, metadata={"rule": "knn", "k": 6})
    """
    try:
        import h5py
    except ImportError:
        raise ImportError("h5py is required. Install with: pip install h5py")

    W = sp_sparse.csr_matrix(W, dtype=np.float64)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with h5py.File(path, "w") as f:
        for name in ("data", "indices", "indptr"):
            f.create_dataset(
                name,
                data=getattr(W, name),
                compression=compression,
                compression_opts=compression_level,
            )
        f.attrs["shape"] = np.array(W.shape)

        if metadata is not None:
            for key, value in metadata.items():
                if isinstance(value, (int, float, str, bool, np.number)):
                    f.attrs[key] = value
                elif isinstance(value, (list, tuple)):
                    f.attrs[key] = np.array(value)

        if ids is not None:
            f.create_dataset("ids", data=np.array([str(i) for i in ids], dtype="S"))

    logger.info(f"Saved {W.shape[0]}x{W.shape[1]} weights ({W.nnz} non-zero) to {path}")


def load_weights_hdf5(path: str) -> dict[str, Any]:
    """
    Load a weights matrix written by :func:`save_weights_hdf5`.

    Returns
    -------
    dict
        'W' (csr_matrix), 'metadata' (dict of attributes) and 'ids'
        (list of str, or None).
    """
    try:
        import h5py
    except ImportError:
        raise ImportError("h5py is required. Install with: pip install h5py")

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with h5py.File(path, "r") as f:
        shape = tuple(int(s) for s in f.attrs["shape"])
        W = sp_sparse.csr_matrix(
            (f["data"][:], f["indices"][:], f["indptr"][:]),
            shape=shape,
        )
        metadata = {k: v for k, v in f.attrs.items() if k != "shape"}
        ids = [x.decode() for x in f["ids"][:]] if "ids" in f else None

    return {"W": W, "metadata": metadata, "ids": ids}


def save_summary(df, path: str, index: bool = False) -> str:
    """Write a summary table to CSV, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=index)
    logger.info(f"Saved summary table {df.shape} to {path}")
    return str(path)
