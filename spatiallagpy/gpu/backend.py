"""
Optional CuPy backend for the matrix-vector products behind spatial lags.

Everything in spatiallagpy runs on NumPy/SciPy. When CuPy is importable the
lag operators can push the sparse product to the GPU instead.
"""

import numpy as np
from scipy import sparse as sp_sparse

try:
    import cupy as cp
    import cupyx.scipy.sparse as cp_sparse

    GPU_AVAILABLE = True
except ImportError:
    cp = None
    cp_sparse = None
    GPU_AVAILABLE = False


def get_array_module(use_gpu: bool = True):
    """
    Return ``cupy`` when requested and available, otherwise ``numpy``.

    Parameters
    ----------
    use_gpu : bool, default=True
        Whether the GPU should be used if CuPy is installed.

    Returns
    -------
    module
        Either cupy or numpy.
    """
    if use_gpu and GPU_AVAILABLE:
        return cp
    return np


def ensure_numpy(arr) -> np.ndarray:
    """Bring a CuPy array back to host memory; NumPy input passes through."""
    if GPU_AVAILABLE and hasattr(arr, "get"):
        return arr.get()
    return np.asarray(arr)


def to_device_matrix(W):
    """
    Copy a weights matrix to the GPU.

    Sparse input becomes a ``cupyx.scipy.sparse.csr_matrix``; dense input a
    ``cupy.ndarray``. Only call this when ``GPU_AVAILABLE`` is True.
    """
    if sp_sparse.issparse(W):
        return cp_sparse.csr_matrix(W.tocsr().astype(np.float64))
    return cp.asarray(W, dtype=cp.float64)
