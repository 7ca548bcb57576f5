"""
Multiple-testing correction for local statistics.

Local Moran's I produces one pseudo p-value per observation; these helpers
adjust them with Benjamini-Hochberg (FDR) or Bonferroni (FWER).
"""

from typing import Literal

import numpy as np


def apply_fdr_correction(
    pvalues,
    method: Literal["bh", "bonferroni"] = "bh",
    alpha: float = 0.05,
) -> dict:
    """
    Adjust p-values for multiple comparisons.

    Parameters
    ----------
    pvalues : array-like
        Raw p-values; NaN entries are ignored and stay NaN.
    method : {"bh", "bonferroni"}, default="bh"
        Benjamini-Hochberg step-up or Bonferroni.
    alpha : float, default=0.05
        Significance threshold applied to the adjusted values.

    Returns
    -------
    dict
        'adjusted_pvalues', 'significant' (bool mask), 'n_significant',
        'method' and 'alpha'.

    Examples
    --------
    >>> apply_fdr_correction([0.001, 0.01, 0.05, 0.1, 0.5])["n_significant"]
    2
    """
    if method not in ("bh", "bonferroni"):
        raise ValueError(f"Unknown method: '{method}'. Use 'bh' or 'bonferroni'.")

    pvalues = np.asarray(pvalues, dtype=np.float64).ravel()
    adjusted = np.full(pvalues.shape, np.nan)

    valid = ~np.isnan(pvalues)
    p = pvalues[valid]
    m = p.size

    if m:
        if method == "bonferroni":
            adjusted[valid] = np.minimum(p * m, 1.0)
        else:
            order = np.argsort(p)
            scaled = p[order] * m / np.arange(1, m + 1)
            # step-up: running minimum from the largest p-value down
            scaled = np.minimum.accumulate(scaled[::-1])[::-1]
            out = np.empty(m)
            out[order] = np.minimum(scaled, 1.0)
            adjusted[valid] = out

    significant = np.zeros(pvalues.shape, dtype=bool)
    significant[valid] = adjusted[valid] < alpha

    return {
        "adjusted_pvalues": adjusted,
        "significant": significant,
        "n_significant": int(significant.sum()),
        "method": method,
        "alpha": alpha,
    }
