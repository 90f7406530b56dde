"""
Spectrum-derived invariants.

Quantities that follow directly from a Lyapunov spectrum:
- Kaplan-Yorke (Lyapunov) dimension
- Kolmogorov-Sinai entropy bound (Pesin)

References:
    Kaplan, J. L., & Yorke, J. A. (1979). "Chaotic behavior of
    multidimensional difference equations"
"""

import numpy as np


def kaplan_yorke_dimension(exponents: np.ndarray) -> float:
    """
    Kaplan-Yorke (Lyapunov) dimension of a spectrum.

        D_KY = j + S_j / |lambda_{j+1}|,    S_j = lambda_1 + ... + lambda_j

    with the exponents in descending order and j the number of
    non-negative partial sums S_1..S_m. Once a partial sum is negative all
    later ones are too, so j is a plain count. j = m means the volume never
    contracts inside the embedding and D_KY = m.

    Parameters
    ----------
    exponents : array
        Lyapunov exponents in any order, e.g. LyapunovSpectrum.exponents

    Returns
    -------
    D_KY : float
        NaN for an empty spectrum or one containing NaN

    Examples
    --------
    >>> round(kaplan_yorke_dimension([0.42, -1.62]), 4)  # Henon map
    1.2593
    """
    spectrum = -np.sort(-np.asarray(exponents, dtype=float))
    if spectrum.size == 0 or np.isnan(spectrum).any():
        return np.nan

    partial = np.concatenate([[0.0], np.cumsum(spectrum)])
    j = int(np.count_nonzero(partial[1:] >= 0))

    if j == spectrum.size:
        return float(j)

    # spectrum[j] < 0 here, otherwise S_{j+1} >= S_j >= 0
    return float(j + partial[j] / -spectrum[j])


def ks_entropy(lyapunov_spectrum: np.ndarray) -> float:
    """Sum of the positive exponents, an upper bound on the KS entropy."""
    spectrum = np.asarray(lyapunov_spectrum, dtype=float)
    if len(spectrum) == 0 or np.any(np.isnan(spectrum)):
        return np.nan
    return float(np.sum(spectrum[spectrum > 0]))
