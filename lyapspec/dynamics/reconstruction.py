"""
Phase Space Reconstruction

Delay coordinates for scalar time series, plus the global rescaling the
Jacobian estimator applies before any distance is measured.

A reconstructed state at time t looks backwards in time:

    x_t = (s[t], s[t - tau], ..., s[t - (m-1)*tau])

References:
    Takens, F. (1981). "Detecting strange attractors in turbulence"
"""

from typing import Tuple

import numpy as np

from lyapspec.errors import DegenerateInputError


def make_index(dim: int, delay: int) -> np.ndarray:
    """
    Offsets of the delay coordinates: [0, delay, 2*delay, ...].

    Examples
    --------
    >>> make_index(3, 2)
    array([0, 2, 4])
    """
    if dim < 1:
        raise ValueError(f"Embedding dimension must be >= 1, got {dim}")
    return np.arange(dim, dtype=np.intp) * delay


def embed_time_series(x: np.ndarray, tau: int, dim: int) -> np.ndarray:
    """
    Takens' embedding theorem: reconstruct attractor from scalar time series.

    Parameters
    ----------
    x : array, shape (n_samples,)
        Scalar time series
    tau : int
        Time delay (in samples)
    dim : int
        Embedding dimension

    Returns
    -------
    embedded : array, shape (n_samples - (dim-1)*tau, dim)
        Row k is the state at time t = k + (dim-1)*tau, column i holds
        s[t - i*tau].

    Examples
    --------
    >>> x = np.arange(6.0)
    >>> embed_time_series(x, tau=1, dim=3)[0]
    array([2., 1., 0.])
    """
    x = np.asarray(x, dtype=float)
    n = len(x) - (dim - 1) * tau
    if n <= 0:
        raise ValueError(f"Time series too short for tau={tau}, dim={dim}")

    start = (dim - 1) * tau
    embedded = np.empty((n, dim))
    for i, offset in enumerate(make_index(dim, tau)):
        embedded[:, i] = x[start - offset : start - offset + n]
    return embedded


def delay_vector(x: np.ndarray, t: int, index: np.ndarray) -> np.ndarray:
    """State vector at time t for a precomputed offset table."""
    return x[t - index]


def rescale_data(x: np.ndarray) -> Tuple[np.ndarray, float, float]:
    """
    Map a series onto [0, 1].

    Returns
    -------
    rescaled : array
        (x - min) / interval
    minimum : float
        Minimum of the input
    interval : float
        Range of the input (max - min)

    Raises
    ------
    DegenerateInputError
        If the series is constant.
    """
    x = np.asarray(x, dtype=float)
    minimum = float(np.min(x))
    interval = float(np.max(x)) - minimum

    if interval == 0.0:
        raise DegenerateInputError("Variance of the data is zero.")

    return (x - minimum) / interval, minimum, interval


def variance(x: np.ndarray) -> Tuple[float, float]:
    """
    Mean and standard deviation of a series.

    Raises DegenerateInputError when the standard deviation is zero.
    """
    x = np.asarray(x, dtype=float)
    if len(x) == 0:
        raise DegenerateInputError("Empty time series.")

    av = float(np.mean(x))
    std = float(np.sqrt(abs(np.mean(x * x) - av * av)))

    if std == 0.0 or np.ptp(x) == 0.0:
        raise DegenerateInputError("Variance of the data is zero.")

    return av, std
