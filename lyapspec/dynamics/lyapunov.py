"""
Lyapunov Spectrum Estimation (local Jacobian method)

Estimates all m exponents of a delay-reconstructed system from a scalar
time series:
    - lambda_1 > 0: chaotic (exponential divergence)
    - lambda_1 ~ 0: periodic/quasiperiodic
    - lambda_1 < 0: stable fixed point (convergence)

At every reconstructed state the neighbours within an adaptive radius are
fitted by an affine map s[t+1] ~ a0 + sum_i a_i s[t-i]. The coefficients
a_1..a_m form the first row of the Jacobian of the delay map; the other
rows are a pure shift. A tangent basis is pushed through this Jacobian and
re-orthonormalized each step; the logarithms of the stretch factors
average to the spectrum.

References:
    Sano, M., & Sawada, Y. (1985). "Measurement of the Lyapunov spectrum
    from a chaotic time series"
    Eckmann, J.-P., Kamphorst, S. O., Ruelle, D., & Ciliberto, S. (1986).
    "Liapunov exponents from time series"
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from lyapspec.errors import (
    DegenerateInputError,
    InfeasibleConfigurationError,
    InsufficientNeighborsError,
)

from .dimension import kaplan_yorke_dimension, ks_entropy
from .linalg import invert_matrix
from .neighbors import EPS_MAX, BoxAssistedIndex, NeighborIndex, radius_schedule
from .reconstruction import delay_vector, make_index, rescale_data, variance
from .selection import Selection, select_neighbors
from .tangent import gram_schmidt, propagate, seed_basis

logger = logging.getLogger(__name__)

# Delay between embedding coordinates, in samples
DELAY = 1

# Starting neighbourhood radius (rescaled units) when none is given
AUTO_EPS_MIN = 1e-3

# Seconds between progress snapshots
REPORT_INTERVAL = 10.0


@dataclass
class LyapunovSpectrum:
    """
    Exponents and fit diagnostics of one estimation run.

    Exponents are per sample, in Gram-Schmidt order (direction 1 first).
    Until the run finishes they hold the most recent progress snapshot.
    """
    exponents: np.ndarray
    iterations: int = 0
    relative_forecast_error: float = np.nan
    absolute_forecast_error: float = np.nan
    average_radius: float = np.nan
    average_neighbors: float = np.nan

    @property
    def kaplan_yorke_dimension(self) -> float:
        return kaplan_yorke_dimension(self.exponents)

    @property
    def ks_entropy(self) -> float:
        return ks_entropy(self.exponents)

    def to_dict(self) -> Dict[str, Any]:
        row = {f'lambda_{i + 1}': float(v) for i, v in enumerate(self.exponents)}
        row.update({
            'iterations': self.iterations,
            'relative_forecast_error': self.relative_forecast_error,
            'absolute_forecast_error': self.absolute_forecast_error,
            'average_radius': self.average_radius,
            'average_neighbors': self.average_neighbors,
            'kaplan_yorke_dimension': self.kaplan_yorke_dimension,
            'ks_entropy': self.ks_entropy,
        })
        return row

    def __str__(self):
        return ' '.join(f'{v:.6g}' for v in self.exponents)


class JacobianMethod:
    """
    Lyapunov spectrum from local linear fits in delay coordinates.

    Parameters
    ----------
    time_series : array
        Scalar series; copied, the caller's array is never modified
    embedding_dim : int
        Embedding dimension m (number of exponents)
    iterations : int, optional
        Last time index (exclusive) to visit; clamped to len - 1.
        Default: the whole series.
    eps_min : float
        Minimum neighbourhood radius in data units. 0 lets the radius
        adapt to the running mean of accepted radii.
    eps_step : float
        Factor by which the search radius grows on each retry (> 1)
    min_neighbors : int
        Neighbours required for each local fit
    inverse : bool
        Reverse the series before the analysis
    neighbor_index : NeighborIndex, optional
        Spatial index for radius queries (default: BoxAssistedIndex)
    report_interval : float
        Seconds between progress snapshots
    sink : callable, optional
        Receives each progress line in addition to `log`

    Examples
    --------
    >>> x = np.empty(3000); x[0] = 0.3
    >>> for t in range(1, 3000): x[t] = 4 * x[t-1] * (1 - x[t-1])
    >>> method = JacobianMethod(x, embedding_dim=1, min_neighbors=10)
    >>> spectrum = method.calculate()
    >>> abs(spectrum.exponents[0] - np.log(2)) < 0.1
    True
    """

    def __init__(
        self,
        time_series: np.ndarray,
        embedding_dim: int = 2,
        iterations: Optional[int] = None,
        eps_min: float = 0.0,
        eps_step: float = 1.2,
        min_neighbors: int = 30,
        inverse: bool = False,
        neighbor_index: Optional[NeighborIndex] = None,
        report_interval: float = REPORT_INTERVAL,
        sink: Optional[Callable[[str], None]] = None,
    ):
        self.time_series = np.array(time_series, dtype=float).ravel()
        self.length = len(self.time_series)
        self.embedding_dim = int(embedding_dim)
        self.iterations = self.length if iterations is None else int(iterations)
        self.eps_min = float(eps_min)
        self.eps_fixed = self.eps_min != 0.0
        self.eps_step = float(eps_step)
        self.min_neighbors = int(min_neighbors)
        self.inverse = bool(inverse)
        self.neighbor_index = neighbor_index if neighbor_index is not None else BoxAssistedIndex()
        self.report_interval = report_interval
        self.sink = sink

        self._validate()

        self.result = LyapunovSpectrum(exponents=np.zeros(self.embedding_dim))
        self.log: List[str] = []
        self.count = 0

    def _validate(self):
        if self.embedding_dim < 1:
            raise InfeasibleConfigurationError(
                f"Embedding dimension must be >= 1, got {self.embedding_dim}"
            )
        if self.min_neighbors < 1:
            raise InfeasibleConfigurationError(
                f"min_neighbors must be >= 1, got {self.min_neighbors}"
            )
        if self.eps_step <= 1.0:
            raise InfeasibleConfigurationError(
                f"eps_step must be > 1, got {self.eps_step}"
            )
        if self.eps_min < 0.0:
            raise InfeasibleConfigurationError(
                f"eps_min must be >= 0, got {self.eps_min}"
            )
        if self.iterations < 1:
            raise InfeasibleConfigurationError(
                f"iterations must be >= 1, got {self.iterations}"
            )

        available = self.length - DELAY * (self.embedding_dim - 1) - 1
        if self.min_neighbors > available:
            raise InfeasibleConfigurationError(
                f"Too few points to find {self.min_neighbors} neighbors "
                f"({available} available for m={self.embedding_dim})"
            )

        if min(self.iterations, self.length - DELAY) <= (self.embedding_dim - 1) * DELAY:
            raise InfeasibleConfigurationError(
                f"iterations={self.iterations} leaves no step for m={self.embedding_dim}"
            )

        if not np.all(np.isfinite(self.time_series)):
            raise DegenerateInputError("Time series contains NaN or infinite values")

    @property
    def spectrum(self) -> np.ndarray:
        """Current exponent estimates (read-only copy)."""
        return self.result.exponents.copy()

    def describe(self) -> str:
        return '\n'.join([
            f"m = {self.embedding_dim}",
            f"tau = {DELAY}",
            f"iterations = {self.iterations}",
            f"min eps = {self.eps_min:g}",
            f"neighbour size increase factor = {self.eps_step:g}",
            f"neighbors count = {self.min_neighbors}",
            f"invert timeseries = {self.inverse}",
        ])

    def __str__(self):
        return self.describe()

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def calculate(self) -> LyapunovSpectrum:
        """
        Run the estimation over the configured range of time indices.

        Returns
        -------
        LyapunovSpectrum
            Final exponents and diagnostics (also stored as `self.result`)

        Raises
        ------
        DegenerateInputError
            Constant input series
        InsufficientNeighborsError
            Too few neighbours even at the maximum radius
        SingularMatrixError
            Degenerate neighbourhood in a local fit
        """
        m = self.embedding_dim

        series, _, interval = rescale_data(self.time_series)
        _, std = variance(series)

        if self.inverse:
            series = series[::-1].copy()

        self._series = series
        self._interval = interval
        self._index = make_index(m, DELAY)
        self._eps = self.eps_min / interval if self.eps_fixed else AUTO_EPS_MIN

        self.count = 0
        self._sum_error = 0.0
        self._sum_radius = 0.0
        self._sum_neighbors = 0

        basis, _ = gram_schmidt(seed_basis(m))
        factor = np.zeros(m)

        first = (m - 1) * DELAY
        stop = min(self.iterations, self.length - DELAY)

        logger.info(
            f"Jacobian method: m={m}, points={self.length}, steps={stop - first}, "
            f"min_neighbors={self.min_neighbors}"
        )

        last_report = time.monotonic()

        for t in range(first, stop):
            self.count += 1
            jacobian_row = self._make_dynamics(t)
            basis = propagate(jacobian_row, basis)
            basis, stretch = gram_schmidt(basis)
            factor += np.log(stretch) / DELAY

            now = time.monotonic()
            if now - last_report > self.report_interval or t == stop - 1:
                last_report = now
                self._report(factor)

        self.result.iterations = self.count
        self.result.relative_forecast_error = np.sqrt(self._sum_error / self.count) / std
        self.result.absolute_forecast_error = np.sqrt(self._sum_error / self.count) * interval
        self.result.average_radius = self._sum_radius * interval / self.count
        self.result.average_neighbors = self._sum_neighbors / self.count

        self._emit(f"Avg. relative forecast error = {self.result.relative_forecast_error:.4g}")
        self._emit(f"Avg. absolute forecast error = {self.result.absolute_forecast_error:.4g}")
        self._emit(f"Avg. neighborhood size = {self.result.average_radius:.4g}")
        self._emit(f"Avg. number of neighbors = {self.result.average_neighbors:.4g}")

        return self.result

    def _report(self, factor: np.ndarray):
        self.result.exponents = factor / self.count
        self._emit(f"{self.count} " + ' '.join(f'{v}' for v in self.result.exponents))

    def _emit(self, line: str):
        self.log.append(line)
        logger.info(line)
        if self.sink is not None:
            self.sink(line)

    # ------------------------------------------------------------------
    # One step
    # ------------------------------------------------------------------

    def _find_neighborhood(self, t: int) -> Selection:
        """Grow the radius until the neighbourhood of t is acceptable."""
        series = self._series
        index = self.neighbor_index
        start = (self.embedding_dim - 1) * DELAY
        end = self.length - DELAY
        fallback = None
        n_found = 0

        # Repeated values can drive the adaptive floor to zero
        initial = self._eps if self._eps > 0 else AUTO_EPS_MIN

        for radius in radius_schedule(initial, self.eps_step, EPS_MAX):
            index.rebuild(series, radius, start, end)
            n_found = index.find_neighbors(series, self.embedding_dim, DELAY, radius, t)

            if n_found > self.min_neighbors:
                selection = select_neighbors(
                    series, self._index, t, index.found[:n_found],
                    self.min_neighbors, self._eps, self.eps_fixed,
                )
                if selection.accepted:
                    return selection
                fallback = selection

            logger.debug(f"t={t}: {n_found} candidates at radius {radius:.4g}, growing")

        # Radius cap reached: settle for whatever the widest search gave
        if fallback is not None and fallback.count >= self.min_neighbors:
            return fallback

        raise InsufficientNeighborsError(t, n_found, self.min_neighbors)

    def _make_dynamics(self, t: int) -> np.ndarray:
        """
        Local affine fit around state t.

        Returns the Jacobian row (a_1..a_m) and accumulates the squared
        one-step forecast error.
        """
        selection = self._find_neighborhood(t)
        neighbors = selection.neighbors
        n = len(neighbors)

        self._sum_neighbors += n
        self._sum_radius += selection.threshold
        if not self.eps_fixed:
            self._eps = self._sum_radius / self.count

        series = self._series
        lagged = series[neighbors[:, np.newaxis] - self._index[np.newaxis, :]]
        design = np.hstack([np.ones((n, 1)), lagged])

        # Averaged normal equations; row/column 0 is the constant term
        moments = design.T @ design / n
        cross = design.T @ series[neighbors + DELAY] / n

        coefficients = invert_matrix(moments) @ cross
        jacobian_row = coefficients[1:]

        forecast = coefficients[0] + jacobian_row @ delay_vector(series, t, self._index)
        self._sum_error += (forecast - series[t + DELAY]) ** 2

        return jacobian_row


def lyapunov_spectrum(
    x: np.ndarray,
    dim: int = 2,
    iterations: Optional[int] = None,
    eps_min: float = 0.0,
    eps_step: float = 1.2,
    min_neighbors: int = 30,
    inverse: bool = False,
    neighbor_index: Optional[NeighborIndex] = None,
) -> np.ndarray:
    """
    Estimate the Lyapunov spectrum of a scalar time series.

    Thin wrapper around JacobianMethod for callers that only need the
    exponents.

    Parameters
    ----------
    x : array
        Time series
    dim : int
        Embedding dimension (number of exponents)
    iterations : int, optional
        Last time index to visit (default: whole series)
    eps_min : float
        Minimum neighbourhood radius in data units (0 = adaptive)
    eps_step : float
        Radius growth factor
    min_neighbors : int
        Neighbours per local fit
    inverse : bool
        Analyse the time-reversed series

    Returns
    -------
    spectrum : array
        Lyapunov exponents per sample, in orthonormalization order

    Examples
    --------
    >>> x = np.empty(2000); x[0], y = 0.1, 0.0
    >>> for t in range(1, 2000): x[t], y = 1 - 1.4 * x[t-1]**2 + y, 0.3 * x[t-1]
    >>> spectrum = lyapunov_spectrum(x, dim=2, min_neighbors=20)
    >>> spectrum[0] > 0
    True
    """
    method = JacobianMethod(
        x,
        embedding_dim=dim,
        iterations=iterations,
        eps_min=eps_min,
        eps_step=eps_step,
        min_neighbors=min_neighbors,
        inverse=inverse,
        neighbor_index=neighbor_index,
    )
    return method.calculate().exponents.copy()
