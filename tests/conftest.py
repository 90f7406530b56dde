"""
Shared series for the lyapspec tests.

All generators are deterministic; none of them touch global random state.
"""

import numpy as np
import pytest


def geometric_series(a, n=60, s0=1.0):
    """s[t+1] = a * s[t]: exactly linear, lambda = ln|a|."""
    return s0 * a ** np.arange(n, dtype=float)


def logistic_series(n, x0=0.3, r=4.0):
    x = np.empty(n)
    x[0] = x0
    for t in range(1, n):
        x[t] = r * x[t - 1] * (1.0 - x[t - 1])
    return x


def henon_series(n, a=1.4, b=0.3, transient=100):
    x, y = 0.1, 0.0
    out = np.empty(n)
    for t in range(n + transient):
        x, y = 1.0 - a * x * x + y, b * x
        if t >= transient:
            out[t - transient] = x
    return out


@pytest.fixture
def logistic():
    return logistic_series(2000)


@pytest.fixture
def henon():
    return henon_series(2000)


@pytest.fixture
def short_henon():
    return henon_series(500)
