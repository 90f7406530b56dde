"""
lyapspec - Lyapunov Spectrum Estimation
=======================================

Full Lyapunov spectrum of a scalar time series by local linear fits in
delay coordinates (the "Jacobian method").

Architecture:
    - dynamics/:   Reconstruction, neighbour search, local fits, estimator
    - config/:     EstimatorConfig and YAML presets
    - io.py:       Polars readers and writers
    - sweep.py:    Parallel parameter sweeps
    - cli.py:      Command line interface

Usage:
    # CLI
    lyapspec run series.parquet --column x -m 2

    # Python
    from lyapspec.dynamics import JacobianMethod
    spectrum = JacobianMethod(x, embedding_dim=2).calculate()
"""

__version__ = "0.1.0"

from lyapspec.errors import (
    LyapunovError,
    InfeasibleConfigurationError,
    DegenerateInputError,
    InsufficientNeighborsError,
    SingularMatrixError,
)

__all__ = [
    'dynamics',
    'config',
    'io',
    'sweep',
    'LyapunovError',
    'InfeasibleConfigurationError',
    'DegenerateInputError',
    'InsufficientNeighborsError',
    'SingularMatrixError',
    '__version__',
]


def __getattr__(name):
    """Lazy import of submodules."""
    if name == 'dynamics':
        from . import dynamics
        return dynamics
    elif name == 'config':
        from . import config
        return config
    elif name == 'io':
        from . import io
        return io
    elif name == 'sweep':
        from . import sweep
        return sweep
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
