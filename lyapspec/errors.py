"""
Error taxonomy for Lyapunov spectrum estimation.

Every failure is fatal for the current run. Callers that want to try other
parameters (sweeps, the CLI) catch ``LyapunovError`` at their boundary.
"""

import numpy as np


class LyapunovError(Exception):
    """Base class for all estimation failures."""


class InfeasibleConfigurationError(LyapunovError, ValueError):
    """Requested parameters cannot be satisfied by the available data."""


class DegenerateInputError(LyapunovError, ValueError):
    """Input series carries no information (zero variance)."""


class InsufficientNeighborsError(LyapunovError):
    """Fewer than the required neighbours exist even at the maximum radius."""

    def __init__(self, query: int, found: int, required: int):
        self.query = query
        self.found = found
        self.required = required
        super().__init__(
            f"Not enough neighbors for point {query}: "
            f"found {found}, need {required}"
        )


class SingularMatrixError(LyapunovError, np.linalg.LinAlgError):
    """Zero pivot met during Gaussian elimination."""
