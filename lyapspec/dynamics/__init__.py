"""
Lyapunov Spectrum Engine

Local-Jacobian estimation of the full Lyapunov spectrum from a scalar
time series:
- Delay reconstruction and rescaling
- Radius-based neighbour search (box-assisted or KD-tree)
- Local affine fits solved by Gaussian elimination
- Tangent-space propagation with Gram-Schmidt orthonormalization
"""

from .reconstruction import (
    embed_time_series,
    make_index,
    rescale_data,
    variance,
)
from .neighbors import (
    EPS_MAX,
    NeighborIndex,
    BoxAssistedIndex,
    KDTreeIndex,
    make_neighbor_index,
    radius_schedule,
)
from .selection import (
    Selection,
    SelectionStatus,
    select_neighbors,
)
from .linalg import (
    invert_matrix,
    solve_linear_system,
)
from .tangent import (
    TANGENT_SEED,
    TANGENT_WARMUP,
    gram_schmidt,
    propagate,
    seed_basis,
)
from .dimension import (
    kaplan_yorke_dimension,
    ks_entropy,
)
from .lyapunov import (
    DELAY,
    JacobianMethod,
    LyapunovSpectrum,
    lyapunov_spectrum,
)

__all__ = [
    # Reconstruction
    'embed_time_series',
    'make_index',
    'rescale_data',
    'variance',
    # Neighbours
    'EPS_MAX',
    'NeighborIndex',
    'BoxAssistedIndex',
    'KDTreeIndex',
    'make_neighbor_index',
    'radius_schedule',
    'Selection',
    'SelectionStatus',
    'select_neighbors',
    # Linear algebra
    'invert_matrix',
    'solve_linear_system',
    # Tangent space
    'TANGENT_SEED',
    'TANGENT_WARMUP',
    'gram_schmidt',
    'propagate',
    'seed_basis',
    # Invariants
    'kaplan_yorke_dimension',
    'ks_entropy',
    # Estimator
    'DELAY',
    'JacobianMethod',
    'LyapunovSpectrum',
    'lyapunov_spectrum',
]
