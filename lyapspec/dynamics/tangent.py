"""
Tangent Space

Perturbation vectors carried along the reconstructed trajectory. Each row
of a basis matrix is one vector in delay coordinates.
"""

from typing import Tuple

import numpy as np

# Reproducible starting basis: fixed seed, first draws discarded.
TANGENT_SEED = 2**31 - 1
TANGENT_WARMUP = 10_000


def seed_basis(
    dim: int,
    seed: int = TANGENT_SEED,
    warmup: int = TANGENT_WARMUP,
) -> np.ndarray:
    """
    Pseudo-random dim x dim starting basis, uniform on [0, 1).

    A private generator is used, so repeated calls give the same matrix
    and no global random state is touched.
    """
    rng = np.random.default_rng(seed)
    rng.random(warmup)
    return rng.random((dim, dim))


def propagate(jacobian_row: np.ndarray, basis: np.ndarray) -> np.ndarray:
    """
    Apply the companion matrix of the local map to every basis vector.

    The first coordinate becomes the Jacobian row applied to the vector;
    the remaining coordinates shift one lag back.
    """
    advanced = np.empty_like(basis)
    advanced[:, 0] = basis @ jacobian_row
    advanced[:, 1:] = basis[:, :-1]
    return advanced


def gram_schmidt(basis: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Orthonormalize the rows of `basis` in order.

    Returns
    -------
    orthonormal : array, shape (m, m)
    stretch : array, shape (m,)
        Norm of each vector after removing its projections onto the
        previous ones. log(stretch) is the per-step growth rate.
    """
    basis = np.asarray(basis, dtype=float)
    dim = basis.shape[0]
    orthonormal = np.empty_like(basis)
    stretch = np.empty(dim)

    for i in range(dim):
        v = basis[i].copy()
        for j in range(i):
            v -= np.dot(basis[i], orthonormal[j]) * orthonormal[j]
        stretch[i] = np.linalg.norm(v)
        orthonormal[i] = v / stretch[i]

    return orthonormal, stretch
