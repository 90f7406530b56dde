"""
Dense Linear Systems

Gaussian elimination with partial pivoting for the small normal-equation
systems of the local fit. Inversion solves once per identity column.

Only an exactly zero pivot is treated as singular. Near-singular
neighbourhoods pass through and can give large coefficients.
"""

from typing import List

import numpy as np

from lyapspec.errors import SingularMatrixError


def _check_square(matrix: np.ndarray) -> int:
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {matrix.shape}")
    return matrix.shape[0]


def solve_linear_system(matrix: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    """
    Solve A x = b by elimination with partial pivoting.

    Neither input is modified. Rows are held as separate arrays and
    pivoting swaps the row handles.

    Parameters
    ----------
    matrix : array, shape (n, n)
    rhs : array, shape (n,)

    Returns
    -------
    x : array, shape (n,)

    Raises
    ------
    SingularMatrixError
        If a pivot is exactly zero after row exchange.
    """
    matrix = np.asarray(matrix, dtype=float)
    n = _check_square(matrix)
    vec = np.array(rhs, dtype=float)
    if vec.shape != (n,):
        raise ValueError(f"Right-hand side must have shape ({n},), got {vec.shape}")

    rows: List[np.ndarray] = [row.copy() for row in matrix]

    for i in range(n - 1):
        # Largest magnitude in the active column; first one wins on ties
        column = np.abs([rows[j][i] for j in range(i, n)])
        maxi = i + int(np.argmax(column))

        if maxi != i:
            rows[i], rows[maxi] = rows[maxi], rows[i]
            vec[i], vec[maxi] = vec[maxi], vec[i]

        pivot_row = rows[i]
        pivot = pivot_row[i]
        if pivot == 0.0:
            raise SingularMatrixError(f"Singular matrix: zero pivot in column {i}")

        for j in range(i + 1, n):
            q = -rows[j][i] / pivot
            rows[j][i] = 0.0
            rows[j][i + 1:] += q * pivot_row[i + 1:]
            vec[j] += q * vec[i]

    if rows[n - 1][n - 1] == 0.0:
        raise SingularMatrixError(f"Singular matrix: zero pivot in column {n - 1}")

    # Back substitution
    vec[n - 1] /= rows[n - 1][n - 1]
    for i in range(n - 2, -1, -1):
        vec[i] -= np.dot(rows[i][i + 1:], vec[i + 1:])
        vec[i] /= rows[i][i]

    return vec


def invert_matrix(matrix: np.ndarray) -> np.ndarray:
    """
    Inverse of a square matrix, column by column.

    Examples
    --------
    >>> invert_matrix(np.array([[2.0, 0.0], [0.0, 4.0]]))
    array([[0.5 , 0.  ],
           [0.  , 0.25]])
    """
    matrix = np.asarray(matrix, dtype=float)
    n = _check_square(matrix)
    inverse = np.empty((n, n))
    identity = np.eye(n)

    for i in range(n):
        inverse[:, i] = solve_linear_system(matrix, identity[i])

    return inverse
