"""
Tests for Gaussian elimination and inversion.
"""

import numpy as np
import pytest

from lyapspec.dynamics import invert_matrix, solve_linear_system
from lyapspec.errors import LyapunovError, SingularMatrixError


class TestSolve:

    def test_matches_numpy(self):
        rng = np.random.default_rng(7)
        a = rng.random((4, 4)) + 4.0 * np.eye(4)
        b = rng.random(4)

        np.testing.assert_allclose(solve_linear_system(a, b), np.linalg.solve(a, b),
                                   rtol=1e-12)

    def test_needs_row_exchange(self):
        """A zero on the diagonal is handled by pivoting."""
        a = np.array([[0.0, 2.0], [3.0, 1.0]])
        b = np.array([4.0, 5.0])

        np.testing.assert_allclose(solve_linear_system(a, b), [1.0, 2.0])

    def test_inputs_not_modified(self):
        a = np.array([[0.0, 1.0], [1.0, 0.0]])
        b = np.array([1.0, 2.0])
        a_before, b_before = a.copy(), b.copy()

        solve_linear_system(a, b)

        np.testing.assert_array_equal(a, a_before)
        np.testing.assert_array_equal(b, b_before)

    def test_rejects_non_square(self):
        with pytest.raises(ValueError):
            solve_linear_system(np.ones((2, 3)), np.ones(2))

    def test_rejects_wrong_rhs(self):
        with pytest.raises(ValueError):
            solve_linear_system(np.eye(3), np.ones(2))


class TestSingular:

    def test_zero_row(self):
        with pytest.raises(SingularMatrixError):
            solve_linear_system(np.array([[1.0, 2.0], [0.0, 0.0]]), np.ones(2))

    def test_zero_final_pivot(self):
        """Dependent rows leave an exact zero in the last pivot."""
        a = np.array([[1.0, 2.0, 3.0], [2.0, 4.0, 6.0], [1.0, 0.0, 1.0]])
        with pytest.raises(SingularMatrixError):
            invert_matrix(a)

    def test_zero_matrix(self):
        with pytest.raises(SingularMatrixError):
            invert_matrix(np.zeros((3, 3)))

    def test_error_hierarchy(self):
        with pytest.raises(np.linalg.LinAlgError):
            invert_matrix(np.zeros((2, 2)))
        with pytest.raises(LyapunovError):
            invert_matrix(np.zeros((2, 2)))


class TestInvert:

    def test_round_trip(self):
        rng = np.random.default_rng(11)
        a = rng.random((5, 5)) + 5.0 * np.eye(5)

        inverse = invert_matrix(a)

        np.testing.assert_allclose(a @ inverse, np.eye(5), atol=1e-12)
        np.testing.assert_allclose(inverse, np.linalg.inv(a), rtol=1e-10)

    def test_permutation_is_its_own_inverse(self):
        p = np.array([[0.0, 1.0], [1.0, 0.0]])
        np.testing.assert_array_equal(invert_matrix(p), p)

    def test_one_by_one(self):
        np.testing.assert_allclose(invert_matrix(np.array([[4.0]])), [[0.25]])
