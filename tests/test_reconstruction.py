"""
Tests for delay reconstruction and rescaling.
"""

import numpy as np
import pytest

from lyapspec.dynamics import embed_time_series, make_index, rescale_data, variance
from lyapspec.dynamics.reconstruction import delay_vector
from lyapspec.errors import DegenerateInputError


# ─────────────────────────────────────────────────────────────────────
# Delay coordinates
# ─────────────────────────────────────────────────────────────────────

class TestDelayCoordinates:
    """States look backwards: x_t = (s[t], s[t-tau], ...)."""

    def test_make_index(self):
        np.testing.assert_array_equal(make_index(3, 1), [0, 1, 2])
        np.testing.assert_array_equal(make_index(4, 3), [0, 3, 6, 9])

    def test_make_index_rejects_zero_dim(self):
        with pytest.raises(ValueError):
            make_index(0, 1)

    def test_embedding_rows_match_delay_vectors(self):
        x = np.arange(10.0) ** 2
        index = make_index(3, 2)
        embedded = embed_time_series(x, tau=2, dim=3)

        assert embedded.shape == (6, 3)
        for k, row in enumerate(embedded):
            t = k + 4
            np.testing.assert_array_equal(row, delay_vector(x, t, index))
            np.testing.assert_array_equal(row, [x[t], x[t - 2], x[t - 4]])

    def test_embedding_dim_one_is_the_series(self):
        x = np.linspace(0.0, 1.0, 7)
        np.testing.assert_array_equal(embed_time_series(x, 1, 1)[:, 0], x)

    def test_series_too_short(self):
        with pytest.raises(ValueError):
            embed_time_series(np.arange(3.0), tau=2, dim=3)


# ─────────────────────────────────────────────────────────────────────
# Rescaling and variance
# ─────────────────────────────────────────────────────────────────────

class TestRescale:

    def test_maps_onto_unit_interval(self):
        x = np.array([3.0, -1.0, 7.0, 5.0])
        rescaled, minimum, interval = rescale_data(x)

        assert minimum == -1.0
        assert interval == 8.0
        np.testing.assert_allclose(rescaled, [0.5, 0.0, 1.0, 0.75])

    def test_input_untouched(self):
        x = np.array([2.0, 4.0, 6.0])
        rescale_data(x)
        np.testing.assert_array_equal(x, [2.0, 4.0, 6.0])

    def test_constant_series(self):
        with pytest.raises(DegenerateInputError, match="Variance of the data is zero"):
            rescale_data(np.full(20, 3.5))

    def test_variance(self):
        x = np.array([0.0, 1.0, 0.0, 1.0])
        mean, std = variance(x)
        assert mean == pytest.approx(0.5)
        assert std == pytest.approx(0.5)

    def test_variance_of_constant_series(self):
        with pytest.raises(DegenerateInputError):
            variance(np.full(10, 0.25))

    def test_variance_of_empty_series(self):
        with pytest.raises(DegenerateInputError):
            variance(np.array([]))

    def test_degenerate_input_is_value_error(self):
        with pytest.raises(ValueError):
            rescale_data(np.zeros(5))
