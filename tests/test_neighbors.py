"""
Tests for the radius schedule and the two neighbour indices.

Both indices must return exactly the indexed points closer than the
radius under the maximum norm, the query included.
"""

import numpy as np
import pytest

from lyapspec.dynamics import (
    EPS_MAX,
    BoxAssistedIndex,
    KDTreeIndex,
    make_index,
    make_neighbor_index,
    radius_schedule,
    rescale_data,
)


def brute_force(series, dim, radius, query, start, end):
    index = make_index(dim, 1)
    points = np.arange(start, end)
    lagged = series[points[:, np.newaxis] - index]
    distances = np.max(np.abs(lagged - series[query - index]), axis=1)
    return set(points[distances < radius].tolist())


def found_set(neighbor_index, series, dim, radius, query, start, end):
    neighbor_index.rebuild(series, radius, start, end)
    n = neighbor_index.find_neighbors(series, dim, 1, radius, query)
    return set(neighbor_index.found[:n].tolist())


@pytest.fixture
def random_series():
    rng = np.random.default_rng(3)
    series, _, _ = rescale_data(rng.random(500))
    return series


# ─────────────────────────────────────────────────────────────────────
# Radius schedule
# ─────────────────────────────────────────────────────────────────────

class TestRadiusSchedule:

    def test_geometric_then_capped(self):
        radii = list(radius_schedule(0.01, 1.5))

        assert radii[0] == pytest.approx(0.01)
        assert radii[-1] == EPS_MAX
        assert all(r <= EPS_MAX for r in radii)
        assert all(b > a for a, b in zip(radii, radii[1:]))
        np.testing.assert_allclose(
            np.array(radii[1:-1]) / np.array(radii[:-2]), 1.5, rtol=1e-12
        )

    def test_start_above_cap(self):
        assert list(radius_schedule(2.0, 1.2)) == [EPS_MAX]

    def test_custom_cap(self):
        radii = list(radius_schedule(0.1, 2.0, eps_max=0.5))
        assert radii[-1] == 0.5
        assert len(radii) == 4

    @pytest.mark.parametrize("eps_min,eps_step", [(0.0, 1.2), (-0.1, 1.2), (0.1, 1.0)])
    def test_invalid(self, eps_min, eps_step):
        with pytest.raises(ValueError):
            list(radius_schedule(eps_min, eps_step))


# ─────────────────────────────────────────────────────────────────────
# Indices
# ─────────────────────────────────────────────────────────────────────

class TestNeighborIndices:

    @pytest.mark.parametrize("kind", ["box", "kdtree"])
    @pytest.mark.parametrize("dim", [1, 2, 3])
    def test_matches_brute_force(self, random_series, kind, dim):
        start, end = dim - 1, len(random_series) - 1
        for query in (start, 100, 250, end - 1):
            for radius in (0.02, 0.1, 0.4):
                expected = brute_force(random_series, dim, radius, query, start, end)
                found = found_set(make_neighbor_index(kind), random_series,
                                  dim, radius, query, start, end)
                assert found == expected
                assert query in found

    def test_box_equals_kdtree(self, random_series):
        box, tree = BoxAssistedIndex(), KDTreeIndex()
        for radius in (0.05, 0.2, 1.0):
            for query in range(2, 499, 37):
                a = found_set(box, random_series, 3, radius, query, 2, 499)
                b = found_set(tree, random_series, 3, radius, query, 2, 499)
                assert a == b

    @pytest.mark.parametrize("kind", ["box", "kdtree"])
    def test_distance_is_strict(self, kind):
        series = np.array([0.0, 0.25, 0.5, 0.75, 1.0])
        found = found_set(make_neighbor_index(kind), series, 1, 0.25, 2, 0, 5)
        assert found == {2}

    @pytest.mark.parametrize("kind", ["box", "kdtree"])
    def test_range_respected(self, kind, random_series):
        found = found_set(make_neighbor_index(kind), random_series, 2, 1.5, 200, 100, 300)
        assert found == set(range(100, 300))

    def test_box_wraps_around(self):
        """Few boxes force wrap-around; the result must not change."""
        rng = np.random.default_rng(5)
        series, _, _ = rescale_data(rng.random(300))
        for query in (10, 150, 290):
            expected = brute_force(series, 2, 0.01, query, 1, 299)
            found = found_set(BoxAssistedIndex(n_boxes=4), series, 2, 0.01, query, 1, 299)
            assert found == expected

    def test_box_fill_groups_points_stably(self, random_series):
        index = BoxAssistedIndex(n_boxes=16)
        index.rebuild(random_series, 0.05, 3, 400)
        keys = np.floor_divide(random_series[3:400], 0.05).astype(np.intp) & 15

        np.testing.assert_array_equal(np.diff(index._bounds),
                                      np.bincount(keys, minlength=16))
        for b in range(16):
            members = index._order[index._bounds[b]:index._bounds[b + 1]]
            assert np.all(keys[members - 3] == b)
            assert np.all(np.diff(members) > 0)
        assert sorted(index._order.tolist()) == list(range(3, 400))

    def test_box_fill_empty_range(self, random_series):
        index = BoxAssistedIndex()
        index.rebuild(random_series, 0.1, 10, 10)
        assert index.find_neighbors(random_series, 1, 1, 0.1, 10) == 0

    def test_kdtree_rebuilt_for_new_series(self, random_series):
        tree = KDTreeIndex()
        found_set(tree, random_series, 1, 0.1, 10, 0, 499)

        other = random_series[::-1].copy()
        expected = brute_force(other, 1, 0.1, 10, 0, 499)
        assert found_set(tree, other, 1, 0.1, 10, 0, 499) == expected

    @pytest.mark.parametrize("index", [BoxAssistedIndex(), KDTreeIndex()])
    def test_query_before_rebuild(self, index):
        with pytest.raises(RuntimeError):
            index.find_neighbors(np.zeros(10), 1, 1, 0.1, 3)

    @pytest.mark.parametrize("n_boxes", [0, 2, 100, 2**17])
    def test_box_count_must_be_power_of_two(self, n_boxes):
        with pytest.raises(ValueError):
            BoxAssistedIndex(n_boxes=n_boxes)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            make_neighbor_index('ball')
