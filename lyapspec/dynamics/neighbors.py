"""
Neighbour Search

Radius queries in delay-coordinate space under the maximum norm.

Two interchangeable indices implement the same two-call protocol used by
the Jacobian estimator:

    index.rebuild(series, radius, start, end)
    n = index.find_neighbors(series, embedding_dim, delay, radius, query)
    candidates = index.found[:n]

Only points t with start <= t < end are indexed; the query point itself is
returned when it lies inside that range. Distances are strictly smaller
than the radius.

- BoxAssistedIndex: grid of boxes of side `radius` on the first delay
  coordinate, hashed modulo a power of two (Schreiber, 1995).
- KDTreeIndex: scipy cKDTree with p=inf, cached across radii.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterator, Optional

import numpy as np
from scipy.spatial import cKDTree

from .reconstruction import delay_vector, embed_time_series, make_index

logger = logging.getLogger(__name__)

# Hard cap on the search radius in rescaled units (data lives in [0, 1]).
EPS_MAX = 1.0


def radius_schedule(
    eps_min: float,
    eps_step: float,
    eps_max: float = EPS_MAX,
) -> Iterator[float]:
    """
    Trial radii for one neighbour search.

    Starts at eps_min and multiplies by eps_step until eps_max is reached.
    The last radius is clamped to eps_max, which is never exceeded.

    Examples
    --------
    >>> [round(r, 3) for r in radius_schedule(0.3, 2.0)]
    [0.3, 0.6, 1.0]
    """
    if eps_min <= 0:
        raise ValueError(f"eps_min must be positive, got {eps_min}")
    if eps_step <= 1:
        raise ValueError(f"eps_step must be > 1, got {eps_step}")

    epsilon = eps_min / eps_step
    while True:
        epsilon *= eps_step
        if epsilon >= eps_max:
            yield eps_max
            return
        yield epsilon


def max_norm_distances(
    series: np.ndarray,
    index: np.ndarray,
    query: int,
    candidates: np.ndarray,
) -> np.ndarray:
    """Max-norm distance between the state at `query` and each candidate."""
    lagged = series[candidates[:, np.newaxis] - index[np.newaxis, :]]
    return np.max(np.abs(lagged - delay_vector(series, query, index)), axis=1)


class NeighborIndex(ABC):
    """Spatial index refreshed per radius and queried per time index."""

    def __init__(self):
        self.found = np.empty(0, dtype=np.intp)

    @abstractmethod
    def rebuild(self, series: np.ndarray, radius: float, start: int, end: int) -> None:
        """Index points start..end-1 of `series` for queries at `radius`."""

    @abstractmethod
    def find_neighbors(
        self,
        series: np.ndarray,
        embedding_dim: int,
        delay: int,
        radius: float,
        query: int,
    ) -> int:
        """Fill `self.found` with candidates closer than `radius`, return their count."""

    def _store(self, neighbors: np.ndarray) -> int:
        n = len(neighbors)
        if len(self.found) < n:
            self.found = np.empty(n, dtype=np.intp)
        self.found[:n] = neighbors
        return n


class BoxAssistedIndex(NeighborIndex):
    """
    Box-assisted neighbour search.

    Points are binned by floor(s[t] / radius) & (n_boxes - 1). A neighbour
    closer than `radius` always lies in the query's box or one of its two
    adjacent boxes; wrap-around only adds candidates, which the final
    max-norm check removes.

    Parameters
    ----------
    n_boxes : int
        Number of boxes, a power of two (default 512)
    """

    def __init__(self, n_boxes: int = 512):
        super().__init__()
        if n_boxes < 4 or n_boxes > 2**16 or n_boxes & (n_boxes - 1):
            raise ValueError(
                f"n_boxes must be a power of two between 4 and 65536, got {n_boxes}"
            )
        self.n_boxes = n_boxes
        self._mask = n_boxes - 1
        self._order = np.empty(0, dtype=np.intp)
        self._bounds = np.zeros(n_boxes + 1, dtype=np.intp)
        self._radius: Optional[float] = None

    def _box(self, values, radius: float):
        return np.floor_divide(values, radius).astype(np.intp) & self._mask

    def rebuild(self, series, radius, start, end):
        points = np.arange(start, end, dtype=np.intp)
        keys = self._box(series[points], radius).astype(np.uint16)

        # Counting sort: box sizes give the bounds, and a stable argsort of
        # 16-bit keys is numpy's radix sort, so the fill stays linear.
        counts = np.bincount(keys, minlength=self.n_boxes)
        self._bounds = np.zeros(self.n_boxes + 1, dtype=np.intp)
        np.cumsum(counts, out=self._bounds[1:])
        self._order = points[np.argsort(keys, kind='stable')]
        self._radius = radius

    def find_neighbors(self, series, embedding_dim, delay, radius, query):
        if self._radius is None:
            raise RuntimeError("find_neighbors called before rebuild")

        key = int(self._box(series[query], radius))
        boxes = {(key - 1) & self._mask, key, (key + 1) & self._mask}
        candidates = np.concatenate([
            self._order[self._bounds[b]:self._bounds[b + 1]] for b in sorted(boxes)
        ])

        if len(candidates) == 0:
            return self._store(candidates)

        index = make_index(embedding_dim, delay)
        distances = max_norm_distances(series, index, query, candidates)
        return self._store(candidates[distances < radius])


class KDTreeIndex(NeighborIndex):
    """
    KD-tree neighbour search under the Chebyshev metric.

    The tree depends only on the series and the indexed range, so radius
    growth reuses it; `rebuild` only invalidates when the data changes.
    """

    def __init__(self, leafsize: int = 16):
        super().__init__()
        self.leafsize = leafsize
        self._tree: Optional[cKDTree] = None
        self._series: Optional[np.ndarray] = None
        self._start = 0
        self._end = 0
        self._dims = None

    def rebuild(self, series, radius, start, end):
        if series is not self._series or (start, end) != (self._start, self._end):
            self._series = series
            self._tree = None
            self._start = start
            self._end = end

    def _build(self, series, embedding_dim, delay):
        # Rows of the embedding start at t = (m-1)*delay
        first = (embedding_dim - 1) * delay
        if self._start < first:
            raise ValueError(
                f"Indexed range must start at >= {first} for m={embedding_dim}"
            )
        embedded = embed_time_series(series[:self._end], delay, embedding_dim)
        self._points = embedded[self._start - first:]
        self._tree = cKDTree(self._points, leafsize=self.leafsize)
        self._dims = (embedding_dim, delay)
        logger.debug(f"KD-tree built over {len(self._points)} points")

    def find_neighbors(self, series, embedding_dim, delay, radius, query):
        if self._series is None:
            raise RuntimeError("find_neighbors called before rebuild")
        if self._tree is None or self._dims != (embedding_dim, delay):
            self._build(series, embedding_dim, delay)

        index = make_index(embedding_dim, delay)
        rows = self._tree.query_ball_point(
            delay_vector(series, query, index), r=radius, p=np.inf, return_sorted=False
        )
        candidates = np.asarray(rows, dtype=np.intp) + self._start

        if len(candidates) == 0:
            return self._store(candidates)

        # query_ball_point is inclusive; keep the strict contract
        distances = max_norm_distances(series, index, query, candidates)
        return self._store(candidates[distances < radius])


def make_neighbor_index(kind: str = 'box', **kwargs) -> NeighborIndex:
    """Construct a neighbour index by name ('box' or 'kdtree')."""
    if kind == 'box':
        return BoxAssistedIndex(**kwargs)
    if kind == 'kdtree':
        return KDTreeIndex(**kwargs)
    raise ValueError(f"Unknown neighbor index '{kind}' (expected 'box' or 'kdtree')")
