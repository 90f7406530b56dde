"""
Neighbour Selection

Turns the raw candidates of one radius query into the neighbourhood used
for the local fit.

The k = min_neighbors closest candidates are always taken. When a fixed
minimum radius eps_min is in force and those k points all sit closer than
eps_min, the neighbourhood is widened in order of distance until one point
lies beyond eps_min. If the candidates run out first, the caller is asked
to retry with a larger radius.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np

from .neighbors import max_norm_distances


class SelectionStatus(Enum):
    """Outcome of one selection attempt."""
    ACCEPTED = 'accepted'
    RETRY = 'retry'


@dataclass
class Selection:
    """Neighbours ordered by distance and the radius they span."""
    neighbors: np.ndarray
    threshold: float
    status: SelectionStatus

    @property
    def count(self) -> int:
        return len(self.neighbors)

    @property
    def accepted(self) -> bool:
        return self.status is SelectionStatus.ACCEPTED


def _select_prefix(distances: np.ndarray, k: int) -> np.ndarray:
    """Positions of the k smallest distances, in ascending order."""
    if k < len(distances):
        prefix = np.argpartition(distances, k - 1)[:k]
    else:
        prefix = np.arange(len(distances))
    return prefix[np.argsort(distances[prefix], kind='stable')]


def select_neighbors(
    series: np.ndarray,
    index: np.ndarray,
    query: int,
    candidates: np.ndarray,
    min_neighbors: int,
    eps_min: float,
    eps_fixed: bool,
) -> Selection:
    """
    Choose the neighbourhood of `query` among `candidates`.

    Parameters
    ----------
    series : array
        Rescaled time series
    index : array
        Delay offsets from make_index()
    query : int
        Time index of the reference state
    candidates : array of int
        Raw result of a radius query; may contain `query` itself
    min_neighbors : int
        Neighbours required for the local fit
    eps_min : float
        Minimum neighbourhood radius
    eps_fixed : bool
        Whether eps_min is a user-supplied floor. When False the k nearest
        candidates are accepted unconditionally.

    Returns
    -------
    Selection
        ACCEPTED with the chosen neighbours, or RETRY with every candidate
        sorted by distance when the floor could not be reached.
    """
    candidates = np.asarray(candidates, dtype=np.intp)
    candidates = candidates[candidates != query]

    if len(candidates) == 0:
        return Selection(candidates, 0.0, SelectionStatus.RETRY)

    distances = max_norm_distances(series, index, query, candidates)
    k = min(min_neighbors, len(candidates))
    prefix = _select_prefix(distances, k)

    if k == min_neighbors:
        threshold = float(distances[prefix[-1]])
        if not eps_fixed or threshold >= eps_min:
            return Selection(candidates[prefix], threshold, SelectionStatus.ACCEPTED)

    # Widen past k until a neighbour falls outside eps_min
    rest = np.setdiff1d(np.arange(len(candidates)), prefix, assume_unique=True)
    rest = rest[np.argsort(distances[rest], kind='stable')]
    order = np.concatenate([prefix, rest])

    if k == min_neighbors:
        beyond = np.nonzero(distances[rest] > eps_min)[0]
        if len(beyond):
            stop = k + beyond[0] + 1
            return Selection(
                candidates[order[:stop]],
                float(distances[order[stop - 1]]),
                SelectionStatus.ACCEPTED,
            )

    return Selection(
        candidates[order],
        float(distances[order[-1]]),
        SelectionStatus.RETRY,
    )
