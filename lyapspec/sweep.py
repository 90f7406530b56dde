"""
lyapspec Parameter Sweeps
=========================

Runs independent JacobianMethod instances over a parameter grid for one
series. Each grid point owns its estimator, so work items can run in a
process pool without sharing state.

A failed grid point (infeasible parameters, too few neighbours, singular
fit) is recorded with status 'error' and does not stop the sweep.

Usage:
    from lyapspec.sweep import build_grid, run_sweep

    grid = build_grid(dims=[1, 2, 3], min_neighbors=[10, 20])
    table = run_sweep(series, grid, workers=4)
"""

import itertools
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from multiprocessing import Pool, cpu_count
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import polars as pl

from lyapspec.config import EstimatorConfig
from lyapspec.errors import LyapunovError

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass
class SweepItem:
    """One grid point."""

    item_id: int
    config: EstimatorConfig


@dataclass
class SweepResult:
    """Outcome of one grid point."""

    item_id: int
    status: str  # 'success' or 'error'
    params: Dict[str, Any]
    exponents: Optional[List[float]] = None
    diagnostics: Optional[Dict[str, float]] = None
    error_message: Optional[str] = None
    duration_seconds: float = 0.0

    def to_row(self) -> Dict[str, Any]:
        diagnostics = self.diagnostics or {}
        return {
            'item_id': self.item_id,
            **self.params,
            'status': self.status,
            'error': self.error_message,
            'exponents': self.exponents,
            'lambda_max': self.exponents[0] if self.exponents else None,
            'kaplan_yorke_dimension': diagnostics.get('kaplan_yorke_dimension'),
            'relative_forecast_error': diagnostics.get('relative_forecast_error'),
            'average_neighbors': diagnostics.get('average_neighbors'),
            'duration_seconds': self.duration_seconds,
        }


# =============================================================================
# GRID CONSTRUCTION
# =============================================================================


def build_grid(
    dims: Sequence[int],
    min_neighbors: Sequence[int] = (30,),
    eps_steps: Sequence[float] = (1.2,),
    eps_mins: Sequence[float] = (0.0,),
    base: Optional[EstimatorConfig] = None,
) -> List[SweepItem]:
    """Cartesian product of the given parameter values."""
    base = base or EstimatorConfig()
    items = []

    for i, (m, k, step, eps) in enumerate(
        itertools.product(dims, min_neighbors, eps_steps, eps_mins)
    ):
        config = base.replace(
            embedding_dim=int(m),
            min_neighbors=int(k),
            eps_step=float(step),
            eps_min=float(eps),
        )
        items.append(SweepItem(item_id=i, config=config))

    return items


# =============================================================================
# WORKER EXECUTION
# =============================================================================


def _sweep_params(config: EstimatorConfig) -> Dict[str, Any]:
    params = asdict(config)
    params.pop('name')
    params.pop('description')
    return params


def _run_item(args: Tuple[np.ndarray, SweepItem]) -> SweepResult:
    """
    Run one grid point. Called by multiprocessing Pool.

    Estimation failures become 'error' results; anything else propagates.
    """
    series, item = args
    start_time = datetime.now()
    params = _sweep_params(item.config)

    try:
        result = item.config.build(series).calculate()
    except LyapunovError as e:
        duration = (datetime.now() - start_time).total_seconds()
        logger.warning(f"Sweep item {item.item_id} failed: {e}")
        return SweepResult(
            item_id=item.item_id,
            status='error',
            params=params,
            error_message=str(e),
            duration_seconds=duration,
        )

    duration = (datetime.now() - start_time).total_seconds()
    return SweepResult(
        item_id=item.item_id,
        status='success',
        params=params,
        exponents=[float(v) for v in result.exponents],
        diagnostics={
            'kaplan_yorke_dimension': result.kaplan_yorke_dimension,
            'relative_forecast_error': float(result.relative_forecast_error),
            'average_neighbors': float(result.average_neighbors),
        },
        duration_seconds=duration,
    )


def run_sweep(
    series: np.ndarray,
    grid: List[SweepItem],
    workers: int = 1,
) -> pl.DataFrame:
    """
    Execute every grid point, in parallel when workers > 1.

    Args:
        series: Time series shared by all grid points
        grid: Work items from build_grid()
        workers: Number of parallel processes

    Returns:
        One row per grid point, ordered by item_id
    """
    if not grid:
        return pl.DataFrame()

    series = np.asarray(series, dtype=float)
    workers = max(1, min(workers, cpu_count(), len(grid)))
    pool_args = [(series, item) for item in grid]

    logger.info(f"Sweeping {len(grid)} parameter sets with {workers} workers")
    start_time = datetime.now()

    if workers == 1:
        results = [_run_item(args) for args in pool_args]
    else:
        with Pool(processes=workers) as pool:
            results = pool.map(_run_item, pool_args)

    successful = sum(1 for r in results if r.status == 'success')
    duration = (datetime.now() - start_time).total_seconds()
    logger.info(
        f"Sweep complete in {duration:.1f}s: {successful} success, "
        f"{len(results) - successful} failed"
    )

    rows = [r.to_row() for r in sorted(results, key=lambda r: r.item_id)]
    return pl.DataFrame(rows, schema_overrides={
        'error': pl.Utf8,
        'exponents': pl.List(pl.Float64),
        'lambda_max': pl.Float64,
        'kaplan_yorke_dimension': pl.Float64,
        'relative_forecast_error': pl.Float64,
        'average_neighbors': pl.Float64,
        'iterations': pl.Int64,
    })
