"""
lyapspec Polars I/O Utilities

Reading scalar series from tabular files and writing result tables.

Key Functions:
    read_series(path, column) - One numeric column as a float array
    spectrum_frame(result, **params) - One-row DataFrame for a run
    write_parquet_atomic(df, path) - Write to temp file, rename (atomic)
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np
import polars as pl

from lyapspec.dynamics.lyapunov import LyapunovSpectrum

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = ('.parquet', '.csv')


def read_frame(path: Union[str, Path]) -> pl.DataFrame:
    """Read a Parquet or CSV file into a DataFrame."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.parquet':
        return pl.read_parquet(path)
    if suffix == '.csv':
        return pl.read_csv(path)
    raise ValueError(
        f"Unsupported file type '{suffix}' (expected one of {SUPPORTED_SUFFIXES})"
    )


def read_series(
    path: Union[str, Path],
    column: Optional[str] = None,
) -> np.ndarray:
    """
    Read one column of a table as a time series.

    Args:
        path: Parquet or CSV file
        column: Column name (default: first numeric column)

    Returns:
        float64 array in file order, nulls and NaNs dropped

    Example:
        >>> x = read_series('henon.parquet', column='x')
    """
    df = read_frame(path)

    if column is None:
        numeric = [name for name, dtype in df.schema.items() if dtype.is_numeric()]
        if not numeric:
            raise ValueError(f"No numeric column in {path}")
        column = numeric[0]
    elif column not in df.columns:
        raise ValueError(f"Column '{column}' not in {path} (columns: {df.columns})")
    elif not df.schema[column].is_numeric():
        raise ValueError(
            f"Column '{column}' in {path} is not numeric ({df.schema[column]})"
        )

    values = (
        df.get_column(column)
        .cast(pl.Float64)
        .drop_nulls()
        .drop_nans()
        .to_numpy()
    )

    dropped = len(df) - len(values)
    if dropped:
        logger.warning(f"Dropped {dropped} null/NaN values from column '{column}'")

    return np.ascontiguousarray(values, dtype=float)


def spectrum_frame(result: LyapunovSpectrum, **params: Any) -> pl.DataFrame:
    """One-row DataFrame with run parameters followed by the result."""
    row = {k: v for k, v in params.items() if v is not None}
    row.update(result.to_dict())
    return pl.DataFrame([row])


def write_parquet_atomic(
    df: pl.DataFrame,
    path: Union[str, Path],
    compression: str = "zstd",
) -> int:
    """
    Atomically write a DataFrame to a parquet file.

    Writes to a temporary file first, then renames to target path.

    Args:
        df: Polars DataFrame to write
        path: Target path for parquet file
        compression: Compression algorithm (zstd, snappy, lz4, etc.)

    Returns:
        Number of rows written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = path.with_suffix(".parquet.tmp")

    try:
        df.write_parquet(temp_path, compression=compression)
        temp_path.replace(path)
        return len(df)
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise
