"""
Tests for Polars readers and writers.
"""

import numpy as np
import polars as pl
import pytest

from lyapspec.dynamics import LyapunovSpectrum
from lyapspec.io import read_series, spectrum_frame, write_parquet_atomic


class TestReadSeries:

    def test_named_column(self, tmp_path):
        path = tmp_path / 'data.parquet'
        pl.DataFrame({'t': [0, 1, 2], 'x': [0.5, 0.25, 0.75]}).write_parquet(path)

        np.testing.assert_array_equal(read_series(path, column='x'), [0.5, 0.25, 0.75])

    def test_first_numeric_column(self, tmp_path):
        path = tmp_path / 'data.csv'
        pl.DataFrame({'label': ['a', 'b'], 'y': [1.5, 2.5]}).write_csv(path)

        series = read_series(path)
        assert series.dtype == np.float64
        np.testing.assert_array_equal(series, [1.5, 2.5])

    def test_integers_are_cast(self, tmp_path):
        path = tmp_path / 'ints.parquet'
        pl.DataFrame({'n': [1, 2, 3]}).write_parquet(path)

        series = read_series(path)
        assert series.dtype == np.float64

    def test_nulls_and_nans_dropped(self, tmp_path):
        path = tmp_path / 'gaps.parquet'
        pl.DataFrame({'x': [1.0, None, float('nan'), 4.0]}).write_parquet(path)

        np.testing.assert_array_equal(read_series(path, column='x'), [1.0, 4.0])

    def test_missing_column(self, tmp_path):
        path = tmp_path / 'data.parquet'
        pl.DataFrame({'x': [1.0]}).write_parquet(path)

        with pytest.raises(ValueError, match="Column 'y'"):
            read_series(path, column='y')

    def test_non_numeric_column(self, tmp_path):
        path = tmp_path / 'labels.csv'
        pl.DataFrame({'label': ['a', 'b'], 'x': [1.0, 2.0]}).write_csv(path)

        with pytest.raises(ValueError, match="Column 'label' .* is not numeric"):
            read_series(path, column='label')

    def test_no_numeric_column(self, tmp_path):
        path = tmp_path / 'text.csv'
        pl.DataFrame({'label': ['a', 'b']}).write_csv(path)

        with pytest.raises(ValueError, match="No numeric column"):
            read_series(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_series(tmp_path / 'absent.parquet')

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / 'data.txt'
        path.write_text("1\n2\n")

        with pytest.raises(ValueError, match="Unsupported file type"):
            read_series(path)


class TestWriters:

    def test_spectrum_frame(self):
        result = LyapunovSpectrum(
            exponents=np.array([0.42, -1.62]),
            iterations=998,
            relative_forecast_error=0.01,
            absolute_forecast_error=0.02,
            average_radius=0.03,
            average_neighbors=21.0,
        )
        frame = spectrum_frame(result, source='henon.parquet', column=None, embedding_dim=2)

        assert frame.height == 1
        assert 'column' not in frame.columns
        assert frame.columns[:2] == ['source', 'embedding_dim']
        row = frame.row(0, named=True)
        assert row['lambda_1'] == 0.42
        assert row['lambda_2'] == -1.62
        assert row['iterations'] == 998
        assert row['kaplan_yorke_dimension'] == pytest.approx(1 + 0.42 / 1.62)

    def test_write_parquet_atomic(self, tmp_path):
        path = tmp_path / 'nested' / 'out.parquet'
        df = pl.DataFrame({'a': [1, 2, 3]})

        assert write_parquet_atomic(df, path) == 3
        assert path.exists()
        assert not path.with_suffix('.parquet.tmp').exists()
        assert pl.read_parquet(path).equals(df)
