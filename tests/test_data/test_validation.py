"""
Тесты схемы Gaussian Splat и синтетических генераторов.
"""

import numpy as np
import pytest

from splatquant.data.synthetic import make_blob_table, make_splat_table
from splatquant.data.table import Column
from splatquant.data.validation import (
    GAUSSIAN_SPLAT_COLUMNS,
    is_gaussian_splat_table,
    sh_rest_columns,
    validate_gaussian_splat_table,
)
from splatquant.errors import InvalidParameterError, SchemaError


class TestGaussianSplatSchema:

    def test_splat_table_is_valid(self):
        table = make_splat_table(100, sh_bands=1, seed=1)
        assert is_gaussian_splat_table(table)
        validate_gaussian_splat_table(table)
        assert len(sh_rest_columns(table)) == 9

    def test_missing_column(self):
        table = make_splat_table(10)
        table.remove_column("opacity")
        assert not is_gaussian_splat_table(table)
        with pytest.raises(SchemaError, match="opacity"):
            validate_gaussian_splat_table(table)

    def test_sh_rest_numeric_order(self):
        table = make_splat_table(5)
        for i in (10, 2, 0, 1, 3, 4, 5, 6, 7, 8, 9):
            table.add_column(Column(f"f_rest_{i}", np.zeros(5, dtype=np.float32)))
        names = sh_rest_columns(table)
        assert names == [f"f_rest_{i}" for i in range(11)]
        validate_gaussian_splat_table(table)

    def test_sh_rest_gap(self):
        table = make_splat_table(5)
        table.add_column(Column("f_rest_0", np.zeros(5, dtype=np.float32)))
        table.add_column(Column("f_rest_2", np.zeros(5, dtype=np.float32)))
        with pytest.raises(SchemaError):
            validate_gaussian_splat_table(table)


class TestSynthetic:

    def test_make_splat_table_columns(self):
        table = make_splat_table(50, sh_bands=3, seed=0)
        for name in GAUSSIAN_SPLAT_COLUMNS:
            assert table.has_column(name)
        assert table.num_rows == 50
        assert len(sh_rest_columns(table)) == 45

        quats = np.column_stack(
            [table.get_column(f"rot_{i}").data for i in range(4)]
        )
        np.testing.assert_allclose(np.linalg.norm(quats, axis=1), 1.0, rtol=1e-5)

    def test_make_splat_table_invalid_bands(self):
        with pytest.raises(InvalidParameterError):
            make_splat_table(10, sh_bands=4)

    def test_make_blob_table(self):
        blobs = make_blob_table(300, dims=3, centers=5, seed=1)
        assert blobs.table.num_rows == 300
        assert blobs.table.column_names == ["d0", "d1", "d2"]
        assert blobs.labels.shape == (300,)
        assert blobs.centers.shape == (5, 3)
        assert set(np.unique(blobs.labels)) == set(range(5))

    def test_make_blob_table_invalid(self):
        with pytest.raises(InvalidParameterError):
            make_blob_table(0)
