"""
Тесты колоночной таблицы.
"""

import numpy as np
import pytest

from splatquant.data.table import Column, Table, combine
from splatquant.errors import SchemaError


def make_table():
    return Table([
        Column("x", np.array([1.0, 2.0, 3.0], dtype=np.float32)),
        Column("idx", np.array([7, 8, 9], dtype=np.uint16)),
    ])


class TestConstruction:
    """Проверка инвариантов при создании таблицы."""

    def test_basic_properties(self):
        table = make_table()
        assert table.num_rows == 3
        assert table.num_columns == 2
        assert table.column_names == ["x", "idx"]
        assert table.has_column("x")
        assert not table.has_column("y")

    def test_length_mismatch(self):
        with pytest.raises(SchemaError):
            Table([
                Column("a", np.zeros(3, dtype=np.float32)),
                Column("b", np.zeros(4, dtype=np.float32)),
            ])

    def test_duplicate_names(self):
        with pytest.raises(SchemaError):
            Table([
                Column("a", np.zeros(3, dtype=np.float32)),
                Column("a", np.zeros(3, dtype=np.float32)),
            ])

    def test_unsupported_dtype(self):
        with pytest.raises(SchemaError):
            Column("a", np.zeros(3, dtype=np.int64))
        with pytest.raises(SchemaError):
            Column("a", np.zeros((3, 2), dtype=np.float32))

    def test_all_supported_dtypes(self):
        dtypes = [np.int8, np.uint8, np.int16, np.uint16,
                  np.int32, np.uint32, np.float32, np.float64]
        table = Table(Column(f"c{i}", np.zeros(2, dtype=dt)) for i, dt in enumerate(dtypes))
        assert table.num_columns == len(dtypes)

    def test_empty_table(self):
        table = Table([])
        assert table.num_rows == 0
        assert table.num_columns == 0

    def test_add_and_remove_column(self):
        table = make_table()
        table.add_column(Column("z", np.zeros(3, dtype=np.float64)))
        assert table.column_names == ["x", "idx", "z"]
        removed = table.remove_column("idx")
        assert removed.name == "idx"
        assert table.column_names == ["x", "z"]
        with pytest.raises(SchemaError):
            table.add_column(Column("w", np.zeros(5, dtype=np.float32)))
        with pytest.raises(SchemaError):
            table.get_column("idx")


class TestRowAccess:
    """Тесты getRow/setRow через строку-буфер."""

    def test_get_row(self):
        table = make_table()
        row = {}
        out = table.get_row(1, row)
        assert out is row
        assert row == {"x": 2.0, "idx": 8}

    def test_get_row_reuses_buffer(self):
        table = make_table()
        row = {}
        table.get_row(0, row)
        table.get_row(2, row)
        assert row["x"] == 3.0
        assert row["idx"] == 9

    def test_get_row_out_of_range(self):
        table = make_table()
        with pytest.raises(IndexError):
            table.get_row(3, {})
        with pytest.raises(IndexError):
            table.get_row(-1, {})

    def test_set_row_partial(self):
        table = make_table()
        table.set_row(0, {"x": 42.0})
        assert table.get_column("x").data[0] == 42.0
        # колонка, которой нет в строке, не меняется
        assert table.get_column("idx").data[0] == 7

    def test_set_row_ignores_unknown_keys(self):
        table = make_table()
        table.set_row(2, {"x": -1.0, "other": 5})
        assert table.get_column("x").data[2] == -1.0

    def test_set_row_out_of_range(self):
        with pytest.raises(IndexError):
            make_table().set_row(10, {"x": 1.0})


class TestCopies:
    """clone/select/to_matrix."""

    def test_clone_is_deep(self):
        table = make_table()
        copy = table.clone()
        assert copy.column_names == table.column_names
        for a, b in zip(table.columns, copy.columns):
            assert a.data is not b.data
            assert a.data_type == b.data_type
            np.testing.assert_array_equal(a.data, b.data)

        copy.set_row(0, {"x": 100.0})
        assert table.get_column("x").data[0] == 1.0

    def test_select(self):
        table = make_table()
        sub = table.select(["idx"])
        assert sub.column_names == ["idx"]
        assert sub.get_column("idx").data is not table.get_column("idx").data
        with pytest.raises(SchemaError):
            table.select(["missing"])

    def test_to_matrix(self):
        X = make_table().to_matrix(np.float64)
        assert X.shape == (3, 2)
        assert X.dtype == np.float64
        np.testing.assert_array_equal(X[:, 1], [7, 8, 9])
        assert X.flags["C_CONTIGUOUS"]


class TestOwnership:
    """Таблица не разделяет буферы с вызывающим кодом и другими таблицами."""

    def test_set_row_leaves_source_untouched(self):
        source = np.zeros(3, dtype=np.float32)
        column = Column("a", source)
        first = Table([column])
        second = Table([column])

        first.set_row(0, {"a": 5.0})

        np.testing.assert_array_equal(source, [0.0, 0.0, 0.0])
        np.testing.assert_array_equal(second.get_column("a").data, [0.0, 0.0, 0.0])
        assert first.get_column("a").data[0] == 5.0

    def test_add_column_copies(self):
        table = make_table()
        column = Column("z", np.zeros(3, dtype=np.float32))
        table.add_column(column)

        column.data[1] = 7.0
        assert table.get_column("z").data[1] == 0.0
        assert table.get_column("z") is not column

    def test_adopt_takes_buffers(self):
        column = Column("a", np.zeros(3, dtype=np.float32))
        table = Table.adopt([column])

        assert table.get_column("a") is column
        with pytest.raises(SchemaError):
            Table.adopt([column, Column("b", np.zeros(2, dtype=np.float32))])


class TestCombine:
    """Склейка таблиц по строкам."""

    def test_single_table_returned_as_is(self):
        table = make_table()
        assert combine([table]) is table

    def test_union_of_columns(self):
        a = Table([Column("x", np.array([1.0, 2.0], dtype=np.float32))])
        b = Table([
            Column("x", np.array([3.0], dtype=np.float32)),
            Column("y", np.array([5.0], dtype=np.float32)),
        ])
        result = combine([a, b])
        assert result.column_names == ["x", "y"]
        assert result.num_rows == 3
        np.testing.assert_array_equal(result.get_column("x").data, [1.0, 2.0, 3.0])
        # у таблицы a колонки y нет, там нули
        np.testing.assert_array_equal(result.get_column("y").data, [0.0, 0.0, 5.0])

    def test_dtype_conflict(self):
        a = Table([Column("x", np.zeros(2, dtype=np.float32))])
        b = Table([Column("x", np.zeros(2, dtype=np.uint8))])
        with pytest.raises(SchemaError):
            combine([a, b])

    def test_nothing_to_combine(self):
        with pytest.raises(SchemaError):
            combine([])
