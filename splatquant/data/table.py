"""
Колоночная таблица — единое представление данных для всех этапов.

Таблица хранит упорядоченный набор именованных числовых колонок одинаковой
длины. Порядок колонок соответствует порядку вставки и важен только для
сериализации; алгоритмы адресуют колонки по имени.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, MutableMapping, Sequence

import numpy as np

from splatquant.errors import SchemaError

# Допустимые типы буферов колонок
SUPPORTED_DTYPES = (
    np.dtype(np.int8),
    np.dtype(np.uint8),
    np.dtype(np.int16),
    np.dtype(np.uint16),
    np.dtype(np.int32),
    np.dtype(np.uint32),
    np.dtype(np.float32),
    np.dtype(np.float64),
)

Row = MutableMapping[str, Any]


class Column:
    """Именованный однородный числовой буфер."""

    def __init__(self, name: str, data: np.ndarray | Sequence[float]) -> None:
        arr = np.asarray(data)
        if arr.ndim != 1:
            raise SchemaError(
                f"Column '{name}' must be one-dimensional, got shape {arr.shape}"
            )
        if arr.dtype not in SUPPORTED_DTYPES:
            raise SchemaError(f"Column '{name}' has unsupported dtype {arr.dtype}")
        self.name = name
        self.data = arr

    @property
    def data_type(self) -> np.dtype:
        return self.data.dtype

    def __len__(self) -> int:
        return int(self.data.shape[0])

    def clone(self) -> Column:
        return Column(self.name, self.data.copy())

    def __repr__(self) -> str:
        return f"Column(name={self.name!r}, dtype={self.data.dtype}, len={len(self)})"


class Table:
    """
    Упорядоченный набор колонок равной длины.

    Инварианты:
    - все колонки имеют одинаковую длину (``num_rows``);
    - имена колонок уникальны;
    - таблица владеет своими колонками, ``clone()`` делает глубокую копию.
    """

    def __init__(self, columns: Iterable[Column]) -> None:
        self.columns: List[Column] = []
        self._by_name: Dict[str, Column] = {}
        for column in columns:
            self.add_column(column)

    @classmethod
    def adopt(cls, columns: Iterable[Column]) -> Table:
        """
        Таблица над переданными колонками без копирования буферов.

        Вызывающий код передаёт колонки во владение таблице и больше не
        использует их.
        """
        table = cls([])
        for column in columns:
            table._attach(column)
        return table

    # --- Свойства ---

    @property
    def num_rows(self) -> int:
        return len(self.columns[0]) if self.columns else 0

    @property
    def num_columns(self) -> int:
        return len(self.columns)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def has_column(self, name: str) -> bool:
        return name in self._by_name

    def get_column(self, name: str) -> Column:
        try:
            return self._by_name[name]
        except KeyError:
            raise SchemaError(f"Column '{name}' not found") from None

    # --- Изменение схемы ---

    def add_column(self, column: Column) -> None:
        """Добавляет копию ``column``: таблица не разделяет буферы с вызывающим."""
        self._attach(column.clone())

    def _attach(self, column: Column) -> None:
        if column.name in self._by_name:
            raise SchemaError(f"Duplicate column name '{column.name}'")
        if self.columns and len(column) != self.num_rows:
            raise SchemaError(
                f"Column '{column.name}' has {len(column)} rows, "
                f"table has {self.num_rows}"
            )
        self.columns.append(column)
        self._by_name[column.name] = column

    def remove_column(self, name: str) -> Column:
        column = self.get_column(name)
        self.columns.remove(column)
        del self._by_name[name]
        return column

    # --- Построчный доступ ---

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.num_rows:
            raise IndexError(f"Row index {index} out of range [0, {self.num_rows})")

    def get_row(self, index: int, out_row: Row) -> Row:
        """Копирует значения всех колонок строки ``index`` в ``out_row``."""
        self._check_index(index)
        for column in self.columns:
            out_row[column.name] = column.data[index]
        return out_row

    def set_row(self, index: int, row: Row) -> None:
        """Записывает строку ``index``; колонки, которых нет в ``row``, не трогаются."""
        self._check_index(index)
        for column in self.columns:
            if column.name in row:
                column.data[index] = row[column.name]

    # --- Копирование и преобразования ---

    def clone(self) -> Table:
        return Table.adopt(c.clone() for c in self.columns)

    def select(self, names: Sequence[str]) -> Table:
        """Новая таблица из копий указанных колонок (в заданном порядке)."""
        return Table.adopt(self.get_column(name).clone() for name in names)

    def to_matrix(self, dtype: Any = np.float32) -> np.ndarray:
        """
        Рабочая копия данных формы (N, D) в порядке колонок.

        Все колонки становятся измерениями; строки непрерывны в памяти,
        что нужно для поблочного вычисления расстояний.
        """
        out = np.empty((self.num_rows, self.num_columns), dtype=dtype)
        for j, column in enumerate(self.columns):
            out[:, j] = column.data
        return out

    def __repr__(self) -> str:
        return f"Table(rows={self.num_rows}, columns={self.column_names})"


def combine(tables: Sequence[Table]) -> Table:
    """
    Склеивает таблицы по строкам.

    Колонки сопоставляются по имени и типу; в итоговый набор входит объединение
    колонок всех таблиц в порядке первого появления. Строки таблицы, у
    которой колонки нет, заполняются нулями.
    """
    if not tables:
        raise SchemaError("Nothing to combine")
    if len(tables) == 1:
        return tables[0]

    def key(column: Column) -> tuple[str, np.dtype]:
        return column.name, column.data_type

    templates: Dict[tuple[str, np.dtype], Column] = {}
    for table in tables:
        for column in table.columns:
            templates.setdefault(key(column), column)

    names = [name for name, _ in templates]
    if len(set(names)) != len(names):
        raise SchemaError("Columns with the same name have different dtypes")

    total_rows = sum(t.num_rows for t in tables)
    buffers = {
        k: np.zeros(total_rows, dtype=c.data_type) for k, c in templates.items()
    }

    offset = 0
    for table in tables:
        for column in table.columns:
            buffers[key(column)][offset : offset + table.num_rows] = column.data
        offset += table.num_rows

    return Table.adopt(Column(name, buffers[(name, dt)]) for name, dt in templates)
