"""
Проверки схемы таблиц Gaussian Splat.

Модуль описывает минимальный набор колонок, который читатели форматов
(ply/splat/ksplat) обязаны предоставить, и выделяет колонки сферических
гармоник высших порядков ``f_rest_N``.
"""

from __future__ import annotations

import re
from typing import List

from splatquant.data.table import Table
from splatquant.errors import SchemaError

POSITION_COLUMNS = ("x", "y", "z")
ROTATION_COLUMNS = ("rot_0", "rot_1", "rot_2", "rot_3")
SCALE_COLUMNS = ("scale_0", "scale_1", "scale_2")
COLOR_COLUMNS = ("f_dc_0", "f_dc_1", "f_dc_2")
OPACITY_COLUMN = "opacity"

GAUSSIAN_SPLAT_COLUMNS = (
    *POSITION_COLUMNS,
    *ROTATION_COLUMNS,
    *SCALE_COLUMNS,
    *COLOR_COLUMNS,
    OPACITY_COLUMN,
)

_SH_REST = re.compile(r"^f_rest_(\d+)$")


def missing_gaussian_splat_columns(table: Table) -> List[str]:
    return [c for c in GAUSSIAN_SPLAT_COLUMNS if not table.has_column(c)]


def is_gaussian_splat_table(table: Table) -> bool:
    """True, если в таблице есть все обязательные колонки Gaussian Splat."""
    return not missing_gaussian_splat_columns(table)


def validate_gaussian_splat_table(table: Table) -> None:
    """
    Проверяет, что таблица пригодна для квантования как Gaussian Splat.

    Raises:
        SchemaError: если отсутствуют обязательные колонки или ``f_rest_N``
            идут с пропусками
    """
    missing = missing_gaussian_splat_columns(table)
    if missing:
        raise SchemaError(f"Not a Gaussian Splat table, missing columns: {missing}")

    rest = sh_rest_columns(table)
    expected = [f"f_rest_{i}" for i in range(len(rest))]
    if rest != expected:
        raise SchemaError(f"Spherical harmonic columns are not contiguous: {rest}")


def sh_rest_columns(table: Table) -> List[str]:
    """Имена колонок ``f_rest_N`` в порядке возрастания N."""
    found = []
    for name in table.column_names:
        m = _SH_REST.match(name)
        if m:
            found.append((int(m.group(1)), name))
    return [name for _, name in sorted(found)]
