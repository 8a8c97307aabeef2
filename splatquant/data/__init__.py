from .table import Column, Table, combine
from .validation import (
    GAUSSIAN_SPLAT_COLUMNS,
    is_gaussian_splat_table,
    sh_rest_columns,
    validate_gaussian_splat_table,
)

__all__ = [
    "Column",
    "Table",
    "combine",
    "GAUSSIAN_SPLAT_COLUMNS",
    "is_gaussian_splat_table",
    "sh_rest_columns",
    "validate_gaussian_splat_table",
]
