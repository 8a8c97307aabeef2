"""
Метрики качества и производительности квантования.

Качество оценивается суммой квадратов расстояний точек до назначенных
центроидов (inertia), производительность оценивается пропускной способностью
N × K × D × n_iters / T.
"""

from __future__ import annotations

import numpy as np

from splatquant.data.table import Table


def cluster_sizes(labels: np.ndarray, k: int) -> np.ndarray:
    """Число точек в каждом из ``k`` кластеров."""
    return np.bincount(np.asarray(labels, dtype=np.int64), minlength=k)


def inertia(points: Table, centroids: Table, labels: np.ndarray) -> float:
    """
    Сумма квадратов евклидовых расстояний точек до своих центроидов.

    Колонки сопоставляются по имени, поэтому порядок колонок в таблицах
    может различаться.
    """
    labels = np.asarray(labels, dtype=np.int64)
    total = 0.0
    for column in points.columns:
        c = centroids.get_column(column.name).data.astype(np.float64)
        diff = column.data.astype(np.float64) - c[labels]
        total += float(np.dot(diff, diff))
    return total


def mean_squared_error(points: Table, centroids: Table, labels: np.ndarray) -> float:
    """Inertia, нормированная на число значений (N × D)."""
    n_values = points.num_rows * points.num_columns
    if n_values == 0:
        raise ZeroDivisionError("Table has no values")
    return inertia(points, centroids, labels) / n_values


def throughput(
    N: int, K: int, D: int, n_iters: int, total_time: float
) -> float:
    """
    Пропускная способность: (N × K × D × n_iters) / total_time.

    Raises:
        ZeroDivisionError: если total_time равно нулю
    """
    if total_time == 0:
        raise ZeroDivisionError("Total time cannot be zero")
    return (N * K * D * n_iters) / total_time
