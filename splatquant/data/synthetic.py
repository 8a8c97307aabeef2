"""
Генераторы синтетических таблиц для тестов и демонстраций.

Используют ``sklearn.datasets.make_blobs`` для кластеризованных данных:
так известны истинные метки и центры, с которыми можно сравнить
результат кластеризации.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from sklearn.datasets import make_blobs

from splatquant.data.table import Column, Table
from splatquant.data.validation import (
    COLOR_COLUMNS,
    OPACITY_COLUMN,
    POSITION_COLUMNS,
    ROTATION_COLUMNS,
    SCALE_COLUMNS,
)
from splatquant.errors import InvalidParameterError

# Число коэффициентов f_rest на канал для степеней SH 1..3
SH_COEFFS_PER_CHANNEL = {0: 0, 1: 3, 2: 8, 3: 15}


@dataclass
class BlobTable:
    """Таблица точек вместе с истинной разметкой."""

    table: Table
    labels: np.ndarray
    centers: np.ndarray


def make_blob_table(
    n: int,
    dims: int = 2,
    centers: int | np.ndarray = 4,
    cluster_std: float = 1.0,
    center_box: tuple[float, float] = (-10.0, 10.0),
    seed: int = 42,
    prefix: str = "d",
    dtype=np.float32,
) -> BlobTable:
    """
    Генерирует ``n`` точек из гауссовых кластеров.

    Колонки называются ``{prefix}0 .. {prefix}{dims-1}``.
    """
    if n <= 0 or dims <= 0:
        raise InvalidParameterError(f"n and dims must be positive, got n={n}, dims={dims}")

    data, labels, true_centers = make_blobs(
        n_samples=n,
        n_features=dims,
        centers=centers,
        cluster_std=cluster_std,
        center_box=center_box,
        random_state=seed,
        return_centers=True,
    )
    table = Table.adopt(
        Column(f"{prefix}{j}", data[:, j].astype(dtype)) for j in range(dims)
    )
    return BlobTable(table=table, labels=labels.astype(np.int32), centers=true_centers)


def make_splat_table(n: int, sh_bands: int = 0, seed: int = 0) -> Table:
    """
    Случайная таблица с полной схемой Gaussian Splat.

    Позиции кластеризованы (make_blobs), остальные атрибуты заполнены шумом в
    правдоподобных диапазонах; кватернионы нормированы.
    """
    if sh_bands not in SH_COEFFS_PER_CHANNEL:
        raise InvalidParameterError(f"sh_bands must be in 0..3, got {sh_bands}")

    rng = np.random.default_rng(seed)
    positions, _ = make_blobs(
        n_samples=n, n_features=3, centers=8, cluster_std=0.5, random_state=seed
    )
    quats = rng.normal(size=(n, 4))
    quats /= np.linalg.norm(quats, axis=1, keepdims=True)

    columns = [Column(name, positions[:, j].astype(np.float32))
               for j, name in enumerate(POSITION_COLUMNS)]
    columns += [Column(name, quats[:, j].astype(np.float32))
                for j, name in enumerate(ROTATION_COLUMNS)]
    columns += [Column(name, rng.uniform(-7.0, -2.0, n).astype(np.float32))
                for name in SCALE_COLUMNS]
    columns += [Column(name, rng.normal(0.0, 0.5, n).astype(np.float32))
                for name in COLOR_COLUMNS]
    columns.append(Column(OPACITY_COLUMN, rng.normal(0.0, 2.0, n).astype(np.float32)))

    n_rest = SH_COEFFS_PER_CHANNEL[sh_bands] * 3
    columns += [Column(f"f_rest_{i}", rng.normal(0.0, 0.1, n).astype(np.float32))
                for i in range(n_rest)]
    return Table.adopt(columns)
