"""
KD-дерево над таблицей центроидов для поиска ближайшего центроида.

Дерево строится заново на каждой итерации из текущих центроидов и не
изменяется после построения. Поиск выполняет ``scipy.spatial.cKDTree``
блоками точек: для каждой точки запрашиваются два ближайших центроида.
Если второй заметно дальше первого, ближайший однозначен и в рабочей
точности. Иначе (равные или почти равные расстояния) строка
пересчитывается полным перебором, который выбирает наименьший индекс.
Поэтому метки совпадают с ``BruteForceAssign`` побитово.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
from scipy.spatial import cKDTree

from .base import AssignStrategy, StrategyKind
from .cpu_numpy import BruteForceAssign, squared_distances

# Относительный зазор между квадратами расстояний до 1-го и 2-го соседа,
# выше которого ошибка округления не может поменять их порядок
TIE_MARGIN = 1e-4


class KdTree:
    """KD-дерево центроидов (K, D) с точным выбором наименьшего индекса."""

    def __init__(self, centroids: np.ndarray, chunk_size: int = 65536) -> None:
        if centroids.ndim != 2 or centroids.shape[0] == 0:
            raise ValueError(f"Expected non-empty (K, D) centroids, got {centroids.shape}")
        self.centroids = centroids
        self.chunk_size = chunk_size
        self._tree = cKDTree(centroids)
        self._exact = BruteForceAssign()

    @property
    def size(self) -> int:
        return int(self._tree.n)

    def _query_block(self, block: np.ndarray, out: np.ndarray) -> None:
        if self.size == 1:
            out[:] = 0
            return

        dist, idx = self._tree.query(block, k=2)
        d1 = dist[:, 0] * dist[:, 0]
        d2 = dist[:, 1] * dist[:, 1]
        out[:] = idx[:, 0]

        ambiguous = np.flatnonzero(~(d2 > d1 * (1.0 + TIE_MARGIN)))
        if ambiguous.size:
            exact = np.empty(ambiguous.size, dtype=out.dtype)
            self._exact.assign(block[ambiguous], self.centroids, exact)
            out[ambiguous] = exact

    def find_nearest(self, point: np.ndarray) -> Tuple[int, float]:
        """
        Ближайший центроид к ``point``.

        :return: пара (индекс центроида, квадрат расстояния)
        """
        point = np.asarray(point, dtype=self.centroids.dtype)[None, :]
        label = np.empty(1, dtype=np.int32)
        self._query_block(point, label)
        index = int(label[0])
        dist = squared_distances(point, self.centroids[index : index + 1])[0, 0]
        return index, float(dist)

    def query(self, X: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        """Индексы ближайших центроидов для всех строк ``X``."""
        if out is None:
            out = np.empty(X.shape[0], dtype=np.int32)
        for start in range(0, X.shape[0], self.chunk_size):
            end = min(start + self.chunk_size, X.shape[0])
            self._query_block(X[start:end], out[start:end])
        return out


class KdTreeAssign(AssignStrategy):
    """Назначение через KD-дерево, перестраиваемое на каждом вызове."""

    kind = StrategyKind.KD_TREE

    def assign(self, X: np.ndarray, centroids: np.ndarray, out: np.ndarray) -> np.ndarray:
        tree = KdTree(centroids)
        return tree.query(X, out)
