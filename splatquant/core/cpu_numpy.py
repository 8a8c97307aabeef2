# core/cpu_numpy.py
from __future__ import annotations

import numpy as np

from .base import AssignStrategy, StrategyKind


def squared_distances(X: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """
    Квадраты расстояний (M, K) между строками ``X`` (M, D) и центроидами (K, D).

    Считается через явную разность, а не через ||x||² + ||c||² - 2x·c:
    значение для пары (x, c) не зависит от формы блока, поэтому все CPU
    стратегии получают побитово одинаковые расстояния.
    """
    # (M, K, D) → (M, K)
    diff = X[:, None, :] - centroids[None, :, :]
    return np.sum(diff * diff, axis=2)


class BruteForceAssign(AssignStrategy):
    """Полный перебор центроидов блоками по ``chunk_size`` строк."""

    kind = StrategyKind.BRUTE_FORCE

    def __init__(self, chunk_size: int = 256) -> None:
        self.chunk_size = chunk_size

    def assign(self, X: np.ndarray, centroids: np.ndarray, out: np.ndarray) -> np.ndarray:
        N = X.shape[0]
        # Блок ограничивает промежуточный массив (chunk, K, D)
        step = max(1, self.chunk_size)
        for start in range(0, N, step):
            end = min(start + step, N)
            distances = squared_distances(X[start:end], centroids)
            # argmin возвращает первый минимум, т.е. наименьший индекс при равенстве
            out[start:end] = np.argmin(distances, axis=1)
        return out


def update_centroids(
    X: np.ndarray, labels: np.ndarray, centroids: np.ndarray
) -> np.ndarray:
    """
    Пересчёт центроидов как покоординатных средних по группам меток.

    Пустые кластеры сохраняют прежние координаты (без повторного
    засева). Суммы копятся в float64 через ``bincount`` по каждой
    колонке.

    :return: массив новых центроидов той же формы и типа, что ``centroids``
    """
    K, D = centroids.shape
    counts = np.bincount(labels, minlength=K)
    non_empty = counts > 0

    new_centroids = centroids.copy()
    for j in range(D):
        sums = np.bincount(labels, weights=X[:, j], minlength=K)
        new_centroids[non_empty, j] = sums[non_empty] / counts[non_empty]
    return new_centroids
