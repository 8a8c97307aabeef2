from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

import numpy as np


class StrategyKind(str, Enum):
    BRUTE_FORCE = "brute_force"
    KD_TREE = "kd_tree"
    DEVICE = "device"


class AssignStrategy(ABC):
    """
    Шаг назначения точек ближайшим центроидам.

    Все стратегии выполняют один контракт: для каждой строки ``X`` записать
    в ``out`` индекс центроида с минимальным квадратом евклидова расстояния,
    при равенстве наименьший индекс. Отличаются только стоимостью.
    """

    kind: StrategyKind

    @abstractmethod
    def assign(self, X: np.ndarray, centroids: np.ndarray, out: np.ndarray) -> np.ndarray:
        """Заполняет ``out`` метками (N,) и возвращает его."""
        raise NotImplementedError

    def close(self) -> None:
        """Освобождает ресурсы стратегии после прогона."""
