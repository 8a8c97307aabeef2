"""
Порт ускорителя: необязательная возможность выполнить шаг назначения на
параллельном устройстве.

Движок получает реализацию порта от вызывающего кода и не создаёт и не
уничтожает контекст устройства сам. Диспетчеризация асинхронна
относительно хоста, но ``assign`` возвращает управление только после
того, как устройство закончило работу и метки скопированы в память хоста.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from splatquant.errors import DeviceOutputError

from .base import AssignStrategy, StrategyKind


class AcceleratorPort(ABC):
    """Контракт устройства для шага назначения."""

    name: str = "accelerator"

    @abstractmethod
    def open(self) -> None:
        """
        Получает рабочий контекст устройства.

        Raises:
            DeviceUnavailableError: если устройство недоступно
        """
        raise NotImplementedError

    @abstractmethod
    def assign(self, points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
        """
        Метки (N,) ближайших центроидов для строк ``points`` (N, D).

        Точное совпадение с CPU не требуется: каждая метка должна лежать
        в [0, K) и указывать на ближайший или почти ближайший центроид.
        """
        raise NotImplementedError

    def release(self, points: np.ndarray) -> None:
        """Сбрасывает кэш данных, загруженных для ``points``."""


class DeviceAssign(AssignStrategy):
    """Стратегия, делегирующая весь шаг назначения порту ускорителя."""

    kind = StrategyKind.DEVICE

    def __init__(self, accelerator: AcceleratorPort) -> None:
        self.accelerator = accelerator
        self._X: np.ndarray | None = None

    def assign(self, X: np.ndarray, centroids: np.ndarray, out: np.ndarray) -> np.ndarray:
        self._X = X
        labels = np.asarray(self.accelerator.assign(X, centroids))
        K = centroids.shape[0]
        if labels.shape != out.shape:
            raise DeviceOutputError(
                f"{self.accelerator.name} returned labels of shape {labels.shape}, "
                f"expected {out.shape}"
            )
        if labels.size and (labels.min() < 0 or labels.max() >= K):
            raise DeviceOutputError(
                f"{self.accelerator.name} returned labels outside [0, {K})"
            )
        out[:] = labels
        return out

    def close(self) -> None:
        if self._X is not None:
            self.accelerator.release(self._X)
            self._X = None
