"""
Таймеры для замеров фаз кластеризации.

``Timer`` — контекстный менеджер на ``time.perf_counter()``;
``PhaseTimings`` накапливает время шагов назначения и обновления за один
вызов кластеризации.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any


class Timer:
    """
    Контекстный менеджер для замера участка кода.

    Пример:
        with Timer() as t:
            labels = strategy.assign(X, C, labels)
        t.elapsed
    """

    def __init__(self) -> None:
        self.start: float = 0.0
        self.end: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> Timer:
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.end = time.perf_counter()
        self.elapsed = self.end - self.start


@dataclass
class PhaseTimings:
    """Суммарные времена фаз за один прогон (секунды)."""

    assign: float = 0.0
    update: float = 0.0
    iterations: int = 0

    @property
    def total(self) -> float:
        return self.assign + self.update

    def add(self, t_assign: float, t_update: float) -> None:
        self.assign += t_assign
        self.update += t_update
        self.iterations += 1

    def as_dict(self) -> dict[str, float]:
        return {
            "T_assign_total": self.assign,
            "T_update_total": self.update,
            "T_iter_total": self.total,
            "n_iters_actual": float(self.iterations),
        }
