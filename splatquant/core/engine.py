"""
Движок k-means над колоночными таблицами.

Один вызов ``cluster(...)`` = один прогон конечного автомата:
INIT → (ASSIGN → проверка сходимости → UPDATE)* → результат.

Шаг назначения выполняется одной из стратегий (полный перебор, KD-дерево,
устройство), которая выбирается один раз на прогон по числу кластеров и
наличию ускорителя. Если первый диспатч на необязательном устройстве
завершился ошибкой, прогон продолжается на CPU стратегии. Остальные шаги
общие для всех стратегий.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict

import numpy as np

from splatquant.data.table import Column, Table
from splatquant.errors import (
    ClusteringCancelledError,
    DeviceUnavailableError,
    EmptyInputError,
    InvalidParameterError,
    SchemaError,
)
from splatquant.metrics.timers import PhaseTimings, Timer
from splatquant.utils.logging import format_table_prefix, get_logger

from .accelerator import AcceleratorPort, DeviceAssign
from .base import AssignStrategy, StrategyKind
from .cpu_numpy import BruteForceAssign, update_centroids
from .kdtree import KdTreeAssign


@dataclass(frozen=True)
class ClusteringConfig:
    """Параметры выбора стратегии и рабочей точности."""

    kd_tree_threshold: int = 1000  # KD-дерево при k > порога
    kd_tree_max_dims: int = 16  # и не больше этого числа измерений
    chunk_size: int = 256  # строк в блоке полного перебора
    dtype: Any = np.float32  # точность рабочей матрицы (N, D)
    require_device: bool = False
    log_every: int = 10

    def validate(self) -> None:
        if self.kd_tree_threshold < 0:
            raise InvalidParameterError("kd_tree_threshold must be non-negative")
        if self.kd_tree_max_dims <= 0:
            raise InvalidParameterError("kd_tree_max_dims must be positive")
        if self.chunk_size <= 0:
            raise InvalidParameterError("chunk_size must be positive")
        if self.log_every <= 0:
            raise InvalidParameterError("log_every must be positive")
        if np.dtype(self.dtype).kind != "f":
            raise InvalidParameterError(f"dtype must be floating, got {self.dtype}")


@dataclass
class ClusteringResult:
    """
    Кодовая книга и метки одного прогона.

    ``strategy`` равен None, если кластеризация не выполнялась
    (строк меньше, чем k).
    """

    centroids: Table
    labels: np.ndarray
    iterations: int = 0
    converged: bool = False
    strategy: StrategyKind | None = None
    timings: PhaseTimings = field(default_factory=PhaseTimings)


class KMeansEngine:
    """
    k-means с подключаемой стратегией назначения.

    Экземпляр держит только параметры; всё состояние прогона (таблица
    центроидов, метки, дерево, строка-буфер) создаётся в ``fit`` и
    принадлежит этому вызову.
    """

    def __init__(
        self,
        k: int,
        iterations: int,
        accelerator: AcceleratorPort | None = None,
        *,
        rng: np.random.Generator | int | None = None,
        config: ClusteringConfig | None = None,
        should_stop: Callable[[], bool] | None = None,
        logger: logging.Logger | Any | None = None,
    ) -> None:
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k <= 0:
            raise InvalidParameterError(f"k must be a positive integer, got {k!r}")
        if (
            isinstance(iterations, bool)
            or not isinstance(iterations, (int, np.integer))
            or iterations <= 0
        ):
            raise InvalidParameterError(
                f"iterations must be a positive integer, got {iterations!r}"
            )
        self.config = config or ClusteringConfig()
        self.config.validate()

        self.k = int(k)
        self.iterations = int(iterations)
        self.accelerator = accelerator
        self.rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
        self.should_stop = should_stop
        self.logger = logger or get_logger()

    # --- Выбор стратегии ---

    def select_strategy(self, dims: int) -> AssignStrategy:
        """
        Устройство, если оно передано и открылось; иначе CPU стратегия
        (см. ``cpu_strategy``).
        """
        if self.accelerator is not None:
            try:
                self.accelerator.open()
                return DeviceAssign(self.accelerator)
            except Exception as e:  # noqa: BLE001
                if self.config.require_device:
                    if isinstance(e, DeviceUnavailableError):
                        raise
                    raise DeviceUnavailableError(
                        f"Cannot open {self.accelerator.name}: {e}"
                    ) from e
                self.logger.warning(f"Accelerator unavailable, falling back to CPU: {e}")
        elif self.config.require_device:
            raise DeviceUnavailableError("Device execution required but no accelerator given")

        return self.cpu_strategy(dims)

    def cpu_strategy(self, dims: int) -> AssignStrategy:
        """
        KD-дерево при k > ``kd_tree_threshold`` и D <= ``kd_tree_max_dims``,
        иначе полный перебор.
        """
        if self.k > self.config.kd_tree_threshold and dims <= self.config.kd_tree_max_dims:
            return KdTreeAssign()
        return BruteForceAssign(chunk_size=self.config.chunk_size)

    def _assign_first(
        self, strategy: AssignStrategy, X: np.ndarray, C: np.ndarray, labels: np.ndarray
    ) -> AssignStrategy:
        """
        Первое назначение. Сбой устройства на нём при необязательном
        устройстве переводит прогон на CPU.
        """
        if strategy.kind is not StrategyKind.DEVICE or self.config.require_device:
            strategy.assign(X, C, labels)
            return strategy
        try:
            strategy.assign(X, C, labels)
            return strategy
        except Exception as e:  # noqa: BLE001
            strategy.close()
            self.logger.warning(f"Device dispatch failed, falling back to CPU: {e}")
        strategy = self.cpu_strategy(X.shape[1])
        strategy.assign(X, C, labels)
        return strategy

    # --- INIT ---

    def _empty_centroids(self, points: Table) -> Table:
        return Table.adopt(
            Column(c.name, np.zeros(self.k, dtype=c.data_type)) for c in points.columns
        )

    def _check_warm_start(self, points: Table, initial: Table) -> None:
        if initial.num_columns != points.num_columns or any(
            not initial.has_column(name) for name in points.column_names
        ):
            raise SchemaError(
                f"Initial centroids columns {initial.column_names} "
                f"do not match points columns {points.column_names}"
            )
        if initial.num_rows != self.k:
            raise SchemaError(
                f"Initial centroids have {initial.num_rows} rows, expected k={self.k}"
            )

    def _initialize_centroids(self, points: Table, centroids: Table, row: Dict[str, Any]) -> None:
        """k различных случайных строк (повторная выборка при совпадении)."""
        chosen: set[int] = set()
        for i in range(self.k):
            candidate = int(self.rng.integers(points.num_rows))
            while candidate in chosen:
                candidate = int(self.rng.integers(points.num_rows))
            chosen.add(candidate)
            points.get_row(candidate, row)
            centroids.set_row(i, row)

    @staticmethod
    def _store_centroids(centroids: Table, C: np.ndarray) -> None:
        for j, column in enumerate(centroids.columns):
            values = C[:, j]
            if column.data_type.kind in "iu":
                info = np.iinfo(column.data_type)
                values = np.clip(np.rint(values), info.min, info.max)
            column.data[:] = values

    # --- Основной цикл ---

    def fit(self, points: Table, initial_centroids: Table | None = None) -> ClusteringResult:
        N = points.num_rows
        if N == 0:
            raise EmptyInputError("Points table has no rows")
        if initial_centroids is not None:
            self._check_warm_start(points, initial_centroids)

        prefix = format_table_prefix({"N": N, "D": points.num_columns, "K": self.k})
        if N < self.k:
            self.logger.warning(
                f"{prefix} Fewer points than clusters, returning points as centroids"
            )
            return ClusteringResult(
                centroids=points.clone(),
                labels=np.arange(N, dtype=np.int32),
            )

        # Строка-буфер переиспользуется для всех копирований строк в прогоне
        row: Dict[str, Any] = {}
        centroids = self._empty_centroids(points)
        if initial_centroids is None:
            self._initialize_centroids(points, centroids, row)
        else:
            for column in centroids.columns:
                column.data[:] = initial_centroids.get_column(column.name).data

        strategy = self.select_strategy(points.num_columns)
        self.logger.info(
            f"{prefix} Running k-means: strategy={strategy.kind.value} "
            f"iterations={self.iterations}"
        )

        X = points.to_matrix(self.config.dtype)
        C = centroids.to_matrix(self.config.dtype)
        labels = np.zeros(N, dtype=np.int32)
        prev_labels = np.zeros(N, dtype=np.int32)

        timings = PhaseTimings()
        converged = False
        try:
            for i in range(self.iterations):
                if self.should_stop is not None and self.should_stop():
                    raise ClusteringCancelledError(
                        f"Clustering cancelled before iteration {i + 1}"
                    )

                with Timer() as t_assign:
                    if i == 0:
                        strategy = self._assign_first(strategy, X, C, labels)
                    else:
                        strategy.assign(X, C, labels)

                # На первой итерации сравнивать не с чем
                changed = N if i == 0 else int(np.count_nonzero(labels != prev_labels))
                converged = changed == 0

                t_update_elapsed = 0.0
                if not converged:
                    with Timer() as t_update:
                        C = update_centroids(X, labels, C)
                    t_update_elapsed = t_update.elapsed
                    np.copyto(prev_labels, labels)

                timings.add(t_assign.elapsed, t_update_elapsed)

                if i == 0 or (i + 1) % self.config.log_every == 0 or converged:
                    status = " (converged)" if converged else ""
                    self.logger.info(
                        f"  Iteration {i + 1}/{self.iterations}{status} "
                        f"(T_assign={t_assign.elapsed:.6f}s, "
                        f"T_update={t_update_elapsed:.6f}s, "
                        f"changed={changed})"
                    )

                if converged:
                    break
        finally:
            strategy.close()

        self._store_centroids(centroids, C)
        return ClusteringResult(
            centroids=centroids,
            labels=labels,
            iterations=timings.iterations,
            converged=converged,
            strategy=strategy.kind,
            timings=timings,
        )


def cluster(
    points: Table,
    k: int,
    iterations: int,
    accelerator: AcceleratorPort | None = None,
    *,
    rng: np.random.Generator | int | None = None,
    initial_centroids: Table | None = None,
    config: ClusteringConfig | None = None,
    should_stop: Callable[[], bool] | None = None,
    logger: logging.Logger | Any | None = None,
) -> ClusteringResult:
    """
    Кластеризует строки ``points`` в ``k`` кластеров.

    Все колонки таблицы являются измерениями квантования. Результат: таблица
    центроидов (k строк, та же схема) и метки (N,) в [0, k).

    Если строк меньше, чем ``k``, кластеризация не выполняется: центроиды
    являются копией ``points``, ``labels[i] == i``.

    Raises:
        InvalidParameterError: k <= 0 или iterations <= 0
        EmptyInputError: в ``points`` нет строк
        SchemaError: ``initial_centroids`` не совпадает по схеме
        DeviceUnavailableError: устройство обязательно, но недоступно
        DeviceOutputError: обязательное устройство вернуло некорректные метки
        ClusteringCancelledError: ``should_stop()`` вернул True
    """
    engine = KMeansEngine(
        k,
        iterations,
        accelerator,
        rng=rng,
        config=config,
        should_stop=should_stop,
        logger=logger,
    )
    return engine.fit(points, initial_centroids)
