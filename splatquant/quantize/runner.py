import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Sequence

import numpy as np

from splatquant.core.accelerator import AcceleratorPort
from splatquant.core.engine import ClusteringConfig, ClusteringResult, cluster
from splatquant.data.table import Column, Table
from splatquant.data.validation import sh_rest_columns
from splatquant.metrics.metrics import cluster_sizes
from splatquant.metrics.timers import Timer
from splatquant.utils.logging import get_logger

from .config import DEFAULT_GROUPS, AttributeGroupId, GroupConfig, GroupMode


class _PrefixedLogger:
    """Обёртка над логгером, добавляющая префикс к каждому сообщению."""

    def __init__(self, base_logger: logging.Logger | None, prefix: str) -> None:
        self._base = base_logger
        self._prefix = prefix

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self._base:
            self._base.info(f"{self._prefix} {msg}", *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self._base:
            self._base.warning(f"{self._prefix} {msg}", *args, **kwargs)


@dataclass
class QuantizedGroup:
    """
    Кодовая книга и индексы одной группы атрибутов, вход сериализатора.

    - VECTOR: ``centroids`` из k строк с колонками группы, ``labels`` (N,).
    - SCALAR: ``centroids`` из одной колонки ``value`` по возрастанию,
      ``labels`` (N, C) хранят индекс значения для каждой колонки группы.
    """

    name: str
    columns: List[str]
    mode: GroupMode
    centroids: Table
    labels: np.ndarray
    k: int
    iterations: int
    converged: bool
    result: ClusteringResult = field(repr=False)

    def metadata(self) -> Dict[str, Any]:
        return {
            "group": self.name,
            "columns": list(self.columns),
            "mode": self.mode.value,
            "k": self.k,
            "codebook_size": self.centroids.num_rows,
            "iterations": self.iterations,
            "converged": self.converged,
        }


def _label_dtype(k: int) -> np.dtype:
    if k <= 1 << 8:
        return np.dtype(np.uint8)
    if k <= 1 << 16:
        return np.dtype(np.uint16)
    return np.dtype(np.uint32)


def quantize_group(
    table: Table,
    columns: Sequence[str],
    k: int,
    iterations: int,
    accelerator: AcceleratorPort | None = None,
    *,
    name: str = "group",
    rng: np.random.Generator | int | None = None,
    config: ClusteringConfig | None = None,
    logger: Any | None = None,
) -> QuantizedGroup:
    """Векторное квантование: колонки группы образуют измерения одной точки."""
    points = table.select(columns)
    result = cluster(
        points, k, iterations, accelerator, rng=rng, config=config, logger=logger
    )
    return QuantizedGroup(
        name=name,
        columns=list(columns),
        mode=GroupMode.VECTOR,
        centroids=result.centroids,
        labels=result.labels.astype(_label_dtype(k)),
        k=k,
        iterations=result.iterations,
        converged=result.converged,
        result=result,
    )


def quantize_1d(
    table: Table,
    columns: Sequence[str],
    k: int,
    iterations: int,
    accelerator: AcceleratorPort | None = None,
    *,
    name: str = "group",
    rng: np.random.Generator | int | None = None,
    config: ClusteringConfig | None = None,
    logger: Any | None = None,
) -> QuantizedGroup:
    """
    Скалярное квантование нескольких колонок общей палитрой.

    Значения всех колонок объединяются в одну одномерную выборку, после
    кластеризации палитра сортируется по возрастанию, а метки
    перенумеровываются под отсортированный порядок.
    """
    n_rows = table.num_rows
    values = np.concatenate(
        [table.get_column(c).data.astype(np.float32) for c in columns]
    )
    result = cluster(
        Table.adopt([Column("value", values)]),
        k,
        iterations,
        accelerator,
        rng=rng,
        config=config,
        logger=logger,
    )

    palette = result.centroids.get_column("value").data
    order = np.argsort(palette, kind="stable")
    inverse = np.empty_like(order)
    inverse[order] = np.arange(order.size)

    labels = inverse[result.labels].astype(_label_dtype(order.size))
    return QuantizedGroup(
        name=name,
        columns=list(columns),
        mode=GroupMode.SCALAR,
        centroids=Table.adopt([Column("value", palette[order])]),
        labels=labels.reshape(len(columns), n_rows).T.copy(),
        k=k,
        iterations=result.iterations,
        converged=result.converged,
        result=result,
    )


class QuantizationRunner:
    """
    Квантует таблицу Gaussian Splat по группам атрибутов.

    Каждая группа кластеризуется отдельным вызовом движка со своим
    генератором случайных чисел (производным от ``seed``), поэтому
    результат воспроизводим и не зависит от порядка групп.
    """

    def __init__(
        self,
        accelerator: AcceleratorPort | None = None,
        config: ClusteringConfig | None = None,
        seed: int = 0,
        logger: logging.Logger | None = None,
        result_sink: Callable[[dict], None] | None = None,
    ) -> None:
        self.accelerator = accelerator
        self.config = config
        self.seed = seed
        self.logger = logger or get_logger()
        self._sink = result_sink

    def _emit(self, record: dict) -> None:
        if self._sink:
            self._sink(record)

    def _resolve_columns(self, table: Table, group: GroupConfig) -> List[str]:
        if group.columns is None:
            return sh_rest_columns(table)
        return list(group.columns)

    def run(
        self,
        table: Table,
        groups: Iterable[GroupConfig] | None = None,
    ) -> Dict[str, QuantizedGroup]:
        groups = list(DEFAULT_GROUPS.values() if groups is None else groups)
        for group in groups:
            group.validate()

        results: Dict[str, QuantizedGroup] = {}

        for group in groups:
            name = group.id.value
            # Генератор группы зависит только от seed и id группы
            seq = np.random.SeedSequence(
                self.seed, spawn_key=(list(AttributeGroupId).index(group.id),)
            )
            columns = self._resolve_columns(table, group)
            if not columns:
                self.logger.info(f"[group={name}] No columns, skipped")
                continue

            logger = _PrefixedLogger(self.logger, f"[group={name}]")
            quantize = quantize_1d if group.mode is GroupMode.SCALAR else quantize_group
            with Timer() as t_group:
                quantized = quantize(
                    table,
                    columns,
                    group.k,
                    group.iterations,
                    self.accelerator,
                    name=name,
                    rng=np.random.default_rng(seq),
                    config=self.config,
                    logger=logger,
                )
            results[name] = quantized

            record = quantized.metadata()
            record.update(
                {
                    "rows": table.num_rows,
                    "strategy": (
                        quantized.result.strategy.value if quantized.result.strategy else None
                    ),
                    "empty_clusters": int(
                        np.count_nonzero(
                            cluster_sizes(quantized.result.labels, quantized.centroids.num_rows) == 0
                        )
                    ),
                    "T_group": float(t_group.elapsed),
                }
            )
            record.update(quantized.result.timings.as_dict())
            self._emit(record)

            self.logger.info(
                f"[group={name}] Quantized {len(columns)} columns into "
                f"{quantized.centroids.num_rows} entries in {t_group.elapsed:.3f}s"
            )

        return results
