"""
Командная строка для демонстрационных прогонов квантования.

Режимы:
1. ``cluster``  — k-means по синтетическим гауссовым кластерам
2. ``quantize`` — квантование синтетической таблицы Gaussian Splat по группам

Результаты по группам пишутся построчно в NDJSON.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Sequence

from splatquant.core.engine import ClusteringConfig, cluster
from splatquant.core.gpu_cupy import CuPyAccelerator, gpu_available
from splatquant.data.synthetic import make_blob_table, make_splat_table
from splatquant.errors import SplatQuantError
from splatquant.metrics.metrics import inertia, throughput
from splatquant.quantize.config import DEFAULT_GROUPS, POSITIONS_GROUP, GroupConfig
from splatquant.quantize.runner import QuantizationRunner
from splatquant.utils.logging import setup_logger


def _make_accelerator(args: argparse.Namespace):
    if not args.gpu:
        return None
    return CuPyAccelerator(device_id=args.device_id)


def run_cluster(args: argparse.Namespace) -> int:
    logger = setup_logger()
    blobs = make_blob_table(
        args.rows, dims=args.dims, centers=args.k, seed=args.seed
    )
    config = ClusteringConfig(require_device=args.require_gpu)

    result = cluster(
        blobs.table,
        args.k,
        args.iterations,
        _make_accelerator(args),
        rng=args.seed,
        config=config,
        logger=logger,
    )

    logger.info(
        f"Finished: iterations={result.iterations} converged={result.converged} "
        f"inertia={inertia(blobs.table, result.centroids, result.labels):.4f}"
    )
    if result.timings.total > 0:
        logger.info(
            "Throughput: "
            f"{throughput(args.rows, args.k, args.dims, result.iterations, result.timings.total):.3e}"
            " ops/s"
        )
    return 0


def run_quantize(args: argparse.Namespace) -> int:
    logger = setup_logger()
    table = make_splat_table(args.rows, sh_bands=args.sh_bands, seed=args.seed)

    groups: List[GroupConfig] = list(DEFAULT_GROUPS.values())
    if args.positions_k:
        groups.insert(0, replace(POSITIONS_GROUP, k=args.positions_k))
    if args.iterations:
        groups = [replace(g, iterations=args.iterations) for g in groups]

    # Потоковая запись результатов в NDJSON
    sink = None
    if args.results_file:
        results_path = Path(args.results_file)
        results_path.write_text("", encoding="utf-8")

        def sink(rec: dict) -> None:
            with open(results_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(rec, ensure_ascii=False))
                f.write("\n")

    runner = QuantizationRunner(
        accelerator=_make_accelerator(args),
        config=ClusteringConfig(require_device=args.require_gpu),
        seed=args.seed,
        logger=logger,
        result_sink=sink,
    )
    results = runner.run(table, groups)

    logger.info(f"Quantized {len(results)} groups of {table.num_rows} splats")
    if args.results_file:
        logger.info(f"Group results saved to {args.results_file}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="splatquant",
        description="k-means квантование атрибутов Gaussian Splat",
    )
    parser.add_argument("--seed", type=int, default=42, help="Seed генератора данных и инициализации")
    parser.add_argument(
        "--gpu",
        action="store_true",
        help="Выполнять шаг назначения на GPU (CuPy), если он доступен",
    )
    parser.add_argument(
        "--require-gpu",
        action="store_true",
        help="Завершиться с ошибкой, если GPU недоступен",
    )
    parser.add_argument("--device-id", type=int, default=0, help="Номер CUDA устройства")

    subparsers = parser.add_subparsers(dest="mode", help="Режим работы")

    cluster_parser = subparsers.add_parser(
        "cluster", help="k-means по синтетическим гауссовым кластерам"
    )
    cluster_parser.add_argument("--rows", type=int, default=100_000)
    cluster_parser.add_argument("--dims", type=int, default=3)
    cluster_parser.add_argument("--k", type=int, default=8)
    cluster_parser.add_argument("--iterations", type=int, default=20)

    quantize_parser = subparsers.add_parser(
        "quantize", help="Квантование синтетической таблицы Gaussian Splat"
    )
    quantize_parser.add_argument("--rows", type=int, default=50_000)
    quantize_parser.add_argument(
        "--sh-bands", type=int, default=1, choices=[0, 1, 2, 3], help="Степень SH"
    )
    quantize_parser.add_argument(
        "--positions-k",
        type=int,
        default=0,
        help="Квантовать и позиции с указанным k (0: не квантовать)",
    )
    quantize_parser.add_argument(
        "--iterations",
        type=int,
        default=0,
        help="Итераций на группу (0: значения по умолчанию для групп)",
    )
    quantize_parser.add_argument(
        "--results-file",
        type=str,
        default=None,
        help="Путь к NDJSON файлу с результатами по группам",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.require_gpu and not gpu_available():
        setup_logger().error("GPU недоступен, но указан флаг --require-gpu")
        return 2
    args.gpu = args.gpu or args.require_gpu

    try:
        if args.mode == "cluster":
            return run_cluster(args)
        if args.mode == "quantize":
            return run_quantize(args)
    except SplatQuantError as e:
        setup_logger().error(str(e))
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
