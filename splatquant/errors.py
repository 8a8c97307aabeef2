"""
Исключения, которые кластеризация отдаёт вызывающему коду.

Все ошибки поднимаются синхронно из ``cluster(...)`` и не повторяются
внутри движка: вызывающий перезапускает кластеризацию целиком.
"""

from __future__ import annotations


class SplatQuantError(Exception):
    """Базовый класс ошибок пакета."""


class SchemaError(SplatQuantError, ValueError):
    """Несовпадение длин, имён или размерностей колонок."""


class InvalidParameterError(SplatQuantError, ValueError):
    """Недопустимый параметр (k <= 0, iterations <= 0 и т.п.)."""


class EmptyInputError(SplatQuantError, ValueError):
    """Таблица точек не содержит ни одной строки."""


class DeviceUnavailableError(SplatQuantError, RuntimeError):
    """Устройство обязательно, но получить его контекст не удалось."""


class ClusteringCancelledError(SplatQuantError, RuntimeError):
    """Прогон остановлен кооперативной отменой между итерациями."""


class DeviceOutputError(SplatQuantError, RuntimeError):
    """Устройство вернуло метки неверной формы или вне диапазона [0, k)."""
