"""
Общие фикстуры для всех тестов.
"""

import numpy as np
import pytest

from splatquant.core.accelerator import AcceleratorPort
from splatquant.core.cpu_numpy import squared_distances
from splatquant.data.synthetic import make_blob_table
from splatquant.data.table import Column, Table
from splatquant.errors import DeviceUnavailableError

# Хорошо разделённые центры для сквозных сценариев
BLOB_CENTERS = np.array([
    [-10.0, -10.0],
    [10.0, -10.0],
    [-10.0, 10.0],
    [10.0, 10.0],
])


def table_from_matrix(X, names=None, dtype=np.float32):
    names = names or [f"d{j}" for j in range(X.shape[1])]
    return Table(Column(name, X[:, j].astype(dtype)) for j, name in enumerate(names))


class NumpyAccelerator(AcceleratorPort):
    """Тестовая реализация порта: полный перебор на хосте."""

    name = "numpy-test"

    def __init__(self, fail_open=False, labels_override=None, open_error=None):
        self.fail_open = fail_open
        self.open_error = open_error
        self.labels_override = labels_override
        self.opened = 0
        self.calls = 0
        self.released = 0

    def open(self):
        self.opened += 1
        if self.fail_open:
            raise DeviceUnavailableError("no device in tests")
        if self.open_error is not None:
            raise self.open_error

    def assign(self, points, centroids):
        self.calls += 1
        if self.labels_override is not None:
            return self.labels_override(points, centroids)
        return np.argmin(squared_distances(points, centroids), axis=1).astype(np.int32)

    def release(self, points):
        self.released += 1


class RecordingLogger:
    """Логгер-заглушка, запоминающий сообщения по уровням."""

    def __init__(self):
        self.records = []

    def info(self, msg, *args, **kwargs):
        self.records.append(("INFO", msg))

    def warning(self, msg, *args, **kwargs):
        self.records.append(("WARNING", msg))

    def messages(self, level):
        return [m for lvl, m in self.records if lvl == level]


@pytest.fixture
def simple_2d_table():
    """Фикстура с очень простым 2D датасетом для базовых тестов."""
    X = np.array([
        [0.0, 0.0],
        [1.0, 1.0],
        [2.0, 2.0],
        [10.0, 10.0],
        [11.0, 11.0],
        [12.0, 12.0],
    ])
    centroids = np.array([
        [0.5, 0.5],
        [11.0, 11.0],
    ], dtype=np.float32)
    return table_from_matrix(X, ["x", "y"]), centroids


@pytest.fixture
def small_table():
    """Два явно разделённых кластера в 2D, 60 точек."""
    rng = np.random.default_rng(42)
    X = np.vstack([
        rng.normal(size=(30, 2)) + [0, 0],
        rng.normal(size=(30, 2)) + [5, 5],
    ])
    return table_from_matrix(X, ["x", "y"])


@pytest.fixture
def medium_table():
    """10D, 3 кластера, 150 точек."""
    rng = np.random.default_rng(7)
    X = np.vstack([
        rng.normal(size=(50, 10)) + 0.0,
        rng.normal(size=(50, 10)) + 5.0,
        rng.normal(size=(50, 10)) - 5.0,
    ])
    return table_from_matrix(X)


@pytest.fixture
def blobs():
    """10 000 точек из 4 хорошо разделённых гауссовых кластеров."""
    return make_blob_table(
        10_000, dims=2, centers=BLOB_CENTERS, cluster_std=1.0, seed=3, prefix="p"
    )


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def make_points():
    """Фабрика таблицы из матрицы (N, D)."""
    return table_from_matrix


@pytest.fixture
def accelerator_cls():
    """Класс тестового ускорителя (полный перебор на хосте)."""
    return NumpyAccelerator


@pytest.fixture
def blob_centers():
    return BLOB_CENTERS.copy()
