from .base import AssignStrategy, StrategyKind
from .cpu_numpy import BruteForceAssign, squared_distances, update_centroids
from .kdtree import KdTree, KdTreeAssign
from .accelerator import AcceleratorPort, DeviceAssign
from .gpu_cupy import CuPyAccelerator, gpu_available
from .engine import ClusteringConfig, ClusteringResult, KMeansEngine, cluster

__all__ = [
    "AssignStrategy",
    "StrategyKind",
    "BruteForceAssign",
    "squared_distances",
    "update_centroids",
    "KdTree",
    "KdTreeAssign",
    "AcceleratorPort",
    "DeviceAssign",
    "CuPyAccelerator",
    "gpu_available",
    "ClusteringConfig",
    "ClusteringResult",
    "KMeansEngine",
    "cluster",
]
