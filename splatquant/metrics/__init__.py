from .timers import PhaseTimings, Timer
from .metrics import cluster_sizes, inertia, mean_squared_error, throughput

__all__ = [
    "Timer",
    "PhaseTimings",
    "cluster_sizes",
    "inertia",
    "mean_squared_error",
    "throughput",
]
