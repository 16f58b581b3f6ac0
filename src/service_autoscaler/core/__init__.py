"""
Core autoscaler modules
"""

from .control_loop import ControlLoop
from .executor import ScalingExecutor
from .metrics import MetricsClient, PrometheusMetricsClient
from .policy import ScalingPolicy
from .scheduler import PeriodicTask
from .state import ControlLoopState, ScalingGuard

__all__ = [
    "ControlLoop",
    "ControlLoopState",
    "MetricsClient",
    "PeriodicTask",
    "PrometheusMetricsClient",
    "ScalingExecutor",
    "ScalingGuard",
    "ScalingPolicy",
]
