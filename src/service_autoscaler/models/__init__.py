"""
Models package for autoscaler data structures
"""

from .metrics import MetricSnapshot
from .scaling import ScalingAction, ScalingActionType, ScalingDecision, ScalingState
from .service import ServiceConfig, ServicePriority

__all__ = [
    "MetricSnapshot",
    "ScalingAction",
    "ScalingActionType",
    "ScalingDecision",
    "ScalingState",
    "ServiceConfig",
    "ServicePriority",
]
