"""
Configuration module for autoscaler settings
"""

from .settings import (
    ApiSettings,
    LoggingSettings,
    OrchestratorSettings,
    PrometheusSettings,
    ScalingSettings,
    Settings,
)

__all__ = [
    "Settings",
    "PrometheusSettings",
    "ScalingSettings",
    "OrchestratorSettings",
    "ApiSettings",
    "LoggingSettings",
]
