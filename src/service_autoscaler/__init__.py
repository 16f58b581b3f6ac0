"""
Service replica autoscaler

Samples per-service load from Prometheus and scales containerized services
up or down through a pluggable orchestration backend.
"""

__version__ = "1.0.0"
