#!/usr/bin/env python3
"""
Orchestration backend interface
"""

from abc import ABC, abstractmethod


class OrchestrationClient(ABC):
    """
    What the control loop needs from a container orchestrator

    Implementations wrap backend failures in OrchestrationError.
    """

    @abstractmethod
    def scale(self, service: str, replicas: int) -> None:
        """Request `replicas` instances of `service`; returns once the request is accepted"""

    @abstractmethod
    def healthy_replica_count(self, service: str) -> int:
        """Number of replicas currently running and passing health checks"""

    @abstractmethod
    def replica_count(self, service: str) -> int:
        """Number of replicas currently running"""

    @abstractmethod
    def ping(self) -> None:
        """Raise OrchestrationError if the backend is unreachable"""
