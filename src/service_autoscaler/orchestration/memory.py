#!/usr/bin/env python3
"""
In-process backend for simulations and tests
"""

import logging
import threading
from typing import Dict, List, Optional, Tuple

from ..exceptions import OrchestrationError
from .base import OrchestrationClient

logger = logging.getLogger(__name__)


class InMemoryOrchestrator(OrchestrationClient):
    """Replica counts held in a dict; scaled replicas are healthy immediately"""

    def __init__(self, replicas: Optional[Dict[str, int]] = None):
        self._lock = threading.Lock()
        self._replicas: Dict[str, int] = dict(replicas or {})
        self.scale_calls: List[Tuple[str, int]] = []

    def _get(self, service: str) -> int:
        with self._lock:
            if service not in self._replicas:
                raise OrchestrationError(f"Unknown service {service}")
            return self._replicas[service]

    def replica_count(self, service: str) -> int:
        return self._get(service)

    def healthy_replica_count(self, service: str) -> int:
        return self._get(service)

    def scale(self, service: str, replicas: int) -> None:
        if replicas < 0:
            raise OrchestrationError(f"Invalid replica count {replicas}")
        with self._lock:
            self._replicas[service] = replicas
            self.scale_calls.append((service, replicas))
        logger.info(f"[memory] {service} scaled to {replicas}")

    def ping(self) -> None:
        logger.info("In-memory orchestrator ready")
