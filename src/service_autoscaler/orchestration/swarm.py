#!/usr/bin/env python3
"""
Docker Swarm backend
"""

import logging
from typing import Dict, List

import docker
from docker.errors import DockerException, NotFound
from requests.exceptions import RequestException

from ..exceptions import OrchestrationError
from .base import OrchestrationClient

logger = logging.getLogger(__name__)

# docker-py only wraps HTTP status errors; transport failures surface from requests
_DOCKER_ERRORS = (DockerException, RequestException)


class DockerSwarmOrchestrator(OrchestrationClient):
    """Scales replicated Swarm services through the Docker API"""

    def __init__(self, docker_client: docker.DockerClient):
        self.docker_client = docker_client

    def _service(self, name: str):
        try:
            return self.docker_client.services.get(name)
        except NotFound as e:
            raise OrchestrationError(f"Swarm service {name} not found") from e
        except _DOCKER_ERRORS as e:
            raise OrchestrationError(f"Failed to look up swarm service {name}: {e}") from e

    def _running_tasks(self, name: str) -> List[Dict]:
        service = self._service(name)
        try:
            tasks = service.tasks(filters={"desired-state": "running"})
        except _DOCKER_ERRORS as e:
            raise OrchestrationError(f"Failed to list tasks for {name}: {e}") from e
        # Tasks with a healthcheck stay in "starting" until it passes
        return [t for t in tasks if (t.get("Status") or {}).get("State") == "running"]

    def replica_count(self, service: str) -> int:
        return len(self._running_tasks(service))

    def healthy_replica_count(self, service: str) -> int:
        return len(self._running_tasks(service))

    def scale(self, service: str, replicas: int) -> None:
        swarm_service = self._service(service)
        try:
            swarm_service.scale(replicas)
        except _DOCKER_ERRORS as e:
            raise OrchestrationError(f"Failed to scale {service}: {e}") from e
        logger.info(f"Swarm service {service} update accepted ({replicas} replicas)")

    def ping(self) -> None:
        try:
            info = self.docker_client.info()
        except _DOCKER_ERRORS as e:
            raise OrchestrationError(f"Docker daemon unreachable: {e}") from e
        state = (info.get("Swarm") or {}).get("LocalNodeState")
        if state != "active":
            raise OrchestrationError(f"Docker node is not part of an active swarm (state: {state})")
        logger.info("Docker swarm connection established")
