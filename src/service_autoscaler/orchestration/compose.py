#!/usr/bin/env python3
"""
Docker Compose backend: counts containers through the Docker API and scales
with `docker compose up --scale`
"""

import logging
import os
import shlex
import subprocess
from typing import List, Optional

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException

from ..exceptions import OrchestrationError
from .base import OrchestrationClient

logger = logging.getLogger(__name__)

# docker-py only wraps HTTP status errors; transport failures surface from requests
_DOCKER_ERRORS = (DockerException, RequestException)

COMPOSE_SERVICE_LABEL = "com.docker.compose.service"
COMPOSE_PROJECT_LABEL = "com.docker.compose.project"


class DockerComposeOrchestrator(OrchestrationClient):
    """Scales services defined in a Compose file"""

    def __init__(
        self,
        docker_client: docker.DockerClient,
        compose_file: str,
        project: Optional[str] = None,
        command: str = "docker compose",
        command_timeout: float = 120.0
    ):
        """
        Args:
            docker_client: Docker SDK client used for container listing
            compose_file: Compose file passed to every scale command
            project: Optional compose project name to filter on
            command: Compose executable, e.g. "docker compose" or "docker-compose"
            command_timeout: Seconds before a scale command is abandoned
        """
        self.docker_client = docker_client
        self.compose_file = compose_file
        self.project = project
        self.command = command
        self.command_timeout = command_timeout

    def _running_containers(self, service: str) -> List:
        labels = [f"{COMPOSE_SERVICE_LABEL}={service}"]
        if self.project:
            labels.append(f"{COMPOSE_PROJECT_LABEL}={self.project}")
        try:
            return self.docker_client.containers.list(filters={"label": labels, "status": "running"})
        except _DOCKER_ERRORS as e:
            raise OrchestrationError(f"Failed to list containers for {service}: {e}") from e

    @staticmethod
    def _is_healthy(container) -> bool:
        state = container.attrs.get("State") or {}
        health = state.get("Health") if isinstance(state, dict) else None
        if not health:
            # No healthcheck defined: running is the best signal available
            return True
        return health.get("Status") == "healthy"

    def replica_count(self, service: str) -> int:
        return len(self._running_containers(service))

    def healthy_replica_count(self, service: str) -> int:
        return sum(1 for c in self._running_containers(service) if self._is_healthy(c))

    def build_scale_command(self, service: str, replicas: int) -> List[str]:
        cmd = shlex.split(self.command) + ["-f", self.compose_file]
        if self.project:
            cmd += ["-p", self.project]
        cmd += ["up", "-d", "--no-recreate", "--scale", f"{service}={replicas}", service]
        return cmd

    def scale(self, service: str, replicas: int) -> None:
        cmd = self.build_scale_command(service, replicas)
        logger.info(f"Executing scaling command: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.command_timeout)
        except subprocess.TimeoutExpired as e:
            raise OrchestrationError(f"Scaling command timed out after {self.command_timeout}s") from e
        except OSError as e:
            raise OrchestrationError(f"Failed to run scaling command: {e}") from e

        if result.returncode != 0:
            raise OrchestrationError(
                f"Scaling command exited with {result.returncode}: {result.stderr.strip()}"
            )

        logger.info(f"Scaling command executed successfully: {result.stdout.strip()}")

    def ping(self) -> None:
        try:
            version = self.docker_client.version()
        except _DOCKER_ERRORS as e:
            raise OrchestrationError(f"Docker daemon unreachable: {e}") from e
        if not os.path.exists(self.compose_file):
            raise OrchestrationError(f"Compose file not found: {self.compose_file}")
        logger.info(f"Docker connection established (version {version.get('Version', 'unknown')})")
