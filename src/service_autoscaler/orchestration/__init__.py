#!/usr/bin/env python3
"""
Orchestration backends and the factory that picks one from configuration
"""

import logging
from typing import Dict, Optional

import docker
from docker.errors import DockerException

from ..config.settings import OrchestratorSettings
from ..exceptions import ConfigurationError, OrchestrationError
from .base import OrchestrationClient
from .compose import DockerComposeOrchestrator
from .kubernetes import KubernetesOrchestrator
from .memory import InMemoryOrchestrator
from .swarm import DockerSwarmOrchestrator

logger = logging.getLogger(__name__)


def _docker_client(settings: OrchestratorSettings) -> docker.DockerClient:
    try:
        if settings.docker_base_url:
            return docker.DockerClient(base_url=settings.docker_base_url)
        return docker.from_env()
    except DockerException as e:
        raise OrchestrationError(f"Failed to create Docker client: {e}") from e


def create_orchestrator(
    settings: OrchestratorSettings,
    initial_replicas: Optional[Dict[str, int]] = None
) -> OrchestrationClient:
    """
    Build the orchestration backend named in settings

    Args:
        settings: Orchestrator configuration group
        initial_replicas: Starting replica counts for the in-memory backend

    Returns:
        Configured OrchestrationClient

    Raises:
        OrchestrationError: If the backend client cannot be created
        ConfigurationError: If the backend name is unknown
    """
    backend = settings.backend
    logger.info(f"Using orchestration backend: {backend}")

    if backend == "compose":
        return DockerComposeOrchestrator(
            _docker_client(settings),
            compose_file=settings.compose_file,
            project=settings.compose_project,
            command=settings.compose_command,
            command_timeout=settings.command_timeout,
        )
    if backend == "swarm":
        return DockerSwarmOrchestrator(_docker_client(settings))
    if backend == "kubernetes":
        return KubernetesOrchestrator.from_config(
            namespace=settings.namespace,
            in_cluster=settings.kube_in_cluster,
            kubeconfig_path=settings.kubeconfig_path,
        )
    if backend == "memory":
        return InMemoryOrchestrator(initial_replicas)

    raise ConfigurationError(f"Unknown orchestration backend: {backend}")


__all__ = [
    "OrchestrationClient",
    "DockerComposeOrchestrator",
    "DockerSwarmOrchestrator",
    "KubernetesOrchestrator",
    "InMemoryOrchestrator",
    "create_orchestrator",
]
