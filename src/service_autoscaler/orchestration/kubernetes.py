#!/usr/bin/env python3
"""
Kubernetes backend: scales Deployments through the scale subresource
"""

import logging
from typing import Optional

from kubernetes import client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException
from urllib3.exceptions import HTTPError

from ..exceptions import OrchestrationError
from .base import OrchestrationClient

logger = logging.getLogger(__name__)

_API_ERRORS = (ApiException, HTTPError)


class KubernetesOrchestrator(OrchestrationClient):
    """Each service maps to a Deployment of the same name in one namespace"""

    def __init__(self, namespace: str = "default", apps_api: Optional[client.AppsV1Api] = None):
        self.namespace = namespace
        self.apps_api = apps_api or client.AppsV1Api()

    @classmethod
    def from_config(
        cls,
        namespace: str = "default",
        in_cluster: bool = False,
        kubeconfig_path: Optional[str] = None
    ) -> "KubernetesOrchestrator":
        """Load cluster credentials and build the backend"""
        try:
            if in_cluster:
                logger.info("Loading in-cluster config")
                k8s_config.load_incluster_config()
            else:
                logger.info(f"Loading kubeconfig from: {kubeconfig_path or 'default location'}")
                k8s_config.load_kube_config(config_file=kubeconfig_path)
        except (ConfigException, OSError) as e:
            raise OrchestrationError(f"Failed to load Kubernetes configuration: {e}") from e
        return cls(namespace=namespace)

    def _deployment_status(self, service: str):
        try:
            deployment = self.apps_api.read_namespaced_deployment(service, self.namespace)
        except _API_ERRORS as e:
            raise OrchestrationError(f"Failed to read deployment {self.namespace}/{service}: {e}") from e
        return deployment.status

    def replica_count(self, service: str) -> int:
        return self._deployment_status(service).replicas or 0

    def healthy_replica_count(self, service: str) -> int:
        return self._deployment_status(service).ready_replicas or 0

    def scale(self, service: str, replicas: int) -> None:
        try:
            self.apps_api.patch_namespaced_deployment_scale(
                service, self.namespace, {"spec": {"replicas": replicas}}
            )
        except _API_ERRORS as e:
            raise OrchestrationError(f"Failed to scale deployment {self.namespace}/{service}: {e}") from e
        logger.info(f"Deployment {self.namespace}/{service} scale to {replicas} accepted")

    def ping(self) -> None:
        try:
            self.apps_api.list_namespaced_deployment(self.namespace, limit=1)
        except _API_ERRORS as e:
            raise OrchestrationError(f"Kubernetes API unreachable: {e}") from e
        logger.info(f"Kubernetes connection established (namespace {self.namespace})")
