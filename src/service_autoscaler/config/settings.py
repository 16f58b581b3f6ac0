#!/usr/bin/env python3
"""
Configuration settings using Pydantic for environment variable loading
"""

import os
from typing import Any, Dict, Optional, Tuple, Type

import yaml
from dotenv import load_dotenv
from pydantic import AliasChoices, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from ..exceptions import ConfigurationError
from ..models.service import ServiceConfig

# Load environment variables from .env file if it exists
load_dotenv()

DEFAULT_SERVICE_LABEL = "container_label_com_docker_compose_service"

DEFAULT_QUERIES = {
    "cpuUsage": "avg(rate(container_cpu_usage_seconds_total[5m])) by (container_label_com_docker_compose_service)",
    "memoryUsage": "avg(container_memory_usage_bytes / container_spec_memory_limit_bytes) by (container_label_com_docker_compose_service)",
    "requestRate": "rate(nginx_http_requests_total[5m])",
    "responseTime": "histogram_quantile(0.95, rate(nginx_http_request_duration_seconds_bucket[5m]))",
    "errorRate": 'rate(nginx_http_requests_total{status=~"5.."}[5m])',
}

DEFAULT_SERVICES = {
    "backend": {
        "name": "agentforge-backend",
        "service_type": "stateless",
        "priority": "high",
        "metric_names": ["cpuUsage", "memoryUsage", "responseTime"],
        "scale_up_threshold": 75,
        "scale_down_threshold": 25,
    },
    "mcp": {
        "name": "agentforge-mcp",
        "service_type": "stateless",
        "priority": "medium",
        "metric_names": ["cpuUsage", "memoryUsage"],
        "scale_up_threshold": 80,
        "scale_down_threshold": 30,
    },
    "frontend": {
        "name": "agentforge-frontend",
        "service_type": "stateless",
        "priority": "low",
        "metric_names": ["cpuUsage"],
        "scale_up_threshold": 85,
        "scale_down_threshold": 35,
    },
}


class _EnvOverrideSettings(BaseSettings):
    """Environment variables win over values passed in (e.g. from YAML)"""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, dotenv_settings, init_settings, file_secret_settings


class PrometheusSettings(_EnvOverrideSettings):
    """Metrics backend configuration settings"""

    model_config = SettingsConfigDict(env_prefix="PROMETHEUS_", extra="ignore")

    url: str = "http://localhost:9090"
    query_timeout: float = Field(10.0, gt=0)
    service_label: str = DEFAULT_SERVICE_LABEL
    queries: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_QUERIES))


class ScalingSettings(_EnvOverrideSettings):
    """Global scaling defaults and loop timing"""

    # No prefix: SCALE_UP_THRESHOLD, MIN_REPLICAS, COOLDOWN_PERIOD, ...
    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    scale_up_threshold: float = Field(80.0, ge=0)
    scale_down_threshold: float = Field(30.0, ge=0)
    min_replicas: int = Field(2, ge=1)
    max_replicas: int = Field(6, ge=1)

    # Durations in seconds
    cooldown_period: float = Field(300.0, ge=0)
    evaluation_period: float = Field(60.0, gt=0)
    metrics_period: float = Field(30.0, gt=0)
    health_poll_interval: float = Field(5.0, gt=0)
    health_timeout: float = Field(60.0, ge=0)
    shutdown_grace_period: float = Field(70.0, ge=0)

    history_size: int = Field(100, ge=1)
    # Backend reports 0-1 ratios; thresholds are percentages
    value_scale: float = Field(100.0, gt=0)
    dry_run: bool = False

    @model_validator(mode="after")
    def _check_bounds(self) -> "ScalingSettings":
        if self.scale_down_threshold >= self.scale_up_threshold:
            raise ValueError(
                f"scale_down_threshold ({self.scale_down_threshold}) must be below "
                f"scale_up_threshold ({self.scale_up_threshold})"
            )
        if self.min_replicas > self.max_replicas:
            raise ValueError(f"min_replicas ({self.min_replicas}) exceeds max_replicas ({self.max_replicas})")
        return self


class OrchestratorSettings(_EnvOverrideSettings):
    """Orchestration backend configuration settings"""

    model_config = SettingsConfigDict(env_prefix="ORCHESTRATOR_", extra="ignore")

    backend: str = "compose"

    # Docker Compose / Swarm
    compose_file: str = "/app/docker-compose.scaling.yml"
    compose_project: Optional[str] = None
    compose_command: str = "docker compose"
    command_timeout: float = Field(120.0, gt=0)
    docker_base_url: Optional[str] = None

    # Kubernetes
    kube_in_cluster: bool = False
    kubeconfig_path: Optional[str] = None
    namespace: str = "default"

    @field_validator("backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("compose", "swarm", "kubernetes", "memory"):
            raise ValueError(f"unknown orchestrator backend '{value}'")
        return value


class ApiSettings(_EnvOverrideSettings):
    """Status API configuration settings"""

    model_config = SettingsConfigDict(env_prefix="API_", extra="ignore", populate_by_name=True)

    host: str = "0.0.0.0"
    port: int = Field(8081, validation_alias=AliasChoices("port", "API_PORT", "PORT"))
    # Prometheus exposition of the autoscaler's own metrics; 0 disables
    metrics_port: int = Field(9091, ge=0)


class LoggingSettings(_EnvOverrideSettings):
    """Logging configuration settings"""

    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    level: str = "INFO"
    file: Optional[str] = None
    error_file: Optional[str] = None
    colors: bool = True


class Settings(_EnvOverrideSettings):
    """Main settings class that includes all sub-settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = "development"
    debug: bool = False

    # Component settings
    prometheus: PrometheusSettings = Field(default_factory=PrometheusSettings)
    scaling: ScalingSettings = Field(default_factory=ScalingSettings)
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    services: Dict[str, ServiceConfig] = Field(default_factory=lambda: _build_services(DEFAULT_SERVICES))

    @field_validator("services", mode="before")
    @classmethod
    def _inject_service_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {
                key: ({"key": key, **raw} if isinstance(raw, dict) and "key" not in raw else raw)
                for key, raw in value.items()
            }
        return value

    @model_validator(mode="after")
    def _check_services(self) -> "Settings":
        if not self.services:
            raise ValueError("at least one service must be configured")

        seen_names = set()
        for key, service in self.services.items():
            if service.name in seen_names:
                raise ValueError(f"duplicate service name '{service.name}'")
            seen_names.add(service.name)

            unknown = [m for m in service.metric_names if m not in self.prometheus.queries]
            if unknown:
                raise ValueError(f"service '{key}' references unknown metrics: {', '.join(unknown)}")

            min_replicas, max_replicas = self.replica_bounds(service)
            if min_replicas > max_replicas:
                raise ValueError(
                    f"service '{key}': effective min_replicas ({min_replicas}) "
                    f"exceeds max_replicas ({max_replicas})"
                )
        return self

    def replica_bounds(self, service: ServiceConfig) -> Tuple[int, int]:
        """Effective (min, max) replicas for a service"""
        min_replicas = service.min_replicas if service.min_replicas is not None else self.scaling.min_replicas
        max_replicas = service.max_replicas if service.max_replicas is not None else self.scaling.max_replicas
        return min_replicas, max_replicas

    def get_config_dict(self) -> Dict[str, Any]:
        """Sanitized view of the effective configuration for the status API"""
        return {
            "environment": self.environment,
            "prometheus": {
                "url": self.prometheus.url,
                "query_timeout": self.prometheus.query_timeout,
                "service_label": self.prometheus.service_label,
                "queries": dict(self.prometheus.queries),
            },
            "scaling": self.scaling.model_dump(),
            "orchestrator": {
                "backend": self.orchestrator.backend,
                "namespace": self.orchestrator.namespace,
            },
            "services": {
                key: service.model_dump(mode="json")
                for key, service in self.services.items()
            },
        }

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Settings":
        """
        Load and validate settings

        Args:
            config_path: Optional YAML file; environment variables still win

        Returns:
            Validated settings

        Raises:
            ConfigurationError: If the file is missing or any value is invalid
        """
        try:
            if config_path:
                if not os.path.exists(config_path):
                    raise ConfigurationError(f"Configuration file not found: {config_path}")
                return cls.load_from_yaml_with_env_override(config_path)
            return cls()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
        except (yaml.YAMLError, OSError) as e:
            raise ConfigurationError(f"Failed to read configuration {config_path}: {e}") from e

    @classmethod
    def load_from_yaml_with_env_override(cls, yaml_path: str) -> "Settings":
        """Load settings from YAML file and override with environment variables"""
        with open(yaml_path, "r") as f:
            # ${VAR} references in the file are expanded from the environment
            yaml_config = yaml.safe_load(os.path.expandvars(f.read())) or {}

        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"Top level of {yaml_path} must be a mapping")

        kwargs: Dict[str, Any] = {
            "prometheus": PrometheusSettings(**(yaml_config.get("prometheus") or {})),
            "scaling": ScalingSettings(**(yaml_config.get("scaling") or {})),
            "orchestrator": OrchestratorSettings(**(yaml_config.get("orchestrator") or {})),
            "api": ApiSettings(**(yaml_config.get("api") or {})),
            "logging": LoggingSettings(**(yaml_config.get("logging") or {})),
        }
        for key in ("environment", "debug", "services"):
            if key in yaml_config:
                kwargs[key] = yaml_config[key]

        return cls(**kwargs)


def _build_services(raw: Dict[str, Any]) -> Dict[str, ServiceConfig]:
    services = {}
    for key, value in raw.items():
        if isinstance(value, ServiceConfig):
            services[key] = value
        else:
            services[key] = ServiceConfig(**{"key": key, **(value or {})})
    return services
