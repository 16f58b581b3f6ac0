#!/usr/bin/env python3
"""
Static per-service scaling configuration
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ServicePriority(str, Enum):
    """Evaluation priority; higher priority services are evaluated first"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 0, "medium": 1, "low": 2}[self.value]


class ServiceConfig(BaseModel):
    """Scaling policy for one service. Loaded once at startup."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str = Field(..., min_length=1, description="Identifier used in config and status output")
    name: str = Field(..., min_length=1, description="Service name as known to the orchestrator and metrics backend")
    service_type: str = Field("stateless", description="Informational service type")
    priority: ServicePriority = Field(ServicePriority.MEDIUM, description="Evaluation priority")
    metric_names: List[str] = Field(..., min_length=1, description="Named queries averaged for this service")
    scale_up_threshold: float = Field(..., ge=0, description="Scale up when average load (%) exceeds this")
    scale_down_threshold: float = Field(..., ge=0, description="Scale down when average load (%) is below this")

    # Optional overrides of the global replica bounds
    min_replicas: Optional[int] = Field(None, ge=1, description="Per-service minimum replicas")
    max_replicas: Optional[int] = Field(None, ge=1, description="Per-service maximum replicas")

    @model_validator(mode="after")
    def _check_thresholds(self) -> "ServiceConfig":
        if self.scale_down_threshold >= self.scale_up_threshold:
            raise ValueError(
                f"service '{self.key}': scale_down_threshold ({self.scale_down_threshold}) "
                f"must be below scale_up_threshold ({self.scale_up_threshold})"
            )
        if (self.min_replicas is not None and self.max_replicas is not None
                and self.min_replicas > self.max_replicas):
            raise ValueError(
                f"service '{self.key}': min_replicas ({self.min_replicas}) "
                f"exceeds max_replicas ({self.max_replicas})"
            )
        return self
