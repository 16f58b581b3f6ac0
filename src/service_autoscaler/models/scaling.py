#!/usr/bin/env python3
"""
Pydantic models for scaling decisions, per-service state and history
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScalingActionType(str, Enum):
    """Direction of a scaling decision"""

    UP = "up"
    DOWN = "down"
    NONE = "none"


class ScalingDecision(BaseModel):
    """Output of one policy evaluation"""

    model_config = ConfigDict(frozen=True)

    action: ScalingActionType = Field(..., description="Requested direction")
    reason: str = Field(..., description="cooldown, no-metrics, high-load, low-load or stable")
    observed_value: Optional[float] = Field(None, description="Average load percentage that was compared")

    @property
    def should_scale(self) -> bool:
        return self.action is not ScalingActionType.NONE


class ScalingState(BaseModel):
    """Runtime state of one service, replaced after every executed action"""

    model_config = ConfigDict(frozen=True)

    last_action_timestamp: Optional[float] = Field(None, description="Epoch seconds of the last recorded action")
    last_action: Optional[ScalingActionType] = None
    from_replicas: Optional[int] = None
    to_replicas: Optional[int] = None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        """Serialize as the status API's lastScaleAction, or None when never scaled"""
        if self.last_action_timestamp is None:
            return None
        return {
            "timestamp": datetime.fromtimestamp(self.last_action_timestamp, tz=timezone.utc).isoformat(),
            "action": self.last_action.value if self.last_action else None,
            "fromReplicas": self.from_replicas,
            "toReplicas": self.to_replicas,
        }


class ScalingAction(BaseModel):
    """Audit record for one executed scale"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    service: str
    action: ScalingActionType
    from_replicas: int = Field(..., ge=0, alias="fromReplicas")
    to_replicas: int = Field(..., ge=0, alias="toReplicas")
    reason: str
    health_confirmed: bool = Field(
        True,
        alias="healthConfirmed",
        description="False when the health wait timed out and the action was recorded optimistically",
    )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
