#!/usr/bin/env python3
"""
Scaling policy: the pure decision function of the control loop
"""

import logging

from ..models import MetricSnapshot, ScalingActionType, ScalingDecision, ScalingState, ServiceConfig

logger = logging.getLogger(__name__)

REASON_COOLDOWN = "cooldown"
REASON_NO_METRICS = "no-metrics"
REASON_HIGH_LOAD = "high-load"
REASON_LOW_LOAD = "low-load"
REASON_STABLE = "stable"


class ScalingPolicy:
    """
    Threshold policy over the average of a service's metrics

    `decide` is deterministic and has no side effects besides debug logging,
    so the same inputs always produce the same decision.
    """

    def __init__(self, cooldown_period: float, value_scale: float = 100.0):
        """
        Args:
            cooldown_period: Seconds a service must wait after its last action
            value_scale: Multiplier turning backend values into percentages
        """
        self.cooldown_period = cooldown_period
        self.value_scale = value_scale

    def decide(
        self,
        service: str,
        config: ServiceConfig,
        snapshot: MetricSnapshot,
        state: ScalingState,
        now: float
    ) -> ScalingDecision:
        """
        Decide whether a service should scale

        Args:
            service: Service name as it appears in the snapshot
            config: Thresholds and metric selection for the service
            snapshot: Latest committed metric snapshot
            state: The service's scaling state
            now: Current time in epoch seconds

        Returns:
            ScalingDecision
        """
        last = state.last_action_timestamp
        if last is not None and now - last < self.cooldown_period:
            logger.debug(f"Service {service} in cooldown period")
            return ScalingDecision(action=ScalingActionType.NONE, reason=REASON_COOLDOWN)

        values = [
            snapshot[metric][service]
            for metric in config.metric_names
            if service in snapshot.get(metric, {})
        ]
        if not values:
            logger.debug(f"No metrics available for service {service}")
            return ScalingDecision(action=ScalingActionType.NONE, reason=REASON_NO_METRICS)

        avg_percentage = sum(values) / len(values) * self.value_scale

        logger.debug(
            f"Service {service} load {avg_percentage:.1f}% from {len(values)} metrics "
            f"(up > {config.scale_up_threshold}, down < {config.scale_down_threshold})"
        )

        if avg_percentage > config.scale_up_threshold:
            return ScalingDecision(action=ScalingActionType.UP, reason=REASON_HIGH_LOAD, observed_value=avg_percentage)
        if avg_percentage < config.scale_down_threshold:
            return ScalingDecision(action=ScalingActionType.DOWN, reason=REASON_LOW_LOAD, observed_value=avg_percentage)
        return ScalingDecision(action=ScalingActionType.NONE, reason=REASON_STABLE, observed_value=avg_percentage)
