#!/usr/bin/env python3
"""
Scaling executor: applies one decision to the orchestrator and waits for
the new replicas to become healthy
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Tuple

from ..exceptions import OrchestrationError
from ..models import ScalingAction, ScalingActionType, ScalingDecision, ServiceConfig
from ..orchestration import OrchestrationClient
from .instrumentation import HEALTH_TIMEOUTS, SCALING_ACTIONS, SCALING_FAILURES
from .state import ControlLoopState

logger = logging.getLogger(__name__)


class ScalingExecutor:
    """Executes scale decisions one at a time under the global scaling guard"""

    def __init__(
        self,
        orchestrator: OrchestrationClient,
        state: ControlLoopState,
        min_replicas: int,
        max_replicas: int,
        health_timeout: float = 60.0,
        health_poll_interval: float = 5.0,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the executor

        Args:
            orchestrator: Backend that performs the scale
            state: Shared control loop state (guard, per-service state, history)
            min_replicas: Global lower replica bound
            max_replicas: Global upper replica bound
            health_timeout: Seconds to wait for new replicas to turn healthy
            health_poll_interval: Seconds between health polls
            clock: Wall clock used for cooldown timestamps
            monotonic: Clock used to bound the health wait
            sleep: Sleep function used between health polls
        """
        self.orchestrator = orchestrator
        self.state = state
        self.min_replicas = min_replicas
        self.max_replicas = max_replicas
        self.health_timeout = health_timeout
        self.health_poll_interval = health_poll_interval
        self._clock = clock
        self._monotonic = monotonic
        self._sleep = sleep

    def bounds_for(self, config: ServiceConfig) -> Tuple[int, int]:
        """Replica bounds for a service, per-service overrides first"""
        lower = config.min_replicas if config.min_replicas is not None else self.min_replicas
        upper = config.max_replicas if config.max_replicas is not None else self.max_replicas
        return lower, upper

    def execute(self, config: ServiceConfig, decision: ScalingDecision, current: int) -> bool:
        """
        Scale a service by one replica in the decided direction

        The target is clamped to the service's bounds and the step must move
        toward them, so a service already above max is never scaled up and
        one already below min is never scaled down. Either case returns False
        without touching the orchestrator.

        Args:
            config: Service being scaled
            decision: Decision returned by the policy
            current: Replica count observed before the decision

        Returns:
            True if the scale was applied and recorded
        """
        service = config.name

        if self.state.guard.is_scaling:
            logger.info(f"Scaling already in progress, skipping {service}")
            return False

        if not decision.should_scale:
            return False

        lower, upper = self.bounds_for(config)
        if decision.action is ScalingActionType.UP:
            target = min(current + 1, upper)
            if target <= current:
                logger.info(f"Service {service} already at max replicas ({upper})")
                return False
        else:
            target = max(current - 1, lower)
            if target >= current:
                logger.info(f"Service {service} already at min replicas ({lower})")
                return False

        if not self.state.guard.try_acquire():
            logger.info(f"Scaling already in progress, skipping {service}")
            return False

        try:
            logger.info(
                f"Scaling {service} {decision.action.value}: {current} -> {target} replicas "
                f"({decision.reason})"
            )

            try:
                self.orchestrator.scale(service, target)
            except OrchestrationError as e:
                logger.error(f"Failed to scale {service}: {e}")
                SCALING_FAILURES.labels(service=service).inc()
                return False

            healthy = self.wait_for_health(service, target)
            recorded_at = self._clock()

            action = ScalingAction(
                timestamp=datetime.fromtimestamp(recorded_at, tz=timezone.utc),
                service=service,
                action=decision.action,
                from_replicas=current,
                to_replicas=target,
                reason=decision.reason,
                health_confirmed=healthy,
            )
            self.state.record_action(action, recorded_at)
            SCALING_ACTIONS.labels(service=service, action=decision.action.value).inc()

            logger.info(f"Successfully scaled {service} to {target} replicas")
            return True
        finally:
            self.state.guard.release()

    def wait_for_health(self, service: str, expected: int) -> bool:
        """
        Poll the orchestrator until `expected` replicas are healthy

        Args:
            service: Service name
            expected: Healthy replica count to wait for

        Returns:
            True if reached before the timeout, False otherwise
        """
        logger.info(f"Waiting for {service} to be healthy...")
        start = self._monotonic()

        while True:
            try:
                healthy = self.orchestrator.healthy_replica_count(service)
                if healthy >= expected:
                    logger.info(f"Service {service} is healthy ({healthy}/{expected} replicas)")
                    return True
                logger.debug(f"Service {service} health: {healthy}/{expected} replicas")
            except OrchestrationError as e:
                logger.warning(f"Health check failed for {service}: {e}")

            if self._monotonic() - start >= self.health_timeout:
                break
            self._sleep(self.health_poll_interval)

        logger.warning(f"Service {service} health check timeout after {self.health_timeout}s")
        HEALTH_TIMEOUTS.labels(service=service).inc()
        return False
