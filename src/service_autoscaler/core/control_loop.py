#!/usr/bin/env python3
"""
Control loop: ties metrics collection, policy evaluation and scale execution
together on two independent schedules
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Tuple

from ..exceptions import OrchestrationError
from ..models import ScalingDecision, ServiceConfig
from ..orchestration import OrchestrationClient
from .executor import ScalingExecutor
from .instrumentation import METRICS_COLLECTION_DURATION, SCALING_DECISIONS, SERVICE_REPLICAS
from .metrics import MetricsClient
from .policy import ScalingPolicy
from .scheduler import PeriodicTask
from .state import ControlLoopState

logger = logging.getLogger(__name__)

HEALTH_HISTORY_ENTRIES = 10


class ControlLoop:
    """
    Observe, decide and act for a fixed set of services

    Collection replaces the shared snapshot every `metrics_period` seconds,
    starting immediately. Evaluation reads the snapshot every
    `evaluation_period` seconds, starting one period after start, and walks
    services in priority order.
    """

    def __init__(
        self,
        services: Iterable[ServiceConfig],
        metrics_client: MetricsClient,
        orchestrator: OrchestrationClient,
        policy: ScalingPolicy,
        executor: ScalingExecutor,
        state: ControlLoopState,
        metrics_period: float = 30.0,
        evaluation_period: float = 60.0,
        dry_run: bool = False,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize control loop

        Args:
            services: Services under management
            metrics_client: Source of metric snapshots
            orchestrator: Backend used for replica counts
            policy: Decision function
            executor: Applies decisions
            state: Shared runtime state
            metrics_period: Seconds between metric collections
            evaluation_period: Seconds between evaluations
            dry_run: Log decisions without executing them
            clock: Wall clock in epoch seconds
        """
        self.services: List[ServiceConfig] = sorted(services, key=lambda s: s.priority.rank)
        self.metrics_client = metrics_client
        self.orchestrator = orchestrator
        self.policy = policy
        self.executor = executor
        self.state = state
        self.dry_run = dry_run
        self._clock = clock

        self._metrics_task = PeriodicTask("metrics-collection", metrics_period, self.collect_metrics,
                                          run_immediately=True)
        self._evaluation_task = PeriodicTask("scaling-evaluation", evaluation_period, self.evaluate)

    def start(self) -> None:
        logger.info(
            f"Starting control loop for {len(self.services)} services "
            f"(metrics every {self._metrics_task.interval}s, evaluation every {self._evaluation_task.interval}s)"
        )
        if self.dry_run:
            logger.info("Dry-run mode enabled: scaling decisions will not be executed")
        self._metrics_task.start()
        self._evaluation_task.start()

    def stop(self, timeout: float = 70.0) -> bool:
        """
        Stop both tasks and wait for in-flight work

        Args:
            timeout: Seconds to wait for a running evaluation (and scale) to finish

        Returns:
            True if both tasks exited within the timeout
        """
        logger.info("Stopping control loop...")
        self._metrics_task.stop()
        self._evaluation_task.stop()

        deadline = time.monotonic() + timeout
        stopped = self._evaluation_task.join(timeout)
        stopped = self._metrics_task.join(max(deadline - time.monotonic(), 0.0)) and stopped

        if stopped:
            logger.info("Control loop stopped")
        else:
            logger.warning(f"Control loop did not stop within {timeout}s")
        return stopped

    def collect_metrics(self) -> None:
        """Collect a fresh snapshot and publish it"""
        start = time.monotonic()
        snapshot = self.metrics_client.collect()
        METRICS_COLLECTION_DURATION.observe(time.monotonic() - start)

        self.state.replace_snapshot(snapshot)
        if not snapshot:
            logger.warning("Metrics collection returned no data")
        else:
            logger.debug(f"Collected {len(snapshot)} metrics")

    def evaluate(self) -> Dict[str, ScalingDecision]:
        """
        Evaluate every service once

        Returns:
            service name -> decision, for services that were evaluated
        """
        decisions = {}
        for service in self.services:
            try:
                decision = self.evaluate_service(service)
            except Exception as e:
                logger.exception(f"Error evaluating service {service.name}: {e}")
                continue
            if decision is not None:
                decisions[service.name] = decision
        return decisions

    def evaluate_service(self, service: ServiceConfig):
        """
        Evaluate one service and execute its decision

        Returns:
            The decision, or None if the service was skipped
        """
        name = service.name
        try:
            current = self.orchestrator.replica_count(name)
        except OrchestrationError as e:
            logger.error(f"Error getting replica count for {name}: {e}")
            current = 0

        SERVICE_REPLICAS.labels(service=name).set(current)

        if current == 0:
            logger.warning(f"Service {name} has no running replicas")
            return None

        decision = self.policy.decide(
            name,
            service,
            self.state.snapshot,
            self.state.scaling_state(name),
            self._clock(),
        )
        SCALING_DECISIONS.labels(service=name, action=decision.action.value, reason=decision.reason).inc()

        if not decision.should_scale:
            return decision

        logger.info(
            f"Service {name}: scale {decision.action.value} requested "
            f"({decision.reason}, load {decision.observed_value:.1f}%, replicas {current})"
        )
        if self.dry_run:
            logger.info(f"[dry-run] Skipping scale {decision.action.value} of {name}")
            return decision

        self.executor.execute(service, decision, current)
        return decision

    def _replica_counts(self) -> List[Tuple[ServiceConfig, int]]:
        counts = []
        for service in self.services:
            try:
                counts.append((service, self.orchestrator.replica_count(service.name)))
            except OrchestrationError as e:
                logger.error(f"Error getting replica count for {service.name}: {e}")
                counts.append((service, 0))
        return counts

    def get_health_status(self) -> Dict[str, Any]:
        """Build the status document served on /health"""
        try:
            services = {}
            for service, replicas in self._replica_counts():
                services[service.key] = {
                    "name": service.name,
                    "replicas": replicas,
                    "lastScaleAction": self.state.scaling_state(service.name).to_dict(),
                }

            return {
                "status": "healthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "services": services,
                "metrics": self.state.snapshot,
                "scalingHistory": [a.to_dict() for a in self.state.history(HEALTH_HISTORY_ENTRIES)],
                "isScaling": self.state.guard.is_scaling,
                "dryRun": self.dry_run,
            }
        except Exception as e:
            logger.error(f"Error building health status: {e}")
            return {
                "status": "unhealthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": str(e),
            }
