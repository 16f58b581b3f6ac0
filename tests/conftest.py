#!/usr/bin/env python3
"""
Shared fixtures for autoscaler tests
"""

import pytest

from service_autoscaler.core.executor import ScalingExecutor
from service_autoscaler.core.policy import ScalingPolicy
from service_autoscaler.core.state import ControlLoopState
from service_autoscaler.models import ServiceConfig, ServicePriority
from service_autoscaler.orchestration import InMemoryOrchestrator


class FakeClock:
    """Manually advanced clock; sleep() advances time instead of blocking"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start
        self.sleeps = []

    def time(self) -> float:
        return self.now

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend_service():
    """High priority service averaging cpu, memory and response time"""
    return ServiceConfig(
        key="backend",
        name="agentforge-backend",
        priority=ServicePriority.HIGH,
        metric_names=["cpuUsage", "memoryUsage", "responseTime"],
        scale_up_threshold=75,
        scale_down_threshold=25,
    )


@pytest.fixture
def frontend_service():
    return ServiceConfig(
        key="frontend",
        name="agentforge-frontend",
        priority=ServicePriority.LOW,
        metric_names=["cpuUsage"],
        scale_up_threshold=85,
        scale_down_threshold=35,
    )


@pytest.fixture
def state():
    return ControlLoopState(history_size=100)


@pytest.fixture
def orchestrator():
    return InMemoryOrchestrator({"agentforge-backend": 2, "agentforge-frontend": 2})


@pytest.fixture
def policy():
    return ScalingPolicy(cooldown_period=300)


@pytest.fixture
def executor(orchestrator, state, clock):
    return ScalingExecutor(
        orchestrator,
        state,
        min_replicas=2,
        max_replicas=6,
        health_timeout=60,
        health_poll_interval=5,
        clock=clock.time,
        monotonic=clock.monotonic,
        sleep=clock.sleep,
    )
