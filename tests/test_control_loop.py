#!/usr/bin/env python3
"""
Tests for the control loop and its periodic tasks
"""

import threading
from unittest.mock import Mock

import pytest

from service_autoscaler.core.control_loop import ControlLoop
from service_autoscaler.core.scheduler import PeriodicTask
from service_autoscaler.exceptions import OrchestrationError
from service_autoscaler.models import ScalingAction, ScalingActionType

BACKEND = "agentforge-backend"
FRONTEND = "agentforge-frontend"


@pytest.fixture
def metrics_client():
    client = Mock()
    client.collect.return_value = {
        "cpuUsage": {BACKEND: 0.9, FRONTEND: 0.5},
        "memoryUsage": {BACKEND: 0.9},
        "responseTime": {BACKEND: 0.9},
    }
    return client


@pytest.fixture
def control_loop(frontend_service, backend_service, metrics_client, orchestrator, policy, executor, state, clock):
    # Deliberately out of priority order
    return ControlLoop(
        services=[frontend_service, backend_service],
        metrics_client=metrics_client,
        orchestrator=orchestrator,
        policy=policy,
        executor=executor,
        state=state,
        metrics_period=30,
        evaluation_period=60,
        clock=clock.time,
    )


class TestControlLoop:
    """Test collection, evaluation and the status document"""

    def test_services_sorted_by_priority(self, control_loop):
        assert [s.name for s in control_loop.services] == [BACKEND, FRONTEND]

    def test_collect_replaces_snapshot(self, control_loop, state, metrics_client):
        old = state.snapshot

        control_loop.collect_metrics()

        assert state.snapshot == metrics_client.collect.return_value
        assert state.snapshot is not old
        assert state.snapshot_collected_at is not None

    def test_evaluate_scales_high_load_service(self, control_loop, orchestrator, state):
        control_loop.collect_metrics()

        decisions = control_loop.evaluate()

        assert decisions[BACKEND].action is ScalingActionType.UP
        assert decisions[FRONTEND].action is ScalingActionType.NONE
        assert orchestrator.scale_calls == [(BACKEND, 3)]
        assert state.history()[0].service == BACKEND

    def test_cooldown_after_scale(self, control_loop, orchestrator, clock):
        control_loop.collect_metrics()
        control_loop.evaluate()
        clock.advance(100)

        decisions = control_loop.evaluate()

        assert decisions[BACKEND].reason == "cooldown"
        assert orchestrator.scale_calls == [(BACKEND, 3)]

    def test_without_snapshot_nothing_scales(self, control_loop, orchestrator):
        decisions = control_loop.evaluate()

        assert all(d.reason == "no-metrics" for d in decisions.values())
        assert orchestrator.scale_calls == []

    def test_zero_replicas_skipped(self, control_loop, orchestrator):
        orchestrator.scale(BACKEND, 0)
        orchestrator.scale_calls.clear()
        control_loop.collect_metrics()

        decisions = control_loop.evaluate()

        assert BACKEND not in decisions
        assert orchestrator.scale_calls == []

    def test_replica_read_failure_skips_service(self, control_loop, orchestrator):
        failing = Mock(wraps=orchestrator)
        failing.replica_count.side_effect = OrchestrationError("daemon unreachable")
        control_loop.orchestrator = failing
        control_loop.collect_metrics()

        assert control_loop.evaluate() == {}
        assert orchestrator.scale_calls == []

    def test_dry_run_does_not_execute(self, control_loop, orchestrator, state):
        control_loop.dry_run = True
        control_loop.collect_metrics()

        decisions = control_loop.evaluate()

        assert decisions[BACKEND].action is ScalingActionType.UP
        assert orchestrator.scale_calls == []
        assert state.history() == []

    def test_error_in_one_service_does_not_stop_others(self, control_loop, policy):
        control_loop.collect_metrics()
        real_decide = policy.decide

        def flaky_decide(service, *args):
            if service == BACKEND:
                raise RuntimeError("unexpected")
            return real_decide(service, *args)

        control_loop.policy = Mock(decide=flaky_decide)

        decisions = control_loop.evaluate()

        assert list(decisions) == [FRONTEND]

    def test_health_status_document(self, control_loop, state):
        control_loop.collect_metrics()
        control_loop.evaluate()

        status = control_loop.get_health_status()

        assert status["status"] == "healthy"
        assert status["services"]["backend"]["name"] == BACKEND
        assert status["services"]["backend"]["replicas"] == 3
        last = status["services"]["backend"]["lastScaleAction"]
        assert last["action"] == "up"
        assert last["fromReplicas"] == 2
        assert last["toReplicas"] == 3
        assert status["services"]["frontend"]["lastScaleAction"] is None
        assert status["metrics"] == state.snapshot
        assert status["scalingHistory"][0]["toReplicas"] == 3
        assert status["isScaling"] is False

    def test_health_status_keeps_last_ten_actions(self, control_loop, state):
        for i in range(15):
            state.record_action(
                ScalingAction(service=BACKEND, action=ScalingActionType.UP,
                              from_replicas=i, to_replicas=i + 1, reason="high-load"),
                float(i),
            )

        history = control_loop.get_health_status()["scalingHistory"]

        assert len(history) == 10
        assert history[0]["fromReplicas"] == 5
        assert history[-1]["fromReplicas"] == 14

    def test_health_status_reports_failure(self, control_loop):
        control_loop.state = Mock()
        control_loop.state.scaling_state.side_effect = RuntimeError("state corrupted")

        status = control_loop.get_health_status()

        assert status["status"] == "unhealthy"
        assert "state corrupted" in status["error"]
        assert "timestamp" in status

    def test_start_and_stop(self, control_loop, metrics_client):
        control_loop.start()
        try:
            # Metrics collection runs immediately on start
            for _ in range(100):
                if metrics_client.collect.called:
                    break
                threading.Event().wait(0.02)
            assert metrics_client.collect.called
        finally:
            assert control_loop.stop(timeout=5) is True


class TestPeriodicTask:
    """Test the interval timer"""

    def test_runs_immediately_and_stops(self):
        ran = threading.Event()
        task = PeriodicTask("test", 60, ran.set, run_immediately=True)

        task.start()
        assert ran.wait(2)
        task.stop()

        assert task.join(2) is True
        assert not task.running

    def test_waits_one_interval_by_default(self):
        func = Mock()
        task = PeriodicTask("test", 60, func)

        task.start()
        task.stop()
        task.join(2)

        func.assert_not_called()

    def test_exceptions_do_not_kill_the_task(self):
        calls = []
        done = threading.Event()

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first run fails")
            done.set()

        task = PeriodicTask("test", 0.01, flaky, run_immediately=True)
        task.start()
        try:
            assert done.wait(2)
        finally:
            task.stop()
            task.join(2)

        assert len(calls) >= 2

    def test_join_before_start(self):
        assert PeriodicTask("test", 1, Mock()).join(0) is True
