#!/usr/bin/env python3
"""
Tests for the Prometheus metrics client
"""

from unittest.mock import Mock

import pytest
import requests

from service_autoscaler.core.metrics import PrometheusMetricsClient
from service_autoscaler.core.policy import ScalingPolicy
from service_autoscaler.exceptions import MetricsBackendError
from service_autoscaler.models import ScalingActionType, ScalingState

LABEL = "container_label_com_docker_compose_service"


def vector_response(*series):
    """Mock a successful instant-vector response"""
    response = Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {
        "status": "success",
        "data": {
            "resultType": "vector",
            "result": [
                {"metric": labels, "value": [1700000000.0, value]}
                for labels, value in series
            ],
        },
    }
    return response


def make_client(session, queries=None):
    return PrometheusMetricsClient(
        url="http://prometheus:9090/",
        queries=queries or {"cpuUsage": "cpu_query", "memoryUsage": "memory_query"},
        service_label=LABEL,
        timeout=10,
        session=session,
    )


class TestPrometheusMetricsClient:
    """Test snapshot collection and response parsing"""

    @pytest.fixture
    def session(self):
        return Mock()

    def test_collect_builds_snapshot(self, session):
        responses = {
            "cpu_query": vector_response(({LABEL: "agentforge-backend"}, "0.8"), ({LABEL: "agentforge-mcp"}, "0.2")),
            "memory_query": vector_response(({LABEL: "agentforge-backend"}, "0.6")),
        }
        session.get.side_effect = lambda url, params, timeout: responses[params["query"]]

        snapshot = make_client(session).collect()

        assert snapshot == {
            "cpuUsage": {"agentforge-backend": 0.8, "agentforge-mcp": 0.2},
            "memoryUsage": {"agentforge-backend": 0.6},
        }
        url = session.get.call_args[0][0]
        assert url == "http://prometheus:9090/api/v1/query"
        assert session.get.call_args[1]["timeout"] == 10

    def test_failed_query_is_skipped(self, session):
        """One failing query does not stop the others"""
        def fake_get(url, params, timeout):
            if params["query"] == "memory_query":
                raise requests.exceptions.ConnectionError("connection refused")
            return vector_response(({LABEL: "agentforge-backend"}, "0.9"))

        session.get.side_effect = fake_get

        snapshot = make_client(session).collect()

        assert snapshot == {"cpuUsage": {"agentforge-backend": 0.9}}

    def test_decision_from_surviving_metric(self, session, backend_service):
        """The policy averages whatever metrics made it into the snapshot"""
        def fake_get(url, params, timeout):
            if params["query"] == "memory_query":
                raise requests.exceptions.Timeout("timed out")
            return vector_response(({LABEL: "agentforge-backend"}, "0.9"))

        session.get.side_effect = fake_get
        snapshot = make_client(session).collect()

        decision = ScalingPolicy(cooldown_period=300).decide(
            "agentforge-backend", backend_service, snapshot, ScalingState(), 0.0
        )

        assert decision.action is ScalingActionType.UP
        assert decision.observed_value == pytest.approx(90.0)

    def test_malformed_body_does_not_abort_other_queries(self, session):
        """A success status with a non-object data field only loses that metric"""
        malformed = Mock()
        malformed.raise_for_status.return_value = None
        malformed.json.return_value = {"status": "success", "data": [1, 2, 3]}
        responses = {
            "cpu_query": vector_response(({LABEL: "agentforge-backend"}, "0.9")),
            "memory_query": malformed,
        }
        session.get.side_effect = lambda url, params, timeout: responses[params["query"]]

        snapshot = make_client(session).collect()

        assert snapshot == {"cpuUsage": {"agentforge-backend": 0.9}}

    def test_all_queries_failing_gives_empty_snapshot(self, session):
        session.get.side_effect = requests.exceptions.ConnectionError("down")

        assert make_client(session).collect() == {}

    def test_http_error_is_skipped(self, session):
        response = Mock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("503 Server Error")
        session.get.return_value = response

        assert make_client(session).collect() == {}

    def test_error_status_is_skipped(self, session):
        response = Mock()
        response.raise_for_status.return_value = None
        response.json.return_value = {"status": "error", "error": "parse error"}
        session.get.return_value = response

        assert make_client(session).collect() == {}

    def test_invalid_json_is_skipped(self, session):
        response = Mock()
        response.raise_for_status.return_value = None
        response.json.side_effect = ValueError("Expecting value")
        session.get.return_value = response

        assert make_client(session).collect() == {}

    def test_missing_label_maps_to_unknown(self, session):
        session.get.return_value = vector_response(({}, "0.5"))

        snapshot = make_client(session, {"requestRate": "rate_query"}).collect()

        assert snapshot == {"requestRate": {"unknown": 0.5}}

    def test_non_finite_values_dropped(self, session):
        session.get.return_value = vector_response(
            ({LABEL: "a"}, "NaN"), ({LABEL: "b"}, "+Inf"), ({LABEL: "c"}, "0.3")
        )

        snapshot = make_client(session, {"cpuUsage": "cpu_query"}).collect()

        assert snapshot == {"cpuUsage": {"c": 0.3}}

    def test_malformed_series_skipped(self, session):
        response = vector_response(({LABEL: "good"}, "0.4"))
        response.json.return_value["data"]["result"].append({"metric": {LABEL: "bad"}})
        session.get.return_value = response

        snapshot = make_client(session, {"cpuUsage": "cpu_query"}).collect()

        assert snapshot == {"cpuUsage": {"good": 0.4}}

    def test_collect_returns_fresh_dict(self, session):
        session.get.return_value = vector_response(({LABEL: "a"}, "0.1"))
        client = make_client(session, {"cpuUsage": "cpu_query"})

        assert client.collect() is not client.collect()

    def test_ping_raises_when_unreachable(self, session):
        session.get.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(MetricsBackendError):
            make_client(session).ping()

    def test_ping_runs_up_query(self, session):
        session.get.return_value = vector_response(({"job": "prometheus"}, "1"))

        make_client(session).ping()

        assert session.get.call_args[1]["params"] == {"query": "up"}
