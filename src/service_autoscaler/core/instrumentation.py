#!/usr/bin/env python3
"""
Prometheus metrics describing the autoscaler itself
"""

from prometheus_client import Counter, Gauge, Histogram

SCALING_DECISIONS = Counter(
    'autoscaler_scaling_decisions_total',
    'Scaling decisions by service, action and reason',
    ['service', 'action', 'reason']
)
SCALING_ACTIONS = Counter(
    'autoscaler_scaling_actions_total',
    'Executed scaling actions',
    ['service', 'action']
)
SCALING_FAILURES = Counter(
    'autoscaler_scaling_failures_total',
    'Scale commands rejected by the orchestrator',
    ['service']
)
HEALTH_TIMEOUTS = Counter(
    'autoscaler_health_timeouts_total',
    'Scale actions recorded without health confirmation',
    ['service']
)
SERVICE_REPLICAS = Gauge(
    'autoscaler_service_replicas',
    'Replica count observed at the last evaluation',
    ['service']
)
METRIC_QUERY_FAILURES = Counter(
    'autoscaler_metric_query_failures_total',
    'Failed metrics backend queries',
    ['metric']
)
METRICS_COLLECTION_DURATION = Histogram(
    'autoscaler_metrics_collection_duration_seconds',
    'Time taken to collect a metrics snapshot'
)
ERRORS = Counter('autoscaler_errors_total', 'Total errors', ['type'])
