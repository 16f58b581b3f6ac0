#!/usr/bin/env python3
"""
Metrics collector module for gathering per-service load from Prometheus
"""

import logging
import math
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

import requests

from ..exceptions import MetricsBackendError
from ..models import MetricSnapshot
from .instrumentation import METRIC_QUERY_FAILURES

logger = logging.getLogger(__name__)

UNKNOWN_SERVICE = "unknown"


class MetricsClient(ABC):
    """Source of metric snapshots for the control loop"""

    @abstractmethod
    def collect(self) -> MetricSnapshot:
        """Return a fresh snapshot. Must not raise for per-query failures."""

    @abstractmethod
    def ping(self) -> None:
        """Raise MetricsBackendError if the backend is unreachable"""


class PrometheusMetricsClient(MetricsClient):
    """Runs a fixed set of named instant queries against the Prometheus HTTP API"""

    def __init__(
        self,
        url: str,
        queries: Mapping[str, str],
        service_label: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize metrics client

        Args:
            url: Prometheus base URL
            queries: Metric name -> PromQL expression
            service_label: Label holding the service name in each series
            timeout: Per-query timeout in seconds
            session: Optional requests session (shared connection pool)
        """
        self.url = url.rstrip('/')
        self.queries = dict(queries)
        self.service_label = service_label
        self.timeout = timeout
        self.session = session or requests.Session()

    def collect(self) -> MetricSnapshot:
        """
        Collect all named queries

        Returns:
            metric name -> service name -> value; failed queries are absent
        """
        start = time.monotonic()
        snapshot: MetricSnapshot = {}

        for metric_name, query in self.queries.items():
            try:
                result = self._query(query)
            except MetricsBackendError as e:
                logger.warning(f"Failed to collect metric {metric_name}: {e}")
                METRIC_QUERY_FAILURES.labels(metric=metric_name).inc()
                continue

            snapshot[metric_name] = self.parse_vector(result)

        logger.debug(
            f"Metrics collected: {len(snapshot)}/{len(self.queries)} queries "
            f"in {time.monotonic() - start:.2f}s"
        )
        return snapshot

    def ping(self) -> None:
        result = self._query("up")
        logger.info(f"Prometheus connection established ({len(result)} targets)")

    def _query(self, query: str) -> List[Dict[str, Any]]:
        """Query Prometheus API and return the result vector"""
        try:
            response = self.session.get(
                f"{self.url}/api/v1/query",
                params={'query': query},
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise MetricsBackendError(f"Error querying Prometheus: {e}") from e
        except ValueError as e:
            raise MetricsBackendError(f"Invalid JSON from Prometheus: {e}") from e

        if not isinstance(data, dict) or data.get('status') != 'success':
            error = data.get('error', 'unknown error') if isinstance(data, dict) else 'unexpected payload'
            raise MetricsBackendError(f"Prometheus query failed: {error}")

        payload = data.get('data')
        if not isinstance(payload, dict):
            raise MetricsBackendError("Prometheus response has no data object")

        result = payload.get('result')
        if not isinstance(result, list):
            raise MetricsBackendError("Prometheus response has no result vector")
        return result

    def parse_vector(self, result: List[Dict[str, Any]]) -> Dict[str, float]:
        """Map an instant vector onto service name -> value"""
        values: Dict[str, float] = {}

        for item in result:
            try:
                labels = item.get('metric') or {}
                service = labels.get(self.service_label, UNKNOWN_SERVICE)
                value = float(item['value'][1])
            except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed series {item!r}: {e}")
                continue

            if not math.isfinite(value):
                logger.debug(f"Skipping non-finite value for {service}")
                continue

            values[service] = value

        return values
