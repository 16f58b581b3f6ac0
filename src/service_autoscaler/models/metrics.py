#!/usr/bin/env python3
"""
Metric snapshot type shared by the collector, policy and status API
"""

from typing import Dict

# metric name -> service name -> value, as reported by the backend
MetricSnapshot = Dict[str, Dict[str, float]]
