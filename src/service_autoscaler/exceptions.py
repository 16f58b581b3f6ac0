#!/usr/bin/env python3
"""
Exception hierarchy for the autoscaler
"""


class AutoscalerError(Exception):
    """Base class for all autoscaler errors"""


class ConfigurationError(AutoscalerError):
    """Settings could not be loaded or failed validation"""


class MetricsBackendError(AutoscalerError):
    """A query against the metrics backend failed or returned garbage"""


class OrchestrationError(AutoscalerError):
    """The orchestration backend rejected or failed a command"""
