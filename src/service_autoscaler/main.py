#!/usr/bin/env python3
"""
Service Autoscaler - Main Entry Point
Scales containerized services up and down based on Prometheus metrics
"""

import argparse
import logging
import os
import signal
import sys
import threading
from typing import Optional

from prometheus_client import start_http_server

from .api.server import APIServer
from .config import Settings
from .core.control_loop import ControlLoop
from .core.executor import ScalingExecutor
from .core.logging_config import get_logger, setup_logging
from .core.metrics import MetricsClient, PrometheusMetricsClient
from .core.policy import ScalingPolicy
from .core.state import ControlLoopState
from .exceptions import AutoscalerError, ConfigurationError, MetricsBackendError, OrchestrationError
from .orchestration import OrchestrationClient, create_orchestrator

logger = logging.getLogger(__name__)


class AutoscalerService:
    """Main autoscaler service that coordinates all components"""

    def __init__(self, settings: Settings):
        """Initialize the autoscaler service"""
        self.settings = settings
        self.state = ControlLoopState(history_size=settings.scaling.history_size)
        self.metrics_client: Optional[MetricsClient] = None
        self.orchestrator: Optional[OrchestrationClient] = None
        self.control_loop: Optional[ControlLoop] = None
        self.api_server: Optional[APIServer] = None
        self._shutdown = threading.Event()

        if settings.debug:
            logger.info(f"Debug mode enabled. Settings: {settings.get_config_dict()}")

    def initialize(self) -> bool:
        """
        Connect to the orchestrator and metrics backend and build the loop

        Returns:
            False if either backend is unreachable
        """
        logger.info("Initializing Service Autoscaler...")
        scaling = self.settings.scaling

        try:
            self.orchestrator = create_orchestrator(
                self.settings.orchestrator,
                initial_replicas={
                    s.name: self.settings.replica_bounds(s)[0] for s in self.settings.services.values()
                },
            )
            self.orchestrator.ping()
        except OrchestrationError as e:
            logger.error(f"Failed to connect to orchestrator: {e}")
            return False

        self.metrics_client = PrometheusMetricsClient(
            url=self.settings.prometheus.url,
            queries=self.settings.prometheus.queries,
            service_label=self.settings.prometheus.service_label,
            timeout=self.settings.prometheus.query_timeout,
        )
        try:
            self.metrics_client.ping()
        except MetricsBackendError as e:
            logger.error(f"Failed to connect to Prometheus at {self.settings.prometheus.url}: {e}")
            return False
        logger.info("Prometheus connection established")

        executor = ScalingExecutor(
            self.orchestrator,
            self.state,
            min_replicas=scaling.min_replicas,
            max_replicas=scaling.max_replicas,
            health_timeout=scaling.health_timeout,
            health_poll_interval=scaling.health_poll_interval,
        )
        self.control_loop = ControlLoop(
            services=self.settings.services.values(),
            metrics_client=self.metrics_client,
            orchestrator=self.orchestrator,
            policy=ScalingPolicy(scaling.cooldown_period, value_scale=scaling.value_scale),
            executor=executor,
            state=self.state,
            metrics_period=scaling.metrics_period,
            evaluation_period=scaling.evaluation_period,
            dry_run=scaling.dry_run,
        )
        self.api_server = APIServer(self.control_loop, self.settings)

        logger.info(f"Service Autoscaler initialized for {len(self.settings.services)} services")
        return True

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals"""
        logger.info(f"Received signal {signum}, shutting down...")
        self._shutdown.set()

    def run(self):
        """Start everything and block until a shutdown signal arrives"""
        logger.info("Starting Service Autoscaler...")

        metrics_port = self.settings.api.metrics_port
        if metrics_port:
            start_http_server(metrics_port)
            logger.info(f"Prometheus metrics server started on :{metrics_port}")

        api_thread = threading.Thread(
            target=self.api_server.run,
            kwargs={'host': self.settings.api.host, 'port': self.settings.api.port},
            name="status-api",
            daemon=True
        )
        api_thread.start()
        logger.info(f"Health server listening on {self.settings.api.host}:{self.settings.api.port}")

        self.control_loop.start()

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        while not self._shutdown.wait(1.0):
            pass

        self.shutdown()

    def shutdown(self):
        """Stop the loop, waiting for any in-flight scale to finish"""
        grace = self.settings.scaling.shutdown_grace_period
        if self.control_loop is not None:
            self.control_loop.stop(timeout=grace)
        if self.api_server is not None:
            self.api_server.stop()
        logger.info("Service Autoscaler stopped")


def main():
    """Entry point"""
    parser = argparse.ArgumentParser(description='Service replica autoscaler')
    parser.add_argument(
        '--config',
        default=os.getenv('CONFIG_PATH'),
        help='Path to YAML configuration file (environment variables take precedence)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Run in dry-run mode (no actual scaling)'
    )
    args = parser.parse_args()

    try:
        settings = Settings.load(args.config)
    except ConfigurationError as e:
        setup_logging()
        get_logger(__name__).error(f"Configuration error: {e}")
        sys.exit(1)

    if args.dry_run:
        settings.scaling.dry_run = True

    setup_logging(
        level=settings.logging.level,
        log_file=settings.logging.file,
        error_log_file=settings.logging.error_file,
        enable_colors=settings.logging.colors
    )

    service = AutoscalerService(settings)
    if not service.initialize():
        logger.error("Startup checks failed, exiting")
        sys.exit(1)

    try:
        service.run()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
        service.shutdown()
    except AutoscalerError as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
