#!/usr/bin/env python3
"""
Fixed-rate background tasks
"""

import logging
import threading
import time
from typing import Callable, Optional

from .instrumentation import ERRORS

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs a callable every `interval` seconds on a daemon thread

    Runs never overlap: a run that takes longer than the interval delays the
    next one instead of stacking up. Exceptions are logged and the schedule
    continues.
    """

    def __init__(self, name: str, interval: float, func: Callable[[], object], run_immediately: bool = False):
        self.name = name
        self.interval = interval
        self.func = func
        self.run_immediately = run_immediately
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"Started {self.name} task with {self.interval}s interval")

    def stop(self) -> None:
        """Signal the task to stop; a run in progress is allowed to finish"""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the task thread to exit

        Returns:
            True if the thread is no longer running
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def run_once(self) -> None:
        try:
            self.func()
        except Exception as e:
            logger.exception(f"Error in {self.name} task: {e}")
            ERRORS.labels(type=self.name).inc()

    def _run(self) -> None:
        if self.run_immediately:
            self.run_once()

        next_wait = self.interval
        while not self._stop_event.wait(next_wait):
            started = time.monotonic()
            self.run_once()
            elapsed = time.monotonic() - started
            next_wait = max(self.interval - elapsed, 0.0)

        logger.info(f"{self.name} task stopped")
