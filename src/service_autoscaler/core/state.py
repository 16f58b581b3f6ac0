#!/usr/bin/env python3
"""
Mutable runtime state of the control loop

Everything the collection and evaluation tasks share lives here and is
passed explicitly to the executor, the loop and the status API.
"""

import threading
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, List, Optional

from ..models import MetricSnapshot, ScalingAction, ScalingState


class ScalingGuard:
    """
    Global mutual-exclusion flag for scale executions

    One guard serializes scaling across all services, not per service.
    """

    def __init__(self):
        self._lock = threading.Lock()

    @property
    def is_scaling(self) -> bool:
        return self._lock.locked()

    def try_acquire(self) -> bool:
        """Take the guard if free. Never blocks."""
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()


class ControlLoopState:
    """Snapshot, guard, per-service state and bounded action history"""

    def __init__(self, history_size: int = 100):
        self.guard = ScalingGuard()
        self._lock = threading.Lock()
        self._snapshot: MetricSnapshot = {}
        self._snapshot_collected_at: Optional[datetime] = None
        self._scaling_states: Dict[str, ScalingState] = {}
        self._history: Deque[ScalingAction] = deque(maxlen=history_size)

    @property
    def snapshot(self) -> MetricSnapshot:
        """Most recent fully collected snapshot. Treat as read-only."""
        with self._lock:
            return self._snapshot

    @property
    def snapshot_collected_at(self) -> Optional[datetime]:
        with self._lock:
            return self._snapshot_collected_at

    def replace_snapshot(self, snapshot: MetricSnapshot, collected_at: Optional[datetime] = None) -> None:
        """Swap in a new snapshot; the previous one is never mutated"""
        with self._lock:
            self._snapshot = snapshot
            self._snapshot_collected_at = collected_at or datetime.now(timezone.utc)

    def scaling_state(self, service: str) -> ScalingState:
        with self._lock:
            return self._scaling_states.get(service, ScalingState())

    def scaling_states(self) -> Dict[str, ScalingState]:
        with self._lock:
            return dict(self._scaling_states)

    def record_action(self, action: ScalingAction, timestamp: float) -> None:
        """
        Append an executed action to history and start the service's cooldown

        Args:
            action: History entry
            timestamp: Epoch seconds used as the cooldown reference
        """
        with self._lock:
            self._scaling_states[action.service] = ScalingState(
                last_action_timestamp=timestamp,
                last_action=action.action,
                from_replicas=action.from_replicas,
                to_replicas=action.to_replicas,
            )
            self._history.append(action)

    def history(self, limit: Optional[int] = None) -> List[ScalingAction]:
        """History oldest first; `limit` keeps only the newest entries"""
        with self._lock:
            entries = list(self._history)
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return entries

    @property
    def history_size(self) -> int:
        return self._history.maxlen
