"""Health tracking for the hearthboard server."""

from __future__ import annotations

import os
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any, Optional


@dataclass
class HealthStatus:
    """Health status information for the server."""

    status: str  # "ok", "degraded", "critical" or "starting"
    server_time_iso: str
    uptime_seconds: int
    pid: int
    event_count: int
    last_pipeline_state: Optional[str]
    last_refresh_success_age_seconds: Optional[int]
    last_error: Optional[str]


class HealthTracker:
    """Records the outcome of each ingestion run for ``/api/health``."""

    def __init__(self, stale_after_seconds: int = 900) -> None:
        self._start_time: float = time.time()
        self._last_refresh_attempt: Optional[float] = None
        self._last_refresh_success: Optional[float] = None
        self._current_event_count: int = 0
        self._last_state: Optional[str] = None
        self._last_error: Optional[str] = None
        self.stale_after_seconds = stale_after_seconds

    def record_refresh_attempt(self) -> None:
        """Record that a refresh attempt was made."""
        self._last_refresh_attempt = time.time()

    def record_refresh_outcome(
        self, state: str, event_count: int, error: Optional[str] = None
    ) -> None:
        """Record the final state of a refresh.

        Args:
            state: Terminal pipeline state value
            event_count: Number of merged events produced
            error: Error or warning text, if any
        """
        self._last_state = state
        self._last_error = error
        if state != "totally_failed":
            self._last_refresh_success = time.time()
            self._current_event_count = event_count

    def get_uptime_seconds(self) -> int:
        """Get server uptime in seconds."""
        return int(time.time() - self._start_time)

    def get_last_refresh_age_seconds(self) -> Optional[int]:
        """Seconds since the last refresh that produced data, or None if never."""
        if self._last_refresh_success is None:
            return None
        return int(time.time() - self._last_refresh_success)

    def _overall_status(self) -> str:
        if self._last_state is None:
            return "starting"
        if self._last_state == "totally_failed":
            return "critical"
        age = self.get_last_refresh_age_seconds()
        if self._last_state == "partially_failed" or (age is not None and age > self.stale_after_seconds):
            return "degraded"
        return "ok"

    def get_health_status(self) -> HealthStatus:
        """Build a snapshot of current health."""
        return HealthStatus(
            status=self._overall_status(),
            server_time_iso=datetime.now(UTC).isoformat(),
            uptime_seconds=self.get_uptime_seconds(),
            pid=os.getpid(),
            event_count=self._current_event_count,
            last_pipeline_state=self._last_state,
            last_refresh_success_age_seconds=self.get_last_refresh_age_seconds(),
            last_error=self._last_error,
        )

    def to_dict(self) -> dict[str, Any]:
        """Health snapshot as a JSON-serializable dict."""
        return asdict(self.get_health_status())
