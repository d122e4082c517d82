"""
In-process request counters for the stats endpoint.
"""

import threading
from datetime import datetime
from typing import Callable

from eprice.models.price import ServiceStats
from eprice.utils.time_utils import format_duration, utc_now


class ServiceMonitor:
    """Counts incoming API requests and outgoing upstream requests."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self.started_at = clock()
        self._incoming = 0
        self._outgoing = 0
        self._lock = threading.Lock()

    def increment_incoming(self) -> None:
        with self._lock:
            self._incoming += 1

    def increment_outgoing(self) -> None:
        with self._lock:
            self._outgoing += 1

    async def on_outgoing_request(self, request) -> None:
        """httpx request event hook."""
        self.increment_outgoing()

    def get_stats(self) -> ServiceStats:
        uptime = self._clock() - self.started_at
        hours_up = max(uptime.total_seconds(), 1.0) / 3600.0

        with self._lock:
            incoming, outgoing = self._incoming, self._outgoing

        return ServiceStats(
            uptime=format_duration(uptime),
            totalIncomingRequests=incoming,
            totalOutgoingRequests=outgoing,
            avgIncomingPerHour=incoming / hours_up,
            avgOutgoingPerHour=outgoing / hours_up,
        )
