"""Prometheus metrics exporter for SimSSH.

Metrics exposed:
- Commands executed (by built-in name, "unknown" for the rest)
- Sessions started / active
- File uploads (by result)
- Chat assistant requests and latency
"""

from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    start_http_server,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Metric Definitions
# =============================================================================

commands_total = Counter(
    "simssh_commands_total",
    "Total number of shell commands executed",
    ["command"],
)

sessions_total = Counter(
    "simssh_sessions_total",
    "Total number of simulated sessions established",
)

sessions_active = Gauge(
    "simssh_sessions_active",
    "Currently connected simulated sessions",
)

uploads_total = Counter(
    "simssh_uploads_total",
    "File uploads into the mock filesystem",
    ["result"],  # stored, rejected
)

chat_requests_total = Counter(
    "simssh_chat_requests_total",
    "Chat assistant requests",
    ["model", "result"],  # success, empty, error
)

chat_latency = Histogram(
    "simssh_chat_latency_seconds",
    "Chat assistant response time in seconds",
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0],
)

uptime_seconds = Gauge(
    "simssh_uptime_seconds",
    "Process uptime in seconds",
)


# =============================================================================
# Metrics Collector Class
# =============================================================================


class MetricsCollector:
    """Centralized metrics collection and management."""

    def __init__(self):
        self._lock = Lock()
        self._start_time = time.time()
        self._command_count = 0
        logger.debug("Prometheus metrics collector initialized")

    @property
    def command_count(self) -> int:
        return self._command_count

    def record_command(self, command: Optional[str]):
        """Record a command execution.

        Args:
            command: Built-in name, or None for an unknown command
        """
        commands_total.labels(command=command or "unknown").inc()
        with self._lock:
            self._command_count += 1

    def record_session_start(self):
        sessions_total.inc()
        sessions_active.inc()

    def record_session_end(self):
        sessions_active.dec()

    def record_upload(self, stored: bool):
        uploads_total.labels(result="stored" if stored else "rejected").inc()

    def record_chat_request(
        self, model: str, result: str, latency: Optional[float] = None
    ):
        """Record a chat assistant request.

        Args:
            model: Model name used
            result: 'success', 'empty', or 'error'
            latency: Request latency in seconds (optional)
        """
        chat_requests_total.labels(model=model, result=result).inc()
        if latency is not None:
            chat_latency.observe(latency)
        logger.debug(
            "Chat request recorded: model=%s, result=%s, latency=%s",
            model,
            result,
            latency,
        )

    def update_uptime(self):
        uptime_seconds.set(time.time() - self._start_time)

    def get_metrics(self) -> bytes:
        """Generate Prometheus metrics in text format."""
        self.update_uptime()
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        return CONTENT_TYPE_LATEST


# =============================================================================
# Global Metrics Instance
# =============================================================================

_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


def reset_metrics_collector():
    """Reset the global metrics collector (for testing)."""
    global _metrics_collector
    _metrics_collector = None


def start_metrics_server(port: int = 9090, host: str = "127.0.0.1"):
    """Expose /metrics over HTTP in a background thread."""
    get_metrics_collector()
    start_http_server(port, addr=host)
    logger.info("Metrics server started on http://%s:%d/metrics", host, port)
