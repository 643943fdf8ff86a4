"""
Observability metrics for monitoring and debugging.
Price feed, tool call and broker API counters.
"""

from fastapi import APIRouter, Response
from typing import Dict, List
import json


# Simple metrics tracking without Prometheus dependency
class SimpleMetrics:
    """Simple metrics tracking for observability."""

    def __init__(self):
        self.counters: Dict[str, int] = {}
        self.gauges: Dict[str, float] = {}
        self.histograms: Dict[str, List[float]] = {}

    @staticmethod
    def _key(name: str, labels: Dict[str, str] = None) -> str:
        return f"{name}_{json.dumps(labels or {}, sort_keys=True)}"

    def inc_counter(self, name: str, labels: Dict[str, str] = None):
        """Increment a counter."""
        key = self._key(name, labels)
        self.counters[key] = self.counters.get(key, 0) + 1

    def set_gauge(self, name: str, value: float, labels: Dict[str, str] = None):
        """Set a gauge value."""
        self.gauges[self._key(name, labels)] = value

    def observe_histogram(self, name: str, value: float, labels: Dict[str, str] = None):
        """Observe a histogram value."""
        key = self._key(name, labels)
        samples = self.histograms.setdefault(key, [])
        samples.append(value)
        # Keep only last 1000 samples
        if len(samples) > 1000:
            self.histograms[key] = samples[-1000:]

    def get_counter(self, name: str, labels: Dict[str, str] = None) -> int:
        return self.counters.get(self._key(name, labels), 0)

    def get_metrics(self) -> str:
        """Get metrics in text format."""
        lines = []
        for key, value in self.counters.items():
            lines.append(f"# TYPE {key.split('_{')[0]} counter")
            lines.append(f"{key} {value}")
        for key, value in self.gauges.items():
            lines.append(f"# TYPE {key.split('_{')[0]} gauge")
            lines.append(f"{key} {value}")
        for key, values in self.histograms.items():
            if values:
                lines.append(f"# TYPE {key.split('_{')[0]} histogram")
                lines.append(f"{key}_count {len(values)}")
                lines.append(f"{key}_sum {sum(values)}")
                lines.append(f"{key}_avg {sum(values)/len(values)}")
        return "\n".join(lines)

    def reset(self):
        self.counters.clear()
        self.gauges.clear()
        self.histograms.clear()


# Global metrics instance
_metrics = SimpleMetrics()


def get_registry() -> SimpleMetrics:
    return _metrics


def record_ws_dial(success: bool):
    """Record a dial attempt to the streaming endpoint."""
    _metrics.inc_counter("ws_dials", {"result": "ok" if success else "error"})


def record_ws_reconnect():
    """Record WebSocket reconnection."""
    _metrics.inc_counter("ws_reconnects")


def record_ws_message(msg_type: str):
    """Record WebSocket message received."""
    _metrics.inc_counter("ws_messages", {"type": msg_type})


def record_ws_decode_error():
    _metrics.inc_counter("ws_decode_errors")


def record_subscription(operation: str, symbols: int):
    """Record a subscribe/unsubscribe frame written to the feed."""
    _metrics.inc_counter("ws_subscriptions", {"operation": operation})
    _metrics.set_gauge("ws_subscription_batch", symbols, {"operation": operation})


def record_api_request(endpoint: str, status_code: int, duration_ms: float):
    """Record broker API request metrics."""
    status = "success" if 200 <= status_code < 400 else "error"
    _metrics.inc_counter("api_requests", {"endpoint": endpoint, "status": status})
    _metrics.observe_histogram("api_duration_ms", duration_ms, {"endpoint": endpoint})


def record_tool_call(tool: str, ok: bool):
    _metrics.inc_counter("tool_calls", {"tool": tool, "status": "ok" if ok else "error"})


def get_metrics() -> str:
    """Get metrics in text format."""
    return _metrics.get_metrics()


def create_metrics_router() -> APIRouter:
    """Create FastAPI router for metrics endpoint."""
    router = APIRouter()

    @router.get("/ops/metrics")
    def metrics():
        """Metrics endpoint."""
        return Response(get_metrics(), media_type="text/plain")

    return router
