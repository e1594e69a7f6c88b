"""
OpenTelemetry Integration Module

Provides tracing and metrics collection for conversions and RPC calls:
- tracer: span creation and OTLP trace export
- metrics: counters and latency histograms
"""

from msgpack_cli.config import TelemetryConfig

from .metrics import increment_counter, record_latency, setup_metrics
from .tracer import create_span, setup_tracer


def setup_telemetry(config: TelemetryConfig) -> bool:
    """Install OTLP exporters when an endpoint is configured.

    Returns:
        bool: Whether telemetry export was enabled
    """
    if not config.enabled:
        return False
    setup_tracer(config.service_name, config.otlp_endpoint)
    setup_metrics(config.service_name, config.otlp_endpoint)
    return True


__all__ = [
    "setup_telemetry",
    "setup_tracer",
    "setup_metrics",
    "create_span",
    "increment_counter",
    "record_latency",
]
