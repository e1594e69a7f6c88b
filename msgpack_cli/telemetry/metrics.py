"""
OpenTelemetry Metrics Collection

Counters and latency histograms for conversions and RPC calls. Until
setup_metrics() installs an SDK MeterProvider the OpenTelemetry API hands out
no-op instruments, so recording is always safe.
"""

import logging
from typing import Dict, Any

from opentelemetry import metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

logger = logging.getLogger(__name__)

METER_NAME = "msgpack_cli"

# name -> (description, unit) of the instruments msgpack-cli records
KNOWN_COUNTERS = {
    "conversion.values": ("Top-level values converted", "1"),
    "conversion.errors": ("Conversions aborted by an error", "1"),
    "rpc.client.requests": ("RPC calls started", "1"),
    "rpc.client.success": ("RPC calls answered with a result", "1"),
    "rpc.client.errors": ("RPC calls failed, by error type", "1"),
}

KNOWN_HISTOGRAMS = {
    "conversion.latency": ("Duration of a whole stream conversion", "ms"),
    "rpc.client.latency": ("Time until an RPC result arrived", "ms"),
}

_counters = {}
_histograms = {}


def setup_metrics(service_name: str, otlp_endpoint: str = "localhost:4317", export_interval_ms: int = 5000):
    """Export metrics to an OTLP receiver

    Args:
        service_name: Service name
        otlp_endpoint: OTLP receiver address
        export_interval_ms: Metrics export interval in milliseconds
    """
    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=otlp_endpoint),
        export_interval_millis=export_interval_ms
    )
    metrics.set_meter_provider(MeterProvider(metric_readers=[reader]))

    # Instruments created against the previous provider are stale now
    _counters.clear()
    _histograms.clear()

    logger.info(f"OpenTelemetry metrics configured, service name: {service_name}, OTLP endpoint: {otlp_endpoint}")
    return metrics.get_meter(service_name)


def get_counter(name: str):
    """Get or create the counter `name`

    Names missing from KNOWN_COUNTERS get a generic description.
    """
    if name not in _counters:
        description, unit = KNOWN_COUNTERS.get(name, (f"Counter for {name}", "1"))
        _counters[name] = metrics.get_meter(METER_NAME).create_counter(
            name=name, description=description, unit=unit
        )
    return _counters[name]


def get_histogram(name: str):
    """Get or create the histogram `name` (milliseconds unless listed otherwise)"""
    if name not in _histograms:
        description, unit = KNOWN_HISTOGRAMS.get(name, (f"Latency histogram for {name}", "ms"))
        _histograms[name] = metrics.get_meter(METER_NAME).create_histogram(
            name=name, description=description, unit=unit
        )
    return _histograms[name]


def increment_counter(name: str, amount: int = 1, attributes: Dict[str, Any] = None):
    """Add `amount` to a counter"""
    get_counter(name).add(amount, attributes or {})


def record_latency(name: str, value_ms: float, attributes: Dict[str, Any] = None):
    """Record one latency sample in milliseconds"""
    get_histogram(name).record(value_ms, attributes or {})
