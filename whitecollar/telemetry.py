"""OpenTelemetry tracing and Prometheus metrics, installed when enabled."""

import os
import sys

from fastapi import FastAPI
from opentelemetry import metrics, trace
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from prometheus_client import start_http_server

from .config import settings
from .logging_config import get_logger

logger = get_logger(__name__)


def _running_tests() -> bool:
    return "pytest" in sys.modules or bool(os.getenv("TESTING"))


def _start_metrics_server(port: int) -> int:
    """Expose Prometheus metrics, moving one port up if ``port`` is taken."""
    try:
        start_http_server(port)
    except OSError:
        port += 1
        start_http_server(port)
    return port


def _install_tracing() -> None:
    provider = TracerProvider()
    # Spans go to stdout until an OTLP collector is configured
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)


def setup_telemetry(app: FastAPI) -> bool:
    """Instrument the app, its database access and the request counters.

    Returns:
        True if instrumentation was installed
    """
    if not settings.enable_telemetry:
        return False
    if _running_tests():
        logger.info("Skipping telemetry setup during tests")
        return False

    try:
        metrics.set_meter_provider(
            MeterProvider(metric_readers=[PrometheusMetricReader()])
        )
        port = _start_metrics_server(settings.metrics_port)
        _install_tracing()
        FastAPIInstrumentor.instrument_app(app)
        SQLAlchemyInstrumentor().instrument()
    except Exception as e:
        # The service runs without telemetry rather than not at all
        logger.error("Telemetry setup failed", error=str(e))
        return False

    logger.info("Telemetry enabled", metrics_port=port)
    return True
