"""
OpenTelemetry setup for the Honeycomb MCP Server

The server's own traces and metrics go over OTLP/gRPC, either to a local
collector or straight to Honeycomb when HONEYCOMB_OTEL_API_KEY is set (the key
travels in the x-honeycomb-team header, as Honeycomb's OTLP intake expects).
"""

import os
from typing import Dict, Optional, Tuple

from src.logging import get_logger

logger = get_logger('TELEMETRY')

HONEYCOMB_OTLP_ENDPOINT = "api.honeycomb.io:443"
SERVICE_VERSION = "0.1.0"

_telemetry_initialized = False
_tracer = None
_meter = None


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 'yes', 'on')


def is_telemetry_enabled() -> bool:
    """Telemetry is opt-in through OTEL_TELEMETRY_ENABLED."""
    return _env_flag('OTEL_TELEMETRY_ENABLED', 'false')


def get_service_name() -> str:
    return os.getenv('OTEL_SERVICE_NAME', 'honeycomb-mcp')


def get_otel_endpoint() -> str:
    """Explicit OTLP endpoint, else Honeycomb when an ingest key is set, else a local collector."""
    endpoint = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
    if endpoint:
        return endpoint
    if os.getenv('HONEYCOMB_OTEL_API_KEY'):
        return HONEYCOMB_OTLP_ENDPOINT
    return 'http://localhost:4317'


def get_deployment_environment() -> str:
    return os.getenv('DEPLOYMENT_ENVIRONMENT', 'development')


def _exporter_options() -> Tuple[str, bool, Optional[Dict[str, str]]]:
    """(endpoint, insecure, headers) shared by the span and metric exporters."""
    endpoint = get_otel_endpoint()
    headers = None
    ingest_key = os.getenv('HONEYCOMB_OTEL_API_KEY')
    if ingest_key:
        headers = {"x-honeycomb-team": ingest_key}
        dataset = os.getenv('HONEYCOMB_OTEL_DATASET')
        if dataset:
            # Metrics need a dataset name; traces use service.name
            headers["x-honeycomb-dataset"] = dataset

    # TLS unless the endpoint is plain http, overridable for collectors behind a proxy
    default_insecure = 'true' if endpoint.startswith('http://') else 'false'
    insecure = _env_flag('OTEL_EXPORTER_OTLP_INSECURE', default_insecure)
    return endpoint, insecure, headers


def _metric_export_interval() -> int:
    try:
        return int(os.getenv('OTEL_METRIC_EXPORT_INTERVAL', '10000'))
    except ValueError:
        logger.warning("invalid OTEL_METRIC_EXPORT_INTERVAL | using 10000ms")
        return 10000


def initialize_telemetry() -> bool:
    """
    Set up tracing and metrics providers and instrument httpx.

    Returns:
        True if telemetry is active, False if disabled or setup failed
    """
    global _telemetry_initialized, _tracer, _meter

    if _telemetry_initialized:
        logger.debug("telemetry already initialized")
        return True

    if not is_telemetry_enabled():
        logger.info("telemetry disabled via configuration")
        return False

    try:
        from opentelemetry import trace, metrics
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

        resource = Resource.create({
            "service.name": get_service_name(),
            "service.version": SERVICE_VERSION,
            "service.namespace": "honeycomb-mcp",
            "deployment.environment": get_deployment_environment(),
        })

        endpoint, insecure, headers = _exporter_options()
        logger.info(
            f"initializing telemetry | endpoint:{endpoint} | service:{get_service_name()} | "
            f"tls:{not insecure} | honeycomb_ingest:{headers is not None}"
        )

        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=insecure, headers=headers))
        )
        trace.set_tracer_provider(tracer_provider)

        reader = PeriodicExportingMetricReader(
            OTLPMetricExporter(endpoint=endpoint, insecure=insecure, headers=headers),
            export_interval_millis=_metric_export_interval()
        )
        metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

        # Outgoing Honeycomb API requests become child spans of the tool span
        HTTPXClientInstrumentor().instrument()

        _tracer = trace.get_tracer("honeycomb-mcp")
        _meter = metrics.get_meter("honeycomb-mcp")
        _telemetry_initialized = True
        logger.info("telemetry initialization complete")
        return True

    except ImportError as e:
        logger.warning(f"telemetry disabled | missing dependencies: {e}")
        return False
    except Exception as e:
        logger.exception(f"telemetry initialization failed | error: {e}")
        return False


def get_tracer():
    """Tracer for server spans, or None while telemetry is off."""
    return _tracer if _telemetry_initialized else None


def get_meter():
    """Meter for server metrics, or None while telemetry is off."""
    if not _telemetry_initialized:
        logger.debug("telemetry not initialized | meter unavailable")
        return None
    return _meter


def shutdown_telemetry():
    """Flush pending spans and metrics and shut the providers down."""
    global _telemetry_initialized

    if not _telemetry_initialized:
        return

    try:
        from opentelemetry import trace, metrics

        for provider in (trace.get_tracer_provider(), metrics.get_meter_provider()):
            shutdown = getattr(provider, 'shutdown', None)
            if shutdown is not None:
                shutdown()
        logger.info("telemetry shutdown complete")
    except Exception as e:
        logger.error(f"telemetry shutdown error | error: {e}")
    finally:
        _telemetry_initialized = False


def get_telemetry_status() -> dict:
    """Summary of the telemetry configuration, logged at server start."""
    endpoint, insecure, headers = _exporter_options()
    return {
        "enabled": is_telemetry_enabled(),
        "initialized": _telemetry_initialized,
        "service_name": get_service_name(),
        "endpoint": endpoint,
        "tls": not insecure,
        "honeycomb_ingest": headers is not None,
        "environment": get_deployment_environment(),
    }
