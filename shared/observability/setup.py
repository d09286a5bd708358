import os
import logging
import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

# OpenTelemetry
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor


def add_otel_ids(logger, log_method, event_dict):
    """Stamps the active span's ids on the log line so a routed event can be found in traces."""
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


def configure_logging(level: str | None = None, service_name: str | None = None):
    """
    JSON logs on stdout. LOG_LEVEL picks the threshold (DEBUG shows ignored
    events such as unrelated commands or foreign select menus).
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_otel_ids,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False)
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    if service_name:
        structlog.contextvars.bind_contextvars(service=service_name)


def configure_tracing(app: FastAPI, service_name: str):
    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    trace.set_tracer_provider(provider)

    # Spans are exported only when a collector is configured; the router's
    # per-event spans still feed trace ids into the logs either way
    otlp_endpoint = os.getenv("OTLP_ENDPOINT")
    if otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)))

    FastAPIInstrumentor.instrument_app(app)


def configure_metrics(app: FastAPI):
    # /metrics serves the HTTP metrics plus every payment_* counter and gauge
    Instrumentator(excluded_handlers=["/", "/metrics"]).instrument(app).expose(app, include_in_schema=False)


def setup_observability(app: FastAPI, service_name: str):
    """
    Bootstraps logging, tracing and metrics for the bot process.
    Call once from main.py, before the HTTP server and the gateway start.
    """
    configure_logging(service_name=service_name)
    configure_tracing(app, service_name)
    configure_metrics(app)
