import logging

import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from shared.config import settings

# Skipped by request tracing and the HTTP metrics
UNTRACED_PATHS = ["/metrics", "/api/health"]


def add_trace_context(logger, log_method, event_dict):
    """Stamps the active trace and span ids onto the log line."""
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


def configure_logging() -> None:
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,  # request_id from EdgeMiddleware
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_trace_context,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_tracing(app: FastAPI, service_name: str) -> None:
    provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: service_name, SERVICE_VERSION: settings.APP_VERSION})
    )
    trace.set_tracer_provider(provider)

    if settings.OTLP_ENDPOINT:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.OTLP_ENDPOINT, insecure=True))
        )

    FastAPIInstrumentor.instrument_app(app, excluded_urls=",".join(UNTRACED_PATHS))
    # Google Maps calls go out through httpx
    HTTPXClientInstrumentor().instrument()


def configure_metrics(app: FastAPI) -> None:
    Instrumentator(excluded_handlers=UNTRACED_PATHS).instrument(app).expose(app, include_in_schema=False)


def setup_observability(app: FastAPI, service_name: str) -> None:
    """
    JSON logs, request tracing and Prometheus metrics for the app.
    Call once, before any routes are hit.
    """
    configure_logging()
    configure_tracing(app, service_name)
    configure_metrics(app)
