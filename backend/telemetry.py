# telemetry.py - OpenTelemetry tracing for the playbooks API
"""
Mutation spans are always created through the OpenTelemetry API, which is a
no-op until a tracer provider is installed. ``setup_telemetry`` installs one
exporting to an OTLP collector when OTEL_EXPORTER_OTLP_ENDPOINT is set.
"""
import os
import logging

from opentelemetry import trace

logger = logging.getLogger("playbooks.telemetry")

# Service identity
SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "playbooks-api")
SERVICE_VERSION = "1.0.0"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "")


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name, SERVICE_VERSION)


def record_error(span: trace.Span, exc: Exception) -> None:
    """Attach a mutation failure to ``span`` with its error code, if any."""
    span.record_exception(exc)
    span.set_status(trace.Status(trace.StatusCode.ERROR, str(exc)))
    code = getattr(exc, "code", None)
    if code:
        span.set_attribute("playbooks.error_code", code)


def setup_telemetry(app=None):
    """Install an exporting tracer provider and instrument FastAPI + SQLAlchemy.

    The SDK, exporter and instrumentations ship in the ``telemetry`` extra.
    """
    if not OTLP_ENDPOINT:
        logger.info("OpenTelemetry export disabled (OTEL_EXPORTER_OTLP_ENDPOINT not set)")
        return None

    try:
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.sdk.resources import Resource, SERVICE_NAME as RES_SVC_NAME
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    except ImportError:
        logger.warning("OTEL_EXPORTER_OTLP_ENDPOINT set but the telemetry extra is not installed")
        return None

    resource = Resource.create({
        RES_SVC_NAME: SERVICE_NAME,
        "service.version": SERVICE_VERSION,
        "deployment.environment": ENVIRONMENT,
    })
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=OTLP_ENDPOINT, insecure=True)))
    trace.set_tracer_provider(provider)

    if app is not None:
        try:
            from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
            FastAPIInstrumentor.instrument_app(app, excluded_urls="health", tracer_provider=provider)
        except ImportError:
            logger.warning("opentelemetry-instrumentation-fastapi not installed")

    try:
        from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
        from database import engine
        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine, tracer_provider=provider)
    except ImportError:
        logger.warning("opentelemetry-instrumentation-sqlalchemy not installed")

    logger.info(f"OpenTelemetry initialised ({SERVICE_NAME}) -> {OTLP_ENDPOINT}")
    return provider
