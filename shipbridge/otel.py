"""
OpenTelemetry configuration for shipbridge.
"""
import logging

from django.conf import settings

logger = logging.getLogger(__name__)


def setup_otel():
    """
    Initialize OpenTelemetry tracing when OTEL_ENABLED is set.

    Traces inbound Django requests, outbound Shopify (requests) and Posti
    (httpx) calls and PostgreSQL queries, exported over OTLP/HTTP. Failure to
    set up tracing is logged and never prevents the application from starting.
    """
    if not getattr(settings, "OTEL_ENABLED", False):
        logger.info("OpenTelemetry is disabled. Skipping instrumentation.")
        return False

    try:
        from opentelemetry import trace
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.django import DjangoInstrumentor
        from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
        from opentelemetry.instrumentation.psycopg2 import Psycopg2Instrumentor
        from opentelemetry.instrumentation.requests import RequestsInstrumentor
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        service_name = settings.OTEL_SERVICE_NAME
        otlp_endpoint = settings.OTEL_EXPORTER_OTLP_ENDPOINT

        tracer_provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
        tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
        trace.set_tracer_provider(tracer_provider)

        DjangoInstrumentor().instrument()
        RequestsInstrumentor().instrument()
        HTTPXClientInstrumentor().instrument()
        if settings.DB_ENGINE == "postgres":
            Psycopg2Instrumentor().instrument()
    except Exception as e:
        logger.warning(f"Failed to initialize OpenTelemetry: {e}", exc_info=True)
        return False

    logger.info(f"OpenTelemetry tracing enabled for {service_name}, exporting to {otlp_endpoint}")
    return True
