"""Logging and tracing setup for the SupportDesk API."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from supportdesk.core.config import Settings

_provider: TracerProvider | None = None


class SpanContextFilter(logging.Filter):
    """Stamp records with the ids of the active span so log lines join their trace."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = trace.get_current_span().get_span_context()
        if context.is_valid:
            record.trace_id = format(context.trace_id, "032x")
            record.span_id = format(context.span_id, "016x")
        else:
            record.trace_id = "-"
            record.span_id = "-"
        return True


def parse_otlp_headers(raw: str | None) -> dict[str, str]:
    """Parse ``key=value,key2=value2`` into a header mapping, skipping malformed pairs."""

    headers: dict[str, str] = {}
    for item in (raw or "").split(","):
        key, sep, value = item.partition("=")
        if sep and key.strip():
            headers[key.strip()] = value.strip()
    return headers


def configure_logging(settings: Settings) -> logging.Logger:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": settings.log_format}},
            "filters": {"span_context": {"()": SpanContextFilter}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["span_context"],
                    "level": level,
                }
            },
            "loggers": {
                "supportdesk": {"level": level},
                "uvicorn.access": {"level": logging.WARNING},
            },
            "root": {"handlers": ["console"], "level": level},
        }
    )
    return logging.getLogger("supportdesk")


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Install an OTLP exporting tracer provider when tracing is enabled."""

    global _provider

    if _provider is not None or not settings.otel_enabled:
        return None

    provider = TracerProvider(
        resource=Resource(
            attributes={
                "service.name": settings.otel_service_name,
                "deployment.environment": settings.environment,
            }
        )
    )
    exporter_kwargs: dict[str, object] = {}
    if settings.otel_exporter_otlp_endpoint:
        exporter_kwargs["endpoint"] = settings.otel_exporter_otlp_endpoint
    headers = parse_otlp_headers(settings.otel_exporter_otlp_headers)
    if headers:
        exporter_kwargs["headers"] = headers
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**exporter_kwargs)))

    trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    global _provider

    if provider is None:
        return
    provider.shutdown()
    _provider = None
