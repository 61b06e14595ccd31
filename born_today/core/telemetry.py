from __future__ import annotations

from dataclasses import dataclass
import logging
import os

import httpx
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from born_today.core.config import Settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s trace_id=%(trace_id)s span_id=%(span_id)s %(message)s"
FEED_LANGUAGE_ATTRIBUTE = "feed.language"
FEED_BASE_URL_ATTRIBUTE = "feed.base_url"

_BASE_LOG_RECORD_FACTORY = logging.getLogRecordFactory()
_LOG_CORRELATION_INSTALLED = False


@dataclass(slots=True)
class TelemetryRuntime:
    """Tracer provider owned by one CLI run; disabled runtimes fall back to the global no-op tracer."""

    enabled: bool
    provider: TracerProvider | None

    def tracer(self, name: str) -> trace.Tracer:
        if self.provider is not None:
            return self.provider.get_tracer(name)
        return trace.get_tracer(name)


DISABLED_TELEMETRY = TelemetryRuntime(enabled=False, provider=None)


def configure_logging(level: str = "INFO") -> None:
    _install_log_correlation()
    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def setup_telemetry(settings: Settings, *, exporter: SpanExporter | None = None) -> TelemetryRuntime:
    """Build a tracer provider describing the feed this process reads.

    An injected ``exporter`` is flushed span by span; the OTLP exporter built
    from settings is batched. The provider is not installed globally, callers
    take tracers from the returned runtime.
    """
    if not settings.otel_enabled:
        return DISABLED_TELEMETRY

    if settings.otel_log_correlation:
        _install_log_correlation()

    provider = TracerProvider(
        resource=Resource.create(
            {
                SERVICE_NAME: settings.otel_service_name,
                DEPLOYMENT_ENVIRONMENT: settings.environment,
                FEED_LANGUAGE_ATTRIBUTE: settings.feed_language,
                FEED_BASE_URL_ATTRIBUTE: settings.feed_base_url,
            }
        ),
        sampler=TraceIdRatioBased(settings.otel_trace_sample_ratio),
    )
    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    else:
        otlp_exporter = _otlp_exporter(settings)
        if otlp_exporter is not None:
            provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    logger.info(
        "telemetry enabled service=%s language=%s sample_ratio=%s",
        settings.otel_service_name,
        settings.feed_language,
        settings.otel_trace_sample_ratio,
    )
    return TelemetryRuntime(enabled=True, provider=provider)


def instrument_http_client(client: httpx.AsyncClient, runtime: TelemetryRuntime) -> None:
    """Trace requests sent through ``client`` only; other httpx clients stay untouched."""
    if runtime.provider is None:
        return
    HTTPXClientInstrumentor.instrument_client(client, tracer_provider=runtime.provider)


def shutdown_telemetry(runtime: TelemetryRuntime) -> None:
    if runtime.provider is None:
        return
    runtime.provider.force_flush()
    runtime.provider.shutdown()


def _otlp_exporter(settings: Settings) -> OTLPSpanExporter | None:
    endpoint = (
        settings.otel_exporter_otlp_endpoint
        or os.getenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")
        or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    )
    if not endpoint:
        logger.info("no OTLP endpoint configured; feed spans are not exported")
        return None
    headers = parse_headers(settings.otel_exporter_otlp_headers or os.getenv("OTEL_EXPORTER_OTLP_HEADERS"))
    return OTLPSpanExporter(endpoint=endpoint, headers=headers or None)


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse the OTLP ``key=value,key2=value2`` header convention."""
    if raw is None:
        return {}
    parsed: dict[str, str] = {}
    for item in raw.split(","):
        key, separator, value = item.partition("=")
        if separator and key.strip():
            parsed[key.strip()] = value.strip()
    return parsed


def _install_log_correlation() -> None:
    global _LOG_CORRELATION_INSTALLED
    if _LOG_CORRELATION_INSTALLED:
        return

    def record_factory(*args: object, **kwargs: object) -> logging.LogRecord:
        record = _BASE_LOG_RECORD_FACTORY(*args, **kwargs)
        context = trace.get_current_span().get_span_context()
        record.trace_id = format(context.trace_id, "032x") if context.is_valid else "0" * 32
        record.span_id = format(context.span_id, "016x") if context.is_valid else "0" * 16
        return record

    logging.setLogRecordFactory(record_factory)
    _LOG_CORRELATION_INSTALLED = True
