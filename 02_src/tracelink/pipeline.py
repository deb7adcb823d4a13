"""Telemetry pipeline: sink, span processor, tracer and propagator."""

from dataclasses import dataclass

from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.trace import SpanProcessor
from opentelemetry.sdk.trace.export import ConsoleSpanExporter
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.sdk.trace.id_generator import IdGenerator

from .config import EXPORTERS, ServiceConfig
from .errors import StartupError
from .logging_config import get_logger
from .propagation import TraceContextPropagator
from .sink import ErrorHandler, ITelemetrySink, create_span_processor, json_line, log_error
from .tracer import Tracer

logger = get_logger(__name__)


@dataclass
class TelemetryPipeline:
    """Everything a service needs to record and ship spans."""

    tracer: Tracer
    propagator: TraceContextPropagator
    processor: SpanProcessor | None
    sink: ITelemetrySink | None

    def shutdown(self, timeout: float = 5.0) -> None:
        """Final flush, then shut the sink down. Failures are reported, not raised."""
        if self.processor is None:
            return
        provider = self.tracer.provider
        if not provider.force_flush(int(timeout * 1000)):
            logger.warning("Span flush did not finish within %.1fs", timeout)
        provider.shutdown()
        logger.info("Telemetry pipeline shut down")


def build_sink(config: ServiceConfig) -> ITelemetrySink | None:
    """Create the exporter selected by config.exporter; None means no-op tracing."""
    if config.exporter == "none":
        return None
    if config.exporter == "memory":
        return InMemorySpanExporter()
    if config.exporter == "console":
        return ConsoleSpanExporter(service_name=config.service_name, formatter=json_line)
    if config.exporter == "otlp":
        exporter = OTLPSpanExporter(
            endpoint=config.collector_endpoint,
            insecure=config.collector_insecure,
        )
        logger.info(
            "OTLP exporter configured: %s (insecure=%s)",
            config.collector_endpoint,
            config.collector_insecure,
        )
        return exporter
    raise ValueError(
        f"unknown exporter {config.exporter!r}, expected one of {', '.join(EXPORTERS)}"
    )


def install_pipeline(
    config: ServiceConfig,
    sink: ITelemetrySink | None = None,
    error_handler: ErrorHandler = log_error,
    id_generator: IdGenerator | None = None,
) -> TelemetryPipeline:
    """
    Build the telemetry pipeline for one service.

    Spans go to the in-memory and console sinks as soon as they end. The OTLP
    sink talks to a remote collector, so its spans are batched and shipped
    from a background thread, keeping gRPC calls off the event loop.

    Args:
        config: Service configuration.
        sink: Pre-built sink; when omitted one is built from config.exporter.
        error_handler: Receives ExportError instances from the sink.
        id_generator: Override for trace/span id generation.

    Raises:
        StartupError: If the sink cannot be created.
    """
    if sink is None:
        try:
            sink = build_sink(config)
        except Exception as e:
            raise StartupError(f"telemetry setup: create sink: {e}") from e

    processor = None
    if sink is not None:
        processor = create_span_processor(
            sink, error_handler, batch=config.exporter == "otlp"
        )
    tracer = Tracer(
        instrumentation_name=config.app_label,
        processor=processor,
        resource=config.resource_attributes,
        id_generator=id_generator,
    )
    logger.info(
        "Telemetry pipeline installed for %s (exporter=%s, sampler=always_on)",
        config.service_name,
        type(sink).__name__ if sink is not None else "none",
    )
    return TelemetryPipeline(
        tracer=tracer,
        propagator=TraceContextPropagator(),
        processor=processor,
        sink=sink,
    )
