"""Span processors handing ended spans to a telemetry sink."""

from typing import Callable, Sequence

from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
    SpanExportResult,
)

from ..errors import ExportError
from ..logging_config import get_logger
from .sink import ITelemetrySink

logger = get_logger(__name__)

ErrorHandler = Callable[[Exception], None]


def log_error(error: Exception) -> None:
    """Default error handler: log and move on."""
    logger.error("Telemetry error: %s", error)


class ReportingExporter(SpanExporter):
    """Wraps a sink so that its failures reach the error handler.

    Failures never reach the code that ended the span; they are wrapped in
    ExportError and passed to the error handler. Nothing is retried.
    """

    def __init__(self, sink: ITelemetrySink, error_handler: ErrorHandler = log_error):
        self._sink = sink
        self._error_handler = error_handler

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        try:
            result = self._sink.export(spans)
        except Exception as e:
            self._error_handler(ExportError(f"export of {len(spans)} span(s) failed: {e}"))
            return SpanExportResult.FAILURE
        if result is not SpanExportResult.SUCCESS:
            self._error_handler(ExportError(f"sink rejected {len(spans)} span(s)"))
            return SpanExportResult.FAILURE
        return result

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        try:
            flushed = self._sink.force_flush(timeout_millis)
        except Exception as e:
            self._error_handler(ExportError(f"flush failed: {e}"))
            return False
        if not flushed:
            self._error_handler(
                ExportError(f"flush did not finish within {timeout_millis}ms")
            )
        return bool(flushed)

    def shutdown(self) -> None:
        try:
            self._sink.shutdown()
        except Exception as e:
            self._error_handler(ExportError(f"sink shutdown failed: {e}"))


def create_span_processor(
    sink: ITelemetrySink,
    error_handler: ErrorHandler = log_error,
    batch: bool = False,
) -> SpanProcessor:
    """
    Bind a sink to the tracer.

    Args:
        sink: Exporter receiving finished spans.
        error_handler: Receives ExportError instances.
        batch: Queue spans and export them from a background thread instead of
               exporting each one in the thread that ended it.
    """
    exporter = ReportingExporter(sink, error_handler)
    if batch:
        return BatchSpanProcessor(exporter)
    return SimpleSpanProcessor(exporter)
