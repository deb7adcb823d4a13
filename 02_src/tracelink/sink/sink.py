"""Telemetry sink interface.

A sink is any OpenTelemetry SpanExporter. The services pick one of the SDK's
in-memory, console or OTLP exporters; nothing here reimplements them.
"""

import os
from typing import Protocol, Sequence

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExportResult


class ITelemetrySink(Protocol):
    """Accepts finished spans and forwards them to a collector."""

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        """Export a batch of finished spans."""
        ...

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        """Push out anything buffered. Return False if it did not finish in time."""
        ...

    def shutdown(self) -> None:
        """Release exporter resources. Later exports fail."""
        ...


def json_line(span: ReadableSpan) -> str:
    """Render a span as one compact JSON document per line."""
    return span.to_json(indent=None) + os.linesep
