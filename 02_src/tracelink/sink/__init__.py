"""Telemetry sink module."""

from .processor import ErrorHandler, ReportingExporter, create_span_processor, log_error
from .sink import ITelemetrySink, json_line

__all__ = [
    "ErrorHandler",
    "ITelemetrySink",
    "ReportingExporter",
    "create_span_processor",
    "json_line",
    "log_error",
]
