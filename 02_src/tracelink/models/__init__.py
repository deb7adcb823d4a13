"""Core data models for tracelink."""

from opentelemetry.trace import SpanKind, Status, StatusCode
from opentelemetry.util.types import AttributeValue

from .attempt import Attempt, AttemptOutcome
from .context import TraceContext
from .span import Span

__all__ = [
    # Context
    "TraceContext",
    # Spans
    "AttributeValue",
    "Span",
    "SpanKind",
    "Status",
    "StatusCode",
    # Caller loop
    "Attempt",
    "AttemptOutcome",
]
