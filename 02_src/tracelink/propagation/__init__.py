"""Trace context propagation module."""

from .propagator import (
    TRACEPARENT_HEADER,
    TRACESTATE_HEADER,
    HeaderGetter,
    IPropagator,
    TraceContextPropagator,
    parse_traceparent,
)

__all__ = [
    "TRACEPARENT_HEADER",
    "TRACESTATE_HEADER",
    "HeaderGetter",
    "IPropagator",
    "TraceContextPropagator",
    "parse_traceparent",
]
