"""Tracelink: traced loopback HTTP services."""

from .app import Application, IApplication
from .caller import CallerLoop, ICallerLoop
from .config import ServiceConfig
from .errors import (
    ExportError,
    PropagationError,
    ProtocolError,
    SpanAlreadyEndedError,
    StartupError,
    TracelinkError,
    TransportError,
)
from .models import (
    Attempt,
    AttemptOutcome,
    Span,
    SpanKind,
    Status,
    StatusCode,
    TraceContext,
)
from .pipeline import TelemetryPipeline, install_pipeline
from .propagation import IPropagator, TraceContextPropagator
from .responder import ResponderHandler
from .sink import ITelemetrySink, ReportingExporter, create_span_processor
from .tracer import ITracer, Tracer

__all__ = [
    # Application
    "Application",
    "IApplication",
    "ServiceConfig",
    "TelemetryPipeline",
    "install_pipeline",
    # Models
    "Attempt",
    "AttemptOutcome",
    "Span",
    "SpanKind",
    "Status",
    "StatusCode",
    "TraceContext",
    # Components
    "ITracer",
    "Tracer",
    "IPropagator",
    "TraceContextPropagator",
    "ICallerLoop",
    "CallerLoop",
    "ResponderHandler",
    "ITelemetrySink",
    "ReportingExporter",
    "create_span_processor",
    # Errors
    "TracelinkError",
    "TransportError",
    "ProtocolError",
    "PropagationError",
    "ExportError",
    "StartupError",
    "SpanAlreadyEndedError",
]
