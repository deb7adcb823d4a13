"""Trace context identifying a span within a distributed trace."""

from dataclasses import dataclass

from opentelemetry import trace as trace_api
from opentelemetry.trace import TraceFlags, TraceState


@dataclass(frozen=True)
class TraceContext:
    """Immutable identity of a span: which trace it belongs to and its own id.

    A plain value object at the service seams; converts to and from the
    OpenTelemetry SpanContext the tracer and propagator work with.
    """

    trace_id: int  # 128-bit
    span_id: int  # 64-bit
    sampled: bool = True
    trace_state: str = ""  # raw tracestate header, passed through untouched

    @classmethod
    def from_span_context(cls, span_context: trace_api.SpanContext) -> "TraceContext":
        return cls(
            trace_id=span_context.trace_id,
            span_id=span_context.span_id,
            sampled=span_context.trace_flags.sampled,
            trace_state=span_context.trace_state.to_header(),
        )

    def to_span_context(self, is_remote: bool = False) -> trace_api.SpanContext:
        flags = TraceFlags.SAMPLED if self.sampled else TraceFlags.DEFAULT
        return trace_api.SpanContext(
            trace_id=self.trace_id,
            span_id=self.span_id,
            is_remote=is_remote,
            trace_flags=TraceFlags(flags),
            trace_state=(
                TraceState.from_header([self.trace_state])
                if self.trace_state
                else TraceState()
            ),
        )

    @property
    def trace_id_hex(self) -> str:
        return trace_api.format_trace_id(self.trace_id)

    @property
    def span_id_hex(self) -> str:
        return trace_api.format_span_id(self.span_id)

    @property
    def is_valid(self) -> bool:
        return self.to_span_context().is_valid
