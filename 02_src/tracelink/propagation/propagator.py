"""W3C trace-context propagation over HTTP headers.

Header shape::

    traceparent: {version}-{trace_id}-{span_id}-{flags}
                 00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01

Parsing and formatting are done by the OpenTelemetry
TraceContextTextMapPropagator; this module adapts it to TraceContext values
and to plain, case-sensitive dict carriers.
"""

from typing import Mapping, MutableMapping, Protocol

from opentelemetry import trace as trace_api
from opentelemetry.context import Context
from opentelemetry.propagators.textmap import Getter
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from ..errors import PropagationError
from ..logging_config import get_logger
from ..models import TraceContext

logger = get_logger(__name__)

TRACEPARENT_HEADER = "traceparent"
TRACESTATE_HEADER = "tracestate"


class IPropagator(Protocol):
    """Moves a TraceContext across a transport boundary."""

    @property
    def fields(self) -> tuple[str, ...]:
        """Header names this propagator reads and writes."""
        ...

    def inject(self, context: TraceContext, carrier: MutableMapping[str, str]) -> None:
        """Write context into carrier."""
        ...

    def extract(self, carrier: Mapping[str, str]) -> TraceContext | None:
        """Read context from carrier; None when absent or malformed."""
        ...


class HeaderGetter(Getter[Mapping[str, str]]):
    """Header lookup that ignores the case of header names."""

    def get(self, carrier: Mapping[str, str], key: str) -> list[str] | None:
        value = carrier.get(key)
        if value is None:
            # Plain dicts are case-sensitive; header names are not.
            for name, candidate in carrier.items():
                if name.lower() == key:
                    value = candidate
                    break
        return [value] if value is not None else None

    def keys(self, carrier: Mapping[str, str]) -> list[str]:
        return list(carrier.keys())


_W3C = TraceContextTextMapPropagator()
_GETTER = HeaderGetter()


def _extract_span_context(carrier: Mapping[str, str]) -> trace_api.SpanContext:
    context = _W3C.extract(carrier, context=Context(), getter=_GETTER)
    return trace_api.get_current_span(context).get_span_context()


def parse_traceparent(value: str, trace_state: str = "") -> TraceContext:
    """
    Parse a traceparent header value.

    Args:
        value: Raw header value.
        trace_state: Raw tracestate header value to attach to the result.

    Returns:
        The decoded TraceContext.

    Raises:
        PropagationError: If the value is malformed or carries all-zero ids.
    """
    carrier = {TRACEPARENT_HEADER: value}
    if trace_state:
        carrier[TRACESTATE_HEADER] = trace_state
    span_context = _extract_span_context(carrier)
    if not span_context.is_valid:
        raise PropagationError(f"malformed traceparent {value!r}")
    return TraceContext.from_span_context(span_context)


class TraceContextPropagator:
    """Injects and extracts W3C traceparent / tracestate headers."""

    def __init__(self):
        self._w3c = _W3C

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(sorted(self._w3c.fields))

    def inject(self, context: TraceContext, carrier: MutableMapping[str, str]) -> None:
        """Write context into carrier. Invalid contexts are skipped."""
        if not context.is_valid:
            logger.debug("Not injecting invalid trace context %s", context)
            return
        span = trace_api.NonRecordingSpan(context.to_span_context())
        self._w3c.inject(carrier, context=trace_api.set_span_in_context(span, Context()))

    def extract(self, carrier: Mapping[str, str]) -> TraceContext | None:
        """Read context from carrier. Never raises."""
        values = _GETTER.get(carrier, TRACEPARENT_HEADER)
        if not values or not values[0]:
            return None
        trace_state = (_GETTER.get(carrier, TRACESTATE_HEADER) or [""])[0].strip()
        try:
            return parse_traceparent(values[0], trace_state)
        except PropagationError as e:
            logger.debug("Ignoring traceparent: %s", e)
            return None
