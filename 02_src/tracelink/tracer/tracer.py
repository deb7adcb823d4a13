"""Tracer minting spans from an OpenTelemetry TracerProvider."""

from typing import Mapping, Protocol

from opentelemetry import trace as trace_api
from opentelemetry.context import Context
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.id_generator import IdGenerator
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from ..logging_config import get_logger
from ..models import AttributeValue, Span, SpanKind, TraceContext

logger = get_logger(__name__)


class ITracer(Protocol):
    """Creating Spans tagged with this process's resource attributes."""

    def start_span(
        self,
        name: str,
        parent: TraceContext | None = None,
        attributes: Mapping[str, AttributeValue] | None = None,
        kind: SpanKind = SpanKind.INTERNAL,
    ) -> Span:
        """Start a child of parent, or a root span when parent is None."""
        ...


class Tracer:
    """Mints spans and routes them to the span processor when they end.

    Owns its TracerProvider instead of registering a global one, so each
    service (and each test) gets an isolated pipeline. Sampling is always on,
    whatever the parent's sampled flag says.

    Without a processor spans are still created (their ids show up in logs)
    but ending them exports nothing.
    """

    def __init__(
        self,
        instrumentation_name: str,
        processor: SpanProcessor | None = None,
        resource: Mapping[str, AttributeValue] | None = None,
        id_generator: IdGenerator | None = None,
    ):
        self._resource = dict(resource or {})
        self._processor = processor
        self._provider = TracerProvider(
            sampler=ALWAYS_ON,
            resource=Resource.create(self._resource),
            id_generator=id_generator,
            shutdown_on_exit=False,
        )
        if processor is not None:
            self._provider.add_span_processor(processor)
        self._tracer = self._provider.get_tracer(instrumentation_name)

    @property
    def provider(self) -> TracerProvider:
        return self._provider

    @property
    def resource(self) -> dict[str, AttributeValue]:
        return dict(self._resource)

    @property
    def is_noop(self) -> bool:
        return self._processor is None

    def start_span(
        self,
        name: str,
        parent: TraceContext | None = None,
        attributes: Mapping[str, AttributeValue] | None = None,
        kind: SpanKind = SpanKind.INTERNAL,
    ) -> Span:
        """Start a child of parent, or a root span when parent is None."""
        # An empty Context keeps whatever span is current out of the parent lookup.
        context = Context()
        if parent is not None and parent.is_valid:
            remote = trace_api.NonRecordingSpan(parent.to_span_context(is_remote=True))
            context = trace_api.set_span_in_context(remote, context)

        return Span(
            self._tracer.start_span(
                name,
                context=context,
                kind=kind,
                attributes=dict(attributes) if attributes else None,
            )
        )
