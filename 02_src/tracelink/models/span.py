"""Span lifecycle on top of the OpenTelemetry SDK span."""

import asyncio
from types import TracebackType
from typing import Mapping

from opentelemetry.sdk import trace as sdk_trace
from opentelemetry.trace import SpanKind, Status, StatusCode
from opentelemetry.util.types import AttributeValue

from ..errors import SpanAlreadyEndedError
from ..logging_config import get_logger
from .context import TraceContext

logger = get_logger(__name__)


class Span:
    """
    A timed operation within a trace.

    States: STARTED -> (OK | ERROR) -> ENDED. A span is owned by the code that
    started it and must be ended exactly once; use it as a context manager so
    every exit path of the block ends it. Ending hands the underlying SDK span
    to the tracer's span processor.
    """

    def __init__(self, span: sdk_trace.Span):
        self._span = span
        self.context = TraceContext.from_span_context(span.get_span_context())

    def __repr__(self) -> str:
        return (
            f"Span(name={self.name!r}, trace_id={self.context.trace_id_hex}, "
            f"span_id={self.context.span_id_hex}, status={self.status.status_code.name})"
        )

    @property
    def name(self) -> str:
        return self._span.name

    @property
    def kind(self) -> SpanKind:
        return self._span.kind

    @property
    def parent_span_id(self) -> int | None:
        parent = self._span.parent
        return parent.span_id if parent is not None else None

    @property
    def is_root(self) -> bool:
        return self.parent_span_id is None

    @property
    def attributes(self) -> Mapping[str, AttributeValue]:
        return self._span.attributes

    @property
    def resource(self) -> Mapping[str, AttributeValue]:
        return self._span.resource.attributes

    @property
    def instrumentation_name(self) -> str:
        return self._span.instrumentation_scope.name

    @property
    def status(self) -> Status:
        return self._span.status

    @property
    def start_time(self) -> int:
        """Start timestamp in nanoseconds since the epoch."""
        return self._span.start_time

    @property
    def end_time(self) -> int | None:
        return self._span.end_time

    @property
    def is_ended(self) -> bool:
        return self._span.end_time is not None

    def set_attribute(self, key: str, value: AttributeValue) -> None:
        if self.is_ended:
            logger.warning("Ignoring attribute %s on ended span %s", key, self.name)
            return
        self._span.set_attribute(key, value)

    def set_attributes(self, attributes: Mapping[str, AttributeValue]) -> None:
        for key, value in attributes.items():
            self.set_attribute(key, value)

    def set_status(self, code: StatusCode, description: str | None = None) -> None:
        """Set the span status. Description is kept for ERROR only."""
        if self.is_ended:
            logger.warning("Ignoring status change on ended span %s", self.name)
            return
        if code is not StatusCode.ERROR:
            description = None
        self._span.set_status(Status(code, description))

    def record_error(self, error: BaseException) -> None:
        """Mark the span ERROR with the error text and tag the error type."""
        if isinstance(error, asyncio.CancelledError):
            message = "cancelled"
        else:
            message = str(error) or type(error).__name__
            self._span.record_exception(error)
        self.set_attribute("error.type", type(error).__name__)
        self.set_status(StatusCode.ERROR, message)

    def end(self) -> None:
        """Close the span and hand it to the span processor."""
        if self.is_ended:
            raise SpanAlreadyEndedError(
                f"span {self.name!r} ({self.context.span_id_hex}) already ended"
            )
        self._span.end()

    def __enter__(self) -> "Span":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is not None and not self.is_ended:
            self.record_error(exc)
        if not self.is_ended:
            self.end()
        return False
