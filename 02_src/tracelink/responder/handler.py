"""Responder handler: fixed-payload endpoint with a traced child span."""

from starlette.requests import ClientDisconnect, Request
from starlette.responses import PlainTextResponse
from starlette.types import Receive, Scope, Send

from ..logging_config import get_logger, trace_extra
from ..models import SpanKind, StatusCode
from ..propagation import IPropagator
from ..tracer import ITracer

logger = get_logger(__name__)


class ResponderHandler:
    """ASGI endpoint answering every request with the same literal body.

    The "pong" span is a child of the caller's span when a valid traceparent
    header arrives, otherwise a new root. It ends only after the body has been
    handed to the server, so write failures are recorded on it.
    """

    def __init__(self, tracer: ITracer, propagator: IPropagator, body: str = "pog"):
        self._tracer = tracer
        self._propagator = propagator
        self._body = body

    @property
    def body(self) -> str:
        return self._body

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope)
        parent = self._propagator.extract(request.headers)

        with self._tracer.start_span(
            "pong",
            parent=parent,
            kind=SpanKind.SERVER,
            attributes={"http.method": request.method, "http.target": request.url.path},
        ) as span:
            trace_id = span.context.trace_id_hex
            log_extra = trace_extra(span.context)

            response = PlainTextResponse(self._body)
            # uvicorn drops writes to a closed connection silently; the except
            # branch covers ASGI servers whose send raises once the client is gone.
            try:
                await response(scope, receive, send)
            except (OSError, ClientDisconnect) as e:
                span.record_error(e)
                logger.warning(
                    "traceid=%s err=%r",
                    trace_id,
                    str(e) or type(e).__name__,
                    **log_extra,
                )
                return

            span.set_attribute("http.status_code", response.status_code)
            span.set_status(StatusCode.OK)
            logger.info(
                "traceid=%s bytes=%d",
                trace_id,
                len(response.body),
                **log_extra,
            )
