"""Caller loop: periodic traced GET against a downstream service."""

import asyncio
from typing import Mapping, Protocol

import httpx

from ..errors import ProtocolError, TransportError
from ..logging_config import get_logger, trace_extra
from ..models import Attempt, AttemptOutcome, AttributeValue, SpanKind, StatusCode
from ..propagation import IPropagator
from ..tracer import ITracer

logger = get_logger(__name__)

PING_ATTRIBUTES: dict[str, AttributeValue] = {"an": "apple", "step": 1}


class ICallerLoop(Protocol):
    """Fires one traced outbound request per tick."""

    async def start(self) -> None:
        """Start the ticker."""
        ...

    async def stop(self, timeout: float = 5.0) -> None:
        """Stop the ticker and drain in-flight attempts."""
        ...

    async def attempt(self) -> Attempt:
        """Run a single traced request."""
        ...


class CallerLoop:
    """Polls target_url every interval seconds.

    Each tick spawns an independent attempt task; a slow attempt does not
    delay the next tick, so attempts may overlap.
    """

    def __init__(
        self,
        tracer: ITracer,
        propagator: IPropagator,
        target_url: str,
        interval: float = 1.0,
        timeout: float | None = None,
        max_body_bytes: int = 64 * 1024,
        attributes: Mapping[str, AttributeValue] | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._tracer = tracer
        self._propagator = propagator
        self._target_url = target_url
        self._interval = interval
        self._timeout = interval if timeout is None else timeout
        self._max_body_bytes = max_body_bytes
        self._attributes = dict(PING_ATTRIBUTES if attributes is None else attributes)
        self._client = client
        self._owns_client = client is None
        self._running = False
        self._task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def start(self) -> None:
        """Start the ticker task."""
        if self._running:
            return

        self._running = True
        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True

        self._task = asyncio.create_task(self._run_ticker())
        logger.info(
            "Caller loop started: GET %s every %.3fs (timeout %.3fs)",
            self._target_url,
            self._interval,
            self._timeout,
        )

    async def stop(self, timeout: float = 5.0) -> None:
        """Stop the ticker, wait up to timeout for in-flight attempts, cancel the rest."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._inflight:
            pending_tasks = set(self._inflight)
            _, pending = await asyncio.wait(pending_tasks, timeout=timeout)
            if pending:
                logger.warning(
                    "Cancelling %s caller attempts still running after %.1fs",
                    len(pending),
                    timeout,
                )
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

        logger.info("Caller loop stopped")

    async def _run_ticker(self) -> None:
        """Spawn an attempt at every tick; skip ticks that were missed."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._interval

        while self._running:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            if not self._running:
                break

            self._spawn_attempt()

            next_tick += self._interval
            now = loop.time()
            if next_tick <= now:
                missed = int((now - next_tick) // self._interval) + 1
                next_tick += missed * self._interval

    def _spawn_attempt(self) -> None:
        task = asyncio.create_task(self.attempt())
        self._inflight.add(task)
        task.add_done_callback(self._on_attempt_done)

    def _on_attempt_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Caller attempt crashed: %s", error, exc_info=error)

    async def attempt(self) -> Attempt:
        """Run one traced GET. Transport and protocol errors are logged, not raised."""
        if self._client is None:
            raise RuntimeError("CallerLoop not started")

        with self._tracer.start_span(
            "ping", attributes=self._attributes, kind=SpanKind.CLIENT
        ) as span:
            trace_id = span.context.trace_id_hex
            log_extra = trace_extra(span.context)
            span.set_attributes({"http.method": "GET", "http.url": self._target_url})

            headers: dict[str, str] = {}
            self._propagator.inject(span.context, headers)

            try:
                status_code, body, truncated = await self._fetch(headers)
            except TransportError as e:
                span.set_status(StatusCode.ERROR, str(e))
                logger.warning("traceid=%s err=%r", trace_id, str(e), **log_extra)
                return Attempt(
                    trace_id=trace_id,
                    span=span,
                    outcome=AttemptOutcome.ERROR,
                    error=str(e),
                )
            except ProtocolError as e:
                span.set_attribute("http.status_code", e.status_code)
                span.set_status(StatusCode.ERROR, e.status_text)
                logger.warning(
                    "traceid=%s status=%r",
                    trace_id,
                    e.status_text,
                    **log_extra,
                )
                return Attempt(
                    trace_id=trace_id,
                    span=span,
                    outcome=AttemptOutcome.ERROR,
                    status_code=e.status_code,
                    error=e.status_text,
                )

            span.set_attribute("http.status_code", status_code)
            if truncated:
                span.set_attribute("http.response.truncated", True)
            span.set_status(StatusCode.OK)
            logger.info("traceid=%s msg=%s", trace_id, body, **log_extra)
            return Attempt(
                trace_id=trace_id,
                span=span,
                outcome=AttemptOutcome.OK,
                status_code=status_code,
                body=body,
            )

    async def _fetch(self, headers: dict[str, str]) -> tuple[int, str, bool]:
        """GET the target. Returns (status_code, body, truncated).

        The timeout bounds the whole exchange. httpx applies its own timeout to
        each connect, write and read separately, so a server trickling its
        body would otherwise hold the attempt open indefinitely.

        Raises:
            TransportError: Connect, send, read or deadline failure.
            ProtocolError: Non-2xx status.
        """
        try:
            return await asyncio.wait_for(self._request(headers), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"GET {self._target_url}: deadline of {self._timeout:g}s exceeded"
            ) from e

    async def _request(self, headers: dict[str, str]) -> tuple[int, str, bool]:
        try:
            async with self._client.stream(
                "GET", self._target_url, headers=headers, timeout=self._timeout
            ) as response:
                if not response.is_success:
                    raise ProtocolError(
                        response.status_code,
                        f"{response.status_code} {response.reason_phrase}".strip(),
                    )
                body, truncated = await self._read_body(response)
                return response.status_code, body, truncated
        except httpx.HTTPError as e:
            raise TransportError(str(e) or type(e).__name__) from e

    async def _read_body(self, response: httpx.Response) -> tuple[str, bool]:
        chunks: list[bytes] = []
        size = 0
        truncated = False
        async for chunk in response.aiter_bytes():
            remaining = self._max_body_bytes - size
            if len(chunk) > remaining:
                chunks.append(chunk[:remaining])
                truncated = True
                break
            chunks.append(chunk)
            size += len(chunk)
        body = b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")
        return body, truncated
