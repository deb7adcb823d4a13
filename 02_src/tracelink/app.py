"""Application bootstrap and lifecycle management."""

import asyncio
from typing import Protocol

import httpx

from .caller import CallerLoop
from .config import ServiceConfig
from .logging_config import get_logger
from .pipeline import TelemetryPipeline, install_pipeline
from .propagation import TraceContextPropagator
from .responder import ResponderHandler
from .sink import ITelemetrySink
from .tracer import Tracer

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Start background work (the caller loop, if configured)."""
        ...

    async def stop(self) -> None:
        """Drain background work, then flush and shut down telemetry."""
        ...


class Application:
    """One service process: telemetry pipeline plus its caller and responder roles.

    The pipeline is installed in the constructor so that a broken exporter
    (StartupError) surfaces before any route is served.
    """

    def __init__(
        self,
        config: ServiceConfig,
        sink: ITelemetrySink | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self._config = config
        self._started = False

        # 1. Telemetry (no dependencies)
        self._pipeline: TelemetryPipeline = install_pipeline(config, sink=sink)

        # 2. Responder (depends on tracer + propagator)
        self._responder = ResponderHandler(
            tracer=self._pipeline.tracer,
            propagator=self._pipeline.propagator,
            body=config.response_body,
        )

        # 3. Caller loop, only when there is something to poll
        self._caller: CallerLoop | None = None
        if config.downstream_url:
            self._caller = CallerLoop(
                tracer=self._pipeline.tracer,
                propagator=self._pipeline.propagator,
                target_url=config.downstream_url,
                interval=config.tick_interval,
                timeout=config.effective_request_timeout,
                max_body_bytes=config.max_body_bytes,
                client=client,
            )

    async def start(self) -> None:
        """Start components in dependency order."""
        if self._started:
            return
        logger.info("Starting %s", self._config.service_name)
        if self._caller:
            await self._caller.start()
        self._started = True
        logger.info("%s started", self._config.service_name)

    async def stop(self) -> None:
        """Shutdown in reverse order with a final span flush."""
        if not self._started:
            return
        logger.info("Stopping %s", self._config.service_name)
        if self._caller:
            await self._caller.stop(timeout=self._config.shutdown_timeout)
        # Flushing may block on the exporter; keep it off the event loop.
        await asyncio.to_thread(self._pipeline.shutdown, self._config.shutdown_timeout)
        self._started = False
        logger.info("%s stopped", self._config.service_name)

    @property
    def config(self) -> ServiceConfig:
        return self._config

    @property
    def pipeline(self) -> TelemetryPipeline:
        return self._pipeline

    @property
    def tracer(self) -> Tracer:
        return self._pipeline.tracer

    @property
    def propagator(self) -> TraceContextPropagator:
        return self._pipeline.propagator

    @property
    def responder(self) -> ResponderHandler:
        return self._responder

    @property
    def caller(self) -> CallerLoop:
        """Get caller loop instance."""
        if not self._caller:
            raise RuntimeError("Caller loop not configured (no downstream URL)")
        return self._caller
