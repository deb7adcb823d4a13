"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..app import Application
from .routes import debug, responder


def create_fastapi_app(application: Application, serve_responder: bool = True) -> FastAPI:
    """
    Create and configure the FastAPI application for one service.

    Args:
        application: Bootstrapped service; its start/stop run in the lifespan.
        serve_responder: Mount the fixed-payload route at GET /.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        await application.stop()

    config = application.config
    fastapi_app = FastAPI(
        title=config.service_name,
        description=f"{config.app_label} traced loopback service",
        version="0.1.0",
        lifespan=lifespan,
    )

    if serve_responder:
        fastapi_app.include_router(responder.create_responder_router(application))
    if config.debug_endpoints:
        fastapi_app.include_router(debug.create_debug_router())

    return fastapi_app
