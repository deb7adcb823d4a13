"""Responder route."""

from fastapi import APIRouter

from ...app import Application


def create_responder_router(app: Application) -> APIRouter:
    """Create router serving the fixed payload at GET /."""
    router = APIRouter(tags=["responder"])
    # Raw ASGI endpoint so the span stays open while the body is written.
    router.add_route(
        "/",
        app.responder,
        methods=["GET"],
        name="pong",
        include_in_schema=False,
    )
    return router
