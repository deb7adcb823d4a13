"""Debug (profiling) API routes."""

import asyncio
import sys
import threading
import traceback

from pydantic import BaseModel
from fastapi import APIRouter, Query


class DebugIndexResponse(BaseModel):
    """Response model for the debug index."""

    profiles: list[str]
    task_count: int
    thread_count: int


class TaskStackResponse(BaseModel):
    """Response model for an asyncio task."""

    name: str
    done: bool
    coroutine: str
    stack: list[str]


class ThreadStackResponse(BaseModel):
    """Response model for a thread."""

    thread_id: int
    name: str
    daemon: bool
    stack: list[str]


def _format_frames(frame) -> list[str]:
    if frame is None:
        return []
    return [line.rstrip() for line in traceback.format_stack(frame)]


def create_debug_router() -> APIRouter:
    """Create router exposing runtime introspection under /debug/pprof."""
    router = APIRouter(prefix="/debug/pprof", tags=["debug"])

    @router.get("/", response_model=DebugIndexResponse)
    async def index() -> dict:
        """List available profiles."""
        return {
            "profiles": ["tasks", "threads"],
            "task_count": len(asyncio.all_tasks()),
            "thread_count": threading.active_count(),
        }

    @router.get("/tasks", response_model=list[TaskStackResponse])
    async def tasks(
        limit: int = Query(10, ge=1, le=100, description="Frames per task"),
    ) -> list[dict]:
        """Stacks of all asyncio tasks on the serving loop."""
        result = []
        for task in asyncio.all_tasks():
            frames = task.get_stack(limit=limit)
            stack = [
                line.rstrip()
                for frame in frames
                for line in traceback.format_stack(frame, limit=1)
            ]
            result.append(
                {
                    "name": task.get_name(),
                    "done": task.done(),
                    "coroutine": repr(task.get_coro()),
                    "stack": stack,
                }
            )
        return result

    @router.get("/threads", response_model=list[ThreadStackResponse])
    async def threads() -> list[dict]:
        """Stacks of all Python threads."""
        frames = sys._current_frames()
        return [
            {
                "thread_id": thread.ident or 0,
                "name": thread.name,
                "daemon": thread.daemon,
                "stack": _format_frames(frames.get(thread.ident)),
            }
            for thread in threading.enumerate()
        ]

    return router
