"""Pytest configuration and fixtures."""

import asyncio
import itertools
import socket
import sys
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.sdk.trace.id_generator import IdGenerator

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class SequentialIdGenerator(IdGenerator):
    """Predictable ids: trace ids 1, 2, 3... and span ids 1, 2, 3..."""

    def __init__(self):
        self._trace_ids = itertools.count(1)
        self._span_ids = itertools.count(1)

    def generate_trace_id(self) -> int:
        return next(self._trace_ids)

    def generate_span_id(self) -> int:
        return next(self._span_ids)


@pytest.fixture
def sink():
    """Create in-memory exporter collecting finished spans."""
    return InMemorySpanExporter()


@pytest.fixture
def export_errors():
    """Collect errors passed to the processor's error handler."""
    return []


@pytest.fixture
def processor(sink, export_errors):
    """Create span processor bound to the in-memory sink."""
    from tracelink.sink import create_span_processor

    return create_span_processor(sink, error_handler=export_errors.append)


@pytest.fixture
def tracer(processor):
    """Create tracer with static resource attributes."""
    from tracelink.tracer import Tracer

    return Tracer(
        instrumentation_name="test",
        processor=processor,
        resource={"service.name": "test-service", "app": "test"},
    )


@pytest.fixture
def propagator():
    """Create W3C trace-context propagator."""
    from tracelink.propagation import TraceContextPropagator

    return TraceContextPropagator()


@pytest.fixture
def make_config():
    """Factory for service configs that never touch a real collector."""
    from tracelink.config import ServiceConfig

    def _make(**overrides):
        values = {
            "service_name": "service-c",
            "app_label": "svcc",
            "exporter": "memory",
            "tick_interval": 0.05,
            "shutdown_timeout": 1.0,
        }
        values.update(overrides)
        return ServiceConfig(**values)

    return _make


@pytest.fixture
def responder_application(make_config, sink):
    """Create a responder (svcc) Application exporting into the sink fixture."""
    from tracelink.app import Application

    return Application(make_config(), sink=sink)


@pytest.fixture
def responder_app(responder_application):
    """Create the FastAPI app for the responder service."""
    from tracelink.api import create_fastapi_app

    return create_fastapi_app(responder_application, serve_responder=True)


@pytest_asyncio.fixture
async def responder_client(responder_app):
    """HTTP client talking to the responder app in-process."""
    transport = httpx.ASGITransport(app=responder_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://svcc") as client:
        yield client


@pytest.fixture
def sequential_ids():
    """Create deterministic id generator."""
    return SequentialIdGenerator()


@pytest.fixture
def refused_url():
    """URL of a local port nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}/"


@pytest_asyncio.fixture
async def trickle_url():
    """Local HTTP server sending a 5-byte body one byte every 0.2s."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        try:
            await reader.readuntil(b"\r\n\r\n")
            writer.write(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: text/plain\r\n"
                b"Content-Length: 5\r\n"
                b"\r\n"
            )
            await writer.drain()
            for byte in b"pogog":
                await asyncio.sleep(0.2)
                writer.write(bytes([byte]))
                await writer.drain()
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    yield f"http://127.0.0.1:{port}/"
    server.close()
    await server.wait_closed()
