"""Error taxonomy for the tracelink services."""


class TracelinkError(Exception):
    """Base class for all tracelink errors."""


class TransportError(TracelinkError):
    """Outbound call failed before a response was received (or while reading it)."""


class ProtocolError(TracelinkError):
    """Downstream answered with a non-2xx status."""

    def __init__(self, status_code: int, status_text: str):
        super().__init__(status_text)
        self.status_code = status_code
        self.status_text = status_text


class PropagationError(TracelinkError):
    """Trace header is present but cannot be parsed."""


class ExportError(TracelinkError):
    """Telemetry sink rejected a batch of finished spans."""


class StartupError(TracelinkError):
    """Telemetry pipeline could not be built; the process must not serve."""


class SpanAlreadyEndedError(TracelinkError, RuntimeError):
    """A span was ended twice."""
