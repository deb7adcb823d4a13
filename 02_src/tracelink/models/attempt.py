"""Caller loop attempt model."""

from dataclasses import dataclass
from enum import Enum

from .span import Span


class AttemptOutcome(str, Enum):
    """How an outbound attempt finished."""

    OK = "ok"
    ERROR = "error"


@dataclass
class Attempt:
    """One tick of the caller loop: exactly one span and one log line."""

    trace_id: str
    span: Span
    outcome: AttemptOutcome
    status_code: int | None = None
    body: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is AttemptOutcome.OK
