"""Caller loop module."""

from .loop import PING_ATTRIBUTES, CallerLoop, ICallerLoop

__all__ = ["PING_ATTRIBUTES", "CallerLoop", "ICallerLoop"]
