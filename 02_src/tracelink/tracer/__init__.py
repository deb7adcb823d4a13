"""Tracer module."""

from .tracer import ITracer, Tracer

__all__ = ["ITracer", "Tracer"]
