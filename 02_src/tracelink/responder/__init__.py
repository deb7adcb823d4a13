"""Responder module."""

from .handler import ResponderHandler

__all__ = ["ResponderHandler"]
