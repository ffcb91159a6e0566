"""API route modules."""

from . import control, events, flows

__all__ = ["control", "events", "flows"]
