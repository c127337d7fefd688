"""Explicit message passing between engine components and the map widget."""

from mapengine.comms.channel import ViewportChannel

__all__ = ["ViewportChannel"]
