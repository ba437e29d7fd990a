"""Output layer - Writing re-pitched audio."""

from .sink import AudioSink

__all__ = ["AudioSink"]
