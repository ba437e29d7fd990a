"""Input layer - Audio file reading."""

from .source import AudioSource

__all__ = ["AudioSource"]
